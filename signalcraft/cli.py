"""Command line interface for signalcraft."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.live import Live
from rich.table import Table

from signalcraft.config import Config, load_config
from signalcraft.engine.monte_carlo import run_mc
from signalcraft.engine.session import GameSession
from signalcraft.reporting.plots import plot_all
from signalcraft.reporting.summary import export_summary, summarize_timeseries
from signalcraft.utils.io import load_result_tables, load_session_state, save_session_state, timestamped_dir
from signalcraft.utils.logging import setup_logging
from signalcraft.utils.validation import validate_config

app = typer.Typer(help="Regime-switching market simulation CLI")
console = Console()


def _resolve_output(base: Path, scenario: str) -> Path:
    base.mkdir(parents=True, exist_ok=True)
    return timestamped_dir(base, scenario)


def _load(config: Optional[Path], seed: Optional[int], ticks: Optional[int]) -> Config:
    overrides: dict = {"simulation": {}}
    if seed is not None:
        overrides["simulation"]["seed"] = seed
    if ticks is not None:
        overrides["simulation"]["ticks"] = ticks
    cfg = load_config(config, overrides=overrides)
    validate_config(cfg)
    return cfg


@app.callback()
def main(log_level: str = typer.Option("WARNING", help="Logging level")) -> None:
    setup_logging(log_level)


@app.command()
def run(
    config: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Configuration YAML"),
    out: Path = typer.Option(Path("results/run"), help="Output directory"),
    seed: Optional[int] = typer.Option(None, help="Override simulation seed"),
    ticks: Optional[int] = typer.Option(None, min=1, help="Override number of ticks"),
    save: Optional[Path] = typer.Option(None, dir_okay=False, help="Resume from and write back a session save"),
    plots: bool = typer.Option(True, help="Render price and equity charts"),
) -> None:
    """Run one headless session with the auto-trader."""

    cfg = _load(config, seed, ticks)
    scenario = cfg.meta.name or (config.stem if config else "base")
    out_dir = _resolve_output(out, scenario)
    if save is not None:
        session = GameSession.restore(load_session_state(save), cfg)
    else:
        session = GameSession(cfg)
    console.print(f"[bold green]Running session[/bold green] -> {out_dir}")
    result = session.run(out_dir=out_dir)
    if result.timeseries.empty:
        console.print("[bold red]Game over[/bold red]: the session has no ticks left to play")
    else:
        export_summary(result.timeseries, out_dir, result.trades_frame())
        if plots:
            plot_all(result.timeseries, out_dir, scenario)
    if save is not None:
        save_session_state(session.snapshot(), save)
        console.print(f"Saved session to {save}")
    progression = session.progression_snapshot()
    console.print(
        f"Balance {session.ledger.balance:,.2f} | trades {len(result.trades)} | level {progression.level}"
    )


@app.command()
def mc(
    config: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Configuration YAML"),
    runs: int = typer.Option(50, min=1, help="Number of Monte Carlo runs"),
    seed: Optional[int] = typer.Option(None, help="Seed for drawing per-run seeds"),
    ticks: Optional[int] = typer.Option(None, min=1, help="Ticks per run"),
    out: Path = typer.Option(Path("results/mc"), help="Output directory"),
) -> None:
    """Run the auto-trader across many market seeds and report percentiles."""

    cfg = _load(config, None, ticks)
    out_dir = _resolve_output(out, cfg.meta.name or "base")
    console.print(f"[bold cyan]Running Monte Carlo[/bold cyan] ({runs} runs) -> {out_dir}")
    result = run_mc(cfg, runs=runs, seed=seed, out_dir=out_dir)
    table = Table(title="Auto-trader outcomes")
    table.add_column("metric")
    for column in ("p10", "p50", "p90"):
        table.add_column(column, justify="right")
    for name, values in result.percentiles.items():
        table.add_row(name, *(f"{values[c]:,.3f}" for c in ("p10", "p50", "p90")))
    console.print(table)


@app.command()
def watch(
    config: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Configuration YAML"),
    ticks: int = typer.Option(600, min=1, help="Ticks to play in real time"),
    seed: Optional[int] = typer.Option(None, help="Override simulation seed"),
) -> None:
    """Play the market at its tick rate with the auto-trader and a live status panel."""

    cfg = _load(config, seed, None)
    session = GameSession(cfg)
    if cfg.market.warm_up:
        session.warm_up()
    session.set_auto_trading_enabled(cfg.simulation.auto_trading)

    def status(current: GameSession) -> Table:
        table = Table(show_header=False)
        table.add_row("tick", str(current.market.tick_count))
        table.add_row("price", f"{current.price:,.2f}")
        table.add_row("regime", current.regime_hint() or "hidden")
        table.add_row("balance", f"{current.ledger.balance:,.2f}")
        table.add_row("shares", str(current.ledger.shares))
        progression = current.progression_snapshot()
        table.add_row("level", f"{progression.level} ({progression.progress:.0%})")
        return table

    with Live(status(session), console=console, refresh_per_second=10) as live:
        session.run_paced(ticks, on_tick=lambda current, sample: live.update(status(current)))
    console.print(f"Finished with {len(session.trades)} trades")


@app.command()
def plot(result: Path = typer.Option(..., exists=True, file_okay=False, help="Result directory")) -> None:
    """Regenerate charts and the summary from stored result tables."""

    tables = load_result_tables(result, ["timeseries", "trades"])
    ts = tables["timeseries"]
    ts["action"] = ts["action"].fillna("")
    for path in plot_all(ts, result, result.parent.name):
        console.print(f"Saved {path}")
    console.print(summarize_timeseries(ts, tables["trades"]).to_string(index=False))


@app.command()
def validate(configs: List[Path] = typer.Argument(..., exists=True, dir_okay=False)) -> None:
    """Validate configuration files without running a session."""

    for path in configs:
        cfg = load_config(path)
        validate_config(cfg)
        console.print(f"{path}: configuration validated successfully")


if __name__ == "__main__":
    app()
