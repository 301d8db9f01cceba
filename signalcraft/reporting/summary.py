"""Summary table generation."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import pandas as pd

from signalcraft.engine.stats import drawdown
from signalcraft.utils.io import save_table


def summarize_timeseries(timeseries: pd.DataFrame, trades: Optional[pd.DataFrame] = None) -> pd.DataFrame:
    """Return summary statistics across key metrics."""

    if timeseries.empty:
        raise ValueError("timeseries cannot be empty")
    regime_share = timeseries["regime"].value_counts(normalize=True)
    trade_count = 0 if trades is None else len(trades)
    wins = 0 if trades is None or trades.empty else int((trades["profit"] > 0).sum())
    metrics = {
        "ticks": float(len(timeseries)),
        "final_price": timeseries["price"].iloc[-1],
        "peak_price": timeseries["price"].max(),
        "min_price": timeseries["price"].min(),
        "regime_switches": float(timeseries["regime_switch"].sum()),
        "final_balance": timeseries["balance"].iloc[-1],
        "final_equity": timeseries["equity"].iloc[-1],
        "max_equity_drawdown": drawdown(timeseries["equity"].tolist()),
        "trades": float(trade_count),
        "winning_trades": float(wins),
        "realized_profit": 0.0 if trades is None or trades.empty else float(trades["profit"].sum()),
        "final_level": float(timeseries["level"].iloc[-1]),
    }
    for regime, share in regime_share.items():
        metrics[f"share_{str(regime).lower()}"] = float(share)
    return pd.DataFrame({"metric": list(metrics.keys()), "value": list(metrics.values())})


def export_summary(
    timeseries: pd.DataFrame,
    out_dir: Path,
    trades: Optional[pd.DataFrame] = None,
    name: str = "summary",
) -> Path:
    table = summarize_timeseries(timeseries, trades)
    save_table(table, out_dir, name)
    return out_dir / f"{name}.csv"


__all__ = ["summarize_timeseries", "export_summary"]
