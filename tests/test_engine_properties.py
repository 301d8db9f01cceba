import subprocess
import sys
from pathlib import Path

import pandas as pd
import yaml

from signalcraft.config import load_config
from signalcraft.engine.monte_carlo import METRICS, run_mc
from signalcraft.engine.session import GameSession
from signalcraft.reporting.summary import summarize_timeseries
from signalcraft.utils.io import load_session_state, save_session_state


def test_session_deterministic() -> None:
    cfg = load_config("configs/base.yaml", overrides={"simulation": {"ticks": 1_500}})
    result1 = GameSession(cfg).run()
    result2 = GameSession(cfg).run()
    pd.testing.assert_frame_equal(result1.timeseries, result2.timeseries)
    assert [t.profit for t in result1.trades] == [t.profit for t in result2.trades]


def test_run_writes_tables(tmp_path: Path) -> None:
    cfg = load_config("configs/base.yaml")
    result = GameSession(cfg).run(ticks=300, out_dir=tmp_path)
    assert len(result.timeseries) == 300
    assert (tmp_path / "timeseries.csv").exists()
    assert (tmp_path / "trades.csv").exists()
    assert (tmp_path / "config_snapshot.yaml").exists()
    stored = pd.read_csv(tmp_path / "timeseries.csv")
    assert stored["tick"].tolist() == result.timeseries["tick"].tolist()


def test_summary_reports_core_metrics() -> None:
    cfg = load_config("configs/base.yaml", overrides={"account": {"starting_balance": 5_000.0}})
    result = GameSession(cfg).run(ticks=2_000)
    summary = summarize_timeseries(result.timeseries, result.trades_frame()).set_index("metric")["value"]
    assert summary["ticks"] == 2_000
    assert summary["min_price"] >= 1.0
    assert summary["trades"] == len(result.trades)
    assert summary["max_equity_drawdown"] <= 0.0
    share_cols = [name for name in summary.index if name.startswith("share_")]
    assert abs(sum(summary[name] for name in share_cols) - 1.0) < 1e-9


def test_mc_percentiles_ordered_and_reproducible() -> None:
    cfg = load_config("configs/base.yaml")
    first = run_mc(cfg, runs=6, seed=3, ticks=400)
    second = run_mc(cfg, runs=6, seed=3, ticks=400)
    assert len(first.metrics) == 6
    assert first.metrics["seed"].nunique() == 6
    pd.testing.assert_frame_equal(first.metrics, second.metrics)
    for name in METRICS:
        p = first.percentiles[name]
        assert p["p10"] <= p["p50"] <= p["p90"]
    assert set(first.percentile_table()["metric"]) == set(METRICS)


def test_cli_smoke(tmp_path: Path) -> None:
    cfg = load_config("configs/base.yaml")
    data = cfg.model_dump(mode="json")
    data["simulation"]["ticks"] = 300
    cfg_path = tmp_path / "config.yaml"
    with cfg_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)
    out_dir = tmp_path / "run"
    subprocess.check_call([
        sys.executable,
        "-m",
        "signalcraft.cli",
        "run",
        "--config",
        str(cfg_path),
        "--out",
        str(out_dir),
    ])
    timeseries = list(out_dir.rglob("timeseries.csv"))
    assert timeseries, "timeseries.csv not produced"
    assert list(out_dir.rglob("summary.csv"))
    pngs = list(out_dir.rglob("*.png"))
    assert len(pngs) >= 2
    subprocess.check_call([
        sys.executable,
        "-m",
        "signalcraft.cli",
        "plot",
        "--result",
        str(timeseries[0].parent),
    ])
    subprocess.check_call([sys.executable, "-m", "signalcraft.cli", "validate", str(cfg_path)])


def test_cli_run_resumes_finished_survival_save(tmp_path: Path) -> None:
    cfg = load_config("configs/survival.yaml")
    save = save_session_state(GameSession.restore({"days": {"game_over": True}}, cfg).snapshot(), tmp_path / "save.json")
    out_dir = tmp_path / "run"
    subprocess.check_call([
        sys.executable,
        "-m",
        "signalcraft.cli",
        "run",
        "--config",
        "configs/survival.yaml",
        "--out",
        str(out_dir),
        "--ticks",
        "50",
        "--save",
        str(save),
    ])
    assert list(out_dir.rglob("timeseries.csv"))
    assert not list(out_dir.rglob("summary.csv"))
    assert not list(out_dir.rglob("*.png"))
    assert load_session_state(save)["days"]["game_over"] is True
