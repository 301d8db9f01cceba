"""Monte Carlo study of the auto-trader across independent market seeds."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from signalcraft.config import Config
from signalcraft.engine.session import GameSession
from signalcraft.engine.stats import drawdown, quantiles, win_rate
from signalcraft.utils.io import save_table, write_config_snapshot
from signalcraft.utils.logging import get_logger

logger = get_logger(__name__)

METRICS = ("final_balance", "final_equity", "final_price", "trades", "win_rate", "max_drawdown", "final_level")


@dataclass
class MonteCarloResult:
    metrics: pd.DataFrame
    percentiles: Dict[str, Dict[str, float]]
    meta: Dict[str, Any] = field(default_factory=dict)

    def percentile_table(self) -> pd.DataFrame:
        rows = [{"metric": name, **values} for name, values in self.percentiles.items()]
        return pd.DataFrame(rows)


def run_mc(
    config: Config,
    runs: int,
    seed: int | None = None,
    ticks: int | None = None,
    out_dir: str | Path | None = None,
) -> MonteCarloResult:
    """Run ``runs`` headless sessions on seeds drawn from ``seed`` and aggregate outcomes."""

    if runs <= 0:
        raise ValueError("runs must be positive")
    base_seed = config.simulation.seed if seed is None else seed
    rng = np.random.default_rng(base_seed)
    seeds = [int(s) for s in rng.integers(0, 2**31 - 1, size=runs)]
    start = time.perf_counter()

    records: List[Dict[str, float]] = []
    for idx, run_seed in enumerate(seeds):
        simulation = config.simulation.model_copy(update={"seed": run_seed})
        cfg_i = config.model_copy(update={"simulation": simulation})
        session = GameSession(cfg_i)
        result = session.run(ticks=ticks)
        ts = result.timeseries
        profits = [trade.profit for trade in result.trades]
        records.append(
            {
                "run": idx,
                "seed": run_seed,
                "final_balance": float(ts["balance"].iloc[-1]),
                "final_equity": float(ts["equity"].iloc[-1]),
                "final_price": float(ts["price"].iloc[-1]),
                "trades": len(profits),
                "win_rate": win_rate(profits),
                "max_drawdown": drawdown(ts["equity"].tolist()),
                "final_level": int(ts["level"].iloc[-1]),
            }
        )
        logger.debug("run %d (seed %d): equity %.2f", idx, run_seed, records[-1]["final_equity"])

    metrics = pd.DataFrame(records)
    percentiles = {name: quantiles(metrics[name].tolist()) for name in METRICS}
    meta = {
        "seed": base_seed,
        "runs": runs,
        "ticks": ticks if ticks is not None else config.simulation.ticks,
        "runtime_sec": time.perf_counter() - start,
    }
    result = MonteCarloResult(metrics=metrics, percentiles=percentiles, meta=meta)

    if out_dir is not None:
        out = Path(out_dir)
        save_table(metrics, out, "mc_metrics")
        save_table(result.percentile_table(), out, "mc_percentiles")
        write_config_snapshot(config, out)
    return result


__all__ = ["MonteCarloResult", "run_mc", "METRICS"]
