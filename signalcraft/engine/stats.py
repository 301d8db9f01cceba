"""Small statistics helpers for Monte Carlo summaries."""

from __future__ import annotations

import math
from typing import Dict, Iterable, Sequence


def quantiles(values: Sequence[float], qs: Iterable[float] = (0.1, 0.5, 0.9)) -> Dict[str, float]:
    """Return empirical quantiles keyed by ``q`` (e.g., ``{"p10": value}``)."""

    samples = sorted(float(v) for v in values)
    if not samples:
        raise ValueError("values cannot be empty")
    n = len(samples)
    out: Dict[str, float] = {}
    for q in qs:
        if not 0.0 <= q <= 1.0:
            raise ValueError("quantile probabilities must be in [0,1]")
        idx = q * (n - 1)
        lower = int(math.floor(idx))
        upper = int(math.ceil(idx))
        if lower == upper:
            val = samples[lower]
        else:
            weight = idx - lower
            val = samples[lower] * (1 - weight) + samples[upper] * weight
        out[f"p{int(round(q * 100))}"] = val
    return out


def drawdown(series: Sequence[float]) -> float:
    """Return max drawdown (fraction, non-positive)."""

    peak = -math.inf
    max_dd = 0.0
    for value in series:
        level = float(value)
        peak = max(peak, level)
        if peak > 0:
            max_dd = min(max_dd, (level - peak) / peak)
    return max_dd


def win_rate(profits: Sequence[float]) -> float:
    if not profits:
        return 0.0
    return sum(1 for p in profits if p > 0) / len(profits)


__all__ = ["quantiles", "drawdown", "win_rate"]
