"""Plotting utilities."""

from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd

REGIME_COLORS = {
    "RANGE": "tab:gray",
    "TREND_UP": "tab:green",
    "TREND_DOWN": "tab:red",
    "VOLATILITY": "tab:purple",
}


def _ensure_out(out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir


def _regime_spans(timeseries: pd.DataFrame) -> list[tuple[float, float, str]]:
    spans: list[tuple[float, float, str]] = []
    ticks = timeseries["tick"].tolist()
    regimes = timeseries["regime"].tolist()
    start = 0
    for idx in range(1, len(regimes) + 1):
        if idx == len(regimes) or regimes[idx] != regimes[start]:
            spans.append((ticks[start], ticks[idx - 1], regimes[start]))
            start = idx
    return spans


def plot_price(timeseries: pd.DataFrame, out_dir: Path, scenario: str) -> Path:
    out_dir = _ensure_out(out_dir)
    fig, ax = plt.subplots(figsize=(10, 4))
    for start, end, regime in _regime_spans(timeseries):
        ax.axvspan(start, end, color=REGIME_COLORS.get(regime, "tab:gray"), alpha=0.12, linewidth=0)
    ax.plot(timeseries["tick"], timeseries["price"], label="Price", color="tab:blue")
    trades = timeseries[timeseries["action"] != ""]
    for action, marker, color in (("buy", "^", "tab:green"), ("sell", "v", "tab:red")):
        subset = trades[trades["action"] == action]
        if not subset.empty:
            ax.scatter(subset["tick"], subset["price"], marker=marker, color=color, label=action.title(), zorder=3)
    ax.set_title(f"Price Path - {scenario}")
    ax.set_xlabel("Tick")
    ax.set_ylabel("Price")
    ax.legend()
    path = out_dir / f"{scenario}_price.png"
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_equity(timeseries: pd.DataFrame, out_dir: Path, scenario: str) -> Path:
    out_dir = _ensure_out(out_dir)
    fig, ax = plt.subplots(figsize=(10, 4))
    ax.plot(timeseries["tick"], timeseries["equity"], label="Equity", color="tab:orange")
    ax.plot(timeseries["tick"], timeseries["balance"], label="Cash", color="tab:olive", alpha=0.6)
    ax.set_title(f"Account Value - {scenario}")
    ax.set_xlabel("Tick")
    ax.set_ylabel("Value")
    ax.legend()
    path = out_dir / f"{scenario}_equity.png"
    fig.tight_layout()
    fig.savefig(path)
    plt.close(fig)
    return path


def plot_all(timeseries: pd.DataFrame, out_dir: Path, scenario: str) -> list[Path]:
    return [
        plot_price(timeseries, out_dir, scenario),
        plot_equity(timeseries, out_dir, scenario),
    ]


__all__ = ["plot_price", "plot_equity", "plot_all"]
