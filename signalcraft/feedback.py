"""Narrative feedback for closed trades."""

from __future__ import annotations

from typing import Dict, Tuple

from signalcraft.market.regime import RegimeKind

WIN_TITLE = "Profit Secured"
LOSS_TITLE = "Loss Realized"
LEVEL_UP_TITLE = "LEVEL UP!"
LEVEL_UP_MESSAGE = "Market Intuition Increased."

MESSAGES: Dict[Tuple[RegimeKind, bool], str] = {
    (RegimeKind.TREND_UP, True): "You rode the momentum correctly.",
    (RegimeKind.TREND_UP, False): "Trend was intact, but timing was off.",
    (RegimeKind.RANGE, True): "Good scalping in a sideways market.",
    (RegimeKind.RANGE, False): "Range broke or you bought the top.",
    (RegimeKind.TREND_DOWN, True): "Wait, you profited in a downtrend? Lucky bounce.",
    (RegimeKind.TREND_DOWN, False): "Never catch a falling knife.",
    (RegimeKind.VOLATILITY, True): "Volatility paid out this time. Don't count on it twice.",
    (RegimeKind.VOLATILITY, False): "Volatility is unpredictable. High risk environment.",
}


def classify_trade(regime: RegimeKind, is_win: bool) -> Tuple[str, str]:
    """Return ``(title, message)`` for a trade closed during ``regime``."""

    title = WIN_TITLE if is_win else LOSS_TITLE
    return title, MESSAGES[(regime, bool(is_win))]


REGIME_HINTS: Dict[RegimeKind, str] = {
    RegimeKind.TREND_UP: "TREND DETECTED",
    RegimeKind.TREND_DOWN: "TREND DETECTED",
    RegimeKind.RANGE: "RANGE BOUND",
    RegimeKind.VOLATILITY: "HIGH VOLATILITY",
}


def regime_hint(regime: RegimeKind) -> str:
    """Coarse, direction-free description of the hidden regime."""

    return REGIME_HINTS[regime]


__all__ = [
    "WIN_TITLE",
    "LOSS_TITLE",
    "LEVEL_UP_TITLE",
    "LEVEL_UP_MESSAGE",
    "MESSAGES",
    "REGIME_HINTS",
    "classify_trade",
    "regime_hint",
]
