"""Hidden market regimes and their per-tick dynamics."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class RegimeKind(str, Enum):
    """Hidden market state driving the price increment."""

    RANGE = "RANGE"
    TREND_UP = "TREND_UP"
    TREND_DOWN = "TREND_DOWN"
    VOLATILITY = "VOLATILITY"

    @classmethod
    def parse(cls, value: object, default: "RegimeKind | None" = None) -> "RegimeKind":
        """Return the regime named by ``value``; fall back to ``default`` when unknown."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            if default is None:
                raise
            return default


@dataclass(frozen=True)
class RegimeDynamics:
    """Static parameters of one regime.

    ``drift`` is added every tick, ``volatility`` scales the centred noise term and
    ``reversion`` pulls the price back toward the range anchor. ``swing`` replaces
    the whole increment with a wide uniform draw when non-zero.
    """

    drift: float = 0.0
    volatility: float = 0.5
    reversion: float = 0.0
    swing: float = 0.0
    resets_anchor: bool = False


REGIME_DYNAMICS: Dict[RegimeKind, RegimeDynamics] = {
    RegimeKind.RANGE: RegimeDynamics(volatility=0.3, reversion=0.05, resets_anchor=True),
    RegimeKind.TREND_UP: RegimeDynamics(drift=0.1, volatility=0.5),
    RegimeKind.TREND_DOWN: RegimeDynamics(drift=-0.1, volatility=0.5),
    # volatility=1.5 is recorded on the state but the increment uses the 3.0 swing
    RegimeKind.VOLATILITY: RegimeDynamics(volatility=1.5, swing=3.0),
}

# Cumulative upper bounds for one uniform draw: 40% / 25% / 25% / 10%.
SWITCH_THRESHOLDS: Tuple[Tuple[float, RegimeKind], ...] = (
    (0.40, RegimeKind.RANGE),
    (0.65, RegimeKind.TREND_UP),
    (0.90, RegimeKind.TREND_DOWN),
    (1.00, RegimeKind.VOLATILITY),
)

DURATION_RANGE: Tuple[int, int] = (100, 300)


def dynamics_for(regime: RegimeKind) -> RegimeDynamics:
    return REGIME_DYNAMICS[regime]


def select_regime(draw: float) -> RegimeKind:
    """Map a uniform ``[0, 1)`` draw to a regime via the cumulative thresholds."""

    for upper, regime in SWITCH_THRESHOLDS:
        if draw < upper:
            return regime
    return RegimeKind.VOLATILITY


def draw_duration(draw: float) -> int:
    """Map a uniform draw to a regime lifetime in ``[100, 300)`` ticks."""

    low, high = DURATION_RANGE
    return int(low + draw * (high - low))


def price_increment(regime: RegimeKind, price: float, anchor: float, volatility: float, draw: float) -> float:
    """Return the price change for one tick.

    ``draw`` is the single uniform sample consumed by the tick; trend and range
    regimes centre it and scale by ``volatility``, the volatility regime scales it
    by its fixed swing instead.
    """

    dynamics = REGIME_DYNAMICS[regime]
    centred = draw - 0.5
    if dynamics.swing:
        return centred * dynamics.swing
    change = dynamics.drift + centred * volatility
    if dynamics.reversion:
        change += (anchor - price) * dynamics.reversion
    return change


__all__ = [
    "RegimeKind",
    "RegimeDynamics",
    "REGIME_DYNAMICS",
    "SWITCH_THRESHOLDS",
    "DURATION_RANGE",
    "dynamics_for",
    "select_regime",
    "draw_duration",
    "price_increment",
]
