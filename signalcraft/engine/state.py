"""Simulation state definitions."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from signalcraft.market.regime import RegimeKind

PRICE_FLOOR = 1.0
# The opening range keeps this noise scale until the first switch into a regime.
OPENING_VOLATILITY = 0.5


@dataclass
class MarketState:
    """Container for the mutable hidden market state."""

    current_price: float = 100.0
    regime: RegimeKind = RegimeKind.RANGE
    regime_timer: int = 0
    regime_duration: int = 200
    base_value: float = 100.0
    volatility: float = OPENING_VOLATILITY
    tick_count: int = 0

    @classmethod
    def opening(cls, price: float) -> "MarketState":
        """Fresh state anchored at ``price`` in a range regime."""

        price = max(float(price), PRICE_FLOOR)
        return cls(current_price=price, base_value=price)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["regime"] = self.regime.value
        return data


__all__ = ["MarketState", "OPENING_VOLATILITY", "PRICE_FLOOR"]
