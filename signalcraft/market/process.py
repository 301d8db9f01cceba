"""Regime-switching price process."""

from __future__ import annotations

from dataclasses import dataclass

from signalcraft.engine.state import PRICE_FLOOR, MarketState
from signalcraft.market.regime import (
    RegimeKind,
    draw_duration,
    dynamics_for,
    price_increment,
    select_regime,
)
from signalcraft.utils.logging import get_logger
from signalcraft.utils.rng import RandomSource

logger = get_logger(__name__)


@dataclass(frozen=True)
class PriceSample:
    """Observable outcome of one tick."""

    tick: int
    price: float
    regime: RegimeKind
    switched: bool = False


class PriceProcess:
    """Advance :class:`MarketState` one tick at a time.

    Each tick bumps the counters, switches regime once the timer has run past the
    drawn duration, then moves the price under whichever regime is active after
    the switch. The price never falls below :data:`PRICE_FLOOR`.
    """

    def __init__(self, state: MarketState, rng: RandomSource) -> None:
        self.state = state
        self.rng = rng

    def advance_tick(self) -> PriceSample:
        state = self.state
        state.tick_count += 1
        state.regime_timer += 1
        switched = False
        if state.regime_timer > state.regime_duration:
            self.switch_regime()
            switched = True

        change = price_increment(
            state.regime,
            state.current_price,
            state.base_value,
            state.volatility,
            self.rng.next_float(),
        )
        state.current_price = max(state.current_price + change, PRICE_FLOOR)
        return PriceSample(tick=state.tick_count, price=state.current_price, regime=state.regime, switched=switched)

    def switch_regime(self) -> RegimeKind:
        """Draw the next regime from the fixed categorical weights and enter it."""

        previous = self.state.regime
        regime = select_regime(self.rng.next_float())
        self.enter_regime(regime)
        logger.debug(
            "tick %d: regime %s -> %s for %d ticks",
            self.state.tick_count,
            previous.value,
            regime.value,
            self.state.regime_duration,
        )
        return regime

    def enter_regime(self, regime: RegimeKind, duration: int | None = None) -> None:
        """Apply entry resets for ``regime``; draws a fresh duration unless one is given."""

        state = self.state
        state.regime = regime
        state.regime_timer = 0
        state.regime_duration = draw_duration(self.rng.next_float()) if duration is None else int(duration)
        dynamics = dynamics_for(regime)
        if dynamics.resets_anchor:
            state.base_value = state.current_price
        state.volatility = dynamics.volatility


__all__ = ["PriceProcess", "PriceSample"]
