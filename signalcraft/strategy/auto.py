"""Rule-based auto-trader: moving-average crossover plus range mean reversion."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from signalcraft.accounting.ledger import Position
from signalcraft.config import StrategyParams
from signalcraft.engine.state import MarketState
from signalcraft.market.regime import RegimeKind


class Action(str, Enum):
    HOLD = "hold"
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class StrategyDecision:
    action: Action
    reason: str = ""
    ma_fast: Optional[float] = None
    ma_slow: Optional[float] = None

    @property
    def is_action(self) -> bool:
        return self.action is not Action.HOLD


HOLD = StrategyDecision(Action.HOLD)


@dataclass
class StrategyEngine:
    """Decide buy/sell intents from the price history under a tick cooldown.

    The engine only proposes; the caller executes and reports back through
    :meth:`record_action` so that rejected intents do not start a cooldown.
    """

    params: StrategyParams = field(default_factory=StrategyParams)
    last_action_tick: int = 0

    def is_due(self, tick_count: int) -> bool:
        return tick_count % self.params.interval_ticks == 0

    def moving_averages(self, history: Sequence[float]) -> tuple[float, float] | None:
        """Return ``(fast, slow)`` means, or ``None`` when the history is too short."""

        params = self.params
        if len(history) < params.min_history:
            return None
        if params.require_full_window and len(history) < params.slow_window:
            return None
        prices = np.asarray(history, dtype=float)
        ma_slow = float(prices[-params.slow_window:].mean())
        ma_fast = float(prices[-params.fast_window:].mean())
        return ma_fast, ma_slow

    def decide(self, history: Sequence[float], market: MarketState, position: Position) -> StrategyDecision:
        averages = self.moving_averages(history)
        if averages is None:
            return HOLD
        ma_fast, ma_slow = averages
        if market.tick_count - self.last_action_tick < self.params.cooldown_ticks:
            return HOLD

        price = market.current_price
        if not position.is_open:
            if market.regime is RegimeKind.TREND_UP and ma_fast > ma_slow:
                return StrategyDecision(Action.BUY, "trend_follow", ma_fast, ma_slow)
            if market.regime is RegimeKind.RANGE and price < market.base_value * self.params.range_entry_discount:
                return StrategyDecision(Action.BUY, "mean_reversion", ma_fast, ma_slow)
            return StrategyDecision(Action.HOLD, "", ma_fast, ma_slow)

        pnl = position.unrealized_return(price)
        if pnl > self.params.take_profit:
            return StrategyDecision(Action.SELL, "take_profit", ma_fast, ma_slow)
        if pnl < -self.params.stop_loss:
            return StrategyDecision(Action.SELL, "stop_loss", ma_fast, ma_slow)
        return StrategyDecision(Action.HOLD, "", ma_fast, ma_slow)

    def record_action(self, tick_count: int) -> None:
        self.last_action_tick = tick_count


__all__ = ["Action", "StrategyDecision", "StrategyEngine", "HOLD"]
