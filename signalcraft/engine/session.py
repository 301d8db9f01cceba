"""Game session orchestrating the market, strategy and ledgers."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import pandas as pd

from signalcraft.accounting.ledger import BuyResult, Ledger, RealizedTrade, SellResult, TradeRejection
from signalcraft.accounting.progression import REGIME_HINT, Progression, ProgressionSnapshot
from signalcraft.config import Config
from signalcraft.engine.history import HistoryBuffer
from signalcraft.engine.state import PRICE_FLOOR, MarketState
from signalcraft.feedback import LEVEL_UP_MESSAGE, classify_trade, regime_hint
from signalcraft.market.process import PriceProcess, PriceSample
from signalcraft.market.regime import RegimeKind
from signalcraft.strategy.auto import Action, StrategyDecision, StrategyEngine
from signalcraft.survival.days import DayAction, DayCycle, DayReport
from signalcraft.utils.io import save_table, write_config_snapshot
from signalcraft.utils.logging import get_logger
from signalcraft.utils.rng import RandomSource, RNGManager
from signalcraft.utils.validation import (
    restored_flag,
    restored_number,
    restored_prices,
    restored_regime,
    restored_section,
)

logger = get_logger(__name__)

RECORD_COLUMNS = [
    "tick",
    "price",
    "regime",
    "regime_switch",
    "base_value",
    "balance",
    "shares",
    "avg_cost",
    "equity",
    "level",
    "xp",
    "action",
    "day",
]


@dataclass
class SessionResults:
    timeseries: pd.DataFrame
    trades: List[RealizedTrade]

    def trades_frame(self) -> pd.DataFrame:
        columns = ["tick", "regime", "shares", "entry_price", "exit_price", "profit", "fee", "xp_gained", "levels_gained"]
        rows = [
            {
                "tick": trade.tick,
                "regime": trade.regime.value if trade.regime else None,
                "shares": trade.shares,
                "entry_price": trade.entry_price,
                "exit_price": trade.exit_price,
                "profit": trade.profit,
                "fee": trade.fee,
                "xp_gained": trade.xp_gained,
                "levels_gained": trade.levels_gained,
            }
            for trade in self.trades
        ]
        return pd.DataFrame(rows, columns=columns)


class GameSession:
    """Single-player session: one market, one wallet, one progression track.

    All state lives on the instance, so several sessions can run side by side.
    Every public operation runs to completion and reports failure through its
    return value.
    """

    def __init__(self, config: Config | None = None, rng: RandomSource | None = None) -> None:
        self.config = config or Config()
        cfg = self.config
        self.rng = rng if rng is not None else RNGManager(cfg.simulation.seed).source("market")
        self.market = MarketState.opening(cfg.market.init_price)
        self.process = PriceProcess(self.market, self.rng)
        self.history = HistoryBuffer(cfg.market.history_size)
        self.ledger = Ledger(
            balance=cfg.account.starting_balance,
            commission_rate=cfg.account.commission_rate,
            round_to_cents=cfg.account.round_balance_to_cents,
        )
        self.progression = Progression(cfg.progression)
        self.strategy = StrategyEngine(cfg.strategy)
        self.days: Optional[DayCycle] = DayCycle(cfg.survival) if cfg.survival.enabled else None
        self._auto_trading = False
        self.trades: List[RealizedTrade] = []
        self.last_decision: Optional[StrategyDecision] = None
        self._last_fill_tick = -1

    # -- market -----------------------------------------------------------

    def advance_tick(self) -> PriceSample:
        """Move the market one tick and let the auto-trader react if it is due."""

        sample = self.process.advance_tick()
        self.history.push(sample.price)
        if self._auto_trading and self.strategy.is_due(self.market.tick_count):
            self.run_strategy()
        return sample

    def warm_up(self, ticks: int | None = None) -> None:
        """Pre-fill the history without consulting the strategy."""

        count = self.config.market.history_size if ticks is None else ticks
        for _ in range(count):
            sample = self.process.advance_tick()
            self.history.push(sample.price)

    def history_snapshot(self) -> List[float]:
        return self.history.snapshot()

    @property
    def price(self) -> float:
        return self.market.current_price

    # -- strategy ---------------------------------------------------------

    def set_auto_trading_enabled(self, enabled: bool) -> None:
        self._auto_trading = bool(enabled)

    def is_auto_trading_enabled(self) -> bool:
        return self._auto_trading

    def run_strategy(self) -> BuyResult | SellResult | None:
        """Ask the strategy for an intent and execute it; returns the trade result if any."""

        decision = self.strategy.decide(self.history.snapshot(), self.market, self.ledger.position)
        self.last_decision = decision
        if decision.action is Action.HOLD:
            return None
        result: BuyResult | SellResult
        if decision.action is Action.BUY:
            result = self.buy()
        else:
            result = self.sell()
        # an issued intent starts the cooldown even when the ledger refuses it
        self.strategy.record_action(self.market.tick_count)
        if result.ok:
            self._last_fill_tick = self.market.tick_count
            logger.debug("tick %d: auto %s (%s)", self.market.tick_count, decision.action.value, decision.reason)
        else:
            logger.debug(
                "tick %d: auto %s rejected: %s",
                self.market.tick_count,
                decision.action.value,
                result.rejection.value if result.rejection else "",
            )
        return result

    # -- trading ----------------------------------------------------------

    @property
    def trading_permitted(self) -> bool:
        if self.days is None:
            return True
        return self.days.can_trade and not self.days.game_over

    def buy(self, fraction: float | None = None) -> BuyResult:
        if not self.trading_permitted:
            return BuyResult(rejection=TradeRejection.TRADING_NOT_PERMITTED)
        result = self.ledger.buy(self.market.current_price, fraction)
        if result.ok:
            logger.info(
                "tick %d: bought %d @ %.2f (avg cost %.2f)",
                self.market.tick_count,
                result.shares_bought,
                self.market.current_price,
                self.ledger.avg_cost,
            )
        return result

    def sell(self) -> SellResult:
        if not self.trading_permitted:
            return SellResult(rejection=TradeRejection.TRADING_NOT_PERMITTED)
        result = self.ledger.sell(self.market.current_price)
        if result.trade is None:
            return result
        trade = result.trade
        xp, levels = self.progression.record_trade(trade.profit)
        title, message = classify_trade(self.market.regime, trade.is_win)
        trade = replace(
            trade,
            tick=self.market.tick_count,
            regime=self.market.regime,
            xp_gained=xp,
            levels_gained=levels,
            title=title,
            message=message,
        )
        self.trades.append(trade)
        logger.info("tick %d: %s (%.2f) %s", trade.tick, title, trade.profit, message)
        if levels:
            logger.info("Level %d reached. %s", self.progression.level, LEVEL_UP_MESSAGE)
        return SellResult(trade=trade)

    # -- progression ------------------------------------------------------

    def progression_snapshot(self) -> ProgressionSnapshot:
        return self.progression.snapshot()

    def unlocked_features(self) -> List[str]:
        return self.progression.unlocked_features()

    def regime_hint(self) -> Optional[str]:
        """Coarse regime label once the hint is unlocked, otherwise ``None``."""

        if REGIME_HINT not in self.progression.unlocked_features():
            return None
        return regime_hint(self.market.regime)

    # -- survival ---------------------------------------------------------

    def choose_day_action(self, action: DayAction | str) -> Optional[DayReport]:
        if self.days is None:
            logger.warning("Day actions require survival mode")
            return None
        return self.days.choose(action, self.ledger)

    def end_day(self) -> Optional[DayReport]:
        if self.days is None:
            logger.warning("Day actions require survival mode")
            return None
        return self.days.end_day(self.ledger)

    @property
    def game_over(self) -> bool:
        return self.days is not None and self.days.game_over

    def restart(self) -> None:
        """Reset wallet, position, progression and days; the market keeps running."""

        self.ledger.balance = self.config.account.starting_balance
        self.ledger.shares = 0
        self.ledger.avg_cost = 0.0
        self.progression.reset()
        if self.days is not None:
            self.days.reset()
        self._auto_trading = False
        self.trades.clear()

    # -- headless driver --------------------------------------------------

    def run(self, ticks: int | None = None, out_dir: str | Path | None = None) -> SessionResults:
        """Drive the tick loop without wall-clock pacing and record every tick."""

        cfg = self.config
        ticks = cfg.simulation.ticks if ticks is None else ticks
        if cfg.market.warm_up and len(self.history) == 0:
            self.warm_up()
        self.set_auto_trading_enabled(cfg.simulation.auto_trading)
        ticks_per_day = cfg.simulation.ticks_per_day
        first_trade = len(self.trades)

        records: List[Dict[str, Any]] = []
        for step in range(ticks):
            if self.days is not None:
                if self.days.game_over:
                    break
                if not self.days.action_taken_today:
                    self.days.choose(DayAction.TRADE, self.ledger)
            sample = self.advance_tick()
            records.append(self._record(sample))
            if self.days is not None and ticks_per_day and (step + 1) % ticks_per_day == 0:
                self.days.end_day(self.ledger)

        if not records and self.game_over:
            logger.info("Session is already over; no ticks recorded")
        timeseries = pd.DataFrame(records, columns=RECORD_COLUMNS)
        results = SessionResults(timeseries=timeseries, trades=list(self.trades[first_trade:]))
        if out_dir is not None:
            out = Path(out_dir)
            save_table(timeseries, out, "timeseries")
            save_table(results.trades_frame(), out, "trades")
            write_config_snapshot(cfg, out)
        return results

    def run_paced(
        self,
        ticks: int,
        on_tick: Optional[Callable[["GameSession", PriceSample], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """Advance ``ticks`` ticks on the configured wall-clock period.

        Late ticks are not made up; the next deadline is measured from the tick
        that just finished. Returns the number of ticks actually run.
        """

        period = self.config.market.tick_rate_ms / 1000.0
        done = 0
        deadline = clock()
        for _ in range(ticks):
            if self.game_over:
                break
            sample = self.advance_tick()
            done += 1
            if on_tick is not None:
                on_tick(self, sample)
            deadline = max(deadline + period, clock())
            remaining = deadline - clock()
            if remaining > 0:
                sleep(remaining)
        return done

    def _record(self, sample: PriceSample) -> Dict[str, Any]:
        decision = self.last_decision
        acted = decision is not None and decision.is_action and self._last_fill_tick == sample.tick
        return {
            "tick": sample.tick,
            "price": sample.price,
            "regime": sample.regime.value,
            "regime_switch": int(sample.switched),
            "base_value": self.market.base_value,
            "balance": self.ledger.balance,
            "shares": self.ledger.shares,
            "avg_cost": self.ledger.avg_cost,
            "equity": self.ledger.equity(sample.price),
            "level": self.progression.level,
            "xp": self.progression.xp,
            "action": decision.action.value if acted else "",
            "day": self.days.current_day if self.days is not None else 0,
        }

    # -- persistence ------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """Everything a host needs to persist to resume this session later."""

        data: Dict[str, Any] = {
            "balance": self.ledger.balance,
            "shares": self.ledger.shares,
            "avg_cost": self.ledger.avg_cost,
            "level": self.progression.level,
            "xp": self.progression.xp,
            "next_level_xp": self.progression.next_level_xp,
            "auto_strategy_active": self._auto_trading,
            "last_action_tick": self.strategy.last_action_tick,
            "price_history": self.history.snapshot(),
            "market": self.market.to_dict(),
        }
        if self.days is not None:
            data["days"] = {
                "current_day": self.days.current_day,
                "negative_days_streak": self.days.negative_days_streak,
                "game_over": self.days.game_over,
                "can_trade": self.days.can_trade,
                "action_taken_today": self.days.action_taken_today,
            }
        return data

    @classmethod
    def restore(
        cls,
        data: Mapping[str, Any],
        config: Config | None = None,
        rng: RandomSource | None = None,
    ) -> "GameSession":
        """Rebuild a session from :meth:`snapshot` output.

        Each field is checked on its own; unusable values are replaced by the
        defaults of a fresh session rather than rejecting the whole save.
        """

        session = cls(config, rng)
        fresh = cls(config, rng=session.rng)

        ledger = session.ledger
        ledger.balance = restored_number(data, "balance", fresh.ledger.balance)
        ledger.shares = int(restored_number(data, "shares", 0, minimum=0, integer=True))
        ledger.avg_cost = restored_number(data, "avg_cost", 0.0, minimum=0)
        if ledger.shares > 0 and ledger.avg_cost <= 0:
            ledger.shares = 0
            ledger.avg_cost = 0.0
            logger.warning("Restored position had no cost basis; closing it")

        progression = session.progression
        progression.level = int(restored_number(data, "level", 1, minimum=1, integer=True))
        progression.xp = restored_number(data, "xp", 0.0, minimum=0)
        progression.next_level_xp = restored_number(
            data, "next_level_xp", fresh.progression.next_level_xp, minimum=0, exclusive=True
        )
        settled = progression.add_xp(0)
        if settled:
            logger.warning("Restored xp already crossed the level threshold; now level %d", progression.level)
        session._auto_trading = restored_flag(data, "auto_strategy_active", False)
        session.strategy.last_action_tick = int(restored_number(data, "last_action_tick", 0, minimum=0, integer=True))

        session.history = HistoryBuffer(
            session.config.market.history_size, restored_prices(data, "price_history", PRICE_FLOOR)
        )

        market = restored_section(data, "market")
        resume_price = session.history.last() or fresh.market.current_price
        state = session.market
        state.current_price = restored_number(market, "current_price", resume_price, minimum=PRICE_FLOOR)
        state.regime = restored_regime(market, "regime", RegimeKind.RANGE)
        state.regime_timer = int(restored_number(market, "regime_timer", 0, minimum=0, integer=True))
        state.regime_duration = int(
            restored_number(market, "regime_duration", fresh.market.regime_duration, minimum=0, integer=True)
        )
        state.base_value = restored_number(market, "base_value", state.current_price, minimum=0, exclusive=True)
        state.volatility = restored_number(market, "volatility", fresh.market.volatility, minimum=0)
        state.tick_count = int(restored_number(market, "tick_count", 0, minimum=0, integer=True))

        days = restored_section(data, "days")
        if session.days is not None and days:
            cycle = session.days
            cycle.current_day = int(restored_number(days, "current_day", 1, minimum=1, integer=True))
            cycle.negative_days_streak = int(restored_number(days, "negative_days_streak", 0, minimum=0, integer=True))
            cycle.game_over = restored_flag(days, "game_over", False)
            cycle.can_trade = restored_flag(days, "can_trade", False)
            cycle.action_taken_today = restored_flag(days, "action_taken_today", False)
        return session


__all__ = ["GameSession", "SessionResults"]
