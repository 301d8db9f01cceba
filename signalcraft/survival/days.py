"""Day-based cost-of-living mode."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from signalcraft.accounting.ledger import Ledger
from signalcraft.config import SurvivalParams
from signalcraft.utils.logging import get_logger

logger = get_logger(__name__)


class DayAction(str, Enum):
    WORK = "work"
    TRADE = "trade"
    SLEEP = "sleep"


@dataclass(frozen=True)
class DayReport:
    day: int
    balance: float
    daily_cost: float
    negative_streak: int
    game_over: bool


@dataclass
class DayCycle:
    """One action per day, a daily bill, and a losing streak that ends the game."""

    params: SurvivalParams = field(default_factory=SurvivalParams)
    current_day: int = 1
    negative_days_streak: int = 0
    game_over: bool = False
    can_trade: bool = False
    action_taken_today: bool = False

    def choose(self, action: DayAction | str, ledger: Ledger) -> Optional[DayReport]:
        """Take today's action. Work and sleep close the day; trade opens the gate.

        Returns the end-of-day report when the action closes the day, ``None``
        otherwise, when today's action was already taken, or when ``action`` is unknown.
        """

        try:
            action = DayAction(action)
        except ValueError:
            logger.warning("Unknown day action %r", action)
            return None
        if self.game_over or self.action_taken_today:
            return None
        self.action_taken_today = True
        if action is DayAction.TRADE:
            self.can_trade = True
            return None
        if action is DayAction.WORK:
            ledger.balance += self.params.work_income
        return self.end_day(ledger)

    def end_day(self, ledger: Ledger) -> DayReport:
        if self.game_over:
            return self._report(ledger)
        ledger.balance -= self.params.daily_cost
        if ledger.balance < 0:
            self.negative_days_streak += 1
        else:
            self.negative_days_streak = 0

        if self.negative_days_streak >= self.params.max_negative_days:
            self.game_over = True
            self.can_trade = False
            logger.info("Game over after %d days (balance %.2f)", self.current_day, ledger.balance)
            return self._report(ledger)

        report = self._report(ledger)
        logger.info(
            "Day %d closed: balance %.2f, negative streak %d/%d",
            self.current_day,
            ledger.balance,
            self.negative_days_streak,
            self.params.max_negative_days,
        )
        self.current_day += 1
        self.action_taken_today = False
        self.can_trade = False
        return report

    def _report(self, ledger: Ledger) -> DayReport:
        return DayReport(
            day=self.current_day,
            balance=ledger.balance,
            daily_cost=self.params.daily_cost,
            negative_streak=self.negative_days_streak,
            game_over=self.game_over,
        )

    def reset(self) -> None:
        self.current_day = 1
        self.negative_days_streak = 0
        self.game_over = False
        self.can_trade = False
        self.action_taken_today = False


__all__ = ["DayAction", "DayReport", "DayCycle"]
