"""Experience and level tracking."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List

from signalcraft.config import ProgressionParams

AUTO_STRATEGY = "auto_strategy"
REGIME_HINT = "regime_hint"


@dataclass(frozen=True)
class ProgressionSnapshot:
    level: int
    xp: float
    next_level_xp: float

    @property
    def progress(self) -> float:
        """Fraction of the way to the next level."""

        if self.next_level_xp <= 0:
            return 0.0
        return min(self.xp / self.next_level_xp, 1.0)


@dataclass
class Progression:
    """Convert realized trade outcomes into experience and levels."""

    params: ProgressionParams = field(default_factory=ProgressionParams)
    level: int = 1
    xp: float = 0.0
    next_level_xp: float = field(default=-1.0)

    def __post_init__(self) -> None:
        if self.next_level_xp <= 0:
            self.next_level_xp = float(self.params.first_level_xp)

    def xp_for_profit(self, profit: float) -> int:
        """Winning trades earn a share of the profit with a floor; losses a flat award."""

        if profit > 0:
            return max(self.params.min_win_xp, math.floor(profit * self.params.win_xp_rate))
        return self.params.loss_xp

    def add_xp(self, amount: float) -> int:
        """Add ``amount`` and return the number of levels gained.

        Each level-up discards the remainder and grows the threshold, so one large
        award can cross several levels.
        """

        self.xp += amount
        gained = 0
        while self.xp >= self.next_level_xp:
            self.level += 1
            self.xp = 0.0
            self.next_level_xp *= self.params.level_growth
            gained += 1
        return gained

    def record_trade(self, profit: float) -> tuple[int, int]:
        xp = self.xp_for_profit(profit)
        return xp, self.add_xp(xp)

    def unlocked_features(self) -> List[str]:
        unlocked: List[str] = []
        if self.level >= self.params.auto_strategy_unlock_level:
            unlocked.append(AUTO_STRATEGY)
        if self.level >= self.params.regime_hint_unlock_level:
            unlocked.append(REGIME_HINT)
        return unlocked

    def snapshot(self) -> ProgressionSnapshot:
        return ProgressionSnapshot(level=self.level, xp=self.xp, next_level_xp=self.next_level_xp)

    def reset(self) -> None:
        self.level = 1
        self.xp = 0.0
        self.next_level_xp = float(self.params.first_level_xp)


__all__ = ["AUTO_STRATEGY", "REGIME_HINT", "Progression", "ProgressionSnapshot"]
