"""Wallet and single long position accounting."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from signalcraft.market.regime import RegimeKind


class TradeRejection(str, Enum):
    """Reasons a trade request is turned down without side effects."""

    INSUFFICIENT_FUNDS = "insufficient_funds"
    NO_OPEN_POSITION = "no_open_position"
    TRADING_NOT_PERMITTED = "trading_not_permitted"
    INVALID_SIZING = "invalid_sizing"


@dataclass(frozen=True)
class Position:
    shares: int
    avg_cost: float

    @property
    def is_open(self) -> bool:
        return self.shares > 0

    def unrealized_return(self, price: float) -> float:
        if self.shares <= 0 or self.avg_cost <= 0:
            return 0.0
        return (price - self.avg_cost) / self.avg_cost


@dataclass(frozen=True)
class RealizedTrade:
    """A fully closed position.

    The ledger fills the money fields; the session stamps tick, regime and the
    progression outcome before handing it back to the caller.
    """

    shares: int
    entry_price: float
    exit_price: float
    revenue: float
    profit: float
    fee: float = 0.0
    tick: int = 0
    regime: Optional[RegimeKind] = None
    xp_gained: int = 0
    levels_gained: int = 0
    title: str = ""
    message: str = ""

    @property
    def is_win(self) -> bool:
        return self.profit > 0


@dataclass(frozen=True)
class BuyResult:
    position: Optional[Position] = None
    shares_bought: int = 0
    cost: float = 0.0
    fee: float = 0.0
    rejection: Optional[TradeRejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


@dataclass(frozen=True)
class SellResult:
    trade: Optional[RealizedTrade] = None
    rejection: Optional[TradeRejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


@dataclass
class Ledger:
    """Track balance, open shares and volume-weighted cost basis."""

    balance: float = 100.0
    shares: int = 0
    avg_cost: float = 0.0
    commission_rate: float = 0.0
    round_to_cents: bool = True

    @property
    def position(self) -> Position:
        return Position(shares=self.shares, avg_cost=self.avg_cost)

    def buy(self, price: float, fraction: float | None = None) -> BuyResult:
        """Buy as many whole shares as ``fraction`` of the balance affords.

        Without a fraction the whole balance is deployed. Adds to an existing
        position and re-weights the average cost.
        """

        if price <= 0:
            raise ValueError("Price must be positive")
        fraction = 1.0 if fraction is None else float(fraction)
        if not 0.0 < fraction <= 1.0:
            return BuyResult(rejection=TradeRejection.INVALID_SIZING)
        budget = self.balance * fraction
        unit_cost = price * (1.0 + self.commission_rate)
        amount = math.floor(budget / unit_cost) if budget > 0 else 0
        if amount <= 0:
            return BuyResult(rejection=TradeRejection.INSUFFICIENT_FUNDS)

        cost = amount * price
        fee = cost * self.commission_rate
        self.balance -= cost + fee
        total_basis = self.shares * self.avg_cost + cost + fee
        self.shares += amount
        self.avg_cost = total_basis / self.shares
        return BuyResult(position=self.position, shares_bought=amount, cost=cost, fee=fee)

    def sell(self, price: float) -> SellResult:
        """Liquidate the whole position at ``price``."""

        if self.shares <= 0:
            return SellResult(rejection=TradeRejection.NO_OPEN_POSITION)
        shares = self.shares
        entry = self.avg_cost
        revenue = shares * price
        fee = revenue * self.commission_rate
        profit = revenue - fee - shares * entry
        self.balance += revenue - fee
        if self.round_to_cents:
            self.balance = round(self.balance, 2)
        self.shares = 0
        self.avg_cost = 0.0
        trade = RealizedTrade(
            shares=shares,
            entry_price=entry,
            exit_price=price,
            revenue=revenue,
            profit=profit,
            fee=fee,
        )
        return SellResult(trade=trade)

    def equity(self, price: float) -> float:
        return self.balance + self.shares * price


__all__ = [
    "TradeRejection",
    "Position",
    "RealizedTrade",
    "BuyResult",
    "SellResult",
    "Ledger",
]
