"""Configuration models and loaders for signalcraft."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, model_validator


class MetaParams(BaseModel):
    name: str = "base"
    description: str | None = None


class MarketParams(BaseModel):
    """Price process and history settings."""

    init_price: float = Field(100.0, ge=1.0, description="Opening price of the synthetic asset")
    history_size: int = Field(100, ge=1, description="Capacity of the rolling price history")
    tick_rate_ms: int = Field(100, gt=0, description="Wall-clock period of one market tick")
    warm_up: bool = Field(True, description="Pre-fill the history buffer before the session starts")


class StrategyParams(BaseModel):
    """Moving-average / mean-reversion auto-trader settings."""

    interval_ticks: int = Field(10, ge=1, description="Strategy runs when tick_count is a multiple of this")
    min_history: int = Field(20, ge=1)
    slow_window: int = Field(50, ge=2)
    fast_window: int = Field(10, ge=1)
    cooldown_ticks: int = Field(20, ge=0)
    take_profit: float = Field(0.05, gt=0, description="Unrealized return that triggers a sell")
    stop_loss: float = Field(0.02, gt=0, description="Unrealized loss magnitude that triggers a sell")
    range_entry_discount: float = Field(0.99, gt=0, le=1, description="Buy a range when price < anchor * discount")
    require_full_window: bool = Field(True, description="Stay idle until the slow window is fully populated")

    @model_validator(mode="after")
    def validate_windows(self) -> "StrategyParams":
        if self.fast_window >= self.slow_window:
            raise ValueError("fast_window must be shorter than slow_window")
        return self


class AccountParams(BaseModel):
    """Wallet settings."""

    starting_balance: float = Field(100.0, ge=0)
    commission_rate: float = Field(0.0, ge=0, lt=0.1, description="Fee charged on trade notional")
    round_balance_to_cents: bool = Field(True)


class ProgressionParams(BaseModel):
    """Experience and unlock settings."""

    first_level_xp: float = Field(1000.0, gt=0)
    level_growth: float = Field(1.5, gt=1.0)
    win_xp_rate: float = Field(0.1, ge=0)
    min_win_xp: int = Field(10, ge=0)
    loss_xp: int = Field(5, ge=0)
    auto_strategy_unlock_level: int = Field(2, ge=1)
    regime_hint_unlock_level: int = Field(3, ge=1)


class SurvivalParams(BaseModel):
    """Day-based cost-of-living mode."""

    enabled: bool = False
    daily_cost: float = Field(30.0, ge=0)
    work_income: float = Field(120.0, ge=0)
    max_negative_days: int = Field(3, ge=1)


class SimulationParams(BaseModel):
    """Headless run settings."""

    seed: int = Field(42, ge=0)
    ticks: int = Field(2000, ge=1)
    auto_trading: bool = Field(True)
    ticks_per_day: int = Field(0, ge=0, description="Headless runs end a survival day after this many ticks; 0 never")


class Config(BaseModel):
    """Top-level configuration model."""

    meta: MetaParams = Field(default_factory=MetaParams)
    market: MarketParams = Field(default_factory=MarketParams)
    strategy: StrategyParams = Field(default_factory=StrategyParams)
    account: AccountParams = Field(default_factory=AccountParams)
    progression: ProgressionParams = Field(default_factory=ProgressionParams)
    survival: SurvivalParams = Field(default_factory=SurvivalParams)
    simulation: SimulationParams = Field(default_factory=SimulationParams)


def _deep_update(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in overrides.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_update(merged[key], value)
        else:
            merged[key] = value
    return merged


def default_config_dict() -> Dict[str, Any]:
    """Return the default configuration as a dictionary."""

    return Config().model_dump()


def load_config(path: str | Path | None = None, overrides: Optional[Dict[str, Any]] = None) -> Config:
    """Load configuration from YAML and merge with defaults."""

    base_dict = default_config_dict()
    if path is not None:
        with Path(path).open("r", encoding="utf-8") as handle:
            user_data = yaml.safe_load(handle) or {}
        if not isinstance(user_data, dict):
            raise ValueError(f"Config YAML {path} must map to an object")
        base_dict = _deep_update(base_dict, user_data)
    if overrides:
        base_dict = _deep_update(base_dict, overrides)
    return Config.model_validate(base_dict)


__all__ = [
    "Config",
    "MetaParams",
    "MarketParams",
    "StrategyParams",
    "AccountParams",
    "ProgressionParams",
    "SurvivalParams",
    "SimulationParams",
    "load_config",
]
