"""Validation helpers."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional

from signalcraft.config import Config
from signalcraft.market.regime import RegimeKind
from signalcraft.utils.logging import get_logger

logger = get_logger(__name__)


class CorruptPersistedState(ValueError):
    """Raised when a saved session cannot be read as a mapping at all."""


def validate_config(config: Config) -> None:
    """Cross-field checks the individual models cannot express."""

    strategy = config.strategy
    if strategy.min_history > config.market.history_size:
        raise ValueError("strategy.min_history cannot exceed market.history_size")
    if strategy.require_full_window and strategy.slow_window > config.market.history_size:
        raise ValueError("strategy.slow_window cannot exceed market.history_size when a full window is required")
    if config.survival.enabled and config.simulation.ticks_per_day == 0:
        logger.debug("Survival days only end when the host closes them")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def restored_number(
    data: Mapping[str, Any],
    key: str,
    default: float,
    *,
    minimum: Optional[float] = None,
    exclusive: bool = False,
    integer: bool = False,
) -> float:
    """Return ``data[key]`` if it is a finite number within bounds, else ``default``.

    Missing keys fall back silently; present but unusable values are logged.
    """

    if key not in data or data[key] is None:
        return default
    value = data[key]
    ok = _is_number(value)
    if ok and minimum is not None:
        ok = value > minimum if exclusive else value >= minimum
    if not ok:
        logger.warning("Discarding restored %s=%r; using %r", key, value, default)
        return default
    if integer:
        return int(math.floor(value))
    return float(value)


def restored_flag(data: Mapping[str, Any], key: str, default: bool) -> bool:
    if key not in data or data[key] is None:
        return default
    value = data[key]
    if not isinstance(value, bool):
        logger.warning("Discarding restored %s=%r; using %r", key, value, default)
        return default
    return value


def restored_regime(data: Mapping[str, Any], key: str, default: RegimeKind) -> RegimeKind:
    if key not in data or data[key] is None:
        return default
    regime = RegimeKind.parse(data[key], default=default)
    if regime is default and str(data[key]).upper() != default.value:
        logger.warning("Discarding restored %s=%r; using %s", key, data[key], default.value)
    return regime


def restored_prices(data: Mapping[str, Any], key: str, floor: float) -> List[float]:
    """Keep only finite history entries at or above ``floor``."""

    raw = data.get(key)
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        logger.warning("Discarding restored %s: expected a list, got %s", key, type(raw).__name__)
        return []
    prices = [float(p) for p in raw if _is_number(p) and p >= floor]
    dropped = len(raw) - len(prices)
    if dropped:
        logger.warning("Dropped %d invalid samples from restored %s", dropped, key)
    return prices


def restored_section(data: Mapping[str, Any], key: str) -> Dict[str, Any]:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        logger.warning("Discarding restored %s: expected a mapping", key)
        return {}
    return dict(section)


__all__ = [
    "CorruptPersistedState",
    "validate_config",
    "restored_number",
    "restored_flag",
    "restored_regime",
    "restored_prices",
    "restored_section",
]
