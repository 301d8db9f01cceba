"""Input/output helpers for signalcraft."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import pandas as pd
import yaml

from signalcraft.config import Config
from signalcraft.utils.logging import get_logger
from signalcraft.utils.validation import CorruptPersistedState

logger = get_logger(__name__)


def ensure_directory(path: Path) -> None:
    """Create directory if it does not exist."""

    path.mkdir(parents=True, exist_ok=True)


def timestamped_dir(base: Path, prefix: str) -> Path:
    """Return a directory path suffixed with the current timestamp."""

    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    path = base / prefix / stamp
    ensure_directory(path)
    return path


def save_table(df: pd.DataFrame, out_dir: Path, name: str) -> None:
    """Persist a dataframe as CSV and Parquet."""

    ensure_directory(out_dir)
    df.to_csv(out_dir / f"{name}.csv", index=False)
    df.to_parquet(out_dir / f"{name}.parquet", index=False)


def write_config_snapshot(config: Config, out_dir: Path, filename: str = "config_snapshot.yaml") -> None:
    """Persist configuration as YAML for reproducibility."""

    ensure_directory(out_dir)
    with (out_dir / filename).open("w", encoding="utf-8") as handle:
        yaml.safe_dump(config.model_dump(mode="json"), handle, sort_keys=False)


def load_result_tables(result_dir: Path, tables: Optional[Iterable[str]] = None) -> dict[str, pd.DataFrame]:
    """Load stored result tables from ``result_dir``."""

    tables = list(tables or ["timeseries", "summary"])
    loaded: dict[str, pd.DataFrame] = {}
    for name in tables:
        csv_path = result_dir / f"{name}.csv"
        if not csv_path.exists():
            raise FileNotFoundError(f"Missing result table {csv_path}")
        loaded[name] = pd.read_csv(csv_path)
    return loaded


def parse_session_state(text: str) -> Dict[str, Any]:
    """Decode a saved session; raise :class:`CorruptPersistedState` if it is not a JSON object."""

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CorruptPersistedState(f"Saved session is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise CorruptPersistedState("Saved session must be a JSON object")
    return data


def save_session_state(state: Dict[str, Any], path: str | Path) -> Path:
    """Write a session snapshot as JSON."""

    target = Path(path)
    ensure_directory(target.parent)
    payload = dict(state)
    payload["saved_at"] = datetime.now(timezone.utc).isoformat()
    target.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return target


def load_session_state(path: str | Path) -> Dict[str, Any]:
    """Read a session snapshot.

    A missing file means a new game and yields an empty mapping; an unreadable one
    is logged and also yields an empty mapping so the caller starts from defaults.
    """

    source = Path(path)
    if not source.exists():
        return {}
    try:
        return parse_session_state(source.read_text(encoding="utf-8"))
    except CorruptPersistedState as exc:
        logger.warning("Ignoring corrupt save %s: %s", source, exc)
        return {}


__all__ = [
    "ensure_directory",
    "timestamped_dir",
    "save_table",
    "write_config_snapshot",
    "load_result_tables",
    "parse_session_state",
    "save_session_state",
    "load_session_state",
]
