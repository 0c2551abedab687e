"""
Event snapshot loading.
"""

import json
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from worldmon.analysis import Event
from worldmon.services.errors import SnapshotLoadError

_events_adapter = TypeAdapter(list[Event])


def parse_events(payload: list[dict]) -> list[Event]:
    """Validate raw event dicts; rejects bad timestamps and coordinates."""
    return _events_adapter.validate_python(payload)


def load_snapshot(path: str | Path) -> list[Event]:
    """
    Load events from a JSON file.

    The file holds either a list of events or an object with an
    ``events`` list.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise SnapshotLoadError(str(path), "file not found") from e
    except json.JSONDecodeError as e:
        raise SnapshotLoadError(str(path), f"invalid JSON: {e}") from e

    if isinstance(raw, dict):
        raw = raw.get("events", [])
    if not isinstance(raw, list):
        raise SnapshotLoadError(str(path), "expected a list of events")

    try:
        events = parse_events(raw)
    except ValidationError as e:
        raise SnapshotLoadError(str(path), f"{e.error_count()} invalid fields") from e

    logger.info(f"Loaded {len(events)} events from {path}")
    return events
