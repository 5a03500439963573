"""Change detection over upstream payloads.

Stock changes are detected by comparing canonical serializations; any
difference counts. Weather adds a second check on the active event id so
only a newly started (or replaced) event produces an alert.
"""
import json
from enum import Enum
from typing import Any

from garden_alerts.schemas import WeatherEvent, WeatherSnapshot


class WeatherTransition(str, Enum):
    """Outcome of comparing the active weather event of two snapshots."""

    STARTED = "started"  # new active event, or a different one than before
    ENDED = "ended"
    UNCHANGED = "unchanged"  # same active event id
    NONE = "none"  # no active event before or after


def serialize_payload(payload: Any) -> str:
    """Deterministic serialization; structurally equal payloads serialize identically."""
    return json.dumps(
        payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    )


def has_changed(previous: str | None, new: str) -> bool:
    """True when there is no previous payload or the serializations differ."""
    return previous != new


def active_event(snapshot: WeatherSnapshot | None) -> WeatherEvent | None:
    """First active event in the snapshot, if any."""
    if snapshot is None:
        return None
    return next((event for event in snapshot.events if event.active), None)


def weather_transition(
    previous: WeatherSnapshot | None, new: WeatherSnapshot
) -> WeatherTransition:
    """Classify how the active event moved between two snapshots."""
    before = active_event(previous)
    after = active_event(new)
    if after is not None:
        if before is None or before.weather_id != after.weather_id:
            return WeatherTransition.STARTED
        return WeatherTransition.UNCHANGED
    if before is not None:
        return WeatherTransition.ENDED
    return WeatherTransition.NONE
