"""
Filter & aggregation helpers over record snapshots.

Every function here is pure: it reads the snapshot it is given, returns a
new list or a number, and performs no I/O.
"""

from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

from prison_records.errors import ValidationError
from prison_records.models.base import resolve_now
from prison_records.models.security import AlertStatus, SecurityAlert, Severity

T = TypeVar("T")

HEALTH_CRITICAL = 0.3
HEALTH_DEGRADED = 0.5
HEALTH_NOMINAL = 0.95
DEGRADED_ALERT_THRESHOLD = 5


def _text(value) -> str:
    """Comparable text for enums and plain values alike."""
    if value is None:
        return ""
    return str(getattr(value, "value", value))


def filter_by_status(records: Iterable[T], status: str) -> List[T]:
    """Records whose status matches `status`, ignoring case, in input order."""
    wanted = _text(status).lower()
    return [r for r in records if _text(getattr(r, "status", None)).lower() == wanted]


def filter_by_field(records: Iterable[T], field: str, value: str) -> List[T]:
    """Records whose `field` equals `value`, ignoring case."""
    wanted = _text(value).lower()
    return [r for r in records if _text(getattr(r, field, None)).lower() == wanted]


def search(records: Iterable[T], text: str, fields: Sequence[str]) -> List[T]:
    """Records where any of `fields` contains `text`, ignoring case. Blank text matches all."""
    needle = text.strip().lower()
    if not needle:
        return list(records)
    return [
        r for r in records
        if any(needle in _text(getattr(r, f, None)).lower() for f in fields)
    ]


def _as_datetime(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return None


def filter_by_time_window(
    records: Iterable[T],
    timestamp_field: str,
    hours_back: int,
    now: Optional[datetime] = None,
) -> List[T]:
    """
    Records whose `timestamp_field` falls at or after `now - hours_back`.

    `hours_back == 0` means no time filtering: every record is returned.
    Records without a timestamp are dropped otherwise.
    """
    if hours_back < 0:
        raise ValidationError(f"hours_back must be >= 0, got {hours_back}")
    if hours_back == 0:
        return list(records)

    cutoff = resolve_now(now) - timedelta(hours=hours_back)
    selected = []
    for record in records:
        stamp = _as_datetime(getattr(record, timestamp_field))
        if stamp is not None and stamp >= cutoff:
            selected.append(record)
    return selected


def count_where(records: Iterable[T], predicate: Callable[[T], bool]) -> int:
    return sum(1 for r in records if predicate(r))


def compute_health_score(alerts: Iterable[SecurityAlert]) -> float:
    """
    System health in [0, 1] from the alerts that are still Active.

    Acknowledged and Resolved alerts never affect the score.
    """
    active = [a for a in alerts if a.status == AlertStatus.ACTIVE]
    if any(a.severity == Severity.CRITICAL for a in active):
        return HEALTH_CRITICAL
    if len(active) > DEGRADED_ALERT_THRESHOLD:
        return HEALTH_DEGRADED
    # A handful of active alerts still reads as nominal
    return HEALTH_NOMINAL
