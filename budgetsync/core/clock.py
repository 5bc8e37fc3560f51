"""BudgetSync — ISO-8601 timestamp helpers."""

from datetime import datetime, timedelta, timezone
from typing import Optional


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string; naive values are taken as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return to_iso(datetime.now(timezone.utc))


def next_timestamp(*floors: Optional[str]) -> str:
    """Return "now", nudged forward so it is strictly later than every floor."""
    now = datetime.now(timezone.utc)
    for floor in floors:
        if not floor:
            continue
        floor_dt = parse_iso(floor)
        if now <= floor_dt:
            now = floor_dt + timedelta(microseconds=1)
    return to_iso(now)


def not_before(floor: str) -> str:
    """Return "now", or ``floor`` when the local clock is behind it."""
    now = datetime.now(timezone.utc)
    floor_dt = parse_iso(floor)
    return to_iso(floor_dt if now < floor_dt else now)
