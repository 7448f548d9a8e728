# src/pm_tracker/core/dates.py

"""Date helpers for consistent ISO handling and "today" logic (all UTC)."""

from __future__ import annotations

from datetime import UTC, datetime


def now_iso() -> str:
    return to_iso(datetime.now(UTC))


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(raw: str | None) -> datetime | None:
    """
    Parse an ISO date or instant. Date-only values and naive instants are
    treated as UTC. Returns None for anything unparsable.
    """
    if not raw or not isinstance(raw, str):
        return None
    s = raw.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def is_valid_iso(raw: str | None) -> bool:
    return parse_iso(raw) is not None


def to_day_key(raw: str | None) -> str:
    dt = parse_iso(raw)
    return dt.strftime("%Y-%m-%d") if dt else ""


def day_start(now: datetime | None = None) -> datetime:
    now = now or datetime.now(UTC)
    now = now.astimezone(UTC)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def is_same_day(a: str | None, b: str | None) -> bool:
    ka = to_day_key(a)
    return bool(ka) and ka == to_day_key(b)


def days_until(deadline: str, from_iso: str | None = None) -> int | None:
    """Whole calendar days from `from_iso` (default now) to `deadline`; negative means overdue."""
    to = parse_iso(deadline)
    start = parse_iso(from_iso) if from_iso else datetime.now(UTC)
    if to is None or start is None:
        return None
    return (to.date() - start.date()).days


def is_overdue(deadline: str, from_iso: str | None = None) -> bool:
    d = days_until(deadline, from_iso)
    return d is not None and d < 0
