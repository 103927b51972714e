"""Injectable time sources for expiry decisions.

Every component that compares against "now" (assignment expiry, cache TTL,
decision timestamps) reads the time from a :class:`Clock` instead of calling
``datetime.now`` directly, so tests can pin and advance time explicitly.

All clocks return timezone-aware UTC datetimes.  Naive datetimes supplied by
callers are interpreted as UTC (see :func:`ensure_utc`).

Example
-------
>>> clock = ManualClock(datetime(2026, 1, 1, tzinfo=timezone.utc))
>>> clock.advance(seconds=30).isoformat()
'2026-01-01T00:00:30+00:00'
"""
from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    """Anything that can report the current UTC time."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


def ensure_utc(moment: datetime) -> datetime:
    """Return ``moment`` as an aware UTC datetime.

    Naive datetimes are assumed to already be in UTC.
    """
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class SystemClock:
    """Wall-clock time source used in production."""

    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)

    def __repr__(self) -> str:
        return "SystemClock()"


class ManualClock:
    """A clock that only moves when told to.

    Parameters
    ----------
    start:
        Initial time.  Defaults to the current wall-clock time.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = ensure_utc(start) if start is not None else datetime.now(tz=timezone.utc)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, moment: datetime) -> None:
        """Jump to ``moment`` (may move backwards)."""
        with self._lock:
            self._now = ensure_utc(moment)

    def advance(self, seconds: float = 0.0, **delta: float) -> datetime:
        """Move the clock forward and return the new time.

        Extra keyword arguments are forwarded to :class:`datetime.timedelta`
        (``minutes=5``, ``days=1`` ...).
        """
        step = timedelta(seconds=seconds, **delta)
        with self._lock:
            self._now = self._now + step
            return self._now

    def __repr__(self) -> str:
        return f"ManualClock({self._now.isoformat()})"
