"""Per-packet minimum-interval throttling."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from datetime import datetime, timedelta
from typing import Union

Interval = Union[timedelta, int, float]


def _as_interval(value: Interval) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return timedelta(seconds=value)


class PacketRateLimiter:
    """Drops packets of a given (family, action) that arrive too soon after the last one.

    ``rules`` maps ``(family, action)`` pairs to the minimum interval between
    accepted packets, either as a :class:`timedelta` or as seconds. Pairs that
    have no rule, or whose interval is not positive, are never throttled.
    """

    def __init__(self, rules: Mapping[tuple[Hashable, Hashable], Interval] | None = None) -> None:
        self._rules: dict[tuple[Hashable, Hashable], timedelta] = {
            key: _as_interval(value) for key, value in (rules or {}).items()
        }
        self._last_seen: dict[tuple[Hashable, Hashable], datetime] = {}

    def allow(self, now: datetime, family: Hashable, action: Hashable) -> bool:
        """Return True if the packet may be handled at ``now``, recording it if so."""
        key = (family, action)
        limit = self._rules.get(key)
        if limit is None or limit <= timedelta(0):
            return True

        last_seen = self._last_seen.get(key)
        if last_seen is not None and now - last_seen < limit:
            return False

        self._last_seen[key] = now
        return True