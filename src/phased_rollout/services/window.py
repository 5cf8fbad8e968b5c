"""Maintenance-window gate for rollout expansion."""

from __future__ import annotations

import datetime
from collections.abc import Callable

from phased_rollout.domain.values import TimeWindow

Clock = Callable[[], datetime.datetime]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def as_utc(moment: datetime.datetime) -> datetime.datetime:
    """Attach UTC to a naive *moment*; aware values pass through."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=datetime.timezone.utc)
    return moment


def fixed_clock(moment: datetime.datetime) -> Clock:
    """Return a clock that always reports *moment* (naive means UTC)."""
    moment = as_utc(moment)

    def clock() -> datetime.datetime:
        return moment

    return clock


def check_window(
    window: TimeWindow | None,
    now: datetime.datetime,
) -> tuple[bool, str]:
    """Return ``(allowed, note)`` for *now* against *window*.

    ``None`` means no restriction.  The note names the local time that was
    checked so operators can see why a run was skipped.
    """
    if window is None:
        return True, ""
    local = window.localize(now)
    if window.contains(now):
        return True, ""
    return False, (
        f"current time {local:%a %Y-%m-%d %H:%M} {window.timezone} "
        f"is outside window {window.describe()}"
    )
