# backend/servicebay/services/progress_clock.py
"""
Progress of a booking that is being serviced.

Everything here is derived from (now, origin, total duration) and nothing
else: there is no running timer and no state between calls, so the same
inputs always give the same snapshot, including after a restart that only
kept the persisted origin. Live views re-evaluate the function on a tick.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from ..core.timezone_utils import ensure_utc, utc_now
from ..models.booking import Booking

_MICROS_PER_MINUTE = 60_000_000


class ProgressLabel(str, Enum):
    STARTING = "starting"
    IN_PROGRESS = "in progress"
    FINISHING = "finishing"
    READY = "ready"


# Upper bounds on the fraction for each label, checked in order
_LABEL_THRESHOLDS = (
    (0.3, ProgressLabel.STARTING),
    (0.7, ProgressLabel.IN_PROGRESS),
    (1.0, ProgressLabel.FINISHING),
)


@dataclass(frozen=True)
class ProgressSnapshot:
    elapsed: timedelta
    remaining_minutes: int
    fraction: float
    label: ProgressLabel

    @property
    def is_ready(self) -> bool:
        return self.label is ProgressLabel.READY


def _to_micros(delta: timedelta) -> int:
    return (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds


def label_for(fraction: float) -> ProgressLabel:
    for upper, label in _LABEL_THRESHOLDS:
        if fraction < upper:
            return label
    return ProgressLabel.READY


def compute_progress(now: datetime, start_instant: datetime, total: timedelta) -> ProgressSnapshot:
    """
    Progress at ``now`` of work that began at ``start_instant`` and lasts ``total``.

    elapsed is clamped to [0, total]; remaining minutes are rounded up.
    Integer microsecond arithmetic keeps the result exact.
    """
    total_us = _to_micros(total)
    if total_us <= 0:
        raise ValueError("total duration must be positive")

    elapsed_us = _to_micros(ensure_utc(now) - ensure_utc(start_instant))
    elapsed_us = min(max(elapsed_us, 0), total_us)
    remaining_us = total_us - elapsed_us

    fraction = elapsed_us / total_us
    return ProgressSnapshot(
        elapsed=timedelta(microseconds=elapsed_us),
        remaining_minutes=-(-remaining_us // _MICROS_PER_MINUTE),
        fraction=fraction,
        label=label_for(fraction),
    )


def resolve_progress_origin(booking: Booking) -> datetime:
    """
    The persisted in-progress stamp, or the booked start as an explicit fallback.

    Never the moment somebody looked at the booking.
    """
    origin = booking.in_progress_started_at or booking.starts_at
    return ensure_utc(origin)


def booking_progress(booking: Booking, now: Optional[datetime] = None) -> ProgressSnapshot:
    return compute_progress(
        now or utc_now(),
        resolve_progress_origin(booking),
        timedelta(minutes=int(booking.duration_minutes)),
    )


async def progress_ticks(
    origin: datetime,
    total: timedelta,
    *,
    interval_seconds: float = 1.0,
    clock: Callable[[], datetime] = utc_now,
    max_ticks: Optional[int] = None,
) -> AsyncIterator[ProgressSnapshot]:
    """
    Yield a fresh snapshot every ``interval_seconds`` until the work is ready.

    Each tick re-evaluates compute_progress; stopping iteration is the only
    cancellation needed.
    """
    ticks = 0
    while True:
        snapshot = compute_progress(clock(), origin, total)
        yield snapshot
        ticks += 1
        if snapshot.is_ready or (max_ticks is not None and ticks >= max_ticks):
            return
        await asyncio.sleep(interval_seconds)
