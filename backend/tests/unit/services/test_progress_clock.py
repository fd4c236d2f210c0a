from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from servicebay.services.progress_clock import (
    ProgressLabel,
    booking_progress,
    compute_progress,
    label_for,
    progress_ticks,
    resolve_progress_origin,
)

START = datetime(2030, 5, 14, 10, 0, tzinfo=timezone.utc)
HOUR = timedelta(minutes=60)


class TestComputeProgress:
    def test_same_inputs_give_identical_output(self) -> None:
        now = START + timedelta(minutes=17, seconds=31)
        first = compute_progress(now, START, HOUR)
        for _ in range(5):
            assert compute_progress(now, START, HOUR) == first

    def test_restart_with_only_persisted_start_reproduces_result(self) -> None:
        now = START + timedelta(minutes=42)
        before_restart = compute_progress(now, START, HOUR)

        # A fresh process only knows the persisted start, as an ISO string
        persisted = START.isoformat()
        after_restart = compute_progress(now, datetime.fromisoformat(persisted), HOUR)

        assert after_restart == before_restart

    def test_midway_values(self) -> None:
        snapshot = compute_progress(START + timedelta(minutes=30), START, HOUR)

        assert snapshot.elapsed == timedelta(minutes=30)
        assert snapshot.remaining_minutes == 30
        assert snapshot.fraction == 0.5
        assert snapshot.label is ProgressLabel.IN_PROGRESS

    def test_remaining_minutes_round_up(self) -> None:
        snapshot = compute_progress(START + timedelta(minutes=10, seconds=1), START, HOUR)

        assert snapshot.remaining_minutes == 50

    def test_before_start_clamps_to_zero(self) -> None:
        snapshot = compute_progress(START - timedelta(minutes=5), START, HOUR)

        assert snapshot.elapsed == timedelta(0)
        assert snapshot.fraction == 0.0
        assert snapshot.remaining_minutes == 60
        assert snapshot.label is ProgressLabel.STARTING

    def test_after_end_clamps_to_total(self) -> None:
        snapshot = compute_progress(START + timedelta(hours=3), START, HOUR)

        assert snapshot.elapsed == HOUR
        assert snapshot.fraction == 1.0
        assert snapshot.remaining_minutes == 0
        assert snapshot.is_ready

    def test_naive_instants_are_treated_as_utc(self) -> None:
        aware = compute_progress(START + timedelta(minutes=5), START, HOUR)
        naive = compute_progress(
            (START + timedelta(minutes=5)).replace(tzinfo=None), START.replace(tzinfo=None), HOUR
        )
        assert aware == naive

    def test_non_positive_total_rejected(self) -> None:
        with pytest.raises(ValueError):
            compute_progress(START, START, timedelta(0))


class TestLabels:
    @pytest.mark.parametrize(
        "fraction,label",
        [
            (0.0, ProgressLabel.STARTING),
            (0.299, ProgressLabel.STARTING),
            (0.3, ProgressLabel.IN_PROGRESS),
            (0.699, ProgressLabel.IN_PROGRESS),
            (0.7, ProgressLabel.FINISHING),
            (0.999, ProgressLabel.FINISHING),
            (1.0, ProgressLabel.READY),
        ],
    )
    def test_thresholds(self, fraction: float, label: ProgressLabel) -> None:
        assert label_for(fraction) is label

    def test_label_values(self) -> None:
        assert ProgressLabel.IN_PROGRESS.value == "in progress"


class TestBookingOrigin:
    def test_uses_in_progress_stamp(self) -> None:
        stamp = START + timedelta(minutes=7)
        booking = SimpleNamespace(
            in_progress_started_at=stamp, starts_at=START, duration_minutes=60
        )

        assert resolve_progress_origin(booking) == stamp
        snapshot = booking_progress(booking, now=stamp + timedelta(minutes=6))
        assert snapshot.elapsed == timedelta(minutes=6)

    def test_falls_back_to_booked_start(self) -> None:
        booking = SimpleNamespace(in_progress_started_at=None, starts_at=START, duration_minutes=60)

        assert resolve_progress_origin(booking) == START


class TestProgressTicks:
    async def test_stops_after_ready(self) -> None:
        moments = iter(
            [
                START + timedelta(minutes=10),
                START + timedelta(minutes=50),
                START + timedelta(minutes=61),
                START + timedelta(minutes=70),
            ]
        )

        labels = [
            snapshot.label
            async for snapshot in progress_ticks(
                START, HOUR, interval_seconds=0, clock=lambda: next(moments)
            )
        ]

        assert labels == [ProgressLabel.STARTING, ProgressLabel.FINISHING, ProgressLabel.READY]

    async def test_max_ticks_bounds_stream(self) -> None:
        snapshots = [
            s
            async for s in progress_ticks(
                START, HOUR, interval_seconds=0, clock=lambda: START, max_ticks=3
            )
        ]

        assert len(snapshots) == 3
        assert all(s == snapshots[0] for s in snapshots)
