from datetime import date, datetime, time, timedelta, timezone

import pytest

from servicebay.core.config import Settings
from servicebay.core.exceptions import DisabledException, NotFoundException, ValidationException
from servicebay.models import BookingStatus
from servicebay.services.slot_availability import (
    SlotAvailabilityCalculator,
    candidate_starts,
)
from tests.factories import make_booking, make_post

DAY = date(2030, 5, 14)


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2030, 5, 14, hour, minute, tzinfo=timezone.utc)


def by_start(slots):
    return {slot.start: slot for slot in slots}


class TestCandidateStarts:
    def test_steps_until_closing(self) -> None:
        starts = candidate_starts(at(9), at(18), 30)

        assert starts[0] == at(9)
        assert starts[-1] == at(17, 30)
        assert len(starts) == 18

    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValidationException):
            candidate_starts(at(9), at(18), 0)


class TestAvailability:
    def test_all_free_on_empty_day(self, db, catalog, test_settings: Settings) -> None:
        calc = SlotAvailabilityCalculator(db, test_settings)

        slots = calc.availability(catalog["service"].id, DAY, "post_1")

        assert len(slots) == 18
        assert all(slot.is_available for slot in slots)
        assert slots == sorted(slots, key=lambda s: s.start)

    def test_edge_touching_is_not_overlap(self, db, catalog, customer, test_settings) -> None:
        fine_post = make_post(db, id="post_fine", interval_minutes=1)
        make_booking(db, customer, catalog["service"], fine_post, at(10, 0))
        db.commit()

        slots = by_start(
            SlotAvailabilityCalculator(db, test_settings).availability(
                catalog["service"].id, DAY, "post_fine"
            )
        )

        assert slots[at(10, 30)].is_available is True
        assert slots[at(10, 29)].is_available is False
        assert slots[at(9, 30)].is_available is True
        assert slots[at(9, 31)].is_available is False

    def test_cancelled_bookings_free_the_interval(self, db, catalog, customer, test_settings) -> None:
        make_booking(
            db,
            customer,
            catalog["service"],
            catalog["post"],
            at(11),
            status=BookingStatus.CANCELLED.value,
        )
        db.commit()

        slots = by_start(
            SlotAvailabilityCalculator(db, test_settings).availability(
                catalog["service"].id, DAY.isoformat(), "post_1"
            )
        )

        assert slots[at(11)].is_available is True

    def test_other_posts_do_not_block(self, db, catalog, customer, test_settings) -> None:
        make_booking(db, customer, catalog["service"], catalog["other_post"], at(12))
        db.commit()

        slots = by_start(
            SlotAvailabilityCalculator(db, test_settings).availability(
                catalog["service"].id, DAY, "post_1"
            )
        )

        assert slots[at(12)].is_available is True

    def test_long_service_blocks_every_overlapping_start(
        self, db, catalog, customer, test_settings
    ) -> None:
        make_booking(db, customer, catalog["service"], catalog["post"], at(13))
        db.commit()
        long_service = catalog["service"]
        long_service.duration_minutes = 90
        db.commit()

        slots = by_start(
            SlotAvailabilityCalculator(db, test_settings).availability(long_service.id, DAY, "post_1")
        )

        assert slots[at(11, 30)].is_available is True
        assert slots[at(12)].is_available is False
        assert slots[at(12, 30)].is_available is False
        assert slots[at(13, 30)].is_available is True

    def test_window_is_resolved_in_business_timezone(self, db, catalog) -> None:
        tz_settings = Settings(_env_file=None, business_timezone="Europe/Moscow", is_testing=True)

        slots = SlotAvailabilityCalculator(db, tz_settings).availability(
            catalog["service"].id, DAY, "post_1"
        )

        # 09:00 in Moscow (UTC+3) is 06:00 UTC regardless of the process timezone
        assert slots[0].start == at(6)
        assert slots[-1].start == at(14, 30)

    def test_default_post_used_when_omitted(self, db, catalog, test_settings) -> None:
        slots = SlotAvailabilityCalculator(db, test_settings).availability(catalog["service"].id, DAY)

        assert len(slots) == 18

    def test_unknown_service_is_not_found(self, db, catalog, test_settings) -> None:
        with pytest.raises(NotFoundException):
            SlotAvailabilityCalculator(db, test_settings).availability("missing", DAY, "post_1")

    def test_inactive_service_is_disabled(self, db, catalog, test_settings) -> None:
        catalog["service"].is_active = False
        db.commit()

        with pytest.raises(DisabledException):
            SlotAvailabilityCalculator(db, test_settings).availability(
                catalog["service"].id, DAY, "post_1"
            )

    @pytest.mark.parametrize("post_id", ["post_disabled", "post_unknown"])
    def test_unknown_or_disabled_post_is_disabled(self, db, catalog, test_settings, post_id) -> None:
        make_post(db, id="post_disabled", is_enabled=False)
        db.commit()

        with pytest.raises(DisabledException):
            SlotAvailabilityCalculator(db, test_settings).availability(
                catalog["service"].id, DAY, post_id
            )

    @pytest.mark.parametrize("bad_date", ["14.05.2030", "2030-13-01", "", None])
    def test_bad_date_is_validation(self, db, catalog, test_settings, bad_date) -> None:
        with pytest.raises(ValidationException):
            SlotAvailabilityCalculator(db, test_settings).availability(
                catalog["service"].id, bad_date, "post_1"
            )

    def test_short_window_with_custom_hours(self, db, catalog, test_settings) -> None:
        make_post(db, id="post_short", start_time=time(10, 0), end_time=time(11, 0), interval_minutes=20)
        db.commit()

        slots = SlotAvailabilityCalculator(db, test_settings).availability(
            catalog["service"].id, DAY, "post_short"
        )

        assert [slot.start for slot in slots] == [at(10), at(10, 20), at(10, 40)]
        assert slots[-1].end == at(10, 40) + timedelta(minutes=30)
