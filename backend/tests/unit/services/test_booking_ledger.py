from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from servicebay.core.exceptions import (
    AlreadyTerminalException,
    BookingConflictException,
    DisabledException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from servicebay.models import Booking, BookingStatus
from servicebay.services.booking_ledger import BookingLedger, normalize_rating
from servicebay.services.slot_availability import SlotAvailabilityCalculator
from tests.factories import make_booking, make_client

TEN = datetime(2030, 5, 14, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def ledger(db, test_settings) -> BookingLedger:
    return BookingLedger(db, test_settings)


class TestCreate:
    def test_creates_pending_booking_with_snapshot(self, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, "post_1", TEN, "  black sedan ", customer.id)

        assert booking.status == BookingStatus.PENDING.value
        assert booking.starts_at == TEN
        assert booking.ends_at == TEN + timedelta(minutes=30)
        assert booking.service_name == "Body wash"
        assert Decimal(booking.price) == Decimal("800")
        assert booking.duration_minutes == 30
        assert booking.notes == "black sedan"
        assert booking.in_progress_started_at is None

    def test_iso_string_and_naive_start(self, ledger, catalog, customer) -> None:
        from_string = ledger.create(catalog["service"].id, "post_1", "2030-05-14T10:00:00Z", None, customer.id)
        naive = ledger.create(
            catalog["service"].id, "post_1", datetime(2030, 5, 14, 11, 0), None, customer.id
        )

        assert from_string.starts_at == TEN
        # Naive values are wall-clock time in the business timezone (UTC here)
        assert naive.starts_at == TEN + timedelta(hours=1)

    def test_default_post_when_omitted(self, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, None, TEN, None, customer.id)

        assert booking.post_id == "post_1"

    def test_overlap_is_conflict(self, ledger, catalog, customer) -> None:
        ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        with pytest.raises(BookingConflictException) as exc_info:
            ledger.create(catalog["service"].id, "post_1", TEN + timedelta(minutes=15), None, customer.id)

        assert exc_info.value.status_code == 409
        assert exc_info.value.details["post_id"] == "post_1"
        assert len(exc_info.value.details["conflicts"]) == 1

    def test_edge_touching_booking_succeeds(self, ledger, catalog, customer) -> None:
        ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        after = ledger.create(catalog["service"].id, "post_1", TEN + timedelta(minutes=30), None, customer.id)
        before = ledger.create(catalog["service"].id, "post_1", TEN - timedelta(minutes=30), None, customer.id)

        assert after.starts_at == TEN + timedelta(minutes=30)
        assert before.ends_at == TEN

    def test_same_slot_on_other_post_succeeds(self, ledger, catalog, customer) -> None:
        ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        other = ledger.create(catalog["service"].id, "post_2", TEN, None, customer.id)

        assert other.post_id == "post_2"

    def test_cancelled_slot_can_be_rebooked(self, ledger, catalog, customer) -> None:
        first = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)
        ledger.cancel(first.id, customer.id)

        again = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        assert again.id != first.id

    def test_post_disabled_after_availability_query(self, db, ledger, catalog, customer, test_settings) -> None:
        slots = SlotAvailabilityCalculator(db, test_settings).availability(
            catalog["service"].id, TEN.date(), "post_1"
        )
        assert any(slot.start == TEN and slot.is_available for slot in slots)

        catalog["post"].is_enabled = False
        db.commit()

        with pytest.raises(DisabledException):
            ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)
        assert db.query(Booking).count() == 0

    def test_service_deactivated_after_availability_query(self, db, ledger, catalog, customer, test_settings) -> None:
        SlotAvailabilityCalculator(db, test_settings).availability(catalog["service"].id, TEN.date(), "post_1")

        catalog["service"].is_active = False
        db.commit()

        with pytest.raises(DisabledException):
            ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

    def test_unknown_post_is_disabled(self, ledger, catalog, customer) -> None:
        with pytest.raises(DisabledException):
            ledger.create(catalog["service"].id, "post_9", TEN, None, customer.id)

    def test_unknown_service_is_not_found(self, ledger, catalog, customer) -> None:
        with pytest.raises(NotFoundException):
            ledger.create("nope", "post_1", TEN, None, customer.id)

    @pytest.mark.parametrize("start", [None, "", "tomorrow at ten"])
    def test_bad_start_is_validation(self, ledger, catalog, customer, start) -> None:
        with pytest.raises(ValidationException):
            ledger.create(catalog["service"].id, "post_1", start, None, customer.id)

    def test_missing_service_id_is_validation(self, ledger, catalog, customer) -> None:
        with pytest.raises(ValidationException):
            ledger.create(None, "post_1", TEN, None, customer.id)


class TestSnapshot:
    def test_service_edits_do_not_touch_existing_bookings(self, db, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        service = catalog["service"]
        service.duration_minutes = 120
        service.price = Decimal("999")
        service.name = "Premium wash"
        db.commit()
        db.expire_all()

        stored = db.get(Booking, booking.id)
        assert stored.duration_minutes == 30
        assert stored.ends_at == TEN + timedelta(minutes=30)
        assert Decimal(stored.price) == Decimal("800")
        assert stored.service_name == "Body wash"


class TestCancel:
    def test_owner_cancels(self, db, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        cancelled = ledger.cancel(booking.id, customer.id)

        assert cancelled.status == BookingStatus.CANCELLED.value
        assert cancelled.cancelled_at is not None

    def test_non_owner_is_forbidden(self, db, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)
        stranger = make_client(db)
        db.commit()

        with pytest.raises(ForbiddenException):
            ledger.cancel(booking.id, stranger.id)
        db.expire_all()
        assert db.get(Booking, booking.id).status == BookingStatus.PENDING.value

    def test_unknown_booking_is_not_found(self, ledger, customer) -> None:
        with pytest.raises(NotFoundException):
            ledger.cancel("missing", customer.id)

    @pytest.mark.parametrize("status", [BookingStatus.COMPLETED, BookingStatus.CANCELLED])
    def test_terminal_booking_is_unmodified(self, db, ledger, catalog, customer, status) -> None:
        booking = make_booking(
            db, customer, catalog["service"], catalog["post"], TEN, status=status.value
        )
        db.commit()

        with pytest.raises(AlreadyTerminalException):
            ledger.cancel(booking.id, customer.id)

        db.expire_all()
        stored = db.get(Booking, booking.id)
        assert stored.status == status.value
        assert stored.cancelled_at is None


class TestRate:
    def test_rating_without_status_gate(self, db, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        rated = ledger.rate(booking.id, customer.id, 5, "  great  ")

        assert rated.status == BookingStatus.PENDING.value
        assert rated.rating == 5
        assert rated.rating_comment == "great"

    def test_cancelled_booking_can_be_rated(self, db, ledger, catalog, customer) -> None:
        booking = make_booking(
            db, customer, catalog["service"], catalog["post"], TEN, status=BookingStatus.CANCELLED.value
        )
        db.commit()

        assert ledger.rate(booking.id, customer.id, 2).rating == 2

    def test_blank_comment_stored_as_null(self, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)

        assert ledger.rate(booking.id, customer.id, 4, "   ").rating_comment is None

    def test_non_owner_is_forbidden(self, db, ledger, catalog, customer) -> None:
        booking = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)
        stranger = make_client(db)
        db.commit()

        with pytest.raises(ForbiddenException):
            ledger.rate(booking.id, stranger.id, 5)

    @pytest.mark.parametrize("value", [0, 6, -1, "5", True, None, 5.5])
    def test_out_of_range_is_validation(self, value) -> None:
        with pytest.raises(ValidationException):
            normalize_rating(value)

    @pytest.mark.parametrize("value,expected", [(1, 1), (4.5, 5), (4.4, 4), (5, 5)])
    def test_fractional_ratings_round_half_up(self, value, expected) -> None:
        assert normalize_rating(value) == expected


class TestListing:
    def test_client_listing_newest_first(self, ledger, catalog, customer) -> None:
        early = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)
        late = ledger.create(catalog["service"].id, "post_1", TEN + timedelta(days=1), None, customer.id)

        assert [b.id for b in ledger.list_for_client(customer.id)] == [late.id, early.id]

    def test_admin_listing_filters(self, db, ledger, catalog, customer) -> None:
        today = ledger.create(catalog["service"].id, "post_1", TEN, None, customer.id)
        tomorrow = ledger.create(catalog["service"].id, "post_1", TEN + timedelta(days=1), None, customer.id)
        ledger.cancel(tomorrow.id, customer.id)

        assert [b.id for b in ledger.list_bookings(day="2030-05-14")] == [today.id]
        assert [b.id for b in ledger.list_bookings(status="cancelled")] == [tomorrow.id]
        assert len(ledger.list_bookings(client_id=customer.id)) == 2

    def test_admin_listing_rejects_unknown_status(self, ledger) -> None:
        with pytest.raises(ValidationException):
            ledger.list_bookings(status="lost")
