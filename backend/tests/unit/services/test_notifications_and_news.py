from datetime import datetime, timezone

import pytest

from servicebay.core.exceptions import NotFoundException, ValidationException
from servicebay.models import BookingStatus, Notification, NotificationKind
from servicebay.services.news_service import NewsService
from servicebay.services.notification_service import NotificationService
from tests.factories import make_booking, make_client


@pytest.fixture
def notifications(db, test_settings) -> NotificationService:
    return NotificationService(db, test_settings)


@pytest.fixture
def news_service(db, test_settings) -> NewsService:
    return NewsService(db, test_settings)


def _news_rows(db, news_id):
    return db.query(Notification).filter(Notification.news_id == news_id).all()


class TestNewsBroadcast:
    def test_publishing_reaches_each_client_once(self, db, news_service) -> None:
        clients = [make_client(db) for _ in range(3)]
        db.commit()

        news = news_service.create_news({"title": "Winter tyres", "body": "Book your change now"})
        news_service.update_news(news.id, {"published": True})

        rows = _news_rows(db, news.id)
        assert sorted(row.client_id for row in rows) == sorted(c.id for c in clients)
        assert all(row.kind == NotificationKind.NEWS.value for row in rows)

    def test_draft_is_not_broadcast_until_published(self, db, news_service, customer) -> None:
        news = news_service.create_news({"title": "Draft", "body": "Soon", "published": False})
        assert _news_rows(db, news.id) == []

        news_service.update_news(news.id, {"published": True})
        assert len(_news_rows(db, news.id)) == 1

    def test_late_client_receives_item_on_next_publish(self, db, news_service, customer) -> None:
        news = news_service.create_news({"title": "Promo", "body": "Half price"})
        newcomer = make_client(db)
        db.commit()

        news_service.update_news(news.id, {"body": "Half price, this week only"})

        rows = _news_rows(db, news.id)
        assert sorted(row.client_id for row in rows) == sorted([customer.id, newcomer.id])

    def test_delete_removes_feed_entries(self, db, news_service, customer) -> None:
        news = news_service.create_news({"title": "Closed Monday", "body": "Holiday"})

        news_service.delete_news(news.id)

        assert _news_rows(db, news.id) == []
        assert news_service.list_news() == []

    def test_feed_for_client(self, news_service, customer) -> None:
        news_service.create_news({"title": "Open late", "body": "Until 22:00"})

        feed = news_service.feed_for_client(customer.id)

        assert [item.title for item in feed] == ["Open late"]

    @pytest.mark.parametrize("data", [{"title": "x"}, {"title": " ", "body": "y"}])
    def test_create_requires_title_and_body(self, news_service, data) -> None:
        with pytest.raises(ValidationException):
            news_service.create_news(data)

    def test_unknown_news(self, news_service) -> None:
        with pytest.raises(NotFoundException):
            news_service.update_news("missing", {"title": "x"})
        with pytest.raises(NotFoundException):
            news_service.delete_news("missing")


class TestNotifications:
    def test_lifecycle_message_mentions_service(self, db, notifications, catalog, customer) -> None:
        booking = make_booking(
            db, customer, catalog["service"], catalog["post"], datetime(2030, 5, 14, 10, 0, tzinfo=timezone.utc)
        )

        note = notifications.append_lifecycle_event(booking, BookingStatus.CONFIRMED)

        assert note is not None
        assert "Body wash" in note.body
        assert "2030-05-14 10:00" in note.body
        assert note.booking_id == booking.id

    def test_cancelled_has_no_message(self, db, notifications, catalog, customer) -> None:
        booking = make_booking(
            db, customer, catalog["service"], catalog["post"], datetime(2030, 5, 14, 10, 0, tzinfo=timezone.utc)
        )
        assert notifications.append_lifecycle_event(booking, BookingStatus.CANCELLED) is None

    def test_admin_message(self, notifications, customer) -> None:
        note = notifications.send_admin_message(customer.id, "  Your keys are at reception ")

        assert note.kind == NotificationKind.ADMIN.value
        assert note.body == "Your keys are at reception"
        assert [n.id for n in notifications.list_for_client(customer.id)] == [note.id]

    def test_admin_message_validation(self, notifications, customer) -> None:
        with pytest.raises(ValidationException):
            notifications.send_admin_message(customer.id, "   ")
        with pytest.raises(NotFoundException):
            notifications.send_admin_message("nobody", "hello")

    def test_mark_read_is_scoped_to_owner(self, db, notifications, customer) -> None:
        note = notifications.send_admin_message(customer.id, "hello")
        stranger = make_client(db)
        db.commit()

        with pytest.raises(NotFoundException):
            notifications.mark_read(note.id, stranger.id)

        assert notifications.mark_read(note.id, customer.id).is_read is True
