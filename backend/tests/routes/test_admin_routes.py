from datetime import datetime, timezone

import pytest

from servicebay.models import Client, LoyaltyReward
from tests.factories import bearer, make_booking

TEN = datetime(2030, 5, 14, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def booking(db, catalog, customer):
    booking = make_booking(db, customer, catalog["service"], catalog["post"], TEN)
    db.commit()
    return booking


def _status(api_client, booking_id, target, headers):
    return api_client.patch(
        f"/api/v1/admin/bookings/{booking_id}/status", json={"status": target}, headers=headers
    )


class TestAdminGate:
    def test_missing_key(self, api_client, booking) -> None:
        response = _status(api_client, booking.id, "confirmed", headers={})
        assert response.status_code == 401

    def test_wrong_key(self, api_client, booking) -> None:
        response = _status(api_client, booking.id, "confirmed", headers={"X-Admin-Key": "guess"})
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_client_key_is_not_admin(self, api_client, customer) -> None:
        response = api_client.get("/api/v1/admin/bookings", headers=bearer(customer))
        assert response.status_code == 401


class TestStatusTransitions:
    def test_full_lifecycle(self, api_client, db, booking, customer, admin_headers) -> None:
        confirmed = _status(api_client, booking.id, "confirmed", admin_headers)
        assert confirmed.status_code == 200
        assert confirmed.json()["changed"] is True
        assert confirmed.json()["notification_id"]

        started = _status(api_client, booking.id, "in_progress", admin_headers).json()
        assert started["booking"]["in_progress_started_at"] is not None

        completed = _status(api_client, booking.id, "completed", admin_headers).json()
        assert completed["previous_status"] == "in_progress"
        assert completed["points_awarded"] == 80

        feed = api_client.get("/api/v1/notifications", headers=bearer(customer)).json()
        assert len(feed) == 3
        db.expire_all()
        assert db.get(Client, customer.id).loyalty_points == 80

    def test_repeat_in_progress_is_noop(self, api_client, booking, admin_headers) -> None:
        first = _status(api_client, booking.id, "in_progress", admin_headers).json()
        second = _status(api_client, booking.id, "in_progress", admin_headers).json()

        assert second["changed"] is False
        assert second["booking"]["in_progress_started_at"] == first["booking"]["in_progress_started_at"]

    def test_leaving_terminal_status(self, api_client, booking, admin_headers) -> None:
        _status(api_client, booking.id, "cancelled", admin_headers)

        response = _status(api_client, booking.id, "confirmed", admin_headers)

        assert response.status_code == 400
        assert response.json()["code"] == "ILLEGAL_TRANSITION"

    def test_unknown_status(self, api_client, booking, admin_headers) -> None:
        response = _status(api_client, booking.id, "washed", admin_headers)
        assert response.status_code == 400

    def test_unknown_booking(self, api_client, admin_headers) -> None:
        response = _status(api_client, "01HZZZZZZZZZZZZZZZZZZZZZZZ", "confirmed", admin_headers)
        assert response.status_code == 404

    def test_list_filters(self, api_client, booking, admin_headers) -> None:
        _status(api_client, booking.id, "confirmed", admin_headers)

        confirmed = api_client.get(
            "/api/v1/admin/bookings", params={"status": "confirmed", "date": "2030-05-14"}, headers=admin_headers
        ).json()
        pending = api_client.get("/api/v1/admin/bookings", params={"status": "pending"}, headers=admin_headers).json()

        assert [b["id"] for b in confirmed] == [booking.id]
        assert pending == []


class TestAdminCatalog:
    def test_service_and_post_management(self, api_client, admin_headers) -> None:
        created = api_client.post(
            "/api/v1/admin/services",
            json={"name": "Engine wash", "price": 1500, "duration_minutes": 45},
            headers=admin_headers,
        )
        assert created.status_code == 201
        service_id = created.json()["id"]

        post = api_client.post(
            "/api/v1/admin/posts",
            json={"id": "post_3", "name": "Post 3", "start_time": "08:00", "end_time": "20:00"},
            headers=admin_headers,
        )
        assert post.status_code == 201
        assert post.json()["start_time"] == "08:00"

        public = api_client.get("/api/v1/services").json()
        assert [s["id"] for s in public] == [service_id]
        assert public[0]["price"] == 1500.0

        deleted = api_client.delete(f"/api/v1/admin/services/{service_id}", headers=admin_headers)
        assert deleted.status_code == 204

    def test_invalid_post_hours(self, api_client, catalog, admin_headers) -> None:
        response = api_client.put(
            "/api/v1/admin/posts/post_1", json={"start_time": "18:30"}, headers=admin_headers
        )
        assert response.status_code == 400


class TestAdminMessagingAndNews:
    def test_admin_message_reaches_feed(self, api_client, customer, admin_headers) -> None:
        sent = api_client.post(
            "/api/v1/admin/notifications",
            json={"client_id": customer.id, "body": "Please move your car"},
            headers=admin_headers,
        )
        assert sent.status_code == 201

        feed = api_client.get("/api/v1/notifications", headers=bearer(customer)).json()
        assert [n["kind"] for n in feed] == ["admin"]

        marked = api_client.patch(f"/api/v1/notifications/{feed[0]['id']}/read", headers=bearer(customer))
        assert marked.status_code == 204
        assert api_client.get("/api/v1/notifications", headers=bearer(customer)).json()[0]["is_read"] is True

    def test_news_lands_in_client_feed(self, api_client, customer, admin_headers) -> None:
        created = api_client.post(
            "/api/v1/admin/news", json={"title": "New post opened", "body": "Twice the capacity"}, headers=admin_headers
        )
        assert created.status_code == 201

        feed = api_client.get("/api/v1/news", headers=bearer(customer)).json()
        assert [n["title"] for n in feed] == ["New post opened"]

        deleted = api_client.delete(f"/api/v1/admin/news/{created.json()['id']}", headers=admin_headers)
        assert deleted.status_code == 204
        assert api_client.get("/api/v1/news", headers=bearer(customer)).json() == []


class TestRewardsAndSettings:
    def test_redeem_flow(self, api_client, db, customer, admin_headers) -> None:
        reward = api_client.post(
            "/api/v1/admin/rewards", json={"id": "r1", "name": "10% discount", "points_cost": 50}, headers=admin_headers
        )
        assert reward.status_code == 201

        poor = api_client.post("/api/v1/rewards/r1/redeem", headers=bearer(customer))
        assert poor.status_code == 400
        assert poor.json()["code"] == "INSUFFICIENT_POINTS"
        assert poor.json()["errors"] == {"required": 50, "current": 0}

        db.get(Client, customer.id).loyalty_points = 70
        db.commit()

        redeemed = api_client.post("/api/v1/rewards/r1/redeem", headers=bearer(customer))
        assert redeemed.status_code == 200
        assert redeemed.json()["loyalty_points"] == 20
        assert db.get(LoyaltyReward, "r1") is not None

    def test_inactive_reward_is_hidden(self, api_client, admin_headers) -> None:
        api_client.post(
            "/api/v1/admin/rewards",
            json={"id": "r9", "name": "Retired", "points_cost": 10, "is_active": False},
            headers=admin_headers,
        )
        assert api_client.get("/api/v1/rewards").json() == []
        assert len(api_client.get("/api/v1/admin/rewards", headers=admin_headers).json()) == 1

    def test_settings_round_trip(self, api_client, admin_headers) -> None:
        updated = api_client.put(
            "/api/v1/admin/settings", json={"api_base_url": "https://api.shop.example/"}, headers=admin_headers
        )
        assert updated.status_code == 200

        current = api_client.get("/api/v1/admin/settings", headers=admin_headers).json()
        assert current == {"api_base_url": "https://api.shop.example"}
