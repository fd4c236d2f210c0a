from tests.factories import bearer, make_client

PROBLEM_JSON = "application/problem+json"


def _register(api_client, device_id="device-0001-abcdef"):
    response = api_client.post("/api/v1/clients/register", json={"device_id": device_id, "platform": "ios"})
    assert response.status_code == 200
    return response.json()


class TestRegistration:
    def test_register_twice_returns_same_key(self, api_client) -> None:
        first = _register(api_client)
        second = _register(api_client)

        assert first == second
        assert first["api_key"].startswith("sb_")

    def test_register_rejects_unknown_fields(self, api_client) -> None:
        response = api_client.post("/api/v1/clients/register", json={"device_id": "d1", "admin": True})

        assert response.status_code == 422
        assert response.headers["content-type"].startswith(PROBLEM_JSON)
        assert response.json()["code"] == "validation_error"


class TestProfile:
    def test_requires_api_key(self, api_client) -> None:
        response = api_client.get("/api/v1/profile")

        assert response.status_code == 401
        body = response.json()
        assert body["status"] == 401
        assert body["code"] == "UNAUTHORIZED"
        assert body["instance"] == "/api/v1/profile"

    def test_wrong_api_key(self, api_client) -> None:
        response = api_client.get("/api/v1/profile", headers={"Authorization": "Bearer sb_nope"})
        assert response.status_code == 401

    def test_profile_after_registration(self, api_client) -> None:
        creds = _register(api_client)
        headers = {"Authorization": f"Bearer {creds['api_key']}"}

        profile = api_client.get("/api/v1/profile", headers=headers).json()

        assert profile["id"] == creds["client_id"]
        assert profile["phone"].startswith("device:")
        assert profile["loyalty_points"] == 0

    def test_update_profile_fields(self, api_client, customer) -> None:
        response = api_client.put(
            "/api/v1/profile",
            json={"first_name": "Ivan", "social_links": {"telegram": "@ivan"}},
            headers=bearer(customer),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["first_name"] == "Ivan"
        assert body["social_links"]["telegram"] == "@ivan"

    def test_phone_collision_merges_into_caller(self, api_client, db) -> None:
        older = make_client(db, phone="+7 900 111-22-33", phone_norm="79001112233", loyalty_points=40)
        caller = make_client(db, loyalty_points=10)
        db.commit()

        response = api_client.put("/api/v1/profile", json={"phone": "+7 (900) 111 22 33"}, headers=bearer(caller))

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == caller.id
        assert body["loyalty_points"] == 50
        assert api_client.get("/api/v1/profile", headers=bearer(older)).status_code == 401
