from starlette.testclient import TestClient

from tests.conftest import ADMIN, CONSUMER, OUTSIDER, PROVIDER

CERTIFICATE_BODY = {
    "energy_amount": 100,
    "price_per_unit": 45,
    "start_date": 100,
    "end_date": 200,
    "source_type": "solar",
    "delivery_point": "NL-North-01",
    "contract_terms_hash": "0x9f2c",
}


def as_principal(principal: str) -> dict:
    return {"X-Principal": principal}


class TestRoleRoutes:
    def test_register_consumer(self, api_client):
        response = api_client.post("/roles/consumer", headers=as_principal(OUTSIDER))

        assert response.status_code == 200
        assert response.json()["granted"] is True

        roles = api_client.get(f"/roles/{OUTSIDER}").json()["roles"]
        assert roles == ["consumer"]

    def test_add_provider_requires_admin(self, api_client):
        response = api_client.post(
            "/roles/provider", json={"principal": OUTSIDER}, headers=as_principal(CONSUMER)
        )

        assert response.status_code == 401
        assert response.json()["error_type"] == "unauthorized"

        response = api_client.post(
            "/roles/provider", json={"principal": OUTSIDER}, headers=as_principal(ADMIN)
        )
        assert response.status_code == 200

    def test_missing_principal_header(self, api_client):
        response = api_client.post("/roles/consumer")

        assert response.status_code == 422
        assert response.json()["error_type"] == "validation_error"


class TestErrorRendering:
    def test_invalid_body_field(self, api_client):
        body = {**CERTIFICATE_BODY, "energy_amount": "lots"}
        response = api_client.post("/certificates", json=body, headers=as_principal(PROVIDER))

        assert response.status_code == 422
        details = response.json()["details"]
        assert details["path"] == "/certificates"
        assert details["errors"][0]["field"] == "energy_amount"
        assert details["errors"][0]["invalid_value"] == "lots"

    def test_unhandled_error_reports_type_only(self, api_client, engine, monkeypatch):
        def broken(token_id):
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(engine, "owner_of", broken)
        client = TestClient(api_client.app, raise_server_exceptions=False)

        response = client.get("/certificates/1/owner")

        assert response.status_code == 500
        content = response.json()
        assert content["error_type"] == "server_error"
        assert content["details"] == {
            "exception_type": "RuntimeError",
            "method": "GET",
            "path": "/certificates/1/owner",
        }

class TestCertificateRoutes:
    def test_create_certificate(self, api_client):
        response = api_client.post(
            "/certificates", json=CERTIFICATE_BODY, headers=as_principal(PROVIDER)
        )

        assert response.status_code == 201
        certificate = response.json()["certificate"]
        assert certificate["token_id"] == 1
        assert certificate["owner"] == PROVIDER
        assert certificate["is_active"] is True

    def test_create_requires_provider(self, api_client):
        response = api_client.post(
            "/certificates", json=CERTIFICATE_BODY, headers=as_principal(CONSUMER)
        )

        assert response.status_code == 401

    def test_create_invalid_window(self, api_client):
        body = {**CERTIFICATE_BODY, "end_date": 50}
        response = api_client.post("/certificates", json=body, headers=as_principal(PROVIDER))

        assert response.status_code == 422
        assert response.json()["error_type"] == "invalid_window"

    def test_create_zero_amount(self, api_client):
        body = {**CERTIFICATE_BODY, "energy_amount": 0}
        response = api_client.post("/certificates", json=body, headers=as_principal(PROVIDER))

        assert response.status_code == 422
        assert response.json()["error_type"] == "invalid_amount"

    def test_get_unknown_certificate(self, api_client):
        response = api_client.get("/certificates/99")

        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"

    def test_get_certificate(self, api_client, fake_certificate):
        response = api_client.get(f"/certificates/{fake_certificate}")

        assert response.status_code == 200
        assert response.json()["state"] == "Active-Unlisted"
        assert api_client.get(f"/certificates/{fake_certificate}/owner").json()["owner"] == PROVIDER

    def test_filter_by_owner(self, api_client, fake_certificate):
        assert api_client.get("/certificates", params={"owner": PROVIDER}).json()["count"] == 1
        assert api_client.get("/certificates", params={"owner": CONSUMER}).json()["count"] == 0


class TestTradingRoutes:
    def test_list_buy_burn(self, api_client, fake_certificate, payment_gateway):
        response = api_client.post(
            f"/certificates/{fake_certificate}/listing",
            json={"price": 50},
            headers=as_principal(PROVIDER),
        )
        assert response.status_code == 200
        assert api_client.get("/marketplace").json()["count"] == 1

        response = api_client.post(
            f"/certificates/{fake_certificate}/purchase",
            json={"payment": 60},
            headers=as_principal(CONSUMER),
        )
        assert response.status_code == 200
        assert response.json()["purchase"]["seller"] == PROVIDER
        assert payment_gateway.balance_of(PROVIDER) == 60

        listing = api_client.get(f"/certificates/{fake_certificate}/listing").json()
        assert listing["is_for_sale"] is False

        response = api_client.post(
            f"/certificates/{fake_certificate}/burn", headers=as_principal(CONSUMER)
        )
        assert response.status_code == 200
        assert response.json()["certificate"]["is_active"] is False

        response = api_client.post(
            f"/certificates/{fake_certificate}/burn", headers=as_principal(CONSUMER)
        )
        assert response.status_code == 409
        assert response.json()["error_type"] == "already_retired"

    def test_withdraw(self, api_client, fake_listed_certificate):
        response = api_client.delete(
            f"/certificates/{fake_listed_certificate}/listing", headers=as_principal(PROVIDER)
        )

        assert response.status_code == 200
        assert response.json()["listing"]["is_for_sale"] is False

    def test_buy_unlisted(self, api_client, fake_certificate):
        response = api_client.post(
            f"/certificates/{fake_certificate}/purchase",
            json={"payment": 60},
            headers=as_principal(CONSUMER),
        )

        assert response.status_code == 409
        assert response.json()["error_type"] == "not_for_sale"

    def test_buy_underpaid(self, api_client, fake_listed_certificate):
        response = api_client.post(
            f"/certificates/{fake_listed_certificate}/purchase",
            json={"payment": 10},
            headers=as_principal(CONSUMER),
        )

        assert response.status_code == 402
        assert api_client.get(f"/certificates/{fake_listed_certificate}/owner").json()["owner"] == PROVIDER

    def test_list_by_non_owner(self, api_client, fake_certificate):
        response = api_client.post(
            f"/certificates/{fake_certificate}/listing",
            json={"price": 50},
            headers=as_principal(CONSUMER),
        )

        assert response.status_code == 403
        assert response.json()["error_type"] == "not_owner"


class TestAuditRoutes:
    def test_events(self, api_client, fake_listed_certificate):
        response = api_client.get("/events", params={"token_id": fake_listed_certificate})

        assert response.status_code == 200
        assert [e["event_type"] for e in response.json()["events"]] == ["Created", "Listed"]

    def test_statistics(self, api_client, fake_listed_certificate):
        stats = api_client.get("/statistics").json()["registry"]

        assert stats["total_certificates"] == 1
        assert stats["listed_certificates"] == 1

    def test_change_log_level(self, api_client):
        response = api_client.post("/change_log_level", json={"level": "DEBUG"})

        assert response.status_code == 200
        assert response.json()["effective_level"] == "DEBUG"

        api_client.post("/change_log_level", json={"level": "INFO"})

    def test_root_and_health(self, api_client):
        assert api_client.get("/").json()["message"] == "Energy Trade Hub API"
        assert api_client.get("/health").json()["status"] == "ok"
