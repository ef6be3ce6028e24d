"""
Tests for the custom domain REST API.
"""

import pytest
from fastapi.testclient import TestClient

from storefront_domains.config import Settings
from storefront_domains.domains.errors import (
    PersistenceError,
    ProviderRejected,
    ProviderTransportError,
)
from storefront_domains.domains.provider import DomainStatus
from storefront_domains.main import create_app

TENANT = {"X-Tenant-ID": "t1"}


@pytest.fixture
def client(onboarding):
    app = create_app(Settings(debug=True, use_redis=False))
    app.state.onboarding = onboarding
    with TestClient(app) as client:
        yield client


def _states(body):
    return [step["state"] for step in body["steps"]]


class TestDomainApi:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_missing_tenant_header(self, client):
        response = client.get("/api/domain")
        assert response.status_code == 400

    def test_get_without_domain(self, client):
        response = client.get("/api/domain", headers=TENANT)
        assert response.status_code == 200
        body = response.json()
        assert body["custom_domain"] is None
        assert body["stage"] == "absent"
        assert _states(body) == ["pending"] * 5

    def test_register(self, client):
        response = client.put("/api/domain", json={"domain": "MyShop.COM/"}, headers=TENANT)

        assert response.status_code == 200
        body = response.json()
        assert body["custom_domain"] == "myshop.com"
        assert body["dns_status"] == "pending"
        assert len(body["dns_records"]) == 2
        assert _states(body) == ["completed", "current", "pending", "pending", "pending"]
        assert "provider_domain_id" not in body

    def test_register_invalid(self, client, onboarding):
        response = client.put("/api/domain", json={"domain": "not a domain"}, headers=TENANT)

        assert response.status_code == 400
        assert "valid domain" in response.json()["detail"]
        assert client.get("/api/domain", headers=TENANT).json()["custom_domain"] is None

    def test_register_twice_conflicts(self, client):
        client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)
        response = client.put(
            "/api/domain", json={"domain": "myshop.com"}, headers={"X-Tenant-ID": "t2"}
        )
        assert response.status_code == 409

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (ProviderRejected("in use", status_code=422), 422),
            (ProviderTransportError("timeout"), 503),
        ],
    )
    def test_register_provider_errors(self, client, provider, error, status_code):
        provider.register_error = error
        response = client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)
        assert response.status_code == status_code

    def test_store_failure(self, client, store, monkeypatch):
        async def failing_get(tenant_id):
            raise PersistenceError("redis down")

        monkeypatch.setattr(store, "get", failing_get)
        response = client.get("/api/domain", headers=TENANT)

        assert response.status_code == 500
        assert response.json()["detail"] == "Save failed. Please try again."

    def test_check_progresses(self, client, provider):
        client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)

        provider.statuses = [DomainStatus(dns_verified=True, ssl_issued=False)]
        body = client.post("/api/domain/check", headers=TENANT).json()
        assert _states(body) == ["completed", "completed", "completed", "current", "pending"]

        provider.statuses = [DomainStatus(dns_verified=True, ssl_issued=True)]
        provider.status_calls = 0
        body = client.post("/api/domain/check", headers=TENANT).json()
        assert body["stage"] == "active"
        assert _states(body) == ["completed"] * 5

    def test_check_transport_error(self, client, provider, transport_error):
        client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)
        provider.statuses = [transport_error]

        response = client.post("/api/domain/check", headers=TENANT)
        assert response.status_code == 503

    def test_force_ssl(self, client, provider):
        client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)

        assert client.post("/api/domain/ssl", headers=TENANT).status_code == 409

        provider.statuses = [DomainStatus(dns_verified=True, ssl_issued=False)]
        client.post("/api/domain/check", headers=TENANT)
        requests_before = provider.certificate_requests

        response = client.post("/api/domain/ssl", headers=TENANT)
        assert response.status_code == 200
        assert provider.certificate_requests == requests_before + 1

    def test_remove(self, client):
        client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)

        assert client.delete("/api/domain", headers=TENANT).json() == {"deleted": True}

        body = client.get("/api/domain", headers=TENANT).json()
        assert body["custom_domain"] is None
        assert _states(body) == ["pending"] * 5

        # Hostname is free again
        response = client.put(
            "/api/domain", json={"domain": "myshop.com"}, headers={"X-Tenant-ID": "t2"}
        )
        assert response.status_code == 200

    def test_lookup(self, client, provider):
        client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)
        assert client.get("/api/domain/lookup", params={"host": "myshop.com"}).status_code == 404

        provider.statuses = [DomainStatus(dns_verified=True, ssl_issued=True)]
        client.post("/api/domain/check", headers=TENANT)

        for host in ("myshop.com", "www.myshop.com", "MyShop.com:443", "shop.myshop.com"):
            response = client.get("/api/domain/lookup", params={"host": host})
            assert response.status_code == 200, host
            assert response.json()["tenant_id"] == "t1"

        assert client.get("/api/domain/lookup", params={"host": "unknown.com"}).status_code == 404

    def test_watch(self, client, onboarding):
        client.put("/api/domain", json={"domain": "myshop.com"}, headers=TENANT)

        watch_id = client.post("/api/domain/watch", headers=TENANT).json()["watch_id"]
        assert onboarding.scheduler.get(watch_id) is not None

        response = client.delete(f"/api/domain/watch/{watch_id}", headers={"X-Tenant-ID": "t2"})
        assert response.status_code == 404

        response = client.delete(f"/api/domain/watch/{watch_id}", headers=TENANT)
        assert response.json() == {"stopped": True, "watch_id": watch_id}
        assert onboarding.scheduler.get(watch_id) is None

    def test_unknown_watch(self, client):
        response = client.delete("/api/domain/watch/nope", headers=TENANT)
        assert response.status_code == 404
