"""Tests for health checks, navigation, and cross-cutting middleware."""

from __future__ import annotations

from bookbazaar_shared.config import settings


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "0.1.0"}


def test_ready(client):
    assert client.get("/ready").json() == {"status": "ready"}


def test_nav_signed_out(client):
    data = client.get("/v1/nav").json()["data"]
    assert data["authenticated"] is False
    assert data["username"] is None
    assert {"label": "Sign In", "path": "/auth"} in data["actions"]


def test_nav_signed_in(client, seller_headers):
    data = client.get("/v1/nav", headers=seller_headers).json()["data"]
    assert data["authenticated"] is True
    assert data["username"] == "ravi"
    assert [link["label"] for link in data["links"]] == ["Marketplace", "Sell a Book", "Dashboard"]
    assert {"label": "Dashboard", "path": "/dashboard"} in data["actions"]


def test_rate_limit_headers(client):
    response = client.get("/v1/listings/categories")
    assert response.headers["X-RateLimit-Limit"] == str(settings.rate_limit_anonymous)


def test_burst_limit(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_burst", 2)

    statuses = [client.get("/v1/listings/categories").status_code for _ in range(3)]

    assert statuses[:2] == [200, 200]
    assert statuses[2] == 429


def test_health_is_never_rate_limited(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_burst", 1)

    statuses = {client.get("/health").status_code for _ in range(3)}

    assert statuses == {200}


def test_signed_in_caller_gets_authenticated_limit(client, seller_headers):
    response = client.get("/v1/listings/categories", headers=seller_headers)
    assert response.headers["X-RateLimit-Limit"] == str(settings.rate_limit_authenticated)


def test_unverified_tokens_share_the_ip_bucket(client, monkeypatch):
    monkeypatch.setattr(settings, "rate_limit_burst", 2)

    responses = [
        client.get("/v1/listings/categories", headers={"Authorization": f"Bearer junk{i}"})
        for i in range(4)
    ]

    assert [r.status_code for r in responses] == [200, 200, 429, 429]
    assert responses[0].headers["X-RateLimit-Limit"] == str(settings.rate_limit_anonymous)


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/v1/nowhere")
    assert response.status_code == 404
    assert response.json() == {"error": {"code": "NOT_FOUND", "message": "Not Found"}}
