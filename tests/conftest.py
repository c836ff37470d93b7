"""Shared test fixtures for bookbazaar."""

from __future__ import annotations

import time
from unittest.mock import MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from bookbazaar_shared.config import settings

SELLER_ID = str(uuid4())
BUYER_ID = str(uuid4())

CHAIN_METHODS = (
    "select", "eq", "neq", "gt", "gte", "lt", "lte", "ilike", "or_",
    "order", "limit", "range", "insert", "update", "upsert", "delete",
)

# Every module that resolves a Supabase client at call time
CLIENT_IMPORT_SITES = (
    "bookbazaar_api.services.listing_service.get_supabase_client",
    "bookbazaar_api.services.listing_service.get_user_client",
    "bookbazaar_api.services.order_service.get_supabase_client",
    "bookbazaar_api.services.order_service.get_user_client",
    "bookbazaar_api.services.notification_service.get_user_client",
    "bookbazaar_api.services.auth_service.get_user_client",
    "bookbazaar_api.services.auth_service.new_anon_client",
)


def result(data=None, count=None):
    """A PostgREST-style APIResponse stand-in."""
    return MagicMock(data=data if data is not None else [], count=count)


def make_chain(data=None, count=0):
    """Create a chainable mock that returns given data on execute()."""
    chain = MagicMock()
    chain.execute.return_value = result(data, count)
    for method in CHAIN_METHODS:
        getattr(chain, method).return_value = chain
    return chain


def make_supabase(table_data=None):
    """Create a mock Supabase client.

    table_data: optional dict mapping table name -> rows.
    Each table gets one cached chain, so tests can set execute.side_effect
    for multi-step flows and inspect insert/update calls afterwards.
    Unmapped tables return empty results.
    """
    client = MagicMock()
    td = table_data or {}
    tables: dict[str, MagicMock] = {}

    def _table(name):
        if name not in tables:
            tables[name] = make_chain(td.get(name, []))
        return tables[name]

    client.table.side_effect = _table

    bucket = MagicMock()
    bucket.get_public_url.return_value = "https://storage.example/book-images/cover.jpg"
    client.storage.from_.return_value = bucket
    return client


def make_token(user_id: str, *, email: str | None = None, username: str | None = None) -> str:
    claims = {
        "sub": user_id,
        "aud": "authenticated",
        "role": "authenticated",
        "exp": int(time.time()) + 3600,
        "email": email or f"{user_id[:8]}@example.com",
        "user_metadata": {"username": username} if username else {},
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm="HS256")


def auth_headers(user_id: str, **kwargs) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id, **kwargs)}"}


@pytest.fixture(autouse=True)
def _reset_clients():
    from bookbazaar_shared.db import reset_supabase_clients

    yield
    reset_supabase_clients()


@pytest.fixture(autouse=True)
def _fast_retries(monkeypatch):
    """No backoff sleeps between notification attempts."""
    monkeypatch.setattr(settings, "notification_retry_base_delay", 0)


@pytest.fixture()
def supabase():
    """Patch every Supabase client factory with one shared mock."""
    mock = make_supabase()
    patches = [patch(target, return_value=mock) for target in CLIENT_IMPORT_SITES]
    for p in patches:
        p.start()
    yield mock
    for p in patches:
        p.stop()


@pytest.fixture()
def app(supabase):
    """Create test FastAPI app with mocked Supabase."""
    from bookbazaar_api.app import create_app
    return create_app()


@pytest.fixture()
def client(app):
    """HTTP test client."""
    return TestClient(app)


@pytest.fixture()
def seller_headers():
    return auth_headers(SELLER_ID, username="ravi")


@pytest.fixture()
def buyer_headers():
    return auth_headers(BUYER_ID, username="priya")


@pytest.fixture()
def sample_listing():
    return {
        "id": str(uuid4()),
        "user_id": SELLER_ID,
        "title": "Higher Engineering Mathematics",
        "author": "B.S. Grewal",
        "category": "Engineering",
        "condition": "Good",
        "price": 450,
        "is_swap": False,
        "description": "Some highlighting in chapter 3",
        "image_url": None,
        "created_at": "2024-07-01T10:00:00+00:00",
        "profiles": {"username": "ravi"},
    }


@pytest.fixture()
def sample_swap_listing():
    return {
        "id": str(uuid4()),
        "user_id": SELLER_ID,
        "title": "Pride and Prejudice",
        "author": "Jane Austen",
        "category": "Literature",
        "condition": "Fair",
        "price": None,
        "is_swap": True,
        "description": None,
        "image_url": None,
        "created_at": "2024-06-15T10:00:00+00:00",
        "profiles": {"username": "ravi"},
    }


@pytest.fixture()
def sample_order(sample_listing):
    return {
        "id": str(uuid4()),
        "book_id": sample_listing["id"],
        "seller_id": SELLER_ID,
        "buyer_id": BUYER_ID,
        "type": "purchase",
        "status": "pending",
        "payment_method": "cash",
        "address_line": "12 MG Road",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411001",
        "phone": "9876543210",
        "book_title": sample_listing["title"],
        "book_author": sample_listing["author"],
        "book_price": 450,
        "seller_notified": True,
        "created_at": "2024-07-02T09:30:00+00:00",
    }


@pytest.fixture()
def sample_notification(sample_order):
    return {
        "id": str(uuid4()),
        "user_id": SELLER_ID,
        "title": "New Order Received! 🎉",
        "message": 'Someone wants to buy "Higher Engineering Mathematics" for ₹450. Payment: Cash on Delivery.',
        "is_read": False,
        "related_transaction_id": sample_order["id"],
        "created_at": "2024-07-02T09:30:01+00:00",
    }
