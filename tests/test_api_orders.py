"""HTTP API: end-to-end behaviour through the FastAPI app.

Invariants:
    - POST /api/orders -> 201 {message, orderId}; invalid dishes -> 400
    - GET /api/orders is caller-scoped, newest first, millisecond timestamps
    - PATCH /api/orders/{id}/confirm -> 200 {status: "received"}
    - Errors are {"message": ...}; every response carries the CSP header
"""

import pytest
from httpx import ASGITransport, AsyncClient

from order_api.core.config import Locale, Settings
from order_api.core.messages import get_message
from order_api.dependencies import get_app_settings, get_store, get_verifier
from order_api.main import app
from order_api.middleware import CONTENT_SECURITY_POLICY

ALICE = {"Authorization": "Bearer token-alice"}
BOB = {"Authorization": "Bearer token-bob"}

PIZZA = {"name": "Pizza", "price": 120, "details": "no onions"}


# --- menu --------------------------------------------------------------------

async def test_menu_returns_all_items_verbatim(client):
    res = await client.get("/api/menu")

    assert res.status_code == 200
    assert res.json() == [
        {"id": "pizza", "name": "Pizza", "price": 120, "category": "main"},
        {"id": "borscht", "name": "Borscht", "price": 95},
    ]


async def test_menu_needs_no_token(client):
    res = await client.get("/api/menu")
    assert res.status_code == 200


async def test_menu_store_failure_is_500(client, store, monkeypatch):
    async def broken_get_all(collection):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(store, "get_all", broken_get_all)

    res = await client.get("/api/menu")

    assert res.status_code == 500
    assert res.json() == {"message": "Failed to fetch menu"}


# --- create ------------------------------------------------------------------

async def test_create_order_returns_201_with_id(client):
    res = await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Order created successfully"
    assert body["orderId"]


async def test_created_order_is_listed_as_processing(client):
    created = await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)
    order_id = created.json()["orderId"]

    res = await client.get("/api/orders", headers=ALICE)

    assert res.status_code == 200
    [order] = res.json()
    assert order["id"] == order_id
    assert order["userId"] == "alice"
    assert order["status"] == "processing"
    assert order["dishes"] == [PIZZA]


async def test_empty_dishes_is_400_and_creates_nothing(client, store):
    res = await client.post("/api/orders", json={"dishes": []}, headers=ALICE)

    assert res.status_code == 400
    assert res.json()["message"] == "The dishes list must contain between 1 and 10 items"
    assert await store.get_all("orders") == []


async def test_too_many_dishes_is_400(client):
    res = await client.post("/api/orders", json={"dishes": [PIZZA] * 11}, headers=ALICE)
    assert res.status_code == 400


async def test_missing_dishes_is_400(client):
    res = await client.post("/api/orders", json={"note": "hungry"}, headers=ALICE)
    assert res.status_code == 400


async def test_missing_body_is_400(client):
    res = await client.post("/api/orders", headers=ALICE)
    assert res.status_code == 400


async def test_non_object_body_is_400(client):
    res = await client.post("/api/orders", json=[PIZZA], headers=ALICE)

    assert res.status_code == 400
    assert res.json() == {"message": "Request body must be a JSON object"}


async def test_client_cannot_choose_user_id(client):
    await client.post(
        "/api/orders",
        json={"dishes": [PIZZA], "userId": "bob", "status": "received"},
        headers=ALICE,
    )

    [order] = (await client.get("/api/orders", headers=ALICE)).json()
    assert order["userId"] == "alice"
    assert order["status"] == "processing"
    assert (await client.get("/api/orders", headers=BOB)).json() == []


async def test_create_store_failure_is_500(client, store, monkeypatch):
    async def broken_add(collection, data):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store, "add", broken_add)

    res = await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)

    assert res.status_code == 500
    assert res.json() == {"message": "Failed to create order"}


# --- list --------------------------------------------------------------------

async def test_list_orders_scoped_and_newest_first(client, clock):
    first = (await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)).json()
    clock.advance(seconds=5)
    await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=BOB)
    clock.advance(seconds=5)
    second = (await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)).json()

    orders = (await client.get("/api/orders", headers=ALICE)).json()

    assert [o["id"] for o in orders] == [second["orderId"], first["orderId"]]
    assert orders[0]["createdAt"] - orders[1]["createdAt"] == 10_000


async def test_list_orders_uses_millisecond_timestamps(client, clock):
    await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)

    [order] = (await client.get("/api/orders", headers=ALICE)).json()

    assert order["createdAt"] == int(clock.now.timestamp() * 1000)
    assert order["expectedDeliveryTime"] - order["createdAt"] == 30 * 60 * 1000


# --- confirm -----------------------------------------------------------------

async def test_confirm_then_list_shows_received(client):
    order_id = (
        await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)
    ).json()["orderId"]

    res = await client.patch(f"/api/orders/{order_id}/confirm", headers=ALICE)

    assert res.status_code == 200
    assert res.json() == {"status": "received"}
    [order] = (await client.get("/api/orders", headers=ALICE)).json()
    assert order["status"] == "received"


async def test_confirm_is_not_scoped_to_owner(client):
    order_id = (
        await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)
    ).json()["orderId"]

    res = await client.patch(f"/api/orders/{order_id}/confirm", headers=BOB)

    assert res.status_code == 200
    [order] = (await client.get("/api/orders", headers=ALICE)).json()
    assert order["status"] == "received"


async def test_confirm_unknown_order_is_500(client):
    res = await client.patch("/api/orders/missing/confirm", headers=ALICE)

    assert res.status_code == 500
    assert res.json() == {"message": "Failed to confirm order"}


# --- auth on protected routes -----------------------------------------------

@pytest.mark.parametrize(
    "method, path",
    [
        ("POST", "/api/orders"),
        ("GET", "/api/orders"),
        ("PATCH", "/api/orders/any/confirm"),
    ],
)
async def test_protected_routes_require_token(client, method, path):
    res = await client.request(method, path, json={"dishes": [PIZZA]})

    assert res.status_code == 401
    assert res.json() == {"message": "Unauthorized: No token provided"}


async def test_invalid_token_has_no_side_effect(client, store):
    created = await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)
    order_id = created.json()["orderId"]
    bad = {"Authorization": "Bearer forged"}

    assert (await client.post("/api/orders", json={"dishes": [PIZZA]}, headers=bad)).status_code == 401
    assert (await client.patch(f"/api/orders/{order_id}/confirm", headers=bad)).status_code == 401

    [stored] = await store.get_all("orders")
    assert stored.data["status"] == "processing"


async def test_auth_is_checked_before_validation(client):
    res = await client.post("/api/orders", json={"dishes": []})
    assert res.status_code == 401


# --- HTTP policy -------------------------------------------------------------

@pytest.mark.parametrize("path", ["/api/menu", "/api/orders", "/health"])
async def test_every_response_has_csp(client, path):
    res = await client.get(path)
    assert res.headers["content-security-policy"] == CONTENT_SECURITY_POLICY


async def test_cors_allows_configured_origin(client):
    res = await client.get("/api/menu", headers={"Origin": "http://localhost:3000"})

    assert res.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert res.headers["access-control-allow-credentials"] == "true"


async def test_cors_ignores_unknown_origin(client):
    res = await client.get("/api/menu", headers={"Origin": "https://evil.example"})
    assert "access-control-allow-origin" not in res.headers


async def test_cors_preflight(client):
    res = await client.options(
        "/api/orders",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Authorization, Content-Type",
        },
    )

    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert res.headers["content-security-policy"] == CONTENT_SECURITY_POLICY


# --- health ------------------------------------------------------------------

async def test_health_reports_backends(client):
    res = await client.get("/health")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "operational"
    assert body["store"] == "healthy"
    assert body["identity"] == "healthy"


async def test_unhandled_error_still_has_csp(client, store, monkeypatch):
    async def broken():
        raise RuntimeError("store exploded")

    monkeypatch.setattr(store, "health_check", broken)
    transport = ASGITransport(app=app, raise_app_exceptions=False)

    async with AsyncClient(transport=transport, base_url="http://test") as raw_client:
        res = await raw_client.get("/health")

    assert res.status_code == 500
    assert res.json() == {"message": get_message("internal_error")}
    assert res.headers["content-security-policy"] == CONTENT_SECURITY_POLICY


# --- settings wiring ---------------------------------------------------------

@pytest.fixture
async def uk_client(store, verifier, clock, monkeypatch):
    """Client using the real service providers with Ukrainian settings."""
    uk_settings = Settings(
        _env_file=None,
        env_mode="development",
        delivery_offset_seconds=30,
        message_locale="uk",
        menu_seed_file=None,
    )
    monkeypatch.setattr("order_api.services.orders.utc_now", clock)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_verifier] = lambda: verifier
    app.dependency_overrides[get_app_settings] = lambda: uk_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def test_settings_reach_order_service(uk_client):
    res = await uk_client.post("/api/orders", json={"dishes": [PIZZA]}, headers=ALICE)

    assert res.status_code == 201
    assert res.json()["message"] == get_message("order_created", Locale.UK)

    [order] = (await uk_client.get("/api/orders", headers=ALICE)).json()
    assert order["expectedDeliveryTime"] - order["createdAt"] == 30_000


async def test_settings_locale_reaches_error_messages(uk_client):
    empty = await uk_client.post("/api/orders", json={"dishes": []}, headers=ALICE)
    malformed = await uk_client.post("/api/orders", json=[PIZZA], headers=ALICE)

    assert empty.status_code == 400
    assert empty.json() == {"message": get_message("dishes_count", Locale.UK)}
    assert malformed.status_code == 400
    assert malformed.json() == {"message": get_message("invalid_request", Locale.UK)}


# --- stored fields -----------------------------------------------------------

async def test_extra_stored_fields_pass_through(client, store):
    await store.add(
        "orders",
        {"userId": "alice", "dishes": [PIZZA], "status": "processing", "table": 4},
    )

    [order] = (await client.get("/api/orders", headers=ALICE)).json()

    assert order["table"] == 4
    assert order["createdAt"] is None
    assert order["dishes"] == [PIZZA]
