"""HTTP-level tests: routers, auth dependency, error envelope.

Repositories are swapped for the in-memory fakes through FastAPI
dependency overrides; no database is touched.
"""

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from src.main import app
from src.om_account.api.router import get_account_service
from src.om_account.application.service import AccountApplicationService
from src.om_common.database import get_db_session
from src.om_common.errors import StoreBusyError
from src.om_gateway.auth.jwt_handler import create_access_token
from src.om_notification.api.router import get_notification_service
from src.om_notification.application.service import NotificationApplicationService
from src.om_purchase.api.router import get_purchase_engine
from src.om_purchase.application.engine import PurchaseEngine
from tests.fakes import (
    FakeAccountRepository,
    FakeIdempotencyRepository,
    FakeLedgerRepository,
    FakeNotificationRepository,
    FakeSession,
    FakeTransactionRepository,
    InMemoryStore,
)


@pytest.fixture
def store(client: AsyncClient) -> InMemoryStore:
    store = InMemoryStore()
    engine = PurchaseEngine(
        accounts=FakeAccountRepository(store),
        transactions=FakeTransactionRepository(store),
        ledger=FakeLedgerRepository(store),
        notifications=FakeNotificationRepository(store),
        idempotency=FakeIdempotencyRepository(store),
    )
    accounts = AccountApplicationService(
        repo=FakeAccountRepository(store), ledger=FakeLedgerRepository(store)
    )
    notifications = NotificationApplicationService(repo=FakeNotificationRepository(store))
    app.dependency_overrides[get_db_session] = lambda: FakeSession(store)
    app.dependency_overrides[get_purchase_engine] = lambda: engine
    app.dependency_overrides[get_account_service] = lambda: accounts
    app.dependency_overrides[get_notification_service] = lambda: notifications
    return store


def _auth(account_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(account_id)}"}


async def _open(client: AsyncClient, username: str) -> tuple[str, dict[str, str]]:
    resp = await client.post("/api/v1/accounts", json={"username": username})
    assert resp.status_code == 201
    data = resp.json()["data"]
    return data["account"]["id"], {"Authorization": f"Bearer {data['access_token']}"}


def _body(target: dict, key: str = "key-1") -> dict:
    return {
        "target_id": target["id"],
        "expected_price": target["price_cents"],
        "expected_owner_id": target["owner_id"],
        "expected_version": target["version"],
        "idempotency_key": key,
    }


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


async def test_client_request_id_is_echoed(client: AsyncClient, store) -> None:
    resp = await client.post(
        "/api/v1/accounts",
        json={"username": "alice"},
        headers={"X-Request-ID": "retry-abc-123"},
    )
    assert resp.headers["X-Request-ID"] == "retry-abc-123"
    assert resp.json()["request_id"] == "retry-abc-123"


async def test_malformed_client_request_id_is_replaced(client: AsyncClient) -> None:
    resp = await client.get("/health", headers={"X-Request-ID": "bad id!"})
    assert resp.headers["X-Request-ID"].startswith("req_")


class TestAccounts:
    async def test_open_account(self, client: AsyncClient, store) -> None:
        resp = await client.post("/api/v1/accounts", json={"username": "alice"})
        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["account"]["balance_cents"] == 100000
        assert body["data"]["account"]["price_cents"] == 10000
        assert body["data"]["token_type"] == "bearer"
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_duplicate_username_is_409(self, client: AsyncClient, store) -> None:
        await _open(client, "alice")
        resp = await client.post("/api/v1/accounts", json={"username": "alice"})
        assert resp.status_code == 409
        assert resp.json()["code"] == 2004

    async def test_me_requires_token(self, client: AsyncClient, store) -> None:
        resp = await client.get("/api/v1/accounts/me")
        assert resp.status_code == 401

    async def test_me(self, client: AsyncClient, store) -> None:
        account_id, headers = await _open(client, "alice")
        resp = await client.get("/api/v1/accounts/me", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["id"] == account_id
        assert resp.json()["data"]["balance_cents"] == 100000

    async def test_public_view(self, client: AsyncClient, store) -> None:
        target_id, _ = await _open(client, "tina")
        _, headers = await _open(client, "bob")
        resp = await client.get(f"/api/v1/accounts/{target_id}", headers=headers)
        assert resp.status_code == 200
        assert "balance_cents" not in resp.json()["data"]

    async def test_unknown_account_is_404(self, client: AsyncClient, store) -> None:
        resp = await client.get("/api/v1/accounts/ghost", headers=_auth("someone"))
        assert resp.status_code == 404
        assert resp.json()["code"] == 2005

    async def test_deactivate(self, client: AsyncClient, store) -> None:
        account_id, headers = await _open(client, "alice")
        resp = await client.delete("/api/v1/accounts/me", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["deactivated"] is True
        assert store.accounts[account_id].is_deactivated


class TestPurchase:
    async def test_purchase_flow(self, client: AsyncClient, store) -> None:
        target_id, target_headers = await _open(client, "tina")
        buyer_id, buyer_headers = await _open(client, "bob")
        target = (await client.get(f"/api/v1/accounts/{target_id}", headers=buyer_headers)).json()[
            "data"
        ]

        resp = await client.post("/api/v1/purchases", json=_body(target), headers=buyer_headers)

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["transaction"]["price_cents"] == 10000
        assert data["transaction"]["target_bonus_cents"] == 1000
        assert data["transaction"]["buyer"] == {"id": buyer_id, "username": "bob"}
        assert data["transaction"]["target"]["new_price_cents"] == 15000
        assert data["buyer_balance_cents"] == 90000

        owned = await client.get("/api/v1/accounts/me/owned", headers=buyer_headers)
        assert [i["id"] for i in owned.json()["data"]["items"]] == [target_id]

        ledger = await client.get("/api/v1/accounts/me/ledger", headers=target_headers)
        items = ledger.json()["data"]["items"]
        assert [(i["entry_type"], i["amount_cents"]) for i in items] == [
            ("OWNERSHIP_BONUS", 1000)
        ]

        notes = await client.get("/api/v1/notifications", headers=target_headers)
        assert notes.json()["data"]["unread_count"] == 1
        assert notes.json()["data"]["items"][0]["kind"] == "YOU_WERE_BOUGHT"

        marked = await client.post("/api/v1/notifications/read", headers=target_headers)
        assert marked.json()["data"]["marked_read"] == 1

    async def test_replay_returns_identical_body(self, client: AsyncClient, store) -> None:
        target_id, _ = await _open(client, "tina")
        _, headers = await _open(client, "bob")
        target = (await client.get(f"/api/v1/accounts/{target_id}", headers=headers)).json()["data"]

        first = await client.post("/api/v1/purchases", json=_body(target), headers=headers)
        second = await client.post("/api/v1/purchases", json=_body(target), headers=headers)

        assert first.status_code == second.status_code == 201
        assert first.json()["data"] == second.json()["data"]
        assert len(store.transactions) == 1

    async def test_stale_version_is_409_with_current_state(
        self, client: AsyncClient, store
    ) -> None:
        target_id, _ = await _open(client, "tina")
        _, alice = await _open(client, "alice")
        _, bob = await _open(client, "bob")
        target = (await client.get(f"/api/v1/accounts/{target_id}", headers=alice)).json()["data"]
        await client.post("/api/v1/purchases", json=_body(target, "a"), headers=alice)

        resp = await client.post("/api/v1/purchases", json=_body(target, "b"), headers=bob)

        assert resp.status_code == 409
        body = resp.json()
        assert body["code"] == 6003
        assert body["data"]["reason"] == "STALE_DATA"
        assert body["data"]["current_version"] == 2
        assert body["data"]["current_price"] == 15000

    async def test_insufficient_funds_exposes_shortfall(
        self, client: AsyncClient, store
    ) -> None:
        store.add_account("target", price=10000)
        store.add_account("poor", balance=9999)

        resp = await client.post(
            "/api/v1/purchases",
            json={
                "target_id": "target",
                "expected_price": 10000,
                "expected_owner_id": None,
                "expected_version": 1,
                "idempotency_key": "k",
            },
            headers=_auth("poor"),
        )

        assert resp.status_code == 422
        assert resp.json()["data"] == {
            "reason": "INSUFFICIENT_FUNDS",
            "balance": 9999,
            "price": 10000,
            "shortfall": 1,
        }

    async def test_self_purchase(self, client: AsyncClient, store) -> None:
        me, headers = await _open(client, "alice")
        target = (await client.get(f"/api/v1/accounts/{me}", headers=headers)).json()["data"]
        resp = await client.post("/api/v1/purchases", json=_body(target), headers=headers)
        assert resp.status_code == 422
        assert resp.json()["data"]["reason"] == "CANNOT_BUY_SELF"

    async def test_requires_token(self, client: AsyncClient, store) -> None:
        resp = await client.post("/api/v1/purchases", json={})
        assert resp.status_code == 401

    async def test_malformed_body(self, client: AsyncClient, store) -> None:
        resp = await client.post(
            "/api/v1/purchases",
            json={"target_id": "t", "expected_price": -5},
            headers=_auth("someone"),
        )
        assert resp.status_code == 422

    async def test_store_busy_is_503_with_retry_after(self, client: AsyncClient, store) -> None:
        engine = AsyncMock()
        engine.purchase.side_effect = StoreBusyError()
        app.dependency_overrides[get_purchase_engine] = lambda: engine

        resp = await client.post(
            "/api/v1/purchases",
            json={
                "target_id": "t",
                "expected_price": 1,
                "expected_version": 1,
                "idempotency_key": "k",
            },
            headers=_auth("someone"),
        )

        assert resp.status_code == 503
        assert resp.headers["Retry-After"] == "1"
        assert resp.json()["code"] == 9003
