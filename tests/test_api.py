"""Tests for the FastAPI routes."""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from lightning_intents.api import build_router
from lightning_intents.dedup import NotificationDedupCache
from lightning_intents.notify import UserProfile, WalletInviteNotifier
from lightning_intents.resolver import AsyncLnurlPayResolver

METADATA = '[["text/plain", "Pay alice"]]'

ALICE = UserProfile(id="u1", username="alice", name="Alice", email="alice@example.com")
BOB = UserProfile(id="u2", username="bob", email="bob@example.com")


class MockLnurlTransport(httpx.AsyncBaseTransport):
    def __init__(self, well_known: dict | None = None, callback_status: int = 200):
        self.well_known = well_known or {
            "callback": "https://wallet.example/cb",
            "minSendable": 5000,
            "maxSendable": 100_000_000,
            "metadata": METADATA,
        }
        self.callback_status = callback_status
        self.callback_calls = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.startswith("/.well-known/"):
            return httpx.Response(200, json=self.well_known)
        self.callback_calls += 1
        return httpx.Response(self.callback_status, json={"pr": "lnbc5u1pexample"})


def make_client(transport=None, sender: UserProfile | None = ALICE):
    transport = transport or MockLnurlTransport()
    resolver = AsyncLnurlPayResolver(transport=transport)
    jobs: list[tuple[str, dict]] = []

    async def lookup(username: str):
        return {"bob": BOB}.get(username)

    async def enqueue(job: str, payload: dict) -> None:
        jobs.append((job, payload))

    notifier = WalletInviteNotifier(NotificationDedupCache(), lookup, enqueue)

    app = FastAPI()
    app.include_router(
        build_router(resolver, notifier, current_user=lambda: sender), prefix="/v1"
    )
    return TestClient(app), transport, jobs


class TestInvoiceRoute:
    def test_success(self):
        client, transport, _ = make_client()
        with client:
            response = client.post(
                "/v1/lightning/invoice",
                json={"lightningAddress": "alice@wallet.example", "amountSats": 500},
            )

        assert response.status_code == 200
        assert response.json() == {
            "invoice": "lnbc5u1pexample",
            "amountSats": 500,
            "recipientAddress": "alice@wallet.example",
            "description": "Pay alice",
            "successAction": None,
        }

    def test_out_of_range_reports_bounds(self):
        client, transport, _ = make_client()
        with client:
            response = client.post(
                "/v1/lightning/invoice",
                json={"lightningAddress": "alice@wallet.example", "amountSats": 4},
            )

        assert response.status_code == 400
        body = response.json()
        assert body["minSendable"] == 5
        assert body["maxSendable"] == 100_000
        assert transport.callback_calls == 0

    @pytest.mark.parametrize(
        "payload",
        [
            {"amountSats": 500},
            {"lightningAddress": "alice@wallet.example"},
            {"lightningAddress": "alice@wallet.example", "amountSats": 0},
            {"lightningAddress": "alice@wallet.example", "amountSats": 500.5},
            {"lightningAddress": "alice@wallet.example", "amountSats": True},
            {"lightningAddress": "alice@wallet.example", "amountSats": "500"},
            {"lightningAddress": 42, "amountSats": 500},
            {"lightningAddress": "not-an-address", "amountSats": 500},
        ],
    )
    def test_bad_input_is_400(self, payload):
        client, _, _ = make_client()
        with client:
            response = client.post("/v1/lightning/invoice", json=payload)
        assert response.status_code == 400
        assert "error" in response.json()

    @pytest.mark.parametrize("content", [b"{not json", b"[1, 2]", b""])
    def test_unparseable_body_is_400(self, content):
        client, transport, _ = make_client()
        with client:
            response = client.post(
                "/v1/lightning/invoice",
                content=content,
                headers={"Content-Type": "application/json"},
            )
        assert response.status_code == 400
        assert "error" in response.json()
        assert transport.callback_calls == 0

    def test_upstream_rejection_is_400(self):
        transport = MockLnurlTransport(well_known={"status": "ERROR", "reason": "Unknown user"})
        client, _, _ = make_client(transport)
        with client:
            response = client.post(
                "/v1/lightning/invoice",
                json={"lightningAddress": "alice@wallet.example", "amountSats": 500},
            )
        assert response.status_code == 400
        assert response.json()["error"] == "Unknown user"

    def test_callback_failure_is_500(self):
        client, _, _ = make_client(MockLnurlTransport(callback_status=503))
        with client:
            response = client.post(
                "/v1/lightning/invoice",
                json={"lightningAddress": "alice@wallet.example", "amountSats": 500},
            )
        assert response.status_code == 500


class TestNotifyRoute:
    def test_sent_then_already_notified(self):
        client, _, jobs = make_client()
        with client:
            first = client.post("/v1/wallet/notify", json={"recipientUsername": "bob"})
            second = client.post("/v1/wallet/notify", json={"recipientUsername": "bob"})

        assert first.status_code == 200
        assert first.json()["status"] == "sent"
        assert second.json()["status"] == "already_notified"
        assert len(jobs) == 1

    def test_unauthenticated(self):
        client, _, _ = make_client(sender=None)
        with client:
            response = client.post("/v1/wallet/notify", json={"recipientUsername": "bob"})
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_missing_recipient(self):
        client, _, _ = make_client()
        with client:
            response = client.post("/v1/wallet/notify", json={})
        assert response.status_code == 400

    def test_unknown_recipient(self):
        client, _, _ = make_client()
        with client:
            response = client.post("/v1/wallet/notify", json={"recipientUsername": "zed"})
        assert response.status_code == 404

    def test_missing_recipient_reported_before_authentication(self):
        client, _, _ = make_client(sender=None)
        with client:
            response = client.post("/v1/wallet/notify", json={})
        assert response.status_code == 400

    def test_unparseable_body_is_400(self):
        client, _, jobs = make_client()
        with client:
            response = client.post(
                "/v1/wallet/notify",
                content=b"{not json",
                headers={"Content-Type": "application/json"},
            )
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert jobs == []
