"""Testes HTTP dos endpoints de webhook do Chatwoot."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.app import create_app
from config.settings import WebhookSecuritySettings
from tests.fakes import payloads
from tests.fakes.clock import FakeClock
from tests.fakes.collaborators import FakeChatClient, FakeCrmClient
from tests.fakes.pipeline import MemoryPipeline, build_memory_pipeline


@pytest.fixture
def memory(clock: FakeClock, crm: FakeCrmClient, chat: FakeChatClient) -> MemoryPipeline:
    return build_memory_pipeline(clock, crm, chat)


@pytest.fixture
def client(memory: MemoryPipeline) -> TestClient:
    return TestClient(create_app(memory.pipeline, start_workers=False))


def _post(
    client: TestClient,
    clock: FakeClock,
    payload: dict[str, Any] | None = None,
    *,
    path: str = "/webhooks/chatwoot",
    body: bytes | None = None,
    timestamp: int | None = None,
    signed_body: bytes | None = None,
    extra_headers: dict[str, str] | None = None,
):
    raw = body if body is not None else payloads.encode(payload or {})
    ts = int(clock()) if timestamp is None else timestamp
    headers = payloads.signed_headers(signed_body if signed_body is not None else raw, ts)
    headers.pop("Content-Length")
    headers.update(extra_headers or {})
    return client.post(path, content=raw, headers=headers)


class TestScenarios:
    def test_accepts_then_reports_duplicate(self, client: TestClient, clock: FakeClock) -> None:
        payload = payloads.conversation_created(conversation_id=1)

        first = _post(client, clock, payload)
        second = _post(client, clock, payload)

        assert first.status_code == 200
        assert first.json()["processing_status"] == "queued"
        assert first.json()["webhook_id"] == "1"
        assert first.json()["estimated_processing_time_seconds"] == 5
        assert second.status_code == 200
        assert second.json()["status"] == "duplicate"
        assert second.json()["message"] == "Already processed"

    def test_signature_over_other_payload(self, client: TestClient, clock: FakeClock) -> None:
        response = _post(
            client,
            clock,
            payloads.conversation_created(conversation_id=1),
            signed_body=payloads.encode(payloads.conversation_created(conversation_id=2)),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "INVALID_SIGNATURE"
        assert response.json()["success"] is False

    def test_expired_timestamp(self, client: TestClient, clock: FakeClock) -> None:
        response = _post(
            client, clock, payloads.conversation_created(), timestamp=int(clock()) - 400
        )

        assert response.status_code == 401
        assert response.json()["error_code"] == "TIMESTAMP_EXPIRED"

    def test_oversized_body_skips_signature(
        self,
        clock: FakeClock,
        crm: FakeCrmClient,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        verify = MagicMock()
        monkeypatch.setattr("app.use_cases.webhooks.intake.verify_signature", verify)
        memory = build_memory_pipeline(
            clock,
            crm,
            webhook_settings=WebhookSecuritySettings(
                webhook_secret=payloads.SECRET, max_payload_bytes=1024 * 1024
            ),
        )
        client = TestClient(create_app(memory.pipeline, start_workers=False))
        payload = payloads.conversation_created()
        payload["padding"] = "x" * (2 * 1024 * 1024)

        response = _post(client, clock, payload)

        assert response.status_code == 413
        assert response.json()["error_code"] == "PAYLOAD_TOO_LARGE"
        assert response.json()["max_size_bytes"] == 1024 * 1024
        assert verify.call_count == 0

    @pytest.mark.parametrize(
        ("declared", "max_chunks_read"),
        [(True, 1), (False, 17)],
    )
    def test_streamed_oversized_body_is_not_buffered(
        self, memory: MemoryPipeline, declared: bool, max_chunks_read: int
    ) -> None:
        app = create_app(memory.pipeline, start_workers=False)
        chunk = b"x" * (64 * 1024)
        total = 64
        consumed = 0
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            nonlocal consumed
            consumed += 1
            return {"type": "http.request", "body": chunk, "more_body": consumed < total}

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        headers = [(b"content-type", b"application/json")]
        if declared:
            headers.append((b"content-length", str(total * len(chunk)).encode()))
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "path": "/webhooks/chatwoot",
            "raw_path": b"/webhooks/chatwoot",
            "root_path": "",
            "query_string": b"",
            "headers": headers,
            "client": ("8.8.8.8", 40000),
            "server": ("testserver", 80),
        }

        asyncio.run(app(scope, receive, send))

        assert sent[0]["type"] == "http.response.start"
        assert sent[0]["status"] == 413
        assert consumed <= max_chunks_read


class TestRouting:
    def test_event_specific_route(self, client: TestClient, clock: FakeClock) -> None:
        response = _post(
            client, clock, payloads.message_created(), path="/webhooks/chatwoot/message-created"
        )

        assert response.status_code == 200

    def test_event_specific_route_rejects_other_events(
        self, client: TestClient, clock: FakeClock
    ) -> None:
        response = _post(
            client,
            clock,
            payloads.message_created(),
            path="/webhooks/chatwoot/conversation-created",
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"
        assert "event" in response.json()["details"]

    def test_rejection_carries_retry_after_header(
        self, client: TestClient, clock: FakeClock, memory: MemoryPipeline
    ) -> None:
        asyncio.run(memory.pipeline.monitor.block("testclient", reason="test"))

        response = _post(client, clock, payloads.conversation_created())

        assert response.status_code == 403
        assert response.json()["error_code"] == "IP_BLOCKED"
        assert response.headers["Retry-After"] == "3600"

    def test_correlation_id_is_echoed(self, client: TestClient, clock: FakeClock) -> None:
        response = _post(
            client,
            clock,
            payloads.conversation_created(),
            extra_headers={"X-Correlation-ID": "req-123"},
        )

        assert response.headers["X-Correlation-ID"] == "req-123"
        assert "timestamp" in response.json()


class TestEndToEnd:
    def test_worker_syncs_accepted_event(
        self,
        client: TestClient,
        clock: FakeClock,
        crm: FakeCrmClient,
        memory: MemoryPipeline,
    ) -> None:
        _post(client, clock, payloads.conversation_created(conversation_id=1))
        clock.advance(2)

        job = asyncio.run(memory.pipeline.worker_pool.run_once())

        assert str(job.status) == "completed"
        assert len(crm.leads) == 1
        status = client.get("/webhooks/chatwoot/status", params={"webhook_id": "1"})
        assert status.json()["processed"] is True
        assert status.json()["status"] == "completed"


class TestAuxiliaryEndpoints:
    def test_test_endpoint(self, client: TestClient) -> None:
        response = client.get("/webhooks/chatwoot/test")

        assert response.status_code == 200
        assert response.json()["message"] == "Webhook endpoint is working"
        assert response.json()["ip"] == "testclient"

    def test_status_requires_id(self, client: TestClient) -> None:
        response = client.get("/webhooks/chatwoot/status")

        assert response.status_code == 400
        assert response.json()["error_code"] == "WEBHOOK_ID_REQUIRED"

    def test_status_of_unknown_id(self, client: TestClient) -> None:
        response = client.get("/webhooks/chatwoot/status", params={"webhook_id": "nope"})

        assert response.status_code == 200
        assert response.json()["processed"] is False

    def test_status_is_also_served_without_platform_prefix(
        self, client: TestClient, clock: FakeClock
    ) -> None:
        _post(client, clock, payloads.conversation_created(conversation_id=7))

        response = client.get("/webhooks/status", params={"webhook_id": "7"})

        assert response.status_code == 200
        assert response.json()["processed"] is True
