"""Tests for push token acquisition, delivery and the foreground listener."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Callable, List, Optional

import httpx
import pytest

from models.readings import RegistrationToken
from services.exceptions import AcquireError, DeliveryError
from services.push import LocalPushPlatform, PushMessage
from services.registration import RegistrationClient

BASE_URL = "https://sensor.test"


class FailingPlatform(LocalPushPlatform):
    async def get_token(self) -> Optional[str]:
        raise RuntimeError("platform unavailable")


class EmptyTokenPlatform(LocalPushPlatform):
    async def get_token(self) -> Optional[str]:
        return None


def _run(
    handler: Callable,
    action: Callable,
    platform: Optional[LocalPushPlatform] = None,
    timeout: float = 10.0,
):
    async def run():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as http:
            client = RegistrationClient(http, platform or LocalPushPlatform(token="token-abc"), timeout=timeout)
            return await action(client)

    return asyncio.run(run())


def _unreachable(request: httpx.Request) -> httpx.Response:  # pragma: no cover - must not be called
    raise AssertionError("No request expected")


def test_acquire_token_returns_configured_token() -> None:
    token = _run(_unreachable, lambda client: client.acquire_token())

    assert token == "token-abc"


def test_local_platform_issues_stable_random_token() -> None:
    platform = LocalPushPlatform()

    async def run() -> tuple[Optional[str], Optional[str]]:
        return await platform.get_token(), await platform.get_token()

    first, second = asyncio.run(run())

    assert first
    assert first == second


def test_acquire_token_tolerates_permission_denial(caplog) -> None:
    platform = LocalPushPlatform(token="token-abc", permission_granted=False)

    with caplog.at_level(logging.WARNING, logger="services.registration"):
        token = _run(_unreachable, lambda client: client.acquire_token(), platform=platform)

    assert token == "token-abc"
    assert any("permission was denied" in record.getMessage() for record in caplog.records)


def test_acquire_token_without_token_raises() -> None:
    with pytest.raises(AcquireError):
        _run(_unreachable, lambda client: client.acquire_token(), platform=EmptyTokenPlatform())


def test_acquire_token_platform_failure_raises() -> None:
    with pytest.raises(AcquireError) as excinfo:
        _run(_unreachable, lambda client: client.acquire_token(), platform=FailingPlatform())

    assert "platform unavailable" in str(excinfo.value)


def test_deliver_token_posts_json_body() -> None:
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201)

    _run(handler, lambda client: client.deliver_token("token-abc"))

    assert len(requests) == 1
    request = requests[0]
    assert request.method == "POST"
    assert request.url.path == "/fcm"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {"fcmToken": "token-abc"}


@pytest.mark.parametrize("status_code", [400, 404, 500, 202])
def test_deliver_token_rejected_status_raises(status_code: int) -> None:
    with pytest.raises(DeliveryError) as excinfo:
        _run(lambda request: httpx.Response(status_code), lambda client: client.deliver_token("t"))

    assert excinfo.value.status_code == status_code


def test_deliver_token_transport_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(DeliveryError) as excinfo:
        _run(handler, lambda client: client.deliver_token("t"))

    assert excinfo.value.status_code is None


def test_deliver_token_timeout_raises() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    with pytest.raises(DeliveryError):
        _run(handler, lambda client: client.deliver_token("t"), timeout=0.05)


def test_register_marks_token_delivered_on_created() -> None:
    acquired: List[RegistrationToken] = []

    token = _run(
        lambda request: httpx.Response(201),
        lambda client: client.register(on_acquired=acquired.append),
    )

    assert acquired == [RegistrationToken(value="token-abc", delivered_to_backend=False)]
    assert token == RegistrationToken(value="token-abc", delivered_to_backend=True)


def test_register_keeps_token_undelivered_on_bad_request(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="services.registration"):
        token = _run(lambda request: httpx.Response(400), lambda client: client.register())

    assert token == RegistrationToken(value="token-abc", delivered_to_backend=False)
    records = [record for record in caplog.records if record.name == "services.registration"]
    assert any(getattr(record, "status_code", None) == 400 for record in records)
    assert any(getattr(record, "token_preview", None) == "token-ab..." for record in records)


def test_register_returns_none_when_acquire_fails() -> None:
    calls: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    token = _run(handler, lambda client: client.register(), platform=EmptyTokenPlatform())

    assert token is None
    assert calls == []


def test_listen_logs_foreground_messages_until_unsubscribed(caplog) -> None:
    platform = LocalPushPlatform(token="token-abc")
    client = RegistrationClient(httpx.AsyncClient(base_url=BASE_URL), platform)

    with caplog.at_level(logging.INFO, logger="services.registration"):
        unsubscribe = client.listen()
        delivered = platform.deliver(PushMessage(title="Dry soil", body="Water me", data={"zone": "low"}))
        unsubscribe()
        after = platform.deliver(PushMessage(title="Ignored"))

    assert delivered == 1
    assert after == 0
    messages = [record.getMessage() for record in caplog.records]
    assert any("Dry soil" in message and "Water me" in message and "low" in message for message in messages)
    assert not any("Ignored" in message for message in messages)


def test_platform_isolates_failing_listener(caplog) -> None:
    platform = LocalPushPlatform()
    received: List[PushMessage] = []

    def broken(message: PushMessage) -> None:
        raise ValueError("boom")

    platform.on_message(broken)
    platform.on_message(received.append)

    with caplog.at_level(logging.ERROR, logger="services.push"):
        count = platform.deliver(PushMessage(title="hello"))

    assert count == 2
    assert received == [PushMessage(title="hello")]
    assert any("listener failed" in record.getMessage() for record in caplog.records)
