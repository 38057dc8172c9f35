"""Tests for fetching and parsing the remote sensor state."""

from __future__ import annotations

import asyncio
import json
from typing import Callable

import httpx
import pytest

from models.readings import DEFAULT_READING, SensorReading
from services.exceptions import NetworkFailure, ParseFailure, ServerError
from services.sensor_client import SensorSyncClient, parse_reading

BASE_URL = "https://sensor.test"


def _fetch(handler: Callable, timeout: float = 10.0) -> SensorReading:
    async def run() -> SensorReading:
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(base_url=BASE_URL, transport=transport) as http:
            return await SensorSyncClient(http, timeout=timeout).fetch()

    return asyncio.run(run())


def test_fetch_returns_reading() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"valor_unidade": 72.5, "situacao_atual": "Healthy"})

    reading = _fetch(handler)

    assert reading == SensorReading(moisture_percent=72.5, status_text="Healthy")
    assert len(requests) == 1
    assert requests[0].method == "GET"
    assert str(requests[0].url) == f"{BASE_URL}/"


def test_fetch_missing_moisture_falls_back_to_default() -> None:
    reading = _fetch(lambda request: httpx.Response(200, json={"situacao_atual": "Unknown"}))

    assert reading.moisture_percent == 35.0
    assert reading.status_text == "Unknown"


def test_fetch_empty_object_uses_defaults() -> None:
    reading = _fetch(lambda request: httpx.Response(200, json={}))

    assert reading == DEFAULT_READING


def test_fetch_integer_moisture_is_converted_to_float() -> None:
    reading = _fetch(lambda request: httpx.Response(200, json={"valor_unidade": 40}))

    assert reading.moisture_percent == 40.0
    assert isinstance(reading.moisture_percent, float)


@pytest.mark.parametrize("raw", ["72", None, True, [1], {"v": 1}])
def test_parse_reading_malformed_moisture_falls_back(raw) -> None:
    reading = parse_reading({"valor_unidade": raw, "situacao_atual": "ok"})

    assert reading.moisture_percent == 35.0
    assert reading.status_text == "ok"


def test_parse_reading_non_finite_moisture_falls_back() -> None:
    assert parse_reading({"valor_unidade": float("nan")}).moisture_percent == 35.0
    assert parse_reading({"valor_unidade": float("inf")}).moisture_percent == 35.0


def test_parse_reading_non_string_status_falls_back() -> None:
    assert parse_reading({"situacao_atual": 3}).status_text == "Monitoring"


def test_parse_reading_keeps_out_of_range_values() -> None:
    assert parse_reading({"valor_unidade": 150}).moisture_percent == 150.0


def test_fetch_malformed_json_raises_parse_failure() -> None:
    handler = lambda request: httpx.Response(200, content=b"{not json")  # noqa: E731

    with pytest.raises(ParseFailure):
        _fetch(handler)


def test_fetch_json_array_raises_parse_failure() -> None:
    handler = lambda request: httpx.Response(200, content=json.dumps([1, 2]).encode())  # noqa: E731

    with pytest.raises(ParseFailure):
        _fetch(handler)


def test_fetch_server_error_carries_status_code() -> None:
    with pytest.raises(ServerError) as excinfo:
        _fetch(lambda request: httpx.Response(500))

    assert excinfo.value.status_code == 500
    assert excinfo.value.reason == "server_error"


def test_fetch_non_200_success_status_is_server_error() -> None:
    with pytest.raises(ServerError) as excinfo:
        _fetch(lambda request: httpx.Response(204))

    assert excinfo.value.status_code == 204


def test_fetch_transport_error_raises_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkFailure):
        _fetch(handler)


def test_fetch_transport_timeout_raises_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(NetworkFailure):
        _fetch(handler)


def test_fetch_exceeding_timeout_raises_network_failure() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={"valor_unidade": 10})

    with pytest.raises(NetworkFailure) as excinfo:
        _fetch(handler, timeout=0.05)

    assert excinfo.value.reason == "network_failure"
