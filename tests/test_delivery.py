"""Tests for webhook delivery."""

import asyncio
import json

import httpx
import pytest
from structlog.testing import capture_logs

from buildnotifier.core.exceptions import DeliveryTimeoutError, DeliveryTransportError
from buildnotifier.delivery.client import WebhookClient, encode_payload

URL = "https://hooks.example.com/build"


def test_payload_is_a_json_string_scalar() -> None:
    payload = encode_payload('Build "b-1" succeeded\n')

    assert payload == b'"Build \\"b-1\\" succeeded\\n"'
    assert json.loads(payload) == 'Build "b-1" succeeded\n'


@pytest.mark.asyncio
async def test_posts_json_string_with_fixed_headers(webhook_factory, transport_factory) -> None:
    transport = transport_factory(200)
    client = webhook_factory(transport)

    outcome = await client.deliver(URL, "Build b-1 succeeded")

    assert outcome.ok
    assert outcome.status_code == 200
    assert len(transport.requests) == 1
    request = transport.requests[0]
    assert request.method == "POST"
    assert str(request.url) == URL
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["User-Agent"] == "BuildNotifier/test (http)"
    assert request.content == b'"Build b-1 succeeded"'


@pytest.mark.asyncio
async def test_non_ok_response_is_returned_and_logged(webhook_factory, transport_factory) -> None:
    client = webhook_factory(transport_factory(500))

    with capture_logs() as logs:
        outcome = await client.deliver(URL, "hello", build_id="b-1")

    assert not outcome.ok
    assert outcome.status_code == 500
    warnings = [entry for entry in logs if entry["log_level"] == "warning"]
    assert warnings and warnings[0]["event"] == "Got a non-OK response"
    assert warnings[0]["status_code"] == 500


@pytest.mark.asyncio
async def test_connection_failure_raises_transport_error(webhook_factory) -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = webhook_factory(refuse)

    with pytest.raises(DeliveryTransportError) as exc_info:
        await client.deliver(URL, "hello", build_id="b-1")

    assert exc_info.value.stage == "deliver"
    assert exc_info.value.build_id == "b-1"
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
async def test_httpx_timeout_raises_timeout_error(webhook_factory) -> None:
    def slow(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = webhook_factory(slow)

    with pytest.raises(DeliveryTimeoutError):
        await client.deliver(URL, "hello")


@pytest.mark.asyncio
async def test_caller_deadline_aborts_request(webhook_factory) -> None:
    async def hang(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(10)
        return httpx.Response(200)

    client = webhook_factory(hang)

    with pytest.raises(DeliveryTimeoutError):
        await client.deliver(URL, "hello", timeout=0.05)


@pytest.mark.asyncio
async def test_cancellation_propagates(webhook_factory) -> None:
    started = asyncio.Event()

    async def hang(request: httpx.Request) -> httpx.Response:
        started.set()
        await asyncio.sleep(10)
        return httpx.Response(200)

    client = webhook_factory(hang)
    task = asyncio.create_task(client.deliver(URL, "hello"))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_default_headers_come_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_VERSION", "9.9.9")
    client = WebhookClient(httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(204))))

    assert client.headers["User-Agent"] == "BuildNotifier/9.9.9 (http)"
    outcome = await client.deliver(URL, "hello")
    assert outcome.ok


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open() -> None:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    client = WebhookClient(http_client)

    await client.close()

    assert not http_client.is_closed
    await http_client.aclose()
