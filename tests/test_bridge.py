import asyncio
import json

import httpx
import pytest

from trip_planner.services.routing.bridge import (
    AIBridgeClient,
    BridgeAuthenticationError,
    BridgeError,
    BridgeQuotaError,
    BridgeUnavailableError,
    build_bridge_client,
)


def _client(handler, **kwargs) -> AIBridgeClient:
    options = {"max_retries": 3, "backoff_seconds": 0.0, "timeout": 5.0}
    options.update(kwargs)
    return AIBridgeClient(
        base_url="http://bridge.test/",
        api_key="secret",
        transport=httpx.MockTransport(handler),
        **options,
    )


def _query(client: AIBridgeClient, prompt: str = "hello", system: str = "be brief") -> str:
    async def _run():
        async with client:
            return await client.query(prompt, system)

    return asyncio.run(_run())


def test_query_posts_prompt_and_returns_text():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True, "text": "15 mins"})

    assert _query(_client(handler)) == "15 mins"

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "http://bridge.test/api/plan"
    assert request.headers["Authorization"] == "Bearer secret"
    assert json.loads(request.content) == {"prompt": "hello", "system": "be brief"}


def test_reconnects_after_transport_failure():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        if len(attempts) < 3:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"ok": True, "text": "done"})

    assert _query(_client(handler)) == "done"
    assert len(attempts) == 3


def test_gives_up_after_bounded_retries():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ReadTimeout("too slow", request=request)

    with pytest.raises(BridgeUnavailableError):
        _query(_client(handler, max_retries=2))
    assert len(attempts) == 2


@pytest.mark.parametrize(
    "error_cls",
    [httpx.RemoteProtocolError, httpx.ProxyError, httpx.UnsupportedProtocol, httpx.DecodingError],
)
def test_any_http_failure_is_reported_as_unavailable(error_cls):
    def handler(request: httpx.Request) -> httpx.Response:
        raise error_cls("broken exchange", request=request)

    with pytest.raises(BridgeUnavailableError):
        _query(_client(handler, max_retries=2))


@pytest.mark.parametrize(
    "status, body, error_cls",
    [
        (401, {"ok": False, "error": "nope"}, BridgeAuthenticationError),
        (403, {"ok": False}, BridgeAuthenticationError),
        (429, {"ok": False}, BridgeQuotaError),
        (500, {"ok": False, "error": "Authentication error: GEMINI_API_KEY environment variable is not set"}, BridgeAuthenticationError),
        (500, {"ok": False, "error": "API quota exceeded: rate limit"}, BridgeQuotaError),
        (500, {"ok": False, "error": "Maps service unavailable: MCP server connection failed"}, BridgeUnavailableError),
        (500, {"ok": False, "error": "boom"}, BridgeUnavailableError),
        (200, {"ok": False, "error": "AI service error: bad prompt"}, BridgeError),
        (200, {"ok": True, "text": "   "}, BridgeError),
        (200, {"ok": True}, BridgeError),
    ],
)
def test_error_responses_are_classified(status, body, error_cls):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)

    with pytest.raises(error_cls):
        _query(_client(handler))


def test_non_json_body_is_a_bridge_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(BridgeError):
        _query(_client(handler))


def test_status_errors_are_not_retried():
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        return httpx.Response(503, json={"ok": False, "error": "overloaded"})

    with pytest.raises(BridgeUnavailableError):
        _query(_client(handler))
    assert len(attempts) == 1


def test_client_lifetime_is_scoped():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": True, "text": "ok"})

    client = _client(handler)

    async def _run():
        async with client:
            assert client.connected
            assert await client.check_health()
        return client.connected

    assert asyncio.run(_run()) is False


def test_health_check_reports_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"ok": False})

    client = _client(handler)

    async def _run():
        async with client:
            return await client.check_health()

    assert asyncio.run(_run()) is False


def test_health_check_reports_transport_failures():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.RemoteProtocolError("Server disconnected", request=request)

    client = _client(handler, max_retries=1)

    async def _run():
        async with client:
            return await client.check_health()

    assert asyncio.run(_run()) is False


def test_missing_base_url_is_rejected(monkeypatch):
    from trip_planner.config import settings

    monkeypatch.setattr(settings, "bridge_base_url", None)

    with pytest.raises(ValueError):
        AIBridgeClient()


def test_unconfigured_bridge_builds_nothing(monkeypatch):
    from trip_planner.config import settings

    monkeypatch.setattr(settings, "bridge_base_url", None)

    assert build_bridge_client() is None
