"""Async HTTP client for the AI bridge.

The bridge is a natural-language model service that may call a maps tool
internally. This module only sees the final text: ``POST <base>/api/plan``
with ``{"prompt", "system"}`` answers ``{"ok": true, "text": "..."}`` or
``{"ok": false, "error": "..."}``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx

from ...config import settings

logger = logging.getLogger(__name__)

PLAN_ENDPOINT = "/api/plan"


class BridgeError(Exception):
    """The bridge could not produce a response."""


class BridgeUnavailableError(BridgeError):
    """Network failure, timeout or server-side error."""


class BridgeAuthenticationError(BridgeError):
    """The bridge rejected our credentials or is missing its own."""


class BridgeQuotaError(BridgeError):
    """The bridge or its upstream model is rate limited."""


def _classify_message(message: str) -> type[BridgeError]:
    lowered = message.lower()
    if "api key" in lowered or "authentication" in lowered or "unauthorized" in lowered:
        return BridgeAuthenticationError
    if "quota" in lowered or "rate limit" in lowered:
        return BridgeQuotaError
    if "unavailable" in lowered or "mcp" in lowered:
        return BridgeUnavailableError
    return BridgeError


class AIBridgeClient:
    """Owns one pooled ``httpx.AsyncClient`` and reconnects it on transport failures.

    A process normally holds a single instance (see ``main.create_app``);
    callers receive it as a handle instead of reaching for module state.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.bridge_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("AI bridge base URL is not configured.")
        self.api_key = api_key if api_key is not None else settings.bridge_api_key
        self.timeout = timeout if timeout is not None else settings.bridge_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.bridge_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.bridge_backoff_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def connected(self) -> bool:
        return self._client is not None and not self._client.is_closed

    async def connect(self) -> httpx.AsyncClient:
        """Return the live client, creating it when needed."""
        if self._client is not None and not self._client.is_closed:
            return self._client
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )
        logger.info(f"Connected AI bridge client to {self.base_url}")
        return self._client

    async def _discard(self, client: httpx.AsyncClient) -> None:
        if self._client is client:
            self._client = None
        await client.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()

    async def __aenter__(self) -> "AIBridgeClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def query(self, prompt: str, system: str = "") -> str:
        """Send one prompt and return the bridge's final text."""
        payload = {"prompt": prompt, "system": system}
        attempt = 0
        while True:
            attempt += 1
            client = await self.connect()
            try:
                response = await client.post(PLAN_ENDPOINT, json=payload)
            except httpx.TransportError as exc:
                await self._discard(client)
                if attempt >= self.max_retries:
                    raise BridgeUnavailableError(
                        f"AI bridge at {self.base_url} unreachable after {attempt} attempts: {exc}"
                    ) from exc
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    f"AI bridge transport error, reconnecting in {wait_time:.1f}s "
                    f"(attempt {attempt}/{self.max_retries}): {exc}"
                )
                await asyncio.sleep(wait_time)
                continue
            except httpx.HTTPError as exc:
                raise BridgeUnavailableError(f"AI bridge request failed: {exc}") from exc
            return self._read_response(response)

    def _read_response(self, response: httpx.Response) -> str:
        if response.status_code in (401, 403):
            raise BridgeAuthenticationError(f"AI bridge rejected credentials ({response.status_code}).")
        if response.status_code == 429:
            raise BridgeQuotaError("AI bridge quota exceeded.")

        try:
            data = response.json()
        except ValueError as exc:
            raise BridgeError(f"AI bridge returned non-JSON body ({response.status_code}).") from exc

        if response.status_code >= 400 or not isinstance(data, dict) or not data.get("ok"):
            message = str((data.get("error") if isinstance(data, dict) else data) or "unknown error")
            error_cls = _classify_message(message)
            if error_cls is BridgeError and response.status_code >= 500:
                error_cls = BridgeUnavailableError
            raise error_cls(f"AI bridge error ({response.status_code}): {message}")

        text = data.get("text")
        if not isinstance(text, str) or not text.strip():
            raise BridgeError("AI bridge returned an empty response.")
        return text

    async def check_health(self) -> bool:
        """Probe the bridge with a trivial prompt."""
        try:
            await self.query("Reply with the single word: ok")
            return True
        except BridgeError as exc:
            logger.warning(f"AI bridge health check failed: {exc}")
            return False


def build_bridge_client() -> AIBridgeClient | None:
    """Create the process-wide client, or ``None`` when no bridge is configured."""
    if not settings.bridge_base_url:
        logger.warning("AI bridge not configured (missing TRIP_BRIDGE_BASE_URL); optimizations will use the fallback planner")
        return None
    return AIBridgeClient()
