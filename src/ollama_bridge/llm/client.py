"""Async client for the Ollama native chat API (``/api/chat``).

Uses ``httpx.AsyncClient``.  ``chat_stream()`` returns once the response
headers have arrived and the status has been checked; the returned
``ChatStream`` then yields one ``ProviderChunk`` per NDJSON line.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

import httpx

from ollama_bridge.errors import UpstreamError
from ollama_bridge.types import ProviderChunk

_logger = logging.getLogger(__name__)


def normalize_base_url(url: str) -> str:
    """Strip a trailing slash and an OpenAI-compat ``/v1`` suffix."""
    return url.rstrip("/").removesuffix("/v1")


class ChatStream:
    """A live ``/api/chat`` response, iterated once.

    The underlying HTTP response is closed when the stream is exhausted,
    when iteration raises, or when ``aclose()`` is called.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def __aiter__(self) -> AsyncIterator[ProviderChunk]:
        return self._iter_chunks()

    async def _iter_chunks(self) -> AsyncIterator[ProviderChunk]:
        try:
            async for line in self._response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    _logger.debug("Skipping non-JSON stream line: %r", line[:200])
                    continue
                if not isinstance(data, dict):
                    _logger.debug("Skipping non-object stream line: %r", line[:200])
                    continue
                chunk = ProviderChunk.from_json(data)
                if chunk.error is not None:
                    raise UpstreamError(chunk.error)
                yield chunk
                if chunk.done:
                    break
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        await self._response.aclose()


class OllamaClient:
    """Thin async wrapper over the Ollama HTTP API."""

    def __init__(
        self,
        host: str,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.host = normalize_base_url(host)
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        # The handler races the launch against its own timer; reads between
        # stream lines may be slow for large models.
        self._client = httpx.AsyncClient(
            base_url=self.host,
            headers=self.headers,
            timeout=httpx.Timeout(None, connect=30, read=300),
            transport=transport,
        )

    async def chat_stream(self, payload: dict[str, Any]) -> ChatStream:
        """POST *payload* to ``/api/chat`` and return the open stream.

        Raises ``UpstreamError`` for a non-2xx status and lets httpx
        transport errors propagate.
        """
        request = self._client.build_request("POST", "/api/chat", json=payload)
        _logger.debug(
            "POST %s/api/chat model=%s messages=%d",
            self.host, payload.get("model"), len(payload.get("messages", [])),
        )
        response = await self._client.send(request, stream=True)
        if response.is_success:
            return ChatStream(response)

        try:
            body = (await response.aread()).decode(errors="replace")
        finally:
            await response.aclose()
        raise UpstreamError(
            _error_detail(body) or response.reason_phrase,
            status_code=response.status_code,
            retry_after=response.headers.get("retry-after"),
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


def _error_detail(body: str) -> str:
    """Pull the ``error`` field out of an Ollama error body."""
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return body.strip()
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return body.strip()
