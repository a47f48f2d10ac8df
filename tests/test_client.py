"""Tests for OllamaClient against an httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from ollama_bridge.errors import UpstreamError
from ollama_bridge.llm.client import OllamaClient, normalize_base_url
from ollama_bridge.types import ProviderChunk


def _ndjson(*lines: Any) -> bytes:
    return b"".join(
        (line if isinstance(line, bytes) else json.dumps(line).encode()) + b"\n"
        for line in lines
    )


class _TrackingStream(httpx.AsyncByteStream):
    def __init__(self, body: bytes) -> None:
        self._body = body
        self.closed = False

    async def __aiter__(self):
        for line in self._body.splitlines(keepends=True):
            yield line

    async def aclose(self) -> None:
        self.closed = True


class TestNormalizeBaseUrl:
    def test_plain(self):
        assert normalize_base_url("http://localhost:11434") == "http://localhost:11434"

    def test_trailing_slash_and_v1(self):
        assert normalize_base_url("http://localhost:11434/v1/") == "http://localhost:11434"


class TestChatStream:
    async def test_posts_payload_and_yields_chunks(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=_ndjson(
                {"message": {"content": "Hi"}, "done": False},
                {"message": {"content": ""}, "done": True, "eval_count": 2, "prompt_eval_count": 3},
            ))

        client = OllamaClient("http://ollama.test", transport=httpx.MockTransport(handler))
        payload = {"model": "m", "messages": [], "stream": True, "options": {"num_ctx": 32768}}
        stream = await client.chat_stream(payload)
        chunks = [c async for c in stream]

        assert seen[0].url.path == "/api/chat"
        assert json.loads(seen[0].content) == payload
        assert chunks[0] == ProviderChunk(content="Hi")
        assert chunks[1].done is True
        assert chunks[1].eval_count == 2
        await client.close()

    async def test_custom_headers_sent(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"")

        client = OllamaClient(
            "http://ollama.test",
            headers={"Authorization": "Bearer k"},
            transport=httpx.MockTransport(handler),
        )
        stream = await client.chat_stream({"model": "m", "messages": []})
        assert [c async for c in stream] == []
        assert seen[0].headers["Authorization"] == "Bearer k"
        await client.close()

    async def test_skips_blank_and_invalid_lines(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_ndjson(
                b"", b"not json", {"message": {"content": "ok"}},
            ))

        client = OllamaClient("http://ollama.test", transport=httpx.MockTransport(handler))
        stream = await client.chat_stream({})
        assert [c.content async for c in stream] == ["ok"]
        await client.close()

    async def test_skips_non_object_lines(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_ndjson(
                [1], "x", {"message": {"content": "hi"}, "done": True},
            ))

        client = OllamaClient("http://ollama.test", transport=httpx.MockTransport(handler))
        stream = await client.chat_stream({})
        assert [c.content async for c in stream] == ["hi"]
        await client.close()

    async def test_error_status_raises_upstream_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                404, json={"error": "model 'ghost' not found"},
                headers={"Retry-After": "3"},
            )

        client = OllamaClient("http://ollama.test", transport=httpx.MockTransport(handler))
        with pytest.raises(UpstreamError) as exc_info:
            await client.chat_stream({"model": "ghost"})

        assert exc_info.value.status_code == 404
        assert exc_info.value.retry_after == "3"
        assert "model 'ghost' not found" in str(exc_info.value)
        await client.close()

    async def test_in_band_error_raised_during_iteration(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_ndjson(
                {"message": {"content": "a"}},
                {"error": "llama runner process has terminated"},
            ))

        client = OllamaClient("http://ollama.test", transport=httpx.MockTransport(handler))
        stream = await client.chat_stream({})
        received = []
        with pytest.raises(UpstreamError, match="llama runner"):
            async for chunk in stream:
                received.append(chunk.content)
        assert received == ["a"]
        await client.close()

    async def test_response_closed_after_exhaustion(self):
        body = _TrackingStream(_ndjson({"message": {"content": "x"}, "done": True}))

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, stream=body)

        client = OllamaClient("http://ollama.test", transport=httpx.MockTransport(handler))
        stream = await client.chat_stream({})
        assert [c.content async for c in stream] == ["x"]
        assert body.closed
        await client.close()
