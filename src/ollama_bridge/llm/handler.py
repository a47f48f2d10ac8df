"""Ollama chat handler: request lifecycle from launch to canonical events.

Usage::

    handler = OllamaHandler(ProviderConfig(model_id="qwen3:8b"))
    async for event in handler.create_message(system_prompt, messages):
        ...

``stream_message()`` is a single attempt.  ``create_message()`` is the
same call wrapped by ``with_retry`` with ``retry_all_errors`` set.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from contextlib import aclosing
from typing import Any, AsyncIterator, Iterable

import httpx

from ollama_bridge.config import DEFAULT_BASE_URL, BridgeConfig, ProviderConfig, RetrySpec
from ollama_bridge.errors import ClientConnectionError, ErrorClassifier, RequestTimeoutError
from ollama_bridge.types import CanonicalEvent, ModelDescriptor

from .client import ChatStream, OllamaClient
from .model_info import model_info_for, parse_context_window
from .retry import RetryPolicy, with_retry
from .stream import translate_stream
from .transform import convert_to_ollama_messages

_logger = logging.getLogger(__name__)


class OllamaHandler:
    """Streams chat completions from one Ollama endpoint.

    Parameters
    ----------
    config:
        Provider settings; never mutated.
    retry:
        Retry settings used by ``create_message()``.
    transport:
        Optional httpx transport for the client (tests, proxies).
    """

    def __init__(
        self,
        config: ProviderConfig,
        retry: RetrySpec | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: OllamaClient | None = None
        self._client_lock = threading.Lock()
        self._classifier = ErrorClassifier(config.timeout_ms)

        retry = retry or RetrySpec()
        self._retry_policy = RetryPolicy(
            max_retries=retry.max_retries,
            base_delay=retry.base_delay,
            max_delay=retry.max_delay,
            retry_all_errors=True,
        )

    @classmethod
    def from_config(cls, config: BridgeConfig, **kwargs: Any) -> OllamaHandler:
        return cls(config.provider, retry=config.retry, **kwargs)

    @property
    def config(self) -> ProviderConfig:
        return self._config

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def ensure_client(self) -> OllamaClient:
        """Return the cached client, creating it on first use."""
        if self._client is not None:
            return self._client
        with self._client_lock:
            if self._client is None:
                headers: dict[str, str] = {}
                if self._config.api_key:
                    headers["Authorization"] = f"Bearer {self._config.api_key}"
                try:
                    self._client = OllamaClient(
                        host=self._config.base_url or DEFAULT_BASE_URL,
                        headers=headers,
                        transport=self._transport,
                    )
                except Exception as e:
                    raise ClientConnectionError(
                        f"Error creating Ollama client: {e}",
                    ) from e
                _logger.debug("Created Ollama client for %s", self._client.host)
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> OllamaHandler:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Model
    # ------------------------------------------------------------------

    def get_model(self) -> ModelDescriptor:
        """Configured model id (``""`` if unset) and its metadata."""
        return ModelDescriptor(
            id=self._config.model_id or "",
            info=model_info_for(self._config.context_window),
        )

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    def build_payload(
        self,
        system_prompt: str,
        messages: Iterable[dict[str, Any]],
    ) -> dict[str, Any]:
        ollama_messages = [
            {"role": "system", "content": system_prompt},
            *convert_to_ollama_messages(messages),
        ]
        return {
            "model": self.get_model().id,
            "messages": ollama_messages,
            "stream": True,
            "options": {
                "num_ctx": parse_context_window(self._config.context_window),
            },
        }

    async def launch(
        self,
        system_prompt: str,
        messages: Iterable[dict[str, Any]],
    ) -> ChatStream:
        """Open the chat stream, or fail with ``RequestTimeoutError``.

        The request races a ``request_timeout_ms`` timer.  If the timer
        wins, the in-flight request is cancelled and its connection closed.
        """
        client = self.ensure_client()
        payload = self.build_payload(system_prompt, messages)
        timeout_ms = self._config.timeout_ms

        try:
            return await asyncio.wait_for(
                client.chat_stream(payload), timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            _logger.warning("Ollama request exceeded %d ms, cancelled", timeout_ms)
            raise RequestTimeoutError(timeout_ms) from e

    async def stream_message(
        self,
        system_prompt: str,
        messages: Iterable[dict[str, Any]],
    ) -> AsyncIterator[CanonicalEvent]:
        """One attempt: launch, translate, classify failures."""
        try:
            stream = await self.launch(system_prompt, messages)
            async with aclosing(translate_stream(stream)) as events:
                async for event in events:
                    yield event
        except Exception as e:
            classified = self._classifier.classify(e)
            if classified is e:
                raise
            raise classified from e

    def create_message(
        self,
        system_prompt: str,
        messages: Iterable[dict[str, Any]],
    ) -> AsyncIterator[CanonicalEvent]:
        """``stream_message()`` under the handler's retry policy."""
        messages = list(messages)
        return with_retry(self.stream_message, self._retry_policy)(
            system_prompt, messages,
        )
