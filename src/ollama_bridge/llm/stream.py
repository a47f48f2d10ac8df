"""Translate Ollama stream chunks into canonical events."""

from __future__ import annotations

import logging
from typing import AsyncIterable, AsyncIterator, Iterator

from ollama_bridge.errors import StreamProcessingError, error_message, status_code_of
from ollama_bridge.types import CanonicalEvent, ProviderChunk, TextDelta, UsageUpdate

_logger = logging.getLogger(__name__)


def chunk_events(chunk: ProviderChunk) -> Iterator[CanonicalEvent]:
    """Events for a single chunk: zero, one or two.

    Text and usage are checked independently, so a final chunk that still
    carries content produces both.
    """
    if isinstance(chunk.content, str) and chunk.content:
        yield TextDelta(text=chunk.content)

    if chunk.eval_count is not None or chunk.prompt_eval_count is not None:
        yield UsageUpdate(
            input_tokens=chunk.prompt_eval_count or 0,
            output_tokens=chunk.eval_count or 0,
        )


async def translate_stream(
    chunks: AsyncIterable[ProviderChunk],
) -> AsyncIterator[CanonicalEvent]:
    """Yield canonical events for *chunks*, in arrival order.

    A failure while pulling the next chunk ends the sequence with a
    ``StreamProcessingError``.  The source iterator is closed on every
    exit path, including a consumer that stops early.
    """
    iterator = chunks.__aiter__()
    try:
        while True:
            try:
                chunk = await iterator.__anext__()
            except StopAsyncIteration:
                return
            except Exception as e:
                _logger.error("Error processing Ollama stream: %s", e, exc_info=True)
                raise StreamProcessingError(
                    f"Ollama stream processing error: {error_message(e)}",
                    status_code=status_code_of(e),
                ) from e

            for event in chunk_events(chunk):
                yield event
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
