"""Shared data types for Ollama Bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Union


# ---------------------------------------------------------------------------
# Canonical events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TextDelta:
    """A piece of generated text."""

    text: str
    type: Literal["text"] = "text"


@dataclass(frozen=True)
class UsageUpdate:
    """Token counts reported by the provider."""

    input_tokens: int = 0
    output_tokens: int = 0
    type: Literal["usage"] = "usage"


CanonicalEvent = Union[TextDelta, UsageUpdate]


# ---------------------------------------------------------------------------
# Provider chunk
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProviderChunk:
    """One line of an Ollama ``/api/chat`` stream.

    Every field is optional: intermediate lines usually carry only
    ``message.content`` while the final ``done`` line carries the token
    counts.
    """

    content: str | None = None
    eval_count: int | None = None
    prompt_eval_count: int | None = None
    done: bool = False
    done_reason: str | None = None
    model: str | None = None
    error: str | None = None

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> ProviderChunk:
        """Build a chunk from a decoded NDJSON line."""
        message = data.get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        error = data.get("error")
        return cls(
            content=content if isinstance(content, str) else None,
            eval_count=data.get("eval_count"),
            prompt_eval_count=data.get("prompt_eval_count"),
            done=bool(data.get("done", False)),
            done_reason=data.get("done_reason"),
            model=data.get("model"),
            error=str(error) if error is not None else None,
        )


# ---------------------------------------------------------------------------
# Model metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelInfo:
    """Capabilities and pricing of a model."""

    max_tokens: int = -1
    context_window: int = 32768
    supports_images: bool = True
    supports_prompt_cache: bool = False
    input_price: float = 0.0
    output_price: float = 0.0


@dataclass(frozen=True)
class ModelDescriptor:
    """Resolved model id plus its metadata.

    An empty ``id`` means no model is configured; callers decide what to
    do with that.
    """

    id: str
    info: ModelInfo
