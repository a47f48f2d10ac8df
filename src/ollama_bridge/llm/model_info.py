"""Default model metadata and context-window parsing."""

from __future__ import annotations

from dataclasses import replace

from ollama_bridge.types import ModelInfo

# Fallback num_ctx when no usable override is configured
DEFAULT_CONTEXT_WINDOW = 32768

# Local models have no pricing and an unknown output cap
OPENAI_MODEL_INFO_SANE_DEFAULTS = ModelInfo(
    max_tokens=-1,
    context_window=DEFAULT_CONTEXT_WINDOW,
    supports_images=True,
    supports_prompt_cache=False,
    input_price=0.0,
    output_price=0.0,
)


def parse_context_window(value: str | int | None) -> int:
    """Parse a context-window override.

    Returns ``DEFAULT_CONTEXT_WINDOW`` for ``None``, non-numeric strings and
    values that parse to zero.
    """
    if value is None or isinstance(value, bool):
        return DEFAULT_CONTEXT_WINDOW
    try:
        parsed = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return DEFAULT_CONTEXT_WINDOW
    return parsed or DEFAULT_CONTEXT_WINDOW


def model_info_for(context_window: str | None) -> ModelInfo:
    """Return the default model info, with ``context_window`` overridden if set."""
    if not context_window:
        return OPENAI_MODEL_INFO_SANE_DEFAULTS
    return replace(
        OPENAI_MODEL_INFO_SANE_DEFAULTS,
        context_window=parse_context_window(context_window),
    )
