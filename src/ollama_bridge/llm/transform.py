"""Convert generic chat messages into Ollama ``/api/chat`` messages.

Input messages are ``{"role": ..., "content": ...}`` mappings where
``content`` is a string or a list of content blocks:

  {"type": "text", "text": ...}
  {"type": "image", "source": {"type": "base64", "data": ...}}
  {"type": "tool_use", "name": ..., "input": {...}}
  {"type": "tool_result", "content": str | [blocks]}

Ollama only understands plain text plus a base64 ``images`` list, so
blocks are flattened.
"""

from __future__ import annotations

import json
from typing import Any, Iterable


def _text_of(content: Any) -> str:
    """Flatten tool-result content into text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [
            block.get("text", "")
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        ]
        return "\n".join(parts)
    return ""


def _image_data(block: dict[str, Any]) -> str | None:
    source = block.get("source") or {}
    if source.get("type") == "base64" and source.get("data"):
        return source["data"]
    return None


def _convert_user(blocks: list[dict[str, Any]]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []

    # Tool results go first, each as its own message
    for block in blocks:
        if block.get("type") == "tool_result":
            out.append({"role": "user", "content": _text_of(block.get("content"))})

    texts: list[str] = []
    images: list[str] = []
    for block in blocks:
        kind = block.get("type")
        if kind == "text":
            texts.append(block.get("text", ""))
        elif kind == "image":
            data = _image_data(block)
            if data:
                images.append(data)

    if texts or images:
        message: dict[str, Any] = {"role": "user", "content": "\n\n".join(texts)}
        if images:
            message["images"] = images
        out.append(message)
    return out


def _convert_assistant(blocks: list[dict[str, Any]]) -> dict[str, Any]:
    parts: list[str] = []
    for block in blocks:
        kind = block.get("type")
        if kind == "text":
            parts.append(block.get("text", ""))
        elif kind == "tool_use":
            args = json.dumps(block.get("input", {}), ensure_ascii=False)
            parts.append(f"[Tool Use: {block.get('name', '')}]\n{args}")
    return {"role": "assistant", "content": "\n\n".join(parts)}


def convert_to_ollama_messages(
    messages: Iterable[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Return the Ollama-shaped list for *messages*, preserving order."""
    result: list[dict[str, Any]] = []
    for msg in messages:
        role = msg.get("role", "user")
        content = msg.get("content", "")
        if isinstance(content, str):
            result.append({"role": role, "content": content})
            continue

        blocks = [b for b in content or [] if isinstance(b, dict)]
        if role == "assistant":
            result.append(_convert_assistant(blocks))
        else:
            result.extend(_convert_user(blocks))
    return result
