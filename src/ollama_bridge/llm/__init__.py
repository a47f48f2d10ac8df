"""Ollama client, stream translation and retry for Ollama Bridge."""

from ollama_bridge.llm.client import ChatStream, OllamaClient
from ollama_bridge.llm.handler import OllamaHandler
from ollama_bridge.llm.retry import RetryPolicy, with_retry
from ollama_bridge.llm.stream import translate_stream
from ollama_bridge.llm.transform import convert_to_ollama_messages

__all__ = [
    "ChatStream",
    "OllamaClient",
    "OllamaHandler",
    "RetryPolicy",
    "convert_to_ollama_messages",
    "translate_stream",
    "with_retry",
]
