"""Ollama Bridge: Ollama native chat streams as canonical token events."""

from ollama_bridge.config import BridgeConfig, ProviderConfig, RetrySpec, load_config
from ollama_bridge.errors import (
    ClientConnectionError,
    ErrorClassifier,
    OllamaBridgeError,
    RequestTimeoutError,
    StreamProcessingError,
    UpstreamError,
)
from ollama_bridge.llm.handler import OllamaHandler
from ollama_bridge.types import (
    CanonicalEvent,
    ModelDescriptor,
    ModelInfo,
    ProviderChunk,
    TextDelta,
    UsageUpdate,
)

__version__ = "0.1.0"

__all__ = [
    "BridgeConfig",
    "CanonicalEvent",
    "ClientConnectionError",
    "ErrorClassifier",
    "ModelDescriptor",
    "ModelInfo",
    "OllamaBridgeError",
    "OllamaHandler",
    "ProviderChunk",
    "ProviderConfig",
    "RequestTimeoutError",
    "RetrySpec",
    "StreamProcessingError",
    "TextDelta",
    "UpstreamError",
    "UsageUpdate",
    "load_config",
]
