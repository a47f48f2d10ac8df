"""Error taxonomy and classification.

Every failure that leaves ``OllamaHandler`` is one of:

  ClientConnectionError  - the HTTP client could not be created
  RequestTimeoutError    - no response within the configured window
  StreamProcessingError  - the stream broke after it was established
  UpstreamError          - anything else Ollama reported (optional status)

Retrying is left to the caller (see ``ollama_bridge.llm.retry``).
"""

from __future__ import annotations

import logging

import httpx

_logger = logging.getLogger(__name__)

_TIMEOUT_MARKER = "timed out"


# ---------------------------------------------------------------------------
# Error types
# ---------------------------------------------------------------------------

class OllamaBridgeError(Exception):
    """Base class for all errors raised by Ollama Bridge."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ClientConnectionError(OllamaBridgeError, ConnectionError):
    """The Ollama client could not be constructed."""


class RequestTimeoutError(OllamaBridgeError, TimeoutError):
    """The request did not produce a response in time."""

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(
            f"Ollama request timed out after {format_seconds(timeout_ms)} seconds",
        )
        self.timeout_ms = timeout_ms


class StreamProcessingError(OllamaBridgeError):
    """Iterating an established stream failed."""


class UpstreamError(OllamaBridgeError):
    """Ollama answered with an error status or an in-band error line."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        retry_after: str | None = None,
    ) -> None:
        label = status_code if status_code is not None else "unknown"
        super().__init__(f"Ollama API error ({label}): {message}", status_code)
        self.retry_after = retry_after


def format_seconds(timeout_ms: int) -> str:
    """Render milliseconds as seconds without a trailing ``.0``."""
    return f"{timeout_ms / 1000:g}"


def status_code_of(error: BaseException) -> int | None:
    """Extract an HTTP status code from *error*, if it carries one."""
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None


def error_message(error: BaseException) -> str:
    return str(error) or "Unknown error"


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

class ErrorClassifier:
    """Shape a failure into the error the caller should see.

    Timeouts are normalized into a fresh ``RequestTimeoutError`` whose
    duration comes from configuration, whether the signal came from the
    launch timer or from httpx.  Everything else is logged and returned
    unchanged.
    """

    def __init__(self, timeout_ms: int) -> None:
        self._timeout_ms = timeout_ms

    def is_timeout(self, error: BaseException) -> bool:
        if isinstance(error, (RequestTimeoutError, httpx.TimeoutException)):
            return True
        return _TIMEOUT_MARKER in str(error)

    def classify(self, error: BaseException) -> BaseException:
        """Return the error to raise for *error*."""
        if self.is_timeout(error):
            return RequestTimeoutError(self._timeout_ms)

        status_code = status_code_of(error)
        _logger.error(
            "Ollama API error (%s): %s",
            status_code if status_code is not None else "unknown",
            error_message(error),
        )
        return error
