"""Configuration for Ollama Bridge.

Config discovery (first match wins):
  1. explicit ``path`` argument
  2. ``./ollama_bridge.yaml``
  3. ``~/.config/ollama-bridge/config.yaml``
  4. Built-in defaults

Example::

    provider:
      base_url: http://localhost:11434
      model_id: qwen3:8b
      context_window: "16384"
      request_timeout_ms: 60000
    retry:
      max_retries: 3
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_TIMEOUT_MS = 30000


# ---------------------------------------------------------------------------
# Config data structures
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProviderConfig:
    """Connection and model settings for one Ollama endpoint.

    Every field is optional; ``None`` means "use the default".
    ``context_window`` is kept as the raw string so that an invalid value
    falls back to the default instead of failing at load time.
    """

    base_url: str | None = None
    api_key: str | None = None
    model_id: str | None = None
    context_window: str | None = None
    request_timeout_ms: int | None = None

    @property
    def timeout_ms(self) -> int:
        return self.request_timeout_ms or DEFAULT_TIMEOUT_MS


@dataclass(frozen=True)
class RetrySpec:
    """Retry settings applied around a whole streaming request."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0


@dataclass(frozen=True)
class BridgeConfig:
    """Top-level config for Ollama Bridge."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    retry: RetrySpec = field(default_factory=RetrySpec)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_SEARCH_PATHS = [
    Path("./ollama_bridge.yaml"),
    Path.home() / ".config" / "ollama-bridge" / "config.yaml",
]


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _parse_provider(raw: dict[str, Any] | None) -> ProviderConfig:
    if not raw:
        return ProviderConfig()
    timeout = raw.get("request_timeout_ms")
    return ProviderConfig(
        base_url=_optional_str(raw.get("base_url")),
        api_key=_optional_str(raw.get("api_key")),
        model_id=_optional_str(raw.get("model_id")),
        context_window=_optional_str(raw.get("context_window")),
        request_timeout_ms=int(timeout) if timeout else None,
    )


def _parse_retry(raw: dict[str, Any] | None) -> RetrySpec:
    if not raw:
        return RetrySpec()
    known = {k: v for k, v in raw.items()
             if v is not None and k in RetrySpec.__dataclass_fields__}
    return RetrySpec(**known)


def load_config(path: str | Path | None = None) -> BridgeConfig:
    """Load configuration from YAML.

    Parameters
    ----------
    path:
        Explicit config path.  If *None*, search default locations.

    Returns
    -------
    BridgeConfig
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            _logger.warning("Config file not found: %s, using defaults", path)
            return BridgeConfig()
    else:
        for candidate in _SEARCH_PATHS:
            if candidate.exists():
                config_path = candidate
                break

    if config_path is None:
        _logger.info("No config file found, using defaults")
        return BridgeConfig()

    _logger.info("Loading config from %s", config_path)
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    return BridgeConfig(
        provider=_parse_provider(raw.get("provider")),
        retry=_parse_retry(raw.get("retry")),
    )
