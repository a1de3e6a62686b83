"""
Configuration loader for changelog_helper.

Two configuration files are understood:

* ``~/.ollama_server/.ollama_config.json`` describes the Ollama server
  used for AI classification. :func:`load_ai_settings` validates it and
  returns an :class:`AISettings` value.
* ``.changelog.json`` in the repository root optionally provides default
  generation options. :func:`load_repo_settings` validates it and returns
  a dictionary of the keys present.

If a configuration file is malformed or has keys of the wrong type, a
:class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid "No handler" warnings or logging errors in
# environments where the root logger may be closed. Propagation is disabled
# so that messages only appear once the CLI configures logging.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


AI_CONFIG_FILENAME = ".ollama_config.json"
REPO_CONFIG_FILENAME = ".changelog.json"

OUTPUT_FORMATS = ("markdown", "json", "html")
SCHEMES = ("conventional", "category")
GROUP_BY_CHOICES = ("type", "author", "date")


class ConfigError(Exception):
    """Raised when a configuration file is missing or invalid."""

    pass


@dataclass(frozen=True)
class AISettings:
    """Connection settings for the generative classification service.

    Parameters
    ----------
    base_url : str
        Base URL of the Ollama server, e.g. ``"http://localhost"``.
    port : int
        Port number of the Ollama server, e.g. ``11434``.
    model : str
        Name of the model used for classification.
    request_timeout : float
        Timeout in seconds for a single HTTP request.
    max_tokens : int, optional
        Maximum number of tokens to generate per request.
    api_key : str, optional
        Bearer token for servers behind an authenticating proxy.
    call_delay : float
        Pause in seconds between per-commit requests.
    batch_timeout : float, optional
        Deadline in seconds for classifying a whole batch.
    max_consecutive_failures : int
        Number of failed requests in a row after which the batch is
        abandoned.
    """

    base_url: str
    port: int
    model: str
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None
    api_key: Optional[str] = None
    call_delay: float = 0.2
    batch_timeout: Optional[float] = None
    max_consecutive_failures: int = 3


def _get_config_directory() -> Path:
    """Return the directory holding the Ollama server configuration."""
    return Path.home() / ".ollama_server"


def _read_json(path: Path) -> Dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name} must contain a JSON object")
    return data


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def load_ai_settings() -> AISettings:
    """Load the Ollama configuration from the user's home directory.

    Returns
    -------
    AISettings
        The validated settings.

    Raises
    ------
    ConfigError
        If the configuration file is missing, malformed, or invalid.
    """
    config_dir = _get_config_directory()
    config_path = config_dir / AI_CONFIG_FILENAME

    if not config_path.exists():
        logger.debug("Configuration file '%s' does not exist", config_path)
        raise ConfigError(
            f"Missing Ollama configuration file: {config_path}. "
            f"Create it with 'base_url', 'port' and 'model' keys to enable AI classification."
        )

    data = _read_json(config_path)

    # Validate required keys
    required_keys = ["base_url", "port", "model"]
    missing = [key for key in required_keys if key not in data]
    if missing:
        logger.error("Configuration file missing required keys: %s", missing)
        raise ConfigError(f"Missing required configuration keys: {', '.join(missing)}")

    # Validate required key types
    if not isinstance(data.get("base_url"), str):
        raise ConfigError("'base_url' must be a string")
    if not isinstance(data.get("port"), int) or isinstance(data.get("port"), bool):
        raise ConfigError("'port' must be an integer")
    if not isinstance(data.get("model"), str) or not data["model"].strip():
        raise ConfigError("'model' must be a non-empty string")

    # Validate optional keys if present
    for key in ("request_timeout", "call_delay", "batch_timeout"):
        if key in data and not _is_number(data[key]):
            raise ConfigError(f"'{key}' must be a number")
    for key in ("max_tokens", "max_consecutive_failures"):
        if key in data and (not isinstance(data[key], int) or isinstance(data[key], bool)):
            raise ConfigError(f"'{key}' must be an integer")
    if "api_key" in data and not isinstance(data["api_key"], str):
        raise ConfigError("'api_key' must be a string")

    logger.debug("Loaded Ollama configuration from: %s", config_path)
    return AISettings(
        base_url=data["base_url"],
        port=data["port"],
        model=data["model"],
        request_timeout=float(data.get("request_timeout", 60)),
        max_tokens=data.get("max_tokens"),
        api_key=data.get("api_key") or None,
        call_delay=float(data.get("call_delay", 0.2)),
        batch_timeout=float(data["batch_timeout"]) if "batch_timeout" in data else None,
        max_consecutive_failures=max(1, data.get("max_consecutive_failures", 3)),
    )


_REPO_CHOICES = {
    "format": OUTPUT_FORMATS,
    "scheme": SCHEMES,
    "group_by": GROUP_BY_CHOICES,
}
_REPO_FLAGS = ("include_authors", "include_commit_links", "include_summary")


def load_repo_settings(repo_root: Path) -> Dict[str, Any]:
    """Load per-repository defaults from ``.changelog.json``.

    Parameters
    ----------
    repo_root : Path
        Root directory of the repository.

    Returns
    -------
    Dict[str, Any]
        The keys present in the file. An absent file yields ``{}``.

    Raises
    ------
    ConfigError
        If the file is malformed, has unknown keys, or values of the
        wrong type.
    """
    config_path = repo_root / REPO_CONFIG_FILENAME
    if not config_path.exists():
        return {}

    data = _read_json(config_path)
    known = set(_REPO_CHOICES) | set(_REPO_FLAGS) | {"repo_url"}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in {REPO_CONFIG_FILENAME}: {', '.join(unknown)}")

    for key, choices in _REPO_CHOICES.items():
        if key in data and data[key] not in choices:
            raise ConfigError(f"'{key}' must be one of: {', '.join(choices)}")
    for key in _REPO_FLAGS:
        if key in data and not isinstance(data[key], bool):
            raise ConfigError(f"'{key}' must be a boolean")
    if "repo_url" in data and not isinstance(data["repo_url"], str):
        raise ConfigError("'repo_url' must be a string")

    logger.debug("Loaded repository settings from: %s", config_path)
    return dict(data)
