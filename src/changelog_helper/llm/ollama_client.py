"""
HTTP access to the generative text service behind AI classification.

Only the non-streaming Ollama ``/api/generate`` call is used: one prompt
in, one completion out. Every way the call can go wrong (connection
refused, timeout, non-200 status, a body that is not JSON or carries no
completion) surfaces as :class:`LLMError`. Deciding whether that is fatal
is left to the classifier.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from changelog_helper.config.loader import AISettings


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


class LLMError(Exception):
    """Raised when the generative text service cannot produce an answer."""

    pass


# Reasoning models wrap their chain of thought in one of these tags.
_THINKING_PATTERN = re.compile(
    r"<(think|thinking|thought|reasoning)>.*?</\1>",
    re.DOTALL | re.IGNORECASE,
)


def strip_thinking_tags(text: str) -> str:
    """Remove reasoning blocks such as ``<think>...</think>`` from ``text``.

    Examples
    --------
    >>> strip_thinking_tags("<think>hmm</think>Bug Fixes")
    'Bug Fixes'
    """
    return _THINKING_PATTERN.sub("", text).strip()


def _completion_text(data: Any) -> str:
    # /api/generate answers with 'response'; chat-style proxies answer
    # with 'message.content'.
    if isinstance(data, dict):
        if isinstance(data.get("response"), str):
            return data["response"]
        message = data.get("message")
        if isinstance(message, dict):
            return str(message.get("content", ""))
    raise LLMError("Unexpected response structure from LLM")


@dataclass
class OllamaClient:
    """Single-prompt client for an Ollama server.

    Construction validates the connection settings, so an instance that
    exists is one that may be called.

    Parameters
    ----------
    base_url : str
        Scheme and host, e.g. ``"http://localhost"``.
    port : int
        Server port, usually ``11434``.
    model : str
        Model name, e.g. ``"llama3"``.
    request_timeout : float
        Seconds before a single request is abandoned.
    max_tokens : int, optional
        Upper bound on generated tokens (``num_predict``). A category name
        needs very few.
    api_key : str, optional
        Sent as a bearer token when set.

    Raises
    ------
    LLMError
        If ``base_url`` is not an HTTP(S) URL or ``model`` is empty.
    """

    base_url: str
    port: int
    model: str
    request_timeout: float = 60.0
    max_tokens: Optional[int] = None
    api_key: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.base_url or not self.base_url.startswith(("http://", "https://")):
            raise LLMError(f"Invalid Ollama base URL: {self.base_url!r}")
        if not self.model:
            raise LLMError("No model configured for the Ollama client")

    @classmethod
    def from_settings(cls, settings: AISettings) -> "OllamaClient":
        return cls(
            base_url=settings.base_url.rstrip("/"),
            port=settings.port,
            model=settings.model,
            request_timeout=settings.request_timeout,
            max_tokens=settings.max_tokens,
            api_key=settings.api_key,
        )

    def _endpoint(self) -> str:
        return f"{self.base_url}:{self.port}/api/generate"

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    def _payload(self, prompt: str) -> Dict[str, Any]:
        # Temperature 0 keeps repeated runs over the same history stable.
        options: Dict[str, Any] = {"temperature": 0}
        if self.max_tokens is not None:
            options["num_predict"] = self.max_tokens
        return {"model": self.model, "prompt": prompt, "stream": False, "options": options}

    def generate(self, prompt: str) -> str:
        """Send ``prompt`` and return the completion without reasoning blocks.

        Raises
        ------
        LLMError
            On any transport, status or payload problem.
        """
        url = self._endpoint()
        logger.debug("Requesting completion from %s (model=%s)", url, self.model)
        try:
            response = requests.post(
                url,
                json=self._payload(prompt),
                headers=self._headers(),
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            logger.error("Failed to connect to LLM: %s", exc)
            raise LLMError(str(exc)) from exc

        if response.status_code != 200:
            logger.error("LLM returned status %s: %s", response.status_code, response.text)
            raise LLMError(f"LLM returned status {response.status_code}: {response.text}")
        try:
            data = response.json()
        except ValueError as exc:
            logger.error("LLM response is not JSON: %s", exc)
            raise LLMError("Failed to parse LLM response") from exc
        return strip_thinking_tags(_completion_text(data))
