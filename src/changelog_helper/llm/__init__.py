"""
Language model integration for changelog_helper.

This package contains the :class:`OllamaClient` for communicating with
an Ollama LLM server and the :class:`AIClassifier` which asks the model
to assign a changelog category to each commit.
"""

from .ollama_client import LLMError, OllamaClient  # noqa: F401
from .ai_classifier import AIClassificationError, AIClassifier, match_category  # noqa: F401
