"""
Configuration loading for changelog_helper.

Provides loaders for the Ollama server settings used by AI
classification and for optional per-repository defaults. See
:mod:`changelog_helper.config.loader` for implementation details.
"""

from .loader import AISettings, ConfigError, load_ai_settings, load_repo_settings  # noqa: F401
