"""
Commit message parsing.

See :mod:`changelog_helper.parsing.commit_parser` for the Conventional
Commit grammar, breaking-change detection and noise detection.
"""

from .commit_parser import is_noise_message, normalize_type, parse_commit  # noqa: F401
