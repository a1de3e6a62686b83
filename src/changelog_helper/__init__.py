"""
Top-level package for changelog_helper.

This package turns a range of Git history into a categorized changelog.
The CLI entry point lives in :mod:`changelog_helper.cli`.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
