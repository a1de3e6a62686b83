"""
Version control system (VCS) integrations.

This package contains the Git client used as the commit source for
changelog generation. The client exposes methods for resolving
references, listing tags, and listing commits in a range.
"""

from .git_client import GitClient, GitError, NotARepositoryError, RawCommit, UnknownRefError  # noqa: F401
