"""
Git client implementation for changelog_helper.

This module wraps the read-only Git operations the changelog generator
needs: listing commits in a reference range, listing tags and resolving
references. All subprocess calls go through :meth:`GitClient._run` so
that unit tests can mock them easily.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured. Logs will propagate to the root when configured by the CLI.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# Field and record separators for ``git log --format``. Control characters
# never appear in commit metadata, so splitting on them is unambiguous.
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = _FIELD_SEP.join(["%H", "%an", "%ae", "%aI", "%s", "%b"]) + _RECORD_SEP


@dataclass(frozen=True)
class RawCommit:
    """A single commit as reported by the version control backend."""

    hash: str
    author: str
    date: datetime
    message: str
    email: Optional[str] = None
    body: Optional[str] = None

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


class NotARepositoryError(GitError):
    """Raised when the target path is not inside a Git repository."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Not a git repository: {path}")


class UnknownRefError(GitError):
    """Raised when a reference cannot be resolved to a commit."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Unknown git reference: {ref}")


class GitClient:
    """Client for reading history from a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = repo_root

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Return the nearest directory at or above ``start`` holding ``.git``.

        ``.git`` may be a directory or, for worktrees and submodules, a file.
        """
        current = start.resolve()
        for candidate in (current, *current.parents):
            if (candidate / ".git").exists():
                return candidate
        return None

    @classmethod
    def open(cls, path: Path) -> "GitClient":
        """Return a client for the repository containing ``path``.

        Raises
        ------
        NotARepositoryError
            If ``path`` is not inside a Git repository.
        """
        root = cls.find_repo_root(path)
        if root is None:
            raise NotARepositoryError(path)
        return cls(root)

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the command exits with a non-zero status when ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", " ".join(full_cmd))
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",  # Replace invalid characters instead of failing
            )
        except FileNotFoundError as e:
            logger.error("Git executable not found: %s", e)
            raise GitError("The 'git' executable was not found on PATH") from e

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip())
        return result

    # ------------------------------------------------------------------
    # References
    # ------------------------------------------------------------------
    def resolve_ref(self, ref: str) -> str:
        """Resolve ``ref`` to a full commit SHA.

        Raises
        ------
        UnknownRefError
            If the reference does not name a commit.
        """
        result = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], check=False)
        sha = result.stdout.strip()
        if result.returncode != 0 or not sha:
            raise UnknownRefError(ref)
        return sha

    def list_tags(self) -> List[str]:
        """Return all tags, newest version first."""
        result = self._run(["tag", "--list", "--sort=-v:refname"], check=True)
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def latest_tag(self) -> Optional[str]:
        """Return the newest tag by version order, or ``None`` without tags."""
        tags = self.list_tags()
        return tags[0] if tags else None

    def get_repository_url(self, remote: str = "origin") -> Optional[str]:
        """Return a browsable HTTPS URL for ``remote``, if one is configured.

        SSH remotes such as ``git@github.com:owner/repo.git`` are converted
        to ``https://github.com/owner/repo``.
        """
        result = self._run(["remote", "get-url", remote], check=False)
        url = result.stdout.strip()
        if result.returncode != 0 or not url:
            return None
        url = re.sub(r"^git@([^:]+):", r"https://\1/", url)
        url = re.sub(r"^ssh://git@", "https://", url)
        url = re.sub(r"\.git$", "", url)
        return url.rstrip("/")

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def list_commits(self, from_ref: Optional[str] = None, to_ref: str = "HEAD") -> List[RawCommit]:
        """List commits reachable from ``to_ref`` but not from ``from_ref``.

        Parameters
        ----------
        from_ref : str, optional
            Exclusive starting reference. When omitted, the whole history
            up to ``to_ref`` is returned.
        to_ref : str
            Inclusive ending reference, ``HEAD`` by default.

        Returns
        -------
        List[RawCommit]
            Commits in ``git log`` order (newest first).

        Raises
        ------
        UnknownRefError
            If either reference cannot be resolved.
        GitError
            If ``git log`` fails for another reason.
        """
        self.resolve_ref(to_ref)
        if from_ref:
            self.resolve_ref(from_ref)
            rev_range = f"{from_ref}..{to_ref}"
        else:
            rev_range = to_ref
        result = self._run(["log", f"--format={_LOG_FORMAT}", rev_range, "--"], check=True)
        return self._parse_log(result.stdout)

    @staticmethod
    def _parse_log(output: str) -> List[RawCommit]:
        commits: List[RawCommit] = []
        for record in output.split(_RECORD_SEP):
            record = record.strip("\n")
            if not record.strip():
                continue
            fields = record.split(_FIELD_SEP)
            if len(fields) < 6:
                logger.debug("Skipping malformed log record: %r", record)
                continue
            sha, author, email, date_text, subject = fields[:5]
            body = _FIELD_SEP.join(fields[5:]).strip()
            commits.append(
                RawCommit(
                    hash=sha.strip(),
                    author=author,
                    email=email or None,
                    date=datetime.fromisoformat(date_text.strip()),
                    message=subject,
                    body=body or None,
                )
            )
        return commits
