"""
Conventional Commit parsing.

:func:`parse_commit` turns a :class:`RawCommit` into a
:class:`ParsedCommit`. Parsing is pure and total: a message that does
not follow the ``type(scope)!: subject`` grammar simply yields the
``other`` type with the original message as subject. Noise commits are
flagged here but only dropped later, when commits are aggregated.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Pattern, Tuple

from changelog_helper.grouping.group_model import CommitType, ParsedCommit
from changelog_helper.vcs.git_client import RawCommit


HEADER_PATTERN: Pattern[str] = re.compile(
    r"^(?P<type>BREAKING[ -]CHANGE|[\w-]+)(?:\((?P<scope>[^)]*)\))?(?P<bang>!)?:\s*(?P<subject>.+)$",
    re.IGNORECASE,
)
BREAKING_BODY_PATTERN: Pattern[str] = re.compile(r"BREAKING[- ]CHANGE:", re.IGNORECASE)

TYPE_SYNONYMS: Dict[str, CommitType] = {
    "feat": CommitType.FEATURE,
    "feature": CommitType.FEATURE,
    "fix": CommitType.FIX,
    "bugfix": CommitType.FIX,
    "docs": CommitType.DOCS,
    "doc": CommitType.DOCS,
    "style": CommitType.STYLE,
    "refactor": CommitType.REFACTOR,
    "perf": CommitType.PERF,
    "performance": CommitType.PERF,
    "test": CommitType.TEST,
    "tests": CommitType.TEST,
    "build": CommitType.BUILD,
    "ci": CommitType.CI,
    "chore": CommitType.CHORE,
    "revert": CommitType.REVERT,
    "breaking": CommitType.BREAKING,
    "breaking change": CommitType.BREAKING,
    "breaking-change": CommitType.BREAKING,
}

# Checked in order against the lower-cased first line of the message.
NOISE_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(pattern)
    for pattern in (
        r"^wip\b",
        r"^work in progress\b",
        r"^temp\b",
        r"^temporary\b",
        r"^tmp\b",
        r"^debug\b",
        r"^typo",
        r"^fix(ed)? typos?\b",
        r"^merge\b",
        r"^revert\b",
        r"^fixup!?",
        r"^squash!?",
        r"^amend\b",
        r"^test commit\b",
        r"^update readme\b",
        r"^update \.gitignore\b",
        r"^initial commit\b",
    )
)


def normalize_type(value: str) -> CommitType:
    """Map a header type token to a :class:`CommitType`.

    Matching is case-insensitive; unknown tokens map to ``OTHER``.
    """
    return TYPE_SYNONYMS.get(value.strip().lower(), CommitType.OTHER)


def is_noise_message(message: str) -> bool:
    """Return True if ``message`` matches one of the noise patterns."""
    first_line = _first_line(message).lower()
    return any(pattern.search(first_line) for pattern in NOISE_PATTERNS)


def has_breaking_marker(body: Optional[str]) -> bool:
    return bool(body) and BREAKING_BODY_PATTERN.search(body) is not None


def parse_commit(raw: RawCommit) -> ParsedCommit:
    """Parse ``raw`` into a :class:`ParsedCommit`.

    Parameters
    ----------
    raw : RawCommit
        The commit to parse. Never mutated.

    Returns
    -------
    ParsedCommit
        The structured commit. A breaking marker in the header (``!`` or
        a ``BREAKING CHANGE:`` type) or in the body forces ``breaking`` to
        true and ``type`` to :attr:`CommitType.BREAKING`.
    """
    header = _first_line(raw.message)
    commit_type = CommitType.OTHER
    scope: Optional[str] = None
    subject = raw.message
    breaking = False

    match = HEADER_PATTERN.match(header)
    if match:
        # An unknown type token still yields a structured header of type OTHER.
        commit_type = normalize_type(match.group("type"))
        scope = (match.group("scope") or "").strip() or None
        subject = match.group("subject").strip()
        breaking = bool(match.group("bang")) or commit_type is CommitType.BREAKING

    if has_breaking_marker(raw.body):
        breaking = True
    if breaking:
        commit_type = CommitType.BREAKING

    return ParsedCommit(
        hash=raw.hash,
        author=raw.author,
        date=raw.date,
        message=raw.message,
        email=raw.email,
        body=raw.body,
        type=commit_type,
        scope=scope,
        subject=subject,
        breaking=breaking,
        is_noise=is_noise_message(raw.message),
    )


def _first_line(message: str) -> str:
    lines = (message or "").strip().splitlines()
    return lines[0].strip() if lines else ""
