"""
Shared rendering helpers.

Renderers turn a :class:`GeneratedChangelog` into text. This module
holds the options common to all renderers, the helpers that describe a
single changelog entry, and the display re-grouping by author or date
that renderers may apply on top of the aggregated sections.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from changelog_helper.grouping.group_model import GeneratedChangelog, ParsedCommit, SectionCommit


GROUP_BY_TYPE = "type"
GROUP_BY_AUTHOR = "author"
GROUP_BY_DATE = "date"

NO_CHANGES_TITLE = "No Changes Found"
NO_CHANGES_REASONS = (
    "The range is empty",
    "All commits were filtered as noise (wip, temp, merge, etc.)",
)
BREAKING_GLYPH = "⚠️"


@dataclass(frozen=True)
class RenderOptions:
    """Presentation options shared by all renderers.

    ``include_commit_links`` has no effect without ``repo_url``.
    ``group_by`` re-buckets entries for display only; it never changes
    the aggregated sections.
    """

    include_authors: bool = False
    include_commit_links: bool = False
    repo_url: Optional[str] = None
    group_by: str = GROUP_BY_TYPE


class Renderer(ABC):
    """Base class for output encodings."""

    name: str = ""
    extension: str = ""

    @abstractmethod
    def render(self, changelog: GeneratedChangelog, options: Optional[RenderOptions] = None) -> str:
        raise NotImplementedError


def format_date(value: datetime) -> str:
    return value.date().isoformat()


def changelog_heading(changelog: GeneratedChangelog) -> Tuple[str, str]:
    """Return ``(label, date)`` for the document title."""
    return changelog.version or "Changelog", format_date(changelog.date)


def entry_parts(commit: SectionCommit) -> Tuple[Optional[str], str]:
    """Return ``(scope, subject)`` for a changelog entry."""
    if isinstance(commit, ParsedCommit):
        return commit.scope, commit.subject or commit.message
    return None, commit.message


def commit_url(commit: SectionCommit, options: RenderOptions) -> Optional[str]:
    if not (options.include_commit_links and options.repo_url):
        return None
    return f"{options.repo_url.rstrip('/')}/commit/{commit.hash}"


def is_breaking_entry(commit: SectionCommit) -> bool:
    """True if the entry should carry the breaking-change marker."""
    if isinstance(commit, ParsedCommit) and commit.breaking:
        return True
    _, subject = entry_parts(commit)
    return BREAKING_GLYPH in subject or "⚠" in subject or "breaking" in subject.lower()


def display_groups(
    changelog: GeneratedChangelog, group_by: str = GROUP_BY_TYPE
) -> List[Tuple[str, Sequence[SectionCommit]]]:
    """Bucket entries for display.

    With ``group_by="type"`` the aggregated sections are returned as they
    are. ``"author"`` and ``"date"`` re-bucket every entry by author name
    or commit day, in order of first appearance.

    Raises
    ------
    ValueError
        If ``group_by`` is not a supported value.
    """
    if group_by == GROUP_BY_TYPE:
        return [(section.title, section.commits) for section in changelog.sections]
    if group_by not in (GROUP_BY_AUTHOR, GROUP_BY_DATE):
        raise ValueError(f"Unsupported grouping: {group_by!r}")

    buckets: Dict[str, List[SectionCommit]] = {}
    for section in changelog.sections:
        for commit in section.commits:
            if group_by == GROUP_BY_AUTHOR:
                key = commit.author or "Unknown"
            else:
                key = format_date(commit.date)
            buckets.setdefault(key, []).append(commit)
    return list(buckets.items())
