"""
Data models for commit classification and changelog assembly.

The records defined here flow one way through the pipeline: a
:class:`~changelog_helper.vcs.git_client.RawCommit` is turned into a
:class:`ParsedCommit` (conventional scheme) or a :class:`CategorizedCommit`
(category scheme), commits are grouped into :class:`ChangelogSection`
objects, and the sections are wrapped in a :class:`GeneratedChangelog`
for rendering. All records are frozen once constructed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Union

from changelog_helper.vcs.git_client import RawCommit


class CommitType(str, Enum):
    """Conventional Commit types recognised by the parser."""

    FEATURE = "feat"
    FIX = "fix"
    BREAKING = "breaking"
    CHORE = "chore"
    DOCS = "docs"
    STYLE = "style"
    REFACTOR = "refactor"
    PERF = "perf"
    TEST = "test"
    BUILD = "build"
    CI = "ci"
    REVERT = "revert"
    OTHER = "other"


class Category(str, Enum):
    """Free-text change categories used by the rule and AI classifiers."""

    FEATURES = "Features"
    BUG_FIXES = "Bug Fixes"
    PERFORMANCE = "Performance"
    DOCUMENTATION = "Documentation"
    REFACTORING = "Refactoring"
    TESTING = "Testing"
    BUILD = "Build"
    CI_CD = "CI/CD"
    DEPENDENCIES = "Dependencies"
    OTHER = "Other"


# Display order of sections for each scheme.
TYPE_ORDER: Tuple[CommitType, ...] = (
    CommitType.BREAKING,
    CommitType.FEATURE,
    CommitType.FIX,
    CommitType.PERF,
    CommitType.REFACTOR,
    CommitType.DOCS,
    CommitType.STYLE,
    CommitType.TEST,
    CommitType.BUILD,
    CommitType.CI,
    CommitType.CHORE,
    CommitType.REVERT,
    CommitType.OTHER,
)

CATEGORY_ORDER: Tuple[Category, ...] = (
    Category.FEATURES,
    Category.BUG_FIXES,
    Category.PERFORMANCE,
    Category.DOCUMENTATION,
    Category.REFACTORING,
    Category.TESTING,
    Category.BUILD,
    Category.CI_CD,
    Category.DEPENDENCIES,
    Category.OTHER,
)

TYPE_TITLES = {
    CommitType.BREAKING: "⚠️ BREAKING CHANGES",
    CommitType.FEATURE: "🚀 Features",
    CommitType.FIX: "🐛 Bug Fixes",
    CommitType.PERF: "⚡ Performance",
    CommitType.REFACTOR: "🔧 Refactoring",
    CommitType.DOCS: "📝 Documentation",
    CommitType.STYLE: "🎨 Styling",
    CommitType.TEST: "🧪 Testing",
    CommitType.BUILD: "🔨 Build",
    CommitType.CI: "👷 CI",
    CommitType.CHORE: "🧹 Chores",
    CommitType.REVERT: "⏪ Reverts",
    CommitType.OTHER: "📦 Other Changes",
}

CATEGORY_TITLES = {
    Category.FEATURES: "🚀 Features",
    Category.BUG_FIXES: "🐛 Bug Fixes",
    Category.PERFORMANCE: "⚡ Performance",
    Category.DOCUMENTATION: "📝 Documentation",
    Category.REFACTORING: "🔧 Refactoring",
    Category.TESTING: "🧪 Testing",
    Category.BUILD: "🔨 Build",
    Category.CI_CD: "👷 CI/CD",
    Category.DEPENDENCIES: "📦 Dependencies",
    Category.OTHER: "📌 Other",
}


@dataclass(frozen=True)
class ParsedCommit(RawCommit):
    """A raw commit enriched with its Conventional Commit structure.

    Attributes
    ----------
    type : CommitType
        The normalised commit type. Always ``BREAKING`` when ``breaking``
        is true.
    scope : Optional[str]
        Optional grouping label taken from ``type(scope): ...``.
    subject : str
        Message text with any conventional prefix removed.
    breaking : bool
        True if the header carries ``!`` or the body a breaking marker.
    is_noise : bool
        True if the message matches a known low-value pattern.
    """

    type: CommitType = CommitType.OTHER
    scope: Optional[str] = None
    subject: str = ""
    breaking: bool = False
    is_noise: bool = False


@dataclass(frozen=True)
class CategorizedCommit(RawCommit):
    """A raw commit labelled with exactly one :class:`Category`."""

    category: Category = Category.OTHER

    @property
    def subject(self) -> str:
        return self.message


SectionCommit = Union[ParsedCommit, CategorizedCommit]


@dataclass(frozen=True)
class ChangelogSection:
    """A titled group of commits sharing one type or category.

    ``key`` holds the raw type/category value the section was built from
    so serialised output can be mapped back to the enumeration.
    """

    title: str
    commits: Tuple[SectionCommit, ...]
    key: str = ""


@dataclass(frozen=True)
class GeneratedChangelog:
    """The terminal artifact handed to a renderer."""

    date: datetime
    sections: Tuple[ChangelogSection, ...] = field(default_factory=tuple)
    version: Optional[str] = None
    summary: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.sections

    @property
    def commit_count(self) -> int:
        return sum(len(section.commits) for section in self.sections)
