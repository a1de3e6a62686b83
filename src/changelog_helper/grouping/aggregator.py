"""
Grouping of classified commits into ordered changelog sections.

Two groupings are supported, one per classification scheme:
:func:`aggregate_parsed` groups :class:`ParsedCommit` objects by type and
drops noise commits; :func:`aggregate_categorized` groups
:class:`CategorizedCommit` objects by category. In both cases commits keep
their input order inside a section and empty sections are never created.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Union

from changelog_helper.grouping.group_model import (
    CATEGORY_ORDER,
    CATEGORY_TITLES,
    TYPE_ORDER,
    TYPE_TITLES,
    CategorizedCommit,
    Category,
    ChangelogSection,
    CommitType,
    ParsedCommit,
)


def aggregate_parsed(commits: Sequence[ParsedCommit]) -> List[ChangelogSection]:
    """Group parsed commits by type, excluding noise.

    Sections follow :data:`TYPE_ORDER`: breaking changes first and
    ``other`` last.
    """
    buckets: Dict[CommitType, List[ParsedCommit]] = {}
    for commit in commits:
        if commit.is_noise:
            continue
        buckets.setdefault(commit.type, []).append(commit)
    return [
        ChangelogSection(title=TYPE_TITLES[commit_type], commits=tuple(buckets[commit_type]), key=commit_type.value)
        for commit_type in TYPE_ORDER
        if buckets.get(commit_type)
    ]


def aggregate_categorized(commits: Sequence[CategorizedCommit]) -> List[ChangelogSection]:
    """Group categorised commits following :data:`CATEGORY_ORDER`."""
    buckets: Dict[Category, List[CategorizedCommit]] = {}
    for commit in commits:
        buckets.setdefault(commit.category, []).append(commit)
    return [
        ChangelogSection(title=CATEGORY_TITLES[category], commits=tuple(buckets[category]), key=category.value)
        for category in CATEGORY_ORDER
        if buckets.get(category)
    ]


def aggregate(
    commits: Union[Sequence[ParsedCommit], Sequence[CategorizedCommit]],
) -> List[ChangelogSection]:
    """Dispatch to the aggregator matching the commit shape.

    A single call must not mix :class:`ParsedCommit` and
    :class:`CategorizedCommit` objects.

    Raises
    ------
    TypeError
        If the sequence mixes shapes or contains other objects.
    """
    if not commits:
        return []
    if all(isinstance(c, ParsedCommit) for c in commits):
        return aggregate_parsed(commits)  # type: ignore[arg-type]
    if all(isinstance(c, CategorizedCommit) for c in commits):
        return aggregate_categorized(commits)  # type: ignore[arg-type]
    raise TypeError("aggregate() expects only ParsedCommit or only CategorizedCommit objects")
