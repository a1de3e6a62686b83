"""
Classification and grouping of commits.

This package provides the changelog data model, the deterministic
rule-based classifier, and the aggregation of classified commits into
ordered sections. See :mod:`changelog_helper.grouping.group_model`,
:mod:`changelog_helper.grouping.rule_classifier` and
:mod:`changelog_helper.grouping.aggregator` for details.
"""

from .group_model import (  # noqa: F401
    CategorizedCommit,
    Category,
    ChangelogSection,
    CommitType,
    GeneratedChangelog,
    ParsedCommit,
)
from .rule_classifier import RuleBasedClassifier  # noqa: F401
from .aggregator import aggregate, aggregate_categorized, aggregate_parsed  # noqa: F401
