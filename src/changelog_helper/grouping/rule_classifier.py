"""
Heuristics for classifying commits into changelog categories.

The classifier is deterministic and performs no I/O, so it can be unit
tested without a language model. It is the default classifier and the
fallback whenever AI classification is unavailable or fails.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple

from changelog_helper.grouping.group_model import CategorizedCommit, Category
from changelog_helper.vcs.git_client import RawCommit


def _prefix(*types: str) -> str:
    return r"^(?:%s)(?:\([^)]*\))?!?:" % "|".join(types)


# Narrow categories come first so that broad keywords such as "add" or
# "fix" only decide a commit when nothing more specific matched. The
# same order breaks ties between conventional prefixes, so "fix(deps):"
# is a dependency update.
RULE_PRIORITY: Tuple[Category, ...] = (
    Category.DEPENDENCIES,
    Category.CI_CD,
    Category.BUILD,
    Category.DOCUMENTATION,
    Category.TESTING,
    Category.PERFORMANCE,
    Category.REFACTORING,
    Category.BUG_FIXES,
    Category.FEATURES,
)

# Declared types. These are tried against the header before any keyword.
DEFAULT_PREFIXES: Dict[Category, List[str]] = {
    Category.DEPENDENCIES: [_prefix("deps", "dep"), r"^(?:chore|build|fix)\(deps?(?:-dev)?\)"],
    Category.CI_CD: [_prefix("ci", "cd")],
    Category.BUILD: [_prefix("build")],
    Category.DOCUMENTATION: [_prefix("docs?")],
    Category.TESTING: [_prefix("tests?")],
    Category.PERFORMANCE: [_prefix("perf", "performance")],
    Category.REFACTORING: [_prefix("refactor", "style")],
    Category.BUG_FIXES: [_prefix("fix", "bugfix", "hotfix")],
    Category.FEATURES: [_prefix("feat", "feature")],
}

DEFAULT_RULES: Dict[Category, List[str]] = {
    Category.DEPENDENCIES: [
        r"\bbump(?:s|ed)?\b",
        r"\bdependenc(?:y|ies)\b",
        r"\bdeps\b",
        r"\bdependabot\b",
        r"\brenovate\b",
        r"\b(?:requirements\.txt|package-lock\.json|poetry\.lock|yarn\.lock)\b",
    ],
    Category.CI_CD: [
        r"\bgithub actions?\b",
        r"\.github/workflows\b",
        r"\b(?:gitlab-ci|circleci|travis|jenkins(?:file)?)\b",
        r"\bci(?:/cd)? pipeline\b",
    ],
    Category.BUILD: [
        r"\bdockerfile\b",
        r"\bmakefile\b",
        r"\b(?:webpack|rollup|vite|esbuild|setuptools|pyproject)\b",
        r"\bbuild (?:script|system|config(?:uration)?)\b",
        r"\bpackaging\b",
    ],
    Category.DOCUMENTATION: [
        r"\breadme\b",
        r"\bchangelog\b",
        r"\bdocstrings?\b",
        r"\bdocumentation\b",
        r"\bdocs?\b",
    ],
    Category.TESTING: [
        r"\b(?:unit|integration|e2e|end-to-end|regression) tests?\b",
        r"\btest (?:coverage|suite|cases?)\b",
        r"\bpytest\b",
    ],
    Category.PERFORMANCE: [
        r"\bperformance\b",
        r"\boptimi[sz](?:e[ds]?|ation)\b",
        r"\bspeed(?:s|ed)? up\b",
        r"\b(?:faster|latency|memory usage)\b",
    ],
    Category.REFACTORING: [
        r"\brefactor(?:s|ed|ing)?\b",
        r"\brestructur(?:e[ds]?|ing)\b",
        r"\bclean(?:ed)? ?up\b",
        r"\brenam(?:e[ds]?|ing)\b",
        r"\bsimplif(?:y|ied|ies)\b",
    ],
    Category.BUG_FIXES: [
        r"\bfix(?:e[sd])?\b",
        r"\bbugs?\b",
        r"\bhotfix\b",
        r"\bcrash(?:es|ed)?\b",
        r"\bresolve[sd]?\b",
        r"\bpatch(?:es|ed)?\b",
    ],
    Category.FEATURES: [
        r"\badd(?:s|ed)?\b",
        r"\bimplement(?:s|ed)?\b",
        r"\bintroduc(?:e[sd]?|ing)\b",
        r"\bnew\b",
        r"\bsupport(?:s|ed)? for\b",
        r"\benable[sd]?\b",
    ],
}


class RuleBasedClassifier:
    """Classify commits by testing regular expressions in priority order.

    Classification runs in two passes. The header is first checked against
    the conventional prefixes, so a declared type always wins. Only when no
    prefix matches are the keyword rules searched in the message and body.

    Parameters
    ----------
    rules : Mapping[Category, Iterable[str]], optional
        Keyword pattern lists per category. Defaults to :data:`DEFAULT_RULES`.
    priority : Sequence[Category], optional
        Order in which categories are tested in both passes. Defaults to
        :data:`RULE_PRIORITY`. ``Category.OTHER`` is never tested; it is
        the result when no pattern matches.
    prefixes : Mapping[Category, Iterable[str]], optional
        Header patterns for the first pass. Defaults to
        :data:`DEFAULT_PREFIXES` when ``rules`` is also left unset, and to
        no prefixes when custom ``rules`` are given.
    """

    name = "rules"

    def __init__(
        self,
        rules: Optional[Mapping[Category, Iterable[str]]] = None,
        priority: Optional[Sequence[Category]] = None,
        prefixes: Optional[Mapping[Category, Iterable[str]]] = None,
    ) -> None:
        if prefixes is None:
            prefixes = DEFAULT_PREFIXES if rules is None else {}
        order = RULE_PRIORITY if priority is None else tuple(priority)
        self._prefixes = _compile(prefixes, order, re.IGNORECASE)
        self._rules = _compile(
            DEFAULT_RULES if rules is None else rules, order, re.IGNORECASE | re.MULTILINE
        )

    @staticmethod
    def _text(commit: RawCommit) -> str:
        return f"{commit.message or ''}\n{commit.body or ''}"

    @staticmethod
    def _header(commit: RawCommit) -> str:
        lines = (commit.message or "").strip().splitlines()
        return lines[0].strip() if lines else ""

    def classify(self, commit: RawCommit) -> Category:
        """Return the category declared by the header or, failing that,
        the first category whose keywords match ``commit``."""
        header = self._header(commit)
        for category, patterns in self._prefixes:
            if any(pattern.search(header) for pattern in patterns):
                return category
        text = self._text(commit)
        for category, patterns in self._rules:
            if any(pattern.search(text) for pattern in patterns):
                return category
        return Category.OTHER

    def classify_batch(self, commits: Sequence[RawCommit]) -> List[CategorizedCommit]:
        return [categorize(commit, self.classify(commit)) for commit in commits]


def _compile(
    source: Mapping[Category, Iterable[str]], order: Sequence[Category], flags: int
) -> List[Tuple[Category, Tuple[Pattern[str], ...]]]:
    return [
        (category, tuple(re.compile(p, flags) for p in source.get(category, ())))
        for category in order
        if category is not Category.OTHER
    ]


def categorize(commit: RawCommit, category: Category) -> CategorizedCommit:
    """Build a :class:`CategorizedCommit` from ``commit`` and ``category``."""
    return CategorizedCommit(
        hash=commit.hash,
        author=commit.author,
        date=commit.date,
        message=commit.message,
        email=commit.email,
        body=commit.body,
        category=category,
    )
