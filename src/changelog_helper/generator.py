"""
Changelog generation for a single request.

The :class:`ChangelogOrchestrator` wires the pipeline together::

    commit source -> parser -> classifier -> aggregator -> renderer -> output

and records its progress in :attr:`ChangelogOrchestrator.state`. A
request either completes, possibly with rule-based classification after
an AI fallback, or fails before any output file is written.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from changelog_helper.coordinator import ClassificationCoordinator
from changelog_helper.grouping.aggregator import aggregate_categorized, aggregate_parsed
from changelog_helper.grouping.group_model import ChangelogSection, GeneratedChangelog, ParsedCommit
from changelog_helper.parsing.commit_parser import parse_commit
from changelog_helper.render import get_renderer
from changelog_helper.render.base import RenderOptions
from changelog_helper.vcs.git_client import GitClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


SCHEME_CONVENTIONAL = "conventional"
SCHEME_CATEGORY = "category"
UNRELEASED = "Unreleased"


class GenerationState(str, Enum):
    IDLE = "idle"
    FETCHING_COMMITS = "fetching_commits"
    EMPTY = "empty"
    PARSING = "parsing"
    CLASSIFYING = "classifying"
    AGGREGATING = "aggregating"
    RENDERING = "rendering"
    WRITING_OUTPUT = "writing_output"
    DONE = "done"
    FAILED = "failed"


class ChangelogError(Exception):
    """Base class for fatal changelog generation errors."""

    pass


class OutputError(ChangelogError):
    """Raised when the rendered changelog cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Cannot write changelog to {path}: {reason}")


@dataclass(frozen=True)
class GenerationRequest:
    """Parameters of one changelog generation.

    Attributes
    ----------
    from_ref : str, optional
        Exclusive start of the range. Defaults to the latest tag when
        ``default_to_latest_tag`` is set.
    to_ref : str
        Inclusive end of the range.
    output_format : str
        ``markdown``, ``json`` or ``html``.
    output_path : Path, optional
        File to write; nothing is written when omitted.
    use_ai : bool
        Request AI classification. Implies the category scheme.
    scheme : str
        ``conventional`` (group by commit type) or ``category``.
    version : str, optional
        Title label; derived from ``to_ref`` when omitted.
    """

    from_ref: Optional[str] = None
    to_ref: str = "HEAD"
    output_format: str = "markdown"
    output_path: Optional[Path] = None
    use_ai: bool = False
    scheme: str = SCHEME_CONVENTIONAL
    version: Optional[str] = None
    render_options: RenderOptions = field(default_factory=RenderOptions)
    include_summary: bool = False
    default_to_latest_tag: bool = True


@dataclass(frozen=True)
class GenerationResult:
    content: str
    changelog: GeneratedChangelog
    state: GenerationState
    from_ref: Optional[str]
    to_ref: str
    commit_count: int
    classifier: Optional[str] = None
    fallback_reason: Optional[str] = None


def describe_range(from_ref: Optional[str], to_ref: str) -> str:
    return f"{from_ref}..{to_ref}" if from_ref else to_ref


def build_summary(sections: Sequence[ChangelogSection]) -> str:
    """Describe the section sizes in one sentence."""
    total = sum(len(section.commits) for section in sections)
    parts = [f"{section.title.split(' ', 1)[-1]} ({len(section.commits)})" for section in sections]
    summary = f"This release contains {total} change{'s' if total != 1 else ''}: {', '.join(parts)}."
    breaking = sum(
        1 for section in sections for c in section.commits if isinstance(c, ParsedCommit) and c.breaking
    )
    if breaking:
        summary += f" Includes {breaking} breaking change{'s' if breaking != 1 else ''}."
    return summary


class ChangelogOrchestrator:
    """Generate changelogs from a commit source.

    Parameters
    ----------
    source : GitClient
        Commit source. Any object offering ``list_commits``,
        ``list_tags``, ``latest_tag`` and ``resolve_ref`` works;
        ``get_repository_url`` is used when available.
    coordinator : ClassificationCoordinator, optional
        Classifier selection for the category scheme. Defaults to a
        rule-only coordinator.
    clock : callable, optional
        Returns the generation timestamp; injected for tests.
    """

    def __init__(
        self,
        source: GitClient,
        coordinator: Optional[ClassificationCoordinator] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.source = source
        self.coordinator = coordinator or ClassificationCoordinator()
        self._clock = clock
        self.state = GenerationState.IDLE

    def _enter(self, state: GenerationState) -> None:
        logger.debug("Changelog generation: %s -> %s", self.state.value, state.value)
        self.state = state

    def generate(self, request: GenerationRequest) -> GenerationResult:
        """Run the pipeline for ``request``.

        Raises
        ------
        GitError
            If the repository or a reference cannot be read.
        OutputError
            If the output file cannot be written.
        ValueError
            If the output format, scheme or grouping is not supported.
        """
        self.state = GenerationState.IDLE
        try:
            return self._generate(request)
        except Exception:
            self._enter(GenerationState.FAILED)
            raise

    def _generate(self, request: GenerationRequest) -> GenerationResult:
        renderer = get_renderer(request.output_format)
        scheme = SCHEME_CATEGORY if request.use_ai else request.scheme
        if scheme not in (SCHEME_CONVENTIONAL, SCHEME_CATEGORY):
            raise ValueError(f"Unsupported classification scheme: {scheme!r}")

        self._enter(GenerationState.FETCHING_COMMITS)
        from_ref = request.from_ref
        if not from_ref and request.default_to_latest_tag:
            from_ref = self._default_from_ref(request.to_ref)
        commits = self.source.list_commits(from_ref, request.to_ref)
        logger.debug("Found %d commits in %s", len(commits), describe_range(from_ref, request.to_ref))

        version = request.version or (request.to_ref if request.to_ref != "HEAD" else UNRELEASED)
        classifier: Optional[str] = None
        fallback_reason: Optional[str] = None

        if not commits:
            self._enter(GenerationState.EMPTY)
            changelog = GeneratedChangelog(
                date=self._clock(),
                version=version,
                summary=f"No commits found in range: {describe_range(from_ref, request.to_ref)}",
            )
        else:
            self._enter(GenerationState.PARSING)
            parsed = [parse_commit(commit) for commit in commits]

            self._enter(GenerationState.CLASSIFYING)
            if scheme == SCHEME_CATEGORY:
                # Noise is dropped before classification so it never costs an AI request.
                eligible = [raw for raw, p in zip(commits, parsed) if not p.is_noise]
                outcome = self.coordinator.categorize_commits(eligible, use_ai=request.use_ai)
                classifier, fallback_reason = outcome.classifier, outcome.fallback_reason

                self._enter(GenerationState.AGGREGATING)
                sections: List[ChangelogSection] = aggregate_categorized(outcome.commits)
            else:
                self._enter(GenerationState.AGGREGATING)
                sections = aggregate_parsed(parsed)

            summary = build_summary(sections) if request.include_summary and sections else None
            changelog = GeneratedChangelog(
                date=self._clock(),
                version=version,
                sections=tuple(sections),
                summary=summary,
            )

        self._enter(GenerationState.RENDERING)
        content = renderer.render(changelog, self._render_options(request.render_options))

        if request.output_path is not None:
            self._enter(GenerationState.WRITING_OUTPUT)
            write_output(Path(request.output_path), content)

        self._enter(GenerationState.DONE)
        return GenerationResult(
            content=content,
            changelog=changelog,
            state=self.state,
            from_ref=from_ref,
            to_ref=request.to_ref,
            commit_count=len(commits),
            classifier=classifier,
            fallback_reason=fallback_reason,
        )

    def _default_from_ref(self, to_ref: str) -> Optional[str]:
        """Return the newest tag that does not point at ``to_ref``."""
        latest = self.source.latest_tag()
        if latest is None:
            logger.debug("No tags found; using the whole history")
            return None
        target = self.source.resolve_ref(to_ref)
        for tag in [latest] + [t for t in self.source.list_tags() if t != latest]:
            if self.source.resolve_ref(tag) != target:
                logger.debug("Using tag %s as the starting reference", tag)
                return tag
        return None

    def _render_options(self, options: RenderOptions) -> RenderOptions:
        if options.include_commit_links and not options.repo_url:
            lookup = getattr(self.source, "get_repository_url", None)
            url = lookup() if lookup else None
            if url:
                return replace(options, repo_url=url)
            logger.warning("Commit links requested but no repository URL is known; links omitted.")
        return options


def write_output(path: Path, content: str) -> None:
    """Write ``content`` to ``path``, creating parent directories.

    The text is written to a temporary sibling first and then moved into
    place, so a failed write never leaves a partial changelog behind.

    Raises
    ------
    OutputError
        If the directory or file cannot be created.
    """
    tmp_name: Optional[str] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error("Failed to write changelog to %s: %s", path, exc)
        raise OutputError(path, exc.strerror or str(exc)) from exc
