"""
Command line interface for the changelog_helper tool.

This module defines the ``main`` command group used as the entry point
of the ``aichangelog`` command. ``generate`` (the default) reads the
commit history of a repository, classifies it and writes the rendered
changelog to standard output or a file; ``tags`` lists the repository
tags. Progress and diagnostics go to standard error so that standard
output only carries the changelog.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import click

from changelog_helper import __version__
from changelog_helper.config.loader import (
    GROUP_BY_CHOICES,
    OUTPUT_FORMATS,
    SCHEMES,
    AISettings,
    ConfigError,
    load_ai_settings,
    load_repo_settings,
)
from changelog_helper.coordinator import ClassificationCoordinator
from changelog_helper.generator import ChangelogOrchestrator, GenerationRequest, OutputError, describe_range
from changelog_helper.render.base import RenderOptions
from changelog_helper.vcs.git_client import GitClient, GitError, NotARepositoryError

# Create a module-level logger. Attach a null handler and disable
# propagation to avoid logging errors when the root logger's stream is
# closed (such as during unit tests).
logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------
EXIT_SUCCESS = 0
EXIT_GENERIC_ERROR = 1
EXIT_INVALID_USAGE = 2
EXIT_NO_REPO = 3
EXIT_SOURCE_ERROR = 4
EXIT_CONFIG_ERROR = 5
EXIT_OUTPUT_ERROR = 6


# ---------------------------------------------------------------------------
# Progress and status display utilities
# ---------------------------------------------------------------------------

class ProgressIndicator:
    """Report the duration of a step on standard error."""

    def __init__(self, message: str, quiet: bool = False):
        self.message = message
        self.quiet = quiet
        self.start_time = 0.0

    def __enter__(self):
        self.start_time = time.time()
        if not self.quiet:
            click.echo(f"→ {self.message}...", err=True)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.quiet and exc_type is None:
            elapsed = time.time() - self.start_time
            click.echo(f"  ✓ Done ({elapsed:.1f}s)", err=True)
        return False


def print_info(message: str, indent: int = 0):
    """Print an info message."""
    click.echo(f"{'  ' * indent}ℹ {message}", err=True)


def print_success(message: str, indent: int = 0):
    """Print a success message."""
    click.echo(f"{'  ' * indent}✓ {message}", err=True)


def print_warning(message: str, indent: int = 0):
    """Print a warning message."""
    click.echo(click.style(f"{'  ' * indent}⚠ {message}", fg="yellow"), err=True)


def print_error(message: str, indent: int = 0):
    """Print an error message."""
    click.echo(click.style(f"{'  ' * indent}✗ {message}", fg="red"), err=True)


# ---------------------------------------------------------------------------
# Core functionality
# ---------------------------------------------------------------------------

def open_repository(path: Path) -> GitClient:
    """Return a Git client for ``path`` or exit with ``EXIT_NO_REPO``."""
    try:
        return GitClient.open(path)
    except NotARepositoryError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_NO_REPO)


def resolve_ai_settings(use_ai: bool) -> Dict[str, Any]:
    """Load AI settings when requested.

    A configuration problem never aborts the run: it is reported and the
    coordinator falls back to rule-based classification.
    """
    if not use_ai:
        return {"ai_settings": None, "unavailable_reason": "AI classification was not requested"}
    try:
        settings: Optional[AISettings] = load_ai_settings()
    except ConfigError as exc:
        return {"ai_settings": None, "unavailable_reason": str(exc)}
    return {"ai_settings": settings, "unavailable_reason": None}


def _pick(explicit: Any, settings: Dict[str, Any], key: str, default: Any) -> Any:
    if explicit is not None:
        return explicit
    return settings.get(key, default)


def configure_logging(verbose: bool) -> None:
    # Use force=True to ensure handlers are reconfigured on subsequent
    # invocations (important for tests).
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
        force=True,
    )


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="aichangelog")
@click.pass_context
def main(ctx: click.Context) -> None:
    """📝 Generate categorized changelogs from Git history.

    Without a sub-command, ``generate`` runs with its defaults: all
    commits since the latest tag, rendered as Markdown on stdout.
    """
    if ctx.invoked_subcommand is None:
        ctx.invoke(generate)


@main.command()
@click.option("--repo", "repo", type=click.Path(exists=True, file_okay=False, path_type=Path), default=".",
              show_default=True, help="Path inside the Git repository.")
@click.option("-f", "--from", "from_ref", help="Starting reference (exclusive). Defaults to the latest tag.")
@click.option("-t", "--to", "to_ref", default="HEAD", show_default=True, help="Ending reference (inclusive).")
@click.option("--format", "output_format", type=click.Choice(OUTPUT_FORMATS), default=None,
              help="Output format [default: markdown].")
@click.option("-o", "--output", "output", type=click.Path(dir_okay=False, path_type=Path),
              help="Write the changelog to this file instead of stdout.")
@click.option("--ai", "use_ai", is_flag=True, help="Classify commits with the configured Ollama model.")
@click.option("--scheme", type=click.Choice(SCHEMES), default=None,
              help="Group by conventional commit type or by category [default: conventional].")
@click.option("--group-by", "group_by", type=click.Choice(GROUP_BY_CHOICES), default=None,
              help="Display grouping [default: type].")
@click.option("--include-authors/--no-include-authors", default=None, help="List commit authors.")
@click.option("--include-commit-links/--no-include-commit-links", default=None, help="Link entries to commits.")
@click.option("--repo-url", "repo_url", default=None, help="Repository URL used for commit links.")
@click.option("--version-label", "version_label", default=None, help="Title label [default: --to, or Unreleased].")
@click.option("--summary/--no-summary", "include_summary", default=None, help="Add a summary paragraph.")
@click.option("--all", "all_history", is_flag=True, help="Do not default --from to the latest tag.")
@click.option("--verbose", is_flag=True, help="Enable verbose (debug) output.")
def generate(
    repo: Path = Path("."),
    from_ref: Optional[str] = None,
    to_ref: str = "HEAD",
    output_format: Optional[str] = None,
    output: Optional[Path] = None,
    use_ai: bool = False,
    scheme: Optional[str] = None,
    group_by: Optional[str] = None,
    include_authors: Optional[bool] = None,
    include_commit_links: Optional[bool] = None,
    repo_url: Optional[str] = None,
    version_label: Optional[str] = None,
    include_summary: Optional[bool] = None,
    all_history: bool = False,
    verbose: bool = False,
) -> None:
    """Generate a changelog for a range of commits."""
    configure_logging(verbose)
    client = open_repository(repo)

    try:
        settings = load_repo_settings(client.repo_root)
    except ConfigError as exc:
        print_error(f"Configuration error: {exc}")
        raise click.exceptions.Exit(EXIT_CONFIG_ERROR)

    request = GenerationRequest(
        from_ref=from_ref,
        to_ref=to_ref,
        output_format=_pick(output_format, settings, "format", "markdown"),
        output_path=output,
        use_ai=use_ai,
        scheme=_pick(scheme, settings, "scheme", "conventional"),
        version=version_label,
        render_options=RenderOptions(
            include_authors=_pick(include_authors, settings, "include_authors", False),
            include_commit_links=_pick(include_commit_links, settings, "include_commit_links", False),
            repo_url=_pick(repo_url, settings, "repo_url", None),
            group_by=_pick(group_by, settings, "group_by", "type"),
        ),
        include_summary=_pick(include_summary, settings, "include_summary", False),
        default_to_latest_tag=not all_history,
    )

    coordinator = ClassificationCoordinator(**resolve_ai_settings(use_ai))
    orchestrator = ChangelogOrchestrator(client, coordinator)

    try:
        with ProgressIndicator(f"Generating changelog for {client.repo_root}"):
            result = orchestrator.generate(request)
    except GitError as exc:
        print_error(f"Git error: {exc}")
        raise click.exceptions.Exit(EXIT_SOURCE_ERROR)
    except OutputError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_OUTPUT_ERROR)
    except ValueError as exc:
        print_error(str(exc))
        raise click.exceptions.Exit(EXIT_INVALID_USAGE)
    except Exception as exc:
        logger.exception("Unhandled error: %s", exc)
        print_error(f"Unexpected error: {exc}")
        raise click.exceptions.Exit(EXIT_GENERIC_ERROR)

    if result.fallback_reason:
        print_warning(f"{result.fallback_reason}; used rule-based classification.")
    if result.commit_count == 0:
        print_info(f"No commits found in range {describe_range(result.from_ref, result.to_ref)}")
    else:
        print_success(
            f"Processed {result.commit_count} commit{'s' if result.commit_count != 1 else ''} "
            f"into {len(result.changelog.sections)} section{'s' if len(result.changelog.sections) != 1 else ''}"
        )

    if output is not None:
        print_success(f"Changelog written to: {output}")
    else:
        click.echo(result.content, nl=False)


@main.command()
@click.option("--repo", "repo", type=click.Path(exists=True, file_okay=False, path_type=Path), default=".",
              show_default=True, help="Path inside the Git repository.")
def tags(repo: Path) -> None:
    """List repository tags, newest first."""
    client = open_repository(repo)
    try:
        tag_list: List[str] = client.list_tags()
    except GitError as exc:
        print_error(f"Git error: {exc}")
        raise click.exceptions.Exit(EXIT_SOURCE_ERROR)

    if not tag_list:
        print_info("No tags found in this repository.")
        return
    click.echo("Available tags:")
    for tag in tag_list:
        click.echo(f"  - {tag}")
    click.echo(f"\nLatest tag: {tag_list[0]}")
