"""Markdown rendering of a changelog."""

from __future__ import annotations

from typing import List, Optional

from changelog_helper.grouping.group_model import GeneratedChangelog, SectionCommit
from changelog_helper.render.base import (
    NO_CHANGES_REASONS,
    NO_CHANGES_TITLE,
    RenderOptions,
    Renderer,
    changelog_heading,
    commit_url,
    display_groups,
    entry_parts,
)


class MarkdownRenderer(Renderer):
    """Render a changelog as Markdown.

    Text is emitted verbatim; Markdown is not escaped.
    """

    name = "markdown"
    extension = ".md"

    def render(self, changelog: GeneratedChangelog, options: Optional[RenderOptions] = None) -> str:
        options = options or RenderOptions()
        label, date = changelog_heading(changelog)
        lines: List[str] = [f"# {label} ({date})", ""]

        if changelog.summary:
            lines += [changelog.summary, ""]

        if changelog.is_empty:
            lines += [f"## {NO_CHANGES_TITLE}", "", "This could mean:"]
            lines += [f"- {reason}" for reason in NO_CHANGES_REASONS]
            return "\n".join(lines) + "\n"

        for title, commits in display_groups(changelog, options.group_by):
            lines += [f"## {title}", ""]
            for commit in commits:
                lines += self._entry(commit, options)
            lines.append("")

        return "\n".join(lines).rstrip() + "\n"

    @staticmethod
    def _entry(commit: SectionCommit, options: RenderOptions) -> List[str]:
        scope, subject = entry_parts(commit)
        text = f"**{scope}:** {subject}" if scope else subject
        url = commit_url(commit, options)
        if url:
            text += f" ([`{commit.short_hash}`]({url}))"
        lines = [f"- {text}"]
        if options.include_authors and commit.author:
            lines.append(f"  - By: {commit.author}")
        return lines
