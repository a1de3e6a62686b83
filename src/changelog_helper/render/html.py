"""
HTML rendering of a changelog.

All user-controlled text (versions, summaries, section titles, commit
subjects, scopes, authors and URLs) is escaped with :func:`html.escape`.
Entries that describe a breaking change get the ``breaking`` CSS class.
"""

from __future__ import annotations

import html
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
    is_breaking_entry,
)


STYLESHEET = """
body {
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
  max-width: 900px;
  margin: 40px auto;
  padding: 0 20px;
  line-height: 1.6;
  color: #333;
}
h1 { border-bottom: 3px solid #0066cc; padding-bottom: 10px; color: #0066cc; }
h2 { margin-top: 30px; color: #444; border-bottom: 1px solid #ddd; padding-bottom: 5px; }
.summary { background: #f5f5f5; padding: 15px; border-left: 4px solid #0066cc; margin: 20px 0; }
ul { list-style-type: none; padding-left: 0; }
li { margin: 10px 0; padding-left: 25px; position: relative; }
li:before { content: '•'; position: absolute; left: 10px; color: #0066cc; font-weight: bold; }
.breaking { color: #cc0000; font-weight: bold; }
.scope { font-weight: bold; }
.meta { font-size: 0.9em; color: #666; margin-left: 25px; }
code { background: #f4f4f4; padding: 2px 6px; border-radius: 3px; font-family: monospace; }
a { color: #0066cc; text-decoration: none; }
a:hover { text-decoration: underline; }
""".strip()


def escape(text: Optional[str]) -> str:
    """Escape ``&``, ``<``, ``>``, ``"`` and ``'``."""
    return html.escape(text or "", quote=True)


class HtmlRenderer(Renderer):
    """Render a changelog as a standalone HTML page."""

    name = "html"
    extension = ".html"

    def render(self, changelog: GeneratedChangelog, options: Optional[RenderOptions] = None) -> str:
        options = options or RenderOptions()
        label, date = changelog_heading(changelog)
        parts: List[str] = [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="UTF-8">',
            '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
            f"<title>{escape(label)} - {date}</title>",
            f"<style>\n{STYLESHEET}\n</style>",
            "</head>",
            "<body>",
            f"<h1>{escape(label)} <small>({date})</small></h1>",
        ]
        if changelog.summary:
            parts.append(f'<div class="summary">{escape(changelog.summary)}</div>')

        if changelog.is_empty:
            parts.append(f"<h2>{NO_CHANGES_TITLE}</h2>")
            parts.append("<p>This could mean:</p>")
            parts.append("<ul>")
            parts += [f"<li>{escape(reason)}</li>" for reason in NO_CHANGES_REASONS]
            parts.append("</ul>")
        else:
            for title, commits in display_groups(changelog, options.group_by):
                parts.append(f"<h2>{escape(title)}</h2>")
                parts.append("<ul>")
                parts += [self._entry(commit, options) for commit in commits]
                parts.append("</ul>")

        parts += ["</body>", "</html>"]
        return "\n".join(parts) + "\n"

    @staticmethod
    def _entry(commit: SectionCommit, options: RenderOptions) -> str:
        scope, subject = entry_parts(commit)
        css = ' class="breaking"' if is_breaking_entry(commit) else ""
        text = escape(subject)
        if scope:
            text = f'<span class="scope">{escape(scope)}:</span> {text}'
        url = commit_url(commit, options)
        if url:
            text += f' <a href="{escape(url)}"><code>{escape(commit.short_hash)}</code></a>'
        if options.include_authors and commit.author:
            text += f'<div class="meta">By: {escape(commit.author)}</div>'
        return f"<li{css}>{text}</li>"
