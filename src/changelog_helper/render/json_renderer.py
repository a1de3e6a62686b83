"""
JSON rendering of a changelog.

The JSON document is a lossless serialisation of the
:class:`GeneratedChangelog`: every field of every section and commit is
kept, and :func:`changelog_from_json` rebuilds an equal object. Display
options such as ``group_by`` do not apply to this encoding.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Optional

from changelog_helper.grouping.group_model import (
    CategorizedCommit,
    Category,
    ChangelogSection,
    CommitType,
    GeneratedChangelog,
    ParsedCommit,
    SectionCommit,
)
from changelog_helper.render.base import RenderOptions, Renderer


def commit_to_dict(commit: SectionCommit) -> Dict[str, Any]:
    data = asdict(commit)
    data["date"] = commit.date.isoformat()
    if isinstance(commit, ParsedCommit):
        data["type"] = commit.type.value
    else:
        data["category"] = commit.category.value
    return data


def changelog_to_dict(changelog: GeneratedChangelog) -> Dict[str, Any]:
    return {
        "version": changelog.version,
        "date": changelog.date.isoformat(),
        "summary": changelog.summary,
        "sections": [
            {
                "title": section.title,
                "key": section.key,
                "commits": [commit_to_dict(commit) for commit in section.commits],
            }
            for section in changelog.sections
        ],
    }


def commit_from_dict(data: Dict[str, Any]) -> SectionCommit:
    common = dict(
        hash=data["hash"],
        author=data["author"],
        date=datetime.fromisoformat(data["date"]),
        message=data["message"],
        email=data.get("email"),
        body=data.get("body"),
    )
    if "category" in data:
        return CategorizedCommit(category=Category(data["category"]), **common)
    return ParsedCommit(
        type=CommitType(data.get("type", CommitType.OTHER.value)),
        scope=data.get("scope"),
        subject=data.get("subject", data["message"]),
        breaking=bool(data.get("breaking", False)),
        is_noise=bool(data.get("is_noise", False)),
        **common,
    )


def changelog_from_json(text: str) -> GeneratedChangelog:
    """Rebuild a :class:`GeneratedChangelog` from :class:`JsonRenderer` output.

    Raises
    ------
    ValueError
        If ``text`` is not valid JSON or lacks required fields.
    """
    try:
        data = json.loads(text)
        return GeneratedChangelog(
            version=data.get("version"),
            date=datetime.fromisoformat(data["date"]),
            summary=data.get("summary"),
            sections=tuple(
                ChangelogSection(
                    title=section["title"],
                    key=section.get("key", ""),
                    commits=tuple(commit_from_dict(commit) for commit in section["commits"]),
                )
                for section in data.get("sections", [])
            ),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid changelog JSON: {exc}") from exc


class JsonRenderer(Renderer):
    """Render a changelog as pretty-printed JSON."""

    name = "json"
    extension = ".json"

    def render(self, changelog: GeneratedChangelog, options: Optional[RenderOptions] = None) -> str:
        return json.dumps(changelog_to_dict(changelog), indent=2, ensure_ascii=False) + "\n"
