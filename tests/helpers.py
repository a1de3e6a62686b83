"""Shared builders for test commits and changelogs."""

from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from changelog_helper.grouping.aggregator import aggregate_parsed
from changelog_helper.grouping.group_model import GeneratedChangelog
from changelog_helper.parsing.commit_parser import parse_commit
from changelog_helper.vcs.git_client import RawCommit, UnknownRefError


BASE_DATE = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)


def make_commit(
    message: str,
    sha: str = "0123456789abcdef0123456789abcdef01234567",
    author: str = "Ada Lovelace",
    body: Optional[str] = None,
    date: datetime = BASE_DATE,
    email: Optional[str] = "ada@example.com",
) -> RawCommit:
    return RawCommit(hash=sha, author=author, date=date, message=message, email=email, body=body)


def make_commits(*messages: str) -> List[RawCommit]:
    return [make_commit(message, sha=f"{index:040x}") for index, message in enumerate(messages, start=1)]


def sample_changelog(version: Optional[str] = "v1.2.0", summary: Optional[str] = None) -> GeneratedChangelog:
    """A small conventional changelog with a breaking change and a scoped feature."""
    commits = [
        make_commit("feat(api): add login", sha="a" * 40, author="Ada Lovelace"),
        make_commit("fix: handle <script> tags", sha="b" * 40, author="Grace Hopper"),
        make_commit("feat!: drop legacy tokens", sha="c" * 40, author="Ada Lovelace"),
    ]
    return GeneratedChangelog(
        date=BASE_DATE,
        sections=tuple(aggregate_parsed([parse_commit(c) for c in commits])),
        version=version,
        summary=summary,
    )


class FakeSource:
    """In-memory commit source with tags pointing at commits."""

    def __init__(self, commits, tags=None, head="h" * 40, url=None, repo_root=Path("/repo")):
        self.commits = commits
        self.tags = tags or {}
        self.head = head
        self.url = url
        self.repo_root = repo_root
        self.calls = []

    def resolve_ref(self, ref):
        if ref == "HEAD":
            return self.head
        if ref in self.tags:
            return self.tags[ref]
        raise UnknownRefError(ref)

    def list_tags(self):
        return list(self.tags)

    def latest_tag(self):
        return next(iter(self.tags), None)

    def list_commits(self, from_ref=None, to_ref="HEAD"):
        self.calls.append((from_ref, to_ref))
        self.resolve_ref(to_ref)
        if from_ref:
            self.resolve_ref(from_ref)
        return list(self.commits)

    def get_repository_url(self):
        return self.url
