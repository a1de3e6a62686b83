import unittest
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

from helpers import make_commit

from changelog_helper.grouping.group_model import (
    CATEGORY_ORDER,
    CATEGORY_TITLES,
    TYPE_ORDER,
    TYPE_TITLES,
    Category,
    ChangelogSection,
    CommitType,
    GeneratedChangelog,
)
from changelog_helper.parsing.commit_parser import parse_commit


class TestGroupModel(unittest.TestCase):
    def test_orders_cover_every_value(self) -> None:
        self.assertEqual(set(TYPE_ORDER), set(CommitType))
        self.assertEqual(set(CATEGORY_ORDER), set(Category))
        self.assertEqual(set(TYPE_TITLES), set(CommitType))
        self.assertEqual(set(CATEGORY_TITLES), set(Category))

    def test_records_are_frozen(self) -> None:
        commit = parse_commit(make_commit("feat: x"))
        with self.assertRaises(FrozenInstanceError):
            commit.subject = "y"  # type: ignore[misc]

    def test_changelog_counts(self) -> None:
        commit = parse_commit(make_commit("feat: x"))
        changelog = GeneratedChangelog(
            date=datetime(2024, 1, 1, tzinfo=timezone.utc),
            sections=(ChangelogSection(title="Features", commits=(commit, commit)),),
        )
        self.assertFalse(changelog.is_empty)
        self.assertEqual(changelog.commit_count, 2)
        self.assertTrue(GeneratedChangelog(date=changelog.date).is_empty)

    def test_short_hash(self) -> None:
        self.assertEqual(make_commit("x", sha="abcdef1234567890").short_hash, "abcdef1")


if __name__ == "__main__":
    unittest.main()
