import unittest

from helpers import make_commit, make_commits

from changelog_helper.grouping.aggregator import aggregate, aggregate_categorized, aggregate_parsed
from changelog_helper.grouping.group_model import (
    CATEGORY_TITLES,
    TYPE_TITLES,
    Category,
    CommitType,
)
from changelog_helper.grouping.rule_classifier import categorize
from changelog_helper.parsing.commit_parser import parse_commit


def parsed(*messages):
    return [parse_commit(commit) for commit in make_commits(*messages)]


class TestAggregateParsed(unittest.TestCase):
    def test_sections_follow_type_order(self) -> None:
        sections = aggregate_parsed(parsed("fix: a", "feat: b", "chore: c", "feat: d"))
        self.assertEqual(
            [s.title for s in sections],
            [TYPE_TITLES[CommitType.FEATURE], TYPE_TITLES[CommitType.FIX], TYPE_TITLES[CommitType.CHORE]],
        )
        self.assertEqual([c.subject for c in sections[0].commits], ["b", "d"])
        self.assertEqual(sections[0].key, "feat")

    def test_breaking_first_and_other_last(self) -> None:
        sections = aggregate_parsed(parsed("Random change", "feat!: new api", "docs: readme"))
        self.assertEqual(sections[0].title, TYPE_TITLES[CommitType.BREAKING])
        self.assertEqual(sections[-1].title, TYPE_TITLES[CommitType.OTHER])

    def test_noise_is_excluded(self) -> None:
        sections = aggregate_parsed(parsed("wip: experiment", "feat: keep me", "Merge branch 'x'"))
        self.assertEqual(len(sections), 1)
        self.assertEqual(len(sections[0].commits), 1)

    def test_only_noise_yields_no_sections(self) -> None:
        self.assertEqual(aggregate_parsed(parsed("wip", "temp", "fixup! feat: x")), [])

    def test_no_empty_sections(self) -> None:
        sections = aggregate_parsed(parsed("feat: one"))
        self.assertTrue(all(section.commits for section in sections))

    def test_every_non_noise_commit_appears_once(self) -> None:
        commits = parsed("feat: a", "fix: b", "perf: c", "wip", "misc", "feat!: d")
        sections = aggregate_parsed(commits)
        placed = [c.hash for s in sections for c in s.commits]
        expected = [c.hash for c in commits if not c.is_noise]
        self.assertEqual(sorted(placed), sorted(expected))
        self.assertEqual(len(placed), len(set(placed)))


class TestAggregateCategorized(unittest.TestCase):
    def test_category_order(self) -> None:
        commits = [
            categorize(make_commit("x", sha="1" * 40), Category.OTHER),
            categorize(make_commit("y", sha="2" * 40), Category.BUG_FIXES),
            categorize(make_commit("z", sha="3" * 40), Category.FEATURES),
        ]
        sections = aggregate_categorized(commits)
        self.assertEqual(
            [s.title for s in sections],
            [
                CATEGORY_TITLES[Category.FEATURES],
                CATEGORY_TITLES[Category.BUG_FIXES],
                CATEGORY_TITLES[Category.OTHER],
            ],
        )
        self.assertEqual(sections[1].key, "Bug Fixes")


class TestAggregateDispatch(unittest.TestCase):
    def test_dispatch(self) -> None:
        self.assertEqual(aggregate([]), [])
        self.assertEqual(len(aggregate(parsed("feat: a"))), 1)
        self.assertEqual(len(aggregate([categorize(make_commit("a"), Category.TESTING)])), 1)

    def test_mixed_input_is_rejected(self) -> None:
        mixed = parsed("feat: a") + [categorize(make_commit("b"), Category.TESTING)]
        with self.assertRaises(TypeError):
            aggregate(mixed)


if __name__ == "__main__":
    unittest.main()
