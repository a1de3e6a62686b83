import unittest

from helpers import make_commit, make_commits

from changelog_helper.grouping.group_model import CategorizedCommit, Category
from changelog_helper.grouping.rule_classifier import RuleBasedClassifier, categorize


class TestRuleBasedClassifier(unittest.TestCase):
    def setUp(self) -> None:
        self.classifier = RuleBasedClassifier()

    def assertCategory(self, message: str, expected: Category, body: str = None) -> None:
        self.assertEqual(self.classifier.classify(make_commit(message, body=body)), expected, message)

    def test_conventional_prefixes(self) -> None:
        self.assertCategory("feat: add export", Category.FEATURES)
        self.assertCategory("fix(parser): handle empty input", Category.BUG_FIXES)
        self.assertCategory("perf: cache lookups", Category.PERFORMANCE)
        self.assertCategory("docs: explain configuration", Category.DOCUMENTATION)
        self.assertCategory("refactor: split module", Category.REFACTORING)
        self.assertCategory("test: cover edge cases", Category.TESTING)
        self.assertCategory("build: switch to hatch", Category.BUILD)
        self.assertCategory("ci: run on windows", Category.CI_CD)

    def test_keywords_without_prefix(self) -> None:
        self.assertCategory("Bump requests from 2.31.0 to 2.32.0", Category.DEPENDENCIES)
        self.assertCategory("Resolve crash on startup", Category.BUG_FIXES)
        self.assertCategory("Add dark mode", Category.FEATURES)
        self.assertCategory("Update README with examples", Category.DOCUMENTATION)
        self.assertCategory("Optimize query planner", Category.PERFORMANCE)

    def test_specific_categories_win_over_broad_keywords(self) -> None:
        # "fix" alone would mean Bug Fixes; the deps scope is more specific.
        self.assertCategory("fix(deps): bump urllib3", Category.DEPENDENCIES)
        self.assertCategory("Add unit tests for the parser", Category.TESTING)
        self.assertCategory("Add GitHub Actions workflow", Category.CI_CD)

    def test_declared_type_wins_over_other_keywords(self) -> None:
        self.assertCategory("feat: add docs search", Category.FEATURES)
        self.assertCategory("fix: crash when deps are missing", Category.BUG_FIXES)
        self.assertCategory("feat: faster startup", Category.FEATURES)
        self.assertCategory("refactor(ci): add github actions helper", Category.REFACTORING)
        self.assertCategory("docs: fix typo in install guide", Category.DOCUMENTATION)

    def test_prefix_in_body_is_not_a_declared_type(self) -> None:
        self.assertCategory("Adjust things", Category.PERFORMANCE, body="fix: later\nfaster loop")

    def test_body_is_considered(self) -> None:
        self.assertCategory("Adjust things", Category.PERFORMANCE, body="Improves performance of the loop")

    def test_unmatched_is_other(self) -> None:
        self.assertCategory("Adjust spacing", Category.OTHER)
        self.assertCategory("", Category.OTHER)

    def test_every_message_gets_a_category(self) -> None:
        for message in ("", "修复崩溃", "🎉🎉", "x" * 5000, "feat(\n"):
            with self.subTest(message=message[:20]):
                self.assertIsInstance(self.classifier.classify(make_commit(message)), Category)

    def test_classification_is_deterministic(self) -> None:
        commit = make_commit("fix: null pointer in renderer")
        results = {self.classifier.classify(commit) for _ in range(5)}
        self.assertEqual(results, {Category.BUG_FIXES})

    def test_custom_rules_and_priority(self) -> None:
        classifier = RuleBasedClassifier(
            rules={Category.FEATURES: [r"\bshiny\b"], Category.BUG_FIXES: [r"\bshiny\b"]},
            priority=[Category.BUG_FIXES, Category.FEATURES],
        )
        self.assertEqual(classifier.classify(make_commit("Shiny button")), Category.BUG_FIXES)
        self.assertEqual(classifier.classify(make_commit("feat: add x")), Category.OTHER)

    def test_classify_batch_preserves_order_and_fields(self) -> None:
        commits = make_commits("feat: one", "fix: two", "something else")
        result = self.classifier.classify_batch(commits)
        self.assertEqual([c.hash for c in result], [c.hash for c in commits])
        self.assertEqual(
            [c.category for c in result], [Category.FEATURES, Category.BUG_FIXES, Category.OTHER]
        )
        self.assertTrue(all(isinstance(c, CategorizedCommit) for c in result))

    def test_categorize_copies_commit(self) -> None:
        raw = make_commit("feat: x", body="body text")
        categorized = categorize(raw, Category.FEATURES)
        self.assertEqual(categorized.hash, raw.hash)
        self.assertEqual(categorized.body, "body text")
        self.assertEqual(categorized.subject, "feat: x")
        self.assertEqual(categorized.category, Category.FEATURES)


if __name__ == "__main__":
    unittest.main()
