import json
import unittest

from helpers import BASE_DATE, make_commit, sample_changelog

from changelog_helper.grouping.aggregator import aggregate_categorized
from changelog_helper.grouping.group_model import CategorizedCommit, Category, GeneratedChangelog
from changelog_helper.grouping.rule_classifier import categorize
from changelog_helper.render.json_renderer import JsonRenderer, changelog_from_json


class TestJsonRenderer(unittest.TestCase):
    def setUp(self) -> None:
        self.renderer = JsonRenderer()

    def test_document_shape(self) -> None:
        data = json.loads(self.renderer.render(sample_changelog(summary="s")))
        self.assertEqual(data["version"], "v1.2.0")
        self.assertEqual(data["summary"], "s")
        self.assertEqual(data["date"], BASE_DATE.isoformat())
        self.assertEqual([s["key"] for s in data["sections"]], ["breaking", "feat", "fix"])
        feature = data["sections"][1]["commits"][0]
        self.assertEqual(feature["type"], "feat")
        self.assertEqual(feature["scope"], "api")
        self.assertEqual(feature["subject"], "add login")
        self.assertEqual(feature["hash"], "a" * 40)
        self.assertFalse(feature["breaking"])

    def test_parsed_changelog_survives_serialisation(self) -> None:
        changelog = sample_changelog(summary="Three changes.")
        self.assertEqual(changelog_from_json(self.renderer.render(changelog)), changelog)

    def test_categorized_changelog_survives_serialisation(self) -> None:
        commits = [
            categorize(make_commit("Speed up", sha="1" * 40, body="details"), Category.PERFORMANCE),
            categorize(make_commit("Fix crash", sha="2" * 40), Category.BUG_FIXES),
        ]
        changelog = GeneratedChangelog(date=BASE_DATE, sections=tuple(aggregate_categorized(commits)))
        restored = changelog_from_json(self.renderer.render(changelog))
        self.assertEqual(restored, changelog)
        self.assertIsInstance(restored.sections[0].commits[0], CategorizedCommit)

    def test_empty_changelog(self) -> None:
        changelog = GeneratedChangelog(date=BASE_DATE, version="Unreleased", summary="No commits found in range: HEAD")
        data = json.loads(self.renderer.render(changelog))
        self.assertEqual(data["sections"], [])
        self.assertEqual(changelog_from_json(json.dumps(data)), changelog)

    def test_non_ascii_is_kept(self) -> None:
        self.assertIn("🚀 Features", self.renderer.render(sample_changelog()))

    def test_invalid_documents(self) -> None:
        with self.assertRaises(ValueError):
            changelog_from_json("not json")
        with self.assertRaises(ValueError):
            changelog_from_json(json.dumps({"version": "x"}))
        with self.assertRaises(ValueError):
            changelog_from_json(json.dumps({"date": BASE_DATE.isoformat(), "sections": [{"title": "t"}]}))


if __name__ == "__main__":
    unittest.main()
