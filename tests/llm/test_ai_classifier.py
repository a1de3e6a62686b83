import unittest
from unittest.mock import MagicMock

from helpers import make_commit, make_commits

from changelog_helper.config.loader import AISettings
from changelog_helper.grouping.group_model import Category
from changelog_helper.llm.ai_classifier import (
    AIClassificationError,
    AIClassifier,
    match_category,
)
from changelog_helper.llm.ollama_client import LLMError, OllamaClient


class FakeClient:
    """Return queued answers; exceptions in the queue are raised."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


class FakeClock:
    def __init__(self, step: float = 0.0):
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class TestMatchCategory(unittest.TestCase):
    def test_exact_labels(self) -> None:
        for category in Category:
            with self.subTest(category=category):
                self.assertEqual(match_category(category.value), category)

    def test_case_and_punctuation_are_ignored(self) -> None:
        self.assertEqual(match_category("bug fixes"), Category.BUG_FIXES)
        self.assertEqual(match_category('"Features".'), Category.FEATURES)
        self.assertEqual(match_category("**ci/cd**"), Category.CI_CD)
        self.assertEqual(match_category("\n\n  Documentation\nbecause it edits docs"), Category.DOCUMENTATION)

    def test_non_labels_are_rejected(self) -> None:
        self.assertIsNone(match_category("It is a bug fix"))
        self.assertIsNone(match_category("Features, Bug Fixes"))
        self.assertIsNone(match_category("Security"))
        self.assertIsNone(match_category(""))
        self.assertIsNone(match_category(None))


class TestAIClassifier(unittest.TestCase):
    def make(self, client, **kwargs) -> AIClassifier:
        self.sleeps = []
        kwargs.setdefault("sleep", self.sleeps.append)
        return AIClassifier(client, **kwargs)

    def test_prompt_lists_categories_and_commit(self) -> None:
        client = FakeClient("Features")
        classifier = self.make(client)
        classifier.classify(make_commit("feat: add export", body="Adds CSV export"))
        prompt = client.prompts[0]
        for category in Category:
            self.assertIn(f"- {category.value}", prompt)
        self.assertIn("feat: add export", prompt)
        self.assertIn("Adds CSV export", prompt)

    def test_classify_valid_answer(self) -> None:
        classifier = self.make(FakeClient("Performance"))
        self.assertEqual(classifier.classify(make_commit("speed")), Category.PERFORMANCE)

    def test_malformed_answer_becomes_other(self) -> None:
        classifier = self.make(FakeClient("This commit is about performance"))
        with self.assertLogs("changelog_helper.llm.ai_classifier", level="WARNING") as logs:
            self.assertEqual(classifier.classify(make_commit("x")), Category.OTHER)
        self.assertIn("Malformed", logs.output[0])

    def test_service_error_becomes_other(self) -> None:
        classifier = self.make(FakeClient(LLMError("down")))
        self.assertEqual(classifier.classify(make_commit("x")), Category.OTHER)

    def test_batch_sleeps_between_requests(self) -> None:
        client = FakeClient("Features", "Bug Fixes", "Other")
        classifier = self.make(client, call_delay=0.5)
        result = classifier.classify_batch(make_commits("a", "b", "c"))
        self.assertEqual(
            [c.category for c in result], [Category.FEATURES, Category.BUG_FIXES, Category.OTHER]
        )
        self.assertEqual(self.sleeps, [0.5, 0.5])

    def test_batch_tolerates_isolated_failures(self) -> None:
        client = FakeClient(LLMError("x"), "Features", LLMError("y"), "Testing")
        classifier = self.make(client, max_consecutive_failures=2)
        result = classifier.classify_batch(make_commits("a", "b", "c", "d"))
        self.assertEqual(
            [c.category for c in result],
            [Category.OTHER, Category.FEATURES, Category.OTHER, Category.TESTING],
        )

    def test_batch_aborts_after_consecutive_failures(self) -> None:
        client = FakeClient("Features", LLMError("a"), LLMError("b"), LLMError("c"), "Features")
        classifier = self.make(client, max_consecutive_failures=3)
        with self.assertRaises(AIClassificationError):
            classifier.classify_batch(make_commits("1", "2", "3", "4", "5"))
        self.assertEqual(len(client.prompts), 4)

    def test_malformed_answers_do_not_count_as_failures(self) -> None:
        client = FakeClient("nonsense", "more nonsense", "still nonsense")
        classifier = self.make(client, max_consecutive_failures=1)
        result = classifier.classify_batch(make_commits("1", "2", "3"))
        self.assertEqual({c.category for c in result}, {Category.OTHER})

    def test_batch_deadline(self) -> None:
        client = FakeClient("Features", "Features", "Features")
        classifier = self.make(client, batch_timeout=1.5, clock=FakeClock(step=1.0))
        with self.assertRaises(AIClassificationError) as ctx:
            classifier.classify_batch(make_commits("1", "2", "3"))
        self.assertIn("exceeded", str(ctx.exception))

    def test_empty_batch(self) -> None:
        client = FakeClient()
        self.assertEqual(self.make(client).classify_batch([]), [])
        self.assertEqual(client.prompts, [])

    def test_from_settings(self) -> None:
        settings = AISettings(
            base_url="http://localhost",
            port=11434,
            model="llama3",
            call_delay=0,
            batch_timeout=30,
            max_consecutive_failures=5,
        )
        classifier = AIClassifier.from_settings(settings)
        self.assertIsInstance(classifier.client, OllamaClient)
        self.assertEqual(classifier.call_delay, 0)
        self.assertEqual(classifier.batch_timeout, 30)
        self.assertEqual(classifier.max_consecutive_failures, 5)

    def test_from_settings_rejects_invalid_url(self) -> None:
        with self.assertRaises(LLMError):
            AIClassifier.from_settings(AISettings(base_url="localhost", port=1, model="m"))

    def test_client_is_only_used_through_generate(self) -> None:
        client = MagicMock()
        client.generate.return_value = "Build"
        self.assertEqual(self.make(client).classify(make_commit("x")), Category.BUILD)
        client.generate.assert_called_once()


if __name__ == "__main__":
    unittest.main()
