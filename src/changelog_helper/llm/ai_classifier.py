"""
Commit classification using a generative language model.

The :class:`AIClassifier` asks the model for a single category name per
commit. The model's answer is untrusted text: it is accepted only when it
names one of the :class:`Category` labels exactly (ignoring case and
surrounding punctuation). Anything else, and any error talking to the
service, yields ``Category.OTHER`` for that commit.

At the batch level the classifier gives up by raising
:class:`AIClassificationError` when the service keeps failing or the
batch deadline passes, so the caller can re-run the batch with the
rule-based classifier.
"""

from __future__ import annotations

import logging
import time
from textwrap import dedent
from typing import Callable, List, Optional, Sequence, Tuple

from changelog_helper.config.loader import AISettings
from changelog_helper.grouping.group_model import CATEGORY_ORDER, CategorizedCommit, Category
from changelog_helper.grouping.rule_classifier import categorize
from changelog_helper.llm.ollama_client import LLMError, OllamaClient
from changelog_helper.vcs.git_client import RawCommit


logger = logging.getLogger(__name__)
# Attach a null handler to prevent logging errors when no handlers are
# configured on the root logger. Logs will propagate when configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


_CATEGORY_LOOKUP = {category.value.casefold(): category for category in Category}
_STRIP_CHARS = " \t\r\n\"'`*.:-#"

# Longest commit body included in a prompt.
MAX_BODY_CHARS = 1500


class AIClassificationError(Exception):
    """Raised when a whole classification batch cannot be completed."""

    pass


def match_category(response: Optional[str]) -> Optional[Category]:
    """Return the :class:`Category` named by ``response``, if any.

    Only the first non-empty line is considered. Surrounding quotes,
    markdown emphasis and trailing punctuation are removed before an
    exact, case-insensitive comparison against the category labels.
    """
    if not response:
        return None
    for line in response.splitlines():
        candidate = line.strip(_STRIP_CHARS)
        if candidate:
            return _CATEGORY_LOOKUP.get(candidate.casefold())
    return None


class AIClassifier:
    """Classify commits by asking an Ollama model for a category.

    Parameters
    ----------
    client : OllamaClient
        Client used to talk to the model.
    call_delay : float
        Seconds to wait between two requests of a batch.
    batch_timeout : float, optional
        Deadline in seconds for :meth:`classify_batch`.
    max_consecutive_failures : int
        Number of failed requests in a row that aborts a batch.
    sleep, clock : callable
        Injected for tests; default to :func:`time.sleep` and
        :func:`time.monotonic`.
    """

    name = "ai"

    def __init__(
        self,
        client: OllamaClient,
        call_delay: float = 0.2,
        batch_timeout: Optional[float] = None,
        max_consecutive_failures: int = 3,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.call_delay = max(0.0, call_delay)
        self.batch_timeout = batch_timeout
        self.max_consecutive_failures = max(1, max_consecutive_failures)
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: AISettings) -> "AIClassifier":
        """Construct a classifier and its client from ``settings``.

        Raises
        ------
        LLMError
            If the client cannot be constructed from the settings.
        """
        return cls(
            OllamaClient.from_settings(settings),
            call_delay=settings.call_delay,
            batch_timeout=settings.batch_timeout,
            max_consecutive_failures=settings.max_consecutive_failures,
        )

    def _build_prompt(self, commit: RawCommit) -> str:
        labels = "\n".join(f"- {category.value}" for category in CATEGORY_ORDER)
        body = (commit.body or "").strip()[:MAX_BODY_CHARS] or "(no body)"
        return dedent(
            """
            You classify git commits for a changelog.
            Answer with exactly one category name from the list below and nothing else.

            CATEGORIES:
            {labels}

            COMMIT MESSAGE:
            {message}

            COMMIT BODY:
            {body}

            Category:
            """
        ).strip().format(labels=labels, message=commit.message, body=body)

    def _request(self, commit: RawCommit) -> Category:
        """Ask the model once. Raises :class:`LLMError` on service errors."""
        response = self.client.generate(self._build_prompt(commit))
        category = match_category(response)
        if category is None:
            logger.warning(
                "Malformed AI classification for commit %s: %r; using '%s'.",
                commit.short_hash,
                response[:80],
                Category.OTHER.value,
            )
            return Category.OTHER
        return category

    def classify(self, commit: RawCommit) -> Category:
        """Classify a single commit; never raises."""
        try:
            return self._request(commit)
        except LLMError as exc:
            logger.warning(
                "AI classification failed for commit %s: %s; using '%s'.",
                commit.short_hash,
                exc,
                Category.OTHER.value,
            )
            return Category.OTHER

    def classify_batch(self, commits: Sequence[RawCommit]) -> List[CategorizedCommit]:
        """Classify ``commits`` sequentially, one request per commit.

        Individual failures degrade to ``Category.OTHER``.

        Raises
        ------
        AIClassificationError
            If ``max_consecutive_failures`` requests fail in a row or the
            batch deadline passes.
        """
        started = self._clock()
        results: List[CategorizedCommit] = []
        failures = 0
        for index, commit in enumerate(commits):
            if index:
                self._sleep(self.call_delay)
            if self.batch_timeout is not None and self._clock() - started > self.batch_timeout:
                raise AIClassificationError(
                    f"AI classification exceeded {self.batch_timeout:g}s after {index} of {len(commits)} commits"
                )
            category, failed = self._classify_once(commit)
            failures = failures + 1 if failed else 0
            if failures >= self.max_consecutive_failures:
                raise AIClassificationError(
                    f"AI service failed {failures} times in a row; last commit {commit.short_hash}"
                )
            results.append(categorize(commit, category))
        return results

    def _classify_once(self, commit: RawCommit) -> Tuple[Category, bool]:
        try:
            return self._request(commit), False
        except LLMError as exc:
            logger.warning("AI classification failed for commit %s: %s", commit.short_hash, exc)
            return Category.OTHER, True
