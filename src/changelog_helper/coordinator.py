"""
Selection between rule-based and AI classification.

:class:`ClassificationCoordinator` decides which classifier backs a
generation request and guarantees that a categorised result is always
produced:

1. AI not requested: the rule-based classifier handles every commit.
2. AI requested but unavailable (no settings, or the client cannot be
   constructed): a warning is logged and the rule-based classifier is
   used instead. No request is ever sent.
3. AI requested and available: the AI classifier handles the batch. If
   the batch as a whole fails, the warning is logged and the entire
   batch is re-run through the rule-based classifier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from changelog_helper.config.loader import AISettings
from changelog_helper.grouping.group_model import CategorizedCommit
from changelog_helper.grouping.rule_classifier import RuleBasedClassifier
from changelog_helper.llm.ai_classifier import AIClassifier
from changelog_helper.llm.ollama_client import LLMError
from changelog_helper.vcs.git_client import RawCommit


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())
    logger.propagate = False


@dataclass(frozen=True)
class ClassificationOutcome:
    """Result of :meth:`ClassificationCoordinator.categorize_commits`.

    ``classifier`` names the classifier whose output is returned
    (``"rules"`` or ``"ai"``); ``fallback_reason`` is set whenever AI was
    requested but the rule-based result was used.
    """

    commits: List[CategorizedCommit]
    classifier: str
    fallback_reason: Optional[str] = None


class ClassificationCoordinator:
    """Choose a classifier per request and fall back to rules on failure.

    Parameters
    ----------
    ai_settings : AISettings, optional
        Settings for the AI classifier. ``None`` means AI is unavailable.
    unavailable_reason : str, optional
        Why ``ai_settings`` is missing, reported in the fallback warning.
    rule_classifier : RuleBasedClassifier, optional
        The deterministic classifier; a default instance is created.
    ai_factory : callable, optional
        Builds an :class:`AIClassifier` from settings. Defaults to
        :meth:`AIClassifier.from_settings`.
    """

    def __init__(
        self,
        ai_settings: Optional[AISettings] = None,
        unavailable_reason: Optional[str] = None,
        rule_classifier: Optional[RuleBasedClassifier] = None,
        ai_factory: Callable[[AISettings], AIClassifier] = AIClassifier.from_settings,
    ) -> None:
        self.rule_classifier = rule_classifier or RuleBasedClassifier()
        self._ai: Optional[AIClassifier] = None
        self.unavailable_reason: Optional[str] = None
        if ai_settings is None:
            self.unavailable_reason = unavailable_reason or "no AI configuration was provided"
            return
        # Availability is decided once, up front.
        try:
            self._ai = ai_factory(ai_settings)
        except (LLMError, ValueError, TypeError) as exc:
            self.unavailable_reason = f"AI client could not be constructed: {exc}"

    @property
    def ai_available(self) -> bool:
        return self._ai is not None

    def categorize_commits(self, commits: Sequence[RawCommit], use_ai: bool = False) -> ClassificationOutcome:
        """Categorise ``commits`` according to the fallback policy.

        Never raises for classification problems; the returned outcome
        reports which classifier produced the result.
        """
        if not use_ai:
            return ClassificationOutcome(self.rule_classifier.classify_batch(commits), RuleBasedClassifier.name)

        if self._ai is None:
            reason = f"AI classification unavailable ({self.unavailable_reason})"
            logger.warning("%s; using rule-based classification.", reason)
            return ClassificationOutcome(
                self.rule_classifier.classify_batch(commits), RuleBasedClassifier.name, reason
            )

        try:
            return ClassificationOutcome(self._ai.classify_batch(commits), AIClassifier.name)
        except Exception as exc:  # AIClassificationError or an unexpected client failure
            reason = f"AI classification failed ({exc})"
            logger.warning("%s; re-running the batch with rule-based classification.", reason)
            return ClassificationOutcome(
                self.rule_classifier.classify_batch(commits), RuleBasedClassifier.name, reason
            )
