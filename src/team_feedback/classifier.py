"""
Answer classification.

Maps a free-text survey response to an ordinal score by looking for
canonical vocabulary phrases inside it. Survey exports often append
context after the canonical phrase, so matching is by substring, and the
vocabulary's order decides between phrases that could both match.

What happens when nothing matches is a policy of the classifier:
- ``BASELINE``: score the configured baseline (0 by default); the
  diagnostic is recorded at ``info`` severity
- ``SENTINEL``: score ``-inf`` so that any mean computed over it is
  visibly wrong; the diagnostic is recorded at ``major`` severity
"""

from __future__ import annotations

import logging
import math
from typing import Optional

from team_feedback.models import (
    Classification,
    IngestIssue,
    IssueKind,
    ScoreVocabulary,
    UnmatchedPolicy,
)
from team_feedback.normalize import normalize_text

logger = logging.getLogger(__name__)

NO_MATCH = -math.inf


def is_no_match(score: float) -> bool:
    """Check whether a score is the no-match sentinel."""
    return score == NO_MATCH


class AnswerClassifier:
    """
    Classify responses against a ScoreVocabulary.

    Example:
        >>> from team_feedback.vocabularies import SOUS_CHEF
        >>> classifier = AnswerClassifier(UnmatchedPolicy.SENTINEL)
        >>> classifier.classify("I love being the sous chef!", SOUS_CHEF).score
        4
    """

    def __init__(
        self,
        policy: UnmatchedPolicy = UnmatchedPolicy.SENTINEL,
        baseline_score: float = 0.0,
    ) -> None:
        """
        Initialize classifier.

        Args:
            policy: What to do with responses that match no phrase
            baseline_score: Score used by the BASELINE policy
        """
        self.policy = policy
        self.baseline_score = baseline_score

    @property
    def unmatched_score(self) -> float:
        """Score given to a response that matches nothing."""
        if self.policy is UnmatchedPolicy.BASELINE:
            return self.baseline_score
        return NO_MATCH

    def classify(
        self,
        response: Optional[str],
        vocabulary: ScoreVocabulary,
        context: Optional[dict] = None,
    ) -> Classification:
        """
        Score one response.

        Args:
            response: Raw answer text (``None`` is treated as empty)
            vocabulary: Phrases to look for, in priority order
            context: Extra details attached to the diagnostic (student, column...)

        Returns:
            Classification with the score and either the matched phrase
            or a diagnostic describing the miss
        """
        text = normalize_text(response)

        for phrase, score in vocabulary:
            if normalize_text(phrase) in text:
                return Classification(score=score, phrase=phrase)

        baseline = self.policy is UnmatchedPolicy.BASELINE
        details = {
            "category": vocabulary.name,
            "response": response or "",
            "policy": self.policy.value,
        }
        if context:
            details.update(context)

        issue = IngestIssue(
            kind=IssueKind.UNCLASSIFIED_RESPONSE,
            severity="info" if baseline else "major",
            message=f"Unknown {vocabulary.name} response: {response or '<empty>'!r}",
            details=details,
        )

        if baseline:
            logger.debug(issue.message)
        else:
            logger.warning(issue.message)

        return Classification(score=self.unmatched_score, issue=issue)

    def score(self, response: Optional[str], vocabulary: ScoreVocabulary) -> float:
        """Shortcut returning only the score."""
        return self.classify(response, vocabulary).score
