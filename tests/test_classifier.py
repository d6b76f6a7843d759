"""Tests for answer classification."""

import logging
import math

from team_feedback.classifier import NO_MATCH, AnswerClassifier, is_no_match
from team_feedback.models import IssueKind, ScoreVocabulary, UnmatchedPolicy
from team_feedback.vocabularies import (
    PARTICIPATION,
    PROJECT,
    REFLECTION_VOCABULARIES,
    SOUS_CHEF,
)


class TestParticipationScale:
    """Planning / cooking / cleaning answers"""

    def setup_method(self):
        self.classifier = AnswerClassifier(UnmatchedPolicy.BASELINE)

    def test_actively_beats_generic_participated(self):
        result = self.classifier.classify(
            "Actively participated, and participated in cleanup too", PARTICIPATION
        )
        assert result.score == 4
        assert result.phrase == "actively participated"

    def test_each_level(self):
        assert self.classifier.score("Actively participated", PARTICIPATION) == 4
        assert self.classifier.score("Participated", PARTICIPATION) == 3
        assert self.classifier.score("Somewhat participated", PARTICIPATION) == 2
        assert self.classifier.score("Didn't participate", PARTICIPATION) == 1
        assert self.classifier.score("Did not participate at all", PARTICIPATION) == 1

    def test_case_and_whitespace_insensitive(self):
        assert self.classifier.score("  SOMEWHAT    participated ", PARTICIPATION) == 2

    def test_unmatched_uses_baseline(self):
        result = self.classifier.classify("was absent", PARTICIPATION)
        assert result.score == 0
        assert not result.matched
        assert result.issue is not None
        assert result.issue.severity == "info"
        assert result.issue.kind is IssueKind.UNCLASSIFIED_RESPONSE

    def test_custom_baseline(self):
        classifier = AnswerClassifier(UnmatchedPolicy.BASELINE, baseline_score=1.5)
        assert classifier.score("", PARTICIPATION) == 1.5


class TestSentinelPolicy:
    """Reflection answers"""

    def setup_method(self):
        self.classifier = AnswerClassifier(UnmatchedPolicy.SENTINEL)

    def test_trailing_context_still_matches(self):
        assert self.classifier.score("I love being the sous chef because I get to cut", SOUS_CHEF) == 4

    def test_unknown_response_gives_sentinel_and_issue(self):
        result = self.classifier.classify("I like turtles", SOUS_CHEF, {"student": "Ann"})
        assert is_no_match(result.score)
        assert result.score == NO_MATCH == -math.inf
        assert result.issue.severity == "major"
        assert result.issue.details["category"] == "sous_chef"
        assert result.issue.details["student"] == "Ann"
        assert result.issue.details["response"] == "I like turtles"

    def test_none_response_is_unmatched(self):
        result = self.classifier.classify(None, PROJECT)
        assert not result.matched
        assert is_no_match(result.score)

    def test_unknown_response_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="team_feedback.classifier"):
            self.classifier.classify("no idea", SOUS_CHEF)
        assert "Unknown sous_chef response" in caplog.text

    def test_project_scale(self):
        assert self.classifier.score("I haven't started yet", PROJECT) == 1
        assert self.classifier.score("I have done three of these things", PROJECT) == 3
        assert self.classifier.score("All the recipes we have made so far are in my recipe book", PROJECT) == 4


class TestPriority:
    """Vocabulary order decides, not match length"""

    def test_first_listed_phrase_wins(self):
        vocabulary = ScoreVocabulary.from_mapping("toy", {"good": 1, "very good": 2})
        classifier = AnswerClassifier(UnmatchedPolicy.SENTINEL)
        assert classifier.score("very good", vocabulary) == 1

    def test_every_reflection_phrase_scores_itself(self):
        classifier = AnswerClassifier(UnmatchedPolicy.SENTINEL)
        for vocabulary in REFLECTION_VOCABULARIES.values():
            for phrase, score in vocabulary:
                result = classifier.classify(phrase, vocabulary)
                assert result.phrase == phrase
                assert result.score == score
