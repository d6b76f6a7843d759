"""
Score aggregation for the team feedback pipeline.

Groups feedback records by normalized student identity and computes
per-group means, and turns self-reflections into outcome scores.

Score computation:
- Planning, cooking and cleaning answers share the participation scale
- Group means are plain arithmetic means over the group's records
- Interest is the unweighted mean of the five interest categories;
  professionalism and the special project are reported separately
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from team_feedback.classifier import AnswerClassifier
from team_feedback.config import FeedbackConfig
from team_feedback.models import (
    FeedbackRecord,
    IngestIssue,
    ReflectionCategory,
    ReflectionOutcome,
    ReflectionRecord,
    StudentGroup,
)
from team_feedback.normalize import normalize_name
from team_feedback.vocabularies import PARTICIPATION, REFLECTION_VOCABULARIES

logger = logging.getLogger(__name__)


def group_by_student(records: Sequence[FeedbackRecord]) -> Dict[str, List[FeedbackRecord]]:
    """
    Group records by normalized identity.

    Keys appear in order of first occurrence and every group is non-empty.
    """
    groups: Dict[str, List[FeedbackRecord]] = {}
    for record in records:
        groups.setdefault(normalize_name(record.student_name), []).append(record)
    return groups


def _mean(scores: Sequence[float]) -> float:
    return float(np.mean(scores))


class StudentAggregator:
    """
    Aggregate classified scores per student.

    Uses two classifiers built from configuration:
    - peer-review answers (planning, cooking, cleaning)
    - self-reflection answers

    Example:
        >>> aggregator = StudentAggregator(config)
        >>> groups = aggregator.aggregate(records)
        >>> for key, group in groups.items():
        ...     print(f"{key}: planning {group.mean_planning:.2f}")
    """

    def __init__(self, config: Optional[FeedbackConfig] = None) -> None:
        """
        Initialize score aggregator.

        Args:
            config: Configuration instance; defaults apply when omitted
        """
        self.config = config or FeedbackConfig()

        cc = self.config.classifier
        self.feedback_classifier = AnswerClassifier(cc.feedback_unmatched, cc.baseline_score)
        self.reflection_classifier = AnswerClassifier(cc.reflection_unmatched, cc.baseline_score)

    def aggregate(self, records: Sequence[FeedbackRecord]) -> Dict[str, StudentGroup]:
        """
        Group records by student and compute mean category scores.

        Args:
            records: Flattened feedback records

        Returns:
            Dict mapping normalized identity -> StudentGroup, in order of
            first occurrence
        """
        groups: Dict[str, StudentGroup] = {}

        for key, members in group_by_student(records).items():
            group = StudentGroup(key=key, records=members)

            for record in members:
                context = {"student": key, "reviewer": record.reviewer_name}
                for question, response, scores in (
                    ("planning", record.planning_response, group.planning_scores),
                    ("cooking", record.cooking_response, group.cooking_scores),
                    ("cleaning", record.cleaning_response, group.cleaning_scores),
                ):
                    result = self.feedback_classifier.classify(
                        response, PARTICIPATION, {**context, "question": question}
                    )
                    scores.append(result.score)
                    if result.issue is not None:
                        group.issues.append(result.issue)

            group.mean_planning = _mean(group.planning_scores)
            group.mean_cooking = _mean(group.cooking_scores)
            group.mean_cleaning = _mean(group.cleaning_scores)
            groups[key] = group

        logger.info(f"Aggregated {len(records)} records into {len(groups)} students")
        return groups

    def aggregate_reflection(self, reflection: ReflectionRecord) -> ReflectionOutcome:
        """
        Compute outcome scores for one reflection.

        Unmatched answers score per the reflection policy (``-inf`` by
        default), which carries through into the Interest mean.
        """
        scores: Dict[ReflectionCategory, float] = {}
        issues: List[IngestIssue] = []

        for category in ReflectionCategory:
            result = self.reflection_classifier.classify(
                reflection.answer(category),
                REFLECTION_VOCABULARIES[category],
                {"student": reflection.student_name, "question": category.value},
            )
            scores[category] = result.score
            if result.issue is not None:
                issues.append(result.issue)

        return ReflectionOutcome(
            student_name=reflection.student_name,
            scores=scores,
            professionalism=scores[ReflectionCategory.PROFESSIONALISM],
            interest=_mean([score for cat, score in scores.items() if cat.is_interest]),
            special_project=scores[ReflectionCategory.PROJECT],
            issues=issues,
        )

    def aggregate_reflections(
        self, reflections: Mapping[str, ReflectionRecord]
    ) -> Dict[str, ReflectionOutcome]:
        """Outcome scores for every reflection, keyed like the input."""
        return {name: self.aggregate_reflection(r) for name, r in reflections.items()}
