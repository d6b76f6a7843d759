"""
Data models for the team feedback pipeline.

This module defines all data structures used throughout the pipeline:
- Diagnostics (issue kinds, severities, issues)
- Scoring vocabularies and classification results
- Feedback and reflection records
- Derived views (student groups, reflection outcomes, merge events)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple


# =============================================================================
# Enumerations
# =============================================================================


class SchemaVariant(Enum):
    """Known layouts of the survey export."""

    FEEDBACK = "feedback"
    COMBINED = "combined"

    @classmethod
    def from_string(cls, s: str) -> Optional["SchemaVariant"]:
        """Convert string to variant enum, ``None`` for ``auto`` or unknown values."""
        normalized = s.lower().strip()
        for variant in cls:
            if variant.value == normalized:
                return variant
        return None


class ViewMode(Enum):
    """Which view of the data the display layer shows."""

    FEEDBACK = "feedback"
    REFLECTION = "reflection"

    def toggled(self) -> "ViewMode":
        """Return the other mode."""
        return ViewMode.REFLECTION if self is ViewMode.FEEDBACK else ViewMode.FEEDBACK


class UnmatchedPolicy(Enum):
    """What the classifier does with a response that matches no phrase."""

    BASELINE = "baseline"
    SENTINEL = "sentinel"


class ReflectionCategory(Enum):
    """The seven self-reflection questions, in export column order."""

    PROFESSIONALISM = "professional"
    ENGAGEMENT = "engagement"
    INSTRUCTIONS = "instructions"
    SOUS_CHEF = "sous_chef"
    RECIPE = "recipe"
    QUESTIONS = "questions"
    PROJECT = "project"

    @property
    def is_interest(self) -> bool:
        """Whether the category contributes to the Interest composite."""
        return self in INTEREST_CATEGORIES


INTEREST_CATEGORIES = (
    ReflectionCategory.ENGAGEMENT,
    ReflectionCategory.INSTRUCTIONS,
    ReflectionCategory.SOUS_CHEF,
    ReflectionCategory.RECIPE,
    ReflectionCategory.QUESTIONS,
)


class IssueKind(Enum):
    """
    Taxonomy of non-fatal problems found while ingesting and scoring.

    None of these stop the pipeline; they are collected and handed to
    the caller.
    """

    MISSING_FILE = "missing_file"
    UNREADABLE_FILE = "unreadable_file"
    EMPTY_FILE = "empty_file"
    SHORT_ROW = "short_row"
    LONG_ROW = "long_row"
    UNKNOWN_LAYOUT = "unknown_layout"
    LAYOUT_MISMATCH = "layout_mismatch"
    SKIPPED_BLOCK = "skipped_block"
    SKIPPED_REFLECTION = "skipped_reflection"
    UNCLASSIFIED_RESPONSE = "unclassified_response"


class Severity(Enum):
    """Issue severity levels."""

    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    INFO = "info"

    @property
    def priority(self) -> int:
        """Get numeric priority (higher = more severe)."""
        return {"critical": 4, "major": 3, "minor": 2, "info": 1}[self.value]


# =============================================================================
# Data Classes: Issues
# =============================================================================


@dataclass
class IngestIssue:
    """
    A single diagnostic produced during ingestion or classification.

    Attributes:
        kind: The type of issue
        severity: How severe the issue is
        message: Human-readable description
        details: Additional context (row number, category, raw text...)
    """

    kind: IssueKind
    severity: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate severity value."""
        valid_severities = {s.value for s in Severity}
        if self.severity not in valid_severities:
            raise ValueError(
                f"Invalid severity: {self.severity}. Must be one of {valid_severities}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "severity": self.severity,
            "message": self.message,
            "details": self.details,
        }

    @property
    def is_blocking(self) -> bool:
        """Critical or major issues deserve a user's attention."""
        return self.severity in ("critical", "major")


# =============================================================================
# Data Classes: Vocabularies
# =============================================================================


@dataclass(frozen=True)
class ScoreVocabulary:
    """
    Ordered canonical phrases for one question category.

    Order is priority: the classifier takes the first phrase found in a
    response, so specific phrases must precede generic ones that they
    contain (``"actively participated"`` before ``"participated"``).
    """

    name: str
    phrases: Tuple[Tuple[str, int], ...]

    @classmethod
    def from_mapping(cls, name: str, mapping: Mapping[str, int]) -> "ScoreVocabulary":
        """Build from an insertion-ordered mapping of phrase -> score."""
        return cls(name=name, phrases=tuple(mapping.items()))

    def __iter__(self) -> Iterator[Tuple[str, int]]:
        return iter(self.phrases)

    def __len__(self) -> int:
        return len(self.phrases)


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one response.

    Attributes:
        score: The ordinal score, the baseline, or ``-inf``
        phrase: The vocabulary phrase that matched, if any
        issue: Diagnostic describing an unmatched response
    """

    score: float
    phrase: Optional[str] = None
    issue: Optional[IngestIssue] = None

    @property
    def matched(self) -> bool:
        return self.phrase is not None


# =============================================================================
# Data Classes: Records
# =============================================================================


@dataclass(frozen=True)
class FeedbackRecord:
    """
    One reviewer's feedback about one teammate.

    ``student_name`` is normalized once, when the record is flattened out
    of its source row, and only ever rewritten by a merge.
    """

    reviewer_name: str
    student_name: str
    planning_response: str = ""
    cooking_response: str = ""
    cleaning_response: str = ""
    comments: str = ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to the export row shape."""
        return {
            "reviewer": self.reviewer_name,
            "member": self.student_name,
            "planning": self.planning_response,
            "cooking": self.cooking_response,
            "cleaning": self.cleaning_response,
            "comments": self.comments,
        }


@dataclass(frozen=True)
class ReflectionRecord:
    """
    A student's self-reflection: seven free-text answers keyed by category.

    Keyed by the trimmed (not normalized) name the student typed.
    """

    student_name: str
    answers: Tuple[Tuple[ReflectionCategory, str], ...]

    def answer(self, category: ReflectionCategory) -> str:
        """Get the raw answer for a category (``""`` when absent)."""
        for cat, text in self.answers:
            if cat is category:
                return text
        return ""

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {"name": self.student_name}
        result.update({cat.value: text for cat, text in self.answers})
        return result


# =============================================================================
# Data Classes: Derived Views
# =============================================================================


@dataclass
class StudentGroup:
    """
    All feedback about one normalized identity, with mean category scores.

    Only ever built for a non-empty set of records.
    """

    key: str
    records: List[FeedbackRecord]
    planning_scores: List[float] = field(default_factory=list)
    cooking_scores: List[float] = field(default_factory=list)
    cleaning_scores: List[float] = field(default_factory=list)
    mean_planning: float = 0.0
    mean_cooking: float = 0.0
    mean_cleaning: float = 0.0
    issues: List[IngestIssue] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.records)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "student": self.key,
            "record_count": self.size,
            "mean_planning": round(self.mean_planning, 2),
            "mean_cooking": round(self.mean_cooking, 2),
            "mean_cleaning": round(self.mean_cleaning, 2),
            "records": [
                {
                    **r.to_dict(),
                    "planning_score": p,
                    "cooking_score": c,
                    "cleaning_score": cl,
                }
                for r, p, c, cl in zip(
                    self.records,
                    self.planning_scores,
                    self.cooking_scores,
                    self.cleaning_scores,
                )
            ],
        }


@dataclass
class ReflectionOutcome:
    """
    Outcome scores for one reflection.

    Attributes:
        student_name: Identity the reflection was filed under
        scores: Per-category scores (``-inf`` for unmatched answers)
        professionalism: Professionalism score
        interest: Unweighted mean of the five interest categories
        special_project: Project-completion score
        issues: Diagnostics for answers that matched no phrase
    """

    student_name: str
    scores: Dict[ReflectionCategory, float]
    professionalism: float
    interest: float
    special_project: float
    issues: List[IngestIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "student": self.student_name,
            "scores": {cat.value: score for cat, score in self.scores.items()},
            "professionalism": self.professionalism,
            "interest": self.interest,
            "special_project": self.special_project,
        }


@dataclass(frozen=True)
class MergeEvent:
    """Audit entry for one merge applied to the record set."""

    source: str
    target: str
    matched: int
    version: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "matched": self.matched,
            "version": self.version,
        }
