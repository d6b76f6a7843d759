"""
Team Feedback
=============

Scoring pipeline for Foods class survey exports: peer feedback about
teammates and students' self-reflections.

This package provides:
- Loading of wide survey exports (one row per reviewer)
- Flattening of reviewee blocks into per-student feedback records
- Phrase-based classification of free-text answers into scores
- Grouping by normalized student identity with mean scores
- Merging of duplicate or misspelled student identities
- Sorted CSV export

Example usage::

    from team_feedback import FeedbackPipeline, load_config

    pipeline = FeedbackPipeline(load_config())
    pipeline.load_file("responses.csv")
    pipeline.merge("sam", "samuel")
    pipeline.export()

Or via CLI::

    team-feedback show responses.csv --search sam

"""

__version__ = "1.0.0"

from team_feedback.config import FeedbackConfig, load_config
from team_feedback.classifier import AnswerClassifier
from team_feedback.models import (
    FeedbackRecord,
    IngestIssue,
    ReflectionOutcome,
    ReflectionRecord,
    StudentGroup,
    ViewMode,
)
from team_feedback.normalize import normalize_name
from team_feedback.pipeline import FeedbackPipeline

__all__ = [
    # Version
    "__version__",
    # Configuration
    "FeedbackConfig",
    "load_config",
    # Pipeline
    "FeedbackPipeline",
    "AnswerClassifier",
    "normalize_name",
    # Models
    "FeedbackRecord",
    "ReflectionRecord",
    "StudentGroup",
    "ReflectionOutcome",
    "IngestIssue",
    "ViewMode",
]
