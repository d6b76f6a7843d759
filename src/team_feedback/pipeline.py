"""
Team feedback pipeline orchestrator.

Owns the record set and drives it through the pipeline stages:
1. Load raw rows from a survey export
2. Flatten rows into feedback records and reflections
3. Aggregate records into student groups (on read, per version)
4. Merge identities on request, then re-aggregate
5. Export the flattened records

The record set is replaced wholesale by every ingestion and every merge;
each replacement bumps ``version``, and derived views are recomputed
from the current version only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from team_feedback.config import FeedbackConfig
from team_feedback.export import export_records
from team_feedback.flatten import FlattenResult, RowFlattener
from team_feedback.loaders import ExportLoader
from team_feedback.merge import merge_identities
from team_feedback.models import (
    FeedbackRecord,
    IngestIssue,
    MergeEvent,
    ReflectionOutcome,
    ReflectionRecord,
    SchemaVariant,
    StudentGroup,
    ViewMode,
)
from team_feedback.normalize import normalize_name
from team_feedback.scoring import StudentAggregator

logger = logging.getLogger(__name__)


@dataclass
class DisplayView:
    """
    Read-only payload for the display layer.

    In feedback mode ``groups`` is populated; in reflection mode
    ``reflections`` and ``outcomes`` are.
    """

    mode: ViewMode
    query: str = ""
    groups: Dict[str, StudentGroup] = field(default_factory=dict)
    reflections: Dict[str, ReflectionRecord] = field(default_factory=dict)
    outcomes: Dict[str, ReflectionOutcome] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.groups and not self.reflections

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {"mode": self.mode.value, "query": self.query}
        if self.mode is ViewMode.FEEDBACK:
            data["students"] = [group.to_dict() for group in self.groups.values()]
        else:
            data["reflections"] = [
                {**reflection.to_dict(), "outcome": self.outcomes[name].to_dict()}
                for name, reflection in self.reflections.items()
            ]
        return data


def _matches(identity: str, query: str) -> bool:
    return query in normalize_name(identity)


class FeedbackPipeline:
    """
    Main orchestrator for the team feedback pipeline.

    Example:
        >>> from team_feedback import FeedbackPipeline, load_config
        >>>
        >>> pipeline = FeedbackPipeline(load_config())
        >>> pipeline.load_file(Path("responses.csv"))
        >>> pipeline.merge("sam", "samuel")
        >>> for student, group in pipeline.groups().items():
        ...     print(student, f"{group.mean_planning:.2f}")
        >>> pipeline.export()
    """

    def __init__(self, config: Optional[FeedbackConfig] = None) -> None:
        """
        Initialize pipeline with configuration.

        Args:
            config: Configuration instance; defaults apply when omitted
        """
        self.config = config or FeedbackConfig()
        self.paths = self.config.get_resolved_paths()

        # Components
        self.loader = ExportLoader()
        self.flattener = RowFlattener(self.config.schema_config)
        self.aggregator = StudentAggregator(self.config)

        self.mode = ViewMode.FEEDBACK
        self.variant: Optional[SchemaVariant] = None
        self.version = 0
        self.merge_log: List[MergeEvent] = []

        # Owned state
        self._records: Tuple[FeedbackRecord, ...] = ()
        self._reflections: Dict[str, ReflectionRecord] = {}
        self._ingest_issues: List[IngestIssue] = []

        # Derived views, tagged with the version they were computed for
        self._groups_cache: Optional[Tuple[int, Dict[str, StudentGroup]]] = None
        self._outcomes_cache: Optional[Tuple[int, Dict[str, ReflectionOutcome]]] = None

    # -------------------------------------------------------------------------
    # Ingestion
    # -------------------------------------------------------------------------

    def load_file(self, path: Optional[Path] = None) -> FlattenResult:
        """
        Load a survey export and replace the record set with its contents.

        Args:
            path: Export file; defaults to ``paths.input_file``

        A file that cannot be read leaves the current state in place; the
        loading issues are returned and added to ``ingest_issues``.

        Returns:
            The flatten result, with loading issues included
        """
        if path is None:
            path = self.paths.input_file
        if path is None:
            raise ValueError("No input file given and paths.input_file is not configured")

        logger.info(f"Loading {path}")
        rows, load_issues = self.loader.load_file(Path(path))

        if not rows and any(i.severity == "critical" for i in load_issues):
            logger.warning(f"Keeping current records (version {self.version}); {path} was not loaded")
            self._ingest_issues.extend(load_issues)
            return FlattenResult(variant=None, issues=list(load_issues))

        result = self.ingest(rows)

        result.issues[:0] = load_issues
        self._ingest_issues = list(result.issues)
        return result

    def ingest(self, rows: Sequence[Mapping[str, Optional[str]]]) -> FlattenResult:
        """
        Replace the record set with records flattened from raw rows.

        The previous records, reflections, merge log and diagnostics are
        discarded together.
        """
        result = self.flattener.flatten(rows)

        self._records = tuple(result.records)
        self._reflections = dict(result.reflections)
        self._ingest_issues = list(result.issues)
        self.variant = result.variant
        self.merge_log = []
        self._bump()

        logger.info(
            f"Ingested {len(rows)} rows -> {len(self._records)} records, "
            f"{len(self._reflections)} reflections (version {self.version})"
        )
        return result

    def _bump(self) -> None:
        self.version += 1
        self._groups_cache = None
        self._outcomes_cache = None

    # -------------------------------------------------------------------------
    # Read-only state
    # -------------------------------------------------------------------------

    @property
    def records(self) -> Tuple[FeedbackRecord, ...]:
        """Current feedback records, in flatten order."""
        return self._records

    @property
    def reflections(self) -> Dict[str, ReflectionRecord]:
        """Current reflections keyed by declared name."""
        return dict(self._reflections)

    @property
    def ingest_issues(self) -> List[IngestIssue]:
        """Diagnostics from loading and flattening."""
        return list(self._ingest_issues)

    def groups(self) -> Dict[str, StudentGroup]:
        """Student groups for the current version."""
        if self._groups_cache is None or self._groups_cache[0] != self.version:
            self._groups_cache = (self.version, self.aggregator.aggregate(self._records))
        return dict(self._groups_cache[1])

    def reflection_outcomes(self) -> Dict[str, ReflectionOutcome]:
        """Outcome scores for every reflection in the current version."""
        if self._outcomes_cache is None or self._outcomes_cache[0] != self.version:
            outcomes = self.aggregator.aggregate_reflections(self._reflections)
            self._outcomes_cache = (self.version, outcomes)
        return dict(self._outcomes_cache[1])

    def students(self) -> List[str]:
        """Distinct student identities, in order of first appearance."""
        return list(self.groups())

    def search(self, query: str) -> Dict[str, StudentGroup]:
        """Groups whose identity contains ``query``, ignoring case."""
        q = query.strip().lower()
        return {key: group for key, group in self.groups().items() if _matches(key, q)}

    def unclassified(self) -> List[IngestIssue]:
        """Diagnostics for every answer that matched no vocabulary phrase."""
        issues: List[IngestIssue] = []
        for group in self.groups().values():
            issues.extend(group.issues)
        for outcome in self.reflection_outcomes().values():
            issues.extend(outcome.issues)
        return issues

    def all_issues(self) -> List[IngestIssue]:
        """Ingestion and classification diagnostics together."""
        return self.ingest_issues + self.unclassified()

    # -------------------------------------------------------------------------
    # Display
    # -------------------------------------------------------------------------

    def toggle_mode(self) -> ViewMode:
        """Switch between feedback and reflection views. Data is untouched."""
        self.mode = self.mode.toggled()
        return self.mode

    def view(self, query: str = "", mode: Optional[ViewMode] = None) -> DisplayView:
        """
        Build the display payload for a mode, filtered by search text.

        Args:
            query: Search text matched against normalized identities
            mode: View to build; defaults to the current mode
        """
        mode = mode or self.mode
        q = query.strip().lower()
        view = DisplayView(mode=mode, query=query)

        if mode is ViewMode.FEEDBACK:
            view.groups = self.search(q)
            return view

        outcomes = self.reflection_outcomes()
        for name, reflection in self._reflections.items():
            if _matches(name, q):
                view.reflections[name] = reflection
                view.outcomes[name] = outcomes[name]
        return view

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def merge(self, source: str, target: str) -> MergeEvent:
        """
        Fold one student identity into another.

        Reflections are not touched. The version only changes when at
        least one record was rewritten.

        Returns:
            Audit entry for the merge
        """
        merged, matched = merge_identities(self._records, source, target)

        if matched:
            self._records = tuple(merged)
            self._bump()

        event = MergeEvent(source=source, target=target, matched=matched, version=self.version)
        self.merge_log.append(event)
        return event

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def export(self, path: Optional[Path] = None) -> Optional[Path]:
        """
        Write the current records as CSV.

        Args:
            path: Destination; defaults to ``paths.output_dir / export.filename``

        Returns:
            The written path, or None when there are no records
        """
        if path is None:
            path = self.paths.output_dir / self.config.export.filename
        return export_records(self._records, Path(path), delimiter=self.config.export.delimiter)

    def summary(self) -> Dict[str, Any]:
        """Counts describing the current state."""
        return {
            "version": self.version,
            "variant": self.variant.value if self.variant else None,
            "records": len(self._records),
            "students": len(self.groups()),
            "reflections": len(self._reflections),
            "merges": len(self.merge_log),
            "issues": len(self.all_issues()),
        }
