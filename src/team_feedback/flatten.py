"""
Row flattening.

Turns wide survey rows into discrete records:
- every populated reviewee block becomes one FeedbackRecord carrying the
  row's reviewer
- in the combined layout every row with a declared name also becomes one
  ReflectionRecord

Columns are addressed by position through the configured layouts; header
labels are never consulted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING

from team_feedback.models import (
    FeedbackRecord,
    IngestIssue,
    IssueKind,
    ReflectionCategory,
    ReflectionRecord,
    SchemaVariant,
)
from team_feedback.normalize import normalize_name

if TYPE_CHECKING:
    from team_feedback.config import FeedbackLayout, ReflectionLayout, SchemaConfig

logger = logging.getLogger(__name__)


@dataclass
class FlattenResult:
    """Everything produced from one batch of raw rows."""

    variant: Optional[SchemaVariant]
    records: List[FeedbackRecord] = field(default_factory=list)
    reflections: Dict[str, ReflectionRecord] = field(default_factory=dict)
    issues: List[IngestIssue] = field(default_factory=list)


def _cell(values: Sequence[Optional[str]], index: int) -> str:
    """Value at a column position; missing and ``None`` cells read as empty."""
    if index < len(values):
        value = values[index]
        return value if value is not None else ""
    return ""


def _row_width(rows: Sequence[Mapping[str, Optional[str]]]) -> int:
    return max((len(row) for row in rows), default=0)


class RowFlattener:
    """
    Expand wide survey rows into feedback and reflection records.

    Example:
        >>> flattener = RowFlattener(config.schema_config)
        >>> result = flattener.flatten(rows)
        >>> print(f"{result.variant}: {len(result.records)} feedback records")
    """

    def __init__(self, schema: SchemaConfig) -> None:
        """
        Initialize flattener.

        Args:
            schema: Layout configuration
        """
        self.schema = schema
        self.placeholder = schema.placeholder_name

    def detect_variant(
        self, rows: Sequence[Mapping[str, Optional[str]]]
    ) -> Optional[SchemaVariant]:
        """
        Decide which layout a batch of rows uses.

        A forced variant in the configuration wins. Otherwise rows wide
        enough for every combined-layout block are combined, rows that
        hold at least one feedback-layout block are plain feedback, and
        anything narrower is unknown.
        """
        forced = self.schema.forced_variant
        if forced is not None:
            return forced

        width = _row_width(rows)
        if width >= self.schema.combined.full_columns:
            return SchemaVariant.COMBINED
        if width >= self.schema.feedback.min_columns:
            return SchemaVariant.FEEDBACK
        return None

    def flatten(self, rows: Sequence[Mapping[str, Optional[str]]]) -> FlattenResult:
        """
        Flatten a batch of raw rows.

        Args:
            rows: Header -> value mappings in file order

        Returns:
            FlattenResult with records, reflections and skip diagnostics
        """
        if not rows:
            return FlattenResult(variant=None)

        variant = self.detect_variant(rows)
        if variant is None:
            width = _row_width(rows)
            issue = IngestIssue(
                kind=IssueKind.UNKNOWN_LAYOUT,
                severity="critical",
                message=f"Rows are {width} columns wide; no known layout fits",
                details={
                    "columns": width,
                    "feedback_min_columns": self.schema.feedback.min_columns,
                    "combined_columns": self.schema.combined.full_columns,
                },
            )
            logger.error(issue.message)
            return FlattenResult(variant=None, issues=[issue])

        logger.info(f"Using {variant.value} layout for {len(rows)} rows")
        result = FlattenResult(variant=variant)
        layout = self.schema.layout_for(variant)

        # A width-based guess is only certain when the width fits exactly
        width = _row_width(rows)
        if self.schema.forced_variant is None and width != layout.full_columns:
            issue = IngestIssue(
                kind=IssueKind.LAYOUT_MISMATCH,
                severity="minor",
                message=(
                    f"Rows are {width} columns wide; read as {variant.value} layout, "
                    f"which expects {layout.full_columns}"
                ),
                details={
                    "columns": width,
                    "variant": variant.value,
                    "expected_columns": layout.full_columns,
                },
            )
            logger.warning(issue.message)
            result.issues.append(issue)

        records, issues = self.flatten_feedback(rows, layout)
        result.records = records
        result.issues.extend(issues)

        if variant is SchemaVariant.COMBINED:
            reflections, issues = self.flatten_reflection(rows, self.schema.reflection)
            result.reflections = reflections
            result.issues.extend(issues)

        logger.info(
            f"Flattened {len(result.records)} feedback records "
            f"and {len(result.reflections)} reflections"
        )
        return result

    def flatten_feedback(
        self,
        rows: Sequence[Mapping[str, Optional[str]]],
        layout: FeedbackLayout,
    ) -> Tuple[List[FeedbackRecord], List[IngestIssue]]:
        """
        Expand each row's reviewee blocks into FeedbackRecords.

        Blocks whose name cell is empty or the placeholder are skipped.
        """
        records: List[FeedbackRecord] = []
        issues: List[IngestIssue] = []
        fields = layout.block_fields

        for row_num, row in enumerate(rows, 1):
            values = list(row.values())
            reviewer = _cell(values, layout.reviewer_column).strip()

            for block_num, base in enumerate(layout.block_offsets(), 1):
                name = _cell(values, base + fields["name"]).strip()
                planning = _cell(values, base + fields["planning"])
                cooking = _cell(values, base + fields["cooking"])
                cleaning = _cell(values, base + fields["cleaning"])
                comments = _cell(values, base + fields["comments"])

                if not name or name == self.placeholder:
                    if not name and any(s.strip() for s in (planning, cooking, cleaning, comments)):
                        issues.append(
                            IngestIssue(
                                kind=IssueKind.SKIPPED_BLOCK,
                                severity="info",
                                message=f"Row {row_num} block {block_num} has answers but no name",
                                details={"row": row_num, "block": block_num, "reviewer": reviewer},
                            )
                        )
                    logger.debug(f"Row {row_num}: skipping block {block_num} ({name or 'empty'})")
                    continue

                records.append(
                    FeedbackRecord(
                        reviewer_name=reviewer,
                        student_name=normalize_name(name),
                        planning_response=planning,
                        cooking_response=cooking,
                        cleaning_response=cleaning,
                        comments=comments,
                    )
                )

        return records, issues

    def flatten_reflection(
        self,
        rows: Sequence[Mapping[str, Optional[str]]],
        layout: ReflectionLayout,
    ) -> Tuple[Dict[str, ReflectionRecord], List[IngestIssue]]:
        """
        Build one ReflectionRecord per row, keyed by the trimmed declared name.

        Rows without a name are skipped; a later row with the same name
        replaces an earlier one.
        """
        reflections: Dict[str, ReflectionRecord] = {}
        issues: List[IngestIssue] = []

        for row_num, row in enumerate(rows, 1):
            values = list(row.values())
            name = _cell(values, layout.name_column).strip()
            answers = tuple(
                (cat, _cell(values, layout.column_for(cat))) for cat in ReflectionCategory
            )

            if not name:
                if any(text.strip() for _, text in answers):
                    issues.append(
                        IngestIssue(
                            kind=IssueKind.SKIPPED_REFLECTION,
                            severity="info",
                            message=f"Row {row_num} has reflection answers but no name",
                            details={"row": row_num},
                        )
                    )
                continue

            if name in reflections:
                logger.debug(f"Row {row_num}: reflection for {name!r} replaces an earlier one")

            reflections[name] = ReflectionRecord(student_name=name, answers=answers)

        return reflections, issues
