"""
CSV export of flattened feedback.

One row per feedback record (not per student), ordered by student name
the way a person would alphabetize them: case and accents are ignored,
and records for the same student keep their original order.
"""

from __future__ import annotations

import csv
import io
import logging
import unicodedata
from pathlib import Path
from typing import List, Optional, Sequence

from team_feedback.models import FeedbackRecord

logger = logging.getLogger(__name__)

EXPORT_FIELDS = ["reviewer", "member", "planning", "cooking", "cleaning", "comments"]


def collation_key(name: str) -> str:
    """Case- and accent-insensitive sort key for a name."""
    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def sort_for_export(records: Sequence[FeedbackRecord]) -> List[FeedbackRecord]:
    """Records ordered by student name (stable)."""
    return sorted(records, key=lambda r: collation_key(r.student_name))


def render_csv(records: Sequence[FeedbackRecord], delimiter: str = ",") -> str:
    """Serialize records, sorted, to CSV text with a header row."""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS, delimiter=delimiter)
    writer.writeheader()
    for record in sort_for_export(records):
        writer.writerow(record.to_dict())
    return buffer.getvalue()


def export_records(
    records: Sequence[FeedbackRecord],
    path: Path,
    delimiter: str = ",",
) -> Optional[Path]:
    """
    Write records to a CSV file.

    Args:
        records: Feedback records to export
        path: Destination file
        delimiter: Field delimiter

    Returns:
        The written path, or None when there was nothing to export
    """
    if not records:
        logger.info("No records to export")
        return None

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(render_csv(records, delimiter=delimiter))

    logger.info(f"Exported {len(records)} records to {path}")
    return path
