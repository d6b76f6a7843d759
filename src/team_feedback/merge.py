"""
Identity merging.

Reconciles misspelled or duplicate student names by rewriting every
record filed under one identity to another. Records are immutable, so a
merge produces a new record list; the caller swaps it in wholesale.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import List, Sequence, Tuple

from team_feedback.models import FeedbackRecord

logger = logging.getLogger(__name__)


def merge_identities(
    records: Sequence[FeedbackRecord],
    source: str,
    target: str,
) -> Tuple[List[FeedbackRecord], int]:
    """
    Rewrite ``student_name`` from ``source`` to ``target``.

    Comparison is exact on the stored name. Names are normalized once
    when records are flattened, so the stored value already is the
    canonical identity and the merge candidates offered to users are
    drawn from those same values.

    Args:
        records: Current record set
        source: Identity to fold away
        target: Identity to fold into

    Returns:
        Tuple of (new record list, number of records rewritten). Identical
        or unknown identities rewrite nothing.
    """
    if source == target:
        return list(records), 0

    merged: List[FeedbackRecord] = []
    matched = 0
    for record in records:
        if record.student_name == source:
            merged.append(dataclasses.replace(record, student_name=target))
            matched += 1
        else:
            merged.append(record)

    if matched:
        logger.info(f"Merged {matched} records from {source!r} into {target!r}")
    else:
        logger.debug(f"Merge {source!r} -> {target!r} matched no records")

    return merged, matched
