"""
Data Loading for the team feedback pipeline.

Reads a delimited survey export into an ordered sequence of
header -> value rows. The flattener indexes these rows by column
position, so the loader's job is to keep every column and keep them in
order:
- duplicate header labels get ``_1``, ``_2`` suffixes instead of
  overwriting each other
- short rows are padded with empty strings; cells past the header width
  are dropped and reported
- blank lines are skipped

Problems are returned as issues; loading never raises.
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from team_feedback.models import IngestIssue, IssueKind

logger = logging.getLogger(__name__)

RawRow = Dict[str, str]

CANDIDATE_DELIMITERS = ",;\t|"


def dedupe_headers(headers: Sequence[str]) -> List[str]:
    """
    Make header labels unique while preserving their order.

    Example:
        >>> dedupe_headers(["Name", "Score", "Name", "Name"])
        ['Name', 'Score', 'Name_1', 'Name_2']
    """
    seen: Dict[str, int] = {}
    taken = set(headers)
    result: List[str] = []

    for header in headers:
        if header not in seen:
            seen[header] = 0
            result.append(header)
            continue

        count = seen[header]
        candidate = header
        while candidate in taken:
            count += 1
            candidate = f"{header}_{count}"
        seen[header] = count
        taken.add(candidate)
        result.append(candidate)

    return result


def guess_delimiter(sample: str) -> str:
    """Sniff the delimiter of a sample, falling back to the most frequent candidate."""
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS)
        if dialect.delimiter:
            return dialect.delimiter
    except csv.Error:
        pass

    lines = [ln for ln in sample.splitlines() if ln.strip()][:20]
    if not lines:
        return ","

    scores = {d: sum(ln.count(d) for ln in lines) / len(lines) for d in CANDIDATE_DELIMITERS}
    best = max(scores.items(), key=lambda x: x[1])[0]
    return best if scores[best] > 0 else ","


class ExportLoader:
    """
    Load survey exports into raw rows.

    Example:
        >>> loader = ExportLoader()
        >>> rows, issues = loader.load_file(Path("responses.csv"))
        >>> print(f"{len(rows)} rows, {len(issues)} issues")
    """

    def __init__(self, delimiter: Optional[str] = None) -> None:
        """
        Initialize loader.

        Args:
            delimiter: Delimiter to use for every file; sniffed per file when None
        """
        self.delimiter = delimiter

    def load_file(
        self, file_path: Path, delimiter: Optional[str] = None
    ) -> Tuple[List[RawRow], List[IngestIssue]]:
        """
        Load rows from a delimited text file.

        Args:
            file_path: File to read
            delimiter: Force a delimiter instead of sniffing

        Returns:
            Tuple of (rows, loading issues)
        """
        file_path = Path(file_path)

        if not file_path.exists():
            issue = IngestIssue(
                kind=IssueKind.MISSING_FILE,
                severity="critical",
                message=f"File does not exist: {file_path}",
                details={"file": str(file_path)},
            )
            logger.error(issue.message)
            return [], [issue]

        try:
            with open(file_path, "r", encoding="utf-8-sig", newline="") as f:
                text = f.read()
        except (OSError, UnicodeDecodeError) as e:
            issue = IngestIssue(
                kind=IssueKind.UNREADABLE_FILE,
                severity="critical",
                message=f"Failed to read file: {e}",
                details={"file": str(file_path), "error": str(e)},
            )
            logger.error(issue.message)
            return [], [issue]

        rows, issues = self.load_text(text, delimiter=delimiter, source=str(file_path))
        logger.info(f"Loaded {len(rows)} rows from {file_path.name}")
        return rows, issues

    def load_text(
        self,
        text: str,
        delimiter: Optional[str] = None,
        source: str = "<text>",
    ) -> Tuple[List[RawRow], List[IngestIssue]]:
        """
        Parse rows from in-memory text.

        Args:
            text: Whole file contents, header row first
            delimiter: Force a delimiter instead of sniffing
            source: Label used in issue details

        Returns:
            Tuple of (rows, parsing issues)
        """
        issues: List[IngestIssue] = []
        text = text.lstrip("\ufeff")

        if not text.strip():
            issues.append(
                IngestIssue(
                    kind=IssueKind.EMPTY_FILE,
                    severity="critical",
                    message=f"No header row in {source}",
                    details={"file": source},
                )
            )
            return [], issues

        delim = delimiter or self.delimiter or guess_delimiter(text[:65536])
        reader = csv.reader(io.StringIO(text), delimiter=delim)

        headers: Optional[List[str]] = None
        rows: List[RawRow] = []

        for line_num, cells in enumerate(reader, 1):
            if not any(cell.strip() for cell in cells):
                continue

            if headers is None:
                headers = dedupe_headers([cell.strip() for cell in cells])
                continue

            if len(cells) < len(headers):
                issues.append(
                    IngestIssue(
                        kind=IssueKind.SHORT_ROW,
                        severity="minor",
                        message=f"Row {line_num} has {len(cells)} of {len(headers)} columns",
                        details={"file": source, "row": line_num, "columns": len(cells)},
                    )
                )
                cells = list(cells) + [""] * (len(headers) - len(cells))
            elif any(cell.strip() for cell in cells[len(headers):]):
                issues.append(
                    IngestIssue(
                        kind=IssueKind.LONG_ROW,
                        severity="minor",
                        message=(
                            f"Row {line_num} has {len(cells)} columns but the header has "
                            f"{len(headers)}; cells past the header are dropped"
                        ),
                        details={"file": source, "row": line_num, "columns": len(cells)},
                    )
                )

            rows.append(dict(zip(headers, cells)))

        if headers is not None and not rows:
            issues.append(
                IngestIssue(
                    kind=IssueKind.EMPTY_FILE,
                    severity="minor",
                    message=f"Header row but no data rows in {source}",
                    details={"file": source, "columns": len(headers)},
                )
            )

        return rows, issues
