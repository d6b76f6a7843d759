"""Shared fixtures: survey rows in both export layouts."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from team_feedback.config import FeedbackConfig

COMBINED_WIDTH = 35
FEEDBACK_WIDTH = 28

Block = Tuple[str, str, str, str, str]

PROFESSIONAL = "I can always participate in Foods class in a professional manner"
ENGAGEMENT = "I like to talk to my teammate about what is happening in the video"
INSTRUCTIONS = "I stop to LISTEN to the instructions from Mrs. K on cooking days"
SOUS_CHEF = "I don't mind being the sous chef"
RECIPE = "I follow the recipe instructions step by step"
QUESTIONS = "I ask clarifying questions while COOKING"
PROJECT = "Most of the recipes we have made so far are in my recipe book"

REFLECTION_ANSWERS = [
    PROFESSIONAL,
    ENGAGEMENT,
    INSTRUCTIONS,
    SOUS_CHEF,
    RECIPE,
    QUESTIONS,
    PROJECT,
]


def block(
    name: str,
    planning: str = "Actively participated",
    cooking: str = "Participated",
    cleaning: str = "Somewhat participated",
    comments: str = "",
) -> Block:
    return (name, planning, cooking, cleaning, comments)


def make_row(
    reviewer: str,
    blocks: Sequence[Block] = (),
    reflection: Optional[Sequence[str]] = None,
    width: int = COMBINED_WIDTH,
    block_start: int = 10,
) -> Dict[str, str]:
    """Build one export row as the loader would produce it."""
    values: List[str] = [""] * width
    values[0] = "2024-03-01 10:00:00"
    values[1] = f"{reviewer.strip().lower()}@school.example"
    values[2] = reviewer
    if reflection is not None:
        for i, answer in enumerate(reflection):
            values[3 + i] = answer
    for i, b in enumerate(blocks):
        base = block_start + i * 5
        values[base : base + 5] = list(b)
    return {f"Column {i}": v for i, v in enumerate(values)}


def make_feedback_row(reviewer: str, blocks: Sequence[Block] = ()) -> Dict[str, str]:
    """Row in the peer-review-only layout."""
    return make_row(reviewer, blocks, width=FEEDBACK_WIDTH, block_start=3)


def write_csv(path: Path, rows: Sequence[Dict[str, str]]) -> Path:
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(list(rows[0].keys()))
        for row in rows:
            writer.writerow(list(row.values()))
    return path


@pytest.fixture
def config() -> FeedbackConfig:
    return FeedbackConfig()


@pytest.fixture
def combined_rows() -> List[Dict[str, str]]:
    return [
        make_row(
            "Ann Lee",
            [block("Sam"), block(" bob ", "Did not participate", "Participated", "Participated"), block("NA"), block(""), block("")],
            reflection=REFLECTION_ANSWERS,
        ),
        make_row(
            "Bob",
            [block("sam", "Participated", "Actively participated", "Participated", "great help")],
            reflection=REFLECTION_ANSWERS,
        ),
        make_row(
            "Sam",
            [block("Samuel", "Somewhat participated", "Somewhat participated", "Didn't participate"), block("Bob")],
            reflection=REFLECTION_ANSWERS,
        ),
    ]


@pytest.fixture
def export_file(tmp_path: Path, combined_rows: List[Dict[str, str]]) -> Path:
    return write_csv(tmp_path / "responses.csv", combined_rows)
