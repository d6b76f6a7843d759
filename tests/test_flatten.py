"""Tests for row flattening and layout detection."""

from team_feedback.config import FeedbackConfig, SchemaConfig
from team_feedback.flatten import RowFlattener
from team_feedback.models import IssueKind, ReflectionCategory, SchemaVariant

from tests.conftest import (
    PROFESSIONAL,
    PROJECT,
    REFLECTION_ANSWERS,
    block,
    make_feedback_row,
    make_row,
)


class TestFeedbackFlattening:
    """Reviewee blocks -> FeedbackRecords"""

    def setup_method(self):
        self.flattener = RowFlattener(SchemaConfig())

    def test_three_of_five_blocks(self):
        row = make_row(
            "Ann Lee",
            [block("Sam"), block("NA"), block("Bob"), block(""), block("Zoe")],
        )
        result = self.flattener.flatten([row])

        assert result.variant is SchemaVariant.COMBINED
        assert len(result.records) == 3
        assert {r.reviewer_name for r in result.records} == {"Ann Lee"}
        assert [r.student_name for r in result.records] == ["sam", "bob", "zoe"]

    def test_fields_come_from_block_positions(self):
        row = make_row("Ann", [block("Sam", "p", "c", "cl", "nice work")])
        record = self.flattener.flatten([row]).records[0]

        assert record.planning_response == "p"
        assert record.cooking_response == "c"
        assert record.cleaning_response == "cl"
        assert record.comments == "nice work"

    def test_names_normalized_reviewer_trimmed(self):
        row = make_row("  Ann Lee ", [block("  SAM  ")])
        record = self.flattener.flatten([row]).records[0]
        assert record.student_name == "sam"
        assert record.reviewer_name == "Ann Lee"

    def test_placeholder_with_spaces_is_skipped(self):
        row = make_row("Ann", [block(" NA "), block("Sam")])
        assert [r.student_name for r in self.flattener.flatten([row]).records] == ["sam"]

    def test_lowercase_na_is_a_name(self):
        row = make_row("Ann", [block("na")])
        assert [r.student_name for r in self.flattener.flatten([row]).records] == ["na"]

    def test_answers_without_name_reported(self):
        row = make_row("Ann", [block("", "Participated")])
        result = self.flattener.flatten([row])

        assert result.records == []
        skipped = [i for i in result.issues if i.kind is IssueKind.SKIPPED_BLOCK]
        assert len(skipped) == 1
        assert skipped[0].details["block"] == 1

    def test_none_cells_read_as_empty(self):
        row = make_row("Ann", [block("Sam")])
        keys = list(row)
        row[keys[12]] = None
        record = self.flattener.flatten([row]).records[0]
        assert record.cooking_response == ""

    def test_records_keep_row_order(self):
        rows = [
            make_row("Ann", [block("Sam"), block("Bob")]),
            make_row("Bob", [block("Ann")]),
        ]
        result = self.flattener.flatten(rows)
        assert [(r.reviewer_name, r.student_name) for r in result.records] == [
            ("Ann", "sam"),
            ("Ann", "bob"),
            ("Bob", "ann"),
        ]


class TestReflectionFlattening:
    """Self-reflection columns -> ReflectionRecords"""

    def setup_method(self):
        self.flattener = RowFlattener(SchemaConfig())

    def test_keyed_by_trimmed_declared_name(self):
        row = make_row(" Ann Lee ", reflection=REFLECTION_ANSWERS)
        reflections = self.flattener.flatten([row]).reflections

        assert list(reflections) == ["Ann Lee"]
        reflection = reflections["Ann Lee"]
        assert reflection.answer(ReflectionCategory.PROFESSIONALISM) == PROFESSIONAL
        assert reflection.answer(ReflectionCategory.PROJECT) == PROJECT
        assert len(reflection.answers) == 7

    def test_name_not_normalized(self):
        row = make_row("ANN", reflection=REFLECTION_ANSWERS)
        assert "ANN" in self.flattener.flatten([row]).reflections

    def test_empty_name_skipped(self):
        rows = [make_row("", reflection=REFLECTION_ANSWERS), make_row("Bob", reflection=REFLECTION_ANSWERS)]
        result = self.flattener.flatten(rows)

        assert list(result.reflections) == ["Bob"]
        assert any(i.kind is IssueKind.SKIPPED_REFLECTION for i in result.issues)

    def test_later_row_replaces_earlier(self):
        first = make_row("Ann", reflection=["old"] * 7)
        second = make_row("Ann", reflection=REFLECTION_ANSWERS)
        reflection = self.flattener.flatten([first, second]).reflections["Ann"]
        assert reflection.answer(ReflectionCategory.PROFESSIONALISM) == PROFESSIONAL

    def test_feedback_layout_has_no_reflections(self):
        row = make_feedback_row("Ann", [block("Sam")])
        result = self.flattener.flatten([row])
        assert result.variant is SchemaVariant.FEEDBACK
        assert result.reflections == {}
        assert [r.student_name for r in result.records] == ["sam"]


class TestVariantDetection:
    """Choosing a layout"""

    def test_width_decides(self):
        flattener = RowFlattener(SchemaConfig())
        assert flattener.detect_variant([make_row("Ann")]) is SchemaVariant.COMBINED
        assert flattener.detect_variant([make_feedback_row("Ann")]) is SchemaVariant.FEEDBACK

    def test_too_narrow_is_unknown(self):
        flattener = RowFlattener(SchemaConfig())
        row = {"a": "1", "b": "2", "c": "Ann"}
        result = flattener.flatten([row])

        assert result.variant is None
        assert result.records == []
        assert result.issues[0].kind is IssueKind.UNKNOWN_LAYOUT
        assert result.issues[0].severity == "critical"

    def test_forced_variant_wins(self):
        config = FeedbackConfig(schema={"variant": "feedback"})
        flattener = RowFlattener(config.schema_config)
        row = make_row("Ann", [block("Sam")])

        assert flattener.detect_variant([row]) is SchemaVariant.FEEDBACK

    def test_no_rows(self):
        result = RowFlattener(SchemaConfig()).flatten([])
        assert result.variant is None
        assert result.records == []
        assert result.issues == []

    def test_custom_layout(self):
        schema = SchemaConfig(
            variant="feedback",
            feedback={"reviewer_column": 0, "block_start": 1, "max_blocks": 1},
        )
        row = {"h0": "Ann", "h1": "Sam", "h2": "Participated", "h3": "", "h4": "", "h5": ""}
        records = RowFlattener(schema).flatten([row]).records

        assert len(records) == 1
        assert records[0].reviewer_name == "Ann"
        assert records[0].planning_response == "Participated"


class TestLayoutMismatch:
    """Width that fits no layout exactly"""

    def test_exact_width_has_no_issue(self):
        flattener = RowFlattener(SchemaConfig())
        for row in (make_row("Ann", [block("Sam")]), make_feedback_row("Ann", [block("Sam")])):
            result = flattener.flatten([row])
            assert not any(i.kind is IssueKind.LAYOUT_MISMATCH for i in result.issues)

    def test_narrow_combined_export_reported(self):
        row = make_row("Ann", [block("Sam")], reflection=REFLECTION_ANSWERS, width=30)
        result = RowFlattener(SchemaConfig()).flatten([row])

        assert result.variant is SchemaVariant.FEEDBACK
        mismatch = [i for i in result.issues if i.kind is IssueKind.LAYOUT_MISMATCH]
        assert len(mismatch) == 1
        assert mismatch[0].severity == "minor"
        assert mismatch[0].details == {"columns": 30, "variant": "feedback", "expected_columns": 28}

    def test_forced_variant_not_reported(self):
        row = make_row("Ann", [block("Sam")], width=30)
        result = RowFlattener(SchemaConfig(variant="combined")).flatten([row])
        assert not any(i.kind is IssueKind.LAYOUT_MISMATCH for i in result.issues)
