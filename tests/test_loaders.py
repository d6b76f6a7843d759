"""Tests for survey export loading."""

from team_feedback.loaders import ExportLoader, dedupe_headers, guess_delimiter
from team_feedback.models import IssueKind


class TestHeaders:
    """dedupe_headers"""

    def test_suffixes_repeats(self):
        assert dedupe_headers(["Name", "Score", "Name", "Name"]) == ["Name", "Score", "Name_1", "Name_2"]

    def test_avoids_existing_labels(self):
        assert dedupe_headers(["A", "A_1", "A"]) == ["A", "A_1", "A_2"]

    def test_blank_headers(self):
        assert dedupe_headers(["", "", "x"]) == ["", "_1", "x"]


class TestDelimiter:
    """guess_delimiter"""

    def test_semicolon(self):
        assert guess_delimiter("a;b;c\n1;2;3\n4;5;6\n") == ";"

    def test_tab(self):
        assert guess_delimiter("a\tb\tc\n1\t2\t3\n") == "\t"

    def test_no_delimiter_defaults_to_comma(self):
        assert guess_delimiter("single\ncolumn\n") == ","


class TestLoadText:
    """ExportLoader.load_text"""

    def setup_method(self):
        self.loader = ExportLoader()

    def test_rows_keep_every_column_in_order(self):
        text = "Name,Score,Name\nAnn,3,Sam\nBob,4,Cy\n"
        rows, issues = self.loader.load_text(text)

        assert issues == []
        assert rows[0] == {"Name": "Ann", "Score": "3", "Name_1": "Sam"}
        assert list(rows[1].values()) == ["Bob", "4", "Cy"]

    def test_short_row_padded(self):
        rows, issues = self.loader.load_text("a,b,c\n1,2\n", delimiter=",")

        assert rows == [{"a": "1", "b": "2", "c": ""}]
        assert len(issues) == 1
        assert issues[0].kind is IssueKind.SHORT_ROW
        assert issues[0].details["row"] == 2

    def test_blank_lines_skipped(self):
        rows, _ = self.loader.load_text("a,b\n\n1,2\n,\n3,4\n", delimiter=",")
        assert [r["a"] for r in rows] == ["1", "3"]

    def test_byte_order_mark_stripped(self):
        rows, _ = self.loader.load_text("\ufeffName,Score\nAnn,3\n")
        assert "Name" in rows[0]

    def test_quoted_commas(self):
        rows, _ = self.loader.load_text('a,b\n"x, y",2\n', delimiter=",")
        assert rows[0]["a"] == "x, y"

    def test_empty_text(self):
        rows, issues = self.loader.load_text("  \n")
        assert rows == []
        assert issues[0].kind is IssueKind.EMPTY_FILE
        assert issues[0].severity == "critical"

    def test_header_only(self):
        rows, issues = self.loader.load_text("a,b\n")
        assert rows == []
        assert issues[0].kind is IssueKind.EMPTY_FILE
        assert issues[0].severity == "minor"

    def test_loader_delimiter(self):
        rows, _ = ExportLoader(delimiter="|").load_text("a|b\n1|2\n")
        assert rows == [{"a": "1", "b": "2"}]


class TestLoadFile:
    """ExportLoader.load_file"""

    def test_reads_file(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text("a;b\n1;2\n3;4\n", encoding="utf-8")

        rows, issues = ExportLoader().load_file(path)
        assert issues == []
        assert rows == [{"a": "1", "b": "2"}, {"a": "3", "b": "4"}]

    def test_bom_file(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_bytes("Name,Score\nAnn,3\n".encode("utf-8-sig"))

        rows, _ = ExportLoader().load_file(path)
        assert rows == [{"Name": "Ann", "Score": "3"}]

    def test_missing_file(self, tmp_path):
        rows, issues = ExportLoader().load_file(tmp_path / "nope.csv")

        assert rows == []
        assert issues[0].kind is IssueKind.MISSING_FILE
        assert issues[0].is_blocking

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_bytes(b"a,b\n\xff\xfe\xfa,1\n")

        rows, issues = ExportLoader().load_file(path)
        assert rows == []
        assert issues[0].kind is IssueKind.UNREADABLE_FILE


class TestRowWidth:
    """Rows that do not match the header width"""

    def test_long_row_reported(self):
        rows, issues = ExportLoader().load_text("a,b\n1,2,extra\n", delimiter=",")

        assert rows == [{"a": "1", "b": "2"}]
        assert len(issues) == 1
        assert issues[0].kind is IssueKind.LONG_ROW
        assert issues[0].severity == "minor"
        assert issues[0].details["columns"] == 3

    def test_trailing_empty_cells_ignored(self):
        rows, issues = ExportLoader().load_text("a,b\n1,2,,\n", delimiter=",")
        assert rows == [{"a": "1", "b": "2"}]
        assert issues == []
