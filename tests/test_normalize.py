"""Tests for identity and text normalization."""

import pytest

from team_feedback.normalize import normalize_name, normalize_text


NAMES = ["Sam", " Sam ", "SAM", "  mary  ann ", "\tZoë\n", "", "NA", "o'neil"]


class TestNormalizeName:
    """Identity normalization"""

    def test_trims_and_lowercases(self):
        assert normalize_name(" Sam ") == normalize_name("sam") == "sam"

    def test_empty_and_none(self):
        assert normalize_name(None) == ""
        assert normalize_name("") == ""
        assert normalize_name("   ") == ""

    @pytest.mark.parametrize("name", NAMES)
    def test_idempotent(self, name):
        once = normalize_name(name)
        assert normalize_name(once) == once

    def test_internal_spacing_kept(self):
        assert normalize_name("  Mary  Ann ") == "mary  ann"


class TestNormalizeText:
    """Answer text normalization"""

    def test_collapses_whitespace(self):
        assert normalize_text("  Actively \t  Participated\n") == "actively participated"

    def test_none(self):
        assert normalize_text(None) == ""

    @pytest.mark.parametrize("text", NAMES)
    def test_idempotent(self, text):
        once = normalize_text(text)
        assert normalize_text(once) == once
