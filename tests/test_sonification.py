"""
Tests for ingestion/sonification.py — public entry points and validation.
"""

import base64
import logging

import pytest

from core.code_analysis.types import CodeAnalysis
from core.sonification.types import Composition
from ingestion.sonification import (
    analyze_code,
    encode_to_base64,
    encode_to_binary,
    sonify_code,
    sonify_diff_text,
    sonify_version_pair,
)


class TestValidation:
    @pytest.mark.parametrize("bad", [None, 42, b"bytes", ["x"]])
    def test_non_str_text_raises_type_error(self, bad):
        with pytest.raises(TypeError, match="text must be str"):
            sonify_code(bad)  # type: ignore[arg-type]

    def test_non_str_diff_raises_type_error(self):
        with pytest.raises(TypeError, match="diff_text must be str"):
            sonify_diff_text(None)  # type: ignore[arg-type]

    def test_non_str_version_raises_type_error(self):
        with pytest.raises(TypeError, match="new_text must be str"):
            sonify_version_pair("a", 1)  # type: ignore[arg-type]

    def test_unknown_style_lists_options(self, add_function_source):
        with pytest.raises(ValueError, match="Unknown style") as exc_info:
            sonify_code(add_function_source, style="polka")
        assert "classical" in str(exc_info.value)
        assert "rock" in str(exc_info.value)

    def test_unknown_language_lists_options(self, add_function_source):
        with pytest.raises(ValueError, match="Unknown language") as exc_info:
            sonify_code(add_function_source, language="cobol")
        assert "python" in str(exc_info.value)

    def test_style_and_language_are_normalised(self, add_function_source):
        composition = sonify_code(add_function_source, language=" Python ", style="JAZZ")
        assert composition.metadata.source_language == "python"

    def test_style_validated_before_work(self):
        with pytest.raises(ValueError):
            sonify_diff_text("+x", style="")

    def test_encode_rejects_non_composition(self):
        with pytest.raises(TypeError):
            encode_to_binary("not a composition")  # type: ignore[arg-type]


class TestAnalyzeCode:
    def test_returns_analysis(self, nested_source):
        analysis = analyze_code(nested_source)
        assert isinstance(analysis, CodeAnalysis)
        assert analysis.language == "javascript"
        assert analysis.metrics.loop_count == 1
        assert analysis.metrics.conditional_count == 1

    def test_explicit_language_wins(self, nested_source):
        assert analyze_code(nested_source, "go").language == "go"


class TestSonifyCode:
    def test_add_function_scenario(self, add_function_source):
        composition = sonify_code(add_function_source)
        assert isinstance(composition, Composition)
        assert composition.metadata.lines_analyzed == 1
        assert composition.tempo == 82
        assert len(composition.tracks) >= 1

    def test_empty_text_is_valid(self):
        composition = sonify_code("")
        assert composition.tracks == ()
        data = encode_to_binary(composition)
        assert data.startswith(b"MThd")

    def test_deterministic_bytes(self, nested_source):
        first = encode_to_binary(sonify_code(nested_source, style="electronic"))
        second = encode_to_binary(sonify_code(nested_source, style="electronic"))
        assert first == second

    def test_logs_summary_at_debug(self, caplog, add_function_source):
        with caplog.at_level(logging.DEBUG, logger="ingestion.sonification"):
            sonify_code(add_function_source)
        assert any("Sonified" in record.message for record in caplog.records)


class TestSonifyDiffText:
    def test_small_diff_scenario(self, small_diff):
        composition = sonify_diff_text(small_diff)
        assert (composition.key, composition.scale) == ("D", "dorian")
        assert composition.tempo == 84

    def test_version_pair(self):
        composition = sonify_version_pair("a\nb", "a\nb\nc\nd")
        assert composition.title == "Diff composition (+2 / -0)"
        assert (composition.key, composition.scale) == ("C", "major")


class TestEncoding:
    def test_single_quarter_note_bytes(self, single_quarter_note_composition):
        data = encode_to_binary(single_quarter_note_composition)
        assert data[:14] == b"MThd\x00\x00\x00\x06\x00\x01\x00\x02\x01\xe0"
        assert b"\x00\x90\x3c\x7f\x83\x60\x80\x3c\x00" in data

    def test_base64_matches_binary(self, small_diff):
        composition = sonify_diff_text(small_diff)
        assert base64.b64decode(encode_to_base64(composition)) == encode_to_binary(composition)
