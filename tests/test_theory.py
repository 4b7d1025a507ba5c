"""
Tests for core/sonification/theory.py — pitch names, scales, rounding.
"""

import pytest

from core.sonification.theory import (
    DURATION_SECONDS,
    NOTE_NAMES,
    SCALE_FORMULAS,
    note_name,
    parse_pitch,
    pitch_to_frequency,
    pitch_to_midi,
    round_half_up,
    scale_note,
)


class TestTables:
    def test_twelve_sharps(self):
        assert len(NOTE_NAMES) == 12
        assert NOTE_NAMES[1] == "C#"
        assert "Db" not in NOTE_NAMES

    def test_scales_start_on_root(self):
        for name, intervals in SCALE_FORMULAS.items():
            assert intervals[0] == 0, name
            assert list(intervals) == sorted(intervals), name

    def test_durations_at_reference_tempo(self):
        assert DURATION_SECONDS["4n"] == 0.5
        assert DURATION_SECONDS["1n"] == 2.0
        assert DURATION_SECONDS["8n."] == 0.375


class TestRoundHalfUp:
    @pytest.mark.parametrize(
        "value, expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (74.5, 75), (2.4, 2), (2.6, 3), (0.0, 0)],
    )
    def test_values(self, value, expected):
        assert round_half_up(value) == expected


class TestNoteNames:
    def test_note_name_wraps_pitch_class(self):
        assert note_name(13, 4) == "C#4"
        assert note_name(-1, 3) == "B3"

    def test_scale_note_carries_octave(self):
        assert scale_note(4, 11, 4) == "D#5"
        assert scale_note(0, 12, 4) == "C5"
        assert scale_note(2, 4, 3) == "F#3"


class TestPitchConversion:
    def test_parse(self):
        assert parse_pitch("C#4") == (1, 4)
        assert parse_pitch("H2") is None
        assert parse_pitch("C") is None

    @pytest.mark.parametrize(
        "pitch, midi",
        [("C4", 60), ("A4", 69), ("C-1", 60), ("C0", 12), ("G9", 127), ("B9", 131), ("xyz", 60)],
    )
    def test_to_midi(self, pitch, midi):
        assert pitch_to_midi(pitch) == midi

    def test_to_frequency(self):
        assert pitch_to_frequency("A4") == 440.0
        assert pitch_to_frequency("A5") == 880.0
        assert pitch_to_frequency("C4") == pytest.approx(261.6256, rel=1e-5)
        assert pitch_to_frequency("nope") == 440.0
