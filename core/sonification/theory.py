"""
core/sonification/theory.py — Pitch, scale and duration tables.

Exports:
    NOTE_NAMES            12-element tuple of chromatic note names (sharps)
    SCALE_FORMULAS        semitone intervals for each scale type
    DURATION_SECONDS      symbolic duration → seconds at the 120 BPM reference
    REFERENCE_BPM         tempo the duration table is expressed in

    note_name(pitch_class, octave) → str
    scale_note(key_index, interval, octave) → str
    parse_pitch(pitch) → (pitch_class, octave) | None
    pitch_to_midi(pitch) → int
    pitch_to_frequency(pitch) → float
    round_half_up(value) → int
"""

from __future__ import annotations

import math
import re
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Chromatic pitch classes
# ---------------------------------------------------------------------------

NOTE_NAMES: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)

# ---------------------------------------------------------------------------
# Scale formulas (semitone intervals from root)
# ---------------------------------------------------------------------------

SCALE_FORMULAS: MappingProxyType[str, tuple[int, ...]] = MappingProxyType(
    {
        "major": (0, 2, 4, 5, 7, 9, 11),
        "minor": (0, 2, 3, 5, 7, 8, 10),
        "pentatonic": (0, 2, 4, 7, 9),
        "blues": (0, 3, 5, 6, 7, 10),
        "chromatic": (0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11),
        "dorian": (0, 2, 3, 5, 7, 9, 10),
        "mixolydian": (0, 2, 4, 5, 7, 9, 10),
        "lydian": (0, 2, 4, 6, 7, 9, 11),
    }
)

# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------

REFERENCE_BPM: float = 120.0

DURATION_SECONDS: MappingProxyType[str, float] = MappingProxyType(
    {
        "16n": 0.125,
        "8n": 0.25,
        "8n.": 0.375,
        "4n": 0.5,
        "4n.": 0.75,
        "2n": 1.0,
        "2n.": 1.5,
        "1n": 2.0,
    }
)

_PITCH_RE = re.compile(r"^([A-G]#?)(\d+)$")
_DEFAULT_MIDI = 60  # C4
_A4_MIDI = 69
_A4_HZ = 440.0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positive values.

    Python's built-in round() uses banker's rounding (round(74.5) == 74);
    every tempo/tick/velocity conversion in the pipeline uses this instead.

    Examples:
        >>> round_half_up(74.5)
        75
        >>> round_half_up(2.4)
        2
    """
    return int(math.floor(value + 0.5))


def note_name(pitch_class: int, octave: int) -> str:
    """Scientific pitch name, e.g. note_name(1, 4) == 'C#4'."""
    return f"{NOTE_NAMES[pitch_class % 12]}{octave}"


def scale_note(key_index: int, interval: int, octave: int) -> str:
    """Name the note ``interval`` semitones above ``key_index`` at ``octave``.

    Intervals that cross B carry into the next octave:
        >>> scale_note(4, 11, 4)   # E + major seventh
        'D#5'
    """
    absolute = key_index + interval
    return note_name(absolute % 12, octave + absolute // 12)


def parse_pitch(pitch: str) -> tuple[int, int] | None:
    """Split 'C#4' into (pitch_class, octave); None when not a pitch name."""
    match = _PITCH_RE.match(pitch)
    if match is None:
        return None
    return NOTE_NAMES.index(match.group(1)), int(match.group(2))


def pitch_to_midi(pitch: str) -> int:
    """MIDI number for a pitch name (C4 = 60); unparseable names give 60.

    The result is not range-checked: 'B9' gives 131.
    """
    parsed = parse_pitch(pitch)
    if parsed is None:
        return _DEFAULT_MIDI
    pitch_class, octave = parsed
    return (octave + 1) * 12 + pitch_class


def pitch_to_frequency(pitch: str) -> float:
    """Equal-tempered frequency in Hz (A4 = 440); unparseable names give 440."""
    if parse_pitch(pitch) is None:
        return _A4_HZ
    return _A4_HZ * 2 ** ((pitch_to_midi(pitch) - _A4_MIDI) / 12)
