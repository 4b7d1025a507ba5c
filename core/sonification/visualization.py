"""
core/sonification/visualization.py — Renderer-agnostic preview data.

build_visualization() turns a note sequence into three plain series a UI can
draw without knowing anything about MIDI:

    waveform         200 samples of a note-density envelope
    frequency_bands  (Hz, amplitude, time) for the first 100 notes
    token_colors     a hex colour per non-whitespace token, linked to a note

Pure functions; no I/O.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from types import MappingProxyType

from core.code_analysis.types import CodeAnalysis, TokenKind
from core.sonification.theory import pitch_to_frequency
from core.sonification.types import FrequencyBand, Note, TokenColor, VisualizationData

WAVEFORM_POINTS: int = 200
MAX_FREQUENCY_BANDS: int = 100

_DENSITY_WINDOW: float = 0.05
_AMPLITUDE_PER_NOTE: float = 0.2

TOKEN_COLORS: MappingProxyType[TokenKind, str] = MappingProxyType(
    {
        TokenKind.FUNCTION: "#4FC3F7",
        TokenKind.LOOP: "#FFB74D",
        TokenKind.CONDITIONAL: "#81C784",
        TokenKind.VARIABLE: "#CE93D8",
        TokenKind.CLASS: "#F06292",
        TokenKind.STRING: "#A5D6A7",
        TokenKind.NUMBER: "#FFD54F",
        TokenKind.OPERATOR: "#90A4AE",
        TokenKind.COMMENT: "#78909C",
        TokenKind.IMPORT: "#4DD0E1",
        TokenKind.RETURN: "#EF5350",
        TokenKind.ERROR: "#FF1744",
        TokenKind.BRACKET_OPEN: "#546E7A",
        TokenKind.BRACKET_CLOSE: "#546E7A",
        TokenKind.WHITESPACE: "#263238",
        TokenKind.KEYWORD: "#BA68C8",
        TokenKind.UNKNOWN: "#455A64",
    }
)
_DEFAULT_COLOR: str = TOKEN_COLORS[TokenKind.UNKNOWN]


def waveform_envelope(notes: Sequence[Note], points: int = WAVEFORM_POINTS) -> tuple[float, ...]:
    """Sample a note-density envelope at ``points`` evenly spaced positions.

    Positions are normalised by (last note start + 1); an empty sequence
    yields a flat zero line.
    """
    total = notes[-1].start_time + 1 if notes else 1.0
    positions = [note.start_time / total for note in notes]

    samples: list[float] = []
    for i in range(points):
        t = i / points
        count = sum(1 for p in positions if abs(p - t) < _DENSITY_WINDOW)
        amplitude = min(1.0, count * _AMPLITUDE_PER_NOTE)
        samples.append(amplitude * math.sin(t * math.pi * 8 + count))
    return tuple(samples)


def frequency_bands(notes: Sequence[Note], limit: int = MAX_FREQUENCY_BANDS) -> tuple[FrequencyBand, ...]:
    return tuple(
        FrequencyBand(
            frequency=pitch_to_frequency(note.pitch),
            amplitude=note.velocity,
            time=note.start_time,
        )
        for note in notes[:limit]
    )


def token_colors(analysis: CodeAnalysis, note_count: int) -> tuple[TokenColor, ...]:
    """Colour every non-whitespace token.

    note_index counts visible tokens only (whitespace is skipped before
    numbering) and is clamped to the last note.
    """
    visible = [token for token in analysis.tokens if token.kind is not TokenKind.WHITESPACE]
    return tuple(
        TokenColor(
            token=token,
            color=TOKEN_COLORS.get(token.kind, _DEFAULT_COLOR),
            note_index=min(i, note_count - 1),
        )
        for i, token in enumerate(visible)
    )


def build_visualization(analysis: CodeAnalysis, notes: Sequence[Note]) -> VisualizationData:
    """Derive all preview series for one code sonification."""
    return VisualizationData(
        waveform=waveform_envelope(notes),
        frequency_bands=frequency_bands(notes),
        token_colors=token_colors(analysis, len(notes)),
    )
