"""
core/sonification/types.py — Frozen value objects for the sonification engine.

All types are immutable frozen dataclasses. A Composition is built once by
the assembler and never mutated; it is the sole input of the MIDI encoder.

Types:
    Instrument            — closed set of track instruments
    Note                  — one musical event (pitch name, symbolic duration)
    TrackEffect           — a named effect with numeric parameters
    Track                 — notes of exactly one instrument + mix settings
    CompositionMetadata   — provenance and interpretation text
    Composition           — the full piece
    DiffStats             — aggregate counts over a parsed diff
    FrequencyBand, TokenColor, VisualizationData — preview data for renderers
    CodeSonification, DiffSonification, VersionPairSonification — results
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.code_analysis.types import CodeAnalysis, Token


class Instrument(str, Enum):
    """Track instrument. Each code construct family lands on one of these."""

    MELODY = "melody"
    BASS = "bass"
    HARMONY = "harmony"
    PERCUSSION = "percussion"
    AMBIENT = "ambient"
    DISSONANCE = "dissonance"

    @classmethod
    def coerce(cls, value: str | Instrument) -> Instrument:
        """Resolve a name to an Instrument, falling back to AMBIENT."""
        try:
            return cls(value)
        except ValueError:
            return cls.AMBIENT


# ---------------------------------------------------------------------------
# Notes and tracks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Note:
    """A single note event.

    Invariants (documented, enforced by the encoder):
        0 < velocity <= 1
        start_time >= 0
    """

    pitch: str
    """Scientific pitch notation, e.g. 'C4', 'D#5'."""

    duration: str
    """Symbolic duration: '16n', '8n', '8n.', '4n', '4n.', '2n', '2n.', '1n'."""

    velocity: float
    start_time: float
    """Start in seconds from the beginning of the piece."""

    instrument: Instrument


@dataclass(frozen=True)
class TrackEffect:
    """A named effect, e.g. TrackEffect('reverb', (('decay', 2.5), ('wet', 0.3)))."""

    kind: str
    params: tuple[tuple[str, float], ...] = ()

    def params_dict(self) -> dict[str, float]:
        return dict(self.params)


@dataclass(frozen=True)
class Track:
    """All notes of one instrument, in insertion order."""

    name: str
    instrument: Instrument
    waveform: str
    volume: float
    notes: tuple[Note, ...]
    effects: tuple[TrackEffect, ...] = ()


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompositionMetadata:
    """Provenance of a composition. Contains no wall-clock data."""

    source_language: str
    lines_analyzed: int
    complexity: int
    content_hash: str
    interpretation: str


@dataclass(frozen=True)
class Composition:
    """A complete multi-track piece."""

    title: str
    tempo: int
    time_signature: tuple[int, int]
    key: str
    scale: str
    duration: float
    """Total length in seconds."""

    tracks: tuple[Track, ...]
    metadata: CompositionMetadata

    @property
    def notes(self) -> Iterator[Note]:
        """Every note, track by track."""
        for track in self.tracks:
            yield from track.notes

    @property
    def note_count(self) -> int:
        return sum(len(track.notes) for track in self.tracks)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly representation (plain dicts, lists and scalars)."""
        return {
            "title": self.title,
            "tempo": self.tempo,
            "time_signature": list(self.time_signature),
            "key": self.key,
            "scale": self.scale,
            "duration": self.duration,
            "tracks": [
                {
                    "name": track.name,
                    "instrument": track.instrument.value,
                    "waveform": track.waveform,
                    "volume": track.volume,
                    "notes": [
                        {
                            "pitch": note.pitch,
                            "duration": note.duration,
                            "velocity": note.velocity,
                            "start_time": note.start_time,
                            "instrument": note.instrument.value,
                        }
                        for note in track.notes
                    ],
                    "effects": [
                        {"kind": effect.kind, "params": effect.params_dict()}
                        for effect in track.effects
                    ],
                }
                for track in self.tracks
            ],
            "metadata": {
                "source_language": self.metadata.source_language,
                "lines_analyzed": self.metadata.lines_analyzed,
                "complexity": self.metadata.complexity,
                "content_hash": self.metadata.content_hash,
                "interpretation": self.metadata.interpretation,
            },
        }


# ---------------------------------------------------------------------------
# Diff statistics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiffLine:
    """One classified line of a unified diff."""

    kind: str
    """'header', 'added', 'removed' or 'context'."""

    content: str
    """Line text with the +/- prefix removed for added/removed lines."""

    line_number: int
    """1-based position in the diff text."""


@dataclass(frozen=True)
class DiffStats:
    """Aggregate counts over a parsed diff.

    change_ratio = added / (added + removed); 0.5 when nothing changed.
    """

    added_lines: int
    removed_lines: int
    context_lines: int
    total_changes: int
    change_ratio: float
    files: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Visualization preview
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FrequencyBand:
    frequency: float
    amplitude: float
    time: float


@dataclass(frozen=True)
class TokenColor:
    token: Token
    color: str
    note_index: int


@dataclass(frozen=True)
class VisualizationData:
    """Renderer-agnostic preview data derived from a note sequence."""

    waveform: tuple[float, ...]
    frequency_bands: tuple[FrequencyBand, ...]
    token_colors: tuple[TokenColor, ...]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CodeSonification:
    composition: Composition
    analysis: CodeAnalysis
    visualization: VisualizationData


@dataclass(frozen=True)
class DiffSonification:
    composition: Composition
    stats: DiffStats
    summary: str
    """Plain-text, human-readable report of the diff and its rendering."""


@dataclass(frozen=True)
class VersionPairSonification(DiffSonification):
    old_composition: Composition | None = field(default=None)
    new_composition: Composition | None = field(default=None)
