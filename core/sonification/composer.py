"""
core/sonification/composer.py — Composition assembly for code sonification.

Pipeline (compose_code):
    1. analyze() the source text                      → CodeAnalysis
    2. map_to_notes() with the chosen style           → tuple[Note, ...]
    3. organize_tracks(): group notes by instrument   → tuple[Track, ...]
    4. assemble(): tempo, language key, metadata      → Composition
    5. build_visualization()                          → VisualizationData

Tracks:
    One per instrument that received at least one note, ordered by first
    appearance in the note stream (not alphabetically). Notes keep their
    insertion order inside a track. Each instrument carries a fixed
    waveform / volume / effect chain from a TrackProfile table.

Language key table:
    The composition's reported key/scale comes from the detected language.
    It does not re-pitch the notes, which already follow the style preset.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from types import MappingProxyType

from core.code_analysis.analyzer import analyze
from core.code_analysis.types import CodeAnalysis
from core.sonification.config import DEFAULT_MAPPING_CONFIG, MappingConfig
from core.sonification.interpretation import describe_code
from core.sonification.mapper import map_to_notes, tempo_from_complexity
from core.sonification.styles import DEFAULT_STYLE, StylePreset, get_style
from core.sonification.theory import NOTE_NAMES
from core.sonification.types import (
    CodeSonification,
    Composition,
    CompositionMetadata,
    Instrument,
    Note,
    Track,
    TrackEffect,
)
from core.sonification.visualization import build_visualization

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMPTY_DURATION_SEC: float = 5.0
"""Reported duration of a composition without notes."""

TIME_SIGNATURE: tuple[int, int] = (4, 4)

_HASH_LENGTH: int = 16


# ---------------------------------------------------------------------------
# Track profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InstrumentSettings:
    """Fixed mix settings for one instrument's track."""

    name: str
    waveform: str
    volume: float
    effects: tuple[TrackEffect, ...] = ()


TrackProfile = Mapping[Instrument, InstrumentSettings]


CODE_TRACK_PROFILE: TrackProfile = MappingProxyType(
    {
        Instrument.MELODY: InstrumentSettings(
            name="Melody (Functions & Logic)",
            waveform="triangle",
            volume=0.7,
            effects=(TrackEffect("reverb", (("decay", 2.5), ("wet", 0.3))),),
        ),
        Instrument.BASS: InstrumentSettings(
            name="Bass (Variables & Data)",
            waveform="sine",
            volume=0.5,
            effects=(TrackEffect("filter", (("frequency", 400.0), ("type", 0.0))),),
        ),
        Instrument.HARMONY: InstrumentSettings(
            name="Harmony (Conditionals & Branches)",
            waveform="sine",
            volume=0.4,
            effects=(
                TrackEffect("reverb", (("decay", 4.0), ("wet", 0.5))),
                TrackEffect("chorus", (("frequency", 1.5), ("depth", 0.7))),
            ),
        ),
        Instrument.PERCUSSION: InstrumentSettings(
            name="Rhythm (Loops & Iterations)",
            waveform="square",
            volume=0.5,
            effects=(TrackEffect("distortion", (("amount", 0.2),)),),
        ),
        Instrument.AMBIENT: InstrumentSettings(
            name="Ambient (Comments & Structure)",
            waveform="sine",
            volume=0.2,
            effects=(
                TrackEffect("reverb", (("decay", 6.0), ("wet", 0.7))),
                TrackEffect("delay", (("time", 0.4), ("feedback", 0.3))),
            ),
        ),
        Instrument.DISSONANCE: InstrumentSettings(
            name="Dissonance (Errors & Warnings)",
            waveform="sawtooth",
            volume=0.6,
            effects=(
                TrackEffect("distortion", (("amount", 0.5),)),
                TrackEffect("filter", (("frequency", 2000.0), ("type", 1.0))),
            ),
        ),
    }
)


# Language → (key pitch class, scale)
LANGUAGE_KEYS: MappingProxyType[str, tuple[int, str]] = MappingProxyType(
    {
        "javascript": (0, "mixolydian"),
        "typescript": (2, "major"),
        "python": (5, "pentatonic"),
        "java": (7, "minor"),
        "csharp": (4, "lydian"),
        "go": (9, "dorian"),
        "rust": (11, "blues"),
        "unknown": (0, "major"),
    }
)


# ---------------------------------------------------------------------------
# Assembly helpers
# ---------------------------------------------------------------------------


def content_hash(text: str) -> str:
    """Short, stable SHA-256 digest of the source text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:_HASH_LENGTH]


def total_duration(notes: Sequence[Note]) -> float:
    """Last note start + 1 second, or EMPTY_DURATION_SEC without notes."""
    if not notes:
        return EMPTY_DURATION_SEC
    return max(note.start_time for note in notes) + 1


def _settings_for(instrument: Instrument, profile: TrackProfile) -> InstrumentSettings:
    settings = profile.get(instrument)
    if settings is not None:
        return settings
    fallback = profile.get(Instrument.AMBIENT, CODE_TRACK_PROFILE[Instrument.AMBIENT])
    return InstrumentSettings(
        name=instrument.value,
        waveform=fallback.waveform,
        volume=fallback.volume,
        effects=fallback.effects,
    )


def organize_tracks(
    notes: Iterable[Note],
    profile: TrackProfile = CODE_TRACK_PROFILE,
) -> tuple[Track, ...]:
    """Group notes into one Track per instrument, first-seen order.

    Instruments missing from ``profile`` borrow the ambient settings and
    use the instrument name as the track name.
    """
    grouped: dict[Instrument, list[Note]] = {}
    for note in notes:
        grouped.setdefault(Instrument.coerce(note.instrument), []).append(note)

    tracks: list[Track] = []
    for instrument, track_notes in grouped.items():
        settings = _settings_for(instrument, profile)
        tracks.append(
            Track(
                name=settings.name,
                instrument=instrument,
                waveform=settings.waveform,
                volume=settings.volume,
                notes=tuple(track_notes),
                effects=settings.effects,
            )
        )
    return tuple(tracks)


def assemble(
    notes: Sequence[Note],
    *,
    title: str,
    tempo: int,
    key: str,
    scale: str,
    metadata: CompositionMetadata,
    profile: TrackProfile = CODE_TRACK_PROFILE,
) -> Composition:
    """Wrap a note sequence into a Composition.

    Args:
        notes:    Mapper output in emission order.
        title:    Composition title.
        tempo:    Tempo in BPM.
        key:      Reported key, e.g. "C".
        scale:    Reported scale, e.g. "mixolydian".
        metadata: Provenance and interpretation.
        profile:  Per-instrument track settings.

    Returns:
        Immutable Composition in 4/4.
    """
    return Composition(
        title=title,
        tempo=tempo,
        time_signature=TIME_SIGNATURE,
        key=key,
        scale=scale,
        duration=total_duration(notes),
        tracks=organize_tracks(notes, profile),
        metadata=metadata,
    )


def assemble_code(
    source: str,
    analysis: CodeAnalysis,
    notes: Sequence[Note],
    style: StylePreset,
) -> Composition:
    """Assemble the composition for an analyzed source text."""
    key_index, scale = LANGUAGE_KEYS.get(analysis.language, LANGUAGE_KEYS["unknown"])
    metadata = CompositionMetadata(
        source_language=analysis.language,
        lines_analyzed=analysis.metrics.total_lines,
        complexity=analysis.metrics.complexity,
        content_hash=content_hash(source),
        interpretation=describe_code(analysis, style.name),
    )
    return assemble(
        notes,
        title=f"{analysis.language} code sonification",
        tempo=tempo_from_complexity(analysis.metrics.complexity, style),
        key=NOTE_NAMES[key_index],
        scale=scale,
        metadata=metadata,
    )


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def compose_code(
    source: str,
    language: str | None = None,
    style: StylePreset | str = DEFAULT_STYLE,
    *,
    config: MappingConfig = DEFAULT_MAPPING_CONFIG,
) -> CodeSonification:
    """Run the full code → composition pipeline.

    Args:
        source:   Source text (any string, including "").
        language: Optional language label; detected when omitted.
        style:    Style name or preset.
        config:   Mapping rule parameters.

    Returns:
        CodeSonification with composition, analysis and visualization data.

    Raises:
        ValueError: If ``style`` is an unknown style name.
    """
    preset = get_style(style)
    analysis = analyze(source, language)
    notes = map_to_notes(analysis, preset, config=config)
    return CodeSonification(
        composition=assemble_code(source, analysis, notes, preset),
        analysis=analysis,
        visualization=build_visualization(analysis, notes),
    )
