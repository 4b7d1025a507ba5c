"""
core/sonification/diff.py — Sonify unified diffs and version pairs.

A diff is read line by line, never aligned or validated. Each classified
line becomes a short figure on the time cursor:

    header   (+++, ---, diff , index , @@)  brief high tick       ambient
    context                                 soft pentatonic pad   ambient
    added    (+)                            ascending major run   melody
                                            (+ triad if long)     harmony
    removed  (-)                            descending minor run  bass
                                            + low hit             percussion

The key reflects the balance of the change: mostly additions → C major,
mostly removals → A minor, in between → D dorian. Tempo grows with the
number of changed lines (80 + 2 per change, clamped to 70–160 BPM).

sonify_two_versions() builds a naive positional pseudo-diff (line i of the
old text against line i of the new text, no LCS) and sonifies that, plus
each version on its own.
"""

from __future__ import annotations

from collections.abc import Sequence
from types import MappingProxyType

from core.sonification.composer import (
    InstrumentSettings,
    TrackProfile,
    assemble,
    compose_code,
    content_hash,
)
from core.sonification.interpretation import describe_diff, diff_summary
from core.sonification.styles import DEFAULT_STYLE, StylePreset, get_style
from core.sonification.theory import NOTE_NAMES, REFERENCE_BPM, SCALE_FORMULAS, note_name
from core.sonification.types import (
    CompositionMetadata,
    DiffLine,
    DiffSonification,
    DiffStats,
    Instrument,
    Note,
    TrackEffect,
    VersionPairSonification,
)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_HEADER_PREFIXES: tuple[str, ...] = ("+++", "---", "diff ", "index ", "@@")
_NULL_DEVICE: str = "/dev/null"

MIN_DIFF_TEMPO: int = 70
MAX_DIFF_TEMPO: int = 160

_MAJOR_TRIAD: tuple[int, ...] = (0, 4, 7)

PSEUDO_DIFF_HEADER: str = "--- a/old.code\n+++ b/new.code\n@@ -1 +1 @@\n"


DIFF_TRACK_PROFILE: TrackProfile = MappingProxyType(
    {
        Instrument.MELODY: InstrumentSettings(
            name="Additions (Ascending Major)",
            waveform="triangle",
            volume=0.7,
            effects=(TrackEffect("reverb", (("decay", 2.0), ("wet", 0.3))),),
        ),
        Instrument.BASS: InstrumentSettings(
            name="Deletions (Descending Minor)",
            waveform="sine",
            volume=0.5,
            effects=(TrackEffect("filter", (("frequency", 400.0), ("type", 0.0))),),
        ),
        Instrument.HARMONY: InstrumentSettings(
            name="Significant Changes (Chords)",
            waveform="sine",
            volume=0.4,
            effects=(TrackEffect("reverb", (("decay", 3.0), ("wet", 0.5))),),
        ),
        Instrument.PERCUSSION: InstrumentSettings(
            name="Change Markers",
            waveform="square",
            volume=0.4,
        ),
        Instrument.AMBIENT: InstrumentSettings(
            name="Context & Headers",
            waveform="sine",
            volume=0.2,
            effects=(TrackEffect("reverb", (("decay", 5.0), ("wet", 0.6))),),
        ),
    }
)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def classify_line(raw: str, line_number: int) -> DiffLine:
    """Classify one diff line by its prefix.

    Examples:
        >>> classify_line("+x = 1", 3)
        DiffLine(kind='added', content='x = 1', line_number=3)
        >>> classify_line("@@ -1 +1 @@", 1).kind
        'header'
    """
    if raw.startswith(_HEADER_PREFIXES):
        return DiffLine("header", raw, line_number)
    if raw.startswith("+"):
        return DiffLine("added", raw[1:], line_number)
    if raw.startswith("-"):
        return DiffLine("removed", raw[1:], line_number)
    return DiffLine("context", raw, line_number)


def parse_diff(diff_text: str) -> tuple[DiffLine, ...]:
    """Classify every line of ``diff_text``; line numbers are 1-based.

    Splitting is on "\\n" only, so a trailing newline yields a final empty
    context line.
    """
    return tuple(
        classify_line(raw, line_number)
        for line_number, raw in enumerate(diff_text.split("\n"), start=1)
    )


def _changed_file(raw: str) -> str | None:
    if not raw.startswith("+++ "):
        return None
    path = raw[len("+++ ") :].strip()
    if path.startswith("b/"):
        path = path[2:]
    if not path or path == _NULL_DEVICE:
        return None
    return path


def diff_stats(diff_text: str, lines: Sequence[DiffLine] | None = None) -> DiffStats:
    """Count added / removed / context lines and collect changed files.

    files lists one entry per `+++` header in order, so a file that appears
    twice in a concatenated diff is listed (and counted) twice.
    """
    if lines is None:
        lines = parse_diff(diff_text)

    added = sum(1 for line in lines if line.kind == "added")
    removed = sum(1 for line in lines if line.kind == "removed")
    context = sum(1 for line in lines if line.kind == "context")
    total = added + removed

    files: list[str] = []
    for raw in diff_text.split("\n"):
        path = _changed_file(raw)
        if path is not None:
            files.append(path)

    return DiffStats(
        added_lines=added,
        removed_lines=removed,
        context_lines=context,
        total_changes=total,
        change_ratio=added / total if total else 0.5,
        files=tuple(files),
    )


def diff_key(stats: DiffStats) -> tuple[str, str]:
    """(key, scale) from the add/remove balance."""
    if stats.change_ratio > 0.6:
        return "C", "major"
    if stats.change_ratio < 0.4:
        return "A", "minor"
    return "D", "dorian"


def diff_tempo(stats: DiffStats) -> int:
    return min(MAX_DIFF_TEMPO, max(MIN_DIFF_TEMPO, 80 + 2 * stats.total_changes))


# ---------------------------------------------------------------------------
# Note generation
# ---------------------------------------------------------------------------


def map_diff_to_notes(lines: Sequence[DiffLine], key: str, tempo: int) -> tuple[Note, ...]:
    """Turn classified diff lines into notes.

    Pitch classes wrap inside the octave (no carry), unlike the code mapper.

    Args:
        lines: Output of parse_diff().
        key:   Key name from diff_key().
        tempo: Tempo from diff_tempo(); cursor steps scale by 120 / tempo.

    Returns:
        Notes in emission order.
    """
    m = REFERENCE_BPM / tempo
    key_index = NOTE_NAMES.index(key)
    major = SCALE_FORMULAS["major"]
    minor = SCALE_FORMULAS["minor"]
    pentatonic = SCALE_FORMULAS["pentatonic"]

    notes: list[Note] = []
    time = 0.0

    for line in lines:
        if line.kind == "header":
            notes.append(Note(f"{key}5", "16n", 0.2, time, Instrument.AMBIENT))
            time += 0.1 * m

        elif line.kind == "context":
            interval = pentatonic[line.line_number % len(pentatonic)]
            notes.append(
                Note(note_name(key_index + interval, 3), "4n", 0.15, time, Instrument.AMBIENT)
            )
            time += 0.15 * m

        elif line.kind == "added":
            length = len(line.content.strip())
            for i in range(min(5, max(1, length // 10 + 1))):
                octave = min(6, 4 + i // len(major))
                notes.append(
                    Note(
                        pitch=note_name(key_index + major[i % len(major)], octave),
                        duration="8n",
                        velocity=0.6 + i * 0.05,
                        start_time=time,
                        instrument=Instrument.MELODY,
                    )
                )
                time += 0.12 * m
            if length > 20:
                for interval in _MAJOR_TRIAD:
                    notes.append(
                        Note(note_name(key_index + interval, 4), "4n", 0.35, time, Instrument.HARMONY)
                    )
            time += 0.1 * m

        elif line.kind == "removed":
            length = len(line.content.strip())
            for i in range(min(4, max(1, length // 12 + 1))):
                degree = (len(minor) - 1 - i) % len(minor)
                octave = max(2, 4 - i // len(minor))
                notes.append(
                    Note(
                        pitch=note_name(key_index + minor[degree], octave),
                        duration="8n",
                        velocity=0.45 - i * 0.05,
                        start_time=time,
                        instrument=Instrument.BASS,
                    )
                )
                time += 0.15 * m
            notes.append(Note(f"{key}2", "16n", 0.3, time, Instrument.PERCUSSION))
            time += 0.08 * m

    return tuple(notes)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def sonify_diff(diff_text: str, style: StylePreset | str = DEFAULT_STYLE) -> DiffSonification:
    """Sonify a unified diff.

    Args:
        diff_text: Unified diff text (not validated).
        style:     Style name or preset; only named in the interpretation.

    Returns:
        DiffSonification with composition, stats and a plain-text summary.

    Raises:
        ValueError: If ``style`` is an unknown style name.
    """
    preset = get_style(style)
    lines = parse_diff(diff_text)
    stats = diff_stats(diff_text, lines)
    key, scale = diff_key(stats)
    tempo = diff_tempo(stats)
    notes = map_diff_to_notes(lines, key, tempo)

    metadata = CompositionMetadata(
        source_language="unknown",
        lines_analyzed=len(lines),
        complexity=min(100, stats.total_changes * 3),
        content_hash=content_hash(diff_text),
        interpretation=describe_diff(stats, preset.name),
    )
    composition = assemble(
        notes,
        title=f"Diff composition (+{stats.added_lines} / -{stats.removed_lines})",
        tempo=tempo,
        key=key,
        scale=scale,
        metadata=metadata,
        profile=DIFF_TRACK_PROFILE,
    )
    return DiffSonification(
        composition=composition,
        stats=stats,
        summary=diff_summary(stats, composition),
    )


def synthesize_diff(old_text: str, new_text: str) -> str:
    """Positional pseudo-diff of two texts.

    Line i of ``old_text`` is compared with line i of ``new_text``:
    equal → context, different → removal then addition, missing on one
    side → a pure addition or removal.
    """
    old_lines = old_text.split("\n")
    new_lines = new_text.split("\n")

    parts = [PSEUDO_DIFF_HEADER]
    for i in range(max(len(old_lines), len(new_lines))):
        old = old_lines[i] if i < len(old_lines) else None
        new = new_lines[i] if i < len(new_lines) else None
        if old is None:
            parts.append(f"+{new}\n")
        elif new is None:
            parts.append(f"-{old}\n")
        elif old != new:
            parts.append(f"-{old}\n+{new}\n")
        else:
            parts.append(f" {old}\n")
    return "".join(parts)


def sonify_two_versions(
    old_text: str,
    new_text: str,
    style: StylePreset | str = DEFAULT_STYLE,
) -> VersionPairSonification:
    """Sonify the change between two versions of a text, plus each version."""
    preset = get_style(style)
    diff = sonify_diff(synthesize_diff(old_text, new_text), preset)
    return VersionPairSonification(
        composition=diff.composition,
        stats=diff.stats,
        summary=diff.summary,
        old_composition=compose_code(old_text, style=preset).composition,
        new_composition=compose_code(new_text, style=preset).composition,
    )
