"""
ingestion/midi_export.py — Encode a Composition as a Standard MIDI File using mido.

This module is the binary output boundary of the sonification pipeline:
    source text → compose_code / sonify_diff (core/) → encode_composition

Usage:
    from ingestion.midi_export import encode_composition, encode_composition_base64

MIDI structure (Type 1, 480 ticks per quarter note):
    Track 0:   track_name (title), set_tempo, time_signature, text, end_of_track
    Track 1+:  one per composition track, in composition order:
               track_name, program_change (not on the drum channel),
               note_on / note_off pairs, end_of_track

Channel and program assignment (General MIDI):
    melody 0 / 0 piano          bass 1 / 33 fingered bass
    harmony 2 / 48 strings      ambient 3 / 88 new-age pad
    dissonance 4 / 30 overdrive percussion 9 (drum channel, no program)

Timing:
    ticks = round_half_up(seconds × (BPM / 60) × 480)
    Each track keeps a forward-only cursor: delta = max(0, tick − last) and
    last = tick after every event, even when the delta was floored. Notes are
    written as note_on immediately followed by its note_off, so overlapping
    notes collapse to zero deltas instead of going backwards.

Out-of-range values:
    Any Composition encodes. Tempo saturates at the 3-byte set_tempo limit,
    an invalid time-signature numerator or denominator becomes 4, NaN
    velocity becomes 1 and non-finite start times land on tick 0.

Determinism:
    No timestamps or random data are written; the same Composition always
    encodes to the same bytes.
"""

from __future__ import annotations

import base64
import io
import logging
import math
import re
from pathlib import Path
from types import MappingProxyType

import mido

from core.sonification.theory import pitch_to_midi, round_half_up
from core.sonification.types import Composition, Instrument, Note, Track

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_TICKS_PER_BEAT: int = 480
"""Standard MIDI ticks per quarter note. 480 gives 1 ms resolution at 120 BPM."""

DRUM_CHANNEL: int = 9
"""GM standard MIDI channel for percussion (0-indexed = channel 10 in DAW)."""

INSTRUMENT_CHANNELS: MappingProxyType[Instrument, int] = MappingProxyType(
    {
        Instrument.MELODY: 0,
        Instrument.BASS: 1,
        Instrument.HARMONY: 2,
        Instrument.AMBIENT: 3,
        Instrument.DISSONANCE: 4,
        Instrument.PERCUSSION: DRUM_CHANNEL,
    }
)

INSTRUMENT_PROGRAMS: MappingProxyType[Instrument, int] = MappingProxyType(
    {
        Instrument.MELODY: 0,  # Acoustic Grand Piano
        Instrument.BASS: 33,  # Electric Bass (finger)
        Instrument.HARMONY: 48,  # String Ensemble 1
        Instrument.PERCUSSION: 115,  # Woodblock
        Instrument.AMBIENT: 88,  # Pad 1 (new age)
        Instrument.DISSONANCE: 30,  # Overdriven Guitar
    }
)

DURATION_TICKS: MappingProxyType[str, int] = MappingProxyType(
    {
        "16n": 120,
        "8n": 240,
        "8n.": 360,
        "4n": 480,
        "4n.": 720,
        "2n": 960,
        "2n.": 1440,
        "1n": 1920,
    }
)

_MIN_VELOCITY: int = 1
_MAX_VELOCITY: int = 127
_MAX_MIDI_NOTE: int = 127
_MAX_TEMPO_US: int = 0xFFFFFF
_MAX_TICK: int = 0x0FFFFFFF
_DEFAULT_BPM: float = 120.0
_DEFAULT_TIME_SIGNATURE: tuple[int, int] = (4, 4)

_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E]")


# ---------------------------------------------------------------------------
# Variable-length quantities
# ---------------------------------------------------------------------------


def encode_vlq(value: int) -> bytes:
    """Encode a non-negative integer as a MIDI variable-length quantity.

    Big-endian base-128; every byte except the last has bit 7 set.
    Negative values encode as 0.

    Examples:
        >>> encode_vlq(0).hex()
        '00'
        >>> encode_vlq(128).hex()
        '8100'
        >>> encode_vlq(480).hex()
        '8360'
    """
    value = max(0, int(value))
    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


def decode_vlq(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode one variable-length quantity starting at ``offset``.

    Returns:
        (value, offset of the first byte after the quantity)

    Raises:
        ValueError: If ``data`` ends inside the quantity.
    """
    value = 0
    while offset < len(data):
        byte = data[offset]
        offset += 1
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, offset
    raise ValueError("Truncated variable-length quantity")


# ---------------------------------------------------------------------------
# Conversion utilities
# ---------------------------------------------------------------------------


def _sec_to_ticks(
    seconds: float,
    bpm: float,
    ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT,
) -> int:
    """Convert a position in seconds to absolute MIDI ticks.

    Formula: ticks = seconds × (BPM / 60) × ticks_per_beat, rounded half up.

    Returns:
        Tick count in 0..0x0FFFFFFF (the largest 4-byte delta time).
        Negative or non-finite positions give 0.
    """
    if not math.isfinite(seconds) or seconds < 0:
        return 0
    ticks = seconds * (_safe_bpm(bpm) / 60) * ticks_per_beat
    if ticks >= _MAX_TICK:
        return _MAX_TICK
    return max(0, round_half_up(ticks))


def _safe_bpm(bpm: float) -> float:
    """Non-positive or non-finite BPM falls back to 120."""
    if not math.isfinite(bpm) or bpm <= 0:
        return _DEFAULT_BPM
    return bpm


def _bpm_to_tempo_us(bpm: float) -> int:
    """Convert BPM to MIDI tempo (microseconds per quarter note).

    120 BPM = 500,000 μs/beat. The result is clamped to the 3-byte range of
    the set_tempo meta event, so very slow tempos saturate at 0xFFFFFF.
    """
    return min(_MAX_TEMPO_US, max(1, round_half_up(60_000_000 / _safe_bpm(bpm))))


def _time_signature(signature: tuple[int, int]) -> tuple[int, int]:
    """Numerator in 1..255 and a power-of-two denominator, else 4/4 per field."""
    numerator, denominator = signature
    if not (isinstance(numerator, int) and 1 <= numerator <= 255):
        numerator = _DEFAULT_TIME_SIGNATURE[0]
    if not (isinstance(denominator, int) and 1 <= denominator <= 128) or denominator & (
        denominator - 1
    ):
        denominator = _DEFAULT_TIME_SIGNATURE[1]
    return numerator, denominator


def _velocity_to_midi(velocity: float) -> int:
    if math.isnan(velocity):
        return _MIN_VELOCITY
    velocity = min(1.0, max(0.0, velocity))
    return min(_MAX_VELOCITY, max(_MIN_VELOCITY, round_half_up(velocity * 127)))


def _duration_to_ticks(duration: str, ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT) -> int:
    """Ticks for a symbolic duration; unknown symbols last one quarter note.

    DURATION_TICKS is expressed at 480 ticks per beat and scaled to the
    requested resolution.
    """
    ticks = DURATION_TICKS.get(duration, DEFAULT_TICKS_PER_BEAT)
    return ticks * ticks_per_beat // DEFAULT_TICKS_PER_BEAT


def _printable(text: str) -> str:
    """Keep printable ASCII only (0x20–0x7E)."""
    return _NON_PRINTABLE_RE.sub("", text)


def _start_key(note: Note) -> float:
    return note.start_time if math.isfinite(note.start_time) else 0.0


class _TrackCursor:
    """Forward-only tick cursor turning absolute ticks into delta times."""

    def __init__(self) -> None:
        self.last_tick = 0

    def delta(self, tick: int) -> int:
        delta = max(0, tick - self.last_tick)
        self.last_tick = tick
        return delta


# ---------------------------------------------------------------------------
# Track builders
# ---------------------------------------------------------------------------


def _tempo_track(composition: Composition) -> mido.MidiTrack:
    numerator, denominator = _time_signature(composition.time_signature)
    meta = composition.metadata
    track = mido.MidiTrack()
    track.append(mido.MetaMessage("track_name", name=_printable(composition.title), time=0))
    track.append(
        mido.MetaMessage("set_tempo", tempo=_bpm_to_tempo_us(composition.tempo), time=0)
    )
    track.append(
        mido.MetaMessage(
            "time_signature",
            numerator=numerator,
            denominator=denominator,
            clocks_per_click=24,
            notated_32nd_notes_per_beat=8,
            time=0,
        )
    )
    track.append(
        mido.MetaMessage(
            "text",
            text=_printable(
                f"Code sonification | {meta.source_language} | "
                f"Complexity: {meta.complexity}/100"
            ),
            time=0,
        )
    )
    track.append(mido.MetaMessage("end_of_track", time=0))
    return track


def _note_track(track: Track, bpm: float, ticks_per_beat: int) -> mido.MidiTrack:
    instrument = Instrument.coerce(track.instrument)
    channel = INSTRUMENT_CHANNELS.get(instrument, 0)
    cursor = _TrackCursor()

    midi_track = mido.MidiTrack()
    midi_track.append(mido.MetaMessage("track_name", name=_printable(track.name), time=0))
    if channel != DRUM_CHANNEL:
        midi_track.append(
            mido.Message(
                "program_change",
                channel=channel,
                program=INSTRUMENT_PROGRAMS.get(instrument, 0),
                time=cursor.delta(0),
            )
        )

    # sorted() is stable: simultaneous notes keep their insertion order
    for note in sorted(track.notes, key=_start_key):
        pitch = pitch_to_midi(note.pitch)
        if not 0 <= pitch <= _MAX_MIDI_NOTE:
            continue
        start_tick = _sec_to_ticks(note.start_time, bpm, ticks_per_beat)
        duration_ticks = _duration_to_ticks(note.duration, ticks_per_beat)
        end_tick = min(_MAX_TICK, start_tick + duration_ticks)
        midi_track.append(
            mido.Message(
                "note_on",
                channel=channel,
                note=pitch,
                velocity=_velocity_to_midi(note.velocity),
                time=cursor.delta(start_tick),
            )
        )
        midi_track.append(
            mido.Message(
                "note_off",
                channel=channel,
                note=pitch,
                velocity=0,
                time=cursor.delta(end_tick),
            )
        )

    midi_track.append(mido.MetaMessage("end_of_track", time=0))
    return midi_track


# ---------------------------------------------------------------------------
# Primary export functions
# ---------------------------------------------------------------------------


def composition_to_midi(
    composition: Composition,
    *,
    ticks_per_beat: int = DEFAULT_TICKS_PER_BEAT,
) -> mido.MidiFile:
    """Convert a Composition to a Type 1 mido.MidiFile.

    Args:
        composition:    Output of compose_code() / sonify_diff().
        ticks_per_beat: MIDI resolution (default: 480, standard).

    Returns:
        mido.MidiFile with one tempo track plus one track per composition
        track. Can be further modified or saved manually.

    Raises:
        TypeError: If ``composition`` is not a Composition.
    """
    if not isinstance(composition, Composition):
        raise TypeError(f"Expected Composition, got {type(composition).__name__}")

    midi = mido.MidiFile(type=1, ticks_per_beat=ticks_per_beat)
    midi.tracks.append(_tempo_track(composition))
    for track in composition.tracks:
        midi.tracks.append(_note_track(track, composition.tempo, ticks_per_beat))
    return midi


def encode_composition(
    composition: Composition,
    *,
    output_path: str | Path | None = None,
) -> bytes:
    """Encode a Composition to Standard MIDI File bytes.

    Args:
        composition: Composition to encode.
        output_path: If provided, also saves the bytes to this path.
                     The path's parent directory must exist.

    Returns:
        Complete SMF byte string ("MThd" header followed by "MTrk" chunks).

    Raises:
        TypeError: If ``composition`` is not a Composition.
        OSError: If output_path is not writable.
    """
    midi = composition_to_midi(composition)
    buffer = io.BytesIO()
    midi.save(file=buffer)
    data = buffer.getvalue()
    logger.debug(
        "Encoded %r: %d tracks, %d notes, %d bytes",
        composition.title,
        len(midi.tracks),
        composition.note_count,
        len(data),
    )

    if output_path is not None:
        Path(output_path).write_bytes(data)
        logger.info("Saved MIDI file to %s (%d bytes)", output_path, len(data))

    return data


def encode_composition_base64(composition: Composition) -> str:
    """Encode a Composition and return the SMF bytes as base64 text."""
    return base64.b64encode(encode_composition(composition)).decode("ascii")


# ---------------------------------------------------------------------------
# Reading back
# ---------------------------------------------------------------------------


def midi_track_events(data: bytes) -> list[list[tuple[int, mido.Message | mido.MetaMessage]]]:
    """Parse SMF bytes into per-track (absolute_tick, message) lists.

    Used to inspect encoded output without touching the filesystem.
    """
    midi = mido.MidiFile(file=io.BytesIO(data))
    tracks: list[list[tuple[int, mido.Message | mido.MetaMessage]]] = []
    for track in midi.tracks:
        tick = 0
        events: list[tuple[int, mido.Message | mido.MetaMessage]] = []
        for msg in track:
            tick += msg.time
            events.append((tick, msg))
        tracks.append(events)
    return tracks
