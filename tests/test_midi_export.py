"""
Tests for ingestion/midi_export.py — Standard MIDI File encoding with mido.

Tests cover:
    - VLQ encoding vectors and round trip
    - Time conversion utilities (_sec_to_ticks, _bpm_to_tempo_us)
    - Exact header / tempo-track / note-track bytes
    - The single quarter note scenario (note-off delta 0x83 0x60)
    - Channel / program assignment, velocity clamp, pitch filtering
    - Forward-only delta cursor, determinism, file output, base64
    - Other resolutions and out-of-range tempo / meter / velocity / time
"""

import base64
import dataclasses
import struct

import mido
import pytest

from core.sonification.types import (
    Composition,
    CompositionMetadata,
    Instrument,
    Note,
    Track,
)
from ingestion.midi_export import (
    DEFAULT_TICKS_PER_BEAT,
    _bpm_to_tempo_us,
    _duration_to_ticks,
    _sec_to_ticks,
    composition_to_midi,
    decode_vlq,
    encode_composition,
    encode_composition_base64,
    encode_vlq,
    midi_track_events,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_note(
    pitch: str = "C4",
    duration: str = "4n",
    velocity: float = 1.0,
    start_time: float = 0.0,
    instrument: Instrument = Instrument.MELODY,
) -> Note:
    return Note(
        pitch=pitch,
        duration=duration,
        velocity=velocity,
        start_time=start_time,
        instrument=instrument,
    )


def _make_composition(
    *tracks: Track,
    tempo: int = 120,
    title: str = "Test",
    language: str = "unknown",
    complexity: int = 0,
) -> Composition:
    return Composition(
        title=title,
        tempo=tempo,
        time_signature=(4, 4),
        key="C",
        scale="major",
        duration=1.0,
        tracks=tracks,
        metadata=CompositionMetadata(
            source_language=language,
            lines_analyzed=1,
            complexity=complexity,
            content_hash="0" * 16,
            interpretation="test",
        ),
    )


def _make_track(
    *notes: Note,
    instrument: Instrument = Instrument.MELODY,
    name: str = "Lead",
) -> Track:
    return Track(name=name, instrument=instrument, waveform="sine", volume=0.5, notes=notes)


def _chunks(data: bytes) -> list[tuple[bytes, bytes]]:
    """Split SMF bytes into (tag, payload) chunks."""
    chunks = []
    offset = 0
    while offset < len(data):
        tag = data[offset : offset + 4]
        (length,) = struct.unpack(">I", data[offset + 4 : offset + 8])
        chunks.append((tag, data[offset + 8 : offset + 8 + length]))
        offset += 8 + length
    return chunks


def _note_events(data: bytes, track_index: int = 1) -> list[tuple[int, mido.Message]]:
    return [
        (tick, msg)
        for tick, msg in midi_track_events(data)[track_index]
        if msg.type in ("note_on", "note_off")
    ]


# ---------------------------------------------------------------------------
# Variable-length quantities
# ---------------------------------------------------------------------------


class TestVlq:
    @pytest.mark.parametrize(
        "value, encoded",
        [
            (0, b"\x00"),
            (127, b"\x7f"),
            (128, b"\x81\x00"),
            (480, b"\x83\x60"),
            (8191, b"\xff\x7f"),
            (16384, b"\x81\x80\x00"),
            (0x0FFFFFFF, b"\xff\xff\xff\x7f"),
        ],
    )
    def test_vectors(self, value, encoded):
        assert encode_vlq(value) == encoded

    def test_negative_encodes_as_zero(self):
        assert encode_vlq(-5) == b"\x00"

    @pytest.mark.parametrize("value", [0, 1, 127, 128, 480, 16383, 16384, 2_097_151, 2**28 - 1])
    def test_round_trip(self, value):
        encoded = encode_vlq(value)
        assert decode_vlq(encoded) == (value, len(encoded))

    def test_decode_at_offset(self):
        assert decode_vlq(b"\xff\x83\x60\x00", 1) == (480, 3)

    def test_truncated_raises(self):
        with pytest.raises(ValueError, match="Truncated"):
            decode_vlq(b"\x83")


# ---------------------------------------------------------------------------
# Time conversion
# ---------------------------------------------------------------------------


class TestSecToTicks:
    def test_one_second_at_120bpm(self):
        """120 BPM = 2 beats/s; 2 beats × 480 ticks/beat = 960 ticks."""
        assert _sec_to_ticks(1.0, 120) == 960

    def test_half_second_at_120bpm(self):
        assert _sec_to_ticks(0.5, 120) == 480

    def test_rounds_half_up(self):
        """1/960 s at 60 BPM = 0.5 ticks → 1."""
        assert _sec_to_ticks(1 / 960, 60) == 1

    def test_negative_returns_zero(self):
        assert _sec_to_ticks(-1.0, 120) == 0

    def test_returns_int(self):
        assert isinstance(_sec_to_ticks(0.3, 97), int)

    @pytest.mark.parametrize("seconds", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_returns_zero(self, seconds):
        assert _sec_to_ticks(seconds, 120) == 0

    def test_huge_position_saturates(self):
        assert _sec_to_ticks(1e300, 120) == 0x0FFFFFFF

    def test_scales_with_resolution(self):
        assert _sec_to_ticks(0.5, 120, ticks_per_beat=960) == 960


class TestBpmToTempoUs:
    def test_120bpm_is_500000(self):
        assert _bpm_to_tempo_us(120) == 500_000

    def test_rounds_half_up(self):
        """60e6 / 96 = 625,000 exactly; 60e6 / 70 = 857,142.86 → 857,143."""
        assert _bpm_to_tempo_us(96) == 625_000
        assert _bpm_to_tempo_us(70) == 857_143

    def test_zero_bpm_uses_default(self):
        assert _bpm_to_tempo_us(0) == 500_000

    def test_slow_tempo_saturates_at_three_bytes(self):
        # 60e6 / 3 = 20,000,000 does not fit the set_tempo payload
        assert _bpm_to_tempo_us(3) == 0xFFFFFF

    def test_nan_bpm_uses_default(self):
        assert _bpm_to_tempo_us(float("nan")) == 500_000


# ---------------------------------------------------------------------------
# Byte layout
# ---------------------------------------------------------------------------


class TestHeaderChunk:
    def test_header_bytes(self, single_quarter_note_composition):
        data = encode_composition(single_quarter_note_composition)
        assert data[:14] == b"MThd\x00\x00\x00\x06\x00\x01\x00\x02\x01\xe0"

    def test_one_chunk_per_track_plus_tempo(self, single_quarter_note_composition):
        chunks = _chunks(encode_composition(single_quarter_note_composition))
        assert [tag for tag, _ in chunks] == [b"MThd", b"MTrk", b"MTrk"]

    def test_empty_composition_has_tempo_track_only(self):
        data = encode_composition(_make_composition())
        assert data[:14] == b"MThd\x00\x00\x00\x06\x00\x01\x00\x01\x01\xe0"
        assert len(_chunks(data)) == 2


class TestTempoTrack:
    def test_exact_bytes(self):
        comp = _make_composition(title="T", language="python", complexity=42)
        _, tempo_track = _chunks(encode_composition(comp))[1]
        text = b"Code sonification | python | Complexity: 42/100"
        assert tempo_track == (
            b"\x00\xff\x03\x01T"
            + b"\x00\xff\x51\x03\x07\xa1\x20"
            + b"\x00\xff\x58\x04\x04\x02\x18\x08"
            + b"\x00\xff\x01"
            + bytes([len(text)])
            + text
            + b"\x00\xff\x2f\x00"
        )

    def test_non_ascii_title_is_filtered(self):
        comp = _make_composition(title="Añ🎵b")
        _, tempo_track = _chunks(encode_composition(comp))[1]
        assert tempo_track.startswith(b"\x00\xff\x03\x02Ab")


class TestSingleQuarterNote:
    def test_note_track_bytes(self, single_quarter_note_composition):
        """Note-on at delta 0, note-off 480 ticks later (VLQ 0x83 0x60)."""
        _, note_track = _chunks(encode_composition(single_quarter_note_composition))[2]
        assert note_track == (
            b"\x00\xff\x03\x04Lead"  # track name
            b"\x00\xc0\x00"  # program change: piano on channel 0
            b"\x00\x90\x3c\x7f"  # note-on C4, velocity 127
            b"\x83\x60\x80\x3c\x00"  # note-off after 480 ticks
            b"\x00\xff\x2f\x00"  # end of track
        )

    def test_note_off_delta_bytes(self, single_quarter_note_composition):
        _, note_track = _chunks(encode_composition(single_quarter_note_composition))[2]
        note_off = note_track.index(b"\x80\x3c\x00")
        assert list(note_track[note_off - 2 : note_off]) == [0x83, 0x60]
        note_on = note_track.index(b"\x90\x3c")
        assert note_track[note_on - 1] == 0x00


# ---------------------------------------------------------------------------
# Note events
# ---------------------------------------------------------------------------


class TestChannelsAndPrograms:
    @pytest.mark.parametrize(
        "instrument, channel, program",
        [
            (Instrument.MELODY, 0, 0),
            (Instrument.BASS, 1, 33),
            (Instrument.HARMONY, 2, 48),
            (Instrument.AMBIENT, 3, 88),
            (Instrument.DISSONANCE, 4, 30),
        ],
    )
    def test_program_change(self, instrument, channel, program):
        comp = _make_composition(_make_track(_make_note(instrument=instrument), instrument=instrument))
        midi = composition_to_midi(comp)
        (pc,) = [m for m in midi.tracks[1] if m.type == "program_change"]
        assert (pc.channel, pc.program) == (channel, program)
        assert {m.channel for m in midi.tracks[1] if m.type == "note_on"} == {channel}

    def test_percussion_uses_drum_channel_without_program(self):
        perc = Instrument.PERCUSSION
        comp = _make_composition(_make_track(_make_note(instrument=perc), instrument=perc))
        midi = composition_to_midi(comp)
        assert not [m for m in midi.tracks[1] if m.type == "program_change"]
        assert {m.channel for m in midi.tracks[1] if m.type == "note_on"} == {9}


class TestNoteConversion:
    @pytest.mark.parametrize(
        "velocity, expected", [(1.0, 127), (0.7, 89), (0.5, 64), (0.001, 1), (2.0, 127)]
    )
    def test_velocity_scaling_and_clamp(self, velocity, expected):
        data = encode_composition(_make_composition(_make_track(_make_note(velocity=velocity))))
        (_, note_on), _ = _note_events(data)
        assert note_on.velocity == expected

    @pytest.mark.parametrize(
        "duration, ticks",
        [("16n", 120), ("8n", 240), ("8n.", 360), ("2n", 960), ("2n.", 1440), ("1n", 1920), ("3n", 480)],
    )
    def test_duration_ticks(self, duration, ticks):
        data = encode_composition(_make_composition(_make_track(_make_note(duration=duration))))
        (_, _), (off_tick, _) = _note_events(data)
        assert off_tick == ticks

    def test_unparseable_pitch_is_middle_c(self):
        data = encode_composition(_make_composition(_make_track(_make_note(pitch="Hb4"))))
        (_, note_on), _ = _note_events(data)
        assert note_on.note == 60

    def test_out_of_range_pitch_is_skipped(self):
        track = _make_track(_make_note(pitch="B9"), _make_note(pitch="G9", start_time=0.5))
        events = _note_events(encode_composition(_make_composition(track)))
        assert [msg.note for _, msg in events] == [127, 127]

    def test_note_off_has_zero_velocity(self):
        data = encode_composition(_make_composition(_make_track(_make_note())))
        _, (_, note_off) = _note_events(data)
        assert note_off.type == "note_off"
        assert note_off.velocity == 0

    def test_notes_sorted_by_start_time(self):
        track = _make_track(
            _make_note(pitch="E4", start_time=1.0),
            _make_note(pitch="C4", start_time=0.0),
            _make_note(pitch="D4", start_time=1.0),
        )
        events = _note_events(encode_composition(_make_composition(track)))
        ons = [msg.note for _, msg in events if msg.type == "note_on"]
        # stable: E4 stays before D4 at the same start time
        assert ons == [60, 64, 62]

    def test_start_tick_uses_composition_tempo(self):
        track = _make_track(_make_note(start_time=1.0))
        data = encode_composition(_make_composition(track, tempo=90))
        (on_tick, _), _ = _note_events(data)
        assert on_tick == 720


class TestForwardOnlyCursor:
    def test_overlap_floors_delta_at_zero(self):
        """Second note starts before the first note-off: delta 0, not negative."""
        track = _make_track(_make_note(start_time=0.0), _make_note(pitch="D4", start_time=0.25))
        midi = composition_to_midi(_make_composition(track))
        deltas = [m.time for m in midi.tracks[1] if m.type in ("note_on", "note_off")]
        assert deltas == [0, 480, 0, 480]

    def test_cumulative_ticks_never_decrease(self, nested_source):
        from core.sonification.composer import compose_code

        data = encode_composition(compose_code(nested_source).composition)
        for events in midi_track_events(data):
            ticks = [tick for tick, _ in events]
            assert ticks == sorted(ticks)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class TestEncodeComposition:
    def test_idempotent(self, single_quarter_note_composition):
        first = encode_composition(single_quarter_note_composition)
        assert encode_composition(single_quarter_note_composition) == first

    def test_saves_file(self, tmp_path, single_quarter_note_composition):
        path = tmp_path / "out.mid"
        data = encode_composition(single_quarter_note_composition, output_path=path)
        assert path.read_bytes() == data

    def test_readable_by_mido(self, tmp_path, single_quarter_note_composition):
        path = tmp_path / "out.mid"
        encode_composition(single_quarter_note_composition, output_path=path)
        midi = mido.MidiFile(str(path))
        assert midi.type == 1
        assert midi.ticks_per_beat == DEFAULT_TICKS_PER_BEAT
        assert len(midi.tracks) == 2

    def test_base64(self, single_quarter_note_composition):
        text = encode_composition_base64(single_quarter_note_composition)
        assert base64.b64decode(text) == encode_composition(single_quarter_note_composition)

    def test_rejects_non_composition(self):
        with pytest.raises(TypeError, match="Expected Composition"):
            encode_composition({"title": "x"})  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Resolution and out-of-range values
# ---------------------------------------------------------------------------


class TestTicksPerBeat:
    @pytest.mark.parametrize(
        "duration, ticks_per_beat, expected",
        [("4n", 960, 960), ("8n.", 96, 72), ("1n", 240, 960), ("3n", 960, 960)],
    )
    def test_duration_scales_with_resolution(self, duration, ticks_per_beat, expected):
        assert _duration_to_ticks(duration, ticks_per_beat) == expected

    def test_note_length_follows_resolution(self, single_quarter_note_composition):
        midi = composition_to_midi(single_quarter_note_composition, ticks_per_beat=960)
        assert midi.ticks_per_beat == 960
        deltas = [m.time for m in midi.tracks[1] if m.type in ("note_on", "note_off")]
        assert deltas == [0, 960]

    def test_start_and_length_share_resolution(self):
        track = _make_track(_make_note(duration="8n", start_time=0.5))
        midi = composition_to_midi(_make_composition(track), ticks_per_beat=96)
        deltas = [m.time for m in midi.tracks[1] if m.type in ("note_on", "note_off")]
        # 0.5 s at 120 BPM = one beat = 96 ticks; an eighth = 48 ticks
        assert deltas == [96, 48]


class TestOutOfRangeValues:
    def test_very_slow_tempo_still_encodes(self):
        comp = _make_composition(_make_track(_make_note(start_time=1.0)), tempo=3)
        _, tempo_track = _chunks(encode_composition(comp))[1]
        assert b"\xff\x51\x03\xff\xff\xff" in tempo_track

    @pytest.mark.parametrize(
        "signature, payload",
        [
            ((4, 3), b"\xff\x58\x04\x04\x02\x18\x08"),
            ((0, 8), b"\xff\x58\x04\x04\x03\x18\x08"),
            ((7, 8), b"\xff\x58\x04\x07\x03\x18\x08"),
            ((3, 0), b"\xff\x58\x04\x03\x02\x18\x08"),
        ],
    )
    def test_invalid_time_signature_fields_fall_back(self, signature, payload):
        comp = dataclasses.replace(_make_composition(), time_signature=signature)
        _, tempo_track = _chunks(encode_composition(comp))[1]
        assert payload in tempo_track

    @pytest.mark.parametrize(
        "velocity, expected",
        [(float("nan"), 1), (float("inf"), 127), (float("-inf"), 1)],
    )
    def test_non_finite_velocity(self, velocity, expected):
        data = encode_composition(_make_composition(_make_track(_make_note(velocity=velocity))))
        (_, note_on), _ = _note_events(data)
        assert note_on.velocity == expected

    @pytest.mark.parametrize("start_time", [float("nan"), float("inf")])
    def test_non_finite_start_time_lands_on_tick_zero(self, start_time):
        track = _make_track(_make_note(start_time=start_time))
        (on_tick, _), (off_tick, _) = _note_events(encode_composition(_make_composition(track)))
        assert (on_tick, off_tick) == (0, 480)
