"""
core/sonification/mapper.py — Deterministic token → note mapping.

map_to_notes() folds a token stream into an ordered tuple of Notes. Every
TokenKind has exactly one pure handler:

    handler(token, cursor, ctx) → (notes, new_cursor)

The time cursor (seconds) is threaded explicitly through the fold and only
ever moves forward. Handlers share nothing else, so identical input always
replays to identical output and independent calls can run in parallel.

Timing:
    Durations are looked up at the 120 BPM reference and multiplied by
    tempo_multiplier = 120 / tempo, so faster pieces advance less per note.

Token rules (B = style key, S = style scale, O = octave from depth):
    function      3–5 note ascending phrase in S at O, melody
    loop          percussive pattern × 2 (for) / 3 (while) / 1
    conditional   simultaneous triad, if-chord or else-chord, harmony
    variable      sustained low note from the identifier's first char, bass
    class         power chord (root, fifth, octave) at O, melody
    string        soft major-pentatonic note by text length, ambient
    number        staccato note, pitch = value mod 12, octave by magnitude
    operator      short hit from the operator pitch table, percussion
    comment       quiet pentatonic pad by line number, ambient
    import        rising three-note arpeggio in S, ambient
    return        two-note descending resolution to B, melody
    error         dissonant cluster (B+1, B+6, B+11), dissonance
    brackets      zero-advance grace notes at / below O, ambient
    whitespace    silence
    keyword/other very quiet background note, ambient
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType

from core.code_analysis.types import CodeAnalysis, Token, TokenKind
from core.sonification.config import DEFAULT_MAPPING_CONFIG, MappingConfig
from core.sonification.styles import StylePreset, get_style
from core.sonification.theory import (
    DURATION_SECONDS,
    REFERENCE_BPM,
    SCALE_FORMULAS,
    note_name,
    round_half_up,
    scale_note,
)
from core.sonification.types import Instrument, Note

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_MIN_OCTAVE: int = 1
_MAX_OCTAVE: int = 7

_OPERATOR_PITCHES: MappingProxyType[str, str] = MappingProxyType(
    {
        "=": "C3",
        "+": "D3",
        "-": "E3",
        "*": "F3",
        "/": "G3",
        "%": "A3",
        "!": "B3",
        "&": "C4",
        "|": "D4",
        "^": "E4",
        "<": "F4",
        ">": "G4",
        "?": "A4",
    }
)
_DEFAULT_OPERATOR_PITCH: str = "C3"

_POWER_CHORD: tuple[int, ...] = (0, 7, 12)
_ELSE_WORDS: frozenset[str] = frozenset({"else", "elif"})
_LOOP_REPEATS: MappingProxyType[str, int] = MappingProxyType({"for": 2, "while": 3})

_VARIABLE_FALLBACK_CHAR: int = 67  # 'C'
_PAD_OCTAVE: int = 5
_ERROR_OCTAVE: int = 3
_RESOLUTION_OCTAVE: int = 4


# ---------------------------------------------------------------------------
# Mapping context
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MappingContext:
    """Read-only parameters shared by every handler in one mapping pass."""

    style: StylePreset
    config: MappingConfig
    tempo: int

    @property
    def tempo_multiplier(self) -> float:
        return REFERENCE_BPM / self.tempo

    def seconds(self, duration: str) -> float:
        """Seconds one ``duration`` advances the cursor at this tempo."""
        return DURATION_SECONDS[duration] * self.tempo_multiplier

    def octave_for_depth(self, depth: int) -> int:
        """Deeper nesting raises the octave, capped by max_octave_shift."""
        shift = min(depth, self.config.max_octave_shift)
        return min(_MAX_OCTAVE, max(_MIN_OCTAVE, self.config.base_octave + shift))


Handler = Callable[[Token, float, MappingContext], tuple[list[Note], float]]


def tempo_from_complexity(complexity: float, style: StylePreset | str) -> int:
    """Interpolate linearly across the style's tempo range.

    Examples:
        >>> tempo_from_complexity(0, "classical")
        80
        >>> tempo_from_complexity(100, "classical")
        130
    """
    low, high = get_style(style).tempo_range
    return round_half_up(low + (complexity / 100) * (high - low))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _map_function(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    scale = ctx.style.scale_intervals
    octave = ctx.octave_for_depth(token.depth)
    notes: list[Note] = []
    for i in range(3 + len(token.text) % 3):
        notes.append(
            Note(
                pitch=scale_note(ctx.style.key_index, scale[i % len(scale)], octave),
                duration="8n",
                velocity=0.7 + i * 0.05,
                start_time=time,
                instrument=Instrument.MELODY,
            )
        )
        time += ctx.seconds("8n")
    return notes, time


def _map_loop(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    pitch = f"{ctx.style.base_key}{ctx.octave_for_depth(token.depth)}"
    notes: list[Note] = []
    for rep in range(_LOOP_REPEATS.get(token.text, 1)):
        for duration in ctx.config.loop_pattern:
            notes.append(
                Note(
                    pitch=pitch,
                    duration=duration,
                    velocity=0.6 + rep * 0.1,
                    start_time=time,
                    instrument=Instrument.PERCUSSION,
                )
            )
            time += ctx.seconds(duration) * 0.5
    return notes, time


def _map_conditional(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    octave = ctx.octave_for_depth(token.depth)
    chord = ctx.config.else_chord if token.text in _ELSE_WORDS else ctx.config.if_chord
    notes = [
        Note(
            pitch=f"{name}{octave}",
            duration="4n",
            velocity=0.5,
            start_time=time,
            instrument=Instrument.HARMONY,
        )
        for name in chord
    ]
    return notes, time + ctx.seconds("4n")


def _map_variable(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    char_code = ord(token.text[0]) if token.text else _VARIABLE_FALLBACK_CHAR
    note = Note(
        pitch=note_name(char_code % 12, ctx.config.variable_octave),
        duration="2n",
        velocity=0.4,
        start_time=time,
        instrument=Instrument.BASS,
    )
    return [note], time + ctx.seconds("4n")


def _map_class(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    octave = ctx.octave_for_depth(token.depth)
    notes = [
        Note(
            pitch=scale_note(ctx.style.key_index, interval, octave),
            duration="2n",
            velocity=0.65,
            start_time=time,
            instrument=Instrument.MELODY,
        )
        for interval in _POWER_CHORD
    ]
    return notes, time + ctx.seconds("2n")


def _pentatonic_pad(ctx: MappingContext, index: int) -> str:
    pentatonic = SCALE_FORMULAS["pentatonic"]
    interval = pentatonic[index % len(pentatonic)]
    return note_name(ctx.style.key_index + interval, _PAD_OCTAVE)


def _map_string(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    note = Note(
        pitch=_pentatonic_pad(ctx, len(token.text)),
        duration="4n",
        velocity=0.35,
        start_time=time,
        instrument=Instrument.AMBIENT,
    )
    return [note], time + ctx.seconds("8n")


def _map_number(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    try:
        value = float(token.text)
    except ValueError:
        value = 0.0
    if not math.isfinite(value):
        value = 0.0
    octave = min(_MAX_OCTAVE, max(2, 3 + math.floor(value / 100)))
    note = Note(
        pitch=note_name(abs(round_half_up(value)) % 12, octave),
        duration="16n",
        velocity=0.5,
        start_time=time,
        instrument=Instrument.MELODY,
    )
    return [note], time + ctx.seconds("16n")


def _map_operator(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    note = Note(
        pitch=_OPERATOR_PITCHES.get(token.text, _DEFAULT_OPERATOR_PITCH),
        duration="16n",
        velocity=0.3,
        start_time=time,
        instrument=Instrument.PERCUSSION,
    )
    return [note], time + ctx.seconds("16n") * 0.5


def _map_comment(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    note = Note(
        pitch=_pentatonic_pad(ctx, token.line),
        duration="2n",
        velocity=0.15,
        start_time=time,
        instrument=Instrument.AMBIENT,
    )
    return [note], time + ctx.seconds("4n")


def _map_import(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    scale = ctx.style.scale_intervals
    notes: list[Note] = []
    for i in range(3):
        notes.append(
            Note(
                pitch=note_name(ctx.style.key_index + scale[i % len(scale)], 4 + i),
                duration="16n",
                velocity=0.3,
                start_time=time,
                instrument=Instrument.AMBIENT,
            )
        )
        time += ctx.seconds("16n")
    return notes, time


def _map_return(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    key = ctx.style.key_index
    approach = Note(
        pitch=note_name(key + 4, _RESOLUTION_OCTAVE),
        duration="8n",
        velocity=0.5,
        start_time=time,
        instrument=Instrument.MELODY,
    )
    time += ctx.seconds("8n")
    root = Note(
        pitch=note_name(key, _RESOLUTION_OCTAVE),
        duration="4n",
        velocity=0.6,
        start_time=time,
        instrument=Instrument.MELODY,
    )
    return [approach, root], time + ctx.seconds("4n")


def _map_error(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    notes = [
        Note(
            pitch=note_name(ctx.style.key_index + interval, _ERROR_OCTAVE),
            duration="8n",
            velocity=0.8,
            start_time=time,
            instrument=Instrument.DISSONANCE,
        )
        for interval in ctx.config.error_intervals
    ]
    return notes, time + ctx.seconds("8n")


def _map_bracket_open(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    note = Note(
        pitch=f"{ctx.style.base_key}{ctx.octave_for_depth(token.depth)}",
        duration="16n",
        velocity=0.2,
        start_time=time,
        instrument=Instrument.AMBIENT,
    )
    return [note], time


def _map_bracket_close(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    octave = max(2, ctx.octave_for_depth(token.depth) - 1)
    note = Note(
        pitch=f"{ctx.style.base_key}{octave}",
        duration="16n",
        velocity=0.2,
        start_time=time,
        instrument=Instrument.AMBIENT,
    )
    return [note], time


def _map_whitespace(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    return [], time + ctx.seconds("8n") * 0.3


def _map_background(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    char_code = ord(token.text[0]) if token.text else 0
    note = Note(
        pitch=note_name(char_code % 12, ctx.octave_for_depth(token.depth)),
        duration="16n",
        velocity=0.15,
        start_time=time,
        instrument=Instrument.AMBIENT,
    )
    return [note], time + ctx.seconds("16n") * 0.3


HANDLERS: MappingProxyType[TokenKind, Handler] = MappingProxyType(
    {
        TokenKind.FUNCTION: _map_function,
        TokenKind.LOOP: _map_loop,
        TokenKind.CONDITIONAL: _map_conditional,
        TokenKind.VARIABLE: _map_variable,
        TokenKind.CLASS: _map_class,
        TokenKind.STRING: _map_string,
        TokenKind.NUMBER: _map_number,
        TokenKind.OPERATOR: _map_operator,
        TokenKind.COMMENT: _map_comment,
        TokenKind.IMPORT: _map_import,
        TokenKind.RETURN: _map_return,
        TokenKind.ERROR: _map_error,
        TokenKind.BRACKET_OPEN: _map_bracket_open,
        TokenKind.BRACKET_CLOSE: _map_bracket_close,
        TokenKind.WHITESPACE: _map_whitespace,
        TokenKind.KEYWORD: _map_background,
        TokenKind.UNKNOWN: _map_background,
    }
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def map_token(token: Token, time: float, ctx: MappingContext) -> tuple[list[Note], float]:
    """Apply the handler for ``token.kind``; unrecognised kinds use the background rule."""
    handler = HANDLERS.get(token.kind, _map_background)
    return handler(token, time, ctx)


def map_tokens(tokens: Iterable[Token], ctx: MappingContext) -> tuple[tuple[Note, ...], float]:
    """Fold tokens into notes.

    Returns:
        (notes in emission order, final cursor position in seconds)
    """
    notes: list[Note] = []
    time = 0.0
    for token in tokens:
        emitted, time = map_token(token, time, ctx)
        notes.extend(emitted)
    return tuple(notes), time


def map_to_notes(
    analysis: CodeAnalysis,
    style: StylePreset | str = "classical",
    *,
    config: MappingConfig = DEFAULT_MAPPING_CONFIG,
) -> tuple[Note, ...]:
    """Map a complete CodeAnalysis to an ordered tuple of Notes.

    Args:
        analysis: Output of analyze().
        style:    Style name or StylePreset (key, scale, tempo range).
        config:   Rule parameters (octaves, loop pattern, chords).

    Returns:
        Notes in emission order; simultaneous notes share start_time.

    Raises:
        ValueError: If ``style`` is an unknown style name.
    """
    preset = get_style(style)
    ctx = MappingContext(
        style=preset,
        config=config,
        tempo=tempo_from_complexity(analysis.metrics.complexity, preset),
    )
    notes, _ = map_tokens(analysis.tokens, ctx)
    return notes
