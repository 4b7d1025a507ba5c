"""
Configuration dataclass for the code → music mapping rules.

An immutable MappingConfig decouples the fixed rule parameters from the
mapper's function signatures so alternative configurations can be defined
once and reused across calls.
"""

from dataclasses import dataclass

from core.sonification.theory import DURATION_SECONDS, NOTE_NAMES


@dataclass(frozen=True)
class MappingConfig:
    """
    Parameters of the token → note rules.

    Attributes:
        base_octave: Octave for depth-0 melodic/structural notes. Defaults
            to 4 (middle C octave).
        max_octave_shift: Maximum number of octaves nesting depth may raise
            a note. Defaults to 2.
        variable_octave: Octave of variable bass notes. Defaults to 2.
        loop_pattern: Symbolic durations of one loop repetition.
        if_chord: Note names played for 'if' and other conditionals.
        else_chord: Note names played for 'else' / 'elif'.
        error_intervals: Semitone offsets from the style key for the error
            cluster (minor second, tritone, major seventh by default).

    Example:
        >>> config = MappingConfig(base_octave=3, max_octave_shift=3)
        >>> notes = map_to_notes(analysis, get_style("jazz"), config=config)
    """

    base_octave: int = 4
    max_octave_shift: int = 2
    variable_octave: int = 2
    loop_pattern: tuple[str, ...] = ("8n", "8n", "16n", "16n", "8n")
    if_chord: tuple[str, ...] = ("C", "E", "G")
    else_chord: tuple[str, ...] = ("A", "C", "E")
    error_intervals: tuple[int, ...] = (1, 6, 11)

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not 1 <= self.base_octave <= 7:
            raise ValueError(f"base_octave must be in [1, 7], got {self.base_octave}")
        if self.max_octave_shift < 0:
            raise ValueError(
                f"max_octave_shift must be non-negative, got {self.max_octave_shift}"
            )
        if not 0 <= self.variable_octave <= 8:
            raise ValueError(f"variable_octave must be in [0, 8], got {self.variable_octave}")
        if not self.loop_pattern:
            raise ValueError("loop_pattern must not be empty")
        unknown = [d for d in self.loop_pattern if d not in DURATION_SECONDS]
        if unknown:
            raise ValueError(
                f"Unknown durations in loop_pattern: {unknown}, "
                f"valid options: {sorted(DURATION_SECONDS)}"
            )
        for label, chord in (("if_chord", self.if_chord), ("else_chord", self.else_chord)):
            if not chord:
                raise ValueError(f"{label} must not be empty")
            bad = [n for n in chord if n not in NOTE_NAMES]
            if bad:
                raise ValueError(f"Unknown note names in {label}: {bad}")
        if not self.error_intervals:
            raise ValueError("error_intervals must not be empty")


DEFAULT_MAPPING_CONFIG = MappingConfig()
"""Default rules: octave 4 ± 2 by depth, bass at octave 2, C-E-G / A-C-E chords."""
