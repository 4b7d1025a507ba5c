"""
ingestion/sonification.py — Public entry points of the code sonification engine.

Thin boundary over the pure core/ pipeline. Every function validates its
arguments before doing any work, so a bad call never yields partial output:

    non-str text             → TypeError
    unknown style / language → ValueError listing the valid options

Usage:
    from ingestion.sonification import sonify_code, encode_to_binary

    composition = sonify_code("function add(a, b) { return a + b; }")
    smf_bytes = encode_to_binary(composition)

All functions are synchronous and stateless; concurrent calls need no
coordination.
"""

from __future__ import annotations

import logging

from core.code_analysis.analyzer import analyze
from core.code_analysis.types import LANGUAGES, CodeAnalysis
from core.sonification.composer import compose_code
from core.sonification.diff import sonify_diff, sonify_two_versions
from core.sonification.styles import DEFAULT_STYLE, available_styles
from core.sonification.types import Composition
from ingestion.midi_export import encode_composition, encode_composition_base64

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _require_text(value: object, name: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be str, got {type(value).__name__}")
    return value


def _validate_style(style: object) -> str:
    key = _require_text(style, "style").lower().strip()
    available = available_styles()
    if key not in available:
        raise ValueError(f"Unknown style {style!r}. Available: {available}")
    return key


def _validate_language(language: object) -> str | None:
    if language is None:
        return None
    key = _require_text(language, "language").lower().strip()
    if key not in LANGUAGES:
        raise ValueError(f"Unknown language {language!r}. Available: {sorted(LANGUAGES)}")
    return key


# ---------------------------------------------------------------------------
# Analysis and composition
# ---------------------------------------------------------------------------


def analyze_code(text: str, language: str | None = None) -> CodeAnalysis:
    """Run lexical analysis only.

    Raises:
        TypeError:  If ``text`` is not a str.
        ValueError: If ``language`` is not a supported label.
    """
    _require_text(text, "text")
    language = _validate_language(language)
    analysis = analyze(text, language)
    logger.debug(
        "Analyzed %d chars as %s: %d tokens, complexity %d",
        len(text),
        analysis.language,
        len(analysis.tokens),
        analysis.metrics.complexity,
    )
    return analysis


def sonify_code(
    text: str,
    language: str | None = None,
    style: str = DEFAULT_STYLE,
) -> Composition:
    """Turn source text into a Composition.

    Args:
        text:     Source code (any text, including "").
        language: Optional language label; detected when omitted.
        style:    Style name, see available_styles().

    Raises:
        TypeError:  If ``text`` is not a str.
        ValueError: If ``language`` or ``style`` is unknown.
    """
    _require_text(text, "text")
    language = _validate_language(language)
    style = _validate_style(style)

    composition = compose_code(text, language, style).composition
    logger.debug(
        "Sonified %d chars (%s, %s): %d tracks, %d notes, %d BPM",
        len(text),
        composition.metadata.source_language,
        style,
        len(composition.tracks),
        composition.note_count,
        composition.tempo,
    )
    return composition


def sonify_diff_text(diff_text: str, style: str = DEFAULT_STYLE) -> Composition:
    """Turn a unified diff into a Composition."""
    _require_text(diff_text, "diff_text")
    style = _validate_style(style)

    result = sonify_diff(diff_text, style)
    logger.debug(
        "Sonified diff (+%d / -%d, %s): %d tracks, %d notes",
        result.stats.added_lines,
        result.stats.removed_lines,
        style,
        len(result.composition.tracks),
        result.composition.note_count,
    )
    return result.composition


def sonify_version_pair(
    old_text: str,
    new_text: str,
    style: str = DEFAULT_STYLE,
) -> Composition:
    """Compose the change between two versions of a text.

    Lines are compared by position, not aligned.
    """
    _require_text(old_text, "old_text")
    _require_text(new_text, "new_text")
    style = _validate_style(style)

    result = sonify_two_versions(old_text, new_text, style)
    logger.debug(
        "Sonified version pair (%d → %d chars, %s): %d changed lines",
        len(old_text),
        len(new_text),
        style,
        result.stats.total_changes,
    )
    return result.composition


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def encode_to_binary(composition: Composition) -> bytes:
    """Standard MIDI File bytes for ``composition``.

    Raises:
        TypeError: If ``composition`` is not a Composition.
    """
    return encode_composition(composition)


def encode_to_base64(composition: Composition) -> str:
    """Base64 text of the Standard MIDI File bytes."""
    return encode_composition_base64(composition)
