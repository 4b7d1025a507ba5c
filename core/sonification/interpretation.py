"""
core/sonification/interpretation.py — Human-readable descriptions.

Purely descriptive text built from metric thresholds. Nothing here feeds the
encoder; the strings end up in CompositionMetadata.interpretation and in the
diff summary report.
"""

from __future__ import annotations

from core.code_analysis.types import CodeAnalysis
from core.sonification.types import Composition, DiffStats


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def describe_code(analysis: CodeAnalysis, style: str) -> str:
    """Describe a code composition from its analysis metrics.

    Example:
        "A clean, minimalist arrangement reflecting simple, elegant code,
        featuring 1 melodic theme, Rendered in classical style, from
        javascript source code (1 lines)."
    """
    m = analysis.metrics
    parts: list[str] = []

    if m.complexity > 70:
        parts.append("A complex, intense composition reflecting deeply nested logic")
    elif m.complexity > 40:
        parts.append("A balanced piece with moderate complexity")
    else:
        parts.append("A clean, minimalist arrangement reflecting simple, elegant code")

    if m.function_count > 5:
        parts.append(
            f"with {m.function_count} melodic phrases representing well-organized functions"
        )
    elif m.function_count > 0:
        parts.append(f"featuring {_plural(m.function_count, 'melodic theme')}")

    if m.loop_count > 3:
        parts.append("driven by strong, repetitive rhythmic patterns")
    elif m.loop_count > 0:
        parts.append("with subtle rhythmic elements")

    if m.conditional_count > 5:
        parts.append("rich harmonic changes reflecting branching logic")
    elif m.conditional_count > 0:
        parts.append("and gentle harmonic shifts")

    if m.error_count > 0:
        parts.append(
            f"with {_plural(m.error_count, 'dissonant moment')} signaling potential issues"
        )

    parts.append(f"Rendered in {style} style")
    parts.append(f"from {analysis.language} source code ({m.total_lines} lines)")
    return ", ".join(parts) + "."


def describe_diff(stats: DiffStats, style: str) -> str:
    """Describe a diff composition from its change ratio and counts."""
    ratio = stats.change_ratio
    if ratio > 0.8:
        mood = "A bright, optimistic composition reflecting significant new code additions"
    elif ratio > 0.6:
        mood = "A mostly uplifting piece with new code dominating the melody"
    elif ratio > 0.4:
        mood = (
            "A balanced composition reflecting equal parts creation and removal, "
            "a refactoring journey"
        )
    elif ratio > 0.2:
        mood = "A contemplative piece where code cleanup dominates, simplification in progress"
    else:
        mood = "A minimalist, descending composition reflecting major code removal"

    parts = [mood, f"{stats.added_lines} lines added, {stats.removed_lines} lines removed"]
    if stats.files:
        parts.append(f"across {_plural(len(stats.files), 'file')}")
    parts.append(f"rendered in {style} style")
    return ", ".join(parts) + "."


def diff_summary(stats: DiffStats, composition: Composition) -> str:
    """Multi-line plain-text report of a diff sonification."""
    add_bar = "+" * min(20, stats.added_lines)
    remove_bar = "-" * min(20, stats.removed_lines)
    mood = "bright, more additions" if stats.change_ratio > 0.5 else "dark, more deletions"
    intensity = "intense" if stats.total_changes > 30 else "moderate"

    return "\n".join(
        [
            "Diff sonification complete",
            "",
            "Changes:",
            f"  + {stats.added_lines} lines added    {add_bar}",
            f"  - {stats.removed_lines} lines removed  {remove_bar}",
            "",
            "Musical interpretation:",
            f"  Key: {composition.key} {composition.scale} ({mood})",
            f"  Tempo: {composition.tempo} BPM ({intensity} changes)",
            f"  Duration: {composition.duration:.1f}s",
            f"  Tracks: {len(composition.tracks)}",
            "",
            "How to read it:",
            "  ascending bright melodies = added code",
            "  descending dark bass      = removed code",
            "  chords                    = significant changes",
            "  soft ambient              = unchanged context",
            "",
            composition.metadata.interpretation,
        ]
    )
