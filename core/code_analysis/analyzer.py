"""
core/code_analysis/analyzer.py — Entry point of the lexical analyzer.

analyze() is a total function over strings: language detection (only when
no hint is given), tokenization, structure extraction and metrics.
"""

from __future__ import annotations

from core.code_analysis.language import detect_language
from core.code_analysis.lexer import tokenize
from core.code_analysis.metrics import compute_metrics
from core.code_analysis.structures import extract_structures
from core.code_analysis.types import CodeAnalysis


def analyze(source: str, language: str | None = None) -> CodeAnalysis:
    """Analyze source text.

    Args:
        source:   Arbitrary text.
        language: Optional language label; skips detection when given.

    Returns:
        CodeAnalysis with tokens, metrics and structure forest.
    """
    tokens = tokenize(source)
    return CodeAnalysis(
        language=language or detect_language(source),
        tokens=tokens,
        metrics=compute_metrics(source, tokens),
        structures=extract_structures(tokens),
    )
