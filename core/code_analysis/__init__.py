"""
core/code_analysis/ — Best-effort lexical analysis of source code.

Exports:
    Types:     TokenKind, Token, CodeMetrics, CodeStructure, CodeAnalysis,
               LANGUAGES, STRUCTURE_KINDS
    Analyzer:  analyze, detect_language, tokenize, extract_structures,
               compute_metrics, complexity_score
"""

from core.code_analysis.analyzer import analyze
from core.code_analysis.language import detect_language
from core.code_analysis.lexer import tokenize
from core.code_analysis.metrics import complexity_score, compute_metrics
from core.code_analysis.structures import extract_structures
from core.code_analysis.types import (
    LANGUAGES,
    STRUCTURE_KINDS,
    CodeAnalysis,
    CodeMetrics,
    CodeStructure,
    Token,
    TokenKind,
)

__all__ = [
    # Types
    "TokenKind",
    "Token",
    "CodeMetrics",
    "CodeStructure",
    "CodeAnalysis",
    "LANGUAGES",
    "STRUCTURE_KINDS",
    # Analyzer
    "analyze",
    "detect_language",
    "tokenize",
    "extract_structures",
    "compute_metrics",
    "complexity_score",
]
