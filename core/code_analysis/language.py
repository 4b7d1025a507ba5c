"""
core/code_analysis/language.py — Signature-based source language detection.

Each candidate language carries five regular-expression signatures. The text
is scored by how many signatures match anywhere in it; the highest score wins
and ties keep the language listed first. No signature match means "unknown".

End-anchored signatures match only at the very end of the whole text, never
at the end of an inner line or before a trailing newline.
"""

from __future__ import annotations

import re

# Ordered: dict iteration order is the tie-break order.
_SIGNATURES: dict[str, tuple[re.Pattern[str], ...]] = {
    "typescript": (
        re.compile(r":\s*(string|number|boolean|any|void|never)"),
        re.compile(r"interface\s+\w+"),
        re.compile(r"import\s+.*from\s+['\"]"),
        re.compile(r"\?\.\w+"),
        re.compile(r"<\w+>"),
    ),
    "javascript": (
        re.compile(r"const\s+\w+\s*="),
        re.compile(r"let\s+\w+"),
        re.compile(r"=>\s*{?"),
        re.compile(r"require\("),
        re.compile(r"module\.exports"),
    ),
    "python": (
        re.compile(r"def\s+\w+\("),
        re.compile(r"import\s+\w+"),
        re.compile(r"class\s+\w+:"),
        re.compile(r"if\s+.*:\Z"),
        re.compile(r"print\("),
    ),
    "java": (
        re.compile(r"public\s+(static\s+)?class"),
        re.compile(r"System\.out"),
        re.compile(r"void\s+main"),
        re.compile(r"private\s+\w+"),
        re.compile(r"import\s+java\."),
    ),
    "csharp": (
        re.compile(r"using\s+System"),
        re.compile(r"namespace\s+\w+"),
        re.compile(r"public\s+class"),
        re.compile(r"Console\.Write"),
        re.compile(r"\[.*\]\s*\Z"),
    ),
    "go": (
        re.compile(r"func\s+\w+\("),
        re.compile(r"package\s+\w+"),
        re.compile(r"import\s+\("),
        re.compile(r"fmt\.Print"),
        re.compile(r":=\s*"),
    ),
    "rust": (
        re.compile(r"fn\s+\w+\("),
        re.compile(r"let\s+mut\s+"),
        re.compile(r"impl\s+\w+"),
        re.compile(r"pub\s+fn"),
        re.compile(r"use\s+\w+::"),
    ),
}


def language_scores(source: str) -> dict[str, int]:
    """Return the number of matching signatures per candidate language."""
    return {
        language: sum(1 for pattern in patterns if pattern.search(source))
        for language, patterns in _SIGNATURES.items()
    }


def detect_language(source: str) -> str:
    """Guess the language of ``source``.

    Returns:
        One of the candidate labels, or "unknown" when nothing matched.

    Examples:
        >>> detect_language("def main():\\n    print('hi')")
        'python'
        >>> detect_language("")
        'unknown'
    """
    best_language = "unknown"
    best_score = 0
    for language, score in language_scores(source).items():
        if score > best_score:
            best_language = language
            best_score = score
    return best_language
