"""
core/code_analysis/metrics.py — Aggregate code metrics and complexity score.

Complexity (0–100) is a sum of four independently capped components:

    nesting    = min(max_depth × 10, 30)
    branching  = min((conditionals + loops) × 5, 30)
    size       = min(code_lines × 0.5, 20)
    functions  = min(functions × 3, 20)

The sum is clamped to 100 and rounded half-up.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Sequence

from core.code_analysis.types import CodeMetrics, Token, TokenKind

NESTING_CAP: float = 30.0
BRANCHING_CAP: float = 30.0
SIZE_CAP: float = 20.0
FUNCTION_CAP: float = 20.0


def complexity_score(
    *,
    max_depth: int,
    branch_count: int,
    code_lines: int,
    function_count: int,
) -> int:
    """Combine the capped components into an integer score in [0, 100].

    Examples:
        >>> complexity_score(max_depth=1, branch_count=2, code_lines=10, function_count=1)
        28
    """
    nesting = min(max_depth * 10, NESTING_CAP)
    branching = min(branch_count * 5, BRANCHING_CAP)
    size = min(max(code_lines, 0) * 0.5, SIZE_CAP)
    functions = min(function_count * 3, FUNCTION_CAP)
    total = min(100.0, nesting + branching + size + functions)
    return max(0, int(math.floor(total + 0.5)))


def compute_metrics(source: str, tokens: Sequence[Token]) -> CodeMetrics:
    """Count lines and token kinds for one analyzed text.

    Args:
        source: The text that produced ``tokens``.
        tokens: Token stream from tokenize().

    Returns:
        CodeMetrics. The empty string has zero lines and all-zero metrics.
    """
    if not source:
        return CodeMetrics()

    lines = source.split("\n")
    total_lines = len(lines)
    empty_lines = sum(1 for line in lines if not line.strip())

    counts = Counter(token.kind for token in tokens)
    comment_lines = counts[TokenKind.COMMENT]
    code_lines = total_lines - empty_lines - comment_lines

    max_depth = max((token.depth for token in tokens), default=0)

    return CodeMetrics(
        total_lines=total_lines,
        code_lines=code_lines,
        comment_lines=comment_lines,
        empty_lines=empty_lines,
        function_count=counts[TokenKind.FUNCTION],
        loop_count=counts[TokenKind.LOOP],
        conditional_count=counts[TokenKind.CONDITIONAL],
        variable_count=counts[TokenKind.VARIABLE],
        class_count=counts[TokenKind.CLASS],
        import_count=counts[TokenKind.IMPORT],
        error_count=counts[TokenKind.ERROR],
        max_nesting_depth=max_depth,
        complexity=complexity_score(
            max_depth=max_depth,
            branch_count=counts[TokenKind.CONDITIONAL] + counts[TokenKind.LOOP],
            code_lines=code_lines,
            function_count=counts[TokenKind.FUNCTION],
        ),
    )
