"""
core/code_analysis/types.py — Frozen value objects for the lexical analyzer.

All types are immutable frozen dataclasses. Sequences are stored as tuples so
an entire CodeAnalysis is hashable and safe to share between callers.

Types:
    TokenKind      — closed enumeration of lexical token kinds
    Token          — one classified fragment of source text
    CodeMetrics    — aggregate counts and the derived complexity score
    CodeStructure  — a node of the function/class/loop/conditional tree
    CodeAnalysis   — the complete output of analyze()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class TokenKind(str, Enum):
    """Kind of a lexical token. Values double as stable string labels."""

    FUNCTION = "function"
    LOOP = "loop"
    CONDITIONAL = "conditional"
    VARIABLE = "variable"
    CLASS = "class"
    STRING = "string"
    NUMBER = "number"
    OPERATOR = "operator"
    COMMENT = "comment"
    IMPORT = "import"
    RETURN = "return"
    ERROR = "error"
    BRACKET_OPEN = "bracket_open"
    BRACKET_CLOSE = "bracket_close"
    WHITESPACE = "whitespace"
    KEYWORD = "keyword"
    UNKNOWN = "unknown"


STRUCTURE_KINDS: frozenset[TokenKind] = frozenset(
    {TokenKind.FUNCTION, TokenKind.CLASS, TokenKind.LOOP, TokenKind.CONDITIONAL}
)
"""Token kinds that open a CodeStructure."""


LANGUAGES: tuple[str, ...] = (
    "typescript",
    "javascript",
    "python",
    "java",
    "csharp",
    "go",
    "rust",
    "unknown",
)
"""Supported language labels in detection priority order."""


@dataclass(frozen=True)
class Token:
    """A single classified fragment of source text.

    Invariants:
        line >= 1
        column >= 0
        depth >= 0
    """

    kind: TokenKind
    text: str
    line: int
    """1-based source line."""

    column: int
    """0-based offset of the fragment within its line."""

    depth: int
    """Bracket nesting depth in effect before this line's brackets."""


@dataclass(frozen=True)
class CodeMetrics:
    """Aggregate counts over a token stream.

    Invariants:
        0 <= complexity <= 100
        code_lines == total_lines - empty_lines - comment_lines
    """

    total_lines: int = 0
    code_lines: int = 0
    comment_lines: int = 0
    empty_lines: int = 0
    function_count: int = 0
    loop_count: int = 0
    conditional_count: int = 0
    variable_count: int = 0
    class_count: int = 0
    import_count: int = 0
    error_count: int = 0
    max_nesting_depth: int = 0
    complexity: int = 0


@dataclass(frozen=True)
class CodeStructure:
    """A function/class/loop/conditional region and the structures it owns."""

    kind: TokenKind
    name: str
    start_line: int
    end_line: int
    depth: int
    children: tuple[CodeStructure, ...] = field(default_factory=tuple)

    def walk(self) -> tuple[CodeStructure, ...]:
        """This node followed by all descendants, depth-first pre-order."""
        nodes: list[CodeStructure] = [self]
        for child in self.children:
            nodes.extend(child.walk())
        return tuple(nodes)


@dataclass(frozen=True)
class CodeAnalysis:
    """Complete result of analyzing one source text."""

    language: str
    tokens: tuple[Token, ...]
    metrics: CodeMetrics
    structures: tuple[CodeStructure, ...]
