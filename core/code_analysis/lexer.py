"""
core/code_analysis/lexer.py — Best-effort, language-agnostic line tokenizer.

tokenize() scans text line by line and classifies whitespace/punctuation
separated fragments into TokenKind values. It is a lexical heuristic, not a
parser: nothing here ever raises for string input, and fragments that fit no
rule fall through to TokenKind.UNKNOWN.

Line rules:
    blank line      → one WHITESPACE token, nothing else
    comment line    → one COMMENT token with the trimmed line
    any other line  → one token per fragment (see _classify)

Depth:
    Every token on a line carries the depth in effect *before* the line.
    Afterwards depth moves by (opening − closing brackets) on the line and
    is floored at 0, so stray closers never drive it negative.
"""

from __future__ import annotations

import re
from types import MappingProxyType

from core.code_analysis.types import Token, TokenKind

# ---------------------------------------------------------------------------
# Lexical tables
# ---------------------------------------------------------------------------

COMMENT_PREFIXES: tuple[str, ...] = ("//", "#", "--", "/*", "*")

# Capturing group keeps each punctuation character as its own fragment.
_SPLIT_RE = re.compile(r"(\s+|[{}()\[\];,.:=<>+\-*/!&|^~?@#$%])")

_STRING_RE = re.compile(r"^['\"`]")
_NUMBER_RE = re.compile(r"^\d+(\.\d+)?$")
_OPERATOR_RE = re.compile(r"^[=+\-*/%<>!&|^~?]+$")
_IDENT_TAIL_RE = re.compile(r"\w\s*$")

OPEN_BRACKETS: frozenset[str] = frozenset("{([")
CLOSE_BRACKETS: frozenset[str] = frozenset("})]")

KEYWORDS: MappingProxyType[str, TokenKind] = MappingProxyType(
    {
        # Functions
        "function": TokenKind.FUNCTION,
        "def": TokenKind.FUNCTION,
        "fn": TokenKind.FUNCTION,
        "func": TokenKind.FUNCTION,
        "async": TokenKind.FUNCTION,
        "await": TokenKind.FUNCTION,
        "lambda": TokenKind.FUNCTION,
        # Loops
        "for": TokenKind.LOOP,
        "while": TokenKind.LOOP,
        "do": TokenKind.LOOP,
        "foreach": TokenKind.LOOP,
        "loop": TokenKind.LOOP,
        "each": TokenKind.LOOP,
        "map": TokenKind.LOOP,
        "filter": TokenKind.LOOP,
        "reduce": TokenKind.LOOP,
        "forEach": TokenKind.LOOP,
        # Conditionals
        "if": TokenKind.CONDITIONAL,
        "else": TokenKind.CONDITIONAL,
        "elif": TokenKind.CONDITIONAL,
        "switch": TokenKind.CONDITIONAL,
        "case": TokenKind.CONDITIONAL,
        "match": TokenKind.CONDITIONAL,
        "when": TokenKind.CONDITIONAL,
        "unless": TokenKind.CONDITIONAL,
        "ternary": TokenKind.CONDITIONAL,
        # Variables
        "var": TokenKind.VARIABLE,
        "let": TokenKind.VARIABLE,
        "const": TokenKind.VARIABLE,
        "val": TokenKind.VARIABLE,
        "mut": TokenKind.VARIABLE,
        "static": TokenKind.VARIABLE,
        # Classes
        "class": TokenKind.CLASS,
        "struct": TokenKind.CLASS,
        "interface": TokenKind.CLASS,
        "enum": TokenKind.CLASS,
        "trait": TokenKind.CLASS,
        "type": TokenKind.CLASS,
        # Imports
        "import": TokenKind.IMPORT,
        "require": TokenKind.IMPORT,
        "use": TokenKind.IMPORT,
        "using": TokenKind.IMPORT,
        "include": TokenKind.IMPORT,
        "from": TokenKind.IMPORT,
        # Return-like exits
        "return": TokenKind.RETURN,
        "yield": TokenKind.RETURN,
        "throw": TokenKind.RETURN,
        # Error markers
        "panic": TokenKind.ERROR,
        "unreachable": TokenKind.ERROR,
        "FIXME": TokenKind.ERROR,
        "XXX": TokenKind.ERROR,
        "BUG": TokenKind.ERROR,
        # Other keywords
        "new": TokenKind.KEYWORD,
        "this": TokenKind.KEYWORD,
        "self": TokenKind.KEYWORD,
        "super": TokenKind.KEYWORD,
        "null": TokenKind.KEYWORD,
        "nil": TokenKind.KEYWORD,
        "true": TokenKind.KEYWORD,
        "false": TokenKind.KEYWORD,
        "undefined": TokenKind.KEYWORD,
        "try": TokenKind.KEYWORD,
        "catch": TokenKind.KEYWORD,
        "finally": TokenKind.KEYWORD,
        "public": TokenKind.KEYWORD,
        "private": TokenKind.KEYWORD,
        "protected": TokenKind.KEYWORD,
        "export": TokenKind.KEYWORD,
        "default": TokenKind.KEYWORD,
        "extends": TokenKind.KEYWORD,
        "implements": TokenKind.KEYWORD,
        "abstract": TokenKind.KEYWORD,
        "override": TokenKind.KEYWORD,
    }
)

_ERROR_SUFFIXES: tuple[str, ...] = ("Error", "Exception")

# Keywords whose following identifier is a declared name, not a call.
_DECLARING_KEYWORDS: frozenset[str] = frozenset({"function", "def", "fn", "func"})


# ---------------------------------------------------------------------------
# Fragment helpers
# ---------------------------------------------------------------------------


def split_fragments(trimmed: str) -> list[str]:
    """Split a trimmed line into non-empty fragments.

    Examples:
        >>> split_fragments("add(a, b)")
        ['add', '(', 'a', ',', 'b', ')']
    """
    return [part for part in _SPLIT_RE.split(trimmed) if part.strip()]


def bracket_balance(trimmed: str) -> int:
    """Opening minus closing brackets in ``trimmed``."""
    opens = sum(1 for ch in trimmed if ch in OPEN_BRACKETS)
    closes = sum(1 for ch in trimmed if ch in CLOSE_BRACKETS)
    return opens - closes


def is_comment_line(trimmed: str) -> bool:
    return trimmed.startswith(COMMENT_PREFIXES)


def _classify(fragment: str, line: str, previous: str | None) -> TokenKind:
    """Classify one fragment, first matching rule wins."""
    if _STRING_RE.match(fragment):
        return TokenKind.STRING
    if _NUMBER_RE.match(fragment):
        return TokenKind.NUMBER
    if _OPERATOR_RE.match(fragment):
        return TokenKind.OPERATOR
    if fragment in OPEN_BRACKETS:
        return TokenKind.BRACKET_OPEN
    if fragment in CLOSE_BRACKETS:
        return TokenKind.BRACKET_CLOSE

    keyword_kind = KEYWORDS.get(fragment)
    if keyword_kind is not None:
        return keyword_kind
    if fragment.endswith(_ERROR_SUFFIXES):
        return TokenKind.ERROR

    if _IDENT_TAIL_RE.search(fragment) and f"{fragment}(" in line:
        if previous in _DECLARING_KEYWORDS:
            # "function add(" declares one function, already counted
            return TokenKind.UNKNOWN
        return TokenKind.FUNCTION

    return TokenKind.UNKNOWN


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------


def tokenize(source: str) -> tuple[Token, ...]:
    """Tokenize ``source`` into an ordered tuple of Tokens.

    Args:
        source: Arbitrary text. The empty string yields no tokens.

    Returns:
        Tokens in source order (line, then left to right).
    """
    if not source:
        return ()

    tokens: list[Token] = []
    depth = 0

    for line_no, line in enumerate(source.split("\n"), start=1):
        trimmed = line.strip()

        if not trimmed:
            tokens.append(Token(TokenKind.WHITESPACE, "", line_no, 0, depth))
            continue

        indent = line.find(trimmed[0])

        if is_comment_line(trimmed):
            tokens.append(Token(TokenKind.COMMENT, trimmed, line_no, indent, depth))
            continue

        cursor = indent
        previous: str | None = None
        for fragment in split_fragments(trimmed):
            column = line.find(fragment, cursor)
            if column < 0:
                column = cursor
            kind = _classify(fragment, line, previous)
            tokens.append(Token(kind, fragment, line_no, column, depth))
            cursor = column + len(fragment)
            previous = fragment

        depth = max(0, depth + bracket_balance(trimmed))

    return tuple(tokens)
