"""
core/code_analysis/structures.py — Structure tree extraction from tokens.

A structure starts at every FUNCTION/CLASS/LOOP/CONDITIONAL token and runs
until the first later token whose depth is strictly smaller (or to the last
token when none is). Structures are then nested greedily: each one is tested
against the current roots, newest first, and adopted by the first root that
contains it; otherwise it becomes a new root.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from core.code_analysis.types import STRUCTURE_KINDS, CodeStructure, Token, TokenKind


@dataclass
class _Node:
    """Mutable builder node, frozen into a CodeStructure once placed."""

    kind: TokenKind
    name: str
    start_line: int
    end_line: int
    depth: int
    children: list[_Node] = field(default_factory=list)

    def contains(self, other: _Node) -> bool:
        return other.start_line > self.start_line and other.end_line <= self.end_line

    def freeze(self) -> CodeStructure:
        return CodeStructure(
            kind=self.kind,
            name=self.name,
            start_line=self.start_line,
            end_line=self.end_line,
            depth=self.depth,
            children=tuple(child.freeze() for child in self.children),
        )


def end_lines(tokens: Sequence[Token]) -> list[int]:
    """Line of the first later token with strictly smaller depth, per token.

    Tokens with no shallower successor end on the last token's line. One
    reverse pass over a stack of candidate successors whose depths strictly
    increase from bottom to top.
    """
    if not tokens:
        return []
    last_line = tokens[-1].line
    ends = [last_line] * len(tokens)
    stack: list[Token] = []
    for i in range(len(tokens) - 1, -1, -1):
        depth = tokens[i].depth
        while stack and stack[-1].depth >= depth:
            stack.pop()
        if stack:
            ends[i] = stack[-1].line
        stack.append(tokens[i])
    return ends


def _flat_structures(tokens: Sequence[Token]) -> list[_Node]:
    ends = end_lines(tokens)
    nodes: list[_Node] = []
    for i, token in enumerate(tokens):
        if token.kind not in STRUCTURE_KINDS:
            continue
        name = token.text
        if i + 1 < len(tokens) and tokens[i + 1].kind is TokenKind.UNKNOWN:
            name = tokens[i + 1].text
        nodes.append(
            _Node(
                kind=token.kind,
                name=name,
                start_line=token.line,
                end_line=ends[i],
                depth=token.depth,
            )
        )
    return nodes


def nest_structures(nodes: Sequence[_Node]) -> list[_Node]:
    """Place each node under the newest root that contains it."""
    roots: list[_Node] = []
    for node in nodes:
        for root in reversed(roots):
            if root.contains(node):
                root.children.append(node)
                break
        else:
            roots.append(node)
    return roots


def extract_structures(tokens: Sequence[Token]) -> tuple[CodeStructure, ...]:
    """Build the structure forest for a token stream.

    Args:
        tokens: Output of tokenize(), in source order.

    Returns:
        Root structures in source order; each owns its children.
    """
    roots = nest_structures(_flat_structures(tokens))
    return tuple(root.freeze() for root in roots)
