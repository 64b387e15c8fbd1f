"""
Source locations for fix fragments.

A SourceSpan identifies a stretch of the original program text. Spans are
immutable, hashable and totally ordered, and support containment queries
(is span A a sub-span of span B?), which is what fragment merging needs.

Format:
    <start_line>:<start_col>-<end_line>:<end_col>

Lines are 1-based and columns are 0-based UTF-8 byte offsets, matching the
positions the ``ast`` module reports.

Examples:
    >>> SourceSpan.from_string("3:4-3:9")
    SourceSpan('3:4-3:9')

    >>> SourceSpan(3, 4, 3, 9).is_subspan_of(SourceSpan(3, 0, 4, 0))
    True
"""

from __future__ import annotations

import ast
import re
from dataclasses import dataclass
from typing import List, Tuple

_SPAN_RE = re.compile(r"^(\d+):(\d+)-(\d+):(\d+)$")


@dataclass(frozen=True, order=True)
class SourceSpan:
    """A half-open range of program text, from (start_line, start_col) to (end_line, end_col)."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __post_init__(self) -> None:
        if self.start_line < 1:
            raise ValueError(f"start_line must be >= 1, got {self.start_line}")
        if self.start_col < 0 or self.end_col < 0:
            raise ValueError(f"columns must be >= 0, got {self.start_col} and {self.end_col}")
        if self.start > self.end:
            raise ValueError(f"span start {self.start} is after its end {self.end}")

    @property
    def start(self) -> Tuple[int, int]:
        return (self.start_line, self.start_col)

    @property
    def end(self) -> Tuple[int, int]:
        return (self.end_line, self.end_col)

    def is_subspan_of(self, other: "SourceSpan") -> bool:
        """True if this span lies within ``other``. Every span is a sub-span of itself."""
        return other.start <= self.start and self.end <= other.end

    def overlaps(self, other: "SourceSpan") -> bool:
        """True if the two spans share at least one character position."""
        return self.start < other.end and other.start < self.end

    def to_string(self) -> str:
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"

    @classmethod
    def from_string(cls, s: str) -> "SourceSpan":
        match = _SPAN_RE.match(s.strip())
        if match is None:
            raise ValueError(f"Invalid span string: {s!r}")
        return cls(*(int(part) for part in match.groups()))

    @classmethod
    def from_node(cls, node: ast.AST) -> "SourceSpan":
        """Span of an ast node; the node must carry end positions."""
        end_line = getattr(node, "end_lineno", None)
        end_col = getattr(node, "end_col_offset", None)
        if end_line is None or end_col is None:
            raise ValueError(f"{type(node).__name__} node has no end position")
        return cls(node.lineno, node.col_offset, end_line, end_col)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"SourceSpan({self.to_string()!r})"


# Expressions that are never worth replacing on their own.
_TRIVIAL = (ast.Name, ast.Starred)


def expression_spans(source: str) -> List[Tuple[SourceSpan, str]]:
    """
    Enumerate the replaceable expressions of a Python source text.

    Returns (span, text) pairs in source order. Bare names are skipped since
    they are already in scope, and so is the outermost expression when the
    source is a single expression (that would be the whole program).
    """
    tree = ast.parse(source)
    outermost = None
    if isinstance(tree, ast.Module) and len(tree.body) == 1 and isinstance(tree.body[0], ast.Expr):
        outermost = tree.body[0].value

    spans: List[Tuple[SourceSpan, str]] = []
    seen = set()
    for node in ast.walk(tree):
        if not isinstance(node, ast.expr) or isinstance(node, _TRIVIAL) or node is outermost:
            continue
        text = ast.get_source_segment(source, node)
        if text is None:
            continue
        span = SourceSpan.from_node(node)
        if span in seen:
            continue
        seen.add(span)
        spans.append((span, text))

    spans.sort(key=lambda pair: pair[0])
    return spans
