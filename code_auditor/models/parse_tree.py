"""
Parse Tree Model - language-neutral nodes, locations and parse errors

Every adapter produces the same ParseTree shape so analyzers can walk any
language through the adapter contract. Positions are 1-based lines and
columns; spans are half-open character offsets into the source text.
"""

from __future__ import annotations

import ast
import re
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, FrozenSet, Optional, Pattern, Tuple, Union


@dataclass(frozen=True, order=True)
class Position:
    line: int
    column: int

    def __post_init__(self):
        if self.line < 1 or self.column < 1:
            raise ValueError(f"Position must be 1-based, got {self.line}:{self.column}")


@dataclass(frozen=True)
class SourceLocation:
    """Half-open source range between two 1-based positions."""

    start: Position
    end: Position

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(
                f"Location end {self.end.line}:{self.end.column} precedes "
                f"start {self.start.line}:{self.start.column}"
            )

    @property
    def line_count(self) -> int:
        """Number of source lines touched by this range."""
        last_line = self.end.line
        if self.end.column == 1 and self.end.line > self.start.line:
            last_line -= 1
        return last_line - self.start.line + 1


class ParseSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ParseError:
    message: str
    location: SourceLocation
    severity: ParseSeverity = ParseSeverity.ERROR


class SourceText:
    """Line index over one file's content.

    Converts between character offsets and 1-based positions, and between
    UTF-8 byte columns (as reported by tree-sitter and the ``ast`` module)
    and character columns.
    """

    def __init__(self, content: str) -> None:
        self.content = content
        self._line_starts = [0]
        for match in re.finditer('\n', content):
            self._line_starts.append(match.end())

    def __len__(self) -> int:
        return len(self.content)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_start(self, line: int) -> int:
        index = min(max(line, 1), len(self._line_starts)) - 1
        return self._line_starts[index]

    def line_text(self, line: int) -> str:
        """Text of a 1-based line without its trailing newline."""
        start = self.line_start(line)
        if line < len(self._line_starts):
            end = self._line_starts[line] - 1
        else:
            end = len(self.content)
        return self.content[start:end]

    def position(self, offset: int) -> Position:
        offset = min(max(offset, 0), len(self.content))
        line = bisect_right(self._line_starts, offset)
        return Position(line, offset - self._line_starts[line - 1] + 1)

    def location(self, start: int, end: int) -> SourceLocation:
        return SourceLocation(self.position(start), self.position(end))

    def offset(self, line: int, column: int) -> int:
        """Character offset of a 1-based line and 0-based character column."""
        return min(self.line_start(line) + column, len(self.content))

    def offset_from_byte_column(self, line: int, byte_column: int) -> int:
        """Character offset of a 1-based line and 0-based UTF-8 byte column."""
        text = self.line_text(line)
        if text.isascii():
            return self.offset(line, byte_column)
        prefix = text.encode('utf-8')[:byte_column].decode('utf-8', errors='ignore')
        return self.offset(line, len(prefix))

    def slice(self, start: int, end: int) -> str:
        return self.content[start:end]


@dataclass(frozen=True)
class PythonPayload:
    """Payload variant for nodes produced by the Python adapter."""

    node: ast.AST
    index: Any
    opaque: bool = False
    language: str = "python"


@dataclass(frozen=True)
class TreeSitterPayload:
    """Payload variant for nodes produced by tree-sitter backed adapters."""

    node: Any
    source: SourceText
    language: str
    opaque: bool = False


NodePayload = Union[PythonPayload, TreeSitterPayload]


@dataclass(frozen=True)
class ParseTreeNode:
    kind: str
    span: Tuple[int, int]
    location: SourceLocation
    payload: NodePayload = field(compare=False, repr=False)


@dataclass(frozen=True)
class ParseTree:
    """One parsed file. Immutable once built by an adapter."""

    root: ParseTreeNode
    language: str
    file_path: str
    source: SourceText = field(repr=False)
    errors: Tuple[ParseError, ...] = ()
    comment_spans: Tuple[Tuple[int, int], ...] = field(default=(), repr=False)

    @property
    def has_fatal_errors(self) -> bool:
        return any(error.severity == ParseSeverity.ERROR for error in self.errors)


@dataclass(frozen=True)
class NodePattern:
    """Conjunctive predicate over parse tree nodes.

    Every attribute that is set must hold for a node to match. ``name`` may be
    a literal string or a compiled regex (matched with ``search``).
    """

    kind: Union[str, FrozenSet[str], None] = None
    name: Union[str, Pattern[str], None] = None
    has_child: Optional["NodePattern"] = None
    has_parent: Optional["NodePattern"] = None
    predicate: Optional[Callable[[ParseTreeNode], bool]] = field(default=None, compare=False)
