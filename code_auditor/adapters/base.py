"""
Language adapter contract

One adapter per source language turns text into the shared ParseTree model
and answers navigation and summary questions about it. Generic analyzers
only ever talk to this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, FrozenSet, List, Optional, Tuple

from ..matching import pattern_matcher
from ..models.parse_tree import NodePattern, ParseTree, ParseTreeNode, SourceLocation
from ..models.summaries import ClassInfo, ExportInfo, FunctionInfo, IdentifierUsage, ImportInfo


class LanguageAdapter(ABC):
    """Base class for language adapters.

    Subclasses declare their kind tables as class attributes; the cheap
    ``is_*`` predicates are answered from those tables unless a language
    needs context (e.g. Python methods are functions inside a class body).
    """

    name: ClassVar[str] = ''
    extensions: ClassVar[Tuple[str, ...]] = ()
    keywords: ClassVar[FrozenSet[str]] = frozenset()

    function_kinds: ClassVar[FrozenSet[str]] = frozenset()
    method_kinds: ClassVar[FrozenSet[str]] = frozenset()
    class_kinds: ClassVar[FrozenSet[str]] = frozenset()
    interface_kinds: ClassVar[FrozenSet[str]] = frozenset()
    import_kinds: ClassVar[FrozenSet[str]] = frozenset()
    variable_kinds: ClassVar[FrozenSet[str]] = frozenset()
    conditional_kinds: ClassVar[FrozenSet[str]] = frozenset()
    loop_kinds: ClassVar[FrozenSet[str]] = frozenset()
    switch_case_kinds: ClassVar[FrozenSet[str]] = frozenset()
    block_kinds: ClassVar[FrozenSet[str]] = frozenset()

    def supports_file(self, file_path: str) -> bool:
        lowered = file_path.lower()
        return any(lowered.endswith(ext) for ext in self.extensions)

    @abstractmethod
    def parse(self, file_path: str, content: str) -> ParseTree:
        """Parse source text. Never raises for syntax the language accepts."""

    # Navigation

    @abstractmethod
    def get_parent(self, node: ParseTreeNode) -> Optional[ParseTreeNode]:
        ...

    @abstractmethod
    def get_children(self, node: ParseTreeNode) -> List[ParseTreeNode]:
        """Children in source order."""

    def find_nodes(self, tree: ParseTree, pattern: NodePattern) -> List[ParseTreeNode]:
        """Depth-first, pre-order, document-ordered matches."""
        return pattern_matcher.find_matching(self, tree.root, pattern)

    def get_node_text(self, tree: ParseTree, node: ParseTreeNode) -> str:
        return tree.source.slice(*node.span)

    def get_node_location(self, node: ParseTreeNode) -> SourceLocation:
        return node.location

    @abstractmethod
    def get_node_name(self, node: ParseTreeNode) -> Optional[str]:
        ...

    # Summaries

    @abstractmethod
    def extract_functions(self, tree: ParseTree) -> List[FunctionInfo]:
        ...

    @abstractmethod
    def extract_classes(self, tree: ParseTree) -> List[ClassInfo]:
        ...

    @abstractmethod
    def extract_imports(self, tree: ParseTree) -> List[ImportInfo]:
        ...

    @abstractmethod
    def extract_exports(self, tree: ParseTree) -> List[ExportInfo]:
        ...

    @abstractmethod
    def extract_identifier_usages(self, tree: ParseTree) -> List[IdentifierUsage]:
        """Every identifier reference outside import statements, in document order."""

    # Kind predicates

    def is_class(self, node: ParseTreeNode) -> bool:
        return node.kind in self.class_kinds

    def is_function(self, node: ParseTreeNode) -> bool:
        return node.kind in self.function_kinds

    def is_method(self, node: ParseTreeNode) -> bool:
        return node.kind in self.method_kinds

    def is_interface(self, node: ParseTreeNode) -> bool:
        return node.kind in self.interface_kinds

    def is_import(self, node: ParseTreeNode) -> bool:
        return node.kind in self.import_kinds

    def is_variable(self, node: ParseTreeNode) -> bool:
        return node.kind in self.variable_kinds

    def is_conditional(self, node: ParseTreeNode) -> bool:
        return node.kind in self.conditional_kinds

    def is_loop(self, node: ParseTreeNode) -> bool:
        return node.kind in self.loop_kinds

    def is_switch_case(self, node: ParseTreeNode) -> bool:
        return node.kind in self.switch_case_kinds

    def short_circuit_count(self, node: ParseTreeNode) -> int:
        """Number of short-circuit boolean operators carried by this node itself."""
        return 0

    def is_block(self, node: ParseTreeNode) -> bool:
        """Statements that own a nested body worth fingerprinting (if/for/while/try)."""
        return node.kind in self.block_kinds

    @abstractmethod
    def body_span(self, node: ParseTreeNode) -> Optional[Tuple[int, int]]:
        """Span of the body of a function or block node, or None."""

    # String literals

    @abstractmethod
    def is_string_literal(self, node: ParseTreeNode) -> bool:
        """Plain string literals, excluding docstrings and interpolated strings."""

    @abstractmethod
    def get_string_value(self, tree: ParseTree, node: ParseTreeNode) -> str:
        """Literal contents without quotes.

        Raises:
            MalformedLiteralError: If the literal is unterminated or broken
        """

    def get_complexity(self, node: ParseTreeNode) -> int:
        return pattern_matcher.cyclomatic_complexity(self, node)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, extensions={self.extensions!r})"
