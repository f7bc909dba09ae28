"""
Generic tree-search primitives

Implemented once against the adapter contract (``get_children`` /
``get_parent``) so they work for every language. Traversal uses an explicit
stack rather than recursion, so deeply nested files cannot exhaust the
interpreter's recursion limit.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Collection, Iterator, List, Optional, Union

from ..errors import InternalInvariantViolation
from ..models.parse_tree import NodePattern, ParseTreeNode

if TYPE_CHECKING:
    from ..adapters.base import LanguageAdapter

logger = logging.getLogger(__name__)

NodePredicate = Callable[[ParseTreeNode], bool]
Kinds = Union[str, Collection[str]]


def check_containment(parent: ParseTreeNode, child: ParseTreeNode) -> None:
    """Raise if a child's span escapes its parent's span."""
    if child.span[0] < parent.span[0] or child.span[1] > parent.span[1]:
        raise InternalInvariantViolation(
            f"{child.kind} {child.span} lies outside parent {parent.kind} {parent.span}"
        )


def valid_children(adapter: LanguageAdapter, node: ParseTreeNode) -> List[ParseTreeNode]:
    """Children of ``node`` with inconsistent ones logged and dropped."""
    children = []
    for child in adapter.get_children(node):
        try:
            check_containment(node, child)
        except InternalInvariantViolation as exc:
            logger.warning("Skipping node from %s adapter: %s", adapter.name, exc)
            continue
        children.append(child)
    return children


def iter_preorder(adapter: LanguageAdapter, root: ParseTreeNode) -> Iterator[ParseTreeNode]:
    """Yield ``root`` and its descendants depth-first, in document order."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(valid_children(adapter, node)))


def _kind_matches(node: ParseTreeNode, kinds: Kinds) -> bool:
    if isinstance(kinds, str):
        return node.kind == kinds
    return node.kind in kinds


def matches_pattern(adapter: LanguageAdapter, node: ParseTreeNode, pattern: NodePattern) -> bool:
    """Check every populated attribute of ``pattern`` against ``node``."""
    if pattern.kind is not None and not _kind_matches(node, pattern.kind):
        return False

    if pattern.name is not None:
        name = adapter.get_node_name(node)
        if name is None:
            return False
        if isinstance(pattern.name, str):
            if name != pattern.name:
                return False
        elif not pattern.name.search(name):
            return False

    if pattern.has_child is not None:
        if not any(matches_pattern(adapter, child, pattern.has_child)
                   for child in valid_children(adapter, node)):
            return False

    if pattern.has_parent is not None:
        parent = adapter.get_parent(node)
        if parent is None or not matches_pattern(adapter, parent, pattern.has_parent):
            return False

    if pattern.predicate is not None and not pattern.predicate(node):
        return False

    return True


def find_matching(adapter: LanguageAdapter, root: ParseTreeNode, pattern: NodePattern) -> List[ParseTreeNode]:
    return [node for node in iter_preorder(adapter, root) if matches_pattern(adapter, node, pattern)]


def find_all(adapter: LanguageAdapter, root: ParseTreeNode, predicate: NodePredicate) -> List[ParseTreeNode]:
    return [node for node in iter_preorder(adapter, root) if predicate(node)]


def find_all_of_kind(adapter: LanguageAdapter, root: ParseTreeNode, kinds: Kinds) -> List[ParseTreeNode]:
    return find_all(adapter, root, lambda node: _kind_matches(node, kinds))


def count_of_kind(adapter: LanguageAdapter, root: ParseTreeNode, kinds: Kinds) -> int:
    return sum(1 for node in iter_preorder(adapter, root) if _kind_matches(node, kinds))


def first_ancestor(
    adapter: LanguageAdapter,
    node: ParseTreeNode,
    predicate: NodePredicate,
) -> Optional[ParseTreeNode]:
    """Nearest ancestor (excluding ``node`` itself) satisfying ``predicate``."""
    current = adapter.get_parent(node)
    while current is not None:
        if predicate(current):
            return current
        current = adapter.get_parent(current)
    return None


def has_ancestor(adapter: LanguageAdapter, node: ParseTreeNode, predicate: NodePredicate) -> bool:
    return first_ancestor(adapter, node, predicate) is not None


def has_descendant(adapter: LanguageAdapter, node: ParseTreeNode, predicate: NodePredicate) -> bool:
    descendants = iter_preorder(adapter, node)
    next(descendants)
    return any(predicate(descendant) for descendant in descendants)


def cyclomatic_complexity(adapter: LanguageAdapter, node: ParseTreeNode) -> int:
    """Estimate cyclomatic complexity of the subtree rooted at ``node``.

    Starts at 1 and adds one per conditional, loop and switch case, plus one
    per short-circuit boolean operator.
    """
    complexity = 1
    for current in iter_preorder(adapter, node):
        if adapter.is_conditional(current) or adapter.is_loop(current) or adapter.is_switch_case(current):
            complexity += 1
        complexity += adapter.short_circuit_count(current)
    return complexity
