"""
Pattern matching over parse trees

Language-neutral traversal and search built on the adapter contract.
"""

from .pattern_matcher import (
    count_of_kind,
    cyclomatic_complexity,
    find_all,
    find_all_of_kind,
    find_matching,
    first_ancestor,
    has_ancestor,
    has_descendant,
    iter_preorder,
    matches_pattern,
)

__all__ = [
    'count_of_kind',
    'cyclomatic_complexity',
    'find_all',
    'find_all_of_kind',
    'find_matching',
    'first_ancestor',
    'has_ancestor',
    'has_descendant',
    'iter_preorder',
    'matches_pattern',
]
