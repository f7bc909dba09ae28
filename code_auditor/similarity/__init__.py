"""
Fragment normalization, similarity and grouping

Layer 1 buckets fragments by fingerprint; Layer 2 forms near-duplicate
cliques from token-sequence similarity when the threshold allows it.
"""

from .config import SimilarityConfig
from .grouping import group_fragments
from .structural import (
    calculate_token_similarity,
    normalize_code,
    reindent,
    strip_comments,
    tokenize_code,
)

__all__ = [
    'SimilarityConfig',
    'calculate_token_similarity',
    'group_fragments',
    'normalize_code',
    'reindent',
    'strip_comments',
    'tokenize_code',
]
