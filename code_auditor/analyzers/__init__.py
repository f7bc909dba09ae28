"""
Analyzers that turn parse trees into violations
"""

from .dry_analyzer import DuplicateDetectionEngine, analyze_duplicates
from .import_checks import find_duplicate_imports, find_unused_imports

__all__ = [
    'DuplicateDetectionEngine',
    'analyze_duplicates',
    'find_duplicate_imports',
    'find_unused_imports',
]
