"""
Language adapters

Each adapter turns one language's source into the shared parse tree model
and extracts the summaries analyzers consume.
"""

from .base import LanguageAdapter
from .python_adapter import PythonAdapter
from .registry import AdapterRegistry, create_default_registry
from .tree_sitter_adapter import JavaScriptAdapter, TreeSitterAdapter, TypeScriptAdapter

__all__ = [
    'AdapterRegistry',
    'JavaScriptAdapter',
    'LanguageAdapter',
    'PythonAdapter',
    'TreeSitterAdapter',
    'TypeScriptAdapter',
    'create_default_registry',
]
