"""
Code auditor: language adapters and duplicate code detection

Typical use:

    from code_auditor import create_default_registry, DuplicateDetectionEngine

    engine = DuplicateDetectionEngine(create_default_registry(), {'checkStrings': True})
    result = engine.analyze({'a.py': source_a, 'b.py': source_b})
"""

from .adapters import AdapterRegistry, LanguageAdapter, create_default_registry
from .analyzers import DuplicateDetectionEngine, analyze_duplicates
from .config import DRYConfig, load_config
from .errors import CodeAuditError, ConfigurationError, InternalInvariantViolation, MalformedLiteralError

__version__ = '0.1.0'

__all__ = [
    'AdapterRegistry',
    'CodeAuditError',
    'ConfigurationError',
    'DRYConfig',
    'DuplicateDetectionEngine',
    'InternalInvariantViolation',
    'LanguageAdapter',
    'MalformedLiteralError',
    'analyze_duplicates',
    'create_default_registry',
    'load_config',
]
