"""
Similarity Algorithm Configuration

Centralized knobs for fragment filtering, fingerprinting and near-duplicate
grouping. Allows tuning without modifying code; per-run settings such as
thresholds chosen by the caller live in code_auditor.config instead.
"""

import os


class SimilarityConfig:
    """Configuration for the fingerprint and grouping stages."""

    # Debug mode - set CODE_AUDITOR_DEBUG=1 to enable verbose logging
    DEBUG = os.environ.get('CODE_AUDITOR_DEBUG', '').lower() in ('1', 'true', 'yes')

    # Fragment significance filtering
    MIN_UNIQUE_TOKENS = int(os.getenv('MIN_UNIQUE_TOKENS', '3'))
    MIN_NESTED_BLOCK_LINES = int(os.getenv('MIN_NESTED_BLOCK_LINES', '3'))

    # Near-duplicate grouping (used when nearDuplicates is set without a threshold)
    NEAR_DUPLICATE_THRESHOLD = float(os.getenv('NEAR_DUPLICATE_THRESHOLD', '0.85'))

    # Import-set duplicates
    IMPORT_SET_MIN_FILES = int(os.getenv('IMPORT_SET_MIN_FILES', '3'))
    IMPORT_SET_MIN_MODULES = int(os.getenv('IMPORT_SET_MIN_MODULES', '3'))

    @classmethod
    def to_dict(cls) -> dict:
        """Export configuration as dictionary."""
        return {
            'significance': {
                'min_unique_tokens': cls.MIN_UNIQUE_TOKENS,
                'min_nested_block_lines': cls.MIN_NESTED_BLOCK_LINES,
            },
            'near_duplicates': {
                'threshold': cls.NEAR_DUPLICATE_THRESHOLD,
            },
            'import_sets': {
                'min_files': cls.IMPORT_SET_MIN_FILES,
                'min_modules': cls.IMPORT_SET_MIN_MODULES,
            },
            'debug': cls.DEBUG,
        }
