"""
Per-file fragment extraction for duplicate detection
"""

from .extract_fragments import FileExtraction, extract_file

__all__ = [
    'FileExtraction',
    'extract_file',
]
