"""
Data models for the code auditor

Parse tree types are plain frozen dataclasses owned by adapters; everything
that crosses the analyzer boundary is a Pydantic v2 model.

Models:
- ParseTree / ParseTreeNode / SourceLocation: uniform tree over any language
- FunctionInfo / ClassInfo / ImportInfo / ExportInfo: extracted summaries
- Fragment: candidate duplicate unit
- DuplicateGroup: clique of similar fragments
- Violation / AnalyzerResult: reported findings
"""

from .parse_tree import (
    NodePattern,
    NodePayload,
    ParseError,
    ParseSeverity,
    ParseTree,
    ParseTreeNode,
    Position,
    PythonPayload,
    SourceLocation,
    SourceText,
    TreeSitterPayload,
)

from .summaries import (
    ClassInfo,
    ExportInfo,
    ExportKind,
    FunctionInfo,
    IdentifierUsage,
    ImportInfo,
    ImportSpecifier,
    ParameterInfo,
    PropertyInfo,
)

from .fragment import (
    Fragment,
    FragmentKind,
)

from .duplicate_group import (
    DuplicateGroup,
    SimilarityMethod,
)

from .violation import (
    DuplicateMetrics,
    Severity,
    Violation,
    ViolationLocation,
    ViolationType,
)

from .scan_result import (
    AnalyzerResult,
    FileError,
    RunStatus,
    ScanMetrics,
    SourceFile,
)

__all__ = [
    # parse_tree
    'NodePattern',
    'NodePayload',
    'ParseError',
    'ParseSeverity',
    'ParseTree',
    'ParseTreeNode',
    'Position',
    'PythonPayload',
    'SourceLocation',
    'SourceText',
    'TreeSitterPayload',

    # summaries
    'ClassInfo',
    'ExportInfo',
    'ExportKind',
    'FunctionInfo',
    'IdentifierUsage',
    'ImportInfo',
    'ImportSpecifier',
    'ParameterInfo',
    'PropertyInfo',

    # fragment
    'Fragment',
    'FragmentKind',

    # duplicate_group
    'DuplicateGroup',
    'SimilarityMethod',

    # violation
    'DuplicateMetrics',
    'Severity',
    'Violation',
    'ViolationLocation',
    'ViolationType',

    # scan_result
    'AnalyzerResult',
    'FileError',
    'RunStatus',
    'ScanMetrics',
    'SourceFile',
]
