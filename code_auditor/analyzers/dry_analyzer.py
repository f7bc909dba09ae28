"""
Duplicate Detection (DRY) Analyzer

Runs one detection pass over a list of already-read source files:

1. Drop files matching excludePatterns
2. Parse each remaining file with the registry's adapter (one at a time,
   in path order, polling for cancellation between files)
3. Extract block, string-literal and import-set fragments per file, and run
   the per-file import checks
4. Group fragments of each kind across all files
5. Turn the surviving groups into violations

A bad file never aborts the run: parse problems and adapter failures are
recorded in the result's ``errors`` list and the file is skipped.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .import_checks import find_duplicate_imports, find_unused_imports
from ..adapters.registry import AdapterRegistry, create_default_registry
from ..config import DRYConfig, describe, load_config
from ..constants import ExtractionDefaults, SeverityThresholds
from ..extractors.extract_fragments import FileExtraction, extract_file
from ..models.duplicate_group import DuplicateGroup
from ..models.fragment import Fragment, FragmentKind
from ..models.parse_tree import ParseSeverity, ParseTree
from ..models.scan_result import AnalyzerResult, FileError, RunStatus, ScanMetrics, SourceFile
from ..models.violation import DuplicateMetrics, Severity, Violation, ViolationLocation, ViolationType
from ..similarity.config import SimilarityConfig
from ..similarity.grouping import group_fragments
from ..utils.timing import RunTimer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
CancelCheck = Callable[[], bool]
SourceInput = Union[Iterable[Union[SourceFile, Tuple[str, str]]], Mapping[str, str]]


def coerce_sources(sources: SourceInput) -> List[SourceFile]:
    """Accept SourceFile objects, (path, content) pairs or a path->content mapping.

    Returns the files in ascending path order.
    """
    if isinstance(sources, Mapping):
        files = [SourceFile(path=path, content=content) for path, content in sources.items()]
    else:
        files = []
        for source in sources:
            if isinstance(source, SourceFile):
                files.append(source)
            else:
                path, content = source
                files.append(SourceFile(path=path, content=content))
    return sorted(files, key=lambda source: source.path)


def format_parse_errors(tree: ParseTree) -> List[FileError]:
    """One driver-level error entry per ParseError on the tree."""
    entries = []
    for error in tree.errors:
        label = 'Parse error' if error.severity == ParseSeverity.ERROR else 'Parse warning'
        entries.append(FileError(
            file=tree.file_path,
            error=f"{label}: {error.message} (line {error.location.start.line})",
        ))
    return entries


def suppress_nested_groups(groups: List[DuplicateGroup]) -> List[DuplicateGroup]:
    """Drop groups whose every member sits inside a member of another group.

    Two duplicated functions also duplicate their loop bodies; only the
    enclosing group is worth reporting.
    """
    kept = []
    for group in groups:
        nested = any(
            other is not group and other.contains_group(group)
            for other in groups
        )
        if nested:
            logger.debug("Suppressing nested group %s", group.group_id)
            continue
        kept.append(group)
    return kept


def determine_block_severity(group: DuplicateGroup) -> Severity:
    """
    Severity scales with group size and duplicated line count.

    - critical: 4+ occurrences, or 50+ duplicated lines
    - warning: exact match, or 10+ duplicated lines
    - suggestion: anything else
    """
    if (group.occurrence_count >= SeverityThresholds.CRITICAL_OCCURRENCES
            or group.duplicated_lines >= SeverityThresholds.CRITICAL_DUPLICATED_LINES):
        return Severity.CRITICAL
    if group.is_exact or group.duplicated_lines >= SeverityThresholds.WARNING_DUPLICATED_LINES:
        return Severity.WARNING
    return Severity.SUGGESTION


def _format_locations(fragments: Sequence[Fragment]) -> str:
    listed = [f"{fragment.file_path}:{fragment.line}" for fragment in fragments[:ExtractionDefaults.MAX_LISTED_LOCATIONS]]
    remaining = len(fragments) - len(listed)
    if remaining > 0:
        listed.append(f"and {remaining} more")
    return ', '.join(listed)


def _locations(group: DuplicateGroup) -> List[ViolationLocation]:
    return [ViolationLocation(file=fragment.file_path, line=fragment.line) for fragment in group.fragments]


def _metrics(group: DuplicateGroup) -> DuplicateMetrics:
    return DuplicateMetrics(
        occurrences=group.occurrence_count,
        line_count=group.line_count,
        duplicated_lines=group.duplicated_lines,
        affected_files=len(group.affected_files),
    )


def create_block_violation(group: DuplicateGroup) -> Violation:
    first = group.fragments[0]
    where = _format_locations(group.fragments)
    if group.is_exact:
        violation_type = ViolationType.EXACT_DUPLICATE
        message = (f"Duplicate code block ({group.line_count} lines) found in "
                   f"{group.occurrence_count} locations: {where}")
    else:
        violation_type = ViolationType.SIMILAR_LOGIC
        message = (f"Similar code block ({group.line_count} lines, {group.similarity:.0%} similar) "
                   f"found in {group.occurrence_count} locations: {where}")

    names = sorted({fragment.name for fragment in group.fragments if fragment.name})
    if len(group.affected_files) == 1:
        recommendation = "Extract the duplicated code into a local helper function"
    else:
        recommendation = "Extract the duplicated code into a shared function or module"
    if names:
        recommendation += f" (seen in: {', '.join(names)})"

    return Violation(
        type=violation_type,
        severity=determine_block_severity(group),
        message=message,
        file=first.file_path,
        line=first.line,
        locations=_locations(group),
        similarity=group.similarity,
        recommendation=recommendation,
        metrics=_metrics(group),
    )


def create_string_violation(group: DuplicateGroup) -> Violation:
    first = group.fragments[0]
    value = first.normalized_text
    preview = value[:ExtractionDefaults.PREVIEW_LENGTH]
    if len(value) > ExtractionDefaults.PREVIEW_LENGTH:
        preview += '...'
    return Violation(
        type=ViolationType.DUPLICATE_STRING,
        severity=Severity.SUGGESTION,
        message=f'String literal "{preview}" is duplicated {group.occurrence_count} times',
        file=first.file_path,
        line=first.line,
        locations=_locations(group),
        similarity=1.0,
        recommendation="Consider extracting this string into a named constant",
        metrics=_metrics(group),
    )


def create_import_set_violation(group: DuplicateGroup) -> Violation:
    first = group.fragments[0]
    return Violation(
        type=ViolationType.DUPLICATE_IMPORT_SET,
        severity=Severity.SUGGESTION,
        message=(f"The same set of {first.token_count} imports is repeated in "
                 f"{len(group.affected_files)} files: {_format_locations(group.fragments)}"),
        file=first.file_path,
        line=first.line,
        locations=_locations(group),
        similarity=1.0,
        recommendation="Consider a shared module that groups these dependencies",
        metrics=_metrics(group),
    )


class DuplicateDetectionEngine:
    """
    Detects duplicated blocks, string literals and imports across files.

    The registry is built once by the caller and only read here; one engine
    can run any number of passes.
    """

    def __init__(
        self,
        registry: Optional[AdapterRegistry] = None,
        config: Union[DRYConfig, Mapping, None] = None,
    ) -> None:
        # Invalid settings fail here, before any file is looked at
        self.config = load_config(config)
        self.registry = registry if registry is not None else create_default_registry()
        if SimilarityConfig.DEBUG:
            logger.debug("DRY configuration: %s", describe(self.config))
            logger.debug("Similarity settings: %s", SimilarityConfig.to_dict())

    def analyze(
        self,
        sources: SourceInput,
        progress_callback: Optional[ProgressCallback] = None,
        should_cancel: Optional[CancelCheck] = None,
    ) -> AnalyzerResult:
        """
        Run one detection pass.

        Args:
            sources: Files with their already-resolved text
            progress_callback: Called as (current, total, path) before each file,
                where ``current`` counts the files already handled
            should_cancel: Polled between files; when it returns True the pass
                stops and returns what it has with status ``cancelled``

        Returns:
            AnalyzerResult with violations sorted by (file, line, type, message)
        """
        config = self.config
        timer = RunTimer()
        metrics = ScanMetrics()
        errors: List[FileError] = []
        violations: List[Violation] = []
        fragments: List[Fragment] = []
        status = RunStatus.COMPLETED
        files_processed = 0

        included = []
        for source in coerce_sources(sources):
            if config.is_excluded(source.path):
                metrics.files_excluded += 1
                logger.debug("Excluded %s", source.path)
                continue
            included.append(source)

        total = len(included)
        for index, source in enumerate(included):
            if should_cancel is not None and should_cancel():
                status = RunStatus.CANCELLED
                logger.info("Duplicate detection cancelled after %d of %d files", index, total)
                break
            if progress_callback is not None:
                progress_callback(index, total, source.path)

            adapter = self.registry.get_adapter_for_file(source.path)
            if adapter is None:
                metrics.files_skipped += 1
                logger.debug("No adapter for %s, skipping", source.path)
                continue

            try:
                with timer.stage('parse'):
                    tree = adapter.parse(source.path, source.content)
                errors.extend(format_parse_errors(tree))
                with timer.stage('extract'):
                    extraction = extract_file(tree, adapter, config)
            except Exception as e:
                logger.warning("Failed to analyze %s: %s", source.path, e, exc_info=True)
                errors.append(FileError(file=source.path, error=f"Analysis failed: {e}"))
                continue

            files_processed += 1
            errors.extend(FileError(file=source.path, error=message) for message in extraction.diagnostics)
            fragments.extend(extraction.fragments)
            violations.extend(self._check_imports(extraction))

        with timer.stage('group'):
            groups = self._group(fragments)

        with timer.stage('report'):
            for group in groups:
                if group.kind == FragmentKind.BLOCK:
                    violations.append(create_block_violation(group))
                elif group.kind == FragmentKind.STRING_LITERAL:
                    violations.append(create_string_violation(group))
                else:
                    violations.append(create_import_set_violation(group))
            violations.sort(key=lambda violation: violation.sort_key)

        block_groups = [group for group in groups if group.kind == FragmentKind.BLOCK]
        metrics.total_fragments = len(fragments)
        metrics.duplicate_groups = len(groups)
        metrics.exact_duplicates = sum(1 for group in block_groups if group.is_exact)
        metrics.near_duplicates = len(block_groups) - metrics.exact_duplicates
        metrics.duplicated_lines = sum(group.duplicated_lines for group in block_groups)
        metrics.timings = timer.to_dict()

        logger.debug(
            "DRY pass: %d files, %d fragments, %d groups, %d violations",
            files_processed, len(fragments), len(groups), len(violations),
        )
        return AnalyzerResult(
            violations=violations,
            files_processed=files_processed,
            execution_time=timer.elapsed_ms,
            errors=errors,
            status=status,
            metrics=metrics,
        )

    def _check_imports(self, extraction: FileExtraction) -> List[Violation]:
        found = []
        if self.config.check_imports:
            found.extend(find_duplicate_imports(extraction.file_path, extraction.imports))
        if self.config.check_unused_imports:
            found.extend(find_unused_imports(
                extraction.file_path, extraction.imports, extraction.usages, self.config,
            ))
        return found

    def _group(self, fragments: List[Fragment]) -> List[DuplicateGroup]:
        """Group each fragment kind on its own and apply the per-kind filters."""
        config = self.config
        by_kind = {kind: [] for kind in FragmentKind}
        for fragment in fragments:
            by_kind[fragment.kind].append(fragment)

        # Nested suppression runs before the line threshold so that raising
        # the threshold can only remove groups
        block_groups = suppress_nested_groups(group_fragments(
            by_kind[FragmentKind.BLOCK],
            similarity_threshold=config.similarity_threshold,
            keep_whitespace=not config.ignore_whitespace,
        ))
        block_groups = [group for group in block_groups if group.line_count >= config.min_line_threshold]

        string_groups = [
            group for group in group_fragments(by_kind[FragmentKind.STRING_LITERAL])
            if group.occurrence_count >= config.min_string_occurrences
        ]
        import_set_groups = [
            group for group in group_fragments(by_kind[FragmentKind.IMPORT_SET])
            if len(group.affected_files) >= SimilarityConfig.IMPORT_SET_MIN_FILES
        ]
        return block_groups + string_groups + import_set_groups


def analyze_duplicates(
    sources: SourceInput,
    config: Union[DRYConfig, Mapping, None] = None,
    registry: Optional[AdapterRegistry] = None,
    progress_callback: Optional[ProgressCallback] = None,
    should_cancel: Optional[CancelCheck] = None,
) -> AnalyzerResult:
    """One-shot helper: build an engine and run a single pass."""
    engine = DuplicateDetectionEngine(registry=registry, config=config)
    return engine.analyze(sources, progress_callback=progress_callback, should_cancel=should_cancel)
