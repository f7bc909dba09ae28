"""
Import checks - repeated and unused imports within one file

Both checks work on the adapter's ImportInfo/IdentifierUsage summaries, so
they never look at raw tree nodes.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Tuple

from ..config import DRYConfig
from ..models.summaries import IdentifierUsage, ImportInfo
from ..models.violation import Severity, Violation, ViolationLocation, ViolationType

logger = logging.getLogger(__name__)

# Compiler directives, not bindings
IGNORED_MODULES = frozenset({'__future__'})


def find_duplicate_imports(file_path: str, imports: List[ImportInfo]) -> List[Violation]:
    """
    One violation per module imported by more than one statement.

    Type-only and value imports of the same module are counted separately:
    ``import type { A } from 'x'`` next to ``import { b } from 'x'`` is the
    usual way to write that and is not a repeat.
    """
    by_module: Dict[Tuple[str, bool], List[ImportInfo]] = defaultdict(list)
    for info in imports:
        if info.module in IGNORED_MODULES:
            continue
        by_module[(info.module, info.is_type_only)].append(info)

    violations = []
    for (module, is_type_only), infos in by_module.items():
        if len(infos) < 2:
            continue
        infos = sorted(infos, key=lambda info: (info.location.start.line, info.location.start.column))
        if is_type_only:
            message = f"Module '{module}' has {len(infos)} separate type-only imports"
        else:
            message = f"Module '{module}' is imported {len(infos)} times"
        violations.append(Violation(
            type=ViolationType.DUPLICATE_IMPORT,
            severity=Severity.WARNING,
            message=message,
            file=file_path,
            line=infos[0].location.start.line,
            locations=[ViolationLocation(file=file_path, line=info.location.start.line) for info in infos],
            recommendation=f"Merge the imports of '{module}' into a single statement",
        ))
    return violations


def find_unused_imports(
    file_path: str,
    imports: List[ImportInfo],
    usages: List[IdentifierUsage],
    config: DRYConfig,
) -> List[Violation]:
    """
    Flag names bound by an import and never referenced.

    A reference in a type position counts as a use unless
    ``count_type_only_usage`` is off; even then a type-only import is never
    reported for being used only as a type.
    """
    usages_by_name: Dict[str, List[IdentifierUsage]] = defaultdict(list)
    for usage in usages:
        usages_by_name[usage.name].append(usage)

    violations = []
    for info in imports:
        if info.module in IGNORED_MODULES:
            continue
        for specifier in info.specifiers:
            local_name = specifier.local_name
            if not local_name or local_name == '*':
                continue
            if specifier.alias and specifier.alias == specifier.name:
                # `from x import y as y` is an explicit re-export
                continue

            references = usages_by_name.get(local_name, [])
            if references:
                type_only_use = all(usage.is_type_position for usage in references)
                if config.count_type_only_usage or info.is_type_only or not type_only_use:
                    continue
                message = f"Import '{local_name}' from '{info.module}' is only used in type positions"
                recommendation = "Move this import into a type-only import"
            else:
                message = f"Unused import '{local_name}' from '{info.module}'"
                recommendation = "Remove the unused import"

            logger.debug("%s:%d %s", file_path, info.location.start.line, message)
            violations.append(Violation(
                type=ViolationType.UNUSED_IMPORT,
                severity=Severity.SUGGESTION,
                message=message,
                file=file_path,
                line=info.location.start.line,
                locations=[ViolationLocation(file=file_path, line=info.location.start.line)],
                recommendation=recommendation,
            ))
    return violations
