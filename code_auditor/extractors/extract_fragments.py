"""
Fragment Extraction

Per-file stage of duplicate detection: walks one parse tree and produces
the candidate fragments of every enabled kind (function bodies, nested
block bodies, string literals, the file's import list) together with the
import and identifier-usage summaries the import checks need.

Files are independent at this stage; nothing here looks across files.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..adapters.base import LanguageAdapter
from ..config import DRYConfig
from ..errors import MalformedLiteralError
from ..matching.pattern_matcher import cyclomatic_complexity, iter_preorder
from ..models.fragment import Fragment, FragmentKind
from ..models.parse_tree import ParseTree
from ..models.summaries import IdentifierUsage, ImportInfo
from ..similarity.config import SimilarityConfig
from ..similarity.structural import count_tokens, normalize_code, reindent, strip_comments, tokenize_code

logger = logging.getLogger(__name__)

_URL_PATTERN = re.compile(r'^[a-z][a-z0-9+.-]*://\S*$', re.IGNORECASE)


@dataclass
class FileExtraction:
    """Everything one file contributes to a detection pass."""

    file_path: str
    fragments: List[Fragment] = field(default_factory=list)
    imports: List[ImportInfo] = field(default_factory=list)
    usages: List[IdentifierUsage] = field(default_factory=list)
    diagnostics: List[str] = field(default_factory=list)


def extract_file(tree: ParseTree, adapter: LanguageAdapter, config: DRYConfig) -> FileExtraction:
    """Extract all enabled fragment kinds and import summaries from one tree."""
    extraction = FileExtraction(file_path=tree.file_path)
    if tree.root.payload.opaque:
        # Nothing usable was parsed; the ParseError already records why
        return extraction

    extraction.fragments.extend(extract_block_fragments(tree, adapter, config))

    if config.check_strings:
        extraction.fragments.extend(
            extract_string_fragments(tree, adapter, config, extraction.diagnostics)
        )

    if config.check_imports or config.check_unused_imports:
        extraction.imports = adapter.extract_imports(tree)
    if config.check_imports:
        import_set = extract_import_set_fragment(tree, extraction.imports)
        if import_set is not None:
            extraction.fragments.append(import_set)
    if config.check_unused_imports:
        extraction.usages = adapter.extract_identifier_usages(tree)

    return extraction


def extract_block_fragments(tree: ParseTree, adapter: LanguageAdapter, config: DRYConfig) -> List[Fragment]:
    """
    Function/method bodies plus nested if/for/while/try bodies.

    Nested bodies must span at least MIN_NESTED_BLOCK_LINES lines; every
    block fragment must pass the significance filter.
    """
    fragments = []
    seen_spans = set()
    for node in iter_preorder(adapter, tree.root):
        is_function = adapter.is_function(node)
        if not is_function and not adapter.is_block(node):
            continue
        span = adapter.body_span(node)
        if span is None or span in seen_spans or span[0] >= span[1]:
            continue
        if not is_function:
            if tree.source.location(*span).line_count < SimilarityConfig.MIN_NESTED_BLOCK_LINES:
                continue

        fragment = create_fragment(
            tree,
            adapter,
            config,
            FragmentKind.BLOCK,
            span,
            node_kind=node.kind,
            name=adapter.get_node_name(node) if is_function else None,
            complexity=cyclomatic_complexity(adapter, node),
        )
        if not is_significant(fragment):
            continue
        seen_spans.add(span)
        fragments.append(fragment)
    return fragments


def is_significant(fragment: Fragment) -> bool:
    """
    Check if a block is worth comparing.

    Trivial bodies (``pass``, ``return x``) would otherwise flood the groups.
    Anything with branching is kept regardless of token variety.
    """
    if fragment.complexity > 1:
        return True
    unique_tokens = set(tokenize_code(fragment.text))
    return len(unique_tokens) >= SimilarityConfig.MIN_UNIQUE_TOKENS


def create_fragment(
    tree: ParseTree,
    adapter: LanguageAdapter,
    config: DRYConfig,
    kind: FragmentKind,
    span: Tuple[int, int],
    node_kind: Optional[str] = None,
    name: Optional[str] = None,
    complexity: int = 1,
) -> Fragment:
    """Cut a span out of the source, re-indent it and normalize it per config."""
    source = tree.source
    start, end = span
    location = source.location(start, end)
    line_start = source.line_start(location.start.line)
    first_line_indented = not source.slice(line_start, start).strip()
    text_start = line_start if first_line_indented else start

    raw = source.slice(text_start, end)
    if config.ignore_comments:
        comments = [
            (comment_start - text_start, comment_end - text_start)
            for comment_start, comment_end in tree.comment_spans
            if comment_start >= text_start and comment_end <= end
        ]
        raw = strip_comments(raw, comments)

    text = reindent(raw, first_line_indented)
    normalized = normalize_code(
        text,
        ignore_whitespace=config.ignore_whitespace,
        normalize_identifiers=config.normalize_identifiers,
        keywords=adapter.keywords,
    )
    return Fragment(
        kind=kind,
        file_path=tree.file_path,
        location=location,
        span=span,
        text=text,
        normalized_text=normalized,
        token_count=count_tokens(text),
        line_count=location.line_count,
        node_kind=node_kind,
        name=name,
        complexity=complexity,
    )


def is_common_string(value: str) -> bool:
    """Whitespace, digits and bare URLs are not worth a named constant."""
    stripped = value.strip()
    return not stripped or stripped.isdigit() or bool(_URL_PATTERN.match(stripped))


def extract_string_fragments(
    tree: ParseTree,
    adapter: LanguageAdapter,
    config: DRYConfig,
    diagnostics: List[str],
) -> List[Fragment]:
    """String literals at least ``min_string_length`` characters long.

    Malformed literals are skipped and recorded in ``diagnostics``.
    """
    fragments = []
    for node in iter_preorder(adapter, tree.root):
        if not adapter.is_string_literal(node):
            continue
        try:
            value = adapter.get_string_value(tree, node)
        except MalformedLiteralError as exc:
            logger.debug("Skipping literal in %s: %s", tree.file_path, exc)
            diagnostics.append(f"Skipped malformed string literal: {exc}")
            continue
        if len(value) < config.min_string_length or is_common_string(value):
            continue
        fragments.append(Fragment(
            kind=FragmentKind.STRING_LITERAL,
            file_path=tree.file_path,
            location=node.location,
            span=node.span,
            text=tree.source.slice(*node.span),
            normalized_text=value,
            token_count=1,
            line_count=node.location.line_count,
            node_kind=node.kind,
        ))
    return fragments


def extract_import_set_fragment(tree: ParseTree, imports: List[ImportInfo]) -> Optional[Fragment]:
    """The file's whole import list as one order-insensitive fragment."""
    if len(imports) < SimilarityConfig.IMPORT_SET_MIN_MODULES:
        return None

    entries = sorted({
        f"{info.module}:{','.join(sorted(spec.local_name for spec in info.specifiers))}"
        for info in imports
    })
    source = tree.source
    start = min(source.offset(info.location.start.line, info.location.start.column - 1) for info in imports)
    end = max(source.offset(info.location.end.line, info.location.end.column - 1) for info in imports)
    location = source.location(start, end)
    return Fragment(
        kind=FragmentKind.IMPORT_SET,
        file_path=tree.file_path,
        location=location,
        span=(start, end),
        text=source.slice(start, end),
        normalized_text='\n'.join(entries),
        token_count=len(entries),
        line_count=location.line_count,
        node_kind='imports',
    )
