"""Glob matching for exclusion patterns.

Patterns are compiled once, when the run configuration is validated, so an
invalid pattern fails the run before any file is read.

Supported forms:
- Bare filename globs: "*.spec.ts" matches at any depth
- Path globs: "src/*.py" matches direct children of src only
- Globstar: "**/test_*.py" matches at any depth, including the root
- Braces: "*.{ts,tsx}" expands to one pattern per alternative

A pattern that matches a directory also excludes everything beneath it, so
"tests" drops both "tests/a.py" and "pkg/tests/b.py".
"""
from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Iterable, List, Pattern


def compile_glob(pattern: str) -> List[Pattern[str]]:
    """Compile one glob into regexes matched against POSIX-style paths.

    Raises:
        ValueError: If the pattern is empty or has an unterminated character class
    """
    if not pattern or not pattern.strip():
        raise ValueError("exclude pattern must not be empty")

    compiled = []
    for expanded in _expand_braces(pattern.strip().replace('\\', '/')):
        # A leading slash is repo-root relative; a trailing one only marks a directory
        expanded = expanded.strip('/')
        if '/' not in expanded and not expanded.startswith('**'):
            expanded = f'**/{expanded}'
        try:
            compiled.append(re.compile(_translate(expanded) + '(?:/.*)?'))
        except re.error as exc:
            raise ValueError(f"invalid exclude pattern {pattern!r}: {exc}") from exc
    return compiled


def matches_any(file_path: str, patterns: Iterable[Pattern[str]]) -> bool:
    """Check if a file path matches any compiled pattern."""
    normalized = str(PurePosixPath(file_path.replace('\\', '/'))).lstrip('/')
    if normalized.startswith('./'):
        normalized = normalized[2:]
    return any(p.fullmatch(normalized) for p in patterns)


def _translate(pattern: str) -> str:
    """Translate a globstar-aware glob into a regex string."""
    out = []
    i, n = 0, len(pattern)
    while i < n:
        char = pattern[i]
        if pattern.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            out.append('.*')
            i += 2
        elif char == '*':
            out.append('[^/]*')
            i += 1
        elif char == '?':
            out.append('[^/]')
            i += 1
        elif char == '[':
            end = pattern.find(']', i + 1)
            if end == -1:
                raise re.error(f"unterminated character class at position {i}")
            body = pattern[i + 1:end]
            if body.startswith('!'):
                body = '^' + body[1:]
            out.append(f'[{body}]')
            i = end + 1
        else:
            out.append(re.escape(char))
            i += 1
    return ''.join(out)


def _expand_braces(pattern: str) -> List[str]:
    """Expand brace groups like 'foo.{a,b}' into ['foo.a', 'foo.b'].

    Supports multiple brace groups via recursion.
    If no braces are present, returns [pattern].
    """
    start = pattern.find('{')
    if start == -1:
        return [pattern]
    end = pattern.find('}', start + 1)
    if end == -1:
        return [pattern]

    before = pattern[:start]
    inside = pattern[start + 1:end]
    after = pattern[end + 1:]

    parts = [p.strip() for p in inside.split(',') if p.strip()]
    if len(parts) <= 1:
        return [pattern]

    expanded: List[str] = []
    for part in parts:
        expanded.extend(_expand_braces(f'{before}{part}{after}'))
    return expanded
