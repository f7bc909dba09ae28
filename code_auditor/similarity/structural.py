"""
Fragment Normalization and Similarity

Turns fragment source into the canonical text that fingerprints and
similarity scores are computed from. What counts as "the same" is decided
by the run configuration: comments and whitespace are only dropped when
asked, and identifiers are only renamed when asked.
"""

import re
from difflib import SequenceMatcher
from typing import FrozenSet, Iterable, List, Sequence, Tuple

from ..constants import NormalizationDefaults

# Longer alternatives first: triple-quoted strings before single quotes
TOKEN_PATTERN = re.compile(
    r'''
    (?P<ws>\s+)
    | (?P<str>"""[\s\S]*?"""|\'\'\'[\s\S]*?\'\'\'
        |"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)
    | (?P<word>[A-Za-z_$][\w$]*)
    | (?P<num>\d[\w.]*)
    | (?P<other>\S)
    ''',
    re.VERBOSE,
)

_COMMENT_MARK = '\x00'


def tokenize_code(source_code: str, keep_whitespace: bool = False) -> List[str]:
    """
    Split code into comparison tokens.

    String literals stay whole so whitespace inside them is never touched.
    With ``keep_whitespace`` each whitespace run is kept as its own token.
    """
    tokens = []
    for match in TOKEN_PATTERN.finditer(source_code):
        if match.lastgroup == 'ws' and not keep_whitespace:
            continue
        tokens.append(match.group())
    return tokens


def count_tokens(source_code: str) -> int:
    return len(tokenize_code(source_code))


def strip_comments(source_code: str, comment_spans: Iterable[Tuple[int, int]]) -> str:
    """
    Remove comment spans (offsets relative to ``source_code``).

    Lines that held only a comment disappear entirely, and whitespace left
    trailing after an inline comment is dropped, so removing a comment never
    introduces a whitespace difference of its own.
    """
    spans = sorted(comment_spans)
    if not spans:
        return source_code

    pieces = []
    cursor = 0
    for start, end in spans:
        if start < cursor:
            continue
        pieces.append(source_code[cursor:start])
        pieces.append(_COMMENT_MARK)
        cursor = end
    pieces.append(source_code[cursor:])
    marked = ''.join(pieces)

    lines = []
    for line in marked.split('\n'):
        if _COMMENT_MARK not in line:
            lines.append(line)
            continue
        cleaned = line.replace(_COMMENT_MARK, '').rstrip()
        if cleaned.strip():
            lines.append(cleaned)
    return '\n'.join(lines)


def reindent(source_code: str, first_line_indented: bool) -> str:
    """
    Remove the indentation common to the fragment's lines.

    When the fragment starts mid-line (``first_line_indented`` is False, e.g.
    a brace-delimited body starting after ``function f() ``), only the
    following lines decide the common indentation.
    """
    lines = source_code.split('\n')
    considered = lines if first_line_indented else lines[1:]
    indents = [len(line) - len(line.lstrip()) for line in considered if line.strip()]
    if not indents:
        return source_code
    margin = min(indents)
    if margin == 0:
        return source_code

    result = []
    for position, line in enumerate(lines):
        if position == 0 and not first_line_indented:
            result.append(line)
        elif line.strip():
            result.append(line[margin:])
        else:
            result.append(line.strip(' \t'))
    return '\n'.join(result)


def normalize_code(
    source_code: str,
    ignore_whitespace: bool = False,
    normalize_identifiers: bool = False,
    keywords: FrozenSet[str] = frozenset(),
) -> str:
    """
    Canonical text for fingerprinting.

    - ignore_whitespace: tokens joined by single spaces, so spacing and
      blank lines no longer matter
    - normalize_identifiers: every non-keyword identifier becomes a placeholder

    Comments are removed earlier by strip_comments, where their exact spans
    are known.
    """
    if not normalize_identifiers:
        if ignore_whitespace:
            return ' '.join(tokenize_code(source_code))
        return source_code

    normalized = []
    for match in TOKEN_PATTERN.finditer(source_code):
        token = match.group()
        if match.lastgroup == 'ws':
            if not ignore_whitespace:
                normalized.append(token)
            continue
        if match.lastgroup == 'word' and token not in keywords:
            token = NormalizationDefaults.IDENTIFIER_PLACEHOLDER
        normalized.append(token)
    return (' ' if ignore_whitespace else '').join(normalized)


def calculate_token_similarity(tokens1: Sequence[str], tokens2: Sequence[str]) -> float:
    """
    Matching token sequence length over the longer fragment's length.

    Sums SequenceMatcher's matching blocks (a greedy longest-common-
    subsequence approximation) and divides by max(len). Identical sequences
    score 1.0, sequences sharing nothing score 0.0.
    """
    if not tokens1 and not tokens2:
        return 1.0
    longest = max(len(tokens1), len(tokens2))
    if not tokens1 or not tokens2:
        return 0.0
    matcher = SequenceMatcher(None, list(tokens1), list(tokens2), autojunk=False)
    matched = sum(block.size for block in matcher.get_matching_blocks())
    return matched / longest


def similarity_upper_bound(length1: int, length2: int) -> float:
    """Best score two sequences of these lengths could reach."""
    if length1 == 0 and length2 == 0:
        return 1.0
    return min(length1, length2) / max(length1, length2)
