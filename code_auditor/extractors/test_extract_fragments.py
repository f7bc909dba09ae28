"""
Tests for per-file fragment extraction.

Run with: python -m pytest code_auditor/extractors/test_extract_fragments.py -v
"""

import textwrap

import pytest

from code_auditor.adapters.python_adapter import PythonAdapter
from code_auditor.adapters.tree_sitter_adapter import JavaScriptAdapter
from code_auditor.config import load_config
from code_auditor.errors import MalformedLiteralError
from code_auditor.extractors.extract_fragments import (
    extract_block_fragments,
    extract_file,
    is_common_string,
)
from code_auditor.models import FragmentKind


BLOCKS = textwrap.dedent('''\
    def compute_average(values):
        total = 0
        count = 0
        for value in values:
            total += value
            count += 1
        return total / count


    def trivial():
        pass
''')

STRINGS = textwrap.dedent('''\
    MESSAGE = "Unable to connect to the upstream service"
    URL = "https://example.com/a/very/long/path"
    NUMBER = "12345678901234567890123"
    SHORT = "hi"
''')


class RejectingAdapter(PythonAdapter):
    """Treats every literal containing 'broken' as malformed."""

    def get_string_value(self, tree, node):
        value = super().get_string_value(tree, node)
        if 'broken' in value:
            raise MalformedLiteralError(f"Unterminated string literal at line {node.location.start.line}",
                                        node.location.start.line)
        return value


@pytest.fixture
def adapter():
    return PythonAdapter()


def extract(adapter, source, file_path='m.py', **settings):
    tree = adapter.parse(file_path, source)
    return extract_file(tree, adapter, load_config(settings))


# ---------------------------------------------------------------------------
# Block fragments
# ---------------------------------------------------------------------------

class TestBlockFragments:
    """Tests for function and nested block bodies."""

    def test_function_body_is_reindented(self, adapter):
        """Test the body text starts at column one."""
        fragments = extract(adapter, BLOCKS).fragments
        assert len(fragments) == 1
        fragment = fragments[0]
        assert fragment.kind == FragmentKind.BLOCK
        assert fragment.name == 'compute_average'
        assert fragment.node_kind == 'FunctionDef'
        assert fragment.line == 2
        assert fragment.line_count == 6
        assert fragment.complexity == 2
        assert fragment.text.startswith('total = 0\ncount = 0\nfor value in values:\n    total += value')

    def test_short_nested_and_trivial_bodies_skipped(self, adapter):
        """Test the two-line loop body and `pass` produce no fragment."""
        tree = adapter.parse('m.py', BLOCKS)
        fragments = extract_block_fragments(tree, adapter, load_config())
        assert [f.node_kind for f in fragments] == ['FunctionDef']

    def test_nested_block_of_three_lines(self, adapter):
        """Test nested bodies of at least three lines become fragments."""
        source = textwrap.dedent('''\
            def run(items):
                for item in items:
                    first = item.a
                    second = item.b
                    print(first, second)
        ''')
        fragments = extract(adapter, source).fragments
        assert [f.node_kind for f in fragments] == ['FunctionDef', 'For']
        assert fragments[1].text == 'first = item.a\nsecond = item.b\nprint(first, second)'

    def test_comments_stripped_when_ignored(self, adapter):
        """Test comments only affect normalized text when kept."""
        plain = 'def f(a):\n    b = a + 1\n    return b * 2\n'
        commented = 'def f(a):\n    # add one\n    b = a + 1  # inline\n    return b * 2\n'
        kept = [extract(adapter, source).fragments[0].normalized_text for source in (plain, commented)]
        assert kept[0] != kept[1]
        dropped = [
            extract(adapter, source, ignoreComments=True).fragments[0].normalized_text
            for source in (plain, commented)
        ]
        assert dropped[0] == dropped[1]

    def test_identifier_normalization(self, adapter):
        """Test renamed variables compare equal when asked."""
        first = 'def f(a):\n    total = a + 1\n    return total * 2\n'
        second = 'def g(b):\n    result = b + 1\n    return result * 2\n'
        texts = [
            extract(adapter, source, normalizeIdentifiers=True).fragments[0].normalized_text
            for source in (first, second)
        ]
        assert texts[0] == texts[1]

    def test_brace_language_block(self):
        """Test a JavaScript function and its if body."""
        js = JavaScriptAdapter()
        source = 'function f(a) {\n  if (a) {\n    one();\n    two();\n  }\n  return 2;\n}\n'
        fragments = extract(js, source, file_path='f.js').fragments
        assert [(f.node_kind, f.name) for f in fragments] == [('function_declaration', 'f'), ('if_statement', None)]
        assert fragments[1].text == '{\n  one();\n  two();\n}'
        assert fragments[1].line_count == 4


# ---------------------------------------------------------------------------
# String literals
# ---------------------------------------------------------------------------

class TestStringFragments:
    """Tests for string literal extraction."""

    def test_disabled_by_default(self, adapter):
        """Test no string fragments unless checkStrings is set."""
        fragments = extract(adapter, STRINGS).fragments
        assert not [f for f in fragments if f.kind == FragmentKind.STRING_LITERAL]

    def test_long_uncommon_strings_only(self, adapter):
        """Test short, URL and digit strings are skipped."""
        fragments = extract(adapter, STRINGS, checkStrings=True).fragments
        assert [(f.normalized_text, f.line) for f in fragments] == [
            ('Unable to connect to the upstream service', 1),
        ]
        assert fragments[0].token_count == 1

    def test_min_length_is_inclusive(self, adapter):
        """Test a literal exactly at the minimum length is kept."""
        fragments = extract(adapter, 'A = "abcde"\n', checkStrings=True, minStringLength=5).fragments
        assert [f.normalized_text for f in fragments] == ['abcde']

    def test_malformed_literal_recorded(self):
        """Test a bad literal is skipped and noted, not raised."""
        source = 'A = "this literal is broken somehow"\nB = "this literal is perfectly fine"\n'
        extraction = extract(RejectingAdapter(), source, checkStrings=True)
        assert [f.normalized_text for f in extraction.fragments] == ['this literal is perfectly fine']
        assert extraction.diagnostics == ['Skipped malformed string literal: Unterminated string literal at line 1']

    @pytest.mark.parametrize('value,expected', [
        ('   ', True),
        ('1234567890', True),
        ('https://example.com/path', True),
        ('see https://example.com for details', False),
        ('Unable to connect', False),
    ])
    def test_is_common_string(self, value, expected):
        """Test which literals are not worth a constant."""
        assert is_common_string(value) is expected


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------

class TestImportExtraction:
    """Tests for import summaries and the import-set fragment."""

    def test_import_set_fragment(self, adapter):
        """Test the import list becomes one order-insensitive fragment."""
        source = 'import os\nimport sys\nfrom typing import List, Dict\n\nx = 1\n'
        extraction = extract(adapter, source, checkImports=True)
        import_sets = [f for f in extraction.fragments if f.kind == FragmentKind.IMPORT_SET]
        assert len(import_sets) == 1
        fragment = import_sets[0]
        assert fragment.normalized_text == 'os:os\nsys:sys\ntyping:Dict,List'
        assert fragment.span[0] == 0
        assert fragment.text == 'import os\nimport sys\nfrom typing import List, Dict'
        assert fragment.line_count == 3

    def test_order_does_not_matter(self, adapter):
        """Test reordered imports give the same normalized text."""
        first = extract(adapter, 'import os\nimport sys\nimport re\n', checkImports=True)
        second = extract(adapter, 'import re\nimport os\nimport sys\n', checkImports=True)
        assert first.fragments[-1].normalized_text == second.fragments[-1].normalized_text

    def test_too_few_imports(self, adapter):
        """Test files with fewer than three imports have no import set."""
        extraction = extract(adapter, 'import os\nimport sys\n', checkImports=True)
        assert extraction.fragments == []
        assert len(extraction.imports) == 2

    def test_usages_only_for_unused_import_check(self, adapter):
        """Test identifier usages are collected only when needed."""
        source = 'import os\nprint(os.sep)\n'
        assert extract(adapter, source).usages == []
        assert extract(adapter, source).imports == []
        extraction = extract(adapter, source, checkUnusedImports=True)
        assert [u.name for u in extraction.usages] == ['print', 'os']


class TestUnusableFiles:
    """Tests for files nothing could be parsed from."""

    def test_opaque_root_yields_nothing(self):
        """Test an unusable file contributes no fragments."""
        js = JavaScriptAdapter()
        extraction = extract(js, '}}}', file_path='g.js', checkStrings=True, checkImports=True)
        assert extraction.fragments == []
        assert extraction.imports == []
