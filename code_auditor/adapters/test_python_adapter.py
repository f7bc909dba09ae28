"""
Tests for the Python adapter.

Run with: python -m pytest code_auditor/adapters/test_python_adapter.py -v
"""

import re
import textwrap

import pytest

from code_auditor.adapters.python_adapter import PythonAdapter
from code_auditor.errors import InternalInvariantViolation
from code_auditor.models import ExportKind, NodePattern, ParseSeverity


SAMPLE = textwrap.dedent('''\
    """Module docstring."""
    import os
    from typing import Protocol

    __all__ = ['load', 'Store']


    def load(path: str, strict: bool = False) -> str:
        if strict and not os.path.exists(path):
            raise FileNotFoundError(path)
        return path


    def _helper():
        return [x for x in range(3) if x]


    class Readable(Protocol):
        def read(self) -> bytes: ...


    class Store(Readable):
        limit: int = 3

        def __init__(self):
            self.items = []

        @property
        def size(self) -> int:
            return len(self.items)

        async def fetch(self, key, *args, **kwargs):
            return key
''')


@pytest.fixture
def adapter():
    return PythonAdapter()


@pytest.fixture
def tree(adapter):
    return adapter.parse('pkg/store.py', SAMPLE)


class TestParse:
    """Tests for parsing and recovery."""

    def test_clean_parse(self, adapter, tree):
        """Test a valid file parses without errors."""
        assert tree.language == 'python'
        assert tree.errors == ()
        assert tree.root.kind == 'Module'
        assert adapter.get_node_text(tree, tree.root) == SAMPLE

    def test_children_in_source_order(self, adapter, tree):
        """Test top-level statements come back in document order."""
        kinds = [child.kind for child in adapter.get_children(tree.root)]
        assert kinds == ['Expr', 'Import', 'ImportFrom', 'Assign', 'FunctionDef',
                         'FunctionDef', 'ClassDef', 'ClassDef']

    def test_parent_navigation(self, adapter, tree):
        """Test get_parent inverts get_children."""
        function = adapter.find_nodes(tree, NodePattern(kind='FunctionDef', name='load'))[0]
        assert adapter.get_parent(function).kind == 'Module'
        for child in adapter.get_children(function):
            assert adapter.get_parent(child).span == function.span

    def test_unsupported_statement_is_recovered(self, adapter):
        """Test a broken statement becomes one opaque node plus a warning."""
        source = 'x = 1\n\ndef broken x:\n    pass\n\ny = 2\n'
        tree = adapter.parse('broken.py', source)
        kinds = [child.kind for child in adapter.get_children(tree.root)]
        assert kinds == ['Assign', 'UnsupportedStatement', 'Assign']
        assert len(tree.errors) == 1
        assert tree.errors[0].severity == ParseSeverity.WARNING
        assert tree.errors[0].location.start.line == 3
        opaque = adapter.get_children(tree.root)[1]
        assert adapter.get_children(opaque) == []

    def test_tokenization_failure_gives_empty_root(self, adapter):
        """Test an untokenizable file yields one error and no statements."""
        tree = adapter.parse('bad.py', 'x = """never closed\n')
        assert tree.has_fatal_errors
        assert [error.severity for error in tree.errors] == [ParseSeverity.ERROR]
        assert adapter.get_children(tree.root) == []

    def test_statements_before_tokenization_failure_are_kept(self, adapter):
        """Test a dangling call at the end does not discard the functions above it."""
        source = 'def load(path):\n    return open(path).read()\n\n\nfoo(\n'
        tree = adapter.parse('tail.py', source)
        kinds = [child.kind for child in adapter.get_children(tree.root)]
        assert kinds == ['FunctionDef', 'UnsupportedStatement']
        assert [error.severity for error in tree.errors] == [ParseSeverity.ERROR]
        assert tree.errors[0].message.startswith('Tokenization failed: ')
        assert adapter.get_children(tree.root)[1].location.start.line == 5
        assert [info.name for info in adapter.extract_functions(tree)] == ['load']

    def test_comment_spans(self, adapter):
        """Test comments are reported by span."""
        source = 'x = 1  # trailing\n# own line\n'
        tree = adapter.parse('c.py', source)
        assert [source[start:end] for start, end in tree.comment_spans] == ['# trailing', '# own line']

    def test_foreign_node_rejected(self, adapter, tree):
        """Test nodes from another adapter are an invariant violation."""
        from code_auditor.adapters.tree_sitter_adapter import JavaScriptAdapter
        js = JavaScriptAdapter()
        js_tree = js.parse('a.js', 'let a = 1;')
        with pytest.raises(InternalInvariantViolation):
            adapter.get_children(js_tree.root)


class TestPredicates:
    """Tests for kind predicates."""

    def test_method_requires_class_parent(self, adapter, tree):
        """Test only functions directly in a class body are methods."""
        load = adapter.find_nodes(tree, NodePattern(kind='FunctionDef', name='load'))[0]
        size = adapter.find_nodes(tree, NodePattern(kind='FunctionDef', name='size'))[0]
        assert adapter.is_function(load) and not adapter.is_method(load)
        assert adapter.is_method(size)

    def test_protocol_is_interface(self, adapter, tree):
        """Test Protocol subclasses are interfaces."""
        classes = adapter.find_nodes(tree, NodePattern(kind='ClassDef'))
        assert [adapter.is_interface(node) for node in classes] == [True, False]

    def test_name_regex(self, adapter, tree):
        """Test NodePattern name accepts a regex."""
        private = adapter.find_nodes(tree, NodePattern(kind='FunctionDef', name=re.compile(r'^_[a-z]')))
        assert [adapter.get_node_name(node) for node in private] == ['_helper']

    def test_complexity(self, adapter, tree):
        """Test branches, loops and boolean operators raise complexity."""
        load = adapter.find_nodes(tree, NodePattern(kind='FunctionDef', name='load'))[0]
        helper = adapter.find_nodes(tree, NodePattern(kind='FunctionDef', name='_helper'))[0]
        # if + `and`
        assert adapter.get_complexity(load) == 3
        # comprehension + its `if` filter is not an If node
        assert adapter.get_complexity(helper) == 2

    def test_docstrings_are_not_string_literals(self, adapter, tree):
        """Test docstrings and annotations are excluded from literals."""
        strings = [
            adapter.get_string_value(tree, node)
            for node in adapter.find_nodes(tree, NodePattern(kind='Constant', predicate=lambda n: True))
            if adapter.is_string_literal(node)
        ]
        assert strings == ['load', 'Store']


class TestSummaries:
    """Tests for extracted summaries."""

    def test_extract_functions(self, adapter, tree):
        """Test module-level functions with parameters and export flags."""
        functions = {f.name: f for f in adapter.extract_functions(tree)}
        assert set(functions) == {'load', '_helper'}
        load = functions['load']
        assert load.is_exported
        assert not functions['_helper'].is_exported
        assert load.return_type == 'str'
        assert [(p.name, p.type, p.optional) for p in load.parameters] == [
            ('path', 'str', False), ('strict', 'bool', True),
        ]
        assert load.parameters[1].default_value == 'False'

    def test_extract_classes(self, adapter, tree):
        """Test methods, properties and heritage."""
        classes = {c.name: c for c in adapter.extract_classes(tree)}
        store = classes['Store']
        assert store.extends == ['Readable']
        assert classes['Readable'].implements == ['Protocol']
        assert [m.name for m in store.methods] == ['__init__', 'size', 'fetch']
        fetch = store.methods[2]
        assert fetch.is_async and fetch.is_method and fetch.class_name == 'Store'
        properties = {p.name: p for p in store.properties}
        assert set(properties) == {'limit', 'size', 'items'}
        assert properties['size'].is_readonly
        assert properties['limit'].type == 'int'

    def test_extract_imports(self, adapter, tree):
        """Test import and from-import summaries."""
        imports = adapter.extract_imports(tree)
        assert [(i.module, [s.local_name for s in i.specifiers]) for i in imports] == [
            ('os', ['os']), ('typing', ['Protocol']),
        ]
        assert imports[0].specifiers[0].is_namespace

    def test_type_checking_imports_are_type_only(self, adapter):
        """Test imports under `if TYPE_CHECKING:` are flagged."""
        source = 'from typing import TYPE_CHECKING\nif TYPE_CHECKING:\n    from pathlib import Path\n'
        imports = adapter.extract_imports(adapter.parse('t.py', source))
        assert [(i.module, i.is_type_only) for i in imports] == [('typing', False), ('pathlib', True)]

    def test_relative_import_module(self, adapter):
        """Test relative imports keep their dots."""
        imports = adapter.extract_imports(adapter.parse('t.py', 'from ..models import Fragment\n'))
        assert imports[0].module == '..models'

    def test_exports_follow_dunder_all(self, adapter, tree):
        """Test __all__ decides what is exported."""
        exports = adapter.extract_exports(tree)
        assert [(e.name, e.kind) for e in exports] == [
            ('load', ExportKind.FUNCTION), ('Store', ExportKind.CLASS),
        ]

    def test_exports_without_dunder_all(self, adapter):
        """Test public top-level names and explicit re-exports."""
        source = 'from .core import Engine as Engine\nVALUE = 1\n_private = 2\ndef run():\n    pass\n'
        exports = adapter.extract_exports(adapter.parse('t.py', source))
        assert [(e.name, e.source) for e in exports] == [('Engine', '.core'), ('VALUE', None), ('run', None)]

    def test_identifier_usages(self, adapter):
        """Test usages carry a type-position flag and skip imports."""
        source = textwrap.dedent('''\
            from pathlib import Path
            from collections import OrderedDict

            def f(p: Path) -> "OrderedDict":
                return print(p)
        ''')
        usages = adapter.extract_identifier_usages(adapter.parse('t.py', source))
        assert [(u.name, u.is_type_position) for u in usages] == [
            ('Path', True), ('OrderedDict', True), ('print', False), ('p', False),
        ]

    def test_extraction_is_idempotent(self, adapter, tree):
        """Test repeated extraction gives equal results."""
        assert adapter.extract_functions(tree) == adapter.extract_functions(tree)
        assert adapter.extract_imports(tree) == adapter.extract_imports(tree)
