"""
Tests for the tree-sitter backed TypeScript and JavaScript adapters.

Run with: python -m pytest code_auditor/adapters/test_typescript_adapter.py -v
"""

import textwrap

import pytest

from code_auditor.adapters.tree_sitter_adapter import JavaScriptAdapter, TypeScriptAdapter
from code_auditor.models import ExportKind, NodePattern, ParseSeverity


TS_SAMPLE = textwrap.dedent('''\
    import { readFile } from 'fs';
    import type { Config } from './config';
    import * as path from 'path';
    import Default, { a as b } from './mod';

    export interface Shape {
      area(): number;
    }

    export abstract class Base implements Shape {
      private name: string = 'x';
      abstract area(): number;
    }

    export class Circle extends Base {
      constructor(r: number) {
        super();
      }

      area(): number {
        if (this.r > 0 && this.r < 10) {
          return 3.14 * this.r * this.r;
        }
        return 0;
      }
    }

    export const double = (n: number): number => n * 2;

    export function load(file: string, strict?: boolean): Config {
      for (const x of [1, 2]) {
        console.log(x);
      }
      return readFile(file) as unknown as Config;
    }
''')


@pytest.fixture
def ts():
    return TypeScriptAdapter()


@pytest.fixture
def ts_tree(ts):
    return ts.parse('src/shapes.ts', TS_SAMPLE)


class TestTypeScriptParse:
    """Tests for TypeScript parsing."""

    def test_clean_parse(self, ts, ts_tree):
        """Test a valid file parses without errors."""
        assert ts_tree.errors == ()
        assert ts_tree.language == 'typescript'
        assert ts_tree.root.kind == 'program'
        assert ts.get_node_text(ts_tree, ts_tree.root) == TS_SAMPLE

    def test_tsx_uses_tsx_grammar(self, ts):
        """Test JSX syntax parses in .tsx files."""
        tree = ts.parse('src/view.tsx', 'const el = <div className="x">{value}</div>;\n')
        assert tree.errors == ()

    def test_children_are_named_nodes(self, ts, ts_tree):
        """Test top-level children in source order."""
        kinds = [child.kind for child in ts.get_children(ts_tree.root)]
        assert kinds[:4] == ['import_statement'] * 4
        assert kinds[4:] == ['export_statement'] * 5

    def test_find_nodes_by_kind_set(self, ts, ts_tree):
        """Test kind sets and parent patterns."""
        methods = ts.find_nodes(ts_tree, NodePattern(kind=frozenset({'method_definition'})))
        assert [ts.get_node_name(m) for m in methods] == ['constructor', 'area']
        assert all(ts.is_method(m) for m in methods)

    def test_interface_predicate(self, ts, ts_tree):
        """Test interfaces are recognised."""
        interfaces = [n for n in ts.find_nodes(ts_tree, NodePattern(kind='interface_declaration'))]
        assert len(interfaces) == 1
        assert ts.is_interface(interfaces[0])

    def test_complexity(self, ts, ts_tree):
        """Test if and && each add one."""
        area = ts.find_nodes(ts_tree, NodePattern(kind='method_definition', name='area'))[0]
        assert ts.get_complexity(area) == 3

    def test_string_literals_exclude_module_specifiers(self, ts, ts_tree):
        """Test import sources are not string literals."""
        literals = [
            ts.get_string_value(ts_tree, node)
            for node in ts.find_nodes(ts_tree, NodePattern(kind='string'))
            if ts.is_string_literal(node)
        ]
        assert literals == ['x']


class TestTypeScriptSummaries:
    """Tests for TypeScript summaries."""

    def test_extract_imports(self, ts, ts_tree):
        """Test default, named, namespace and type-only imports."""
        imports = ts.extract_imports(ts_tree)
        assert [i.module for i in imports] == ['fs', './config', 'path', './mod']
        assert [i.is_type_only for i in imports] == [False, True, False, False]
        assert [[s.local_name for s in i.specifiers] for i in imports] == [
            ['readFile'], ['Config'], ['path'], ['Default', 'b'],
        ]
        assert imports[2].specifiers[0].is_namespace
        assert imports[3].specifiers[0].is_default

    def test_extract_functions(self, ts, ts_tree):
        """Test declarations and named arrow functions, not methods."""
        functions = ts.extract_functions(ts_tree)
        assert [f.name for f in functions] == ['double', 'load']
        assert all(f.is_exported for f in functions)
        load = functions[1]
        assert load.return_type == 'Config'
        assert [(p.name, p.type, p.optional) for p in load.parameters] == [
            ('file', 'string', False), ('strict', 'boolean', True),
        ]
        # for loop
        assert load.complexity == 2

    def test_extract_classes(self, ts, ts_tree):
        """Test heritage, abstract flag, methods and fields."""
        classes = {c.name: c for c in ts.extract_classes(ts_tree)}
        assert set(classes) == {'Base', 'Circle'}
        base, circle = classes['Base'], classes['Circle']
        assert base.is_abstract and base.is_exported
        assert base.implements == ['Shape']
        assert circle.extends == ['Base']
        assert [m.name for m in circle.methods] == ['constructor', 'area']
        assert [(p.name, p.is_private, p.type) for p in base.properties] == [('name', True, 'string')]

    def test_extract_exports(self, ts, ts_tree):
        """Test export kinds."""
        exports = ts.extract_exports(ts_tree)
        assert [(e.name, e.kind) for e in exports] == [
            ('Shape', ExportKind.TYPE),
            ('Base', ExportKind.CLASS),
            ('Circle', ExportKind.CLASS),
            ('double', ExportKind.VARIABLE),
            ('load', ExportKind.FUNCTION),
        ]

    def test_identifier_usages_mark_type_positions(self, ts, ts_tree):
        """Test type references are flagged and imports are skipped."""
        usages = ts.extract_identifier_usages(ts_tree)
        config_uses = [u for u in usages if u.name == 'Config']
        assert config_uses and all(u.is_type_position for u in config_uses)
        read_uses = [u for u in usages if u.name == 'readFile']
        assert len(read_uses) == 1 and not read_uses[0].is_type_position
        assert not [u for u in usages if u.name in ('path', 'Default', 'b')]


class TestJavaScriptAdapter:
    """Tests for the JavaScript adapter."""

    @pytest.fixture
    def js(self):
        return JavaScriptAdapter()

    def test_supports_extensions(self, js):
        """Test JavaScript module extensions."""
        assert js.supports_file('a.js')
        assert js.supports_file('a.MJS')
        assert js.supports_file('component.jsx')
        assert not js.supports_file('a.ts')

    def test_functions_and_exports(self, js):
        """Test function expressions take their binding's name."""
        source = textwrap.dedent('''\
            const handlers = {
              onClick: function () { return 1; },
            };
            export const run = async () => {
              await handlers.onClick();
            };
            export default function main() {}
        ''')
        tree = js.parse('app.mjs', source)
        assert tree.errors == ()
        functions = js.extract_functions(tree)
        assert [f.name for f in functions] == ['onClick', 'run', 'main']
        assert functions[1].is_async
        exports = js.extract_exports(tree)
        assert [(e.name, e.is_default) for e in exports] == [('run', False), ('main', True)]

    def test_recovers_from_syntax_error(self, js):
        """Test a local error is a warning and the rest is still usable."""
        tree = js.parse('broken.js', 'function ok() { return 1; }\nlet a = ;\n')
        assert tree.errors
        assert all(error.severity == ParseSeverity.WARNING for error in tree.errors)
        assert not tree.has_fatal_errors
        assert 'ok' in [f.name for f in js.extract_functions(tree)]

    def test_unusable_file(self, js):
        """Test a file with nothing recognisable yields an error and an empty root."""
        tree = js.parse('garbage.js', '}}}')
        assert tree.has_fatal_errors
        assert js.get_children(tree.root) == []
        assert js.extract_functions(tree) == []

    def test_string_escapes_are_decoded(self, js):
        """Test literal values are the runtime strings, as in Python."""
        source = 'const a = "tab\\there";\nconst b = \'\\u0041\\x42\\u{43}\\\'\';\nconst c = "\\uD83D\\uDE00";\n'
        tree = js.parse('e.js', source)
        values = [
            js.get_string_value(tree, node)
            for node in js.find_nodes(tree, NodePattern(kind='string'))
            if js.is_string_literal(node)
        ]
        assert values == ['tab\there', "ABC'", '\U0001F600']

    def test_line_continuation_is_dropped(self, js):
        """Test a backslash-newline inside a literal contributes nothing."""
        tree = js.parse('c.js', 'const a = "one \\\ntwo";\n')
        node = js.find_nodes(tree, NodePattern(kind='string'))[0]
        assert js.get_string_value(tree, node) == 'one two'

    def test_comment_spans(self, js):
        """Test comments are collected for normalization."""
        source = 'let a = 1; // note\n/* block */\n'
        tree = js.parse('c.js', source)
        assert [source[start:end] for start, end in tree.comment_spans] == ['// note', '/* block */']
