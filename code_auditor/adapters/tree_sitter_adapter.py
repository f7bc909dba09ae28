"""
TypeScript and JavaScript adapters over tree-sitter grammars

Both languages share the tree-sitter JavaScript node vocabulary, so one base
class carries the kind tables and the summary extraction; subclasses only
choose which grammar parses which extension.

Recovery: ERROR nodes become opaque leaves with a warning-level ParseError,
MISSING tokens are reported as warnings, and a file whose root is itself an
error (nothing usable was recognised) yields an error-level ParseError and
an empty root.
"""

from __future__ import annotations

import logging
import re
from abc import abstractmethod
from typing import Any, Dict, Iterator, List, Optional, Tuple

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from .base import LanguageAdapter
from ..constants import NormalizationDefaults
from ..errors import InternalInvariantViolation, MalformedLiteralError
from ..matching.pattern_matcher import cyclomatic_complexity
from ..models.parse_tree import (
    ParseError,
    ParseSeverity,
    ParseTree,
    ParseTreeNode,
    SourceText,
    TreeSitterPayload,
)
from ..models.summaries import (
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

logger = logging.getLogger(__name__)

Span = Tuple[int, int]

_KEYWORDS = frozenset({
    'abstract', 'any', 'as', 'async', 'await', 'boolean', 'break', 'case', 'catch',
    'class', 'const', 'constructor', 'continue', 'debugger', 'declare', 'default',
    'delete', 'do', 'else', 'enum', 'export', 'extends', 'false', 'finally', 'for',
    'from', 'function', 'get', 'if', 'implements', 'import', 'in', 'instanceof',
    'interface', 'keyof', 'let', 'module', 'namespace', 'never', 'new', 'null',
    'number', 'of', 'private', 'protected', 'public', 'readonly', 'return', 'set',
    'static', 'string', 'super', 'switch', 'symbol', 'this', 'throw', 'true', 'try',
    'type', 'typeof', 'undefined', 'unknown', 'var', 'void', 'while', 'with', 'yield',
})

_NAME_LEAF_KINDS = frozenset({
    'identifier', 'type_identifier', 'property_identifier',
    'private_property_identifier', 'shorthand_property_identifier',
})
_REFERENCE_KINDS = frozenset({'identifier', 'type_identifier', 'shorthand_property_identifier'})
_TYPE_CONTEXT_KINDS = frozenset({
    'type_annotation', 'type_arguments', 'type_parameters', 'implements_clause',
    'extends_type_clause', 'interface_declaration', 'type_alias_declaration',
    'generic_type', 'nested_type_identifier', 'type_query',
})
_DECLARATOR_KINDS = frozenset({'variable_declarator', 'lexical_declaration', 'variable_declaration'})
_MODULE_SPECIFIER_PARENTS = frozenset({'import_statement', 'export_statement', 'import_require_clause'})
_SHORT_CIRCUIT_OPERATORS = frozenset({'&&', '||', '??'})

_EXPORT_KINDS = {
    'function_declaration': ExportKind.FUNCTION,
    'generator_function_declaration': ExportKind.FUNCTION,
    'class_declaration': ExportKind.CLASS,
    'abstract_class_declaration': ExportKind.CLASS,
    'interface_declaration': ExportKind.TYPE,
    'type_alias_declaration': ExportKind.TYPE,
    'enum_declaration': ExportKind.TYPE,
}


def _span(source: SourceText, node: Node) -> Span:
    start = source.offset_from_byte_column(node.start_point[0] + 1, node.start_point[1])
    end = source.offset_from_byte_column(node.end_point[0] + 1, node.end_point[1])
    return (start, end)


_ESCAPE = re.compile(r'\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])')
_SIMPLE_ESCAPES = {'n': '\n', 't': '\t', 'r': '\r', 'b': '\b', 'f': '\f', 'v': '\v', '0': '\0'}
_LINE_CONTINUATIONS = frozenset({'\n', '\r\n', '\r', '\u2028', '\u2029'})


def _decode_escape(match: re.Match) -> str:
    escape = match.group(1)
    if escape[0] == 'u' and len(escape) > 1:
        digits = escape[2:-1] if escape[1] == '{' else escape[1:]
        code_point = int(digits, 16)
        return chr(code_point) if code_point <= 0x10FFFF else match.group(0)
    if escape[0] == 'x' and len(escape) == 3:
        return chr(int(escape[1:], 16))
    if escape in _LINE_CONTINUATIONS:
        return ''
    return _SIMPLE_ESCAPES.get(escape, escape)


def _decode_escapes(body: str) -> str:
    """Runtime value of a string or template literal body."""
    if '\\' not in body:
        return body
    decoded = _ESCAPE.sub(_decode_escape, body)
    # \uD83D\uDE00 style pairs decode to two surrogates; join them
    return decoded.encode('utf-16', 'surrogatepass').decode('utf-16', 'replace')


def _text(source: SourceText, node: Optional[Node]) -> str:
    if node is None:
        return ''
    return source.slice(*_span(source, node))


def _annotation_text(source: SourceText, node: Optional[Node]) -> Optional[str]:
    """Type annotation text without the leading colon."""
    if node is None:
        return None
    return _text(source, node).lstrip(':').strip() or None


def _has_token(node: Node, token: str) -> bool:
    return any(child.type == token for child in node.children)


class TreeSitterAdapter(LanguageAdapter):
    """Shared behaviour for grammars in the tree-sitter JavaScript family."""

    keywords = _KEYWORDS

    function_kinds = frozenset({
        'function_declaration', 'generator_function_declaration', 'function_expression',
        'function', 'generator_function', 'arrow_function', 'method_definition',
    })
    method_kinds = frozenset({'method_definition'})
    class_kinds = frozenset({'class_declaration', 'class', 'abstract_class_declaration'})
    interface_kinds = frozenset({'interface_declaration'})
    import_kinds = frozenset({'import_statement'})
    variable_kinds = frozenset({'lexical_declaration', 'variable_declaration'})
    conditional_kinds = frozenset({'if_statement', 'ternary_expression'})
    loop_kinds = frozenset({'for_statement', 'for_in_statement', 'while_statement', 'do_statement'})
    switch_case_kinds = frozenset({'switch_case'})
    block_kinds = frozenset({
        'if_statement', 'else_clause', 'for_statement', 'for_in_statement', 'while_statement',
        'do_statement', 'try_statement', 'catch_clause', 'finally_clause',
    })

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    @abstractmethod
    def _dialect(self, file_path: str) -> str:
        """Grammar key used to parse ``file_path``."""

    @abstractmethod
    def _load_language(self, dialect: str) -> Any:
        """Language capsule for a grammar key."""

    def _parser_for(self, file_path: str) -> Parser:
        dialect = self._dialect(file_path)
        parser = self._parsers.get(dialect)
        if parser is None:
            parser = Parser(Language(self._load_language(dialect)))
            self._parsers[dialect] = parser
            logger.debug("Loaded tree-sitter grammar %s for %s adapter", dialect, self.name)
        return parser

    def parse(self, file_path: str, content: str) -> ParseTree:
        source = SourceText(content)
        ts_root = self._parser_for(file_path).parse(content.encode('utf-8')).root_node
        errors, comments = self._scan(ts_root, source)

        named = ts_root.named_children
        unusable = ts_root.type == 'ERROR' or (
            ts_root.has_error and all(child.type == 'ERROR' for child in named)
        )
        if unusable:
            errors = [ParseError(
                message="Unrecoverable syntax error: no statement could be recognised",
                location=source.location(*_span(source, ts_root)),
                severity=ParseSeverity.ERROR,
            )]
        root = self._wrap(ts_root, source, opaque=unusable)
        return ParseTree(
            root=root,
            language=self.name,
            file_path=file_path,
            source=source,
            errors=tuple(errors),
            comment_spans=tuple(comments),
        )

    def _scan(self, ts_root: Node, source: SourceText) -> Tuple[List[ParseError], List[Span]]:
        """Collect recovery diagnostics and comment spans in one document-ordered walk."""
        errors: List[ParseError] = []
        comments: List[Span] = []
        stack = [ts_root]
        while stack:
            node = stack.pop()
            if node.type == 'comment':
                comments.append(_span(source, node))
                continue
            if node.type == 'ERROR' and node is not ts_root:
                location = source.location(*_span(source, node))
                errors.append(ParseError(
                    message="Unsupported or malformed syntax",
                    location=location,
                    severity=ParseSeverity.WARNING,
                ))
                continue
            if node.is_missing:
                location = source.location(*_span(source, node))
                errors.append(ParseError(
                    message=f"Missing {node.type!r}",
                    location=location,
                    severity=ParseSeverity.WARNING,
                ))
                continue
            stack.extend(reversed(node.children))
        return errors, comments

    # Navigation

    def _wrap(self, ts_node: Node, source: SourceText, opaque: Optional[bool] = None) -> ParseTreeNode:
        span = _span(source, ts_node)
        if opaque is None:
            opaque = ts_node.type == 'ERROR'
        return ParseTreeNode(
            kind=ts_node.type,
            span=span,
            location=source.location(*span),
            payload=TreeSitterPayload(node=ts_node, source=source, language=self.name, opaque=opaque),
        )

    def _unwrap(self, node: ParseTreeNode) -> Tuple[Node, SourceText]:
        payload = node.payload
        if not isinstance(payload, TreeSitterPayload) or payload.language != self.name:
            raise InternalInvariantViolation(f"{self.name} adapter received a {payload.language} node")
        return payload.node, payload.source

    def get_parent(self, node: ParseTreeNode) -> Optional[ParseTreeNode]:
        ts_node, source = self._unwrap(node)
        parent = ts_node.parent
        return self._wrap(parent, source) if parent is not None else None

    def get_children(self, node: ParseTreeNode) -> List[ParseTreeNode]:
        ts_node, source = self._unwrap(node)
        if node.payload.opaque:
            return []
        return [self._wrap(child, source) for child in ts_node.named_children]

    def get_node_name(self, node: ParseTreeNode) -> Optional[str]:
        ts_node, source = self._unwrap(node)
        if ts_node.type in _NAME_LEAF_KINDS:
            return _text(source, ts_node)
        name = ts_node.child_by_field_name('name')
        return _text(source, name) if name is not None else None

    def short_circuit_count(self, node: ParseTreeNode) -> int:
        if node.kind != 'binary_expression':
            return 0
        ts_node, source = self._unwrap(node)
        operator = ts_node.child_by_field_name('operator')
        return 1 if operator is not None and operator.type in _SHORT_CIRCUIT_OPERATORS else 0

    def body_span(self, node: ParseTreeNode) -> Optional[Span]:
        ts_node, source = self._unwrap(node)
        if ts_node.type == 'if_statement':
            body = ts_node.child_by_field_name('consequence')
        elif ts_node.type == 'else_clause':
            body = ts_node.named_children[0] if ts_node.named_children else None
        else:
            body = ts_node.child_by_field_name('body')
        if body is None:
            return None
        if ts_node.type in self.block_kinds and body.type != 'statement_block':
            return None
        return _span(source, body)

    # String literals

    def is_string_literal(self, node: ParseTreeNode) -> bool:
        if node.kind not in ('string', 'template_string'):
            return False
        ts_node, _ = self._unwrap(node)
        if node.kind == 'template_string' and _has_token(ts_node, 'template_substitution'):
            return False
        parent = ts_node.parent
        return parent is None or (
            parent.type not in _MODULE_SPECIFIER_PARENTS and parent.type != 'literal_type'
        )

    def get_string_value(self, tree: ParseTree, node: ParseTreeNode) -> str:
        ts_node, source = self._unwrap(node)
        text = _text(source, ts_node)
        malformed = (
            ts_node.has_error
            or any(child.is_missing for child in ts_node.children)
            or len(text) < 2
            or text[-1] != text[0]
        )
        if malformed:
            line = node.location.start.line
            raise MalformedLiteralError(f"Unterminated string literal at line {line}", line)
        return _decode_escapes(text[1:-1])

    # Summaries

    def _walk(self, tree: ParseTree) -> Iterator[Node]:
        """Pre-order over named nodes, skipping error subtrees."""
        if tree.root.payload.opaque:
            return
        ts_root, _ = self._unwrap(tree.root)
        stack = [ts_root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed([child for child in node.named_children if child.type != 'ERROR']))

    def extract_functions(self, tree: ParseTree) -> List[FunctionInfo]:
        source = tree.source
        return [
            self._function_info(node, source)
            for node in self._walk(tree)
            if node.type in self.function_kinds and node.type not in self.method_kinds
        ]

    def _function_info(self, node: Node, source: SourceText, class_name: Optional[str] = None) -> FunctionInfo:
        wrapped = self._wrap(node, source)
        return FunctionInfo(
            name=_function_name(node, source),
            location=wrapped.location,
            parameters=_parameters(node, source),
            return_type=_annotation_text(source, node.child_by_field_name('return_type')),
            is_async=_has_token(node, 'async'),
            is_exported=_is_exported(node),
            is_method=class_name is not None,
            class_name=class_name,
            complexity=cyclomatic_complexity(self, wrapped),
        )

    def extract_classes(self, tree: ParseTree) -> List[ClassInfo]:
        source = tree.source
        classes = []
        for node in self._walk(tree):
            if node.type not in self.class_kinds:
                continue
            name = node.child_by_field_name('name')
            class_name = _text(source, name) if name is not None else NormalizationDefaults.ANONYMOUS_FUNCTION
            methods: List[FunctionInfo] = []
            properties: List[PropertyInfo] = []
            body = node.child_by_field_name('body')
            for member in (body.named_children if body is not None else []):
                if member.type == 'method_definition':
                    methods.append(self._function_info(member, source, class_name=class_name))
                elif member.type in ('public_field_definition', 'field_definition'):
                    properties.append(_property_info(member, source))

            extends: List[str] = []
            implements: List[str] = []
            for child in node.named_children:
                if child.type != 'class_heritage':
                    continue
                for clause in child.named_children:
                    if clause.type == 'extends_clause':
                        extends.extend(_text(source, c) for c in clause.named_children if c.type != 'type_arguments')
                    elif clause.type == 'implements_clause':
                        implements.extend(_text(source, c) for c in clause.named_children)
                    else:
                        extends.append(_text(source, clause))

            classes.append(ClassInfo(
                name=class_name,
                location=source.location(*_span(source, node)),
                methods=methods,
                properties=properties,
                extends=extends,
                implements=implements,
                is_exported=_is_exported(node),
                is_abstract=node.type == 'abstract_class_declaration',
            ))
        return classes

    def extract_imports(self, tree: ParseTree) -> List[ImportInfo]:
        source = tree.source
        imports = []
        for node in self._walk(tree):
            if node.type != 'import_statement':
                continue
            module_node = node.child_by_field_name('source')
            specifiers: List[ImportSpecifier] = []
            for child in node.named_children:
                if child.type == 'import_clause':
                    specifiers.extend(_import_clause_specifiers(child, source))
                elif child.type == 'import_require_clause':
                    binding = next((c for c in child.named_children if c.type == 'identifier'), None)
                    if binding is not None:
                        specifiers.append(ImportSpecifier(name=_text(source, binding), is_default=True))
                    if module_node is None:
                        module_node = child.child_by_field_name('source') or next(
                            (c for c in child.named_children if c.type == 'string'), None)
            imports.append(ImportInfo(
                module=_text(source, module_node)[1:-1] if module_node is not None else '',
                specifiers=specifiers,
                location=source.location(*_span(source, node)),
                is_type_only=_has_token(node, 'type'),
            ))
        return imports

    def extract_exports(self, tree: ParseTree) -> List[ExportInfo]:
        source = tree.source
        exports = []
        for node in self._walk(tree):
            if node.type != 'export_statement':
                continue
            location = source.location(*_span(source, node))
            is_default = _has_token(node, 'default')
            source_node = node.child_by_field_name('source')
            reexported_from = _text(source, source_node)[1:-1] if source_node is not None else None
            declaration = node.child_by_field_name('declaration')
            export_clause = next((c for c in node.named_children if c.type == 'export_clause'), None)

            if declaration is not None:
                if declaration.type in _DECLARATOR_KINDS:
                    for declarator in declaration.named_children:
                        if declarator.type == 'variable_declarator':
                            exports.append(ExportInfo(
                                name=_text(source, declarator.child_by_field_name('name')),
                                kind=ExportKind.VARIABLE,
                                location=location,
                                is_default=is_default,
                            ))
                    continue
                name = declaration.child_by_field_name('name')
                exports.append(ExportInfo(
                    name=_text(source, name) if name is not None else 'default',
                    kind=_EXPORT_KINDS.get(declaration.type, ExportKind.VARIABLE),
                    location=location,
                    is_default=is_default,
                ))
            elif export_clause is not None:
                for specifier in export_clause.named_children:
                    if specifier.type != 'export_specifier':
                        continue
                    alias = specifier.child_by_field_name('alias')
                    exports.append(ExportInfo(
                        name=_text(source, alias or specifier.child_by_field_name('name')),
                        location=location,
                        source=reexported_from,
                    ))
            elif is_default:
                # `export default function main() {}` may parse as a named expression
                value = node.child_by_field_name('value')
                name = value.child_by_field_name('name') if value is not None else None
                if value is not None and value.type in self.function_kinds:
                    kind = ExportKind.FUNCTION
                elif value is not None and value.type in self.class_kinds:
                    kind = ExportKind.CLASS
                else:
                    kind = ExportKind.VARIABLE
                exports.append(ExportInfo(
                    name=_text(source, name) if name is not None else 'default',
                    kind=kind,
                    location=location,
                    is_default=True,
                ))
            elif reexported_from is not None:
                exports.append(ExportInfo(name='*', location=location, source=reexported_from))
        return exports

    def extract_identifier_usages(self, tree: ParseTree) -> List[IdentifierUsage]:
        if tree.root.payload.opaque:
            return []
        source = tree.source
        ts_root, _ = self._unwrap(tree.root)
        usages = []
        stack: List[Tuple[Node, bool]] = [(ts_root, False)]
        while stack:
            node, in_type = stack.pop()
            if node.type in ('import_statement', 'ERROR', 'comment'):
                continue
            in_type = in_type or node.type in _TYPE_CONTEXT_KINDS
            if node.type in _REFERENCE_KINDS:
                usages.append(IdentifierUsage(
                    name=_text(source, node),
                    location=source.location(*_span(source, node)),
                    is_type_position=in_type or node.type == 'type_identifier',
                ))
            stack.extend((child, in_type) for child in reversed(node.named_children))
        return usages


class TypeScriptAdapter(TreeSitterAdapter):
    """TypeScript, with the TSX grammar for .tsx files."""

    name = 'typescript'
    extensions = ('.ts', '.tsx', '.mts', '.cts')

    def _dialect(self, file_path: str) -> str:
        return 'tsx' if file_path.lower().endswith('.tsx') else 'typescript'

    def _load_language(self, dialect: str) -> Any:
        if dialect == 'tsx':
            return tree_sitter_typescript.language_tsx()
        return tree_sitter_typescript.language_typescript()


class JavaScriptAdapter(TreeSitterAdapter):
    """JavaScript including JSX."""

    name = 'javascript'
    extensions = ('.js', '.jsx', '.mjs', '.cjs')

    def _dialect(self, file_path: str) -> str:
        return 'javascript'

    def _load_language(self, dialect: str) -> Any:
        return tree_sitter_javascript.language()


def _function_name(node: Node, source: SourceText) -> str:
    """Own name, or the name it is bound to for anonymous function expressions."""
    name = node.child_by_field_name('name')
    if name is not None:
        return _text(source, name)
    parent = node.parent
    if parent is not None:
        if parent.type in ('variable_declarator', 'public_field_definition', 'field_definition'):
            bound = parent.child_by_field_name('name') or parent.child_by_field_name('property')
            if bound is not None:
                return _text(source, bound)
        if parent.type == 'pair':
            return _text(source, parent.child_by_field_name('key'))
        if parent.type == 'assignment_expression':
            return _text(source, parent.child_by_field_name('left'))
    return NormalizationDefaults.ANONYMOUS_FUNCTION


def _is_exported(node: Node) -> bool:
    parent = node.parent
    while parent is not None and parent.type in _DECLARATOR_KINDS:
        parent = parent.parent
    return parent is not None and parent.type == 'export_statement'


def _parameters(node: Node, source: SourceText) -> List[ParameterInfo]:
    single = node.child_by_field_name('parameter')
    if single is not None:
        return [ParameterInfo(name=_text(source, single))]
    params_node = node.child_by_field_name('parameters')
    if params_node is None:
        return []

    params = []
    for param in params_node.named_children:
        if param.type in ('required_parameter', 'optional_parameter'):
            value = param.child_by_field_name('value')
            params.append(ParameterInfo(
                name=_text(source, param.child_by_field_name('pattern')),
                type=_annotation_text(source, param.child_by_field_name('type')),
                optional=param.type == 'optional_parameter' or value is not None,
                default_value=_text(source, value) if value is not None else None,
            ))
        elif param.type == 'assignment_pattern':
            params.append(ParameterInfo(
                name=_text(source, param.child_by_field_name('left')),
                optional=True,
                default_value=_text(source, param.child_by_field_name('right')),
            ))
        elif param.type == 'rest_pattern':
            params.append(ParameterInfo(name=_text(source, param), optional=True))
        elif param.type != 'comment':
            params.append(ParameterInfo(name=_text(source, param)))
    return params


def _property_info(member: Node, source: SourceText) -> PropertyInfo:
    name_node = member.child_by_field_name('name') or member.child_by_field_name('property')
    name = _text(source, name_node)
    accessibility = next((c for c in member.children if c.type == 'accessibility_modifier'), None)
    return PropertyInfo(
        name=name,
        location=source.location(*_span(source, member)),
        type=_annotation_text(source, member.child_by_field_name('type')),
        is_static=_has_token(member, 'static'),
        is_private=name.startswith('#') or _text(source, accessibility) == 'private',
        is_readonly=_has_token(member, 'readonly'),
    )


def _import_clause_specifiers(clause: Node, source: SourceText) -> List[ImportSpecifier]:
    specifiers = []
    for part in clause.named_children:
        if part.type == 'identifier':
            specifiers.append(ImportSpecifier(name=_text(source, part), is_default=True))
        elif part.type == 'namespace_import':
            binding = next((c for c in part.named_children if c.type == 'identifier'), None)
            specifiers.append(ImportSpecifier(name='*', alias=_text(source, binding), is_namespace=True))
        elif part.type == 'named_imports':
            for specifier in part.named_children:
                if specifier.type != 'import_specifier':
                    continue
                alias = specifier.child_by_field_name('alias')
                specifiers.append(ImportSpecifier(
                    name=_text(source, specifier.child_by_field_name('name')),
                    alias=_text(source, alias) if alias is not None else None,
                ))
    return specifiers
