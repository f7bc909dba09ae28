"""
Python language adapter

Parses with the standard ``ast`` module. When a file does not parse as a
whole, its top-level statements are recovered one at a time with
``tokenize``: a statement that still fails becomes a single opaque
``UnsupportedStatement`` node with a warning. A tokenizer failure is an error:
statements finished before it are kept and the rest of the file becomes one
opaque node. With no statement before it the tree is empty.
"""

from __future__ import annotations

import ast
import io
import keyword
import logging
import tokenize
from typing import Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

from .base import LanguageAdapter
from ..errors import InternalInvariantViolation
from ..matching.pattern_matcher import cyclomatic_complexity
from ..models.parse_tree import (
    ParseError,
    ParseSeverity,
    ParseTree,
    ParseTreeNode,
    PythonPayload,
    SourceLocation,
    SourceText,
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

# Shared singleton nodes without positions (Load, Add, And, ...)
_UNPOSITIONED = (ast.expr_context, ast.boolop, ast.operator, ast.unaryop, ast.cmpop)

_FUNCTION_TYPES = (ast.FunctionDef, ast.AsyncFunctionDef)
_DEFINITION_TYPES = (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)

# Keywords that continue the previous top-level compound statement
_CONTINUATION_KEYWORDS = frozenset({'else', 'elif', 'except', 'finally'})

_TYPE_FIELDS = frozenset({'annotation', 'returns'})
_ABSTRACT_BASES = frozenset({'ABC', 'abc.ABC'})
_PROTOCOL_BASES = frozenset({'Protocol', 'typing.Protocol', 'typing_extensions.Protocol'})


class UnsupportedStatement(ast.stmt):
    """Opaque placeholder for a top-level statement that failed to parse."""

    _fields = ()


class PythonTreeIndex:
    """Parent links, source-ordered children and character spans for one module.

    Built once per parse with an explicit post-order walk. Nodes without a
    position of their own (``arguments``, ``comprehension``, ``withitem``)
    take the union of their children's spans; nodes that end up with no
    span at all are not exposed.
    """

    def __init__(self, module: ast.Module, source: SourceText) -> None:
        self.module = module
        self.source = source
        self._parents: Dict[int, ast.AST] = {}
        self._children: Dict[int, List[ast.AST]] = {}
        self._spans: Dict[int, Span] = {}
        self._build()

    def _build(self) -> None:
        stack: List[Tuple[ast.AST, bool]] = [(self.module, False)]
        while stack:
            node, expanded = stack.pop()
            if not expanded:
                stack.append((node, True))
                for child in ast.iter_child_nodes(node):
                    if not isinstance(child, _UNPOSITIONED):
                        stack.append((child, False))
                continue

            children = [child for child in ast.iter_child_nodes(node) if id(child) in self._spans]
            children.sort(key=lambda child: self._spans[id(child)])
            span = self._own_span(node)
            for child in children:
                self._parents[id(child)] = node
                child_span = self._spans[id(child)]
                if span is None:
                    span = child_span
                else:
                    span = (min(span[0], child_span[0]), max(span[1], child_span[1]))
            self._children[id(node)] = children
            if span is not None:
                self._spans[id(node)] = span

    def _own_span(self, node: ast.AST) -> Optional[Span]:
        if isinstance(node, ast.Module):
            return (0, len(self.source))
        lineno = getattr(node, 'lineno', None)
        end_lineno = getattr(node, 'end_lineno', None)
        if lineno is None or end_lineno is None:
            return None
        start = self.source.offset_from_byte_column(lineno, node.col_offset)
        end = self.source.offset_from_byte_column(end_lineno, node.end_col_offset)
        decorators = getattr(node, 'decorator_list', None)
        if decorators:
            # Decorator expressions start after the '@'; take the line's indentation instead
            first = decorators[0].lineno
            line = self.source.line_text(first)
            start = min(start, self.source.offset(first, len(line) - len(line.lstrip())))
        return (start, end)

    def span_of(self, node: ast.AST) -> Optional[Span]:
        return self._spans.get(id(node))

    def parent_of(self, node: ast.AST) -> Optional[ast.AST]:
        return self._parents.get(id(node))

    def children_of(self, node: ast.AST) -> List[ast.AST]:
        return self._children.get(id(node), [])

    def location_of(self, node: ast.AST) -> SourceLocation:
        span = self.span_of(node)
        if span is None:
            raise InternalInvariantViolation(f"{type(node).__name__} has no source position")
        return self.source.location(*span)

    def wrap(self, node: ast.AST) -> ParseTreeNode:
        span = self.span_of(node)
        if span is None:
            raise InternalInvariantViolation(f"{type(node).__name__} has no source position")
        return ParseTreeNode(
            kind=type(node).__name__,
            span=span,
            location=self.source.location(*span),
            payload=PythonPayload(node=node, index=self, opaque=isinstance(node, UnsupportedStatement)),
        )

    def walk(self) -> Iterator[ast.AST]:
        """Pre-order over exposed nodes, in document order."""
        stack = [self.module]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(self.children_of(node)))


class PythonAdapter(LanguageAdapter):
    """Adapter for Python source over the standard library parser."""

    name = 'python'
    extensions = ('.py', '.pyi')
    keywords = frozenset(keyword.kwlist)

    function_kinds = frozenset({'FunctionDef', 'AsyncFunctionDef', 'Lambda'})
    method_kinds = frozenset({'FunctionDef', 'AsyncFunctionDef'})
    class_kinds = frozenset({'ClassDef'})
    interface_kinds = frozenset({'ClassDef'})
    import_kinds = frozenset({'Import', 'ImportFrom'})
    variable_kinds = frozenset({'Assign', 'AnnAssign', 'NamedExpr'})
    conditional_kinds = frozenset({'If', 'IfExp'})
    loop_kinds = frozenset({'For', 'AsyncFor', 'While', 'comprehension'})
    switch_case_kinds = frozenset({'match_case'})
    block_kinds = frozenset({
        'If', 'For', 'AsyncFor', 'While', 'With', 'AsyncWith', 'Try', 'TryStar', 'ExceptHandler',
    })

    def parse(self, file_path: str, content: str) -> ParseTree:
        source = SourceText(content)
        errors: List[ParseError] = []
        try:
            module = ast.parse(content, filename=file_path)
        except (SyntaxError, ValueError) as exc:
            logger.debug("Full parse of %s failed (%s); recovering per statement", file_path, exc)
            module, errors = self._recover(source, exc)

        index = PythonTreeIndex(module, source)
        return ParseTree(
            root=index.wrap(module),
            language=self.name,
            file_path=file_path,
            source=source,
            errors=tuple(errors),
            comment_spans=_comment_spans(source),
        )

    def _recover(self, source: SourceText, exc: Exception) -> Tuple[ast.Module, List[ParseError]]:
        chunks, failure = _top_level_chunks(source.content)

        body: List[ast.stmt] = []
        errors: List[ParseError] = []
        for first, last in chunks:
            text = '\n'.join(source.line_text(line) for line in range(first, last + 1))
            try:
                parsed = ast.parse(text)
            except (SyntaxError, ValueError) as chunk_exc:
                body.append(_unsupported_statement(source, first, last))
                errors.append(ParseError(
                    message=f"Unsupported syntax: {getattr(chunk_exc, 'msg', None) or chunk_exc}",
                    location=source.location(source.line_start(first),
                                             source.line_start(last) + len(source.line_text(last))),
                    severity=ParseSeverity.WARNING,
                ))
                continue
            ast.increment_lineno(parsed, first - 1)
            body.extend(parsed.body)

        if failure is not None:
            if body:
                # Nothing after the failure can be split into statements
                last = source.line_count
                while last > failure.first_line and not source.line_text(last).strip():
                    last -= 1
                body.append(_unsupported_statement(source, failure.first_line, last))
            errors.append(ParseError(
                message=f"Tokenization failed: {failure.message}",
                location=_line_location(source, failure.line or _error_line(exc) or failure.first_line),
                severity=ParseSeverity.ERROR,
            ))
        return ast.Module(body=body, type_ignores=[]), errors

    # Navigation

    def _unwrap(self, node: ParseTreeNode) -> Tuple[ast.AST, PythonTreeIndex]:
        payload = node.payload
        if not isinstance(payload, PythonPayload):
            raise InternalInvariantViolation(f"python adapter received a {payload.language} node")
        return payload.node, payload.index

    def _index(self, tree: ParseTree) -> PythonTreeIndex:
        return self._unwrap(tree.root)[1]

    def get_parent(self, node: ParseTreeNode) -> Optional[ParseTreeNode]:
        raw, index = self._unwrap(node)
        parent = index.parent_of(raw)
        return index.wrap(parent) if parent is not None else None

    def get_children(self, node: ParseTreeNode) -> List[ParseTreeNode]:
        raw, index = self._unwrap(node)
        if node.payload.opaque:
            return []
        return [index.wrap(child) for child in index.children_of(raw)]

    def get_node_name(self, node: ParseTreeNode) -> Optional[str]:
        raw, _ = self._unwrap(node)
        if isinstance(raw, _DEFINITION_TYPES):
            return raw.name
        if isinstance(raw, ast.Name):
            return raw.id
        if isinstance(raw, ast.arg):
            return raw.arg
        if isinstance(raw, ast.alias):
            return raw.asname or raw.name
        if isinstance(raw, ast.Attribute):
            return raw.attr
        if isinstance(raw, ast.keyword):
            return raw.arg
        if isinstance(raw, ast.ImportFrom):
            return raw.module
        return None

    # Kind predicates needing context

    def is_method(self, node: ParseTreeNode) -> bool:
        if node.kind not in self.method_kinds:
            return False
        raw, index = self._unwrap(node)
        return isinstance(index.parent_of(raw), ast.ClassDef)

    def is_interface(self, node: ParseTreeNode) -> bool:
        if node.kind not in self.interface_kinds:
            return False
        raw, _ = self._unwrap(node)
        return any(_base_name(base) in _PROTOCOL_BASES for base in raw.bases)

    def short_circuit_count(self, node: ParseTreeNode) -> int:
        if node.kind != 'BoolOp':
            return 0
        raw, _ = self._unwrap(node)
        return len(raw.values) - 1

    def body_span(self, node: ParseTreeNode) -> Optional[Span]:
        raw, index = self._unwrap(node)
        if isinstance(raw, ast.Lambda):
            return index.span_of(raw.body)
        body = getattr(raw, 'body', None)
        if not isinstance(body, list) or not body:
            return None
        first, last = index.span_of(body[0]), index.span_of(body[-1])
        if first is None or last is None:
            return None
        return (first[0], last[1])

    # String literals

    def is_string_literal(self, node: ParseTreeNode) -> bool:
        if node.kind != 'Constant':
            return False
        raw, index = self._unwrap(node)
        if not isinstance(raw.value, str):
            return False
        parent = index.parent_of(raw)
        # Docstrings and bare string statements, f-string parts, annotations
        if isinstance(parent, (ast.Expr, ast.JoinedStr, ast.arg)):
            return False
        if isinstance(parent, _FUNCTION_TYPES) and parent.returns is raw:
            return False
        if isinstance(parent, ast.AnnAssign) and parent.annotation is raw:
            return False
        return True

    def get_string_value(self, tree: ParseTree, node: ParseTreeNode) -> str:
        raw, _ = self._unwrap(node)
        return raw.value

    # Summaries

    def extract_functions(self, tree: ParseTree) -> List[FunctionInfo]:
        index = self._index(tree)
        exported = _exported_names(index.module)
        functions = []
        for raw in index.walk():
            if isinstance(raw, _FUNCTION_TYPES) and not isinstance(index.parent_of(raw), ast.ClassDef):
                is_top_level = index.parent_of(raw) is index.module
                functions.append(self._function_info(
                    raw, index, is_exported=is_top_level and _is_exported(raw.name, exported)
                ))
        return functions

    def _function_info(
        self,
        raw: ast.AST,
        index: PythonTreeIndex,
        class_name: Optional[str] = None,
        is_exported: bool = False,
    ) -> FunctionInfo:
        return FunctionInfo(
            name=raw.name,
            location=index.location_of(raw),
            parameters=_parameters(raw.args),
            return_type=ast.unparse(raw.returns) if raw.returns is not None else None,
            is_async=isinstance(raw, ast.AsyncFunctionDef),
            is_exported=is_exported,
            is_method=class_name is not None,
            class_name=class_name,
            complexity=cyclomatic_complexity(self, index.wrap(raw)),
        )

    def extract_classes(self, tree: ParseTree) -> List[ClassInfo]:
        index = self._index(tree)
        exported = _exported_names(index.module)
        classes = []
        for raw in index.walk():
            if not isinstance(raw, ast.ClassDef):
                continue
            methods = [
                self._function_info(item, index, class_name=raw.name)
                for item in raw.body if isinstance(item, _FUNCTION_TYPES)
            ]
            bases = [_base_name(base) for base in raw.bases]
            is_abstract = (
                any(base in _ABSTRACT_BASES for base in bases)
                or any(kw.arg == 'metaclass' and _base_name(kw.value).endswith('ABCMeta')
                       for kw in raw.keywords)
                or any(_has_decorator(item, 'abstractmethod')
                       for item in raw.body if isinstance(item, _FUNCTION_TYPES))
            )
            classes.append(ClassInfo(
                name=raw.name,
                location=index.location_of(raw),
                methods=methods,
                properties=_class_properties(raw, index),
                extends=[base for base in bases if base not in _PROTOCOL_BASES and base != 'object'],
                implements=[base for base in bases if base in _PROTOCOL_BASES],
                is_exported=index.parent_of(raw) is index.module and _is_exported(raw.name, exported),
                is_abstract=is_abstract,
            ))
        return classes

    def extract_imports(self, tree: ParseTree) -> List[ImportInfo]:
        index = self._index(tree)
        imports = []
        stack: List[Tuple[ast.AST, bool]] = [(index.module, False)]
        while stack:
            raw, type_only = stack.pop()
            if isinstance(raw, ast.Import):
                for alias in raw.names:
                    imports.append(ImportInfo(
                        module=alias.name,
                        specifiers=[ImportSpecifier(name=alias.name, alias=alias.asname, is_namespace=True)],
                        location=index.location_of(raw),
                        is_type_only=type_only,
                    ))
                continue
            if isinstance(raw, ast.ImportFrom):
                imports.append(ImportInfo(
                    module='.' * raw.level + (raw.module or ''),
                    specifiers=[ImportSpecifier(name=alias.name, alias=alias.asname) for alias in raw.names],
                    location=index.location_of(raw),
                    is_type_only=type_only,
                ))
                continue
            guarded = isinstance(raw, ast.If) and _is_type_checking_guard(raw.test)
            for child in reversed(index.children_of(raw)):
                in_guard = guarded and any(child is stmt for stmt in raw.body)
                stack.append((child, type_only or in_guard))
        return imports

    def extract_exports(self, tree: ParseTree) -> List[ExportInfo]:
        index = self._index(tree)
        module = index.module
        definitions: Dict[str, Tuple[ExportKind, ast.AST]] = {}
        for stmt in module.body:
            if isinstance(stmt, _FUNCTION_TYPES):
                definitions.setdefault(stmt.name, (ExportKind.FUNCTION, stmt))
            elif isinstance(stmt, ast.ClassDef):
                kind = ExportKind.TYPE if any(_base_name(b) in _PROTOCOL_BASES for b in stmt.bases) else ExportKind.CLASS
                definitions.setdefault(stmt.name, (kind, stmt))
            elif isinstance(stmt, (ast.Assign, ast.AnnAssign)):
                targets = stmt.targets if isinstance(stmt, ast.Assign) else [stmt.target]
                for target in targets:
                    if isinstance(target, ast.Name):
                        definitions.setdefault(target.id, (ExportKind.VARIABLE, stmt))

        declared = _declared_all(module)
        exports = []
        if declared is not None:
            names, all_node = declared
            for name in names:
                kind, node = definitions.get(name, (ExportKind.VARIABLE, all_node))
                exports.append(ExportInfo(name=name, kind=kind, location=index.location_of(node)))
            return exports

        for name, (kind, node) in definitions.items():
            if not name.startswith('_'):
                exports.append(ExportInfo(name=name, kind=kind, location=index.location_of(node)))
        for stmt in module.body:
            if isinstance(stmt, ast.ImportFrom):
                for alias in stmt.names:
                    # `from x import y as y` is the explicit re-export idiom
                    if alias.asname is not None and alias.asname == alias.name:
                        exports.append(ExportInfo(
                            name=alias.name,
                            location=index.location_of(stmt),
                            source='.' * stmt.level + (stmt.module or ''),
                        ))
        exports.sort(key=lambda export: (export.location.start.line, export.location.start.column))
        return exports

    def extract_identifier_usages(self, tree: ParseTree) -> List[IdentifierUsage]:
        index = self._index(tree)
        usages: List[IdentifierUsage] = []
        stack: List[Tuple[ast.AST, bool]] = [(index.module, False)]
        while stack:
            raw, in_type = stack.pop()
            if isinstance(raw, (ast.Import, ast.ImportFrom)):
                continue
            if isinstance(raw, ast.Name) and isinstance(raw.ctx, (ast.Load, ast.Del)):
                usages.append(IdentifierUsage(
                    name=raw.id, location=index.location_of(raw), is_type_position=in_type,
                ))
            elif in_type and isinstance(raw, ast.Constant) and isinstance(raw.value, str):
                usages.extend(_string_annotation_usages(raw, index))
            usages.extend(_dunder_all_usages(raw, index))

            for field_name, value in ast.iter_fields(raw):
                child_in_type = in_type or field_name in _TYPE_FIELDS or (
                    type(raw).__name__ == 'TypeAlias' and field_name == 'value'
                )
                values = value if isinstance(value, list) else [value]
                for child in reversed(values):
                    if isinstance(child, ast.AST) and index.span_of(child) is not None:
                        stack.append((child, child_in_type))

        usages.sort(key=lambda usage: (usage.location.start.line, usage.location.start.column))
        return usages


class _TokenFailure(NamedTuple):
    first_line: int
    line: Optional[int]
    message: str


def _top_level_chunks(content: str) -> Tuple[List[Tuple[int, int]], Optional[_TokenFailure]]:
    """Split source into (first_line, last_line) ranges of top-level statements.

    Decorators stay with the definition they decorate, and else/elif/except/
    finally clauses stay with their compound statement.

    Returns:
        The finished chunks, and the tokenizer failure if one stopped the scan.
        The failure's ``first_line`` is where the unfinished statement begins.
    """
    chunks: List[Tuple[int, int]] = []
    chunk_start: Optional[int] = None
    chunk_end: Optional[int] = None
    depth = 0
    at_line_start = True
    after_decorator = False
    last_line = 1

    try:
        for token in tokenize.generate_tokens(io.StringIO(content).readline):
            last_line = token.end[0]
            if token.type == tokenize.INDENT:
                depth += 1
                continue
            if token.type == tokenize.DEDENT:
                depth -= 1
                continue
            if token.type == tokenize.ERRORTOKEN and token.string.strip():
                raise tokenize.TokenError(f"unexpected token {token.string!r}", token.start)
            if token.type in (tokenize.ENCODING, tokenize.NL, tokenize.COMMENT,
                              tokenize.ENDMARKER, tokenize.ERRORTOKEN):
                continue
            if token.type == tokenize.NEWLINE:
                chunk_end = token.start[0]
                at_line_start = True
                continue
            if not at_line_start:
                continue
            at_line_start = False
            if depth != 0:
                continue
            continues = after_decorator or (
                token.type == tokenize.NAME and token.string in _CONTINUATION_KEYWORDS
            )
            if chunk_start is not None and not continues:
                chunks.append((chunk_start, chunk_end or chunk_start))
                chunk_start = None
            if chunk_start is None:
                chunk_start = token.start[0]
            after_decorator = token.type == tokenize.OP and token.string == '@'
    except (tokenize.TokenError, SyntaxError) as exc:
        line = _error_line(exc)
        message = exc.args[0] if exc.args else str(exc)
        if chunk_start is None:
            # The failing token opened no statement yet, e.g. a bare string
            chunk_start = min(line or last_line, last_line)
        return chunks, _TokenFailure(chunk_start, line, message)

    if chunk_start is not None:
        chunks.append((chunk_start, max(chunk_end or chunk_start, chunk_start)))
    return chunks, None


def _unsupported_statement(source: SourceText, first: int, last: int) -> UnsupportedStatement:
    node = UnsupportedStatement()
    node.lineno = first
    node.col_offset = 0
    node.end_lineno = last
    node.end_col_offset = len(source.line_text(last).encode('utf-8'))
    return node


def _comment_spans(source: SourceText) -> Tuple[Span, ...]:
    spans = []
    try:
        for token in tokenize.generate_tokens(io.StringIO(source.content).readline):
            if token.type == tokenize.COMMENT:
                spans.append((source.offset(*token.start), source.offset(*token.end)))
    except (tokenize.TokenError, SyntaxError) as exc:
        logger.debug("Comment scan stopped early: %s", exc)
    return tuple(spans)


def _error_line(exc: Exception) -> Optional[int]:
    if isinstance(exc, SyntaxError):
        return exc.lineno
    if isinstance(exc, tokenize.TokenError) and len(exc.args) > 1:
        return exc.args[1][0]
    return None


def _line_location(source: SourceText, line: int) -> SourceLocation:
    line = min(max(line, 1), source.line_count)
    start = source.line_start(line)
    return source.location(start, start + len(source.line_text(line)))


def _base_name(node: ast.AST) -> str:
    if isinstance(node, ast.Subscript):
        node = node.value
    return ast.unparse(node)


def _has_decorator(node: ast.AST, name: str) -> bool:
    for decorator in getattr(node, 'decorator_list', []):
        target = decorator.func if isinstance(decorator, ast.Call) else decorator
        if _base_name(target).split('.')[-1] == name:
            return True
    return False


def _is_type_checking_guard(test: ast.AST) -> bool:
    if isinstance(test, ast.Name):
        return test.id == 'TYPE_CHECKING'
    return isinstance(test, ast.Attribute) and test.attr == 'TYPE_CHECKING'


def _parameters(args: ast.arguments) -> List[ParameterInfo]:
    positional = list(args.posonlyargs) + list(args.args)
    defaults: List[Optional[ast.expr]] = [None] * (len(positional) - len(args.defaults)) + list(args.defaults)
    params = []
    for arg, default in zip(positional, defaults):
        params.append(_parameter(arg, default))
    if args.vararg is not None:
        params.append(_parameter(args.vararg, None, optional=True))
    for arg, default in zip(args.kwonlyargs, args.kw_defaults):
        params.append(_parameter(arg, default))
    if args.kwarg is not None:
        params.append(_parameter(args.kwarg, None, optional=True))
    return params


def _parameter(arg: ast.arg, default: Optional[ast.expr], optional: bool = False) -> ParameterInfo:
    return ParameterInfo(
        name=arg.arg,
        type=ast.unparse(arg.annotation) if arg.annotation is not None else None,
        optional=optional or default is not None,
        default_value=ast.unparse(default) if default is not None else None,
    )


def _class_properties(node: ast.ClassDef, index: PythonTreeIndex) -> List[PropertyInfo]:
    properties: Dict[str, PropertyInfo] = {}
    setters: Set[str] = set()

    for item in node.body:
        if isinstance(item, ast.AnnAssign) and isinstance(item.target, ast.Name):
            annotation = ast.unparse(item.annotation)
            properties.setdefault(item.target.id, PropertyInfo(
                name=item.target.id,
                location=index.location_of(item),
                type=annotation,
                is_static=annotation.startswith(('ClassVar', 'typing.ClassVar')),
                is_private=item.target.id.startswith('_'),
                is_readonly=annotation.startswith(('Final', 'typing.Final')),
            ))
        elif isinstance(item, ast.Assign):
            for target in item.targets:
                if isinstance(target, ast.Name):
                    properties.setdefault(target.id, PropertyInfo(
                        name=target.id,
                        location=index.location_of(item),
                        is_static=True,
                        is_private=target.id.startswith('_'),
                    ))
        elif isinstance(item, _FUNCTION_TYPES):
            for decorator in item.decorator_list:
                if isinstance(decorator, ast.Attribute) and decorator.attr == 'setter':
                    setters.add(item.name)
            if _has_decorator(item, 'property'):
                properties.setdefault(item.name, PropertyInfo(
                    name=item.name,
                    location=index.location_of(item),
                    type=ast.unparse(item.returns) if item.returns is not None else None,
                    is_private=item.name.startswith('_'),
                    is_readonly=True,
                ))
            if item.name == '__init__':
                for stmt in ast.walk(item):
                    targets = stmt.targets if isinstance(stmt, ast.Assign) else (
                        [stmt.target] if isinstance(stmt, ast.AnnAssign) else [])
                    for target in targets:
                        if (isinstance(target, ast.Attribute) and isinstance(target.value, ast.Name)
                                and target.value.id == 'self'):
                            properties.setdefault(target.attr, PropertyInfo(
                                name=target.attr,
                                location=index.location_of(stmt),
                                type=ast.unparse(stmt.annotation) if isinstance(stmt, ast.AnnAssign) else None,
                                is_private=target.attr.startswith('_'),
                            ))

    for name in setters:
        if name in properties:
            properties[name] = properties[name].model_copy(update={'is_readonly': False})
    return list(properties.values())


def _declared_all(module: ast.Module) -> Optional[Tuple[List[str], ast.AST]]:
    """Names listed in a module-level ``__all__``, if the module declares one."""
    names: List[str] = []
    declaration: Optional[ast.AST] = None
    for stmt in module.body:
        if _assigns_dunder_all(stmt):
            declaration = declaration or stmt
            if isinstance(stmt.value, (ast.List, ast.Tuple)):
                names.extend(
                    element.value for element in stmt.value.elts
                    if isinstance(element, ast.Constant) and isinstance(element.value, str)
                )
    if declaration is None:
        return None
    return names, declaration


def _assigns_dunder_all(stmt: ast.AST) -> bool:
    if isinstance(stmt, ast.Assign):
        return any(isinstance(t, ast.Name) and t.id == '__all__' for t in stmt.targets)
    if isinstance(stmt, (ast.AugAssign, ast.AnnAssign)):
        return isinstance(stmt.target, ast.Name) and stmt.target.id == '__all__' and stmt.value is not None
    return False


def _exported_names(module: ast.Module) -> Optional[Set[str]]:
    declared = _declared_all(module)
    return set(declared[0]) if declared is not None else None


def _is_exported(name: str, exported: Optional[Set[str]]) -> bool:
    if exported is not None:
        return name in exported
    return not name.startswith('_')


def _string_annotation_usages(node: ast.Constant, index: PythonTreeIndex) -> List[IdentifierUsage]:
    """Names referenced inside a quoted (forward reference) annotation."""
    try:
        expression = ast.parse(node.value.strip(), mode='eval')
    except SyntaxError:
        return []
    location = index.location_of(node)
    return [
        IdentifierUsage(name=name.id, location=location, is_type_position=True)
        for name in ast.walk(expression) if isinstance(name, ast.Name)
    ]


def _dunder_all_usages(node: ast.AST, index: PythonTreeIndex) -> List[IdentifierUsage]:
    """Names listed in ``__all__`` count as uses (re-export position)."""
    if not _assigns_dunder_all(node) or not isinstance(node.value, (ast.List, ast.Tuple)):
        return []
    return [
        IdentifierUsage(name=element.value, location=index.location_of(element))
        for element in node.value.elts
        if isinstance(element, ast.Constant) and isinstance(element.value, str)
    ]
