"""
JSX Usage Extractor Module
Finds which style-module classes a JSX/TSX file references.

Each file is parsed with tree-sitter (TSX grammar). Style imports are bound
to the style files they resolve to, then every class attribute expression is
converted into a small closed set of expression variants and classified as
static, dynamic or global-literal usage.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, Union

import tree_sitter_typescript
from tree_sitter import Language, Parser

from ..errors import MarkupParseError
from ..utils.file_utils import read_file_content
from .alias_resolver import AliasResolver
from .models import MarkupUsage, StyleSheetClasses

logger = logging.getLogger(__name__)

# TSX covers JSX plus TypeScript syntax, so it serves .jsx and .tsx alike
TSX_LANGUAGE = Language(tree_sitter_typescript.language_tsx())
parser = Parser(TSX_LANGUAGE)

STYLE_IMPORT = re.compile(r'\.(css|scss|less)$')

DEFAULT_CLASS_HELPERS = frozenset({'cn', 'clsx', 'classnames', 'classNames', 'cx', 'twMerge', 'twJoin'})
DEFAULT_CLASS_ATTRIBUTES = frozenset({'className', 'class'})

# Operators whose operands can each end up in the class string
CONCAT_OPERATORS = {'+', '&&', '||', '??'}

# Wrappers that do not change the value of the wrapped expression
_TRANSPARENT_NODES = {
    'parenthesized_expression', 'as_expression', 'satisfies_expression',
    'non_null_expression', 'type_assertion', 'await_expression',
}

_SUBSTITUTION = '\0'


# --- Expression variants ---

@dataclass
class StringLiteral:
    value: str


@dataclass
class Template:
    # static text, with each ${...} replaced by a NUL marker
    text: str
    parts: List['Expr'] = field(default_factory=list)


@dataclass
class Concat:
    operands: List['Expr'] = field(default_factory=list)


@dataclass
class Call:
    callee: Optional[str]
    arguments: List['Expr'] = field(default_factory=list)


@dataclass
class MemberAccess:
    object_name: Optional[str]
    property: Optional[str]
    computed: bool = False


@dataclass
class Conditional:
    branches: List['Expr'] = field(default_factory=list)


@dataclass
class ArrayLiteral:
    elements: List['Expr'] = field(default_factory=list)


@dataclass
class ObjectLiteral:
    keys: List['Expr'] = field(default_factory=list)


@dataclass
class Opaque:
    kind: str = ''


Expr = Union[StringLiteral, Template, Concat, Call, MemberAccess,
             Conditional, ArrayLiteral, ObjectLiteral, Opaque]


def _text(node) -> str:
    return node.text.decode('utf-8')


def _string_value(node) -> str:
    return _text(node)[1:-1]


def _expression_children(node) -> list:
    return [child for child in node.named_children if child.type != 'comment']


def _template(node) -> Template:
    raw = node.text
    base = node.start_byte
    pieces = []
    parts = []
    cursor = base + 1
    for child in node.named_children:
        if child.type != 'template_substitution':
            continue
        pieces.append(raw[cursor - base:child.start_byte - base].decode('utf-8'))
        pieces.append(_SUBSTITUTION)
        inner = _expression_children(child)
        if inner:
            parts.append(to_expression(inner[0]))
        cursor = child.end_byte
    pieces.append(raw[cursor - base:node.end_byte - base - 1].decode('utf-8'))
    return Template(''.join(pieces), parts)


def _is_literal_template(node) -> bool:
    return not any(child.type == 'template_substitution' for child in node.named_children)


def _member_access(node) -> MemberAccess:
    obj = node.child_by_field_name('object')
    object_name = _text(obj) if obj is not None and obj.type == 'identifier' else None
    if node.type == 'member_expression':
        prop = node.child_by_field_name('property')
        return MemberAccess(object_name, _text(prop) if prop is not None else None)

    index = node.child_by_field_name('index')
    if index is None:
        return MemberAccess(object_name, None)
    if index.type == 'string':
        return MemberAccess(object_name, _string_value(index))
    if index.type == 'template_string' and _is_literal_template(index):
        return MemberAccess(object_name, _text(index)[1:-1])
    if index.type == 'number':
        return MemberAccess(object_name, None)
    return MemberAccess(object_name, None, computed=True)


def _object_keys(node) -> List[Expr]:
    keys = []
    for child in node.named_children:
        if child.type == 'shorthand_property_identifier':
            keys.append(StringLiteral(_text(child)))
        elif child.type == 'pair':
            key = child.child_by_field_name('key')
            if key is None:
                continue
            if key.type == 'computed_property_name':
                inner = _expression_children(key)
                if inner:
                    keys.append(to_expression(inner[0]))
            elif key.type == 'string':
                keys.append(StringLiteral(_string_value(key)))
            elif key.type == 'property_identifier':
                keys.append(StringLiteral(_text(key)))
    return keys


def to_expression(node) -> Expr:
    """Convert a tree-sitter expression node into an expression variant."""
    kind = node.type
    if kind == 'string':
        return StringLiteral(_string_value(node))
    if kind == 'template_string':
        return _template(node)
    if kind == 'binary_expression':
        operator_node = node.child_by_field_name('operator')
        if operator_node is None or _text(operator_node) not in CONCAT_OPERATORS:
            return Opaque(kind)
        operands = [node.child_by_field_name('left'), node.child_by_field_name('right')]
        return Concat([to_expression(op) for op in operands if op is not None])
    if kind == 'ternary_expression':
        branches = [node.child_by_field_name('consequence'), node.child_by_field_name('alternative')]
        return Conditional([to_expression(b) for b in branches if b is not None])
    if kind == 'call_expression':
        function = node.child_by_field_name('function')
        callee = _text(function) if function is not None and function.type == 'identifier' else None
        arguments = node.child_by_field_name('arguments')
        if arguments is None:
            args = []
        elif arguments.type == 'arguments':
            args = _expression_children(arguments)
        else:
            # tagged template: cn`...`
            args = [arguments]
        return Call(callee, [to_expression(arg) for arg in args])
    if kind in ('member_expression', 'subscript_expression'):
        return _member_access(node)
    if kind == 'array':
        return ArrayLiteral([to_expression(child) for child in _expression_children(node)])
    if kind == 'object':
        return ObjectLiteral(_object_keys(node))
    if kind in _TRANSPARENT_NODES:
        inner = _expression_children(node)
        if inner:
            return to_expression(inner[0])
    return Opaque(kind)


# --- Naming conventions ---

def naming_variants(name: str) -> Set[str]:
    """`usedWrapper` -> {usedWrapper, used-wrapper, used_wrapper, ...}"""
    kebab = re.sub(r'(?<=[a-z0-9])([A-Z])', r'-\1', name).replace('_', '-').lower()
    snake = kebab.replace('-', '_')
    parts = [part for part in kebab.split('-') if part]
    camel = parts[0] + ''.join(part[:1].upper() + part[1:] for part in parts[1:]) if parts else name
    return {name, kebab, snake, camel, name.lower(), name.upper()}


# --- Import resolution ---

def resolve_style_import(source: str, markup_path: str, known_paths: Iterable[str],
                         resolver: Optional[AliasResolver] = None) -> Optional[str]:
    """
    Map an import source onto a known style file path:
    relative path, then alias, then the same real path, then the same file name.
    """
    known_paths = list(known_paths)
    known = set(known_paths)
    candidate = os.path.normpath(os.path.join(os.path.dirname(markup_path), source))
    if candidate in known:
        return candidate

    if resolver is not None:
        aliased = resolver.resolve(source)
        if aliased != source:
            if aliased in known:
                return aliased
            candidate = aliased

    real = os.path.realpath(candidate)
    for path in known_paths:
        if os.path.realpath(path) == real:
            return path

    name = os.path.basename(source)
    for path in known_paths:
        if os.path.basename(path) == name:
            return path
    return None


# --- Classification ---

@dataclass
class AttributeScan:
    """Accumulator threaded through one class-attribute walk."""
    static: Dict[str, Set[str]] = field(default_factory=dict)
    parent_candidates: Dict[str, Set[str]] = field(default_factory=dict)
    dynamic_modules: Set[str] = field(default_factory=set)


class JSXUsageExtractor:
    def __init__(self, stylesheets: Mapping[str, StyleSheetClasses],
                 resolver: Optional[AliasResolver] = None,
                 class_helpers: Iterable[str] = DEFAULT_CLASS_HELPERS,
                 class_attributes: Iterable[str] = DEFAULT_CLASS_ATTRIBUTES):
        self.stylesheets = stylesheets
        self.resolver = resolver
        self.class_helpers = set(class_helpers)
        self.class_attributes = set(class_attributes)

    def extract_file(self, file_path: str | Path) -> MarkupUsage:
        try:
            code = read_file_content(file_path)
        except OSError as e:
            raise MarkupParseError(f'cannot read file: {e}') from e
        return self.extract(code, str(file_path))

    def extract(self, code: str, file_path: str) -> MarkupUsage:
        """
        Collect bindings, per-module usage and global literals for one file.
        Raises MarkupParseError if the file has syntax errors.
        """
        tree = parser.parse(bytes(code, 'utf-8'))
        root = tree.root_node
        if root.has_error:
            raise MarkupParseError(f'syntax error near line {_first_error_line(root)}',
                                   _first_error_line(root))

        usage = MarkupUsage()
        usage.bindings = self._collect_bindings(root, file_path)
        if usage.bindings:
            self._collect_static_accesses(root, usage)
        for value in self._class_attribute_values(root):
            self._classify_attribute(value, usage)
        return usage

    def _collect_bindings(self, root, file_path: str) -> Dict[str, str]:
        bindings = {}
        for node in root.named_children:
            if node.type != 'import_statement':
                continue
            source_node = node.child_by_field_name('source')
            if source_node is None:
                continue
            source = _string_value(source_node)
            if not STYLE_IMPORT.search(source):
                continue
            local = _default_or_namespace_name(node)
            if local is None:
                continue
            resolved = resolve_style_import(source, file_path, self.stylesheets.keys(), self.resolver)
            if resolved is None:
                logger.debug(f"Unresolved style import '{source}' in {file_path}")
                continue
            bindings[local] = resolved
        return bindings

    def _collect_static_accesses(self, root, usage: MarkupUsage):
        # Any `styles.foo` / `styles['foo']` in the file counts as a use
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in ('member_expression', 'subscript_expression'):
                access = _member_access(node)
                style_path = usage.bindings.get(access.object_name)
                if style_path and not access.computed and access.property:
                    usage.record_for(style_path).static |= naming_variants(access.property)
            stack.extend(node.children)

    def _class_attribute_values(self, root):
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == 'jsx_attribute':
                children = node.named_children
                if len(children) > 1 and _text(children[0]) in self.class_attributes:
                    yield children[1]
            # JSX passed through other attributes (icon={<i className=... />}) is walked too
            stack.extend(node.children)

    def _classify_attribute(self, value, usage: MarkupUsage):
        if value.type == 'string':
            expr = StringLiteral(_string_value(value))
        elif value.type == 'jsx_expression':
            inner = _expression_children(value)
            if not inner:
                return
            expr = to_expression(inner[0])
        else:
            return

        scan = AttributeScan()
        self.classify(expr, usage, scan)
        # A static sibling of a dynamic access marks its nested classes reachable
        for style_path in scan.dynamic_modules:
            sheet = self.stylesheets.get(style_path)
            if sheet is None:
                continue
            record = usage.record_for(style_path)
            for name in scan.parent_candidates.get(style_path, ()):
                if sheet.has_children(name):
                    record.dynamic_parents.add(name)

    def classify(self, expr: Expr, usage: MarkupUsage, scan: AttributeScan):
        """Walk one expression, writing into `usage` and the attribute `scan`."""
        if isinstance(expr, StringLiteral):
            usage.global_literals.update(expr.value.split())
        elif isinstance(expr, Template):
            usage.global_literals.update(
                token for token in expr.text.split() if _SUBSTITUTION not in token)
            for part in expr.parts:
                self.classify(part, usage, scan)
        elif isinstance(expr, MemberAccess):
            self._classify_member(expr, usage, scan)
        elif isinstance(expr, Concat):
            for operand in expr.operands:
                self.classify(operand, usage, scan)
        elif isinstance(expr, Conditional):
            for branch in expr.branches:
                self.classify(branch, usage, scan)
        elif isinstance(expr, Call):
            if expr.callee in self.class_helpers:
                for argument in expr.arguments:
                    self.classify(argument, usage, scan)
        elif isinstance(expr, ArrayLiteral):
            for element in expr.elements:
                self.classify(element, usage, scan)
        elif isinstance(expr, ObjectLiteral):
            for key in expr.keys:
                self.classify(key, usage, scan)
        elif isinstance(expr, Opaque):
            pass
        else:
            raise TypeError(f'unhandled expression variant: {type(expr).__name__}')

    def _classify_member(self, expr: MemberAccess, usage: MarkupUsage, scan: AttributeScan):
        style_path = usage.bindings.get(expr.object_name)
        if style_path is None:
            return
        if expr.computed:
            scan.dynamic_modules.add(style_path)
            scan.parent_candidates.setdefault(style_path, set()).update(
                scan.static.get(style_path, ()))
        elif expr.property:
            variants = naming_variants(expr.property)
            usage.record_for(style_path).static |= variants
            scan.static.setdefault(style_path, set()).update(variants)


def _default_or_namespace_name(import_node) -> Optional[str]:
    for clause in import_node.named_children:
        if clause.type != 'import_clause':
            continue
        for child in clause.named_children:
            if child.type == 'identifier':
                return _text(child)
            if child.type == 'namespace_import':
                for ident in child.named_children:
                    if ident.type == 'identifier':
                        return _text(ident)
    return None


def _first_error_line(root) -> int:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == 'ERROR' or node.is_missing:
            return node.start_point[0] + 1
        if node.has_error:
            stack.extend(reversed(node.children))
    return 0
