"""
CSS Class Extractor Module
Collects the classes a CSS/SCSS/Less file defines, resolving nested
parent-reference selectors into dotted `parent.child` identifiers.
"""

import logging
import re
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import tinycss2

from ..errors import StyleParseError
from ..utils.file_utils import read_file_content
from .models import StyleSheetClasses

logger = logging.getLogger(__name__)

_IDENT = r'-?[_a-zA-Z][_a-zA-Z0-9-]*'
# A class token that does not run on into #{...} / @{...} interpolation
_CLASS_END = r'(?![_a-zA-Z0-9-]|[#@]\{)'

CLASS_TOKEN = re.compile(r'\.(' + _IDENT + r')' + _CLASS_END)
PARENT_CLASS = re.compile(r'&\.(' + _IDENT + r')' + _CLASS_END)
PARENT_SUFFIX = re.compile(r'^&([_-][_a-zA-Z0-9-]*)' + _CLASS_END)
ATTRIBUTE_SELECTOR = re.compile(r'\[[^\]]*\]')
LESS_MIXIN = re.compile(r'^\.' + _IDENT + r'\s*\(')

# Strings, block comments and url() are kept; `//` line comments are dropped
_LINE_COMMENT = re.compile(
    r'("(?:\\.|[^"\\\n])*"|\'(?:\\.|[^\'\\\n])*\'|/\*.*?\*/|url\([^)]*\))|//[^\n]*',
    re.DOTALL,
)

# At-rules whose bodies hold no class selectors
SKIPPED_AT_RULES = {'font-face', 'page', 'counter-style', 'property', 'font-feature-values'}
# At-rules whose bodies are reusable templates, not nested under a concrete rule
MIXIN_AT_RULES = {'mixin', 'function'}

DIALECTS = {'.css': 'css', '.scss': 'scss', '.less': 'less'}


def dialect_for(path: str | Path) -> str:
    return DIALECTS.get(Path(path).suffix.lower(), 'css')


def strip_line_comments(css_content: str) -> str:
    """Remove preprocessor `//` comments, leaving line numbering intact."""
    return _LINE_COMMENT.sub(lambda m: m.group(1) or '', css_content)


def split_selectors(selector_text: str) -> List[str]:
    """Split a selector list on commas that are not inside parentheses."""
    selectors = []
    depth = 0
    current = []
    for char in selector_text:
        if char == '(':
            depth += 1
        elif char == ')':
            depth = max(depth - 1, 0)
        if char == ',' and depth == 0:
            selectors.append(''.join(current).strip())
            current = []
        else:
            current.append(char)
    selectors.append(''.join(current).strip())
    return [s for s in selectors if s]


def _is_interpolation_marker(token) -> bool:
    return token.type == 'literal' and token.value in ('#', '@')


def iter_blocks(tokens) -> Iterator[Tuple[list, object]]:
    """
    Yield (prelude, {} block) pairs from a token list. Declarations and
    block-less statements end at ';' and are dropped.
    """
    prelude = []
    for token in tokens:
        if token.type in ('whitespace', 'comment'):
            if prelude:
                prelude.append(token)
            continue
        if token.type == '{} block':
            if prelude and _is_interpolation_marker(prelude[-1]):
                prelude.append(token)
                continue
            if prelude:
                yield prelude, token
            prelude = []
        elif token == ';':
            prelude = []
        else:
            prelude.append(token)


def check_parse_errors(tokens):
    """Raise StyleParseError on tokenizer errors and unmatched closing brackets."""
    for token in tokens:
        if token.type == 'error':
            raise StyleParseError(token.message, token.source_line)
        if token.type == 'literal' and token.value in ')]}':
            raise StyleParseError(f'Unmatched {token.value}', token.source_line)
        nested = getattr(token, 'content', None) or getattr(token, 'arguments', None)
        if nested and token.type != 'comment':
            check_parse_errors(nested)


class CSSClassExtractor:
    def __init__(self, dialect: str = 'css'):
        self.dialect = dialect

    def extract(self, css_content: str) -> StyleSheetClasses:
        """
        Parse style source into defined classes and the nesting index.

        - `.a, .b {}` defines `a` and `b`
        - `.a { &.b {} }` defines the dotted `a.b` and records `a -> b`
        - `.a { &-b {} }` defines `a-b`
        - `@mixin m { &.b {} }` defines `b`
        Raises StyleParseError on unbalanced or malformed input.
        """
        if self.dialect in ('scss', 'less'):
            css_content = strip_line_comments(css_content)
        tokens = tinycss2.parse_component_value_list(css_content, skip_comments=True)
        check_parse_errors(tokens)
        sheet = StyleSheetClasses()
        self._walk(tokens, sheet, parent_class=None, in_mixin=False)
        return sheet

    def _walk(self, tokens, sheet: StyleSheetClasses, parent_class: Optional[str], in_mixin: bool):
        for prelude, block in iter_blocks(tokens):
            first = prelude[0]
            if first.type == 'at-keyword':
                name = first.lower_value
                if name.endswith('keyframes') or name in SKIPPED_AT_RULES:
                    continue
                if name in MIXIN_AT_RULES:
                    self._walk(block.content, sheet, None, True)
                else:
                    # @media, @supports, @include ... {} keep the enclosing rule
                    self._walk(block.content, sheet, parent_class, in_mixin)
                continue

            selector_text = tinycss2.serialize(prelude).strip()
            line = first.source_line
            if self.dialect == 'less' and LESS_MIXIN.match(selector_text):
                self._walk(block.content, sheet, None, True)
                continue

            selectors = split_selectors(selector_text)
            for selector in selectors:
                self._record_selector(selector, sheet, parent_class, line, in_mixin)
            own_class = self._first_class(selectors[0], parent_class) if selectors else None
            self._walk(block.content, sheet, own_class, in_mixin)

    def _record_selector(self, selector: str, sheet: StyleSheetClasses,
                         parent_class: Optional[str], line: int, in_mixin: bool):
        selector = ATTRIBUTE_SELECTOR.sub('', selector)
        if parent_class and not in_mixin:
            children = PARENT_CLASS.findall(selector)
            if children:
                for child in children:
                    sheet.define(f'{parent_class}.{child}', line)
                    sheet.add_child(parent_class, child)
                selector = PARENT_CLASS.sub('&', selector)
            else:
                suffix = PARENT_SUFFIX.match(selector)
                if suffix:
                    sheet.define(parent_class + suffix.group(1), line)
                    selector = selector[suffix.end():]
        for class_name in CLASS_TOKEN.findall(selector):
            sheet.define(class_name, line)

    @staticmethod
    def _first_class(selector: str, parent_class: Optional[str]) -> Optional[str]:
        selector = ATTRIBUTE_SELECTOR.sub('', selector)
        match = CLASS_TOKEN.search(selector)
        if match:
            return match.group(1)
        suffix = PARENT_SUFFIX.match(selector)
        if suffix and parent_class:
            return parent_class + suffix.group(1)
        if selector.startswith('&'):
            return parent_class
        return None


def extract_file(path: str | Path) -> StyleSheetClasses:
    """Read and extract one style file. Raises StyleParseError."""
    try:
        content = read_file_content(path)
    except OSError as e:
        raise StyleParseError(f'cannot read file: {e}') from e
    sheet = CSSClassExtractor(dialect_for(path)).extract(content)
    logger.debug(f"Extracted {len(sheet.definitions)} classes from {path}")
    return sheet
