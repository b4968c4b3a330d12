import logging
import operator
import os
import re
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import tinycss2

from ..errors import ConfigError, StyleParseError
from ..utils.file_utils import read_file_content
from .css_class_extractor import check_parse_errors, dialect_for, strip_line_comments
from .models import Violation

logger = logging.getLogger(__name__)

COLOR_RULE = 'design-system-colors'
NUMERIC_RULE = 'numeric-property-limits'

COLOR_PROPERTY = re.compile(r'color|background|border')
COLOR_TOKEN = re.compile(
    r'(#(?:[0-9a-fA-F]{3}){1,2}\b|\b(?:rgb|hsl)a?\([^)]+\)'
    r'|\b(?!solid\b|dotted\b|dashed\b|inherit\b|initial\b|unset\b|transparent\b|none\b)[a-zA-Z]+\b)'
)
LEADING_NUMBER = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')

OPERATORS = {
    '>=': operator.ge,
    '>': operator.gt,
    '<=': operator.le,
    '<': operator.lt,
    '==': operator.eq,
    '!=': operator.ne,
}
DEFAULT_OPERATOR = '>='


class CSSStyleChecker:
    def parse_declarations(self, css_content: str, dialect: str = 'css') -> List[Tuple[str, str, int]]:
        """
        Return (property, value, line) for every declaration, including the
        ones nested in rules and at-rules. Preprocessor variable assignments
        (`$x: 1`, `@x: 1`) are not declarations.
        """
        if dialect in ('scss', 'less'):
            css_content = strip_line_comments(css_content)
        tokens = tinycss2.parse_component_value_list(css_content, skip_comments=True)
        check_parse_errors(tokens)
        return list(self._iter_declarations(tokens))

    def _iter_declarations(self, tokens) -> Iterator[Tuple[str, str, int]]:
        segment = []
        for token in list(tokens) + [None]:
            if token is None or token == ';':
                declaration = self._as_declaration(segment)
                if declaration:
                    yield declaration
                segment = []
            elif token.type == '{} block':
                yield from self._iter_declarations(token.content)
                segment = []
            elif token.type != 'comment':
                segment.append(token)

    @staticmethod
    def _as_declaration(segment) -> Optional[Tuple[str, str, int]]:
        significant = [t for t in segment if t.type != 'whitespace']
        if len(significant) < 2 or significant[0].type != 'ident' or significant[1] != ':':
            return None
        name = significant[0].lower_value
        colon_index = next(i for i, t in enumerate(segment) if t is significant[1])
        value = tinycss2.serialize(segment[colon_index + 1:]).strip()
        value = re.sub(r'\s*!\s*important$', '', value, flags=re.IGNORECASE)
        return name, value, significant[0].source_line

    def normalize_color(self, value):
        # Normalize #fff and #ffffff, lowercase, remove spaces
        value = value.strip().lower().replace(' ', '')
        hex_match = re.fullmatch(r'#([0-9a-f]{3,8})', value)
        if hex_match:
            hexval = hex_match.group(1)
            if len(hexval) in (3, 4):
                value = '#' + ''.join([c*2 for c in hexval])
            return value
        return value

    def normalize_number(self, value: float) -> str:
        # 100.0 -> "100", 1.5 -> "1.5"
        if float(value).is_integer():
            return str(int(value))
        return str(value)

    def check_colors(self, declarations, allowed_colors, file: str) -> List[Violation]:
        allowed = {self.normalize_color(c) for c in allowed_colors}
        violations = []
        for prop, value, line in declarations:
            if not COLOR_PROPERTY.search(prop):
                continue
            if '$' in value or '@' in value:
                violations.append(Violation(
                    COLOR_RULE, file, line,
                    f'Preprocessor variable used: {value}. Direct color validation skipped.'))
                continue
            for match in COLOR_TOKEN.findall(value):
                if self.normalize_color(match) not in allowed:
                    violations.append(Violation(COLOR_RULE, file, line, f'Invalid color: {match}'))
        return violations

    def check_numeric_limits(self, declarations, limits: Dict[str, Dict], file: str) -> List[Violation]:
        violations = []
        for prop, value, line in declarations:
            limit = limits.get(prop)
            if not isinstance(limit, dict) or 'threshold' not in limit:
                continue
            number = LEADING_NUMBER.match(value)
            if not number:
                continue
            number = float(number.group(1))
            op_name = limit.get('operator', DEFAULT_OPERATOR)
            compare = OPERATORS.get(op_name, OPERATORS[DEFAULT_OPERATOR])
            threshold = float(limit['threshold'])
            if compare(number, threshold):
                violations.append(Violation(
                    NUMERIC_RULE, file, line,
                    f'{prop} value {self.normalize_number(number)} violates limit '
                    f'{op_name} {self.normalize_number(threshold)}'))
        return violations


def validate_limits(rule_config: Dict) -> Dict[str, Dict]:
    """Lower-case property names and check every `{threshold, operator}` entry."""
    limits = {}
    for prop, limit in rule_config.items():
        where = f"'{NUMERIC_RULE}.{prop}'"
        if not isinstance(limit, dict) or 'threshold' not in limit:
            raise ConfigError(f"{where} must be an object with a 'threshold'")
        try:
            threshold = float(limit['threshold'])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{where} threshold must be a number, got {limit['threshold']!r}") from e
        op_name = limit.get('operator', DEFAULT_OPERATOR)
        if op_name not in OPERATORS:
            raise ConfigError(f"{where} has unknown operator {op_name!r}")
        limits[prop.lower()] = {'threshold': threshold, 'operator': op_name}
    return limits


def _declarations_by_file(root: Path, style_files, checker: CSSStyleChecker):
    for path in style_files:
        relative = os.path.relpath(path, root)
        try:
            content = read_file_content(path)
            declarations = checker.parse_declarations(content, dialect_for(path))
        except (OSError, StyleParseError) as e:
            logger.error(f"Error parsing {relative}: {e}")
            continue
        yield relative, declarations


def check_design_system_colors(root: str | Path, style_files, rule_config: Optional[Dict]) -> List[Violation]:
    """design-system-colors: runs only with a non-empty `allowedColors` list."""
    allowed = rule_config.get('allowedColors') if isinstance(rule_config, dict) else None
    if not isinstance(allowed, list) or not allowed:
        return []
    checker = CSSStyleChecker()
    violations = []
    for relative, declarations in _declarations_by_file(Path(root), style_files, checker):
        violations.extend(checker.check_colors(declarations, allowed, relative))
    return violations


def check_numeric_property_limits(root: str | Path, style_files, rule_config: Optional[Dict]) -> List[Violation]:
    """numeric-property-limits: `{property: {threshold, operator}}`."""
    if not isinstance(rule_config, dict) or not rule_config:
        return []
    limits = validate_limits(rule_config)
    checker = CSSStyleChecker()
    violations = []
    for relative, declarations in _declarations_by_file(Path(root), style_files, checker):
        violations.extend(checker.check_numeric_limits(declarations, limits, relative))
    return violations
