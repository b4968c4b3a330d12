"""
Unused Class Engine
Correlates the classes each style file defines with the classes markup
files reference and reports the ones nothing uses.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional

from ..errors import MarkupParseError, StyleParseError
from ..utils.file_utils import collect_files
from .alias_resolver import AliasResolver
from .css_class_extractor import extract_file
from .jsx_usage_extractor import DEFAULT_CLASS_ATTRIBUTES, DEFAULT_CLASS_HELPERS, JSXUsageExtractor
from .models import (
    UNUSED_CLASS_RULE, AnalysisContext, StyleSheetClasses, UsageRecord, Violation,
)

logger = logging.getLogger(__name__)


@dataclass
class UnusedClassOptions:
    enabled: bool = True
    ignore_dynamic_classes: bool = True
    class_helpers: FrozenSet[str] = field(default_factory=lambda: DEFAULT_CLASS_HELPERS)
    class_attributes: FrozenSet[str] = field(default_factory=lambda: DEFAULT_CLASS_ATTRIBUTES)


def is_class_used(identifier: str, sheet: StyleSheetClasses, usage: UsageRecord,
                  global_literals, ignore_dynamic_classes: bool = True) -> bool:
    """
    Decide whether one defined identifier counts as used.

    Dotted `parent.child`: used if `parent` is reached dynamically, or if
    both `parent` and `child` are referenced statically.
    Simple: used if referenced statically or as a plain string literal, or if
    it is nested under a dynamically reached parent.
    """
    dynamic_parents = usage.dynamic_parents if ignore_dynamic_classes else set()
    if '.' in identifier:
        parent, child = identifier.split('.', 1)
        if parent in dynamic_parents:
            return True
        return parent in usage.static and child in usage.static

    if identifier in usage.static or identifier in global_literals:
        return True
    return any(identifier in sheet.nesting.get(parent, ()) for parent in dynamic_parents)


def reconcile(context: AnalysisContext, options: Optional[UnusedClassOptions] = None) -> List[Violation]:
    """Violations grouped by style file in discovery order, then definition order."""
    options = options or UnusedClassOptions()
    violations = []
    for style_path, sheet in context.stylesheets.items():
        usage = context.usage_for(style_path)
        relative = os.path.relpath(style_path, context.root)
        for identifier, line in sheet.definitions.items():
            if is_class_used(identifier, sheet, usage, context.global_literals,
                             options.ignore_dynamic_classes):
                continue
            violations.append(Violation(
                rule=UNUSED_CLASS_RULE,
                file=relative,
                line=line,
                message=f'Unused class: {identifier}',
                class_name=identifier,
            ))
    return violations


def build_context(root: str | Path, options: Optional[UnusedClassOptions] = None,
                  resolver: Optional[AliasResolver] = None) -> AnalysisContext:
    """Run both extraction passes over the project and return the filled context."""
    options = options or UnusedClassOptions()
    root = Path(root).resolve()
    context = AnalysisContext(root=str(root))
    files = collect_files(root)

    for path in files['style']:
        key = str(path)
        context.stylesheets[key] = StyleSheetClasses()
        try:
            context.stylesheets[key] = extract_file(path)
        except StyleParseError as e:
            logger.error(f"Error parsing {os.path.relpath(key, root)}: {e}")
            context.parse_failures.append(key)

    resolver = resolver or AliasResolver(root)
    extractor = JSXUsageExtractor(
        context.stylesheets,
        resolver=resolver,
        class_helpers=options.class_helpers,
        class_attributes=options.class_attributes,
    )
    for path in files['markup']:
        try:
            context.add_markup_usage(extractor.extract_file(path))
        except MarkupParseError as e:
            logger.warning(f"Could not parse {os.path.relpath(path, root)}. "
                           f"It may contain syntax errors. Error: {e}")
            context.parse_failures.append(str(path))

    logger.info(f"Scanned {len(files['style'])} style files and {len(files['markup'])} markup files")
    return context


def find_unused_classes(root: str | Path, options: Optional[UnusedClassOptions] = None) -> List[Violation]:
    """Entry point of the no-unused-classes rule. A disabled rule reports nothing."""
    options = options or UnusedClassOptions()
    if not options.enabled:
        return []
    context = build_context(root, options)
    return reconcile(context, options)
