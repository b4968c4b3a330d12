"""
Analysis Models
Data structures shared by the extractors and the reconciliation engine.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

UNUSED_CLASS_RULE = 'no-unused-classes'


@dataclass
class StyleSheetClasses:
    # class identifier -> first definition line, in definition order
    definitions: Dict[str, int] = field(default_factory=dict)
    # parent class -> nested child classes
    nesting: Dict[str, Set[str]] = field(default_factory=dict)

    def define(self, identifier: str, line: int) -> None:
        """Record a class definition. The first occurrence keeps its line."""
        if identifier not in self.definitions:
            self.definitions[identifier] = line

    def add_child(self, parent: str, child: str) -> None:
        self.nesting.setdefault(parent, set()).add(child)

    def has_children(self, parent: str) -> bool:
        return bool(self.nesting.get(parent))


@dataclass
class UsageRecord:
    static: Set[str] = field(default_factory=set)
    dynamic_parents: Set[str] = field(default_factory=set)

    def merge(self, other: 'UsageRecord') -> None:
        self.static |= other.static
        self.dynamic_parents |= other.dynamic_parents


@dataclass
class MarkupUsage:
    """Everything one markup file contributes to a run."""
    # local identifier -> resolved style file path
    bindings: Dict[str, str] = field(default_factory=dict)
    usages: Dict[str, UsageRecord] = field(default_factory=dict)
    global_literals: Set[str] = field(default_factory=set)

    def record_for(self, style_path: str) -> UsageRecord:
        return self.usages.setdefault(style_path, UsageRecord())


@dataclass
class Violation:
    rule: str
    file: str
    line: int
    message: str
    class_name: Optional[str] = None

    def to_dict(self) -> Dict:
        data = {
            'rule': self.rule,
            'file': self.file,
            'line': self.line,
            'message': self.message,
        }
        if self.class_name is not None:
            data['class'] = self.class_name
        return data


@dataclass
class AnalysisContext:
    """
    Per-invocation owner of every per-file map. Built fresh for each run,
    filled by the extraction passes, consumed once by reconciliation.
    """
    root: str
    # style file path (absolute) -> defined classes, in discovery order
    stylesheets: Dict[str, StyleSheetClasses] = field(default_factory=dict)
    usages: Dict[str, UsageRecord] = field(default_factory=dict)
    global_literals: Set[str] = field(default_factory=set)
    parse_failures: List[str] = field(default_factory=list)

    def add_markup_usage(self, usage: MarkupUsage) -> None:
        """Union a markup file's contribution into the run state."""
        for style_path, record in usage.usages.items():
            self.usages.setdefault(style_path, UsageRecord()).merge(record)
        self.global_literals |= usage.global_literals

    def usage_for(self, style_path: str) -> UsageRecord:
        return self.usages.get(style_path) or UsageRecord()
