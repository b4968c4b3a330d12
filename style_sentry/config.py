"""
Configuration loading for the linter.

The configuration lives in `.stylesentryrc.json` at the project root (JSON,
comments and trailing commas allowed) and holds one entry per rule under
`rules`.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .core.css_style_checker import validate_limits
from .core.jsx_usage_extractor import DEFAULT_CLASS_ATTRIBUTES, DEFAULT_CLASS_HELPERS
from .core.unused_class_engine import UnusedClassOptions
from .errors import ConfigError
from .utils.file_utils import load_jsonc, read_file_content

logger = logging.getLogger(__name__)

CONFIG_FILENAME = '.stylesentryrc.json'

DEFAULT_CONFIG = """{
  "rules": {
    // Finds CSS classes that are defined but not used in your JSX/TSX files.
    // Set "enabled" to false to disable. "ignoreDynamicClasses" keeps classes
    // reachable through styles[variable] from being reported.
    "no-unused-classes": {
      "enabled": true,
      "ignoreDynamicClasses": true
    },

    // Checks that colors come from your design system's palette.
    // Add your colors to "allowedColors" to enable.
    "design-system-colors": {
      "allowedColors": []
    },

    // Checks limits on numeric CSS properties, e.g.
    // "z-index": {"threshold": 100, "operator": ">="}
    "numeric-property-limits": {}
  }
}
"""


@dataclass
class LintConfig:
    rules: Dict[str, Any] = field(default_factory=dict)
    path: Optional[Path] = None

    def unused_class_options(self) -> UnusedClassOptions:
        """Options of the no-unused-classes rule; an absent rule is disabled."""
        rule = self.rules.get('no-unused-classes')
        if isinstance(rule, bool) or rule is None:
            return UnusedClassOptions(enabled=bool(rule))
        if not isinstance(rule, dict):
            raise ConfigError("'no-unused-classes' must be a boolean or an object")
        return UnusedClassOptions(
            enabled=bool(rule.get('enabled', True)),
            ignore_dynamic_classes=bool(rule.get('ignoreDynamicClasses', True)),
            class_helpers=_name_set(rule, 'classHelpers', DEFAULT_CLASS_HELPERS),
            class_attributes=_name_set(rule, 'classAttributes', DEFAULT_CLASS_ATTRIBUTES),
        )

    def validate(self) -> None:
        """Raise ConfigError for malformed rule entries."""
        self.unused_class_options()
        if isinstance(self.numeric_rule, dict):
            validate_limits(self.numeric_rule)

    @property
    def color_rule(self) -> Optional[Dict]:
        return self.rules.get('design-system-colors')

    @property
    def numeric_rule(self) -> Optional[Dict]:
        return self.rules.get('numeric-property-limits')


def _name_set(rule: Dict, key: str, default: frozenset) -> frozenset:
    names = rule.get(key)
    if names is None:
        return default
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise ConfigError(f"'no-unused-classes.{key}' must be a list of names")
    return frozenset(names)


def load_config(root: str | Path, config_path: Optional[str | Path] = None) -> Optional[LintConfig]:
    """
    Load the configuration for a project.

    Returns None when no configuration file exists or it has no `rules`.
    Raises ConfigError when the file exists but cannot be parsed.
    """
    path = Path(root) / (config_path or CONFIG_FILENAME)
    if not path.is_file():
        logger.debug(f"No configuration file at {path}")
        return None
    try:
        data = load_jsonc(read_file_content(path))
    except (OSError, ValueError) as e:
        raise ConfigError(f'Error loading config file: {e}') from e
    if not isinstance(data, dict):
        raise ConfigError('Error loading config file: top level must be an object')
    rules = data.get('rules')
    if not rules:
        return None
    if not isinstance(rules, dict):
        raise ConfigError("Error loading config file: 'rules' must be an object")
    config = LintConfig(rules=rules, path=path)
    config.validate()
    return config


def write_default_config(root: str | Path) -> Path:
    """Create the default configuration file. Raises FileExistsError if present."""
    path = Path(root) / CONFIG_FILENAME
    if path.exists():
        raise FileExistsError(str(path))
    path.write_text(DEFAULT_CONFIG, encoding='utf-8')
    return path
