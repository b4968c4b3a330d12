"""
Module Alias Resolver
Builds the import-prefix -> directory table used to resolve aliased style
imports such as `@styles/button.module.scss`.

Sources are tried in priority order and the first non-empty one wins:
  1. tsconfig.json / jsconfig.json `compilerOptions.paths` at the root
  2. the same table in a nested test configuration
  3. the `alias: { ... }` block of a Vite/webpack config
  4. the `imports` map of package.json
"""

import logging
import os
import re
from pathlib import Path
from typing import Dict, Optional

from ..utils.file_utils import load_jsonc, read_file_content

logger = logging.getLogger(__name__)

ROOT_TS_CONFIGS = ('tsconfig.json', 'jsconfig.json')
TEST_TS_CONFIGS = (os.path.join('test', 'tsconfig.json'), os.path.join('tests', 'tsconfig.json'))
BUNDLER_CONFIGS = (
    'vite.config.js', 'vite.config.ts', 'vite.config.mjs', 'vite.config.mts',
    'webpack.config.js', 'webpack.config.ts',
)

_ALIAS_BLOCK = re.compile(r'alias\s*:\s*\{([^{}]*)\}', re.DOTALL)
_ALIAS_ENTRY = re.compile(r'''(['"])([^'"]+)\1\s*:\s*((?:\([^)]*\)|[^,\n}])+)''')
_QUOTED = re.compile(r'''(['"])([^'"]*)\1''')


def _strip_wildcard(pattern: str) -> str:
    if pattern.endswith('/*'):
        return pattern[:-2]
    return pattern.rstrip('*')


def _read_json(path: Path) -> Optional[dict]:
    if not path.is_file():
        return None
    try:
        data = load_jsonc(read_file_content(path))
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read alias config {path}: {e}")
        return None
    return data if isinstance(data, dict) else None


def parse_ts_paths(config: dict) -> Dict[str, str]:
    """`"prefix/*": ["dir/*"]` -> {prefix: dir}"""
    paths = (config.get('compilerOptions') or {}).get('paths') or {}
    aliases = {}
    if not isinstance(paths, dict):
        return aliases
    for pattern, targets in paths.items():
        if isinstance(targets, str):
            targets = [targets]
        if not targets or not isinstance(targets[0], str):
            continue
        aliases[_strip_wildcard(pattern)] = _strip_wildcard(targets[0])
    return aliases


def parse_bundler_aliases(source: str) -> Dict[str, str]:
    """Extract quoted key/value pairs from an `alias: { ... }` block."""
    aliases = {}
    block = _ALIAS_BLOCK.search(source)
    if not block:
        return aliases
    for entry in _ALIAS_ENTRY.finditer(block.group(1)):
        # path.resolve(__dirname, 'src/styles') -> last quoted string
        values = _QUOTED.findall(entry.group(3))
        if not values:
            continue
        directory = values[-1][1]
        if directory.startswith('./'):
            directory = directory[2:]
        aliases[_strip_wildcard(entry.group(2))] = directory
    return aliases


def parse_package_imports(package: dict) -> Dict[str, str]:
    """`"#styles/*": "./src/styles/*"` -> {styles: ./src/styles}"""
    imports = package.get('imports') or {}
    aliases = {}
    if not isinstance(imports, dict):
        return aliases
    for key, target in imports.items():
        if isinstance(target, dict):
            target = target.get('default') or next(
                (value for value in target.values() if isinstance(value, str)), None)
        if not isinstance(target, str) or len(key) < 2:
            continue
        aliases[_strip_wildcard(key[1:])] = _strip_wildcard(target)
    return aliases


class AliasResolver:
    def __init__(self, root: str | Path, aliases: Optional[Dict[str, str]] = None):
        self.root = Path(root)
        self.aliases = aliases if aliases is not None else self.load_aliases()

    def load_aliases(self) -> Dict[str, str]:
        """Try each alias source in priority order; the first non-empty map wins."""
        sources = (
            ('root tsconfig', self._from_ts_configs, ROOT_TS_CONFIGS),
            ('test tsconfig', self._from_ts_configs, TEST_TS_CONFIGS),
            ('bundler config', self._from_bundler_configs, BUNDLER_CONFIGS),
            ('package.json imports', self._from_package_imports, ('package.json',)),
        )
        for label, loader, candidates in sources:
            aliases = loader(candidates)
            if aliases:
                logger.debug(f"Using {len(aliases)} path aliases from {label}")
                return aliases
        return {}

    def _from_ts_configs(self, candidates) -> Dict[str, str]:
        for name in candidates:
            config = _read_json(self.root / name)
            if config:
                aliases = parse_ts_paths(config)
                if aliases:
                    return aliases
        return {}

    def _from_bundler_configs(self, candidates) -> Dict[str, str]:
        for name in candidates:
            path = self.root / name
            if not path.is_file():
                continue
            try:
                aliases = parse_bundler_aliases(read_file_content(path))
            except OSError as e:
                logger.warning(f"Could not read bundler config {path}: {e}")
                continue
            if aliases:
                return aliases
        return {}

    def _from_package_imports(self, candidates) -> Dict[str, str]:
        for name in candidates:
            package = _read_json(self.root / name)
            if package:
                aliases = parse_package_imports(package)
                if aliases:
                    return aliases
        return {}

    def resolve(self, import_path: str) -> str:
        """
        Map an aliased import onto an absolute path under the project root.
        The first prefix (in table order) the import starts with wins;
        non-aliased imports are returned unchanged.
        """
        for prefix, directory in self.aliases.items():
            if prefix and import_path.startswith(prefix):
                mapped = directory + import_path[len(prefix):]
                return os.path.normpath(os.path.join(str(self.root), mapped))
        return import_path
