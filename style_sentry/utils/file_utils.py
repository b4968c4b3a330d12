"""
File Utilities Module
Project file discovery and safe reading for the linter.
"""

import json
import os
import re
from pathlib import Path
from typing import Dict, List

# File extension categories
EXTENSION_GROUPS = {
    'style': {'.css', '.scss', '.less'},
    'markup': {'.jsx', '.tsx'},
}

EXCLUDED_DIRS = {'node_modules'}

# Strings are kept, comments dropped
_JSON_COMMENT = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')


def normalize_path(path: str | Path) -> Path:
    """Convert string path to normalized Path object."""
    return Path(path).resolve()


def is_hidden(path: Path) -> bool:
    """Check if a file or directory is hidden."""
    return path.name.startswith('.')


def _walk(base_path: Path):
    # Sorted walk so repeated runs see files in the same order
    for root, dirs, files in os.walk(base_path):
        dirs[:] = sorted(
            d for d in dirs
            if d not in EXCLUDED_DIRS and not is_hidden(Path(root) / d)
        )
        for file in sorted(files):
            file_path = Path(root) / file
            if not is_hidden(file_path):
                yield file_path


def collect_files(base_path: str | Path) -> Dict[str, List[Path]]:
    """
    Collect and categorize files from a directory.

    Returns:
        {'style': [css/scss/less paths], 'markup': [jsx/tsx paths]}
    """
    result = {category: [] for category in EXTENSION_GROUPS}
    for file_path in _walk(normalize_path(base_path)):
        suffix = file_path.suffix.lower()
        for category, extensions in EXTENSION_GROUPS.items():
            if suffix in extensions:
                result[category].append(file_path)
                break
    return result


def read_file_content(file_path: str | Path) -> str:
    """
    Safely read file content with proper encoding.

    Raises:
        FileNotFoundError: If file doesn't exist
        OSError: If file can't be read
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    except UnicodeDecodeError:
        # Fallback to replacement characters if the file is not UTF-8
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()


def load_jsonc(text: str):
    """Parse JSON that may carry comments and trailing commas (tsconfig style)."""
    text = _JSON_COMMENT.sub(lambda m: m.group(1) or '', text)
    text = _TRAILING_COMMA.sub(lambda m: m.group(1) or m.group(2), text)
    return json.loads(text)
