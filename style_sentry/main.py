#!/usr/bin/env python3
"""
Style Sentry
Main entry point: lints a project's stylesheets against its JSX/TSX markup.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import CONFIG_FILENAME, LintConfig, load_config, write_default_config
from .core.css_style_checker import check_design_system_colors, check_numeric_property_limits
from .core.models import Violation
from .core.unused_class_engine import find_unused_classes
from .errors import ConfigError
from .report_builder import ReportBuilder, render_missing_config
from .utils.file_utils import collect_files

logger = logging.getLogger(__name__)


def run_rules(root: Path, config: LintConfig) -> List[Violation]:
    """Run every configured rule; unused classes first, then declaration rules."""
    violations = find_unused_classes(root, config.unused_class_options())
    style_files = collect_files(root)['style']
    violations.extend(check_design_system_colors(root, style_files, config.color_rule))
    violations.extend(check_numeric_property_limits(root, style_files, config.numeric_rule))
    return violations


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='style-sentry',
        description='A custom CSS linter for your team.',
    )
    parser.add_argument('command', nargs='?', choices=['init'],
                        help=f'init: create a default {CONFIG_FILENAME}')
    parser.add_argument('-c', '--config', help='Path to custom config file')
    parser.add_argument('--json', action='store_true', help='Output results in JSON format')
    parser.add_argument('--root', default='.', help='Project root to lint (default: current directory)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s: %(message)s',
    )
    root = Path(args.root).resolve()

    if args.command == 'init':
        try:
            path = write_default_config(root)
        except FileExistsError:
            print(f'{CONFIG_FILENAME} already exists.')
            return 0
        print(f'Successfully created {path.name}')
        return 0

    try:
        config = load_config(root, args.config)
        if config is None:
            print(render_missing_config(args.json))
            return 0
        violations = run_rules(root, config)
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return 1

    report = ReportBuilder(violations)
    if args.json:
        print(report.generate_json_report())
    else:
        print(report.generate_text_report(), end='')
    return 0


if __name__ == "__main__":
    sys.exit(main())
