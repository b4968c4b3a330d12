"""
Report Builder Module
Renders lint violations as a text report (Jinja2 template) or as JSON.
"""

import json
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader

from .core.css_style_checker import COLOR_RULE, NUMERIC_RULE
from .core.models import UNUSED_CLASS_RULE, Violation

TEMPLATES_DIR = Path(__file__).parent / 'templates'

NO_CONFIG_MESSAGE = 'No configuration found. Run "style-sentry init" to create a config file.'
CLEAN_MESSAGE = 'No linting issues found. Your styles are looking great!'


class ReportBuilder:
    def __init__(self, violations: List[Violation]):
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.template = self.env.get_template('report.txt.j2')
        self.violations = violations

    def collect_metrics(self) -> Dict:
        """Split violations per rule; unused classes are grouped by file."""
        unused_by_file = {}
        for v in self.violations:
            if v.rule == UNUSED_CLASS_RULE:
                unused_by_file.setdefault(v.file, []).append(v)
        return {
            'unused_by_file': unused_by_file,
            'color_violations': [v for v in self.violations if v.rule == COLOR_RULE],
            'numeric_violations': [v for v in self.violations if v.rule == NUMERIC_RULE],
        }

    def generate_text_report(self) -> str:
        if not self.violations:
            return CLEAN_MESSAGE + '\n'
        return self.template.render(**self.collect_metrics())

    def generate_json_report(self) -> str:
        return json.dumps([v.to_dict() for v in self.violations], indent=2)


def render_missing_config(as_json: bool) -> str:
    if as_json:
        return json.dumps({'error': NO_CONFIG_MESSAGE}, indent=2)
    return NO_CONFIG_MESSAGE
