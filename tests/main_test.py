import sys
import os
import json
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from style_sentry.config import CONFIG_FILENAME
from style_sentry.main import main
from style_sentry.report_builder import CLEAN_MESSAGE, NO_CONFIG_MESSAGE


@pytest.fixture
def project(tmp_path):
    (tmp_path / 'a.scss').write_text('.used { color: #000; }\n.orphan { z-index: 500; }\n', encoding='utf-8')
    (tmp_path / 'b.jsx').write_text(
        "import styles from './a.scss';\nexport const B = () => <i className={styles.used} />;\n",
        encoding='utf-8')
    return tmp_path


def write_config(root, rules):
    (root / CONFIG_FILENAME).write_text(json.dumps({'rules': rules}), encoding='utf-8')


def test_init_creates_config_once(tmp_path, capsys):
    assert main(['init', '--root', str(tmp_path)]) == 0
    assert (tmp_path / CONFIG_FILENAME).is_file()
    assert f'Successfully created {CONFIG_FILENAME}' in capsys.readouterr().out

    assert main(['init', '--root', str(tmp_path)]) == 0
    assert f'{CONFIG_FILENAME} already exists.' in capsys.readouterr().out


def test_missing_config(project, capsys):
    assert main(['--root', str(project)]) == 0
    assert capsys.readouterr().out.strip() == NO_CONFIG_MESSAGE

    assert main(['--root', str(project), '--json']) == 0
    assert json.loads(capsys.readouterr().out) == {'error': NO_CONFIG_MESSAGE}


def test_text_report(project, capsys):
    write_config(project, {'no-unused-classes': True})
    assert main(['--root', str(project)]) == 0
    out = capsys.readouterr().out
    assert 'Unused CSS classes found:' in out
    assert '- Unused class: orphan (line 2)' in out
    assert 'Unused class: used' not in out


def test_json_report_runs_every_rule(project, capsys):
    write_config(project, {
        'no-unused-classes': {'enabled': True},
        'design-system-colors': {'allowedColors': ['#000']},
        'numeric-property-limits': {'z-index': {'threshold': 100, 'operator': '>'}},
    })
    assert main(['--root', str(project), '--json']) == 0
    data = json.loads(capsys.readouterr().out)
    assert [(d['rule'], d['line']) for d in data] == [
        ('no-unused-classes', 2),
        ('numeric-property-limits', 2),
    ]


def test_clean_project(project, capsys):
    write_config(project, {'no-unused-classes': False})
    assert main(['--root', str(project)]) == 0
    assert capsys.readouterr().out == CLEAN_MESSAGE + '\n'


def test_custom_config_path(project, capsys):
    (project / 'lint.json').write_text(json.dumps({'rules': {'no-unused-classes': True}}), encoding='utf-8')
    assert main(['--root', str(project), '--config', 'lint.json', '--json']) == 0
    assert [d['class'] for d in json.loads(capsys.readouterr().out)] == ['orphan']


def test_broken_config_exits_with_error(project, capsys):
    (project / CONFIG_FILENAME).write_text('{ not json', encoding='utf-8')
    assert main(['--root', str(project)]) == 1
    assert 'Error loading config file' in capsys.readouterr().err


@pytest.mark.parametrize('rules', [
    {'no-unused-classes': {'classHelpers': 'cn'}},
    {'numeric-property-limits': {'z-index': {'threshold': 'lots'}}},
])
def test_invalid_rule_config_exits_with_error(project, capsys, rules):
    write_config(project, rules)
    assert main(['--root', str(project)]) == 1
    captured = capsys.readouterr()
    assert captured.out == ''
    assert 'numeric-property-limits' in captured.err or 'classHelpers' in captured.err
