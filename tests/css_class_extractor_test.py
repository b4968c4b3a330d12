import sys
import os
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from style_sentry.core.css_class_extractor import CSSClassExtractor, dialect_for, split_selectors, extract_file
from style_sentry.errors import StyleParseError


def extract(css, dialect='scss'):
    return CSSClassExtractor(dialect).extract(css)


def test_selector_list_defines_every_class():
    sheet = extract('.a, .b > .c { color: red; }', 'css')
    assert list(sheet.definitions) == ['a', 'b', 'c']
    assert sheet.nesting == {}


def test_nested_parent_reference_defines_dotted_identifier():
    scss = """
.card {
  padding: 0;
  &.active { color: red; }
  &.disabled { opacity: 0.5; }
}
"""
    sheet = extract(scss)
    assert sheet.definitions == {'card': 2, 'card.active': 4, 'card.disabled': 5}
    assert sheet.nesting == {'card': {'active', 'disabled'}}
    assert sheet.has_children('card')
    assert not sheet.has_children('active')


def test_descendant_inside_nested_rule_is_simple():
    sheet = extract('.menu { .item { color: red; } }')
    assert 'menu' in sheet.definitions
    assert 'item' in sheet.definitions
    assert 'menu.item' not in sheet.definitions
    assert sheet.nesting == {}


def test_suffix_reference_builds_class_name():
    sheet = extract('.btn { &-primary { color: blue; } &__icon { width: 1em; } }')
    assert set(sheet.definitions) == {'btn', 'btn-primary', 'btn__icon'}


def test_conditional_at_rules_keep_the_enclosing_rule():
    scss = """
.panel {
  @media (min-width: 600px) {
    &.wide { width: 100%; }
  }
}
"""
    sheet = extract(scss)
    assert 'panel.wide' in sheet.definitions
    assert sheet.nesting == {'panel': {'wide'}}


def test_keyframes_and_font_face_are_skipped():
    css = """
@keyframes spin { from { transform: rotate(0); } to { transform: rotate(360deg); } }
@font-face { font-family: Foo; src: url(foo.woff); }
.spinner { animation: spin 1s; }
"""
    sheet = extract(css, 'css')
    assert list(sheet.definitions) == ['spinner']


def test_first_definition_keeps_its_line():
    sheet = extract('.a { color: red; }\n\n.a { color: blue; }', 'css')
    assert sheet.definitions == {'a': 1}


def test_line_comments_are_ignored_in_scss():
    scss = """
// .ghost { color: red; }
.real { background: url(http://example.com/a.png); }
"""
    sheet = extract(scss)
    assert list(sheet.definitions) == ['real']


def test_interpolated_class_names_are_not_defined():
    sheet = extract('.icon-#{$name} { color: red; } .plain { color: blue; }')
    assert list(sheet.definitions) == ['plain']


def test_mixin_bodies_define_simple_classes():
    sheet = extract('@mixin themed { &.dark { color: white; } }')
    assert 'dark' in sheet.definitions
    assert sheet.nesting == {}


def test_less_parametric_mixins_fold_into_simple_classes():
    less = """
.rounded(@radius: 4px) {
  border-radius: @radius;
  &.pill { border-radius: 999px; }
}
.real { color: blue; }
"""
    sheet = extract(less, 'less')
    assert list(sheet.definitions) == ['pill', 'real']
    assert sheet.definitions['pill'] == 4
    assert sheet.nesting == {}


def test_unbalanced_braces_raise_parse_error():
    with pytest.raises(StyleParseError):
        extract('.a { color: red; } }', 'css')


def test_split_selectors_respects_parentheses():
    assert split_selectors('.a:not(.b, .c), .d') == ['.a:not(.b, .c)', '.d']


def test_dialect_from_extension(tmp_path):
    assert dialect_for('x/button.module.scss') == 'scss'
    assert dialect_for('x/theme.less') == 'less'
    assert dialect_for('x/plain.css') == 'css'
    path = tmp_path / 'button.module.scss'
    path.write_text('.button { &.primary { color: red; } }', encoding='utf-8')
    sheet = extract_file(path)
    assert set(sheet.definitions) == {'button', 'button.primary'}
