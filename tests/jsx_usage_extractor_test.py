import sys
import os
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from style_sentry.core.alias_resolver import AliasResolver
from style_sentry.core.jsx_usage_extractor import (
    AttributeScan, Call, JSXUsageExtractor, MemberAccess, StringLiteral, naming_variants,
    resolve_style_import,
)
from style_sentry.core.models import MarkupUsage, StyleSheetClasses
from style_sentry.errors import MarkupParseError

PROJECT = os.path.abspath(os.path.join(os.sep, 'proj'))
STYLE_PATH = os.path.join(PROJECT, 'src', 'Card.module.scss')
MARKUP_PATH = os.path.join(PROJECT, 'src', 'Card.jsx')


def card_sheet():
    sheet = StyleSheetClasses()
    for line, name in enumerate(['card', 'card.active', 'title'], start=1):
        sheet.define(name, line)
    sheet.add_child('card', 'active')
    return sheet


def extract(code, stylesheets=None, **kwargs):
    stylesheets = stylesheets if stylesheets is not None else {STYLE_PATH: card_sheet()}
    return JSXUsageExtractor(stylesheets, **kwargs).extract(code, MARKUP_PATH)


def test_static_member_access_is_bound_to_the_style_file():
    usage = extract("""
import styles from './Card.module.scss';

export default function Card() {
  return <div className={styles.title}>Hi</div>;
}
""")
    assert usage.bindings == {'styles': STYLE_PATH}
    record = usage.usages[STYLE_PATH]
    assert 'title' in record.static
    assert record.dynamic_parents == set()


def test_string_literal_keys_and_access_outside_class_attributes():
    usage = extract("""
import * as css from './Card.module.scss';

const heading = css['title'];
export const Card = () => <h1 className={heading}>Hi</h1>;
""")
    assert 'title' in usage.usages[STYLE_PATH].static


def test_string_class_names_are_global_literals():
    usage = extract('export const A = () => <div className="btn  btn-primary" />;')
    assert usage.global_literals == {'btn', 'btn-primary'}
    assert usage.bindings == {}


def test_template_literal_static_text_is_global():
    usage = extract("""
import styles from './Card.module.scss';
export const A = ({ size }) => <div className={`wrapper ${styles.title} size-${size}`} />;
""")
    assert usage.global_literals == {'wrapper'}
    assert 'title' in usage.usages[STYLE_PATH].static


def test_dynamic_access_after_static_sibling_marks_dynamic_parent():
    usage = extract("""
import styles from './Card.module.scss';
import cn from 'classnames';

export const Card = ({ variant }) => (
  <div className={cn(styles.card, styles[variant])} />
);
""")
    assert usage.usages[STYLE_PATH].dynamic_parents == {'card'}


def test_dynamic_access_before_static_sibling_marks_nothing():
    usage = extract("""
import styles from './Card.module.scss';

export const Card = ({ variant }) => (
  <div className={cn(styles[variant], styles.card)} />
);
""")
    assert usage.usages[STYLE_PATH].dynamic_parents == set()
    assert 'card' in usage.usages[STYLE_PATH].static


def test_sibling_without_nested_children_is_not_a_dynamic_parent():
    usage = extract("""
import styles from './Card.module.scss';
export const Card = ({ variant }) => <div className={`${styles.title} ${styles[variant]}`} />;
""")
    assert usage.usages[STYLE_PATH].dynamic_parents == set()


def test_conditional_and_logical_expressions_are_walked():
    usage = extract("""
import styles from './Card.module.scss';
export const Card = ({ on, big }) => (
  <div className={on ? styles.card : 'plain'}>
    <span className={big && 'large'} />
    <span className={clsx({ highlighted: on, [styles.title]: big })} />
  </div>
);
""")
    assert 'card' in usage.usages[STYLE_PATH].static
    assert 'title' in usage.usages[STYLE_PATH].static
    assert {'plain', 'large', 'highlighted'} <= usage.global_literals


def test_unknown_helper_arguments_are_not_class_names():
    usage = extract("export const A = () => <div className={format('not-a-class')} />;")
    assert usage.global_literals == set()


def test_configured_helpers_and_attributes():
    code = "export const A = () => <Button rootClass={merge('accent')} />;"
    assert extract(code).global_literals == set()
    usage = extract(code, class_helpers={'merge'}, class_attributes={'rootClass'})
    assert usage.global_literals == {'accent'}


def test_unresolvable_import_is_not_bound():
    usage = extract("""
import styles from './Missing.module.css';
export const A = () => <div className={styles.card} />;
""")
    assert usage.bindings == {}
    assert usage.usages == {}


def test_typescript_syntax_is_accepted():
    usage = extract("""
import styles from './Card.module.scss';

type Props = { variant: keyof typeof styles };

export function Card({ variant }: Props) {
  return <div className={styles[variant as string]} />;
}
""")
    assert usage.bindings == {'styles': STYLE_PATH}


def test_syntax_error_raises():
    with pytest.raises(MarkupParseError):
        extract('export const A = () => <div className={;')


def test_classify_rejects_unknown_variants():
    extractor = JSXUsageExtractor({})
    usage = MarkupUsage()
    scan_args = (usage, AttributeScan())
    extractor.classify(Call('cn', [StringLiteral('a'), MemberAccess(None, 'b')]), *scan_args)
    assert usage.global_literals == {'a'}
    with pytest.raises(TypeError):
        extractor.classify(object(), *scan_args)


def test_naming_variants():
    assert naming_variants('usedWrapper') >= {'usedWrapper', 'used-wrapper', 'used_wrapper'}
    assert naming_variants('used-wrapper') >= {'usedWrapper', 'used_wrapper'}
    assert naming_variants('used_wrapper') >= {'used-wrapper', 'usedWrapper'}
    assert 'HEADER' in naming_variants('header')


def test_resolve_style_import_order():
    known = [STYLE_PATH, os.path.join(PROJECT, 'shared', 'theme.css')]
    assert resolve_style_import('./Card.module.scss', MARKUP_PATH, known) == STYLE_PATH

    resolver = AliasResolver(PROJECT, aliases={'@shared': 'shared'})
    assert resolve_style_import('@shared/theme.css', MARKUP_PATH, known, resolver) == known[1]

    # same file name somewhere else in the project
    assert resolve_style_import('../../elsewhere/theme.css', MARKUP_PATH, known) == known[1]
    assert resolve_style_import('./nothing.css', MARKUP_PATH, known) is None


def test_class_attributes_inside_other_attribute_values():
    usage = extract("""
import styles from './Card.module.scss';

export const Card = ({ shape }) => (
  <Tooltip
    content={<span className="tip-text">hi</span>}
    icon={<i className={cn(styles.card, styles[shape])} />}
    renderFooter={() => <footer className="card-footer" />}
  />
);
""")
    assert usage.global_literals == {'tip-text', 'card-footer'}
    assert usage.usages[STYLE_PATH].dynamic_parents == {'card'}


def test_comparison_operands_are_not_class_names():
    usage = extract("export const A = ({ v }) => <div className={v === 'x' && 'on'} />;")
    assert usage.global_literals == {'on'}


def test_string_concatenation_and_nullish_fallback():
    usage = extract("""
import styles from './Card.module.scss';
export const A = ({ extra }) => <div className={styles.card + ' ' + (extra ?? 'base')} />;
""")
    assert usage.global_literals == {'base'}
    assert 'card' in usage.usages[STYLE_PATH].static
