"""Tests for comment scanning and attachment."""

import pytest

from projects.propsort.comments import (
    C_STYLE,
    CSS_STYLE,
    HASH_STYLE,
    LineIndex,
    attach_comments,
    convert_comment,
    make_comment,
    reindent,
    scan_gap,
    strip_markers,
)
from projects.propsort.model import ParseError


def spans_of(text, *members):
    return [(text.index(m), text.index(m) + len(m)) for m in members]


# ---------------------------------------------------------------------------
# LineIndex
# ---------------------------------------------------------------------------

def test_line_index_lookups():
    index = LineIndex('ab\n  cd\n')
    assert index.line_of(0) == 1
    assert index.line_of(5) == 2
    assert index.column_of(5) == 2
    assert index.line_text(2) == '  cd'
    assert index.indent_of(5) == '  '
    assert index.line_count() == 3


# ---------------------------------------------------------------------------
# scan_gap and markers
# ---------------------------------------------------------------------------

def test_scan_gap_tokens():
    text = ' , // note\n /* block */ ;'
    kinds = [t.kind for t in scan_gap(text, 0, len(text), C_STYLE)]
    assert kinds == ['punct', 'comment', 'comment', 'punct']

def test_scan_gap_css_has_no_line_comments():
    tokens = scan_gap('//x', 0, 3, CSS_STYLE)
    assert [t.kind for t in tokens] == ['other']

def test_scan_gap_unterminated_block():
    with pytest.raises(ParseError):
        scan_gap('/* open', 0, 7, C_STYLE)

def test_strip_markers():
    assert strip_markers('// hello', C_STYLE) == 'hello'
    assert strip_markers('/**\n * one\n * two\n */', C_STYLE) == 'one\ntwo'
    assert strip_markers('# yaml', HASH_STYLE) == 'yaml'

def test_make_comment_indent_only_at_line_head():
    text = 'a: 1, // tail\n  // own'
    index = LineIndex(text)
    tail = make_comment('// tail', text.index('// tail'), index, C_STYLE)
    own = make_comment('// own', text.index('// own'), index, C_STYLE)
    assert tail.indent == ''
    assert own.indent == '  '
    assert own.type == 'single'


# ---------------------------------------------------------------------------
# attach_comments
# ---------------------------------------------------------------------------

BODY = '{\n  b: 1, // about b\n  // above a\n  a: 2,\n  // dangling\n}'


def test_attach_leading_and_trailing():
    index = LineIndex(BODY)
    spans = spans_of(BODY, 'b: 1', 'a: 2')
    attached = attach_comments(BODY, index, spans, 1, len(BODY) - 1, C_STYLE)
    b, a = attached.members
    assert b.punctuation == ','
    assert [c.text for c in b.trailing] == ['about b']
    assert [c.text for c in a.leading] == ['above a']
    assert [c.text for c in attached.closing] == ['dangling']

def test_attach_head_comment():
    text = '{ // head\n  a: 1\n}'
    index = LineIndex(text)
    attached = attach_comments(text, index, spans_of(text, 'a: 1'), 1, len(text) - 1, C_STYLE)
    assert [c.text for c in attached.head] == ['head']
    assert attached.head_end == text.index('// head') + len('// head')

NEAREST = '{\n  b: 1,\n  // about b\n\n  a: 2,\n}'


def test_leading_policy_gives_comment_to_next_member():
    index = LineIndex(NEAREST)
    spans = spans_of(NEAREST, 'b: 1', 'a: 2')
    attached = attach_comments(NEAREST, index, spans, 1, len(NEAREST) - 1, C_STYLE, 'leading')
    assert [c.text for c in attached.members[1].leading] == ['about b']
    assert attached.members[0].trailing == ()

def test_nearest_policy_gives_hugging_comment_to_previous_member():
    index = LineIndex(NEAREST)
    spans = spans_of(NEAREST, 'b: 1', 'a: 2')
    attached = attach_comments(NEAREST, index, spans, 1, len(NEAREST) - 1, C_STYLE, 'nearest')
    assert [c.text for c in attached.members[0].trailing] == ['about b']
    assert attached.members[1].leading == ()

def test_nearest_policy_without_blank_line_keeps_leading():
    text = '{\n  b: 1,\n  // about a\n  a: 2,\n}'
    index = LineIndex(text)
    attached = attach_comments(text, index, spans_of(text, 'b: 1', 'a: 2'), 1, len(text) - 1, C_STYLE, 'nearest')
    assert [c.text for c in attached.members[1].leading] == ['about a']

def test_attach_rejects_stray_tokens():
    text = '{ a: 1 junk b: 2 }'
    index = LineIndex(text)
    with pytest.raises(ParseError):
        attach_comments(text, index, spans_of(text, 'a: 1', 'b: 2'), 1, len(text) - 1, C_STYLE)


# ---------------------------------------------------------------------------
# reindent and style conversion
# ---------------------------------------------------------------------------

def test_reindent_moves_continuation_lines():
    assert reindent('{\n    a\n  }', '  ', '    ') == '{\n      a\n    }'
    assert reindent('single', '  ', '') == 'single'

def test_convert_comment_styles():
    index = LineIndex('// hi')
    single = make_comment('// hi', 0, index, C_STYLE)
    assert convert_comment(single, 'multi-line', C_STYLE) == '/* hi */'
    assert convert_comment(single, 'preserve', C_STYLE) == '// hi'
    block = make_comment('/* a */', 0, LineIndex('/* a */'), C_STYLE)
    assert convert_comment(block, 'single-line', C_STYLE) == '// a'
    # css has no line comments to convert into
    assert convert_comment(block, 'single-line', CSS_STYLE) == '/* a */'
