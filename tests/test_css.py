"""Tests for the stylesheet grammar (CSS, SCSS, LESS, Sass)."""

from projects.propsort.index import Grammar
from projects.propsort.model import EntityKind, FileType
from projects.propsort.options import ProcessingOptions
from projects.propsort.processor import process_text


def sort(source, file_type='css', **options):
    result = process_text(source, file_type, options)
    assert result.success, result.errors
    return result.processed_text


# ---------------------------------------------------------------------------
# parsing
# ---------------------------------------------------------------------------

def test_parse_rule_declarations():
    source = '.btn {\n  color: red !important;\n  -webkit-transition: none;\n}\n'
    [entity] = Grammar.create('stylesheet').parse(source, ProcessingOptions()).entities
    assert entity.kind == EntityKind.STYLE_RULE
    assert entity.name == '.btn'
    color, transition = entity.properties
    assert color.important
    assert transition.vendor_prefix == '-webkit-'
    assert color.trailing_punctuation == ';'

def test_parse_skips_statements_and_empty_rules():
    source = '@import "base.css";\n.empty {}\n.a { color: red; }\n'
    parsed = Grammar.create('stylesheet').parse(source, ProcessingOptions())
    assert [e.name for e in parsed.entities] == ['.a']

def test_parse_scss_nested_rule_is_anchored():
    source = '.card {\n  $gap: 4px;\n  padding: 0;\n  &:hover {\n    color: red;\n  }\n}\n'
    [entity] = Grammar.create('stylesheet').parse(source, ProcessingOptions(), FileType.SCSS).entities
    variable, padding, hover = entity.properties
    assert variable.verbatim
    assert not padding.verbatim
    assert hover.verbatim
    assert [p.name for p in hover.nested_properties] == ['color']

def test_parse_unbalanced_braces():
    parsed = Grammar.create('stylesheet').parse('.a { color: red;\n', ProcessingOptions())
    assert parsed.errors and 'missing' in parsed.errors[0]

def test_parse_stray_closing_brace():
    parsed = Grammar.create('stylesheet').parse('.a { color: red; }\n}\n', ProcessingOptions())
    assert parsed.entities == []
    assert parsed.errors[0].startswith('CSS parsing error at line')

def test_parse_media_block_holds_rules():
    source = '@media (min-width: 1px) {\n  .b { x: 1; }\n  .a { y: 2; }\n}\n'
    [entity] = Grammar.create('stylesheet').parse(source, ProcessingOptions()).entities
    assert entity.name == '@media (min-width: 1px)'
    assert [p.name for p in entity.properties] == ['.b', '.a']
    assert all(p.verbatim for p in entity.properties)


# ---------------------------------------------------------------------------
# sorting through the processor
# ---------------------------------------------------------------------------

def test_rule_sorted_with_comments():
    source = '.btn {\n  color: red;\n  background: blue;\n  /* spacing */\n  margin: 0;\n}\n'
    assert sort(source) == '.btn {\n  background: blue;\n  color: red;\n  /* spacing */\n  margin: 0;\n}\n'

def test_inline_rule():
    assert sort('a { z-index: 1; color: red }\n') == 'a { color: red; z-index: 1 }\n'

def test_several_rules():
    source = '.a {\n  b: 1;\n  a: 2;\n}\n\n.b {\n  d: 1;\n  c: 2;\n}\n'
    assert sort(source) == '.a {\n  a: 2;\n  b: 1;\n}\n\n.b {\n  c: 2;\n  d: 1;\n}\n'

def test_scss_nested_rules_sorted_in_place():
    source = (
        '.card {\n'
        '  padding: 0;\n'
        '  &:hover {\n'
        '    color: red;\n'
        '    background: blue;\n'
        '  }\n'
        '}\n'
    )
    assert sort(source, 'scss') == (
        '.card {\n'
        '  padding: 0;\n'
        '  &:hover {\n'
        '    background: blue;\n'
        '    color: red;\n'
        '  }\n'
        '}\n'
    )

def test_scss_line_comments():
    source = '.a {\n  // text color\n  color: red;\n  border: 0;\n}\n'
    assert sort(source, 'scss') == '.a {\n  border: 0;\n  // text color\n  color: red;\n}\n'

def test_less_rule():
    assert sort('.m { width: 1px; height: 2px; }\n', 'less') == '.m { height: 2px; width: 1px; }\n'

def test_sass_indented_rule():
    source = '.nav\n  color: red\n  background: blue\n'
    assert sort(source, 'sass') == '.nav\n  background: blue\n  color: red\n'

def test_keyframes_by_offset():
    source = '@keyframes pulse {\n  to { opacity: 0; }\n  from { opacity: 1; }\n}\n'
    assert sort(source, sortKeyframes=True) == '@keyframes pulse {\n  from { opacity: 1; }\n  to { opacity: 0; }\n}\n'

def test_inline_nested_blocks_keep_their_spacing():
    source = '@keyframes k { to { b: 1 } from { b: 0 } }\n'
    assert sort(source, sortKeyframes=True) == '@keyframes k { from { b: 0 } to { b: 1 } }\n'

def test_vendor_prefix_grouping():
    source = '.a {\n  transition: none;\n  color: red;\n  -webkit-transition: none;\n}\n'
    assert sort(source, groupVendorPrefixes=True) == (
        '.a {\n  color: red;\n  -webkit-transition: none;\n  transition: none;\n}\n'
    )

def test_comment_only_stylesheet_is_success_with_warning():
    result = process_text('/* nothing here */\n', 'css')
    assert result.success
    assert result.entities_processed == 0
    assert result.warnings == ['No CSS rules found to sort']
    assert result.processed_text == '/* nothing here */\n'
