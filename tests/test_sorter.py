"""Tests for the ordering engine and the grammar sort policies."""

import pytest

from projects.propsort.model import Property
from projects.propsort.options import ProcessingOptions
from projects.propsort.sorter import SortSpec, compare_text, group_key, sort_properties, strip_quotes
from projects.propsort.sorters import (
    go_type_size,
    hoist_anchors,
    is_keyframes,
    keyframe_offset,
    keyframes_spec,
    spec_for,
    struct_spec,
    stylesheet_spec,
    vendor_prefix,
)


def names(props):
    return [p.name for p in props]


def plain(*keys):
    return [Property(name=k) for k in keys]


# ---------------------------------------------------------------------------
# compare_text
# ---------------------------------------------------------------------------

def test_compare_text_case_insensitive_by_default():
    assert compare_text('Beta', 'alpha', False, False) > 0

def test_compare_text_case_sensitive():
    assert compare_text('Beta', 'alpha', True, False) < 0

def test_compare_text_natural():
    assert compare_text('item2', 'item10', False, True) < 0
    assert compare_text('item2', 'item10', False, False) > 0

def test_compare_text_numbers_by_value():
    assert compare_text('9', '10', False, False) < 0

def test_compare_text_ignores_quotes():
    assert compare_text('"b"', 'a', False, False) > 0

def test_strip_quotes():
    assert strip_quotes("'key'") == 'key'
    assert strip_quotes('key') == 'key'


# ---------------------------------------------------------------------------
# sort_properties
# ---------------------------------------------------------------------------

def test_sort_ascending():
    assert names(sort_properties(plain('name', 'id', 'Email'), SortSpec())) == ['Email', 'id', 'name']

def test_sort_descending_is_reverse():
    props = plain('name', 'id', 'email', 'age')
    asc = names(sort_properties(props, SortSpec()))
    desc = names(sort_properties(props, SortSpec(descending=True)))
    assert desc == list(reversed(asc))

def test_sort_leaves_input_untouched():
    props = plain('b', 'a')
    sort_properties(props, SortSpec())
    assert names(props) == ['b', 'a']

def test_markers_keep_their_slots():
    props = [Property(name='...A', is_spread=True), Property(name='z'), Property(name='...B', is_spread=True),
             Property(name='a')]
    assert names(sort_properties(props, SortSpec())) == ['...A', 'a', '...B', 'z']

def test_markers_with_trailing_marker():
    props = [Property(name='...A', is_spread=True), Property(name='z'), Property(name='...B', is_spread=True),
             Property(name='a'), Property(name='...C', is_spread=True)]
    assert names(sort_properties(props, SortSpec())) == ['...A', 'a', '...B', 'z', '...C']

def test_custom_order_first():
    spec = SortSpec(custom_order=('id', 'name'))
    assert names(sort_properties(plain('email', 'name', 'id', 'age'), spec)) == ['id', 'name', 'age', 'email']

def test_prioritize_required():
    props = [Property(name='a', optional=True), Property(name='b'), Property(name='c', optional=True)]
    assert names(sort_properties(props, SortSpec(prioritize_required=True))) == ['b', 'a', 'c']

def test_group_by_type_puts_methods_first():
    props = [Property(name='b'), Property(name='a', is_method=True), Property(name='c')]
    assert names(sort_properties(props, SortSpec(group_by_type=True))) == ['a', 'b', 'c']
    assert sort_properties(props, SortSpec(group_by_type=True))[0].is_method

def test_nested_sorted_recursively():
    inner = (Property(name='y'), Property(name='x'))
    props = [Property(name='b'), Property(name='a', nested_properties=inner)]
    result = sort_properties(props, SortSpec())
    assert names(result) == ['a', 'b']
    assert names(result[0].nested_properties) == ['x', 'y']

def test_nested_left_alone_when_disabled():
    inner = (Property(name='y'), Property(name='x'))
    props = [Property(name='a', nested_properties=inner)]
    result = sort_properties(props, SortSpec(sort_nested=False))
    assert names(result[0].nested_properties) == ['y', 'x']

def test_positional_lists_keep_order():
    props = [Property(name='[0]', value='"b"'), Property(name='[1]', value='"a"')]
    assert names(sort_properties(props, SortSpec(), positional=True)) == ['[0]', '[1]']

def test_positional_lists_sort_by_value_when_allowed():
    props = [Property(name='[0]', value='"b"'), Property(name='[1]', value='"a"')]
    result = sort_properties(props, SortSpec(reorder_arrays=True), positional=True)
    assert [p.value for p in result] == ['"a"', '"b"']

def test_group_key_none_without_grouping():
    assert group_key(SortSpec()) is None

def test_group_key_follows_custom_order():
    key = group_key(SortSpec(custom_order=('id',)))
    assert key(Property(name='id')) != key(Property(name='other'))


# ---------------------------------------------------------------------------
# grammar policies
# ---------------------------------------------------------------------------

def test_spec_for_unknown_grammar():
    with pytest.raises(ValueError):
        spec_for('cobol', ProcessingOptions())

def test_vendor_prefix():
    assert vendor_prefix('-webkit-transition') == '-webkit-'
    assert vendor_prefix('transition') == ''

def test_vendor_prefixes_sit_before_standard_property():
    props = [Property(name='transition'), Property(name='color'),
             Property(name='-webkit-transition', vendor_prefix='-webkit-')]
    spec = stylesheet_spec(ProcessingOptions(group_vendor_prefixes=True))
    assert names(sort_properties(props, spec)) == ['color', '-webkit-transition', 'transition']

def test_vendor_prefix_order_within_a_property():
    props = [Property(name='transition'),
             Property(name='-moz-transition', vendor_prefix='-moz-'),
             Property(name='-webkit-transition', vendor_prefix='-webkit-')]
    for order in ('asc', 'desc'):
        spec = stylesheet_spec(ProcessingOptions(group_vendor_prefixes=True, sort_order=order))
        assert names(sort_properties(props, spec)) == ['-webkit-transition', '-moz-transition', 'transition']

def test_stylesheet_important_first():
    props = [Property(name='a'), Property(name='b', important=True)]
    spec = stylesheet_spec(ProcessingOptions(sort_by_importance=True))
    assert names(sort_properties(props, spec)) == ['b', 'a']

def test_stylesheet_variables_first():
    props = [Property(name='color'), Property(name='--accent')]
    spec = stylesheet_spec(ProcessingOptions(group_variables=True))
    assert names(sort_properties(props, spec)) == ['--accent', 'color']

def test_stylesheet_category_grouping():
    props = [Property(name='color'), Property(name='width'), Property(name='display')]
    spec = stylesheet_spec(ProcessingOptions(group_by_category=True))
    assert names(sort_properties(props, spec)) == ['display', 'width', 'color']

def test_keyframe_offsets():
    assert keyframe_offset('from') == 0
    assert keyframe_offset('to') == 100
    assert keyframe_offset('50%') == 50
    assert is_keyframes('@keyframes spin')
    assert is_keyframes('@-webkit-keyframes spin')
    assert not is_keyframes('.keyframes')

def test_keyframes_spec_orders_stops():
    props = [Property(name='to', nested_properties=()), Property(name='50%', nested_properties=()),
             Property(name='from', nested_properties=())]
    assert names(sort_properties(props, keyframes_spec())) == ['from', '50%', 'to']

def test_go_type_size():
    assert go_type_size('bool') == 1
    assert go_type_size('*User') == 8
    assert go_type_size('[]string') == 24
    assert go_type_size('[4]int32') == 16

def test_struct_exported_first():
    props = [Property(name='id', value='int'), Property(name='Name', value='string'), Property(name='Age', value='int')]
    assert names(sort_properties(props, struct_spec(ProcessingOptions()))) == ['Age', 'Name', 'id']

def test_struct_embedded_first():
    props = [Property(name='Name', value='string'), Property(name='Base', is_embedded=True)]
    assert names(sort_properties(props, struct_spec(ProcessingOptions()))) == ['Base', 'Name']

def test_struct_embedded_anchored_when_not_grouped():
    props = [Property(name='Zed', value='int'), Property(name='Base', is_embedded=True), Property(name='Alpha', value='int')]
    spec = struct_spec(ProcessingOptions(group_embedded_fields=False))
    assert names(sort_properties(props, spec)) == ['Alpha', 'Base', 'Zed']

def test_struct_by_size():
    props = [Property(name='A', value='string'), Property(name='B', value='bool'), Property(name='C', value='int64')]
    spec = struct_spec(ProcessingOptions(sort_struct_fields='by-size'))
    assert names(sort_properties(props, spec)) == ['B', 'C', 'A']

def test_struct_by_type():
    props = [Property(name='A', value='string'), Property(name='B', value='bool')]
    spec = struct_spec(ProcessingOptions(sort_struct_fields='by-type'))
    assert names(sort_properties(props, spec)) == ['B', 'A']

def test_json_keys_left_alone_when_disabled():
    spec = spec_for('json', ProcessingOptions(sort_object_keys=False))
    assert names(sort_properties(plain('b', 'a'), spec)) == ['b', 'a']

def test_json_schema_grouping():
    props = plain('zeta', 'description', 'name', '$schema')
    spec = spec_for('json', ProcessingOptions(group_by_schema=True))
    assert names(sort_properties(props, spec)) == ['$schema', 'name', 'description', 'zeta']

def test_hoist_anchors_moves_definition_up():
    props = [Property(name='a', full_text='a: *base'), Property(name='b', full_text='b: &base 1')]
    assert names(hoist_anchors(props)) == ['b', 'a']

def test_yaml_spec_keeps_anchor_before_alias():
    props = [Property(name='zbase', full_text='zbase: &base 1'), Property(name='alpha', full_text='alpha: *base')]
    spec = spec_for('yaml', ProcessingOptions())
    assert names(sort_properties(props, spec)) == ['zbase', 'alpha']
