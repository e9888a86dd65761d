"""Tests for the struct grammar (Go)."""

from projects.propsort.index import Grammar
from projects.propsort.model import EntityKind
from projects.propsort.options import ProcessingOptions
from projects.propsort.processor import process_text


def sort(source, **options):
    result = process_text(source, 'go', options)
    assert result.success, result.errors
    return result.processed_text


# ---------------------------------------------------------------------------
# parsing
# ---------------------------------------------------------------------------

def test_parse_struct_fields():
    source = 'package main\n\ntype User struct {\n\tName string `json:"name"`\n\tBase\n\tx, y int\n}\n'
    parsed = Grammar.create('struct').parse(source, ProcessingOptions())
    [entity] = parsed.entities
    assert entity.kind == EntityKind.STRUCT
    assert entity.name == 'User'
    assert entity.is_exported
    name, base, xy = entity.properties
    assert name.struct_tags == '`json:"name"`'
    assert base.is_embedded
    assert xy.name == 'x, y'
    assert xy.value == 'int'

def test_parse_grouped_type_block():
    source = 'package main\n\ntype (\n\tA struct {\n\t\tb int\n\t}\n\tID int\n\tB struct{}\n)\n'
    parsed = Grammar.create('struct').parse(source, ProcessingOptions())
    assert [e.name for e in parsed.entities] == ['A', 'B']
    assert parsed.entities[1].properties == ()


# ---------------------------------------------------------------------------
# sorting through the processor
# ---------------------------------------------------------------------------

def test_aligned_struct_is_realigned():
    source = 'package main\n\ntype User struct {\n\tName  string\n\tAge   int\n\tEmail string\n}\n'
    assert sort(source) == 'package main\n\ntype User struct {\n\tAge   int\n\tEmail string\n\tName  string\n}\n'

def test_exported_fields_first():
    source = 'package main\n\ntype T struct {\n\tid int\n\tName string\n}\n'
    assert sort(source) == 'package main\n\ntype T struct {\n\tName string\n\tid int\n}\n'

def test_visibility_grouping_off():
    source = 'package main\n\ntype T struct {\n\tName string\n\tid int\n}\n'
    assert sort(source, groupByVisibility=False) == 'package main\n\ntype T struct {\n\tid int\n\tName string\n}\n'

def test_embedded_fields_first():
    source = 'package main\n\ntype T struct {\n\tName string\n\tBase\n}\n'
    assert sort(source) == 'package main\n\ntype T struct {\n\tBase\n\tName string\n}\n'

def test_comments_follow_their_fields():
    source = (
        'package main\n\n'
        '// Config holds settings.\n'
        'type Config struct {\n'
        '\t// Port to listen on\n'
        '\tPort int\n'
        '\tHost string // hostname\n'
        '}\n'
    )
    assert sort(source) == (
        'package main\n\n'
        '// Config holds settings.\n'
        'type Config struct {\n'
        '\tHost string // hostname\n'
        '\t// Port to listen on\n'
        '\tPort int\n'
        '}\n'
    )

def test_tags_kept():
    source = 'package main\n\ntype T struct {\n\tB string `json:"b"`\n\tA string `json:"a"`\n}\n'
    assert sort(source) == 'package main\n\ntype T struct {\n\tA string `json:"a"`\n\tB string `json:"b"`\n}\n'

def test_empty_struct_is_success_with_warning():
    source = 'package main\n\ntype Empty struct{}\n'
    result = process_text(source, 'go')
    assert result.success
    assert result.entities_processed == 1
    assert result.warnings == ['No properties found to sort, but entities were processed']
    assert result.processed_text == source

def test_sorted_struct_is_noop():
    source = 'package main\n\ntype T struct {\n\tA int\n\tB int\n}\n'
    result = process_text(source, 'go')
    assert result.success
    assert result.warnings == ['Properties are already sorted in the specified order']
    assert result.processed_text == source
