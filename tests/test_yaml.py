"""Tests for the YAML grammar."""

from projects.propsort.index import Grammar
from projects.propsort.model import EntityKind
from projects.propsort.options import ProcessingOptions
from projects.propsort.processor import process_text


def sort(source, **options):
    result = process_text(source, 'yaml', options)
    assert result.success, result.errors
    return result.processed_text


# ---------------------------------------------------------------------------
# parsing
# ---------------------------------------------------------------------------

def test_parse_documents():
    source = 'b: 1\na: 2\n---\n- x\n- y\n'
    parsed = Grammar.create('yaml').parse(source, ProcessingOptions())
    assert [e.name for e in parsed.entities] == ['document-0', 'document-1']
    first, second = parsed.entities
    assert first.kind == EntityKind.YAML_DOCUMENT
    assert [p.name for p in first.properties] == ['b', 'a']
    assert second.is_array
    assert [p.value for p in second.properties] == ['x', 'y']

def test_parse_merge_key_is_marker():
    source = 'base: &base\n  a: 1\nchild:\n  <<: *base\n  b: 2\n'
    [entity] = Grammar.create('yaml').parse(source, ProcessingOptions()).entities
    child = entity.properties[1]
    assert child.nested_properties[0].is_spread

def test_parse_explicit_key_is_marker():
    [entity] = Grammar.create('yaml').parse('? c\n: 3\nb: 1\n', ProcessingOptions()).entities
    explicit, b = entity.properties
    assert explicit.verbatim
    assert explicit.full_text == '? c\n: 3'
    assert not b.verbatim

def test_parse_error():
    parsed = Grammar.create('yaml').parse('a: [1, 2\n', ProcessingOptions())
    assert parsed.errors and parsed.errors[0].startswith('YAML parsing error')


# ---------------------------------------------------------------------------
# sorting through the processor
# ---------------------------------------------------------------------------

def test_nested_mapping_sorted():
    source = 'name: app\nversion: 1\ndependencies:\n  zlib: 1.2\n  abc: 2.0\n'
    assert sort(source) == 'dependencies:\n  abc: 2.0\n  zlib: 1.2\nname: app\nversion: 1\n'

def test_sequence_items_keep_order():
    source = 'items:\n  - name: b\n    id: 2\n  - name: a\n    id: 1\n'
    assert sort(source) == 'items:\n  - id: 2\n    name: b\n  - id: 1\n    name: a\n'

def test_comments_travel_with_keys():
    source = '# service settings\nport: 80 # http\n# where to bind\nhost: 0.0.0.0\n'
    assert sort(source) == '# where to bind\nhost: 0.0.0.0\n# service settings\nport: 80 # http\n'

def test_multiple_documents_keep_separators():
    source = '---\nb: 1\na: 2\n---\nd: 1\nc: 2\n'
    assert sort(source) == '---\na: 2\nb: 1\n---\nc: 2\nd: 1\n'

def test_leading_separator_dropped_on_request():
    source = '---\nb: 1\na: 2\n'
    assert sort(source, preserveDocumentSeparators=False) == 'a: 2\nb: 1\n'

def test_anchor_stays_before_alias():
    source = 'zeta: &shared\n  k: v\nalpha: *shared\n'
    result = process_text(source, 'yaml')
    assert result.success
    assert result.warnings == ['Properties are already sorted in the specified order']

def test_anchors_sorted_freely_when_not_preserved():
    source = 'zeta: 1\nalpha: 2\n'
    assert sort(source, preserveAnchorsAndAliases=False) == 'alpha: 2\nzeta: 1\n'

def test_custom_key_order():
    source = 'spec: {}\nmetadata: {}\nkind: Pod\napiVersion: v1\n'
    assert sort(source, yamlCustomKeyOrder=['apiVersion', 'kind', 'metadata', 'spec']) == (
        'apiVersion: v1\nkind: Pod\nmetadata: {}\nspec: {}\n'
    )

def test_scalar_document_is_failure():
    result = process_text('just a string\n', 'yaml')
    assert not result.success
    assert result.errors == ['No sortable YAML document found']

def test_output_parses_to_same_data():
    import yaml
    source = 'b:\n  - 1\n  - 2\na:\n  y: true\n  x: null\n'
    output = sort(source)
    assert yaml.safe_load(output) == yaml.safe_load(source)
    assert output == 'a:\n  x: null\n  y: true\nb:\n  - 1\n  - 2\n'

def test_explicit_key_keeps_its_place():
    source = 'b: 1\n? c\n: 3\na: 2\n'
    assert sort(source) == 'a: 2\n? c\n: 3\nb: 1\n'

def test_first_key_comment_in_sequence_item():
    source = 'list:\n  - b: 1\n    # about a\n    a: 2\n'
    output = sort(source)
    assert output == 'list:\n    # about a\n  - a: 2\n    b: 1\n'
    assert sort(output) == output
