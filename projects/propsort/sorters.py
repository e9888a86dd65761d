from __future__ import annotations

import re
from dataclasses import replace
from typing import Any, Callable

from .model import Entity, Property
from .options import ProcessingOptions
from .sorter import SortSpec, sort_properties, strip_quotes

# Grammar policies layered over the generic sorter.
# Each builder turns immutable options into a SortSpec; group() results double as the
# boundaries used for blank_lines_between_groups when reconstructing.

VENDOR_PREFIXES = ('-webkit-', '-moz-', '-ms-', '-o-')

PROPERTY_CATEGORIES: dict[str, tuple[str, ...]] = {
    'positioning': ('position', 'top', 'right', 'bottom', 'left', 'z-index', 'inset', 'float', 'clear'),
    'display': ('display', 'visibility', 'opacity', 'overflow', 'overflow-x', 'overflow-y', 'clip', 'box-sizing'),
    'flexbox': ('flex', 'flex-grow', 'flex-shrink', 'flex-basis', 'flex-direction', 'flex-wrap', 'flex-flow',
                'justify-content', 'align-items', 'align-content', 'align-self', 'order', 'gap', 'row-gap', 'column-gap'),
    'grid': ('grid', 'grid-template', 'grid-template-columns', 'grid-template-rows', 'grid-template-areas',
             'grid-area', 'grid-column', 'grid-row', 'grid-column-start', 'grid-column-end', 'grid-row-start',
             'grid-row-end', 'grid-auto-columns', 'grid-auto-rows', 'grid-auto-flow', 'grid-gap'),
    'box-model': ('width', 'min-width', 'max-width', 'height', 'min-height', 'max-height',
                  'margin', 'margin-top', 'margin-right', 'margin-bottom', 'margin-left',
                  'padding', 'padding-top', 'padding-right', 'padding-bottom', 'padding-left'),
    'border': ('border', 'border-width', 'border-style', 'border-color', 'border-top', 'border-right',
               'border-bottom', 'border-left', 'border-radius', 'outline', 'outline-width', 'outline-style',
               'outline-color', 'outline-offset', 'box-shadow'),
    'background': ('background', 'background-color', 'background-image', 'background-repeat',
                   'background-position', 'background-size', 'background-attachment', 'background-clip',
                   'background-origin'),
    'typography': ('color', 'font', 'font-family', 'font-size', 'font-weight', 'font-style', 'font-variant',
                   'line-height', 'letter-spacing', 'word-spacing', 'text-align', 'text-decoration',
                   'text-transform', 'text-indent', 'text-shadow', 'white-space', 'word-break', 'word-wrap',
                   'vertical-align'),
    'animation': ('animation', 'animation-name', 'animation-duration', 'animation-timing-function',
                  'animation-delay', 'animation-iteration-count', 'animation-direction', 'animation-fill-mode',
                  'animation-play-state'),
    'transition': ('transition', 'transition-property', 'transition-duration', 'transition-timing-function',
                   'transition-delay'),
    'transform': ('transform', 'transform-origin', 'transform-style', 'perspective', 'perspective-origin',
                  'backface-visibility'),
}
_CATEGORY_RANK = {name: rank for rank, names in enumerate(PROPERTY_CATEGORIES.values()) for name in names}

# Schema-aware key groups for JSON and YAML, in output order; unknown keys go last
SCHEMA_GROUPS: dict[str, tuple[str, ...]] = {
    'metadata': ('$schema', '$id', '$ref', 'id', 'type', 'version'),
    'required': ('name', 'title', 'required', 'properties'),
    'optional': ('description', 'default', 'example', 'examples'),
}
_SCHEMA_RANK = {key: rank for rank, keys in enumerate(SCHEMA_GROUPS.values()) for key in keys}
_NESTED_RANK = len(SCHEMA_GROUPS)

# Approximate field sizes in bytes on 64-bit targets for by-size ordering
GO_TYPE_SIZES: dict[str, int] = {
    'bool': 1, 'byte': 1, 'int8': 1, 'uint8': 1,
    'int16': 2, 'uint16': 2,
    'int32': 4, 'uint32': 4, 'rune': 4, 'float32': 4,
    'int': 8, 'int64': 8, 'uint': 8, 'uint64': 8, 'float64': 8, 'uintptr': 8, 'complex64': 8,
    'string': 16, 'error': 16, 'interface{}': 16, 'any': 16, 'complex128': 16,
}
GO_TAG_KEYS = ('json', 'db', 'xml', 'gorm', 'validate')


def base_spec(options: ProcessingOptions) -> SortSpec:
    return SortSpec(
        descending=options.descending,
        case_sensitive=options.case_sensitive,
        natural=options.natural_sort,
        custom_order=options.custom_order,
        prioritize_required=options.prioritize_required,
        group_by_type=options.group_by_type,
        sort_nested=options.sort_nested_objects,
    )


def sort_entity(entity: Entity, spec: SortSpec) -> Entity:
    props = sort_properties(entity.properties, spec, positional=entity.is_array)
    return replace(entity, properties=tuple(props))


# ---------- declaration sources


def declaration_spec(options: ProcessingOptions) -> SortSpec:
    spec = base_spec(options)
    if options.separate_methods:
        spec = replace(spec, group=lambda p: 1 if p.is_method else 0)
    return spec


# ---------- stylesheets


def vendor_prefix(name: str) -> str:
    lowered = name.lower()
    for prefix in VENDOR_PREFIXES:
        if lowered.startswith(prefix):
            return prefix
    return ''


def css_category(name: str) -> int:
    name = name.lower()
    prefix = vendor_prefix(name)
    return _CATEGORY_RANK.get(name[len(prefix):], len(PROPERTY_CATEGORIES))


def keyframe_offset(selector: str) -> float:
    # 'from' = 0, 'to' = 100, '50%' = 50; lists such as '0%, 100%' use their first stop
    first = selector.split(',')[0].strip().lower()
    if first == 'from':
        return 0.0
    if first == 'to':
        return 100.0
    try:
        return float(first.rstrip('%'))
    except ValueError:
        return 1000.0


def is_keyframes(name: str) -> bool:
    return re.match(r'@(-[a-z]+-)?keyframes\b', name.strip(), re.IGNORECASE) is not None


def stylesheet_spec(options: ProcessingOptions) -> SortSpec:
    spec = base_spec(options)

    def group(prop: Property) -> tuple:
        rank: list[Any] = []
        if options.group_variables:
            rank.append(0 if prop.name.startswith('--') else 1)
        if options.sort_by_importance:
            rank.append(0 if prop.important else 1)
        if options.group_by_category:
            rank.append(css_category(prop.name))
        return tuple(rank)

    changes: dict[str, Any] = {}
    if options.group_variables or options.sort_by_importance or options.group_by_category:
        changes['group'] = group
    if options.group_vendor_prefixes:
        # Prefixed variants sit directly before their standard property
        changes['names'] = lambda p: (p.name[len(vendor_prefix(p.name)):],)
        changes['tiebreak'] = lambda p: VENDOR_PREFIXES.index(p.vendor_prefix) if p.vendor_prefix else len(VENDOR_PREFIXES)
    return replace(spec, **changes)


def keyframes_spec() -> SortSpec:
    # Keyframe stops ordered by offset; statements between stops stay put
    return SortSpec(
        sort_nested=False,
        group=lambda p: keyframe_offset(p.name),
        names=lambda p: (),
        is_anchor=lambda p: p.nested_properties is None,
    )


# ---------- structs


def go_base_type(value: str) -> str:
    return value.strip().lstrip('*').strip()


def go_type_size(value: str) -> int:
    value = value.strip()
    if value.startswith('*') or value.startswith('map[') or value.startswith('chan ') or value.startswith('func'):
        return 8
    if value.startswith('[]'):
        return 24
    match = re.match(r'^\[(\d+)\](.+)$', value)
    if match:
        return int(match.group(1)) * go_type_size(match.group(2))
    if value in GO_TYPE_SIZES:
        return GO_TYPE_SIZES[value]
    if value.startswith('interface'):
        return 16
    if '.' in value:
        return 999
    return 1000 + len(value)


def go_tag_group(tags: str | None) -> int:
    if not tags:
        return len(GO_TAG_KEYS) + 1
    for rank, key in enumerate(GO_TAG_KEYS):
        if re.search(rf'\b{key}:"', tags):
            return rank
    return len(GO_TAG_KEYS)


def go_exported(name: str) -> bool:
    name = go_base_type(name).split('.')[-1]
    return name[:1].isupper()


def struct_spec(options: ProcessingOptions) -> SortSpec:
    spec = base_spec(options)
    mode = options.sort_struct_fields

    def group(prop: Property) -> tuple:
        rank: list[Any] = []
        if options.group_embedded_fields:
            rank.append(0 if prop.is_embedded else 1)
        if options.group_by_visibility:
            rank.append(0 if go_exported(prop.name) else 1)
        if mode == 'by-size':
            rank.append(go_type_size(prop.value))
        elif mode == 'preserve-tags':
            rank.append(go_tag_group(prop.struct_tags))
        return tuple(rank)

    def names(prop: Property) -> tuple[str, ...]:
        name = go_base_type(prop.name) if prop.is_embedded else prop.name
        if mode == 'by-type':
            return (go_base_type(prop.value), name)
        return (name,)

    def is_anchor(prop: Property) -> bool:
        return prop.is_marker or (prop.is_embedded and not options.group_embedded_fields)

    return replace(spec, group=group, names=names, is_anchor=is_anchor)


# ---------- JSON and YAML


def schema_group(prop: Property) -> int:
    key = strip_quotes(prop.name)
    if key in _SCHEMA_RANK:
        return _SCHEMA_RANK[key]
    if prop.nested_properties is not None:
        return _NESTED_RANK
    return _NESTED_RANK + 1


def json_spec(options: ProcessingOptions) -> SortSpec:
    spec = base_spec(options)
    changes: dict[str, Any] = {
        'reorder': options.sort_object_keys,
        'reorder_arrays': not options.preserve_array_order,
    }
    if options.group_by_schema:
        changes['group'] = schema_group
    return replace(spec, **changes)


_ANCHOR = re.compile(r'(?<![\w*&])&([^\s,\[\]{}]+)')
_ALIAS = re.compile(r'(?<![\w*&])\*([^\s,\[\]{}]+)')


def hoist_anchors(props: list[Property]) -> list[Property]:
    # An alias must follow its anchor in document order; move a defining sibling up when sorting broke that
    defines = [set(_ANCHOR.findall(p.full_text)) for p in props]
    pending = list(range(len(props)))
    result: list[int] = []

    def place(i: int, visiting: set[int]) -> None:
        if i not in pending or i in visiting:
            return
        visiting.add(i)
        uses = set(_ALIAS.findall(props[i].full_text)) - defines[i]
        for j in list(pending):
            if j != i and defines[j] & uses:
                place(j, visiting)
        if i in pending:
            pending.remove(i)
            result.append(i)

    for i in range(len(props)):
        place(i, set())
    return [props[i] for i in result]


def yaml_spec(options: ProcessingOptions) -> SortSpec:
    spec = json_spec(options)
    if options.preserve_anchors_and_aliases:
        spec = replace(spec, after=hoist_anchors)
    return spec


def spec_for(grammar: str, options: ProcessingOptions) -> SortSpec:
    builders: dict[str, Callable[[ProcessingOptions], SortSpec]] = {
        'declaration': declaration_spec,
        'stylesheet': stylesheet_spec,
        'struct': struct_spec,
        'json': json_spec,
        'yaml': yaml_spec,
    }
    if grammar not in builders:
        raise ValueError(f"Grammar {grammar} not supported")
    return builders[grammar](options)
