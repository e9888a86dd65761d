from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Mapping

from .model import FileType

# Enumerated option values, checked by from_mapping() and validate()
CHOICES: dict[str, tuple[str, ...]] = {
    'sort_order': ('asc', 'desc'),
    'comment_attachment': ('leading', 'nearest'),
    'sort_struct_fields': ('alphabetical', 'by-type', 'by-size', 'preserve-tags'),
    'indentation_type': ('auto', 'spaces', 'tabs'),
    'line_ending': ('auto', 'lf', 'crlf'),
    'comment_style': ('preserve', 'single-line', 'multi-line'),
    'property_spacing': ('preserve', 'compact', 'spaced', 'aligned'),
    'trailing_commas': ('preserve', 'add', 'remove'),
}

# Legacy host keys mapped onto current fields
_LEGACY = {
    'preserve_comments': 'include_comments',
    'sort_nested': 'sort_nested_objects',
}

# Host supplies concrete (indent unit, line ending) for a text when options ask for auto-detection
Resolver = Callable[[str], tuple[str, str]]


@dataclass(frozen=True)
class ProcessingOptions:
    # General ordering
    sort_order: str = 'asc'
    case_sensitive: bool = False
    natural_sort: bool = False
    custom_order: tuple[str, ...] = ()
    group_by_type: bool = False
    prioritize_required: bool = False
    sort_nested_objects: bool = True
    include_comments: bool = True
    comment_attachment: str = 'leading'

    # Declaration sources
    separate_methods: bool = False

    # Stylesheets
    group_vendor_prefixes: bool = False
    sort_by_importance: bool = False
    group_by_category: bool = False
    group_variables: bool = False
    sort_keyframes: bool = False

    # Structs
    sort_struct_fields: str = 'alphabetical'
    group_embedded_fields: bool = True
    group_by_visibility: bool = True
    preserve_struct_tags: bool = True

    # JSON
    sort_object_keys: bool = True
    preserve_array_order: bool = True
    custom_key_order: tuple[str, ...] = ()
    group_by_schema: bool = False

    # YAML
    yaml_custom_key_order: tuple[str, ...] = ()
    yaml_group_by_schema: bool = False
    preserve_anchors_and_aliases: bool = True
    preserve_document_separators: bool = True

    # Formatting
    indentation_type: str = 'auto'
    indentation_size: int = 4
    indentation: str = ''  # explicit unit such as '  ' or '\t', wins over indentation_type
    line_ending: str = 'auto'
    comment_style: str = 'preserve'
    property_spacing: str = 'preserve'
    trailing_commas: str = 'preserve'
    blank_lines_between_groups: bool = False
    preserve_formatting: bool = True

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for name, allowed in CHOICES.items():
            value = getattr(self, name)
            if value not in allowed:
                raise ValueError(f"Invalid value {value!r} for option {name}; expected one of {', '.join(allowed)}")
        if self.indentation_size < 0:
            raise ValueError(f"Invalid indentation_size {self.indentation_size}")
        if self.indentation and self.indentation.strip(' \t') != '':
            raise ValueError(f"Invalid indentation {self.indentation!r}; only spaces and tabs are allowed")

    @property
    def descending(self) -> bool:
        return self.sort_order == 'desc'

    @property
    def indent_unit(self) -> str | None:
        # None means "detect from the entity being rendered"
        if self.indentation:
            return self.indentation
        if self.indentation_type == 'tabs':
            return '\t'
        if self.indentation_type == 'spaces':
            return ' ' * self.indentation_size
        return None

    @property
    def newline(self) -> str | None:
        if self.line_ending == 'crlf':
            return '\r\n'
        if self.line_ending == 'lf':
            return '\n'
        return None

    def for_file_type(self, file_type: FileType) -> "ProcessingOptions":
        # Grammar blocks override the general-purpose equivalents for their own file types
        if file_type in (FileType.JSON, FileType.JSONC):
            changes: dict[str, Any] = {}
            if self.custom_key_order:
                changes['custom_order'] = self.custom_key_order
            return replace(self, **changes) if changes else self
        if file_type in (FileType.YAML, FileType.YML):
            changes = {'group_by_schema': self.yaml_group_by_schema}
            if self.yaml_custom_key_order:
                changes['custom_order'] = self.yaml_custom_key_order
            return replace(self, **changes)
        return self

    def resolve(self, text: str, resolver: Resolver | None = None) -> "ProcessingOptions":
        # Replace 'auto' values with concrete ones when a resolver is supplied, otherwise keep per-entity detection
        if resolver is None:
            return self
        changes: dict[str, Any] = {}
        unit, newline = resolver(text)
        if self.indent_unit is None and unit:
            changes['indentation'] = unit
        if self.line_ending == 'auto' and newline:
            changes['line_ending'] = 'crlf' if newline == '\r\n' else 'lf'
        return replace(self, **changes) if changes else self

    @staticmethod
    def from_mapping(mapping: Mapping[str, Any] | None) -> "ProcessingOptions":
        # Accepts snake_case or camelCase keys; unknown keys are rejected
        return ProcessingOptions().merge(mapping)

    def merge(self, mapping: Mapping[str, Any] | None) -> "ProcessingOptions":
        if not mapping:
            return self
        known = {f.name for f in fields(ProcessingOptions)}
        values: dict[str, Any] = {}
        for key, value in mapping.items():
            name = snake_case(key)
            name = _LEGACY.get(name, name)
            if name not in known:
                raise ValueError(f"Unknown option {key}")
            values[name] = _coerce(name, value)
        return replace(self, **values)


def snake_case(key: str) -> str:
    # 'sortOrder' -> 'sort_order', 'yamlGroupBySchema' -> 'yaml_group_by_schema'
    key = key.strip().replace('-', '_')
    return re.sub(r'(?<=[a-z0-9])([A-Z])', r'_\1', key).lower()


_ORDER_LISTS = ('custom_order', 'custom_key_order', 'yaml_custom_key_order')


def _coerce(name: str, value: Any) -> Any:
    if name in _ORDER_LISTS:
        if isinstance(value, str):
            value = [v for v in (s.strip() for s in value.split(',')) if v]
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"Option {name} must be a list of names")
        return tuple(str(v) for v in value)
    if name == 'indentation_size':
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Option {name} must be an integer") from None
    if name in ('indentation',):
        return str(value)
    if name in CHOICES:
        return str(value).lower()
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ('true', 'yes', 'on', '1'):
            return True
        if lowered in ('false', 'no', 'off', '0'):
            return False
        raise ValueError(f"Option {name} must be a boolean")
    return bool(value)


def detect_indentation(text: str) -> str:
    # Smallest non-zero leading whitespace among indented lines; tabs win when they dominate
    tabs = 0
    widths: list[int] = []
    for line in text.split('\n'):
        if not line.strip():
            continue
        stripped = line.lstrip(' \t')
        lead = line[:len(line) - len(stripped)]
        if not lead:
            continue
        if lead.startswith('\t'):
            tabs += 1
        else:
            widths.append(len(lead))
    if tabs and tabs >= len(widths):
        return '\t'
    if not widths:
        return ''
    return ' ' * min(widths)


def detect_line_ending(text: str) -> str:
    crlf = text.count('\r\n')
    lf = text.count('\n') - crlf
    return '\r\n' if crlf > lf else '\n'


def default_resolver(text: str) -> tuple[str, str]:
    return detect_indentation(text), detect_line_ending(text)
