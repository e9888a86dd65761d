from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Structural model shared by every grammar.
# Instances are created once per parse and never mutated afterwards: sorting builds copies with dataclasses.replace().


class ParseError(ValueError):
    # Malformed construct; parsers convert it into a ParseResult.errors entry
    pass


class ReconstructError(ValueError):
    # A sorted entity cannot be rendered back into text
    pass


class EntityKind(str, Enum):
    DECLARATION_INTERFACE = 'declaration-interface'
    DECLARATION_TYPE = 'declaration-type'
    DECLARATION_OBJECT = 'declaration-object'
    STYLE_RULE = 'style-rule'
    STRUCT = 'struct'
    JSON_OBJECT = 'json-object'
    JSON_ARRAY = 'json-array'
    YAML_DOCUMENT = 'yaml-document'


class FileType(str, Enum):
    TYPESCRIPT = 'typescript'
    JAVASCRIPT = 'javascript'
    CSS = 'css'
    SCSS = 'scss'
    LESS = 'less'
    SASS = 'sass'
    GO = 'go'
    JSON = 'json'
    JSONC = 'jsonc'
    YAML = 'yaml'
    YML = 'yml'

    @staticmethod
    def parse(value: "str | FileType | None") -> "FileType":
        # None falls back to the declaration grammar; aliases such as 'ts' are accepted
        if value is None or value == '':
            return FileType.TYPESCRIPT
        if isinstance(value, FileType):
            return value
        key = value.strip().lower().lstrip('.')
        if key in _ALIASES:
            return _ALIASES[key]
        try:
            return FileType(key)
        except ValueError:
            raise ValueError(f"File type {value} not supported") from None

    @staticmethod
    def from_filename(fn: str) -> "FileType":
        # "foo.d.ts" resolves through its last extension ".ts"
        _, ext = os.path.splitext(fn)
        ext = ext.lower()
        if ext not in EXTENSIONS:
            raise ValueError(f"Extension {ext} not supported for {fn}")
        return EXTENSIONS[ext]


_ALIASES = {
    'ts': FileType.TYPESCRIPT,
    'tsx': FileType.TYPESCRIPT,
    'mts': FileType.TYPESCRIPT,
    'cts': FileType.TYPESCRIPT,
    'js': FileType.JAVASCRIPT,
    'jsx': FileType.JAVASCRIPT,
    'mjs': FileType.JAVASCRIPT,
    'cjs': FileType.JAVASCRIPT,
    'golang': FileType.GO,
}

EXTENSIONS = {
    '.ts': FileType.TYPESCRIPT,
    '.tsx': FileType.TYPESCRIPT,
    '.mts': FileType.TYPESCRIPT,
    '.cts': FileType.TYPESCRIPT,
    '.js': FileType.JAVASCRIPT,
    '.jsx': FileType.JAVASCRIPT,
    '.mjs': FileType.JAVASCRIPT,
    '.cjs': FileType.JAVASCRIPT,
    '.css': FileType.CSS,
    '.scss': FileType.SCSS,
    '.less': FileType.LESS,
    '.sass': FileType.SASS,
    '.go': FileType.GO,
    '.json': FileType.JSON,
    '.jsonc': FileType.JSONC,
    '.json5': FileType.JSONC,
    '.yaml': FileType.YAML,
    '.yml': FileType.YML,
}


@dataclass(frozen=True)
class Comment:
    text: str  # markers stripped
    type: str  # 'single' or 'multi'
    raw: str  # verbatim, markers included
    line: int  # 1-based line of the first character
    indent: str = ''  # whitespace preceding the comment on its own line

    @property
    def is_block(self) -> bool:
        return self.type == 'multi'


@dataclass(frozen=True)
class Property:
    name: str
    value: str = ''
    optional: bool = False
    comments: tuple[Comment, ...] = ()
    trailing_comments: tuple[Comment, ...] = ()
    trailing_punctuation: str = ''
    line: int = 0
    full_text: str = ''

    # Struct grammar
    struct_tags: str | None = None
    is_embedded: bool = False

    # Object-literal grammar; YAML merge keys reuse the flag
    is_spread: bool = False

    # Nested object/struct/rule body, or array elements when is_array is set
    nested_properties: tuple[Property, ...] | None = None
    nested_open: str = '{'
    nested_close: str = '}'
    nested_comments: tuple[Comment, ...] = ()
    is_array: bool = False

    # Rendering details captured from the source
    separator: str = ': '
    modifiers: str = ''
    is_method: bool = False
    verbatim: bool = False
    indent: str = ''
    important: bool = False
    vendor_prefix: str = ''

    @property
    def has_nested_object(self) -> bool:
        return self.nested_properties is not None

    @property
    def is_marker(self) -> bool:
        # Markers keep their slot during sorting
        return self.is_spread or self.verbatim

    def signature(self) -> Any:
        # Name tree used for change detection
        if self.nested_properties is None:
            return self.name
        return (self.name, tuple(p.signature() for p in self.nested_properties))


@dataclass(frozen=True)
class Entity:
    kind: EntityKind
    name: str
    properties: tuple[Property, ...]
    start_line: int
    end_line: int
    original_text: str
    leading_comments: tuple[Comment, ...] = ()
    is_exported: bool = False

    # Position of original_text inside the source: start_column on start_line, end_column (exclusive) on end_line
    start_column: int = 0
    end_column: int = 0
    indent: str = ''

    # Body bounds inside original_text: body_start is just after the opening token, body_end at the closing token
    body_start: int = 0
    body_end: int = 0
    closing_comments: tuple[Comment, ...] = ()
    is_array: bool = False

    @property
    def header(self) -> str:
        return self.original_text[:self.body_start]

    @property
    def body(self) -> str:
        return self.original_text[self.body_start:self.body_end]

    @property
    def footer(self) -> str:
        return self.original_text[self.body_end:]

    @property
    def first_line(self) -> int:
        # First line replaced when the entity is spliced back
        lines = [c.line for c in self.leading_comments]
        return min(lines + [self.start_line])

    def signature(self) -> tuple:
        return tuple(p.signature() for p in self.properties)


@dataclass
class ParseResult:
    entities: list[Entity] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    source_code: str = ''
    file_type: FileType = FileType.TYPESCRIPT


@dataclass
class ProcessingResult:
    success: bool
    entities_processed: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    processed_text: str | None = None

    def as_dict(self) -> dict[str, Any]:
        # Host mapping; processedText only when present
        result: dict[str, Any] = {
            'success': self.success,
            'entitiesProcessed': self.entities_processed,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
        }
        if self.processed_text is not None:
            result['processedText'] = self.processed_text
        return result
