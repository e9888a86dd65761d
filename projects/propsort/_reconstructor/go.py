from __future__ import annotations

import re
from typing import Sequence

from ..comments import C_STYLE, reindent
from ..model import Entity, Property
from ..options import ProcessingOptions
from ..render import Layout, entity_unit, finish_entity, member_indent, render_block, split_trailing
from ..sorter import group_key
from ..sorters import struct_spec

_WIDE_GAP = re.compile(r'\S(\t| {2,})\S')


def _looks_aligned(props: Sequence[Property]) -> bool:
    # gofmt pads columns with runs of spaces; a single padded field is enough to tell
    for prop in props:
        text = prop.full_text
        if prop.struct_tags:
            text = text.replace(prop.struct_tags, '')
        if '\n' not in text and _WIDE_GAP.search(text.strip()):
            return True
        if prop.nested_properties and _looks_aligned(prop.nested_properties):
            return True
    return False


class GoReconstructor:
    def reconstruct(self, entity: Entity, options: ProcessingOptions) -> str:
        return _Renderer(entity, options).render()


class _Columns:
    # Column widths of one struct body: field names, then types that are followed by a tag or a comment
    def __init__(self, props: Sequence[Property], tags: bool):
        rows = [p for p in props if not p.is_embedded and p.nested_properties is None and '\n' not in p.value]
        self.name = max((len(p.name) for p in rows), default=0)
        typed = [p for p in rows if (tags and p.struct_tags) or split_trailing(p)[0]]
        self.type = max((len(p.value) for p in typed), default=0)
        commented = [p for p in props if split_trailing(p)[0] and '\n' not in p.value and p.nested_properties is None]
        self.comment = max((len(self.line(p, p.struct_tags if tags else None, False)) for p in commented), default=0)

    def line(self, prop: Property, tags: str | None, pad_comment: bool) -> str:
        if prop.is_embedded:
            text = prop.name + (' ' + tags if tags else '')
        else:
            text = prop.name.ljust(self.name) + ' ' + prop.value
            if tags:
                text = prop.name.ljust(self.name) + ' ' + prop.value.ljust(self.type) + ' ' + tags
        if pad_comment:
            text = text.ljust(self.comment)
        return text


class _Renderer:
    def __init__(self, entity: Entity, options: ProcessingOptions):
        self.entity = entity
        self.options = options
        self.layout = Layout(C_STYLE, separator=';')
        self.unit = entity_unit(entity, options)
        self.group_of = group_key(struct_spec(options))
        spacing = options.property_spacing
        self.aligned = spacing == 'aligned' or (
            spacing == 'preserve' and options.preserve_formatting and _looks_aligned(entity.properties))
        self.columns: dict[int, _Columns] = {}

    def render(self) -> str:
        entity = self.entity
        indent = member_indent(entity.properties, entity.indent, self.unit, self.options)
        body = self.block(entity.properties, entity.header, entity.footer, entity.body, indent, entity.indent,
                          entity.closing_comments)
        return finish_entity(entity, body, self.options, C_STYLE)

    def block(self, props, open_text, close_text, original, indent, closer, closing) -> str:
        if self.aligned:
            columns = _Columns(props, self.options.preserve_struct_tags)
            for prop in props:
                self.columns[id(prop)] = columns
        return render_block(props, open_text, close_text, original, indent, closer, closing, self.options,
                            self.layout, self.member, self.group_of)

    def member(self, prop: Property, indent: str, width: int) -> str:
        tags = prop.struct_tags if self.options.preserve_struct_tags else None
        if prop.nested_properties is not None:
            inner = member_indent(prop.nested_properties, indent, self.unit, self.options)
            body = prop.value[len(prop.nested_open):len(prop.value) - len(prop.nested_close)]
            block = self.block(prop.nested_properties, prop.nested_open, prop.nested_close, body, inner, indent,
                               prop.nested_comments)
            return prop.name + (' ' if self.aligned else prop.separator) + block + (' ' + tags if tags else '')
        columns = self.columns.get(id(prop))
        if columns is not None and '\n' not in prop.value:
            return columns.line(prop, tags, bool(split_trailing(prop)[0]))
        if prop.is_embedded:
            return prop.name + (' ' + tags if tags else '')
        sep = prop.separator if self.options.property_spacing == 'preserve' else ' '
        value = reindent(prop.value, prop.indent, indent)
        return prop.name + sep + value + (' ' + tags if tags else '')
