from __future__ import annotations

from ..comments import C_STYLE, reindent
from ..model import Entity, EntityKind, Property
from ..options import ProcessingOptions
from ..render import (Layout, entity_unit, finish_entity, head_name, member_indent, render_block, separator)
from ..sorter import group_key
from ..sorters import declaration_spec


def _list_separator(props: tuple[Property, ...]) -> str:
    # Interfaces and type literals accept ',' or ';'; keep whichever the source uses most
    counts = {';': 0, ',': 0}
    stack = list(props)
    while stack:
        prop = stack.pop()
        if prop.trailing_punctuation in counts:
            counts[prop.trailing_punctuation] += 1
        stack.extend(prop.nested_properties or ())
    return ',' if counts[','] > counts[';'] else ';'


class TypescriptReconstructor:
    def reconstruct(self, entity: Entity, options: ProcessingOptions) -> str:
        if entity.kind == EntityKind.DECLARATION_OBJECT:
            layout = Layout(C_STYLE, separator=',', comma_only=True)
        else:
            layout = Layout(C_STYLE, separator=_list_separator(entity.properties))
        return _Renderer(entity, options, layout).render()


class _Renderer:
    def __init__(self, entity: Entity, options: ProcessingOptions, layout: Layout):
        self.entity = entity
        self.options = options
        self.layout = layout
        self.unit = entity_unit(entity, options)
        self.group_of = group_key(declaration_spec(options))

    def render(self) -> str:
        entity = self.entity
        indent = member_indent(entity.properties, entity.indent, self.unit, self.options)
        body = render_block(entity.properties, entity.header, entity.footer, entity.body, indent, entity.indent,
                            entity.closing_comments, self.options, self.layout, self.member, self.group_of)
        return finish_entity(entity, body, self.options, C_STYLE)

    def member(self, prop: Property, indent: str, width: int) -> str:
        if prop.nested_properties is not None:
            inner = member_indent(prop.nested_properties, indent, self.unit, self.options)
            body = prop.value[len(prop.nested_open):len(prop.value) - len(prop.nested_close)]
            block = render_block(prop.nested_properties, prop.nested_open, prop.nested_close, body, inner, indent,
                                 prop.nested_comments, self.options, self.layout, self.member, self.group_of)
            return head_name(prop) + separator(prop, self.layout, self.options, width) + block
        if prop.verbatim or prop.is_spread or prop.is_method:
            return reindent(prop.full_text, prop.indent, indent)
        if not prop.value:
            return head_name(prop)
        value = reindent(prop.value, prop.indent, indent)
        return head_name(prop) + separator(prop, self.layout, self.options, width) + value
