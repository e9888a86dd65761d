from __future__ import annotations

from ..comments import C_STYLE, reindent
from ..model import Entity, Property
from ..options import ProcessingOptions
from ..render import Layout, entity_unit, finish_entity, member_indent, render_block, separator
from ..sorter import group_key
from ..sorters import json_spec


class JsonReconstructor:
    # Object keys keep their quotes; arrays render elements only
    def reconstruct(self, entity: Entity, options: ProcessingOptions) -> str:
        return _Renderer(entity, options).render()


class _Renderer:
    def __init__(self, entity: Entity, options: ProcessingOptions):
        self.entity = entity
        self.options = options
        self.layout = Layout(C_STYLE, separator=',', comma_only=True, compact=':', spaced=': ')
        self.unit = entity_unit(entity, options)
        self.group_of = group_key(json_spec(options))

    def render(self) -> str:
        entity = self.entity
        indent = member_indent(entity.properties, entity.indent, self.unit, self.options)
        render = self.element if entity.is_array else self.member
        body = render_block(entity.properties, entity.header, entity.footer, entity.body, indent, entity.indent,
                            entity.closing_comments, self.options, self.layout, render,
                            None if entity.is_array else self.group_of)
        return finish_entity(entity, body, self.options, C_STYLE)

    def value(self, prop: Property, indent: str) -> str:
        if prop.nested_properties is None:
            return reindent(prop.value, prop.indent, indent)
        inner = member_indent(prop.nested_properties, indent, self.unit, self.options)
        body = prop.value[len(prop.nested_open):len(prop.value) - len(prop.nested_close)]
        render = self.element if prop.is_array else self.member
        return render_block(prop.nested_properties, prop.nested_open, prop.nested_close, body, inner, indent,
                            prop.nested_comments, self.options, self.layout, render,
                            None if prop.is_array else self.group_of)

    def member(self, prop: Property, indent: str, width: int) -> str:
        return '"' + prop.name + '"' + separator(prop, self.layout, self.options, width) + self.value(prop, indent)

    def element(self, prop: Property, indent: str, width: int) -> str:
        return self.value(prop, indent)
