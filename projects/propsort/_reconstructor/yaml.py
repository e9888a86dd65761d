from __future__ import annotations

from typing import Sequence

import yaml

from ..comments import HASH_STYLE, reindent
from ..model import Comment, Entity, Property, ReconstructError
from ..options import ProcessingOptions
from ..render import Layout, comment_lines, entity_unit, finish_entity, render_comments_above, render_lines, separator
from ..sorter import group_key
from ..sorters import yaml_spec


class YamlReconstructor:
    # Block mappings and sequences are laid out by indentation alone; the output must compose again
    def reconstruct(self, entity: Entity, options: ProcessingOptions) -> str:
        text = _Renderer(entity, options).render()
        try:
            list(yaml.compose_all(entity.indent + text, Loader=yaml.SafeLoader))
        except yaml.YAMLError as e:
            raise ReconstructError(f"Sorted YAML for {entity.name} does not parse: {e}") from e
        return text


class _Renderer:
    def __init__(self, entity: Entity, options: ProcessingOptions):
        self.entity = entity
        self.options = options
        self.layout = Layout(HASH_STYLE, separator='', accepts=lambda p: False)
        self.unit = entity_unit(entity, options)
        self.group_of = group_key(yaml_spec(options))

    def render(self) -> str:
        entity = self.entity
        indent = entity.properties[0].indent if entity.properties else entity.indent
        lines = self.lines(entity.properties, indent, entity.closing_comments, entity.is_array)
        return finish_entity(entity, '\n'.join(lines)[len(indent):], self.options, HASH_STYLE)

    def child_indent(self, props: Sequence[Property], parent: str) -> str:
        # Sequences may sit at their key's indentation, so only a uniform source indent is kept
        if self.options.indent_unit is None and props and len({p.indent for p in props}) == 1:
            return props[0].indent
        return parent + self.unit

    def lines(self, props: Sequence[Property], indent: str, closing: Sequence[Comment], is_array: bool) -> list[str]:
        render = self.element if is_array else self.member
        lines = render_lines(props, indent, self.options, self.layout, render, None if is_array else self.group_of)
        if self.options.include_comments:
            for comment in closing:
                lines.extend(comment_lines(comment, indent, self.options, HASH_STYLE))
        return lines

    def nested(self, prop: Property, indent: str, item: bool = False) -> str:
        children = prop.nested_properties or ()
        inner = self.child_indent(children, indent)
        lines = self.lines(children, inner, prop.nested_comments, prop.is_array)
        opener = prop.nested_open.rstrip(' ')
        body = prop.value[len(prop.nested_open):]
        pad = len(inner) - len(indent) - len(opener)
        # `- key: value` keeps its first entry on the dash line when the indentation allows it
        if body.lstrip(' ')[:1] not in ('\n', '') and pad > 0 and lines:
            above = 0
            if self.options.include_comments and children[0].comments:
                if not item:
                    return prop.nested_open + '\n' + '\n'.join(lines)
                # Comments of the first entry go above the dash, at the entry's indentation
                above = len(render_comments_above(children[0].comments, inner, self.options, HASH_STYLE))
            entry = opener + ' ' * pad + '\n'.join(lines[above:])[len(inner):]
            return '\n'.join(lines[:above] + [indent + entry])[len(indent):]
        return prop.nested_open + '\n' + '\n'.join(lines)

    def member(self, prop: Property, indent: str, width: int) -> str:
        if prop.verbatim:
            return reindent(prop.full_text, prop.indent, indent)
        if prop.nested_properties is not None:
            return prop.name + self.nested(prop, indent)
        value = reindent(prop.value, prop.indent, indent)
        if not value:
            return prop.name + prop.separator
        return prop.name + separator(prop, self.layout, self.options, width) + value

    def element(self, prop: Property, indent: str, width: int) -> str:
        if prop.nested_properties is not None:
            return self.nested(prop, indent, item=True)
        return prop.separator + reindent(prop.value, prop.indent, indent)
