from __future__ import annotations

from typing import Sequence

from .._parser.css import stylesheet_syntax
from ..comments import reindent
from ..model import Comment, Entity, FileType, Property
from ..options import ProcessingOptions
from ..render import (Layout, comment_lines, entity_unit, finish_entity, member_indent, render_block, render_lines,
                      separator)
from ..sorter import group_key
from ..sorters import stylesheet_spec


class CssReconstructor:
    def reconstruct(self, entity: Entity, options: ProcessingOptions, file_type: FileType = FileType.CSS) -> str:
        return _Renderer(entity, options, file_type).render()


class _Renderer:
    def __init__(self, entity: Entity, options: ProcessingOptions, file_type: FileType):
        self.entity = entity
        self.options = options
        self.syntax = stylesheet_syntax(file_type)
        # sass bodies are delimited by indentation: no braces, no semicolons
        self.indented = file_type == FileType.SASS
        if self.indented:
            self.layout = Layout(self.syntax, separator='', accepts=lambda p: False)
        else:
            self.layout = Layout(self.syntax, separator=';', strict=True, accepts=lambda p: p.nested_properties is None)
        self.unit = entity_unit(entity, options)
        self.group_of = group_key(stylesheet_spec(options))

    def render(self) -> str:
        entity = self.entity
        indent = member_indent(entity.properties, entity.indent, self.unit, self.options)
        body = self.block(entity.properties, entity.header, entity.footer, entity.body, indent, entity.indent,
                          entity.closing_comments)
        return finish_entity(entity, body, self.options, self.syntax)

    def block(self, props: Sequence[Property], open_text: str, close_text: str, original: str, indent: str,
              closer: str, closing: Sequence[Comment]) -> str:
        if not self.indented:
            return render_block(props, open_text, close_text, original, indent, closer, closing, self.options,
                                self.layout, self.member, self.group_of)
        lines = render_lines(props, indent, self.options, self.layout, self.member, self.group_of)
        if self.options.include_comments:
            for comment in closing:
                lines.extend(comment_lines(comment, indent, self.options, self.syntax))
        return open_text + '\n' + '\n'.join(lines)

    def member(self, prop: Property, indent: str, width: int) -> str:
        if prop.nested_properties is not None:
            inner = member_indent(prop.nested_properties, indent, self.unit, self.options)
            body = prop.value[len(prop.nested_open):len(prop.value) - len(prop.nested_close)]
            block = self.block(prop.nested_properties, prop.nested_open, prop.nested_close, body, inner, indent,
                               prop.nested_comments)
            return reindent(prop.name, prop.indent, indent) + prop.separator + block
        if prop.verbatim:
            return reindent(prop.full_text, prop.indent, indent)
        value = reindent(prop.value, prop.indent, indent)
        return prop.name + separator(prop, self.layout, self.options, width) + value
