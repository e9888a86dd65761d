from __future__ import annotations

import logging
from dataclasses import replace

from tree_sitter import Node  # type: ignore

from ..comments import C_STYLE, LineIndex, adjacent_block, attach_comments, make_comment
from ..model import Comment, Entity, EntityKind, FileType, ParseError, ParseResult, Property
from ..options import ProcessingOptions
from ..syntax import Source

logger = logging.getLogger(__name__)


class GoParser:
    # `type X struct { ... }` declarations, grouped `type ( ... )` blocks and nested anonymous structs
    def parse(self, source: str, options: ProcessingOptions, file_type: FileType = FileType.GO) -> ParseResult:
        result = ParseResult(source_code=source, file_type=file_type)
        try:
            tree = Source(source, 'go')
        except ValueError as e:
            result.errors.append(f"Failed to parse source: {e}")
            return result
        ctx = _Context(tree, options, result)
        ctx.visit(tree.root)
        logger.debug("found %d struct entities, %d errors", len(result.entities), len(result.errors))
        return result


class _Context:
    def __init__(self, tree: Source, options: ProcessingOptions, result: ParseResult):
        self.tree = tree
        self.text = tree.text
        self.index = LineIndex(tree.text)
        self.options = options
        self.result = result

    def visit(self, node: Node) -> None:
        for child in node.named_children:
            if child.type == 'type_declaration':
                specs = [c for c in child.named_children if c.type == 'type_spec']
                for spec in specs:
                    self.add(spec, child if len(specs) == 1 else spec)
            else:
                self.visit(child)

    def add(self, spec: Node, span: Node) -> None:
        struct = spec.child_by_field_name('type')
        name = spec.child_by_field_name('name')
        if struct is None or name is None or struct.type != 'struct_type':
            return
        try:
            self.result.entities.append(self.entity(self.tree.node_text(name), span, struct))
        except ParseError as e:
            self.result.errors.append(str(e))

    def entity(self, name: str, span: Node, struct: Node) -> Entity:
        tree, index = self.tree, self.index
        start, end = tree.start(span), tree.end(span)
        if span.has_error:
            raise ParseError(f"Syntax error in struct '{name}' at line {index.line_of(start)}")
        props, closing, body_start, body_end = self.body(struct)
        return Entity(
            kind=EntityKind.STRUCT,
            name=name,
            properties=tuple(props),
            start_line=index.line_of(start),
            end_line=index.line_of(max(end - 1, start)),
            original_text=self.text[start:end],
            leading_comments=self.leading_comments(span, index.line_of(start)),
            is_exported=name[:1].isupper(),
            start_column=index.column_of(start),
            end_column=index.column_of(end),
            indent=index.indent_of(start),
            body_start=body_start - start,
            body_end=body_end - start,
            closing_comments=closing,
        )

    def leading_comments(self, node: Node, line: int) -> tuple[Comment, ...]:
        found: list[Comment] = []
        sibling = node.prev_named_sibling
        while sibling is not None and sibling.type == 'comment':
            found.insert(0, make_comment(self.tree.node_text(sibling), self.tree.start(sibling), self.index, C_STYLE))
            sibling = sibling.prev_named_sibling
        return adjacent_block(found, line, self.index)

    def body(self, struct: Node) -> tuple[list[Property], tuple[Comment, ...], int, int]:
        fields = next((c for c in struct.named_children if c.type == 'field_declaration_list'), None)
        if fields is None:
            raise ParseError(f"Struct without field list at line {self.index.line_of(self.tree.start(struct))}")
        opening = next((c for c in fields.children if c.type == '{'), None)
        closing = next((c for c in reversed(fields.children) if c.type == '}'), None)
        if opening is None or closing is None:
            raise ParseError(f"Unterminated struct at line {self.index.line_of(self.tree.start(struct))}")
        body_start, body_end = self.tree.end(opening), self.tree.start(closing)
        members = [c for c in fields.named_children if c.type == 'field_declaration']
        spans = [(self.tree.start(m), self.tree.end(m)) for m in members]
        attached = attach_comments(self.text, self.index, spans, body_start, body_end, C_STYLE,
                                   self.options.comment_attachment)
        props = [info.apply(self.field(member)) for member, info in zip(members, attached.members)]
        return props, attached.closing, attached.head_end, body_end

    def field(self, node: Node) -> Property:
        tree = self.tree
        start, end = tree.start(node), tree.end(node)
        names = node.children_by_field_name('name')
        type_node = node.child_by_field_name('type')
        tag = node.child_by_field_name('tag')
        tags = tree.node_text(tag) if tag is not None else None
        base = dict(line=self.index.line_of(start), full_text=self.text[start:end], indent=self.index.indent_of(start),
                    struct_tags=tags)
        if type_node is None:
            raise ParseError(f"Field without type at line {self.index.line_of(start)}")
        if not names:
            # Embedded field: `Base`, `*Base`, `pkg.Base`, `Base[T]`
            return Property(name=self.text[start:tree.end(type_node)], is_embedded=True, separator='', **base)
        name_end = tree.end(names[-1])
        prop = Property(
            name=self.text[tree.start(names[0]):name_end],
            value=tree.node_text(type_node),
            separator=self.text[name_end:tree.start(type_node)],
            **base,
        )
        if type_node.type == 'struct_type':
            props, closing, body_start, body_end = self.body(type_node)
            return replace(
                prop,
                nested_properties=tuple(props),
                nested_open=self.text[tree.start(type_node):body_start],
                nested_close=self.text[body_end:tree.end(type_node)],
                nested_comments=closing,
            )
        return prop
