from __future__ import annotations

import logging
from dataclasses import replace

from tree_sitter import Node  # type: ignore

from ..comments import C_STYLE, LineIndex, adjacent_block, attach_comments, make_comment
from ..model import Entity, EntityKind, FileType, ParseError, ParseResult, Property
from ..options import ProcessingOptions
from ..syntax import Source, has_token, unwrap

logger = logging.getLogger(__name__)

_WRAPPERS = ('parenthesized_expression', 'as_expression', 'satisfies_expression', 'non_null_expression')
_DECLARATIONS = ('lexical_declaration', 'variable_declaration')


class TypescriptParser:
    # Interfaces, object type aliases and object-valued declarations of TypeScript/JavaScript sources
    def parse(self, source: str, options: ProcessingOptions, file_type: FileType = FileType.TYPESCRIPT) -> ParseResult:
        result = ParseResult(source_code=source, file_type=file_type)
        try:
            tree = self._source(source, file_type)
        except ValueError as e:
            result.errors.append(f"Failed to parse source: {e}")
            return result
        ctx = _Context(tree, options, result)
        ctx.visit(tree.root)
        logger.debug("found %d declaration entities, %d errors", len(result.entities), len(result.errors))
        return result

    def _source(self, text: str, file_type: FileType) -> Source:
        # JSX only parses with the tsx grammar; TypeScript angle-bracket casts only without it
        first = 'tsx' if file_type == FileType.JAVASCRIPT else 'typescript'
        tree = Source(text, first)
        if tree.root.has_error:
            other = Source(text, 'typescript' if first == 'tsx' else 'tsx')
            if not other.root.has_error:
                return other
        return tree


class _Context:
    def __init__(self, tree: Source, options: ProcessingOptions, result: ParseResult):
        self.tree = tree
        self.text = tree.text
        self.index = LineIndex(tree.text)
        self.options = options
        self.result = result

    def visit(self, node: Node) -> None:
        for child in node.named_children:
            if not self.handle(child):
                self.visit(child)

    def handle(self, node: Node, export: Node | None = None) -> bool:
        # True when node produced (or failed to produce) an entity and must not be searched further
        kind = node.type
        if kind == 'export_statement':
            declaration = node.child_by_field_name('declaration')
            if declaration is not None:
                return self.handle(declaration, node)
            if has_token(node, 'default'):
                value = node.child_by_field_name('value')
                if value is None:
                    value = next((c for c in node.named_children if c.type != 'comment'), None)
                target = self.object_of(value)
                if target is not None:
                    self.add(EntityKind.DECLARATION_OBJECT, 'default', node, target, True)
                    return True
            return False
        if kind == 'interface_declaration':
            body = node.child_by_field_name('body')
            name = node.child_by_field_name('name')
            if body is None or name is None:
                return False
            self.add(EntityKind.DECLARATION_INTERFACE, self.tree.node_text(name), export or node, body, export is not None)
            return True
        if kind == 'type_alias_declaration':
            value = unwrap(node.child_by_field_name('value'), 'parenthesized_type')
            name = node.child_by_field_name('name')
            if value is None or name is None or value.type != 'object_type':
                return False
            self.add(EntityKind.DECLARATION_TYPE, self.tree.node_text(name), export or node, value, export is not None)
            return True
        if kind in _DECLARATIONS:
            declarators = [c for c in node.named_children if c.type == 'variable_declarator']
            found = False
            for declarator in declarators:
                target = self.object_of(declarator.child_by_field_name('value'))
                name = declarator.child_by_field_name('name')
                if target is None or name is None:
                    continue
                # A statement with several declarators is spliced per declarator
                span = (export or node) if len(declarators) == 1 else declarator
                self.add(EntityKind.DECLARATION_OBJECT, self.tree.node_text(name), span, target, export is not None)
                found = True
            return found
        return False

    def object_of(self, value: Node | None) -> Node | None:
        value = unwrap(value, *_WRAPPERS)
        if value is None:
            return None
        if value.type == 'object':
            return value
        if value.type == 'call_expression':
            arguments = value.child_by_field_name('arguments')
            for arg in arguments.named_children if arguments is not None else []:
                arg = unwrap(arg, *_WRAPPERS)
                if arg is not None and arg.type == 'object':
                    return arg
        return None

    def add(self, kind: EntityKind, name: str, span: Node, body: Node, exported: bool) -> None:
        try:
            self.result.entities.append(self.entity(kind, name, span, body, exported))
        except ParseError as e:
            self.result.errors.append(str(e))

    def entity(self, kind: EntityKind, name: str, span: Node, body: Node, exported: bool) -> Entity:
        tree, index = self.tree, self.index
        start, end = tree.start(span), tree.end(span)
        if span.has_error:
            raise ParseError(f"Syntax error in {kind.value} '{name}' at line {index.line_of(start)}")
        props, closing, body_start, body_end = self.body(body)
        leading = self.leading_comments(span, index.line_of(start))
        return Entity(
            kind=kind,
            name=name,
            properties=tuple(props),
            start_line=index.line_of(start),
            end_line=index.line_of(max(end - 1, start)),
            original_text=self.text[start:end],
            leading_comments=leading,
            is_exported=exported,
            start_column=index.column_of(start),
            end_column=index.column_of(end),
            indent=index.indent_of(start),
            body_start=body_start - start,
            body_end=body_end - start,
            closing_comments=closing,
        )

    def leading_comments(self, node: Node, line: int):
        found = []
        sibling = node.prev_named_sibling
        while sibling is not None and sibling.type == 'comment':
            found.insert(0, make_comment(self.tree.node_text(sibling), self.tree.start(sibling), self.index, C_STYLE))
            sibling = sibling.prev_named_sibling
        return adjacent_block(found, line, self.index)

    def body(self, body: Node) -> tuple[list[Property], tuple, int, int]:
        # Members of a brace-delimited body: (properties, closing comments, body start, body end)
        opening = next((c for c in body.children if c.type == '{'), None)
        closing = next((c for c in reversed(body.children) if c.type == '}'), None)
        if opening is None or closing is None:
            raise ParseError(f"Unterminated body at line {self.index.line_of(self.tree.start(body))}")
        body_start, body_end = self.tree.end(opening), self.tree.start(closing)
        members = [c for c in body.named_children if c.type != 'comment']
        spans = [(self.tree.start(m), self.tree.end(m)) for m in members]
        attached = attach_comments(self.text, self.index, spans, body_start, body_end, C_STYLE,
                                   self.options.comment_attachment)
        props = []
        for member, info in zip(members, attached.members):
            prop = self.member(member)
            props.append(info.apply(prop))
        return props, attached.closing, attached.head_end, body_end

    def member(self, node: Node) -> Property:
        tree = self.tree
        start, end = tree.start(node), tree.end(node)
        base = dict(line=self.index.line_of(start), full_text=self.text[start:end], indent=self.index.indent_of(start))
        kind = node.type
        if kind in ('property_signature', 'pair'):
            key = node.child_by_field_name('name') or node.child_by_field_name('key')
            if key is None:
                return Property(name=tree.node_text(node), verbatim=True, **base)
            optional = has_token(node, '?')
            after_key = tree.end(key)
            if optional:
                mark = next(c for c in node.children if c.type == '?')
                after_key = tree.end(mark)
            value_node = node.child_by_field_name('value')
            if kind != 'pair':
                annotation = node.child_by_field_name('type')
                value_node = annotation.named_children[-1] if annotation is not None and annotation.named_children else None
            modifiers = self.text[start:tree.start(key)]
            if value_node is None:
                return Property(name=tree.node_text(key), optional=optional, modifiers=modifiers, separator='', **base)
            prop = Property(
                name=tree.node_text(key),
                value=tree.node_text(value_node),
                optional=optional,
                separator=self.text[after_key:tree.start(value_node)],
                modifiers=modifiers,
                **base,
            )
            if value_node.type in ('object', 'object_type'):
                return self.nested(prop, value_node)
            return prop
        if kind in ('method_signature', 'method_definition'):
            key = node.child_by_field_name('name')
            if key is None:
                return Property(name=tree.node_text(node), verbatim=True, **base)
            return Property(
                name=tree.node_text(key),
                value=self.text[tree.end(key):end],
                modifiers=self.text[start:tree.start(key)],
                separator='',
                is_method=True,
                **base,
            )
        if kind in ('shorthand_property_identifier', 'shorthand_property_identifier_pattern'):
            return Property(name=tree.node_text(node), separator='', **base)
        if kind == 'spread_element':
            return Property(name=tree.node_text(node), is_spread=True, separator='', **base)
        # Index/call/construct signatures and anything unrecognised keep their place and text
        return Property(name=tree.node_text(node), verbatim=True, separator='', **base)

    def nested(self, prop: Property, value: Node) -> Property:
        props, closing, body_start, body_end = self.body(value)
        start, end = self.tree.start(value), self.tree.end(value)
        return replace(
            prop,
            nested_properties=tuple(props),
            nested_open=self.text[start:body_start],
            nested_close=self.text[body_end:end],
            nested_comments=closing,
        )
