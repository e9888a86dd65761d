from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace

from tree_sitter import Node  # type: ignore

from ..comments import C_STYLE, LineIndex, adjacent_block, attach_comments, comments_in
from ..model import Comment, Entity, EntityKind, FileType, ParseError, ParseResult, Property
from ..options import ProcessingOptions
from ..syntax import Source

logger = logging.getLogger(__name__)

_SCALARS = ('string', 'number', 'true', 'false', 'null')


@dataclass
class _Value:
    kind: str  # 'object', 'array' or 'scalar'
    start: int
    end: int
    members: list["_Member"] = field(default_factory=list)


@dataclass
class _Member:
    start: int
    value: _Value
    key: str = ''  # raw key content without quotes; empty for array elements
    key_end: int = 0

    @property
    def end(self) -> int:
        return self.value.end


class _Reader:
    # Maps the tree-sitter tree onto offsets, never evaluates.
    # A trailing comma (JSONC) comes back as an ERROR node holding only ','.
    def __init__(self, tree: Source, index: LineIndex):
        self.tree = tree
        self.index = index

    def fail(self, message: str, node: Node):
        line = self.index.line_of(min(self.tree.start(node), len(self.tree.text)))
        raise ParseError(f"Invalid JSON at line {line}: {message}")

    def unexpected(self, node: Node):
        text = self.tree.node_text(node).strip().split('\n')[0]
        self.fail(f"unexpected '{text[:20] or node.type}'", node)

    def document(self, root: Node) -> _Value | None:
        if root.type != 'document':
            self.unexpected(root)
        values: list[Node] = []
        for child in root.children:
            if child.type == 'comment':
                continue
            if child.type not in ('object', 'array') + _SCALARS:
                self.unexpected(child)
            values.append(child)
        if len(values) > 1:
            self.fail("unexpected content after the top-level value", values[1])
        return self.value(values[0]) if values else None

    def value(self, node: Node) -> _Value:
        tree = self.tree
        if node.is_missing:
            self.fail(f"missing {node.type}", node)
        if node.type in ('object', 'array'):
            return self.container(node)
        if node.type not in _SCALARS:
            self.unexpected(node)
        if node.has_error:
            self.fail("unterminated string" if node.type == 'string' else "invalid value", node)
        return _Value('scalar', tree.start(node), tree.end(node))

    def container(self, node: Node) -> _Value:
        kind = node.type
        close = '}' if kind == 'object' else ']'
        children = node.children
        if len(children) < 2 or children[-1].type != close or children[-1].is_missing:
            self.fail(f"missing '{close}'", node)
        value = _Value(kind, self.tree.start(node), self.tree.end(node))
        for child in children[1:-1]:
            self.entry(child, value)
        return value

    def entry(self, child: Node, value: _Value) -> None:
        # Separators and comments are left to the gap scan
        if child.type in (',', 'comment'):
            return
        if child.type == 'ERROR':
            for inner in child.children:
                self.entry(inner, value)
            return
        if value.kind == 'array':
            value.members.append(_Member(self.tree.start(child), self.value(child)))
        elif child.type == 'pair':
            value.members.append(self.pair(child))
        else:
            self.unexpected(child)

    def pair(self, node: Node) -> _Member:
        tree = self.tree
        key = node.child_by_field_name('key')
        if key is None or key.type != 'string' or key.is_missing:
            self.fail("expected a quoted key", node)
        if key.has_error:
            self.fail("unterminated string", key)
        if not any(c.type == ':' and not c.is_missing for c in node.children):
            self.fail("expected ':'", key)
        for child in node.children:
            if child.type == 'ERROR':
                self.unexpected(child)
        found = node.child_by_field_name('value')
        if found is None:
            self.fail("expected a value", node)
        start, end = tree.start(key), tree.end(key)
        return _Member(start, self.value(found), tree.text[start + 1:end - 1], end)


class JsonParser:
    # One entity per document: the top-level object or array
    def parse(self, source: str, options: ProcessingOptions, file_type: FileType = FileType.JSON) -> ParseResult:
        result = ParseResult(source_code=source, file_type=file_type)
        try:
            tree = Source(source, 'json')
            index = LineIndex(source)
            root = _Reader(tree, index).document(tree.root)
            if root is not None and root.kind != 'scalar':
                result.entities.append(_Builder(source, index, options).entity(root))
        except ParseError as e:
            result.errors.append(str(e))
        logger.debug("found %d JSON entities, %d errors", len(result.entities), len(result.errors))
        return result


class _Builder:
    def __init__(self, text: str, index: LineIndex, options: ProcessingOptions):
        self.text = text
        self.index = index
        self.options = options

    def entity(self, root: _Value) -> Entity:
        index = self.index
        props, closing, body_start = self.body(root)
        before = comments_in(self.text, 0, root.start, index, C_STYLE)
        is_array = root.kind == 'array'
        return Entity(
            kind=EntityKind.JSON_ARRAY if is_array else EntityKind.JSON_OBJECT,
            name='root',
            properties=tuple(props),
            start_line=index.line_of(root.start),
            end_line=index.line_of(root.end - 1),
            original_text=self.text[root.start:root.end],
            leading_comments=adjacent_block(before, index.line_of(root.start), index),
            start_column=index.column_of(root.start),
            end_column=index.column_of(root.end),
            indent=index.indent_of(root.start),
            body_start=body_start - root.start,
            body_end=root.end - 1 - root.start,
            closing_comments=closing,
            is_array=is_array,
        )

    def body(self, value: _Value) -> tuple[list[Property], tuple[Comment, ...], int]:
        spans = [(m.start, m.end) for m in value.members]
        try:
            attached = attach_comments(self.text, self.index, spans, value.start + 1, value.end - 1, C_STYLE,
                                       self.options.comment_attachment)
        except ParseError as e:
            # `[1,, 2]`: stray separators only show up between members
            raise ParseError(f"Invalid JSON at line {self.index.line_of(value.start)}: {e}") from e
        props = []
        for i, (member, info) in enumerate(zip(value.members, attached.members)):
            props.append(info.apply(self.member(member, i)))
        return props, attached.closing, attached.head_end

    def member(self, member: _Member, position: int) -> Property:
        text, value = self.text, member.value
        is_key = member.key_end > 0
        prop = Property(
            name=member.key if is_key else f'[{position}]',
            value=text[value.start:value.end],
            separator=text[member.key_end:value.start] if is_key else '',
            line=self.index.line_of(member.start),
            full_text=text[member.start:member.end],
            indent=self.index.indent_of(member.start),
        )
        if value.kind == 'scalar':
            return prop
        props, closing, body_start = self.body(value)
        return replace(
            prop,
            nested_properties=tuple(props),
            nested_open=text[value.start:body_start],
            nested_close=text[value.end - 1:value.end],
            nested_comments=closing,
            is_array=value.kind == 'array',
        )
