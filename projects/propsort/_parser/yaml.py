from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from ..comments import HASH_STYLE, LineIndex, adjacent_block, attach_comments, comments_in, scan_gap
from ..model import Comment, Entity, EntityKind, FileType, ParseError, ParseResult, Property
from ..options import ProcessingOptions

logger = logging.getLogger(__name__)

MERGE_TAG = 'tag:yaml.org,2002:merge'

_ALIAS = re.compile(r'\*[^\s,\[\]{}]+')
_COMMENT = re.compile(r'(^|\s)#')
_EXPLICIT_VALUE = re.compile(r'\s*:')


@dataclass
class _Slot:
    # One mapping entry or sequence item: [start, end) in the source
    start: int
    end: int
    head: int  # key end, or the '-' of an item
    value: Node
    value_start: int
    key: Node | None = None
    alias: bool = False
    explicit: bool = False  # `? key` entry, kept as written


class YamlParser:
    # One entity per document whose root is a block mapping or block sequence.
    # PyYAML validates the stream and supplies key positions; comments come from the text itself.
    def parse(self, source: str, options: ProcessingOptions, file_type: FileType = FileType.YAML) -> ParseResult:
        result = ParseResult(source_code=source, file_type=file_type)
        try:
            roots = list(yaml.compose_all(source, Loader=yaml.SafeLoader))
        except yaml.YAMLError as e:
            result.errors.append(f"YAML parsing error: {e}")
            return result
        builder = _Builder(source, options)
        previous = 0
        for number, root in enumerate(roots):
            if root is None:
                continue
            try:
                if builder.is_block(root):
                    entity = builder.entity(root, number, previous)
                    result.entities.append(entity)
                    previous = builder.index.line_start(entity.end_line) + entity.end_column
                else:
                    previous = root.end_mark.index
            except ParseError as e:
                result.errors.append(str(e))
        logger.debug("found %d YAML documents, %d errors", len(result.entities), len(result.errors))
        return result


class _Builder:
    def __init__(self, text: str, options: ProcessingOptions):
        self.text = text
        self.index = LineIndex(text)
        self.options = options
        self._slots: dict[int, list[_Slot]] = {}

    def fail(self, message: str, pos: int):
        raise ParseError(f"YAML parsing error at line {self.index.line_of(min(pos, len(self.text)))}: {message}")

    @staticmethod
    def is_block(node: Node) -> bool:
        return isinstance(node, (MappingNode, SequenceNode)) and not node.flow_style and bool(node.value)

    def entity(self, root: Node, number: int, previous: int) -> Entity:
        index = self.index
        slots = self.slots(root)
        first = slots[0].start
        # Comments directly above the first member travel with it
        above = adjacent_block(comments_in(self.text, previous, first, index, HASH_STYLE), index.line_of(first), index)
        start = index.line_start(above[0].line) + len(above[0].indent) if above else first
        end = self.line_end(slots[-1].end)
        props, closing, _ = self.body(root, start, end, open_line=0)
        is_array = isinstance(root, SequenceNode)
        return Entity(
            kind=EntityKind.YAML_DOCUMENT,
            name=f'document-{number}',
            properties=tuple(props),
            start_line=index.line_of(start),
            end_line=index.line_of(end),
            original_text=self.text[start:end],
            start_column=index.column_of(start),
            end_column=index.column_of(end),
            indent=index.indent_of(start),
            body_start=0,
            body_end=end - start,
            closing_comments=closing,
            is_array=is_array,
        )

    def slots(self, node: Node) -> list[_Slot]:
        cached = self._slots.get(id(node))
        if cached is not None:
            return cached
        found: list[_Slot] = []
        if isinstance(node, MappingNode):
            for key, value in node.value:
                head = key.end_mark.index
                found.append(self.slot(self.key_start(key), head, value, head, key))
        else:
            after = node.start_mark.index
            for item in node.value:
                dash = self.dash(after, item)
                slot = self.slot(dash, dash, item, max(after, dash))
                found.append(slot)
                after = slot.end
        self._slots[id(node)] = found
        return found

    def key_start(self, key: Node) -> int:
        # `? key` entries start at their indicator
        pos = key.start_mark.index
        line_start = self.index.line_start(self.index.line_of(pos))
        before = self.text[line_start:pos].rstrip(' \t')
        if before.endswith('?') and before[:-1].strip(' \t-') == '':
            return line_start + len(before) - 1
        return pos

    def dash(self, after: int, item: Node) -> int:
        # First token between the previous item and this one is the item's '-'
        limit = item.start_mark.index if item.start_mark.index > after else len(self.text)
        for token in scan_gap(self.text, after, limit, HASH_STYLE):
            if token.kind == 'comment' or token.text[:1] in '&!':
                continue
            if token.text.startswith('-'):
                return token.start
            break
        self.fail("expected a sequence item", after)
        return after

    def slot(self, start: int, head: int, value: Node, after: int, key: Node | None = None) -> _Slot:
        text = self.text
        explicit = key is not None and text[start] == '?'
        # Aliases resolve to the anchored node, which sits earlier in the stream
        if value.start_mark.index < after:
            match = _ALIAS.search(text, head)
            if match is None:
                self.fail("alias not found", head)
            return _Slot(start, match.end(), head, value, match.start(), key, True, explicit)
        if self.is_block(value):
            return _Slot(start, self.block_end(value), head, value, value.start_mark.index, key, explicit=explicit)
        if isinstance(value, ScalarNode) and value.style is None and value.value == '':
            # Implicit null: `key:` or a bare '-'
            if explicit:
                match = _EXPLICIT_VALUE.match(text, head)
                end = head if match is None else match.end()
            else:
                end = text.find(':', head) + 1 if key is not None else head + 1
            return _Slot(start, end, head, value, end, key, explicit=explicit)
        value_start = value.start_mark.index
        end = value_start + len(text[value_start:value.end_mark.index].rstrip())
        return _Slot(start, end, head, value, value_start, key, explicit=explicit)

    def block_end(self, node: Node) -> int:
        slots = self.slots(node)
        column = self.index.column_of(slots[0].start)
        end = self.line_end(slots[-1].end)
        # Deeper comment lines after the last member belong to this block
        for number in range(self.index.line_of(end) + 1, self.index.line_count() + 1):
            content = self.index.line_text(number)
            stripped = content.strip()
            if not stripped:
                continue
            if not stripped.startswith('#') or len(content) - len(content.lstrip()) < column:
                break
            end = self.index.line_start(number) + len(content.rstrip())
        return end

    def line_end(self, pos: int) -> int:
        # Include a trailing comment on the same line
        number = self.index.line_of(pos)
        return self.index.line_start(number) + len(self.index.line_text(number).rstrip())

    def opener_end(self, pos: int) -> int:
        # End of the anchor/tag text that may follow ':' or '-' on the opening line
        segment = self.text[pos:self.index.line_end(self.index.line_of(pos))]
        match = _COMMENT.search(segment)
        if match is not None:
            segment = segment[:match.start()]
        return pos + len(segment.rstrip())

    def body(self, node: Node, body_start: int, body_end: int, open_line: int | None = None
             ) -> tuple[list[Property], tuple[Comment, ...], int]:
        slots = self.slots(node)
        spans = [(s.start, s.end) for s in slots]
        attached = attach_comments(self.text, self.index, spans, body_start, body_end, HASH_STYLE,
                                   self.options.comment_attachment, open_line)
        props = [info.apply(self.member(s, i)) for i, (s, info) in enumerate(zip(slots, attached.members))]
        return props, attached.closing, attached.head_end

    def member(self, slot: _Slot, position: int) -> Property:
        text = self.text
        is_item = slot.key is None
        prop = Property(
            name=f'[{position}]' if is_item else text[slot.start:slot.head],
            value=text[slot.value_start:slot.end],
            separator=text[slot.head:slot.value_start],
            is_spread=not is_item and slot.key.tag == MERGE_TAG,  # type: ignore[union-attr]
            line=self.index.line_of(slot.start),
            full_text=text[slot.start:slot.end],
            indent=' ' * self.index.column_of(slot.start),
        )
        if slot.explicit:
            return replace(prop, verbatim=True)
        if slot.alias or not self.is_block(slot.value):
            return prop
        opener = slot.head + 1 if is_item else slot.head
        first = self.slots(slot.value)[0].start
        body_start = min(first, self.opener_end(opener))
        props, closing, head_end = self.body(slot.value, body_start, slot.end)
        return replace(
            prop,
            value=text[slot.head:slot.end],
            separator='',
            nested_properties=tuple(props),
            nested_open=text[slot.head:head_end],
            nested_close='',
            nested_comments=closing,
            is_array=isinstance(slot.value, SequenceNode),
        )
