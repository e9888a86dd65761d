from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from tree_sitter import Node  # type: ignore

from ..comments import C_STYLE, CSS_STYLE, CommentSyntax, LineIndex, adjacent_block, attach_comments, comments_in
from ..model import Comment, Entity, EntityKind, FileType, ParseError, ParseResult, Property
from ..options import ProcessingOptions
from ..sorters import vendor_prefix
from ..syntax import Source

logger = logging.getLogger(__name__)

_DECLARATION = re.compile(r'(\*?[-\w]+(?:#\{[^}]*\}[-\w]*)*)(\s*:\s*)(.*)$', re.S)
_IMPORTANT = re.compile(r'!\s*important\s*$', re.I)
_LANGUAGES = {FileType.CSS: 'css', FileType.SCSS: 'scss', FileType.LESS: 'less'}
_COMMENTS = ('comment', 'single_line_comment', 'js_comment')
_BODIES = ('block', 'keyframe_block_list')


def stylesheet_syntax(file_type: FileType) -> CommentSyntax:
    # Plain CSS has no line comments; the preprocessors accept '//'
    return CSS_STYLE if file_type == FileType.CSS else C_STYLE


@dataclass
class _Item:
    # A declaration/statement, or a rule when children is not None.
    # Rules: prelude [start, prelude_end), opening token at open, members in [body_start, body_end), closer up to end
    start: int
    end: int
    prelude_end: int = 0
    open: int = 0
    body_start: int = 0
    body_end: int = 0
    children: list["_Item"] | None = None

    @property
    def is_rule(self) -> bool:
        return self.children is not None


class _TreeReader:
    # css, scss and less through their tree-sitter grammars; a rule is any node that owns a block
    def __init__(self, text: str, file_type: FileType):
        self.tree = Source(text, _LANGUAGES[file_type])
        self.index = LineIndex(text)

    def fail(self, message: str, node: Node):
        line = self.index.line_of(min(self.tree.start(node), len(self.tree.text)))
        raise ParseError(f"CSS parsing error at line {line}: {message}")

    def check(self, node: Node) -> None:
        # Reports the first ERROR or MISSING node in source order
        tree = self.tree
        if node.is_missing:
            self.fail(f"missing '{node.type}'", node)
        if node.type == 'ERROR':
            found = tree.node_text(node)
            if not tree.text[tree.end(node):].strip() and found.count('{') > found.count('}'):
                self.fail("missing '}'", node)
            first = found.strip().splitlines()[0] if found.strip() else node.type
            self.fail(f"unexpected '{first[:20]}'", node)
        if node.has_error:
            for child in node.children:
                self.check(child)

    def code_end(self, node: Node) -> int:
        # A statement's ';' is left to the gap scan as list punctuation
        children = [c for c in node.children if c.type not in _COMMENTS]
        if children and children[-1].type == ';':
            if len(children) > 1:
                return self.tree.end(children[-2])
            return self.tree.start(children[-1])
        return self.tree.end(node)

    def items(self, node: Node) -> list[_Item]:
        return [self.item(child) for child in node.named_children if child.type not in _COMMENTS]

    def item(self, node: Node) -> _Item:
        tree = self.tree
        body = next((child for child in node.children if child.type in _BODIES), None)
        if body is None:
            return _Item(tree.start(node), self.code_end(node))
        before = body.prev_sibling
        while before is not None and before.type in _COMMENTS:
            before = before.prev_sibling
        prelude_end = tree.end(before) if before is not None else tree.start(body)
        opening, closing = body.children[0], body.children[-1]
        return _Item(tree.start(node), tree.end(body), prelude_end, tree.start(opening), tree.end(opening),
                     tree.start(closing), self.items(body))

    def scan(self) -> list[_Item]:
        root = self.tree.root
        self.check(root)
        return self.items(root)


@dataclass
class _Line:
    kind: str  # 'code' or 'comment'
    depth: int
    start: int
    end: int  # end of the code, trailing comment excluded


class _IndentScanner:
    # sass has no tree-sitter grammar on the index: a line opens a rule when the following code lines are indented deeper
    def __init__(self, text: str):
        self.text = text
        self.index = LineIndex(text)

    def code_end(self, start: int, end: int) -> int:
        text = self.text
        i, parens, last = start, 0, start
        while i < end:
            ch = text[i]
            if ch in '"\'':
                j = text.find(ch, i + 1, end)
                i = last = end if j < 0 else j + 1
                continue
            if ch == '(':
                parens += 1
            elif ch == ')':
                parens = max(0, parens - 1)
            elif parens == 0 and (text.startswith('//', i) or text.startswith('/*', i)):
                break
            if not ch.isspace():
                last = i + 1
            i += 1
        return last

    def lines(self) -> list[_Line]:
        index, text = self.index, self.text
        found: list[_Line] = []
        in_comment = False
        for number in range(1, index.line_count() + 1):
            line_start, line_end = index.line_start(number), index.line_end(number)
            content = text[line_start:line_end]
            stripped = content.lstrip(' \t')
            start = line_start + len(content) - len(stripped)
            depth = start - line_start
            if in_comment:
                in_comment = '*/' not in content
                found.append(_Line('comment', depth, start, start + len(stripped.rstrip())))
                continue
            if not stripped.strip():
                continue
            end = self.code_end(start, line_end)
            if end == start:
                if stripped.startswith('/*') and '*/' not in stripped:
                    in_comment = True
                found.append(_Line('comment', depth, start, start + len(stripped.rstrip())))
                continue
            found.append(_Line('code', depth, start, end))
        return found

    def block(self, lines: list[_Line], i: int, parent: int) -> tuple[list[_Item], int]:
        found: list[_Item] = []
        while i < len(lines):
            line = lines[i]
            if line.kind == 'comment':
                i += 1
                continue
            if line.depth <= parent:
                break
            children, j = self.block(lines, i + 1, line.depth)
            if children:
                # Deeper comments after the last member still belong to the rule
                end = max(x.end for x in lines[i + 1:j] if x.kind == 'code' or x.depth > line.depth)
                found.append(_Item(line.start, end, line.end, line.end, line.end, end, children))
            else:
                found.append(_Item(line.start, line.end))
            i = j
        return found, i

    def scan(self) -> list[_Item]:
        return self.block(self.lines(), 0, -1)[0]


class CssParser:
    # Top-level rule blocks and block at-rules; nested rules become anchored members with their own bodies
    def parse(self, source: str, options: ProcessingOptions, file_type: FileType = FileType.CSS) -> ParseResult:
        result = ParseResult(source_code=source, file_type=file_type)
        syntax = stylesheet_syntax(file_type)
        try:
            if file_type == FileType.SASS:
                items = _IndentScanner(source).scan()
            else:
                items = _TreeReader(source, file_type).scan()
            builder = _Builder(source, syntax, options)
            previous = 0
            for item in items:
                if item.is_rule and item.children:
                    result.entities.append(builder.entity(item, previous))
                previous = item.end
        except ParseError as e:
            result.errors.append(str(e))
        logger.debug("found %d style rules, %d errors", len(result.entities), len(result.errors))
        return result


class _Builder:
    def __init__(self, text: str, syntax: CommentSyntax, options: ProcessingOptions):
        self.text = text
        self.syntax = syntax
        self.index = LineIndex(text)
        self.options = options

    def entity(self, item: _Item, previous: int) -> Entity:
        text, index = self.text, self.index
        props, closing, head_end = self.body(item)
        before = comments_in(text, previous, item.start, index, self.syntax)
        return Entity(
            kind=EntityKind.STYLE_RULE,
            name=' '.join(text[item.start:item.prelude_end].split()),
            properties=tuple(props),
            start_line=index.line_of(item.start),
            end_line=index.line_of(max(item.end - 1, item.start)),
            original_text=text[item.start:item.end],
            leading_comments=adjacent_block(before, index.line_of(item.start), index),
            start_column=index.column_of(item.start),
            end_column=index.column_of(item.end),
            indent=index.indent_of(item.start),
            body_start=head_end - item.start,
            body_end=item.body_end - item.start,
            closing_comments=closing,
        )

    def body(self, item: _Item) -> tuple[list[Property], tuple[Comment, ...], int]:
        children = item.children or []
        spans = [(c.start, c.end) for c in children]
        attached = attach_comments(self.text, self.index, spans, item.body_start, item.body_end, self.syntax,
                                   self.options.comment_attachment)
        props = [info.apply(self.member(child)) for child, info in zip(children, attached.members)]
        return props, attached.closing, attached.head_end

    def member(self, item: _Item) -> Property:
        text = self.text
        full = text[item.start:item.end]
        base = dict(line=self.index.line_of(item.start), full_text=full, indent=self.index.indent_of(item.start))
        if item.is_rule:
            props, closing, head_end = self.body(item)
            return Property(
                name=text[item.start:item.prelude_end],
                value=text[item.open:item.end],
                separator=text[item.prelude_end:item.open],
                nested_properties=tuple(props),
                nested_open=text[item.open:head_end],
                nested_close=text[item.body_end:item.end],
                nested_comments=closing,
                verbatim=True,
                **base,
            )
        match = _DECLARATION.match(full)
        # Variables, mixin calls and other statements keep their place
        if match is None or full[0] in '$@':
            return Property(name=full, separator='', verbatim=True, **base)
        name, sep, value = match.groups()
        return Property(
            name=name,
            value=value,
            separator=sep,
            important=_IMPORTANT.search(value) is not None,
            vendor_prefix=vendor_prefix(name),
            **base,
        )
