from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .comments import CommentSyntax, convert_comment, reindent
from .model import Comment, Entity, Property
from .options import ProcessingOptions

# Rendering shared by the grammar reconstructors.
# Lines are absolute (they carry their own indentation); the first line of an entity is emitted without
# indentation because the text preceding the entity on its line is kept by the processor.


def _always(_: Property) -> bool:
    return True


@dataclass(frozen=True)
class Layout:
    syntax: CommentSyntax
    separator: str = ','  # list separator inserted when one is required
    comma_only: bool = False  # ',' is the sole separator and the last member carries the list's trailing comma
    strict: bool = False  # members are separated even across lines (stylesheets)
    accepts: Callable[[Property], bool] = _always  # member may carry punctuation at all
    compact: str = ': '
    spaced: str = ' : '


# Renders one member without punctuation or comments: (text, name width used for alignment)
MemberRenderer = Callable[[Property, str, int], str]
GroupOf = Callable[[Property], Any]


def head_name(prop: Property) -> str:
    return prop.modifiers + prop.name + ('?' if prop.optional else '')


def separator(prop: Property, layout: Layout, options: ProcessingOptions, width: int) -> str:
    spacing = options.property_spacing
    if spacing == 'compact':
        return layout.compact
    if spacing == 'spaced':
        return layout.spaced
    if spacing == 'aligned':
        pad = ' ' * max(0, width - len(head_name(prop)))
        return pad + layout.compact.rstrip() + ' '
    return prop.separator


def name_width(props: Sequence[Property]) -> int:
    widths = [len(head_name(p)) for p in props if not p.is_marker and not p.is_method]
    return max(widths) if widths else 0


def member_indent(props: Sequence[Property], parent: str, unit: str, options: ProcessingOptions) -> str:
    # Keep the source indentation of a body when every member shares it, otherwise one unit deeper
    if options.indent_unit is None and props:
        indents = {p.indent for p in props}
        if len(indents) == 1:
            found = props[0].indent
            if found.startswith(parent) and len(found) > len(parent):
                return found
    return parent + unit


def entity_unit(entity: Entity, options: ProcessingOptions) -> str:
    if options.indent_unit is not None:
        return options.indent_unit
    for prop in entity.properties:
        if prop.indent.startswith(entity.indent) and len(prop.indent) > len(entity.indent):
            return prop.indent[len(entity.indent):]
    return ' ' * options.indentation_size


def punctuation(prop: Property, last: bool, last_original: str, layout: Layout, options: ProcessingOptions,
                inline: bool) -> str:
    if not layout.accepts(prop):
        return ''
    own = prop.trailing_punctuation
    policy = options.trailing_commas
    if policy == 'add':
        if own == ';' and not layout.comma_only:
            return own
        return layout.separator if layout.comma_only or not own else own
    positional = layout.comma_only or layout.strict or inline
    if positional and last:
        own = last_original
    if policy == 'remove' and last and own == ',':
        return ''
    if not last and not own and positional:
        return layout.separator
    return own


def last_punctuation(props: Sequence[Property], layout: Layout) -> str:
    # In a well-formed list only the source's last member may lack a separator
    candidates = [p for p in props if layout.accepts(p)]
    if not candidates:
        return ''
    if any(p.trailing_punctuation == '' for p in candidates):
        return ''
    ends = [p.trailing_punctuation for p in candidates]
    return max(set(ends), key=ends.count)


def comment_lines(comment: Comment, indent: str, options: ProcessingOptions, syntax: CommentSyntax) -> list[str]:
    text = convert_comment(comment, options.comment_style, syntax)
    if text == comment.raw:
        text = reindent(text, comment.indent, indent)
        lines = text.split('\n')
        return [indent + lines[0]] + lines[1:]
    return [indent + line for line in text.split('\n')]


def inline_comment(comment: Comment, options: ProcessingOptions, syntax: CommentSyntax) -> str:
    return convert_comment(comment, options.comment_style, syntax)


def last_line(prop: Property) -> int:
    return prop.line + prop.full_text.count('\n')


def split_trailing(prop: Property) -> tuple[list[Comment], list[Comment]]:
    # (same-line, own-line) trailing comments
    same = [c for c in prop.trailing_comments if c.line <= last_line(prop)]
    own = [c for c in prop.trailing_comments if c.line > last_line(prop)]
    return same, own


def can_inline(props: Sequence[Property], options: ProcessingOptions, syntax: CommentSyntax) -> bool:
    # Line comments, here or in nested bodies, force a multi-line body
    if not options.include_comments:
        return True
    for prop in props:
        for comment in list(prop.comments) + list(prop.trailing_comments) + list(prop.nested_comments):
            text = inline_comment(comment, options, syntax)
            if '\n' in text or (syntax.line and text.startswith(syntax.line)):
                return False
        if prop.nested_properties and not can_inline(prop.nested_properties, options, syntax):
            return False
    return True


def render_lines(props: Sequence[Property], indent: str, options: ProcessingOptions, layout: Layout,
                 render: MemberRenderer, group_of: GroupOf | None = None) -> list[str]:
    # One member after another, each with its comments, in the multi-line layout
    lines: list[str] = []
    width = name_width(props) if options.property_spacing == 'aligned' else 0
    last_original = last_punctuation(props, layout)
    blank_groups = options.blank_lines_between_groups and group_of is not None
    previous: Any = None
    for i, prop in enumerate(props):
        if blank_groups and i > 0:
            current = group_of(prop)  # type: ignore[misc]
            if current != previous:
                lines.append('')
        if group_of is not None:
            previous = group_of(prop)
        if options.include_comments:
            for comment in prop.comments:
                lines.extend(comment_lines(comment, indent, options, layout.syntax))
        text = render(prop, indent, width)
        text += punctuation(prop, i == len(props) - 1, last_original, layout, options, False)
        same, own = split_trailing(prop)
        if options.include_comments:
            for comment in same:
                text += ' ' + inline_comment(comment, options, layout.syntax)
        member = text.split('\n')
        lines.append(indent + member[0])
        lines.extend(member[1:])
        if options.include_comments:
            for comment in own:
                lines.extend(comment_lines(comment, indent, options, layout.syntax))
    return lines


def render_inline(props: Sequence[Property], options: ProcessingOptions, layout: Layout, render: MemberRenderer,
                  joiner: str = ' ') -> str:
    parts: list[str] = []
    last_original = last_punctuation(props, layout)
    for i, prop in enumerate(props):
        text = ''
        if options.include_comments:
            for comment in prop.comments:
                text += inline_comment(comment, options, layout.syntax) + ' '
        text += render(prop, '', 0)
        text += punctuation(prop, i == len(props) - 1, last_original, layout, options, True)
        if options.include_comments:
            for comment in prop.trailing_comments:
                text += ' ' + inline_comment(comment, options, layout.syntax)
        parts.append(text)
    return joiner.join(parts)


def _located(body: str, text: str) -> int:
    # First occurrence of a member's source text that starts a token
    pos = body.find(text)
    while pos > 0 and not (body[pos - 1].isspace() or body[pos - 1] in ',;{[('):
        pos = body.find(text, pos + 1)
    return pos


def inline_padding(body: str, props: Sequence[Property]) -> tuple[str, str, str]:
    # (space after the opening token, joiner between members, space before the closing token)
    # The joiner is the whitespace written in front of the second member; a single space without one
    lead = body[:len(body) - len(body.lstrip())]
    trail = body[len(body.rstrip()):]
    starts = sorted({pos for pos in (_located(body, p.full_text) for p in props if p.full_text) if pos >= 0})
    if len(starts) < 2:
        return lead, ' ', trail
    before = body[:starts[1]]
    return lead, before[len(before.rstrip()):], trail


def render_block(props: Sequence[Property], open_text: str, close_text: str, original_body: str, indent: str,
                 closer_indent: str, closing: Sequence[Comment], options: ProcessingOptions, layout: Layout,
                 render: MemberRenderer, group_of: GroupOf | None = None) -> str:
    # open_text + members + close_text; stays on one line when the source body did
    if not props and not closing:
        return open_text + original_body + close_text
    if '\n' not in original_body and can_inline(props, options, layout.syntax) and not closing:
        lead, joiner, trail = inline_padding(original_body, props)
        return open_text + lead + render_inline(props, options, layout, render, joiner) + trail + close_text
    lines = render_lines(props, indent, options, layout, render, group_of)
    if options.include_comments:
        for comment in closing:
            lines.extend(comment_lines(comment, indent, options, layout.syntax))
    return open_text + '\n' + '\n'.join(lines) + '\n' + closer_indent + close_text


def render_comments_above(comments: Sequence[Comment], indent: str, options: ProcessingOptions,
                          syntax: CommentSyntax) -> list[str]:
    if not options.include_comments:
        return []
    lines: list[str] = []
    for comment in comments:
        lines.extend(comment_lines(comment, indent, options, syntax))
    return lines


def finish_entity(entity: Entity, body: str, options: ProcessingOptions, syntax: CommentSyntax) -> str:
    # Leading comments then the entity text; the first line goes out without indentation
    lines = render_comments_above(entity.leading_comments, entity.indent, options, syntax)
    if not lines:
        return body
    return '\n'.join(lines)[len(entity.indent):] + '\n' + entity.indent + body
