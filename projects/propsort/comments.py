from __future__ import annotations

import bisect
from dataclasses import dataclass, replace

from .model import Comment, ParseError, Property

# Comment and token helpers shared by every grammar front end.
# Members are located by the grammar; everything between two members (the "gap") is scanned here:
# whitespace, list punctuation and comments. Anything else in a gap is a parse error, never silently dropped.


@dataclass(frozen=True)
class CommentSyntax:
    line: str = '//'  # '' when the grammar has no line comments
    block_open: str = '/*'
    block_close: str = '*/'

    def line_comment(self, text: str) -> str | None:
        if self.line == '':
            return None
        return self.line + ' ' + text if text else self.line

    def block_comment(self, text: str) -> str | None:
        if self.block_open == '':
            return None
        space = ' ' if text else ''
        return self.block_open + space + text + space + self.block_close


C_STYLE = CommentSyntax()
CSS_STYLE = CommentSyntax(line='')
HASH_STYLE = CommentSyntax(line='#', block_open='', block_close='')


@dataclass(frozen=True)
class Token:
    kind: str  # 'comment', 'punct' or 'other'
    start: int
    end: int
    text: str


class LineIndex:
    # Offset <-> 1-based line/column lookups over a '\n' separated text
    def __init__(self, text: str):
        self.text = text
        self._starts = [0]
        pos = text.find('\n')
        while pos >= 0:
            self._starts.append(pos + 1)
            pos = text.find('\n', pos + 1)

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self._starts, offset)

    def column_of(self, offset: int) -> int:
        return offset - self._starts[self.line_of(offset) - 1]

    def line_start(self, line: int) -> int:
        return self._starts[line - 1]

    def line_end(self, line: int) -> int:
        # Offset of the '\n' ending the line, or len(text)
        if line < len(self._starts):
            return self._starts[line] - 1
        return len(self.text)

    def line_text(self, line: int) -> str:
        return self.text[self.line_start(line):self.line_end(line)]

    def indent_of(self, offset: int) -> str:
        # Leading whitespace of the line holding offset
        line = self.line_text(self.line_of(offset))
        return line[:len(line) - len(line.lstrip(' \t'))]

    def is_line_head(self, offset: int) -> bool:
        # Only whitespace precedes offset on its line
        start = self._starts[self.line_of(offset) - 1]
        return self.text[start:offset].strip(' \t') == ''

    def line_count(self) -> int:
        return len(self._starts)


def scan_gap(text: str, start: int, end: int, syntax: CommentSyntax) -> list[Token]:
    tokens: list[Token] = []
    i = start
    while i < end:
        ch = text[i]
        if ch in ' \t\r\n':
            i += 1
            continue
        if syntax.line and text.startswith(syntax.line, i):
            j = text.find('\n', i, end)
            j = end if j < 0 else j
            raw = text[i:j].rstrip(' \t\r')
            tokens.append(Token('comment', i, i + len(raw), raw))
            i = j
            continue
        if syntax.block_open and text.startswith(syntax.block_open, i):
            j = text.find(syntax.block_close, i + len(syntax.block_open))
            if j < 0 or j + len(syntax.block_close) > end:
                raise ParseError(f"Unterminated comment at offset {i}")
            j += len(syntax.block_close)
            tokens.append(Token('comment', i, j, text[i:j]))
            i = j
            continue
        if ch in ',;':
            tokens.append(Token('punct', i, i + 1, ch))
            i += 1
            continue
        j = i
        while j < end and text[j] not in ' \t\r\n,;':
            j += 1
        tokens.append(Token('other', i, j, text[i:j]))
        i = j
    return tokens


def strip_markers(raw: str, syntax: CommentSyntax) -> str:
    if syntax.line and raw.startswith(syntax.line):
        return raw[len(syntax.line):].strip()
    if syntax.block_open and raw.startswith(syntax.block_open) and raw.endswith(syntax.block_close):
        inner = raw[len(syntax.block_open):len(raw) - len(syntax.block_close)]
        inner = inner.lstrip('*')
        lines = [line.strip() for line in inner.split('\n')]
        lines = [line[1:].strip() if line.startswith('*') else line for line in lines]
        while lines and lines[0] == '':
            lines.pop(0)
        while lines and lines[-1] == '':
            lines.pop()
        return '\n'.join(lines)
    return raw.strip()


def make_comment(raw: str, start: int, index: LineIndex, syntax: CommentSyntax) -> Comment:
    kind = 'single' if syntax.line and raw.startswith(syntax.line) else 'multi'
    indent = index.indent_of(start) if index.is_line_head(start) else ''
    return Comment(text=strip_markers(raw, syntax), type=kind, raw=raw, line=index.line_of(start), indent=indent)


def end_line(comment: Comment) -> int:
    return comment.line + comment.raw.count('\n')


def adjacent_block(comments: list[Comment], line: int, index: LineIndex) -> tuple[Comment, ...]:
    # Contiguous own-line comments ending on the line just above `line`, with no blank line in between
    block: list[Comment] = []
    expected = line - 1
    for comment in reversed(comments):
        if end_line(comment) != expected:
            break
        first = comment.raw.split('\n')[0].strip()
        last = comment.raw.split('\n')[-1].rstrip()
        if not index.line_text(comment.line).strip().startswith(first):
            break
        if not index.line_text(expected).rstrip().endswith(last):
            break
        block.insert(0, comment)
        expected = comment.line - 1
    return tuple(block)


def comments_in(text: str, start: int, end: int, index: LineIndex, syntax: CommentSyntax) -> list[Comment]:
    return [make_comment(t.text, t.start, index, syntax) for t in scan_gap(text, start, end, syntax) if t.kind == 'comment']


@dataclass(frozen=True)
class Attachment:
    leading: tuple[Comment, ...] = ()
    punctuation: str = ''
    trailing: tuple[Comment, ...] = ()

    def apply(self, prop: Property) -> Property:
        return replace(prop, comments=self.leading, trailing_punctuation=self.punctuation, trailing_comments=self.trailing)


@dataclass(frozen=True)
class BodyComments:
    members: tuple[Attachment, ...]
    head: tuple[Comment, ...]  # on the opening line, after the opening token
    head_end: int  # offset just past the last head comment, or the body start
    closing: tuple[Comment, ...]  # own-line comments after the last member


def attach_comments(text: str, index: LineIndex, spans: list[tuple[int, int]], body_start: int, body_end: int,
                    syntax: CommentSyntax, policy: str = 'leading', open_line: int | None = None) -> BodyComments:
    # spans: (start, end) offsets of each member in source order, all inside [body_start, body_end)
    # policy 'leading' gives every own-line comment to the following member;
    # 'nearest' gives a block hugging the previous member (blank line below it) to that member instead
    if open_line is None:
        open_line = index.line_of(body_start)
    leading: list[list[Comment]] = [[] for _ in spans]
    trailing: list[list[Comment]] = [[] for _ in spans]
    punctuation = [''] * len(spans)
    head: list[Comment] = []
    head_end = body_start
    closing: list[Comment] = []

    bounds = [body_start] + [end for _, end in spans]
    nexts = [start for start, _ in spans] + [body_end]
    for i in range(len(spans) + 1):
        gap_start, gap_end = bounds[i], nexts[i]
        prev = i - 1
        prev_line = index.line_of(gap_start - 1) if prev >= 0 else open_line
        own: list[Comment] = []
        for token in scan_gap(text, gap_start, gap_end, syntax):
            if token.kind == 'other':
                line = index.line_of(token.start)
                raise ParseError(f"Unexpected '{token.text}' at line {line}")
            if token.kind == 'punct':
                if prev >= 0 and punctuation[prev] == '' and not own:
                    punctuation[prev] = token.text
                elif prev < 0 or own:
                    raise ParseError(f"Unexpected '{token.text}' at line {index.line_of(token.start)}")
                continue
            comment = make_comment(token.text, token.start, index, syntax)
            if index.line_of(token.start) == prev_line and not own:
                if prev >= 0:
                    trailing[prev].append(comment)
                else:
                    head.append(comment)
                    head_end = token.end
                continue
            own.append(comment)

        target_next = leading[i] if i < len(spans) else closing
        if policy == 'nearest' and prev >= 0 and own:
            hug, rest = _split_hugging(own, prev_line, index.line_of(gap_end) if i < len(spans) else None)
            trailing[prev].extend(hug)
            own = rest
        target_next.extend(own)

    members = tuple(Attachment(tuple(leading[i]), punctuation[i], tuple(trailing[i])) for i in range(len(spans)))
    return BodyComments(members, tuple(head), head_end, tuple(closing))


def _split_hugging(own: list[Comment], prev_line: int, next_line: int | None) -> tuple[list[Comment], list[Comment]]:
    # First comment block must start on the line after prev_line and be followed by a blank line
    if not own or own[0].line != prev_line + 1:
        return [], own
    count = 1
    while count < len(own) and own[count].line == end_line(own[count - 1]) + 1:
        count += 1
    block_end = end_line(own[count - 1])
    following = own[count].line if count < len(own) else next_line
    if following is not None and following <= block_end + 1:
        return [], own
    return own[:count], own[count:]


def reindent(text: str, old: str, new: str) -> str:
    # Move continuation lines from one base indentation to another; the first line is left to the caller
    if old == new or '\n' not in text:
        return text
    lines = text.split('\n')
    for i in range(1, len(lines)):
        line = lines[i]
        if line.strip() == '':
            lines[i] = line if line == '' else ''
        elif line.startswith(old):
            lines[i] = new + line[len(old):]
    return '\n'.join(lines)


def convert_comment(comment: Comment, style: str, syntax: CommentSyntax) -> str:
    # Returns the comment text with markers for the requested style; unsupported conversions keep the original
    if style == 'single-line' and comment.type == 'multi' and syntax.line:
        lines = comment.text.split('\n') if comment.text else ['']
        return '\n'.join(syntax.line_comment(line) or syntax.line for line in lines)
    if style == 'multi-line' and comment.type == 'single' and syntax.block_open:
        return syntax.block_comment(comment.text) or comment.raw
    return comment.raw
