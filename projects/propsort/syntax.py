from __future__ import annotations

from functools import lru_cache
import tree_sitter_css  # type: ignore
import tree_sitter_go  # type: ignore
import tree_sitter_json  # type: ignore
import tree_sitter_less  # type: ignore
import tree_sitter_scss  # type: ignore
import tree_sitter_typescript  # type: ignore
from tree_sitter import Language, Node, Parser as TSParser  # type: ignore

# tree-sitter front end shared by every grammar except YAML and Sass.
# Grammar packages ship their own compiled language; get_language() maps our keys onto them.


@lru_cache(maxsize=None)
def get_language(name: str) -> Language:
    if name == 'typescript':
        return Language(tree_sitter_typescript.language_typescript())
    if name == 'tsx':
        return Language(tree_sitter_typescript.language_tsx())
    if name == 'go':
        return Language(tree_sitter_go.language())
    if name == 'json':
        return Language(tree_sitter_json.language())
    if name == 'css':
        return Language(tree_sitter_css.language())
    if name == 'scss':
        return Language(tree_sitter_scss.language())
    if name == 'less':
        return Language(tree_sitter_less.language())
    raise ValueError(f"Language {name} not supported")


def new_parser(name: str) -> TSParser:
    # Parser objects are cheap and not shared across calls
    return TSParser(get_language(name))


class Source:
    # Parsed tree plus byte -> str offset translation, since tree-sitter reports UTF-8 byte positions
    def __init__(self, text: str, language: str):
        self.text = text
        self.data = text.encode('utf-8')
        self.tree = new_parser(language).parse(self.data)
        self._ascii = len(self.data) == len(text)
        self._offsets: list[int] | None = None

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def offset(self, byte: int) -> int:
        if self._ascii:
            return byte
        if self._offsets is None:
            offsets = [0] * (len(self.data) + 1)
            pos = 0
            for i, ch in enumerate(self.text):
                size = len(ch.encode('utf-8'))
                for k in range(size):
                    offsets[pos + k] = i
                pos += size
            offsets[pos] = len(self.text)
            self._offsets = offsets
        return self._offsets[byte]

    def start(self, node: Node) -> int:
        return self.offset(node.start_byte)

    def end(self, node: Node) -> int:
        return self.offset(node.end_byte)

    def node_text(self, node: Node) -> str:
        return self.text[self.start(node):self.end(node)]


def has_token(node: Node, token: str) -> bool:
    return any(not child.is_named and child.type == token for child in node.children)


def unwrap(node: Node | None, *wrappers: str) -> Node | None:
    # Look through parentheses, `as`, `satisfies` and similar single-operand wrappers
    while node is not None and node.type in wrappers:
        inner = node.named_children[0] if node.named_children else None
        if inner is None:
            return node
        node = inner
    return node
