#!/usr/bin/env python3
"""
LaTeX Text Parser
Recursive-descent parser for the supported LaTeX commands, producing a
small syntax tree, and the renderer that turns the tree into HTML.

Unlike the pattern rewriter this tracks brace depth, so arguments may
contain nested commands (\\textbf{a \\textit{b} c}) and lists may nest.
Anything it does not understand is kept as literal text.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from text_rewriter import (
    EMPHASIS, HEADINGS, ITEM_CLOSE, ITEM_OPEN, LINE_BREAK, LIST_CLOSE,
    LIST_OPEN, PARAGRAPH_BREAK, heading_close, heading_open,
)

BEGIN_LIST = r'\begin{itemize}'
END_LIST = r'\end{itemize}'
ITEM = r'\item'


@dataclass
class PlainText:
    text: str


@dataclass
class LineBreak:
    pass


@dataclass
class ParagraphBreak:
    pass


@dataclass
class Heading:
    command: str
    children: List['Node'] = field(default_factory=list)


@dataclass
class Emphasis:
    command: str
    children: List['Node'] = field(default_factory=list)


@dataclass
class ListItem:
    children: List['Node'] = field(default_factory=list)


@dataclass
class ListBlock:
    preamble: List['Node'] = field(default_factory=list)
    items: List[ListItem] = field(default_factory=list)
    closed: bool = True


Node = Union[PlainText, LineBreak, ParagraphBreak, Heading, Emphasis,
             ListItem, ListBlock]


def match_braces(text: str) -> Dict[int, int]:
    """Map the index of every balanced '{' to the index of its '}'"""
    pairs = {}
    stack = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == '\\':
            i += 2
            continue
        if char == '{':
            stack.append(i)
        elif char == '}' and stack:
            pairs[stack.pop()] = i
        i += 1
    return pairs


def unbalanced_brace(text: str) -> Optional[int]:
    """Index of the first unmatched brace, or None when all braces pair up"""
    stack = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == '\\':
            i += 2
            continue
        if char == '{':
            stack.append(i)
        elif char == '}':
            if not stack:
                return i
            stack.pop()
        i += 1
    return stack[0] if stack else None


class LatexParser:
    def parse(self, text: str) -> List[Node]:
        self.text = text
        self.braces = match_braces(text)
        nodes, _ = self._parse(0, len(text), in_list=False)
        return nodes

    def _at(self, token: str, pos: int, end: int) -> bool:
        if pos + len(token) > end or not self.text.startswith(token, pos):
            return False
        # \item must not be the prefix of a longer command name
        after = pos + len(token)
        return token != ITEM or after >= end or not self.text[after].isalpha()

    def _command_name(self, pos: int, end: int) -> str:
        stop = pos + 1
        while stop < end and self.text[stop].isalpha():
            stop += 1
        return self.text[pos + 1:stop]

    def _parse(self, pos: int, end: int, in_list: bool) -> Tuple[List[Node], int]:
        nodes: List[Node] = []
        buffer: List[str] = []

        def flush():
            if buffer:
                nodes.append(PlainText(''.join(buffer)))
                buffer.clear()

        text = self.text
        while pos < end:
            if in_list and (self._at(ITEM, pos, end) or self._at(END_LIST, pos, end)):
                break

            if text.startswith('\\\\', pos) and pos + 2 <= end:
                flush()
                nodes.append(LineBreak())
                pos += 2
            elif text.startswith('\n\n', pos) and pos + 2 <= end:
                flush()
                nodes.append(ParagraphBreak())
                pos += 2
            elif self._at(ITEM, pos, end):
                # Item outside any list: emitted as a bare list item
                flush()
                item, pos = self._parse_item(pos, end)
                nodes.append(item)
            elif self._at(BEGIN_LIST, pos, end):
                flush()
                block, pos = self._parse_list(pos + len(BEGIN_LIST), end)
                nodes.append(block)
            elif text[pos] == '\\':
                name = self._command_name(pos, end)
                node, new_pos = self._parse_command(name, pos, end)
                if node is None:
                    # Unknown or unterminated: keep it literally
                    buffer.append(text[pos:new_pos])
                else:
                    flush()
                    nodes.append(node)
                pos = new_pos
            else:
                buffer.append(text[pos])
                pos += 1

        flush()
        return nodes, pos

    def _parse_command(self, name: str, pos: int, end: int):
        after_name = pos + 1 + len(name)
        if not name:
            # Control symbol such as \{ or \$, or a trailing backslash
            return None, min(pos + 2, end)

        if name in HEADINGS or name in EMPHASIS:
            close = self.braces.get(after_name)
            if close is not None and close < end:
                children, _ = self._parse(after_name + 1, close, in_list=False)
                if name in HEADINGS:
                    return Heading(name, children), close + 1
                return Emphasis(name, children), close + 1

        return None, after_name

    def _parse_list(self, pos: int, end: int) -> Tuple[ListBlock, int]:
        block = ListBlock()
        block.preamble, pos = self._parse(pos, end, in_list=True)

        while self._at(ITEM, pos, end):
            item, pos = self._parse_item(pos, end)
            block.items.append(item)

        if self._at(END_LIST, pos, end):
            pos += len(END_LIST)
        else:
            block.closed = False
        return block, pos

    def _parse_item(self, pos: int, end: int) -> Tuple[ListItem, int]:
        """Body runs to the next \\item or \\end{itemize}"""
        pos += len(ITEM)
        while pos < end and self.text[pos].isspace():
            pos += 1
        children, pos = self._parse(pos, end, in_list=True)
        return ListItem(children), pos


class HtmlRenderer:
    def render(self, nodes: List[Node]) -> str:
        return ''.join(self.render_node(node) for node in nodes)

    def render_node(self, node: Node) -> str:
        if isinstance(node, PlainText):
            return node.text
        if isinstance(node, LineBreak):
            return LINE_BREAK
        if isinstance(node, ParagraphBreak):
            return PARAGRAPH_BREAK
        if isinstance(node, Heading):
            return (heading_open(node.command) + self.render(node.children)
                    + heading_close(node.command))
        if isinstance(node, Emphasis):
            tag = EMPHASIS[node.command]
            return f'<{tag}>{self.render(node.children)}</{tag}>'
        if isinstance(node, ListItem):
            return ITEM_OPEN + self.render(node.children) + ITEM_CLOSE
        if isinstance(node, ListBlock):
            # An unclosed list is still closed in the output
            items = ''.join(self.render_node(item) for item in node.items)
            return LIST_OPEN + self.render(node.preamble) + items + LIST_CLOSE
        raise TypeError(f"Unknown node type: {type(node).__name__}")


class ParserRewriter:
    """Text rewriter backed by LatexParser and HtmlRenderer"""

    def __init__(self):
        self.renderer = HtmlRenderer()

    def process(self, text: str) -> str:
        # LatexParser keeps per-document state, so each call gets its own
        return self.renderer.render(LatexParser().parse(text))
