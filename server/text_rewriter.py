#!/usr/bin/env python3
"""
LaTeX Text Rewriter
Rewrites the supported LaTeX commands in non-math text to HTML
using an ordered list of pattern substitutions
"""

import re

# command -> (tag, class, inline style). Word drops class-only styling on
# paste, so the look is carried inline as well.
HEADINGS = {
    'section': ('h2', 'latex-section',
                'font-size: 18pt; font-weight: bold; color: #2E74B5;'),
    'subsection': ('h3', 'latex-subsection',
                   'font-size: 14pt; font-weight: bold; color: #2E74B5;'),
    'subsubsection': ('h4', 'latex-subsubsection',
                      'font-size: 12pt; font-weight: bold; color: #1F4D78;'),
}

EMPHASIS = {
    'textbf': 'strong',
    'textit': 'em',
    'underline': 'u',
}

LIST_OPEN = '<ul class="latex-itemize">'
LIST_CLOSE = '</ul>'
ITEM_OPEN = '<li class="latex-item">'
ITEM_CLOSE = '</li>'
LINE_BREAK = '<br/>'
PARAGRAPH_BREAK = '<br/><br/>'


def heading_open(command: str) -> str:
    tag, css_class, style = HEADINGS[command]
    return f'<{tag} class="{css_class}" style="{style}">'


def heading_close(command: str) -> str:
    return f'</{HEADINGS[command][0]}>'


class RegexRewriter:
    """
    Sequential pattern substitutions over one text segment

    Rule order matters: each rule only sees the output of the previous
    ones. Arguments are captured non-greedily, so braces nested inside
    an argument are not supported.
    """

    item_pattern = re.compile(
        r'\\item\s+(.*?)(?=\\item|\\end\{itemize\}|\Z)', re.DOTALL
    )

    def process(self, text: str) -> str:
        text = self.rewrite_headings(text)
        text = self.rewrite_emphasis(text)
        text = self.rewrite_lists(text)
        text = self.rewrite_breaks(text)
        return text

    def rewrite_headings(self, text: str) -> str:
        for command in HEADINGS:
            text = re.sub(
                r'\\' + command + r'\{(.*?)\}',
                lambda m, c=command: heading_open(c) + m.group(1) + heading_close(c),
                text
            )
        return text

    def rewrite_emphasis(self, text: str) -> str:
        for command, tag in EMPHASIS.items():
            text = re.sub(
                r'\\' + command + r'\{(.*?)\}',
                lambda m, t=tag: f'<{t}>{m.group(1)}</{t}>',
                text
            )
        return text

    def rewrite_lists(self, text: str) -> str:
        # Items first, while \end{itemize} can still bound the last one
        text = self.item_pattern.sub(
            lambda m: ITEM_OPEN + m.group(1) + ITEM_CLOSE, text
        )
        text = text.replace(r'\begin{itemize}', LIST_OPEN)
        text = text.replace(r'\end{itemize}', LIST_CLOSE)
        # Whatever is left had no body to capture
        return text.replace(r'\item', ITEM_OPEN)

    def rewrite_breaks(self, text: str) -> str:
        text = text.replace('\\\\', LINE_BREAK)
        return text.replace('\n\n', PARAGRAPH_BREAK)
