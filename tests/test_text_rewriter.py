"""
Text Rewriter Unit Tests

Shared expectations run against both the pattern rewriter and the
parser-backed rewriter; they must agree on flat, well-formed input.
"""

import pytest
from latex_parser import ParserRewriter
from text_rewriter import (
    ITEM_OPEN, LINE_BREAK, LIST_CLOSE, LIST_OPEN, RegexRewriter,
    heading_close, heading_open,
)


@pytest.fixture(params=[RegexRewriter, ParserRewriter], ids=['regex', 'parser'])
def rewriter(request):
    return request.param()


class TestHeadings:

    @pytest.mark.parametrize("command, tag, css_class", [
        ("section", "h2", "latex-section"),
        ("subsection", "h3", "latex-subsection"),
        ("subsubsection", "h4", "latex-subsubsection"),
    ])
    def test_heading_levels(self, rewriter, command, tag, css_class):
        html = rewriter.process(f"\\{command}{{Results}}")

        assert html.startswith(f'<{tag} class="{css_class}"')
        assert html.endswith(f">Results</{tag}>")

    def test_subsection_not_mistaken_for_section(self, rewriter):
        html = rewriter.process(r"\subsection{Intro}")

        assert html == heading_open("subsection") + "Intro" + heading_close("subsection")
        assert "<h2" not in html

    def test_heading_text_kept_verbatim(self, rewriter):
        html = rewriter.process(r"\section{A &amp; B}")
        assert ">A &amp; B</h2>" in html

    def test_headings_carry_inline_style(self, rewriter):
        assert 'style="font-size: 18pt;' in rewriter.process(r"\section{x}")


class TestEmphasis:

    def test_bold(self, rewriter):
        assert rewriter.process(r"\textbf{bold}") == "<strong>bold</strong>"

    def test_italic(self, rewriter):
        assert rewriter.process(r"\textit{it}") == "<em>it</em>"

    def test_underline(self, rewriter):
        assert rewriter.process(r"\underline{u}") == "<u>u</u>"

    def test_several_in_one_line(self, rewriter):
        html = rewriter.process(r"Here is \textbf{bold}, \textit{italic} and \underline{under}.")

        assert html == (
            "Here is <strong>bold</strong>, <em>italic</em> and <u>under</u>."
        )


class TestLists:

    def test_two_items_do_not_bleed(self, rewriter):
        html = rewriter.process(r"\begin{itemize}\item A\item B\end{itemize}")

        assert html == (
            f'{LIST_OPEN}{ITEM_OPEN}A</li>{ITEM_OPEN}B</li>{LIST_CLOSE}'
        )
        assert html.count("<li") == 2

    def test_multiline_list(self, rewriter):
        source = "\\begin{itemize}\n  \\item First.\n  \\item Second.\n\\end{itemize}"
        html = rewriter.process(source)

        assert html == (
            f"{LIST_OPEN}\n  {ITEM_OPEN}First.\n  </li>{ITEM_OPEN}Second.\n</li>{LIST_CLOSE}"
        )

    def test_item_body_may_contain_emphasis(self, rewriter):
        html = rewriter.process(r"\begin{itemize}\item a \textbf{b}\end{itemize}")
        assert f"{ITEM_OPEN}a <strong>b</strong></li>" in html

    def test_text_around_list_untouched(self, rewriter):
        html = rewriter.process(r"before \begin{itemize}\item x\end{itemize} after")

        assert html.startswith("before " + LIST_OPEN)
        assert html.endswith(LIST_CLOSE + " after")

    def test_items_outside_list_become_list_items(self, rewriter):
        html = rewriter.process(r"\item A \item B")
        assert html == f"{ITEM_OPEN}A </li>{ITEM_OPEN}B</li>"


class TestBreaks:

    def test_double_backslash_is_line_break(self, rewriter):
        assert rewriter.process(r"one\\two") == f"one{LINE_BREAK}two"

    def test_blank_line_is_paragraph_gap(self, rewriter):
        assert rewriter.process("one\n\ntwo") == "one<br/><br/>two"

    def test_single_newline_kept(self, rewriter):
        assert rewriter.process("one\ntwo") == "one\ntwo"

    def test_blank_lines_replaced_left_to_right(self, rewriter):
        assert rewriter.process("a\n\n\nb") == "a<br/><br/>\nb"
        assert rewriter.process("a\n\n\n\nb") == "a<br/><br/><br/><br/>b"


class TestPassThrough:

    def test_plain_text_unchanged(self, rewriter):
        text = "Just some words, with punctuation: 1 &lt; 2."
        assert rewriter.process(text) == text

    def test_unknown_commands_literal(self, rewriter):
        text = r"\emph{x} \cite{knuth} \LaTeX"
        assert rewriter.process(text) == text

    def test_empty(self, rewriter):
        assert rewriter.process("") == ""

    def test_unterminated_argument_left_alone(self, rewriter):
        assert rewriter.process(r"\textbf{never closed") == r"\textbf{never closed"


class TestRegexLimitations:
    """Known behaviour of the pattern rewriter that the parser fixes"""

    def test_nested_argument_stops_at_first_brace(self):
        html = RegexRewriter().process(r"\textbf{a \textit{b} c}")
        assert html == "<strong>a <em>b</strong> c</em>"

    def test_stray_item_becomes_bare_list_item(self):
        html = RegexRewriter().process(r"\item")
        assert html == ITEM_OPEN

    def test_item_without_whitespace_falls_back(self):
        html = RegexRewriter().process(r"\begin{itemize}\item\textbf{x}\end{itemize}")
        assert html == f"{LIST_OPEN}{ITEM_OPEN}<strong>x</strong>{LIST_CLOSE}"
