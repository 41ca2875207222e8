"""
Math Processor Unit Tests

MathML rendering through latex2mathml and per-formula error containment
"""

import pytest
from math_processor import ERROR_CLASS, MathProcessor
from segmenter import split_segments


class RecordingEngine:
    """Stands in for latex2mathml and records what it was asked"""

    def __init__(self, result='<math></math>'):
        self.result = result
        self.calls = []

    def __call__(self, latex, display='inline'):
        self.calls.append((latex, display))
        return self.result


def failing_engine(latex, display='inline'):
    raise ValueError(f"cannot typeset <{latex}>")


class TestRender:

    def test_inline_mathml(self):
        html = MathProcessor().render("E=mc^2", display_mode=False)

        assert html.startswith("<math")
        assert 'display="inline"' in html
        assert "<mi>E</mi>" in html

    def test_block_mathml(self):
        html = MathProcessor().render("a^2+b^2=c^2", display_mode=True)

        assert html.startswith("<math")
        assert 'display="block"' in html
        assert "<msup>" in html

    def test_engine_output_returned_verbatim(self):
        engine = RecordingEngine('<math>exact</math>')
        assert MathProcessor(engine).render("x") == '<math>exact</math>'

    def test_display_mode_passed_to_engine(self):
        engine = RecordingEngine()
        processor = MathProcessor(engine)

        processor.render("x", display_mode=True)
        processor.render("y", display_mode=False)

        assert engine.calls == [("x", "block"), ("y", "inline")]

    def test_sanitized_content_unescaped_before_engine(self):
        engine = RecordingEngine()
        MathProcessor(engine).render("a &lt; b &amp; c")

        assert engine.calls == [("a < b & c", "inline")]

    def test_process_segment(self):
        engine = RecordingEngine()
        segment = split_segments("$$ x $$")[1]

        MathProcessor(engine).process(segment)

        assert engine.calls == [(" x ", "block")]


class TestErrorContainment:

    def test_engine_error_becomes_inline_marker(self):
        html = MathProcessor(failing_engine).render(r"\frac{1}{2}")

        assert html.startswith(f'<span class="{ERROR_CLASS}"')
        assert "Error: cannot typeset" in html
        assert html.endswith("</span>")

    def test_error_message_is_escaped(self):
        html = MathProcessor(failing_engine).render("x")

        assert "&lt;x&gt;" in html
        assert "<x>" not in html

    def test_error_without_message_uses_type_name(self):
        def engine(latex, display='inline'):
            raise RuntimeError()

        assert "Error: RuntimeError" in MathProcessor(engine).render("x")

    def test_stats_count_renders_and_errors(self):
        processor = MathProcessor(failing_engine)
        processor.render("x")

        assert processor.get_stats() == {'rendered': 0, 'errors': 1}

        processor = MathProcessor(RecordingEngine())
        processor.render("x")
        processor.render("y")

        assert processor.get_stats() == {'rendered': 2, 'errors': 0}


class TestUnbalancedBraces:
    """latex2mathml accepts unbalanced braces, so they are caught first"""

    @pytest.mark.parametrize("latex, brace, position", [
        (r"\frac{1", "{", 6),
        ("}", "}", 1),
        ("{a}}", "}", 4),
    ])
    def test_marker_names_the_brace(self, latex, brace, position):
        engine = RecordingEngine()
        html = MathProcessor(engine).render(latex)

        assert html.startswith(f'<span class="{ERROR_CLASS}"')
        assert f"Unbalanced brace '{brace}' at position {position}" in html
        assert engine.calls == []

    def test_real_engine_not_reached_for_truncated_fraction(self):
        processor = MathProcessor()
        html = processor.render(r"\frac{1", display_mode=True)

        assert ERROR_CLASS in html
        assert "<mfrac>" not in html
        assert processor.get_stats() == {'rendered': 0, 'errors': 1}

    def test_escaped_braces_are_not_counted(self):
        engine = RecordingEngine()
        html = MathProcessor(engine).render(r"\left\{ x \right.")

        assert html == '<math></math>'
        assert engine.calls == [(r"\left\{ x \right.", "inline")]
