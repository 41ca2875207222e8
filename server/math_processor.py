#!/usr/bin/env python3
"""
Math Formula Processor
Renders LaTeX math segments to MathML with latex2mathml
"""

import html
import logging
from typing import Callable, Optional

from latex2mathml.converter import convert as latex_to_mathml

from latex_parser import unbalanced_brace
from sanitizer import unsanitize
from segmenter import Segment

logger = logging.getLogger(__name__)

ERROR_CLASS = 'latex-error'
ERROR_STYLE = 'color: #dc3545;'


class MathProcessor:
    def __init__(self, engine: Optional[Callable[..., str]] = None):
        # engine(latex, display='inline'|'block') -> MathML string
        self.engine = engine or latex_to_mathml
        self._rendered = 0
        self._errors = 0

    def process(self, segment: Segment) -> str:
        """Render a math Segment produced by the segmenter"""
        return self.render(segment.content, segment.display_mode)

    def render(self, content: str, display_mode: bool = False) -> str:
        """
        Render sanitized math content to MathML
        Engine failures are contained: the formula is replaced by an
        inline error marker and the rest of the document still renders
        """
        latex = unsanitize(content)
        display = 'block' if display_mode else 'inline'
        # latex2mathml silently drops unmatched braces, so check them here
        brace = unbalanced_brace(latex)
        if brace is not None:
            self._errors += 1
            logger.warning(f"Unbalanced brace in {display} math {latex[:50]!r}")
            return self.format_error(
                ValueError(f"Unbalanced brace '{latex[brace]}' at position {brace + 1}")
            )

        try:
            mathml = self.engine(latex, display=display)
        except Exception as e:
            self._errors += 1
            logger.warning(f"Failed to render {display} math {latex[:50]!r}: {e}")
            return self.format_error(e)

        self._rendered += 1
        return mathml

    def format_error(self, error: Exception) -> str:
        """Format an inline error marker for a formula that failed"""
        message = str(error) or type(error).__name__
        return (
            f'<span class="{ERROR_CLASS}" style="{ERROR_STYLE}">'
            f'Error: {html.escape(message, quote=False)}</span>'
        )

    def get_stats(self):
        return {'rendered': self._rendered, 'errors': self._errors}
