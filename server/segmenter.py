#!/usr/bin/env python3
"""
Math Segmenter
Splits sanitized LaTeX source into alternating text and math segments
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


class SegmentKind(Enum):
    TEXT = 'text'
    MATH = 'math'


class Delimiter(Enum):
    NONE = ''
    INLINE = '$'
    BLOCK = '$$'


# Block alternative first so `$$` is never read as two inline delimiters.
# A span that never closes runs to the end of the input.
MATH_PATTERN = re.compile(r'(\$\$[\s\S]*?(?:\$\$|\Z)|\$[\s\S]*?(?:\$|\Z))')


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    delimiter: Delimiter
    raw: str
    closed: bool = True

    @property
    def is_math(self) -> bool:
        return self.kind is SegmentKind.MATH

    @property
    def display_mode(self) -> bool:
        return self.delimiter is Delimiter.BLOCK

    @property
    def content(self) -> str:
        """Text strictly between the delimiters"""
        if not self.is_math:
            return self.raw
        width = len(self.delimiter.value)
        if self.closed:
            return self.raw[width:-width]
        return self.raw[width:]


def classify(span: str) -> Segment:
    """Build a math Segment from a span matched by MATH_PATTERN"""
    if span.startswith('$$'):
        closed = len(span) >= 4 and span.endswith('$$')
        return Segment(SegmentKind.MATH, Delimiter.BLOCK, span, closed)
    closed = len(span) >= 2 and span.endswith('$')
    return Segment(SegmentKind.MATH, Delimiter.INLINE, span, closed)


def split_segments(text: str) -> List[Segment]:
    """
    Partition sanitized text into segments
    The result always starts and ends with a (possibly empty) text segment
    and alternates text / math in between
    """
    segments = []
    for index, part in enumerate(MATH_PATTERN.split(text)):
        if index % 2 == 0:
            segments.append(Segment(SegmentKind.TEXT, Delimiter.NONE, part))
        else:
            segments.append(classify(part))
    return segments
