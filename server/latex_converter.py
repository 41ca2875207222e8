#!/usr/bin/env python3
"""
LaTeX to Word Converter
Sanitizes the source, splits it into math and text segments, renders math
to MathML and rewrites text commands to HTML, then joins the fragments
Repeated conversions of the same source are served from a small cache
"""

import hashlib
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Dict, List, Optional

from latex_parser import ParserRewriter
from math_processor import MathProcessor
from sanitizer import sanitize
from segmenter import Segment, split_segments
from text_rewriter import RegexRewriter

logger = logging.getLogger(__name__)

REWRITERS = {
    'parser': ParserRewriter,
    'regex': RegexRewriter,
}


@dataclass(frozen=True)
class RenderedFragment:
    html: str
    segment: Segment


class LaTeXConverter:
    def __init__(self, rewriter: str = 'parser',
                 math_processor: Optional[MathProcessor] = None,
                 cache_size: int = 10):
        if rewriter not in REWRITERS:
            raise ValueError(
                f"Unknown rewriter {rewriter!r}, expected one of {sorted(REWRITERS)}"
            )
        self.rewriter_name = rewriter
        self.text_rewriter = REWRITERS[rewriter]()
        self.math_processor = math_processor or MathProcessor()

        # Performance cache: hash -> html
        self._content_cache: Dict[str, str] = {}
        self._cache_size = cache_size
        self._cache_hits = 0
        # Shared by the HTTP thread and the event loop thread
        self._cache_lock = Lock()

    def convert(self, text: str, force: bool = False) -> str:
        """
        Convert LaTeX source to an HTML fragment
        Never raises for any input string
        """
        content_hash = self._hash_content(text)
        with self._cache_lock:
            if not force and content_hash in self._content_cache:
                self._cache_hits += 1
                return self._content_cache[content_hash]

        html = ''.join(fragment.html for fragment in self.render_fragments(text))

        if self._cache_size > 0:
            with self._cache_lock:
                self._content_cache[content_hash] = html
                # Keep only the most recent entries
                if len(self._content_cache) > self._cache_size:
                    oldest_keys = list(self._content_cache.keys())[:-self._cache_size]
                    for key in oldest_keys:
                        del self._content_cache[key]

        return html

    def render_fragments(self, text: str) -> List[RenderedFragment]:
        """Run the pipeline and return one fragment per segment, in order"""
        segments = split_segments(sanitize(text))
        logger.debug(f"Split {len(text)} chars into {len(segments)} segments")
        return [RenderedFragment(self.render_segment(s), s) for s in segments]

    def render_segment(self, segment: Segment) -> str:
        if segment.is_math:
            return self.math_processor.process(segment)
        return self.text_rewriter.process(segment.raw)

    def _hash_content(self, text: str) -> str:
        """Generate hash of content and settings for cache key"""
        content = f"{text}|{self.rewriter_name}"
        return hashlib.md5(content.encode('utf-8', 'surrogatepass')).hexdigest()

    def clear_cache(self):
        """Clear the conversion cache"""
        with self._cache_lock:
            self._content_cache.clear()

    def get_cache_stats(self) -> Dict[str, int]:
        return {
            'hits': self._cache_hits,
            'cache_size': len(self._content_cache),
        }


_default_converter: Optional[LaTeXConverter] = None


def render(document: str) -> str:
    """Convert a LaTeX document to an HTML fragment with the default settings"""
    global _default_converter
    if _default_converter is None:
        _default_converter = LaTeXConverter()
    return _default_converter.convert(document)
