#!/usr/bin/env python3
"""
HTML Sanitizer
Escapes HTML-significant characters in raw LaTeX source
"""

# Ampersand must come first so the entities introduced by the
# angle-bracket rules are not escaped a second time
_ESCAPES = (
    ('&', '&amp;'),
    ('<', '&lt;'),
    ('>', '&gt;'),
)


def sanitize(text: str) -> str:
    """Escape &, < and > in that order. Nothing else is touched."""
    for char, entity in _ESCAPES:
        text = text.replace(char, entity)
    return text


def unsanitize(text: str) -> str:
    """Exact inverse of sanitize()"""
    for char, entity in reversed(_ESCAPES):
        text = text.replace(entity, char)
    return text
