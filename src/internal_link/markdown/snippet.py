"""Context windows around term occurrences.

Suggestions show a short excerpt of the sentence a link would be placed in.
The excerpt is a fixed window on each side of the span with whitespace
collapsed, marked with an ellipsis where the window cut the text.
"""

from __future__ import annotations

import re


CONTEXT_SIZE = 50
ELLIPSIS = "..."

WHITESPACE_PATTERN = re.compile(r"\s+")


def extract_context(text: str, start: int, end: int, *, size: int = CONTEXT_SIZE) -> str:
    """Return the text around ``text[start:end]``.

    Args:
        text: The full text to extract from.
        start: Start index of the span.
        end: End index of the span (exclusive).
        size: Characters of context kept on each side.

    Returns:
        The window with whitespace runs collapsed to single spaces, prefixed
        and/or suffixed with ``...`` when truncated.
    """
    window_start = max(0, start - size)
    window_end = min(len(text), end + size)

    context = WHITESPACE_PATTERN.sub(" ", text[window_start:window_end]).strip()
    if window_start > 0:
        context = ELLIPSIS + context
    if window_end < len(text):
        context = context + ELLIPSIS
    return context
