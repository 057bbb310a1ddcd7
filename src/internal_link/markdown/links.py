"""Splicing markdown links into document content."""

from __future__ import annotations


class LinkInsertionError(ValueError):
    """Raised when a link cannot be placed at the requested span."""


class PositionOutOfRangeError(LinkInsertionError):
    """The span starts or ends outside the content."""


class TermMismatchError(LinkInsertionError):
    """The bytes at the span are not the expected term."""


def format_link(text: str, target: str) -> str:
    return f"[{text}]({target})"


def insert_link(content: bytes, term: str, target: str, position: int) -> bytes:
    """Wrap ``term`` found at byte ``position`` of ``content`` in a link to ``target``.

    Args:
        content: Document bytes
        term: Exact text expected at ``position``
        target: Link destination
        position: Byte offset of the first byte of ``term``

    Returns:
        New content with ``[term](target)`` in place of the span; all other
        bytes are unchanged.

    Raises:
        PositionOutOfRangeError: ``position`` is outside ``content`` or the
            term would run past its end.
        TermMismatchError: ``content`` holds something else at ``position``,
            typically because the file changed since it was analyzed.
    """
    if position < 0 or position >= len(content):
        msg = f"position {position} is out of range for content length {len(content)}"
        raise PositionOutOfRangeError(msg)

    expected = term.encode("utf-8", errors="surrogateescape")
    end = position + len(expected)
    if end > len(content):
        msg = f"term {term!r} at position {position} would exceed content length {len(content)}"
        raise PositionOutOfRangeError(msg)

    actual = content[position:end]
    if actual != expected:
        found = actual.decode("utf-8", errors="replace")
        msg = f"text at position {position} is {found!r}, not {term!r}"
        raise TermMismatchError(msg)

    link = format_link(term, target).encode("utf-8", errors="surrogateescape")
    return content[:position] + link + content[end:]
