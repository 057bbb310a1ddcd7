"""Positional n-gram tokenizer for markdown documents.

The tokenizer turns raw markdown into significant terms (single words and
multi-word phrases) and reports where each one occurs in the original bytes.
Only prose is considered: front matter, code blocks, inline code, raw HTML
and link destinations never produce terms.

Markdown structure comes from ``markdown-it-py``. Its inline tokens carry the
normalized text but not source offsets, so the walk below threads a cursor
through the block's source lines and locates every word at or after the
cursor. The cursor is passed in and returned explicitly at each step.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from itertools import accumulate
import re

from markdown_it import MarkdownIt
from markdown_it.token import Token as MarkdownToken

from internal_link.markdown.analyzers import MIN_OCCURRENCE_WORD_LENGTH, SignificantWordAnalyzer, Token
from internal_link.markdown.front_matter import split_front_matter
from internal_link.markdown.snippet import extract_context
from internal_link.search.models import Occurrence


# Same newline convention markdown-it uses to number lines.
_NEWLINE_PATTERN = re.compile(r"\r\n?|\n")
_WORD_PATTERN = re.compile(r"\S+")
# "!" closes a text run wherever it appears (it may open an image); "?" and "." do not.
_RUN_BREAK_PATTERN = re.compile(r"!")

_LITERAL_INLINE_TYPES = frozenset({"code_inline", "html_inline"})


def decode_content(content: str | bytes) -> str:
    """Return ``content`` as text; undecodable bytes survive a round trip."""
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="surrogateescape")
    return content


def display_text(text: str) -> str:
    """Return ``text`` with undecodable bytes shown as U+FFFD, safe to print or serialize."""
    return text.encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace")


class ByteOffsets:
    """Maps character indexes of a string onto UTF-8 byte offsets."""

    def __init__(self, text: str) -> None:
        if text.isascii():
            self._table: list[int] | None = None
        else:
            widths = (len(char.encode("utf-8", errors="surrogateescape")) for char in text)
            self._table = list(accumulate(widths, initial=0))

    def __call__(self, index: int) -> int:
        if self._table is None:
            return index
        return self._table[index]


class MarkdownTokenizer:
    """Extracts term frequencies and positioned occurrences from markdown.

    Args:
        min_ngram: Shortest phrase (in words) to emit; ``1`` emits unigrams.
        max_ngram: Longest phrase (in words) to emit.
        stopwords: Replacement stop word list; defaults to English
            function words.
    """

    def __init__(self, min_ngram: int = 1, max_ngram: int = 1, *, stopwords: Iterable[str] | None = None) -> None:
        if min_ngram < 1:
            msg = f"min_ngram must be at least 1, got {min_ngram}"
            raise ValueError(msg)
        if max_ngram < min_ngram:
            msg = f"max_ngram ({max_ngram}) must not be smaller than min_ngram ({min_ngram})"
            raise ValueError(msg)
        self.min_ngram = min_ngram
        self.max_ngram = max_ngram
        self._markdown = MarkdownIt("commonmark")
        self._frequency_words = SignificantWordAnalyzer(stopwords=stopwords)
        self._occurrence_words = SignificantWordAnalyzer(
            stopwords=stopwords,
            min_length=MIN_OCCURRENCE_WORD_LENGTH,
        )

    def parse(self, content: str | bytes) -> dict[str, int]:
        """Return the term-frequency table of ``content``."""
        body = split_front_matter(decode_content(content)).body
        counts: Counter[str] = Counter()
        for words in self.text_runs(body):
            for term, _start, _end in self._ngram_spans(self._frequency_words.filter(words)):
                counts[term] += 1
        return dict(counts)

    def find_occurrences(
        self,
        content: str | bytes,
        min_word_length: int = MIN_OCCURRENCE_WORD_LENGTH,
    ) -> list[Occurrence]:
        """Return every term occurrence ordered by byte position.

        Words of two characters or fewer never take part; terms shorter
        than ``min_word_length`` characters are dropped as a whole.
        """
        text = decode_content(content)
        split = split_front_matter(text)
        to_bytes = ByteOffsets(text)

        spans: list[tuple[str, int, int]] = []
        for words in self.text_runs(split.body):
            for term, start, end in self._ngram_spans(self._occurrence_words.filter(words)):
                if len(term) >= min_word_length:
                    spans.append((term, start, end))
        # Stable sort: same start keeps generation order (shorter phrases first).
        spans.sort(key=lambda span: span[1])

        return [
            Occurrence(
                term=term,
                position=to_bytes(split.offset + start),
                context=extract_context(split.body, start, end),
                surface=split.body[start:end],
            )
            for term, start, end in spans
        ]

    def text_runs(self, body: str) -> Iterator[list[Token]]:
        """Yield the raw words of each prose text run with offsets into ``body``."""
        for runs, _links in self._walk_blocks(body):
            yield from runs

    def link_spans(self, content: str | bytes) -> list[tuple[int, int]]:
        """Return the byte ranges of the links and images already in ``content``.

        A range covers the whole construct, from ``[`` (``![`` or ``<`` for
        images and autolinks) to the end of its destination.
        """
        text = decode_content(content)
        split = split_front_matter(text)
        to_bytes = ByteOffsets(text)
        spans = [
            (to_bytes(split.offset + start), to_bytes(split.offset + end))
            for _runs, links in self._walk_blocks(split.body)
            for start, end in links
        ]
        return sorted(spans)

    def _walk_blocks(self, body: str) -> Iterator[tuple[list[list[Token]], list[tuple[int, int]]]]:
        line_starts = _line_starts(body)
        cursor = 0
        for block in self._markdown.parse(body):
            if block.type != "inline" or not block.children:
                continue
            start, limit = _block_bounds(block, line_starts, len(body))
            runs, links, cursor = _walk_inline(block.children, body, max(cursor, start), limit)
            yield runs, links

    def _ngram_spans(self, words: Sequence[Token]) -> Iterator[tuple[str, int, int]]:
        longest = min(self.max_ngram, len(words))
        for size in range(self.min_ngram, longest + 1):
            for index in range(len(words) - size + 1):
                window = words[index : index + size]
                yield " ".join(word.text for word in window), window[0].start_char, window[-1].end_char


def _line_starts(text: str) -> list[int]:
    starts = [0]
    starts.extend(match.end() for match in _NEWLINE_PATTERN.finditer(text))
    return starts


def _block_bounds(block: MarkdownToken, line_starts: list[int], size: int) -> tuple[int, int]:
    if not block.map:
        return 0, size
    first_line, end_line = block.map
    start = line_starts[first_line] if first_line < len(line_starts) else size
    limit = line_starts[end_line] if end_line < len(line_starts) else size
    return start, limit


def _walk_inline(
    children: Sequence[MarkdownToken],
    body: str,
    cursor: int,
    limit: int,
) -> tuple[list[list[Token]], list[tuple[int, int]], int]:
    """Collect text runs and link spans from inline tokens, returning the advanced cursor."""
    runs: list[list[Token]] = []
    links: list[tuple[int, int]] = []
    opened: list[int] = []
    index = 0
    while index < len(children):
        node = children[index]
        if node.type == "text":
            for fragment in _RUN_BREAK_PATTERN.split(node.content):
                words, cursor = _locate_words(fragment, body, cursor, limit)
                if words:
                    runs.append(words)
        elif node.type in _LITERAL_INLINE_TYPES:
            cursor = _skip_literal(node, body, cursor, limit)
        elif node.type == "link_open" and node.markup == "autolink":
            index = _matching_close(children, index)
            opening = body.find("<", cursor, limit)
            close = body.find(">", cursor, limit)
            if close != -1:
                links.append((cursor if opening == -1 else opening, close + 1))
                cursor = close + 1
        elif node.type == "link_open":
            opening = body.find("[", cursor, limit)
            opened.append(cursor if opening == -1 else opening)
        elif node.type == "link_close":
            cursor = _skip_destination(body, cursor, limit)
            if opened:
                links.append((opened.pop(), cursor))
        elif node.type == "image":
            opening = body.find("![", cursor, limit)
            nested, _nested_links, cursor = _walk_inline(node.children or [], body, cursor, limit)
            runs.extend(nested)
            cursor = _skip_destination(body, cursor, limit)
            if opening != -1:
                links.append((opening, cursor))
        index += 1
    return runs, links, cursor


def _locate_words(fragment: str, body: str, cursor: int, limit: int) -> tuple[list[Token], int]:
    words: list[Token] = []
    for match in _WORD_PATTERN.finditer(fragment):
        raw = match.group(0)
        found = body.find(raw, cursor, limit)
        if found == -1:
            # Escapes and entities read differently in the source.
            continue
        words.append(Token(text=raw, start_char=found, end_char=found + len(raw)))
        cursor = found + len(raw)
    return words, cursor


def _skip_literal(node: MarkdownToken, body: str, cursor: int, limit: int) -> int:
    if node.type == "html_inline":
        found = body.find(node.content, cursor, limit)
        return cursor if found == -1 else found + len(node.content)

    opening = body.find(node.markup, cursor, limit)
    if opening == -1:
        return cursor
    closing = body.find(node.markup, opening + len(node.markup), limit)
    if closing == -1:
        return opening + len(node.markup)
    return closing + len(node.markup)


def _skip_destination(body: str, cursor: int, limit: int) -> int:
    """Move past ``](destination)`` or ``][label]`` following link text."""
    close = body.find("]", cursor, limit)
    if close == -1:
        return cursor
    position = close + 1
    if body.startswith("(", position):
        depth = 0
        for index in range(position, limit):
            char = body[index]
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return index + 1
        return position
    if body.startswith("[", position):
        label_end = body.find("]", position, limit)
        if label_end != -1:
            return label_end + 1
    return position


def _matching_close(children: Sequence[MarkdownToken], index: int) -> int:
    for candidate in range(index + 1, len(children)):
        if children[candidate].type == "link_close":
            return candidate
    return len(children) - 1
