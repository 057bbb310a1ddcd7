"""Word analyzers for prose text runs.

Analyzers follow a composable tokenizer/filter design: a tokenizer splits a
text run into positioned tokens and filters drop or rewrite them. The
positions always refer to the surface text of the word so callers can map a
normalized term back onto the source document.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, replace
import re
from typing import Protocol


@dataclass(frozen=True)
class Token:
    """A word emitted by analyzers.

    ``start_char``/``end_char`` delimit the surface form of the word in the
    text that was tokenized, after surrounding punctuation was trimmed.
    """

    text: str
    start_char: int
    end_char: int


class Tokenizer(Protocol):
    """Protocol implemented by tokenizers."""

    def __call__(self, text: str) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class TokenFilter(Protocol):
    """Protocol implemented by token filters."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:  # pragma: no cover - interface definition
        ...


class WhitespaceTokenizer:
    """Splits text on runs of whitespace."""

    _PATTERN = re.compile(r"\S+")

    def __call__(self, text: str) -> Iterator[Token]:
        for match in self._PATTERN.finditer(text):
            yield Token(text=match.group(0), start_char=match.start(), end_char=match.end())


TRIM_CHARACTERS = ".,!?()[]{}\"'"


class TrimPunctuationFilter:
    """Strips surrounding punctuation and narrows the token span to match."""

    def __init__(self, characters: str = TRIM_CHARACTERS) -> None:
        self.characters = characters

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            leading = len(token.text) - len(token.text.lstrip(self.characters))
            trimmed = token.text.strip(self.characters)
            if trimmed == token.text:
                yield token
                continue
            start = token.start_char + leading
            yield Token(text=trimmed, start_char=start, end_char=start + len(trimmed))


class LowercaseFilter:
    """Filter that lowercases token text."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.islower():
                yield token
            else:
                yield replace(token, text=token.text.lower())


class NumericFilter:
    """Drops empty tokens and tokens made only of ASCII digits."""

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text.strip("0123456789"):
                yield token


# Closed-class English words that carry no lexical meaning.
FUNCTION_WORDS: frozenset[str] = frozenset(
    {
        # Articles
        "a",
        "an",
        "the",
        # Conjunctions
        "and",
        "but",
        "or",
        "nor",
        "for",
        "yet",
        "so",
        "because",
        "if",
        "unless",
        "while",
        "where",
        "when",
        "whether",
        # Pronouns
        "i",
        "you",
        "he",
        "she",
        "it",
        "we",
        "they",
        "me",
        "him",
        "her",
        "us",
        "them",
        "my",
        "your",
        "his",
        "its",
        "our",
        "their",
        "mine",
        "yours",
        "hers",
        "ours",
        "theirs",
        "this",
        "that",
        "these",
        "those",
        "who",
        "whom",
        "whose",
        "which",
        "what",
        # Auxiliary verbs
        "am",
        "is",
        "are",
        "was",
        "were",
        "be",
        "been",
        "being",
        "have",
        "has",
        "had",
        "having",
        "do",
        "does",
        "did",
        "doing",
        "will",
        "would",
        "shall",
        "should",
        "may",
        "might",
        "must",
        "can",
        "could",
        # Other common function words
        "there",
        "here",
        "now",
        "then",
        "today",
        "tomorrow",
        "yesterday",
        "not",
        "no",
        "yes",
        "okay",
        "oh",
        "well",
        "just",
        "very",
        "much",
        "many",
        "more",
        "most",
        "some",
        "any",
        "all",
        "both",
        "each",
        "few",
        "several",
        "too",
        "rather",
        "quite",
    }
)


class StopFilter:
    """Removes stopwords from the stream."""

    def __init__(self, stopwords: Iterable[str] | None = None) -> None:
        if stopwords is None:
            self.stopwords = FUNCTION_WORDS
        else:
            self.stopwords = frozenset(word.lower() for word in stopwords)

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if token.text not in self.stopwords:
                yield token


class MinLengthFilter:
    """Drops tokens shorter than ``min_length`` characters."""

    def __init__(self, min_length: int) -> None:
        self.min_length = min_length

    def __call__(self, tokens: Iterable[Token]) -> Iterator[Token]:
        for token in tokens:
            if len(token.text) >= self.min_length:
                yield token


class AnalyzerPipeline:
    """Composable analyzer pipeline (tokenizer + filters)."""

    def __init__(self, tokenizer: Tokenizer, filters: Sequence[TokenFilter] | None = None) -> None:
        self.tokenizer = tokenizer
        self.filters = list(filters or [])

    def __call__(self, text: str) -> list[Token]:
        return self.filter(self.tokenizer(text))

    def filter(self, tokens: Iterable[Token]) -> list[Token]:
        """Run already tokenized words through the filters only."""
        stream: Iterable[Token] = tokens
        for token_filter in self.filters:
            stream = token_filter(stream)
        return list(stream)


# Words this short are never reported as link candidates.
MIN_OCCURRENCE_WORD_LENGTH = 3


class SignificantWordAnalyzer:
    """Analyzer yielding the significant words of a text run.

    ``min_length`` is applied after trimming and lowercasing; ``1`` keeps
    every non-empty word (frequency tables), the occurrence path uses
    :data:`MIN_OCCURRENCE_WORD_LENGTH`.
    """

    def __init__(self, *, stopwords: Iterable[str] | None = None, min_length: int = 1) -> None:
        filters: list[TokenFilter] = [
            TrimPunctuationFilter(),
            LowercaseFilter(),
            NumericFilter(),
            StopFilter(stopwords),
        ]
        if min_length > 1:
            filters.append(MinLengthFilter(min_length))
        self.pipeline = AnalyzerPipeline(WhitespaceTokenizer(), filters)

    def __call__(self, text: str) -> list[Token]:
        return self.pipeline(text)

    def filter(self, tokens: Iterable[Token]) -> list[Token]:
        return self.pipeline.filter(tokens)
