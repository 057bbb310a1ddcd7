"""Relevance scoring between a free-text query and indexed documents."""

from __future__ import annotations

from collections import Counter
import logging
from typing import Protocol

from internal_link.search.models import Document
from internal_link.search.stats import average_length, bm25, calculate_idf, length_boost


logger = logging.getLogger(__name__)


class Scorer(Protocol):
    """Protocol implemented by document scorers."""

    def process_document(self, document: Document) -> None:  # pragma: no cover - interface definition
        """Add ``document`` to the corpus statistics."""
        ...

    def score(self, query: str, document: Document) -> float:  # pragma: no cover - interface definition
        """Return the relevance of ``document`` for ``query``."""
        ...


class BM25Scorer:
    """BM25 scorer over term-frequency tables with a phrase-length boost.

    Documents are added one at a time. The IDF of a term is computed when
    the first document containing it is processed and then kept: terms seen
    early retain the IDF of the smaller corpus they arrived in, so the order
    of :meth:`process_document` calls changes scores and must be fixed by
    the caller.
    """

    def __init__(self, max_ngram: int = 3, *, k1: float = 1.2, b: float = 0.75) -> None:
        if max_ngram < 1:
            msg = f"max_ngram must be at least 1, got {max_ngram}"
            raise ValueError(msg)
        self.max_ngram = max_ngram
        self.k1 = k1
        self.b = b
        self._documents: list[Document] = []
        self._doc_freq: Counter[str] = Counter()
        self._idf: dict[str, float] = {}
        self.average_length = 0.0

    @property
    def documents(self) -> tuple[Document, ...]:
        """Processed documents in processing order."""
        return tuple(self._documents)

    def idf(self, term: str) -> float | None:
        """Cached IDF of ``term``, or None if no processed document has it."""
        return self._idf.get(term)

    def process_document(self, document: Document) -> None:
        self._documents.append(document)
        self.average_length = average_length(doc.length for doc in self._documents)

        self._doc_freq.update(document.term_freq.keys())
        total_docs = len(self._documents)
        new_terms = 0
        # Terms of earlier documents already have an IDF; only this one can add more.
        for term in document.term_freq:
            if term in self._idf:
                continue
            self._idf[term] = calculate_idf(self._doc_freq[term], total_docs)
            new_terms += 1

        logger.debug(
            "Processed %s: %d terms (%d new), corpus of %d, average length %.2f",
            document.identifier,
            document.length,
            new_terms,
            total_docs,
            self.average_length,
        )

    def score(self, query: str, document: Document) -> float:
        words = query.lower().split()
        if not words or self.average_length <= 0:
            return 0.0

        doc_length = document.length
        matched = False
        total = 0.0
        for size in range(1, min(len(words), self.max_ngram) + 1):
            boost = length_boost(size)
            for index in range(len(words) - size + 1):
                term = " ".join(words[index : index + size])
                tf = document.term_freq.get(term)
                if not tf:
                    continue
                idf = self._idf.get(term)
                if idf is None:
                    continue
                matched = True
                total += idf * bm25(tf, doc_length, self.average_length, k1=self.k1, b=self.b) * boost

        if not matched:
            return 0.0
        return total
