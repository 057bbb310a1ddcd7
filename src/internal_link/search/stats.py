"""Statistical helpers for BM25 style scoring.

The functions here stay independent of the scorer's corpus bookkeeping so
they can be unit tested on their own.
"""

from __future__ import annotations

from collections.abc import Iterable
import math


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Return the inverse document frequency ``ln(1 + (N - df + 0.5) / (df + 0.5))``.

    The ``1 +`` inside the logarithm keeps the value positive even for
    terms present in every document.
    """
    if total_docs <= 0:
        return 0.0
    df = max(0, min(doc_freq, total_docs))
    return math.log(1.0 + (total_docs - df + 0.5) / (df + 0.5))


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = 1.2, b: float = 0.75) -> float:
    """Compute the BM25 term weight without IDF.

    Returns 0.0 for absent terms and for an empty corpus (zero average
    length), never a division by zero.
    """
    if tf <= 0 or avg_doc_length <= 0:
        return 0.0
    denominator = tf + k1 * (1 - b + b * doc_length / avg_doc_length)
    return (tf * (k1 + 1)) / denominator


def length_boost(word_count: int) -> float:
    """Weight favoring longer phrases: ``1 + 0.5 * (words - 1)``."""
    return 1.0 + 0.5 * (word_count - 1)


def average_length(lengths: Iterable[int]) -> float:
    """Mean of ``lengths``; 0.0 when there are none."""
    total = 0
    count = 0
    for length in lengths:
        total += max(length, 0)
        count += 1
    if count == 0:
        return 0.0
    return total / count
