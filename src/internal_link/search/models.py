"""Data models shared by the tokenizer, the scorer and the analyzer."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass
class Document:
    """A markdown document taking part in one analysis run."""

    identifier: str
    text: str = ""
    term_freq: dict[str, int] = field(default_factory=dict)
    path: Path | None = None

    @property
    def length(self) -> int:
        """Document length measured in distinct terms."""
        return len(self.term_freq)


@dataclass(frozen=True)
class Occurrence:
    """One appearance of a term (or n-gram) in a document.

    ``position`` is the UTF-8 byte offset of the first character of the
    span in the original content; ``surface`` is the span as written.
    """

    term: str
    position: int
    context: str
    surface: str = ""

    def __post_init__(self) -> None:
        if not self.surface:
            object.__setattr__(self, "surface", self.term)

    @property
    def length(self) -> int:
        """Byte length of the span."""
        return len(self.surface.encode("utf-8", errors="surrogateescape"))


@dataclass(frozen=True)
class LinkSuggestion:
    """A proposed link from a span of ``source`` to ``target``."""

    source: str
    target: str
    score: float
    term: str
    position: int
    context: str
    surface: str

    @property
    def length(self) -> int:
        """Byte length of the span to link."""
        return len(self.surface.encode("utf-8", errors="surrogateescape"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "source": self.source,
            "target": self.target,
            "score": self.score,
            "term": self.term,
            "surface": self.surface,
            "position": self.position,
            "context": self.context,
        }
