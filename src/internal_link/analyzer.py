"""Link analysis across a markdown corpus.

The analyzer loads every document, feeds the term-frequency tables to the
scorer in sorted identifier order, scores each document's full text against
every other document and proposes at most one link per source position.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
import logging

from internal_link.cache import TermFrequencyCache
from internal_link.config import Settings
from internal_link.markdown.analyzers import MIN_OCCURRENCE_WORD_LENGTH
from internal_link.markdown.links import LinkInsertionError, insert_link
from internal_link.markdown.tokenizer import MarkdownTokenizer, decode_content
from internal_link.observability.context import document_context
from internal_link.repository import MarkdownRepository
from internal_link.search.models import Document, LinkSuggestion, Occurrence
from internal_link.search.scorer import BM25Scorer, Scorer


logger = logging.getLogger(__name__)


class DocumentNotFoundError(LookupError):
    """Raised when the requested single file is not part of the corpus."""


class ApplyAbortedError(RuntimeError):
    """Raised when a link cannot be inserted and ``stop_on_error`` is set."""

    def __init__(self, suggestion: LinkSuggestion, cause: LinkInsertionError) -> None:
        super().__init__(f"failed to insert link in {suggestion.source}: {cause}")
        self.suggestion = suggestion


@dataclass(frozen=True)
class ApplyFailure:
    """A suggestion that could not be inserted, with the reason."""

    suggestion: LinkSuggestion
    reason: str


@dataclass
class ApplyResult:
    """Outcome of writing suggestions into their source files."""

    applied: list[LinkSuggestion] = field(default_factory=list)
    skipped: list[LinkSuggestion] = field(default_factory=list)
    failures: list[ApplyFailure] = field(default_factory=list)
    files_written: int = 0

    @property
    def ok(self) -> bool:
        """True when no suggestion failed; skipped ones do not count."""
        return not self.failures


class LinkAnalyzer:
    """Coordinates loading, scoring and link insertion for one run."""

    def __init__(
        self,
        settings: Settings,
        *,
        repository: MarkdownRepository | None = None,
        tokenizer: MarkdownTokenizer | None = None,
        scorer: Scorer | None = None,
        cache: TermFrequencyCache | None = None,
    ) -> None:
        self.settings = settings
        self.repository = repository or MarkdownRepository(settings.root)
        self.tokenizer = tokenizer or MarkdownTokenizer(settings.min_ngram, settings.max_ngram)
        self.scorer: Scorer = scorer or BM25Scorer(settings.max_ngram)
        if cache is None and settings.use_cache:
            cache = TermFrequencyCache(
                settings.resolved_cache_dir(),
                ngram_range=(settings.min_ngram, settings.max_ngram),
            )
        self.cache = cache
        self.documents: dict[str, Document] = {}
        self._loaded = False

    def load_documents(self) -> dict[str, Document]:
        """Read and tokenize the corpus, then register it with the scorer.

        Tokenization may run on several threads; registration always
        happens sequentially in sorted identifier order because cached IDF
        values depend on it.
        """
        identifiers = self.repository.identifiers()
        if self.settings.workers > 1 and len(identifiers) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.workers) as executor:
                loaded = list(executor.map(self._load_document, identifiers))
        else:
            loaded = [self._load_document(identifier) for identifier in identifiers]

        for document in loaded:
            self.scorer.process_document(document)
            self.documents[document.identifier] = document
        self._loaded = True

        logger.info("Loaded %d documents from %s", len(self.documents), self.repository.root)
        return self.documents

    def _load_document(self, identifier: str) -> Document:
        with document_context(identifier):
            source = self.repository.read(identifier)
            term_freq = self.cache.get(source.path) if self.cache else None
            if term_freq is None:
                logger.debug("Parsing file %s", identifier)
                term_freq = self.tokenizer.parse(source.content)
                if self.cache:
                    self.cache.set(source.path, term_freq)
            return Document(
                identifier=identifier,
                text=decode_content(source.content),
                term_freq=term_freq,
                path=source.path,
            )

    def analyze(self) -> list[LinkSuggestion]:
        """Return suggestions for the whole corpus or for ``single_file``."""
        if not self._loaded:
            self.load_documents()

        if self.settings.is_single_file_mode():
            requested = self.settings.single_file or ""
            identifier = self.repository.resolve_identifier(requested)
            document = self.documents.get(identifier)
            if document is None:
                msg = f"file {requested} not found in {self.repository.root}"
                raise DocumentNotFoundError(msg)
            logger.info("Analyzing single file: %s", identifier)
            return self.analyze_document(document)

        suggestions: list[LinkSuggestion] = []
        for identifier in sorted(self.documents):
            suggestions.extend(self.analyze_document(self.documents[identifier]))
        return suggestions

    def analyze_document(self, source: Document) -> list[LinkSuggestion]:
        """Return the best suggestion per position of ``source``, ordered by position."""
        with document_context(source.identifier):
            occurrences = self.tokenizer.find_occurrences(source.text, MIN_OCCURRENCE_WORD_LENGTH)
            grouped = group_occurrences(occurrences)

            by_position: dict[int, LinkSuggestion] = {}
            for target_id in sorted(self.documents):
                if target_id == source.identifier:
                    continue
                target = self.documents[target_id]
                score = self.scorer.score(source.text, target)
                if score < self.settings.min_score:
                    continue

                best = select_occurrence(grouped, target.term_freq)
                if best is None:
                    continue

                existing = by_position.get(best.position)
                if existing is not None and score <= existing.score:
                    continue
                by_position[best.position] = LinkSuggestion(
                    source=source.identifier,
                    target=target_id,
                    score=score,
                    term=best.term,
                    position=best.position,
                    context=best.context,
                    surface=best.surface,
                )

            suggestions = [by_position[position] for position in sorted(by_position)]
            logger.debug("Found %d suggestions in %s", len(suggestions), source.identifier)
            return suggestions

    def apply_changes(self, suggestions: Iterable[LinkSuggestion]) -> ApplyResult:
        """Insert every suggestion into its source file.

        Each file is read and written once. Its suggestions are applied from
        the end of the file backwards so earlier byte positions stay valid. A
        suggestion overlapping a link inserted after it, or a link the file
        already had, is skipped. A link that no longer matches the file is
        logged and recorded as a failure, or raises :class:`ApplyAbortedError`
        when ``stop_on_error`` is set.
        """
        result = ApplyResult()
        if self.settings.dry_run:
            logger.info("Dry run: no files changed")
            return result

        by_source: dict[str, list[LinkSuggestion]] = defaultdict(list)
        for suggestion in suggestions:
            by_source[suggestion.source].append(suggestion)

        for source_id in sorted(by_source):
            with document_context(source_id):
                self._apply_to_file(source_id, by_source[source_id], result)

        logger.info(
            "Inserted %d links into %d files (%d skipped, %d failed)",
            len(result.applied),
            result.files_written,
            len(result.skipped),
            len(result.failures),
        )
        return result

    def _apply_to_file(self, source_id: str, suggestions: Sequence[LinkSuggestion], result: ApplyResult) -> None:
        content = self.repository.read(source_id).content
        existing_links = self.tokenizer.link_spans(content)
        boundary = len(content)
        changed = False

        for suggestion in sorted(suggestions, key=lambda item: item.position, reverse=True):
            span_end = suggestion.position + suggestion.length
            if span_end > boundary:
                logger.info(
                    "Skipping %r at %d in %s: overlaps another link",
                    suggestion.surface,
                    suggestion.position,
                    source_id,
                )
                result.skipped.append(suggestion)
                continue
            if _overlaps_any(suggestion.position, span_end, existing_links):
                logger.info(
                    "Skipping %r at %d in %s: already part of a link",
                    suggestion.surface,
                    suggestion.position,
                    source_id,
                )
                result.skipped.append(suggestion)
                continue

            link_target = self.repository.link_target(source_id, suggestion.target)
            try:
                content = insert_link(content, suggestion.surface, link_target, suggestion.position)
            except LinkInsertionError as exc:
                if self.settings.stop_on_error:
                    raise ApplyAbortedError(suggestion, exc) from exc
                logger.warning("Failed to insert link in %s: %s", source_id, exc)
                result.failures.append(ApplyFailure(suggestion=suggestion, reason=str(exc)))
                continue

            boundary = suggestion.position
            changed = True
            result.applied.append(suggestion)

        if changed:
            self.repository.write(source_id, content)
            result.files_written += 1


def group_occurrences(occurrences: Iterable[Occurrence]) -> dict[str, list[Occurrence]]:
    """Group occurrences by term, keeping position order within each group."""
    grouped: dict[str, list[Occurrence]] = {}
    for occurrence in occurrences:
        grouped.setdefault(occurrence.term, []).append(occurrence)
    return grouped


def select_occurrence(grouped: Mapping[str, Sequence[Occurrence]], target_freq: Mapping[str, int]) -> Occurrence | None:
    """Pick the first occurrence of the term most frequent in the target.

    Candidate terms are visited in lexical order and only a strictly higher
    frequency replaces the current best, so ties go to the lexically
    smallest term.
    """
    best: Occurrence | None = None
    max_freq = 0
    for term in sorted(grouped):
        freq = target_freq.get(term, 0)
        if freq > max_freq:
            max_freq = freq
            best = grouped[term][0]
    return best


def _overlaps_any(start: int, end: int, spans: Sequence[tuple[int, int]]) -> bool:
    return any(start < span_end and span_start < end for span_start, span_end in spans)
