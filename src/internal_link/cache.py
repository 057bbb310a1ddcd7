"""Term-frequency cache keyed by document path and modification time."""

from __future__ import annotations

from datetime import datetime, timezone
import hashlib
import logging
from pathlib import Path
import re
import shutil

import orjson


logger = logging.getLogger(__name__)

CACHE_FILE_SUFFIX = ".cache.json"

# Lone surrogates left by decoding invalid UTF-8 with "surrogateescape".
_UNDECODABLE_PATTERN = re.compile("[\udc80-\udcff]")


class CacheError(RuntimeError):
    """Raised when the cache directory cannot be created or written."""


def _cache_key(path: Path) -> str:
    """Hash the absolute document path into a cache file name."""
    return hashlib.sha256(str(path.resolve(strict=False)).encode("utf-8", errors="surrogateescape")).hexdigest()


class TermFrequencyCache:
    """Stores one term-frequency table per document on disk.

    An entry is valid while the cache file is at least as new as the source
    document and was produced with the same n-gram range; anything else is a
    miss. Corrupt entries are logged and treated as misses.
    """

    def __init__(self, cache_dir: Path, *, ngram_range: tuple[int, int]) -> None:
        self.cache_dir = cache_dir
        self.ngram_range = ngram_range
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Failed to create cache directory {cache_dir}: {exc}"
            raise CacheError(msg) from exc

    def cache_path(self, document_path: Path) -> Path:
        return self.cache_dir / f"{_cache_key(document_path)}{CACHE_FILE_SUFFIX}"

    def get(self, document_path: Path) -> dict[str, int] | None:
        """Return the cached table for ``document_path`` if still fresh."""
        cache_path = self.cache_path(document_path)
        try:
            cache_mtime = cache_path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            msg = f"Failed to stat cache file {cache_path}: {exc}"
            raise CacheError(msg) from exc

        try:
            source_mtime = document_path.stat().st_mtime
        except OSError as exc:
            msg = f"Failed to stat source file {document_path}: {exc}"
            raise CacheError(msg) from exc

        if source_mtime > cache_mtime:
            return None

        try:
            payload = orjson.loads(cache_path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable cache entry %s: %s", cache_path, exc)
            return None

        if not isinstance(payload, dict) or tuple(payload.get("ngram_range") or ()) != self.ngram_range:
            return None
        term_freq = payload.get("term_freq")
        if not isinstance(term_freq, dict):
            logger.warning("Ignoring malformed cache entry %s", cache_path)
            return None
        return {str(term): int(count) for term, count in term_freq.items()}

    def set(self, document_path: Path, term_freq: dict[str, int]) -> None:
        """Store ``term_freq`` for ``document_path``."""
        payload = {
            # Informational only; undecodable file name bytes become U+FFFD.
            "path": str(document_path).encode("utf-8", errors="surrogateescape").decode("utf-8", errors="replace"),
            "ngram_range": list(self.ngram_range),
            "term_freq": term_freq,
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }
        try:
            data = orjson.dumps(payload)
        except orjson.JSONEncodeError as exc:
            if any(_UNDECODABLE_PATTERN.search(term) for term in term_freq if isinstance(term, str)):
                logger.debug("Not caching %s: its terms contain bytes that are not UTF-8", document_path)
                return
            msg = f"Failed to serialize cache entry for {document_path}: {exc}"
            raise CacheError(msg) from exc

        cache_path = self.cache_path(document_path)
        try:
            cache_path.write_bytes(data)
        except OSError as exc:
            msg = f"Failed to write cache file {cache_path}: {exc}"
            raise CacheError(msg) from exc

    def clear(self) -> None:
        """Remove all cached data."""
        try:
            if self.cache_dir.exists():
                shutil.rmtree(self.cache_dir)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            msg = f"Failed to clear cache directory {self.cache_dir}: {exc}"
            raise CacheError(msg) from exc
