"""Filesystem access to the markdown corpus."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path, PurePosixPath
import posixpath


logger = logging.getLogger(__name__)

MARKDOWN_SUFFIX = ".md"


class DocumentLoadError(RuntimeError):
    """Raised when a corpus file cannot be read."""


class DocumentWriteError(RuntimeError):
    """Raised when a rewritten document cannot be saved."""


@dataclass(frozen=True)
class SourceFile:
    """Raw bytes of one corpus file."""

    identifier: str
    path: Path
    content: bytes


class MarkdownRepository:
    """Enumerates, reads and rewrites the markdown files under ``root``.

    Documents are identified by their path relative to ``root`` with POSIX
    separators, e.g. ``guides/setup.md``. Enumeration is sorted by identifier
    so every run visits documents in the same order.
    """

    def __init__(self, root: Path, *, suffix: str = MARKDOWN_SUFFIX) -> None:
        self.root = root.expanduser().resolve(strict=False)
        self.suffix = suffix.lower()

    def identifiers(self) -> list[str]:
        """Return identifiers of all markdown files, sorted."""
        if not self.root.is_dir():
            msg = f"Corpus root {self.root} is not a directory"
            raise DocumentLoadError(msg)
        found = [
            self.identifier_for(path)
            for path in self.root.rglob("*")
            if path.suffix.lower() == self.suffix and path.is_file()
        ]
        return sorted(found)

    def identifier_for(self, path: Path) -> str:
        return path.resolve(strict=False).relative_to(self.root).as_posix()

    def path_for(self, identifier: str) -> Path:
        return self.root / PurePosixPath(identifier)

    def resolve_identifier(self, name: str) -> str:
        """Map a user-supplied file name onto a document identifier.

        ``name`` may already be an identifier, or a path relative to the
        working directory or absolute. Names outside the corpus are returned
        unchanged so the caller can report them.
        """
        candidate = Path(name).expanduser()
        for path in (self.root / candidate, candidate):
            if not path.is_file():
                continue
            try:
                return self.identifier_for(path)
            except ValueError:
                continue
        return name

    def read(self, identifier: str) -> SourceFile:
        path = self.path_for(identifier)
        try:
            content = path.read_bytes()
        except OSError as exc:
            msg = f"Failed to read file {path}: {exc}"
            raise DocumentLoadError(msg) from exc
        return SourceFile(identifier=identifier, path=path, content=content)

    def write(self, identifier: str, content: bytes) -> None:
        """Replace the document's bytes, going through a temporary sibling file."""
        path = self.path_for(identifier)
        staging = path.with_name(f".{path.name}.tmp")
        try:
            staging.write_bytes(content)
            staging.replace(path)
        except OSError as exc:
            staging.unlink(missing_ok=True)
            msg = f"Failed to write file {path}: {exc}"
            raise DocumentWriteError(msg) from exc
        logger.debug("Wrote %d bytes to %s", len(content), path)

    def link_target(self, source: str, target: str) -> str:
        """Return the link destination for ``target`` as seen from ``source``.

        Example:
            >>> repo.link_target("guides/setup.md", "reference/api.md")
            '../reference/api.md'
        """
        source_dir = PurePosixPath(source).parent.as_posix()
        return posixpath.relpath(target, start=source_dir)
