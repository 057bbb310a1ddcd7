"""Unit tests for the markdown repository."""

import pytest

from internal_link.repository import DocumentLoadError, DocumentWriteError, MarkdownRepository


pytestmark = pytest.mark.unit


def test_identifiers_are_sorted_posix_paths(corpus_dir):
    (corpus_dir / "notes.txt").write_text("not markdown", encoding="utf-8")
    (corpus_dir / "UPPER.MD").write_text("# Upper", encoding="utf-8")

    repository = MarkdownRepository(corpus_dir)

    assert repository.identifiers() == ["UPPER.MD", "guides/testing.md", "languages.md", "python.md"]


def test_identifiers_require_directory(tmp_path):
    repository = MarkdownRepository(tmp_path / "missing")

    with pytest.raises(DocumentLoadError):
        repository.identifiers()


def test_read_returns_raw_bytes(corpus_dir):
    repository = MarkdownRepository(corpus_dir)

    source = repository.read("guides/testing.md")

    assert source.identifier == "guides/testing.md"
    assert source.path == corpus_dir.resolve() / "guides" / "testing.md"
    assert source.content.startswith(b"# Testing guide")


def test_read_missing_file_raises(corpus_dir):
    with pytest.raises(DocumentLoadError, match="absent.md"):
        MarkdownRepository(corpus_dir).read("absent.md")


def test_write_replaces_content(corpus_dir):
    repository = MarkdownRepository(corpus_dir)

    repository.write("languages.md", b"rewritten")

    assert (corpus_dir / "languages.md").read_bytes() == b"rewritten"
    assert not (corpus_dir / ".languages.md.tmp").exists()


def test_write_into_missing_directory_raises(corpus_dir):
    with pytest.raises(DocumentWriteError):
        MarkdownRepository(corpus_dir).write("missing/dir.md", b"x")


@pytest.mark.parametrize(
    ("source", "target", "expected"),
    [
        ("python.md", "languages.md", "languages.md"),
        ("python.md", "guides/testing.md", "guides/testing.md"),
        ("guides/testing.md", "python.md", "../python.md"),
        ("guides/a/b.md", "reference/api.md", "../../reference/api.md"),
    ],
)
def test_link_target_is_relative_to_source(corpus_dir, source, target, expected):
    assert MarkdownRepository(corpus_dir).link_target(source, target) == expected


def test_resolve_identifier_accepts_relative_and_absolute_names(corpus_dir, monkeypatch):
    repository = MarkdownRepository(corpus_dir)

    assert repository.resolve_identifier("guides/testing.md") == "guides/testing.md"
    assert repository.resolve_identifier(str(corpus_dir / "python.md")) == "python.md"

    monkeypatch.chdir(corpus_dir / "guides")
    assert repository.resolve_identifier("testing.md") == "guides/testing.md"


def test_resolve_identifier_returns_unknown_names_unchanged(corpus_dir):
    assert MarkdownRepository(corpus_dir).resolve_identifier("nowhere.md") == "nowhere.md"
