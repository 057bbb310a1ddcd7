"""Shared test fixtures and configuration."""

import os
from pathlib import Path
import textwrap

import pytest


CORPUS = {
    "python.md": """\
        ---
        title: Python
        ---
        # Python programming

        Python programming languages are popular for data analysis.
        Many teams pick Python programming for scripting.

        ```python
        print("code block text is ignored")
        ```
        """,
    "languages.md": """\
        # Programming languages

        Programming languages differ in typing and data analysis support.
        Compiled programming languages trade flexibility for speed.
        """,
    "guides/testing.md": """\
        # Testing guide

        Write a test document for every feature. Each test document
        describes expected behavior and data analysis results.
        """,
}


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path_factory):
    """Keep user config files, .env files and INTERNAL_LINK_* variables out of tests."""
    for key in list(os.environ):
        if key.upper().startswith("INTERNAL_LINK_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)


@pytest.fixture
def make_corpus(tmp_path: Path):
    """Return a factory writing ``{relative name: markdown}`` under a fresh root."""

    def _make(files: dict[str, str], name: str = "docs") -> Path:
        root = tmp_path / name
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content), encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _make


@pytest.fixture
def corpus_dir(make_corpus) -> Path:
    """A small markdown corpus with front matter, code and a nested folder."""
    return make_corpus(CORPUS)
