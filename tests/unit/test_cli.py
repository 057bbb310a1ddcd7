"""Unit tests for the command line entry point."""

import io
import logging

import orjson
import pytest

from internal_link.cli import build_parser, main, print_suggestions, settings_from_args
from internal_link.search.models import LinkSuggestion


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def pair_corpus(make_corpus):
    return make_corpus({"a.md": "Python tooling tips\n", "b.md": "python python\n"})


def _run(root, *extra):
    return main([str(root), "--no-cache", "--min-score", "0", "--min-ngram", "1", "--max-ngram", "1", *extra])


def test_parser_leaves_unset_flags_empty():
    args = build_parser().parse_args(["docs"])

    assert args.dry_run is None
    assert args.use_cache is None
    assert args.min_score is None
    assert args.format == "text"


def test_settings_from_args_only_overrides_given_flags(monkeypatch, tmp_path):
    monkeypatch.setenv("INTERNAL_LINK_MIN_SCORE", "0.8")
    args = build_parser().parse_args([str(tmp_path), "--max-ngram", "4", "--no-cache"])

    settings = settings_from_args(args)

    assert settings.root == tmp_path
    assert settings.min_score == 0.8
    assert settings.max_ngram == 4
    assert settings.use_cache is False


def test_print_suggestions_text_format():
    suggestion = LinkSuggestion(
        source="a.md",
        target="b.md",
        score=1.23456,
        term="setup guide",
        position=4,
        context="Read Setup Guide first",
        surface="Setup Guide",
    )
    stream = io.StringIO()

    print_suggestions([suggestion], dry_run=True, stream=stream)

    assert stream.getvalue() == (
        "File: a.md\n"
        "  Suggested link to: b.md\n"
        "  Score: 1.2346\n"
        "  Context: Read Setup Guide first\n"
        "  Phrase to link: Setup Guide\n"
        "\n"
    )


def test_dry_run_reports_json_without_writing(pair_corpus, capsys):
    exit_code = _run(pair_corpus, "--dry-run", "--format", "json")

    report = orjson.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert [(item["source"], item["target"], item["surface"]) for item in report] == [
        ("a.md", "b.md", "Python"),
        ("b.md", "a.md", "python"),
    ]
    assert (pair_corpus / "a.md").read_text(encoding="utf-8") == "Python tooling tips\n"


def test_apply_writes_links(pair_corpus, capsys):
    exit_code = _run(pair_corpus)

    assert exit_code == 0
    assert "Suggested link to: b.md" in capsys.readouterr().out
    assert (pair_corpus / "a.md").read_text(encoding="utf-8") == "[Python](b.md) tooling tips\n"
    assert (pair_corpus / "b.md").read_text(encoding="utf-8") == "[python](a.md) python\n"


def test_single_file_not_found_exits_with_error(pair_corpus):
    assert _run(pair_corpus, "--file", "missing.md") == 1


def test_missing_root_exits_with_error(tmp_path):
    assert _run(tmp_path / "absent", "--dry-run") == 1


def test_missing_config_file_is_a_usage_error(pair_corpus, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        _run(pair_corpus, "--config", str(tmp_path / "absent.yaml"))

    assert excinfo.value.code == 2


def test_invalid_ngram_range_is_a_usage_error(pair_corpus):
    with pytest.raises(SystemExit) as excinfo:
        main([str(pair_corpus), "--min-ngram", "3", "--max-ngram", "2"])

    assert excinfo.value.code == 2


def test_config_file_supplies_defaults(pair_corpus, tmp_path, capsys):
    config = tmp_path / "links.yaml"
    config.write_text("dry_run: true\nmin_score: 1000\n", encoding="utf-8")

    exit_code = main([str(pair_corpus), "--config", str(config), "--no-cache", "--format", "json"])

    assert exit_code == 0
    assert orjson.loads(capsys.readouterr().out) == []


def test_clear_cache_empties_cache_directory(pair_corpus, tmp_path):
    cache_dir = tmp_path / "cache"
    stale = cache_dir / "stale.cache.json"
    cache_dir.mkdir()
    stale.write_text("{}", encoding="utf-8")

    exit_code = main([str(pair_corpus), "--dry-run", "--cache-dir", str(cache_dir), "--clear-cache"])

    assert exit_code == 0
    assert not stale.exists()
    assert len(list(cache_dir.glob("*.cache.json"))) == 2


def test_json_report_replaces_invalid_utf8(make_corpus, capsys):
    root = make_corpus({})
    (root / "a.md").write_bytes(b"Caf\xe9 tooling tips\n")
    (root / "b.md").write_bytes(b"caf\xe9 caf\xe9\n")

    exit_code = _run(root, "--dry-run", "--format", "json")

    report = orjson.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert [item["surface"] for item in report] == ["Caf\ufffd", "caf\ufffd"]
    assert (root / "a.md").read_bytes() == b"Caf\xe9 tooling tips\n"


def test_apply_with_invalid_utf8_and_cache(make_corpus, tmp_path):
    root = make_corpus({})
    (root / "a.md").write_bytes(b"Caf\xe9 tooling tips\n")
    (root / "b.md").write_bytes(b"caf\xe9 caf\xe9\n")

    exit_code = main(
        [str(root), "--cache-dir", str(tmp_path / "cache"), "--min-score", "0", "--min-ngram", "1", "--max-ngram", "1"]
    )

    assert exit_code == 0
    assert (root / "a.md").read_bytes() == b"[Caf\xe9](b.md) tooling tips\n"
