"""Unit tests for link insertion."""

import pytest

from internal_link.markdown.links import (
    LinkInsertionError,
    PositionOutOfRangeError,
    TermMismatchError,
    format_link,
    insert_link,
)


pytestmark = pytest.mark.unit


def test_format_link():
    assert format_link("test document", "docs/test.md") == "[test document](docs/test.md)"


def test_insert_link_wraps_term():
    content = b"This is a test document"

    updated = insert_link(content, "test", "target.md", 10)

    assert updated == b"This is a [test](target.md) document"


def test_insert_link_preserves_surrounding_bytes():
    content = "Café notes: read the setup guide first.\n".encode()
    position = content.index(b"setup guide")

    updated = insert_link(content, "setup guide", "guides/setup.md", position)

    assert updated[:position] == content[:position]
    assert updated.endswith(b" first.\n")
    assert b"[setup guide](guides/setup.md)" in updated


@pytest.mark.parametrize("position", [-1, 23, 100])
def test_insert_link_position_out_of_range(position):
    with pytest.raises(PositionOutOfRangeError):
        insert_link(b"This is a test document", "test", "test.md", position)


def test_insert_link_term_running_past_end():
    with pytest.raises(PositionOutOfRangeError):
        insert_link(b"This is a test", "test document", "test.md", 10)


def test_insert_link_term_mismatch():
    with pytest.raises(TermMismatchError):
        insert_link(b"This is a test document", "wrong", "test.md", 10)


def test_insert_link_stale_position_is_rejected():
    content = b"Intro added later. This is a test document"

    with pytest.raises(LinkInsertionError, match="not 'test'"):
        insert_link(content, "test", "test.md", 10)


def test_link_insertion_errors_are_value_errors():
    assert issubclass(PositionOutOfRangeError, ValueError)
    assert issubclass(TermMismatchError, ValueError)


def test_insert_link_keeps_invalid_utf8_bytes():
    content = b"Caf\xe9 menu"
    surface = content.decode("utf-8", errors="surrogateescape")[:4]

    updated = insert_link(content, surface, "cafe.md", 0)

    assert updated == b"[Caf\xe9](cafe.md) menu"
