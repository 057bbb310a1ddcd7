"""Front matter detection for markdown documents.

Documents may start with a metadata block fenced by ``---`` (YAML) or
``+++`` (TOML). The block is never prose, so the tokenizer skips it while
keeping every reported position relative to the original content.

Example markdown with front matter:
    ---
    title: Getting Started
    tags: [intro]
    ---
    # Getting Started

    This tutorial begins...
"""

from __future__ import annotations

from dataclasses import dataclass
import re


# Opening fence at the very start, closing fence at the start of a later line.
_FRONT_MATTER_PATTERN = re.compile(
    r"\A(?P<fence>---|\+\+\+)[^\n]*\n.*?^(?P=fence)[^\n]*(?:\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


@dataclass(frozen=True)
class FrontMatterSplit:
    """Result of separating front matter from the markdown body."""

    front_matter: str
    body: str

    @property
    def offset(self) -> int:
        """Number of characters that precede the body."""
        return len(self.front_matter)


def split_front_matter(content: str) -> FrontMatterSplit:
    """Split ``content`` into its front matter block and markdown body.

    Args:
        content: Full markdown content including front matter

    Returns:
        FrontMatterSplit whose ``front_matter`` is empty when no complete
        block was found.

    Example:
        >>> split = split_front_matter("---\\ntitle: x\\n---\\n# Body")
        >>> split.offset, split.body
        (17, '# Body')
    """
    match = _FRONT_MATTER_PATTERN.match(content)
    if not match:
        return FrontMatterSplit(front_matter="", body=content)
    return FrontMatterSplit(front_matter=content[: match.end()], body=content[match.end() :])
