"""Normalize raw model answers into markdown and render them to HTML."""

import logging
import re
from collections.abc import Callable

from markdown_it import MarkdownIt

from neural_search.core.errors import RenderingError

logger = logging.getLogger(__name__)

# A label is a letter followed by letters/whitespace, ending at a colon.
# The whitespace class includes newlines, so a label may span lines.
SECTION_LABEL_PATTERN = re.compile(r"^([A-Za-z][A-Za-z\s]+):(\s*)", re.MULTILINE)

# Same label shape, but a colon followed by a digit (e.g. "Time:10") is kept.
SUBHEADING_LABEL_PATTERN = re.compile(r"^([A-Za-z][A-Za-z\s]+):(?!\d)", re.MULTILINE)

BULLET_PATTERN = re.compile(r"^([ \t]*)[•●○]\s*", re.MULTILINE)

# Paragraphs starting with these are left without a trailing newline
BLOCK_PREFIXES = ("#", "*", "-")

_markdown = MarkdownIt("gfm-like", options_update={"breaks": True})


def normalize_line_endings(text: str) -> str:
    """Convert CRLF line endings to LF."""
    return text.replace("\r\n", "\n")


def promote_section_headings(text: str) -> str:
    """Rewrite label lines ("Summary: ...") as level-2 headings.

    The colon is dropped and any whitespace that followed it is kept.
    """
    return SECTION_LABEL_PATTERN.sub(r"## \1\2", text)


def promote_subheadings(text: str) -> str:
    """Rewrite remaining label lines as level-3 headings.

    Lines already promoted start with "#" and no longer match.
    """
    return SUBHEADING_LABEL_PATTERN.sub(r"### \1", text)


def normalize_bullets(text: str) -> str:
    """Replace glyph bullets (•, ●, ○) after any indentation with markdown "* "."""
    return BULLET_PATTERN.sub(r"\1* ", text)


def reflow_paragraphs(text: str) -> str:
    """Drop empty paragraphs and end plain paragraphs with a newline."""
    paragraphs = [p for p in text.split("\n\n") if p]
    return "\n\n".join(
        p if p.startswith(BLOCK_PREFIXES) else f"{p}\n"
        for p in paragraphs
    )


NORMALIZATION_STEPS: tuple[Callable[[str], str], ...] = (
    normalize_line_endings,
    promote_section_headings,
    promote_subheadings,
    normalize_bullets,
    reflow_paragraphs,
)


def normalize_markdown(text: str) -> str:
    """Run every normalization step over the text, in order.

    Args:
        text: Raw answer text from the model.

    Returns:
        Markdown ready for rendering.
    """
    for step in NORMALIZATION_STEPS:
        text = step(text)
    return text


def render_html(markdown: str) -> str:
    """Render GitHub-flavoured markdown to HTML, single newlines become <br>.

    Args:
        markdown: Normalized markdown text.

    Returns:
        The rendered HTML.

    Raises:
        RenderingError: If the renderer fails on the input.
    """
    try:
        return _markdown.render(markdown)
    except Exception as e:
        logger.error("Markdown rendering failed: %s", e)
        raise RenderingError() from e


def format_response(text: str) -> str:
    """Normalize a raw model answer and render it to HTML."""
    return render_html(normalize_markdown(text))
