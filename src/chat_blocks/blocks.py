"""Block segmenter — split markdown-like chat text into top-level content blocks.

Handles: headings (levels 1-3), fenced code blocks with an optional language
tag, ``$$...$$`` LaTeX blocks and plain paragraphs.
Does NOT handle: tables, lists, links, images.

The whole accumulated text is re-segmented on every call; there is no
incremental parse state carried between calls.
"""

from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field

_FENCE_RE = re.compile(r"```([\w+#.-]*)[ \t]*\n(.*?)```", re.DOTALL)
_LATEX_RE = re.compile(r"\$\$(.*?)\$\$", re.DOTALL)


class BlockKind(enum.Enum):
    """Structural kind of a content block."""

    PLAIN_TEXT = "plain_text"
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    HEADING3 = "heading3"
    CODE_FENCE = "code_fence"
    LATEX_BLOCK = "latex_block"


_HEADING_RES = (
    (re.compile(r"^# (.+)$"), BlockKind.HEADING1),
    (re.compile(r"^## (.+)$"), BlockKind.HEADING2),
    (re.compile(r"^### (.+)$"), BlockKind.HEADING3),
)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ContentBlock:
    """One top-level structural unit of parsed text.

    ``id`` is assigned at parse time and is not part of equality, so two
    parses of the same text compare equal block-for-block.
    """

    kind: BlockKind
    text: str
    language: str | None = None  # only set for CODE_FENCE, "" when untagged
    id: str = field(default_factory=_new_id, compare=False)


def _match_heading(line: str) -> ContentBlock | None:
    for pattern, kind in _HEADING_RES:
        m = pattern.match(line)
        if m is not None:
            return ContentBlock(kind=kind, text=m.group(1))
    return None


def _plain(text: str) -> list[ContentBlock]:
    """Return a trimmed PlainText block, or nothing for blank text."""
    stripped = text.strip()
    if not stripped:
        return []
    return [ContentBlock(kind=BlockKind.PLAIN_TEXT, text=stripped)]


def _split_latex(text: str) -> list[ContentBlock]:
    blocks: list[ContentBlock] = []
    last_end = 0
    for m in _LATEX_RE.finditer(text):
        blocks.extend(_plain(text[last_end : m.start()]))
        blocks.append(ContentBlock(kind=BlockKind.LATEX_BLOCK, text=m.group(1)))
        last_end = m.end()
    blocks.extend(_plain(text[last_end:]))
    return blocks


def _split_prose(text: str) -> list[ContentBlock]:
    """Extract code fences, then LaTeX blocks from the gaps around them."""
    blocks: list[ContentBlock] = []
    last_end = 0
    for m in _FENCE_RE.finditer(text):
        blocks.extend(_split_latex(text[last_end : m.start()]))
        blocks.append(
            ContentBlock(kind=BlockKind.CODE_FENCE, text=m.group(2), language=m.group(1))
        )
        last_end = m.end()
    blocks.extend(_split_latex(text[last_end:]))
    return blocks


def segment_blocks(text: str) -> list[ContentBlock]:
    """Split markdown-like text into ordered content blocks.

    Heading lines are recognised line by line before fences and LaTeX are
    extracted from the prose runs between them, so a ``#`` line inside an
    unterminated (or even a terminated) fence still becomes a heading.

    CRLF line endings are read as LF.

    Never raises and never returns an empty list: when nothing structural
    or non-blank is found, the untouched input comes back as one PlainText
    block.
    """
    lines = text.replace("\r\n", "\n").split("\n")
    blocks: list[ContentBlock] = []
    prose: list[str] = []

    for index, line in enumerate(lines):
        heading = _match_heading(line)
        if heading is None:
            prose.append(line if index == len(lines) - 1 else line + "\n")
            continue
        blocks.extend(_split_prose("".join(prose)))
        prose = []
        blocks.append(heading)

    blocks.extend(_split_prose("".join(prose)))

    if not blocks:
        return [ContentBlock(kind=BlockKind.PLAIN_TEXT, text=text)]
    return blocks
