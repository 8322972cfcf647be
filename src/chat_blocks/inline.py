"""Inline formatter — split paragraph text into code, bold, italic and plain spans.

Precedence is fixed: inline code is extracted first, bold from what is left,
then italic from what is left of that. A stage never re-scans text an
earlier stage already claimed, except that bold content is scanned for
italic so ``**a *b* c**`` marks ``b`` both bold and italic.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_CODE_RE = re.compile(r"`(.+?)`")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"\*(.+?)\*")


@dataclass(frozen=True)
class InlineSpan:
    """A run of uniformly formatted text inside a paragraph."""

    text: str
    is_bold: bool = False
    is_italic: bool = False
    is_code: bool = False

    @property
    def is_plain(self) -> bool:
        return not (self.is_bold or self.is_italic or self.is_code)


def _split(pattern: re.Pattern[str], text: str) -> list[tuple[str, bool]]:
    """Cut text into (piece, matched) pairs in source order.

    Matched pieces carry group 1 (delimiters stripped). Empty gaps between
    adjacent matches are dropped. Delimiter pairs with nothing between them
    never match and stay literal.
    """
    pieces: list[tuple[str, bool]] = []
    last_end = 0
    for m in pattern.finditer(text):
        if m.start() > last_end:
            pieces.append((text[last_end : m.start()], False))
        pieces.append((m.group(1), True))
        last_end = m.end()
    if last_end < len(text):
        pieces.append((text[last_end:], False))
    return pieces


def _italic_spans(text: str, *, bold: bool) -> list[InlineSpan]:
    return [
        InlineSpan(piece, is_bold=bold, is_italic=matched)
        for piece, matched in _split(_ITALIC_RE, text)
    ]


def _bold_spans(text: str) -> list[InlineSpan]:
    spans: list[InlineSpan] = []
    for piece, matched in _split(_BOLD_RE, text):
        spans.extend(_italic_spans(piece, bold=matched))
    return spans


def format_inline(text: str) -> list[InlineSpan]:
    """Split plain paragraph text into ordered inline spans.

    Never raises: unmatched delimiters stay in the output as literal
    characters of a plain span. Empty input yields an empty list.
    """
    spans: list[InlineSpan] = []
    for piece, matched in _split(_CODE_RE, text):
        if matched:
            spans.append(InlineSpan(piece, is_code=True))
        else:
            spans.extend(_bold_spans(piece))
    return spans
