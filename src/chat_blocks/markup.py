"""Block-to-Rich-text renderer.

Maps segmented blocks and inline spans to styled ``rich.text.Text``. Chat
text is appended verbatim with a style, never parsed as console markup, so
LaTeX bodies and code are shown as-is; no math typesetting or syntax
colouring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text

from chat_blocks.blocks import BlockKind, ContentBlock, segment_blocks
from chat_blocks.inline import format_inline

if TYPE_CHECKING:
    from collections.abc import Iterable

    from chat_blocks.inline import InlineSpan
    from chat_blocks.messages import Source

_HEADING_STYLES = {
    BlockKind.HEADING1: "bold underline",
    BlockKind.HEADING2: "bold",
    BlockKind.HEADING3: "bold italic",
}
CODE_STYLE = "bold cyan"
LATEX_STYLE = "magenta"
BLOCK_SEPARATOR = "\n\n"


def _span_style(span: InlineSpan) -> str:
    if span.is_code:
        return CODE_STYLE
    styles = []
    if span.is_bold:
        styles.append("bold")
    if span.is_italic:
        styles.append("italic")
    return " ".join(styles)


def render_spans(spans: Iterable[InlineSpan]) -> Text:
    """Render inline spans as one styled Text."""
    text = Text()
    for span in spans:
        if span.is_plain:
            text.append(span.text)
        else:
            text.append(span.text, style=_span_style(span))
    return text


def _render_code(block: ContentBlock) -> Text:
    body = block.text.removesuffix("\n")
    parts = [Text(block.language, style="dim")] if block.language else []
    parts.append(Text("\n".join(f"  {line}" for line in body.split("\n")), style="dim"))
    return Text("\n").join(parts)


def render_block(block: ContentBlock) -> Text:
    """Render one content block."""
    style = _HEADING_STYLES.get(block.kind)
    if style is not None:
        return Text(block.text, style=style)
    if block.kind is BlockKind.CODE_FENCE:
        return _render_code(block)
    if block.kind is BlockKind.LATEX_BLOCK:
        return Text(f"∑ {block.text.strip()}", style=LATEX_STYLE)
    return render_spans(format_inline(block.text))


def render_blocks(blocks: Iterable[ContentBlock]) -> Text:
    """Render blocks separated by blank lines."""
    return Text(BLOCK_SEPARATOR).join(render_block(b) for b in blocks)


def render_markdown(text: str) -> Text:
    """Convert chat markdown to styled terminal text."""
    if not text:
        return Text()
    return render_blocks(segment_blocks(text))


def render_sources(sources: Iterable[Source]) -> Text:
    """Render answer citations as a dim one-line list; empty if there are none."""
    cited = [f"{s.file_name} p.{s.page}" for s in sources]
    if not cited:
        return Text()
    return Text("Sources: " + ", ".join(cited), style="dim")
