"""Tests for the block segmenter."""

from __future__ import annotations

import pytest

from chat_blocks.blocks import BlockKind, ContentBlock, segment_blocks


def _kinds(blocks: list[ContentBlock]) -> list[BlockKind]:
    return [b.kind for b in blocks]


_MARKERS = {
    BlockKind.HEADING1: ("# ", ""),
    BlockKind.HEADING2: ("## ", ""),
    BlockKind.HEADING3: ("### ", ""),
    BlockKind.LATEX_BLOCK: ("$$", "$$"),
    BlockKind.PLAIN_TEXT: ("", ""),
}


def _source(block: ContentBlock) -> str:
    """Return the block text with its delimiters restored."""
    if block.kind is BlockKind.CODE_FENCE:
        return f"```{block.language}\n{block.text}```"
    before, after = _MARKERS[block.kind]
    return f"{before}{block.text}{after}"


def test_structure_free_text_is_one_plain_block() -> None:
    """Text without markers comes back as a single PlainText block."""
    text = "Just a friendly answer.\nWith two lines."
    assert segment_blocks(text) == [ContentBlock(BlockKind.PLAIN_TEXT, text)]


def test_plain_block_is_trimmed() -> None:
    """Surrounding whitespace of a paragraph is trimmed."""
    assert segment_blocks("\n  hello world \n\n") == [
        ContentBlock(BlockKind.PLAIN_TEXT, "hello world")
    ]


def test_order_preserved_across_all_kinds() -> None:
    """Heading, paragraph, fence and LaTeX come back in source order."""
    blocks = segment_blocks("# A\ntext\n```py\ncode\n```\n$$x$$")
    assert blocks == [
        ContentBlock(BlockKind.HEADING1, "A"),
        ContentBlock(BlockKind.PLAIN_TEXT, "text"),
        ContentBlock(BlockKind.CODE_FENCE, "code\n", language="py"),
        ContentBlock(BlockKind.LATEX_BLOCK, "x"),
    ]


@pytest.mark.parametrize(
    ("line", "kind", "text"),
    [
        ("# Title", BlockKind.HEADING1, "Title"),
        ("## Section  two", BlockKind.HEADING2, "Section  two"),
        ("### Deep", BlockKind.HEADING3, "Deep"),
    ],
)
def test_heading_levels(line: str, kind: BlockKind, text: str) -> None:
    """Each heading level strips its marker and one space, keeping inner spacing."""
    assert segment_blocks(line) == [ContentBlock(kind, text)]


@pytest.mark.parametrize("line", ["#Title", "#### Four", "  # indented", "#"])
def test_non_heading_lines_stay_plain(line: str) -> None:
    """Missing space, deeper levels and indented markers are plain text."""
    blocks = segment_blocks(line)
    assert _kinds(blocks) == [BlockKind.PLAIN_TEXT]
    assert blocks[0].text == line.strip()


def test_text_before_heading_is_sub_parsed_in_place() -> None:
    """Fences before a heading are extracted and stay ahead of the heading."""
    blocks = segment_blocks("intro\n```\nx = 1\n```\n## Next\nafter")
    assert blocks == [
        ContentBlock(BlockKind.PLAIN_TEXT, "intro"),
        ContentBlock(BlockKind.CODE_FENCE, "x = 1\n", language=""),
        ContentBlock(BlockKind.HEADING2, "Next"),
        ContentBlock(BlockKind.PLAIN_TEXT, "after"),
    ]


def test_untagged_fence_has_empty_language() -> None:
    """A fence without a tag reports language ""."""
    (block,) = segment_blocks("```\nplain code\n```")
    assert block.kind is BlockKind.CODE_FENCE
    assert block.language == ""
    assert block.text == "plain code\n"


def test_fence_body_kept_verbatim() -> None:
    """Leading indentation and blank lines inside a fence are preserved."""
    (block,) = segment_blocks("```python\n\n    def f():\n        pass\n\n```")
    assert block.text == "\n    def f():\n        pass\n\n"
    assert block.language == "python"


def test_fence_language_with_symbols() -> None:
    """Tags like c++ and objective-c are captured whole."""
    blocks = segment_blocks("```c++\nint x;\n```\n```objective-c\nid y;\n```")
    assert [b.language for b in blocks] == ["c++", "objective-c"]


def test_multiple_fences_with_latex_between() -> None:
    """LaTeX between two fences is extracted from the gap."""
    text = "```a\n1\n```\nmid $$y^2$$ end\n```b\n2\n```"
    assert segment_blocks(text) == [
        ContentBlock(BlockKind.CODE_FENCE, "1\n", language="a"),
        ContentBlock(BlockKind.PLAIN_TEXT, "mid"),
        ContentBlock(BlockKind.LATEX_BLOCK, "y^2"),
        ContentBlock(BlockKind.PLAIN_TEXT, "end"),
        ContentBlock(BlockKind.CODE_FENCE, "2\n", language="b"),
    ]


def test_latex_spans_lines_and_keeps_body() -> None:
    """A multi-line LaTeX block keeps its inner whitespace."""
    blocks = segment_blocks("Euler:\n$$\ne^{i\\pi} + 1 = 0\n$$")
    assert blocks == [
        ContentBlock(BlockKind.PLAIN_TEXT, "Euler:"),
        ContentBlock(BlockKind.LATEX_BLOCK, "\ne^{i\\pi} + 1 = 0\n"),
    ]


def test_dollar_signs_inside_fence_are_code() -> None:
    """$$ inside a fence belongs to the code body."""
    (block,) = segment_blocks("```sh\necho $$\necho $$\n```")
    assert block.kind is BlockKind.CODE_FENCE
    assert block.text == "echo $$\necho $$\n"


def test_unterminated_fence_falls_back_to_plain() -> None:
    """An open fence without closing marker stays literal text."""
    text = "```python\nprint('streaming so far')"
    assert segment_blocks(text) == [ContentBlock(BlockKind.PLAIN_TEXT, text)]


def test_unterminated_latex_falls_back_to_plain() -> None:
    """A lone $$ stays literal text."""
    assert segment_blocks("costs $$5") == [ContentBlock(BlockKind.PLAIN_TEXT, "costs $$5")]


def test_heading_inside_unterminated_fence_is_still_heading() -> None:
    """Heading detection runs before fence extraction."""
    blocks = segment_blocks("```md\n### Title\nbody")
    assert blocks == [
        ContentBlock(BlockKind.PLAIN_TEXT, "```md"),
        ContentBlock(BlockKind.HEADING3, "Title"),
        ContentBlock(BlockKind.PLAIN_TEXT, "body"),
    ]


def test_heading_inside_closed_fence_splits_the_fence() -> None:
    """A # line inside a closed fence becomes a heading and breaks the fence apart."""
    blocks = segment_blocks("```python\n# comment\nx = 1\n```")
    assert _kinds(blocks) == [BlockKind.PLAIN_TEXT, BlockKind.HEADING1, BlockKind.PLAIN_TEXT]
    assert blocks[1].text == "comment"


def test_empty_input_returns_one_empty_block() -> None:
    """Empty text still yields one block."""
    assert segment_blocks("") == [ContentBlock(BlockKind.PLAIN_TEXT, "")]


def test_whitespace_only_input_returned_untouched() -> None:
    """Blank input falls back to one PlainText block with the original text."""
    assert segment_blocks(" \n\t\n") == [ContentBlock(BlockKind.PLAIN_TEXT, " \n\t\n")]


def test_ids_are_unique_and_ignored_by_equality() -> None:
    """Every parse assigns fresh ids; equal content still compares equal."""
    first = segment_blocks("# A\nb")
    second = segment_blocks("# A\nb")
    assert first == second
    ids = {b.id for b in first} | {b.id for b in second}
    assert len(ids) == 4


def test_source_round_trip_contains_input() -> None:
    """Re-joining block sources reproduces the input modulo boundary whitespace."""
    text = "# Intro\nSome *text*.\n```js\nlet a = 1;\n```\n$$a+b$$\n## End"
    rebuilt = "\n".join(_source(b) for b in segment_blocks(text))
    assert rebuilt.split() == text.split()


def test_growing_stream_prefixes_never_fail() -> None:
    """Every prefix of a streamed answer parses to a non-empty block list."""
    text = "## Plan\nUse `re`:\n```python\nimport re\n```\nthen $$O(n)$$ **done**"
    for end in range(len(text) + 1):
        assert segment_blocks(text[:end])


def test_crlf_line_endings() -> None:
    """Windows line endings still yield headings and fences."""
    blocks = segment_blocks("# Title\r\nintro\r\n```py\r\nx = 1\r\n```\r\n")
    assert blocks == [
        ContentBlock(BlockKind.HEADING1, "Title"),
        ContentBlock(BlockKind.PLAIN_TEXT, "intro"),
        ContentBlock(BlockKind.CODE_FENCE, "x = 1\n", language="py"),
    ]
