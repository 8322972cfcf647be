"""Chat bubble widget that re-renders its blocks on every stream update."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.text import Text
from textual.widgets import Static

from chat_blocks.markup import BLOCK_SEPARATOR, render_blocks
from chat_blocks.stream import MessageState, StreamUpdate

if TYPE_CHECKING:
    from chat_blocks.blocks import ContentBlock

PENDING_TEXT = "…"


def _pending() -> Text:
    return Text(PENDING_TEXT, style="dim")


class MessageView(Static):
    """One chat message, user or assistant.

    Assistant messages start empty and grow through apply_update(); stale
    updates are dropped by the underlying MessageState.
    """

    DEFAULT_CSS = """
    MessageView {
        height: auto;
        margin: 1 0 0 0;
        padding: 0 1;
    }
    MessageView.user {
        border-left: thick $accent;
    }
    MessageView.assistant {
        border-left: thick $primary;
    }
    MessageView.failed {
        border-left: thick $error;
    }
    """

    def __init__(self, role: str, text: str = "", *, id: str | None = None) -> None:  # noqa: A002
        super().__init__(_pending(), id=id, classes=role)
        self.rendered = _pending()
        self.role = role
        self.state = MessageState()
        if text:
            self.apply_update(StreamUpdate(sequence=0, text=text, final=True))

    @property
    def blocks(self) -> list[ContentBlock]:
        return self.state.blocks

    def apply_update(self, update: StreamUpdate) -> bool:
        """Re-parse and redraw if the update is newer than what is shown."""
        if not self.state.apply(update):
            return False
        self.rendered = render_blocks(self.state.blocks) or _pending()
        self.update(self.rendered)
        return True

    def finish(self, text: str) -> None:
        """Apply the authoritative final text of the message."""
        self.apply_update(
            StreamUpdate(sequence=self.state.last_sequence + 1, text=text, final=True)
        )

    def fail(self, error: str) -> None:
        """Mark the message as failed, keeping any text received so far."""
        self.add_class("failed")
        note = Text(f"Error: {error}", style="red")
        if self.state.text:
            self.rendered = Text.assemble(render_blocks(self.state.blocks), BLOCK_SEPARATOR, note)
        else:
            self.rendered = note
        self.update(self.rendered)
