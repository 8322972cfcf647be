"""Per-message stream state — apply sequence-numbered updates, drop stale ones."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chat_blocks.blocks import ContentBlock, segment_blocks

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamUpdate:
    """The full accumulated text of one message after chunk ``sequence``."""

    sequence: int
    text: str
    final: bool = False


@dataclass
class MessageState:
    """Latest applied parse of one streaming message.

    Each applied update re-segments the whole text from scratch.
    """

    last_sequence: int = -1
    text: str = ""
    blocks: list[ContentBlock] = field(default_factory=list)
    finished: bool = False

    def apply(self, update: StreamUpdate) -> bool:
        """Apply an update if it is newer than what is shown.

        Returns False (state untouched) for stale or duplicate sequences and
        for anything arriving after the final update. The final update is
        always applied since it carries the complete text.
        """
        if self.finished:
            logger.debug("Ignoring update %d after final", update.sequence)
            return False
        if not update.final and update.sequence <= self.last_sequence:
            logger.debug(
                "Ignoring stale update %d (have %d)", update.sequence, self.last_sequence
            )
            return False
        self.last_sequence = max(self.last_sequence, update.sequence)
        self.text = update.text
        self.blocks = segment_blocks(update.text)
        self.finished = update.final
        return True


async def consume_updates(
    queue: asyncio.Queue[StreamUpdate],
    state: MessageState,
    on_render: Callable[[MessageState], None],
) -> None:
    """Drain a single-producer update channel until the final update is applied."""
    while True:
        update = await queue.get()
        try:
            if state.apply(update):
                on_render(state)
        finally:
            queue.task_done()
        if state.finished:
            return
