"""Backend worker — processes request queue, streams answers from the chat API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chat_blocks.chat_api import create_thread, stream_chat
from chat_blocks.messages import (
    ErrorResult,
    NewThreadRequest,
    Request,
    Response,
    SendMessageRequest,
    StreamComplete,
    ThreadCreated,
)

if TYPE_CHECKING:
    import asyncio

    from chat_blocks.config import ClientConfig

logger = logging.getLogger(__name__)


@dataclass
class Conversation:
    """The thread the worker is talking in and the turns exchanged so far."""

    thread_id: str | None = None
    turns: list[tuple[str, str]] = field(default_factory=list)  # (role, content)


async def _handle_new_thread(
    _req: NewThreadRequest,
    conv: Conversation,
    config: ClientConfig,
) -> ThreadCreated:
    """Start a new thread and forget the previous turns."""
    conv.thread_id = await create_thread(config)
    conv.turns = []
    return ThreadCreated(thread_id=conv.thread_id)


async def _handle_send_message(
    req: SendMessageRequest,
    conv: Conversation,
    config: ClientConfig,
    response_queue: asyncio.Queue[Response],
) -> None:
    """Stream an answer, forwarding every chunk as it arrives."""
    if req.thread_id is not None and req.thread_id != conv.thread_id:
        conv.thread_id = req.thread_id
        conv.turns = []
    if conv.thread_id is None:
        conv.thread_id = await create_thread(config)
        await response_queue.put(ThreadCreated(thread_id=conv.thread_id))

    history = [*conv.turns, ("user", req.text)]
    async for event in stream_chat(
        config, conv.thread_id, req.text, message_key=req.message_key, history=history
    ):
        if isinstance(event, StreamComplete):
            conv.turns = [*history, ("assistant", event.reply.content)]
        await response_queue.put(event)


async def backend_worker(
    request_queue: asyncio.Queue[Request],
    response_queue: asyncio.Queue[Response],
    config: ClientConfig,
    conv: Conversation | None = None,
) -> None:
    """Process requests from the TUI and post results back."""
    conv = conv if conv is not None else Conversation()
    while True:
        req = await request_queue.get()
        try:
            if isinstance(req, SendMessageRequest):
                await _handle_send_message(req, conv, config, response_queue)
            elif isinstance(req, NewThreadRequest):
                await response_queue.put(await _handle_new_thread(req, conv, config))
            else:
                await response_queue.put(
                    ErrorResult(request_type=type(req).__name__, error="Unknown request type")
                )
        except Exception as e:  # noqa: BLE001
            logger.warning("Request %s failed", type(req).__name__, exc_info=True)
            await response_queue.put(
                ErrorResult(
                    request_type=type(req).__name__,
                    error=str(e),
                    message_key=getattr(req, "message_key", ""),
                )
            )
        finally:
            request_queue.task_done()
