"""Textual App — chat screen with streamed, block-rendered answers."""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING, ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Header, Input, Static

from chat_blocks.markup import render_sources
from chat_blocks.messages import (
    ErrorResult,
    NewThreadRequest,
    Request,
    Response,
    SendMessageRequest,
    StreamChunk,
    StreamComplete,
    ThreadCreated,
)
from chat_blocks.stream import StreamUpdate
from chat_blocks.tui.widgets.message_view import MessageView

if TYPE_CHECKING:
    from textual.binding import BindingType

POLL_INTERVAL = 0.05


class ChatApp(App[None]):
    """Chat with an agent; answers re-render as they stream in."""

    TITLE = "chat-blocks"

    CSS = """
    #transcript {
        height: 1fr;
        padding: 0 1;
    }
    #prompt {
        dock: bottom;
    }
    #empty-message {
        width: 100%;
        content-align: center middle;
        text-style: dim;
    }
    .sources {
        padding: 0 2;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("ctrl+q", "quit", "Quit", show=True),
        Binding("ctrl+n", "new_thread", "New thread", show=True),
    ]

    def __init__(
        self,
        request_queue: asyncio.Queue[Request] | None = None,
        response_queue: asyncio.Queue[Response] | None = None,
        thread_id: str | None = None,
    ) -> None:
        super().__init__()
        self._request_queue: asyncio.Queue[Request] = (
            request_queue if request_queue is not None else asyncio.Queue()
        )
        self._response_queue: asyncio.Queue[Response] = (
            response_queue if response_queue is not None else asyncio.Queue()
        )
        self._thread_id = thread_id
        self._views: dict[str, MessageView] = {}

    @property
    def thread_id(self) -> str | None:
        return self._thread_id

    def compose(self) -> ComposeResult:
        """Create the transcript and prompt."""
        yield Header()
        with VerticalScroll(id="transcript"):
            yield Static("Ask something to start the conversation.", id="empty-message")
        yield Input(placeholder="Message…", id="prompt")
        yield Footer()

    def on_mount(self) -> None:
        """Start polling the response queue."""
        self.set_interval(POLL_INTERVAL, self._poll_responses)
        self.query_one("#prompt", Input).focus()

    def _transcript(self) -> VerticalScroll:
        return self.query_one("#transcript", VerticalScroll)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Show the user message and ask the backend for an answer."""
        text = event.value.strip()
        if not text:
            return
        event.input.value = ""
        transcript = self._transcript()
        for placeholder in transcript.query("#empty-message"):
            placeholder.remove()

        key = uuid.uuid4().hex
        answer = MessageView("assistant", id=f"msg-{key}")
        self._views[key] = answer
        transcript.mount(MessageView("user", text))
        transcript.mount(answer)
        transcript.scroll_end(animate=False)
        self._request_queue.put_nowait(
            SendMessageRequest(message_key=key, text=text, thread_id=self._thread_id)
        )

    async def _poll_responses(self) -> None:
        """Drain the response queue and update the UI."""
        while not self._response_queue.empty():
            try:
                resp = self._response_queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._handle_response(resp)

    def _handle_response(self, resp: Response) -> None:
        """Dispatch a response message to the appropriate handler."""
        if isinstance(resp, StreamChunk):
            self._on_stream_chunk(resp)
        elif isinstance(resp, StreamComplete):
            self._on_stream_complete(resp)
        elif isinstance(resp, ThreadCreated):
            self._thread_id = resp.thread_id
        elif isinstance(resp, ErrorResult):
            self._on_error_result(resp)

    def _on_stream_chunk(self, chunk: StreamChunk) -> None:
        view = self._views.get(chunk.message_key)
        if view is None:
            return
        if view.apply_update(StreamUpdate(sequence=chunk.sequence, text=chunk.text)):
            self._transcript().scroll_end(animate=False)

    def _on_stream_complete(self, result: StreamComplete) -> None:
        """Apply the final text and list the cited sources under the answer."""
        view = self._views.pop(result.message_key, None)
        if view is None:
            return
        self._thread_id = result.reply.thread_id
        view.finish(result.reply.content)
        sources = render_sources(result.reply.sources)
        if sources:
            self._transcript().mount(Static(sources, classes="sources"), after=view)
        self._transcript().scroll_end(animate=False)

    def _on_error_result(self, result: ErrorResult) -> None:
        """Handle error — mark the pending answer and show a notification."""
        view = self._views.pop(result.message_key, None)
        if view is not None:
            view.fail(result.error)
        self.notify(f"Error ({result.request_type}): {result.error}", severity="error")

    # === Actions ===

    def action_new_thread(self) -> None:
        """Clear the transcript and start a new thread."""
        self._thread_id = None
        self._views.clear()
        self._transcript().remove_children()
        self._request_queue.put_nowait(NewThreadRequest())
