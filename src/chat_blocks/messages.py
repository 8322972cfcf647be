"""Request/response message types for TUI ↔ backend communication."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

# === Shared values ===


@dataclass(frozen=True)
class Source:
    """A document citation attached to an answer."""

    file_id: str
    file_name: str
    page: int


@dataclass(frozen=True)
class ChatReply:
    """A completed assistant answer."""

    thread_id: str
    message_id: str
    content: str
    sources: tuple[Source, ...] = ()


# === Requests (TUI → Backend) ===


@dataclass(frozen=True)
class SendMessageRequest:
    """Ask the backend to send a user message and stream the answer back."""

    message_key: str
    text: str
    thread_id: str | None = None


@dataclass(frozen=True)
class NewThreadRequest:
    """Ask the backend to start a fresh conversation thread."""


Request: TypeAlias = SendMessageRequest | NewThreadRequest


# === Responses (Backend → TUI) ===


@dataclass(frozen=True)
class StreamChunk:
    """Full answer text so far, numbered per message."""

    message_key: str
    sequence: int
    text: str


@dataclass(frozen=True)
class StreamComplete:
    """Report the final answer for a message."""

    message_key: str
    reply: ChatReply


@dataclass(frozen=True)
class ThreadCreated:
    """Report the id of a newly created thread."""

    thread_id: str


@dataclass(frozen=True)
class ErrorResult:
    """Report an error processing a request."""

    request_type: str
    error: str
    message_key: str = ""


Response: TypeAlias = StreamChunk | StreamComplete | ThreadCreated | ErrorResult
