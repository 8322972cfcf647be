"""Chat API client — thread creation and streamed chat completions."""

from __future__ import annotations

import json
import logging
import uuid
from typing import TYPE_CHECKING, Any

import httpx

from chat_blocks.messages import ChatReply, Source, StreamChunk, StreamComplete

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from chat_blocks.config import ClientConfig

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 120.0  # seconds — answers stream for a long time
DATA_PREFIX = "data: "


class AuthError(Exception):
    """Raised when no access token is configured or the server rejects it."""


class ChatAPIError(Exception):
    """Raised when the server response cannot be turned into an answer."""


def _headers(config: ClientConfig) -> dict[str, str]:
    if not config.access_token:
        msg = "No access token configured. Set access_token in config.toml or CHAT_BLOCKS_TOKEN"
        raise AuthError(msg)
    return {
        "Authorization": f"Bearer access={config.access_token}",
        "Accept": "application/json",
    }


def _check_auth(response: httpx.Response) -> None:
    """Raise AuthError for 401/403 responses."""
    if response.status_code in (httpx.codes.UNAUTHORIZED, httpx.codes.FORBIDDEN):
        msg = f"Server rejected access token ({response.status_code})"
        raise AuthError(msg)


async def create_thread(config: ClientConfig) -> str:
    """Ask the server for a new conversation thread and return its id."""
    agent_id, workspace_id = config.require_chat_target()
    async with httpx.AsyncClient(headers=_headers(config), timeout=REQUEST_TIMEOUT) as client:
        response = await client.get(
            f"{config.base_url}/user/get_new_thread",
            params={"agent_id": agent_id, "workspace_id": workspace_id},
        )
        _check_auth(response)
        response.raise_for_status()
        body = response.json()

    data = body.get("data") if isinstance(body, dict) else None
    thread_id = data.get("thread_id") if isinstance(data, dict) else None
    if not isinstance(thread_id, str) or not thread_id:
        msg = "get_new_thread response has no thread_id"
        raise ChatAPIError(msg)
    logger.debug("Created thread %s", thread_id)
    return thread_id


def build_chat_body(
    config: ClientConfig,
    thread_id: str,
    message: str,
    history: Sequence[tuple[str, str]] | None = None,
) -> dict[str, Any]:
    """Build the JSON body for /user/stream_chat.

    ``history`` holds (role, content) turns oldest first and must already
    end with the new user message; without it the message is sent alone.
    """
    agent_id, workspace_id = config.require_chat_target()
    turns = list(history) if history else [("user", message)]
    return {
        "dynamic_auth_code": "random",
        "messages": {
            str(i): {"role": role, "content": content} for i, (role, content) in enumerate(turns)
        },
        "thread_id": thread_id,
        "workspace_id": workspace_id,
        "provider": config.provider,
        "user_id": config.user_id,
        "agent_id": agent_id,
        "voice": False,
    }


def parse_event_line(line: str) -> dict[str, Any] | None:
    """Decode one ``data: {...}`` event line.

    Returns None for non-data lines and for payloads that are not JSON objects.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    try:
        payload = json.loads(line[len(DATA_PREFIX) :])
    except json.JSONDecodeError:
        logger.warning("Skipping malformed stream event: %.60r", line)
        return None
    if not isinstance(payload, dict):
        logger.warning("Skipping non-object stream event: %.60r", line)
        return None
    return payload


def parse_sources(raw: Any) -> tuple[Source, ...]:
    """Extract well-formed citations, dropping entries with missing fields."""
    if not isinstance(raw, list):
        return ()
    sources: list[Source] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        file_id = item.get("file_id")
        file_name = item.get("file_name")
        page = item.get("page")
        if isinstance(file_id, str) and isinstance(file_name, str) and isinstance(page, int):
            sources.append(Source(file_id=file_id, file_name=file_name, page=page))
    return tuple(sources)


async def stream_chat(
    config: ClientConfig,
    thread_id: str,
    message: str,
    *,
    message_key: str = "",
    history: Sequence[tuple[str, str]] | None = None,
) -> AsyncIterator[StreamChunk | StreamComplete]:
    """Send a message and yield the answer as it streams in.

    Every event carries the full answer text so far. A StreamChunk is
    yielded only when that text grew, numbered from 0. The stream ends with
    one StreamComplete. Raises ChatAPIError if no text arrived at all.
    """
    body = build_chat_body(config, thread_id, message, history)
    text = ""
    message_id = ""
    sources: tuple[Source, ...] = ()
    sequence = 0

    async with (
        httpx.AsyncClient(headers=_headers(config), timeout=REQUEST_TIMEOUT) as client,
        client.stream("POST", f"{config.base_url}/user/stream_chat", json=body) as response,
    ):
        _check_auth(response)
        response.raise_for_status()
        async for line in response.aiter_lines():
            event = parse_event_line(line)
            if event is None:
                continue
            msg_id = event.get("msg_id")
            if isinstance(msg_id, str) and msg_id:
                message_id = msg_id
            event_sources = parse_sources(event.get("source"))
            if event_sources:
                sources = event_sources
            response_text = event.get("response")
            if isinstance(response_text, str) and len(response_text) > len(text):
                text = response_text
                logger.debug("Stream chunk %d: %d chars", sequence, len(text))
                yield StreamChunk(message_key=message_key, sequence=sequence, text=text)
                sequence += 1

    if not text:
        msg = "Stream ended without any response text"
        raise ChatAPIError(msg)
    yield StreamComplete(
        message_key=message_key,
        reply=ChatReply(
            thread_id=thread_id,
            message_id=message_id or uuid.uuid4().hex,
            content=text,
            sources=sources,
        ),
    )
