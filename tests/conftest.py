"""Shared fixtures: client configuration and SSE stream bodies."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from chat_blocks.config import ClientConfig

if TYPE_CHECKING:
    from collections.abc import Callable

BASE_URL = "https://chat.test/v1"
STREAM_URL = f"{BASE_URL}/user/stream_chat"
NEW_THREAD_URL = f"{BASE_URL}/user/get_new_thread?agent_id=agent-1&workspace_id=ws-1"


@pytest.fixture
def config() -> ClientConfig:
    """A fully populated client configuration pointing at a fake server."""
    return ClientConfig(
        base_url=BASE_URL,
        access_token="tok_test",
        user_id="42",
        agent_id="agent-1",
        workspace_id="ws-1",
    )


@pytest.fixture
def sse_body() -> Callable[..., bytes]:
    """Build a text/event-stream body from event payloads.

    Strings are emitted verbatim as lines, anything else as ``data: <json>``.
    """

    def _build(*events: Any) -> bytes:
        lines = [e if isinstance(e, str) else "data: " + json.dumps(e) for e in events]
        return ("\n\n".join(lines) + "\n\n").encode()

    return _build
