"""CLI entry point and subcommand definitions."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import httpx
from rich.console import Console
from rich.live import Live
from rich.text import Text

from chat_blocks.blocks import ContentBlock, segment_blocks
from chat_blocks.chat_api import AuthError, ChatAPIError, create_thread, stream_chat
from chat_blocks.config import ConfigError, get_config_path, load_config
from chat_blocks.markup import render_blocks, render_markdown, render_sources
from chat_blocks.messages import StreamChunk, StreamComplete
from chat_blocks.stream import MessageState, StreamUpdate

if TYPE_CHECKING:
    from chat_blocks.config import ClientConfig
    from chat_blocks.messages import ChatReply

LIVE_REFRESH_PER_SECOND = 8


def _read_input(path: str | None) -> str:
    """Read the named file, or stdin for None / "-"."""
    if path is None or path == "-":
        return sys.stdin.read()
    return Path(path).read_text()


def _block_to_dict(block: ContentBlock) -> dict[str, str | None]:
    return {"kind": block.kind.value, "text": block.text, "language": block.language}


def _cmd_blocks(args: argparse.Namespace) -> None:
    """Print the content blocks of a markdown text."""
    blocks = segment_blocks(_read_input(args.file))
    if args.json:
        print(json.dumps([_block_to_dict(b) for b in blocks], indent=2))
        return
    for block in blocks:
        lang = f" ({block.language})" if block.language else ""
        first_line = block.text.split("\n", 1)[0]
        print(f"{block.kind.value:<12}{lang} {first_line}")


def _cmd_render(args: argparse.Namespace) -> None:
    """Print the Rich rendering of a markdown text."""
    Console().print(render_markdown(_read_input(args.file)))


def _load_config() -> ClientConfig:
    try:
        return load_config(get_config_path())
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


async def _stream_to_console(
    config: ClientConfig,
    thread_id: str,
    message: str,
    console: Console,
) -> ChatReply:
    """Stream an answer, re-rendering the whole text on every chunk."""
    state = MessageState()
    reply: ChatReply | None = None
    with Live(Text(""), console=console, refresh_per_second=LIVE_REFRESH_PER_SECOND) as live:
        async for event in stream_chat(config, thread_id, message):
            if isinstance(event, StreamChunk):
                update = StreamUpdate(sequence=event.sequence, text=event.text)
            elif isinstance(event, StreamComplete):
                reply = event.reply
                update = StreamUpdate(
                    sequence=state.last_sequence + 1, text=reply.content, final=True
                )
            else:
                continue
            if state.apply(update):
                live.update(render_blocks(state.blocks))
    if reply is None:
        msg = "Stream ended without completing"
        raise ChatAPIError(msg)
    return reply


def _cmd_send(args: argparse.Namespace) -> None:
    """Send one message and stream the answer to the terminal."""
    config = _load_config()
    console = Console()

    async def _run() -> ChatReply:
        thread_id = args.thread or await create_thread(config)
        return await _stream_to_console(config, thread_id, args.message, console)

    try:
        reply = asyncio.run(_run())
    except (AuthError, ChatAPIError, ConfigError, httpx.HTTPError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sources = render_sources(reply.sources)
    if sources:
        console.print(sources)
    print(f"thread: {reply.thread_id}", file=sys.stderr)


def _launch_tui() -> None:
    """Launch the Textual TUI with a backend worker.

    Imports are deferred to avoid loading Textual/backend for CLI-only commands.
    """
    from chat_blocks.backend import backend_worker  # noqa: PLC0415
    from chat_blocks.messages import Request, Response  # noqa: PLC0415, TC001
    from chat_blocks.tui.app import ChatApp  # noqa: PLC0415

    config = _load_config()
    try:
        config.require_chat_target()
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    request_queue: asyncio.Queue[Request] = asyncio.Queue()
    response_queue: asyncio.Queue[Response] = asyncio.Queue()

    app = ChatApp(request_queue=request_queue, response_queue=response_queue)

    async def _run() -> None:
        worker = asyncio.create_task(backend_worker(request_queue, response_queue, config))
        try:
            await app.run_async()
        finally:
            worker.cancel()

    asyncio.run(_run())


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate subcommand."""
    parser = argparse.ArgumentParser(
        prog="chat-blocks",
        description="Terminal chat client with streamed markdown rendering",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # blocks
    blocks_parser = subparsers.add_parser("blocks", help="Show the content blocks of a text")
    blocks_parser.add_argument("file", nargs="?", help="Markdown file (default: stdin)")
    blocks_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # render
    render_parser = subparsers.add_parser("render", help="Render a text to the terminal")
    render_parser.add_argument("file", nargs="?", help="Markdown file (default: stdin)")

    # send
    send_parser = subparsers.add_parser("send", help="Send a message and stream the answer")
    send_parser.add_argument("message", help="Message text")
    send_parser.add_argument("--thread", help="Existing thread id (default: new thread)")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        _launch_tui()
        return

    dispatch = {
        "blocks": _cmd_blocks,
        "render": _cmd_render,
        "send": _cmd_send,
    }
    dispatch[args.command](args)
