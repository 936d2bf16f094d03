"""Websocket server that pushes progressively larger binary payloads to clients."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path

import aiohttp
from aiohttp import WSCloseCode, WSMsgType, web

HOST = "127.0.0.1"
PORT = 3000
MEBIBYTE = 1024 * 1024
PING_PAYLOAD = bytes([1, 2, 3])
# Payload sizes in mebibytes, sent in this order.
MESSAGE_SIZES_MB: tuple[int, ...] = (1, 3, 6, 10, 20, 30, 40, 50, 60, 100, 1000)
# Pause between two payloads, in seconds.
SEND_INTERVAL = 0.3
CLOSE_REASON = "Goodbye"

logger = logging.getLogger(__name__)


@dataclass
class _Session:
    """State shared by the sending and receiving halves of one connection."""

    who: str
    closing_initiated: bool = False


def generate_repeated_random_bytes(size: int) -> bytes:
    """Return ``size`` MiB made of one random MiB block repeated."""
    if size < 0:
        raise ValueError(f"size must not be negative: {size}")
    if size == 0:
        return b""
    return os.urandom(MEBIBYTE) * size


def process_message(message: aiohttp.WSMessage, who: str) -> bool:
    """Print a received message; return False when the connection should stop."""
    kind = message.type
    if kind is WSMsgType.TEXT:
        print(f">>> {who} sent str: {message.data!r}")
    elif kind is WSMsgType.BINARY:
        print(f">>> Bytes {who} sent {len(message.data)}")
    elif kind is WSMsgType.CLOSE:
        if message.data is not None:
            print(f">>> {who} sent close with code {message.data} and reason `{message.extra or ''}`")
        else:
            print(f">>> {who} somehow sent close message without CloseFrame")
        return False
    elif kind in (WSMsgType.CLOSING, WSMsgType.CLOSED):
        return False
    elif kind is WSMsgType.PONG:
        print(f">>> {who} sent pong with {message.data!r}")
    elif kind is WSMsgType.PING:
        print(f">>> {who} sent ping with {message.data!r}")
    else:
        raise ValueError(f"unexpected websocket message type: {kind!r}")
    return True


async def _send_messages(ws: web.WebSocketResponse, session: _Session) -> int:
    """Push every payload with an announcing text message, then close."""
    sizes = MESSAGE_SIZES_MB
    for index, size in enumerate(sizes):
        buffer = generate_repeated_random_bytes(size)
        try:
            await ws.send_str(f"Sending message with size {len(buffer)}")
            await ws.send_bytes(buffer)
        except (ConnectionError, RuntimeError):
            return index
        await asyncio.sleep(SEND_INTERVAL)

    print(f"Sending close to {session.who}...")
    session.closing_initiated = True
    try:
        await ws.close(code=WSCloseCode.OK, message=CLOSE_REASON.encode())
    except (ConnectionError, RuntimeError, asyncio.TimeoutError) as exc:
        print(f"Could not send Close due to {exc}, probably it is ok?")
    return len(sizes)


async def _receive_messages(ws: web.WebSocketResponse, session: _Session) -> int:
    """Print what the client sends until it closes; return the message count."""
    count = 0
    while True:
        message = await ws.receive()
        if message.type in (WSMsgType.ERROR, WSMsgType.CLOSING, WSMsgType.CLOSED):
            break
        if message.type is WSMsgType.PING:
            await ws.pong(message.data)
        count += 1
        if not process_message(message, session.who):
            break
    return count


async def _abort(task: asyncio.Task) -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError, Exception):
        await task


def _report(task: asyncio.Task, success: str, failure: str) -> None:
    exc = task.exception()
    if exc is None:
        print(success.format(task.result()))
    else:
        print(f"{failure} {exc!r}")


async def handle_socket(ws: web.WebSocketResponse, who: str) -> None:
    """Run the per-connection exchange on an already prepared websocket."""
    try:
        await ws.ping(PING_PAYLOAD)
    except (ConnectionError, RuntimeError):
        print(f"Could not send ping {who}!")
        return
    print(f"Pinged {who}...")

    session = _Session(who)
    send_task = asyncio.create_task(_send_messages(ws, session))
    recv_task = asyncio.create_task(_receive_messages(ws, session))
    try:
        done, _ = await asyncio.wait({send_task, recv_task}, return_when=asyncio.FIRST_COMPLETED)
        if send_task not in done and session.closing_initiated:
            # The receiver stopped because our own close is underway; let it finish.
            await asyncio.wait({send_task})
            done = {send_task}
        if send_task in done:
            _report(send_task, f"{{}} messages sent to {who}", "Error sending messages")
            await _abort(recv_task)
        else:
            _report(recv_task, "Received {} messages", "Error receiving messages")
            await _abort(send_task)
    finally:
        for task in (send_task, recv_task):
            if not task.done():
                await _abort(task)

    print(f"Websocket context {who} destroyed")


def _format_peer(peer: object) -> str:
    if not isinstance(peer, tuple) or len(peer) < 2:
        return "unknown"
    host, port = peer[0], peer[1]
    if ":" in str(host):
        return f"[{host}]:{port}"
    return f"{host}:{port}"


async def ws_handler(request: web.Request) -> web.WebSocketResponse:
    """Upgrade the request to a websocket and run the exchange on it."""
    user_agent = request.headers.get("User-Agent", "Unknown browser")
    peer = request.transport.get_extra_info("peername") if request.transport else None
    who = _format_peer(peer)
    print(f"`{user_agent}` at {who} connected.")

    ws = web.WebSocketResponse(autoping=False, compress=False, max_msg_size=0)
    await ws.prepare(request)
    await handle_socket(ws, who)
    return ws


def create_app(assets_dir: str | os.PathLike[str] = "assets") -> web.Application:
    """Build the application: ``/ws`` plus static files from ``assets_dir``."""
    root = Path(assets_dir).resolve()

    async def serve_asset(request: web.Request) -> web.StreamResponse:
        target = (root / request.match_info["tail"]).resolve()
        try:
            target.relative_to(root)
        except ValueError:
            raise web.HTTPNotFound() from None
        if target.is_dir():
            target = target / "index.html"
        if not target.is_file():
            raise web.HTTPNotFound()
        return web.FileResponse(target)

    app = web.Application()
    app.router.add_route("*", "/ws", ws_handler)
    app.router.add_get("/{tail:.*}", serve_asset)
    return app


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Serve growing binary payloads over websocket.")
    parser.add_argument("--host", default=HOST, help="address to listen on")
    parser.add_argument("--port", type=int, default=PORT, help="port to listen on")
    parser.add_argument("--assets", default="assets", help="directory of static files")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger.debug("listening on %s:%s", args.host, args.port)
    web.run_app(create_app(args.assets), host=args.host, port=args.port, print=None)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())