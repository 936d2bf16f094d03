"""Concurrent websocket clients that time how fast binary payloads arrive."""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from dataclasses import dataclass, field

import aiohttp

from wsthroughput.units import human_readable_bytes, human_readable_speed

N_CLIENTS = 1
SERVER = "ws://127.0.0.1:3000/ws"
PING_PAYLOAD = b"Hello, Server!"

logger = logging.getLogger(__name__)


@dataclass
class ReceiverState:
    """Tracks when the last text message arrived on a connection."""

    last_text_message: float = field(default_factory=time.monotonic)

    def mark_text(self) -> None:
        """Record that a text message has just arrived."""
        self.last_text_message = time.monotonic()

    def elapsed(self) -> float:
        """Seconds since the last text message (or since creation)."""
        return max(0.0, time.monotonic() - self.last_text_message)


def _format_duration(seconds: float) -> str:
    """Render a duration the compact way: ``1.5s``, ``300ms``, ``12µs``, ``7ns``."""
    nanos = max(0, round(seconds * 1_000_000_000))
    for scale, width, unit in ((1_000_000_000, 9, "s"), (1_000_000, 6, "ms"), (1_000, 3, "µs")):
        if nanos >= scale:
            whole, frac = divmod(nanos, scale)
            digits = str(frac).zfill(width).rstrip("0")
            return f"{whole}.{digits}{unit}" if digits else f"{whole}{unit}"
    return f"{nanos}ns"


def process_message(message: aiohttp.WSMessage, who: int, state: ReceiverState) -> bool:
    """Handle one received message; return False when the connection should stop."""
    kind = message.type
    if kind is aiohttp.WSMsgType.TEXT:
        state.mark_text()
    elif kind is aiohttp.WSMsgType.BINARY:
        elapsed = state.elapsed()
        size = len(message.data)
        print(
            f">>> {human_readable_bytes(size)} took ~{_format_duration(elapsed)} "
            f"with speed ~{human_readable_speed(size, elapsed)}"
        )
    elif kind is aiohttp.WSMsgType.CLOSE:
        if message.data is not None:
            logger.info(
                ">>> %s got close with code %s and reason `%s`",
                who,
                message.data,
                message.extra or "",
            )
        else:
            logger.error(">>> %s somehow got close message without CloseFrame", who)
        return False
    elif kind in (aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED):
        return False
    elif kind is aiohttp.WSMsgType.PONG:
        logger.info(">>> %s got pong with %r", who, message.data)
    elif kind is aiohttp.WSMsgType.PING:
        logger.info(">>> %s got ping with %r", who, message.data)
    else:
        raise ValueError(f"unexpected websocket message type: {kind!r}")
    return True


async def spawn_client(who: int, url: str = SERVER) -> int:
    """Connect one client, ping the server and process messages until closed.

    Returns the number of messages processed; a failed handshake is logged
    and yields 0.
    """
    async with aiohttp.ClientSession() as session:
        try:
            ws = await session.ws_connect(url, autoping=False, max_msg_size=0)
        except (aiohttp.ClientError, OSError) as exc:
            logger.error("WebSocket handshake for client %s failed with %s!", who, exc)
            return 0

        async with ws:
            logger.info("Handshake for client %s has been completed", who)
            try:
                await ws.ping(PING_PAYLOAD)
            except (aiohttp.ClientError, ConnectionError, RuntimeError) as exc:
                raise ConnectionError("Can not send!") from exc

            state = ReceiverState()
            processed = 0
            while True:
                message = await ws.receive()
                if message.type is aiohttp.WSMsgType.ERROR:
                    logger.error("Error while receiving message %s!", message.data)
                    break
                if message.type is aiohttp.WSMsgType.PING:
                    await ws.pong(message.data)
                processed += 1
                if not process_message(message, who, state):
                    break
            return processed


async def run_clients(n_clients: int = N_CLIENTS, url: str = SERVER) -> float:
    """Run ``n_clients`` concurrently and return the total wall time in seconds."""
    if n_clients < 0:
        raise ValueError(f"number of clients must not be negative: {n_clients}")
    start = time.monotonic()
    results = await asyncio.gather(
        *(spawn_client(who, url) for who in range(n_clients)),
        return_exceptions=True,
    )
    for who, result in enumerate(results):
        if isinstance(result, BaseException):
            logger.error("Client %s stopped with %s", who, result)
    total = time.monotonic() - start
    logger.info(
        "Total time taken %s with %s concurrent clients, should be about 40 seconds.",
        _format_duration(total),
        n_clients,
    )
    return total


def main(argv: list[str] | None = None) -> int:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Measure websocket download throughput.")
    parser.add_argument("--clients", type=int, default=N_CLIENTS, help="number of concurrent clients")
    parser.add_argument("--url", default=SERVER, help="websocket URL of the server")
    parser.add_argument("--log-level", default="INFO", help="logging level")
    args = parser.parse_args(argv)
    if args.clients < 0:
        parser.error("--clients must not be negative")

    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    asyncio.run(run_clients(args.clients, args.url))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())