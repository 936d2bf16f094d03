import asyncio

import aiohttp
import pytest
from aiohttp import WSCloseCode, WSMsgType
from aiohttp.test_utils import TestClient, TestServer

from wsthroughput import server

WHO = "127.0.0.1:5000"


async def _wait_for_output(capsys, needle, timeout=5.0):
    seen = ""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        seen += capsys.readouterr().out
        if needle in seen:
            break
        await asyncio.sleep(0.01)
    return seen


def test_zero_size_is_empty():
    assert server.generate_repeated_random_bytes(0) == b""


def test_size_is_in_mebibytes_and_repeats_block():
    data = server.generate_repeated_random_bytes(2)
    assert len(data) == 2 * server.MEBIBYTE
    assert data[: server.MEBIBYTE] == data[server.MEBIBYTE :]


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        server.generate_repeated_random_bytes(-1)


def test_text_message_printed(capsys):
    message = aiohttp.WSMessage(WSMsgType.TEXT, "hi", None)
    assert server.process_message(message, WHO) is True
    assert capsys.readouterr().out == f">>> {WHO} sent str: 'hi'\n"


def test_binary_message_prints_length(capsys):
    message = aiohttp.WSMessage(WSMsgType.BINARY, b"abcd", None)
    assert server.process_message(message, WHO) is True
    assert capsys.readouterr().out == f">>> Bytes {WHO} sent 4\n"


def test_close_with_frame_stops(capsys):
    message = aiohttp.WSMessage(WSMsgType.CLOSE, 1000, "bye")
    assert server.process_message(message, WHO) is False
    assert "code 1000 and reason `bye`" in capsys.readouterr().out


def test_close_without_frame_stops(capsys):
    message = aiohttp.WSMessage(WSMsgType.CLOSE, None, None)
    assert server.process_message(message, WHO) is False
    assert "without CloseFrame" in capsys.readouterr().out


def test_closed_stops():
    message = aiohttp.WSMessage(WSMsgType.CLOSED, None, None)
    assert server.process_message(message, WHO) is False


def test_ping_and_pong_continue(capsys):
    assert server.process_message(aiohttp.WSMessage(WSMsgType.PING, b"x", None), WHO) is True
    assert server.process_message(aiohttp.WSMessage(WSMsgType.PONG, b"y", None), WHO) is True
    out = capsys.readouterr().out
    assert f">>> {WHO} sent ping with b'x'" in out
    assert f">>> {WHO} sent pong with b'y'" in out


def test_error_message_rejected():
    with pytest.raises(ValueError):
        server.process_message(aiohttp.WSMessage(WSMsgType.ERROR, None, None), WHO)


@pytest.mark.asyncio
async def test_static_files_served(tmp_path):
    (tmp_path / "index.html").write_text("root page")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "index.html").write_text("sub page")
    (tmp_path / "file.txt").write_text("plain")

    async with TestClient(TestServer(server.create_app(tmp_path))) as client:
        resp = await client.get("/")
        assert resp.status == 200
        assert await resp.text() == "root page"

        resp = await client.get("/sub/")
        assert await resp.text() == "sub page"

        resp = await client.get("/file.txt")
        assert await resp.text() == "plain"

        resp = await client.get("/missing")
        assert resp.status == 404


@pytest.mark.asyncio
async def test_full_session(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(server, "MESSAGE_SIZES_MB", (1, 2))
    monkeypatch.setattr(server, "SEND_INTERVAL", 0)

    async with TestClient(TestServer(server.create_app(tmp_path))) as client:
        ws = await client.ws_connect("/ws", autoping=False, max_msg_size=0)

        ping = await asyncio.wait_for(ws.receive(), 10)
        assert ping.type is WSMsgType.PING
        assert ping.data == server.PING_PAYLOAD
        await ws.pong(ping.data)

        for size in (1, 2):
            text = await asyncio.wait_for(ws.receive(), 10)
            assert text.type is WSMsgType.TEXT
            assert text.data == f"Sending message with size {size * server.MEBIBYTE}"
            binary = await asyncio.wait_for(ws.receive(), 10)
            assert binary.type is WSMsgType.BINARY
            assert len(binary.data) == size * server.MEBIBYTE

        close = await asyncio.wait_for(ws.receive(), 10)
        assert close.type is WSMsgType.CLOSE
        assert close.data == WSCloseCode.OK
        assert close.extra == "Goodbye"
        await ws.close()

        out = await _wait_for_output(capsys, "destroyed")
        assert "2 messages sent to" in out
        assert "Pinged" in out
        assert "sent pong with" in out


@pytest.mark.asyncio
async def test_client_close_stops_receiver(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(server, "MESSAGE_SIZES_MB", (1,))
    monkeypatch.setattr(server, "SEND_INTERVAL", 5)

    async with TestClient(TestServer(server.create_app(tmp_path))) as client:
        ws = await client.ws_connect("/ws", autoping=False, max_msg_size=0)
        ping = await asyncio.wait_for(ws.receive(), 10)
        assert ping.type is WSMsgType.PING
        await asyncio.wait_for(ws.close(), 10)

        out = await _wait_for_output(capsys, "destroyed")
        assert "Received 1 messages" in out
        assert "messages sent to" not in out
        assert "`Python/" in out or "connected." in out