from aiohttp import WSCloseCode, WSMessage, WSMsgType, web
from aiohttp.test_utils import TestClient, TestServer
import pytest

from webstack.ws import Flow, process_message, ws_handler


def _app():
    app = web.Application()
    app.router.add_get("/ws", ws_handler)
    return app


def test_text_message_continues(capsys):
    flow = process_message(WSMessage(WSMsgType.TEXT, "hello", None), "peer")
    assert flow is Flow.CONTINUE
    assert '>>> peer sent str: "hello"' in capsys.readouterr().out


def test_binary_message_reports_length(capsys):
    flow = process_message(WSMessage(WSMsgType.BINARY, b"\x01\x02\x03", None), "peer")
    assert flow is Flow.CONTINUE
    assert ">>> peer sent 3 bytes:" in capsys.readouterr().out


def test_close_with_frame_breaks(capsys):
    msg = WSMessage(WSMsgType.CLOSE, 1000, "bye")
    assert process_message(msg, "peer") is Flow.BREAK
    assert "sent close with code 1000 and reason `bye`" in capsys.readouterr().out


def test_close_without_frame_breaks(capsys):
    msg = WSMessage(WSMsgType.CLOSE, None, None)
    assert process_message(msg, "peer") is Flow.BREAK
    assert "somehow sent close message without CloseFrame" in capsys.readouterr().out


@pytest.mark.parametrize("kind", [WSMsgType.PING, WSMsgType.PONG])
def test_ping_and_pong_continue(kind, capsys):
    flow = process_message(WSMessage(kind, b"\x01", None), "peer")
    assert flow is Flow.CONTINUE
    assert ">>> peer sent p" in capsys.readouterr().out


def test_ended_stream_breaks():
    assert process_message(WSMessage(WSMsgType.CLOSED, None, None), "peer") is Flow.BREAK


@pytest.mark.asyncio
async def test_full_exchange():
    async with TestClient(TestServer(_app())) as client:
        ws = await client.ws_connect("/ws", autoping=False)
        ping = await ws.receive()
        assert ping.type is WSMsgType.PING
        assert ping.data == bytes([1, 2, 3])
        await ws.pong(ping.data)

        greetings = [(await ws.receive()).data for _ in range(4)]
        assert greetings == [f"Hi {i} times!" for i in range(1, 5)]

        first = await ws.receive()
        assert first.type is WSMsgType.TEXT
        assert first.data.startswith("Server message 0")
        assert process_message(first, "server") is Flow.CONTINUE

        await ws.close()
        assert ws.closed


@pytest.mark.asyncio
async def test_close_as_first_reply_ends_early(capsys):
    async with TestClient(TestServer(_app()), skip_auto_headers=["User-Agent"]) as client:
        ws = await client.ws_connect("/ws", autoping=False)
        ping = await ws.receive()
        assert ping.type is WSMsgType.PING
        assert process_message(ping, "server") is Flow.CONTINUE
        await ws.close(code=WSCloseCode.OK)
    out = capsys.readouterr().out
    assert "`Unknown browser` at" in out
    assert "sent close with code 1000" in out
    assert "Websocket context" not in out