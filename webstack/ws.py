"""WebSocket endpoint: greets a client, then streams server messages until either side stops."""

from __future__ import annotations

import asyncio
import contextlib
import json
from enum import Enum
from typing import Any

from aiohttp import WSCloseCode, WSMsgType, hdrs, web

PING_PAYLOAD = bytes([1, 2, 3])
GREETING_INTERVAL = 0.1
SERVER_MESSAGE_INTERVAL = 1.0
CLOSE_REASON = "Goodbye"
UNKNOWN_BROWSER = "Unknown browser"

_SEND_ERRORS = (ConnectionError, RuntimeError)
_ENDED = frozenset({WSMsgType.CLOSING, WSMsgType.CLOSED, WSMsgType.ERROR})


class Flow(Enum):
    """Whether a message loop keeps going or stops."""

    CONTINUE = "continue"
    BREAK = "break"


def _peer(request: web.Request) -> str:
    peer = request.transport.get_extra_info("peername") if request.transport else None
    if not peer:
        return request.remote or "unknown"
    host, port = peer[0], peer[1]
    return f"[{host}]:{port}" if ":" in str(host) else f"{host}:{port}"


def process_message(msg: Any, who: Any) -> Flow:
    """Print a received message; a close (or a dead stream) ends the loop."""
    kind = msg.type
    if kind is WSMsgType.TEXT:
        print(f">>> {who} sent str: {json.dumps(msg.data, ensure_ascii=False)}")
    elif kind is WSMsgType.BINARY:
        print(f">>> {who} sent {len(msg.data)} bytes: {msg.data!r}")
    elif kind is WSMsgType.CLOSE:
        if msg.data:
            print(
                f">>> {who} sent close with code {int(msg.data)} "
                f"and reason `{msg.extra or ''}`"
            )
        else:
            print(f">>> {who} somehow sent close message without CloseFrame")
        return Flow.BREAK
    elif kind is WSMsgType.PONG:
        print(f">>> {who} sent pong with {msg.data!r}")
    elif kind is WSMsgType.PING:
        print(f">>> {who} sent ping with {msg.data!r}")
    else:
        return Flow.BREAK
    return Flow.CONTINUE


async def _receive(ws: web.WebSocketResponse) -> Any:
    msg = await ws.receive()
    if msg.type is WSMsgType.PING:
        with contextlib.suppress(*_SEND_ERRORS):
            await ws.pong(msg.data)
    return msg


async def _send_text(ws: web.WebSocketResponse, text: str) -> None:
    if ws.closed:
        raise ConnectionResetError("websocket is closed")
    await ws.send_str(text)


async def _push_messages(ws: web.WebSocketResponse, who: str) -> int:
    sent = 0
    while True:
        try:
            await _send_text(ws, f"Server message {sent} ...")
        except _SEND_ERRORS:
            break
        sent += 1
        await asyncio.sleep(SERVER_MESSAGE_INTERVAL)

    print(f"Sending close to {who}...")
    try:
        await ws.close(code=WSCloseCode.OK, message=CLOSE_REASON.encode())
    except _SEND_ERRORS as exc:
        print(f"Could not send Close due to {exc}, probably it is ok?")
    return sent


async def _read_messages(ws: web.WebSocketResponse, who: str) -> int:
    count = 0
    while True:
        msg = await _receive(ws)
        if msg.type in _ENDED:
            break
        count += 1
        if process_message(msg, who) is Flow.BREAK:
            break
    return count


async def _handle_socket(ws: web.WebSocketResponse, who: str) -> None:
    try:
        await ws.ping(PING_PAYLOAD)
    except _SEND_ERRORS:
        print(f"Could not send ping {who}!")
        return
    print(f"Pinged {who}...")

    msg = await _receive(ws)
    if msg.type in _ENDED:
        print(f"CLIENT {who} abruptly disconnected")
        return
    if process_message(msg, who) is Flow.BREAK:
        return

    for i in range(1, 5):
        try:
            await _send_text(ws, f"Hi {i} times!")
        except _SEND_ERRORS:
            print(f"CLIENT {who} abruptly disconnected")
            return
        await asyncio.sleep(GREETING_INTERVAL)

    send_task = asyncio.create_task(_push_messages(ws, who))
    recv_task = asyncio.create_task(_read_messages(ws, who))
    try:
        done, _ = await asyncio.wait(
            {send_task, recv_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if send_task in done:
            try:
                print(f"{send_task.result()} messages sent to {who}")
            except Exception as exc:
                print(f"Error sending messages {exc!r}")
        else:
            try:
                print(f"Received {recv_task.result()} messages")
            except Exception as exc:
                print(f"Error receiving messages {exc!r}")
    finally:
        for task in (send_task, recv_task):
            task.cancel()
        await asyncio.gather(send_task, recv_task, return_exceptions=True)

    print(f"Websocket context {who} destroyed")


async def ws_handler(request: web.Request) -> web.WebSocketResponse:
    """Upgrade the request to a WebSocket and run the per-connection exchange."""
    user_agent = request.headers.get(hdrs.USER_AGENT)
    if user_agent is None:
        user_agent = UNKNOWN_BROWSER
    who = _peer(request)
    print(f"`{user_agent}` at {who} connected.")

    ws = web.WebSocketResponse(autoping=False)
    await ws.prepare(request)
    try:
        await _handle_socket(ws, who)
    finally:
        await ws.close()
    return ws