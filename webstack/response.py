"""JSON envelope responses of the form {code, msg, data}."""

from __future__ import annotations

import dataclasses
import functools
import json
from typing import Any

from aiohttp import web

from webstack.status_codes import StatusCode


def _default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


_dumps = functools.partial(
    json.dumps, default=_default, ensure_ascii=False, separators=(",", ":")
)


def envelope(status: StatusCode, data: Any = None) -> dict[str, Any]:
    """Build the envelope dictionary for a status and optional data."""
    return {"code": status.code, "msg": status.msg, "data": data}


def _json(status: StatusCode, data: Any) -> web.Response:
    return web.json_response(envelope(status, data), dumps=_dumps)


def from_status_code(status: StatusCode) -> web.Response:
    """A response carrying only the given status."""
    return _json(status, None)


def success(data: Any = None) -> web.Response:
    """A successful response carrying data."""
    return _json(StatusCode.OK, data)


def success_without_data() -> web.Response:
    """A successful response with no data."""
    return _json(StatusCode.OK, None)


def error(status: StatusCode) -> web.Response:
    """An error response for the given status."""
    return from_status_code(status)