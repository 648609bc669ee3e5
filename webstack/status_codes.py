"""Application status codes carried in every JSON envelope."""

from __future__ import annotations

from enum import Enum

_MESSAGES = {
    0: "Server Error",
    1: "Ok",
    2: "Unauthorized",
    3: "User name cannot be empty",
    4: "Incorrect username format",
    5: "User name or password mismatch",
    6: "Not found",
}


class StatusCode(Enum):
    """A numeric application code paired with its message."""

    INTERNAL_SERVER_ERROR = (0, _MESSAGES[0])
    OK = (1, _MESSAGES[1])
    UNAUTHORIZED = (2, _MESSAGES[2])
    USERNAME_CANNOT_BE_EMPTY = (3, _MESSAGES[3])
    INCORRECT_USERNAME_FORMAT = (4, _MESSAGES[4])
    USERNAME_OR_PASSWORD_MISMATCH = (5, _MESSAGES[5])
    NOT_FOUND = (6, _MESSAGES[6])

    def __init__(self, code: int, msg: str) -> None:
        self.code = code
        self.msg = msg


class StatusError(Exception):
    """Raised to abort a request with an application status code."""

    def __init__(self, status: StatusCode) -> None:
        super().__init__(status.msg)
        self.status = status