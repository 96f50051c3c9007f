"""Errors raised by CTFd backends."""

from __future__ import annotations


class CTFdError(Exception):
    """Base class for every failed CTFd operation."""


class CTFdConnectionError(CTFdError):
    """The request never got an HTTP response (DNS, refused, timeout...)."""


class CTFdAPIError(CTFdError):
    """CTFd answered with a non-2xx status or an unsuccessful envelope."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class CTFdNotFoundError(CTFdAPIError):
    """The addressed object does not exist."""

    def __init__(self, message: str = "not found") -> None:
        super().__init__(404, message)
