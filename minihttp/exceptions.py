"""Exception hierarchy shared by the minihttp modules."""

from __future__ import annotations


class HttpError(Exception):
    """Base class for every error raised by minihttp."""


class InvalidUri(HttpError, ValueError):
    """Raised when a URL string cannot be split into URI components."""


class InvalidArgument(HttpError, ValueError):
    """Raised when a builder method receives an unusable argument."""


class StreamError(HttpError, RuntimeError):
    """Raised when a stream is used outside of its capabilities."""


class ClientException(HttpError, RuntimeError):
    """Raised when the client cannot carry out a request."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class TransportError(HttpError, RuntimeError):
    """Raised by a transport when the HTTP exchange itself failed."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class MalformedResponse(HttpError, ValueError):
    """Raised when response header lines do not start with a status line."""


class UnexpectedContent(HttpError, ValueError):
    """Raised when a response body is not what the caller asked for."""


class MalformedJson(UnexpectedContent):
    """Raised when a response body announced as JSON does not parse."""


__all__ = [
    "ClientException",
    "HttpError",
    "InvalidArgument",
    "InvalidUri",
    "MalformedJson",
    "MalformedResponse",
    "StreamError",
    "TransportError",
    "UnexpectedContent",
]
