"""minihttp package: URI/request/response value objects and a small HTTP client."""

from __future__ import annotations

# Semantic version for package consumers.
__version__ = "0.1.0"

from .client import Client
from .config import ClientConfig
from .exceptions import (
    ClientException,
    HttpError,
    InvalidArgument,
    InvalidUri,
    MalformedJson,
    MalformedResponse,
    StreamError,
    TransportError,
    UnexpectedContent,
)
from .request import Request
from .response import Response
from .streams import FileStream, MemoryStream
from .uri import Uri

__all__ = [
    "__version__",
    "Client",
    "ClientConfig",
    "ClientException",
    "FileStream",
    "HttpError",
    "InvalidArgument",
    "InvalidUri",
    "MalformedJson",
    "MalformedResponse",
    "MemoryStream",
    "Request",
    "Response",
    "StreamError",
    "TransportError",
    "UnexpectedContent",
    "Uri",
]
