"""Transports perform the actual HTTP exchange for the client."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

import requests
from requests import Response as RequestsResponse
from requests import exceptions as requests_exceptions

from .exceptions import TransportError
from .headers import split_header_line

LOGGER = logging.getLogger(__name__)

COOKIE_HEADER = "cookie"

HTTP_VERSIONS: Mapping[int, str] = {9: "0.9", 10: "1.0", 11: "1.1", 20: "2"}
DEFAULT_TIMEOUT: float = 30.0


@dataclass
class TransportResult:
    """Raw outcome of an exchange: status line + header lines, then body."""

    header_lines: list[str] = field(default_factory=list)
    body: bytes | None = b""


@runtime_checkable
class Transport(Protocol):
    def send(self, url: str, options: Mapping[str, Any]) -> TransportResult:
        """Perform the exchange or raise :class:`TransportError`."""


def headers_from_lines(lines: list[str]) -> dict[str, str]:
    """Fold ``"Key: value"`` lines into a mapping, joining repeated keys.

    Repeated ``Cookie`` lines are joined with ``"; "`` so they stay one cookie list.
    """

    headers: dict[str, str] = {}
    lowered: dict[str, str] = {}
    for line in lines:
        parts = split_header_line(line)
        if parts is None:
            LOGGER.debug("Skipping request header line without separator: %s", line)
            continue
        name, value = parts
        existing = lowered.get(name.lower())
        if existing is None:
            lowered[name.lower()] = name
            headers[name] = value
        else:
            joiner = "; " if existing.lower() == COOKIE_HEADER else ", "
            headers[existing] = f"{headers[existing]}{joiner}{value}"
    return headers


def _status_line(response: RequestsResponse) -> str:
    version = getattr(response.raw, "version", None)
    protocol = HTTP_VERSIONS.get(version, "1.1") if isinstance(version, int) else "1.1"
    return f"HTTP/{protocol} {response.status_code} {response.reason or ''}".rstrip()


def raw_header_lines(response: RequestsResponse) -> list[str]:
    """Rebuild raw header lines, one line per value so ``Set-Cookie`` stays split."""

    lines = [_status_line(response)]
    raw_headers = getattr(response.raw, "headers", None)
    if raw_headers is not None and hasattr(raw_headers, "iteritems"):
        pairs = list(raw_headers.iteritems())
    else:
        pairs = list(response.headers.items())
    lines.extend(f"{name}: {value}" for name, value in pairs)
    return lines


class RequestsTransport:
    """Transport backed by :mod:`requests`.

    Redirects are not followed and HTTP error statuses are returned as regular
    results; only failures to complete the exchange raise.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        *,
        default_timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.session = session
        self.default_timeout = default_timeout

    def send(self, url: str, options: Mapping[str, Any]) -> TransportResult:
        method = str(options.get("method") or "GET")
        headers = headers_from_lines(list(options.get("header") or []))
        timeout = options.get("timeout") or self.default_timeout
        requester = self.session.request if self.session is not None else requests.request
        try:
            response = requester(
                method,
                url,
                headers=headers,
                data=options.get("content") or None,
                timeout=timeout,
                allow_redirects=False,
            )
        except requests_exceptions.RequestException as exc:
            code = exc.response.status_code if exc.response is not None else None
            raise TransportError(str(exc), code=code) from exc
        return TransportResult(header_lines=raw_header_lines(response), body=response.content)


__all__ = [
    "DEFAULT_TIMEOUT",
    "RequestsTransport",
    "Transport",
    "TransportResult",
    "headers_from_lines",
    "raw_header_lines",
]
