"""HTTP request value object.

Every ``with_*`` method returns a new :class:`Request`; the receiver is left
untouched and the new instance shares the unchanged parts (URI, body, option
bag) with it. The only in-place mutation is :meth:`Request.set_duration`,
which the client uses to record how long the exchange took.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any

from .exceptions import InvalidArgument
from .headers import (
    format_header_line,
    header_values,
    line_matches,
    normalize_header_name,
    split_header_line,
)
from .streams import MemoryStream, Stream
from .uri import Uri

DEFAULT_METHOD = "GET"
DEFAULT_PROTOCOL_VERSION = "1.1"


def _header_lines(raw: object) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, str):
        stripped = raw.strip()
        return tuple(stripped.split("\r\n")) if stripped else ()
    if isinstance(raw, (list, tuple)):
        return tuple(str(line) for line in raw)
    raise InvalidArgument(f"Invalid 'header' option: {raw!r}")


def _index(lines: tuple[str, ...]) -> dict[str, tuple[str, ...]]:
    index: dict[str, tuple[str, ...]] = {}
    for line in lines:
        parts = split_header_line(line)
        if parts is None:
            continue
        name = normalize_header_name(parts[0])
        index[name] = index.get(name, ()) + (parts[1],)
    return index


class Request:
    """An outgoing request: method, target URI, headers, body and options."""

    def __init__(self, uri: Uri, options: Mapping[str, Any] | None = None) -> None:
        if not isinstance(uri, Uri):
            raise InvalidArgument(f"Invalid URI: {uri!r}")
        bag = dict(options or {})
        self._header_lines = _header_lines(bag.get("header"))
        if "header" in bag:
            bag["header"] = list(self._header_lines)
        self._headers_by_key = _index(self._header_lines)
        self._body: Stream = MemoryStream(bag.get("content") or b"")
        self._method = str(bag.get("method") or DEFAULT_METHOD)
        self._protocol = uri.get_scheme().upper()
        self._protocol_version = DEFAULT_PROTOCOL_VERSION
        self._request_target: str | None = None
        self._uri = uri
        self._options: Mapping[str, Any] = MappingProxyType(bag)
        self._duration_in_ms = 0

    def __str__(self) -> str:
        addon = f" took {self._duration_in_ms}ms" if self._duration_in_ms else ""
        return f"{self._method} {self._uri}{addon}"

    def __repr__(self) -> str:
        return f"Request({self._method!r}, {str(self._uri)!r})"

    def _copy(self) -> "Request":
        return copy.copy(self)

    # Accessors

    def get_method(self) -> str:
        return self._method

    def get_uri(self) -> Uri:
        return self._uri

    def get_body(self) -> Stream:
        return self._body

    def get_protocol(self) -> str:
        return self._protocol

    def get_protocol_version(self) -> str:
        return self._protocol_version

    def get_request_target(self) -> str:
        if self._request_target is not None:
            return self._request_target
        target = self._uri.get_path() or "/"
        if self._uri.get_query():
            target += "?" + self._uri.get_query()
        if self._uri.get_fragment():
            target += "#" + self._uri.get_fragment()
        return target

    def get_headers(self) -> list[str]:
        """Raw ``"Key: value"`` lines in the order they were added."""

        return list(self._header_lines)

    def get_headers_by_key(self) -> dict[str, list[str]]:
        return {name: list(values) for name, values in self._headers_by_key.items()}

    def has_header(self, name: str) -> bool:
        return normalize_header_name(name) in self._headers_by_key

    def get_header(self, name: str) -> list[str]:
        return list(self._headers_by_key.get(normalize_header_name(name), ()))

    def get_header_line(self, name: str) -> str:
        return ",".join(self.get_header(name))

    def get_options(self) -> dict[str, Any]:
        """The option bag this request was built from."""

        return dict(self._options)

    def get_context_options(self) -> dict[str, Any]:
        """Options handed to the transport, reflecting the current state."""

        options = dict(self._options)
        options["method"] = self._method
        options["header"] = list(self._header_lines)
        size = self._body.get_size()
        if size and self._body.is_readable():
            options["content"] = bytes(self._body)
        else:
            options.pop("content", None)
        return options

    def get_duration_in_ms(self) -> int:
        return self._duration_in_ms

    def set_duration(self, ms: float) -> None:
        """Remember how long the last execution of this request took."""

        self._duration_in_ms = int(round(ms))

    # Builders

    def with_header(self, name: str, value: object) -> "Request":
        normalized, values = header_values(name, value)
        clone = self._copy()
        clone._header_lines = tuple(
            line for line in self._header_lines if not line_matches(line, normalized)
        ) + (format_header_line(normalized, values),)
        clone._headers_by_key = {**self._headers_by_key, normalized: values}
        return clone

    def with_added_header(self, name: str, value: object) -> "Request":
        normalized, values = header_values(name, value)
        clone = self._copy()
        clone._header_lines = self._header_lines + (format_header_line(normalized, values),)
        clone._headers_by_key = {
            **self._headers_by_key,
            normalized: self._headers_by_key.get(normalized, ()) + values,
        }
        return clone

    def without_header(self, name: str) -> "Request":
        normalized = normalize_header_name(name)
        clone = self._copy()
        clone._header_lines = tuple(
            line for line in self._header_lines if not line_matches(line, normalized)
        )
        clone._headers_by_key = {
            key: values for key, values in self._headers_by_key.items() if key != normalized
        }
        return clone

    def with_body(self, body: Stream) -> "Request":
        if not isinstance(body, Stream):
            raise InvalidArgument(f"Invalid body: {body!r}")
        clone = self._copy()
        clone._body = body
        size = body.get_size()
        if size is None or not body.is_readable():
            return clone.without_header("Content-Length")
        return clone.with_header("Content-Length", size)

    def with_method(self, method: str) -> "Request":
        if not isinstance(method, str) or not method.strip():
            raise InvalidArgument(f"Invalid method: {method!r}")
        clone = self._copy()
        clone._method = method.strip()
        return clone

    def with_protocol_version(self, version: str) -> "Request":
        clone = self._copy()
        clone._protocol_version = str(version)
        return clone

    def with_request_target(self, request_target: str) -> "Request":
        clone = self._copy()
        clone._request_target = request_target
        return clone

    def with_uri(self, uri: Uri, preserve_host: bool = False) -> "Request":
        """Swap the target URI, updating ``Host`` unless asked to preserve it."""

        if not isinstance(uri, Uri):
            raise InvalidArgument(f"Invalid URI: {uri!r}")
        clone = self._copy()
        clone._uri = uri
        clone._protocol = uri.get_scheme().upper()
        host = uri.get_host()
        if not host or (preserve_host and self.has_header("Host")):
            return clone
        port = uri.get_port()
        return clone.with_header("Host", f"{host}:{port}" if port else host)


__all__ = ["DEFAULT_METHOD", "DEFAULT_PROTOCOL_VERSION", "Request"]
