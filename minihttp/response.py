"""HTTP response built from raw header lines and a body stream."""

from __future__ import annotations

import copy
import html
import json
import re
from collections.abc import Sequence
from typing import Any

from .exceptions import InvalidArgument, MalformedJson, MalformedResponse, UnexpectedContent
from .headers import (
    HEADER_SEPARATOR,
    header_values,
    line_matches,
    normalize_header_name,
    split_header_line,
)
from .streams import MemoryStream, Stream

TITLE_SCAN_BYTES = 10_000
TAG_PATTERN = re.compile(r"<[^>]*>")


class Response:
    """A received response.

    ``header_lines`` holds the lines exactly as received, status line first.
    Lines of the form ``"Key: value"`` are also indexed under the normalized
    key, a later line replacing an earlier one; other lines are indexed by
    their position.
    """

    def __init__(self, header_lines: Sequence[str], body: Stream) -> None:
        lines = tuple(str(line) for line in header_lines)
        if not lines:
            raise MalformedResponse("Response without any header line")
        self._header_lines = lines
        self._body = body
        self._code = 0
        self._reason = ""
        self._protocol = "HTTP"
        self._protocol_version = ""
        self._headers_by_key: dict[object, str] = {}
        for position, line in enumerate(lines):
            parts = split_header_line(line)
            if parts is not None:
                self._headers_by_key[normalize_header_name(parts[0])] = parts[1]
                continue
            self._headers_by_key[position] = line
            if position == 0:
                self._parse_status_line(line)

    def _parse_status_line(self, line: str) -> None:
        words = line.split(" ")
        if len(words) < 2:
            raise MalformedResponse(f"Incomplete first response header: {line}")
        protocol, code, reason = words[0], words[1], " ".join(words[2:])
        if not code.isdigit():
            raise MalformedResponse(f"Invalid status code in: {line}")
        self._protocol, _, self._protocol_version = protocol.partition("/")
        self._code = int(code)
        self._reason = reason

    @classmethod
    def degraded(cls, body: bytes = b"", reason: str = "") -> "Response":
        """Status 0 response standing in for a failed exchange."""

        response = cls.__new__(cls)
        response._header_lines = ()
        response._body = MemoryStream(body)
        response._code = 0
        response._reason = reason
        response._protocol = "HTTP"
        response._protocol_version = ""
        response._headers_by_key = {}
        return response

    def __repr__(self) -> str:
        return f"Response({self._code}, {self._reason!r})"

    def _copy(self) -> "Response":
        clone = copy.copy(self)
        clone._headers_by_key = dict(self._headers_by_key)
        return clone

    # Status line

    def get_status_code(self) -> int:
        return self._code

    def get_reason_phrase(self) -> str:
        return self._reason

    def get_protocol(self) -> str:
        return self._protocol

    def get_protocol_version(self) -> str:
        return self._protocol_version

    # Headers

    def get_headers(self) -> list[str]:
        return list(self._header_lines)

    def get_header(self, name: str) -> list[str]:
        """Every value received for ``name``, in order."""

        normalized = normalize_header_name(name)
        values: list[str] = []
        for line in self._header_lines:
            if line_matches(line, normalized):
                values.append(line.split(HEADER_SEPARATOR, 1)[1])
        return values

    def get_header_line(self, name: str) -> str:
        return ", ".join(self.get_header(name))

    def has_header(self, name: str) -> bool:
        return normalize_header_name(name) in self._headers_by_key

    def header(self, name: str) -> str:
        """Indexed (last received) value for ``name``, or an empty string."""

        return self._headers_by_key.get(normalize_header_name(name), "")

    # Body

    def get_body(self) -> Stream:
        return self._body

    def get_size(self) -> int | None:
        return self._body.get_size()

    def json_decode(self) -> Any:
        content_type = self.header("Content-Type")
        if content_type and "JSON" not in content_type.upper():
            raise UnexpectedContent(f"Wrong response type (not JSON): {content_type}")
        payload = bytes(self._body)
        if not payload:
            raise UnexpectedContent("Empty response body")
        try:
            return json.loads(payload)
        except ValueError as exc:
            raise MalformedJson(f"JSON error: {exc}") from exc

    def get_page_title(self) -> str:
        """Title of an HTML/XML page, or an empty string when none is found.

        Only the first line mentioning ``<title`` within the first 10 000 bytes
        is considered.
        """

        head = bytes(self._body)[:TITLE_SCAN_BYTES].decode("utf-8", errors="replace")
        for line in head.split("\n"):
            if "<title" in line.lower():
                return html.unescape(TAG_PATTERN.sub("", line)).strip()
        return ""

    # Copies with changes

    def with_header(self, name: str, value: object) -> "Response":
        normalized, values = header_values(name, value)
        joined = ",".join(values)
        clone = self._copy()
        clone._header_lines = tuple(
            line for line in self._header_lines if not line_matches(line, normalized)
        ) + (f"{normalized}{HEADER_SEPARATOR}{joined}",)
        clone._headers_by_key[normalized] = joined
        return clone

    def with_added_header(self, name: str, value: object) -> "Response":
        normalized, values = header_values(name, value)
        joined = ",".join(values)
        clone = self._copy()
        clone._header_lines = self._header_lines + (f"{normalized}{HEADER_SEPARATOR}{joined}",)
        clone._headers_by_key[normalized] = joined
        return clone

    def without_header(self, name: str) -> "Response":
        normalized = normalize_header_name(name)
        clone = self._copy()
        clone._header_lines = tuple(
            line for line in self._header_lines if not line_matches(line, normalized)
        )
        clone._headers_by_key.pop(normalized, None)
        return clone

    def with_body(self, body: Stream) -> "Response":
        if not isinstance(body, Stream):
            raise InvalidArgument(f"Invalid body: {body!r}")
        clone = self._copy()
        clone._body = body
        return clone

    def with_protocol_version(self, version: str) -> "Response":
        clone = self._copy()
        clone._protocol_version = str(version)
        return clone

    def with_status(self, code: int, reason_phrase: str = "") -> "Response":
        if isinstance(code, bool) or not isinstance(code, int):
            raise InvalidArgument(f"Invalid code: {code!r}")
        if not isinstance(reason_phrase, str):
            raise InvalidArgument(f"Invalid reason phrase: {reason_phrase!r}")
        clone = self._copy()
        clone._code = code
        clone._reason = reason_phrase
        return clone


__all__ = ["Response", "TITLE_SCAN_BYTES"]
