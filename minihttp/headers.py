"""Header name normalization and value validation."""

from __future__ import annotations

from collections.abc import Iterable

from .exceptions import InvalidArgument

HEADER_SEPARATOR = ": "


def normalize_header_name(name: str) -> str:
    """Return ``name`` lowercased with each hyphen-separated word capitalized."""

    return "-".join(word[:1].upper() + word[1:] for word in name.strip().lower().split("-"))


def split_header_line(line: str) -> tuple[str, str] | None:
    """Split ``"Key: value"`` on the first separator; ``None`` when there is none."""

    if HEADER_SEPARATOR not in line:
        return None
    name, value = line.split(HEADER_SEPARATOR, 1)
    return name, value


def _check_value(name: str, value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise InvalidArgument(f"Invalid '{name}' value: {value!r}")
    return str(value)


def header_values(name: object, value: object) -> tuple[str, tuple[str, ...]]:
    """Validate a header name/value pair for the ``with*`` builders."""

    if not isinstance(name, str) or not name.strip():
        raise InvalidArgument(f"Invalid header name: {name!r}")
    normalized = normalize_header_name(name)
    if isinstance(value, (list, tuple)):
        values: Iterable[object] = value
    else:
        values = (value,)
    return normalized, tuple(_check_value(normalized, item) for item in values)


def format_header_line(name: str, values: Iterable[str]) -> str:
    return f"{name}{HEADER_SEPARATOR}{','.join(values)}"


def line_matches(line: str, normalized_name: str) -> bool:
    parts = split_header_line(line)
    return parts is not None and normalize_header_name(parts[0]) == normalized_name


__all__ = [
    "HEADER_SEPARATOR",
    "format_header_line",
    "header_values",
    "line_matches",
    "normalize_header_name",
    "split_header_line",
]
