"""Logging helpers for minihttp: console/file setup, redaction and placeholders."""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Iterable, Mapping, MutableMapping
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from rich.logging import RichHandler

DEFAULT_MAX_BYTES = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))
DEFAULT_BACKUP_COUNT = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

PRIVATE = "*private*"
REDACTED = "[redacted]"
SENSITIVE_HEADERS = {"cookie", "set-cookie", "authorization", "proxy-authorization"}

SECRET_PATTERNS = (
    re.compile(r"(pass[a-z_0-9]*)=[^&\s\"]*", re.IGNORECASE),
    re.compile(r"(pw[a-z_0-9]*)=[^&\s\"]*", re.IGNORECASE),
)
PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z_][A-Za-z_0-9.]*)\}")

# Attributes set by LogRecord itself; passing them through ``extra`` fails.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


def mask_secrets(text: str) -> str:
    """Hide ``pass*=`` and ``pw*=`` values, as found in query strings and bodies."""

    for pattern in SECRET_PATTERNS:
        text = pattern.sub(rf"\1={PRIVATE}", text)
    return text


def redact_header_lines(lines: Iterable[str]) -> list[str]:
    """Redact credential headers from raw ``"Key: value"`` lines."""

    redacted: list[str] = []
    for line in lines:
        name, separator, _ = line.partition(": ")
        if separator and name.strip().lower() in SENSITIVE_HEADERS:
            redacted.append(f"{name}{separator}{REDACTED}")
        else:
            redacted.append(mask_secrets(line))
    return redacted


class JsonFormatter(logging.Formatter):
    """Emit logs as structured JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, sort_keys=True)


class SensitiveDataFilter(logging.Filter):
    """Mask secrets in messages and redact credential headers in dict args."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, Mapping):
            sanitized = {}
            for key, value in record.args.items():
                if isinstance(key, str) and key.lower() in SENSITIVE_HEADERS:
                    sanitized[key] = REDACTED
                else:
                    sanitized[key] = value
            record.args = sanitized
        if isinstance(record.msg, str):
            try:
                message = record.getMessage()
            except (TypeError, ValueError):
                # Leave broken format strings for the handler to report.
                return True
            record.msg = mask_secrets(message)
            record.args = ()
        return True


class PlaceholderAdapter(logging.LoggerAdapter):
    """Interpolate ``{key}`` placeholders from the adapter and call context.

    The adapter's own ``extra`` acts as a default context; values passed with
    ``extra=`` on a call take precedence. Unknown placeholders are left as-is.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[Mapping[str, Any]] = None) -> None:
        super().__init__(logger, dict(extra or {}))

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        context = {**(self.extra or {}), **(kwargs.get("extra") or {})}
        if isinstance(msg, str) and context:
            msg = PLACEHOLDER_PATTERN.sub(
                lambda match: str(context[match.group(1)])
                if match.group(1) in context
                else match.group(0),
                msg,
            )
        kwargs["extra"] = {key: value for key, value in context.items() if key not in _RESERVED_ATTRS}
        return msg, kwargs


def _rich_handler(level: int) -> logging.Handler:
    return RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_path=False,
        level=level,
    )


def configure_logging(
    level: int = logging.INFO,
    *,
    json_logs: bool = False,
    logfile: Optional[Path | str] = None,
    suppress: Optional[Iterable[str]] = None,
) -> None:
    """Configure root logging with rotation and optional JSON output."""

    handlers: list[logging.Handler] = []

    console_handler = _rich_handler(level)
    console_handler.addFilter(SensitiveDataFilter())
    handlers.append(console_handler)

    if logfile:
        path = Path(logfile)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=DEFAULT_MAX_BYTES,
            backupCount=DEFAULT_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.addFilter(SensitiveDataFilter())
        if json_logs:
            file_handler.setFormatter(JsonFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in suppress or ("urllib3", "charset_normalizer"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


__all__ = [
    "JsonFormatter",
    "PlaceholderAdapter",
    "SensitiveDataFilter",
    "configure_logging",
    "mask_secrets",
    "redact_header_lines",
]
