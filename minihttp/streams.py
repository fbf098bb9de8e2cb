"""Byte streams used as request and response bodies.

Two variants share the capability rules defined by :class:`Stream`:

* :class:`MemoryStream` keeps the body in memory and only ever appends on
  write.
* :class:`FileStream` wraps a file on disk. Without an explicit path it
  creates a scratch file that is deleted when a writable stream is closed.
"""

from __future__ import annotations

import io
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from .exceptions import StreamError

LOGGER = logging.getLogger(__name__)

WRITE_ONLY_MODES = frozenset({"w", "a", "x", "c"})
READ_ONLY_MODE = "r"
SCRATCH_DIR_NAME = "streams"

_OPEN_FLAGS: dict[str, int] = {
    "r": os.O_RDONLY,
    "r+": os.O_RDWR,
    "w": os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    "w+": os.O_RDWR | os.O_CREAT | os.O_TRUNC,
    "a": os.O_WRONLY | os.O_CREAT | os.O_APPEND,
    "a+": os.O_RDWR | os.O_CREAT | os.O_APPEND,
    "x": os.O_WRONLY | os.O_CREAT | os.O_EXCL,
    "x+": os.O_RDWR | os.O_CREAT | os.O_EXCL,
    "c": os.O_WRONLY | os.O_CREAT,
    "c+": os.O_RDWR | os.O_CREAT,
}


def normalize_mode(mode: str) -> str:
    """Drop the binary/text markers: ``"rb+"`` becomes ``"r+"``."""

    normalized = "".join(char for char in mode if char not in "bt")
    if normalized not in _OPEN_FLAGS:
        raise StreamError(f"Invalid stream mode: {mode!r}")
    return normalized


def _as_bytes(data: bytes | bytearray | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    raise StreamError(f"Cannot write a {type(data).__name__}")


class Stream(ABC):
    """Common capability checks and bookkeeping for body streams."""

    stream_type = "abstract"

    def __init__(self, mode: str = READ_ONLY_MODE) -> None:
        self.mode = normalize_mode(mode)
        self._blocked = False
        self._pos = 0

    def __enter__(self) -> "Stream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __bytes__(self) -> bytes:
        if not self.is_readable():
            raise StreamError("not readable stream")
        return self._read_all()

    @property
    def closed(self) -> bool:
        return self._blocked

    def is_readable(self) -> bool:
        return not self._blocked and self.mode not in WRITE_ONLY_MODES

    def is_writable(self) -> bool:
        return not self._blocked and self.mode != READ_ONLY_MODE

    def is_seekable(self) -> bool:
        return not self._blocked

    def tell(self) -> int:
        return self._pos

    def eof(self) -> bool:
        return self._pos >= (self.get_size() or 0)

    def read(self, length: int) -> bytes:
        if not self.is_readable():
            raise StreamError("not readable stream")
        chunk = self._read_at(self._pos, max(0, int(length)))
        self._pos += len(chunk)
        return chunk

    def get_contents(self) -> bytes:
        """Read everything from the current position to the end."""

        if not self.is_readable():
            raise StreamError("not readable stream")
        remaining = max(0, (self.get_size() or 0) - self._pos)
        chunk = self._read_at(self._pos, remaining)
        self._pos += len(chunk)
        return chunk

    def write(self, data: bytes | str | None) -> int:
        if not self.is_writable():
            raise StreamError("Cannot write to this stream")
        if data is None:
            return 0
        return self._write(_as_bytes(data))

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> None:
        if not self.is_seekable():
            raise StreamError("not seekable stream")
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._pos + offset
        elif whence == io.SEEK_END:
            target = (self.get_size() or 0) + offset
        else:
            raise StreamError(f"Invalid seek mode: {whence!r}")
        if not 0 <= target <= (self.get_size() or 0):
            raise StreamError(f"Seek position {target} outside of stream bounds")
        self._pos = target

    def rewind(self) -> None:
        self.seek(0)

    def close(self) -> None:
        if self._blocked:
            return
        self._release()
        self._blocked = True

    def detach(self) -> None:
        self.close()
        return None

    def get_metadata(self, key: str | None = None) -> object:
        size = self.get_size() or 0
        meta: dict[str, object] = {
            "blocked": self._blocked,
            "eof": self.eof(),
            "mode": self.mode,
            "stream_type": self.stream_type,
            "seekable": self.is_seekable(),
            "unread_bytes": max(0, size - self._pos),
            "uri": self.uri,
        }
        if key is not None:
            return meta.get(key)
        return meta

    @property
    @abstractmethod
    def uri(self) -> str:
        """Location of the stream's data."""

    @abstractmethod
    def get_size(self) -> int | None:
        """Size of the body in bytes, ``None`` when unknown."""

    @abstractmethod
    def _read_at(self, position: int, length: int) -> bytes:
        ...

    @abstractmethod
    def _read_all(self) -> bytes:
        ...

    @abstractmethod
    def _write(self, data: bytes) -> int:
        ...

    @abstractmethod
    def _release(self) -> None:
        ...


class MemoryStream(Stream):
    """In-memory body. Writes always append to the end of the body."""

    stream_type = "simple/memory"

    def __init__(self, body: bytes | str = b"", mode: str = READ_ONLY_MODE) -> None:
        super().__init__(mode)
        self._body = _as_bytes(body)

    def __repr__(self) -> str:
        return f"MemoryStream(size={len(self._body)}, mode={self.mode!r})"

    @property
    def uri(self) -> str:
        return "memory://"

    def get_size(self) -> int:
        return len(self._body)

    def _read_at(self, position: int, length: int) -> bytes:
        return self._body[position : position + length]

    def _read_all(self) -> bytes:
        return self._body

    def _write(self, data: bytes) -> int:
        self._body += data
        return len(data)

    def _release(self) -> None:
        self._body = b""


def _scratch_path() -> Path:
    directory = Path(tempfile.gettempdir()) / SCRATCH_DIR_NAME
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StreamError(f"Could not make dir: {directory}") from exc
    prefix = datetime.now().strftime("%Y%m%d-%H00-")
    try:
        fd, name = tempfile.mkstemp(prefix=prefix, dir=directory)
    except OSError as exc:
        raise StreamError(f"Could not make file in: {directory}") from exc
    os.close(fd)
    return Path(name)


def _fdopen_mode(mode: str) -> str:
    if mode == "r":
        return "rb"
    if mode.endswith("+"):
        return "a+b" if mode.startswith("a") else "r+b"
    return "ab" if mode == "a" else "wb"


class FileStream(Stream):
    """File-backed body. A writable stream deletes its file when closed."""

    stream_type = "file"

    def __init__(self, path: str | os.PathLike[str] = "", mode: str = READ_ONLY_MODE) -> None:
        super().__init__(mode)
        text_path = str(path).strip()
        self.path = Path(text_path) if text_path else _scratch_path()
        self._delete_on_close = self.mode != READ_ONLY_MODE
        try:
            fd = os.open(self.path, _OPEN_FLAGS[self.mode], 0o600)
        except OSError as exc:
            raise StreamError(f"Could not open file in: {self.path}") from exc
        self._handle: BinaryIO | None = os.fdopen(fd, _fdopen_mode(self.mode))

    def __repr__(self) -> str:
        return f"FileStream(path={str(self.path)!r}, mode={self.mode!r})"

    @property
    def uri(self) -> str:
        return self.path.as_uri() if self.path.is_absolute() else str(self.path)

    def get_size(self) -> int | None:
        if self._handle is not None:
            self._handle.flush()
        try:
            return self.path.stat().st_size
        except OSError:
            return None

    def _read_at(self, position: int, length: int) -> bytes:
        assert self._handle is not None
        self._handle.seek(position)
        return self._handle.read(length)

    def _read_all(self) -> bytes:
        if self._handle is not None:
            self._handle.flush()
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise StreamError(f"Could not read stream: {self.path}") from exc

    def _write(self, data: bytes) -> int:
        assert self._handle is not None
        if "a" not in self.mode:
            self._handle.seek(self._pos)
        try:
            written = self._handle.write(data)
        except OSError as exc:
            raise StreamError(f"Could not write to stream: {self.path}") from exc
        self._pos = self._handle.tell()
        return written

    def _release(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
        if self._delete_on_close:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as exc:
                LOGGER.error("Could not delete stream %s: %s", self.path, exc)


__all__ = [
    "FileStream",
    "MemoryStream",
    "READ_ONLY_MODE",
    "Stream",
    "WRITE_ONLY_MODES",
    "normalize_mode",
]
