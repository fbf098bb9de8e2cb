"""Unit tests for memory and file backed streams."""

from __future__ import annotations

import io
import tempfile

import pytest

from minihttp.exceptions import StreamError
from minihttp.streams import FileStream, MemoryStream, normalize_mode


def test_memory_stream_reads_and_tracks_position():
    stream = MemoryStream(b"hello")

    assert stream.read(2) == b"he"
    assert stream.tell() == 2
    assert not stream.eof()
    assert stream.get_contents() == b"llo"
    assert stream.eof()
    assert stream.read(10) == b""


def test_bytes_returns_whole_body_regardless_of_position():
    stream = MemoryStream("héllo")
    stream.read(3)

    assert bytes(stream) == "héllo".encode("utf-8")


def test_read_only_stream_refuses_writes():
    stream = MemoryStream(b"x")

    assert stream.is_readable()
    assert not stream.is_writable()
    with pytest.raises(StreamError):
        stream.write(b"y")


def test_write_only_stream_refuses_reads():
    stream = MemoryStream(mode="w")

    assert stream.is_writable()
    assert not stream.is_readable()
    assert stream.write("data") == 4
    with pytest.raises(StreamError):
        stream.read(1)
    with pytest.raises(StreamError):
        bytes(stream)


def test_memory_stream_always_appends():
    stream = MemoryStream(b"ab", mode="a+")
    stream.write("cd")
    stream.seek(1)
    stream.write(b"e")

    assert bytes(stream) == b"abcde"
    assert stream.write(None) == 0


def test_seek_modes_and_bounds():
    stream = MemoryStream(b"0123456789")

    stream.seek(3)
    assert stream.tell() == 3
    stream.seek(2, io.SEEK_CUR)
    assert stream.tell() == 5
    stream.seek(-1, io.SEEK_END)
    assert stream.read(5) == b"9"
    stream.seek(0, io.SEEK_END)
    assert stream.eof()
    stream.rewind()
    assert stream.tell() == 0

    with pytest.raises(StreamError):
        stream.seek(1, io.SEEK_END)
    with pytest.raises(StreamError):
        stream.seek(-1)
    with pytest.raises(StreamError):
        stream.seek(0, 42)


def test_close_is_idempotent_and_blocks_the_stream():
    stream = MemoryStream(b"abc", mode="r+")
    stream.close()
    stream.close()

    assert stream.closed
    assert not stream.is_readable()
    assert not stream.is_writable()
    assert not stream.is_seekable()
    with pytest.raises(StreamError):
        stream.read(1)
    with pytest.raises(StreamError):
        stream.write(b"x")
    with pytest.raises(StreamError):
        stream.seek(0)


def test_detach_closes_and_returns_none():
    stream = MemoryStream(b"abc")

    assert stream.detach() is None
    assert stream.closed


def test_context_manager_closes_stream():
    with MemoryStream(b"x") as stream:
        assert stream.read(1) == b"x"

    assert stream.closed


def test_metadata():
    stream = MemoryStream(b"abcd")
    stream.read(1)
    meta = stream.get_metadata()

    assert meta == {
        "blocked": False,
        "eof": False,
        "mode": "r",
        "stream_type": "simple/memory",
        "seekable": True,
        "unread_bytes": 3,
        "uri": "memory://",
    }
    assert stream.get_metadata("unread_bytes") == 3
    assert stream.get_metadata("unknown") is None


@pytest.mark.parametrize("mode, expected", [("rb", "r"), ("rb+", "r+"), ("wt", "w"), ("c+", "c+")])
def test_normalize_mode(mode, expected):
    assert normalize_mode(mode) == expected


def test_invalid_mode_raises():
    with pytest.raises(StreamError):
        MemoryStream(b"", mode="z")


def test_writing_unsupported_type_raises():
    stream = MemoryStream(mode="w")

    with pytest.raises(StreamError):
        stream.write(12)  # type: ignore[arg-type]


def test_file_stream_reads_existing_file_and_keeps_it(tmp_path):
    path = tmp_path / "body.txt"
    path.write_bytes(b"file body")

    with FileStream(path) as stream:
        assert stream.get_size() == 9
        assert stream.read(4) == b"file"
        assert stream.get_contents() == b" body"
        assert stream.uri.startswith("file://")
        assert stream.get_metadata("stream_type") == "file"

    assert path.exists()


def test_file_stream_missing_file_raises(tmp_path):
    with pytest.raises(StreamError):
        FileStream(tmp_path / "missing.txt")


def test_writable_file_stream_deletes_its_file_on_close(tmp_path):
    path = tmp_path / "scratch.bin"
    stream = FileStream(path, mode="w+")

    assert stream.write(b"hello") == 5
    assert stream.tell() == 5
    assert stream.get_size() == 5
    stream.rewind()
    assert stream.read(5) == b"hello"
    assert bytes(stream) == b"hello"

    stream.close()
    assert not path.exists()


def test_file_stream_without_path_uses_scratch_directory(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))

    stream = FileStream(mode="w+")
    try:
        assert stream.path.parent == tmp_path / "streams"
        assert stream.path.exists()
        stream.write("scratch")
        assert bytes(stream) == b"scratch"
    finally:
        stream.close()

    assert not stream.path.exists()
