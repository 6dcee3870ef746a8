"""
Tests for pipe_queue.transfer — exact-length read/write loops.
"""

import os
import errno
import threading

import pytest

from pipe_queue import transfer
from pipe_queue.transfer import write_all, read_exact, READ_CHUNK_SIZE
from pipe_queue.exceptions import PipeIOError, PipeProtocolError


@pytest.fixture()
def pipe_fds():
    """An anonymous pipe with both ends non-blocking."""
    r, w = os.pipe()
    os.set_blocking(r, False)
    os.set_blocking(w, False)
    fds = {"r": r, "w": w}
    yield fds
    for fd in fds.values():
        if fd is not None:
            try:
                os.close(fd)
            except OSError:
                pass


def _close(fds, end):
    os.close(fds[end])
    fds[end] = None


# ── write_all / read_exact ────────────────────────────────────────────────────

def test_write_then_read(pipe_fds):
    write_all(pipe_fds["w"], b"hello world")
    assert read_exact(pipe_fds["r"], 11) == b"hello world"


def test_read_leaves_remaining_bytes(pipe_fds):
    write_all(pipe_fds["w"], b"abcdef")
    assert read_exact(pipe_fds["r"], 2) == b"ab"
    assert read_exact(pipe_fds["r"], 4) == b"cdef"


def test_write_accepts_memoryview_and_bytearray(pipe_fds):
    write_all(pipe_fds["w"], bytearray(b"ab"))
    write_all(pipe_fds["w"], memoryview(b"cd"))
    assert read_exact(pipe_fds["r"], 4) == b"abcd"


def test_read_zero_bytes_does_not_touch_fd(pipe_fds):
    _close(pipe_fds, "w")
    # would raise PipeProtocolError if a read() were issued
    assert read_exact(pipe_fds["r"], 0) == b""


@pytest.mark.timeout(10)
def test_read_waits_for_late_data(pipe_fds):
    result = {}

    def reader():
        result["data"] = read_exact(pipe_fds["r"], 5)

    t = threading.Thread(target=reader)
    t.start()
    t.join(timeout=0.2)
    assert t.is_alive()  # still retrying on EAGAIN

    write_all(pipe_fds["w"], b"late!")
    t.join(timeout=5.0)
    assert not t.is_alive()
    assert result["data"] == b"late!"


@pytest.mark.timeout(20)
def test_large_transfer_spans_many_syscalls(pipe_fds):
    # Several times the default 64 KiB pipe buffer, so the writer must
    # retry on a full buffer and the reader must loop over chunks.
    payload = bytes(range(256)) * (4 * READ_CHUNK_SIZE // 256 + 7)
    result = {}

    def reader():
        result["data"] = read_exact(pipe_fds["r"], len(payload))

    t = threading.Thread(target=reader)
    t.start()
    write_all(pipe_fds["w"], payload)
    t.join(timeout=15.0)
    assert result["data"] == payload


# ── Fatal conditions ──────────────────────────────────────────────────────────

def test_eof_mid_read_raises_protocol_error(pipe_fds):
    write_all(pipe_fds["w"], b"abc")
    _close(pipe_fds, "w")
    with pytest.raises(PipeProtocolError) as info:
        read_exact(pipe_fds["r"], 10)
    assert "3 of 10" in str(info.value)


def test_write_without_reader_raises_io_error(pipe_fds):
    _close(pipe_fds, "r")
    with pytest.raises(PipeIOError) as info:
        write_all(pipe_fds["w"], b"nobody listening")
    assert info.value.errno == errno.EPIPE


def test_read_bad_fd_raises_io_error(pipe_fds):
    fd = pipe_fds["r"]
    _close(pipe_fds, "r")
    with pytest.raises(PipeIOError) as info:
        read_exact(fd, 1)
    assert info.value.errno == errno.EBADF
    assert info.value.operation == "read"


def test_zero_byte_write_raises_protocol_error(pipe_fds, monkeypatch):
    monkeypatch.setattr(transfer.os, "write", lambda fd, data: 0)
    with pytest.raises(PipeProtocolError):
        write_all(pipe_fds["w"], b"xyz")


# ── Would-block is absorbed ───────────────────────────────────────────────────

def test_would_block_is_retried_on_read(pipe_fds, monkeypatch):
    real_read = os.read
    calls = {"n": 0}

    def flaky_read(fd, n):
        calls["n"] += 1
        if calls["n"] <= 3:
            raise BlockingIOError(errno.EAGAIN, "Resource temporarily unavailable")
        return real_read(fd, n)

    write_all(pipe_fds["w"], b"ok")
    monkeypatch.setattr(transfer.os, "read", flaky_read)
    assert read_exact(pipe_fds["r"], 2) == b"ok"
    assert calls["n"] == 4


def test_would_block_is_retried_on_write(pipe_fds, monkeypatch):
    real_write = os.write
    calls = {"n": 0}

    def flaky_write(fd, data):
        calls["n"] += 1
        if calls["n"] == 1:
            raise BlockingIOError(errno.EWOULDBLOCK, "would block")
        # accept one byte at a time to exercise the cursor
        return real_write(fd, data[:1])

    monkeypatch.setattr(transfer.os, "write", flaky_write)
    write_all(pipe_fds["w"], b"abc")
    monkeypatch.undo()
    assert read_exact(pipe_fds["r"], 3) == b"abc"
    assert calls["n"] == 4


# ── Impossible syscall results ────────────────────────────────────────────────

def test_overlong_write_result_is_rejected(pipe_fds, monkeypatch):
    monkeypatch.setattr(transfer.os, "write", lambda fd, data: len(data) + 1)
    with pytest.raises(AssertionError, match="impossible write"):
        write_all(pipe_fds["w"], b"abc")


def test_overlong_read_result_is_rejected(pipe_fds, monkeypatch):
    monkeypatch.setattr(transfer.os, "read", lambda fd, n: b"x" * (n + 1))
    with pytest.raises(AssertionError, match="impossible read"):
        read_exact(pipe_fds["r"], 2)
