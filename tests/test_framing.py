"""
Tests for pipe_queue.framing — the length-prefixed wire format.
"""

import os
import struct

import pytest

from pipe_queue import framing
from pipe_queue.framing import (
    HEADER_SIZE,
    MAX_PAYLOAD_SIZE,
    encode_frame,
    decode_length,
    write_frame,
    read_frame,
)
from pipe_queue.exceptions import PipeProtocolError


@pytest.fixture()
def pipe_fds():
    r, w = os.pipe()
    os.set_blocking(r, False)
    os.set_blocking(w, False)
    yield r, w
    for fd in (r, w):
        try:
            os.close(fd)
        except OSError:
            pass


# ── Encoding ──────────────────────────────────────────────────────────────────

def test_header_is_four_bytes():
    assert HEADER_SIZE == 4
    assert MAX_PAYLOAD_SIZE == 2**32 - 1


def test_encode_is_big_endian_length_then_payload():
    frame = encode_frame(b"Hello, reader!")
    assert frame[:4] == b"\x00\x00\x00\x0e"
    assert frame[4:] == b"Hello, reader!"


def test_encode_empty_payload():
    assert encode_frame(b"") == b"\x00\x00\x00\x00"


def test_encode_length_uses_all_four_bytes():
    payload = b"z" * 0x010203
    frame = encode_frame(payload)
    assert frame[:4] == b"\x00\x01\x02\x03"
    assert len(frame) == 4 + 0x010203


def test_decode_length():
    assert decode_length(b"\x00\x00\x01\x00") == 256
    assert decode_length(b"\xff\xff\xff\xff") == MAX_PAYLOAD_SIZE


def test_oversized_payload_fails_fast(monkeypatch):
    monkeypatch.setattr(framing, "MAX_PAYLOAD_SIZE", 8)
    with pytest.raises(ValueError):
        encode_frame(b"123456789")
    # the limit itself is still accepted
    assert encode_frame(b"12345678")[:4] == struct.pack(">I", 8)


def test_oversized_payload_writes_nothing(pipe_fds, monkeypatch):
    r, w = pipe_fds
    monkeypatch.setattr(framing, "MAX_PAYLOAD_SIZE", 2)
    with pytest.raises(ValueError):
        write_frame(w, b"abc")
    with pytest.raises(BlockingIOError):
        os.read(r, 1)  # the pipe is still empty


# ── Frame I/O ─────────────────────────────────────────────────────────────────

def test_write_and_read_frame(pipe_fds):
    r, w = pipe_fds
    assert write_frame(w, b"payload") == 7
    assert read_frame(r) == b"payload"


def test_frames_are_read_one_at_a_time(pipe_fds):
    r, w = pipe_fds
    for msg in (b"first", b"", b"third"):
        write_frame(w, msg)
    assert read_frame(r) == b"first"
    assert read_frame(r) == b""
    assert read_frame(r) == b"third"


def test_truncated_payload_raises(pipe_fds):
    r, w = pipe_fds
    os.write(w, struct.pack(">I", 1000) + b"short")
    os.close(w)
    with pytest.raises(PipeProtocolError):
        read_frame(r)


def test_truncated_header_raises(pipe_fds):
    r, w = pipe_fds
    os.write(w, b"\x00\x00")
    os.close(w)
    with pytest.raises(PipeProtocolError):
        read_frame(r)
