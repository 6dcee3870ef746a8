"""
Length-prefixed framing for pipe_queue.

Wire format (a stream of frames, nothing else):
    Offset   Size  Field
    0        4     LENGTH  -- payload size N, big-endian uint32
    4        N     PAYLOAD -- opaque bytes

There is no magic, version, checksum or delimiter; the length prefix is
the only structure on the wire.
"""

import struct
import logging

from .transfer import write_all, read_exact

logger = logging.getLogger("pipequeue.framing")

_LENGTH_STRUCT = struct.Struct(">I")  # big-endian unsigned 32-bit int

HEADER_SIZE: int = _LENGTH_STRUCT.size
MAX_PAYLOAD_SIZE: int = 0xFFFF_FFFF


def encode_frame(payload) -> bytes:
    """Return *payload* prefixed with its 4-byte big-endian length.

    Raises:
        ValueError: If the payload is longer than
            :data:`MAX_PAYLOAD_SIZE`.  This is a caller bug, raised
            before anything is written.
    """
    payload = memoryview(payload).cast("B")
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise ValueError(
            f"Payload size {len(payload)} exceeds the maximum frame "
            f"payload of {MAX_PAYLOAD_SIZE} bytes."
        )
    frame = bytearray(HEADER_SIZE + len(payload))
    _LENGTH_STRUCT.pack_into(frame, 0, len(payload))
    frame[HEADER_SIZE:] = payload
    return bytes(frame)


def decode_length(header: bytes) -> int:
    """Return the payload length declared by a 4-byte frame header."""
    (length,) = _LENGTH_STRUCT.unpack(header)
    return length


def write_frame(fd: int, payload, poll_interval: float = 0.0) -> int:
    """Frame *payload* and write it to *fd* as one unit.

    Returns:
        The payload length that was written.
    """
    frame = encode_frame(payload)
    write_all(fd, frame, poll_interval=poll_interval)
    length = len(frame) - HEADER_SIZE
    logger.debug("Sent frame of %d bytes on fd %d", length, fd)
    return length


def read_frame(fd: int, poll_interval: float = 0.0) -> bytes:
    """Read one complete frame from *fd* and return its payload.

    The caller must hold the reader's advisory lock, otherwise another
    consumer may take bytes from the middle of this frame.
    """
    header = read_exact(fd, HEADER_SIZE, poll_interval=poll_interval)
    length = decode_length(header)
    payload = read_exact(fd, length, poll_interval=poll_interval)
    logger.debug("Received frame of %d bytes on fd %d", length, fd)
    return payload
