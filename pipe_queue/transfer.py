"""
Exact-length byte transfer over non-blocking descriptors.

These loops are the hot path of every send and receive.  They issue
``os.write`` / ``os.read`` until the whole buffer has moved, treating
the outcomes of each call as follows:

    n > 0        -- advance the cursor and continue
    n == 0       -- peer closed mid-message, fatal (PipeProtocolError)
    would block  -- retry, yielding the GIL between attempts
    other error  -- fatal (PipeIOError)

There is no timeout and no backoff: a call returns when the transfer is
complete or a fatal condition occurs.
"""

import os
import time
import logging

from .exceptions import PipeIOError, PipeProtocolError
from .utils import error_code, is_would_block

logger = logging.getLogger("pipequeue.transfer")

# Upper bound on a single read() request.  The result buffer only grows
# as bytes arrive, so a bogus length prefix cannot force a huge
# allocation before any data has been seen.
READ_CHUNK_SIZE: int = 64 * 1024


def write_all(fd: int, data, poll_interval: float = 0.0) -> None:
    """Write every byte of *data* to *fd*.

    Args:
        fd:            Non-blocking descriptor open for writing.
        data:          ``bytes``, ``bytearray`` or ``memoryview``.
        poll_interval: Sleep between "would block" retries (seconds).
                       ``0.0`` just yields to other threads.

    Raises:
        PipeProtocolError: If a write transfers zero bytes.
        PipeIOError: On any OS error other than "would block".

    Example::

        write_all(fd, b"\\x00\\x00\\x00\\x02hi")
    """
    view = memoryview(data).cast("B")
    total = len(view)
    offset = 0

    while offset < total:
        try:
            n = os.write(fd, view[offset:])
        except OSError as exc:
            code = error_code(exc)
            if is_would_block(code):
                time.sleep(poll_interval)
                continue
            raise PipeIOError(
                "failed to write",
                operation="write",
                target=fd,
                errno=code,
            ) from exc

        if n == 0:
            raise PipeProtocolError(
                f"failed to write all bytes ({offset} of {total} written)",
                operation="write",
                target=fd,
            )
        if not 0 < n <= total - offset:
            raise AssertionError(f"impossible write() result {n}")
        offset += n

    logger.debug("Wrote %d bytes to fd %d", total, fd)


def read_exact(fd: int, size: int, poll_interval: float = 0.0) -> bytes:
    """Read exactly *size* bytes from *fd*.

    Args:
        fd:            Non-blocking descriptor open for reading.
        size:          Number of bytes to read; ``0`` returns ``b""``
                       without touching the descriptor.
        poll_interval: Sleep between "would block" retries (seconds).

    Returns:
        Exactly *size* bytes.

    Raises:
        PipeProtocolError: If the descriptor reaches end-of-file before
            *size* bytes arrived (every writer has gone away).
        PipeIOError: On any OS error other than "would block".

    Example::

        header = read_exact(fd, 4)
    """
    buf = bytearray()

    while len(buf) < size:
        want = min(size - len(buf), READ_CHUNK_SIZE)
        try:
            chunk = os.read(fd, want)
        except OSError as exc:
            code = error_code(exc)
            if is_would_block(code):
                time.sleep(poll_interval)
                continue
            raise PipeIOError(
                "failed to read",
                operation="read",
                target=fd,
                errno=code,
            ) from exc

        if not chunk:
            raise PipeProtocolError(
                f"failed to read all bytes ({len(buf)} of {size} read)",
                operation="read",
                target=fd,
            )
        if len(chunk) > want:
            raise AssertionError(f"impossible read() result {len(chunk)}")
        buf += chunk

    logger.debug("Read %d bytes from fd %d", size, fd)
    return bytes(buf)
