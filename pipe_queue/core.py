"""
Named pipe lifecycle management for pipe_queue.

This module owns the low-level create / open / close operations for
the FIFO that carries a queue's frames.  All descriptors are opened
non-blocking; the transfer loops in transfer.py turn "would block" into
a retry.

Open flags:
    Producer  -- O_RDWR   | O_NONBLOCK
    Consumer  -- O_RDONLY | O_NONBLOCK

The producer opens read-write because a non-blocking write-only open
of a FIFO fails with ENXIO until some process has it open for reading.
Holding both ends also keeps frames sent before the first consumer
arrives inside the kernel buffer.
"""

import os
import stat
import logging

from .exceptions import PipeIOError, PipeNotFoundError
from .utils import error_code, is_not_found

logger = logging.getLogger("pipequeue.core")

# ── Constants ────────────────────────────────────────────────────────────────

DEFAULT_MODE: int = stat.S_IRWXU  # 0o700, owner read/write/execute only

WRITER_FLAGS: int = os.O_RDWR | os.O_NONBLOCK
READER_FLAGS: int = os.O_RDONLY | os.O_NONBLOCK


# ── Public API ────────────────────────────────────────────────────────────────

def make_fifo(path, mode: int = DEFAULT_MODE) -> None:
    """Create a named pipe at *path*.

    Unlike a shared memory segment, an existing entry is never replaced:
    if *path* already exists (as a FIFO or anything else) creation fails.

    Args:
        path: Filesystem path for the FIFO.
        mode: Permission bits, filtered by the process umask.

    Raises:
        PipeIOError: If the OS refuses to create the FIFO.

    Example::

        make_fifo("/tmp/jobs.fifo")
    """
    try:
        os.mkfifo(path, mode)
    except OSError as exc:
        raise PipeIOError(
            "failed to create FIFO",
            operation="mkfifo",
            target=path,
            errno=error_code(exc),
        ) from exc
    logger.debug("Created FIFO '%s' (mode=%o)", path, mode)


def open_fifo(path, flags: int) -> int:
    """Open the FIFO at *path* with *flags* and return the descriptor.

    Args:
        path:  Filesystem path of an existing FIFO.
        flags: ``os.open`` flags, normally :data:`WRITER_FLAGS` or
               :data:`READER_FLAGS`.

    Returns:
        The raw file descriptor.  The caller owns it and must pass it to
        :func:`close_fd` when done.

    Raises:
        PipeNotFoundError: If *path* does not exist.
        PipeIOError: If *path* is not a FIFO or cannot be opened.
    """
    try:
        fd = os.open(path, flags)
    except OSError as exc:
        code = error_code(exc)
        if is_not_found(code):
            raise PipeNotFoundError(
                "no FIFO at path",
                operation="open",
                target=path,
                errno=code,
            ) from exc
        raise PipeIOError(
            "failed to open FIFO",
            operation="open",
            target=path,
            errno=code,
        ) from exc

    try:
        mode = os.fstat(fd).st_mode
    except OSError as exc:
        os.close(fd)
        raise PipeIOError(
            "failed to stat opened FIFO",
            operation="fstat",
            target=path,
            errno=error_code(exc),
        ) from exc
    if not stat.S_ISFIFO(mode):
        os.close(fd)
        raise PipeIOError(
            "path exists but is not a FIFO",
            operation="open",
            target=path,
        )

    logger.debug("Opened FIFO '%s' as fd %d (flags=0x%x)", path, fd, flags)
    return fd


def close_fd(fd: int) -> None:
    """Close a descriptor returned by :func:`open_fifo`.

    Failures are logged, not raised: by the time a handle is released
    there is nothing useful a caller can do about them.
    """
    try:
        os.close(fd)
        logger.debug("Closed fd %d", fd)
    except OSError as exc:
        logger.warning("Error closing fd %d: %s", fd, exc)
