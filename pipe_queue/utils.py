"""
Miscellaneous utilities for pipe_queue.

Holds the OS error capability used by the rest of the package
(errno -> semantic code, errno -> text) and a few FIFO housekeeping
helpers that callers may use to clean up after themselves.
"""

import os
import stat
import errno
import logging
from pathlib import Path

from .exceptions import PipeIOError

logger = logging.getLogger("pipequeue.utils")


# ── OS error helpers ──────────────────────────────────────────────────────────

# EAGAIN and EWOULDBLOCK share a value on Linux and macOS but POSIX
# allows them to differ.
WOULD_BLOCK_CODES: frozenset[int] = frozenset({errno.EAGAIN, errno.EWOULDBLOCK})


def error_code(exc: OSError) -> int:
    """Return the OS error code carried by *exc* (``0`` if none)."""
    return exc.errno or 0


def error_text(code: int) -> str:
    """Render an OS error code as human-readable text."""
    return os.strerror(code)


def is_would_block(code: int) -> bool:
    """``True`` if *code* means "no data/space yet, try again"."""
    return code in WOULD_BLOCK_CODES


def is_not_found(code: int) -> bool:
    return code == errno.ENOENT


# ── FIFO helpers ──────────────────────────────────────────────────────────────

def is_fifo(path) -> bool:
    """Return ``True`` if *path* exists and is a named pipe."""
    try:
        return stat.S_ISFIFO(os.stat(path).st_mode)
    except FileNotFoundError:
        return False


def remove_pipe(path) -> bool:
    """Remove the named pipe at *path* if it exists.

    The library never deletes the FIFOs it creates; this is the
    caller's cleanup hook.

    Args:
        path: Filesystem path of the FIFO.

    Returns:
        ``True`` if the FIFO existed and was removed,
        ``False`` if it was not found.

    Raises:
        PipeIOError: If *path* exists but is not a FIFO, or the unlink
            fails.

    Example::

        remove_pipe("/tmp/jobs.fifo")
    """
    path = Path(path)
    try:
        mode = os.lstat(path).st_mode
    except FileNotFoundError:
        return False
    if not stat.S_ISFIFO(mode):
        raise PipeIOError(
            "refusing to remove a path that is not a FIFO",
            operation="unlink",
            target=path,
        )
    try:
        os.unlink(path)
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise PipeIOError(
            "failed to remove FIFO",
            operation="unlink",
            target=path,
            errno=error_code(exc),
        ) from exc
    logger.info("Removed FIFO '%s'", path)
    return True


def list_pipes(directory) -> list[str]:
    """List the names of all FIFOs directly inside *directory*.

    Returns an empty list if the directory cannot be read.
    """
    try:
        entries = os.listdir(directory)
    except OSError as exc:
        logger.warning("Could not list %s: %s", directory, exc)
        return []
    return sorted(
        entry for entry in entries if is_fifo(os.path.join(directory, entry))
    )
