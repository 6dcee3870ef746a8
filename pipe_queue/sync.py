"""
Advisory lock over a reader's pipe descriptor.

Every :class:`~pipe_queue.handles.PipeReader` holds its own descriptor
on the shared FIFO.  Taking an exclusive ``flock`` on that descriptor
around a frame read means only one consumer at a time can be between
"read the length" and "read the payload", so frames are never split
between consumers.

``flock`` locks belong to the open file description, so two readers in
the same process conflict exactly like two readers in different
processes.  The lock is advisory: a process reading the FIFO without
taking it is not stopped.
"""

import fcntl
import time
import logging

from .exceptions import PipeLockError
from .utils import error_code, is_would_block

logger = logging.getLogger("pipequeue.sync")


class AdvisoryLock:
    """Scoped exclusive ``flock`` on a file descriptor.

    Usage::

        with AdvisoryLock(reader_fd):
            # only one holder of a lock on this FIFO runs this block
            payload = read_frame(reader_fd)

    Args:
        fd:            Descriptor to lock.  Not owned; never closed here.
        poll_interval: Sleep between attempts while another holder has
                       the lock.  ``0.0`` just yields to other threads.
    """

    def __init__(self, fd: int, poll_interval: float = 0.0):
        self._fd = fd
        self._poll_interval = poll_interval
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    # ------------------------------------------------------------------
    # Low-level acquire / release
    # ------------------------------------------------------------------

    def acquire(self) -> None:
        """Spin until the exclusive lock is held.

        Raises:
            PipeLockError: If ``flock`` fails for any reason other than
                the lock being held elsewhere.
        """
        while True:
            try:
                fcntl.flock(self._fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except OSError as exc:
                code = error_code(exc)
                if not is_would_block(code):
                    raise PipeLockError(
                        "failed to acquire lock on pipe",
                        operation="flock",
                        target=self._fd,
                        errno=code,
                    ) from exc
            time.sleep(self._poll_interval)

        self._held = True
        logger.debug("Acquired lock on fd %d", self._fd)

    def release(self) -> None:
        """Release the lock.  A no-op if it is not held."""
        if not self._held:
            return
        try:
            fcntl.flock(self._fd, fcntl.LOCK_UN)
        except OSError as exc:
            raise PipeLockError(
                "failed to release lock on pipe",
                operation="flock",
                target=self._fd,
                errno=error_code(exc),
            ) from exc
        finally:
            self._held = False
        logger.debug("Released lock on fd %d", self._fd)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "AdvisoryLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.release()
            return
        # The error raised inside the block is the one that propagates.
        try:
            self.release()
        except PipeLockError as release_exc:
            logger.warning(
                "Lock release on fd %d failed while handling %s: %s",
                self._fd,
                exc_type.__name__,
                release_exc,
            )

    def __repr__(self) -> str:
        return f"AdvisoryLock(fd={self._fd}, held={self._held})"
