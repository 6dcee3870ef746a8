"""
Producer and consumer handles for a FIFO-backed message queue.

One PipeQueue creates the named pipe and writes framed messages into
it; any number of PipeReaders open the same path and compete for those
messages.  Each message is delivered whole to exactly *one* reader.

An :class:`~pipe_queue.sync.AdvisoryLock` on the reader's descriptor
serialises the length/payload read pair so two readers can never split
a frame between them.

Usage::

    # Process A — producer
    from pipe_queue import create

    with create("/tmp/jobs.fifo") as queue:
        for item in work_items:
            queue.send(item)

    # Processes B, C, … — consumers
    from pipe_queue import open_reader

    with open_reader("/tmp/jobs.fifo") as reader:
        while True:
            job = reader.receive()
            process(job)

The FIFO stays on disk after every handle is closed; remove it with
:func:`pipe_queue.utils.remove_pipe` when it is no longer needed.
"""

import os
import weakref
import logging

from .core import (
    DEFAULT_MODE,
    WRITER_FLAGS,
    READER_FLAGS,
    make_fifo,
    open_fifo,
    close_fd,
)
from .framing import write_frame, read_frame
from .serialize import serialize, deserialize, check_method
from .sync import AdvisoryLock

logger = logging.getLogger("pipequeue.handles")


class _Handle:
    """Descriptor ownership shared by both handle types.

    The descriptor is closed by :meth:`close`, by leaving a ``with``
    block, or when the handle is garbage collected, whichever comes
    first.
    """

    def __init__(self, path, fd: int, poll_interval: float, serialization: str):
        self._path = os.fspath(path)
        self._fd = fd
        self._poll_interval = poll_interval
        self._serialization = serialization
        self._messages = 0
        self._bytes = 0
        self._finalizer = weakref.finalize(self, close_fd, fd)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def path(self) -> str:
        return self._path

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def fileno(self) -> int:
        """Return the underlying descriptor."""
        self._check_open()
        return self._fd

    def stats(self) -> dict:
        """Return counters for the messages this handle has moved.

        Keys: ``path``, ``fd``, ``messages``, ``bytes``, ``closed``.
        """
        return {
            "path": self._path,
            "fd": self._fd,
            "messages": self._messages,
            "bytes": self._bytes,
            "closed": self.closed,
        }

    def close(self) -> None:
        """Close the descriptor.  Safe to call more than once."""
        if self._finalizer.detach() is not None:
            close_fd(self._fd)
            logger.info("%s('%s') closed", type(self).__name__, self._path)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self):
        return self

    def __exit__(self, *_) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError(
                f"I/O operation on closed {type(self).__name__} "
                f"({self._path!r})"
            )

    def _record(self, size: int) -> None:
        self._messages += 1
        self._bytes += size

    def __repr__(self) -> str:
        state = "closed" if self.closed else f"fd={self._fd}"
        return f"{type(self).__name__}(path={self._path!r}, {state})"


class PipeQueue(_Handle):
    """Producer side: creates the FIFO and writes framed messages.

    Only one PipeQueue should exist per path, and a single PipeQueue is
    not meant to be shared by concurrently sending threads.

    Args:
        path:          Filesystem path for the new FIFO.  Must not exist.
        mode:          Permission bits for the FIFO (default ``0o700``).
        poll_interval: Sleep between retries while the pipe buffer is
                       full.  ``0.0`` just yields to other threads.
        serialization: ``"pickle"`` (default) or ``"msgpack"``; used by
                       :meth:`send_obj` only.

    Raises:
        PipeIOError: If the FIFO cannot be created or opened.

    Example::

        queue = PipeQueue("/tmp/jobs.fifo")
        queue.send(b"calibrate axis 3")
        queue.close()
    """

    def __init__(
        self,
        path,
        mode: int = DEFAULT_MODE,
        poll_interval: float = 0.0,
        serialization: str = "pickle",
    ):
        check_method(serialization)
        make_fifo(path, mode)
        fd = open_fifo(path, WRITER_FLAGS)
        super().__init__(path, fd, poll_interval, serialization)
        logger.info("PipeQueue('%s') ready on fd %d", self._path, fd)

    def send(self, payload) -> None:
        """Enqueue *payload* as one frame.

        Blocks (by retrying) while the pipe buffer is full and returns
        once the whole frame has been written.

        Args:
            payload: ``bytes``, ``bytearray`` or ``memoryview``.

        Raises:
            ValueError: If the handle is closed or the payload is longer
                than ``2**32 - 1`` bytes.
            PipeIOError: If the write fails.
            PipeProtocolError: If the pipe stops accepting bytes
                mid-frame.

        Example::

            queue.send(b"Hello, reader!")
        """
        self._check_open()
        size = write_frame(self._fd, payload, poll_interval=self._poll_interval)
        self._record(size)

    def send_obj(self, obj) -> None:
        """Serialize *obj* with the configured method and :meth:`send` it.

        Example::

            queue.send_obj({"task": "calibrate", "axis": 3})
        """
        self.send(serialize(obj, method=self._serialization))


class PipeReader(_Handle):
    """Consumer side: opens an existing FIFO and receives whole frames.

    Any number of PipeReaders, in any mix of threads and processes, may
    share a path.  Each :meth:`receive` takes the reader's advisory lock
    for the duration of one frame.

    Args:
        path:          Path of a FIFO created by :class:`PipeQueue`.
        poll_interval: Sleep between retries while waiting for data or
                       for the lock.  ``0.0`` just yields.
        serialization: Must match the producer's; used by
                       :meth:`receive_obj` only.

    Raises:
        PipeNotFoundError: If *path* does not exist.
        PipeIOError: If *path* is not a FIFO or cannot be opened.

    Example::

        with PipeReader("/tmp/jobs.fifo") as reader:
            job = reader.receive()
    """

    def __init__(
        self,
        path,
        poll_interval: float = 0.0,
        serialization: str = "pickle",
    ):
        check_method(serialization)
        fd = open_fifo(path, READER_FLAGS)
        super().__init__(path, fd, poll_interval, serialization)
        logger.info("PipeReader('%s') connected on fd %d", self._path, fd)

    def receive(self) -> bytes:
        """Dequeue the next message.

        Waits (by retrying) until a frame arrives.  The advisory lock is
        released whether the read succeeds or fails, and a failed read
        never returns a partial frame.

        Returns:
            The payload of exactly one frame.

        Raises:
            ValueError: If the handle is closed.
            PipeLockError: If the lock cannot be taken.
            PipeProtocolError: If every writer went away before the
                frame was complete.
            PipeIOError: If the read fails.

        Example::

            payload = reader.receive()
        """
        self._check_open()
        with AdvisoryLock(self._fd, poll_interval=self._poll_interval):
            payload = read_frame(self._fd, poll_interval=self._poll_interval)
        self._record(len(payload))
        return payload

    def receive_obj(self):
        """Like :meth:`receive` but deserializes the payload."""
        return deserialize(self.receive(), method=self._serialization)


# ── Module-level API ──────────────────────────────────────────────────────────

def create(
    path,
    mode: int = DEFAULT_MODE,
    *,
    poll_interval: float = 0.0,
    serialization: str = "pickle",
) -> PipeQueue:
    """Create a FIFO at *path* and return the producer handle for it."""
    return PipeQueue(
        path, mode=mode, poll_interval=poll_interval, serialization=serialization
    )


def open_reader(
    path,
    *,
    poll_interval: float = 0.0,
    serialization: str = "pickle",
) -> PipeReader:
    """Open a consumer handle on the existing FIFO at *path*."""
    return PipeReader(
        path, poll_interval=poll_interval, serialization=serialization
    )
