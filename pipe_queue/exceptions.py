"""
Custom exceptions for the pipe_queue library.

All exceptions inherit from PipeError so callers can catch
everything with a single except clause if needed.

Every PipeError carries the context needed to diagnose it without
reading the source: the operation that failed, the path or descriptor
it targeted and, for OS-level failures, the errno and its text.
"""


class PipeError(Exception):
    """Base exception for all pipe_queue errors.

    Args:
        message:   Human-readable description.
        operation: Short name of the failing operation
                   (``"mkfifo"``, ``"read"``, ``"flock"``, ...).
        target:    Path or file descriptor the operation acted on.
        errno:     OS error code, if the failure came from the OS.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        target=None,
        errno: int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.target = target
        self.errno = errno

    @property
    def strerror(self) -> str | None:
        """OS text for :attr:`errno`, or ``None``."""
        if self.errno is None:
            return None
        from .utils import error_text
        return error_text(self.errno)

    def __str__(self) -> str:
        context = []
        if self.operation is not None:
            context.append(f"op={self.operation}")
        if self.target is not None:
            context.append(f"target={self.target}")
        if self.errno is not None:
            context.append(f"errno={self.errno} ({self.strerror})")
        if not context:
            return self.message
        return f"{self.message} [{' '.join(context)}]"


class PipeNotFoundError(PipeError):
    """Raised when a reader is opened on a path that does not exist.

    Example::

        try:
            reader = open_reader("/tmp/jobs.fifo")
        except PipeNotFoundError:
            print("Start the producer first")
    """


class PipeIOError(PipeError):
    """Raised for any OS-level failure while creating, opening,
    reading from or writing to a pipe."""


class PipeLockError(PipeIOError):
    """Raised when the advisory lock on a reader's descriptor cannot be
    acquired or released."""


class PipeProtocolError(PipeError):
    """Raised when a frame cannot be completed: the peer closed its end
    mid-message, or a length prefix names more bytes than will ever
    arrive.

    Example::

        try:
            msg = reader.receive()
        except PipeProtocolError:
            print("Producer went away")
    """


class PipeSerializationError(PipeError):
    """Raised when serialization or deserialization of a message fails.

    Example::

        try:
            queue.send_obj(lambda x: x)     # lambdas can't be pickled
        except PipeSerializationError as e:
            print(f"Cannot serialize: {e}")
    """
