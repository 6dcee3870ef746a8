"""
pipe_queue — Named Pipe Message Queue
=====================================

A single-producer, multi-consumer message queue built on a POSIX named
pipe (FIFO).  Messages are length-prefixed frames; an advisory lock on
each consumer's descriptor guarantees that every message is delivered
whole to exactly one consumer, across threads and processes.

Quick start::

    from pipe_queue import create, open_reader, remove_pipe

    queue = create("/tmp/jobs.fifo")
    reader = open_reader("/tmp/jobs.fifo")

    queue.send(b"Hello, reader!")
    msg = reader.receive()        # b"Hello, reader!"

    # Python objects (pickle by default, msgpack optional)
    queue.send_obj({"task": 1})
    job = reader.receive_obj()    # {"task": 1}

    reader.close()
    queue.close()
    remove_pipe("/tmp/jobs.fifo")  # the FIFO is never removed for you
"""

__version__ = "1.0.0"

from .handles import PipeQueue, PipeReader, create, open_reader
from .exceptions import (
    PipeError,
    PipeNotFoundError,
    PipeIOError,
    PipeLockError,
    PipeProtocolError,
    PipeSerializationError,
)
from .framing import MAX_PAYLOAD_SIZE
from .utils import remove_pipe, list_pipes, is_fifo

__all__ = [
    # Handles
    "PipeQueue",
    "PipeReader",
    "create",
    "open_reader",
    # Exceptions
    "PipeError",
    "PipeNotFoundError",
    "PipeIOError",
    "PipeLockError",
    "PipeProtocolError",
    "PipeSerializationError",
    # Constants
    "MAX_PAYLOAD_SIZE",
    # Utilities
    "remove_pipe",
    "list_pipes",
    "is_fifo",
]
