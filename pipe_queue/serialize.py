"""
Serialization helpers for pipe_queue.

Frames carry opaque bytes.  ``PipeQueue.send_obj`` and
``PipeReader.receive_obj`` use this module to put Python objects in
those bytes.  Two backends are supported:

* ``pickle``   – built-in, handles any Python object (default).
* ``msgpack``  – compact and language-neutral; requires the
                 ``msgpack`` package (``pip install pipe-queue[msgpack]``).

Raw :class:`bytes`, :class:`bytearray` and :class:`memoryview` are
passed through unchanged on the way out.
"""

import pickle
import logging
from .exceptions import PipeSerializationError

logger = logging.getLogger("pipequeue.serialize")

SERIALIZATION_METHODS = ("pickle", "msgpack")

# msgpack is an optional extra; its absence only matters when a caller
# asks for it.
try:
    import msgpack as _msgpack
    _MSGPACK_AVAILABLE = True
except ImportError:
    _MSGPACK_AVAILABLE = False


def check_method(method: str) -> None:
    """Raise :class:`PipeSerializationError` unless *method* is usable."""
    if method not in SERIALIZATION_METHODS:
        raise PipeSerializationError(
            f"Unknown serialization method: {method!r}",
            operation="serialize",
        )
    if method == "msgpack" and not _MSGPACK_AVAILABLE:
        raise PipeSerializationError(
            "msgpack is not installed. Run: pip install msgpack",
            operation="serialize",
        )


def serialize(obj, method: str = "pickle") -> bytes:
    """Serialize *obj* to bytes using the chosen *method*.

    Args:
        obj:    Any Python object, or raw ``bytes``/``bytearray``.
        method: ``"pickle"`` (default) or ``"msgpack"``.

    Returns:
        Serialized payload as :class:`bytes`.

    Raises:
        PipeSerializationError: If serialization fails or msgpack is not
            installed when requested.

    Example::

        data = serialize({"job": 7, "args": [1.0, 2.0]})
    """
    if isinstance(obj, (bytes, bytearray, memoryview)):
        return bytes(obj)

    check_method(method)

    if method == "pickle":
        try:
            return pickle.dumps(obj, protocol=pickle.HIGHEST_PROTOCOL)
        except Exception as exc:
            raise PipeSerializationError(
                f"pickle serialization failed: {exc}",
                operation="serialize",
            ) from exc

    try:
        return _msgpack.packb(obj, use_bin_type=True)
    except Exception as exc:
        raise PipeSerializationError(
            f"msgpack serialization failed: {exc}",
            operation="serialize",
        ) from exc


def deserialize(data: bytes, method: str = "pickle"):
    """Deserialize *data* back to a Python object.

    Args:
        data:   Payload returned by ``PipeReader.receive``.
        method: Must match the method used in :func:`serialize`.

    Returns:
        The original Python object.

    Raises:
        PipeSerializationError: If deserialization fails.
    """
    check_method(method)

    if method == "pickle":
        try:
            return pickle.loads(data)
        except Exception as exc:
            raise PipeSerializationError(
                f"pickle deserialization failed: {exc}",
                operation="deserialize",
            ) from exc

    try:
        return _msgpack.unpackb(data, raw=False)
    except Exception as exc:
        raise PipeSerializationError(
            f"msgpack deserialization failed: {exc}",
            operation="deserialize",
        ) from exc


def is_msgpack_available() -> bool:
    """Return ``True`` if the ``msgpack`` package is installed."""
    return _MSGPACK_AVAILABLE
