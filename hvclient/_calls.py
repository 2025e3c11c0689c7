"""
Return-value conventions of the libvirt C API.

libvirt reports failure in one of a few ways: a negative int, a -1/0/1
tri-state, or a NULL pointer. Each helper here performs one native call,
and on failure raises a NativeCallError subclass carrying the function
name and the error record captured immediately after the call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import _ffi
from .context import context_of
from .errors import NativeCallError, RetrieveError

if TYPE_CHECKING:
    from .connect import Connection


def build_error(
    error_class: type[NativeCallError], method: str, conn: "Connection | None"
) -> NativeCallError:
    """Create an exception describing a failed call to ``method``.

    The error record comes from ``conn`` if given, else from the
    process-wide slot.
    """
    info = context_of(conn).snapshot()
    return error_class(method, info)


def call_void(
    func: str, conn: "Connection | None", *args: Any, error: type[NativeCallError] = NativeCallError
) -> None:
    """Call a function returning an int where < 0 means failure."""
    with context_of(conn).lock:
        r = _ffi.function(func)(*args)
        if r < 0:
            raise build_error(error, func, conn)


def call_int(
    func: str, conn: "Connection | None", *args: Any, error: type[NativeCallError] = RetrieveError
) -> int:
    """Call a function returning a non-negative int on success."""
    with context_of(conn).lock:
        r = _ffi.function(func)(*args)
        if r < 0:
            raise build_error(error, func, conn)
        return r


def call_truefalse(
    func: str, conn: "Connection | None", *args: Any, error: type[NativeCallError] = NativeCallError
) -> bool:
    """Call a function returning -1 (failure), 0 (false) or 1 (true)."""
    with context_of(conn).lock:
        r = _ffi.function(func)(*args)
        if r < 0:
            raise build_error(error, func, conn)
        return bool(r)


def call_string(
    func: str,
    conn: "Connection | None",
    dealloc: bool,
    *args: Any,
    error: type[NativeCallError] = NativeCallError,
) -> str:
    """Call a function returning a string, NULL on failure.

    If ``dealloc`` is true the caller owns the returned string, and it is
    freed once copied.
    """
    with context_of(conn).lock:
        ptr = _ffi.function(func)(*args)
        if not ptr:
            raise build_error(error, func, conn)
    if dealloc:
        return _ffi.get_string_and_free(ptr)
    return _ffi.string_at(ptr)


def call_handle(
    func: str, conn: "Connection | None", *args: Any, error: type[NativeCallError] = RetrieveError
) -> int:
    """Call a function returning an object pointer, NULL on failure."""
    with context_of(conn).lock:
        ptr = _ffi.function(func)(*args)
        if not ptr:
            raise build_error(error, func, conn)
        return ptr
