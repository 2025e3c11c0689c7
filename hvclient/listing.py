"""
Enumeration of libvirt child objects.

Enumeration hands the caller an array of references it now owns. Every
element must end up either wrapped in a Resource or released, never both
and never neither, including when wrapping fails partway through.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from ctypes import POINTER, byref, c_void_p
from typing import TYPE_CHECKING, Any

from . import _calls, _ffi
from .errors import NativeCallError

if TYPE_CHECKING:
    from .connect import Connection
    from .handle import Resource

logger = logging.getLogger(__name__)

WrapFunc = Callable[[int, "Connection | None"], "Resource"]
FreeFunc = Callable[[int], Any]


def _release(handle: "Resource") -> None:
    try:
        handle.free()
    except NativeCallError as e:
        logger.warning("could not release %r while unwinding a failed listing: %s", handle, e)


def wrap_all(
    raw: Any, count: int, connection: "Connection | None", wrap: WrapFunc, free_func: FreeFunc
) -> list["Resource"]:
    """Wrap ``count`` raw references from ``raw`` in order.

    If anything fails, the element being wrapped and every element after it
    are released with ``free_func``, and the handles wrapped so far are
    freed, before the exception propagates. ``raw`` itself is not released.
    """
    index = 0
    result: list[Any] | None = None
    try:
        result = [None] * count
        while index < count:
            result[index] = wrap(raw[index], connection)
            index += 1
        return result
    except BaseException:
        for i in range(index, count):
            free_func(raw[i])
        if result is not None:
            for handle in result[:index]:
                _release(handle)
        raise


def list_all(
    parent: "Resource", list_func: str, wrap: WrapFunc, free_func: FreeFunc, flags: int = 0
) -> list["Resource"]:
    """Enumerate children of ``parent`` with a virConnectListAll* style call."""
    connection = parent.connection
    raw = POINTER(c_void_p)()
    count = _calls.call_int(list_func, connection, parent.ptr, byref(raw), flags)
    try:
        return wrap_all(raw, count, connection, wrap, free_func)
    finally:
        _ffi.free_native(raw)


def generate_list(count: int, raw: Any) -> list[str]:
    """Copy ``count`` native strings from ``raw`` and free each of them.

    On failure the remaining strings, including the one being copied, are
    freed before the exception propagates. ``raw`` itself is not released.
    """
    index = 0
    try:
        result: list[Any] = [None] * count
        while index < count:
            result[index] = _ffi.string_at(raw[index])
            _ffi.free_native(raw[index])
            index += 1
        return result
    except BaseException:
        for i in range(index, count):
            _ffi.free_native(raw[i])
        raise


def list_names(parent: "Resource", count_func: str, list_func: str) -> list[str]:
    """Enumerate child names with a NumOf*/List* function pair."""
    connection = parent.connection
    with parent.context.lock:
        num = _calls.call_int(count_func, connection, parent.ptr)
        if num == 0:
            return []
        names = (c_void_p * num)()
        r = _calls.call_int(list_func, connection, parent.ptr, names, num)
    return generate_list(r, names)
