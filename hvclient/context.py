"""
Per-connection call context.

libvirt keeps a single "last error" record per connection (and one per
thread for calls made without a connection). A CallContext serialises the
native calls that share such a record, so the record can be read back
before another call overwrites it.
"""

from __future__ import annotations

from threading import RLock
from typing import TYPE_CHECKING, Any

from . import _ffi
from .types import ErrorInfo

if TYPE_CHECKING:
    from .connect import Connection


def _decode(value: bytes | None) -> str | None:
    return value.decode("utf-8", "replace") if value else None


def error_info_from_struct(err: Any) -> ErrorInfo:
    """Copy a virError structure into an ErrorInfo."""
    return ErrorInfo(
        code=err.code,
        component=err.domain,
        level=err.level,
        message=_decode(err.message),
        str1=_decode(err.str1),
        str2=_decode(err.str2),
        str3=_decode(err.str3),
        int1=err.int1,
        int2=err.int2,
    )


class CallContext:
    """Lock plus last-error snapshot for one libvirt error slot."""

    def __init__(self, owner: "Connection | None" = None) -> None:
        self.lock = RLock()
        self.last_error: ErrorInfo | None = None
        self._owner = owner

    def snapshot(self) -> ErrorInfo | None:
        """Read the current libvirt error record for this context.

        Must be called right after the failing native call, while the
        context lock is still held.
        """
        conn_ptr = self._owner.raw_ptr if self._owner is not None else None
        if conn_ptr:
            err = _ffi.function("virConnGetLastError")(conn_ptr)
        else:
            err = _ffi.function("virGetLastError")()

        info = error_info_from_struct(err.contents) if err else None
        self.last_error = info
        return info


_process_context = CallContext()


def default_context() -> CallContext:
    """The process-wide context used by calls made without a connection."""
    return _process_context


def context_of(conn: "Connection | None") -> CallContext:
    return conn.context if conn is not None else _process_context
