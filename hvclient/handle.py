"""
Ownership of native libvirt object pointers.

A Resource owns exactly one libvirt object reference. The reference is
released only by an explicit free() (or leaving a ``with`` block); there is
no finaliser, so a resource that is never freed leaks its native reference
until the process exits.
"""

from __future__ import annotations

import logging
from ctypes import byref, c_int, create_string_buffer
from typing import TYPE_CHECKING, Any, TypeVar

from . import _calls, _ffi
from .context import CallContext, context_of
from .errors import ArgumentError, FreedHandleError

if TYPE_CHECKING:
    from .connect import Connection

logger = logging.getLogger(__name__)

R = TypeVar("R", bound="Resource")


class Resource:
    """Base class for wrappers around a libvirt object pointer.

    Subclasses set ``_free_func`` to the native destructor.
    """

    _free_func: str = ""

    def __init__(self, ptr: int, connection: "Connection | None") -> None:
        self._ptr: int | None = ptr
        self._connection = connection

    @classmethod
    def wrap(cls: type[R], ptr: int, connection: "Connection | None") -> R:
        """Take ownership of ``ptr``."""
        return cls(ptr, connection)

    @classmethod
    def free_raw(cls, ptr: int) -> int:
        """Release a reference that was never wrapped."""
        return _ffi.function(cls._free_func)(ptr)

    def __enter__(self: R) -> R:
        return self

    def __exit__(self, *args: Any) -> None:
        self.free()

    def __repr__(self) -> str:
        state = "freed" if self._ptr is None else hex(self._ptr)
        return f"<{type(self).__name__} {state}>"

    @property
    def ptr(self) -> int:
        """The native pointer; raises FreedHandleError once freed."""
        if self._ptr is None:
            raise FreedHandleError(f"{type(self).__name__} has been freed")
        return self._ptr

    @property
    def raw_ptr(self) -> int | None:
        """The native pointer, or None once freed. Never raises."""
        return self._ptr

    @property
    def freed(self) -> bool:
        return self._ptr is None

    @property
    def connection(self) -> "Connection | None":
        """The connection this object was obtained from.

        Only used to find the right error record; it does not keep the
        connection open.
        """
        return self._connection

    @property
    def context(self) -> CallContext:
        return context_of(self.connection)

    def free(self) -> None:
        """Release the native reference. Freeing twice is a no-op."""
        if self._ptr is None:
            return
        _calls.call_void(self._free_func, self.connection, self._ptr)
        logger.debug("freed %s %#x", type(self).__name__, self._ptr)
        self._ptr = None


class LibvirtObject(Resource):
    """Accessors shared by networks, domains and storage pools.

    Native function names are derived from ``_prefix``, e.g. ``virNetwork``
    gives ``virNetworkGetName``.
    """

    _prefix: str = ""

    def _func(self, suffix: str) -> str:
        return self._prefix + suffix

    def undefine(self) -> None:
        """Remove the persistent configuration."""
        _calls.call_void(self._func("Undefine"), self.connection, self.ptr)

    def destroy(self) -> None:
        """Stop the object immediately."""
        _calls.call_void(self._func("Destroy"), self.connection, self.ptr)

    @property
    def name(self) -> str:
        return _calls.call_string(self._func("GetName"), self.connection, False, self.ptr)

    @property
    def uuid(self) -> str:
        buf = create_string_buffer(_ffi.VIR_UUID_STRING_BUFLEN)
        _calls.call_int(self._func("GetUUIDString"), self.connection, self.ptr, buf)
        return buf.value.decode("ascii")

    def xml_desc(self, flags: int = 0) -> str:
        """Get the XML description."""
        return _calls.call_string(self._func("GetXMLDesc"), self.connection, True, self.ptr, flags)

    @property
    def autostart(self) -> bool:
        """Whether the object starts automatically with libvirtd."""
        value = c_int()
        _calls.call_int(self._func("GetAutostart"), self.connection, self.ptr, byref(value))
        return bool(value.value)

    @autostart.setter
    def autostart(self, autostart: bool) -> None:
        if not isinstance(autostart, bool):
            raise ArgumentError(f"wrong argument type {type(autostart).__name__} (expected bool)")
        _calls.call_void(self._func("SetAutostart"), self.connection, self.ptr, 1 if autostart else 0)

    @property
    def is_active(self) -> bool:
        return _calls.call_truefalse(self._func("IsActive"), self.connection, self.ptr)

    @property
    def is_persistent(self) -> bool:
        return _calls.call_truefalse(self._func("IsPersistent"), self.connection, self.ptr)
