"""
Domains (guest virtual machines).
"""

from __future__ import annotations

from ctypes import byref, c_int
from typing import Any

from . import _calls, _ffi
from .errors import RetrieveError
from .handle import LibvirtObject
from .params import (
    QueryCountSource,
    SchedulerSource,
    get_typed_parameters,
    set_typed_parameters,
    split_values_and_flags,
)

_MEMORY_PARAMETERS = QueryCountSource("virDomainGetMemoryParameters", "virDomainSetMemoryParameters")
_BLKIO_PARAMETERS = QueryCountSource("virDomainGetBlkioParameters", "virDomainSetBlkioParameters")
_SCHEDULER_PARAMETERS = SchedulerSource()

_BAD_DOMAIN_ID = 0xFFFFFFFF


class Domain(LibvirtObject):
    """A libvirt domain.

    Typed parameter sets are exposed both as methods taking explicit flags
    and as properties. Property setters accept either a dict or a
    ``(dict, flags)`` tuple, and only the keys given are changed:

        dom.memory_parameters = {"hard_limit": 1048576}
        dom.scheduler_parameters = ({"cpu_shares": 512}, AffectFlags.LIVE)
    """

    _prefix = "virDomain"
    _free_func = "virDomainFree"

    # ======================================================================
    # Lifecycle
    # ======================================================================

    def create(self) -> None:
        """Start a defined (inactive) domain."""
        _calls.call_void("virDomainCreate", self.connection, self.ptr)

    def shutdown(self) -> None:
        """Ask the guest to shut down."""
        _calls.call_void("virDomainShutdown", self.connection, self.ptr)

    def reboot(self, flags: int = 0) -> None:
        _calls.call_void("virDomainReboot", self.connection, self.ptr, flags)

    def suspend(self) -> None:
        _calls.call_void("virDomainSuspend", self.connection, self.ptr)

    def resume(self) -> None:
        _calls.call_void("virDomainResume", self.connection, self.ptr)

    # ======================================================================
    # Accessors
    # ======================================================================

    @property
    def id(self) -> int:
        """Hypervisor ID of a running domain."""
        conn = self.connection
        with self.context.lock:
            r = _ffi.function("virDomainGetID")(self.ptr)
            if r == _BAD_DOMAIN_ID:
                raise _calls.build_error(RetrieveError, "virDomainGetID", conn)
        return r

    @property
    def os_type(self) -> str:
        return _calls.call_string("virDomainGetOSType", self.connection, True, self.ptr)

    @property
    def max_memory(self) -> int:
        """Maximum memory in KiB."""
        conn = self.connection
        with self.context.lock:
            r = _ffi.function("virDomainGetMaxMemory")(self.ptr)
            if r == 0:
                raise _calls.build_error(RetrieveError, "virDomainGetMaxMemory", conn)
        return r

    def set_max_memory(self, memory: int) -> None:
        _calls.call_void("virDomainSetMaxMemory", self.connection, self.ptr, memory)

    def set_memory(self, memory: int) -> None:
        _calls.call_void("virDomainSetMemory", self.connection, self.ptr, memory)

    @property
    def scheduler_type(self) -> tuple[str, int]:
        """Scheduler name and the number of scheduler parameters."""
        nparams = c_int(0)
        name = _calls.call_string(
            "virDomainGetSchedulerType", self.connection, True, self.ptr, byref(nparams), error=RetrieveError
        )
        return name, nparams.value

    # ======================================================================
    # Typed parameters
    # ======================================================================

    def get_memory_parameters(self, flags: int = 0) -> dict[str, Any]:
        return get_typed_parameters(self, _MEMORY_PARAMETERS, flags)

    def set_memory_parameters(self, values: dict[str, Any], flags: int = 0) -> None:
        set_typed_parameters(self, _MEMORY_PARAMETERS, values, flags)

    @property
    def memory_parameters(self) -> dict[str, Any]:
        return self.get_memory_parameters()

    @memory_parameters.setter
    def memory_parameters(self, arg: Any) -> None:
        self.set_memory_parameters(*split_values_and_flags(arg))

    def get_blkio_parameters(self, flags: int = 0) -> dict[str, Any]:
        return get_typed_parameters(self, _BLKIO_PARAMETERS, flags)

    def set_blkio_parameters(self, values: dict[str, Any], flags: int = 0) -> None:
        set_typed_parameters(self, _BLKIO_PARAMETERS, values, flags)

    @property
    def blkio_parameters(self) -> dict[str, Any]:
        return self.get_blkio_parameters()

    @blkio_parameters.setter
    def blkio_parameters(self, arg: Any) -> None:
        self.set_blkio_parameters(*split_values_and_flags(arg))

    def get_scheduler_parameters(self, flags: int = 0) -> dict[str, Any]:
        return get_typed_parameters(self, _SCHEDULER_PARAMETERS, flags)

    def set_scheduler_parameters(self, values: dict[str, Any], flags: int = 0) -> None:
        set_typed_parameters(self, _SCHEDULER_PARAMETERS, values, flags)

    @property
    def scheduler_parameters(self) -> dict[str, Any]:
        return self.get_scheduler_parameters()

    @scheduler_parameters.setter
    def scheduler_parameters(self, arg: Any) -> None:
        self.set_scheduler_parameters(*split_values_and_flags(arg))
