"""
Connections to a hypervisor, and library-level entry points.
"""

from __future__ import annotations

from ctypes import byref, c_ulong
from typing import Any

from . import _calls, _ffi
from .context import CallContext
from .domain import Domain
from .errors import DefinitionError, NativeCallError, NoSupportError, RetrieveError
from .handle import Resource
from .listing import list_all, list_names
from .network import Network
from .params import QueryCountSource, get_typed_parameters, set_typed_parameters, split_values_and_flags
from .storage import StoragePool
from .types import NodeInfo

_NODE_MEMORY_PARAMETERS = QueryCountSource("virNodeGetMemoryParameters", "virNodeSetMemoryParameters")


def _encode(value: str | None) -> bytes | None:
    return value.encode("utf-8") if value is not None else None


def initialize() -> None:
    """Initialize libvirt. Only needed by programs that use threads early."""
    _calls.call_void("virInitialize", None)


def version(hv_type: str | None = None) -> tuple[int, int]:
    """Get the library version and, if ``hv_type`` is given, that driver's version.

    Versions are encoded as ``major * 1000000 + minor * 1000 + release``.
    """
    lib_ver = c_ulong()
    type_ver = c_ulong()
    _calls.call_void(
        "virGetVersion", None, byref(lib_ver), _encode(hv_type), byref(type_ver), error=RetrieveError
    )
    return lib_ver.value, type_ver.value


def open(uri: str | None = None) -> "Connection":
    """Open a read-write connection.

    With no URI libvirt picks one (honouring LIBVIRT_DEFAULT_URI).
    """
    return Connection(_calls.call_handle("virConnectOpen", None, _encode(uri), error=NativeCallError))


def open_read_only(uri: str | None = None) -> "Connection":
    """Open a read-only connection."""
    return Connection(
        _calls.call_handle("virConnectOpenReadOnly", None, _encode(uri), error=NativeCallError)
    )


class Connection(Resource):
    """A connection to a hypervisor.

    All objects obtained through a connection report errors through it.
    Calls sharing one connection are serialised, so a Connection may be
    shared between threads; most libvirt drivers would not tolerate
    concurrent calls on one connection otherwise.

    Example:
        with hvclient.open("qemu:///system") as conn:
            for dom in conn.list_all_domains():
                with dom:
                    print(dom.name, dom.is_active)
    """

    _free_func = "virConnectClose"

    def __init__(self, ptr: int) -> None:
        super().__init__(ptr, None)
        self._context = CallContext(self)

    @property
    def connection(self) -> "Connection":
        return self

    @property
    def context(self) -> CallContext:
        return self._context

    def close(self) -> None:
        """Close the connection. Closing twice is a no-op."""
        self.free()

    @property
    def closed(self) -> bool:
        return self.freed

    # ======================================================================
    # Host information
    # ======================================================================

    @property
    def hostname(self) -> str:
        return _calls.call_string("virConnectGetHostname", self, True, self.ptr)

    @property
    def uri(self) -> str:
        return _calls.call_string("virConnectGetURI", self, True, self.ptr)

    @property
    def type(self) -> str:
        """Name of the hypervisor driver (e.g. "QEMU")."""
        return _calls.call_string("virConnectGetType", self, False, self.ptr)

    @property
    def capabilities(self) -> str:
        """Capabilities XML of the hypervisor and host."""
        return _calls.call_string("virConnectGetCapabilities", self, True, self.ptr)

    @property
    def version(self) -> int:
        """Hypervisor version."""
        ver = c_ulong()
        _calls.call_int("virConnectGetVersion", self, self.ptr, byref(ver))
        return ver.value

    @property
    def lib_version(self) -> int:
        """Version of libvirt on the other end of the connection."""
        ver = c_ulong()
        _calls.call_int("virConnectGetLibVersion", self, self.ptr, byref(ver))
        return ver.value

    @property
    def is_alive(self) -> bool:
        return _calls.call_truefalse("virConnectIsAlive", self, self.ptr)

    @property
    def is_encrypted(self) -> bool:
        return _calls.call_truefalse("virConnectIsEncrypted", self, self.ptr)

    @property
    def is_secure(self) -> bool:
        return _calls.call_truefalse("virConnectIsSecure", self, self.ptr)

    def max_vcpus(self, hv_type: str | None = None) -> int:
        """Maximum virtual CPUs per guest for the given hypervisor type."""
        return _calls.call_int("virConnectGetMaxVcpus", self, self.ptr, _encode(hv_type))

    def node_info(self) -> NodeInfo:
        info = _ffi.NodeInfoStruct()
        _calls.call_int("virNodeGetInfo", self, self.ptr, byref(info))
        return NodeInfo(
            model=info.model.decode("utf-8"),
            memory=info.memory,
            cpus=info.cpus,
            mhz=info.mhz,
            nodes=info.nodes,
            sockets=info.sockets,
            cores=info.cores,
            threads=info.threads,
        )

    @property
    def max_cpus(self) -> int:
        """Number of host CPUs, including offline ones."""
        ptr = self.ptr
        with self._context.lock:
            try:
                maxcpu = _ffi.function("virNodeGetCPUMap")(ptr, None, None, 0)
            except NoSupportError:
                maxcpu = -1
            if maxcpu < 0:
                # fall back to the topology reported by node info
                maxcpu = self.node_info().max_cpus
        return maxcpu

    def get_node_memory_parameters(self, flags: int = 0) -> dict[str, Any]:
        return get_typed_parameters(self, _NODE_MEMORY_PARAMETERS, flags)

    def set_node_memory_parameters(self, values: dict[str, Any], flags: int = 0) -> None:
        set_typed_parameters(self, _NODE_MEMORY_PARAMETERS, values, flags)

    @property
    def node_memory_parameters(self) -> dict[str, Any]:
        return self.get_node_memory_parameters()

    @node_memory_parameters.setter
    def node_memory_parameters(self, arg: Any) -> None:
        self.set_node_memory_parameters(*split_values_and_flags(arg))

    # ======================================================================
    # Networks
    # ======================================================================

    @property
    def num_of_networks(self) -> int:
        return _calls.call_int("virConnectNumOfNetworks", self, self.ptr)

    def list_networks(self) -> list[str]:
        """Names of the active networks."""
        return list_names(self, "virConnectNumOfNetworks", "virConnectListNetworks")

    @property
    def num_of_defined_networks(self) -> int:
        return _calls.call_int("virConnectNumOfDefinedNetworks", self, self.ptr)

    def list_defined_networks(self) -> list[str]:
        """Names of the inactive networks."""
        return list_names(self, "virConnectNumOfDefinedNetworks", "virConnectListDefinedNetworks")

    def list_all_networks(self, flags: int = 0) -> list[Network]:
        """All networks matching ``flags`` (see ListNetworksFlags)."""
        return list_all(self, "virConnectListAllNetworks", Network.wrap, Network.free_raw, flags)

    def lookup_network_by_name(self, name: str) -> Network:
        ptr = _calls.call_handle("virNetworkLookupByName", self, self.ptr, name.encode("utf-8"))
        return Network.wrap(ptr, self)

    def lookup_network_by_uuid(self, uuid: str) -> Network:
        ptr = _calls.call_handle("virNetworkLookupByUUIDString", self, self.ptr, uuid.encode("ascii"))
        return Network.wrap(ptr, self)

    def define_network_xml(self, xml: str) -> Network:
        """Define a persistent (inactive) network."""
        ptr = _calls.call_handle(
            "virNetworkDefineXML", self, self.ptr, xml.encode("utf-8"), error=DefinitionError
        )
        return Network.wrap(ptr, self)

    def create_network_xml(self, xml: str) -> Network:
        """Create and start a transient network."""
        ptr = _calls.call_handle(
            "virNetworkCreateXML", self, self.ptr, xml.encode("utf-8"), error=DefinitionError
        )
        return Network.wrap(ptr, self)

    # ======================================================================
    # Domains
    # ======================================================================

    @property
    def num_of_domains(self) -> int:
        return _calls.call_int("virConnectNumOfDomains", self, self.ptr)

    @property
    def num_of_defined_domains(self) -> int:
        return _calls.call_int("virConnectNumOfDefinedDomains", self, self.ptr)

    def list_defined_domains(self) -> list[str]:
        """Names of the inactive domains."""
        return list_names(self, "virConnectNumOfDefinedDomains", "virConnectListDefinedDomains")

    def list_all_domains(self, flags: int = 0) -> list[Domain]:
        """All domains matching ``flags`` (see ListDomainsFlags)."""
        return list_all(self, "virConnectListAllDomains", Domain.wrap, Domain.free_raw, flags)

    def lookup_domain_by_name(self, name: str) -> Domain:
        ptr = _calls.call_handle("virDomainLookupByName", self, self.ptr, name.encode("utf-8"))
        return Domain.wrap(ptr, self)

    def lookup_domain_by_id(self, domain_id: int) -> Domain:
        ptr = _calls.call_handle("virDomainLookupByID", self, self.ptr, domain_id)
        return Domain.wrap(ptr, self)

    def lookup_domain_by_uuid(self, uuid: str) -> Domain:
        ptr = _calls.call_handle("virDomainLookupByUUIDString", self, self.ptr, uuid.encode("ascii"))
        return Domain.wrap(ptr, self)

    def define_domain_xml(self, xml: str) -> Domain:
        ptr = _calls.call_handle(
            "virDomainDefineXML", self, self.ptr, xml.encode("utf-8"), error=DefinitionError
        )
        return Domain.wrap(ptr, self)

    def create_domain_xml(self, xml: str, flags: int = 0) -> Domain:
        """Create and start a transient domain."""
        ptr = _calls.call_handle(
            "virDomainCreateXML", self, self.ptr, xml.encode("utf-8"), flags, error=DefinitionError
        )
        return Domain.wrap(ptr, self)

    # ======================================================================
    # Storage pools
    # ======================================================================

    @property
    def num_of_storage_pools(self) -> int:
        return _calls.call_int("virConnectNumOfStoragePools", self, self.ptr)

    def list_storage_pools(self) -> list[str]:
        """Names of the active storage pools."""
        return list_names(self, "virConnectNumOfStoragePools", "virConnectListStoragePools")

    def list_all_storage_pools(self, flags: int = 0) -> list[StoragePool]:
        return list_all(
            self, "virConnectListAllStoragePools", StoragePool.wrap, StoragePool.free_raw, flags
        )

    def lookup_storage_pool_by_name(self, name: str) -> StoragePool:
        ptr = _calls.call_handle("virStoragePoolLookupByName", self, self.ptr, name.encode("utf-8"))
        return StoragePool.wrap(ptr, self)

    def lookup_storage_pool_by_uuid(self, uuid: str) -> StoragePool:
        ptr = _calls.call_handle(
            "virStoragePoolLookupByUUIDString", self, self.ptr, uuid.encode("ascii")
        )
        return StoragePool.wrap(ptr, self)

    def define_storage_pool_xml(self, xml: str, flags: int = 0) -> StoragePool:
        ptr = _calls.call_handle(
            "virStoragePoolDefineXML", self, self.ptr, xml.encode("utf-8"), flags, error=DefinitionError
        )
        return StoragePool.wrap(ptr, self)

    def create_storage_pool_xml(self, xml: str, flags: int = 0) -> StoragePool:
        ptr = _calls.call_handle(
            "virStoragePoolCreateXML", self, self.ptr, xml.encode("utf-8"), flags, error=DefinitionError
        )
        return StoragePool.wrap(ptr, self)
