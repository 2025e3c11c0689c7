"""
Python bindings for libvirt.

This package provides a Pythonic interface to libvirt's C API through
ctypes: connections, domains, virtual networks and storage pools, typed
parameter sets, and structured libvirt errors.

Example:
    import hvclient

    with hvclient.open("qemu:///system") as conn:
        print(conn.hostname, conn.type)

        # Enumerate networks; every handle must be freed
        for net in conn.list_all_networks():
            with net:
                print(net.name, net.is_active)

        # Typed parameters: only the keys given are changed
        with conn.lookup_domain_by_name("guest") as dom:
            print(dom.memory_parameters)
            dom.memory_parameters = {"hard_limit": 2097152}

Handles are released only explicitly (free()/close() or a ``with`` block);
there is no finaliser to fall back on.
"""

from .errors import (
    ArgumentError,
    DefinitionError,
    FreedHandleError,
    HVError,
    InvalidParameterKind,
    LibraryNotFoundError,
    NativeCallError,
    NoSupportError,
    RetrieveError,
    TypeMismatchError,
)
from .types import (
    AffectFlags,
    ErrorInfo,
    ErrorLevel,
    ListDomainsFlags,
    ListNetworksFlags,
    ListStoragePoolsFlags,
    NetworkSection,
    NetworkUpdateCommand,
    NetworkUpdateFlags,
    NodeInfo,
    TypedParameterKind,
)
from .context import CallContext, default_context
from .handle import LibvirtObject, Resource
from .network import Network
from .domain import Domain
from .storage import StoragePool
from .connect import Connection, initialize, open, open_read_only, version

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Library
    "initialize",
    "version",
    "open",
    "open_read_only",
    # Resources
    "Resource",
    "LibvirtObject",
    "Connection",
    "Domain",
    "Network",
    "StoragePool",
    "NodeInfo",
    # Error context
    "CallContext",
    "default_context",
    "ErrorInfo",
    "ErrorLevel",
    # Constants
    "AffectFlags",
    "ListDomainsFlags",
    "ListNetworksFlags",
    "ListStoragePoolsFlags",
    "NetworkSection",
    "NetworkUpdateCommand",
    "NetworkUpdateFlags",
    "TypedParameterKind",
    # Errors
    "HVError",
    "ArgumentError",
    "FreedHandleError",
    "InvalidParameterKind",
    "TypeMismatchError",
    "LibraryNotFoundError",
    "NativeCallError",
    "RetrieveError",
    "DefinitionError",
    "NoSupportError",
]
