"""
Low-level ctypes bindings to libvirt.

This module provides direct bindings to the C API. Users should prefer
the higher-level wrapper classes in the other modules.
"""

import ctypes
import ctypes.util
import logging
import os
import platform
from ctypes import (
    POINTER,
    Structure,
    Union,
    c_byte,
    c_char,
    c_char_p,
    c_double,
    c_int,
    c_longlong,
    c_ubyte,
    c_uint,
    c_ulong,
    c_ulonglong,
    c_void_p,
)
from typing import Any

from .errors import LibraryNotFoundError, NoSupportError

logger = logging.getLogger(__name__)

VIR_UUID_STRING_BUFLEN = 37
VIR_TYPED_PARAM_FIELD_LENGTH = 80

# ==========================================================================
# Library loading
# ==========================================================================


def _find_library() -> str:
    """Find the libvirt shared library."""
    # Check for explicit path via environment
    if "HVCLIENT_LIBVIRT_PATH" in os.environ:
        return os.environ["HVCLIENT_LIBVIRT_PATH"]

    system = platform.system()
    if system == "Darwin":
        lib_names = ["libvirt.dylib", "libvirt.0.dylib"]
    elif system == "Linux":
        lib_names = ["libvirt.so.0", "libvirt.so"]
    elif system == "Windows":
        lib_names = ["libvirt-0.dll"]
    else:
        raise LibraryNotFoundError(f"Unsupported platform: {system}")

    search_paths = [
        os.path.dirname(__file__),
        os.getcwd(),
        "/usr/local/lib",
        "/usr/lib",
        "/usr/lib64",
    ]

    if "LD_LIBRARY_PATH" in os.environ:
        search_paths.extend(os.environ["LD_LIBRARY_PATH"].split(os.pathsep))
    if "DYLD_LIBRARY_PATH" in os.environ:
        search_paths.extend(os.environ["DYLD_LIBRARY_PATH"].split(os.pathsep))

    for path in search_paths:
        for lib_name in lib_names:
            lib_path = os.path.join(path, lib_name)
            if os.path.exists(lib_path):
                return lib_path

    found = ctypes.util.find_library("virt")
    if found:
        return found

    raise LibraryNotFoundError(
        f"Could not find {lib_names[0]}. Set HVCLIENT_LIBVIRT_PATH "
        "to the path of the libvirt shared library."
    )


_lib: Any = None
_libc: Any = None


def _get_lib() -> Any:
    """Get the loaded library, loading it if necessary."""
    global _lib
    if _lib is None:
        lib_path = _find_library()
        logger.debug("loading libvirt from %s", lib_path)
        lib = ctypes.CDLL(lib_path)
        _setup_functions(lib)
        _lib = lib
    return _lib


def _get_libc() -> Any:
    """Get the C runtime used to release memory libvirt hands over."""
    global _libc
    if _libc is None:
        if platform.system() == "Windows":
            libc = ctypes.cdll.msvcrt
        else:
            libc = ctypes.CDLL(ctypes.util.find_library("c"))
        libc.free.argtypes = [c_void_p]
        libc.free.restype = None
        _libc = libc
    return _libc


def use_library(lib: Any, libc: Any = None) -> None:
    """Replace the native library (and optionally the C runtime).

    Any object exposing the libvirt entry points as callables is accepted;
    passing None restores lazy loading of the real library.
    """
    global _lib, _libc
    _lib = lib
    _libc = libc


# ==========================================================================
# Structures
# ==========================================================================


class VirErrorStruct(Structure):
    """virError."""

    _fields_ = [
        ("code", c_int),
        ("domain", c_int),
        ("message", c_char_p),
        ("level", c_int),
        ("conn", c_void_p),
        ("dom", c_void_p),
        ("str1", c_char_p),
        ("str2", c_char_p),
        ("str3", c_char_p),
        ("int1", c_int),
        ("int2", c_int),
        ("net", c_void_p),
    ]


class TypedParameterValue(Union):
    # "s" is kept as a raw pointer so ownership can be tracked per slot
    _fields_ = [
        ("i", c_int),
        ("ui", c_uint),
        ("l", c_longlong),
        ("ul", c_ulonglong),
        ("d", c_double),
        ("b", c_byte),
        ("s", c_void_p),
    ]


class TypedParameterStruct(Structure):
    """virTypedParameter."""

    _fields_ = [
        ("field", c_char * VIR_TYPED_PARAM_FIELD_LENGTH),
        ("type", c_int),
        ("value", TypedParameterValue),
    ]


class NodeInfoStruct(Structure):
    """virNodeInfo."""

    _fields_ = [
        ("model", c_char * 32),
        ("memory", c_ulong),
        ("cpus", c_uint),
        ("mhz", c_uint),
        ("nodes", c_uint),
        ("sockets", c_uint),
        ("cores", c_uint),
        ("threads", c_uint),
    ]


# ==========================================================================
# Function setup
# ==========================================================================

_TP = POINTER(TypedParameterStruct)

_SIGNATURES = [
    # Library
    ("virInitialize", c_int, []),
    ("virGetVersion", c_int, [POINTER(c_ulong), c_char_p, POINTER(c_ulong)]),
    ("virGetLastError", POINTER(VirErrorStruct), []),
    ("virConnGetLastError", POINTER(VirErrorStruct), [c_void_p]),
    ("virTypedParamsClear", None, [_TP, c_int]),
    # Connection
    ("virConnectOpen", c_void_p, [c_char_p]),
    ("virConnectOpenReadOnly", c_void_p, [c_char_p]),
    ("virConnectClose", c_int, [c_void_p]),
    ("virConnectGetHostname", c_void_p, [c_void_p]),
    ("virConnectGetURI", c_void_p, [c_void_p]),
    ("virConnectGetType", c_void_p, [c_void_p]),
    ("virConnectGetCapabilities", c_void_p, [c_void_p]),
    ("virConnectGetVersion", c_int, [c_void_p, POINTER(c_ulong)]),
    ("virConnectGetLibVersion", c_int, [c_void_p, POINTER(c_ulong)]),
    ("virConnectIsAlive", c_int, [c_void_p]),
    ("virConnectIsEncrypted", c_int, [c_void_p]),
    ("virConnectIsSecure", c_int, [c_void_p]),
    ("virConnectGetMaxVcpus", c_int, [c_void_p, c_char_p]),
    ("virNodeGetInfo", c_int, [c_void_p, POINTER(NodeInfoStruct)]),
    ("virNodeGetCPUMap", c_int, [c_void_p, POINTER(POINTER(c_ubyte)), POINTER(c_uint), c_uint]),
    ("virNodeGetMemoryParameters", c_int, [c_void_p, _TP, POINTER(c_int), c_uint]),
    ("virNodeSetMemoryParameters", c_int, [c_void_p, _TP, c_int, c_uint]),
    # Networks
    ("virConnectNumOfNetworks", c_int, [c_void_p]),
    ("virConnectListNetworks", c_int, [c_void_p, POINTER(c_void_p), c_int]),
    ("virConnectNumOfDefinedNetworks", c_int, [c_void_p]),
    ("virConnectListDefinedNetworks", c_int, [c_void_p, POINTER(c_void_p), c_int]),
    ("virConnectListAllNetworks", c_int, [c_void_p, POINTER(POINTER(c_void_p)), c_uint]),
    ("virNetworkLookupByName", c_void_p, [c_void_p, c_char_p]),
    ("virNetworkLookupByUUIDString", c_void_p, [c_void_p, c_char_p]),
    ("virNetworkDefineXML", c_void_p, [c_void_p, c_char_p]),
    ("virNetworkCreateXML", c_void_p, [c_void_p, c_char_p]),
    ("virNetworkUndefine", c_int, [c_void_p]),
    ("virNetworkCreate", c_int, [c_void_p]),
    ("virNetworkUpdate", c_int, [c_void_p, c_uint, c_uint, c_int, c_char_p, c_uint]),
    ("virNetworkDestroy", c_int, [c_void_p]),
    ("virNetworkGetName", c_void_p, [c_void_p]),
    ("virNetworkGetUUIDString", c_int, [c_void_p, c_char_p]),
    ("virNetworkGetXMLDesc", c_void_p, [c_void_p, c_uint]),
    ("virNetworkGetBridgeName", c_void_p, [c_void_p]),
    ("virNetworkGetAutostart", c_int, [c_void_p, POINTER(c_int)]),
    ("virNetworkSetAutostart", c_int, [c_void_p, c_int]),
    ("virNetworkIsActive", c_int, [c_void_p]),
    ("virNetworkIsPersistent", c_int, [c_void_p]),
    ("virNetworkFree", c_int, [c_void_p]),
    # Domains
    ("virConnectNumOfDomains", c_int, [c_void_p]),
    ("virConnectNumOfDefinedDomains", c_int, [c_void_p]),
    ("virConnectListDefinedDomains", c_int, [c_void_p, POINTER(c_void_p), c_int]),
    ("virConnectListAllDomains", c_int, [c_void_p, POINTER(POINTER(c_void_p)), c_uint]),
    ("virDomainLookupByName", c_void_p, [c_void_p, c_char_p]),
    ("virDomainLookupByID", c_void_p, [c_void_p, c_int]),
    ("virDomainLookupByUUIDString", c_void_p, [c_void_p, c_char_p]),
    ("virDomainDefineXML", c_void_p, [c_void_p, c_char_p]),
    ("virDomainCreateXML", c_void_p, [c_void_p, c_char_p, c_uint]),
    ("virDomainCreate", c_int, [c_void_p]),
    ("virDomainDestroy", c_int, [c_void_p]),
    ("virDomainUndefine", c_int, [c_void_p]),
    ("virDomainShutdown", c_int, [c_void_p]),
    ("virDomainReboot", c_int, [c_void_p, c_uint]),
    ("virDomainSuspend", c_int, [c_void_p]),
    ("virDomainResume", c_int, [c_void_p]),
    ("virDomainGetName", c_void_p, [c_void_p]),
    ("virDomainGetID", c_uint, [c_void_p]),
    ("virDomainGetUUIDString", c_int, [c_void_p, c_char_p]),
    ("virDomainGetXMLDesc", c_void_p, [c_void_p, c_uint]),
    ("virDomainGetOSType", c_void_p, [c_void_p]),
    ("virDomainGetMaxMemory", c_ulong, [c_void_p]),
    ("virDomainSetMaxMemory", c_int, [c_void_p, c_ulong]),
    ("virDomainSetMemory", c_int, [c_void_p, c_ulong]),
    ("virDomainGetAutostart", c_int, [c_void_p, POINTER(c_int)]),
    ("virDomainSetAutostart", c_int, [c_void_p, c_int]),
    ("virDomainIsActive", c_int, [c_void_p]),
    ("virDomainIsPersistent", c_int, [c_void_p]),
    ("virDomainGetSchedulerType", c_void_p, [c_void_p, POINTER(c_int)]),
    ("virDomainGetSchedulerParametersFlags", c_int, [c_void_p, _TP, POINTER(c_int), c_uint]),
    ("virDomainSetSchedulerParametersFlags", c_int, [c_void_p, _TP, c_int, c_uint]),
    ("virDomainGetMemoryParameters", c_int, [c_void_p, _TP, POINTER(c_int), c_uint]),
    ("virDomainSetMemoryParameters", c_int, [c_void_p, _TP, c_int, c_uint]),
    ("virDomainGetBlkioParameters", c_int, [c_void_p, _TP, POINTER(c_int), c_uint]),
    ("virDomainSetBlkioParameters", c_int, [c_void_p, _TP, c_int, c_uint]),
    ("virDomainFree", c_int, [c_void_p]),
    # Storage pools
    ("virConnectNumOfStoragePools", c_int, [c_void_p]),
    ("virConnectListStoragePools", c_int, [c_void_p, POINTER(c_void_p), c_int]),
    ("virConnectListAllStoragePools", c_int, [c_void_p, POINTER(POINTER(c_void_p)), c_uint]),
    ("virStoragePoolLookupByName", c_void_p, [c_void_p, c_char_p]),
    ("virStoragePoolLookupByUUIDString", c_void_p, [c_void_p, c_char_p]),
    ("virStoragePoolDefineXML", c_void_p, [c_void_p, c_char_p, c_uint]),
    ("virStoragePoolCreateXML", c_void_p, [c_void_p, c_char_p, c_uint]),
    ("virStoragePoolBuild", c_int, [c_void_p, c_uint]),
    ("virStoragePoolCreate", c_int, [c_void_p, c_uint]),
    ("virStoragePoolDestroy", c_int, [c_void_p]),
    ("virStoragePoolUndefine", c_int, [c_void_p]),
    ("virStoragePoolRefresh", c_int, [c_void_p, c_uint]),
    ("virStoragePoolGetName", c_void_p, [c_void_p]),
    ("virStoragePoolGetUUIDString", c_int, [c_void_p, c_char_p]),
    ("virStoragePoolGetXMLDesc", c_void_p, [c_void_p, c_uint]),
    ("virStoragePoolGetAutostart", c_int, [c_void_p, POINTER(c_int)]),
    ("virStoragePoolSetAutostart", c_int, [c_void_p, c_int]),
    ("virStoragePoolIsActive", c_int, [c_void_p]),
    ("virStoragePoolIsPersistent", c_int, [c_void_p]),
    ("virStoragePoolNumOfVolumes", c_int, [c_void_p]),
    ("virStoragePoolListVolumes", c_int, [c_void_p, POINTER(c_void_p), c_int]),
    ("virStoragePoolFree", c_int, [c_void_p]),
]


def _setup_functions(lib: Any) -> None:
    """Set up function signatures for the library.

    Symbols missing from an older libvirt are skipped; calling them later
    raises NoSupportError.
    """
    for name, restype, argtypes in _SIGNATURES:
        try:
            func = getattr(lib, name)
        except AttributeError:
            logger.debug("libvirt has no symbol %s", name)
            continue
        func.argtypes = argtypes
        func.restype = restype


def function(name: str) -> Any:
    """Look up a native entry point by name."""
    lib = _get_lib()
    try:
        return getattr(lib, name)
    except AttributeError:
        raise NoSupportError(name) from None


# ==========================================================================
# Memory helpers
# ==========================================================================


def free_native(ptr: Any) -> None:
    """Release memory that libvirt allocated and handed to the caller."""
    if ptr:
        _get_libc().free(ptr)


def string_at(ptr: int) -> str:
    """Copy a NUL-terminated native string into a Python str."""
    return ctypes.string_at(ptr).decode("utf-8")


def get_string_and_free(ptr: int) -> str:
    """Copy a native string and release it.

    Functions whose result must be freed are declared with a c_void_p
    restype, since a c_char_p restype loses the pointer needed for freeing.
    """
    try:
        return string_at(ptr)
    finally:
        free_native(ptr)
