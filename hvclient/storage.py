"""
Storage pools.
"""

from __future__ import annotations

from . import _calls
from .handle import LibvirtObject
from .listing import list_names


class StoragePool(LibvirtObject):
    """A libvirt storage pool."""

    _prefix = "virStoragePool"
    _free_func = "virStoragePoolFree"

    def build(self, flags: int = 0) -> None:
        """Build the underlying storage (format a disk, create a directory...)."""
        _calls.call_void("virStoragePoolBuild", self.connection, self.ptr, flags)

    def create(self, flags: int = 0) -> None:
        """Start a defined pool."""
        _calls.call_void("virStoragePoolCreate", self.connection, self.ptr, flags)

    def refresh(self, flags: int = 0) -> None:
        """Rescan the pool for volumes."""
        _calls.call_void("virStoragePoolRefresh", self.connection, self.ptr, flags)

    @property
    def num_of_volumes(self) -> int:
        return _calls.call_int("virStoragePoolNumOfVolumes", self.connection, self.ptr)

    def list_volumes(self) -> list[str]:
        """Names of the volumes in this pool."""
        return list_names(self, "virStoragePoolNumOfVolumes", "virStoragePoolListVolumes")
