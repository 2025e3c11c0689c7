"""
Virtual networks.
"""

from __future__ import annotations

from . import _calls
from .handle import LibvirtObject
from .types import NetworkSection, NetworkUpdateCommand, NetworkUpdateFlags


class Network(LibvirtObject):
    """A libvirt virtual network.

    Obtain one from a Connection (lookup, define, create or list_all_networks);
    release it with free() or by using it as a context manager.

    Example:
        with conn.lookup_network_by_name("default") as net:
            if not net.is_active:
                net.create()
            print(net.bridge_name)
    """

    _prefix = "virNetwork"
    _free_func = "virNetworkFree"

    def create(self) -> None:
        """Start a defined network."""
        _calls.call_void("virNetworkCreate", self.connection, self.ptr)

    def update(
        self,
        command: NetworkUpdateCommand | int,
        section: NetworkSection | int,
        index: int,
        xml: str,
        flags: NetworkUpdateFlags | int = NetworkUpdateFlags.AFFECT_CURRENT,
    ) -> None:
        """Modify one section of the network definition.

        Args:
            command: What to do (modify, delete, add first/last)
            section: Which part of the definition the XML snippet targets
            index: Position of the element within its parent, -1 for "don't care"
            xml: The XML snippet
            flags: Whether to affect the live network, the config, or both
        """
        _calls.call_void(
            "virNetworkUpdate",
            self.connection,
            self.ptr,
            int(command),
            int(section),
            index,
            xml.encode("utf-8"),
            int(flags),
        )

    @property
    def bridge_name(self) -> str:
        """Name of the host bridge device backing this network."""
        return _calls.call_string("virNetworkGetBridgeName", self.connection, True, self.ptr)
