"""
Type definitions and enums for the hvclient bindings.
"""

from dataclasses import dataclass
from enum import IntEnum, IntFlag


class TypedParameterKind(IntEnum):
    """Kind tag of a virTypedParameter value."""

    INT = 1
    UINT = 2
    LLONG = 3
    ULLONG = 4
    DOUBLE = 5
    BOOLEAN = 6
    STRING = 7


class ErrorLevel(IntEnum):
    """Severity of a libvirt error record."""

    NONE = 0
    WARNING = 1
    ERROR = 2


class AffectFlags(IntFlag):
    """Which domain/node configuration a parameter change applies to."""

    CURRENT = 0
    LIVE = 1
    CONFIG = 2


class NetworkUpdateCommand(IntEnum):
    NONE = 0
    MODIFY = 1
    DELETE = 2
    ADD_LAST = 3
    ADD_FIRST = 4


class NetworkSection(IntEnum):
    NONE = 0
    BRIDGE = 1
    DOMAIN = 2
    IP = 3
    IP_DHCP_HOST = 4
    IP_DHCP_RANGE = 5
    FORWARD = 6
    FORWARD_INTERFACE = 7
    FORWARD_PF = 8
    PORTGROUP = 9
    DNS_HOST = 10
    DNS_TXT = 11
    DNS_SRV = 12


class NetworkUpdateFlags(IntFlag):
    AFFECT_CURRENT = 0
    AFFECT_LIVE = 1
    AFFECT_CONFIG = 2


class ListNetworksFlags(IntFlag):
    INACTIVE = 1
    ACTIVE = 2
    PERSISTENT = 4
    TRANSIENT = 8
    AUTOSTART = 16
    NO_AUTOSTART = 32


class ListDomainsFlags(IntFlag):
    ACTIVE = 1
    INACTIVE = 2
    PERSISTENT = 4
    TRANSIENT = 8
    RUNNING = 16
    PAUSED = 32
    SHUTOFF = 64
    OTHER = 128
    MANAGEDSAVE = 256
    NO_MANAGEDSAVE = 512
    AUTOSTART = 1024
    NO_AUTOSTART = 2048
    HAS_SNAPSHOT = 4096
    NO_SNAPSHOT = 8192


class ListStoragePoolsFlags(IntFlag):
    INACTIVE = 1
    ACTIVE = 2
    PERSISTENT = 4
    TRANSIENT = 8
    AUTOSTART = 16
    NO_AUTOSTART = 32


@dataclass(frozen=True)
class ErrorInfo:
    """Snapshot of a libvirt error record."""

    code: int
    component: int  # libvirt's error "domain": the subsystem that failed
    level: int
    message: str | None = None
    str1: str | None = None
    str2: str | None = None
    str3: str | None = None
    int1: int = 0
    int2: int = 0


@dataclass
class NodeInfo:
    """Host hardware summary from virNodeGetInfo."""

    model: str
    memory: int  # KiB
    cpus: int
    mhz: int
    nodes: int
    sockets: int
    cores: int
    threads: int

    @property
    def max_cpus(self) -> int:
        return self.nodes * self.sockets * self.cores * self.threads
