"""
Tether Core Library
Shared models for the downstream address coordinator, its server and client.
"""
from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Set, Tuple

logger = logging.getLogger("tether.core")

# --- Constants ---

DEFAULT_BASE_PREFIX = "192.168.0.0/16"
DOWNSTREAM_PREFIX_LEN = 24
SUBNET_COUNT = 256

# Host ids outside this range are network, gateway-reserved or broadcast.
HOST_ID_MIN = 2
HOST_ID_MAX = 254
DEFAULT_HOST_ID = 42

BLUETOOTH_ADDRESS = "192.168.44.1/24"
LEGACY_WIFI_P2P_ADDRESS = "192.168.49.1/24"


# --- Models ---

class Role(str, Enum):
    """Functional role of a downstream link. Stable across sessions."""
    WIFI = "wifi"
    USB = "usb"
    BLUETOOTH = "bluetooth"
    WIFI_P2P = "wifi_p2p"
    NCM = "ncm"
    ETHERNET = "ethernet"

    @classmethod
    def parse(cls, value) -> "Role":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown downstream role: {value}")


class Transport(str, Enum):
    CELLULAR = "cellular"
    WIFI = "wifi"
    BLUETOOTH = "bluetooth"
    ETHERNET = "ethernet"
    VPN = "vpn"
    USB = "usb"

    @classmethod
    def parse(cls, value) -> Optional["Transport"]:
        """None stays None: transport not known yet."""
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown transport: {value}")


@dataclass(frozen=True)
class Reservation:
    """Live binding of a downstream role to an address."""
    role: Role
    address: ipaddress.IPv4Interface

    @property
    def prefix(self) -> ipaddress.IPv4Network:
        return self.address.network


@dataclass(frozen=True)
class PrefixConflict:
    """Signal telling the owner of `role` to release and request again."""
    role: Role
    prefix: ipaddress.IPv4Network
    network_id: str


@dataclass
class UpstreamSnapshot:
    """Current addresses of one upstream network.

    `transport` is None while capability information is not known.
    `addresses` holds "address/prefixlen" strings of any family.
    """
    network_id: str
    transport: Optional[Transport] = None
    addresses: List[str] = field(default_factory=list)

    def ipv4_prefixes(self) -> Set[ipaddress.IPv4Network]:
        return ipv4_prefixes(self.addresses)


# --- Errors ---

class AllocationExhausted(RuntimeError):
    """No non-conflicting downstream prefix could be found."""


# --- Helpers ---

def ipv4_prefixes(addresses) -> Set[ipaddress.IPv4Network]:
    """Derive the IPv4 networks of a list of "address/len" strings.

    IPv6 and unparsable entries are skipped.
    """
    prefixes: Set[ipaddress.IPv4Network] = set()
    for raw in addresses or []:
        try:
            iface = ipaddress.ip_interface(str(raw).strip())
        except ValueError:
            logger.warning(f"Ignoring malformed upstream address: {raw!r}")
            continue
        if iface.version == 4:
            prefixes.add(iface.network)
    return prefixes


def sanitize_draw(draw: int) -> Tuple[int, int]:
    """Split a 16-bit draw into (subnet octet, host octet).

    The host octet falls back to DEFAULT_HOST_ID when it is outside
    [HOST_ID_MIN, HOST_ID_MAX]. The subnet octet is returned as drawn;
    unavailable subnets are the allocator's problem.
    """
    draw &= 0xFFFF
    subnet = (draw >> 8) & 0xFF
    host = draw & 0xFF
    if host < HOST_ID_MIN or host > HOST_ID_MAX:
        host = DEFAULT_HOST_ID
    return subnet, host


def prefixes_conflict(a: ipaddress.IPv4Network, b: ipaddress.IPv4Network) -> bool:
    return a.overlaps(b)


__all__ = [
    "AllocationExhausted",
    "BLUETOOTH_ADDRESS",
    "DEFAULT_BASE_PREFIX",
    "DEFAULT_HOST_ID",
    "DOWNSTREAM_PREFIX_LEN",
    "LEGACY_WIFI_P2P_ADDRESS",
    "PrefixConflict",
    "Reservation",
    "Role",
    "SUBNET_COUNT",
    "Transport",
    "UpstreamSnapshot",
    "ipv4_prefixes",
    "prefixes_conflict",
    "sanitize_draw",
]
