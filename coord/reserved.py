import ipaddress
from typing import Dict, List, Optional

from tether_core import BLUETOOTH_ADDRESS, LEGACY_WIFI_P2P_ADDRESS, Role

# Peers hard-code these, so they stay out of dynamic allocation even while
# the legacy role is down.
LEGACY_FIXED_ADDRESSES = {
    Role.BLUETOOTH: BLUETOOTH_ADDRESS,
    Role.WIFI_P2P: LEGACY_WIFI_P2P_ADDRESS,
}


class ReservedRangeSet:
    """Prefixes permanently excluded from dynamic allocation."""

    def __init__(self, fixed: Optional[Dict[Role, str]] = None):
        source = LEGACY_FIXED_ADDRESSES if fixed is None else fixed
        self._fixed: Dict[Role, ipaddress.IPv4Interface] = {
            role: ipaddress.IPv4Interface(addr) for role, addr in source.items()
        }

    def is_reserved(self, prefix: ipaddress.IPv4Network) -> bool:
        return any(prefix.overlaps(addr.network) for addr in self._fixed.values())

    def fixed_address_for(self, role: Role) -> ipaddress.IPv4Interface:
        try:
            return self._fixed[role]
        except KeyError:
            raise ValueError(f"Role {role.value} has no fixed address")

    def prefixes(self) -> List[ipaddress.IPv4Network]:
        return [addr.network for addr in self._fixed.values()]
