import ipaddress
from typing import Dict, List, Optional, Set

from tether_core import Reservation, Role


class ReservationTable:
    """Live downstream reservations plus the last address each role held."""

    def __init__(self):
        self._live: Dict[Role, Reservation] = {}  # role -> live reservation
        self._last: Dict[Role, ipaddress.IPv4Interface] = {}  # survives release

    def reserve(self, role: Role, address: ipaddress.IPv4Interface) -> Reservation:
        """Record (or replace) the live reservation for a role."""
        reservation = Reservation(role=role, address=address)
        self._live[role] = reservation
        self._last[role] = address
        return reservation

    def release(self, role: Role) -> Optional[Reservation]:
        """Drop the live reservation. The cached address is kept."""
        return self._live.pop(role, None)

    def get(self, role: Role) -> Optional[Reservation]:
        return self._live.get(role)

    def live(self) -> List[Reservation]:
        return list(self._live.values())

    def live_prefixes_except(self, role: Role) -> Set[ipaddress.IPv4Network]:
        return {r.prefix for r in self._live.values() if r.role != role}

    def cached_address(self, role: Role) -> Optional[ipaddress.IPv4Interface]:
        return self._last.get(role)

    def cached_prefixes_except(self, role: Role) -> Set[ipaddress.IPv4Network]:
        return {addr.network for r, addr in self._last.items() if r != role}

    def __contains__(self, role: Role) -> bool:
        return role in self._live

    def __len__(self) -> int:
        return len(self._live)
