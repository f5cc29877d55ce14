from __future__ import annotations

import ipaddress
import logging
from typing import Callable, Optional

from tether_core import (
    DOWNSTREAM_PREFIX_LEN,
    SUBNET_COUNT,
    AllocationExhausted,
    PrefixConflict,
    Reservation,
    Role,
    UpstreamSnapshot,
    sanitize_draw,
)
from .config import CoordinatorConfig
from .entropy import EntropySource, create_entropy_source
from .reservations import ReservationTable
from .reserved import ReservedRangeSet
from .upstream import UpstreamPrefixTracker

logger = logging.getLogger("tether.coordinator")

ConflictListener = Callable[[PrefixConflict], None]


class PrivateAddressCoordinator:
    """Hands out non-overlapping private /24s to downstream links.

    Not thread-safe: callers serialize every public operation (the HTTP
    server does this with a single lock).
    """

    def __init__(
        self,
        config: CoordinatorConfig | None = None,
        entropy: EntropySource | None = None,
        p2p_policy: Callable[[], bool] | None = None,
    ) -> None:
        self._config = config or CoordinatorConfig()
        self._base = ipaddress.IPv4Network(self._config.base_prefix)
        self._entropy = entropy or create_entropy_source()
        self._p2p_policy = p2p_policy or (lambda: self._config.wifi_p2p_dedicated_ip)

        self._reserved = ReservedRangeSet()
        self._reservations = ReservationTable()
        self._upstreams = UpstreamPrefixTracker()
        self._listeners: list[ConflictListener] = []

    # ----- Listeners -----

    def add_conflict_listener(self, listener: ConflictListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_conflict_listener(self, listener: ConflictListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ----- Downstream -----

    def request_downstream_address(self, role: Role, reuse_last: bool = False) -> ipaddress.IPv4Interface:
        """Reserve an address for a downstream link.

        The legacy P2P role gets its fixed address when device policy asks
        for it. Otherwise the role's last address is reused if requested and
        still free, and a fresh /24 is picked if not.

        Raises:
            AllocationExhausted: every probed subnet is taken.
        """
        role = Role.parse(role)

        if role is Role.WIFI_P2P and self._p2p_policy():
            address = self._reserved.fixed_address_for(Role.WIFI_P2P)
            logger.info(f"{role.value}: using dedicated address {address}")
            return self._commit(role, address)

        cached = self._reservations.cached_address(role)
        if reuse_last and cached is not None and not self._is_conflict(cached.network, role):
            logger.info(f"{role.value}: reusing last address {cached}")
            return self._commit(role, cached)

        subnet, host = sanitize_draw(self._entropy.next_draw())
        attempts = min(self._config.max_attempts, SUBNET_COUNT)
        # Prefixes other roles held last are only taken when nothing else is free.
        # A fresh request also steers away from the role's own current and last prefix.
        avoided = self._reservations.cached_prefixes_except(role)
        if not reuse_last:
            avoided |= self._own_prefixes(role)
        fallback = None
        for i in range(attempts):
            candidate = self._build_address((subnet + i) % SUBNET_COUNT, host)
            if self._is_conflict(candidate.network, role):
                continue
            if candidate.network in avoided:
                if fallback is None:
                    fallback = candidate
                continue
            logger.info(f"{role.value}: allocated {candidate}")
            return self._commit(role, candidate)

        if fallback is not None:
            logger.info(f"{role.value}: allocated {fallback} (no unused prefix left)")
            return self._commit(role, fallback)

        logger.error(f"{role.value}: no free prefix after {attempts} attempts")
        raise AllocationExhausted(f"Address pool exhausted: no free prefix for {role.value}")

    def release_downstream(self, role: Role) -> None:
        role = Role.parse(role)
        released = self._reservations.release(role)
        if released:
            logger.info(f"{role.value}: released {released.address}")

    # ----- Upstream -----

    def update_upstream_prefix(self, snapshot: UpstreamSnapshot) -> list[Role]:
        """Record an upstream network's prefixes and flag colliding downstreams.

        Returns the roles that were sent a conflict signal. Their
        reservations are left in place; the owner releases and re-requests.
        """
        prefixes = self._upstreams.update(snapshot.network_id, snapshot.addresses, snapshot.transport)
        if not prefixes:
            return []

        notified = []
        for reservation in self._reservations.live():
            hit = next((p for p in prefixes if reservation.prefix.overlaps(p)), None)
            if hit is None:
                continue
            logger.warning(
                f"{reservation.role.value}: prefix {reservation.prefix} conflicts with "
                f"upstream {snapshot.network_id} ({hit})"
            )
            self._notify(PrefixConflict(reservation.role, reservation.prefix, snapshot.network_id))
            notified.append(reservation.role)
        return notified

    def remove_upstream_prefix(self, network_id: str) -> None:
        if self._upstreams.remove(network_id):
            logger.info(f"Upstream {network_id} removed")

    # ----- Introspection -----

    def reservations(self) -> list[Reservation]:
        return self._reservations.live()

    def cached_address(self, role: Role) -> Optional[ipaddress.IPv4Interface]:
        return self._reservations.cached_address(Role.parse(role))

    def upstream_prefixes(self) -> dict[str, list[str]]:
        return {
            nid: sorted(str(p) for p in self._upstreams.prefixes_for(nid))
            for nid in self._upstreams.networks()
        }

    # ----- Helpers -----

    def _build_address(self, subnet: int, host: int) -> ipaddress.IPv4Interface:
        ip = ipaddress.IPv4Address(int(self._base.network_address) + (subnet << 8) + host)
        return ipaddress.IPv4Interface(f"{ip}/{DOWNSTREAM_PREFIX_LEN}")

    def _is_conflict(self, prefix: ipaddress.IPv4Network, role: Role) -> bool:
        if self._reserved.is_reserved(prefix):
            return True
        if any(prefix.overlaps(p) for p in self._reservations.live_prefixes_except(role)):
            return True
        return any(prefix.overlaps(p) for p in self._upstreams.all_prefixes())

    def _own_prefixes(self, role: Role) -> set[ipaddress.IPv4Network]:
        own = set()
        live = self._reservations.get(role)
        if live is not None:
            own.add(live.prefix)
        cached = self._reservations.cached_address(role)
        if cached is not None:
            own.add(cached.network)
        return own

    def _commit(self, role: Role, address: ipaddress.IPv4Interface) -> ipaddress.IPv4Interface:
        self._reservations.reserve(role, address)
        return address

    def _notify(self, conflict: PrefixConflict) -> None:
        for listener in list(self._listeners):
            listener(conflict)
