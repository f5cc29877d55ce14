"""Per-network view of the IPv4 prefixes seen on upstream networks."""
import ipaddress
import logging
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from tether_core import Transport, ipv4_prefixes

logger = logging.getLogger("tether.upstream")

_EMPTY: FrozenSet[ipaddress.IPv4Network] = frozenset()


class UpstreamPrefixTracker:
    def __init__(self):
        self._prefixes: Dict[str, FrozenSet[ipaddress.IPv4Network]] = {}

    def update(
        self,
        network_id: str,
        addresses: Iterable[str],
        transport: Optional[Transport],
    ) -> FrozenSet[ipaddress.IPv4Network]:
        """Replace a network's prefix set and return the new set.

        VPN networks are ignored outright. A network without transport
        information or without any IPv4 address loses its entry.
        """
        if transport is Transport.VPN:
            logger.debug(f"Ignoring VPN upstream {network_id}")
            return _EMPTY

        if transport is None:
            logger.info(f"Upstream {network_id} has no transport info yet, clearing its prefixes")
            self._prefixes.pop(network_id, None)
            return _EMPTY

        prefixes = frozenset(ipv4_prefixes(addresses))
        if not prefixes:
            logger.debug(f"Upstream {network_id} has no IPv4 address, clearing its prefixes")
            self._prefixes.pop(network_id, None)
            return _EMPTY

        self._prefixes[network_id] = prefixes
        logger.info(f"Upstream {network_id} ({transport.value}): {sorted(str(p) for p in prefixes)}")
        return prefixes

    def remove(self, network_id: str) -> bool:
        return self._prefixes.pop(network_id, None) is not None

    def prefixes_for(self, network_id: str) -> FrozenSet[ipaddress.IPv4Network]:
        return self._prefixes.get(network_id, _EMPTY)

    def networks(self) -> List[str]:
        return list(self._prefixes)

    def all_prefixes(self) -> Set[ipaddress.IPv4Network]:
        flat: Set[ipaddress.IPv4Network] = set()
        for prefixes in self._prefixes.values():
            flat.update(prefixes)
        return flat
