from typing import Any, Dict
import ipaddress

from . import PrefixConflict, Reservation, Role, Transport, UpstreamSnapshot


def snapshot_to_dict(snapshot: UpstreamSnapshot) -> Dict[str, Any]:
    return {
        "network_id": snapshot.network_id,
        "transport": snapshot.transport.value if snapshot.transport else None,
        "addresses": list(snapshot.addresses),
    }


def snapshot_from_dict(data: Dict[str, Any], network_id: str = None) -> UpstreamSnapshot:
    """Build a snapshot from a JSON body. `network_id` overrides the body's."""
    if not isinstance(data, dict):
        raise ValueError("Upstream snapshot must be a JSON object")
    nid = network_id or data.get("network_id")
    if not nid:
        raise ValueError("Upstream snapshot is missing 'network_id'")

    addresses = data.get("addresses") or []
    if not isinstance(addresses, list):
        raise ValueError("'addresses' must be a list")

    try:
        transport = Transport.parse(data.get("transport"))
    except ValueError as e:
        raise ValueError(f"Invalid upstream snapshot: {e}") from e

    return UpstreamSnapshot(
        network_id=str(nid),
        transport=transport,
        addresses=[str(a) for a in addresses],
    )


def reservation_to_dict(reservation: Reservation) -> Dict[str, Any]:
    return {
        "role": reservation.role.value,
        "address": str(reservation.address),
        "prefix": str(reservation.prefix),
    }


def reservation_from_dict(data: Dict[str, Any]) -> Reservation:
    try:
        return Reservation(
            role=Role.parse(data["role"]),
            address=ipaddress.IPv4Interface(data["address"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid reservation: {e}") from e


def conflict_to_dict(conflict: PrefixConflict) -> Dict[str, Any]:
    return {
        "role": conflict.role.value,
        "prefix": str(conflict.prefix),
        "network_id": conflict.network_id,
    }


def conflict_from_dict(data: Dict[str, Any]) -> PrefixConflict:
    try:
        return PrefixConflict(
            role=Role.parse(data["role"]),
            prefix=ipaddress.IPv4Network(data["prefix"]),
            network_id=str(data["network_id"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid conflict: {e}") from e
