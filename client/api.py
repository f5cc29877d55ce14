import ipaddress
from typing import Dict, List

import requests

from tether_core import AllocationExhausted, PrefixConflict, Reservation, Role, UpstreamSnapshot
from tether_core.serialization import conflict_from_dict, reservation_from_dict, snapshot_to_dict


class CoordinatorClient:
    """HTTP client for the coordinator control plane."""

    def __init__(self, base_url: str, timeout: float = 5):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def request_address(self, role: Role, reuse_last: bool = False) -> ipaddress.IPv4Interface:
        """Ask for a downstream address. Raises AllocationExhausted on 503."""
        role = Role.parse(role)
        try:
            resp = requests.post(
                f"{self.base_url}/downstreams/{role.value}",
                json={"reuse_last": reuse_last},
                timeout=self.timeout,
            )
            if resp.status_code == 503:
                raise AllocationExhausted(resp.json().get("error", "Address pool exhausted"))
            resp.raise_for_status()
            return ipaddress.IPv4Interface(resp.json()["address"])
        except requests.exceptions.RequestException as e:
            raise RuntimeError(f"Address request failed{self._detail(e)}") from e

    def release(self, role: Role) -> bool:
        role = Role.parse(role)
        data = self._call("delete", f"/downstreams/{role.value}", "Release")
        return bool(data.get("released"))

    def reservations(self) -> List[Reservation]:
        data = self._call("get", "/downstreams", "Listing reservations")
        return [reservation_from_dict(r) for r in data.get("reservations", [])]

    def report_upstream(self, snapshot: UpstreamSnapshot) -> List[Role]:
        """Push an upstream snapshot. Returns the roles flagged as conflicting."""
        data = self._call(
            "put",
            f"/upstreams/{snapshot.network_id}",
            "Upstream update",
            json=snapshot_to_dict(snapshot),
        )
        return [Role.parse(r) for r in data.get("conflicts", [])]

    def remove_upstream(self, network_id: str) -> bool:
        data = self._call("delete", f"/upstreams/{network_id}", "Upstream removal")
        return bool(data.get("removed"))

    def upstreams(self) -> Dict[str, List[str]]:
        return self._call("get", "/upstreams", "Listing upstreams").get("upstreams", {})

    def drain_conflicts(self) -> List[PrefixConflict]:
        data = self._call("get", "/conflicts", "Fetching conflicts")
        return [conflict_from_dict(c) for c in data.get("conflicts", [])]

    def _call(self, method: str, path: str, what: str, **kwargs) -> Dict:
        try:
            resp = getattr(requests, method)(f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
            resp.raise_for_status()
            return resp.json()
        except requests.exceptions.RequestException as e:
            raise RuntimeError(f"{what} failed{self._detail(e)}") from e

    @staticmethod
    def _detail(e: requests.exceptions.RequestException) -> str:
        response = getattr(e, "response", None)
        if response is not None:
            return f": {response.text}"
        return ""
