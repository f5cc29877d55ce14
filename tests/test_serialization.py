import ipaddress
import unittest

from tether_core import PrefixConflict, Reservation, Role, Transport
from tether_core.serialization import (
    conflict_from_dict,
    conflict_to_dict,
    reservation_from_dict,
    reservation_to_dict,
    snapshot_from_dict,
    snapshot_to_dict,
)


class TestSerialization(unittest.TestCase):
    def test_snapshot_from_body(self):
        """Path network id wins over the body's."""
        snapshot = snapshot_from_dict(
            {"network_id": "ignored", "transport": "CELLULAR", "addresses": ["10.0.0.8/24"]},
            network_id="mobile",
        )
        self.assertEqual(snapshot.network_id, "mobile")
        self.assertIs(snapshot.transport, Transport.CELLULAR)
        self.assertEqual(snapshot.addresses, ["10.0.0.8/24"])

    def test_snapshot_missing_transport_is_none(self):
        snapshot = snapshot_from_dict({"network_id": "wifi"})
        self.assertIsNone(snapshot.transport)
        self.assertEqual(snapshot.addresses, [])
        self.assertEqual(snapshot_to_dict(snapshot)["transport"], None)

    def test_snapshot_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            snapshot_from_dict({"transport": "wifi"})
        with self.assertRaises(ValueError):
            snapshot_from_dict({"network_id": "x", "transport": "warp"})
        with self.assertRaises(ValueError):
            snapshot_from_dict(["not", "a", "dict"])

    def test_reservation_dict(self):
        reservation = Reservation(Role.USB, ipaddress.IPv4Interface("192.168.60.5/24"))
        data = reservation_to_dict(reservation)
        self.assertEqual(data["prefix"], "192.168.60.0/24")
        self.assertEqual(reservation_from_dict(data), reservation)

    def test_reservation_missing_field(self):
        with self.assertRaises(ValueError):
            reservation_from_dict({"role": "usb"})

    def test_conflict_dict(self):
        conflict = PrefixConflict(Role.WIFI, ipaddress.IPv4Network("192.168.43.0/24"), "net-1")
        self.assertEqual(conflict_to_dict(conflict)["role"], "wifi")
        with self.assertRaises(ValueError):
            conflict_from_dict({"role": "wifi", "prefix": "bogus", "network_id": "n"})


if __name__ == "__main__":
    unittest.main()
