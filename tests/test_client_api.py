import ipaddress
from unittest.mock import MagicMock

import pytest
import requests

from client.api import CoordinatorClient
from tether_core import AllocationExhausted, Role, Transport, UpstreamSnapshot


@pytest.fixture
def client():
    return CoordinatorClient("http://coord/")


def response(payload, status=200):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    return resp


def test_request_address(client, monkeypatch):
    mock_post = MagicMock(return_value=response({
        "role": "wifi", "address": "192.168.43.5/24", "prefix": "192.168.43.0/24"
    }))
    monkeypatch.setattr("requests.post", mock_post)

    address = client.request_address(Role.WIFI, reuse_last=True)

    assert address == ipaddress.IPv4Interface("192.168.43.5/24")
    assert mock_post.call_args[0][0] == "http://coord/downstreams/wifi"
    assert mock_post.call_args[1]["json"] == {"reuse_last": True}


def test_request_address_exhausted(client, monkeypatch):
    mock_post = MagicMock(return_value=response({"error": "Address pool exhausted"}, status=503))
    monkeypatch.setattr("requests.post", mock_post)

    with pytest.raises(AllocationExhausted, match="exhausted"):
        client.request_address("usb")


def test_request_address_failure(client, monkeypatch):
    mock_post = MagicMock()
    mock_post.return_value.status_code = 500
    mock_post.return_value.raise_for_status.side_effect = requests.exceptions.RequestException("500")
    monkeypatch.setattr("requests.post", mock_post)

    with pytest.raises(RuntimeError, match="Address request failed"):
        client.request_address("usb")


def test_report_upstream(client, monkeypatch):
    mock_put = MagicMock(return_value=response({"conflicts": ["wifi"]}))
    monkeypatch.setattr("requests.put", mock_put)

    roles = client.report_upstream(UpstreamSnapshot("net-1", Transport.WIFI, ["192.168.43.9/24"]))

    assert roles == [Role.WIFI]
    assert mock_put.call_args[0][0] == "http://coord/upstreams/net-1"
    assert mock_put.call_args[1]["json"] == {
        "network_id": "net-1",
        "transport": "wifi",
        "addresses": ["192.168.43.9/24"],
    }


def test_release_and_remove(client, monkeypatch):
    mock_delete = MagicMock(side_effect=[
        response({"released": True}),
        response({"removed": False}),
    ])
    monkeypatch.setattr("requests.delete", mock_delete)

    assert client.release("wifi") is True
    assert client.remove_upstream("mobile") is False


def test_drain_conflicts(client, monkeypatch):
    mock_get = MagicMock(return_value=response({
        "conflicts": [{"role": "usb", "prefix": "192.168.60.0/24", "network_id": "wifi"}]
    }))
    monkeypatch.setattr("requests.get", mock_get)

    conflicts = client.drain_conflicts()

    assert len(conflicts) == 1
    assert conflicts[0].role is Role.USB
    assert conflicts[0].prefix == ipaddress.IPv4Network("192.168.60.0/24")


def test_connection_error(client, monkeypatch):
    monkeypatch.setattr("requests.get", MagicMock(side_effect=requests.exceptions.ConnectionError("refused")))
    with pytest.raises(RuntimeError, match="Listing reservations failed"):
        client.reservations()
