import json

import pytest

from coord.config import CoordinatorConfig, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "TETHER_COORD_CONFIG",
        "TETHER_COORD_BASE_PREFIX",
        "TETHER_COORD_P2P_DEDICATED_IP",
        "TETHER_COORD_MAX_ATTEMPTS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = load_config()
    assert config.base_prefix == "192.168.0.0/16"
    assert config.wifi_p2p_dedicated_ip is False
    assert config.max_attempts == 256


def test_json_file(tmp_path):
    path = tmp_path / "coord.json"
    path.write_text(json.dumps({
        "wifi_p2p_dedicated_ip": True,
        "max_attempts": 10,
        "unrelated": "ignored",
    }))
    config = load_config(str(path))
    assert config.wifi_p2p_dedicated_ip is True
    assert config.max_attempts == 10


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "coord.json"
    path.write_text(json.dumps({"wifi_p2p_dedicated_ip": True}))
    monkeypatch.setenv("TETHER_COORD_CONFIG", str(path))
    monkeypatch.setenv("TETHER_COORD_P2P_DEDICATED_IP", "false")
    monkeypatch.setenv("TETHER_COORD_BASE_PREFIX", "172.20.0.0/16")
    config = load_config()
    assert config.wifi_p2p_dedicated_ip is False
    assert config.base_prefix == "172.20.0.0/16"


def test_broken_file_ignored(tmp_path):
    path = tmp_path / "coord.json"
    path.write_text("{not json")
    assert load_config(str(path)) == CoordinatorConfig()


def test_missing_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "absent.json")) == CoordinatorConfig()


class TestValidation:

    def test_base_prefix_must_be_slash_16(self):
        with pytest.raises(ValueError, match="must be a /16"):
            CoordinatorConfig(base_prefix="10.0.0.0/8")

    def test_base_prefix_must_parse(self):
        with pytest.raises(ValueError, match="Invalid base prefix"):
            CoordinatorConfig(base_prefix="192.168.0.1/16")

    def test_attempts_positive(self):
        with pytest.raises(ValueError, match="max_attempts"):
            CoordinatorConfig(max_attempts=0)
