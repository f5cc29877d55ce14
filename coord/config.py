import ipaddress
import json
import logging
import os
from dataclasses import dataclass, fields

from tether_core import DEFAULT_BASE_PREFIX, SUBNET_COUNT

logger = logging.getLogger("tether.config")

CONFIG_ENV = "TETHER_COORD_CONFIG"


@dataclass
class CoordinatorConfig:
    """Coordinator configuration."""
    base_prefix: str = DEFAULT_BASE_PREFIX
    wifi_p2p_dedicated_ip: bool = False
    # Subnet candidates probed per request; there are only 256 /24s in a /16.
    max_attempts: int = SUBNET_COUNT

    def __post_init__(self):
        try:
            net = ipaddress.IPv4Network(self.base_prefix)
        except ValueError as e:
            raise ValueError(f"Invalid base prefix: {self.base_prefix}") from e
        if net.prefixlen != 16:
            raise ValueError(f"Base prefix must be a /16: {self.base_prefix}")
        self.max_attempts = int(self.max_attempts)
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(path: str = None) -> CoordinatorConfig:
    """Defaults, then the JSON file (if any), then environment overrides."""
    values = {}
    path = path or os.getenv(CONFIG_ENV)
    if path and os.path.exists(path):
        logger.info(f"Loading coordinator config from: {path}")
        try:
            with open(path, "r") as f:
                data = json.load(f)
            known = {fld.name for fld in fields(CoordinatorConfig)}
            values.update({k: v for k, v in data.items() if k in known})
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"Error loading config {path}: {e}")

    if os.getenv("TETHER_COORD_BASE_PREFIX"):
        values["base_prefix"] = os.environ["TETHER_COORD_BASE_PREFIX"]
    if os.getenv("TETHER_COORD_P2P_DEDICATED_IP"):
        values["wifi_p2p_dedicated_ip"] = _env_bool(os.environ["TETHER_COORD_P2P_DEDICATED_IP"])
    if os.getenv("TETHER_COORD_MAX_ATTEMPTS"):
        values["max_attempts"] = int(os.environ["TETHER_COORD_MAX_ATTEMPTS"])

    if isinstance(values.get("wifi_p2p_dedicated_ip"), str):
        values["wifi_p2p_dedicated_ip"] = _env_bool(values["wifi_p2p_dedicated_ip"])

    return CoordinatorConfig(**values)
