"""Private downstream address coordinator package."""

from .config import CoordinatorConfig, load_config
from .service import PrivateAddressCoordinator

__all__ = ["CoordinatorConfig", "PrivateAddressCoordinator", "load_config"]
