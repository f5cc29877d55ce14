from typing import Iterable, Optional

from .base import EntropySource
from .scripted import ScriptedEntropySource
from .system import SystemEntropySource


def create_entropy_source(scripted: Optional[Iterable[int]] = None) -> EntropySource:
    """Create the draw source. A script pins draws for tests and demos."""
    if scripted is not None:
        return ScriptedEntropySource(scripted)
    return SystemEntropySource()
