"""Pseudorandom draw sources for downstream prefix allocation."""

from .base import EntropySource
from .factory import create_entropy_source
from .scripted import ScriptedEntropySource
from .system import SystemEntropySource

__all__ = [
    "EntropySource",
    "ScriptedEntropySource",
    "SystemEntropySource",
    "create_entropy_source",
]
