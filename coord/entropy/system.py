import secrets

from .base import EntropySource, DRAW_BITS


class SystemEntropySource(EntropySource):
    """Production source backed by the OS CSPRNG."""

    def next_draw(self) -> int:
        return secrets.randbits(DRAW_BITS)
