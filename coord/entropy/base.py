from abc import ABC, abstractmethod

DRAW_BITS = 16
DRAW_MASK = (1 << DRAW_BITS) - 1


class EntropySource(ABC):
    @abstractmethod
    def next_draw(self) -> int:
        """Return the next 16-bit value (high byte subnet, low byte host)."""
        pass
