from typing import Iterable

from .base import EntropySource, DRAW_MASK


class ScriptedEntropySource(EntropySource):
    """Replays a fixed sequence of draws. Used to pin allocations in tests."""

    def __init__(self, draws: Iterable[int], repeat_last: bool = True):
        self._draws = [int(d) & DRAW_MASK for d in draws]
        if not self._draws:
            raise ValueError("Scripted entropy needs at least one draw")
        self._repeat_last = repeat_last
        self._index = 0
        self.calls = 0

    def next_draw(self) -> int:
        self.calls += 1
        if self._index < len(self._draws):
            value = self._draws[self._index]
            self._index += 1
            return value
        if not self._repeat_last:
            raise RuntimeError("Scripted entropy exhausted")
        return self._draws[-1]

    def pin(self, draw: int) -> None:
        """Replace the script with a single repeating draw."""
        self._draws = [int(draw) & DRAW_MASK]
        self._index = 0
        self._repeat_last = True
