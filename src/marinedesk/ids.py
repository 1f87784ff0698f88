from __future__ import annotations

from datetime import datetime
from typing import Callable

Taken = Callable[[str], bool]


class IdGenerator:
    """Monotonic per-prefix counters that skip identifiers already in use.

    ``next("INV", 4, ...)`` yields INV-1001, INV-1002, ... and widens past
    INV-9999 instead of wrapping.
    """

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}

    def counters(self) -> dict[str, int]:
        return dict(self._counters)

    def reset(self, counters: dict[str, int]) -> None:
        self._counters = dict(counters)

    def next(self, prefix: str, width: int, taken: Taken) -> str:
        n = self._counters.get(prefix, 10 ** (width - 1))
        while True:
            n += 1
            candidate = f"{prefix}-{n:0{width}d}"
            if not taken(candidate):
                break
        self._counters[prefix] = n
        return candidate

    def timestamped(self, prefix: str, when: datetime, taken: Taken) -> str:
        stamp = max(int(when.timestamp() * 1000), self._counters.get(prefix, 0) + 1)
        while taken(f"{prefix}-{stamp}"):
            stamp += 1
        self._counters[prefix] = stamp
        return f"{prefix}-{stamp}"
