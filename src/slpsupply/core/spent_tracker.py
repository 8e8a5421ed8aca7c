from __future__ import annotations

from typing import Set


class SpentOutputTracker:
    """
    Append-only record of every output consumed as an input anywhere in
    the traversed graph. Backed by a set; repeated adds are counted but
    stored once.
    """

    def __init__(self) -> None:
        self._keys: Set[str] = set()
        self.additions = 0

    def add(self, key: str) -> None:
        self._keys.add(key)
        self.additions += 1

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)
