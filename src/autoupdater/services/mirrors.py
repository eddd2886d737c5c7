"""Randomized, non-repeating mirror selection."""

import random
from typing import Iterable, Iterator, Optional


class MirrorSelector:
    """Yields each mirror once, in uniformly random order.

    Mirrors live in a fixed-size list; attempted slots are tombstoned
    (set to None) instead of removed, so slot indexes stay valid for the
    whole run and the live count only ever decreases.
    """

    def __init__(self, mirrors: Iterable[str], rng: Optional[random.Random] = None):
        self._slots: list[Optional[str]] = list(mirrors)
        self._live = len(self._slots)
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return self._live

    def next_candidate(self) -> tuple[int, str]:
        """Pick a live mirror at random.

        Returns:
            (slot, mirror) where slot is the mirror's index in the original list

        Raises:
            LookupError: If every mirror has been removed
        """
        if not self._live:
            raise LookupError("no mirrors left")

        i = self._rng.randrange(self._live)

        # Walk forward to the i-th live slot
        for slot, mirror in enumerate(self._slots):
            if mirror is None:
                continue
            if not i:
                return slot, mirror
            i -= 1

        raise AssertionError("live count out of sync with slots")

    def remove(self, slot: int) -> None:
        """Tombstone an attempted mirror.

        Raises:
            ValueError: If the slot was already removed
        """
        if self._slots[slot] is None:
            raise ValueError(f"Mirror slot {slot} already removed")
        self._slots[slot] = None
        self._live -= 1

    def __iter__(self) -> Iterator[str]:
        """Yield live mirrors, removing each once the caller moves on."""
        while self._live:
            slot, mirror = self.next_candidate()
            try:
                yield mirror
            finally:
                self.remove(slot)
