"""Main-memory window.

The visualizer shows a "main memory" panel next to the cache: the most
recent distinct addresses the user entered, whether or not they are still
cached. This class keeps that panel's contents; it only observes addresses
and never influences hits or misses.

Parameters:
- MainMemoryWindow(size)
- observe(address, resident) -> records an address; `resident` are the
  addresses currently in the cache, which are kept in preference
- addresses -> non-empty entries in position order
- reset() -> clears the window
"""
import logging
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class MainMemoryWindow:
    def __init__(self, size: int = 32):
        if isinstance(size, bool) or not isinstance(size, int) or size < 1:
            raise ValueError(f"main memory window size must be a positive int, got {size!r}")
        self.size = size
        self.slots: List[Optional[int]] = [None] * size

    def __contains__(self, address):
        return address in self.slots

    def __len__(self):
        return sum(1 for a in self.slots if a is not None)

    @property
    def addresses(self) -> List[int]:
        return [a for a in self.slots if a is not None]

    def observe(self, address: int, resident: Iterable[int] = ()):
        if address in self.slots:
            return
        if len(self) >= self.size:
            # make room: prefer dropping an address the cache no longer holds
            resident = set(resident)
            drop = next((i for i, a in enumerate(self.slots) if a is not None and a not in resident), None)
            if drop is None:
                drop = next(i for i, a in enumerate(self.slots) if a is not None)
            logger.debug("main memory window full, dropping address %d", self.slots[drop])
            self.slots[drop] = None
        # a free slot always exists here, so the window never grows past `size`
        self.slots[self.slots.index(None)] = address

    def reset(self):
        self.slots = [None] * self.size
