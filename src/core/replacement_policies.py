"""Replacement policy implementations for the cache simulator.

Each policy is a small stateless chooser with the same API so the simulator
can call them interchangeably:

- FIFOReplacement()
- LRUReplacement()
- LFUReplacement()
- RandomReplacement(rng)

API (methods):
- choose(blocks, candidates): return the slot index to evict among
  `candidates`, all of which are occupied

Policy state is the per-block bookkeeping kept by `Cache` (load_order,
last_access_time, access_frequency), so policies never need a reset.
`select_victim()` adds the rule shared by every policy: an empty candidate
always wins over an eviction.
"""

import random
from typing import Optional, Sequence

from src.core.cache import CacheBlock
from src.core.config import ReplacementPolicy


def _min_slot(blocks: Sequence[CacheBlock], candidates: Sequence[int], key) -> int:
    # min() keeps the first minimum, so ties go to the lowest slot index
    return min(candidates, key=lambda i: key(blocks[i]))


class FIFOReplacement:
    """Evict the block installed earliest (smallest load_order)."""

    def choose(self, blocks: Sequence[CacheBlock], candidates: Sequence[int]) -> int:
        return _min_slot(blocks, candidates, lambda b: b.load_order)


class LRUReplacement:
    """Evict the block touched least recently; an install counts as a touch."""

    def choose(self, blocks: Sequence[CacheBlock], candidates: Sequence[int]) -> int:
        return _min_slot(blocks, candidates, lambda b: b.last_access_time)


class LFUReplacement:
    """Evict the block with the fewest accesses; ties go to the lowest slot."""

    def choose(self, blocks: Sequence[CacheBlock], candidates: Sequence[int]) -> int:
        return _min_slot(blocks, candidates, lambda b: b.access_frequency)


class RandomReplacement:
    """Random replacement picks a uniformly random candidate.

    The random source is injected so tests and side-by-side panels can seed
    it independently.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng if rng is not None else random.Random()

    def choose(self, blocks: Sequence[CacheBlock], candidates: Sequence[int]) -> int:
        return self.rng.choice(list(candidates))


def make_policy(policy, rng: Optional[random.Random] = None):
    """Build the chooser for a `ReplacementPolicy` (or its name)."""
    policy = ReplacementPolicy.parse(policy)
    if policy is ReplacementPolicy.FIFO:
        return FIFOReplacement()
    if policy is ReplacementPolicy.LRU:
        return LRUReplacement()
    if policy is ReplacementPolicy.LFU:
        return LFUReplacement()
    return RandomReplacement(rng)


def select_victim(blocks: Sequence[CacheBlock], candidates: Sequence[int], chooser) -> int:
    """Pick the slot to fill on a miss.

    The lowest-indexed empty candidate is used first; only when every
    candidate is occupied is the replacement policy consulted.
    """
    if not candidates:
        raise ValueError("no candidate slots to choose from")
    for slot in candidates:
        if blocks[slot].is_empty:
            return slot
    if len(candidates) == 1:
        # direct mapping: the slot is forced
        return candidates[0]
    return chooser.choose(blocks, candidates)


__all__ = [
    "FIFOReplacement",
    "LRUReplacement",
    "LFUReplacement",
    "RandomReplacement",
    "make_policy",
    "select_victim",
]
