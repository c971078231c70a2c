"""Core cache storage and address mapping.

The cache is a flat row of `cache_capacity` block slots. The mapping
strategy decides which slots an address may live in:

- direct:            index = address % cache_capacity, one candidate slot
- set-associative:   set = address % (cache_capacity // set_size),
                     candidates are slots [set*set_size, set*set_size + set_size)
- fully-associative: every slot is a candidate

The tag is what remains of the address above the index and offset fields:
  offset = address % 2**offset_bits
  tag = address >> (index_bits + offset_bits)

Slots are never reallocated, only overwritten; policy bookkeeping
(load_order / last_access_time / access_frequency) lives on the blocks and
is read by `src.core.replacement_policies`.
"""

from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional, Tuple
import logging

from src.core.config import CacheConfig, MappingStrategy

logger = logging.getLogger(__name__)


@dataclass
class CacheBlock:
    """container for one cache slot.

    Fields:
    - occupied_address: the resident address, None while the slot is empty
    - tag: tag bits of the resident address
    - load_order: tick at which the block was installed (FIFO)
    - last_access_time: tick of the last install or hit (LRU)
    - access_frequency: 1 on install, +1 per hit (LFU)
    """

    occupied_address: Optional[int] = None
    tag: Optional[int] = None
    load_order: int = 0
    last_access_time: int = 0
    access_frequency: int = 0

    @property
    def is_empty(self) -> bool:
        return self.occupied_address is None

    def freeze(self) -> "BlockView":
        return BlockView(self.occupied_address, self.tag, self.load_order,
                         self.last_access_time, self.access_frequency)


@dataclass(frozen=True)
class BlockView:
    """Read-only copy of a `CacheBlock`, as held by simulator snapshots."""

    occupied_address: Optional[int] = None
    tag: Optional[int] = None
    load_order: int = 0
    last_access_time: int = 0
    access_frequency: int = 0

    @property
    def is_empty(self) -> bool:
        return self.occupied_address is None


class AddressParts(NamedTuple):
    tag: int
    set_or_index: Optional[int]
    offset: int


class Cache:
    """Block slots plus the address mapping of one configuration."""

    def __init__(self, config: CacheConfig):
        self.config = config
        self.blocks: List[CacheBlock] = [CacheBlock() for _ in range(config.cache_capacity)]

    def __len__(self):
        return len(self.blocks)

    def __iter__(self) -> Iterator[CacheBlock]:
        return iter(self.blocks)

    def decompose(self, address: int) -> AddressParts:
        """Split an address into (tag, set_or_index, offset).

        Depends only on the address and the configuration, never on what the
        cache currently holds.
        """
        cfg = self.config
        offset = address & ((1 << cfg.offset_bits) - 1)
        if cfg.mapping_strategy is MappingStrategy.DIRECT:
            set_or_index = address % cfg.cache_capacity
        elif cfg.mapping_strategy is MappingStrategy.SET_ASSOCIATIVE:
            set_or_index = address % cfg.num_sets
        else:
            set_or_index = None
        tag = address >> (cfg.index_bits + cfg.offset_bits)
        return AddressParts(tag, set_or_index, offset)

    def candidate_slots(self, address: int, parts: Optional[AddressParts] = None) -> range:
        """Slots the address may occupy: the search domain for lookup and victim selection."""
        cfg = self.config
        if parts is None:
            parts = self.decompose(address)
        if cfg.mapping_strategy is MappingStrategy.DIRECT:
            return range(parts.set_or_index, parts.set_or_index + 1)
        if cfg.mapping_strategy is MappingStrategy.SET_ASSOCIATIVE:
            start = parts.set_or_index * cfg.set_size
            return range(start, start + cfg.set_size)
        return range(cfg.cache_capacity)

    def locate(self, address: int, parts: Optional[AddressParts] = None) -> Optional[int]:
        """Return the slot holding `address`, or None on a miss."""
        for slot in self.candidate_slots(address, parts):
            if self.blocks[slot].occupied_address == address:
                return slot
        return None

    def touch(self, slot: int, tick: int) -> CacheBlock:
        # hit: refresh recency and frequency, never the address or tag
        block = self.blocks[slot]
        block.last_access_time = tick
        block.access_frequency += 1
        return block

    def install(self, slot: int, address: int, tag: int, tick: int) -> Optional[int]:
        """Overwrite `slot` with `address`; return the address it evicted, if any."""
        block = self.blocks[slot]
        evicted = block.occupied_address
        block.occupied_address = address
        block.tag = tag
        block.load_order = tick
        block.last_access_time = tick
        block.access_frequency = 1
        if evicted is not None:
            logger.debug("slot %d: evicted address %d for %d", slot, evicted, address)
        return evicted

    def occupied_count(self) -> int:
        return sum(1 for b in self.blocks if not b.is_empty)

    def resident_addresses(self) -> List[int]:
        return [b.occupied_address for b in self.blocks if not b.is_empty]

    def reset(self):
        """Empty every slot in place."""
        for b in self.blocks:
            b.occupied_address = None
            b.tag = None
            b.load_order = 0
            b.last_access_time = 0
            b.access_frequency = 0

    def frozen_blocks(self) -> Tuple[BlockView, ...]:
        return tuple(b.freeze() for b in self.blocks)


__all__ = ["CacheBlock", "BlockView", "AddressParts", "Cache"]
