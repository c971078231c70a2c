"""CacheSimulator coordinates cache accesses, miss classification and statistics.

Every `process()` / `reset()` / `configure()` call returns a fresh
`SimulatorState` snapshot; callers never get a reference to the live
blocks, so a UI can diff two states without aliasing surprises.
History and seen addresses are views over append-only logs, which keeps a
snapshot proportional to the cache size rather than the trace length.
"""
import logging
import random
from collections.abc import Sequence, Set as AbstractSet
from dataclasses import dataclass, replace
from enum import Enum
from itertools import islice
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from src.core.cache import BlockView, Cache
from src.core.config import CacheConfig
from src.core.errors import InvalidAddress, InvalidConfiguration
from src.core.replacement_policies import make_policy, select_victim
from src.data.stats_export import Statistics, StatsSnapshot

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    HIT = "hit"
    MISS = "miss"


class MissKind(str, Enum):
    COMPULSORY = "compulsory"
    CAPACITY = "capacity"
    BOTH = "both"


def classify_miss(is_first_time: bool, caused_eviction: bool) -> MissKind:
    """Map (first access?, evicted something?) to a miss kind.

    A miss on an address seen before that did not evict anything cannot
    happen with a consistent cache state; it is still reported as
    compulsory, matching the visualizer's accounting.
    """
    if is_first_time and caused_eviction:
        return MissKind.BOTH
    if caused_eviction:
        return MissKind.CAPACITY
    return MissKind.COMPULSORY


@dataclass(frozen=True)
class AccessRecord:
    address: int
    tag: int
    set_or_index: Optional[int]
    offset: int
    outcome: Outcome
    miss_kind: Optional[MissKind]
    sequence_number: int
    slot: int
    evicted_address: Optional[int] = None

    @property
    def is_hit(self) -> bool:
        return self.outcome is Outcome.HIT


class AccessHistory(Sequence):
    """Most-recent-first view over the first `length` records of an append-only log.

    The simulator only ever appends to the log (reset starts a new one), so
    a view taken earlier keeps showing the same records without a copy.
    """

    __slots__ = ("_log", "_length")

    def __init__(self, log: Sequence = (), length: Optional[int] = None):
        self._log = log
        self._length = len(log) if length is None else length

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, i):
        if isinstance(i, slice):
            return tuple(self[j] for j in range(*i.indices(self._length)))
        if i < 0:
            i += self._length
        if not 0 <= i < self._length:
            raise IndexError("history index out of range")
        return self._log[self._length - 1 - i]

    def __iter__(self) -> Iterator[AccessRecord]:
        for j in range(self._length - 1, -1, -1):
            yield self._log[j]

    def __reversed__(self) -> Iterator[AccessRecord]:
        for j in range(self._length):
            yield self._log[j]

    def __eq__(self, other):
        if not isinstance(other, (AccessHistory, tuple, list)):
            return NotImplemented
        return len(self) == len(other) and all(a == b for a, b in zip(self, other))

    def __hash__(self):
        return hash(tuple(self))

    def __repr__(self):
        return f"AccessHistory({list(self)!r})"


class SeenAddresses(AbstractSet):
    """Set view over the first `length` distinct addresses, in first-seen order."""

    __slots__ = ("_order", "_first_seen", "_length")

    def __init__(self, order: Sequence = (), first_seen: Optional[Dict[int, int]] = None,
                 length: Optional[int] = None):
        self._order = order
        self._first_seen = first_seen if first_seen is not None else {a: i for i, a in enumerate(order)}
        self._length = len(order) if length is None else length

    def __contains__(self, address) -> bool:
        pos = self._first_seen.get(address)
        return pos is not None and pos < self._length

    def __iter__(self) -> Iterator[int]:
        return islice(self._order, self._length)

    def __len__(self) -> int:
        return self._length

    def __hash__(self):
        return self._hash()

    def __repr__(self):
        return f"SeenAddresses({set(self)!r})"


@dataclass(frozen=True)
class SimulatorState:
    config: CacheConfig
    blocks: Tuple[BlockView, ...]
    seen_addresses: SeenAddresses
    stats: StatsSnapshot
    history: AccessHistory
    tick: int = 0

    @property
    def occupied_count(self) -> int:
        return sum(1 for b in self.blocks if not b.is_empty)

    @property
    def resident_addresses(self) -> List[int]:
        return [b.occupied_address for b in self.blocks if not b.is_empty]

    @property
    def last_access(self) -> Optional[AccessRecord]:
        return self.history[0] if self.history else None

    @property
    def hit_rate(self) -> float:
        return self.stats.hit_rate


class CacheSimulator:
    """One simulated cache.

    Parameters:
    - config: a `CacheConfig`; keyword overrides are applied on top of it
      (or on top of the defaults when no config is given)
    - rng / seed: random source for the Random policy; each instance owns
      its own so side-by-side simulators never share state
    """

    def __init__(self, config: Optional[CacheConfig] = None, *, rng: Optional[random.Random] = None,
                 seed: Optional[int] = None, **overrides):
        if rng is None:
            rng = random.Random(seed)
        self.rng = rng
        self.stats = Statistics()
        self.config = None
        self.cache = None
        self.configure(config, **overrides)

    def configure(self, config: Optional[CacheConfig] = None, **overrides) -> SimulatorState:
        """Install a new configuration and reset all state."""
        base = config if config is not None else (self.config or CacheConfig())
        if overrides:
            try:
                base = replace(base, **overrides)
            except TypeError as e:
                raise InvalidConfiguration(str(e)) from e
        self.config = base
        self.cache = Cache(base)
        self._policy = make_policy(base.replacement_policy, self.rng)
        logger.info(
            "configured %s cache: %d blocks, set size %d, %d-bit addresses, %d offset bits, policy %s",
            base.mapping_strategy.value, base.cache_capacity, base.set_size,
            base.address_bits, base.offset_bits, base.replacement_policy.value,
        )
        return self.reset()

    def reset(self) -> SimulatorState:
        self.cache.reset()
        self.stats.reset()
        self._seen_order: List[int] = []
        self._first_seen: Dict[int, int] = {}
        self._history: List[AccessRecord] = []
        self._tick = 0
        logger.debug("simulator reset")
        return self.snapshot()

    def snapshot(self) -> SimulatorState:
        return SimulatorState(
            config=self.config,
            blocks=self.cache.frozen_blocks(),
            seen_addresses=SeenAddresses(self._seen_order, self._first_seen, len(self._seen_order)),
            stats=self.stats.snapshot(),
            history=AccessHistory(self._history, len(self._history)),
            tick=self._tick,
        )

    def validate_address(self, address) -> int:
        if isinstance(address, bool) or not isinstance(address, int):
            raise InvalidAddress(address, self.config.max_address,
                                 f"address must be an int, got {type(address).__name__}")
        if address < 0 or address > self.config.max_address:
            raise InvalidAddress(address, self.config.max_address)
        return address

    def process(self, address: int) -> SimulatorState:
        """Run one access through the cache and return the resulting state."""
        self.validate_address(address)
        self._tick += 1
        tick = self._tick

        parts = self.cache.decompose(address)
        slot = self.cache.locate(address, parts)

        if slot is not None:
            self.cache.touch(slot, tick)
            self.stats.record_hit()
            record = AccessRecord(address, parts.tag, parts.set_or_index, parts.offset,
                                  Outcome.HIT, None, tick, slot)
            logger.debug("#%d address %d: hit in slot %d", tick, address, slot)
        else:
            candidates = self.cache.candidate_slots(address, parts)
            slot = select_victim(self.cache.blocks, candidates, self._policy)
            is_first_time = address not in self._first_seen
            evicted = self.cache.install(slot, address, parts.tag, tick)
            kind = classify_miss(is_first_time, evicted is not None)
            self.stats.record_miss(
                compulsory=kind in (MissKind.COMPULSORY, MissKind.BOTH),
                capacity=kind in (MissKind.CAPACITY, MissKind.BOTH),
            )
            if is_first_time:
                self._first_seen[address] = len(self._seen_order)
                self._seen_order.append(address)
            record = AccessRecord(address, parts.tag, parts.set_or_index, parts.offset,
                                  Outcome.MISS, kind, tick, slot, evicted)
            logger.debug("#%d address %d: %s miss, placed in slot %d", tick, address, kind.value, slot)

        self._history.append(record)
        return self.snapshot()

    def run_all(self, addresses: Iterable[int],
                callback: Optional[Callable[[SimulatorState], None]] = None) -> SimulatorState:
        state = self.snapshot()
        for address in addresses:
            state = self.process(address)
            if callback:
                callback(state)
        return state

    def block_for(self, address: int) -> Optional[int]:
        """Slot currently holding `address`, or None."""
        return self.cache.locate(address)
