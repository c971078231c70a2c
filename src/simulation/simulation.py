"""Simulation drivers used by the CLI (and by any front end).

`Simulation` turns user input into addresses and feeds them to one
`CacheSimulator`, keeping the main-memory window in step.
`Comparison` drives two independent simulations with the same input so
two mapping/replacement combinations can be compared side by side.
"""
import logging
import random
import re
from typing import Iterable, List, Optional, Union

from src.core.config import CacheConfig
from src.core.errors import InvalidAddress
from src.core.main_memory import MainMemoryWindow
from src.core.simulator import CacheSimulator, SimulatorState

logger = logging.getLogger(__name__)

SCENARIOS = ('Matrix Traversal', 'Random Access', 'Conflict')

_HEX_DIGITS = set('abcdefABCDEF')


def parse_address(token: str) -> int:
    """Parse one address token.

    "0x1f" and tokens containing hex letters ("1f") are hexadecimal,
    anything else is decimal.
    """
    s = token.strip()
    try:
        if s.startswith('0x') or s.startswith('0X'):
            return int(s[2:], 16)
        if any(c in _HEX_DIGITS for c in s):
            return int(s, 16)
        return int(s, 10)
    except ValueError:
        raise InvalidAddress(token, message=f"cannot parse address {token!r}") from None


def parse_addresses(text: str) -> List[int]:
    """Split comma/whitespace separated input into addresses."""
    return [parse_address(tok) for tok in re.split(r'[,\s]+', text.strip()) if tok]


def generate_scenario(name: str, capacity: int = 8, seed: Optional[int] = None) -> List[int]:
    # Produce a list of addresses for predefined scenarios
    if name == 'Matrix Traversal':
        N = 10
        seq = []
        for i in range(N):
            for j in range(N):
                seq.append(i * N + j)
        return seq
    elif name == 'Random Access':
        rng = random.Random(seed)
        return [rng.randint(0, 255) for _ in range(16)]
    elif name == 'Conflict':
        # every address maps to index 0 under direct mapping
        return [k * capacity for k in range(4)] * 3
    else:
        # Fallback: interleaved instruction / data stream
        logger.warning("unknown scenario %r, using interleaved instruction/data stream", name)
        instr = list(range(0, 32))
        data = [100 + (i % 8) for i in range(32)]
        seq = []
        for i in range(max(len(instr), len(data))):
            if i < len(instr):
                seq.append(instr[i])
            if i < len(data):
                seq.append(data[i])
        return seq


class Simulation:
    def __init__(self, config: Optional[CacheConfig] = None, *, memory_size: int = 32,
                 seed: Optional[int] = None, name: str = '', **overrides):
        self.name = name
        self.simulator = CacheSimulator(config, seed=seed, **overrides)
        self.memory = MainMemoryWindow(memory_size)

    @property
    def config(self) -> CacheConfig:
        return self.simulator.config

    def state(self) -> SimulatorState:
        return self.simulator.snapshot()

    def configure(self, config: Optional[CacheConfig] = None, **overrides) -> SimulatorState:
        # a new configuration starts from an empty cache and an empty memory panel
        self.memory.reset()
        return self.simulator.configure(config, **overrides)

    def reset(self) -> SimulatorState:
        self.memory.reset()
        return self.simulator.reset()

    def submit(self, address: int) -> SimulatorState:
        # the memory window is updated against the cache contents *before* the access
        self.simulator.validate_address(address)
        self.memory.observe(address, self.simulator.cache.resident_addresses())
        return self.simulator.process(address)

    def run(self, items: Union[str, Iterable[Union[int, str]]], num_passes: int = 1) -> List[SimulatorState]:
        """Process `items` `num_passes` times; cache state persists across runs."""
        if isinstance(items, str):
            addresses = parse_addresses(items)
        else:
            addresses = [it if isinstance(it, int) else parse_address(it) for it in items]
        results = []
        for _ in range(num_passes):
            for address in addresses:
                results.append(self.submit(address))
        return results

    def run_scenario(self, name: str, num_passes: int = 1, seed: Optional[int] = None) -> List[SimulatorState]:
        seq = generate_scenario(name, capacity=self.config.cache_capacity, seed=seed)
        logger.info("running scenario %r (%d addresses, %d passes)", name, len(seq), num_passes)
        return self.run(seq, num_passes=num_passes)


class Comparison:
    """Two independent simulations fed the same address stream."""

    def __init__(self, left: Optional[Simulation] = None, right: Optional[Simulation] = None):
        self.left = left or Simulation(name='left', mapping_strategy='direct', replacement_policy='FIFO')
        self.right = right or Simulation(name='right', mapping_strategy='fully-associative',
                                         replacement_policy='LRU')

    @property
    def panels(self):
        return (self.left, self.right)

    def submit(self, address: int):
        # validate against both first so a rejected address touches neither panel
        for panel in self.panels:
            panel.simulator.validate_address(address)
        return tuple(panel.submit(address) for panel in self.panels)

    def run(self, items, num_passes: int = 1):
        if isinstance(items, str):
            items = parse_addresses(items)
        addresses = [it if isinstance(it, int) else parse_address(it) for it in items]
        results = []
        for _ in range(num_passes):
            for address in addresses:
                results.append(self.submit(address))
        return results

    def reset(self):
        return tuple(panel.reset() for panel in self.panels)

    def summary(self):
        """Per-panel configuration and statistics, keyed by panel name.

        Unnamed panels are keyed by position; a name the left panel already
        took gets the position appended.
        """
        out = {}
        for position, panel in zip(("left", "right"), self.panels):
            key = panel.name or position
            if key in out:
                key = f"{key} ({position})"
            cfg = panel.config
            out[key] = {
                'mapping_strategy': cfg.mapping_strategy.value,
                'replacement_policy': cfg.replacement_policy.value,
                **panel.state().stats.to_dict(),
            }
        return out
