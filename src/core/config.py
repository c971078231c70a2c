"""Cache configuration.

A `CacheConfig` is fixed for the lifetime of a simulator state. Changing any
field means building a new config and resetting the simulator (see
`CacheSimulator.configure`).

Defaults follow the interactive visualizer: 8 blocks, sets of 2 blocks,
a 20-bit address space and 32-byte blocks (5 offset bits).
"""
import json
import logging
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Dict

from src.core.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


class _NamedEnum(str, Enum):
    """String enum that also accepts loose spellings ("Fully_Associative")."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace("_", "-").replace(" ", "-")
            for member in cls:
                if member.value.lower() == key or member.name.lower().replace("_", "-") == key:
                    return member
        return None

    @classmethod
    def parse(cls, value):
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise InvalidConfiguration(f"unknown {cls.__name__} {value!r} (expected one of: {choices})") from None

    def __str__(self):
        return self.value


class MappingStrategy(_NamedEnum):
    DIRECT = "direct"
    FULLY_ASSOCIATIVE = "fully-associative"
    SET_ASSOCIATIVE = "set-associative"


class ReplacementPolicy(_NamedEnum):
    FIFO = "FIFO"
    LRU = "LRU"
    LFU = "LFU"
    RANDOM = "Random"


@dataclass(frozen=True)
class CacheConfig:
    """Geometry and policies of one simulated cache.

    Fields:
    - cache_capacity: number of block slots
    - set_size: blocks per set (set-associative mapping only); must divide
      cache_capacity
    - address_bits / offset_bits: width of an address and of its block offset
    - mapping_strategy: how an address picks its candidate slots
    - replacement_policy: how a victim is picked among occupied candidates
    """

    cache_capacity: int = 8
    set_size: int = 2
    address_bits: int = 20
    offset_bits: int = 5
    mapping_strategy: MappingStrategy = MappingStrategy.DIRECT
    replacement_policy: ReplacementPolicy = ReplacementPolicy.FIFO

    def __post_init__(self):
        # frozen dataclass: coerce through object.__setattr__
        object.__setattr__(self, "mapping_strategy", MappingStrategy.parse(self.mapping_strategy))
        object.__setattr__(self, "replacement_policy", ReplacementPolicy.parse(self.replacement_policy))
        for name in ("cache_capacity", "set_size", "address_bits", "offset_bits"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidConfiguration(f"{name} must be an int, got {type(value).__name__}")
        if self.cache_capacity < 1:
            raise InvalidConfiguration(f"cache_capacity must be >= 1, got {self.cache_capacity}")
        if self.set_size < 1:
            raise InvalidConfiguration(f"set_size must be >= 1, got {self.set_size}")
        if self.cache_capacity % self.set_size != 0:
            raise InvalidConfiguration(
                f"set_size {self.set_size} does not evenly divide cache_capacity {self.cache_capacity}"
            )
        if self.address_bits < 0 or self.offset_bits < 0:
            raise InvalidConfiguration("address_bits and offset_bits must be non-negative")
        if self.offset_bits > self.address_bits:
            raise InvalidConfiguration(
                f"offset_bits ({self.offset_bits}) cannot exceed address_bits ({self.address_bits})"
            )
        if self.index_bits + self.offset_bits > self.address_bits:
            logger.warning(
                "index (%d bits) and offset (%d bits) exceed the %d-bit address; every tag will be 0",
                self.index_bits, self.offset_bits, self.address_bits,
            )

    @property
    def num_sets(self) -> int:
        if self.mapping_strategy is MappingStrategy.SET_ASSOCIATIVE:
            return self.cache_capacity // self.set_size
        if self.mapping_strategy is MappingStrategy.DIRECT:
            return self.cache_capacity
        return 1

    @property
    def ways(self) -> int:
        """Candidate slots per address."""
        if self.mapping_strategy is MappingStrategy.SET_ASSOCIATIVE:
            return self.set_size
        if self.mapping_strategy is MappingStrategy.DIRECT:
            return 1
        return self.cache_capacity

    @property
    def index_bits(self) -> int:
        if self.mapping_strategy is MappingStrategy.FULLY_ASSOCIATIVE:
            return 0
        n = self.num_sets
        return (n - 1).bit_length() if n > 1 else 0

    @property
    def tag_bits(self) -> int:
        return max(0, self.address_bits - self.index_bits - self.offset_bits)

    @property
    def max_address(self) -> int:
        return (1 << self.address_bits) - 1

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["mapping_strategy"] = self.mapping_strategy.value
        d["replacement_policy"] = self.replacement_policy.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CacheConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise InvalidConfiguration(f"unknown configuration keys: {', '.join(unknown)}")
        return cls(**d)


def load_config(path: str) -> CacheConfig:
    """Load a `CacheConfig` from a JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as e:
        raise InvalidConfiguration(f"{path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidConfiguration(f"{path}: not valid JSON ({e})") from e
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"{path}: expected a JSON object, got {type(data).__name__}")
    config = CacheConfig.from_dict(data)
    logger.info("loaded cache configuration from %s: %s", path, config.to_dict())
    return config


__all__ = ["MappingStrategy", "ReplacementPolicy", "CacheConfig", "load_config"]
