"""Exceptions raised by the cache simulator core.

Configuration problems are reported when a simulator is built or
reconfigured; address problems are reported by `process()`. Nothing is
clamped silently.
"""
from typing import Optional


class CacheSimulatorError(Exception):
    """Base class for every error raised by the simulator."""


class InvalidConfiguration(CacheSimulatorError, ValueError):
    pass


class InvalidAddress(CacheSimulatorError, IndexError):
    def __init__(self, address, max_address: Optional[int] = None, message: Optional[str] = None):
        self.address = address
        self.max_address = max_address
        if message is None:
            if max_address is None:
                message = f"invalid address {address!r}"
            else:
                message = f"address {address!r} out of range [0, {max_address}]"
        super().__init__(message)


__all__ = ["CacheSimulatorError", "InvalidConfiguration", "InvalidAddress"]
