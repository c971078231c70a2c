"""Simulation package shim.

This module exposes the drivers at `src.simulation` so callers can use
`from src.simulation import Simulation, Comparison`.
"""
from .simulation import Comparison, Simulation

__all__ = ["Simulation", "Comparison"]
