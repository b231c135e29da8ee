"""Lending policy engine: borrow, reserve and return rules."""

from ..locks import KeyedLock
from .clock import Clock, FixedClock, system_clock
from .service import LendingService

__all__ = [
    "Clock",
    "FixedClock",
    "KeyedLock",
    "LendingService",
    "system_clock",
]
