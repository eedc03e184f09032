"""Core data structures for :mod:`stake_yield_lab`.

Models, repositories, constants and errors live here so components can
share them without importing the engine facade.
"""

from __future__ import annotations

from . import constants, errors
from .models import ClaimReceipt, LockTier, MarketMaker, Pool, Position
from .repositories import PoolRepository, PositionRepository

__all__ = [
    "ClaimReceipt",
    "LockTier",
    "MarketMaker",
    "Pool",
    "Position",
    "PoolRepository",
    "PositionRepository",
    "constants",
    "errors",
]
