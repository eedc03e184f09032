"""
StakeYieldLab: multi-pool staking reward accounting.

Design goals:
- Exact integer arithmetic (1e12 accumulator scale, 1e18 share scale); no floats
- "Reward per share" accumulator per pool, fed by a halving, capped emission schedule
- Lock tiers applied only at claim time, outside the emission cap
- Volume rebates and gas subsidies for registered market makers
- Custody, treasury, authorization and clock are injected protocols; no I/O here
"""

from __future__ import annotations

import logging

from . import reporting
from .accumulator import PoolAccumulator, dynamic_apy, volume_multiplier
from .collaborators import (
    AllowAll,
    Authorizer,
    Capability,
    Clock,
    Custody,
    FundingSource,
    InMemoryCustody,
    InMemoryTreasury,
    ManualClock,
    RoleAuthorizer,
    SystemClock,
)
from .config import EngineConfig, load_config, load_engine_config
from .core import ClaimReceipt, LockTier, MarketMaker, Pool, PoolRepository, Position, PositionRepository
from .core.errors import (
    BelowMinimumStake,
    CapacityExceeded,
    FundingFailure,
    InsufficientBalance,
    InvalidConfiguration,
    InvalidPool,
    InvalidTier,
    NoRewardsDue,
    OperationDisabled,
    RateLimited,
    StakingError,
    StillLocked,
    Unauthorized,
    UnknownParticipant,
)
from .emission import EmissionSchedule
from .engine import StakingEngine
from .gate import OperationalGate
from .journal import Journal
from .ledger import StakeLedger
from .rebates import RebateTracker

logger = logging.getLogger(__name__)

__all__ = [
    "StakingEngine",
    "EngineConfig",
    "load_config",
    "load_engine_config",
    "EmissionSchedule",
    "PoolAccumulator",
    "StakeLedger",
    "RebateTracker",
    "OperationalGate",
    "Journal",
    "dynamic_apy",
    "volume_multiplier",
    "reporting",
    # models
    "ClaimReceipt",
    "LockTier",
    "MarketMaker",
    "Pool",
    "PoolRepository",
    "Position",
    "PositionRepository",
    # collaborators
    "AllowAll",
    "Authorizer",
    "Capability",
    "Clock",
    "Custody",
    "FundingSource",
    "InMemoryCustody",
    "InMemoryTreasury",
    "ManualClock",
    "RoleAuthorizer",
    "SystemClock",
    # errors
    "StakingError",
    "InvalidPool",
    "BelowMinimumStake",
    "InsufficientBalance",
    "StillLocked",
    "NoRewardsDue",
    "OperationDisabled",
    "RateLimited",
    "FundingFailure",
    "CapacityExceeded",
    "Unauthorized",
    "InvalidConfiguration",
    "InvalidTier",
    "UnknownParticipant",
]
