"""Data models for pools, staked positions and market makers.

Amounts are plain ``int`` token base units and timestamps are unix seconds.
``Pool``, ``Position`` and ``MarketMaker`` are mutable records owned by the
engine; ``LockTier`` and ``ClaimReceipt`` are immutable values handed out to
callers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from .constants import BASIS_POINTS, LOCK_TIERS, MIN_VOLUME_MULTIPLIER
from .errors import InvalidTier


def _iso(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=UTC).isoformat() if timestamp else ""


@dataclass(frozen=True)
class LockTier:
    """Lock commitment chosen at stake time."""

    tier: int
    multiplier: int  # basis points applied at claim time
    duration: int  # seconds added to ``now``; 0 keeps the existing lock

    @classmethod
    def of(cls, tier: int) -> "LockTier":
        try:
            multiplier, duration = LOCK_TIERS[tier]
        except KeyError:
            raise InvalidTier(f"unknown lock tier {tier!r}") from None
        return cls(tier=tier, multiplier=multiplier, duration=duration)


@dataclass
class Pool:
    """Reward accounting state for one staking position token."""

    pool_id: int
    position_token: str
    market: str
    allocation_weight: int
    last_settle_time: int
    created_at: int
    is_bootstrap: bool = False
    is_active: bool = True
    acc_reward_per_share: int = 0
    total_staked: int = 0
    base_apy: int = 0  # display only, basis points
    volume_multiplier: int = MIN_VOLUME_MULTIPLIER
    daily_volume: int = 0
    price_stability: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["last_settle_iso"] = _iso(self.last_settle_time)
        return data


@dataclass
class Position:
    """One participant's stake in one pool."""

    pool_id: int
    participant: str
    amount: int = 0
    reward_debt: int = 0
    pending_rewards: int = 0
    lock_tier: int = 0
    tier_multiplier: int = BASIS_POINTS
    lock_end_time: int = 0
    total_earned: int = 0
    last_claim_time: int = 0

    def is_locked(self, now: int) -> bool:
        return now < self.lock_end_time

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["lock_end_iso"] = _iso(self.lock_end_time)
        return data


@dataclass
class MarketMaker:
    """Registered liquidity provider eligible for volume rebates."""

    participant: str
    volume_target: int
    spread_target: int
    rebate_rate: int  # basis points of fees paid back
    registered_at: int
    is_active: bool = True
    total_volume: int = 0
    total_rebates: int = 0
    gas_subsidy: int = 0
    last_activity_time: int = 0
    daily_volume: dict[int, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("daily_volume")
        data["active_days"] = len(self.daily_volume)
        return data


@dataclass(frozen=True)
class ClaimReceipt:
    """Outcome of a successful claim."""

    pool_id: int
    participant: str
    settled: int  # before the tier multiplier
    payout: int
    tier_multiplier: int
    timestamp: int


__all__ = ["LockTier", "Pool", "Position", "MarketMaker", "ClaimReceipt"]
