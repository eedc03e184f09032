"""Per-participant stake accounting: stake, unstake, claim.

Every mutating call settles the pool accumulator first, then folds the
participant's accrued share into ``pending_rewards`` using the amount held
*before* the mutation, and finally re-prices ``reward_debt`` against the new
amount.
"""

from __future__ import annotations

import logging

from .accumulator import PoolAccumulator
from .collaborators import Custody, FundingSource
from .core.constants import ACC_PRECISION, BASIS_POINTS
from .core.errors import (
    BelowMinimumStake,
    FundingFailure,
    InsufficientBalance,
    NoRewardsDue,
    RateLimited,
    StillLocked,
)
from .core.models import ClaimReceipt, LockTier, Pool, Position
from .core.repositories import PoolRepository, PositionRepository
from .gate import OperationalGate
from .journal import Journal

logger = logging.getLogger(__name__)


def accrued(amount: int, acc_reward_per_share: int) -> int:
    return amount * acc_reward_per_share // ACC_PRECISION


class StakeLedger:
    def __init__(
        self,
        accumulator: PoolAccumulator,
        gate: OperationalGate,
        custody: Custody,
        funding: FundingSource,
        *,
        min_stake: int,
        min_stake_interval: int,
    ) -> None:
        self.accumulator = accumulator
        self.gate = gate
        self.custody = custody
        self.funding = funding
        self.min_stake = min_stake
        self.min_stake_interval = min_stake_interval
        self.positions = PositionRepository()
        self.total_staked = 0
        # participant -> last stake time, across all pools
        self.last_stake_time: dict[str, int] = {}

    @property
    def pools(self) -> PoolRepository:
        return self.accumulator.pools

    def checkpoint(self, journal: Journal, pool_id: int, participant: str) -> None:
        """Register the ledger state one operation on ``(pool_id, participant)`` may change.

        The pool itself is registered by :meth:`PoolAccumulator.checkpoint`.
        """

        journal.keep(self, only=("total_staked", "min_stake", "min_stake_interval"))
        journal.keep_entry(self.last_stake_time, participant)
        position = self.positions.get(pool_id, participant)
        if position is None:
            journal.on_undo(lambda: self.positions.discard(pool_id, participant))
        else:
            journal.keep(position)

    def settle_participant(self, pool: Pool, position: Position) -> int:
        """Move the participant's newly accrued share into ``pending_rewards``."""

        pending = accrued(position.amount, pool.acc_reward_per_share) - position.reward_debt
        if pending > 0:
            position.pending_rewards += pending
        position.reward_debt = accrued(position.amount, pool.acc_reward_per_share)
        return max(pending, 0)

    def _settle(self, pool: Pool, position: Position, now: int) -> None:
        self.accumulator.settle(pool, now)
        self.settle_participant(pool, position)

    def stake(self, pool_id: int, participant: str, amount: int, lock_tier: int, now: int) -> Position:
        pool = self.pools.get_active(pool_id)
        self.gate.require_staking()
        if amount < self.min_stake:
            raise BelowMinimumStake(f"stake of {amount} is below the minimum of {self.min_stake}")
        tier = LockTier.of(lock_tier)
        last = self.last_stake_time.get(participant)
        if last is not None and now - last < self.min_stake_interval:
            raise RateLimited(
                f"{participant} staked {now - last}s ago; wait {self.min_stake_interval}s between stakes"
            )

        position = self.positions.get_or_create(pool_id, participant)
        self._settle(pool, position, now)

        if not self.custody.transfer_from(pool.position_token, participant, self.custody.address, amount):
            raise FundingFailure(f"could not take {amount} {pool.position_token} from {participant}")

        position.amount += amount
        # A new stake replaces the previous tier, even a longer one.
        position.lock_tier = tier.tier
        position.tier_multiplier = tier.multiplier
        if tier.duration > 0:
            position.lock_end_time = now + tier.duration
        position.reward_debt = accrued(position.amount, pool.acc_reward_per_share)
        pool.total_staked += amount
        self.total_staked += amount
        self.last_stake_time[participant] = now

        logger.info(
            "%s staked %s in pool %s (tier %s, locked until %s)",
            participant,
            amount,
            pool_id,
            tier.tier,
            position.lock_end_time,
        )
        return position

    def unstake(self, pool_id: int, participant: str, amount: int, now: int) -> int:
        pool = self.pools.get(pool_id)
        self.gate.require_not_paused()
        position = self.positions.get(pool_id, participant)
        if amount <= 0:
            raise InsufficientBalance("unstake amount must be positive")
        if position is None or amount > position.amount:
            held = position.amount if position else 0
            raise InsufficientBalance(f"{participant} holds {held} in pool {pool_id}, cannot unstake {amount}")
        if position.is_locked(now):
            raise StillLocked(f"position locked until {position.lock_end_time}")

        self._settle(pool, position, now)
        position.amount -= amount
        position.reward_debt = accrued(position.amount, pool.acc_reward_per_share)
        pool.total_staked -= amount
        self.total_staked -= amount

        if not self.custody.transfer(pool.position_token, participant, amount):
            raise FundingFailure(f"could not return {amount} {pool.position_token} to {participant}")

        logger.info("%s unstaked %s from pool %s", participant, amount, pool_id)
        return amount

    def claim(self, pool_id: int, participant: str, now: int) -> ClaimReceipt:
        self.gate.require_claiming()
        pool = self.pools.get(pool_id)
        position = self.positions.get(pool_id, participant)
        if position is None:
            raise NoRewardsDue(f"{participant} has no position in pool {pool_id}")

        self._settle(pool, position, now)
        settled = position.pending_rewards
        payout = settled * position.tier_multiplier // BASIS_POINTS
        if payout == 0:
            raise NoRewardsDue(f"nothing to claim for {participant} in pool {pool_id}")

        position.pending_rewards = 0
        position.reward_debt = accrued(position.amount, pool.acc_reward_per_share)
        position.total_earned += payout
        position.last_claim_time = now

        if not self.funding.request_funds(payout, participant):
            raise FundingFailure(f"treasury refused payout of {payout} to {participant}")

        logger.info(
            "%s claimed %s from pool %s (settled=%s, multiplier=%s)",
            participant,
            payout,
            pool_id,
            settled,
            position.tier_multiplier,
        )
        return ClaimReceipt(
            pool_id=pool_id,
            participant=participant,
            settled=settled,
            payout=payout,
            tier_multiplier=position.tier_multiplier,
            timestamp=now,
        )

    def emergency_withdraw(self, pool_id: int, participant: str, now: int) -> int:
        """Return the whole stake while paused, ignoring locks and forfeiting rewards."""

        self.gate.require_paused()
        pool = self.pools.get(pool_id)
        position = self.positions.get(pool_id, participant)
        if position is None or position.amount == 0:
            raise InsufficientBalance(f"{participant} has nothing staked in pool {pool_id}")

        self.accumulator.settle(pool, now)
        amount = position.amount
        forfeited = position.pending_rewards + max(
            accrued(amount, pool.acc_reward_per_share) - position.reward_debt, 0
        )
        position.amount = 0
        position.reward_debt = 0
        position.pending_rewards = 0
        pool.total_staked -= amount
        self.total_staked -= amount

        if not self.custody.transfer(pool.position_token, participant, amount):
            raise FundingFailure(f"could not return {amount} {pool.position_token} to {participant}")

        logger.warning(
            "%s emergency-withdrew %s from pool %s, forfeiting %s rewards",
            participant,
            amount,
            pool_id,
            forfeited,
        )
        return amount

    def pending_rewards(self, pool_id: int, participant: str, now: int) -> int:
        """Pre-multiplier rewards the participant could claim at ``now``."""

        pool = self.pools.get(pool_id)
        position = self.positions.get(pool_id, participant)
        if position is None:
            return 0
        acc = self.accumulator.projected_acc(pool, now)
        fresh = accrued(position.amount, acc) - position.reward_debt
        return position.pending_rewards + max(fresh, 0)

    def claimable(self, pool_id: int, participant: str, now: int) -> int:
        position = self.positions.get(pool_id, participant)
        if position is None:
            return 0
        return self.pending_rewards(pool_id, participant, now) * position.tier_multiplier // BASIS_POINTS


__all__ = ["StakeLedger", "accrued"]
