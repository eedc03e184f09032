"""Per-pool reward accumulator ("reward per share") and pool multipliers."""

from __future__ import annotations

import logging

from .core.constants import (
    ACC_PRECISION,
    BASIS_POINTS,
    LOW_TVL_APY_BOOST,
    LOW_TVL_THRESHOLD,
    MAX_VOLUME_MULTIPLIER,
    MIN_VOLUME_MULTIPLIER,
    SHARE_PRECISION,
    STABILITY_BONUS,
    STABILITY_THRESHOLD,
    VOLUME_STEP,
    VOLUME_STEP_BONUS,
)
from .core.models import Pool
from .core.repositories import PoolRepository
from .emission import EmissionSchedule
from .journal import Journal

logger = logging.getLogger(__name__)


def volume_multiplier(volume: int, stability: int) -> int:
    """Translate fed volume and price stability into a basis-point multiplier.

    Starts at 1x, adds 10 bp per full 100k tokens of volume and 50 bp for a
    stability score above 9000, capped at 3x.
    """

    multiplier = MIN_VOLUME_MULTIPLIER + (max(volume, 0) // VOLUME_STEP) * VOLUME_STEP_BONUS
    if stability > STABILITY_THRESHOLD:
        multiplier += STABILITY_BONUS
    return min(multiplier, MAX_VOLUME_MULTIPLIER)


def dynamic_apy(pool: Pool, max_apy: int) -> int:
    """Display APY in basis points. Never used in reward math."""

    apy = pool.base_apy
    if pool.total_staked < LOW_TVL_THRESHOLD:
        apy += LOW_TVL_APY_BOOST
    return min(apy, max_apy)


class PoolAccumulator:
    """Advances ``acc_reward_per_share`` for pools against the emission schedule."""

    def __init__(self, schedule: EmissionSchedule, pools: PoolRepository) -> None:
        self.schedule = schedule
        self.pools = pools

    def bootstrapping(self, pool: Pool, now: int) -> bool:
        """Whether ``pool`` still earns the bootstrap multiplier at ``now``."""

        return pool.is_bootstrap and self.schedule.in_bootstrap(now)

    def checkpoint(self, journal: Journal, pool: Pool | None = None) -> None:
        """Register the emission counters and ``pool`` (or every pool) for rollback."""

        journal.keep(self.schedule)
        for target in [pool] if pool is not None else list(self.pools):
            journal.keep(target)

    def compute_reward(self, pool: Pool, elapsed: int, now: int) -> int:
        """Pre-tier reward owed to ``pool`` for ``elapsed`` seconds ending at ``now``."""

        total_weight = self.pools.total_allocation_weight()
        if total_weight == 0 or elapsed <= 0:
            return 0
        rate = self.schedule.current_rate(now)
        pool_share = pool.allocation_weight * SHARE_PRECISION // total_weight
        base = rate * elapsed * pool_share // SHARE_PRECISION
        if self.bootstrapping(pool, now):
            base = base * self.schedule.bootstrap_multiplier // BASIS_POINTS
        reward = base * pool.volume_multiplier // BASIS_POINTS
        return self.schedule.clamp(reward)

    def settle(self, pool: Pool, now: int) -> int:
        """Bring ``pool`` up to ``now``; returns the reward credited."""

        if now <= pool.last_settle_time:
            return 0
        if pool.is_bootstrap and not self.schedule.in_bootstrap(now):
            # The window never reopens.
            pool.is_bootstrap = False
        if pool.total_staked == 0:
            # Time with nothing staked is not banked.
            pool.last_settle_time = now
            return 0

        elapsed = now - pool.last_settle_time
        reward = self.compute_reward(pool, elapsed, now)
        if reward > 0:
            pool.acc_reward_per_share += reward * ACC_PRECISION // pool.total_staked
            self.schedule.record(reward)
            logger.debug(
                "Pool %s settled %ss: reward=%s acc=%s",
                pool.pool_id,
                elapsed,
                reward,
                pool.acc_reward_per_share,
            )
            if self.schedule.exhausted():
                logger.warning(
                    "Emission cap of %s reached while settling pool %s",
                    self.schedule.total_emissions,
                    pool.pool_id,
                )
        pool.last_settle_time = now
        return reward

    def settle_all(self, now: int) -> int:
        return sum(self.settle(pool, now) for pool in self.pools)

    def projected_acc(self, pool: Pool, now: int) -> int:
        """Accumulator value ``settle`` would produce at ``now``, without mutating."""

        acc = pool.acc_reward_per_share
        if now > pool.last_settle_time and pool.total_staked > 0:
            reward = self.compute_reward(pool, now - pool.last_settle_time, now)
            acc += reward * ACC_PRECISION // pool.total_staked
        return acc


__all__ = ["PoolAccumulator", "dynamic_apy", "volume_multiplier"]
