"""Staking engine facade.

:class:`StakingEngine` wires the emission schedule, pool accumulator, stake
ledger, rebate tracker and operational gate together and exposes one
transactional method per operation. Each call reads the clock once and holds
the engine lock for its whole duration. Before mutating anything it registers
the records it will touch in a :class:`~stake_yield_lab.journal.Journal`, and
if anything raises those records are restored, so a failed call leaves no
trace.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace

from .accumulator import PoolAccumulator, dynamic_apy, volume_multiplier
from .collaborators import AllowAll, Authorizer, Capability, Clock, Custody, FundingSource, SystemClock
from .config import EngineConfig
from .core.errors import InvalidConfiguration, Unauthorized
from .core.models import ClaimReceipt, MarketMaker, Pool, Position
from .core.repositories import PoolRepository
from .emission import EmissionSchedule
from .gate import OperationalGate
from .journal import Journal
from .ledger import StakeLedger
from .rebates import RebateTracker, day_index

logger = logging.getLogger(__name__)


class StakingEngine:
    """Multi-pool staking rewards with lock tiers and market-maker rebates."""

    def __init__(
        self,
        config: EngineConfig,
        *,
        custody: Custody,
        funding: FundingSource,
        authorizer: Authorizer | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config
        self.clock: Clock = clock or SystemClock()
        self.authorizer: Authorizer = authorizer or AllowAll()
        self.max_apy = config.max_apy

        start = self.clock()
        self.schedule = EmissionSchedule(
            emission_rate=config.emission_rate,
            total_emissions=config.total_emissions,
            start_time=start,
            halving_interval=config.halving_interval,
            bootstrap_end=start + config.bootstrap_duration,
            bootstrap_multiplier=config.bootstrap_multiplier,
        )
        self.pools = PoolRepository()
        self.accumulator = PoolAccumulator(self.schedule, self.pools)
        self.gate = OperationalGate()
        self.ledger = StakeLedger(
            self.accumulator,
            self.gate,
            custody,
            funding,
            min_stake=config.min_stake,
            min_stake_interval=config.min_stake_interval,
        )
        self.rebates = RebateTracker(funding, gas_conversion_rate=config.gas_conversion_rate)
        self._lock = threading.RLock()

    # -----------------
    # Transactions
    # -----------------

    @contextmanager
    def _transaction(self) -> Iterator[tuple[int, Journal]]:
        with self._lock:
            journal = Journal()
            now = self.clock()
            try:
                yield now, journal
            except BaseException:
                journal.rollback()
                raise

    def _authorize(self, caller: str, capability: Capability) -> None:
        if not self.authorizer.is_authorized(caller, capability):
            raise Unauthorized(f"{caller} lacks {capability.value}")

    # -----------------
    # Pool administration
    # -----------------

    def register_pool(
        self,
        caller: str,
        position_token: str,
        market: str,
        allocation_weight: int,
        base_apy: int = 0,
    ) -> int:
        self._authorize(caller, Capability.MANAGE_POOLS)
        if allocation_weight < 0 or base_apy < 0:
            raise InvalidConfiguration("allocation weight and base APY must be non-negative")
        with self._transaction() as (now, journal):
            if self.pools.find_by_token(position_token) is not None:
                raise InvalidConfiguration(f"a pool for {position_token} already exists")
            self.accumulator.checkpoint(journal)
            self.accumulator.settle_all(now)
            pool = Pool(
                pool_id=self.pools.next_id(),
                position_token=position_token,
                market=market,
                allocation_weight=allocation_weight,
                last_settle_time=now,
                created_at=now,
                is_bootstrap=self.schedule.in_bootstrap(now),
                base_apy=base_apy,
            )
            self.pools.add(pool)
            journal.on_undo(lambda: self.pools.discard(pool.pool_id))
            logger.info(
                "Registered pool %s for %s (weight=%s, bootstrap=%s)",
                pool.pool_id,
                position_token,
                allocation_weight,
                pool.is_bootstrap,
            )
            return pool.pool_id

    def set_allocation_weight(self, caller: str, pool_id: int, weight: int) -> None:
        self._authorize(caller, Capability.MANAGE_POOLS)
        if weight < 0:
            raise InvalidConfiguration("allocation weight must be non-negative")
        with self._transaction() as (now, journal):
            pool = self.pools.get(pool_id)
            self.accumulator.checkpoint(journal)
            self.accumulator.settle_all(now)
            logger.info("Pool %s weight %s -> %s", pool_id, pool.allocation_weight, weight)
            pool.allocation_weight = weight

    def set_pool_active(self, caller: str, pool_id: int, active: bool) -> None:
        self._authorize(caller, Capability.MANAGE_POOLS)
        with self._transaction() as (now, journal):
            pool = self.pools.get(pool_id)
            self.accumulator.checkpoint(journal)
            self.accumulator.settle_all(now)
            pool.is_active = active
            logger.info("Pool %s active=%s", pool_id, active)

    def set_base_apy(self, caller: str, pool_id: int, base_apy: int) -> None:
        self._authorize(caller, Capability.MANAGE_POOLS)
        if base_apy < 0:
            raise InvalidConfiguration("base APY must be non-negative")
        with self._transaction() as (_, journal):
            pool = self.pools.get(pool_id)
            journal.keep(pool, only=("base_apy",))
            pool.base_apy = base_apy

    def set_max_apy(self, caller: str, max_apy: int) -> None:
        self._authorize(caller, Capability.MANAGE_POOLS)
        if max_apy < 0:
            raise InvalidConfiguration("max APY must be non-negative")
        with self._transaction() as (_, journal):
            journal.keep(self, only=("max_apy",))
            self.max_apy = max_apy

    def set_min_stake(self, caller: str, amount: int) -> None:
        self._authorize(caller, Capability.MANAGE_POOLS)
        if amount < 0:
            raise InvalidConfiguration("minimum stake must be non-negative")
        with self._transaction() as (_, journal):
            journal.keep(self.ledger, only=("min_stake",))
            self.ledger.min_stake = amount

    def set_min_stake_interval(self, caller: str, seconds: int) -> None:
        self._authorize(caller, Capability.MANAGE_POOLS)
        if seconds < 0:
            raise InvalidConfiguration("minimum stake interval must be non-negative")
        with self._transaction() as (_, journal):
            journal.keep(self.ledger, only=("min_stake_interval",))
            self.ledger.min_stake_interval = seconds

    def update_volume_data(self, caller: str, pool_id: int, daily_volume: int, price_stability: int) -> int:
        """Apply a pushed volume/stability observation; returns the new multiplier."""

        self._authorize(caller, Capability.UPDATE_VOLUME)
        if daily_volume < 0 or price_stability < 0:
            raise InvalidConfiguration("volume and stability must be non-negative")
        with self._transaction() as (now, journal):
            pool = self.pools.get(pool_id)
            self.accumulator.checkpoint(journal, pool)
            # Rewards up to now use the previous multiplier.
            self.accumulator.settle(pool, now)
            pool.daily_volume = daily_volume
            pool.price_stability = price_stability
            pool.volume_multiplier = volume_multiplier(daily_volume, price_stability)
            logger.info(
                "Pool %s volume=%s stability=%s multiplier=%s",
                pool_id,
                daily_volume,
                price_stability,
                pool.volume_multiplier,
            )
            return pool.volume_multiplier

    # -----------------
    # Emission administration
    # -----------------

    def set_emission_rate(self, caller: str, rate: int) -> None:
        self._authorize(caller, Capability.MANAGE_EMISSIONS)
        with self._transaction() as (now, journal):
            self.accumulator.checkpoint(journal)
            self.accumulator.settle_all(now)
            self.schedule.set_emission_rate(rate)

    def set_total_emissions(self, caller: str, total: int) -> None:
        self._authorize(caller, Capability.MANAGE_EMISSIONS)
        with self._transaction() as (now, journal):
            self.accumulator.checkpoint(journal)
            self.accumulator.settle_all(now)
            self.schedule.set_total_emissions(total)

    def set_bootstrap_multiplier(self, caller: str, multiplier: int) -> None:
        self._authorize(caller, Capability.MANAGE_EMISSIONS)
        with self._transaction() as (now, journal):
            self.accumulator.checkpoint(journal)
            self.accumulator.settle_all(now)
            self.schedule.set_bootstrap_multiplier(multiplier)

    # -----------------
    # Operational gate
    # -----------------

    def set_staking_enabled(self, caller: str, enabled: bool) -> None:
        self._authorize(caller, Capability.GUARDIAN)
        with self._transaction() as (_, journal):
            journal.keep(self.gate)
            self.gate.set(staking=enabled)

    def set_claiming_enabled(self, caller: str, enabled: bool) -> None:
        self._authorize(caller, Capability.GUARDIAN)
        with self._transaction() as (_, journal):
            journal.keep(self.gate)
            self.gate.set(claiming=enabled)

    def pause(self, caller: str) -> None:
        self._authorize(caller, Capability.GUARDIAN)
        with self._transaction() as (_, journal):
            journal.keep(self.gate)
            self.gate.set(paused=True)

    def unpause(self, caller: str) -> None:
        self._authorize(caller, Capability.GUARDIAN)
        with self._transaction() as (_, journal):
            journal.keep(self.gate)
            self.gate.set(paused=False)

    # -----------------
    # Staking
    # -----------------

    def settle_pool(self, pool_id: int) -> int:
        with self._transaction() as (now, journal):
            pool = self.pools.get(pool_id)
            self.accumulator.checkpoint(journal, pool)
            return self.accumulator.settle(pool, now)

    def settle_all(self) -> int:
        with self._transaction() as (now, journal):
            self.accumulator.checkpoint(journal)
            return self.accumulator.settle_all(now)

    def _checkpoint_position(self, journal: Journal, pool_id: int, participant: str) -> None:
        self.accumulator.checkpoint(journal, self.pools.get(pool_id))
        self.ledger.checkpoint(journal, pool_id, participant)

    def stake(self, participant: str, pool_id: int, amount: int, lock_tier: int = 0) -> Position:
        with self._transaction() as (now, journal):
            self._checkpoint_position(journal, pool_id, participant)
            return replace(self.ledger.stake(pool_id, participant, amount, lock_tier, now))

    def unstake(self, participant: str, pool_id: int, amount: int) -> int:
        with self._transaction() as (now, journal):
            self._checkpoint_position(journal, pool_id, participant)
            return self.ledger.unstake(pool_id, participant, amount, now)

    def claim(self, participant: str, pool_id: int) -> ClaimReceipt:
        with self._transaction() as (now, journal):
            self._checkpoint_position(journal, pool_id, participant)
            return self.ledger.claim(pool_id, participant, now)

    def emergency_withdraw(self, participant: str, pool_id: int) -> int:
        with self._transaction() as (now, journal):
            self._checkpoint_position(journal, pool_id, participant)
            return self.ledger.emergency_withdraw(pool_id, participant, now)

    # -----------------
    # Market makers
    # -----------------

    def register_market_maker(
        self,
        caller: str,
        participant: str,
        *,
        volume_target: int,
        spread_target: int,
        rebate_rate: int,
    ) -> MarketMaker:
        self._authorize(caller, Capability.MANAGE_REBATES)
        with self._transaction() as (now, journal):
            self.rebates.checkpoint(journal, participant, membership=True)
            maker = self.rebates.register(
                participant,
                volume_target=volume_target,
                spread_target=spread_target,
                rebate_rate=rebate_rate,
                now=now,
            )
            return copy.deepcopy(maker)

    def deactivate_market_maker(self, caller: str, participant: str) -> None:
        self._authorize(caller, Capability.MANAGE_REBATES)
        with self._transaction() as (_, journal):
            self.rebates.checkpoint(journal, participant, membership=True)
            self.rebates.deactivate(participant)

    def record_rebate(self, caller: str, participant: str, volume: int, fees: int) -> int:
        self._authorize(caller, Capability.RECORD_ACTIVITY)
        with self._transaction() as (now, journal):
            self.rebates.checkpoint(journal, participant, day=day_index(now))
            return self.rebates.record_rebate(participant, volume, fees, now)

    def record_gas_subsidy(self, caller: str, participant: str, gas_amount: int) -> int:
        self._authorize(caller, Capability.RECORD_ACTIVITY)
        with self._transaction() as (now, journal):
            self.rebates.checkpoint(journal, participant)
            return self.rebates.record_gas_subsidy(participant, gas_amount, now)

    # -----------------
    # Views
    # -----------------

    def pool(self, pool_id: int) -> Pool:
        with self._lock:
            pool = self.pools.get(pool_id)
            return replace(pool, is_bootstrap=self.accumulator.bootstrapping(pool, self.clock()))

    def position(self, pool_id: int, participant: str) -> Position | None:
        with self._lock:
            position = self.ledger.positions.get(pool_id, participant)
            return replace(position) if position else None

    def pending_rewards(self, pool_id: int, participant: str) -> int:
        with self._lock:
            return self.ledger.pending_rewards(pool_id, participant, self.clock())

    def claimable(self, pool_id: int, participant: str) -> int:
        with self._lock:
            return self.ledger.claimable(pool_id, participant, self.clock())

    def pool_apy(self, pool_id: int) -> int:
        with self._lock:
            return dynamic_apy(self.pools.get(pool_id), self.max_apy)

    def current_emission_rate(self) -> int:
        with self._lock:
            return self.schedule.current_rate(self.clock())

    @property
    def emitted_rewards(self) -> int:
        return self.schedule.emitted_rewards

    @property
    def total_staked(self) -> int:
        return self.ledger.total_staked

    def market_maker(self, participant: str) -> MarketMaker:
        with self._lock:
            return copy.deepcopy(self.rebates.get(participant))

    def active_market_makers(self) -> list[str]:
        with self._lock:
            return self.rebates.active_participants()

    def daily_volume(self, participant: str, day: int | None = None) -> int:
        with self._lock:
            if day is None:
                day = day_index(self.clock())
            return self.rebates.daily_volume(participant, day)


__all__ = ["StakingEngine"]
