"""End-to-end reward scenarios and accounting properties."""

from collections.abc import Callable

import pytest

from stake_yield_lab import StakingEngine, StillLocked
from stake_yield_lab.collaborators import InMemoryCustody, InMemoryTreasury, ManualClock
from stake_yield_lab.core.constants import ACC_PRECISION, SECONDS_PER_WEEK

E18 = 10**18


def test_single_staker_accrues_full_emission(engine: StakingEngine, clock: ManualClock, pool_id: int) -> None:
    engine.stake("alice", pool_id, E18)
    clock.advance(100)

    assert engine.pending_rewards(pool_id, "alice") == 100 * E18

    receipt = engine.claim("alice", pool_id)
    assert receipt.settled == receipt.payout == 100 * E18
    assert engine.emitted_rewards == 100 * E18
    assert engine.pool(pool_id).acc_reward_per_share == 100 * 10**12


def test_tier_multiplier_is_paid_outside_the_cap(
    engine: StakingEngine, clock: ManualClock, pool_id: int, treasury: InMemoryTreasury
) -> None:
    engine.stake("alice", pool_id, E18, lock_tier=2)
    clock.advance(100)

    receipt = engine.claim("alice", pool_id)

    assert receipt.payout == 150 * E18
    assert receipt.tier_multiplier == 15_000
    assert engine.emitted_rewards == 100 * E18
    assert treasury.paid["alice"] == 150 * E18


def test_stakers_share_in_proportion_to_amount(engine: StakingEngine, clock: ManualClock, pool_id: int) -> None:
    engine.stake("alice", pool_id, E18)
    engine.stake("bob", pool_id, 3 * E18)
    clock.advance(100)

    alice = engine.pending_rewards(pool_id, "alice")
    bob = engine.pending_rewards(pool_id, "bob")
    assert alice == 25 * E18
    assert bob == 75 * E18
    assert alice + bob <= 100 * E18


def test_cap_clamps_the_next_settlement(
    make_engine: Callable[..., StakingEngine], clock: ManualClock
) -> None:
    engine = make_engine(emission_rate=1, min_stake=1)
    pid = engine.register_pool("admin", "LP-ETH", "ETH/USDC", 100)
    engine.stake("alice", pid, E18)
    clock.advance(100)
    assert engine.settle_pool(pid) == 100

    engine.set_total_emissions("admin", engine.emitted_rewards + 1)
    clock.advance(100)
    assert engine.settle_pool(pid) == 1
    assert engine.emitted_rewards == 101

    clock.advance(100)
    assert engine.settle_pool(pid) == 0
    assert engine.emitted_rewards == 101
    assert engine.pool(pid).last_settle_time == clock.now


def test_lock_blocks_unstake_until_expiry(
    engine: StakingEngine, clock: ManualClock, pool_id: int, custody: InMemoryCustody
) -> None:
    before = custody.balance_of("LP-ETH", "alice")
    engine.stake("alice", pool_id, 5 * E18, lock_tier=1)
    assert engine.position(pool_id, "alice").lock_end_time == clock.now + SECONDS_PER_WEEK

    clock.advance(SECONDS_PER_WEEK - 1)
    with pytest.raises(StillLocked):
        engine.unstake("alice", pool_id, 5 * E18)

    clock.advance(1)
    assert engine.unstake("alice", pool_id, 5 * E18) == 5 * E18
    assert custody.balance_of("LP-ETH", "alice") == before
    assert engine.position(pool_id, "alice").amount == 0


@pytest.mark.parametrize(("tier", "factor"), [(0, 1), (1, 1), (3, 2)])
def test_payout_follows_tier_multiplier(
    engine: StakingEngine, clock: ManualClock, pool_id: int, tier: int, factor: int
) -> None:
    engine.stake("alice", pool_id, 3 * E18, lock_tier=tier)
    clock.advance(7)
    receipt = engine.claim("alice", pool_id)
    assert receipt.payout == receipt.settled * factor


def test_conservation_across_pools_and_participants(engine: StakingEngine, clock: ManualClock) -> None:
    eth = engine.register_pool("admin", "LP-ETH", "ETH/USDC", 100)
    btc = engine.register_pool("admin", "LP-BTC", "BTC/USDC", 50)
    engine.stake("alice", eth, 10 * E18)
    engine.stake("bob", eth, 4 * E18)
    engine.stake("carol", btc, 7 * E18, lock_tier=0)
    clock.advance(30)
    engine.unstake("bob", eth, E18)
    engine.stake("alice", btc, 2 * E18)
    clock.advance(30)
    engine.unstake("alice", eth, 10 * E18)

    for pid in (eth, btc):
        held = sum(p.amount for p in engine.ledger.positions.for_pool(pid))
        assert held == engine.pool(pid).total_staked
    assert engine.total_staked == engine.pool(eth).total_staked + engine.pool(btc).total_staked
    assert engine.total_staked == 3 * E18 + 7 * E18 + 2 * E18


def test_settlement_is_idempotent_within_a_second(
    engine: StakingEngine, clock: ManualClock, pool_id: int
) -> None:
    engine.stake("alice", pool_id, E18)
    clock.advance(10)
    assert engine.settle_pool(pool_id) == 10 * E18
    snapshot = engine.pool(pool_id)
    assert engine.settle_pool(pool_id) == 0
    assert engine.pool(pool_id) == snapshot


def test_accumulator_never_decreases(engine: StakingEngine, clock: ManualClock, pool_id: int) -> None:
    seen = [engine.pool(pool_id).acc_reward_per_share]
    engine.stake("alice", pool_id, E18)
    for step in range(1, 6):
        clock.advance(step * 3)
        if step % 2:
            engine.stake("bob", pool_id, step * E18)
        else:
            engine.unstake("bob", pool_id, E18)
        seen.append(engine.pool(pool_id).acc_reward_per_share)
    assert seen == sorted(seen)


def test_emissions_never_exceed_cap(make_engine: Callable[..., StakingEngine], clock: ManualClock) -> None:
    cap = 1_000 * E18 + 17
    engine = make_engine(total_emissions=cap)
    eth = engine.register_pool("admin", "LP-ETH", "ETH/USDC", 3)
    btc = engine.register_pool("admin", "LP-BTC", "BTC/USDC", 7)
    engine.stake("alice", eth, E18)
    engine.stake("bob", btc, 2 * E18)
    for _ in range(50):
        clock.advance(37)
        engine.settle_all()
        assert engine.emitted_rewards <= cap
    assert engine.emitted_rewards == cap


def test_reward_debt_tracks_amount_after_every_operation(
    engine: StakingEngine, clock: ManualClock, pool_id: int
) -> None:
    def check() -> None:
        pool = engine.pool(pool_id)
        position = engine.position(pool_id, "alice")
        assert position.reward_debt == position.amount * pool.acc_reward_per_share // ACC_PRECISION

    engine.stake("alice", pool_id, 3 * E18)
    check()
    engine.stake("bob", pool_id, 7 * E18)
    clock.advance(13)
    engine.stake("alice", pool_id, E18)
    check()
    clock.advance(13)
    engine.unstake("alice", pool_id, 2 * E18)
    check()
    clock.advance(13)
    engine.claim("alice", pool_id)
    check()
