import pytest

from stake_yield_lab.core import LockTier, MarketMaker, Position
from stake_yield_lab.core.constants import SECONDS_PER_WEEK
from stake_yield_lab.core.errors import InvalidConfiguration, InvalidTier


@pytest.mark.parametrize(
    ("tier", "multiplier", "duration"),
    [
        (0, 10_000, 0),
        (1, 10_000, SECONDS_PER_WEEK),
        (2, 15_000, 4 * SECONDS_PER_WEEK),
        (3, 20_000, 12 * SECONDS_PER_WEEK),
    ],
)
def test_lock_tier_table(tier: int, multiplier: int, duration: int) -> None:
    lock = LockTier.of(tier)
    assert (lock.multiplier, lock.duration) == (multiplier, duration)


def test_unknown_tier_is_a_configuration_error() -> None:
    with pytest.raises(InvalidTier):
        LockTier.of(-1)
    assert issubclass(InvalidTier, InvalidConfiguration)


def test_position_lock_is_half_open() -> None:
    position = Position(pool_id=0, participant="alice", lock_end_time=100)
    assert position.is_locked(99)
    assert not position.is_locked(100)
    assert not Position(pool_id=0, participant="bob").is_locked(0)


def test_market_maker_dict_summarises_daily_volume() -> None:
    maker = MarketMaker(
        participant="mm1",
        volume_target=1,
        spread_target=2,
        rebate_rate=3,
        registered_at=0,
        daily_volume={1: 5, 2: 6},
    )
    data = maker.to_dict()
    assert "daily_volume" not in data
    assert data["active_days"] == 2
