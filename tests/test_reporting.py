from pathlib import Path

import pandas as pd

from stake_yield_lab import StakingEngine
from stake_yield_lab.collaborators import ManualClock
from stake_yield_lab.core.constants import SECONDS_PER_DAY
from stake_yield_lab.reporting import (
    daily_volume_frame,
    market_makers_frame,
    pools_frame,
    positions_frame,
    write_report,
)

E18 = 10**18


def _populate(engine: StakingEngine, clock: ManualClock) -> None:
    eth = engine.register_pool("admin", "LP-ETH", "ETH/USDC", 100, base_apy=1_000)
    btc = engine.register_pool("admin", "LP-BTC", "BTC/USDC", 100, base_apy=2_000)
    engine.stake("bob", eth, 2 * E18)
    engine.stake("alice", eth, E18)
    engine.stake("alice", btc, E18)
    for name in ("mm1", "mm2"):
        engine.register_market_maker("admin", name, volume_target=0, spread_target=0, rebate_rate=1_000)
    engine.record_rebate("ops", "mm1", 3 * E18, E18)
    clock.advance(SECONDS_PER_DAY)
    engine.record_rebate("ops", "mm2", 2 * E18, E18)


def test_frames_describe_engine_state(engine: StakingEngine, clock: ManualClock) -> None:
    _populate(engine, clock)

    pools = pools_frame(engine)
    assert list(pools.index) == [0, 1]
    pd.testing.assert_series_equal(
        pools["dynamic_apy"],
        pd.Series([1_500, 2_500], index=pd.Index([0, 1], name="pool_id"), name="dynamic_apy"),
    )
    assert pools.loc[1, "total_staked"] == E18

    positions = positions_frame(engine)
    assert list(zip(positions["pool_id"], positions["participant"])) == [(0, "alice"), (0, "bob"), (1, "alice")]
    assert sum(int(v) for v in positions["pending_now"]) == SECONDS_PER_DAY * E18

    makers = market_makers_frame(engine)
    assert set(makers["participant"]) == {"mm1", "mm2"}
    assert "daily_volume" not in makers.columns

    daily = daily_volume_frame(engine)
    day = clock.now // SECONDS_PER_DAY
    assert daily.loc[day - 1, "mm1"] == 3 * E18
    assert daily.loc[day - 1, "mm2"] == 0
    assert daily.loc[day, "mm2"] == 2 * E18


def test_empty_engine_frames(engine: StakingEngine) -> None:
    assert pools_frame(engine).empty
    assert positions_frame(engine).empty
    assert daily_volume_frame(engine).empty


def test_write_report(tmp_path: Path, engine: StakingEngine, clock: ManualClock) -> None:
    _populate(engine, clock)
    paths = write_report(engine, tmp_path / "out")
    assert set(paths) == {"pools", "positions", "market_makers", "daily_volume"}
    for path in paths.values():
        assert path.is_file()
    pools = pd.read_csv(paths["pools"])
    assert "pool_id" in pools.columns
    assert len(pools) == 2


def test_write_report_keeps_named_indexes(tmp_path: Path, engine: StakingEngine, clock: ManualClock) -> None:
    _populate(engine, clock)
    paths = write_report(engine, tmp_path)

    # Sequential pool ids can come back as a RangeIndex; the column must survive.
    pools = pd.read_csv(paths["pools"])
    assert list(pools["pool_id"]) == [0, 1]

    daily = pd.read_csv(paths["daily_volume"])
    day = clock.now // SECONDS_PER_DAY
    assert list(daily["day"]) == [day - 1, day]

    positions = pd.read_csv(paths["positions"])
    assert not any(col.startswith("Unnamed") for col in positions.columns)
    makers = pd.read_csv(paths["market_makers"])
    assert list(makers.columns)[0] == "participant"
