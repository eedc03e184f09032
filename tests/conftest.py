import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Ensure the package is importable without installation when running tests locally
pkg_src = Path(__file__).resolve().parents[1] / "src"
if str(pkg_src) not in sys.path:
    sys.path.insert(0, str(pkg_src))

from stake_yield_lab import (  # noqa: E402
    EngineConfig,
    InMemoryCustody,
    InMemoryTreasury,
    ManualClock,
    StakingEngine,
)

E18 = 10**18
START = 1_700_000_000


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def custody() -> InMemoryCustody:
    custody = InMemoryCustody()
    for holder in ("alice", "bob", "carol"):
        custody.mint("LP-ETH", holder, 10**6 * E18)
        custody.mint("LP-BTC", holder, 10**6 * E18)
    return custody


@pytest.fixture
def treasury() -> InMemoryTreasury:
    return InMemoryTreasury(10**12 * E18)


@pytest.fixture
def make_config() -> Callable[..., EngineConfig]:
    """Config factory: no bootstrap boost, no halving in test horizons, no rate limit."""

    def _make(**overrides: int) -> EngineConfig:
        values = dict(
            emission_rate=E18,
            total_emissions=10**9 * E18,
            halving_interval=10**9,
            bootstrap_duration=0,
            bootstrap_multiplier=20_000,
            min_stake=E18,
            min_stake_interval=0,
            max_apy=5_000,
            gas_conversion_rate=20 * 10**9,
        )
        values.update(overrides)
        return EngineConfig(**values)

    return _make


@pytest.fixture
def make_engine(
    clock: ManualClock,
    custody: InMemoryCustody,
    treasury: InMemoryTreasury,
    make_config: Callable[..., EngineConfig],
) -> Callable[..., StakingEngine]:
    def _make(**overrides: int) -> StakingEngine:
        return StakingEngine(make_config(**overrides), custody=custody, funding=treasury, clock=clock)

    return _make


@pytest.fixture
def engine(make_engine: Callable[..., StakingEngine]) -> StakingEngine:
    return make_engine()


@pytest.fixture
def pool_id(engine: StakingEngine) -> int:
    return engine.register_pool("admin", "LP-ETH", "ETH/USDC", 100)
