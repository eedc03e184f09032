"""Fixed-point scales and protocol constants shared across StakeYieldLab."""

from __future__ import annotations

# Accumulator scale for ``acc_reward_per_share``.
ACC_PRECISION = 10**12
# Scale used when turning allocation weights into a pool share.
SHARE_PRECISION = 10**18
BASIS_POINTS = 10_000

# One whole position or reward token (18 decimals).
TOKEN_UNIT = 10**18

SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY

# Volume multiplier: +10 bp per 100k tokens of daily volume, +50 bp when the
# price stability score exceeds 9000, never above 3x.
VOLUME_STEP = 100_000 * TOKEN_UNIT
VOLUME_STEP_BONUS = 10
STABILITY_THRESHOLD = 9_000
STABILITY_BONUS = 50
MIN_VOLUME_MULTIPLIER = BASIS_POINTS
MAX_VOLUME_MULTIPLIER = 30_000

# Informational APY boost for pools with little stake.
LOW_TVL_THRESHOLD = 1_000_000 * TOKEN_UNIT
LOW_TVL_APY_BOOST = 500

# tier -> (multiplier bp, lock seconds). Tier 0 adds no lock.
LOCK_TIERS: dict[int, tuple[int, int]] = {
    0: (10_000, 0),
    1: (10_000, 1 * SECONDS_PER_WEEK),
    2: (15_000, 4 * SECONDS_PER_WEEK),
    3: (20_000, 12 * SECONDS_PER_WEEK),
}
MAX_TIER_MULTIPLIER = max(multiplier for multiplier, _ in LOCK_TIERS.values())

__all__ = [
    "ACC_PRECISION",
    "SHARE_PRECISION",
    "BASIS_POINTS",
    "TOKEN_UNIT",
    "SECONDS_PER_DAY",
    "SECONDS_PER_WEEK",
    "VOLUME_STEP",
    "VOLUME_STEP_BONUS",
    "STABILITY_THRESHOLD",
    "STABILITY_BONUS",
    "MIN_VOLUME_MULTIPLIER",
    "MAX_VOLUME_MULTIPLIER",
    "LOW_TVL_THRESHOLD",
    "LOW_TVL_APY_BOOST",
    "LOCK_TIERS",
    "MAX_TIER_MULTIPLIER",
]
