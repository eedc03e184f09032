from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

from stake_yield_lab import (
    EngineConfig,
    InMemoryCustody,
    InMemoryTreasury,
    ManualClock,
    NoRewardsDue,
    StakingEngine,
    load_config,
)
from stake_yield_lab.core.constants import BASIS_POINTS, MAX_TIER_MULTIPLIER, SECONDS_PER_DAY
from stake_yield_lab.reporting import positions_frame, write_report

logger = logging.getLogger(__name__)

ADMIN = "admin"

DEMO_DEFAULTS: dict[str, Any] = {
    "start": 1_700_000_000,
    "days": 7,
    "outdir": None,
    "pools": [
        {"token": "LP-ETH-USDC", "market": "ETH/USDC", "weight": 100, "base_apy": 1_000},
    ],
    "stakers": [
        {"name": "alice", "pool": 0, "amount": 10**21, "tier": 0},
    ],
}


def demo_settings(cfg: dict[str, Any]) -> dict[str, Any]:
    """Merge the optional ``[demo]`` table over :data:`DEMO_DEFAULTS`."""

    settings = dict(DEMO_DEFAULTS)
    settings.update(cfg.get("demo", {}))
    return settings


def run_demo(cfg: dict[str, Any]) -> StakingEngine:
    """Simulate the configured pools and stakers; returns the final engine."""

    settings = demo_settings(cfg)
    config = EngineConfig.from_mapping(cfg)
    clock = ManualClock(int(settings["start"]))
    custody = InMemoryCustody()
    # Claims can pay up to the highest tier multiplier on top of the emission cap.
    treasury = InMemoryTreasury(config.total_emissions * MAX_TIER_MULTIPLIER // BASIS_POINTS)
    engine = StakingEngine(config, custody=custody, funding=treasury, clock=clock)

    for p in settings["pools"]:
        engine.register_pool(ADMIN, p["token"], p["market"], int(p["weight"]), int(p.get("base_apy", 0)))

    for s in settings["stakers"]:
        pool = engine.pool(int(s["pool"]))
        amount = int(s["amount"])
        custody.mint(pool.position_token, s["name"], amount)
        engine.stake(s["name"], pool.pool_id, amount, int(s.get("tier", 0)))

    for _ in range(int(settings["days"])):
        clock.advance(SECONDS_PER_DAY)
        engine.settle_all()

    for s in settings["stakers"]:
        try:
            receipt = engine.claim(s["name"], int(s["pool"]))
        except NoRewardsDue:
            logger.warning("No rewards for %s in pool %s", s["name"], s["pool"])
            continue
        print(f"{s['name']}: settled={receipt.settled} payout={receipt.payout}")

    print(f"Emitted rewards: {engine.emitted_rewards}")
    return engine


def main() -> None:
    """Run the demo using configuration from file or environment variables."""
    cfg_file = os.getenv("STAKE_YIELD_CONFIG") or (sys.argv[1] if len(sys.argv) > 1 else None)
    cfg = load_config(cfg_file)
    if outdir_env := os.getenv("STAKE_YIELD_OUTDIR"):
        cfg.setdefault("demo", {})["outdir"] = outdir_env

    engine = run_demo(cfg)
    print(positions_frame(engine).to_string())

    outdir = demo_settings(cfg).get("outdir")
    if outdir:
        paths = write_report(engine, Path(outdir))
        print(f"Wrote {len(paths)} reports to {outdir}")


if __name__ == "__main__":
    main()
