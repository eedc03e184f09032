"""Tabular snapshots of engine state for inspection and CSV export."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pandas as pd

from .accumulator import dynamic_apy

if TYPE_CHECKING:
    from .engine import StakingEngine

_DAILY_VOLUME_COLUMNS = ["day", "participant", "volume"]


def _ensure_outdir(outdir: str | Path) -> Path:
    p = Path(outdir)
    p.mkdir(parents=True, exist_ok=True)
    return p


def pools_frame(engine: "StakingEngine") -> pd.DataFrame:
    """One row per pool with the display APY and the live bootstrap flag."""

    df = engine.pools.to_dataframe()
    if df.empty:
        return df
    now = engine.clock()
    df["is_bootstrap"] = [engine.accumulator.bootstrapping(pool, now) for pool in engine.pools]
    df["dynamic_apy"] = [dynamic_apy(pool, engine.max_apy) for pool in engine.pools]
    return df.set_index("pool_id")


def positions_frame(engine: "StakingEngine") -> pd.DataFrame:
    """One row per (pool, participant) including the projected pending reward."""

    df = engine.ledger.positions.to_dataframe()
    if df.empty:
        return df
    df["pending_now"] = [
        engine.pending_rewards(position.pool_id, position.participant)
        for position in engine.ledger.positions
    ]
    return df.sort_values(["pool_id", "participant"]).reset_index(drop=True)


def market_makers_frame(engine: "StakingEngine") -> pd.DataFrame:
    return pd.DataFrame([maker.to_dict() for maker in engine.rebates])


def daily_volume_frame(engine: "StakingEngine") -> pd.DataFrame:
    """Wide frame of daily volume: rows are day indices, columns participants."""

    rows = [
        {"day": day, "participant": maker.participant, "volume": volume}
        for maker in engine.rebates
        for day, volume in maker.daily_volume.items()
    ]
    if not rows:
        return pd.DataFrame()
    long = pd.DataFrame(rows, columns=_DAILY_VOLUME_COLUMNS)
    return long.pivot(index="day", columns="participant", values="volume").sort_index().fillna(0)


def write_report(engine: "StakingEngine", outdir: str | Path) -> dict[str, Path]:
    """Write every snapshot frame as CSV into ``outdir``; returns the written paths."""

    out = _ensure_outdir(outdir)
    frames = {
        "pools": pools_frame(engine),
        "positions": positions_frame(engine),
        "market_makers": market_makers_frame(engine),
        "daily_volume": daily_volume_frame(engine),
    }
    paths: dict[str, Path] = {}
    for name, df in frames.items():
        path = out / f"{name}.csv"
        # Named indexes (pool_id, day) carry data; positional ones do not.
        df.to_csv(path, index=df.index.name is not None)
        paths[name] = path
    return paths


__all__ = [
    "pools_frame",
    "positions_frame",
    "market_makers_frame",
    "daily_volume_frame",
    "write_report",
]
