"""In-memory repositories for pools and staked positions."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import pandas as pd

from .errors import InvalidPool
from .models import Pool, Position


class PoolRepository:
    """Pools keyed by sequential id with pandas export."""

    def __init__(self, pools: Iterable[Pool] | None = None) -> None:
        self._pools: dict[int, Pool] = {}
        for pool in pools or ():
            self.add(pool)

    def next_id(self) -> int:
        return len(self._pools)

    def add(self, pool: Pool) -> None:
        if pool.pool_id in self._pools:
            raise ValueError(f"pool {pool.pool_id} already registered")
        self._pools[pool.pool_id] = pool

    def get(self, pool_id: int) -> Pool:
        try:
            return self._pools[pool_id]
        except KeyError:
            raise InvalidPool(f"unknown pool {pool_id!r}") from None

    def get_active(self, pool_id: int) -> Pool:
        pool = self.get(pool_id)
        if not pool.is_active:
            raise InvalidPool(f"pool {pool_id} is not active")
        return pool

    def discard(self, pool_id: int) -> None:
        self._pools.pop(pool_id, None)

    def find_by_token(self, position_token: str) -> Pool | None:
        for pool in self._pools.values():
            if pool.position_token == position_token:
                return pool
        return None

    def total_allocation_weight(self) -> int:
        return sum(pool.allocation_weight for pool in self._pools.values())

    def total_staked(self) -> int:
        return sum(pool.total_staked for pool in self._pools.values())

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([pool.to_dict() for pool in self._pools.values()])

    def __len__(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[Pool]:
        return iter(self._pools.values())


class PositionRepository:
    """Positions keyed by ``(pool_id, participant)``; created lazily, never deleted."""

    def __init__(self) -> None:
        self._positions: dict[tuple[int, str], Position] = {}

    def get(self, pool_id: int, participant: str) -> Position | None:
        return self._positions.get((pool_id, participant))

    def get_or_create(self, pool_id: int, participant: str) -> Position:
        key = (pool_id, participant)
        position = self._positions.get(key)
        if position is None:
            position = Position(pool_id=pool_id, participant=participant)
            self._positions[key] = position
        return position

    def discard(self, pool_id: int, participant: str) -> None:
        self._positions.pop((pool_id, participant), None)

    def for_pool(self, pool_id: int) -> list[Position]:
        return [p for (pid, _), p in self._positions.items() if pid == pool_id]

    def for_participant(self, participant: str) -> list[Position]:
        return [p for (_, who), p in self._positions.items() if who == participant]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([position.to_dict() for position in self._positions.values()])

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self) -> Iterator[Position]:
        return iter(self._positions.values())


__all__ = ["PoolRepository", "PositionRepository"]
