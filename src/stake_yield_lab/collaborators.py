"""External collaborators consumed by the engine.

The engine only talks to these protocols. The in-memory implementations are
reference adapters for local runs and tests; production deployments wire in
their own custody, treasury and authorization backends.
"""

from __future__ import annotations

import enum
import logging
import time
from collections import defaultdict
from typing import Protocol

logger = logging.getLogger(__name__)


class Capability(str, enum.Enum):
    MANAGE_POOLS = "MANAGE_POOLS"
    MANAGE_EMISSIONS = "MANAGE_EMISSIONS"
    UPDATE_VOLUME = "UPDATE_VOLUME"
    MANAGE_REBATES = "MANAGE_REBATES"
    RECORD_ACTIVITY = "RECORD_ACTIVITY"
    GUARDIAN = "GUARDIAN"


class Custody(Protocol):
    """Moves position tokens in and out of the engine's custody account."""

    address: str

    def transfer(self, asset: str, to: str, amount: int) -> bool: ...

    def transfer_from(self, asset: str, from_: str, to: str, amount: int) -> bool: ...


class FundingSource(Protocol):
    """Treasury paying out reward tokens."""

    def request_funds(self, amount: int, recipient: str) -> bool: ...


class Authorizer(Protocol):
    def is_authorized(self, caller: str, capability: Capability) -> bool: ...


class Clock(Protocol):
    """Monotonic wall clock returning unix seconds."""

    def __call__(self) -> int: ...


class SystemClock:
    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock driven by hand; refuses to move backwards."""

    def __init__(self, start: int = 0) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("clock cannot move backwards")
        self.now += seconds
        return self.now

    def set(self, timestamp: int) -> None:
        if timestamp < self.now:
            raise ValueError("clock cannot move backwards")
        self.now = timestamp


class InMemoryCustody:
    """Token balances per ``(asset, holder)`` with an engine-owned custody account."""

    def __init__(self, address: str = "custody") -> None:
        self.address = address
        self._balances: defaultdict[tuple[str, str], int] = defaultdict(int)

    def mint(self, asset: str, holder: str, amount: int) -> None:
        self._balances[(asset, holder)] += amount

    def balance_of(self, asset: str, holder: str) -> int:
        return self._balances.get((asset, holder), 0)

    def _move(self, asset: str, from_: str, to: str, amount: int) -> bool:
        if amount < 0 or self._balances.get((asset, from_), 0) < amount:
            logger.warning("Transfer of %s %s from %s rejected", amount, asset, from_)
            return False
        self._balances[(asset, from_)] -= amount
        self._balances[(asset, to)] += amount
        return True

    def transfer(self, asset: str, to: str, amount: int) -> bool:
        return self._move(asset, self.address, to, amount)

    def transfer_from(self, asset: str, from_: str, to: str, amount: int) -> bool:
        return self._move(asset, from_, to, amount)


class InMemoryTreasury:
    """Finite reward reserve; rejects requests it cannot cover."""

    def __init__(self, reserve: int = 0) -> None:
        self.reserve = reserve
        self.paid: defaultdict[str, int] = defaultdict(int)

    def request_funds(self, amount: int, recipient: str) -> bool:
        if amount < 0 or amount > self.reserve:
            logger.warning("Treasury rejected %s for %s (reserve=%s)", amount, recipient, self.reserve)
            return False
        self.reserve -= amount
        self.paid[recipient] += amount
        return True


class RoleAuthorizer:
    """Capability grants per caller."""

    def __init__(self, grants: dict[str, set[Capability]] | None = None) -> None:
        self._grants: dict[str, set[Capability]] = {k: set(v) for k, v in (grants or {}).items()}

    def grant(self, caller: str, *capabilities: Capability) -> None:
        self._grants.setdefault(caller, set()).update(capabilities)

    def revoke(self, caller: str, *capabilities: Capability) -> None:
        self._grants.get(caller, set()).difference_update(capabilities)

    def is_authorized(self, caller: str, capability: Capability) -> bool:
        return capability in self._grants.get(caller, ())


class AllowAll:
    def is_authorized(self, caller: str, capability: Capability) -> bool:
        return True


__all__ = [
    "Capability",
    "Custody",
    "FundingSource",
    "Authorizer",
    "Clock",
    "SystemClock",
    "ManualClock",
    "InMemoryCustody",
    "InMemoryTreasury",
    "RoleAuthorizer",
    "AllowAll",
]
