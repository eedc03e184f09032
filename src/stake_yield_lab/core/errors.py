"""Failure taxonomy raised by the staking engine.

Every error is local to the attempted operation: the engine restores its
state before the exception leaves the public call.
"""

from __future__ import annotations


class StakingError(Exception):
    """Base class for all engine failures."""


class InvalidPool(StakingError):
    """Unknown or deactivated pool id."""


class BelowMinimumStake(StakingError):
    pass


class InsufficientBalance(StakingError):
    pass


class StillLocked(StakingError):
    """Unstake attempted before the position's lock expiry."""


class NoRewardsDue(StakingError):
    pass


class OperationDisabled(StakingError):
    """Staking, claiming or the whole engine is switched off."""


class RateLimited(StakingError):
    """A participant staked again before the minimum interval elapsed."""


class FundingFailure(StakingError):
    """The custody or funding collaborator rejected a request."""


class CapacityExceeded(StakingError):
    """Emission cap exhausted.

    Kept for completeness of the taxonomy: settlement clamps rewards to the
    remaining cap instead of raising.
    """


class Unauthorized(StakingError):
    pass


class InvalidConfiguration(StakingError):
    pass


class InvalidTier(InvalidConfiguration):
    pass


class UnknownParticipant(StakingError):
    """Market maker not registered or no longer active."""


__all__ = [
    "StakingError",
    "InvalidPool",
    "BelowMinimumStake",
    "InsufficientBalance",
    "StillLocked",
    "NoRewardsDue",
    "OperationDisabled",
    "RateLimited",
    "FundingFailure",
    "CapacityExceeded",
    "Unauthorized",
    "InvalidConfiguration",
    "InvalidTier",
    "UnknownParticipant",
]
