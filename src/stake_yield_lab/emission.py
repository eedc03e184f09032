"""Global reward emission schedule: halving, bootstrap window and lifetime cap."""

from __future__ import annotations

import logging

from .core.constants import BASIS_POINTS
from .core.errors import InvalidConfiguration

logger = logging.getLogger(__name__)


class EmissionSchedule:
    """Rate source and running emission total shared by every pool.

    ``last_halving_reference`` is fixed at construction and never re-based,
    so the rate keeps halving on the original schedule for as long as the
    engine runs.
    """

    def __init__(
        self,
        *,
        emission_rate: int,
        total_emissions: int,
        start_time: int,
        halving_interval: int,
        bootstrap_end: int,
        bootstrap_multiplier: int = 2 * BASIS_POINTS,
    ) -> None:
        if emission_rate < 0 or total_emissions < 0:
            raise InvalidConfiguration("emission rate and cap must be non-negative")
        if halving_interval <= 0:
            raise InvalidConfiguration("halving interval must be positive")
        if bootstrap_multiplier < BASIS_POINTS:
            raise InvalidConfiguration("bootstrap multiplier must be at least 10000 bp")
        self.emission_rate = emission_rate
        self.total_emissions = total_emissions
        self.emitted_rewards = 0
        self.halving_interval = halving_interval
        self.last_halving_reference = start_time
        self.bootstrap_end = bootstrap_end
        self.bootstrap_multiplier = bootstrap_multiplier

    def halvings(self, now: int) -> int:
        if now <= self.last_halving_reference:
            return 0
        return (now - self.last_halving_reference) // self.halving_interval

    def current_rate(self, now: int) -> int:
        """Emission per second at ``now`` after applying every elapsed halving.

        Each halving floors on its own, which differs from a single shift of
        a pre-computed exponent once the rate becomes odd.
        """

        rate = self.emission_rate
        for _ in range(self.halvings(now)):
            if rate == 0:
                break
            rate //= 2
        return rate

    def in_bootstrap(self, now: int) -> bool:
        return now < self.bootstrap_end

    def remaining(self) -> int:
        return max(self.total_emissions - self.emitted_rewards, 0)

    def exhausted(self) -> bool:
        return self.emitted_rewards >= self.total_emissions

    def clamp(self, reward: int) -> int:
        """Limit ``reward`` to what the lifetime cap still allows."""

        if self.emitted_rewards + reward > self.total_emissions:
            return self.remaining()
        return reward

    def record(self, reward: int) -> None:
        self.emitted_rewards += reward

    def set_emission_rate(self, rate: int) -> None:
        if rate < 0:
            raise InvalidConfiguration("emission rate must be non-negative")
        logger.info("Emission rate changed from %s to %s", self.emission_rate, rate)
        self.emission_rate = rate

    def set_total_emissions(self, total: int) -> None:
        if total < self.emitted_rewards:
            raise InvalidConfiguration(
                f"emission cap {total} is below rewards already emitted ({self.emitted_rewards})"
            )
        logger.info("Emission cap changed from %s to %s", self.total_emissions, total)
        self.total_emissions = total

    def set_bootstrap_multiplier(self, multiplier: int) -> None:
        if multiplier < BASIS_POINTS:
            raise InvalidConfiguration("bootstrap multiplier must be at least 10000 bp")
        logger.info("Bootstrap multiplier changed to %s bp", multiplier)
        self.bootstrap_multiplier = multiplier


__all__ = ["EmissionSchedule"]
