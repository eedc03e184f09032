"""Volume rebates and gas subsidies for registered market makers."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from .collaborators import FundingSource
from .core.constants import BASIS_POINTS, SECONDS_PER_DAY
from .core.errors import FundingFailure, InvalidConfiguration, UnknownParticipant
from .core.models import MarketMaker
from .journal import Journal

logger = logging.getLogger(__name__)


def day_index(timestamp: int) -> int:
    return timestamp // SECONDS_PER_DAY


class RebateTracker:
    """Market-maker registry with cumulative volume, rebate and subsidy totals.

    Active participants are kept in a list plus an index map. Deactivation
    swaps the last entry into the freed slot, so the order of
    :meth:`active_participants` is not stable.
    """

    def __init__(self, funding: FundingSource, *, gas_conversion_rate: int) -> None:
        if gas_conversion_rate < 0:
            raise InvalidConfiguration("gas conversion rate must be non-negative")
        self.funding = funding
        self.gas_conversion_rate = gas_conversion_rate
        self._makers: dict[str, MarketMaker] = {}
        self._active: list[str] = []
        self._index: dict[str, int] = {}

    def get(self, participant: str) -> MarketMaker:
        try:
            return self._makers[participant]
        except KeyError:
            raise UnknownParticipant(f"{participant} is not a registered market maker") from None

    def _require_active(self, participant: str) -> MarketMaker:
        maker = self.get(participant)
        if not maker.is_active:
            raise UnknownParticipant(f"{participant} is not an active market maker")
        return maker

    def checkpoint(
        self,
        journal: Journal,
        participant: str,
        *,
        day: int | None = None,
        membership: bool = False,
    ) -> None:
        """Register one market maker (and optionally one volume day) for rollback.

        ``membership`` also covers the active list, which registration and
        deactivation rearrange.
        """

        maker = self._makers.get(participant)
        if maker is None:
            journal.on_undo(lambda: self._makers.pop(participant, None))
        else:
            journal.keep(maker, skip=("daily_volume",))
            if day is not None:
                journal.keep_entry(maker.daily_volume, day)
        if membership:
            journal.keep(self, only=("_active", "_index"))

    def register(
        self,
        participant: str,
        *,
        volume_target: int,
        spread_target: int,
        rebate_rate: int,
        now: int,
    ) -> MarketMaker:
        if not 0 <= rebate_rate <= BASIS_POINTS:
            raise InvalidConfiguration(f"rebate rate {rebate_rate} must be within [0, {BASIS_POINTS}] bp")
        if volume_target < 0 or spread_target < 0:
            raise InvalidConfiguration("targets must be non-negative")
        if participant in self._index:
            raise InvalidConfiguration(f"{participant} is already an active market maker")

        maker = self._makers.get(participant)
        if maker is None:
            maker = MarketMaker(
                participant=participant,
                volume_target=volume_target,
                spread_target=spread_target,
                rebate_rate=rebate_rate,
                registered_at=now,
            )
            self._makers[participant] = maker
        else:
            # Re-registration keeps the cumulative totals.
            maker.volume_target = volume_target
            maker.spread_target = spread_target
            maker.rebate_rate = rebate_rate
            maker.is_active = True

        self._index[participant] = len(self._active)
        self._active.append(participant)
        logger.info("Registered market maker %s (rebate %s bp)", participant, rebate_rate)
        return maker

    def deactivate(self, participant: str) -> None:
        maker = self._require_active(participant)
        maker.is_active = False

        slot = self._index.pop(participant)
        last = self._active.pop()
        if last != participant:
            self._active[slot] = last
            self._index[last] = slot
        logger.info("Deactivated market maker %s", participant)

    def record_rebate(self, participant: str, volume: int, fees: int, now: int) -> int:
        """Book ``volume`` and pay ``fees * rebate_rate`` from the funding source."""

        maker = self._require_active(participant)
        if volume < 0 or fees < 0:
            raise InvalidConfiguration("volume and fees must be non-negative")
        rebate = fees * maker.rebate_rate // BASIS_POINTS

        maker.total_volume += volume
        maker.total_rebates += rebate
        day = day_index(now)
        maker.daily_volume[day] = maker.daily_volume.get(day, 0) + volume
        maker.last_activity_time = now

        if rebate > 0 and not self.funding.request_funds(rebate, participant):
            raise FundingFailure(f"treasury refused rebate of {rebate} to {participant}")
        logger.info("Rebate of %s for %s on volume %s", rebate, participant, volume)
        return rebate

    def record_gas_subsidy(self, participant: str, gas_amount: int, now: int) -> int:
        maker = self._require_active(participant)
        if gas_amount < 0:
            raise InvalidConfiguration("gas amount must be non-negative")
        subsidy = gas_amount * self.gas_conversion_rate

        maker.gas_subsidy += subsidy
        maker.last_activity_time = now

        if subsidy > 0 and not self.funding.request_funds(subsidy, participant):
            raise FundingFailure(f"treasury refused gas subsidy of {subsidy} to {participant}")
        logger.info("Gas subsidy of %s for %s (%s gas)", subsidy, participant, gas_amount)
        return subsidy

    def daily_volume(self, participant: str, day: int) -> int:
        return self.get(participant).daily_volume.get(day, 0)

    def active_participants(self) -> list[str]:
        return list(self._active)

    def __iter__(self) -> Iterator[MarketMaker]:
        return iter(self._makers.values())

    def __len__(self) -> int:
        return len(self._makers)


__all__ = ["RebateTracker", "day_index"]
