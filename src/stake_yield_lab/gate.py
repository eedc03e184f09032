"""Operational switches consulted before staking operations."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .core.errors import OperationDisabled

logger = logging.getLogger(__name__)


@dataclass
class OperationalGate:
    staking_enabled: bool = True
    claiming_enabled: bool = True
    paused: bool = False

    def require_staking(self) -> None:
        if self.paused:
            raise OperationDisabled("engine is paused")
        if not self.staking_enabled:
            raise OperationDisabled("staking is disabled")

    def require_claiming(self) -> None:
        if self.paused:
            raise OperationDisabled("engine is paused")
        if not self.claiming_enabled:
            raise OperationDisabled("claiming is disabled")

    def require_not_paused(self) -> None:
        if self.paused:
            raise OperationDisabled("engine is paused")

    def require_paused(self) -> None:
        if not self.paused:
            raise OperationDisabled("emergency withdrawal is only available while paused")

    def set(self, *, staking: bool | None = None, claiming: bool | None = None, paused: bool | None = None) -> None:
        if staking is not None:
            self.staking_enabled = staking
        if claiming is not None:
            self.claiming_enabled = claiming
        if paused is not None:
            self.paused = paused
        logger.info(
            "Gate updated: staking=%s claiming=%s paused=%s",
            self.staking_enabled,
            self.claiming_enabled,
            self.paused,
        )


__all__ = ["OperationalGate"]
