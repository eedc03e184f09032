"""Engine configuration loaded from TOML with environment overrides."""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

from .core.constants import BASIS_POINTS, SECONDS_PER_DAY, TOKEN_UNIT
from .core.errors import InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULTS: dict[str, Any] = {
    "emission": {
        "rate": TOKEN_UNIT,
        "total": 100_000_000 * TOKEN_UNIT,
        "halving_interval": 365 * SECONDS_PER_DAY,
        "bootstrap_duration": 30 * SECONDS_PER_DAY,
        "bootstrap_multiplier": 20_000,
    },
    "staking": {
        "min_stake": TOKEN_UNIT,
        "min_stake_interval": 60,
        "max_apy": 5_000,
    },
    "rebates": {
        "gas_conversion_rate": 20 * 10**9,
    },
}

# env var -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "STAKE_YIELD_EMISSION_RATE": ("emission", "rate"),
    "STAKE_YIELD_TOTAL_EMISSIONS": ("emission", "total"),
    "STAKE_YIELD_MIN_STAKE": ("staking", "min_stake"),
    "STAKE_YIELD_MIN_STAKE_INTERVAL": ("staking", "min_stake_interval"),
}


@dataclass(frozen=True)
class EngineConfig:
    emission_rate: int
    total_emissions: int
    halving_interval: int
    bootstrap_duration: int
    bootstrap_multiplier: int
    min_stake: int
    min_stake_interval: int
    max_apy: int
    gas_conversion_rate: int

    def __post_init__(self) -> None:
        for name in (
            "emission_rate",
            "total_emissions",
            "bootstrap_duration",
            "min_stake",
            "min_stake_interval",
            "max_apy",
            "gas_conversion_rate",
        ):
            if getattr(self, name) < 0:
                raise InvalidConfiguration(f"{name} must be non-negative")
        if self.halving_interval <= 0:
            raise InvalidConfiguration("halving_interval must be positive")
        if self.bootstrap_multiplier < BASIS_POINTS:
            raise InvalidConfiguration("bootstrap_multiplier must be at least 10000 bp")

    @classmethod
    def from_mapping(cls, cfg: dict[str, Any]) -> "EngineConfig":
        emission = cfg["emission"]
        staking = cfg["staking"]
        try:
            return cls(
                emission_rate=int(emission["rate"]),
                total_emissions=int(emission["total"]),
                halving_interval=int(emission["halving_interval"]),
                bootstrap_duration=int(emission["bootstrap_duration"]),
                bootstrap_multiplier=int(emission["bootstrap_multiplier"]),
                min_stake=int(staking["min_stake"]),
                min_stake_interval=int(staking["min_stake_interval"]),
                max_apy=int(staking["max_apy"]),
                gas_conversion_rate=int(cfg["rebates"]["gas_conversion_rate"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidConfiguration(f"invalid engine configuration: {exc}") from exc


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file and merge it over the defaults.

    Parameters
    ----------
    path:
        Optional path to a configuration file. When ``None`` or missing, the
        built-in defaults are used.

    Returns
    -------
    dict[str, Any]
        Configuration dictionary with file and environment overrides applied.
    """

    cfg = copy.deepcopy(DEFAULTS)
    cfg_path = Path(path) if path else None

    if cfg_path and cfg_path.is_file():
        with open(cfg_path, "rb") as f:
            file_cfg = tomllib.load(f)
        for k, v in file_cfg.items():
            if isinstance(v, dict) and k in cfg and isinstance(cfg[k], dict):
                cast(dict, cfg[k]).update(v)
            else:
                cfg[k] = v
    elif cfg_path:
        logger.warning("Config file not found at %s. Using defaults.", cfg_path)

    for env_name, (section, key) in ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None:
            continue
        try:
            cfg[section][key] = int(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not an integer", env_name, raw)

    return cfg


def load_engine_config(path: str | Path | None = None) -> EngineConfig:
    return EngineConfig.from_mapping(load_config(path))


__all__ = ["DEFAULTS", "EngineConfig", "load_config", "load_engine_config"]
