"""Match configuration."""

from __future__ import annotations

import os
from typing import Any, Dict

from pydantic import BaseModel, Field


class MatchConfig(BaseModel):
    """Tunables for a match: opponent retry limits and input waits."""

    max_fleet_attempts: int = Field(default=100, gt=0)
    max_ship_attempts: int = Field(default=100, gt=0)
    ship_poll_interval: float = Field(default=0.5, gt=0)
    attack_poll_interval: float = Field(default=0.1, gt=0)
    input_timeout: float | None = Field(default=None, gt=0)
    rng_seed: int | None = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "MatchConfig":
        """Construct config from `BROADSIDE_*` env vars; overrides win."""

        data: Dict[str, Any] = {}
        env_fields = {
            "max_fleet_attempts": ("BROADSIDE_MAX_FLEET_ATTEMPTS", int),
            "max_ship_attempts": ("BROADSIDE_MAX_SHIP_ATTEMPTS", int),
            "ship_poll_interval": ("BROADSIDE_SHIP_POLL_INTERVAL", float),
            "attack_poll_interval": ("BROADSIDE_ATTACK_POLL_INTERVAL", float),
            "input_timeout": ("BROADSIDE_INPUT_TIMEOUT", float),
            "rng_seed": ("BROADSIDE_RNG_SEED", int),
        }
        for field, (env_name, cast) in env_fields.items():
            value = os.getenv(env_name)
            if value is not None and value.strip():
                data[field] = cast(value.strip())

        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)
