"""Configuración del agregador de rates.

Options (static, loaded once by the host):
- suffix          → appended to every emitted field name
- metrics         → metric names the engine acts on
- rate_fields     → fields computed as plain per-second rate
- bitrate_fields  → fields computed as per-second rate x 8
- period          → flush period in seconds ("30s", "1m" or a number)
- drop_original   → drop the original metric instead of forwarding it

Env vars (see from_env):
- RATE_SUFFIX (default: _rate)
- RATE_METRICS, RATE_FIELDS, RATE_BITRATE_FIELDS (comma-separated)
- RATE_PERIOD_SECONDS (default: 30)
- RATE_DROP_ORIGINAL (default: 1)
"""

from __future__ import annotations

import math
import os
from typing import Any, FrozenSet, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.config import get_settings

# Upper bound keeps the flush wait within platform timeout limits.
MAX_PERIOD_SECONDS = 7 * 24 * 3600.0

_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


class ConfigError(ValueError):
    """Invalid aggregator configuration."""


def _split_csv(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def parse_duration(value: Any) -> float:
    """Parse "30s" / "1m" / "500ms" / 30 into seconds.

    NaN and infinite durations are rejected.
    """
    seconds = _duration_seconds(value)
    if not math.isfinite(seconds):
        raise ValueError(f"duration must be finite, got {value!r}")
    return seconds


def _duration_seconds(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError("period must be a number or a duration string")
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            raise ValueError(f"duration out of range: {value!r}") from None
    if not isinstance(value, str):
        raise ValueError("period must be a number or a duration string")

    text = value.strip().lower()
    for unit in sorted(_DURATION_UNITS, key=len, reverse=True):
        if text.endswith(unit):
            number = text[: -len(unit)].strip()
            try:
                return float(number) * _DURATION_UNITS[unit]
            except ValueError:
                raise ValueError(f"invalid duration: {value!r}") from None
    try:
        return float(text)
    except ValueError:
        raise ValueError(f"invalid duration: {value!r}") from None


class RateAggregatorConfig(BaseModel):
    """Validated, immutable configuration of one rate aggregator."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    suffix: str = "_rate"
    metrics: FrozenSet[str] = Field(default_factory=frozenset)
    rate_fields: FrozenSet[str] = Field(default_factory=frozenset)
    bitrate_fields: FrozenSet[str] = Field(default_factory=frozenset)
    period: float = Field(default=30.0, gt=0, le=MAX_PERIOD_SECONDS)
    drop_original: bool = True

    @field_validator("period", mode="before")
    @classmethod
    def validate_period(cls, v):
        return parse_duration(v)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "RateAggregatorConfig":
        """Validate a raw mapping (e.g. a parsed config file section)."""
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            raise ConfigError(f"invalid rate aggregator config: {e}") from e

    @classmethod
    def from_env(cls) -> "RateAggregatorConfig":
        get_settings()
        return cls.from_mapping(
            {
                "suffix": os.getenv("RATE_SUFFIX", "_rate"),
                "metrics": _split_csv(os.getenv("RATE_METRICS", "")),
                "rate_fields": _split_csv(os.getenv("RATE_FIELDS", "")),
                "bitrate_fields": _split_csv(os.getenv("RATE_BITRATE_FIELDS", "")),
                "period": os.getenv("RATE_PERIOD_SECONDS", "30"),
                "drop_original": os.getenv("RATE_DROP_ORIGINAL", "1").strip().lower()
                in ("1", "true", "yes"),
            }
        )
