"""Rate aggregator: per-second rates of tagged counter fields."""

from .config import ConfigError, RateAggregatorConfig
from .core import (
    Accumulator,
    FieldSelector,
    MemoryAccumulator,
    Metric,
    RateEngine,
)
from .runner import RateRunner

__all__ = [
    "ConfigError",
    "RateAggregatorConfig",
    "Accumulator",
    "FieldSelector",
    "MemoryAccumulator",
    "Metric",
    "RateEngine",
    "RateRunner",
]
