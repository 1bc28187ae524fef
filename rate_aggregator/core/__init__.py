"""Core module - rate computation.

Estructura:
- metric.py        → Snapshot model + numeric conversion
- selector.py      → Metric/field selection
- series_cache.py  → Per-series field state
- engine.py        → add / push / reset
- accumulator.py   → Emission sink
"""

from .accumulator import Accumulator, MemoryAccumulator
from .engine import RateEngine
from .metric import Metric, convert_numeric
from .selector import FieldSelector
from .series_cache import FieldState, SeriesCache, SeriesEntry, series_key

__all__ = [
    "Accumulator",
    "MemoryAccumulator",
    "RateEngine",
    "Metric",
    "convert_numeric",
    "FieldSelector",
    "FieldState",
    "SeriesCache",
    "SeriesEntry",
    "series_key",
]
