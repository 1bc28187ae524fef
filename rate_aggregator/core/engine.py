"""Rate engine: ingestion, caching and periodic emission.

For every selected field of an eligible metric the engine keeps the last
observed sample and computes

    rate = (value - last_value) / (now - last_timestamp)

multiplied by 8 for bit-rate fields and truncated to an integer. Two
guards keep the output stable:

- intervals shorter than MIN_INTERVAL_SECONDS carry the previous rate
  forward instead of dividing by a tiny, noisy interval;
- a decreasing value (counter reset, wrap or restart) carries the
  previous rate forward, so no negative rate is ever reported.

Wraparound is not inferred from the decrease: every decrease is treated
as a reset.

CONCURRENCY: the engine has no internal locks. `add`, `push` and `reset`
must never run concurrently on the same instance; the host serializes
them (RateRunner holds a single lock around every call).
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Optional

from ..monitoring.stats import IngestStats
from .accumulator import Accumulator
from .metric import Metric, convert_numeric
from .selector import FieldSelector
from .series_cache import FieldState, SeriesCache, series_key

if TYPE_CHECKING:
    from ..config import RateAggregatorConfig

logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 2
BITS_PER_BYTE = 8

DESCRIPTION = "Calc the rate of each metric passing through."

SAMPLE_CONFIG = """
  ## General Aggregator Arguments:
  ## The period on which to flush & clear the aggregator.
  period = "30s"
  ## If true, the original metric will be dropped by the
  ## aggregator and will not get sent to the output plugins.
  drop_original = true
  ## the suffix of field to rename,
  ## example: the field named "in", would be renamed "in_rate"
  #suffix="_rate"
  ## metrics to filter
  #metrics = ["snmp"]
  ## fields to rate algorithm, (curr_val - last_val) / (curr_time - last_time)
  #rate_fields = ["in_pkts","out_pkts"]
  ## fields to bit rate algorithm, (curr_val - last_val) / (curr_time - last_time) * 8
  #bitrate_fields = ["in","out"]
"""


class RateEngine:
    """Computes per-second rates of selected fields.

    Args:
        selector: decides which metrics/fields are computed
        suffix: appended to every emitted field name
        clock: wall-clock source in seconds (default time.time)
    """

    def __init__(
        self,
        selector: FieldSelector,
        suffix: str = "_rate",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._selector = selector
        self._suffix = suffix
        self._clock = clock
        self._cache: Optional[SeriesCache] = None
        self.stats = IngestStats()
        self.reset()

    @classmethod
    def from_config(
        cls,
        cfg: "RateAggregatorConfig",
        clock: Callable[[], float] = time.time,
    ) -> "RateEngine":
        """Build an engine from a RateAggregatorConfig."""
        selector = FieldSelector(
            metrics=cfg.metrics,
            rate_fields=cfg.rate_fields,
            bitrate_fields=cfg.bitrate_fields,
        )
        return cls(selector, suffix=cfg.suffix, clock=clock)

    @staticmethod
    def sample_config() -> str:
        return SAMPLE_CONFIG

    @staticmethod
    def description() -> str:
        return DESCRIPTION

    @property
    def cache(self) -> SeriesCache:
        return self._cache

    @property
    def suffix(self) -> str:
        return self._suffix

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def add(self, metric: Metric) -> None:
        """Ingest one snapshot. Never raises for data conditions."""
        self.stats.received += 1
        if not self._selector.is_rate_metric(metric.name):
            self.stats.ignored_metrics += 1
            return

        key = series_key(metric.name, metric.tags)
        now = int(self._clock())

        entry = self._cache.lookup(key)
        if entry is None:
            entry = self._cache.upsert(key, metric.name, metric.tags)
            self.stats.series = len(self._cache)
            logger.debug("NEW_SERIES name=%s tags=%s key=%x", metric.name, dict(metric.tags), key)

        for field_name, raw in metric.fields.items():
            if not self._selector.is_selected_field(field_name):
                continue

            value, ok = convert_numeric(raw)
            if not ok:
                self.stats.skipped_values += 1
                logger.debug(
                    "SKIP_VALUE name=%s field=%s type=%s",
                    metric.name, field_name, type(raw).__name__,
                )
                continue

            last = entry.fields.get(field_name)
            if last is None:
                self._cache.upsert_field(entry, field_name, value, now, 0)
                continue

            rate = self._compute_rate(metric.name, field_name, last, value, now)
            self._cache.upsert_field(entry, field_name, value, now, rate)

    def _compute_rate(
        self,
        name: str,
        field_name: str,
        last: FieldState,
        value: float,
        now: int,
    ) -> int:
        elapsed = now - last.last_timestamp

        if elapsed < MIN_INTERVAL_SECONDS:
            self.stats.carried_forward += 1
            return last.last_rate

        if value < last.last_value:
            self.stats.carried_forward += 1
            self.stats.counter_decreases += 1
            logger.debug(
                "COUNTER_DECREASE name=%s field=%s prev=%s curr=%s keep_rate=%s",
                name, field_name, last.last_value, value, last.last_rate,
            )
            return last.last_rate

        rate = (value - last.last_value) / elapsed
        if self._selector.is_bitrate_field(field_name):
            rate = rate * BITS_PER_BYTE
        self.stats.rates_computed += 1
        return int(rate)

    # ------------------------------------------------------------------
    # Emission
    # ------------------------------------------------------------------

    def push(self, acc: Accumulator) -> None:
        """Emit the current rate of every cached series."""
        emitted = 0
        for entry in self._cache:
            fields = {
                field_name + self._suffix: state.last_rate
                for field_name, state in entry.fields.items()
            }
            if not fields:
                continue
            acc.add_fields(entry.name, fields, entry.tags)
            emitted += 1

        self.stats.flushes += 1
        logger.debug("FLUSH series=%d", emitted)

    def reset(self) -> None:
        """Allocate the cache on first call; later calls keep it intact.

        Clearing would drop the previous samples needed for the next rate.
        """
        if self._cache is None:
            self._cache = SeriesCache()
