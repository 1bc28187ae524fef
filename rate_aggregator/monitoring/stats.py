"""Ingestion statistics for the rate engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class IngestStats:
    """Counters updated by every engine call.

    Observability only: they never influence emitted rates.
    """

    received: int = 0
    ignored_metrics: int = 0
    skipped_values: int = 0
    rates_computed: int = 0
    carried_forward: int = 0
    counter_decreases: int = 0
    flushes: int = 0
    series: int = 0
    started_at: datetime = field(default_factory=_utc_now)

    def __str__(self) -> str:
        return (
            f"IngestStats: received={self.received} series={self.series} "
            f"rates={self.rates_computed} flushes={self.flushes}"
        )

    def to_dict(self) -> dict:
        return {
            "received": self.received,
            "ignored_metrics": self.ignored_metrics,
            "skipped_values": self.skipped_values,
            "rates_computed": self.rates_computed,
            "carried_forward": self.carried_forward,
            "counter_decreases": self.counter_decreases,
            "flushes": self.flushes,
            "series": self.series,
            "started_at": self.started_at.isoformat(),
        }
