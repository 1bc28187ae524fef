"""Host pipeline for the rate engine.

Drives a RateEngine the way an aggregator host does:

- every incoming snapshot → `submit()` → `engine.add()`
- every flush period      → `flush()`  → `engine.push()` + `engine.reset()`

The engine has no locks of its own; the runner owns the single lock
that serializes every engine call, so `submit()` may be called from any
thread while the background flush thread is running.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from .config import RateAggregatorConfig
from .core.accumulator import Accumulator
from .core.engine import RateEngine
from .core.metric import Metric

logger = logging.getLogger(__name__)


class RateRunner:
    """Single-writer scheduler around one RateEngine."""

    def __init__(
        self,
        engine: RateEngine,
        output: Accumulator,
        period: float = 30.0,
        drop_original: bool = True,
    ) -> None:
        self._engine = engine
        self._output = output
        self._period = float(period)
        self._drop_original = drop_original
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @classmethod
    def from_config(cls, cfg: RateAggregatorConfig, output: Accumulator) -> "RateRunner":
        return cls(
            RateEngine.from_config(cfg),
            output,
            period=cfg.period,
            drop_original=cfg.drop_original,
        )

    @property
    def engine(self) -> RateEngine:
        return self._engine

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def submit(self, metric: Metric) -> None:
        """Ingest one snapshot; forward the original unless dropped."""
        with self._lock:
            if not self._drop_original:
                self._output.add_fields(metric.name, dict(metric.fields), metric.tags)
            self._engine.add(metric)

    def flush(self) -> None:
        """Emit current rates, then run the period reset."""
        with self._lock:
            self._engine.push(self._output)
            self._engine.reset()

    def start(self) -> None:
        """Start the background flush loop."""
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="rate-aggregator-flush", daemon=True
        )
        self._thread.start()
        logger.info("Rate runner started period=%.1fs drop_original=%s", self._period, self._drop_original)

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop the flush loop and perform a final flush."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self.flush()
        logger.info("Rate runner stopped %s", self._engine.stats)

    def _run(self) -> None:
        while not self._stop_event.wait(self._period):
            try:
                self.flush()
            except Exception:
                logger.exception("Error en flush periódico, continuando")

    def health_check(self) -> dict:
        with self._lock:
            return {
                "healthy": True,
                "running": self.running,
                "series": len(self._engine.cache),
                "stats": self._engine.stats.to_dict(),
            }
