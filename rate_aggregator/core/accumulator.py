"""Abstract interface for the emission sink.

The engine only depends on this interface; the host decides where
emitted metrics go (stdout, a queue, another pipeline stage).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping

from .metric import Metric


class Accumulator(ABC):
    """Receives (name, fields, tags) triples.

    Implementations:
    - MemoryAccumulator: keeps metrics in a list
    - cli.StreamAccumulator: writes JSON lines
    """

    @abstractmethod
    def add_fields(
        self,
        name: str,
        fields: Dict[str, Any],
        tags: Mapping[str, str],
    ) -> None:
        """Emit one metric."""
        pass


class MemoryAccumulator(Accumulator):
    """Collects emitted metrics in memory."""

    def __init__(self) -> None:
        self.metrics: List[Metric] = []

    def add_fields(
        self,
        name: str,
        fields: Dict[str, Any],
        tags: Mapping[str, str],
    ) -> None:
        self.metrics.append(Metric(name=name, tags=dict(tags), fields=dict(fields)))

