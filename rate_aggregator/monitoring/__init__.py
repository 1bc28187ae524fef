"""Monitoring layer - ingestion counters."""

from .stats import IngestStats

__all__ = ["IngestStats"]
