"""Field selection for rate computation."""

from __future__ import annotations

from typing import FrozenSet, Iterable


class FieldSelector:
    """Decides which metrics and fields take part in rate computation.

    Stateless apart from the configured name sets. Unknown names are
    simply not selected.
    """

    def __init__(
        self,
        metrics: Iterable[str] = (),
        rate_fields: Iterable[str] = (),
        bitrate_fields: Iterable[str] = (),
    ) -> None:
        self._metrics: FrozenSet[str] = frozenset(metrics)
        self._rate_fields: FrozenSet[str] = frozenset(rate_fields)
        self._bitrate_fields: FrozenSet[str] = frozenset(bitrate_fields)

    def is_rate_metric(self, name: str) -> bool:
        return name in self._metrics

    def is_rate_field(self, field_name: str) -> bool:
        return field_name in self._rate_fields

    def is_bitrate_field(self, field_name: str) -> bool:
        return field_name in self._bitrate_fields

    def is_selected_field(self, field_name: str) -> bool:
        """True if the field is computed as rate or bit-rate."""
        return self.is_bitrate_field(field_name) or self.is_rate_field(field_name)
