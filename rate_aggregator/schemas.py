"""Validadores de snapshots entrantes.

Valida líneas JSON del host y las transforma al modelo interno `Metric`.

Formato esperado:
{
    "name": "snmp",
    "tags": {"host": "r1", "ifName": "eth0"},
    "fields": {"in": 123456, "out": 654321, "ifDescr": "uplink"},
    "timestamp": 1706688000
}

Los valores de `fields` se conservan tal cual: el filtrado numérico es
responsabilidad del engine.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.metric import Metric

logger = logging.getLogger(__name__)


class MetricIn(BaseModel):
    name: str = Field(..., min_length=1)
    tags: Dict[str, str] = Field(default_factory=dict)
    fields: Dict[str, Any] = Field(default_factory=dict)
    timestamp: Optional[float] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("tags", mode="before")
    @classmethod
    def stringify_tags(cls, v):
        if isinstance(v, dict):
            return {str(k): str(val) for k, val in v.items()}
        return v

    def to_metric(self) -> Metric:
        return Metric(
            name=self.name,
            tags=dict(self.tags),
            fields=dict(self.fields),
            timestamp=self.timestamp,
        )


@dataclass
class ValidationResult:
    """Resultado de validación."""

    valid: bool
    metric: Optional[Metric] = None
    error: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


def validate_metric(data: Any) -> ValidationResult:
    """Valida un snapshot ya decodificado (dict)."""
    if not isinstance(data, dict):
        logger.warning("SNAPSHOT_REJECTED not_object=%s", type(data).__name__)
        return ValidationResult(valid=False, error=f"expected a JSON object, got {type(data).__name__}")

    try:
        payload = MetricIn.model_validate(data)
    except ValidationError as e:
        logger.warning("SNAPSHOT_REJECTED error=%s", e)
        return ValidationResult(valid=False, error=str(e))

    warnings = []
    if not payload.fields:
        warnings.append("snapshot has no fields")

    return ValidationResult(valid=True, metric=payload.to_metric(), warnings=warnings)


def parse_metric_line(line: str) -> ValidationResult:
    """Decode and validate one JSON line."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        logger.warning("SNAPSHOT_REJECTED malformed_json=%s", e)
        return ValidationResult(valid=False, error=f"malformed JSON: {e}")
    return validate_metric(data)


def metric_to_json(metric: Metric) -> str:
    """Serialize an emitted metric as one JSON line."""
    payload = {"name": metric.name, "tags": metric.tags, "fields": metric.fields}
    if metric.timestamp is not None:
        payload["timestamp"] = metric.timestamp
    return json.dumps(payload, sort_keys=True)
