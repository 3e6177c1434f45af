"""Domain records for the reconciliation dashboard.

Attribute names are snake_case. ``to_dict``/``from_dict`` speak the
camelCase shape the UI and the local cache use.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from uuid import uuid4


def coerce_number(value: Any) -> float:
    """Best-effort float conversion; anything unusable becomes 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _nested(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{key}' must be an object, got {type(value).__name__}")
    return value


def timestamp_sort_key(timestamp: str) -> tuple[int, float, str]:
    """Order ISO-8601 timestamps by instant, whatever their UTC offset.

    Naive values count as UTC. Unparseable values sort before every valid
    one and among themselves as plain strings.
    """
    try:
        moment = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return (0, 0.0, str(timestamp))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return (1, moment.timestamp(), "")


@dataclass
class User:
    id: str
    email: str
    name: str
    tenant_id: str
    role: str = "user"
    created_at: str = field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "tenantId": self.tenant_id,
            "role": self.role,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        return cls(
            id=str(data.get("id") or ""),
            email=str(data.get("email") or ""),
            name=str(data.get("name") or ""),
            tenant_id=str(data.get("tenantId") or ""),
            role=str(data.get("role") or "user"),
            created_at=str(data.get("createdAt") or ""),
        )


@dataclass
class FormInput:
    """Raw figures typed in from one settlement report."""

    vbv: float = 0.0
    valores_pagos_cliente: float = 0.0
    vrl: float = 0.0
    vrlj: float = 0.0
    additional_values: dict[str, float] = field(default_factory=dict)
    periodo: str = ""
    tenant_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "vbv": self.vbv,
            "valoresPagosCliente": self.valores_pagos_cliente,
            "vrl": self.vrl,
            "vrlj": self.vrlj,
            "additionalValues": dict(self.additional_values),
            "periodo": self.periodo,
            "tenantId": self.tenant_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FormInput:
        extra = data.get("additionalValues") or {}
        if not isinstance(extra, Mapping):
            extra = {}
        return cls(
            vbv=coerce_number(data.get("vbv")),
            valores_pagos_cliente=coerce_number(data.get("valoresPagosCliente")),
            vrl=coerce_number(data.get("vrl")),
            vrlj=coerce_number(data.get("vrlj")),
            additional_values={str(k): coerce_number(v) for k, v in extra.items()},
            periodo=str(data.get("periodo") or ""),
            tenant_id=str(data.get("tenantId") or ""),
        )


@dataclass(frozen=True)
class DerivedMetrics:
    rbr: float
    rol: float
    rentabilidade_liquida: float
    retencao_ifood_percentual: float
    valor_retido_ifood: float

    def to_dict(self) -> dict[str, float]:
        return {
            "rbr": self.rbr,
            "rol": self.rol,
            "rentabilidadeLiquida": self.rentabilidade_liquida,
            "retencaoIfoodPercentual": self.retencao_ifood_percentual,
            "valorRetidoIfood": self.valor_retido_ifood,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DerivedMetrics:
        return cls(
            rbr=coerce_number(data.get("rbr")),
            rol=coerce_number(data.get("rol")),
            rentabilidade_liquida=coerce_number(data.get("rentabilidadeLiquida")),
            retencao_ifood_percentual=coerce_number(data.get("retencaoIfoodPercentual")),
            valor_retido_ifood=coerce_number(data.get("valorRetidoIfood")),
        )


@dataclass
class AnalysisData:
    """One persisted reconciliation. Append-only once saved."""

    id: str
    user_id: str
    tenant_id: str
    form_data: FormInput
    calculated_data: DerivedMetrics
    timestamp: str

    @classmethod
    def create(
        cls,
        user_id: str,
        tenant_id: str,
        form_data: FormInput,
        analysis_id: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> AnalysisData:
        """Build a new record, deriving ``calculated_data`` from the form."""
        from dashboard.metrics.formulas import calculate_metrics

        return cls(
            id=analysis_id or str(uuid4()),
            user_id=user_id,
            tenant_id=tenant_id,
            form_data=form_data,
            calculated_data=calculate_metrics(form_data),
            timestamp=timestamp or datetime.now(tz=timezone.utc).isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "tenantId": self.tenant_id,
            "formData": self.form_data.to_dict(),
            "calculatedData": self.calculated_data.to_dict(),
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AnalysisData:
        """Rebuild a stored record. Raises ValueError on a malformed one."""
        if not isinstance(data, Mapping):
            raise ValueError("analysis record must be an object")
        return cls(
            id=str(data.get("id") or ""),
            user_id=str(data.get("userId") or ""),
            tenant_id=str(data.get("tenantId") or ""),
            form_data=FormInput.from_dict(_nested(data, "formData")),
            calculated_data=DerivedMetrics.from_dict(_nested(data, "calculatedData")),
            timestamp=str(data.get("timestamp") or ""),
        )


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


@dataclass
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": list(self.warnings),
        }
