"""Settlement metrics for iFood revenue reconciliation.

Each formula is a pure calculation with no side effects. Monetary values
are in BRL; percentages are on a 0-100 scale.
"""

from __future__ import annotations

from typing import Any, Mapping, Union

from dashboard.metrics.registry import register_metric
from dashboard.models.domain import (
    DerivedMetrics,
    FormInput,
    ValidationIssue,
    ValidationResult,
    coerce_number,
)

FormLike = Union[FormInput, Mapping[str, Any]]


@register_metric(
    metric_id="rbr",
    label="Receita Bruta Real",
    description="Gross billed value (VBV) minus the amounts the customer paid directly.",
)
def calc_rbr(vbv: float, valores_pagos_cliente: float) -> float:
    """RBR = VBV - valores pagos pelo cliente"""
    return vbv - valores_pagos_cliente


@register_metric(
    metric_id="rol",
    label="Receita Operacional Líquida",
    description="Sum of the two net settlement components (VRL + VRLJ).",
)
def calc_rol(vrl: float, vrlj: float) -> float:
    """ROL = VRL + VRLJ"""
    return vrl + vrlj


@register_metric(
    metric_id="rentabilidadeLiquida",
    label="Rentabilidade Líquida",
    description="Share of the gross real revenue that reaches the merchant.",
    unit="percentage",
)
def calc_rentabilidade_liquida(rol: float, rbr: float) -> float:
    """Rentabilidade = ROL / RBR * 100, or 0 when RBR is not positive"""
    if rbr <= 0:
        return 0.0
    return (rol / rbr) * 100


@register_metric(
    metric_id="retencaoIfoodPercentual",
    label="Retenção iFood",
    description="Share of the gross real revenue kept by the platform.",
    unit="percentage",
)
def calc_retencao_ifood_percentual(rentabilidade_liquida: float) -> float:
    """Retenção = 100 - rentabilidade"""
    return 100 - rentabilidade_liquida


@register_metric(
    metric_id="valorRetidoIfood",
    label="Valor Retido iFood",
    description="Amount kept by the platform (RBR - ROL).",
)
def calc_valor_retido_ifood(rbr: float, rol: float) -> float:
    """Valor retido = RBR - ROL"""
    return rbr - rol


def _base_figures(form: FormLike) -> tuple[float, float, float, float]:
    if isinstance(form, FormInput):
        raw = (form.vbv, form.valores_pagos_cliente, form.vrl, form.vrlj)
    else:
        raw = (
            form.get("vbv"),
            form.get("valoresPagosCliente"),
            form.get("vrl"),
            form.get("vrlj"),
        )
    vbv, vpc, vrl, vrlj = raw
    return coerce_number(vbv), coerce_number(vpc), coerce_number(vrl), coerce_number(vrlj)


def calculate_metrics(form: FormLike) -> DerivedMetrics:
    """Derive every dashboard metric from one settlement form.

    Missing or non-numeric figures count as zero, so this never raises.
    """
    vbv, vpc, vrl, vrlj = _base_figures(form)

    rbr = calc_rbr(vbv, vpc)
    rol = calc_rol(vrl, vrlj)
    rentabilidade = calc_rentabilidade_liquida(rol, rbr)

    return DerivedMetrics(
        rbr=rbr,
        rol=rol,
        rentabilidade_liquida=rentabilidade,
        retencao_ifood_percentual=calc_retencao_ifood_percentual(rentabilidade),
        valor_retido_ifood=calc_valor_retido_ifood(rbr, rol),
    )


def validate_form_data(form: FormLike) -> ValidationResult:
    """Check that a form has enough to produce meaningful metrics.

    Errors block saving; warnings are informational only.
    """
    vbv, vpc, vrl, vrlj = _base_figures(form)
    rbr = calc_rbr(vbv, vpc)
    rol = calc_rol(vrl, vrlj)

    result = ValidationResult()
    if vbv <= 0:
        result.errors.append(ValidationIssue("vbv", "VBV deve ser maior que zero."))
    if vpc < 0:
        result.errors.append(
            ValidationIssue(
                "valoresPagosCliente",
                "Valores pagos pelo cliente não pode ser negativo.",
            )
        )
    if rbr <= 0:
        result.errors.append(
            ValidationIssue(
                "base",
                "Receita Bruta Real (VBV - valores pagos) deve ser positiva.",
            )
        )
    if rol > rbr:
        result.warnings.append("ROL maior do que a Receita Bruta Real. Revise os números.")
    return result
