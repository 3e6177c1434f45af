"""pt-BR display helpers for the dashboard cards and the currency input."""

from __future__ import annotations

import math
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from dashboard.models.domain import DerivedMetrics, FormInput


def format_decimal(value: Optional[float], digits: int = 2) -> str:
    """1234.5 -> "1.234,50". Rounds half away from zero."""
    if value is None or not math.isfinite(value):
        value = 0.0
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    text = f"{abs(rounded):,.{digits}f}"
    text = text.replace(",", "_").replace(".", ",").replace("_", ".")
    return f"-{text}" if rounded < 0 else text


def format_currency(value: Optional[float]) -> str:
    """1234.56 -> "R$ 1.234,56"; negatives as "-R$ 10,00"."""
    text = format_decimal(value)
    if text.startswith("-"):
        return f"-R$ {text[1:]}"
    return f"R$ {text}"


def format_percentage(value: Optional[float]) -> str:
    """Takes a 0-100 figure: 78.125 -> "78,13%"."""
    return f"{format_decimal(value)}%"


def generate_result_messages(metrics: DerivedMetrics) -> list[str]:
    return [
        f"Sua RBR foi {format_currency(metrics.rbr)}.",
        f"Seu ROL foi {format_currency(metrics.rol)}.",
        f"Rentabilidade líquida: {format_percentage(metrics.rentabilidade_liquida)}.",
        (
            f"Retenção iFood: {format_percentage(metrics.retencao_ifood_percentual)} "
            f"({format_currency(metrics.valor_retido_ifood)})."
        ),
    ]


def generate_test_data(tenant_id: str = "demo-tenant") -> FormInput:
    """Sample figures used to pre-fill the form in demos."""
    return FormInput(
        vbv=100000,
        valores_pagos_cliente=4000,
        vrl=70000,
        vrlj=5000,
        additional_values={},
        periodo=date.today().strftime("%Y-%m"),
        tenant_id=tenant_id,
    )
