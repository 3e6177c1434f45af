from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

# Global registry -- maps metric_id -> MetricDefinition, in registration order
_REGISTRY: dict[str, MetricDefinition] = {}


@dataclass(frozen=True)
class MetricDefinition:
    """A derived metric shown on the dashboard and in exports."""

    id: str  # DerivedMetrics key in its camelCase form
    label: str
    description: str
    formula_fn: Callable[..., float]
    unit: str = "currency"  # "currency" or "percentage"


def register_metric(
    metric_id: str,
    label: str,
    description: str,
    unit: str = "currency",
) -> Callable:
    """Decorator to register a formula function as a derived metric."""

    def decorator(fn: Callable[..., float]) -> Callable[..., float]:
        _REGISTRY[metric_id] = MetricDefinition(
            id=metric_id,
            label=label,
            description=description,
            formula_fn=fn,
            unit=unit,
        )
        return fn

    return decorator


def get_metric(metric_id: str) -> Optional[MetricDefinition]:
    """Look up a metric definition by ID."""
    return _REGISTRY.get(metric_id)


def get_all_metrics() -> dict[str, MetricDefinition]:
    """Return the full registry (read-only copy)."""
    return dict(_REGISTRY)
