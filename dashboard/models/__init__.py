from .domain import (
    AnalysisData,
    DerivedMetrics,
    FormInput,
    User,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "AnalysisData",
    "DerivedMetrics",
    "FormInput",
    "User",
    "ValidationIssue",
    "ValidationResult",
]
