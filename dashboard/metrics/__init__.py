from .export import analyses_to_rows, export_to_csv
from .formatting import (
    format_currency,
    format_decimal,
    format_percentage,
    generate_result_messages,
    generate_test_data,
)
from .formulas import calculate_metrics, validate_form_data
from .normalize import normalize_number

__all__ = [
    "analyses_to_rows",
    "calculate_metrics",
    "export_to_csv",
    "format_currency",
    "format_decimal",
    "format_percentage",
    "generate_result_messages",
    "generate_test_data",
    "normalize_number",
    "validate_form_data",
]
