"""CSV export of saved analyses (semicolon separated, Excel pt-BR friendly)."""

from __future__ import annotations

import csv
import io
from typing import Iterable, Mapping, Union

# Ensure all formulas are registered on import
import dashboard.metrics.formulas  # noqa: F401
from dashboard.metrics.registry import get_all_metrics
from dashboard.models.domain import AnalysisData

Cell = Union[str, int, float, None]


def analyses_to_rows(analyses: Iterable[AnalysisData]) -> list[dict[str, Cell]]:
    """Flatten analyses into one export row each, metric columns labelled."""
    metrics = get_all_metrics()
    rows: list[dict[str, Cell]] = []
    for analysis in analyses:
        form = analysis.form_data.to_dict()
        derived = analysis.calculated_data.to_dict()
        row: dict[str, Cell] = {
            "id": analysis.id,
            "periodo": form["periodo"],
            "timestamp": analysis.timestamp,
            "userId": analysis.user_id,
            "vbv": form["vbv"],
            "valoresPagosCliente": form["valoresPagosCliente"],
            "vrl": form["vrl"],
            "vrlj": form["vrlj"],
        }
        for metric_id, definition in metrics.items():
            row[definition.label] = derived.get(metric_id)
        rows.append(row)
    return rows


def export_to_csv(rows: list[Mapping[str, Cell]]) -> str:
    """Render rows as CSV text. Headers come from the first row."""
    if not rows:
        return ""
    headers = list(rows[0].keys())
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if row.get(h) is None else row.get(h) for h in headers])
    return buffer.getvalue()
