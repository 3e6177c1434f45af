"""Column mapping between the Supabase tables and the domain records.

The tables use snake_case columns; the domain's camelCase names only
exist in ``to_dict``/``from_dict``. Both directions go through the maps
below so a renamed column is a one-line change.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from .domain import AnalysisData, User

logger = logging.getLogger(__name__)

# Column name -> domain (camelCase) key.
USER_COLUMNS: dict[str, str] = {
    "id": "id",
    "email": "email",
    "name": "name",
    "tenant_id": "tenantId",
    "role": "role",
    "created_at": "createdAt",
}

ANALYSIS_COLUMNS: dict[str, str] = {
    "id": "id",
    "user_id": "userId",
    "tenant_id": "tenantId",
    "form_data": "formData",
    "calculated_data": "calculatedData",
    "timestamp": "timestamp",
}


def _to_row(record: Mapping[str, Any], columns: Mapping[str, str]) -> dict[str, Any]:
    return {column: record.get(key) for column, key in columns.items()}


def _from_row(row: Mapping[str, Any], columns: Mapping[str, str]) -> dict[str, Any]:
    return {key: row.get(column) for column, key in columns.items()}


def user_to_row(user: User) -> dict[str, Any]:
    return _to_row(user.to_dict(), USER_COLUMNS)


def user_from_row(row: Mapping[str, Any]) -> User:
    return User.from_dict(_from_row(row, USER_COLUMNS))


def analysis_to_row(analysis: AnalysisData) -> dict[str, Any]:
    return _to_row(analysis.to_dict(), ANALYSIS_COLUMNS)


def analysis_from_row(row: Mapping[str, Any]) -> AnalysisData:
    if not isinstance(row, Mapping):
        raise ValueError("analysis row must be an object")
    return AnalysisData.from_dict(_from_row(row, ANALYSIS_COLUMNS))


def analyses_from_rows(rows: Iterable[Any]) -> list[AnalysisData]:
    """Map a result set, skipping rows that do not describe an analysis."""
    analyses = []
    for row in rows:
        try:
            analyses.append(analysis_from_row(row))
        except ValueError as e:
            row_id = row.get("id") if isinstance(row, Mapping) else None
            logger.warning(f"Skipping malformed analysis row {row_id}: {e}")
    return analyses
