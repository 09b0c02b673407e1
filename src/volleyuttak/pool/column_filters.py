"""Per-column operator filters for the tabular player views."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Literal, Mapping, get_args


Operator = Literal["contains", "equals", "starts_with", "ends_with", ">", ">=", "<", "<=", "!="]
OPERATORS: tuple[str, ...] = get_args(Operator)

OPERATOR_LABELS: Mapping[str, str] = {
    "contains": "Contains",
    "equals": "Equals",
    "starts_with": "Starts with",
    "ends_with": "Ends with",
    ">": ">",
    ">=": ">=",
    "<": "<",
    "<=": "<=",
    "!=": "Not equal",
}


@dataclass(frozen=True)
class ColumnFilter:
    column: str
    op: Operator = "contains"
    value: str = ""

    @property
    def is_active(self) -> bool:
        return self.value != ""


def _to_number(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def cell_matches(cell: Any, column_filter: ColumnFilter) -> bool:
    if cell is None:
        return False
    text = str(cell).lower()
    needle = column_filter.value.lower()
    op = column_filter.op
    if op == "contains":
        return needle in text
    if op == "equals":
        return text == needle
    if op == "starts_with":
        return text.startswith(needle)
    if op == "ends_with":
        return text.endswith(needle)
    if op == "!=":
        return text != needle

    left = _to_number(cell)
    right = _to_number(column_filter.value)
    if left is None or right is None:
        return False
    if op == ">":
        return left > right
    if op == ">=":
        return left >= right
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    return True


def apply_column_filters(
    rows: Iterable[Mapping[str, Any]],
    filters: Iterable[ColumnFilter],
) -> list[Mapping[str, Any]]:
    active = [item for item in filters if item.is_active]
    row_list = list(rows)
    if not active:
        return row_list
    return [
        row
        for row in row_list
        if all(cell_matches(row.get(item.column), item) for item in active)
    ]


def parse_column_filters(params: Mapping[str, str], columns: Iterable[str]) -> list[ColumnFilter]:
    """Read ``f_<column>`` / ``op_<column>`` query parameters."""

    parsed: list[ColumnFilter] = []
    for column in columns:
        value = params.get(f"f_{column}", "")
        if not value:
            continue
        op = params.get(f"op_{column}", "contains")
        if op not in OPERATORS:
            op = "contains"
        parsed.append(ColumnFilter(column=column, op=op, value=value))  # type: ignore[arg-type]
    return parsed


__all__ = [
    "ColumnFilter",
    "OPERATORS",
    "OPERATOR_LABELS",
    "apply_column_filters",
    "cell_matches",
    "parse_column_filters",
]
