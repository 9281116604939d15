"""Normalisation of raw result cells and value lookup by field / pivot key.

Result rows arrive as ``{field: {"value": ..., "rendered": ...}}`` or, for
pivoted measures, ``{field: {pivot_key: {"value": ..., "rendered": ...}}}``.
Everything above this module works with ``Cell`` objects instead.
"""

import math
from typing import Any

from grouped_tables.schema import Cell

EMPTY_CELL = Cell()


def to_cell(payload: Any) -> Cell:
    """Turn one raw cell payload into a Cell.

    Accepts the host's ``{"value", "rendered"}`` dicts, an existing Cell, or a
    bare scalar (treated as the raw value).
    """
    if payload is None:
        return EMPTY_CELL
    if isinstance(payload, Cell):
        return payload
    if isinstance(payload, dict):
        raw = payload.get("value", payload.get("raw"))
        rendered = payload.get("rendered")
        return Cell(raw=raw, rendered=None if rendered is None else str(rendered))
    return Cell(raw=payload)


def rendered_text(cell: Cell) -> str:
    """Display text: the rendered string if present, else the raw value, else ''."""
    if cell.rendered is not None:
        return cell.rendered
    if cell.raw is None:
        return ""
    return str(cell.raw)


def as_number(raw: Any) -> float | None:
    """Coerce a raw value to a finite float, or None when that is not possible."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def numeric_value(cell: Cell) -> float:
    """Aggregation value: the raw value as a float, 0 when missing or non-finite."""
    number = as_number(cell.raw)
    return 0.0 if number is None else number


class ValueAccessor:
    """Reads measure cells from rows, pivoted or flat.

    The pivoted flag is fixed per render so call sites never inspect the row
    shape themselves.
    """

    def __init__(self, is_pivoted: bool):
        self.is_pivoted = is_pivoted

    def cell(self, row: dict, field_name: str, pivot_key: str | None = None) -> Cell:
        entry = row.get(field_name)
        if self.is_pivoted:
            if not isinstance(entry, dict) or pivot_key is None:
                return EMPTY_CELL
            return to_cell(entry.get(pivot_key))
        return to_cell(entry)

    def number(self, row: dict, field_name: str, pivot_key: str | None = None) -> float:
        return numeric_value(self.cell(row, field_name, pivot_key))

    def total(self, rows: list[dict], field_name: str, pivot_key: str | None = None) -> float:
        """Sum of the aggregation values of one value column over ``rows``."""
        return sum(self.number(row, field_name, pivot_key) for row in rows)


def dimension_text(row: dict, field_name: str) -> str:
    """Rendered text of a dimension cell (dimensions are never pivoted)."""
    return rendered_text(to_cell(row.get(field_name)))
