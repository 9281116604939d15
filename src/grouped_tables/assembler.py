"""Assembly of header rows, body sections and totals into a TableModel.

Column layout: the displayed dimensions first, then one value column per
(measure, pivot column) pair, outer loop over measures and inner loop over
pivot columns, so all columns of one measure are contiguous.  Without pivots
there is exactly one value column per measure.

When pivot keys embed a measure name mid-key (``East|revenue|Q1``), a key
belongs to that one measure only.  The (measure, pivot) pairs of the other
measures are still laid out, so the header blocks keep their shape, but they
are blank columns: no data, no totals.
"""

import logging
from typing import NamedTuple

from grouped_tables.cells import ValueAccessor, as_number, dimension_text, rendered_text
from grouped_tables.config import RenderConfig
from grouped_tables.hierarchy import PivotHierarchy, analyze_pivots, group_consecutive
from grouped_tables.number_format import ResolvedFormat, format_value, resolve_format
from grouped_tables.patterns import NO_DIMENSION_MESSAGE, NO_MEASURE_MESSAGE, TOTAL_LABEL
from grouped_tables.schema import (
    BodyCell,
    BodyRow,
    Field,
    GrandTotal,
    HeaderCell,
    PivotColumn,
    RenderRequest,
    SectionBlock,
    TableModel,
)
from grouped_tables.sections import build_sections

logger = logging.getLogger(__name__)


class MissingFieldsError(ValueError):
    """Raised when a result has no dimension or no measure to build a table from."""


class ValueColumn(NamedTuple):
    measure: Field
    pivot: PivotColumn | None
    blank: bool = False

    @property
    def pivot_key(self) -> str | None:
        return None if self.pivot is None else self.pivot.key


# ─── Columns ─────────────────────────────────────────────────────────────────


def displayed_dimensions(dimension_fields: list[Field], group_field: Field | None) -> list[Field]:
    """Dimensions shown as columns: all but the grouping one (never fewer than one)."""
    if group_field is None:
        return list(dimension_fields)
    shown = [field for field in dimension_fields if field.name != group_field.name]
    return shown or list(dimension_fields[:1])


def value_columns(request: RenderRequest, hierarchy: PivotHierarchy | None = None) -> list[ValueColumn]:
    """One column per (measure, pivot) pair; pairs whose key names another measure are blank."""
    if not request.is_pivoted:
        return [ValueColumn(measure, None) for measure in request.measure_fields]
    columns = []
    for measure in request.measure_fields:
        for pivot in request.pivot_columns:
            owner = hierarchy.measure_token(pivot.key) if hierarchy is not None else None
            columns.append(ValueColumn(measure, pivot, blank=owner is not None and owner != measure.name))
    return columns


# ─── Header ──────────────────────────────────────────────────────────────────


def _pivot_label(pivot: PivotColumn) -> str:
    return TOTAL_LABEL if pivot.is_total else pivot.display_label


def build_header_rows(
    request: RenderRequest,
    dimensions: list[Field],
    hierarchy: PivotHierarchy | None,
    config: RenderConfig,
) -> list[list[HeaderCell]]:
    """Header rows, with the dimension cells spanning every row."""
    measures = request.measure_fields
    pivots = request.pivot_columns
    rows: list[list[HeaderCell]] = []

    if hierarchy is not None and hierarchy.is_hierarchical:
        # One row per level; adjacent pivots sharing a parent path merge into one cell
        for level in range(hierarchy.level_count):
            row: list[HeaderCell] = []
            for _ in measures:
                for run in group_consecutive(pivots, lambda pivot, lvl=level: hierarchy.get_tuple(pivot.key, lvl)):
                    row.append(HeaderCell(text=hierarchy.get_part(run.first.key, level), col_span=run.count))
            rows.append(row)
    elif pivots:
        rows.append([HeaderCell(text=_pivot_label(pivot)) for _ in measures for pivot in pivots])
    else:
        rows.append([HeaderCell(text=measure.display_label) for measure in measures])

    # Without pivots the row above already names the measures
    if pivots and config.show_measure_headers:
        rows.append([HeaderCell(text=measure.display_label) for measure in measures for _ in pivots])

    dimension_cells = [HeaderCell(text=field.display_label, row_span=len(rows)) for field in dimensions]
    rows[0] = dimension_cells + rows[0]
    return rows


# ─── Body ────────────────────────────────────────────────────────────────────


def _value_cell(accessor: ValueAccessor, row: dict, column: ValueColumn, fmt: ResolvedFormat) -> BodyCell:
    if column.blank:
        return BodyCell(text="")
    cell = accessor.cell(row, column.measure.name, column.pivot_key)
    number = as_number(cell.raw)
    if number is None:
        return BodyCell(text=rendered_text(cell))
    return BodyCell(text=format_value(number, fmt), value=number)


def _data_row(row: dict, dimensions: list[Field], columns: list[ValueColumn], accessor: ValueAccessor, fmt: ResolvedFormat) -> BodyRow:
    cells = [BodyCell(text=dimension_text(row, field.name)) for field in dimensions]
    cells.extend(_value_cell(accessor, row, column, fmt) for column in columns)
    return BodyRow(kind="data", cells=cells)


def _total_row(
    kind: str,
    label: str,
    rows: list[dict],
    dimension_count: int,
    columns: list[ValueColumn],
    accessor: ValueAccessor,
    fmt: ResolvedFormat,
) -> BodyRow:
    """A label spanning the dimension block followed by per-column sums over ``rows``."""
    cells = [BodyCell(text=label, col_span=dimension_count)]
    for column in columns:
        if column.blank:
            cells.append(BodyCell(text=""))
            continue
        total = accessor.total(rows, column.measure.name, column.pivot_key)
        cells.append(BodyCell(text=format_value(total, fmt), value=total))
    return BodyRow(kind=kind, cells=cells)


# ─── Table ───────────────────────────────────────────────────────────────────


def assemble_table(request: RenderRequest, config: RenderConfig) -> TableModel:
    """Build the full table model for one render call.

    Raises MissingFieldsError when there is no dimension or no measure.
    """
    if not request.dimension_fields:
        raise MissingFieldsError(NO_DIMENSION_MESSAGE)
    if not request.measure_fields:
        raise MissingFieldsError(NO_MEASURE_MESSAGE)

    dimensions = displayed_dimensions(request.dimension_fields, config.group_by_field)
    hierarchy = None
    if request.is_pivoted:
        hierarchy = analyze_pivots(request.pivot_columns, [measure.name for measure in request.measure_fields])

    columns = value_columns(request, hierarchy)
    accessor = ValueAccessor(request.is_pivoted)
    fmt = resolve_format(config.value_format, config.replace_zero_with_dash)

    header_rows = build_header_rows(request, dimensions, hierarchy, config)

    # ── Sections, each with optional sub-total ────────────────────────────
    grouped = config.group_by_field is not None
    blocks: list[SectionBlock] = []
    for section in build_sections(request.rows, config.group_by_field):
        subtotal = None
        if grouped and config.show_sub_totals and section.rows:
            subtotal = _total_row("subtotal", TOTAL_LABEL, section.rows, len(dimensions), columns, accessor, fmt)
        blocks.append(
            SectionBlock(
                label=section.label,
                rows=[_data_row(row, dimensions, columns, accessor, fmt) for row in section.rows],
                subtotal=subtotal,
            )
        )

    # ── Grand total over every row ────────────────────────────────────────
    grand_total = None
    if config.show_grand_total:
        row = _total_row("grand_total", config.grand_total_label, request.rows, len(dimensions), columns, accessor, fmt)
        grand_total = GrandTotal(position=config.grand_total_position, row=row)

    model = TableModel(
        header_rows=header_rows,
        sections=blocks,
        grand_total=grand_total,
        dimension_column_count=len(dimensions),
        value_column_count=len(columns),
        section_spacing_px=config.section_spacing_px,
    )
    logger.info(
        "Assembled table: %d header rows, %d sections, %d data rows, %d value columns",
        len(header_rows),
        len(blocks),
        len(request.rows),
        len(columns),
    )
    return model
