"""Pydantic models for grouped-table inputs and the assembled table model.

Inputs (Field, Cell, PivotColumn, RenderRequest) describe one query result
snapshot as supplied by the host.  Outputs (HeaderCell, BodyRow,
SectionBlock, GrandTotal, TableModel) are what assembler.py produces and
html_table.py / the web layer serialise.  Every instance is created fresh per
render call.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, model_validator

# ─── Inputs ───────────────────────────────────────────────────────────────────


class Field(BaseModel):
    """A dimension or measure descriptor."""

    model_config = ConfigDict(frozen=True)

    name: str
    label: str | None = None
    label_short: str | None = None

    @property
    def display_label(self) -> str:
        return self.label_short or self.label or self.name


class Cell(BaseModel):
    """One datum: ``rendered`` wins for display, ``raw`` feeds aggregation."""

    model_config = ConfigDict(frozen=True)

    raw: Any = None
    rendered: str | None = None


class PivotColumn(BaseModel):
    """One pivoted column, in the order the host supplied it.

    ``levels`` carries structured per-level values when the host provides them;
    otherwise the hierarchy is recovered by parsing ``key``.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    is_total: bool = False
    label: str | None = None
    label_short: str | None = None
    levels: list[str | None] | None = None

    @property
    def display_label(self) -> str:
        return self.label_short or self.label or self.key


class RenderRequest(BaseModel):
    """Everything one render call needs: fields, pivots, rows and host options."""

    dimension_fields: list[Field] = []
    measure_fields: list[Field] = []
    pivot_columns: list[PivotColumn] = []
    rows: list[dict[str, Any]] = []
    config: dict[str, Any] = {}

    @property
    def is_pivoted(self) -> bool:
        return bool(self.pivot_columns)

    @classmethod
    def from_query_response(cls, data: list[dict], query_response: dict, config: dict | None = None) -> "RenderRequest":
        """Build a request from the host's raw ``data`` / ``queryResponse`` shapes.

        Pivot entries carry ``key``, ``is_total``, ``label``, ``label_short`` and
        an optional ``data`` mapping of pivot field name -> value, which becomes
        the structured ``levels`` list in pivot field order.
        """
        fields = query_response.get("fields", {})
        pivot_field_names = [p["name"] for p in fields.get("pivots", [])]

        pivot_columns: list[PivotColumn] = []
        for pivot in query_response.get("pivots", []) or []:
            levels = None
            pivot_data = pivot.get("data")
            if pivot_data and pivot_field_names:
                levels = [_level_value(pivot_data.get(name)) for name in pivot_field_names]
            pivot_columns.append(
                PivotColumn(
                    key=pivot["key"],
                    is_total=bool(pivot.get("is_total", False)),
                    label=pivot.get("label"),
                    label_short=pivot.get("label_short"),
                    levels=levels,
                )
            )

        return cls(
            dimension_fields=[Field(**_field_kwargs(f)) for f in fields.get("dimension_like", [])],
            measure_fields=[Field(**_field_kwargs(f)) for f in fields.get("measure_like", [])],
            pivot_columns=pivot_columns,
            rows=data,
            config=config or {},
        )


def _field_kwargs(raw: dict) -> dict:
    """Keep only the keys Field knows about."""
    return {"name": raw["name"], "label": raw.get("label"), "label_short": raw.get("label_short")}


def _level_value(value: Any) -> str | None:
    """Structured pivot data may hold a bare value or a ``{"value": ...}`` cell."""
    if isinstance(value, dict):
        value = value.get("value")
    return None if value is None else str(value)


class Section(BaseModel):
    """A contiguous group of input rows sharing one grouping value.

    ``label`` is None only for the single implicit section used when no
    grouping dimension is configured.
    """

    label: str | None
    rows: list[dict[str, Any]] = []


# ─── Table Model ──────────────────────────────────────────────────────────────


class HeaderCell(BaseModel):
    text: str
    col_span: int = 1
    row_span: int = 1


class BodyCell(BaseModel):
    text: str
    col_span: int = 1
    value: float | None = None


class BodyRow(BaseModel):
    kind: Literal["data", "section_label", "subtotal", "grand_total", "spacer"]
    cells: list[BodyCell]
    height_px: int | None = None

    @property
    def width(self) -> int:
        return sum(cell.col_span for cell in self.cells)


class SectionBlock(BaseModel):
    """An assembled section: its label, formatted data rows and optional sub-total."""

    label: str | None
    rows: list[BodyRow]
    subtotal: BodyRow | None = None


class GrandTotal(BaseModel):
    position: Literal["top", "bottom"]
    row: BodyRow


class TableModel(BaseModel):
    """Presentation-ready grouped table.

    The model_validator guarantees that every header row is exactly as wide as
    the table once cells spanning down from earlier header rows are counted,
    and that every body row has the table width.
    """

    header_rows: list[list[HeaderCell]]
    sections: list[SectionBlock]
    grand_total: GrandTotal | None = None
    dimension_column_count: int
    value_column_count: int
    section_spacing_px: int = 0

    @property
    def width(self) -> int:
        return self.dimension_column_count + self.value_column_count

    def header_row_widths(self) -> list[int]:
        """Effective width of each header row, including cells spanning down from above."""
        widths: list[int] = []
        carried: list[list[int]] = []  # [columns, rows still covered]
        for row in self.header_rows:
            widths.append(sum(cell.col_span for cell in row) + sum(cols for cols, _ in carried))
            carried = [[cols, remaining - 1] for cols, remaining in carried if remaining > 1]
            carried.extend([cell.col_span, cell.row_span - 1] for cell in row if cell.row_span > 1)
        return widths

    def _spacer(self) -> BodyRow:
        return BodyRow(kind="spacer", cells=[BodyCell(text="", col_span=self.width)], height_px=self.section_spacing_px)

    def body_rows(self) -> list[BodyRow]:
        """Flatten sections and the grand total into display order, inserting spacer rows."""
        spacing = self.section_spacing_px > 0
        rows: list[BodyRow] = []

        if self.grand_total is not None and self.grand_total.position == "top":
            rows.append(self.grand_total.row)
            if spacing:
                rows.append(self._spacer())

        for idx, section in enumerate(self.sections):
            if spacing and idx > 0:
                rows.append(self._spacer())
            if section.label is not None:
                rows.append(
                    BodyRow(
                        kind="section_label",
                        cells=[
                            BodyCell(text=section.label, col_span=self.dimension_column_count),
                            BodyCell(text="", col_span=self.value_column_count),
                        ],
                    )
                )
            rows.extend(section.rows)
            if section.subtotal is not None:
                rows.append(section.subtotal)

        if self.grand_total is not None and self.grand_total.position == "bottom":
            if spacing:
                rows.append(self._spacer())
            rows.append(self.grand_total.row)

        return rows

    @model_validator(mode="after")
    def validate_widths(self) -> "TableModel":
        """Ensure header and body rows all span exactly the table width."""
        for i, width in enumerate(self.header_row_widths()):
            if width != self.width:
                raise ValueError(f"Header row {i} spans {width} columns, expected {self.width}")
        for section in self.sections:
            for row in section.rows + ([section.subtotal] if section.subtotal else []):
                if row.width != self.width:
                    raise ValueError(f"Body row spans {row.width} columns, expected {self.width}")
        if self.grand_total is not None and self.grand_total.row.width != self.width:
            raise ValueError(f"Grand total spans {self.grand_total.row.width} columns, expected {self.width}")
        return self


class RenderResult(BaseModel):
    """Outcome of one render call: a model, or a message shown in its place."""

    model: TableModel | None = None
    message: str | None = None

    @property
    def ok(self) -> bool:
        return self.model is not None
