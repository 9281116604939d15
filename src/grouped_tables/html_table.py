"""Plain HTML serialisation of a TableModel.

Produces an unstyled ``<table>``; colours, borders and sticky columns are the
host's concern.  Spacer rows carry only their height.
"""

from html import escape

from grouped_tables.schema import BodyRow, HeaderCell, TableModel


def _span_attrs(col_span: int, row_span: int = 1) -> str:
    attrs = ""
    if col_span != 1:
        attrs += f' colspan="{col_span}"'
    if row_span != 1:
        attrs += f' rowspan="{row_span}"'
    return attrs


def _header_row(cells: list[HeaderCell]) -> str:
    inner = "".join(f"<th{_span_attrs(c.col_span, c.row_span)}>{escape(c.text)}</th>" for c in cells)
    return f"<tr>{inner}</tr>"


def _body_row(row: BodyRow) -> str:
    if row.kind == "spacer":
        return f'<tr class="spacer"><td{_span_attrs(row.width)} style="height:{row.height_px}px"></td></tr>'
    inner = "".join(f"<td{_span_attrs(c.col_span)}>{escape(c.text)}</td>" for c in row.cells)
    css = "" if row.kind == "data" else f' class="{row.kind.replace("_", "-")}"'
    return f"<tr{css}>{inner}</tr>"


def to_html(model: TableModel) -> str:
    """Render the model as an HTML table string."""
    lines = ['<table class="grouped-tables-table">', "<thead>"]
    lines.extend(_header_row(row) for row in model.header_rows)
    lines.append("</thead>")
    lines.append("<tbody>")
    lines.extend(_body_row(row) for row in model.body_rows())
    lines.append("</tbody>")
    lines.append("</table>")
    return "\n".join(lines)


def message_html(message: str) -> str:
    """Advisory or error text shown in place of a table."""
    return f"<p>{escape(message)}</p>"
