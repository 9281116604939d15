"""Unit tests for table model assembly: headers, sections, totals and widths."""

# pylint: disable=missing-class-docstring,missing-function-docstring

import pytest
from pydantic import ValidationError

from grouped_tables.assembler import MissingFieldsError, assemble_table, displayed_dimensions, value_columns
from grouped_tables.config import RenderConfig
from grouped_tables.hierarchy import analyze_pivots
from grouped_tables.schema import Field, HeaderCell, PivotColumn, RenderRequest, TableModel

SEGMENT = Field(name="segment", label="Segment")
REP = Field(name="rep", label="Sales Rep", label_short="Rep")
REVENUE = Field(name="revenue", label="Revenue")
COST = Field(name="cost", label="Cost")

PIVOT_KEYS = ("East|Q1", "East|Q2", "West|Q1")


def pivot_cells(*values) -> dict:
    return {key: {"value": value} for key, value in zip(PIVOT_KEYS, values)}


def pivoted_request(measures=(REVENUE,), keys=PIVOT_KEYS) -> RenderRequest:
    rows = [
        {"segment": {"value": "Retail"}, "rep": {"value": "Ann"}, "revenue": pivot_cells(10, 20, 5), "cost": pivot_cells(1, 2, 3)},
        {"segment": {"value": "Online"}, "rep": {"value": "Bob"}, "revenue": pivot_cells(1.5, 0, None), "cost": pivot_cells(1, 1, 1)},
        {"segment": {"value": "Retail"}, "rep": {"value": "Cy"}, "revenue": pivot_cells(2, 3, 4), "cost": pivot_cells(0, 0, 0)},
    ]
    return RenderRequest(
        dimension_fields=[SEGMENT, REP],
        measure_fields=list(measures),
        pivot_columns=[PivotColumn(key=key) for key in keys],
        rows=rows,
    )


def flat_request() -> RenderRequest:
    return RenderRequest(
        dimension_fields=[REP],
        measure_fields=[REVENUE],
        rows=[{"rep": {"value": "Ann"}, "revenue": {"value": 1234.5}}, {"rep": {"value": "Bob"}, "revenue": {"value": 0}}],
    )


def texts(cells) -> list[str]:
    return [cell.text for cell in cells]


def spans(cells) -> list[tuple[str, int]]:
    return [(cell.text, cell.col_span) for cell in cells]


GROUPED = RenderConfig(group_by_field=SEGMENT)


# ===========================================================================
# Preconditions and columns
# ===========================================================================


class TestPreconditions:

    def test_no_dimension(self):
        request = RenderRequest(measure_fields=[REVENUE])
        with pytest.raises(MissingFieldsError, match="Add at least one dimension."):
            assemble_table(request, RenderConfig())

    def test_no_measure(self):
        request = RenderRequest(dimension_fields=[REP])
        with pytest.raises(MissingFieldsError, match="Add at least one measure."):
            assemble_table(request, RenderConfig())


class TestColumns:

    def test_group_dimension_is_not_displayed(self):
        assert displayed_dimensions([SEGMENT, REP], SEGMENT) == [REP]

    def test_sole_dimension_stays_displayed(self):
        assert displayed_dimensions([SEGMENT], SEGMENT) == [SEGMENT]

    def test_measures_outer_pivots_inner(self):
        columns = value_columns(pivoted_request(measures=(REVENUE, COST)))
        assert [(c.measure.name, c.pivot_key) for c in columns] == [
            ("revenue", "East|Q1"),
            ("revenue", "East|Q2"),
            ("revenue", "West|Q1"),
            ("cost", "East|Q1"),
            ("cost", "East|Q2"),
            ("cost", "West|Q1"),
        ]

    def test_flat_columns(self):
        assert [(c.measure.name, c.pivot_key) for c in value_columns(flat_request())] == [("revenue", None)]


# ===========================================================================
# Headers
# ===========================================================================


class TestFlatHeaders:

    def test_single_dimension_single_measure(self):
        """No pivot, no grouping: one header row, one section, no sub-total."""
        model = assemble_table(flat_request(), RenderConfig())
        assert len(model.header_rows) == 1
        assert texts(model.header_rows[0]) == ["Rep", "Revenue"]
        assert len(model.sections) == 1
        assert model.sections[0].label is None
        assert model.sections[0].subtotal is None


class TestHierarchicalHeaders:

    def test_level_zero_merges_shared_parents(self):
        model = assemble_table(pivoted_request(), RenderConfig(group_by_field=SEGMENT, show_measure_headers=False))
        assert len(model.header_rows) == 2
        assert spans(model.header_rows[0]) == [("Rep", 1), ("East", 2), ("West", 1)]
        assert spans(model.header_rows[1]) == [("Q1", 1), ("Q2", 1), ("Q1", 1)]

    def test_dimension_cells_span_all_header_rows(self):
        model = assemble_table(pivoted_request(), GROUPED)
        assert len(model.header_rows) == 3
        assert model.header_rows[0][0] == HeaderCell(text="Rep", row_span=3)

    def test_measure_header_row(self):
        model = assemble_table(pivoted_request(), GROUPED)
        assert texts(model.header_rows[2]) == ["Revenue", "Revenue", "Revenue"]

    def test_runs_restart_per_measure(self):
        model = assemble_table(pivoted_request(measures=(REVENUE, COST)), RenderConfig(show_measure_headers=False))
        assert spans(model.header_rows[0])[2:] == [("East", 2), ("West", 1), ("East", 2), ("West", 1)]

    def test_non_adjacent_parents_are_not_merged(self):
        keys = ("East|Q1", "West|Q1", "East|Q2")
        model = assemble_table(pivoted_request(keys=keys), RenderConfig(show_measure_headers=False))
        assert spans(model.header_rows[0])[2:] == [("East", 1), ("West", 1), ("East", 1)]


class TestSingleLevelPivotHeaders:

    def test_pivot_labels_and_total(self):
        request = RenderRequest(
            dimension_fields=[REP],
            measure_fields=[REVENUE],
            pivot_columns=[
                PivotColumn(key="East", label="East region", label_short="East"),
                PivotColumn(key="$$$_row_total_$$$", is_total=True),
            ],
            rows=[],
        )
        model = assemble_table(request, RenderConfig())
        assert texts(model.header_rows[0]) == ["Rep", "East", "Total"]
        assert texts(model.header_rows[1]) == ["Revenue", "Revenue"]


class TestHeaderWidthInvariant:

    @pytest.mark.parametrize(
        "request_factory,config",
        [
            (flat_request, RenderConfig()),
            (flat_request, RenderConfig(show_measure_headers=False)),
            (pivoted_request, RenderConfig()),
            (pivoted_request, GROUPED),
            (pivoted_request, RenderConfig(show_measure_headers=False)),
            (lambda: pivoted_request(measures=(REVENUE, COST)), GROUPED),
        ],
    )
    def test_every_header_row_spans_table_width(self, request_factory, config):
        model = assemble_table(request_factory(), config)
        assert all(width == model.width for width in model.header_row_widths())

    def test_validator_rejects_narrow_header(self):
        with pytest.raises(ValidationError):
            TableModel(
                header_rows=[[HeaderCell(text="Rep"), HeaderCell(text="East")]],
                sections=[],
                dimension_column_count=1,
                value_column_count=2,
            )


# ===========================================================================
# Body
# ===========================================================================


class TestSections:

    def test_sections_in_first_occurrence_order(self):
        model = assemble_table(pivoted_request(), GROUPED)
        assert [s.label for s in model.sections] == ["Retail", "Online"]

    def test_data_rows(self):
        model = assemble_table(pivoted_request(), GROUPED)
        assert [texts(r.cells) for r in model.sections[0].rows] == [["Ann", "10", "20", "5"], ["Cy", "2", "3", "4"]]

    def test_missing_value_is_blank(self):
        model = assemble_table(pivoted_request(), GROUPED)
        bob = model.sections[1].rows[0]
        assert texts(bob.cells) == ["Bob", "1.5", "0", ""]
        assert bob.cells[3].value is None

    def test_subtotals(self):
        model = assemble_table(pivoted_request(), GROUPED)
        assert texts(model.sections[0].subtotal.cells) == ["Total", "12", "23", "9"]
        assert texts(model.sections[1].subtotal.cells) == ["Total", "1.5", "0", "0"]

    def test_subtotals_disabled(self):
        model = assemble_table(pivoted_request(), RenderConfig(group_by_field=SEGMENT, show_sub_totals=False))
        assert all(s.subtotal is None for s in model.sections)

    def test_no_subtotal_without_grouping(self):
        model = assemble_table(pivoted_request(), RenderConfig(show_sub_totals=True))
        assert model.sections[0].subtotal is None

    def test_ungrouped_shows_every_dimension(self):
        model = assemble_table(pivoted_request(), RenderConfig())
        assert model.dimension_column_count == 2
        assert texts(model.sections[0].rows[0].cells)[:2] == ["Retail", "Ann"]

    def test_zero_replacement_and_format(self):
        config = RenderConfig(replace_zero_with_dash=True, value_format="currency-2")
        model = assemble_table(flat_request(), config)
        assert [texts(r.cells) for r in model.sections[0].rows] == [["Ann", "$1,234.50"], ["Bob", "–"]]


class TestGrandTotal:

    def test_sums_every_row(self):
        model = assemble_table(pivoted_request(), RenderConfig(group_by_field=SEGMENT, show_grand_total=True))
        assert texts(model.grand_total.row.cells) == ["Total", "13.5", "23", "9"]
        assert model.grand_total.row.cells[1].value == 13.5

    def test_custom_label(self):
        config = RenderConfig(show_grand_total=True, grand_total_label="All reps")
        model = assemble_table(flat_request(), config)
        assert model.grand_total.row.cells[0].text == "All reps"

    def test_disabled(self):
        assert assemble_table(flat_request(), RenderConfig()).grand_total is None


class TestBodyRows:

    def test_bottom_total_with_spacing(self):
        config = RenderConfig(group_by_field=SEGMENT, show_grand_total=True, section_spacing_px=24)
        rows = assemble_table(pivoted_request(), config).body_rows()
        assert [r.kind for r in rows] == [
            "section_label",
            "data",
            "data",
            "subtotal",
            "spacer",
            "section_label",
            "data",
            "subtotal",
            "spacer",
            "grand_total",
        ]
        assert rows[4].height_px == 24

    def test_top_total_with_spacing(self):
        config = RenderConfig(group_by_field=SEGMENT, show_grand_total=True, grand_total_position="top")
        rows = assemble_table(pivoted_request(), config).body_rows()
        assert [r.kind for r in rows][:3] == ["grand_total", "spacer", "section_label"]
        assert rows[-1].kind == "subtotal"

    def test_no_spacers_when_spacing_is_zero(self):
        config = RenderConfig(group_by_field=SEGMENT, show_grand_total=True, section_spacing_px=0)
        rows = assemble_table(pivoted_request(), config).body_rows()
        assert "spacer" not in [r.kind for r in rows]

    def test_section_label_row_spans_blocks(self):
        rows = assemble_table(pivoted_request(), GROUPED).body_rows()
        assert spans(rows[0].cells) == [("Retail", 1), ("", 3)]

    def test_every_body_row_spans_table_width(self):
        config = RenderConfig(group_by_field=SEGMENT, show_grand_total=True)
        model = assemble_table(pivoted_request(measures=(REVENUE, COST)), config)
        assert all(row.width == model.width for row in model.body_rows())

    def test_ungrouped_has_no_label_rows(self):
        rows = assemble_table(flat_request(), RenderConfig()).body_rows()
        assert [r.kind for r in rows] == ["data", "data"]


class TestMeasureMidHierarchy:

    def test_two_displayed_levels(self):
        keys = ("East|revenue|Q1", "East|revenue|Q2", "West|revenue|Q1")
        request = RenderRequest(
            dimension_fields=[REP],
            measure_fields=[REVENUE],
            pivot_columns=[PivotColumn(key=key) for key in keys],
            rows=[{"rep": {"value": "Ann"}, "revenue": {key: {"value": 1} for key in keys}}],
        )
        model = assemble_table(request, RenderConfig(show_measure_headers=False))
        assert spans(model.header_rows[0]) == [("Rep", 1), ("East", 2), ("West", 1)]
        assert texts(model.header_rows[1]) == ["Q1", "Q2", "Q1"]

    def test_keys_owned_by_another_measure_are_blank(self):
        keys = ("East|revenue|Q1", "East|revenue|Q2", "East|cost|Q1")
        request = RenderRequest(
            dimension_fields=[REP],
            measure_fields=[REVENUE, COST],
            pivot_columns=[PivotColumn(key=key) for key in keys],
            rows=[
                {
                    "rep": {"value": "x"},
                    "revenue": {keys[0]: {"value": 1}, keys[1]: {"value": 2}, keys[2]: {"value": 99}},
                    "cost": {keys[0]: {"value": 50}, keys[2]: {"value": 3}},
                }
            ],
        )
        model = assemble_table(request, RenderConfig(show_measure_headers=False, show_grand_total=True))
        assert model.value_column_count == 6
        assert spans(model.header_rows[0]) == [("Rep", 1), ("East", 3), ("East", 3)]
        assert texts(model.sections[0].rows[0].cells) == ["x", "1", "2", "", "", "", "3"]
        assert texts(model.grand_total.row.cells) == ["Total", "1", "2", "", "", "", "3"]
        assert model.grand_total.row.cells[3].value is None

    def test_blank_flags_follow_embedded_measure(self):
        keys = ("East|revenue|Q1", "East|cost|Q1")
        request = RenderRequest(
            dimension_fields=[REP],
            measure_fields=[REVENUE, COST],
            pivot_columns=[PivotColumn(key=key) for key in keys],
            rows=[],
        )
        hierarchy = analyze_pivots(request.pivot_columns, ["revenue", "cost"])
        assert [c.blank for c in value_columns(request, hierarchy)] == [False, True, True, False]
        assert not any(c.blank for c in value_columns(request))
