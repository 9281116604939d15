"""Resolution of host-supplied options into a RenderConfig.

resolve_config() is a pure function of the dimension fields and the raw
option mapping for one render call; nothing is cached between calls.  A few
process-wide defaults can be overridden from the environment (or a project
.env file).
"""

import os
from pathlib import Path
from typing import Any, Literal, Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from grouped_tables.patterns import TOTAL_LABEL
from grouped_tables.schema import Field

ROOT = Path(__file__).parent.parent.parent.resolve()
load_dotenv(ROOT / ".env")

# Spacing bounds offered by the host option (px)
MIN_SECTION_SPACING = 0
MAX_SECTION_SPACING = 80
DEFAULT_SECTION_SPACING = 24


class RenderConfig(BaseModel):
    """Options for one render call, already validated and defaulted."""

    model_config = ConfigDict(frozen=True)

    group_by_field: Field | None = None
    show_sub_totals: bool = True
    show_grand_total: bool = False
    grand_total_position: Literal["top", "bottom"] = "bottom"
    grand_total_label: str = TOTAL_LABEL
    section_spacing_px: int = DEFAULT_SECTION_SPACING
    replace_zero_with_dash: bool = False
    value_format: str | None = None
    show_measure_headers: bool = True


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def _as_spacing(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        spacing = int(float(value))
    except (TypeError, ValueError):
        return default
    return max(MIN_SECTION_SPACING, min(MAX_SECTION_SPACING, spacing))


def find_group_field(dimension_fields: list[Field], selector: str | None) -> Field | None:
    """Find the grouping dimension by backend name, falling back to its display label."""
    selector = (selector or "").strip()
    if not selector:
        return None
    for field in dimension_fields:
        if field.name == selector:
            return field
    for field in dimension_fields:
        if selector in (field.label, field.label_short):
            return field
    return None


def default_settings() -> dict[str, Any]:
    """Process-wide defaults, overridable through environment variables."""
    return {
        "grand_total_label": os.getenv("GROUPED_TABLES_TOTAL_LABEL", TOTAL_LABEL),
        "section_spacing_px": _as_spacing(os.getenv("GROUPED_TABLES_SECTION_SPACING"), DEFAULT_SECTION_SPACING),
        "value_format": os.getenv("GROUPED_TABLES_VALUE_FORMAT") or None,
    }


def resolve_config(dimension_fields: list[Field], prior: Mapping[str, Any] | None = None) -> RenderConfig:
    """Build the RenderConfig for one render from the host's raw option values.

    Option ids follow the host's names (groupByDimension, showSubTotals,
    showTableTotal, tableTotalPosition, tableTotalLabel, sectionSpacing,
    replaceZeroWithDash, valueFormat, showMeasureHeaders).  Unknown or
    malformed values fall back to defaults.
    """
    prior = prior or {}
    defaults = default_settings()

    position = str(prior.get("tableTotalPosition") or "bottom").strip().lower()
    label = prior.get("tableTotalLabel")
    value_format = prior.get("valueFormat")

    return RenderConfig(
        group_by_field=find_group_field(dimension_fields, prior.get("groupByDimension")),
        show_sub_totals=_as_bool(prior.get("showSubTotals"), True),
        show_grand_total=_as_bool(prior.get("showTableTotal"), False),
        grand_total_position="top" if position == "top" else "bottom",
        grand_total_label=str(label).strip() if label and str(label).strip() else defaults["grand_total_label"],
        section_spacing_px=_as_spacing(prior.get("sectionSpacing"), defaults["section_spacing_px"]),
        replace_zero_with_dash=_as_bool(prior.get("replaceZeroWithDash"), False),
        value_format=str(value_format).strip() if value_format and str(value_format).strip() else defaults["value_format"],
        show_measure_headers=_as_bool(prior.get("showMeasureHeaders"), True),
    )
