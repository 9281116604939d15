"""Partitioning of result rows into ordered sections by a grouping dimension.

Section order is the order in which each grouping value first appears in the
input.  It is never sorted, so rebuilding over the same rows always gives the
same sections in the same order.
"""

from grouped_tables.cells import dimension_text
from grouped_tables.patterns import NO_SECTION_LABEL
from grouped_tables.schema import Field, Section


class OrderedSections:
    """Sections kept in first-insertion order with lookup by grouping key."""

    def __init__(self) -> None:
        self._order: list[Section] = []
        self._index: dict[str, Section] = {}

    def add(self, key: str, row: dict) -> None:
        section = self._index.get(key)
        if section is None:
            section = Section(label=key or NO_SECTION_LABEL)
            self._index[key] = section
            self._order.append(section)
        section.rows.append(row)

    def __len__(self) -> int:
        return len(self._order)

    def to_list(self) -> list[Section]:
        return list(self._order)


def build_sections(rows: list[dict], group_field: Field | None) -> list[Section]:
    """Split ``rows`` into sections keyed by the rendered value of ``group_field``.

    Without a group field all rows form one unlabeled section.
    """
    if group_field is None:
        return [Section(label=None, rows=list(rows))]

    sections = OrderedSections()
    for row in rows:
        key = dimension_text(row, group_field.name)
        sections.add(key if key.strip() else "", row)
    return sections.to_list()
