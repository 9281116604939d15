"""Pivot hierarchy analysis and consecutive-run grouping for header spans.

Recovers the column hierarchy (e.g. region > quarter) from the pivot columns
of one result, either from structured per-level data or by parsing the keys,
and answers "what does column K show at header level L" for the assembler.
"""

import logging
from typing import Any, Callable, Iterable, NamedTuple

from grouped_tables.patterns import NO_VALUE_TOKENS, TOTAL_LABEL, TUPLE_SEPARATOR
from grouped_tables.pivot_keys import parse_pivot_key
from grouped_tables.schema import PivotColumn

logger = logging.getLogger(__name__)


# ─── Run-Length Grouping ──────────────────────────────────────────────────────


class Run(NamedTuple):
    value: Any
    count: int
    first: Any


def group_consecutive(items: Iterable, key_fn: Callable[[Any], Any]) -> list[Run]:
    """Merge adjacent items with equal keys into runs, keeping input order.

    Never re-sorts: ``x, y, x`` yields three runs.  ``first`` is the first item
    of each run, so callers can derive display text from it.
    """
    runs: list[Run] = []
    for item in items:
        value = key_fn(item)
        if runs and runs[-1].value == value:
            runs[-1] = runs[-1]._replace(count=runs[-1].count + 1)
        else:
            runs.append(Run(value=value, count=1, first=item))
    return runs


# ─── Hierarchy ────────────────────────────────────────────────────────────────


def _column_tokens(column: PivotColumn) -> list[str]:
    """Level tokens for one column: structured data first, key parsing as fallback."""
    if column.is_total:
        return [TOTAL_LABEL]
    if column.levels:
        return ["" if value is None else str(value).strip() for value in column.levels]
    return parse_pivot_key(column.key)


class PivotHierarchy:
    """Displayed header levels of a set of pivot columns.

    Keys shaped ``<group>|<measure>|<subgroup>`` (a measure name embedded as
    the second token) are shown as two levels, group and subgroup; the measure
    token stays available through ``measure_token``.
    """

    def __init__(self, pivot_columns: list[PivotColumn], measure_names: Iterable[str]):
        self.measure_names = frozenset(measure_names)
        self._tokens: dict[str, list[str]] = {column.key: _column_tokens(column) for column in pivot_columns}

        max_parts = max((len(tokens) for tokens in self._tokens.values()), default=0)
        self.mid_measure = max_parts >= 3 and any(
            len(tokens) > 1 and tokens[1] in self.measure_names for tokens in self._tokens.values()
        )
        # Displayed level -> index into the parsed tokens
        self._level_indices = [0, 2] if self.mid_measure else list(range(max_parts))

        self.level_count = len(self._level_indices)
        self.is_hierarchical = self.level_count >= 2 and any(len(tokens) >= 2 for tokens in self._tokens.values())

    def tokens(self, key: str) -> list[str]:
        if key in self._tokens:
            return self._tokens[key]
        return parse_pivot_key(key)

    def get_part(self, key: str, level: int) -> str:
        """Display token of ``key`` at displayed ``level``, or '' when there is none."""
        if level < 0 or level >= self.level_count:
            return ""
        tokens = self.tokens(key)
        index = self._level_indices[level]
        if index >= len(tokens):
            return ""
        token = tokens[index]
        if token in self.measure_names or token in NO_VALUE_TOKENS:
            return ""
        return token

    def get_tuple(self, key: str, upto_level: int) -> str:
        """Parent path of ``key`` through ``upto_level``; equal paths merge into one header cell."""
        return TUPLE_SEPARATOR.join(self.get_part(key, level) for level in range(upto_level + 1))

    def measure_token(self, key: str) -> str | None:
        """The measure name embedded mid-key, if this hierarchy has one."""
        if not self.mid_measure:
            return None
        tokens = self.tokens(key)
        if len(tokens) > 1 and tokens[1] in self.measure_names:
            return tokens[1]
        return None


def analyze_pivots(pivot_columns: list[PivotColumn], measure_names: Iterable[str]) -> PivotHierarchy:
    """Analyse the pivot columns of one result."""
    hierarchy = PivotHierarchy(pivot_columns, measure_names)
    logger.debug(
        "Pivot hierarchy: %d columns, %d levels, hierarchical=%s, mid_measure=%s",
        len(pivot_columns),
        hierarchy.level_count,
        hierarchy.is_hierarchical,
        hierarchy.mid_measure,
    )
    return hierarchy
