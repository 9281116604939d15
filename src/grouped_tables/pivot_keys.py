"""Heuristic splitting of delimiter-joined pivot keys into level tokens.

A pivoted result encodes each column's position in the cross-tab as one
opaque string, e.g. ``"East|Q1"`` or ``"2024 – Jan"``.  There is no fixed
grammar: the delimiters in PIVOT_KEY_DELIMITERS are tried in priority order.

Known limitation: a dimension value that itself contains one of the
candidate delimiters is split as if it were two levels.  Structured level
data (PivotColumn.levels) avoids this and is preferred when available.
"""

from grouped_tables.patterns import PIVOT_KEY_DELIMITERS


def parse_pivot_key(key: str) -> list[str]:
    """Split a pivot key into ordered, trimmed level tokens.

    The first delimiter that splits the key into two or more non-empty pieces
    wins.  All of its pieces are returned (an empty piece still occupies its
    level position).  Keys that no delimiter splits come back as one token.
    """
    for delimiter in PIVOT_KEY_DELIMITERS:
        if delimiter not in key:
            continue
        pieces = [piece.strip() for piece in key.split(delimiter)]
        if sum(1 for piece in pieces if piece) >= 2:
            return pieces
    return [key.strip()]
