"""Delimiters, sentinels and display constants shared across the table engine.

Used by pivot_keys.py (delimiter candidates), hierarchy.py (sentinel tokens)
and assembler.py / number_format.py (display text).
"""

# ─── Pivot Key Delimiters ─────────────────────────────────────────────────────

# Tried in order; the first one that splits a key into 2+ non-empty pieces wins.
# "|FIELD|" is the host's own join sentinel for multi-field pivots.
PIVOT_KEY_DELIMITERS = (
    "|FIELD|",
    "|",
    "–",  # en dash
    "—",  # em dash
    " - ",
    " -",
    "- ",
    "::",
    ":",
)

# Joins per-level parts into a parent-path tuple; never appears in real tokens
TUPLE_SEPARATOR = "\x1f"


# ─── Sentinel Tokens ──────────────────────────────────────────────────────────

# Pivot tokens that mean "no value" and render as an empty header cell
NO_VALUE_TOKENS = ("∅", "null", "$$$_null_$$$")


# ─── Display Text ─────────────────────────────────────────────────────────────

EN_DASH = "–"

TOTAL_LABEL = "Total"

NO_SECTION_LABEL = "(No section)"

NO_DIMENSION_MESSAGE = "Add at least one dimension."

NO_MEASURE_MESSAGE = "Add at least one measure."


# ─── Number Formats ───────────────────────────────────────────────────────────

# Named presets offered by the host, expressed as custom patterns.
# "decimal_0" style spellings are accepted as aliases.
FORMAT_PRESETS = {
    "decimal-0": "#,##0",
    "decimal-1": "#,##0.0",
    "decimal-2": "#,##0.00",
    "percent-0": "0%",
    "percent-1": "0.0%",
    "percent-2": "0.00%",
    "currency-0": "$#,##0",
    "currency-2": "$#,##0.00",
}

# Single characters recognised as a leading currency symbol
CURRENCY_SYMBOLS = ("$", "€", "£", "¥", "₹", "₩")

# Characters that make up a digit template ("#,##0.00")
TEMPLATE_CHARS = frozenset("0#,.")
