"""Spreadsheet-style number format patterns for table cell values.

A pattern such as ``$#,##0.00;($#,##0.00)`` or ``#,##0.0,"K"`` is parsed once
per render into a NumberFormatPattern and applied to every value cell.

Supported syntax, per ``;``-separated section (positive first, optional
negative second):

  "text" / \\c   literal text, kept verbatim before or after the digits
  $ € £ ¥ ₹ ₩    currency symbol, kept as part of the prefix
  ( )            negative values are wrapped in parentheses
  %              value multiplied by 100, "%" appended after the digits
  0 # , .        digit template: 0 = required digit, # = optional digit,
                 comma inside the integer part = thousands grouping,
                 each trailing comma = divide by 1000
  _c *c          spacing / fill directives, ignored

Rounding is half away from zero.  A pattern without a usable digit template
is ignored and values fall back to the default decimal rule.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, localcontext

from pydantic import BaseModel, ConfigDict

from grouped_tables.cells import as_number
from grouped_tables.patterns import CURRENCY_SYMBOLS, EN_DASH, FORMAT_PRESETS, TEMPLATE_CHARS

logger = logging.getLogger(__name__)

# Enough precision for any finite float after percent / scale arithmetic
_DECIMAL_PRECISION = 400


class FormatSection(BaseModel):
    """One section of a pattern (positive or negative)."""

    model_config = ConfigDict(frozen=True)

    prefix: str = ""
    suffix: str = ""
    currency: str | None = None
    parentheses: bool = False
    percent: bool = False
    explicit_sign: bool = False
    grouping: bool = False
    min_integer_digits: int = 1
    min_fraction_digits: int = 0
    max_fraction_digits: int = 0
    thousands_scale: int = 0


class NumberFormatPattern(BaseModel):
    model_config = ConfigDict(frozen=True)

    positive: FormatSection
    negative: FormatSection | None = None


class ResolvedFormat(BaseModel):
    """Everything format_value needs: zero replacement and an optional pattern."""

    model_config = ConfigDict(frozen=True)

    replace_zero: bool = False
    pattern: NumberFormatPattern | None = None


# ─── Pattern Parsing ─────────────────────────────────────────────────────────


def _split_sections(pattern: str) -> list[str]:
    """Split on ';' outside quoted literals and escapes."""
    sections: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\" and not in_quotes and i + 1 < len(pattern):
            current.append(pattern[i : i + 2])
            i += 2
            continue
        if ch == '"':
            in_quotes = not in_quotes
        if ch == ";" and not in_quotes:
            sections.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    sections.append("".join(current))
    return sections


def _analyse_template(template: str) -> dict:
    """Digit settings for a template such as '#,##0.00,,'."""
    core = template.rstrip(",")
    scale = len(template) - len(core)
    int_part, _, frac_part = core.partition(".")
    frac_digits = [ch for ch in frac_part if ch in "0#"]
    return {
        "grouping": "," in int_part,
        "min_integer_digits": int_part.count("0"),
        "min_fraction_digits": frac_digits.count("0"),
        "max_fraction_digits": len(frac_digits),
        "thousands_scale": scale,
    }


def parse_section(text: str) -> FormatSection | None:
    """Parse one pattern section, or return None if it has no digit template."""
    prefix: list[str] = []
    suffix: list[str] = []
    template: list[str] = []
    template_closed = False
    currency = None
    percent = False
    open_paren = close_paren = False

    i = 0
    while i < len(text):
        ch = text[i]

        if ch == '"':
            end = text.find('"', i + 1)
            end = len(text) if end == -1 else end
            literal = text[i + 1 : end]
            i = end + 1
        elif ch == "\\" and i + 1 < len(text):
            literal = text[i + 1]
            i += 2
        elif ch in "_*" and i + 1 < len(text):
            i += 2
            continue
        else:
            i += 1
            if ch == "(":
                open_paren = True
                continue
            if ch == ")":
                close_paren = True
                continue
            if ch == "%":
                percent = True
                continue
            in_template = bool(template) and not template_closed
            starts_template = not template and (ch in "0#" or (ch == "." and text[i : i + 1] in ("0", "#")))
            if ch in TEMPLATE_CHARS and (in_template or starts_template):
                template.append(ch)
                continue
            if ch in CURRENCY_SYMBOLS and not template and currency is None:
                currency = ch
            literal = ch

        # Any literal after the digits ends the template and is suffix text
        if template:
            template_closed = True
            suffix.append(literal)
        else:
            prefix.append(literal)

    template_text = "".join(template)
    if not any(ch in "0#" for ch in template_text):
        return None

    prefix_text = "".join(prefix)
    return FormatSection(
        prefix=prefix_text,
        suffix="".join(suffix),
        currency=currency,
        parentheses=open_paren and close_paren,
        percent=percent,
        explicit_sign="-" in prefix_text,
        **_analyse_template(template_text),
    )


def parse_pattern(pattern: str) -> NumberFormatPattern | None:
    """Parse a full pattern; None when its positive section has no digit template."""
    sections = _split_sections(pattern)
    positive = parse_section(sections[0])
    if positive is None:
        return None
    negative = parse_section(sections[1]) if len(sections) > 1 and sections[1].strip() else None
    return NumberFormatPattern(positive=positive, negative=negative)


def resolve_format(format_spec: str | None, replace_zero: bool = False) -> ResolvedFormat:
    """Turn a preset name or custom pattern into a ResolvedFormat.

    Blank specs mean "no pattern".  Unusable patterns are logged and dropped,
    never raised.
    """
    spec = (format_spec or "").strip()
    if not spec:
        return ResolvedFormat(replace_zero=replace_zero)

    pattern_text = FORMAT_PRESETS.get(spec.lower().replace("_", "-"), spec)
    pattern = parse_pattern(pattern_text)
    if pattern is None:
        logger.warning("Number format %r has no digit template; using default formatting", spec)
    return ResolvedFormat(replace_zero=replace_zero, pattern=pattern)


# ─── Formatting ──────────────────────────────────────────────────────────────


def _group_thousands(digits: str) -> str:
    groups: list[str] = []
    while len(digits) > 3:
        groups.insert(0, digits[-3:])
        digits = digits[:-3]
    if digits:
        groups.insert(0, digits)
    return ",".join(groups)


def _round(magnitude: Decimal, places: int) -> Decimal:
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the requested places
        ctx.prec = max(_DECIMAL_PRECISION, magnitude.adjusted() + places + 2)
        return magnitude.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def _render_digits(magnitude: Decimal, section: FormatSection) -> str:
    """Digits for a non-negative magnitude under one section's template."""
    text = f"{_round(magnitude, section.max_fraction_digits):f}"
    int_text, _, frac_text = text.partition(".")

    # Optional (#) fraction digits drop trailing zeros down to the required count
    while len(frac_text) > section.min_fraction_digits and frac_text.endswith("0"):
        frac_text = frac_text[:-1]

    int_text = int_text.lstrip("0")
    if len(int_text) < section.min_integer_digits:
        int_text = int_text.zfill(section.min_integer_digits)
    if not int_text and not frac_text:
        int_text = "0"
    if section.grouping and int_text:
        int_text = _group_thousands(int_text)

    return f"{int_text}.{frac_text}" if frac_text else int_text


def apply_pattern(value: float, pattern: NumberFormatPattern) -> str:
    """Format a finite number with a parsed pattern."""
    negative = value < 0
    section = pattern.negative if negative and pattern.negative is not None else pattern.positive

    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        magnitude = abs(Decimal(str(value)))
        if section.percent:
            magnitude *= 100
        if section.thousands_scale:
            magnitude /= Decimal(1000) ** section.thousands_scale
        digits = _render_digits(magnitude, section)

    body = section.prefix + digits + ("%" if section.percent else "") + section.suffix
    if not negative or not any(ch in "123456789" for ch in digits):
        return body
    if section.parentheses:
        return f"({body})"
    if section is pattern.negative and section.explicit_sign:
        return body
    return f"-{body}"


def default_format(value: float) -> str:
    """Integers without a decimal point, everything else with one fractional digit."""
    if value == int(value):
        return str(int(value))
    with localcontext() as ctx:
        ctx.prec = _DECIMAL_PRECISION
        return f"{_round(Decimal(str(value)), 1):f}"


def format_value(value, fmt: ResolvedFormat) -> str:
    """Display text for one numeric cell value.

    Zero replacement happens before, and instead of, any pattern.
    """
    number = as_number(value)
    if number is None:
        return ""
    if fmt.replace_zero and number == 0:
        return EN_DASH
    if fmt.pattern is None:
        return default_format(number)
    return apply_pattern(number, fmt.pattern)
