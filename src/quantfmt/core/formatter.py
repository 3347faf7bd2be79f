"""
quantfmt.core.formatter
=======================

Render a magnitude, stored in a persistence unit, according to a `FormatterSpec`.

Formatting never raises: non-finite magnitudes render as `NON_FINITE_TEXT`
and degenerate specs (no unit conversions) render the bare number.

The composite path delegates rounding and carry to
`quantfmt.core.composite.split_composite`; this module only builds text.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from quantfmt.core.composite import (
    round_decimal,
    round_fractional,
    round_to_factor,
    snap_ratio,
    split_composite,
    stabilize,
)
from quantfmt.core.conversion import UnitConversionSpec, create_unit_conversion_specs
from quantfmt.core.format import Format, FormatTraits, FormatType, ScientificType, ShowSignOption
from quantfmt.core.unit import UnitProps
from quantfmt.core.utils import fixed, group_thousands, pad_integer_part, reduce_fraction, trim_zeroes

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from quantfmt.units.provider import UnitsProvider

NON_FINITE_TEXT = "NaN"
EXPONENT_MARKER = "e"


@dataclass(frozen=True, eq=False)
class FormatterSpec:
    """A `Format` bundled with the conversions needed to apply it."""

    name: str
    format: Format
    unit_conversions: tuple[UnitConversionSpec, ...] = field(default=())
    persistence_unit: UnitProps | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "unit_conversions", tuple(self.unit_conversions))

    @classmethod
    async def create(
        cls,
        name: str,
        fmt: Format,
        provider: "UnitsProvider",
        persistence_unit: UnitProps,
    ) -> "FormatterSpec":
        conversions = await create_unit_conversion_specs(provider, persistence_unit, fmt)
        return cls(name, fmt, conversions, persistence_unit)

    def apply_formatting(self, magnitude: float) -> str:
        return format_quantity(magnitude, self)


def format_quantity(magnitude: float, spec: FormatterSpec) -> str:
    try:
        value = float(magnitude)
    except (TypeError, ValueError):
        return NON_FINITE_TEXT
    if not math.isfinite(value):
        return NON_FINITE_TEXT

    fmt = spec.format
    conversions = spec.unit_conversions
    if conversions:
        value = conversions[0].convert(value)
        if not math.isfinite(value):
            return NON_FINITE_TEXT

    negative = value < 0.0
    value = abs(value)

    if len(conversions) > 1:
        body, is_zero = _format_composite(value, fmt, conversions)
    else:
        label = conversions[0].label if conversions else ""
        body, is_zero = _format_single(value, fmt, label)

    if is_zero and fmt.has_trait(FormatTraits.ZeroEmpty):
        return ""
    if not body:
        return body
    return _apply_sign(body, negative, is_zero, fmt.show_sign_option)


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------

def _round_last(fmt: Format):
    if fmt.type is FormatType.Fractional:
        return lambda v: round_fractional(v, fmt.precision)
    return lambda v: round_decimal(v, fmt.precision)


def _format_single(value: float, fmt: Format, label: str) -> tuple[str, bool]:
    if fmt.has_trait(FormatTraits.ApplyRounding):
        value = round_to_factor(value, fmt.round_factor)

    if fmt.type is FormatType.Scientific:
        text, is_zero = _scientific_text(value, fmt)
    elif fmt.type is FormatType.Fractional:
        rounded = round_fractional(value, fmt.precision)
        text, is_zero = _fraction_text(rounded, fmt, in_composite=False), rounded == 0.0
    elif fmt.type is FormatType.Station:
        rounded = round_decimal(value, fmt.precision)
        text, is_zero = _station_text(rounded, fmt), rounded == 0.0
    else:
        rounded = round_decimal(value, fmt.precision)
        text, is_zero = _decimal_text(rounded, fmt), rounded == 0.0

    return _with_label(text, label, fmt), is_zero


def _format_composite(
    value: float,
    fmt: Format,
    conversions: tuple[UnitConversionSpec, ...],
) -> tuple[str, bool]:
    if fmt.has_trait(FormatTraits.ApplyRounding):
        value = round_to_factor(value, fmt.round_factor)

    ratios = [c.factor for c in conversions[1:]]
    if any(snap_ratio(r) <= 1.0 for r in ratios):
        # tiers out of order: show the major tier alone
        return _format_single(value, fmt, conversions[0].label)

    parts = split_composite(stabilize(value), ratios, _round_last(fmt))
    is_zero = all(p == 0.0 for p in parts)

    last = len(conversions) - 1
    tiers = list(enumerate(parts))
    if not fmt.include_zero:
        tiers = [(i, p) for i, p in tiers if p != 0.0]
        if not tiers:
            if not fmt.has_trait(FormatTraits.KeepSingleZero):
                return "", True
            tiers = [(last, 0.0)]

    texts = []
    for i, part in tiers:
        if i < last:
            text = _integer_text(part, fmt)
        elif fmt.type is FormatType.Fractional:
            text = _fraction_text(part, fmt, in_composite=True)
        else:
            text = _decimal_text(part, fmt)
        texts.append(_with_label(text, conversions[i].label, fmt))
    return fmt.spacer.join(texts), is_zero


# ---------------------------------------------------------------------------
# Number text
# ---------------------------------------------------------------------------

def _integer_text(value: float, fmt: Format) -> str:
    text = str(int(value))
    if fmt.has_trait(FormatTraits.Use1000Separator):
        text = group_thousands(text)
    return text


def _decimal_text(value: float, fmt: Format) -> str:
    text = fixed(value, fmt.precision)
    if not (fmt.has_trait(FormatTraits.TrailZeroes) and fmt.precision > 0):
        text = trim_zeroes(
            text,
            keep_decimal_point=fmt.has_trait(FormatTraits.KeepDecimalPoint),
            keep_single_zero=fmt.has_trait(FormatTraits.KeepSingleZero),
        )
    if fmt.has_trait(FormatTraits.Use1000Separator):
        text = group_thousands(text)
    return text


def _fraction_text(value: float, fmt: Format, *, in_composite: bool) -> str:
    denominator = 2 ** fmt.precision
    whole = math.floor(value)
    numerator = int(round((value - whole) * denominator))
    if numerator >= denominator:
        whole += 1
        numerator = 0

    whole_text = _integer_text(whole, fmt)
    if numerator == 0:
        return whole_text

    num, den = reduce_fraction(numerator, denominator)
    fraction = f"{num}/{den}"
    if whole == 0 and not (in_composite or fmt.has_trait(FormatTraits.KeepSingleZero)):
        return fraction
    separator = "-" if fmt.has_trait(FormatTraits.FractionDash) else " "
    return f"{whole_text}{separator}{fraction}"


def _scientific_text(value: float, fmt: Format) -> tuple[str, bool]:
    zero_normalized = fmt.scientific_type is ScientificType.ZeroNormalized
    if value == 0.0:
        mantissa, exponent = 0.0, 0
    else:
        exponent = math.floor(math.log10(value))
        if zero_normalized:
            exponent += 1
        mantissa = round_decimal(_shift(value, exponent), fmt.precision)
        if mantissa >= (1.0 if zero_normalized else 10.0):
            exponent += 1
            mantissa = round_decimal(_shift(value, exponent), fmt.precision)

    if exponent < 0:
        exponent_text = f"-{-exponent}"
    elif fmt.has_trait(FormatTraits.ExponentOnlyNegative):
        exponent_text = str(exponent)
    else:
        exponent_text = f"+{exponent}"
    return f"{_decimal_text(mantissa, fmt)}{EXPONENT_MARKER}{exponent_text}", mantissa == 0.0


def _shift(value: float, exponent: int) -> float:
    """``value / 10**exponent`` without overflowing at the ends of the float range."""
    if exponent > 300:
        return value / 10.0 ** 300 / 10.0 ** (exponent - 300)
    if exponent < -300:
        return value * 10.0 ** 300 * 10.0 ** (-exponent - 300)
    return value / 10.0 ** exponent


def _station_text(value: float, fmt: Format) -> str:
    size = fmt.station_offset_size or 1
    scale = 10 ** size
    station = int(value // scale)
    offset = round_decimal(value - station * scale, fmt.precision)
    if offset >= scale:
        station += 1
        offset = round_decimal(offset - scale, fmt.precision)
    offset_text = pad_integer_part(_decimal_text(offset, fmt), size)
    return f"{station}{fmt.station_separator}{offset_text}"


# ---------------------------------------------------------------------------
# Decoration
# ---------------------------------------------------------------------------

def _with_label(text: str, label: str, fmt: Format) -> str:
    if not label:
        return text
    if fmt.has_trait(FormatTraits.PrependUnitLabel):
        return f"{label}{fmt.uom_separator}{text}"
    if fmt.has_trait(FormatTraits.ShowUnitLabel):
        return f"{text}{fmt.uom_separator}{label}"
    return text


def _apply_sign(body: str, negative: bool, is_zero: bool, option: ShowSignOption) -> str:
    if is_zero or option is ShowSignOption.NoSign:
        return body
    if option is ShowSignOption.NegativeParentheses:
        return f"({body})" if negative else body
    if negative:
        return f"-{body}"
    if option is ShowSignOption.SignAlways:
        return f"+{body}"
    return body


__all__ = ["FormatterSpec", "format_quantity", "NON_FINITE_TEXT"]
