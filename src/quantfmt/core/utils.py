"""
quantfmt.core.utils
===================

Small text helpers for rendering numbers: fixed-point text, trailing-zero
handling, digit grouping and fraction reduction.
"""

from __future__ import annotations

from fractions import Fraction

DECIMAL_SEPARATOR = "."
THOUSAND_SEPARATOR = ","


def fixed(value: float, precision: int) -> str:
    """Fixed-point text for an already rounded, non-negative value."""
    return f"{value:.{precision}f}"


def trim_zeroes(text: str, *, keep_decimal_point: bool = False, keep_single_zero: bool = False) -> str:
    """Drop trailing zeroes after the decimal separator.

    ``'150.0000'`` becomes ``'150'``, or ``'150.'`` with ``keep_decimal_point``,
    or ``'150.0'`` with both flags set.
    """
    if DECIMAL_SEPARATOR not in text:
        if keep_decimal_point:
            return text + DECIMAL_SEPARATOR + ("0" if keep_single_zero else "")
        return text

    text = text.rstrip("0")
    if text.endswith(DECIMAL_SEPARATOR):
        if not keep_decimal_point:
            return text[:-1]
        if keep_single_zero:
            return text + "0"
    return text


def group_thousands(text: str, separator: str = THOUSAND_SEPARATOR) -> str:
    """Insert ``separator`` every three digits of the integer part of ``text``."""
    whole, dot, rest = text.partition(DECIMAL_SEPARATOR)
    groups = []
    while len(whole) > 3:
        groups.insert(0, whole[-3:])
        whole = whole[:-3]
    groups.insert(0, whole)
    return separator.join(groups) + dot + rest


def pad_integer_part(text: str, width: int) -> str:
    """Left-pad the integer part of ``text`` with zeroes to ``width`` digits."""
    whole, dot, rest = text.partition(DECIMAL_SEPARATOR)
    return whole.rjust(width, "0") + dot + rest


def reduce_fraction(numerator: int, denominator: int) -> tuple[int, int]:
    frac = Fraction(numerator, denominator)
    return frac.numerator, frac.denominator


__all__ = [
    "DECIMAL_SEPARATOR",
    "THOUSAND_SEPARATOR",
    "fixed",
    "trim_zeroes",
    "group_thousands",
    "pad_integer_part",
    "reduce_fraction",
]
