"""
quantfmt.core.composite
=======================

Pure decomposition of a magnitude across composite tiers (e.g. feet and
inches, degrees/minutes/seconds).

The functions here know nothing about labels, signs or text; they work on a
non-negative magnitude expressed in the major (first) tier's unit and the
ratios between consecutive tiers, so rounding and carry can be tested on their
own.
"""

from __future__ import annotations

import math
from typing import Callable, Sequence

# Added before flooring so values such as 0.49999999999999994 * 2 round up.
FPV_MINTHRESHOLD = 1.0e-14

# Relative tolerance used to snap tier ratios like 12.000000000000002 to 12.
_RATIO_SNAP_TOL = 1.0e-9


def round_decimal(value: float, precision: int) -> float:
    """Round a non-negative value half-up to ``precision`` decimal places.

    Values too large to scale have no fractional digits left and are returned
    unchanged.
    """
    scale = 10.0 ** precision
    if not math.isfinite(value * scale):
        return value
    return math.floor(value * scale + 0.5 + FPV_MINTHRESHOLD) / scale


def round_fractional(value: float, precision: int) -> float:
    """Round a non-negative value half-up to the nearest ``1/2**precision``."""
    denominator = 2 ** precision
    if not math.isfinite(value * denominator):
        return value
    return math.floor(value * denominator + 0.5 + FPV_MINTHRESHOLD) / denominator


def round_to_factor(value: float, factor: float) -> float:
    """Round to the nearest multiple of ``factor``; a zero factor is a no-op."""
    if factor <= 0.0 or not math.isfinite(value / factor):
        return value
    return math.floor(value / factor + 0.5 + FPV_MINTHRESHOLD) * factor


def stabilize(value: float, digits: int = 8) -> float:
    """Trim binary noise from a converted magnitude before it is split."""
    return round_decimal(value, digits)


def snap_ratio(ratio: float) -> float:
    nearest = round(ratio)
    if nearest != 0 and abs(ratio - nearest) <= _RATIO_SNAP_TOL * abs(ratio):
        return float(nearest)
    return ratio


def split_composite(
    magnitude: float,
    ratios: Sequence[float],
    round_last: Callable[[float], float],
) -> list[float]:
    """Split ``magnitude`` into one value per tier.

    Parameters
    ----------
    magnitude
        Non-negative value in the major tier's unit.
    ratios
        ``ratios[i]`` is how many tier ``i + 1`` units make one tier ``i`` unit
        (12 for feet → inches). ``len(ratios) + 1`` tiers are produced.
    round_last
        Rounding policy applied to the smallest tier.

    Every tier but the last holds a whole number; the last holds the rounded
    remainder. When that remainder rounds up to a full unit of the tier above,
    it is carried upwards, so no tier ever shows a value equal to or larger
    than one unit of the next coarser tier.

    >>> split_composite(4.99999, [12.0], lambda v: float(round(v)))
    [5.0, 0.0]
    """
    if magnitude < 0.0 or math.isnan(magnitude):
        raise ValueError("magnitude must be a non-negative number")

    snapped = [snap_ratio(r) for r in ratios]
    if any(r <= 1.0 for r in snapped):
        raise ValueError("each tier must be smaller than the one before it")

    parts: list[float] = []
    remaining = magnitude
    for ratio in snapped:
        whole = math.floor(remaining)
        parts.append(float(whole))
        remaining = (remaining - whole) * ratio
    parts.append(round_last(remaining))

    return carry(parts, snapped, round_last)


def carry(
    parts: list[float],
    ratios: Sequence[float],
    round_last: Callable[[float], float],
) -> list[float]:
    """Propagate overflowing tiers upwards, smallest tier first."""
    for i in range(len(parts) - 1, 0, -1):
        ratio = ratios[i - 1]
        if parts[i] >= ratio * (1.0 - _RATIO_SNAP_TOL):
            excess = max(parts[i] - ratio, 0.0)
            parts[i] = round_last(excess) if i == len(parts) - 1 else float(math.floor(excess))
            parts[i - 1] += 1.0
    return parts


__all__ = [
    "FPV_MINTHRESHOLD",
    "round_decimal",
    "round_fractional",
    "round_to_factor",
    "stabilize",
    "snap_ratio",
    "split_composite",
    "carry",
]
