"""
quantfmt.core.conversion
========================

Conversion Resolver: turns pairs of units into the affine factors the
formatter and parser apply.

Every unit relates to the base unit of its phenomenon by
``base = value * factor + offset``. Converting ``source`` into ``target``
therefore gives::

    target = value * (source.factor / target.factor)
             + (source.offset - target.offset) / target.factor

Offsets only appear for affine families such as temperature.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from quantfmt.core.errors import IncompatiblePhenomenonError
from quantfmt.core.unit import UnitConversion, UnitProps

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from quantfmt.core.format import Format
    from quantfmt.units.provider import UnitsProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class UnitConversionSpec:
    """A resolved conversion bound to the unit (and display label) it targets."""

    unit: UnitProps
    label: str
    factor: float = 1.0
    offset: float = 0.0

    @property
    def name(self) -> str:
        return self.unit.name

    @property
    def conversion(self) -> UnitConversion:
        return UnitConversion(self.factor, self.offset)

    def convert(self, x: float) -> float:
        return x * self.factor + self.offset


def resolve_conversion(source: UnitProps, target: UnitProps) -> UnitConversion:
    if source.phenomenon != target.phenomenon:
        raise IncompatiblePhenomenonError(
            f"Cannot convert {source.name} ({source.phenomenon}) "
            f"to {target.name} ({target.phenomenon})"
        )
    if source.name == target.name:
        return UnitConversion()
    factor = source.factor / target.factor
    if source.is_linear and target.is_linear:
        return UnitConversion(factor)
    # where the source zero lands on the target scale
    return UnitConversion(factor, target.from_base(source.to_base(0.0)))


async def resolve_format_units(provider: "UnitsProvider", fmt: "Format") -> list[UnitProps]:
    """Look up the composite units of ``fmt`` and validate their ordering."""
    units = [await provider.find_unit_by_name(entry.name) for entry in fmt.units]
    fmt.check_composite_units(units)
    return units


async def create_unit_conversion_specs(
    provider: "UnitsProvider",
    persistence_unit: UnitProps,
    fmt: "Format",
) -> tuple[UnitConversionSpec, ...]:
    """Conversions for formatting: one per composite tier, largest first.

    The first entry converts the persistence unit into the major tier; every
    following entry converts the previous tier into its own unit.
    """
    if not fmt.has_composite:
        return (UnitConversionSpec(persistence_unit, persistence_unit.label),)

    units = await resolve_format_units(provider, fmt)
    specs: list[UnitConversionSpec] = []
    previous = persistence_unit
    for entry, unit in zip(fmt.units, units):
        conversion = await provider.get_conversion(previous, unit)
        label = entry.label if entry.label is not None else unit.label
        specs.append(UnitConversionSpec(unit, label, conversion.factor, conversion.offset))
        previous = unit

    logger.debug(
        "Resolved %d tier(s) for format %r from %s", len(specs), fmt.name, persistence_unit.name
    )
    return tuple(specs)


async def create_unit_conversion_specs_for_unit(
    provider: "UnitsProvider",
    unit: UnitProps,
) -> tuple[UnitConversionSpec, ...]:
    """Conversions for parsing: every unit of ``unit``'s phenomenon into ``unit``.

    Sorted largest to smallest.
    """
    candidates = await provider.get_units_by_phenomenon(unit.phenomenon)
    specs: list[UnitConversionSpec] = []
    for candidate in candidates:
        conversion = await provider.get_conversion(candidate, unit)
        specs.append(UnitConversionSpec(candidate, candidate.label, conversion.factor, conversion.offset))
    specs.sort(key=lambda s: s.unit.factor, reverse=True)
    return tuple(specs)


__all__ = [
    "UnitConversionSpec",
    "resolve_conversion",
    "resolve_format_units",
    "create_unit_conversion_specs",
    "create_unit_conversion_specs_for_unit",
]
