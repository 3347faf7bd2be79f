"""
quantfmt.units.provider
=======================

The contract a unit directory has to fulfil for the formatter. Lookups are
coroutines because a directory may have to fetch unit metadata from elsewhere;
the in-memory `UnitsRegistry` simply answers immediately.
"""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from quantfmt.core.unit import UnitConversion, UnitProps


@runtime_checkable
class UnitsProvider(Protocol):
    async def find_unit_by_name(self, name: str) -> UnitProps:
        """Return the unit registered under ``name``; raise `UnknownUnitError` otherwise."""
        ...

    async def find_unit(self, label: str, phenomenon: str | None = None) -> UnitProps:
        """Return the unit whose label or alias is ``label``; raise `UnknownUnitError` otherwise."""
        ...

    async def get_units_by_phenomenon(self, phenomenon: str) -> Sequence[UnitProps]: ...

    async def get_conversion(self, from_unit: UnitProps, to_unit: UnitProps) -> UnitConversion: ...


__all__ = ["UnitsProvider"]
