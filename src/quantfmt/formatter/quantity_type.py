"""
quantfmt.formatter.quantity_type
================================

Built-in quantity types and the unit each one is persisted in.

Custom quantity types are not members of `QuantityType`; they are identified
by the name they were registered under (see `FormatterParserSpecsProvider`).
"""

from __future__ import annotations

from enum import IntEnum
from typing import Union

from quantfmt.core.errors import UnknownQuantityTypeError


class QuantityType(IntEnum):
    Length = 1
    Angle = 2
    Area = 3
    Volume = 4
    LatLong = 5
    Coordinate = 6
    Stationing = 7
    LengthSurvey = 8
    LengthEngineering = 9


QuantityTypeArg = Union[QuantityType, str]

PERSISTENCE_UNITS: dict[QuantityType, str] = {
    QuantityType.Length: "Units.M",
    QuantityType.Angle: "Units.RAD",
    QuantityType.Area: "Units.SQ_M",
    QuantityType.Volume: "Units.CUB_M",
    QuantityType.LatLong: "Units.RAD",
    QuantityType.Coordinate: "Units.M",
    QuantityType.Stationing: "Units.M",
    QuantityType.LengthSurvey: "Units.M",
    QuantityType.LengthEngineering: "Units.M",
}


def persistence_unit_name(quantity_type: QuantityType) -> str:
    return PERSISTENCE_UNITS[quantity_type]


def as_builtin(quantity_type: QuantityTypeArg) -> QuantityType | None:
    """Return the built-in member for ``quantity_type`` or None for a custom name.

    Built-in types may also be given by member name (``"Length"``).
    """
    if isinstance(quantity_type, QuantityType):
        return quantity_type
    if isinstance(quantity_type, bool):
        raise UnknownQuantityTypeError(f"Unknown quantity type: {quantity_type!r}")
    if isinstance(quantity_type, int):
        try:
            return QuantityType(quantity_type)
        except ValueError:
            raise UnknownQuantityTypeError(f"Unknown quantity type: {quantity_type!r}") from None
    if isinstance(quantity_type, str):
        return QuantityType.__members__.get(quantity_type)
    raise UnknownQuantityTypeError(f"Unknown quantity type: {quantity_type!r}")


__all__ = [
    "QuantityType",
    "QuantityTypeArg",
    "PERSISTENCE_UNITS",
    "persistence_unit_name",
    "as_builtin",
]
