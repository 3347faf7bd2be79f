"""
quantfmt.core.format
====================

The declarative `Format` used to render and parse quantities.

A format is built from a JSON-like mapping whose field names are the wire
contract shared with host applications::

    {
        "type": "Fractional",
        "precision": 3,
        "formatTraits": ["keepSingleZero", "showUnitLabel"],
        "uomSeparator": "",
        "composite": {
            "includeZero": True,
            "spacer": "-",
            "units": [{"name": "Units.FT", "label": "'"}, {"name": "Units.IN", "label": '"'}],
        },
    }

`Format.from_json` only checks the *shape* of the definition. Whether the
composite units exist, share a phenomenon and decrease in magnitude depends on
a unit directory and is checked by `Format.check_composite_units` once the
units have been resolved.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, Flag, StrEnum, auto
from typing import Any, Mapping, NamedTuple, Sequence, TypeVar

from quantfmt.core.errors import IncompatiblePhenomenonError, InvalidFormatDefinitionError
from quantfmt.core.unit import UnitProps

MAX_COMPOSITE_UNITS = 4
MAX_DECIMAL_PRECISION = 12
MAX_FRACTIONAL_PRECISION = 8


class FormatType(StrEnum):
    Decimal = "Decimal"
    Fractional = "Fractional"
    Scientific = "Scientific"
    Station = "Station"


class ScientificType(StrEnum):
    Normalized = "normalized"
    ZeroNormalized = "zeroNormalized"


class ShowSignOption(StrEnum):
    OnlyNegative = "onlyNegative"
    NoSign = "noSign"
    SignAlways = "signAlways"
    NegativeParentheses = "negativeParentheses"


class FormatTraits(Flag):
    NONE = 0
    TrailZeroes = auto()
    KeepSingleZero = auto()
    ZeroEmpty = auto()
    KeepDecimalPoint = auto()
    ApplyRounding = auto()
    FractionDash = auto()
    ShowUnitLabel = auto()
    PrependUnitLabel = auto()
    Use1000Separator = auto()
    ExponentOnlyNegative = auto()

    @property
    def wire_name(self) -> str:
        name = self.name or ""
        return name[:1].lower() + name[1:]


class CompositeUnit(NamedTuple):
    name: str
    label: str | None = None


_E = TypeVar("_E", bound=Enum)


def _lookup(enum_cls: type[_E], text: Any, what: str) -> _E:
    if isinstance(text, enum_cls):
        return text
    if isinstance(text, str):
        folded = text.strip().casefold()
        for member in enum_cls:
            if folded in (str(member.value).casefold(), member.name.casefold()):
                return member
    raise InvalidFormatDefinitionError(f"Unknown {what}: {text!r}")


def parse_format_traits(value: Any) -> FormatTraits:
    """Accept a list of trait names or a single ``,``/``|`` separated string."""
    if value is None:
        return FormatTraits.NONE
    if isinstance(value, FormatTraits):
        return value
    if isinstance(value, str):
        names = [p for p in value.replace("|", ",").split(",") if p.strip()]
    elif isinstance(value, (list, tuple, set, frozenset)):
        names = list(value)
    else:
        raise InvalidFormatDefinitionError(f"formatTraits must be a list of names, got {value!r}")

    traits = FormatTraits.NONE
    for name in names:
        if not isinstance(name, str):
            raise InvalidFormatDefinitionError(f"Unknown format trait: {name!r}")
        folded = name.strip().casefold()
        for member in FormatTraits:
            if member is not FormatTraits.NONE and member.name.casefold() == folded:
                traits |= member
                break
        else:
            raise InvalidFormatDefinitionError(f"Unknown format trait: {name!r}")
    return traits


def _precision(value: Any, fmt_type: FormatType) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFormatDefinitionError(f"precision must be an integer, got {value!r}")
    limit = MAX_FRACTIONAL_PRECISION if fmt_type is FormatType.Fractional else MAX_DECIMAL_PRECISION
    if value < 0 or value > limit:
        raise InvalidFormatDefinitionError(
            f"precision {value} is out of range 0..{limit} for {fmt_type.value} formats"
        )
    return value


def _composite(value: Any) -> tuple[bool, str, tuple[CompositeUnit, ...]]:
    if value is None:
        return True, " ", ()
    if not isinstance(value, Mapping):
        raise InvalidFormatDefinitionError("composite must be a mapping")

    include_zero = value.get("includeZero", True)
    if not isinstance(include_zero, bool):
        raise InvalidFormatDefinitionError("composite.includeZero must be a boolean")

    spacer = value.get("spacer", " ")
    if not isinstance(spacer, str):
        raise InvalidFormatDefinitionError("composite.spacer must be a string")

    raw_units = value.get("units")
    if not isinstance(raw_units, (list, tuple)) or not raw_units:
        raise InvalidFormatDefinitionError("composite.units must be a non-empty list")
    if len(raw_units) > MAX_COMPOSITE_UNITS:
        raise InvalidFormatDefinitionError(
            f"composite formats support at most {MAX_COMPOSITE_UNITS} units"
        )

    units: list[CompositeUnit] = []
    for entry in raw_units:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("name"), str) or not entry["name"]:
            raise InvalidFormatDefinitionError(f"composite unit entry needs a 'name': {entry!r}")
        label = entry.get("label")
        if label is not None and not isinstance(label, str):
            raise InvalidFormatDefinitionError(f"composite unit label must be a string: {entry!r}")
        if any(u.name == entry["name"] for u in units):
            raise InvalidFormatDefinitionError(f"composite unit {entry['name']!r} is listed twice")
        units.append(CompositeUnit(entry["name"], label))
    return include_zero, spacer, tuple(units)


@dataclass(frozen=True)
class Format:
    """Immutable description of how a magnitude is displayed."""

    name: str
    type: FormatType = FormatType.Decimal
    precision: int = 6
    traits: FormatTraits = FormatTraits.NONE
    round_factor: float = 0.0
    show_sign_option: ShowSignOption = ShowSignOption.OnlyNegative
    uom_separator: str = " "
    scientific_type: ScientificType | None = None
    station_offset_size: int | None = None
    station_separator: str = "+"
    include_zero: bool = True
    spacer: str = " "
    units: tuple[CompositeUnit, ...] = field(default=())

    @classmethod
    def from_json(cls, name: str, props: Mapping[str, Any]) -> Format:
        if not isinstance(props, Mapping):
            raise InvalidFormatDefinitionError(f"format definition for {name!r} must be a mapping")
        if "type" not in props:
            raise InvalidFormatDefinitionError(f"format definition for {name!r} has no 'type'")

        fmt_type = _lookup(FormatType, props["type"], "format type")
        precision = _precision(props.get("precision", 6), fmt_type)
        traits = parse_format_traits(props.get("formatTraits"))

        round_factor = props.get("roundFactor", 0.0)
        if isinstance(round_factor, bool) or not isinstance(round_factor, (int, float)) or round_factor < 0:
            raise InvalidFormatDefinitionError("roundFactor must be a non-negative number")

        show_sign = _lookup(ShowSignOption, props.get("showSignOption", "onlyNegative"), "showSignOption")

        uom_separator = props.get("uomSeparator", " ")
        if not isinstance(uom_separator, str):
            raise InvalidFormatDefinitionError("uomSeparator must be a string")

        scientific_type = None
        if fmt_type is FormatType.Scientific:
            if "scientificType" not in props:
                raise InvalidFormatDefinitionError("Scientific formats require 'scientificType'")
            scientific_type = _lookup(ScientificType, props["scientificType"], "scientificType")

        station_offset_size = None
        station_separator = props.get("stationSeparator", "+")
        if fmt_type is FormatType.Station:
            size = props.get("stationOffsetSize")
            if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
                raise InvalidFormatDefinitionError("Station formats require a positive 'stationOffsetSize'")
            if not isinstance(station_separator, str) or len(station_separator) != 1:
                raise InvalidFormatDefinitionError("stationSeparator must be a single character")
            station_offset_size = size

        include_zero, spacer, units = _composite(props.get("composite"))
        if len(units) > 1 and fmt_type in (FormatType.Scientific, FormatType.Station):
            raise InvalidFormatDefinitionError(
                f"{fmt_type.value} formats cannot span more than one composite unit"
            )

        return cls(
            name=name,
            type=fmt_type,
            precision=precision,
            traits=traits,
            round_factor=float(round_factor),
            show_sign_option=show_sign,
            uom_separator=uom_separator,
            scientific_type=scientific_type,
            station_offset_size=station_offset_size,
            station_separator=station_separator,
            include_zero=include_zero,
            spacer=spacer,
            units=units,
        )

    def to_json(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "type": self.type.value,
            "precision": self.precision,
            "formatTraits": [t.wire_name for t in FormatTraits if t is not FormatTraits.NONE and t in self.traits],
        }
        if self.round_factor:
            props["roundFactor"] = self.round_factor
        if self.show_sign_option is not ShowSignOption.OnlyNegative:
            props["showSignOption"] = self.show_sign_option.value
        if self.uom_separator != " ":
            props["uomSeparator"] = self.uom_separator
        if self.scientific_type is not None:
            props["scientificType"] = self.scientific_type.value
        if self.station_offset_size is not None:
            props["stationOffsetSize"] = self.station_offset_size
            props["stationSeparator"] = self.station_separator
        if self.units:
            props["composite"] = {
                "includeZero": self.include_zero,
                "spacer": self.spacer,
                "units": [
                    {"name": u.name, **({"label": u.label} if u.label is not None else {})}
                    for u in self.units
                ],
            }
        return props

    # ------------------------------------------------------------------ helpers
    def has_trait(self, trait: FormatTraits) -> bool:
        return trait in self.traits

    @property
    def has_composite(self) -> bool:
        return bool(self.units)

    def check_composite_units(self, units: Sequence[UnitProps]) -> None:
        """Validate resolved composite units against this format.

        Units must share one phenomenon and strictly decrease in magnitude;
        only the first (major) unit may carry an offset.
        """
        if len(units) != len(self.units):
            raise InvalidFormatDefinitionError(
                f"format {self.name!r} lists {len(self.units)} units, {len(units)} were resolved"
            )
        if not units:
            return

        major = units[0]
        for unit in units[1:]:
            if unit.phenomenon != major.phenomenon:
                raise IncompatiblePhenomenonError(
                    f"format {self.name!r} mixes {major.phenomenon} ({major.name}) "
                    f"and {unit.phenomenon} ({unit.name})"
                )
            if unit.offset != 0.0:
                raise InvalidFormatDefinitionError(
                    f"format {self.name!r}: only the first composite unit may have an offset ({unit.name})"
                )

        for larger, smaller in zip(units, units[1:]):
            if not smaller.factor < larger.factor:
                raise InvalidFormatDefinitionError(
                    f"format {self.name!r}: composite units must decrease in magnitude, "
                    f"{smaller.name} is not smaller than {larger.name}"
                )


__all__ = [
    "Format",
    "FormatType",
    "FormatTraits",
    "ScientificType",
    "ShowSignOption",
    "CompositeUnit",
    "parse_format_traits",
]
