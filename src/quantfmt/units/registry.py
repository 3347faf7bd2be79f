"""
quantfmt.units.registry
=======================

An in-memory unit directory for the formatter.

- Encapsulates its state in a `UnitsRegistry` instance (thread-safe).
- Data-driven registration of the built-in catalogue (length, area, volume,
  angle, time, temperature) in metric, imperial and US survey flavours.
- Label normalization that handles Unicode NFC, ``^2`` style powers and case.
- Aliases ("feet" → ``Units.FT``, "sussf" → ``Units.SQ_SURVEY_FT``).
- Implements the `UnitsProvider` protocol, so it can be handed directly to a
  `QuantityFormatter`; several registries can coexist for testing.

Units are keyed by their canonical name (``Units.M``, ``Units.SURVEY_FT``).
Labels are *not* unique: ``'`` is both the foot and the arc minute, which is why
label lookups may be narrowed to a phenomenon.
"""
from __future__ import annotations

import logging
import math
import threading
from dataclasses import replace as _replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from quantfmt.core.conversion import resolve_conversion
from quantfmt.core.errors import UnknownUnitError
from quantfmt.core.unit import (
    ANGLE,
    AREA,
    IMPERIAL,
    LENGTH,
    METRIC,
    OTHER,
    SURVEY,
    TEMPERATURE,
    TIME,
    VOLUME,
    UnitConversion,
    UnitProps,
)
from quantfmt.units.utils import normalize_label

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Units registry
# ---------------------------------------------------------------------------
class UnitsRegistry:
    """Thread-safe registry of `UnitProps` with label and alias lookup."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._units: Dict[str, UnitProps] = {}
        self._folded_names: Dict[str, str] = {}
        self._labels: Dict[str, List[str]] = {}

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._units)

    # -------------------------- public API ---------------------------------
    def register(self, unit: UnitProps, replace: bool = False) -> None:
        """Register (or overwrite if replace is True) a unit under its canonical name.

        Use `register_alias` to add additional spellings without duplication.
        """
        with self._lock:
            folded = unit.name.casefold()
            existing = self._folded_names.get(folded)
            if existing is not None and not replace:
                raise ValueError(
                    f"Cannot register unit '{unit.name}': "
                    "a unit with this name already exists."
                )
            if existing is not None:
                self._unindex(self._units.pop(existing))

            self._units[unit.name] = unit
            self._folded_names[folded] = unit.name
            self._index(unit)

    def register_alias(self, alias: str, canonical: str, replace: bool = False) -> None:
        """Add ``alias`` as an alternate label of the unit named ``canonical``."""
        key = normalize_label(alias)
        if not key:
            raise ValueError("alias must be a non-empty string")

        with self._lock:
            unit = self.get(canonical)
            if not replace:
                # An alias may not shadow the *name* of another unit.
                other = self._folded_names.get(alias.strip().casefold())
                if other is not None and other != unit.name:
                    raise ValueError(
                        f"Cannot register alias '{alias}': "
                        f"a unit with the name '{other}' already exists."
                    )
            if key in (normalize_label(lbl) for lbl in unit.labels):
                return

            updated = _replace(unit, alternate_labels=unit.alternate_labels + (alias,))
            self._unindex(unit)
            self._units[unit.name] = updated
            self._index(updated)

    def has(self, name: str) -> bool:
        try:
            self.get(name)
            return True
        except ValueError:
            return False

    def get(self, name: str) -> UnitProps:
        """Lookup a unit by canonical name (case-insensitive).

        Raises `UnknownUnitError` (a `ValueError`) if unknown.
        """
        with self._lock:
            unit = self._units.get(name)
            if unit is not None:
                return unit
            target = self._folded_names.get(name.strip().casefold()) if name else None
            if target is not None:
                return self._units[target]
        raise UnknownUnitError(f"Unknown unit: {name}")

    def find(self, label: str, phenomenon: Optional[str] = None) -> Optional[UnitProps]:
        """Lookup a unit by display label or alias, optionally within one phenomenon."""
        key = normalize_label(label)
        with self._lock:
            for name in self._labels.get(key, ()):
                unit = self._units[name]
                if phenomenon is None or unit.phenomenon == phenomenon:
                    return unit
        return None

    def units_in(self, phenomenon: str) -> List[UnitProps]:
        with self._lock:
            return [u for u in self._units.values() if u.phenomenon == phenomenon]

    def all(self) -> Mapping[str, UnitProps]:
        with self._lock:
            return dict(self._units)

    # ----------------------- UnitsProvider protocol -------------------------
    async def find_unit_by_name(self, name: str) -> UnitProps:
        return self.get(name)

    async def find_unit(self, label: str, phenomenon: Optional[str] = None) -> UnitProps:
        unit = self.find(label, phenomenon)
        if unit is None:
            raise UnknownUnitError(f"No unit is labelled {label!r}")
        return unit

    async def get_units_by_phenomenon(self, phenomenon: str) -> Sequence[UnitProps]:
        return self.units_in(phenomenon)

    async def get_conversion(self, from_unit: UnitProps, to_unit: UnitProps) -> UnitConversion:
        return resolve_conversion(from_unit, to_unit)

    # ------------------------- internals -----------------------------------
    def _index(self, unit: UnitProps) -> None:
        for label in unit.labels:
            key = normalize_label(label)
            if not key:
                continue
            names = self._labels.setdefault(key, [])
            if unit.name not in names:
                names.append(unit.name)

    def _unindex(self, unit: UnitProps) -> None:
        for label in unit.labels:
            names = self._labels.get(normalize_label(label))
            if names and unit.name in names:
                names.remove(unit.name)
                if not names:
                    del self._labels[normalize_label(label)]


# ---------------------------------------------------------------------------
# Bootstrap a default registry with the built-in catalogue
# ---------------------------------------------------------------------------

_SURVEY_FOOT = 1200.0 / 3937.0
_INCH = 0.0254
_FOOT = 0.3048
_YARD = 0.9144
_MILE = 1609.344


def _register_all(reg: UnitsRegistry, phenomenon: str, rows: Iterable[tuple]) -> None:
    for row in rows:
        name, label, system, factor, *rest = row
        aliases = rest[0] if rest else ()
        offset = rest[1] if len(rest) > 1 else 0.0
        reg.register(UnitProps(name, label, phenomenon, system, factor, offset, tuple(aliases)))


def _bootstrap_default_registry() -> UnitsRegistry:
    reg = UnitsRegistry()

    # (name, label, system, factor to base[, aliases[, offset]])
    length_units = (
        ("Units.M",         "m",              METRIC,   1.0,           ("meter", "meters", "metre", "metres")),
        ("Units.MM",        "mm",             METRIC,   1.0e-3,        ("millimeter", "millimeters", "millimetre", "millimetres")),
        ("Units.CM",        "cm",             METRIC,   1.0e-2,        ("centimeter", "centimeters", "centimetre", "centimetres")),
        ("Units.KM",        "km",             METRIC,   1.0e3,         ("kilometer", "kilometers", "kilometre", "kilometres")),
        ("Units.UM",        "µm",             METRIC,   1.0e-6,        ("um", "micron", "microns")),
        ("Units.IN",        "in",             IMPERIAL, _INCH,         ('"', "inch", "inches")),
        ("Units.FT",        "ft",             IMPERIAL, _FOOT,         ("'", "feet", "foot")),
        ("Units.YRD",       "yd",             IMPERIAL, _YARD,         ("yrd", "yard", "yards")),
        ("Units.MILE",      "mi",             IMPERIAL, _MILE,         ("mile", "miles")),
        ("Units.SURVEY_IN", "in (US Survey)", SURVEY,   _SURVEY_FOOT / 12.0, ("us survey inch", "us survey inches")),
        ("Units.SURVEY_FT", "ft (US Survey)", SURVEY,   _SURVEY_FOOT,  ("usft", "us survey foot", "us survey feet")),
        ("Units.SURVEY_MILE", "mi (US Survey)", SURVEY, _SURVEY_FOOT * 5280.0, ("us survey mile", "us survey miles")),
    )

    area_units = (
        ("Units.SQ_M",        "m²",              METRIC,   1.0,                 ("sq m", "square meter", "square meters", "square metre", "square metres")),
        ("Units.SQ_MM",       "mm²",             METRIC,   1.0e-6,              ("sq mm",)),
        ("Units.SQ_CM",       "cm²",             METRIC,   1.0e-4,              ("sq cm",)),
        ("Units.SQ_KM",       "km²",             METRIC,   1.0e6,               ("sq km",)),
        ("Units.HECTARE",     "ha",              METRIC,   1.0e4,               ("hectare", "hectares")),
        ("Units.SQ_IN",       "in²",             IMPERIAL, _INCH ** 2,          ("sq in", "square inch", "square inches")),
        ("Units.SQ_FT",       "ft²",             IMPERIAL, _FOOT ** 2,          ("sf", "sq ft", "square foot", "square feet")),
        ("Units.SQ_YRD",      "yd²",             IMPERIAL, _YARD ** 2,          ("sq yd", "square yard", "square yards")),
        ("Units.SQ_MILE",     "mi²",             IMPERIAL, _MILE ** 2,          ("sq mi", "square mile", "square miles")),
        ("Units.ACRE",        "ac",              IMPERIAL, 4046.8564224,        ("acre", "acres")),
        ("Units.SQ_SURVEY_FT", "ft² (US Survey)", SURVEY,  _SURVEY_FOOT ** 2,   ("sussf", "sq us survey ft", "us survey square foot", "us survey square feet")),
    )

    volume_units = (
        ("Units.CUB_M",   "m³",  METRIC,   1.0,                    ("cu m", "cubic meter", "cubic meters", "cubic metre", "cubic metres")),
        ("Units.CUB_CM",  "cm³", METRIC,   1.0e-6,                 ("cu cm", "cc")),
        ("Units.LITRE",   "L",   METRIC,   1.0e-3,                 ("litre", "litres", "liter", "liters")),
        ("Units.CUB_IN",  "in³", IMPERIAL, _INCH ** 3,             ("cu in", "cubic inch", "cubic inches")),
        ("Units.CUB_FT",  "ft³", IMPERIAL, _FOOT ** 3,             ("cf", "cu ft", "cubic foot", "cubic feet")),
        ("Units.CUB_YRD", "yd³", IMPERIAL, _YARD ** 3,             ("cy", "cu yd", "cubic yard", "cubic yards")),
        ("Units.GALLON",  "gal", IMPERIAL, 3.785411784e-3,         ("gallon", "gallons")),
    )

    angle_units = (
        ("Units.REVOLUTION", "rev",  OTHER,  2.0 * math.pi,           ("revolution", "revolutions")),
        ("Units.RAD",        "rad",  METRIC, 1.0,                     ("radian", "radians")),
        ("Units.GRAD",       "grad", METRIC, math.pi / 200.0,         ("gon", "grads")),
        ("Units.ARC_DEG",    "°",    OTHER,  math.pi / 180.0,         ("deg", "degree", "degrees")),
        ("Units.ARC_MINUTE", "'",    OTHER,  math.pi / 10800.0,       ("′", "arcmin", "arc minute", "arc minutes")),
        ("Units.ARC_SECOND", '"',    OTHER,  math.pi / 648000.0,      ("″", "arcsec", "arc second", "arc seconds")),
    )

    time_units = (
        ("Units.S",    "s",   METRIC, 1.0,                 ("sec", "second", "seconds")),
        ("Units.MIN",  "min", METRIC, 60.0,                ("minute", "minutes")),
        ("Units.HR",   "h",   METRIC, 60.0 * 60.0,         ("hr", "hour", "hours")),
        ("Units.DAY",  "d",   METRIC, 24.0 * 60.0 * 60.0,  ("day", "days")),
        ("Units.WEEK", "wk",  METRIC, 7.0 * 24.0 * 60.0 * 60.0, ("week", "weeks")),
    )

    temperature_units = (
        ("Units.K",          "K",  METRIC,   1.0,       ("kelvin",)),
        ("Units.CELSIUS",    "°C", METRIC,   1.0,       ("degC", "celsius"),    273.15),
        ("Units.FAHRENHEIT", "°F", IMPERIAL, 5.0 / 9.0, ("degF", "fahrenheit"), 459.67 * 5.0 / 9.0),
        ("Units.RANKINE",    "°R", IMPERIAL, 5.0 / 9.0, ("degR", "rankine")),
    )

    _register_all(reg, LENGTH, length_units)
    _register_all(reg, AREA, area_units)
    _register_all(reg, VOLUME, volume_units)
    _register_all(reg, ANGLE, angle_units)
    _register_all(reg, TIME, time_units)
    _register_all(reg, TEMPERATURE, temperature_units)

    logger.debug("Bootstrapped default units registry with %d units", len(reg))
    return reg


# Public, shared default registry
DEFAULT_REGISTRY: UnitsRegistry = _bootstrap_default_registry()


__all__ = [
    "UnitsRegistry",
    "DEFAULT_REGISTRY",
]
