"""
quantfmt.formatter.defaults
===========================

Built-in format definitions, one metric and one imperial entry per
`QuantityType`. They use the same wire form as caller overrides and go
through `Format.from_json` like any other definition.
"""

from __future__ import annotations

from typing import Any, Mapping

from quantfmt.core.format import Format
from quantfmt.formatter.quantity_type import QuantityType

_LABELLED = ["keepSingleZero", "showUnitLabel"]


def _units(*pairs: tuple[str, str]) -> list[dict[str, str]]:
    return [{"name": name, "label": label} for name, label in pairs]


METRIC_FORMATS: dict[QuantityType, dict[str, Any]] = {
    QuantityType.Length: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.M", "m"))},
    },
    QuantityType.Angle: {
        "type": "Decimal",
        "precision": 2,
        "formatTraits": _LABELLED,
        "uomSeparator": "",
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.ARC_DEG", "°"))},
    },
    QuantityType.Area: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.SQ_M", "m²"))},
    },
    QuantityType.Volume: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.CUB_M", "m³"))},
    },
    QuantityType.LatLong: {
        "type": "Decimal",
        "precision": 6,
        "formatTraits": _LABELLED,
        "uomSeparator": "",
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.ARC_DEG", "°"))},
    },
    QuantityType.Coordinate: {
        "type": "Decimal",
        "precision": 2,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.M", "m"))},
    },
    QuantityType.Stationing: {
        "type": "Station",
        "precision": 2,
        "formatTraits": ["trailZeroes", "keepSingleZero"],
        "stationOffsetSize": 3,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.M", "m"))},
    },
    QuantityType.LengthSurvey: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.M", "m"))},
    },
    QuantityType.LengthEngineering: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.M", "m"))},
    },
}

IMPERIAL_FORMATS: dict[QuantityType, dict[str, Any]] = {
    QuantityType.Length: {
        "type": "Fractional",
        "precision": 3,
        "formatTraits": _LABELLED,
        "uomSeparator": "",
        "composite": {
            "includeZero": True,
            "spacer": "-",
            "units": _units(("Units.FT", "'"), ("Units.IN", '"')),
        },
    },
    QuantityType.Angle: {
        "type": "Decimal",
        "precision": 0,
        "formatTraits": _LABELLED,
        "uomSeparator": "",
        "composite": {
            "includeZero": True,
            "spacer": "",
            "units": _units(("Units.ARC_DEG", "°"), ("Units.ARC_MINUTE", "'"), ("Units.ARC_SECOND", '"')),
        },
    },
    QuantityType.Area: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.SQ_FT", "ft²"))},
    },
    QuantityType.Volume: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.CUB_FT", "ft³"))},
    },
    QuantityType.LatLong: {
        "type": "Decimal",
        "precision": 6,
        "formatTraits": _LABELLED,
        "uomSeparator": "",
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.ARC_DEG", "°"))},
    },
    QuantityType.Coordinate: {
        "type": "Decimal",
        "precision": 2,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.FT", "ft"))},
    },
    QuantityType.Stationing: {
        "type": "Station",
        "precision": 2,
        "formatTraits": ["trailZeroes", "keepSingleZero"],
        "stationOffsetSize": 2,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.FT", "ft"))},
    },
    QuantityType.LengthSurvey: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {
            "includeZero": True,
            "spacer": "",
            "units": _units(("Units.SURVEY_FT", "ft (US Survey)")),
        },
    },
    QuantityType.LengthEngineering: {
        "type": "Decimal",
        "precision": 4,
        "formatTraits": _LABELLED,
        "composite": {"includeZero": True, "spacer": "", "units": _units(("Units.FT", "ft"))},
    },
}


def default_format_props(quantity_type: QuantityType, use_imperial: bool) -> Mapping[str, Any]:
    table = IMPERIAL_FORMATS if use_imperial else METRIC_FORMATS
    return table[quantity_type]


def default_format(quantity_type: QuantityType, use_imperial: bool) -> Format:
    system = "imperial" if use_imperial else "metric"
    return Format.from_json(f"{quantity_type.name}.{system}", default_format_props(quantity_type, use_imperial))


__all__ = ["METRIC_FORMATS", "IMPERIAL_FORMATS", "default_format_props", "default_format"]
