import pytest

from quantfmt.core.errors import (
    IncompatiblePhenomenonError,
    InvalidFormatDefinitionError,
    QuantityStatus,
)
from quantfmt.core.format import (
    CompositeUnit,
    Format,
    FormatTraits,
    FormatType,
    ScientificType,
    ShowSignOption,
    parse_format_traits,
)


def _units(*names):
    return {"units": [{"name": n} for n in names]}


# -------------------------------
# from_json: happy paths
# -------------------------------

def test_minimal_definition_uses_defaults():
    fmt = Format.from_json("plain", {"type": "Decimal"})
    assert fmt.type is FormatType.Decimal
    assert fmt.precision == 6
    assert fmt.traits == FormatTraits.NONE
    assert fmt.show_sign_option is ShowSignOption.OnlyNegative
    assert fmt.uom_separator == " "
    assert not fmt.has_composite


def test_enum_values_are_case_insensitive():
    fmt = Format.from_json("f", {"type": "fractional", "precision": 3, "showSignOption": "SignAlways"})
    assert fmt.type is FormatType.Fractional
    assert fmt.show_sign_option is ShowSignOption.SignAlways


def test_composite_definition():
    fmt = Format.from_json("ft-in", {
        "type": "Fractional",
        "precision": 3,
        "composite": {
            "includeZero": False,
            "spacer": "-",
            "units": [{"name": "Units.FT", "label": "'"}, {"name": "Units.IN"}],
        },
    })
    assert fmt.units == (CompositeUnit("Units.FT", "'"), CompositeUnit("Units.IN", None))
    assert fmt.spacer == "-"
    assert fmt.include_zero is False


@pytest.mark.parametrize("traits", [
    ["keepSingleZero", "showUnitLabel"],
    "keepSingleZero|showUnitLabel",
    "keepSingleZero, showUnitLabel",
])
def test_traits_accept_list_or_separated_string(traits):
    parsed = parse_format_traits(traits)
    assert parsed == FormatTraits.KeepSingleZero | FormatTraits.ShowUnitLabel


def test_trait_wire_name():
    assert FormatTraits.Use1000Separator.wire_name == "use1000Separator"
    assert FormatTraits.KeepSingleZero.wire_name == "keepSingleZero"


def test_scientific_and_station_definitions():
    sci = Format.from_json("sci", {"type": "Scientific", "precision": 2, "scientificType": "zeroNormalized"})
    assert sci.scientific_type is ScientificType.ZeroNormalized

    sta = Format.from_json("sta", {"type": "Station", "precision": 2, "stationOffsetSize": 2})
    assert sta.station_offset_size == 2
    assert sta.station_separator == "+"


def test_fractional_precision_allows_up_to_eight():
    assert Format.from_json("f", {"type": "Fractional", "precision": 8}).precision == 8


def test_to_json_round_trips():
    props = {
        "type": "Fractional",
        "precision": 3,
        "formatTraits": ["keepSingleZero", "showUnitLabel"],
        "uomSeparator": "",
        "showSignOption": "negativeParentheses",
        "composite": {
            "includeZero": True,
            "spacer": "-",
            "units": [{"name": "Units.FT", "label": "'"}, {"name": "Units.IN", "label": '"'}],
        },
    }
    fmt = Format.from_json("ft-in", props)
    assert Format.from_json("ft-in", fmt.to_json()) == fmt
    assert fmt.to_json()["formatTraits"] == ["keepSingleZero", "showUnitLabel"]


# -------------------------------
# from_json: rejected definitions
# -------------------------------

@pytest.mark.parametrize("props", [
    {},
    {"precision": 2},
    {"type": "Hexadecimal"},
    {"type": "Decimal", "precision": -1},
    {"type": "Decimal", "precision": 13},
    {"type": "Decimal", "precision": 2.5},
    {"type": "Decimal", "precision": True},
    {"type": "Fractional", "precision": 9},
    {"type": "Decimal", "formatTraits": ["sparkle"]},
    {"type": "Decimal", "showSignOption": "sometimes"},
    {"type": "Decimal", "roundFactor": -1},
    {"type": "Decimal", "uomSeparator": 3},
    {"type": "Scientific", "precision": 2},
    {"type": "Scientific", "scientificType": "weird"},
    {"type": "Station", "precision": 2},
    {"type": "Station", "stationOffsetSize": 0},
    {"type": "Station", "stationOffsetSize": 2, "stationSeparator": "++"},
    {"type": "Decimal", "composite": {"units": []}},
    {"type": "Decimal", "composite": {"units": [{"label": "m"}]}},
    {"type": "Decimal", "composite": _units("Units.KM", "Units.M", "Units.CM", "Units.MM", "Units.UM")},
    {"type": "Decimal", "composite": _units("Units.FT", "Units.FT")},
    {"type": "Decimal", "composite": {"includeZero": "yes", "units": [{"name": "Units.M"}]}},
    {"type": "Scientific", "scientificType": "normalized", "composite": _units("Units.FT", "Units.IN")},
])
def test_invalid_definitions_raise(props):
    with pytest.raises(InvalidFormatDefinitionError):
        Format.from_json("bad", props)


def test_definition_must_be_a_mapping():
    with pytest.raises(InvalidFormatDefinitionError):
        Format.from_json("bad", ["Decimal"])


def test_errors_carry_status_and_are_value_errors():
    err = InvalidFormatDefinitionError("nope")
    assert isinstance(err, ValueError)
    assert err.status is QuantityStatus.InvalidFormatDefinition


# -------------------------------
# check_composite_units
# -------------------------------

def test_decreasing_units_accepted(reg):
    fmt = Format.from_json("ft-in", {"type": "Decimal", "composite": _units("Units.FT", "Units.IN")})
    fmt.check_composite_units([reg.get("Units.FT"), reg.get("Units.IN")])


def test_increasing_units_rejected(reg):
    fmt = Format.from_json("in-ft", {"type": "Decimal", "composite": _units("Units.IN", "Units.FT")})
    with pytest.raises(InvalidFormatDefinitionError):
        fmt.check_composite_units([reg.get("Units.IN"), reg.get("Units.FT")])


def test_mixed_phenomena_rejected(reg):
    fmt = Format.from_json("mix", {"type": "Decimal", "composite": _units("Units.FT", "Units.ARC_MINUTE")})
    with pytest.raises(IncompatiblePhenomenonError):
        fmt.check_composite_units([reg.get("Units.FT"), reg.get("Units.ARC_MINUTE")])


def test_offset_only_allowed_on_major_unit(reg):
    fmt = Format.from_json("k-c", {"type": "Decimal", "composite": _units("Units.K", "Units.CELSIUS")})
    with pytest.raises(InvalidFormatDefinitionError):
        fmt.check_composite_units([reg.get("Units.K"), reg.get("Units.CELSIUS")])
