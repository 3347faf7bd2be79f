import asyncio

import pytest

from quantfmt.core.conversion import (
    UnitConversionSpec,
    create_unit_conversion_specs,
    create_unit_conversion_specs_for_unit,
    resolve_conversion,
)
from quantfmt.core.errors import IncompatiblePhenomenonError, InvalidFormatDefinitionError, UnknownUnitError
from quantfmt.core.format import Format
from quantfmt.core.unit import LENGTH, UnitConversion


def test_linear_conversion(reg):
    conv = resolve_conversion(reg.get("Units.FT"), reg.get("Units.IN"))
    assert conv.factor == pytest.approx(12.0)
    assert conv.offset == 0.0
    assert conv.evaluate(2.0) == pytest.approx(24.0)


def test_same_unit_is_identity(reg):
    assert resolve_conversion(reg.get("Units.M"), reg.get("Units.M")) == UnitConversion()


def test_affine_conversion(reg):
    conv = resolve_conversion(reg.get("Units.CELSIUS"), reg.get("Units.FAHRENHEIT"))
    assert conv.evaluate(100.0) == pytest.approx(212.0)
    assert conv.evaluate(0.0) == pytest.approx(32.0)
    assert conv.evaluate(-40.0) == pytest.approx(-40.0)


def test_unit_base_round_trip(reg):
    fahrenheit = reg.get("Units.FAHRENHEIT")
    assert not fahrenheit.is_linear
    assert reg.get("Units.FT").is_linear
    assert fahrenheit.to_base(32.0) == pytest.approx(273.15)
    assert fahrenheit.from_base(fahrenheit.to_base(-40.0)) == pytest.approx(-40.0)


def test_inverse_undoes_conversion(reg):
    conv = resolve_conversion(reg.get("Units.CELSIUS"), reg.get("Units.FAHRENHEIT"))
    assert conv.inverse().evaluate(conv.evaluate(37.0)) == pytest.approx(37.0)


def test_incompatible_phenomena(reg):
    with pytest.raises(IncompatiblePhenomenonError):
        resolve_conversion(reg.get("Units.M"), reg.get("Units.SQ_M"))


def test_spec_convert_matches_conversion(reg):
    spec = UnitConversionSpec(reg.get("Units.FT"), "'", 1 / 0.3048)
    assert spec.name == "Units.FT"
    assert spec.convert(0.3048) == pytest.approx(1.0)
    assert spec.conversion.evaluate(0.3048) == pytest.approx(1.0)


# -------------------------------
# formatter tiers
# -------------------------------

def test_tiers_chain_from_persistence_unit(reg):
    fmt = Format.from_json("ft-in", {
        "type": "Fractional",
        "precision": 3,
        "composite": {"units": [{"name": "Units.FT", "label": "'"}, {"name": "Units.IN"}]},
    })
    specs = asyncio.run(create_unit_conversion_specs(reg, reg.get("Units.M"), fmt))

    assert [s.name for s in specs] == ["Units.FT", "Units.IN"]
    assert specs[0].factor == pytest.approx(1 / 0.3048)
    assert specs[1].factor == pytest.approx(12.0)
    # composite label wins, otherwise the unit's own label
    assert [s.label for s in specs] == ["'", "in"]


def test_no_composite_uses_persistence_unit(reg):
    fmt = Format.from_json("plain", {"type": "Decimal"})
    specs = asyncio.run(create_unit_conversion_specs(reg, reg.get("Units.M"), fmt))
    assert len(specs) == 1
    assert specs[0].name == "Units.M"
    assert specs[0].label == "m"
    assert specs[0].factor == 1.0


def test_unknown_composite_unit(reg):
    fmt = Format.from_json("bad", {"type": "Decimal", "composite": {"units": [{"name": "Units.FURLONG"}]}})
    with pytest.raises(UnknownUnitError):
        asyncio.run(create_unit_conversion_specs(reg, reg.get("Units.M"), fmt))


def test_increasing_composite_rejected_when_resolved(reg):
    fmt = Format.from_json("bad", {
        "type": "Decimal",
        "composite": {"units": [{"name": "Units.IN"}, {"name": "Units.FT"}]},
    })
    with pytest.raises(InvalidFormatDefinitionError):
        asyncio.run(create_unit_conversion_specs(reg, reg.get("Units.M"), fmt))


# -------------------------------
# parser conversions
# -------------------------------

def test_specs_for_unit_cover_phenomenon_largest_first(reg):
    ft = reg.get("Units.FT")
    specs = asyncio.run(create_unit_conversion_specs_for_unit(reg, ft))

    assert {s.name for s in specs} == {u.name for u in reg.units_in(LENGTH)}
    factors = [s.unit.factor for s in specs]
    assert factors == sorted(factors, reverse=True)

    by_name = {s.name: s for s in specs}
    assert by_name["Units.IN"].factor == pytest.approx(1 / 12)
    assert by_name["Units.FT"].factor == pytest.approx(1.0)
    assert by_name["Units.M"].convert(0.3048) == pytest.approx(1.0)
