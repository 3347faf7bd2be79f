# pytest tests for quantfmt.units.registry
#
# These tests exercise name and label lookup, aliases, label normalization,
# the async UnitsProvider surface and thread-safety. They use an isolated
# registry instance (the `reg` fixture) so nothing leaks into DEFAULT_REGISTRY.

import asyncio
import threading

import pytest

import quantfmt.units.registry as regmod
from quantfmt.core.errors import UnknownUnitError
from quantfmt.core.unit import ANGLE, AREA, LENGTH, METRIC, UnitProps
from quantfmt.units.provider import UnitsProvider
from quantfmt.units.registry import UnitsRegistry
from quantfmt.units.utils import normalize_label, superscript_powers


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------

def test_default_registry_is_bootstrapped():
    assert "Units.M" in regmod.DEFAULT_REGISTRY
    assert len(regmod.DEFAULT_REGISTRY) > 40


@pytest.mark.parametrize("name, factor", [
    ("Units.M", 1.0),
    ("Units.FT", 0.3048),
    ("Units.IN", 0.0254),
    ("Units.SURVEY_FT", 1200 / 3937),
    ("Units.SQ_FT", 0.3048 ** 2),
    ("Units.SQ_SURVEY_FT", (1200 / 3937) ** 2),
])
def test_catalogue_factors(reg, name, factor):
    assert reg.get(name).factor == pytest.approx(factor)


def test_survey_foot_differs_from_international_foot(reg):
    assert reg.get("Units.SURVEY_FT").factor != reg.get("Units.FT").factor


# ---------------------------------------------------------------------------
# Name lookup
# ---------------------------------------------------------------------------

def test_get_is_case_insensitive(reg):
    assert reg.get("units.ft") is reg.get("Units.FT")


def test_unknown_name(reg):
    with pytest.raises(UnknownUnitError):
        reg.get("Units.FURLONG")
    assert not reg.has("Units.FURLONG")
    assert "Units.FURLONG" not in reg


def test_register_duplicate_requires_replace(reg):
    furlong = UnitProps("Units.FURLONG", "fur", LENGTH, factor=201.168)
    reg.register(furlong)
    with pytest.raises(ValueError):
        reg.register(furlong)

    longer = UnitProps("Units.FURLONG", "fur", LENGTH, factor=201.2)
    reg.register(longer, replace=True)
    assert reg.get("Units.FURLONG").factor == 201.2
    assert reg.find("fur") is longer


@pytest.mark.parametrize("kwargs", [
    {"name": ""},
    {"factor": 0.0},
    {"factor": float("inf")},
    {"system": "martian"},
])
def test_unit_props_validation(kwargs):
    props = {"name": "Units.X", "label": "x", "phenomenon": LENGTH, **kwargs}
    with pytest.raises(ValueError):
        UnitProps(**props)


# ---------------------------------------------------------------------------
# Label lookup and aliases
# ---------------------------------------------------------------------------

def test_shared_label_is_narrowed_by_phenomenon(reg):
    assert reg.find("'", LENGTH).name == "Units.FT"
    assert reg.find("'", ANGLE).name == "Units.ARC_MINUTE"


def test_find_normalizes_powers_and_case(reg):
    assert reg.find("FT^2").name == "Units.SQ_FT"
    assert reg.find("ft^(2)", AREA).name == "Units.SQ_FT"
    assert reg.find("Feet").name == "Units.FT"
    assert reg.find("nothing") is None


def test_register_alias(reg):
    reg.register_alias("survey foot", "Units.SURVEY_FT")
    unit = reg.find("Survey Foot")
    assert unit.name == "Units.SURVEY_FT"
    assert "survey foot" in unit.alternate_labels
    # registering again is a no-op
    reg.register_alias("survey foot", "Units.SURVEY_FT")
    assert reg.get("Units.SURVEY_FT").alternate_labels.count("survey foot") == 1


def test_alias_may_not_shadow_another_unit_name(reg):
    with pytest.raises(ValueError):
        reg.register_alias("Units.M", "Units.FT")


def test_alias_for_unknown_unit(reg):
    with pytest.raises(UnknownUnitError):
        reg.register_alias("zz", "Units.NOPE")


def test_units_in(reg):
    names = {u.name for u in reg.units_in(LENGTH)}
    assert {"Units.M", "Units.FT", "Units.SURVEY_FT"} <= names
    assert "Units.SQ_M" not in names


def test_all_returns_a_copy(reg):
    snapshot = reg.all()
    snapshot.clear()
    assert len(reg) > 0


# ---------------------------------------------------------------------------
# UnitsProvider protocol
# ---------------------------------------------------------------------------

def test_registry_is_a_units_provider(reg):
    assert isinstance(reg, UnitsProvider)


def test_async_lookups(reg):
    async def lookups():
        ft = await reg.find_unit_by_name("Units.FT")
        arcmin = await reg.find_unit("'", ANGLE)
        units = await reg.get_units_by_phenomenon(LENGTH)
        conv = await reg.get_conversion(ft, await reg.find_unit_by_name("Units.IN"))
        return ft, arcmin, units, conv

    ft, arcmin, units, conv = asyncio.run(lookups())
    assert ft.name == "Units.FT"
    assert arcmin.name == "Units.ARC_MINUTE"
    assert ft in units
    assert conv.factor == pytest.approx(12.0)


def test_async_unknown_label(reg):
    with pytest.raises(UnknownUnitError):
        asyncio.run(reg.find_unit("flurg"))


# ---------------------------------------------------------------------------
# Thread-safety
# ---------------------------------------------------------------------------

def test_concurrent_registration():
    reg = UnitsRegistry()
    errors = []

    def worker(i):
        try:
            for j in range(50):
                reg.register(UnitProps(f"Units.T{i}_{j}", f"t{i}_{j}", LENGTH, METRIC, 1.0 + j))
                reg.find(f"t{i}_{j}")
        except Exception as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert len(reg) == 8 * 50


# ---------------------------------------------------------------------------
# Label helpers
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text, expected", [
    ("ft^2", "ft²"),
    ("m^(3)", "m³"),
    ("m^1", "m"),
    ("in", "in"),
])
def test_superscript_powers(text, expected):
    assert superscript_powers(text) == expected


def test_normalize_label():
    assert normalize_label("  Ft  (US   Survey) ") == "ft (us survey)"
