# tests/conftest.py
import asyncio

import pytest

from quantfmt.core.format import Format
from quantfmt.core.formatter import FormatterSpec
from quantfmt.core.parser import ParserSpec
from quantfmt.formatter.quantity_formatter import QuantityFormatter
from quantfmt.units.registry import DEFAULT_REGISTRY as _ureg
from quantfmt.units.registry import _bootstrap_default_registry


@pytest.fixture(scope="session")
def ureg():
    return _ureg


@pytest.fixture()
def reg():
    """Fresh, fully-bootstrapped registry so tests can mutate it freely."""
    return _bootstrap_default_registry()


@pytest.fixture()
def qf(reg):
    return QuantityFormatter(reg)


@pytest.fixture()
def formatter_spec(reg):
    """Build a FormatterSpec from a wire-form definition."""
    def make(props, persistence="Units.M", name="test"):
        fmt = Format.from_json(name, props)
        unit = reg.get(persistence)
        return asyncio.run(FormatterSpec.create(name, fmt, reg, unit))
    return make


@pytest.fixture()
def parser_spec(reg):
    """Build a ParserSpec from a wire-form definition or a Format."""
    def make(props, output="Units.M", name="test"):
        fmt = props if isinstance(props, Format) else Format.from_json(name, props)
        return asyncio.run(ParserSpec.create(fmt, reg, reg.get(output)))
    return make
