"""
quantfmt: Format quantities for display and parse user input back into them.

quantfmt turns magnitudes stored in a persistence unit into text such as
``4'-11"`` or ``1076391.0417 ft²`` according to declarative formats, and
parses free text back into magnitudes. This module exposes a minimal, stable
public API. Heavy subsystems (e.g. the units registry and the formatter) are
imported lazily to avoid import-time side effects and circular imports.
"""

from importlib import metadata as _metadata


__author__ = "Parneet Sidhu"
__license__ = "MIT"

# Try to read the installed package version first; fall back to a default for local dev.
try:
    __version__ = _metadata.version("quantfmt")
except _metadata.PackageNotFoundError:
    import tomllib
    with open("pyproject.toml", "rb") as f:
        __version__ = tomllib.load(f)["project"]["version"]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing aid only
    from quantfmt.units.registry import UnitsRegistry

# name -> (module, attribute)
_LAZY = {
    "QuantityFormatter": ("quantfmt.formatter.quantity_formatter", "QuantityFormatter"),
    "FormatterParserSpecsProvider": ("quantfmt.formatter.quantity_formatter", "FormatterParserSpecsProvider"),
    "QuantityType": ("quantfmt.formatter.quantity_type", "QuantityType"),
    "Format": ("quantfmt.core.format", "Format"),
    "FormatterSpec": ("quantfmt.core.formatter", "FormatterSpec"),
    "ParserSpec": ("quantfmt.core.parser", "ParserSpec"),
    "ParseResult": ("quantfmt.core.parser", "ParseResult"),
    "QuantityStatus": ("quantfmt.core.errors", "QuantityStatus"),
    "QuantityError": ("quantfmt.core.errors", "QuantityError"),
    "UnitProps": ("quantfmt.core.unit", "UnitProps"),
    "UnitsRegistry": ("quantfmt.units.registry", "UnitsRegistry"),
    "format_quantity": ("quantfmt.core.formatter", "format_quantity"),
    "parse_into_quantity_value": ("quantfmt.core.parser", "parse_into_quantity_value"),
    "within_tolerance": ("quantfmt.core.parser", "within_tolerance"),
}

# Public names exposed by the package. Keep this minimal and stable.
__all__ = ["__version__", "__author__", "__license__", "ureg", *_LAZY]


# Lazy access helpers -------------------------------------------------------

def _get_default_registry() -> "UnitsRegistry":
    # Import here to avoid import-time side-effects / circular imports.
    from quantfmt.units.registry import DEFAULT_REGISTRY  # local import
    return DEFAULT_REGISTRY


def __getattr__(name: str) -> Any:
    if name == "ureg":
        return _get_default_registry()
    target = _LAZY.get(name)
    if target is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    import importlib
    module_name, attr = target
    return getattr(importlib.import_module(module_name), attr)


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))
