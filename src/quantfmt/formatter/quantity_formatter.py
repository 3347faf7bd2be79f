"""
quantfmt.formatter.quantity_formatter
=====================================

`QuantityFormatter` builds, caches and serves formatter and parser specs per
quantity type and measurement system.

- Built-in quantity types use the format tables in `quantfmt.formatter.defaults`
  unless the caller installed an override with `set_override_formats`.
- Custom quantity types are served by a registered
  `FormatterParserSpecsProvider`.
- Each cache entry moves through ``Absent -> Building -> Ready``. Concurrent
  requests for the same entry share one `asyncio.Task`; a build whose entry
  was invalidated while it ran is handed to its awaiters but not cached.

One instance owns its override table and cache; create one per session
instead of sharing a module-level singleton.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from quantfmt.core.conversion import (
    UnitConversionSpec,
    create_unit_conversion_specs_for_unit,
    resolve_format_units,
)
from quantfmt.core.errors import (
    FormatterNotFoundError,
    IncompatiblePhenomenonError,
    InvalidFormatDefinitionError,
    ParserNotFoundError,
    UnknownQuantityTypeError,
)
from quantfmt.core.format import Format
from quantfmt.core.formatter import FormatterSpec
from quantfmt.core.parser import ParseResult, ParserSpec
from quantfmt.core.unit import UnitProps
from quantfmt.formatter.defaults import default_format
from quantfmt.formatter.quantity_type import QuantityType, QuantityTypeArg, as_builtin, persistence_unit_name
from quantfmt.units.provider import UnitsProvider

logger = logging.getLogger(__name__)

METRIC = "metric"
IMPERIAL = "imperial"

_FORMATTER = "formatter"
_PARSER = "parser"

Spec = Union[FormatterSpec, ParserSpec]
_CacheKey = Tuple[str, QuantityTypeArg, bool]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


@dataclass(frozen=True)
class FormatterParserSpecsProvider:
    """Spec builders for a caller-defined quantity type.

    Both builders receive ``use_imperial`` and may be plain functions or
    coroutine functions. They may return `FormatterSpec`/`ParserSpec`
    subclasses; the formatter caches and returns whatever they produce.
    """

    quantity_type_name: str
    create_formatter_spec: Callable[[bool], Union[FormatterSpec, Awaitable[FormatterSpec]]]
    create_parser_spec: Callable[[bool], Union[ParserSpec, Awaitable[ParserSpec]]]

    async def build(self, kind: str, use_imperial: bool) -> Optional[Spec]:
        builder = self.create_formatter_spec if kind == _FORMATTER else self.create_parser_spec
        return await _maybe_await(builder(use_imperial))


class QuantityFormatter:
    """Spec cache and override table for one session."""

    def __init__(self, units_provider: Optional[UnitsProvider] = None, *, use_imperial_formats: bool = False) -> None:
        if units_provider is None:
            from quantfmt.units.registry import DEFAULT_REGISTRY
            units_provider = DEFAULT_REGISTRY
        self._units: UnitsProvider = units_provider
        self._use_imperial = bool(use_imperial_formats)

        # quantity type -> system -> (Format, props as given)
        self._overrides: Dict[QuantityType, Dict[str, Tuple[Format, Mapping[str, Any]]]] = {}
        self._providers: Dict[str, FormatterParserSpecsProvider] = {}

        self._specs: Dict[_CacheKey, Spec] = {}
        self._builds: Dict[_CacheKey, asyncio.Task] = {}

    # ------------------------------------------------------------- properties
    @property
    def units_provider(self) -> UnitsProvider:
        return self._units

    @property
    def use_imperial_formats(self) -> bool:
        """System used when a ``use_imperial`` argument is omitted."""
        return self._use_imperial

    @use_imperial_formats.setter
    def use_imperial_formats(self, value: bool) -> None:
        self._use_imperial = bool(value)
        logger.debug("Default system set to %s", IMPERIAL if self._use_imperial else METRIC)

    # ------------------------------------------------------------------ specs
    async def get_formatter_spec_by_quantity_type(
        self, quantity_type: QuantityTypeArg, use_imperial: Optional[bool] = None
    ) -> FormatterSpec:
        return await self._get_spec(_FORMATTER, quantity_type, use_imperial)

    async def get_parser_spec_by_quantity_type(
        self, quantity_type: QuantityTypeArg, use_imperial: Optional[bool] = None
    ) -> ParserSpec:
        return await self._get_spec(_PARSER, quantity_type, use_imperial)

    async def load_format_and_parsing_maps(self, use_imperial: Optional[bool] = None) -> None:
        """Build and cache the formatter and parser specs of every built-in type."""
        imperial = self._system(use_imperial)
        await asyncio.gather(
            *(self._get_spec(kind, qt, imperial) for qt in QuantityType for kind in (_FORMATTER, _PARSER))
        )
        logger.debug("Loaded %s format and parsing maps", IMPERIAL if imperial else METRIC)

    def format_quantity(self, magnitude: float, spec: FormatterSpec) -> str:
        return spec.apply_formatting(magnitude)

    def parse_into_quantity_value(self, text: str, spec: ParserSpec) -> ParseResult:
        return spec.parse_into_quantity_value(text)

    # -------------------------------------------------------------- overrides
    async def set_override_formats(self, quantity_type: QuantityTypeArg, overrides: Mapping[str, Any]) -> None:
        """Replace the formats of a built-in type with ``{"metric": ..., "imperial": ...}``.

        Either system may be omitted; it then falls back to the built-in default.
        Every given definition is validated, including its units, before the
        override table changes.
        """
        qt = self._builtin(quantity_type)
        if not isinstance(overrides, Mapping):
            raise InvalidFormatDefinitionError("overrides must be a mapping with 'metric' and/or 'imperial'")
        unknown = set(overrides) - {METRIC, IMPERIAL}
        if unknown:
            raise InvalidFormatDefinitionError(f"Unknown measurement system(s): {sorted(unknown)}")

        persistence = await self._units.find_unit_by_name(persistence_unit_name(qt))
        entry: Dict[str, Tuple[Format, Mapping[str, Any]]] = {}
        for system in (METRIC, IMPERIAL):
            props = overrides.get(system)
            if props is None:
                continue
            fmt = Format.from_json(f"{qt.name}.{system}.override", props)
            units = await resolve_format_units(self._units, fmt)
            if units and units[0].phenomenon != persistence.phenomenon:
                raise IncompatiblePhenomenonError(
                    f"{qt.name} is stored as {persistence.phenomenon}, "
                    f"override uses {units[0].phenomenon} ({units[0].name})"
                )
            entry[system] = (fmt, dict(props))
        if not entry:
            raise InvalidFormatDefinitionError("overrides must define 'metric' and/or 'imperial'")

        self._overrides[qt] = entry
        self._invalidate(qt)
        logger.debug("Installed %s override(s) for %s", "/".join(entry), qt.name)

    def get_override_formats(self, quantity_type: QuantityTypeArg) -> Optional[Dict[str, Mapping[str, Any]]]:
        entry = self._overrides.get(self._builtin(quantity_type))
        if entry is None:
            return None
        return {system: props for system, (_, props) in entry.items()}

    def clear_override_formats(self, quantity_type: QuantityTypeArg) -> None:
        qt = self._builtin(quantity_type)
        if self._overrides.pop(qt, None) is not None:
            logger.debug("Cleared overrides for %s", qt.name)
        self._invalidate(qt)

    def clear_all_override_formats(self) -> None:
        types = list(self._overrides)
        self._overrides.clear()
        for qt in types:
            self._invalidate(qt)
        logger.debug("Cleared all overrides (%d type(s))", len(types))

    # -------------------------------------------------------- custom providers
    def register_formatter_parser_specs_providers(self, provider: FormatterParserSpecsProvider) -> bool:
        """Register spec builders for a custom quantity type.

        Returns False, without raising, when the name is already taken by a
        built-in type or an earlier registration.
        """
        name = provider.quantity_type_name
        if not isinstance(name, str) or not name:
            raise UnknownQuantityTypeError(f"Invalid custom quantity type name: {name!r}")
        if name in QuantityType.__members__ or name in self._providers:
            logger.warning("A spec provider for quantity type %r is already registered", name)
            return False
        self._providers[name] = provider
        logger.debug("Registered spec provider for quantity type %r", name)
        return True

    # ------------------------------------------------------------ unit access
    async def find_unit_by_name(self, name: str) -> UnitProps:
        return await self._units.find_unit_by_name(name)

    async def create_unit_conversion_specs_for_unit(self, unit: UnitProps) -> Sequence[UnitConversionSpec]:
        return await create_unit_conversion_specs_for_unit(self._units, unit)

    # -------------------------------------------------------------- internals
    def _system(self, use_imperial: Optional[bool]) -> bool:
        return self._use_imperial if use_imperial is None else bool(use_imperial)

    def _builtin(self, quantity_type: QuantityTypeArg) -> QuantityType:
        qt = as_builtin(quantity_type)
        if qt is None:
            raise UnknownQuantityTypeError(f"Overrides are only supported for built-in quantity types, not {quantity_type!r}")
        return qt

    def _resolve_type(self, kind: str, quantity_type: QuantityTypeArg) -> QuantityTypeArg:
        qt = as_builtin(quantity_type)
        if qt is not None:
            return qt
        if quantity_type in self._providers:
            return quantity_type
        error = FormatterNotFoundError if kind == _FORMATTER else ParserNotFoundError
        raise error(f"No {kind} spec provider is registered for quantity type {quantity_type!r}")

    def _active_format(self, qt: QuantityType, imperial: bool) -> Format:
        override = self._overrides.get(qt, {}).get(IMPERIAL if imperial else METRIC)
        if override is not None:
            return override[0]
        return default_format(qt, imperial)

    async def _get_spec(self, kind: str, quantity_type: QuantityTypeArg, use_imperial: Optional[bool]) -> Any:
        key: _CacheKey = (kind, self._resolve_type(kind, quantity_type), self._system(use_imperial))

        spec = self._specs.get(key)
        if spec is not None:
            return spec

        task = self._builds.get(key)
        if task is None:
            task = asyncio.ensure_future(self._build(*key))
            self._builds[key] = task
            task.add_done_callback(functools.partial(self._finish_build, key))
        # An abandoned awaiter must not cancel a build other callers rely on.
        return await asyncio.shield(task)

    async def _build(self, kind: str, key_type: QuantityTypeArg, imperial: bool) -> Spec:
        if isinstance(key_type, QuantityType):
            fmt = self._active_format(key_type, imperial)
            persistence = await self._units.find_unit_by_name(persistence_unit_name(key_type))
            if kind == _FORMATTER:
                spec: Optional[Spec] = await FormatterSpec.create(fmt.name, fmt, self._units, persistence)
            else:
                await resolve_format_units(self._units, fmt)
                spec = await ParserSpec.create(fmt, self._units, persistence)
        else:
            spec = await self._providers[key_type].build(kind, imperial)
            if spec is None:
                error = FormatterNotFoundError if kind == _FORMATTER else ParserNotFoundError
                raise error(f"Provider for {key_type!r} returned no {kind} spec")

        logger.debug("Built %s spec for %s (%s)", kind, _type_name(key_type), IMPERIAL if imperial else METRIC)
        return spec

    def _finish_build(self, key: _CacheKey, task: asyncio.Task) -> None:
        error = None if task.cancelled() else task.exception()
        if self._builds.get(key) is not task:
            # invalidated while building
            return
        del self._builds[key]
        if task.cancelled():
            return
        if error is not None:
            logger.warning("Building %s spec for %s failed: %s", key[0], _type_name(key[1]), error)
            return
        self._specs[key] = task.result()

    def _invalidate(self, key_type: QuantityTypeArg) -> None:
        for kind in (_FORMATTER, _PARSER):
            for imperial in (False, True):
                key = (kind, key_type, imperial)
                self._specs.pop(key, None)
                self._builds.pop(key, None)
        logger.debug("Invalidated cached specs for %s", _type_name(key_type))


def _type_name(key_type: QuantityTypeArg) -> str:
    return key_type.name if isinstance(key_type, QuantityType) else str(key_type)


__all__ = ["QuantityFormatter", "FormatterParserSpecsProvider", "METRIC", "IMPERIAL"]
