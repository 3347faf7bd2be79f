"""
quantfmt.core.parser
====================

Parse free text such as ``4'-6 1/2"``, ``48 in``, ``328083.33 ft (US Survey)``
or ``12+34.56`` into a magnitude expressed in a `ParserSpec`'s output unit.

Malformed input never raises: the outcome is always a `ParseResult`, whose
``status`` tells the caller what went wrong.

Grammar (informal)::

    text     := [sign] segment ([sep] segment)*
    segment  := number [label] | label number
    number   := digits ['.' digits] [exponent] [fraction | mixed]
    fraction := '/' digits              (3/4)
    mixed    := (' ' | '-') digits '/' digits   (1 3/4, 1-3/4)
    sep      := '-' | ','                (composite spacers)

Labels are matched greedily, longest first and case-insensitively, against
the `ParserSpec` label table, so ``ft (US Survey)`` wins over ``ft``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from quantfmt.core.conversion import UnitConversionSpec, create_unit_conversion_specs_for_unit
from quantfmt.core.errors import QuantityStatus
from quantfmt.core.format import Format, FormatType
from quantfmt.core.unit import UnitProps
from quantfmt.units.utils import normalize_label, normalize_text

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from quantfmt.units.provider import UnitsProvider

DEFAULT_TOLERANCE = 1.0e-6

_NUMBER_RE = re.compile(
    r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d*)?(?:[eE][+-]?\d+)?"
    r"|\.\d+(?:[eE][+-]?\d+)?"
)
_FRACTION_RE = re.compile(r"\s*/\s*(\d+(?:\.\d*)?)")
_MIXED_RE = re.compile(r"(?:\s+|-)(\d+)\s*/\s*(\d+)")
_SIGNS = {"+": 1.0, "-": -1.0, "−": -1.0}


@dataclass(frozen=True)
class ParseResult:
    status: QuantityStatus
    value: float | None = None
    token: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is QuantityStatus.Success

    @classmethod
    def success(cls, value: float) -> "ParseResult":
        return cls(QuantityStatus.Success, value)

    @classmethod
    def failure(cls, status: QuantityStatus, token: str | None = None) -> "ParseResult":
        return cls(status, None, token)


def build_label_table(fmt: Format, conversions: tuple[UnitConversionSpec, ...]) -> dict[str, int]:
    """Map every recognised label to the index of its conversion.

    Composite labels from the format come first, then each unit's own label
    and aliases; the first claim on a label wins.
    """
    index_by_name = {c.unit.name: i for i, c in enumerate(conversions)}
    table: dict[str, int] = {}
    for entry in fmt.units:
        idx = index_by_name.get(entry.name)
        if idx is not None and entry.label:
            table.setdefault(normalize_label(entry.label), idx)
    for idx, conversion in enumerate(conversions):
        for label in (conversion.label, *conversion.unit.alternate_labels):
            key = normalize_label(label)
            if key:
                table.setdefault(key, idx)
    return table


@dataclass(frozen=True, eq=False)
class ParserSpec:
    """Everything needed to parse text into ``output_unit``."""

    output_unit: UnitProps
    format: Format
    unit_conversions: tuple[UnitConversionSpec, ...] = field(default=())
    labels: Mapping[str, int] | None = None
    label_order: tuple[str, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        conversions = tuple(self.unit_conversions)
        labels = self.labels if self.labels is not None else build_label_table(self.format, conversions)
        object.__setattr__(self, "unit_conversions", conversions)
        object.__setattr__(self, "labels", MappingProxyType(dict(labels)))
        object.__setattr__(self, "label_order", tuple(sorted(labels, key=len, reverse=True)))

    @classmethod
    async def create(cls, fmt: Format, provider: "UnitsProvider", output_unit: UnitProps) -> "ParserSpec":
        conversions = await create_unit_conversion_specs_for_unit(provider, output_unit)
        return cls(output_unit, fmt, conversions)

    def index_of(self, unit_name: str) -> int | None:
        for i, conversion in enumerate(self.unit_conversions):
            if conversion.unit.name == unit_name:
                return i
        return None

    @property
    def tier_indexes(self) -> tuple[int | None, ...]:
        """Conversion index of each composite unit of the format."""
        return tuple(self.index_of(u.name) for u in self.format.units)

    @property
    def default_index(self) -> int | None:
        """Conversion used for numbers typed without a unit."""
        for idx in self.tier_indexes:
            if idx is not None:
                return idx
        return self.index_of(self.output_unit.name)

    def parse_into_quantity_value(self, text: str) -> ParseResult:
        return parse_into_quantity_value(text, self)


class _ParseFailure(Exception):
    def __init__(self, status: QuantityStatus, token: str | None = None) -> None:
        super().__init__(status, token)
        self.status = status
        self.token = token


# ---------------- Scanner producing (kind, value) tokens ----------------
class _Scanner:
    def __init__(self, text: str, spec: ParserSpec):
        self.s = text
        self.n = len(text)
        self.i = 0
        self.spec = spec
        self.unknown: str | None = None

    def tokens(self) -> list[tuple[str, float | int]]:
        out: list[tuple[str, float | int]] = []
        while True:
            self._skip_ws()
            if self.i >= self.n:
                return out

            number = self._parse_number()
            if number is not None:
                out.append(("number", number))
                continue

            label = self._match_label()
            if label is not None:
                out.append(("unit", label))
                continue

            if (out and self._peek("-")) or self._peek(","):
                self.i += 1
                continue

            self._skip_unknown()

    # ---- token helpers ----
    def _parse_number(self) -> float | None:
        m = _NUMBER_RE.match(self.s, self.i)
        if not m:
            return None
        raw = m.group()
        value = float(raw.replace(",", ""))
        self.i = m.end()

        frac = _FRACTION_RE.match(self.s, self.i)
        if frac:
            denominator = float(frac.group(1))
            if denominator == 0.0:
                raise _ParseFailure(QuantityStatus.NoValueOrUnitFoundInString, self.s[m.start():frac.end()])
            self.i = frac.end()
            return value / denominator

        if raw.isdigit():
            mixed = _MIXED_RE.match(self.s, self.i)
            if mixed:
                numerator, denominator = int(mixed.group(1)), int(mixed.group(2))
                if denominator == 0:
                    raise _ParseFailure(QuantityStatus.NoValueOrUnitFoundInString, self.s[m.start():mixed.end()])
                self.i = mixed.end()
                return value + numerator / denominator
        return value

    def _match_label(self) -> int | None:
        rest = self.s[self.i:]
        folded = rest.casefold()
        for label in self.spec.label_order:
            if not folded.startswith(label):
                continue
            end = len(label)
            idx = self.spec.labels[label]
            if not self._ends_word(label, rest[end:end + 1], idx):
                continue
            self.i += end
            return idx
        return None

    def _ends_word(self, label: str, following: str, idx: int) -> bool:
        if not (following and label[-1].isalpha()):
            return True
        # 'm' must not match the start of 'mph'
        if following.isalpha():
            return False
        # "4ft6in": a digit may only follow a tier that has a smaller tier after it
        if following.isdigit():
            tiers = self.spec.tier_indexes
            return idx in tiers[:-1]
        return True

    def _skip_unknown(self) -> None:
        i0 = self.i
        while self.i < self.n and not self.s[self.i].isdigit():
            self.i += 1
        # digits glued to a word belong to it ("m2")
        if self.i > i0 and self.s[self.i - 1].isalpha():
            while self.i < self.n and self.s[self.i].isdigit():
                self.i += 1
        token = self.s[i0:self.i].strip()
        if self.unknown is None:
            self.unknown = token

    def _skip_ws(self) -> None:
        s, n, i = self.s, self.n, self.i
        while i < n and s[i].isspace():
            i += 1
        self.i = i

    def _peek(self, tok: str) -> bool:
        return self.s.startswith(tok, self.i)


def _expand_station(text: str, fmt: Format) -> str:
    """Rewrite ``12+34.56`` as ``1234.56`` for Station formats."""
    sep = re.escape(fmt.station_separator)
    m = re.match(rf"(\d+)\s*{sep}\s*(\d+(?:\.\d*)?)", text)
    if not m:
        return text
    value = int(m.group(1)) * 10 ** (fmt.station_offset_size or 1) + float(m.group(2))
    return repr(value) + text[m.end():]


def _segments(tokens: list[tuple[str, float | int]]) -> list[tuple[float, int | None]]:
    segments: list[tuple[float, int | None]] = []
    pending_unit: int | None = None
    i = 0
    while i < len(tokens):
        kind, value = tokens[i]
        if kind == "unit":
            # a label written before its number ("m 1.5")
            pending_unit = int(value)
            i += 1
            continue
        if i + 1 < len(tokens) and tokens[i + 1][0] == "unit":
            segments.append((float(value), int(tokens[i + 1][1])))
            i += 2
        else:
            segments.append((float(value), pending_unit))
            i += 1
        pending_unit = None
    return segments


def parse_into_quantity_value(text: str, spec: ParserSpec) -> ParseResult:
    if not isinstance(text, str):
        return ParseResult.failure(QuantityStatus.NoValueOrUnitFoundInString)

    s = normalize_text(text)
    sign = 1.0
    if s and s[0] in _SIGNS:
        sign = _SIGNS[s[0]]
        s = s[1:].lstrip()
    if not s:
        return ParseResult.failure(QuantityStatus.NoValueOrUnitFoundInString)

    if spec.format.type is FormatType.Station:
        s = _expand_station(s, spec.format)

    scanner = _Scanner(s, spec)
    try:
        tokens = scanner.tokens()
    except _ParseFailure as e:
        return ParseResult.failure(e.status, e.token)

    segments = _segments(tokens)
    if not segments:
        return ParseResult.failure(QuantityStatus.NoValueOrUnitFoundInString, scanner.unknown)
    if scanner.unknown is not None:
        return ParseResult.failure(QuantityStatus.UnknownUnitToken, scanner.unknown)

    conversions = spec.unit_conversions
    tiers = spec.tier_indexes
    default = spec.default_index

    total = 0.0
    offset: float | None = None
    previous_tier: int | None = None
    for value, idx in segments:
        if idx is None:
            # "4'6" means 4 ft 6 in: a bare number after a tier takes the next tier
            if previous_tier is not None and previous_tier + 1 < len(tiers):
                idx = tiers[previous_tier + 1]
            else:
                idx = default
        previous_tier = tiers.index(idx) if idx is not None and idx in tiers else None

        if idx is None:
            factor, unit_offset = 1.0, 0.0
        else:
            factor, unit_offset = conversions[idx].factor, conversions[idx].offset
        total += value * factor
        if offset is None:
            offset = unit_offset

    result = sign * total + (offset or 0.0)
    if not math.isfinite(result):
        return ParseResult.failure(QuantityStatus.NoValueOrUnitFoundInString, text.strip())
    return ParseResult.success(result)


def within_tolerance(a: float, b: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """Compare two parsed magnitudes with a caller-chosen absolute tolerance."""
    return abs(a - b) <= tolerance


__all__ = [
    "ParseResult",
    "ParserSpec",
    "build_label_table",
    "parse_into_quantity_value",
    "within_tolerance",
    "DEFAULT_TOLERANCE",
]
