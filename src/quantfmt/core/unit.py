from __future__ import annotations

from dataclasses import dataclass, field
from math import isfinite

# Measurement system tags
METRIC = "metric"
IMPERIAL = "imperial"
SURVEY = "survey"
OTHER = "other"

SYSTEMS = frozenset({METRIC, IMPERIAL, SURVEY, OTHER})

# Phenomenon tags
LENGTH = "Units.LENGTH"
AREA = "Units.AREA"
VOLUME = "Units.VOLUME"
ANGLE = "Units.ANGLE"
TEMPERATURE = "Units.TEMPERATURE"
TIME = "Units.TIME"


@dataclass(frozen=True, slots=True)
class UnitProps:
    """A unit as reported by a unit directory.

    ``factor`` and ``offset`` relate the unit to the shared base unit of its
    phenomenon: ``base = value * factor + offset``. The offset is only non-zero
    for affine families such as temperature.
    """

    name: str
    label: str
    phenomenon: str
    system: str = OTHER
    factor: float = 1.0
    offset: float = 0.0
    alternate_labels: tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("unit name must be a non-empty string")
        if not (self.factor > 0 and isfinite(self.factor)):
            raise ValueError("factor must be a positive, finite number")
        if not isfinite(self.offset):
            raise ValueError("offset must be finite")
        if self.system not in SYSTEMS:
            raise ValueError(f"unknown unit system {self.system!r}")
        # accept any iterable of labels but store an immutable tuple
        object.__setattr__(self, "alternate_labels", tuple(self.alternate_labels))

    @property
    def is_linear(self) -> bool:
        return self.offset == 0.0

    @property
    def labels(self) -> tuple[str, ...]:
        """Display label followed by every alternate label."""
        return (self.label, *self.alternate_labels)

    def to_base(self, x: float) -> float:
        return x * self.factor + self.offset

    def from_base(self, x: float) -> float:
        return (x - self.offset) / self.factor


@dataclass(frozen=True, slots=True)
class UnitConversion:
    """Affine map ``x * factor + offset`` between two units."""

    factor: float = 1.0
    offset: float = 0.0

    def evaluate(self, x: float) -> float:
        return x * self.factor + self.offset

    def inverse(self) -> UnitConversion:
        return UnitConversion(1.0 / self.factor, -self.offset / self.factor)


__all__ = [
    "UnitProps",
    "UnitConversion",
    "METRIC",
    "IMPERIAL",
    "SURVEY",
    "OTHER",
    "LENGTH",
    "AREA",
    "VOLUME",
    "ANGLE",
    "TEMPERATURE",
    "TIME",
]
