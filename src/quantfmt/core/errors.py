"""
quantfmt.core.errors
====================

Status codes and the exception taxonomy shared by the formatting engine.

Configuration problems (unknown units or quantity types, malformed format
definitions) are raised as `QuantityError` subclasses when a spec is built.
Problems with user-supplied text are *not* raised; the parser reports them
through a `ParseResult` carrying one of the `QuantityStatus` codes below.
"""

from __future__ import annotations

from enum import IntEnum


class QuantityStatus(IntEnum):
    Success = 0
    NoValueOrUnitFoundInString = 1
    UnknownUnitToken = 2
    UnknownUnit = 3
    UnknownQuantityType = 4
    IncompatiblePhenomenon = 5
    InvalidFormatDefinition = 6
    FormatterNotFound = 7
    ParserNotFound = 8


class QuantityError(ValueError):
    """Base class for configuration errors raised while building specs."""

    status: QuantityStatus = QuantityStatus.Success

    def __init__(self, message: str, status: QuantityStatus | None = None) -> None:
        super().__init__(message)
        if status is not None:
            self.status = status


class UnknownUnitError(QuantityError):
    status = QuantityStatus.UnknownUnit


class UnknownQuantityTypeError(QuantityError):
    status = QuantityStatus.UnknownQuantityType


class FormatterNotFoundError(UnknownQuantityTypeError):
    status = QuantityStatus.FormatterNotFound


class ParserNotFoundError(UnknownQuantityTypeError):
    status = QuantityStatus.ParserNotFound


class IncompatiblePhenomenonError(QuantityError):
    status = QuantityStatus.IncompatiblePhenomenon


class InvalidFormatDefinitionError(QuantityError):
    status = QuantityStatus.InvalidFormatDefinition


__all__ = [
    "QuantityStatus",
    "QuantityError",
    "UnknownUnitError",
    "UnknownQuantityTypeError",
    "FormatterNotFoundError",
    "ParserNotFoundError",
    "IncompatiblePhenomenonError",
    "InvalidFormatDefinitionError",
]
