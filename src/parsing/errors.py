"""Structured errors raised while loading scanner output."""

from __future__ import annotations
from typing import Any


class UsageRecordError(Exception):
    """Base class for malformed key-usage input.

    ``index`` is the position of the offending record in the input stream
    (None when the document as a whole is unusable); ``file``/``line`` point
    at the call site the scanner reported, when the record carried one.
    """

    def __init__(
        self,
        message: str,
        *,
        index: int | None = None,
        file: str | None = None,
        line: int | None = None,
    ):
        super().__init__(message)
        self.index = index
        self.file = file
        self.line = line

    @property
    def location(self) -> str:
        parts = []
        if self.index is not None:
            parts.append(f"record #{self.index}")
        if self.file:
            parts.append(f"{self.file}:{self.line}" if self.line else self.file)
        return ", ".join(parts)

    def __str__(self) -> str:
        message = super().__str__()
        return f"{message} ({self.location})" if self.location else message


class MissingFieldError(UsageRecordError):
    """Raised when a record lacks a required field (``key``, ``bindingType``)."""


class InvalidBindingTypeError(UsageRecordError):
    """Raised when ``bindingType`` is not one of the four known values."""


class PayloadShapeError(UsageRecordError):
    """Raised when the document is neither a list of records nor an ``issues`` wrapper."""
