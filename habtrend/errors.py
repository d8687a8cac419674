"""
Error types
===========

Every failure of a report run is one of these. None of them is retried:
the caller fixes the input (or the parameters) and runs again, so each
error carries the row / year / event that caused it.
"""

from __future__ import annotations
from typing import Optional


class HabTrendError(Exception):
    """Base class for all analysis errors."""


class DataFormatError(HabTrendError):
    """A required column is missing or a cell cannot be parsed."""

    def __init__(self, message: str, *, row: Optional[int] = None, column: Optional[str] = None):
        if row is not None:
            message = f"{message} (row {row})"
        super().__init__(message)
        self.row = row
        self.column = column


class InsufficientDataError(HabTrendError):
    """A grouping or fit has nothing (or too little) to work with."""

    def __init__(self, message: str, *, year: Optional[int] = None):
        if year is not None:
            message = f"{message} (year {year})"
        super().__init__(message)
        self.year = year


class IntegrationError(HabTrendError):
    """The ODE solver failed at the requested tolerance."""


class ProjectionError(HabTrendError):
    """Coordinates are invalid or outside the geographic range."""

    def __init__(self, message: str, *, event_id: Optional[int] = None):
        if event_id is not None:
            message = f"{message} (event {event_id})"
        super().__init__(message)
        self.event_id = event_id


class ReferenceDataError(HabTrendError):
    """The world boundary dataset could not be read."""
