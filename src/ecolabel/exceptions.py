"""Exceptions raised by EcoLabel."""

from typing import Any


class EcoLabelError(Exception):
    """Base class for all EcoLabel errors."""


class InvalidScoreError(EcoLabelError):
    """Computed EcoScore is NaN or outside 0-100."""


class InvalidInputError(EcoLabelError):
    """CO2 estimation was called without EcoData."""


class EmptyInputError(EcoLabelError):
    """Aggregation was called with no pages."""


class InvalidRequestError(EcoLabelError):
    """A URL list was rejected before any audit ran."""


class AuditFailure(EcoLabelError):
    """Loading or auditing a page failed."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class BatchFailure(EcoLabelError):
    """None of the URLs in a multi-page analysis succeeded."""

    def __init__(self, message: str, errors: list[Any]):
        super().__init__(message)
        self.errors = errors


class AggregationFailure(EcoLabelError):
    """Aggregating successful pages failed unexpectedly.

    ``pages`` keeps the individual analyses so callers don't lose them.
    """

    def __init__(self, message: str, pages: list[Any], errors: list[Any] | None = None):
        super().__init__(message)
        self.pages = pages
        self.errors = errors or []


class ReportNotFoundError(EcoLabelError):
    """A stored report does not exist."""
