# finance_tracker/core/errors.py


class FinanceTrackerError(Exception):
    """Base class for errors raised by the tracker."""


class ValidationError(FinanceTrackerError):
    """A transaction draft or update carries a missing or malformed field."""


class NotFoundError(FinanceTrackerError):
    """The targeted transaction does not exist or was soft-deleted."""


class ParseError(FinanceTrackerError):
    """A CSV document is unreadable or lacks a required column."""


class RowValidationError(ValidationError):
    """A single CSV row could not be normalized into a transaction draft."""

    def __init__(self, row, message):
        super().__init__(f"Row {row}: {message}")
        self.row = row
