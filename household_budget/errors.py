"""Exception types raised by the budget engine, the document store and the app layer."""

from __future__ import annotations


class BudgetError(Exception):
    """Base class for every error raised by the household budget package."""


class UnknownCadenceError(BudgetError, ValueError):
    """A pay cadence outside weekly/biweekly/semimonthly/monthly reached the date engine."""

    def __init__(self, cadence: object):
        self.cadence = cadence
        super().__init__(f"Unknown cadence: {cadence}")


class InvalidAmountError(BudgetError, ValueError):
    """An amount was non-numeric, or non-positive where a positive value is required."""


class InvalidPaymentMethodError(BudgetError, ValueError):
    """A payment method outside the fixed set of accounts."""


class InvalidDescriptionError(BudgetError, ValueError):
    """A required description was missing or blank."""


class InvalidIncomeSourceError(BudgetError, ValueError):
    """An income source failed validation.

    ``errors`` maps field names to messages so a form can show them inline.
    """

    def __init__(self, errors: dict):
        self.errors = dict(errors)
        detail = '; '.join(f"{field}: {message}" for field, message in self.errors.items())
        super().__init__(f"Invalid income source ({detail})")


class NoActivePayPeriodError(BudgetError):
    """A period-scoped action ran with no current pay period selected."""

    def __init__(self, message: str = 'No active pay period'):
        super().__init__(message)


class IncomeNotConfiguredError(BudgetError):
    """A new pay period was requested before any income was configured."""

    def __init__(self, message: str = 'Income configuration is required to create a pay period'):
        super().__init__(message)


class AccessDeniedError(BudgetError, PermissionError):
    """The signed-in identity is not on the allow-list."""

    def __init__(self, message: str = 'Access denied. This app is restricted to authorized users only.'):
        super().__init__(message)


class DocumentNotFoundError(BudgetError, KeyError):
    """An update targeted a document id that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id}")

    def __str__(self) -> str:
        return f"No document {self.collection}/{self.doc_id}"


class MissingIndexError(BudgetError):
    """An ordered, filtered query needs a composite index the store does not have."""

    def __init__(self, collection: str, fields: tuple):
        self.collection = collection
        self.fields = tuple(fields)
        super().__init__(
            f"The query on '{collection}' requires an index on ({', '.join(self.fields)})"
        )
