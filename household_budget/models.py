"""Domain records for the household budget.

Every record mirrors one document collection in the store. The store keeps
camelCase JSON documents with ISO date strings; ``from_document`` and
``to_document`` convert between that shape and these dataclasses so the
engine only ever sees snake_case attributes and ``datetime.date`` values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import (
    InvalidAmountError,
    InvalidDescriptionError,
    InvalidIncomeSourceError,
    InvalidPaymentMethodError,
    UnknownCadenceError,
)
from .lib.common.dates import optional_date, to_date

PAYMENT_METHODS: Tuple[str, ...] = ('Amex', 'Chase Amazon', 'Savor', 'Checking')
CADENCES: Tuple[str, ...] = ('weekly', 'biweekly', 'semimonthly', 'monthly')

DEFAULT_CHECKING_FLOOR = 4700.0
DEFAULT_MORTGAGE_CARVEOUT = 566.67
DEFAULT_SEMIMONTHLY_DAYS: Tuple[int, int] = (1, 15)


def _float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    return float(value)


def _timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value).replace('Z', '+00:00'))


def normalize_semimonthly_days(days: Any) -> Optional[Tuple[int, int]]:
    """Return the two pay days as an ascending pair, or ``None`` when absent."""
    if not days:
        return None
    first, second = sorted(int(d) for d in days)
    return first, second


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IncomeSource:
    id: Optional[str]
    name: str
    pay_amount: float
    cadence: str
    next_pay_date: Optional[date]
    semimonthly_days: Optional[Tuple[int, int]] = None
    is_active: bool = True

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> 'IncomeSource':
        cadence = doc.get('cadence')
        days = normalize_semimonthly_days(doc.get('semimonthlyDays'))
        if cadence == 'semimonthly':
            days = days or DEFAULT_SEMIMONTHLY_DAYS
        else:
            days = None
        return cls(
            id=doc.get('id'),
            name=doc.get('name') or '',
            pay_amount=_float(doc.get('payAmount')),
            cadence=cadence,
            next_pay_date=optional_date(doc.get('nextPayDate')),
            semimonthly_days=days,
            # a source without the flag is not paying out
            is_active=bool(doc.get('isActive', False)),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'payAmount': self.pay_amount,
            'cadence': self.cadence,
            'nextPayDate': self.next_pay_date,
            'semimonthlyDays': list(self.semimonthly_days) if self.semimonthly_days else None,
            'isActive': self.is_active,
        }


@dataclass(frozen=True)
class PayPeriod:
    id: Optional[str]
    start_date: date
    end_date: date
    starting_checking_balance: float = 0.0
    paycheck_amount: float = 0.0
    paycheck_source: str = ''
    mortgage_carveout: float = DEFAULT_MORTGAGE_CARVEOUT
    savings_amount: float = 0.0
    one_time_income: float = 0.0
    income_source_ids: Tuple[str, ...] = ()

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> 'PayPeriod':
        return cls(
            id=doc.get('id'),
            start_date=to_date(doc['startDate']),
            end_date=to_date(doc['endDate']),
            starting_checking_balance=_float(doc.get('startingCheckingBalance')),
            paycheck_amount=_float(doc.get('paycheckAmount')),
            paycheck_source=doc.get('paycheckSource') or '',
            # 0 is a legitimate carveout; only a missing value takes the default
            mortgage_carveout=_float(doc.get('mortgageCarveout'), DEFAULT_MORTGAGE_CARVEOUT),
            savings_amount=_float(doc.get('savingsAmount')),
            one_time_income=_float(doc.get('oneTimeIncome')),
            income_source_ids=tuple(doc.get('incomeSourceIds') or ()),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            'startDate': self.start_date,
            'endDate': self.end_date,
            'startingCheckingBalance': self.starting_checking_balance,
            'paycheckAmount': self.paycheck_amount,
            'paycheckSource': self.paycheck_source,
            'mortgageCarveout': self.mortgage_carveout,
            'savingsAmount': self.savings_amount,
            'oneTimeIncome': self.one_time_income,
            'incomeSourceIds': list(self.income_source_ids),
        }


@dataclass(frozen=True)
class Transaction:
    id: Optional[str]
    pay_period_id: Optional[str]
    amount: float
    payment_method: str
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> 'Transaction':
        return cls(
            id=doc.get('id'),
            pay_period_id=doc.get('payPeriodId'),
            amount=_float(doc.get('amount')),
            payment_method=doc.get('paymentMethod'),
            created_at=_timestamp(doc.get('createdAt')),
        )


@dataclass(frozen=True)
class AccountOverride:
    pay_period_id: str
    payment_method: str
    override_total: float

    @staticmethod
    def document_id(pay_period_id: str, payment_method: str) -> str:
        return f"{pay_period_id}_{payment_method}"

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> 'AccountOverride':
        return cls(
            pay_period_id=doc['payPeriodId'],
            payment_method=doc['account'],
            override_total=float(doc['overrideTotal']),
        )


def overrides_by_method(overrides: List[AccountOverride]) -> Dict[str, float]:
    """Collapse override records into the ``method -> total`` mapping the engine takes."""
    return {o.payment_method: o.override_total for o in overrides}


@dataclass(frozen=True)
class OneTimeIncomeItem:
    id: Optional[str]
    pay_period_id: Optional[str]
    amount: float
    description: str
    date: Optional[date] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> 'OneTimeIncomeItem':
        return cls(
            id=doc.get('id'),
            pay_period_id=doc.get('payPeriodId'),
            amount=_float(doc.get('amount')),
            description=doc.get('description') or '',
            date=optional_date(doc.get('date')),
            created_at=_timestamp(doc.get('createdAt')),
        )


@dataclass(frozen=True)
class AppConfig:
    checking_floor: float = DEFAULT_CHECKING_FLOOR
    migrated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Optional[Mapping[str, Any]]) -> Optional['AppConfig']:
        if doc is None:
            return None
        floor = doc.get('checkingFloor')
        return cls(
            checking_floor=float(floor) if floor is not None else DEFAULT_CHECKING_FLOOR,
            migrated_at=_timestamp(doc.get('migratedAt')),
        )


@dataclass(frozen=True)
class LegacyIncomeConfig:
    """The original two-earner income record: one biweekly and one monthly paycheck."""

    first_name: str
    first_pay_amount: float
    first_next_pay_date: Optional[date]
    second_name: str
    second_pay_amount: float
    second_next_pay_date: Optional[date]
    checking_floor: Optional[float] = None

    @classmethod
    def from_document(cls, doc: Optional[Mapping[str, Any]]) -> Optional['LegacyIncomeConfig']:
        if doc is None:
            return None
        floor = doc.get('checkingFloor')
        return cls(
            first_name=doc.get('firstName') or 'First earner',
            first_pay_amount=_float(doc.get('firstPayAmount')),
            first_next_pay_date=optional_date(doc.get('firstNextPayDate')),
            second_name=doc.get('secondName') or 'Second earner',
            second_pay_amount=_float(doc.get('secondPayAmount')),
            second_next_pay_date=optional_date(doc.get('secondNextPayDate')),
            checking_floor=float(floor) if floor is not None else None,
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            'firstName': self.first_name,
            'firstPayAmount': self.first_pay_amount,
            'firstNextPayDate': self.first_next_pay_date,
            'secondName': self.second_name,
            'secondPayAmount': self.second_pay_amount,
            'secondNextPayDate': self.second_next_pay_date,
            'checkingFloor': self.checking_floor,
        }

    def first_source(self) -> IncomeSource:
        return IncomeSource(
            id=None,
            name=self.first_name,
            pay_amount=self.first_pay_amount,
            cadence='biweekly',
            next_pay_date=self.first_next_pay_date,
        )

    def second_source(self) -> IncomeSource:
        return IncomeSource(
            id=None,
            name=self.second_name,
            pay_amount=self.second_pay_amount,
            cadence='monthly',
            next_pay_date=self.second_next_pay_date,
        )

    def to_income_sources(self) -> List[IncomeSource]:
        """Convert the halves that carry both an amount and a date into income sources."""
        sources = []
        if self.first_pay_amount and self.first_next_pay_date:
            sources.append(self.first_source())
        if self.second_pay_amount and self.second_next_pay_date:
            sources.append(self.second_source())
        return sources


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_transaction_amount(amount: Any) -> float:
    """Return ``amount`` as a float, or raise if it is not a positive finite number."""
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError('Amount must be a positive number')
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmountError('Amount must be a positive number')
    return float(amount)


def validate_payment_method(method: Any) -> str:
    if method not in PAYMENT_METHODS:
        raise InvalidPaymentMethodError(f"Invalid payment method: {method}")
    return method


def validate_override_total(total: Any) -> float:
    if isinstance(total, bool) or not isinstance(total, (int, float)) or not math.isfinite(total):
        raise InvalidAmountError('Override total must be a number')
    if total < 0:
        raise InvalidAmountError('Override total cannot be negative')
    return float(total)


def validate_one_time_income(amount: Any, description: Any) -> Tuple[float, str]:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) \
            or not math.isfinite(amount) or amount == 0:
        raise InvalidAmountError('Please enter a valid amount')
    text = (description or '').strip() if isinstance(description, str) else ''
    if not text:
        raise InvalidDescriptionError('Please enter a description')
    return float(amount), text


def validate_income_source(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate an income source payload and return its normalized document form.

    Semimonthly sources keep their two pay days (ascending) and use today as
    the reference date; every other cadence drops ``semimonthlyDays``.

    Raises:
        UnknownCadenceError: If the cadence is not one of :data:`CADENCES`
        InvalidIncomeSourceError: With per-field messages for anything else
    """
    cadence = data.get('cadence')
    if cadence not in CADENCES:
        raise UnknownCadenceError(cadence)

    errors: Dict[str, str] = {}
    name = (data.get('name') or '').strip()
    if not name:
        errors['name'] = 'Name is required'

    amount = data.get('payAmount')
    if isinstance(amount, bool) or not isinstance(amount, (int, float)) \
            or not math.isfinite(amount) or amount <= 0:
        errors['payAmount'] = 'Please enter a valid amount'

    days = None
    next_pay_date = data.get('nextPayDate')
    if cadence == 'semimonthly':
        raw_days = list(data.get('semimonthlyDays') or [])
        if len(raw_days) != 2:
            errors['semimonthlyDays'] = 'Two pay days are required'
        else:
            for day in raw_days:
                if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 31:
                    errors['semimonthlyDays'] = 'Invalid day'
            if 'semimonthlyDays' not in errors and raw_days[0] == raw_days[1]:
                errors['semimonthlyDays'] = 'Days must be different'
        if 'semimonthlyDays' not in errors:
            days = list(normalize_semimonthly_days(raw_days))
        next_pay_date = next_pay_date or date.today()
    elif not next_pay_date:
        errors['nextPayDate'] = 'Date is required'

    if errors:
        raise InvalidIncomeSourceError(errors)

    return {
        'name': name,
        'payAmount': float(amount),
        'cadence': cadence,
        'nextPayDate': to_date(next_pay_date),
        'semimonthlyDays': days,
        'isActive': bool(data.get('isActive', True)),
    }
