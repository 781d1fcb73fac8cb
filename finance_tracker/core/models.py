# finance_tracker/core/models.py
from __future__ import annotations

import enum
import math
from dataclasses import dataclass, fields
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Mapping

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from finance_tracker.core.errors import ValidationError

CENTS = Decimal("0.01")
# Numeric(10, 2) leaves room for 8 integer digits.
MAX_AMOUNT = Decimal("100000000")
UNCATEGORIZED = "Uncategorized"


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    # Magnitude only; the sign lives in ``type``.
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="transaction_type",
            native_enum=False,
            length=16,
            values_callable=lambda members: [m.value for m in members],
            validate_strings=True,
        ),
        nullable=False,
        default=TransactionType.EXPENSE,
    )
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    note: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payment_method: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return (
            f"Transaction(id={self.id!r}, date={self.date!r}, type={self.type.value!r}, "
            f"amount={self.amount!r}, description={self.description!r})"
        )


# ---------------------------------------------------------------------------
# Field coercion shared by drafts and updates
# ---------------------------------------------------------------------------


def parse_description(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("description must be a non-empty string")
    return value.strip()


def parse_amount(value: Any) -> Decimal:
    """Return *value* as a non-negative Decimal rounded to cents."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"amount must be numeric, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ValidationError(f"amount must be finite, got {value!r}")
    try:
        amount = Decimal(str(value).strip()) if not isinstance(value, Decimal) else value
    except (InvalidOperation, ValueError):
        raise ValidationError(f"amount must be numeric, got {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"amount must be finite, got {value!r}")
    if amount < 0:
        raise ValidationError(f"amount must not be negative, got {value!r}")
    try:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"amount is out of range, got {value!r}")
    if amount >= MAX_AMOUNT:
        raise ValidationError(f"amount must be below {MAX_AMOUNT}, got {value!r}")
    return amount


def parse_type(value: Any) -> TransactionType:
    try:
        return TransactionType(value)
    except ValueError:
        allowed = ", ".join(t.value for t in TransactionType)
        raise ValidationError(f"type must be one of {allowed}, got {value!r}")


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    raise ValidationError(f"date must be a calendar date, got {value!r}")


def parse_optional_text(name: str, value: Any) -> str | None:
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"{name} must be a string or null, got {value!r}")


def parse_flag(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ValidationError(f"{name} must be a boolean, got {value!r}")


_PARSERS = {
    "description": parse_description,
    "amount": parse_amount,
    "type": parse_type,
    "date": parse_date,
    "category": lambda v: parse_optional_text("category", v),
    "note": lambda v: parse_optional_text("note", v),
    "payment_method": lambda v: parse_optional_text("payment_method", v),
    "is_recurring": lambda v: parse_flag("is_recurring", v),
}


@dataclass
class TransactionDraft:
    """An unpersisted transaction payload awaiting validation."""

    description: Any
    amount: Any
    type: Any
    date: Any
    category: str | None = None
    note: str | None = None
    is_recurring: bool = False
    payment_method: str | None = None

    def validated(self) -> Dict[str, Any]:
        """Return column values for a new row, raising ValidationError."""
        return {f.name: _PARSERS[f.name](getattr(self, f.name)) for f in fields(self)}


class _Unset:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class TransactionUpdate:
    """Partial update: every field is either UNSET or a value to write.

    Explicit ``None`` counts as a value and clears optional fields.
    """

    description: Any = UNSET
    amount: Any = UNSET
    type: Any = UNSET
    date: Any = UNSET
    category: Any = UNSET
    note: Any = UNSET
    is_recurring: Any = UNSET
    payment_method: Any = UNSET

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TransactionUpdate":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValidationError(f"unknown or read-only fields: {', '.join(sorted(unknown))}")
        return cls(**dict(data))

    def present(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def validated(self) -> Dict[str, Any]:
        return {name: _PARSERS[name](value) for name, value in self.present().items()}


@dataclass
class TransactionFilter:
    """Optional, AND-combined predicates narrowing a transaction query."""

    start_date: date | None = None
    end_date: date | None = None
    type: TransactionType | None = None
    category: str | None = None
    min_amount: Decimal | None = None
    max_amount: Decimal | None = None
    search_term: str | None = None

    def __post_init__(self) -> None:
        if self.start_date is not None:
            self.start_date = parse_date(self.start_date)
        if self.end_date is not None:
            self.end_date = parse_date(self.end_date)
        if self.type is not None:
            self.type = parse_type(self.type)
        for name in ("min_amount", "max_amount"):
            value = getattr(self, name)
            if value is not None:
                try:
                    setattr(self, name, Decimal(str(value)))
                except InvalidOperation:
                    raise ValidationError(f"{name} must be numeric, got {value!r}")
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError("start_date must be on or before end_date")
        if (
            self.min_amount is not None
            and self.max_amount is not None
            and self.min_amount > self.max_amount
        ):
            raise ValidationError("min_amount must not exceed max_amount")
