"""Request and response bodies for the JSON API (camelCase on the wire)."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from finance_tracker.core.models import TransactionDraft, TransactionType, TransactionUpdate


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionCreate(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    description: str
    amount: Decimal
    type: TransactionType
    date: dt.date
    category: Optional[str] = None
    note: Optional[str] = None
    is_recurring: bool = False
    payment_method: Optional[str] = None

    def to_draft(self) -> TransactionDraft:
        return TransactionDraft(**self.model_dump())


class TransactionPatch(_CamelModel):
    """Only the keys present in the request body are applied."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    description: Optional[str] = None
    amount: Optional[Decimal] = None
    type: Optional[TransactionType] = None
    date: Optional[dt.date] = None
    category: Optional[str] = None
    note: Optional[str] = None
    is_recurring: Optional[bool] = None
    payment_method: Optional[str] = None

    def to_update(self) -> TransactionUpdate:
        return TransactionUpdate.from_mapping(self.model_dump(exclude_unset=True))


class TransactionOut(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: int
    description: str
    amount: float
    type: TransactionType
    category: Optional[str] = None
    date: dt.date
    note: Optional[str] = None
    is_recurring: bool
    payment_method: Optional[str] = None
    created_at: dt.datetime
    updated_at: dt.datetime


class TypeTotalOut(_CamelModel):
    type: TransactionType
    total: float


class CategoryTotalOut(_CamelModel):
    category: str
    total: float
    percentage: float


class ImportOut(_CamelModel):
    message: str
    count: int
    ids: List[int]
