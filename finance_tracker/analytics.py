"""Aggregates over an already loaded set of transactions.

These mirror the SQL aggregations in :mod:`finance_tracker.database` but
work on whatever working set the caller holds, e.g. the result of a filtered
listing. Items may be ORM rows or JSON records (mappings) carrying ``type``,
``amount`` and ``category``.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping

from finance_tracker.core.models import UNCATEGORIZED, TransactionType


def _field(tx, name: str) -> Any:
    if isinstance(tx, Mapping):
        return tx.get(name)
    return getattr(tx, name)


def _type_of(tx) -> TransactionType:
    return TransactionType(_field(tx, "type"))


def _amount_of(tx) -> Decimal:
    return Decimal(str(_field(tx, "amount")))


def _sum_type(transactions: Iterable, tx_type: TransactionType) -> Decimal:
    return sum(
        (_amount_of(tx) for tx in transactions if _type_of(tx) is tx_type),
        Decimal("0"),
    )


def total_income(transactions: Iterable) -> Decimal:
    return _sum_type(transactions, TransactionType.INCOME)


def total_expense(transactions: Iterable) -> Decimal:
    return _sum_type(transactions, TransactionType.EXPENSE)


def balance(transactions: Iterable) -> Decimal:
    """Income minus expense; transfers are excluded from both sides."""
    txs = list(transactions)
    return total_income(txs) - total_expense(txs)


def category_totals(transactions: Iterable) -> List[Dict[str, object]]:
    """Expense totals per category with their share of all expenses.

    Sorted by total, largest first. Percentages are 0 when there is no
    expense at all.
    """
    totals: Dict[str, Decimal] = defaultdict(Decimal)
    for tx in transactions:
        if _type_of(tx) is TransactionType.EXPENSE:
            totals[_field(tx, "category") or UNCATEGORIZED] += _amount_of(tx)

    grand_total = sum(totals.values(), Decimal("0"))
    rows = [
        {
            "category": category,
            "total": total,
            "percentage": float(total / grand_total * 100) if grand_total else 0.0,
        }
        for category, total in totals.items()
    ]
    return sorted(rows, key=lambda row: row["total"], reverse=True)
