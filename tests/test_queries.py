from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.core.errors import ValidationError
from finance_tracker.core.models import TransactionDraft, TransactionFilter, TransactionType


def _seed_transactions(store):
    drafts = [
        TransactionDraft(description="Salary April", amount="2500", type=TransactionType.INCOME,
                         category="Income", date=date(2025, 4, 1)),
        TransactionDraft(description="Rent", amount="800", type=TransactionType.EXPENSE,
                         category="Housing", date=date(2025, 4, 3)),
        TransactionDraft(description="Grocery run", amount="120.50", type=TransactionType.EXPENSE,
                         category="Food & Dining", date=date(2025, 4, 5)),
        TransactionDraft(description="Cafe visit", amount="12", type=TransactionType.EXPENSE,
                         category="Food & Dining", date=date(2025, 5, 2)),
        TransactionDraft(description="Move to savings", amount="300", type=TransactionType.TRANSFER,
                         date=date(2025, 5, 3)),
        TransactionDraft(description="Parking 100%_off", amount="100", type=TransactionType.EXPENSE,
                         date=date(2025, 5, 4)),
    ]
    return store.bulk_create(drafts)


def test_amount_bounds_are_inclusive_and_ignore_type(store):
    _seed_transactions(store)

    rows = store.list(TransactionFilter(min_amount=100, max_amount=500))

    assert sorted(tx.amount for tx in rows) == [Decimal("100.00"), Decimal("120.50"), Decimal("300.00")]
    assert {tx.type for tx in rows} == {TransactionType.EXPENSE, TransactionType.TRANSFER}
    assert all(Decimal("100") <= tx.amount <= Decimal("500") for tx in rows)


def test_date_type_and_category_filters(store):
    _seed_transactions(store)

    april = store.list(TransactionFilter(start_date=date(2025, 4, 1), end_date=date(2025, 4, 5)))
    assert [tx.description for tx in april] == ["Grocery run", "Rent", "Salary April"]

    income = store.list(TransactionFilter(type="income"))
    assert [tx.description for tx in income] == ["Salary April"]

    food = store.list(TransactionFilter(category="Food & Dining", start_date=date(2025, 5, 1)))
    assert [tx.description for tx in food] == ["Cafe visit"]

    assert store.list(TransactionFilter(category="food & dining")) == []


def test_search_term_is_case_insensitive_substring(store):
    _seed_transactions(store)

    assert [tx.description for tx in store.list(TransactionFilter(search_term="CAFE"))] == ["Cafe visit"]
    assert [tx.description for tx in store.list(TransactionFilter(search_term="100%_"))] == [
        "Parking 100%_off"
    ]
    # LIKE wildcards in the term are matched literally
    assert store.list(TransactionFilter(search_term="%")) != []
    assert store.list(TransactionFilter(search_term="_x")) == []

    combined = store.list(TransactionFilter(search_term="r", type=TransactionType.EXPENSE))
    assert {tx.description for tx in combined} == {"Rent", "Grocery run", "Parking 100%_off"}


def test_list_never_returns_deleted(store):
    created = _seed_transactions(store)
    store.soft_delete(created[1].id)

    rows = store.list()
    assert created[1].id not in {tx.id for tx in rows}
    assert all(not tx.is_deleted for tx in rows)


def test_invalid_filters_raise():
    with pytest.raises(ValidationError):
        TransactionFilter(start_date=date(2025, 5, 1), end_date=date(2025, 4, 1))
    with pytest.raises(ValidationError):
        TransactionFilter(min_amount=10, max_amount=5)
    with pytest.raises(ValidationError):
        TransactionFilter(type="gift")


def test_total_by_type(store):
    created = _seed_transactions(store)

    assert store.total_by_type(TransactionType.INCOME) == Decimal("2500.00")
    assert store.total_by_type("expense") == Decimal("1032.50")
    assert store.total_by_type("expense", date(2025, 5, 1), date(2025, 5, 31)) == Decimal("112.00")

    store.soft_delete(created[1].id)
    assert store.total_by_type("expense") == Decimal("232.50")


def test_total_by_type_without_matches_is_zero(store):
    assert store.total_by_type(TransactionType.TRANSFER) == Decimal("0")


def test_totals_by_category(store):
    _seed_transactions(store)

    rows = store.totals_by_category()

    assert [row["category"] for row in rows] == ["Housing", "Food & Dining", "Uncategorized"]
    assert rows[0]["total"] == Decimal("800.00")
    assert rows[1]["total"] == Decimal("132.50")
    assert rows[1]["transactions"] == 2
    assert rows[2]["total"] == Decimal("100.00")
    assert sum(row["percentage"] for row in rows) == pytest.approx(100.0)
    assert rows[0]["percentage"] == pytest.approx(800 / 1032.5 * 100)

    may = store.totals_by_category(date(2025, 5, 1), date(2025, 5, 31))
    assert [row["category"] for row in may] == ["Uncategorized", "Food & Dining"]


def test_empty_db_queries(store):
    assert store.list() == []
    assert store.totals_by_category() == []
    assert store.total_by_type("income") == Decimal("0")
