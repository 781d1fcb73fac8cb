"""Client-side working set of transactions.

``TransactionsState`` is an explicit object owned by whichever front end
uses it; it holds the loaded transactions and the active filter and derives
totals from them. All I/O goes through the injected API client.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional

from finance_tracker import analytics
from finance_tracker.client import ApiClient, ApiError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30


def default_filter(today: Optional[date] = None) -> Dict[str, Any]:
    today = today or date.today()
    return {
        "startDate": (today - timedelta(days=DEFAULT_WINDOW_DAYS)).isoformat(),
        "endDate": today.isoformat(),
    }


class TransactionsState:
    def __init__(self, api: ApiClient, today: Callable[[], date] = date.today) -> None:
        self.api = api
        self.transactions: List[Dict[str, Any]] = []
        self.selected: Optional[Dict[str, Any]] = None
        self.filter: Dict[str, Any] = default_filter(today())
        self.is_loading = False
        self.error: Optional[str] = None

    @contextmanager
    def _busy(self, action: str) -> Iterator[None]:
        self.is_loading = True
        self.error = None
        try:
            yield
        except ApiError as exc:
            self.error = str(exc) or f"Failed to {action}"
            logger.error("Failed to %s: %s", action, exc)
            raise
        finally:
            self.is_loading = False

    # -- Derived values -------------------------------------------------

    @property
    def sorted_transactions(self) -> List[Dict[str, Any]]:
        return sorted(self.transactions, key=lambda tx: str(tx["date"]), reverse=True)

    @property
    def total_income(self) -> Decimal:
        return analytics.total_income(self.transactions)

    @property
    def total_expense(self) -> Decimal:
        return analytics.total_expense(self.transactions)

    @property
    def balance(self) -> Decimal:
        return analytics.balance(self.transactions)

    @property
    def category_totals(self) -> List[Dict[str, object]]:
        return analytics.category_totals(self.transactions)

    # -- Actions --------------------------------------------------------

    def set_filter(self, **changes: Any) -> Dict[str, Any]:
        self.filter = {**self.filter, **changes}
        return self.filter

    def fetch_transactions(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        with self._busy("fetch transactions"):
            self.transactions = self.api.get_transactions(filters if filters is not None else self.filter)
        return self.transactions

    def fetch_transaction(self, transaction_id: int) -> Dict[str, Any]:
        with self._busy("fetch transaction"):
            self.selected = self.api.get_transaction(transaction_id)
        return self.selected

    def create_transaction(self, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._busy("create transaction"):
            created = self.api.create_transaction(data)
        self.transactions.append(created)
        return created

    def update_transaction(self, transaction_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._busy("update transaction"):
            updated = self.api.update_transaction(transaction_id, data)
        self.transactions = [updated if tx["id"] == transaction_id else tx for tx in self.transactions]
        if self.selected and self.selected.get("id") == transaction_id:
            self.selected = updated
        return updated

    def delete_transaction(self, transaction_id: int) -> None:
        with self._busy("delete transaction"):
            self.api.delete_transaction(transaction_id)
        self.transactions = [tx for tx in self.transactions if tx["id"] != transaction_id]
        if self.selected and self.selected.get("id") == transaction_id:
            self.selected = None

    def import_file(self, csv_path: str | Path) -> Dict[str, Any]:
        with self._busy("import transactions"):
            result = self.api.import_transactions(csv_path)
        self.fetch_transactions()
        return result
