from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Dict, List

from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from finance_tracker.core.errors import NotFoundError
from finance_tracker.core.models import (
    CENTS,
    UNCATEGORIZED,
    Base,
    Transaction,
    TransactionDraft,
    TransactionFilter,
    TransactionType,
    TransactionUpdate,
    parse_type,
    utcnow,
)

logger = logging.getLogger(__name__)


def _sqlite_path(database_url: str) -> Path | None:
    prefix = "sqlite:///"
    if database_url.startswith(prefix) and database_url != prefix + ":memory:":
        return Path(database_url[len(prefix):])
    return None


def _to_decimal(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)


def _build_filters(flt: TransactionFilter | None) -> list:
    conditions = [Transaction.is_deleted.is_(False)]
    if flt is None:
        return conditions
    if flt.start_date:
        conditions.append(Transaction.date >= flt.start_date)
    if flt.end_date:
        conditions.append(Transaction.date <= flt.end_date)
    if flt.type:
        conditions.append(Transaction.type == flt.type)
    if flt.category:
        conditions.append(Transaction.category == flt.category)
    if flt.min_amount is not None:
        conditions.append(Transaction.amount >= flt.min_amount)
    if flt.max_amount is not None:
        conditions.append(Transaction.amount <= flt.max_amount)
    if flt.search_term:
        conditions.append(Transaction.description.icontains(flt.search_term, autoescape=True))
    return conditions


def _date_range(start_date: date | None, end_date: date | None) -> list:
    conditions = [Transaction.is_deleted.is_(False)]
    if start_date:
        conditions.append(Transaction.date >= start_date)
    if end_date:
        conditions.append(Transaction.date <= end_date)
    return conditions


class TransactionStore:
    """Owns the transaction table; every read hides soft-deleted rows."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        path = _sqlite_path(database_url)
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
        self.database_url = database_url
        self.engine: Engine = create_engine(database_url, echo=echo)
        self._sessions = sessionmaker(bind=self.engine, expire_on_commit=False, class_=Session)
        self.init_db()

    def init_db(self) -> None:
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()

    # -- CRUD -----------------------------------------------------------

    def create(self, draft: TransactionDraft) -> Transaction:
        values = draft.validated()
        with self.session_scope() as session:
            tx = Transaction(**values)
            session.add(tx)
            session.flush()
        logger.info("Created transaction %s", tx.id)
        return tx

    def bulk_create(self, drafts: Iterable[TransactionDraft]) -> List[Transaction]:
        """Create every draft in one database transaction, or none at all."""
        rows = [Transaction(**draft.validated()) for draft in drafts]
        if not rows:
            return []
        with self.session_scope() as session:
            session.add_all(rows)
            session.flush()
        logger.info("Created %d transaction(s) in one batch", len(rows))
        return rows

    def _get_active(self, session: Session, transaction_id: int) -> Transaction:
        tx = session.get(Transaction, transaction_id)
        if tx is None or tx.is_deleted:
            raise NotFoundError(f"Transaction with ID {transaction_id} not found")
        return tx

    def get(self, transaction_id: int) -> Transaction:
        with self.session_scope() as session:
            return self._get_active(session, transaction_id)

    def update(self, transaction_id: int, changes: TransactionUpdate) -> Transaction:
        values = changes.validated()
        with self.session_scope() as session:
            tx = self._get_active(session, transaction_id)
            for name, value in values.items():
                setattr(tx, name, value)
            tx.updated_at = max(utcnow(), tx.created_at)
        logger.info("Updated transaction %s (%s)", transaction_id, ", ".join(values) or "no fields")
        return tx

    def soft_delete(self, transaction_id: int) -> None:
        with self.session_scope() as session:
            tx = self._get_active(session, transaction_id)
            tx.is_deleted = True
            tx.updated_at = max(utcnow(), tx.created_at)
        logger.info("Soft-deleted transaction %s", transaction_id)

    def list(self, flt: TransactionFilter | None = None) -> List[Transaction]:
        """Return matching rows, newest date first, insertion order within a date."""
        stmt = (
            select(Transaction)
            .where(*_build_filters(flt))
            .order_by(Transaction.date.desc(), Transaction.id.asc())
        )
        with self.session_scope() as session:
            return list(session.scalars(stmt))

    # -- Aggregations ---------------------------------------------------

    def total_by_type(
        self,
        tx_type: TransactionType | str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Decimal:
        tx_type = parse_type(tx_type)
        stmt = select(func.coalesce(func.sum(Transaction.amount), 0)).where(
            Transaction.type == tx_type, *_date_range(start_date, end_date)
        )
        with self.session_scope() as session:
            return _to_decimal(session.execute(stmt).scalar_one())

    def totals_by_category(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> List[Dict[str, object]]:
        """Aggregate expense totals grouped by category, largest first."""
        category = func.coalesce(Transaction.category, UNCATEGORIZED)
        total = func.sum(Transaction.amount)
        stmt = (
            select(category.label("category"), total.label("total"), func.count().label("count"))
            .where(Transaction.type == TransactionType.EXPENSE, *_date_range(start_date, end_date))
            .group_by(category)
            .order_by(total.desc(), category)
        )
        with self.session_scope() as session:
            rows = session.execute(stmt).all()
        totals = [(row.category, _to_decimal(row.total), int(row.count)) for row in rows]
        grand_total = sum((t for _, t, _ in totals), Decimal("0"))
        return [
            {
                "category": name,
                "total": amount,
                "transactions": count,
                "percentage": float(amount / grand_total * 100) if grand_total else 0.0,
            }
            for name, amount, count in totals
        ]

