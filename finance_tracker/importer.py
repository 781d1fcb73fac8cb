from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from finance_tracker.core.errors import ParseError, ValidationError
from finance_tracker.database import TransactionStore
from finance_tracker.loaders.csv_loader import CsvLoader

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    count: int
    ids: List[int] = field(default_factory=list)


def decode_upload(payload: bytes) -> str:
    """Decode uploaded CSV bytes, tolerating a UTF-8 byte order mark."""
    try:
        return payload.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ParseError(f"CSV file is not valid UTF-8 text: {exc}") from exc


def import_csv(
    text: str,
    store: TransactionStore,
    categories: Dict[str, List[str]] | None = None,
) -> ImportResult:
    """Parse *text* and persist every row atomically.

    A single bad row rejects the whole document; nothing is written.
    """
    try:
        drafts = list(CsvLoader(categories).load(text))
        created = store.bulk_create(drafts)
    except (ParseError, ValidationError) as exc:
        logger.warning("CSV import rejected: %s", exc)
        raise
    logger.info("Imported %d transaction(s) from CSV", len(created))
    return ImportResult(count=len(created), ids=[tx.id for tx in created])
