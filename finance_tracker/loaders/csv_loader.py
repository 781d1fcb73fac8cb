# finance_tracker/loaders/csv_loader.py

import io
import re
from decimal import Decimal, InvalidOperation

import pandas as pd

from finance_tracker.core.categorizer import categorize
from finance_tracker.core.errors import ParseError, RowValidationError, ValidationError
from finance_tracker.core.models import TransactionDraft, TransactionType, parse_date
from finance_tracker.loaders.base import BaseLoader

# Regex to strip out any character that's not digit, minus, or dot
_CLEAN_AMOUNT = re.compile(r"[^\d\-.]")
REQUIRED_COLUMNS = ("date", "description", "amount")


class CsvLoader(BaseLoader):
    """
    Loader for uploaded CSV exports with a header row.
    Required columns (matched case-insensitively): date, description, amount.
    Any other column is ignored.

    Non-negative amounts become income and negative amounts expenses; the
    draft always carries the magnitude. Categories come from keyword
    matching on the description and every row is imported as non-recurring.
    """
    def __init__(self, categories=None):
        self.categories = categories

    def load(self, text):
        df = _read_frame(text)

        # 1) Case-insensitive column lookup
        cols = {str(c).strip().lower(): c for c in df.columns}
        missing = [name for name in REQUIRED_COLUMNS if name not in cols]
        if missing:
            raise ParseError(f"Missing required column(s): {', '.join(missing)}")

        for position, (_, row) in enumerate(df.iterrows(), start=1):
            desc = _cell(row, cols['description']).strip()
            if not desc:
                raise RowValidationError(position, "missing description")

            # 2) Amount: sign decides the type, magnitude is stored
            amount = _parse_amount(_cell(row, cols['amount']), position)
            tx_type = TransactionType.INCOME if amount >= 0 else TransactionType.EXPENSE

            # 3) Date
            d = _parse_date(_cell(row, cols['date']), position)

            draft = TransactionDraft(
                description=desc,
                amount=abs(amount),
                type=tx_type,
                date=d,
                category=categorize(desc, self.categories),
                is_recurring=False,
            )
            try:
                draft.validated()
            except ValidationError as e:
                raise RowValidationError(position, str(e)) from e
            yield draft


def _read_frame(text):
    if not text or not text.strip():
        raise ParseError("CSV document is empty")
    try:
        return pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ParseError(f"Could not parse CSV document: {e}") from e


def _cell(row, col):
    value = row[col]
    return "" if pd.isna(value) else str(value)


def _parse_amount(raw, position):
    cleaned = _CLEAN_AMOUNT.sub("", raw)
    negative = cleaned.startswith("-")
    digits = cleaned.replace("-", "")
    if not digits:
        raise RowValidationError(position, f"could not parse amount {raw!r}")
    try:
        amount = Decimal(digits)
    except InvalidOperation:
        raise RowValidationError(position, f"could not parse amount {raw!r}")
    return -amount if negative else amount


def _parse_date(raw, position):
    text = raw.strip()
    if not text:
        raise RowValidationError(position, "missing date")
    # pandas also understands relative words such as "today"
    if not any(ch.isdigit() for ch in text):
        raise RowValidationError(position, f"could not parse date {raw!r}")
    try:
        parsed = pd.to_datetime(text)
    except pd.errors.OutOfBoundsDatetime:
        # Outside the nanosecond Timestamp range; ISO dates still parse.
        try:
            return parse_date(text)
        except ValidationError as e:
            raise RowValidationError(position, str(e)) from e
    except (ValueError, TypeError, OverflowError) as e:
        raise RowValidationError(position, f"could not parse date {raw!r}: {e}")
    if pd.isna(parsed):
        raise RowValidationError(position, f"could not parse date {raw!r}")
    return parsed.date()
