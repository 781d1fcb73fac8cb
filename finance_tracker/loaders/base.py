# finance_tracker/loaders/base.py
from abc import ABC, abstractmethod


class BaseLoader(ABC):
    @abstractmethod
    def load(self, text):
        """
        Yield TransactionDraft instances parsed from *text*.
        Raise ParseError for unreadable documents and RowValidationError
        for rows that cannot be normalized.
        """
        pass
