"""Books exceptions."""

from typing import Optional


class BooksError(Exception):
    """Base exception for books operations."""
    pass


class UnbalancedJournalError(BooksError):
    """Raised when a journal's debits and credits differ."""

    def __init__(self, message: str, debits: Optional[str] = None, credits: Optional[str] = None):
        super().__init__(message)
        self.debits = debits
        self.credits = credits


class NotFoundError(BooksError):
    """Raised when a transaction, invoice, bill or schedule doesn't exist."""
    pass


class DuplicateAccountError(BooksError):
    """Raised when adding an account whose name already exists."""
    pass


class InvalidStatusTransitionError(BooksError):
    """Raised when an invoice status would move backwards or leave Paid."""
    pass
