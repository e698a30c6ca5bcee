"""Ledger package: books state container, chart of accounts, recurring schedules."""

from clario.ledger.books import Books, generate_document_number
from clario.ledger.chart import DEFAULT_ACCOUNTS, ChartOfAccounts
from clario.ledger.exceptions import (
    BooksError,
    DuplicateAccountError,
    InvalidStatusTransitionError,
    NotFoundError,
    UnbalancedJournalError,
)

__all__ = [
    "Books",
    "BooksError",
    "ChartOfAccounts",
    "DEFAULT_ACCOUNTS",
    "DuplicateAccountError",
    "InvalidStatusTransitionError",
    "NotFoundError",
    "UnbalancedJournalError",
    "generate_document_number",
]
