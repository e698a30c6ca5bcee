"""Shared fixtures: a fixed clock, fresh books and a transaction factory."""

from datetime import date
from decimal import Decimal

import pytest

from clario.ledger import Books
from clario.models.ledger import (
    Classification,
    JournalLine,
    Transaction,
    TransactionType,
)


TODAY = date(2025, 5, 15)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def books() -> Books:
    """Empty books with the default chart, pinned to TODAY."""
    return Books(clock=lambda: TODAY)


@pytest.fixture
def make_txn():
    """
    Build a balanced two-line transaction.

    Expenses debit `account` and credit `other`; income debits `other`
    and credits `account`.
    """
    def _make(
        vendor: str = "Staples",
        amount: str = "45.10",
        on: date = date(2025, 3, 3),
        transaction_type: TransactionType = TransactionType.EXPENSE,
        account: str = "Office Supplies",
        other: str = "Bank",
        **kwargs,
    ) -> Transaction:
        value = Decimal(amount)
        if transaction_type == TransactionType.EXPENSE:
            journal = [
                JournalLine(account=account, debit=value),
                JournalLine(account=other, credit=value),
            ]
        else:
            journal = [
                JournalLine(account=other, debit=value),
                JournalLine(account=account, credit=value),
            ]
        fields = dict(
            vendor=vendor,
            amount=value,
            date=on,
            category=account,
            transaction_type=transaction_type,
            journal=journal,
            classification=Classification.BUSINESS,
        )
        fields.update(kwargs)
        return Transaction(**fields)

    return _make
