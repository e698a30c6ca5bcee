"""General journal listing."""

from typing import Iterable

from clario.models.ledger import Transaction
from clario.models.reports import JournalEntryRow


def journal_rows(transactions: Iterable[Transaction]) -> list[JournalEntryRow]:
    """Every journal line with its transaction's date and vendor, newest first."""
    ordered = sorted(transactions, key=lambda t: t.date, reverse=True)
    return [
        JournalEntryRow(
            transaction_id=txn.id,
            date=txn.date,
            vendor=txn.vendor,
            account=line.account,
            debit=line.debit,
            credit=line.credit,
        )
        for txn in ordered
        for line in txn.journal
    ]
