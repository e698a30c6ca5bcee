"""
Project Profitability

DESIGN DECISION: Settlements are skipped. Receiving payment for an
invoice (AR credit) or paying a bill (AP debit) moves money but earns
or costs nothing new; the invoice or bill already counted.
"""

from clario.ledger.books import Books
from clario.ledger.chart import ACCOUNTS_PAYABLE, ACCOUNTS_RECEIVABLE
from clario.models.ledger import TransactionType
from clario.models.reports import ProjectProfitability


def compute_project_profitability(books: Books) -> list[ProjectProfitability]:
    """Income, expenses and profit per project, in project order."""
    rows = {
        p.id: ProjectProfitability(project_id=p.id, name=p.name)
        for p in books.projects
    }

    for txn in books.transactions:
        if not txn.is_business or txn.project_id not in rows:
            continue
        if txn.credits_account(ACCOUNTS_RECEIVABLE) or txn.debits_account(ACCOUNTS_PAYABLE):
            continue

        row = rows[txn.project_id]
        if txn.debits_account(ACCOUNTS_RECEIVABLE):
            row.income += txn.amount
        elif txn.credits_account(ACCOUNTS_PAYABLE):
            row.expenses += txn.amount
        elif txn.transaction_type == TransactionType.INCOME:
            row.income += txn.amount
        else:
            row.expenses += txn.amount

    return list(rows.values())
