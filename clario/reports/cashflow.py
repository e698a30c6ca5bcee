"""
Cash Flow

Current cash is the running balance of the Bank account across every
transaction. The projection assumes all open invoices get paid and
all open bills get settled.
"""

from clario.ledger.books import Books
from clario.ledger.chart import BANK
from clario.models.ledger import ZERO
from clario.models.reports import CashFlowSummary


def compute_cash_flow(books: Books) -> CashFlowSummary:
    cash = ZERO
    for txn in books.transactions:
        for line in txn.journal:
            if line.account == BANK:
                cash += line.debit_amount - line.credit_amount

    receivables = sum((i.amount for i in books.invoices if not i.is_paid), ZERO)
    payables = sum((b.amount for b in books.bills if not b.is_paid), ZERO)

    return CashFlowSummary(
        current_cash=cash,
        outstanding_receivables=receivables,
        outstanding_payables=payables,
        projected_cash=cash + receivables - payables,
    )
