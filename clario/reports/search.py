"""Global search across transactions, invoices, bills and projects."""

from typing import Optional

from clario.ledger.books import Books
from clario.models.reports import SearchResults


MIN_QUERY_LENGTH = 2
MAX_TRANSACTIONS = 5
MAX_DOCUMENTS = 3


def search(books: Books, query: str) -> Optional[SearchResults]:
    """
    Case-insensitive substring search.

    Returns None for queries shorter than two characters or when
    nothing matches.
    """
    q = (query or "").strip().lower()
    if len(q) < MIN_QUERY_LENGTH:
        return None

    results = SearchResults(
        transactions=[
            t for t in books.transactions
            if q in t.vendor.lower() or q in t.category.lower()
        ][:MAX_TRANSACTIONS],
        invoices=[
            i for i in books.invoices
            if q in i.customer.lower() or q in i.invoice_number.lower()
        ][:MAX_DOCUMENTS],
        bills=[
            b for b in books.bills
            if q in b.vendor.lower() or q in b.bill_number.lower()
        ][:MAX_DOCUMENTS],
        projects=[
            p for p in books.projects
            if q in p.name.lower()
        ][:MAX_DOCUMENTS],
    )

    return results if results.total_hits else None
