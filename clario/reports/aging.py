"""Receivables / payables aging."""

from datetime import date
from typing import Iterable, Union

from clario.models.ledger import Bill, Invoice
from clario.models.reports import AgingReport


def days_overdue(due_date: date, today: date) -> int:
    return (today - due_date).days


def compute_aging(items: Iterable[Union[Invoice, Bill]], today: date) -> AgingReport:
    """
    Bucket unpaid invoices or bills by days past due.

    Not yet due (or due today) counts as current.
    """
    report = AgingReport()

    for item in items:
        if item.is_paid:
            continue

        overdue = days_overdue(item.due_date, today)
        if overdue <= 0:
            report.current += item.amount
        elif overdue <= 30:
            report.days_1_30 += item.amount
        elif overdue <= 60:
            report.days_31_60 += item.amount
        elif overdue <= 90:
            report.days_61_90 += item.amount
        else:
            report.days_over_90 += item.amount

        report.total += item.amount

    return report
