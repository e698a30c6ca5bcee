"""
Recurring Schedules

Builds the transaction templates for recurring payments and
straight-line depreciation, and computes which postings have fallen
due by a given date.

DESIGN DECISION: Monthly and yearly schedules stay anchored to the
start date's day of month. A schedule starting Jan 31 posts Feb 28
(or 29) and then Mar 31, instead of drifting to the 28th forever.
"""

import calendar
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from uuid import UUID

from clario.ledger.chart import ACCUMULATED_DEPRECIATION, BANK, DEPRECIATION_EXPENSE
from clario.models.ledger import (
    CENT,
    Classification,
    Frequency,
    JournalLine,
    RecurringSchedule,
    Transaction,
    TransactionTemplate,
    TransactionType,
)


def _clamped(year: int, month: int, day: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def next_occurrence(current: date, frequency: Frequency, anchor_day: Optional[int] = None) -> date:
    """Advance a due date by one period."""
    anchor_day = anchor_day or current.day

    if frequency == Frequency.DAILY:
        return current + timedelta(days=1)
    if frequency == Frequency.WEEKLY:
        return current + timedelta(days=7)
    if frequency == Frequency.MONTHLY:
        year, month = divmod(current.month, 12)
        return _clamped(current.year + year, month + 1, anchor_day)
    if frequency == Frequency.YEARLY:
        return _clamped(current.year + 1, current.month, anchor_day)

    raise ValueError(f"Unsupported frequency: {frequency}")


def monthly_depreciation(asset_cost: Decimal, years: int) -> Decimal:
    """Straight-line monthly charge: cost / (years * 12)."""
    return (asset_cost / Decimal(years * 12)).quantize(CENT, rounding=ROUND_HALF_UP)


def build_depreciation_template(
    description: str,
    asset_cost: Decimal,
    years: int,
    project_id: Optional[UUID] = None,
) -> TransactionTemplate:
    """Depreciation Expense debit / Accumulated Depreciation credit."""
    amount = monthly_depreciation(asset_cost, years)
    return TransactionTemplate(
        vendor=f"{description} (Depreciation)",
        amount=amount,
        category="Depreciation",
        transaction_type=TransactionType.EXPENSE,
        journal=[
            JournalLine(account=DEPRECIATION_EXPENSE, debit=amount),
            JournalLine(account=ACCUMULATED_DEPRECIATION, credit=amount),
        ],
        project_id=project_id,
        deductible=True,
        classification=Classification.BUSINESS,
    )


def build_payment_template(
    vendor: str,
    amount: Decimal,
    transaction_type: TransactionType,
    account: str,
    category: Optional[str] = None,
    project_id: Optional[UUID] = None,
    deductible: bool = False,
    classification: Classification = Classification.BUSINESS,
) -> TransactionTemplate:
    """
    A balanced template for a recurring payment through the bank.

    Expense: <account> debit / Bank credit.
    Income:  Bank debit / <account> credit.
    """
    if transaction_type == TransactionType.EXPENSE:
        journal = [
            JournalLine(account=account, debit=amount),
            JournalLine(account=BANK, credit=amount),
        ]
    else:
        journal = [
            JournalLine(account=BANK, debit=amount),
            JournalLine(account=account, credit=amount),
        ]

    return TransactionTemplate(
        vendor=vendor,
        amount=amount,
        category=category or account,
        transaction_type=transaction_type,
        journal=journal,
        project_id=project_id,
        deductible=deductible,
        classification=classification,
    )


def due_postings(schedule: RecurringSchedule, today: date) -> tuple[list[Transaction], date]:
    """
    Generate every posting due on or before today.

    Returns the new transactions (oldest first) and the schedule's next
    due date after posting them. The schedule itself is not modified.
    Depreciation stops at the end of the asset's useful life.
    """
    postings: list[Transaction] = []
    next_due = schedule.next_due_date or schedule.start_date
    end = schedule.end_date
    anchor_day = schedule.start_date.day

    while next_due <= today and (end is None or next_due < end):
        postings.append(Transaction.from_template(schedule.template, next_due))
        next_due = next_occurrence(next_due, schedule.frequency, anchor_day)

    return postings, next_due
