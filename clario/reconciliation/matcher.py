"""
Bank Reconciliation

Parses pasted bank statement text and matches it against the ledger.

DESIGN DECISION: Matching is greedy, first-match, exact-amount.
For each ledger transaction (in ledger order) the first remaining
bank entry with exactly the same signed amount wins. There is no
date window and no rounding tolerance, so a match is never a guess.

Statement lines look like `Date,Description,Amount`. The first field
is the date, the last is the signed amount, and everything between
is the description, which may itself contain commas. Fields holding
commas can also be quoted, CSV style.
"""

import csv
import re
from datetime import date, datetime
from typing import Iterable, Optional

from clario.models.ledger import (
    BankStatementEntry,
    ReconciliationMatch,
    ReconciliationResult,
    SkippedLine,
    Transaction,
    to_money,
)


DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%d-%m-%Y", "%Y/%m/%d")

# Trailing fields of an unquoted amount split at its thousands separator
SPLIT_HEAD = re.compile(r"^[-+]?\$?[-+]?\d{1,3}$")
SPLIT_TAIL = re.compile(r"^\d{3}(\.\d+)?$")


def parse_statement_date(text: str) -> Optional[date]:
    text = text.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _looks_like_split_amount(fields: list[str]) -> bool:
    """An unquoted `-1,234.56` arrives as the fields `-1` and `234.56`."""
    return (
        len(fields) >= 3
        and SPLIT_TAIL.match(fields[-1]) is not None
        and SPLIT_HEAD.match(fields[-2]) is not None
    )


def parse_bank_statement(text: str) -> tuple[list[BankStatementEntry], list[SkippedLine]]:
    """
    Parse statement text into entries.

    Each line is read as CSV, so a quoted field may hold commas
    (`"Staples, Inc."`, `"-1,234.56"`). Blank lines are ignored. Lines
    that can't be parsed (a header row, a missing amount, an unknown
    date format, an unquoted amount with a thousands separator) are
    returned as skipped lines with a reason instead of being dropped
    or guessed at.
    """
    entries: list[BankStatementEntry] = []
    skipped: list[SkippedLine] = []

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue

        def skip(reason: str) -> None:
            skipped.append(SkippedLine(line_number=line_number, text=line, reason=reason))

        try:
            fields = next(csv.reader([line]))
        except csv.Error as e:
            skip(f"Malformed line: {e}")
            continue

        if len(fields) < 2:
            skip("Expected at least a date and an amount")
            continue

        date_text = fields[0].strip()
        amount_text = fields[-1].strip()

        entry_date = parse_statement_date(date_text)
        if entry_date is None:
            skip(f"Unrecognized date '{date_text}'")
            continue

        if not line.endswith('"') and _looks_like_split_amount([f.strip() for f in fields]):
            skip("Amount looks split by a thousands separator; quote it or drop the comma")
            continue

        try:
            amount = to_money(amount_text)
        except ValueError:
            skip(f"Unrecognized amount '{amount_text}'")
            continue

        entries.append(BankStatementEntry(
            line_number=line_number,
            date=entry_date,
            description=",".join(fields[1:-1]).strip(),
            amount=amount,
        ))

    return entries, skipped


def reconcile(
    transactions: Iterable[Transaction],
    bank_entries: Iterable[BankStatementEntry],
    skipped_lines: Optional[list[SkippedLine]] = None,
) -> ReconciliationResult:
    """
    Greedy exact-amount matching of ledger transactions to bank entries.

    Each bank entry is consumed at most once. Ledger order decides who
    gets an entry when two transactions share an amount.
    """
    remaining = list(bank_entries)
    result = ReconciliationResult(skipped_lines=skipped_lines or [])

    for txn in transactions:
        target = txn.signed_amount
        match_index = next(
            (i for i, entry in enumerate(remaining) if entry.amount == target),
            None,
        )
        if match_index is None:
            result.unmatched_transactions.append(txn)
            continue
        entry = remaining.pop(match_index)
        result.matches.append(ReconciliationMatch(transaction=txn, bank_entry=entry))

    result.unmatched_bank_entries = remaining
    return result


def reconcile_statement(
    transactions: Iterable[Transaction],
    statement_text: str,
) -> ReconciliationResult:
    """Parse the statement text and reconcile it in one step."""
    entries, skipped = parse_bank_statement(statement_text)
    return reconcile(transactions, entries, skipped)
