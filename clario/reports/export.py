"""P&L CSV export."""

import csv
import io

from clario.models.reports import PeriodFinancials


def _amount(value) -> str:
    return f"{value:.2f}"


def profit_and_loss_csv(period: PeriodFinancials, company: str = "Clario.ai") -> str:
    """
    Render one period's P&L as CSV text.

    Layout: title, period, income total, expenses per account (largest
    first) with total, then net profit.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow([f"{company} Profit & Loss Statement"])
    writer.writerow([f"Period: {period.label}"])
    writer.writerow([])
    writer.writerow(["Category", "Amount"])
    writer.writerow(["INCOME"])
    writer.writerow(["Total Income", _amount(period.income)])
    writer.writerow([])
    writer.writerow(["EXPENSES"])
    for account, total in period.top_expense_accounts(limit=len(period.account_totals)):
        writer.writerow([account, _amount(total)])
    writer.writerow(["Total Expenses", _amount(period.expenses)])
    writer.writerow([])
    writer.writerow(["NET PROFIT"])
    writer.writerow(["Net Profit", _amount(period.net)])

    return buffer.getvalue()
