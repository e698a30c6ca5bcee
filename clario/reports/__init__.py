"""Reports package: read-only views computed from the books."""

from clario.reports.aging import compute_aging
from clario.reports.cashflow import compute_cash_flow
from clario.reports.charts import build_pie_chart, render_pie_legend, render_pie_svg
from clario.reports.export import profit_and_loss_csv
from clario.reports.financials import (
    compute_financials,
    compute_tax_estimate,
    compute_vat_summary,
)
from clario.reports.journal import journal_rows
from clario.reports.projects import compute_project_profitability
from clario.reports.search import search

__all__ = [
    "build_pie_chart",
    "compute_aging",
    "compute_cash_flow",
    "compute_financials",
    "compute_project_profitability",
    "compute_tax_estimate",
    "compute_vat_summary",
    "journal_rows",
    "profit_and_loss_csv",
    "render_pie_legend",
    "render_pie_svg",
    "search",
]
