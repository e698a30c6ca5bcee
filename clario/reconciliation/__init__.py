"""Bank reconciliation package."""

from clario.reconciliation.matcher import (
    parse_bank_statement,
    reconcile,
    reconcile_statement,
)

__all__ = ["parse_bank_statement", "reconcile", "reconcile_statement"]
