"""
Clario - Bookkeeping Assistant Package

A small-business bookkeeping assistant: free-text descriptions of
financial activity are turned into double-entry transactions by an
AI model, then tracked alongside invoices, bills and projects.

DESIGN PRINCIPLES:
1. AI suggests → Validator checks → Books record
2. Every journal must balance
3. No silent corrections
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Clario Team"
