"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the persistent backend; the in-memory backend is used when
Sheets isn't configured and in tests.
"""

from clario.services.storage.interface import (
    AuditStorageInterface,
    BooksStorageInterface,
    StorageConnectionError,
    StorageError,
)
from clario.services.storage.memory import InMemoryAuditStorage, InMemoryBooksStorage
from clario.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsBooksStorage,
    GoogleSheetsClient,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BooksStorageInterface",
    # Exceptions
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryBooksStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBooksStorage",
    "GoogleSheetsClient",
]
