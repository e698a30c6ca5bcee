"""Services package."""

from clario.services.storage import (
    AuditStorageInterface,
    BooksStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsBooksStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    InMemoryBooksStorage,
    StorageConnectionError,
    StorageError,
)

__all__ = [
    "AuditStorageInterface",
    "BooksStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsBooksStorage",
    "GoogleSheetsClient",
    "InMemoryAuditStorage",
    "InMemoryBooksStorage",
    "StorageConnectionError",
    "StorageError",
]
