"""Domain layer: errors, schemas and constants."""

from .errors import (
    AuthenticationError,
    AuthorizationError,
    CatalogError,
    ErrorCodes,
    FileMissingError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from .schemas import (
    AppRecord,
    Database,
    FileType,
    Role,
    SessionUser,
    User,
)

__all__ = [
    "CatalogError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ValidationError",
    "FileMissingError",
    "StoreError",
    "ErrorCodes",
    "AppRecord",
    "Database",
    "FileType",
    "Role",
    "SessionUser",
    "User",
]
