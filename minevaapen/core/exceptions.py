"""Minevaapen exception hierarchy."""

from __future__ import annotations


class MinevaapenError(Exception):
    """Base exception for all Minevaapen errors."""


class SchemaError(MinevaapenError):
    """Raised when the database schema cannot be created or migrated."""


class StorageError(MinevaapenError):
    """Raised when a statement or transaction fails in the underlying store."""


class BackupError(MinevaapenError):
    """Raised when a backup, restore or export cannot be carried out."""


class DatabaseNotFoundError(BackupError):
    """Raised when the live database file does not exist."""

    def __init__(self, message: str = "Database not found") -> None:
        super().__init__(message)


class NoBackupsFoundError(BackupError):
    """Raised when a restore is requested but no backup files exist."""

    def __init__(self, message: str = "No backups found") -> None:
        super().__init__(message)


class BackupNotFoundError(BackupError):
    """Raised when the selected backup file does not exist."""

    def __init__(self, message: str = "Selected backup not found") -> None:
        super().__init__(message)


class NothingToExportError(BackupError):
    """Raised when an export is requested while no weapons are stored."""

    def __init__(self, message: str = "No weapons available to export") -> None:
        super().__init__(message)


class RestoreFailedError(BackupError):
    """Raised when the replacement file cannot be copied into place."""

    def __init__(self, message: str = "Could not restore database") -> None:
        super().__init__(message)
