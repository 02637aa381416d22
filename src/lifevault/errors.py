"""Error taxonomy for LifeVault.

Every failure raised by the library is a :class:`LifeVaultError` carrying an
:class:`ErrorKind`, so callers can branch on the kind instead of parsing
messages. Missing saves and missing bans are not errors; they are reported as
``""`` / ``False`` by the respective stores.
"""
from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    IO = "io"
    NOT_FOUND = "not_found"
    MALFORMED_INPUT = "malformed_input"
    REMOTE = "remote"
    BACKUP_PRECONDITION = "backup_precondition"


class UpdatePhase(str, Enum):
    CHECKING = "checking"
    DOWNLOADING = "downloading"
    BACKING_UP = "backing_up"
    INSTALLING = "installing"


class LifeVaultError(Exception):
    """Base error for all LifeVault failures."""

    kind: ErrorKind = ErrorKind.IO

    def __init__(self, message: str, *, operation: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation

    def __str__(self) -> str:
        if self.operation:
            return f"{self.operation}: {self.message}"
        return self.message


class StorageError(LifeVaultError):
    """Raised when a directory or file operation fails."""

    kind = ErrorKind.IO


class NotFoundError(LifeVaultError):
    """Raised where absence is exceptional (e.g. restoring a missing backup)."""

    kind = ErrorKind.NOT_FOUND


class MalformedInputError(LifeVaultError):
    """Raised for undeserializable or structurally invalid input."""

    kind = ErrorKind.MALFORMED_INPUT


class InvalidPlayerIdError(MalformedInputError):
    """Raised when a player id cannot be used as a storage namespace."""


class UpdateError(LifeVaultError):
    """Raised when a remote check, download or install step fails."""

    kind = ErrorKind.REMOTE

    def __init__(self, message: str, *, phase: UpdatePhase, operation: Optional[str] = None) -> None:
        super().__init__(message, operation=operation or phase.value)
        self.phase = phase


class BackupError(LifeVaultError):
    """Raised when the pre-install backup cannot be completed."""

    kind = ErrorKind.BACKUP_PRECONDITION

    def __init__(self, message: str, *, operation: Optional[str] = None) -> None:
        super().__init__(message, operation=operation or UpdatePhase.BACKING_UP.value)
        self.phase = UpdatePhase.BACKING_UP
