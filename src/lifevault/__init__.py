"""
LifeVault: player state persistence and integrity for What Is Life.

This package provides:
- SaveStore: one durable, atomically replaced save record per player
- BanRegistry: per-player ban flags with a reason
- StateValidator: the anti-cheat plausibility gate for submitted game states
- UpdateManager: release checks, staged downloads and backup-guarded installs

UI and network layers should go through GameCommands.
"""
__version__ = "1.0.0"

from .errors import (
    BackupError,
    ErrorKind,
    InvalidPlayerIdError,
    LifeVaultError,
    MalformedInputError,
    NotFoundError,
    StorageError,
    UpdateError,
    UpdatePhase,
)
from .paths import AppPaths, player_namespace
from .save_store import SaveRecord, SaveStore
from .bans import BanRecord, BanRegistry
from .validator import StateValidator, ValidatorLimits, validate
from .releases import ReleaseClient, UpdateDescriptor
from .backup import BackupManager, BackupSet
from .updates import ArchiveInstaller, UpdateManager, UpdateState
from .settings import Settings
from .commands import GameCommands

__all__ = [
    "__version__",
    "AppPaths",
    "player_namespace",
    "SaveRecord",
    "SaveStore",
    "BanRecord",
    "BanRegistry",
    "StateValidator",
    "ValidatorLimits",
    "validate",
    "ReleaseClient",
    "UpdateDescriptor",
    "BackupManager",
    "BackupSet",
    "ArchiveInstaller",
    "UpdateManager",
    "UpdateState",
    "Settings",
    "GameCommands",
    "ErrorKind",
    "UpdatePhase",
    "LifeVaultError",
    "StorageError",
    "NotFoundError",
    "MalformedInputError",
    "InvalidPlayerIdError",
    "UpdateError",
    "BackupError",
]
