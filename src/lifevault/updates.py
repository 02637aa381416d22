"""Self-update flow: check, download, back up, install.

A single attempt walks a linear state machine::

    IDLE -> CHECKING -> (UP_TO_DATE | UPDATE_AVAILABLE) -> DOWNLOADING
         -> BACKING_UP -> INSTALLING -> DONE

and lands in FAILED from any step. The one ordering rule that matters: the
user data backup completes before the installer touches anything. An install
interrupted after the backup leaves the backup in place for manual recovery;
there is no automatic rollback.
"""
from __future__ import annotations

import logging
import time
import zipfile
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol

from .backup import BackupManager, BackupSet
from .errors import BackupError, LifeVaultError, NotFoundError, StorageError, UpdateError, UpdatePhase
from .paths import AppPaths, ensure_dir, sanitize_player_id
from .releases import ReleaseClient, UpdateDescriptor
from .settings import UpdateSettings

logger = logging.getLogger(__name__)


class UpdateState(str, Enum):
    IDLE = "idle"
    CHECKING = "checking"
    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    DOWNLOADING = "downloading"
    BACKING_UP = "backing_up"
    INSTALLING = "installing"
    DONE = "done"
    FAILED = "failed"


class Installer(Protocol):
    def install(self, payload: Path) -> None:
        """Apply a staged payload. Raise UpdateError(INSTALLING) on failure."""


class ArchiveInstaller:
    """Extract a zip payload into ``install_dir``.

    Members that would land outside ``install_dir`` are refused before
    anything is written. The running process is not restarted.
    """

    def __init__(self, install_dir: Path) -> None:
        self.install_dir = Path(install_dir)

    def install(self, payload: Path) -> None:
        if not zipfile.is_zipfile(payload):
            raise UpdateError(f"{payload} is not a zip archive", phase=UpdatePhase.INSTALLING)
        try:
            target = ensure_dir(self.install_dir, operation="create install directory").resolve()
            with zipfile.ZipFile(payload) as archive:
                for member in archive.namelist():
                    dest = (target / member).resolve()
                    if dest != target and target not in dest.parents:
                        raise UpdateError(
                            f"archive member {member!r} escapes install directory", phase=UpdatePhase.INSTALLING
                        )
                archive.extractall(target)
        except (OSError, zipfile.BadZipFile, StorageError) as e:
            raise UpdateError(f"extracting {payload} failed: {e}", phase=UpdatePhase.INSTALLING) from e
        logger.info("Installed %s into %s", payload, self.install_dir)


class UpdateManager:
    """Coordinates one update attempt at a time."""

    def __init__(
        self,
        paths: AppPaths,
        settings: UpdateSettings,
        client: Optional[ReleaseClient] = None,
        backups: Optional[BackupManager] = None,
        installer: Optional[Installer] = None,
    ) -> None:
        self.paths = paths
        self.settings = settings
        self.client = client or ReleaseClient(
            settings.repo, api_url=settings.api_url, timeout=settings.timeout_seconds
        )
        self.backups = backups or BackupManager.from_paths(paths)
        install_dir = Path(settings.install_dir) if settings.install_dir else paths.install_dir
        self.installer: Installer = installer or ArchiveInstaller(install_dir)
        self.state = UpdateState.IDLE
        self.last_descriptor: Optional[UpdateDescriptor] = None
        self.last_backup: Optional[BackupSet] = None

    def should_check(self, last_check: float, now: Optional[float] = None) -> bool:
        """Whether an automatic check is due. Manual checks ignore this."""
        if not self.settings.enabled:
            return False
        now = time.time() if now is None else now
        hours_since = (now - last_check) / 3600.0
        return hours_since >= self.settings.check_interval_hours

    def _fail(self, exc: LifeVaultError) -> LifeVaultError:
        self.state = UpdateState.FAILED
        logger.error("Update attempt failed: %s", exc)
        return exc

    def check_for_update(self, current_version: str) -> UpdateDescriptor:
        """Compare ``current_version`` with the latest release.

        Any string mismatch counts as an update, including formatting-only
        differences like "1.0.0" vs "v1.0.0".
        """
        self.state = UpdateState.CHECKING
        try:
            release = self.client.fetch_latest()
        except UpdateError as e:
            raise self._fail(e)
        descriptor = UpdateDescriptor(
            latest_version=release.version,
            changelog_url=release.changelog_url,
            download_url=release.download_url,
            has_update=release.version != current_version,
        )
        self.last_descriptor = descriptor
        self.state = UpdateState.UPDATE_AVAILABLE if descriptor.has_update else UpdateState.UP_TO_DATE
        logger.info("Current %s, latest %s (update=%s)", current_version, release.version, descriptor.has_update)
        return descriptor

    def staged_path(self, version: str) -> Path:
        try:
            safe = sanitize_player_id(version)
        except LifeVaultError as e:
            raise UpdateError(f"invalid version {version!r}", phase=UpdatePhase.DOWNLOADING) from e
        return self.paths.updates_dir / f"update_{safe}"

    def _download_url(self, version: str) -> str:
        if self.last_descriptor is not None and self.last_descriptor.latest_version == version:
            return self.last_descriptor.download_url
        template = self.settings.download_url_template
        if not template:
            raise UpdateError(f"no download URL known for version {version}", phase=UpdatePhase.DOWNLOADING)
        return template.format(repo=self.settings.repo, version=version)

    def download(self, version: str) -> Path:
        """Stage the payload for ``version``, replacing any earlier staged copy."""
        self.state = UpdateState.DOWNLOADING
        try:
            dest = self.staged_path(version)
            url = self._download_url(version)
            ensure_dir(self.paths.updates_dir, operation="create updates directory")
            self.client.download(url, dest)
        except UpdateError as e:
            raise self._fail(e)
        except StorageError as e:
            raise self._fail(UpdateError(str(e), phase=UpdatePhase.DOWNLOADING)) from e
        logger.info("Staged update %s at %s", version, dest)
        return dest

    def install(self, update_path: Path) -> bool:
        """Back up user data, then apply the staged payload.

        Never installs without a fresh, complete backup.
        """
        update_path = Path(update_path)
        if not update_path.is_file():
            raise self._fail(NotFoundError(f"no staged update at {update_path}", operation="install update"))

        self.state = UpdateState.BACKING_UP
        try:
            self.last_backup = self.backups.create(reason=f"before installing {update_path.name}")
        except BackupError as e:
            raise self._fail(e)

        self.state = UpdateState.INSTALLING
        try:
            self.installer.install(update_path)
        except UpdateError as e:
            raise self._fail(e)
        except Exception:
            self.state = UpdateState.FAILED
            logger.exception("Installer failed on %s", update_path)
            raise
        self.state = UpdateState.DONE
        return True

    def restore_backup(self) -> List[Path]:
        return self.backups.restore()
