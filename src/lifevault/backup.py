from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from .errors import BackupError, NotFoundError, StorageError
from .paths import AppPaths, ensure_dir, paths_overlap

logger = logging.getLogger(__name__)

MANIFEST_NAME = "manifest.json"


@dataclass
class BackupSet:
    """A complete point-in-time copy of the user data trees."""

    root: Path
    created_at: str
    reason: str
    trees: List[str] = field(default_factory=list)
    files: int = 0


def _count_files(path: Path) -> int:
    return sum(len(files) for _, _, files in os.walk(path))


def _remove_tree(path: Path) -> None:
    if path.is_dir():
        shutil.rmtree(path)
    elif path.exists():
        path.unlink()


def _swap_in(staging: Path, target: Path) -> None:
    """Replace ``target`` with ``staging`` so a complete tree is always on disk."""
    retired = target.with_name(target.name + ".old")
    _remove_tree(retired)
    had_target = target.exists()
    if had_target:
        os.replace(target, retired)
    try:
        os.replace(staging, target)
    except OSError:
        if had_target:
            os.replace(retired, target)
        raise
    _remove_tree(retired)


class BackupManager:
    """Mirror the mutable user data trees into a single BackupSet.

    Layout: ``<backup_dir>/<tree name>/...`` plus ``manifest.json``. The
    manifest is written last; a backup directory without one is incomplete.
    Each new backup supersedes the previous one (no history, no merging).
    """

    def __init__(self, backup_dir: Path, trees: Dict[str, Path]) -> None:
        self.backup_dir = Path(backup_dir)
        self.trees: Dict[str, Path] = {}
        for name, src in trees.items():
            src = Path(src)
            # A tree holding the backup (or held by it) would copy into itself
            if paths_overlap(src, self.backup_dir):
                logger.warning("Not backing up %s: %s overlaps backup directory %s", name, src, self.backup_dir)
                continue
            self.trees[name] = src

    @classmethod
    def from_paths(cls, paths: AppPaths) -> "BackupManager":
        return cls(paths.backup_dir, {"saves": paths.saves_dir, "config": paths.config_dir})

    @property
    def manifest_path(self) -> Path:
        return self.backup_dir / MANIFEST_NAME

    def create(self, reason: str = "pre-install") -> BackupSet:
        """Copy every existing tree byte-for-byte; raise BackupError on any failure."""
        staging = self.backup_dir.with_name(self.backup_dir.name + ".partial")
        try:
            _remove_tree(staging)
            ensure_dir(staging, operation="create backup staging directory")
            copied: List[str] = []
            for name, src in self.trees.items():
                if not src.exists():
                    logger.debug("Backup of %s skipped: %s does not exist", name, src)
                    continue
                if not src.is_dir():
                    raise BackupError(f"{src} is not a directory")
                logger.info("Backing up %s from %s", name, src)
                shutil.copytree(src, staging / name, copy_function=shutil.copy2)
                copied.append(name)
            backup = BackupSet(
                root=self.backup_dir,
                created_at=datetime.now(timezone.utc).isoformat(timespec="seconds"),
                reason=reason,
                trees=copied,
                files=_count_files(staging),
            )
            manifest = {"created_at": backup.created_at, "reason": reason, "trees": copied}
            (staging / MANIFEST_NAME).write_text(json.dumps(manifest, indent=2), encoding="utf-8")
            _swap_in(staging, self.backup_dir)
        except BackupError:
            self._discard(staging)
            raise
        except (OSError, shutil.Error, StorageError) as exc:
            logger.error("Backup failed: %s", exc)
            self._discard(staging)
            raise BackupError(f"backup into {self.backup_dir} failed: {exc}") from exc
        logger.info("Backup complete: %d files in %s (%s)", backup.files, self.backup_dir, ", ".join(copied) or "empty")
        return backup

    @staticmethod
    def _discard(staging: Path) -> None:
        try:
            _remove_tree(staging)
        except OSError:
            logger.warning("Could not remove partial backup at %s", staging, exc_info=True)

    def latest(self) -> Optional[BackupSet]:
        """Describe the current BackupSet, or None if there is no complete one."""
        if not self.manifest_path.is_file():
            return None
        try:
            manifest = json.loads(self.manifest_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"cannot read backup manifest: {exc}", operation="read backup manifest") from exc
        trees = [t for t in manifest.get("trees", []) if t in self.trees]
        return BackupSet(
            root=self.backup_dir,
            created_at=str(manifest.get("created_at", "")),
            reason=str(manifest.get("reason", "")),
            trees=trees,
            files=_count_files(self.backup_dir) - 1,
        )

    def restore(self) -> List[Path]:
        """Copy the BackupSet back over the live trees. Manual recovery only."""
        backup = self.latest()
        if backup is None:
            raise NotFoundError(f"no complete backup in {self.backup_dir}", operation="restore backup")
        restored: List[Path] = []
        for name in backup.trees:
            src = self.backup_dir / name
            dest = self.trees[name]
            staging = dest.with_name(dest.name + ".restoring")
            try:
                _remove_tree(staging)
                ensure_dir(dest.parent, operation="restore backup")
                shutil.copytree(src, staging, copy_function=shutil.copy2)
                _swap_in(staging, dest)
            except (OSError, shutil.Error) as exc:
                self._discard(staging)
                raise StorageError(f"restoring {name} into {dest} failed: {exc}", operation="restore backup") from exc
            logger.info("Restored %s into %s", name, dest)
            restored.append(dest)
        return restored
