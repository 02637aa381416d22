"""Command surface used by the game shell and the CLI.

Method names are the stable command names the UI invokes; each call is a
short-lived unit of work. Callers serialize access per player id.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Union

from . import __version__
from .bans import BanRegistry
from .network import get_local_ip
from .paths import AppPaths
from .releases import UpdateDescriptor
from .save_store import SaveStore
from .settings import Settings
from .updates import UpdateManager
from .validator import StateValidator

logger = logging.getLogger(__name__)


class GameCommands:
    def __init__(
        self,
        paths: Optional[AppPaths] = None,
        settings: Optional[Settings] = None,
        updates: Optional[UpdateManager] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.paths = paths or AppPaths(data_dir=self.settings.storage.data_dir)
        self.saves = SaveStore.from_paths(self.paths)
        self.bans = BanRegistry.from_paths(self.paths)
        self.validator = StateValidator(self.settings.validator)
        self.updates = updates or UpdateManager(self.paths, self.settings.updates)

    @classmethod
    def from_settings_file(cls, settings_path: Optional[Path] = None, data_dir: Optional[Path] = None) -> "GameCommands":
        """Build commands from the packaged defaults plus the user's settings.yaml."""
        paths = AppPaths(data_dir=data_dir)
        settings = Settings.load(user_path=settings_path or paths.settings_file)
        if data_dir is None and settings.storage.data_dir:
            paths = AppPaths(data_dir=settings.storage.data_dir)
        return cls(paths=paths, settings=settings)

    # Saves

    def save_game(self, data: str, player_id: str) -> None:
        self.saves.save(player_id, data)

    def load_game(self, player_id: str) -> str:
        return self.saves.load(player_id)

    def validate_game_state(self, player_id: str, game_state_json: str) -> bool:
        ok = self.validator.validate_json(game_state_json)
        if not ok:
            logger.warning("Implausible game state submitted by %s", player_id)
        return ok

    # Bans

    def ban_player(self, player_id: str, reason: str) -> None:
        self.bans.ban(player_id, reason)

    def is_player_banned(self, player_id: str) -> bool:
        return self.bans.is_banned(player_id)

    def get_ban_reason(self, player_id: str) -> str:
        return self.bans.get_ban_reason(player_id)

    # Network

    def get_local_ip(self) -> str:
        return get_local_ip()

    # Updates

    def get_current_version(self) -> str:
        return __version__

    def check_for_updates(self, current_version: Optional[str] = None) -> UpdateDescriptor:
        return self.updates.check_for_update(current_version or self.get_current_version())

    def download_update(self, version: str) -> Path:
        return self.updates.download(version)

    def install_update(self, path: Union[str, Path]) -> bool:
        return self.updates.install(Path(path))

    def restore_backup(self) -> List[Path]:
        return self.updates.restore_backup()
