from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Optional, Union

from platformdirs import PlatformDirs

from .errors import InvalidPlayerIdError, StorageError

logger = logging.getLogger(__name__)

APP_NAME = "What Is Life"

# Environment variable overrides (useful for tests and portable installs)
ENV_DATA_DIR = "LIFEVAULT_DATA_DIR"
ENV_CONFIG_DIR = "LIFEVAULT_CONFIG_DIR"

# Letters, digits, underscore, dash and dot; never a leading dot, so "." and
# ".." (and hidden files) are impossible.
_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]{0,127}$")


def sanitize_player_id(player_id: str) -> str:
    """Return ``player_id`` unchanged if it is safe to use as a path component.

    Player ids arrive from LAN peers, so they are treated as untrusted: path
    separators, traversal sequences, control characters and over-long values
    are rejected rather than escaped.
    """
    if not isinstance(player_id, str) or not player_id:
        raise InvalidPlayerIdError("player id must be a non-empty string", operation="player_namespace")
    if not _NAMESPACE_RE.match(player_id) or ".." in player_id:
        raise InvalidPlayerIdError(f"player id {player_id!r} is not a valid namespace", operation="player_namespace")
    return player_id


def player_namespace(root: Union[str, Path], player_id: str, suffix: str = "") -> Path:
    """Resolve the isolated storage path for ``player_id`` under ``root``.

    The id is sanitized first; the resulting path is guaranteed to be a direct
    child of ``root``.
    """
    name = sanitize_player_id(player_id) + suffix
    root_path = Path(root)
    path = root_path / name
    if path.parent != root_path:
        raise InvalidPlayerIdError(f"player id {player_id!r} escapes storage root", operation="player_namespace")
    return path


def paths_overlap(a: Path, b: Path) -> bool:
    """True when one path is, or lies inside, the other."""
    a, b = Path(a).expanduser().resolve(), Path(b).expanduser().resolve()
    return a == b or a in b.parents or b in a.parents


def ensure_dir(path: Path, *, operation: str = "create directory") -> Path:
    """Create ``path`` (and parents) if needed, wrapping OS failures."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.error("Failed to create directory '%s': %s", path, exc)
        raise StorageError(f"failed to create directory {path}: {exc}", operation=operation) from exc
    return path


class AppPaths:
    """Resolve the application-data layout.

    Provides:
    - data_dir: root for all mutable user data
    - config_dir: user configuration (settings.yaml)
    - saves_dir / bans_dir / backup_dir / updates_dir / install_dir

    Behavior:
    - An explicit ``data_dir`` wins (tests, embedding callers); its config dir
      is ``<data_dir>/config`` unless given too.
    - Otherwise environment overrides, then platformdirs defaults.
    """

    def __init__(
        self,
        data_dir: Optional[Union[str, Path]] = None,
        config_dir: Optional[Union[str, Path]] = None,
        app_name: str = APP_NAME,
    ) -> None:
        self._dirs = PlatformDirs(appname=app_name, appauthor=False)
        if data_dir is not None:
            self._data_dir = Path(data_dir).expanduser().resolve()
            default_config = self._data_dir / "config"
        else:
            self._data_dir = self._compute_dir(ENV_DATA_DIR, Path(self._dirs.user_data_dir))
            default_config = Path(self._dirs.user_config_dir)
            if paths_overlap(default_config, self._data_dir):
                # macOS and Windows share one folder for data and config
                default_config = self._data_dir / "config"
        if config_dir is not None:
            self._config_dir = Path(config_dir).expanduser().resolve()
        else:
            self._config_dir = self._compute_dir(ENV_CONFIG_DIR, default_config)

    @staticmethod
    def _compute_dir(env_var: str, default: Path) -> Path:
        override = os.getenv(env_var)
        if override:
            return Path(override).expanduser().resolve()
        return Path(default).expanduser().resolve()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def saves_dir(self) -> Path:
        return self._data_dir / "saves"

    @property
    def bans_dir(self) -> Path:
        return self._data_dir / "bans"

    @property
    def backup_dir(self) -> Path:
        return self._data_dir / "backup"

    @property
    def updates_dir(self) -> Path:
        return self._data_dir / "updates"

    @property
    def install_dir(self) -> Path:
        return self._data_dir / "app"

    @property
    def settings_file(self) -> Path:
        return self._config_dir / "settings.yaml"

    def __repr__(self) -> str:
        return f"AppPaths(data_dir={str(self._data_dir)!r}, config_dir={str(self._config_dir)!r})"
