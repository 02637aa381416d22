from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import InvalidPlayerIdError, StorageError
from .fs import atomic_write_json, read_text
from .paths import AppPaths, ensure_dir, player_namespace

logger = logging.getLogger(__name__)

# Format tag written into every record; bump on breaking record changes
RECORD_VERSION = "1.0.0"
RECORD_FILENAME = "game.json"


@dataclass
class SaveRecord:
    """The single persisted save of one player.

    ``data`` is opaque to the store; only the validator ever interprets it.
    """

    player_id: str
    data: str
    last_modified: int
    version: str = RECORD_VERSION

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(payload: Dict[str, Any]) -> Optional["SaveRecord"]:
        """Build a record from a decoded document, or None if it holds no record."""
        data = payload.get("data")
        player_id = payload.get("player_id")
        if not isinstance(data, str) or not isinstance(player_id, str):
            return None
        last_modified = payload.get("last_modified", 0)
        return SaveRecord(
            player_id=player_id,
            data=data,
            last_modified=int(last_modified) if isinstance(last_modified, (int, float)) else 0,
            version=str(payload.get("version", RECORD_VERSION)),
        )


class SaveStore:
    """Filesystem-backed store holding one save record per player.

    Layout: ``<saves_dir>/<player_id>/game.json``. Each player owns its own
    directory, so a corrupted record never affects another player. Writes go
    through a temp file and ``os.replace`` so readers never observe a
    half-written record.
    """

    def __init__(self, saves_dir: Path) -> None:
        self.saves_dir = Path(saves_dir)

    @classmethod
    def from_paths(cls, paths: AppPaths) -> "SaveStore":
        return cls(paths.saves_dir)

    def record_path(self, player_id: str) -> Path:
        return player_namespace(self.saves_dir, player_id) / RECORD_FILENAME

    def save(self, player_id: str, data: str) -> SaveRecord:
        """Replace the player's record with ``data`` (last write wins)."""
        if not isinstance(data, str):
            raise TypeError("save data must be a string")
        namespace = player_namespace(self.saves_dir, player_id)
        ensure_dir(self.saves_dir, operation="create saves directory")
        ensure_dir(namespace, operation="create player save directory")
        record = SaveRecord(player_id=player_id, data=data, last_modified=int(time.time()))
        atomic_write_json(namespace / RECORD_FILENAME, record.to_dict(), operation="save game data")
        logger.debug("Saved %d chars for player %s", len(data), player_id)
        return record

    def read_record(self, player_id: str) -> Optional[SaveRecord]:
        """Return the player's full record, or None when no record exists."""
        path = self.record_path(player_id)
        if not path.exists():
            return None
        text = read_text(path, operation="open save record")
        if not text.strip():
            return None
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.error("Save record for %s is corrupt: %s", player_id, exc)
            raise StorageError(f"save record {path} is not valid JSON: {exc}", operation="read save record") from exc
        if not isinstance(payload, dict):
            return None
        record = SaveRecord.from_dict(payload)
        if record is None or record.player_id != player_id:
            logger.warning("Save file for %s holds no matching record", player_id)
            return None
        return record

    def load(self, player_id: str) -> str:
        """Return the stored payload, or ``""`` when the player has no save.

        Callers must treat ``""`` as "no save", never as a valid empty payload.
        """
        record = self.read_record(player_id)
        if record is None:
            return ""
        return record.data

    def list_players(self) -> List[str]:
        """Player ids that currently have a save record."""
        if not self.saves_dir.is_dir():
            return []
        players = []
        try:
            children = sorted(self.saves_dir.iterdir())
        except OSError as exc:
            raise StorageError(f"failed to list {self.saves_dir}: {exc}", operation="list saves") from exc
        for child in children:
            try:
                if (player_namespace(self.saves_dir, child.name) / RECORD_FILENAME).is_file():
                    players.append(child.name)
            except InvalidPlayerIdError:
                logger.debug("Ignoring non-player entry %s in saves directory", child)
        return players
