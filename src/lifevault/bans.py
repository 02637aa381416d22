from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import InvalidPlayerIdError, LifeVaultError, MalformedInputError
from .fs import atomic_write_bytes, read_text
from .paths import AppPaths, ensure_dir, player_namespace

logger = logging.getLogger(__name__)

BAN_SUFFIX = ".ban"
NO_REASON = "No reason specified"


@dataclass
class BanRecord:
    player_id: str
    banned_at: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"player_id": self.player_id, "banned_at": self.banned_at, "reason": self.reason}


class BanRegistry:
    """Per-player ban flags stored as ``<bans_dir>/<player_id>.ban``.

    The existence of the file is the ban; there is no history and no expiry.
    Unbanning is an out-of-band filesystem operation.
    """

    def __init__(self, bans_dir: Path) -> None:
        self.bans_dir = Path(bans_dir)

    @classmethod
    def from_paths(cls, paths: AppPaths) -> "BanRegistry":
        return cls(paths.bans_dir)

    def ban_path(self, player_id: str) -> Path:
        return player_namespace(self.bans_dir, player_id, suffix=BAN_SUFFIX)

    def ban(self, player_id: str, reason: str) -> BanRecord:
        """Ban ``player_id``, replacing any previous ban record."""
        path = self.ban_path(player_id)
        ensure_dir(self.bans_dir, operation="create bans directory")
        record = BanRecord(player_id=player_id, banned_at=int(time.time()), reason=reason)
        payload = json.dumps(record.to_dict(), ensure_ascii=False, indent=2)
        atomic_write_bytes(path, payload.encode("utf-8"), operation="write ban file")
        logger.info("Banned player %s: %s", player_id, reason)
        return record

    def is_banned(self, player_id: str) -> bool:
        return self.ban_path(player_id).exists()

    def _read_payload(self, path: Path) -> Dict[str, Any]:
        text = read_text(path, operation="read ban file")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(f"ban file {path} is not valid JSON: {exc}", operation="parse ban file") from exc
        if not isinstance(payload, dict):
            raise MalformedInputError(f"ban file {path} does not hold an object", operation="parse ban file")
        return payload

    def get_ban_reason(self, player_id: str) -> str:
        """Return the ban reason, ``""`` if not banned, or a fallback if unreadable."""
        path = self.ban_path(player_id)
        if not path.exists():
            return ""
        reason = self._read_payload(path).get("reason")
        if not isinstance(reason, str):
            return NO_REASON
        return reason

    def get_ban(self, player_id: str) -> Optional[BanRecord]:
        path = self.ban_path(player_id)
        if not path.exists():
            return None
        payload = self._read_payload(path)
        reason = payload.get("reason")
        banned_at = payload.get("banned_at")
        return BanRecord(
            player_id=player_id,
            banned_at=int(banned_at) if isinstance(banned_at, (int, float)) else 0,
            reason=reason if isinstance(reason, str) else NO_REASON,
        )

    def list_banned(self) -> List[BanRecord]:
        """All readable ban records, oldest first."""
        if not self.bans_dir.is_dir():
            return []
        records = []
        for path in sorted(self.bans_dir.glob(f"*{BAN_SUFFIX}")):
            player_id = path.name[: -len(BAN_SUFFIX)]
            try:
                record = self.get_ban(player_id)
            except InvalidPlayerIdError:
                logger.debug("Ignoring ban file with invalid name %s", path)
                continue
            except LifeVaultError as exc:
                logger.warning("Skipping unreadable ban record %s: %s", path, exc)
                continue
            if record is not None:
                records.append(record)
        records.sort(key=lambda r: (r.banned_at, r.player_id))
        return records
