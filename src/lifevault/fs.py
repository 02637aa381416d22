from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from .errors import StorageError
from .paths import ensure_dir

logger = logging.getLogger(__name__)


def atomic_write_bytes(path: Path, data: bytes, *, operation: str = "write file") -> None:
    """Atomically write bytes to a path using a temporary file and replace.

    Ensures that either the old file remains or the new file fully replaces it.
    """
    ensure_dir(path.parent, operation=operation)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as exc:
        raise StorageError(f"failed to open temporary file next to {path}: {exc}", operation=operation) from exc
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as exc:
        logger.error("Atomic write to %s failed: %s", path, exc)
        raise StorageError(f"failed to write {path}: {exc}", operation=operation) from exc
    finally:
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError:
                logger.debug("Could not remove temp file %s", tmp_name, exc_info=True)


def atomic_write_json(path: Path, obj: Dict[str, Any], *, operation: str = "write file") -> None:
    data = json.dumps(obj, ensure_ascii=False, sort_keys=True, indent=2).encode("utf-8")
    atomic_write_bytes(path, data, operation=operation)


def read_text(path: Path, *, operation: str = "read file") -> str:
    """Read a UTF-8 file, wrapping OS failures (callers check existence first)."""
    try:
        with path.open("r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Failed to read %s: %s", path, exc)
        raise StorageError(f"failed to read {path}: {exc}", operation=operation) from exc
