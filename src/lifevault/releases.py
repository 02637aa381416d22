import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from jsonschema import Draft202012Validator

from .errors import StorageError, UpdateError, UpdatePhase
from .paths import ensure_dir

logger = logging.getLogger(__name__)

# The subset of the GitHub "latest release" document we rely on
RELEASE_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "required": ["tag_name", "html_url", "assets"],
    "properties": {
        "tag_name": {"type": "string", "minLength": 1},
        "html_url": {"type": "string", "minLength": 1},
        "assets": {
            "type": "array",
            "minItems": 1,
            "items": {
                "type": "object",
                "required": ["browser_download_url"],
                "properties": {"browser_download_url": {"type": "string", "minLength": 1}},
            },
        },
    },
}


@dataclass
class UpdateDescriptor:
    latest_version: str
    changelog_url: str
    download_url: str
    has_update: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReleaseInfo:
    version: str
    changelog_url: str
    download_url: str


class ReleaseClient:
    """
    Minimal client for a GitHub-style release endpoint.

    Fetches ``{api_url}/repos/{repo}/releases/latest`` and streams release
    assets to disk. Every failure is raised as :class:`UpdateError` tagged with
    the phase it happened in; nothing here is retried.
    """

    def __init__(
        self,
        repo: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        user_agent: str = "lifevault-updater/1.0",
    ) -> None:
        if not repo or "/" not in repo:
            raise ValueError("Repo must be in 'owner/name' format")
        self.repo = repo
        self.base_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": user_agent,
        })
        self._validator = Draft202012Validator(RELEASE_SCHEMA)

    @property
    def latest_release_url(self) -> str:
        return f"{self.base_url}/repos/{self.repo}/releases/latest"

    def fetch_latest(self) -> ReleaseInfo:
        url = self.latest_release_url
        try:
            resp = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("Release check failed: GET %s: %s", url, e)
            raise UpdateError(f"request to {url} failed: {e}", phase=UpdatePhase.CHECKING) from e
        if resp.status_code >= 400:
            try:
                detail = resp.json()
            except ValueError:
                detail = {"message": resp.text}
            msg = f"release endpoint returned {resp.status_code} for {url}: {detail}"
            logger.error(msg)
            raise UpdateError(msg, phase=UpdatePhase.CHECKING)
        try:
            data = resp.json()
        except ValueError as e:
            raise UpdateError(f"release document is not JSON: {e}", phase=UpdatePhase.CHECKING) from e

        errors = sorted(self._validator.iter_errors(data), key=lambda err: list(err.path))
        if errors:
            for err in errors:
                logger.error("Release document invalid at %s: %s", list(err.path), err.message)
            raise UpdateError(f"release document invalid: {errors[0].message}", phase=UpdatePhase.CHECKING)

        return ReleaseInfo(
            version=data["tag_name"],
            changelog_url=data["html_url"],
            download_url=data["assets"][0]["browser_download_url"],
        )

    def download(self, url: str, dest: Path, chunk_size: int = 65536) -> Path:
        """Download ``url`` into ``dest``, replacing it atomically once complete."""
        logger.info("Downloading %s -> %s", url, dest)
        dest = Path(dest)
        try:
            ensure_dir(dest.parent, operation="stage update")
        except StorageError as e:
            raise UpdateError(str(e), phase=UpdatePhase.DOWNLOADING) from e
        tmp_name = None
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as resp:
                if resp.status_code >= 400:
                    raise UpdateError(
                        f"download of {url} returned {resp.status_code}", phase=UpdatePhase.DOWNLOADING
                    )
                fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", suffix=".part", dir=dest.parent)
                with os.fdopen(fd, "wb") as f:
                    for chunk in resp.iter_content(chunk_size=chunk_size):
                        if chunk:
                            f.write(chunk)
                    f.flush()
                    os.fsync(f.fileno())
            os.replace(tmp_name, dest)
        except requests.RequestException as e:
            logger.error("Download failed: %s: %s", url, e)
            raise UpdateError(f"download of {url} failed: {e}", phase=UpdatePhase.DOWNLOADING) from e
        except OSError as e:
            logger.error("Writing %s failed: %s", dest, e)
            raise UpdateError(f"writing {dest} failed: {e}", phase=UpdatePhase.DOWNLOADING) from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)
        return dest
