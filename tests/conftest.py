import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from lifevault.paths import AppPaths  # noqa: E402
from lifevault.settings import Settings, UpdateSettings  # noqa: E402


@pytest.fixture()
def app_paths(tmp_path):
    return AppPaths(data_dir=tmp_path / "appdata")


@pytest.fixture()
def update_settings():
    return UpdateSettings(
        repo="acme/life",
        api_url="https://api.github.test",
        download_url_template="https://downloads.test/{repo}/{version}.zip",
        timeout_seconds=5,
    )


@pytest.fixture()
def settings(update_settings):
    return Settings(updates=update_settings)
