import json

import pytest
import requests
import responses

from lifevault.errors import ErrorKind, UpdateError, UpdatePhase
from lifevault.releases import ReleaseClient

LATEST = "https://api.github.test/repos/acme/life/releases/latest"


def release_doc(tag="v1.0.1"):
    return {
        "tag_name": tag,
        "html_url": f"https://github.test/acme/life/releases/tag/{tag}",
        "assets": [{"browser_download_url": f"https://downloads.test/acme/life/{tag}.zip"}],
    }


@pytest.fixture()
def client():
    return ReleaseClient("acme/life", api_url="https://api.github.test/", timeout=5)


def test_repo_must_have_owner():
    with pytest.raises(ValueError):
        ReleaseClient("life")


def test_latest_release_url(client):
    assert client.latest_release_url == LATEST


@responses.activate
def test_fetch_latest_maps_fields(client):
    responses.add(responses.GET, LATEST, json=release_doc("v2.0.0"), status=200)
    info = client.fetch_latest()
    assert info.version == "v2.0.0"
    assert info.changelog_url.endswith("/tag/v2.0.0")
    assert info.download_url == "https://downloads.test/acme/life/v2.0.0.zip"
    assert responses.calls[0].request.headers["Accept"] == "application/vnd.github+json"


@responses.activate
def test_server_error_is_a_checking_failure(client):
    responses.add(responses.GET, LATEST, status=500, body=json.dumps({"message": "boom"}))
    with pytest.raises(UpdateError) as excinfo:
        client.fetch_latest()
    assert excinfo.value.phase is UpdatePhase.CHECKING
    assert excinfo.value.kind is ErrorKind.REMOTE
    assert "500" in str(excinfo.value)


@responses.activate
def test_connection_error(client):
    responses.add(responses.GET, LATEST, body=requests.ConnectionError("offline"))
    with pytest.raises(UpdateError) as excinfo:
        client.fetch_latest()
    assert excinfo.value.phase is UpdatePhase.CHECKING


@responses.activate
def test_non_json_body(client):
    responses.add(responses.GET, LATEST, body="<html>rate limited</html>", status=200)
    with pytest.raises(UpdateError):
        client.fetch_latest()


@pytest.mark.parametrize(
    "doc",
    [
        {"html_url": "x", "assets": [{"browser_download_url": "y"}]},
        {"tag_name": "v1", "html_url": "x", "assets": []},
        {"tag_name": "v1", "html_url": "x", "assets": [{"name": "no url"}]},
        {"tag_name": 7, "html_url": "x", "assets": [{"browser_download_url": "y"}]},
    ],
)
@responses.activate
def test_schema_violations_rejected(client, doc):
    responses.add(responses.GET, LATEST, json=doc, status=200)
    with pytest.raises(UpdateError) as excinfo:
        client.fetch_latest()
    assert "invalid" in str(excinfo.value)


@responses.activate
def test_download_writes_payload(client, tmp_path):
    url = "https://downloads.test/acme/life/v1.0.1.zip"
    responses.add(responses.GET, url, body=b"PK\x03\x04payload", status=200)
    dest = tmp_path / "update_v1.0.1"
    assert client.download(url, dest) == dest
    assert dest.read_bytes() == b"PK\x03\x04payload"
    assert [p.name for p in tmp_path.iterdir()] == ["update_v1.0.1"]


@responses.activate
def test_download_404_leaves_nothing(client, tmp_path):
    url = "https://downloads.test/acme/life/missing.zip"
    responses.add(responses.GET, url, status=404)
    dest = tmp_path / "update_missing"
    with pytest.raises(UpdateError) as excinfo:
        client.download(url, dest)
    assert excinfo.value.phase is UpdatePhase.DOWNLOADING
    assert not dest.exists()


@responses.activate
def test_download_write_failure_is_a_download_error(client, tmp_path, monkeypatch):
    import os

    url = "https://downloads.test/acme/life/v1.0.1.zip"
    responses.add(responses.GET, url, body=b"payload", status=200)

    def deny(src, dst):
        raise PermissionError(13, "Permission denied", str(dst))

    monkeypatch.setattr(os, "replace", deny)
    dest = tmp_path / "update_v1.0.1"
    with pytest.raises(UpdateError) as excinfo:
        client.download(url, dest)
    assert excinfo.value.phase is UpdatePhase.DOWNLOADING
    assert list(tmp_path.iterdir()) == []


@responses.activate
def test_download_streams_in_chunks(client, tmp_path):
    url = "https://downloads.test/acme/life/big.zip"
    body = b"x" * 200_000
    responses.add(responses.GET, url, body=body, status=200)
    dest = client.download(url, tmp_path / "update_big", chunk_size=4096)
    assert dest.read_bytes() == body
