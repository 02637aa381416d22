import json
import time

import pytest

from lifevault.bans import NO_REASON, BanRegistry
from lifevault.errors import InvalidPlayerIdError, MalformedInputError


@pytest.fixture()
def registry(app_paths):
    return BanRegistry.from_paths(app_paths)


def test_not_banned_by_default(registry):
    assert registry.is_banned("ABC12") is False
    assert registry.get_ban_reason("ABC12") == ""
    assert registry.get_ban("ABC12") is None


def test_ban_sets_flag_and_reason(registry):
    before = int(time.time())
    registry.ban("ABC12", "Impossible value: 99999999")
    assert registry.is_banned("ABC12") is True
    assert registry.get_ban_reason("ABC12") == "Impossible value: 99999999"

    on_disk = json.loads(registry.ban_path("ABC12").read_text(encoding="utf-8"))
    assert on_disk["player_id"] == "ABC12"
    assert on_disk["reason"] == "Impossible value: 99999999"
    assert on_disk["banned_at"] >= before
    assert registry.ban_path("ABC12").name == "ABC12.ban"


def test_reban_overwrites_reason(registry):
    registry.ban("ABC12", "r1")
    registry.ban("ABC12", "r2")
    assert registry.get_ban_reason("ABC12") == "r2"
    assert [r.reason for r in registry.list_banned()] == ["r2"]


def test_ban_is_per_player(registry):
    registry.ban("ABC12", "cheating")
    assert registry.is_banned("XYZ99") is False


def test_missing_reason_falls_back(registry):
    path = registry.ban_path("ABC12")
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"player_id": "ABC12", "banned_at": 1}), encoding="utf-8")
    assert registry.get_ban_reason("ABC12") == NO_REASON

    path.write_text(json.dumps({"player_id": "ABC12", "reason": 42}), encoding="utf-8")
    assert registry.get_ban_reason("ABC12") == "No reason specified"


def test_is_banned_never_parses(registry):
    path = registry.ban_path("ABC12")
    path.parent.mkdir(parents=True)
    path.write_text("garbage", encoding="utf-8")
    assert registry.is_banned("ABC12") is True
    with pytest.raises(MalformedInputError):
        registry.get_ban_reason("ABC12")


def test_traversal_rejected(registry):
    with pytest.raises(InvalidPlayerIdError):
        registry.ban("../../etc/passwd", "nope")
    with pytest.raises(InvalidPlayerIdError):
        registry.is_banned("..")


def test_list_banned_skips_unreadable_records(registry):
    registry.ban("AAAAA", "first")
    registry.ban("BBBBB", "second")
    registry.ban_path("CCCCC").write_text("not json", encoding="utf-8")
    banned = registry.list_banned()
    assert {r.player_id for r in banned} == {"AAAAA", "BBBBB"}
