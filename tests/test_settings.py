from __future__ import annotations

import textwrap

import pytest

from lifevault.settings import Settings


def test_defaults_come_from_packaged_yaml():
    settings = Settings.load()
    assert settings.updates.repo == "what-is-life/what-is-life"
    assert settings.updates.api_url == "https://api.github.com"
    assert "{version}" in settings.updates.download_url_template
    assert settings.updates.check_interval_hours == 24
    assert settings.validator.max_level == 100
    assert settings.validator.max_xp == 1_000_000
    assert settings.logging.level == "WARNING"


def test_user_file_overrides_only_given_keys(tmp_path):
    user = tmp_path / "settings.yaml"
    user.write_text(
        textwrap.dedent(
            """
            updates:
              repo: acme/life
              enabled: false
            validator:
              max_level: 50
            """
        ),
        encoding="utf-8",
    )
    settings = Settings.load(user_path=user)
    assert settings.updates.repo == "acme/life"
    assert settings.updates.enabled is False
    assert settings.updates.api_url == "https://api.github.com"
    assert settings.validator.max_level == 50
    assert settings.validator.min_level == 1


def test_missing_user_file_is_ignored(tmp_path):
    settings = Settings.load(user_path=tmp_path / "nope.yaml")
    assert settings.updates.enabled is True


def test_unknown_keys_are_ignored(tmp_path, caplog):
    user = tmp_path / "settings.yaml"
    user.write_text("updates:\n  channel: beta\n", encoding="utf-8")
    settings = Settings.load(user_path=user)
    assert not hasattr(settings.updates, "channel")
    assert "channel" in caplog.text


def test_non_mapping_file_rejected(tmp_path):
    user = tmp_path / "settings.yaml"
    user.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        Settings.load(user_path=user)


def test_save_and_reload(tmp_path):
    settings = Settings.load()
    settings.updates.repo = "acme/other"
    target = tmp_path / "cfg" / "settings.yaml"
    settings.save(target)
    assert Settings.load(user_path=target).updates.repo == "acme/other"
