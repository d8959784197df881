"""Tests for glone.core.config module."""

from __future__ import annotations

from pathlib import Path

import pytest

from glone.core.config import (
    AppPaths,
    Config,
    ConfigError,
    PublicAuth,
    SshAuth,
    TokenAuth,
    bootstrap,
    load_config,
)
from glone.core.result import Err, Ok

VALID = """
[[providers]]
name = "dotfiles"
url = "https://example.com/dotfiles.git"
branch = "main"
sync_dir = "/srv/dotfiles"
auth = { type = "token", username = "_USER", password = "_TOKEN" }

[[providers]]
name = "notes"
url = "git@example.com:me/notes.git"
branch = "trunk"
sync_dir = "/srv/notes"
auth = { type = "ssh", path = "/keys/id_ed25519" }

[[providers]]
name = "public"
url = "https://example.com/public.git"
branch = "main"
sync_dir = "/srv/public"

[providers.auth]
type = "public"
"""


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(content, encoding="utf-8")
    return path


class TestTokenAuth:
    def test_valid_cred_requires_prefix_on_both(self) -> None:
        assert TokenAuth("_U", "_P").is_valid_cred()
        assert not TokenAuth("U", "_P").is_valid_cred()
        assert not TokenAuth("_U", "P").is_valid_cred()


class TestLoadConfig:
    def test_valid_file(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, VALID))

        assert isinstance(result, Ok)
        providers = result.value.providers
        assert [p.name for p in providers] == ["dotfiles", "notes", "public"]
        assert providers[0].auth == TokenAuth(username="_USER", password="_TOKEN")
        assert providers[0].sync_dir == Path("/srv/dotfiles")
        assert providers[1].auth == SshAuth(path=Path("/keys/id_ed25519"))
        assert providers[1].branch == "trunk"
        assert providers[2].auth == PublicAuth()

    def test_empty_file_has_no_providers(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, ""))
        assert result == Ok(Config())

    def test_missing_file(self, tmp_path: Path) -> None:
        result = load_config(tmp_path / "nope.toml")

        assert isinstance(result, Err)
        assert "not found" in result.error.message
        assert result.error.path == tmp_path / "nope.toml"

    def test_invalid_toml(self, tmp_path: Path) -> None:
        result = load_config(_write(tmp_path, "[[providers]\nname = "))

        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_sync_dir_expands_user(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", str(tmp_path))
        content = VALID.replace('"/srv/public"', '"~/public"')

        result = load_config(_write(tmp_path, content))

        assert isinstance(result, Ok)
        assert result.value.providers[2].sync_dir == tmp_path / "public"


@pytest.mark.parametrize(
    ("content", "message"),
    [
        ("providers = 3", "must be an array of tables"),
        ('[[providers]]\nname = "x"\n', "missing required key(s): url, branch, sync_dir"),
        (
            '[[providers]]\nname = "x"\nurl = "u"\nbranch = "b"\nsync_dir = "/d"\n',
            "missing 'auth' table",
        ),
        (
            '[[providers]]\nname = "x"\nurl = "u"\nbranch = "b"\nsync_dir = "/d"\n'
            'auth = { type = "kerberos" }\n',
            "unknown auth type: kerberos",
        ),
        (
            '[[providers]]\nname = "x"\nurl = "u"\nbranch = "b"\nsync_dir = "/d"\n'
            'auth = { type = "ssh" }\n',
            "ssh auth requires 'path'",
        ),
        (
            '[[providers]]\nname = "x"\nurl = "u"\nbranch = "b"\nsync_dir = "/d"\n'
            'auth = { type = "token", username = "_U" }\n',
            "token auth requires",
        ),
    ],
)
def test_invalid_provider(tmp_path: Path, content: str, message: str) -> None:
    result = load_config(_write(tmp_path, content))

    assert isinstance(result, Err)
    assert isinstance(result.error, ConfigError)
    assert message in result.error.message


def test_duplicate_names_rejected() -> None:
    entry = {
        "name": "x",
        "url": "u",
        "branch": "main",
        "sync_dir": "/a",
        "auth": {"type": "public"},
    }
    result = Config.from_dict({"providers": [entry, {**entry, "sync_dir": "/b"}]})
    assert result == Err("duplicate provider name: x")


def test_duplicate_sync_dirs_rejected() -> None:
    entry = {
        "name": "x",
        "url": "u",
        "branch": "main",
        "sync_dir": "/a",
        "auth": {"type": "public"},
    }
    result = Config.from_dict({"providers": [entry, {**entry, "name": "y"}]})
    assert isinstance(result, Err)
    assert "sync_dir used by more than one provider" in result.error


class TestAppPaths:
    def test_file_locations(self, tmp_path: Path) -> None:
        paths = AppPaths(config_dir=tmp_path)
        assert paths.config_path == tmp_path / "config.toml"
        assert paths.log_path == tmp_path / "app.log"

    def test_bootstrap_creates_dir_and_empty_config(self, tmp_path: Path) -> None:
        paths = AppPaths(config_dir=tmp_path / "a" / "glone")

        assert bootstrap(paths) == Ok(None)
        assert paths.config_path.read_text() == ""

    def test_bootstrap_keeps_existing_config(self, tmp_path: Path) -> None:
        paths = AppPaths(config_dir=tmp_path)
        paths.config_path.write_text(VALID, encoding="utf-8")

        assert bootstrap(paths) == Ok(None)
        assert paths.config_path.read_text(encoding="utf-8") == VALID
