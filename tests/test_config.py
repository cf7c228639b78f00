"""
Unit tests for credential discovery and storage.
"""

import os
import stat

import pytest

from bfx.config import (
    ENV_FILE_NAME,
    Credentials,
    default_env_path,
    load_credentials,
    resolve_env_path,
    save_credentials,
)


@pytest.fixture
def env_file(tmp_path):
    """Create a credentials file."""
    path = tmp_path / ENV_FILE_NAME
    path.write_text("API_KEY=file_key\nAPI_SECRET=file_secret\n")
    return path


class TestLoadCredentials:
    """Tests for loading credentials."""

    def test_environment_takes_precedence(self, env_file):
        credentials = load_credentials(
            environ={"API_KEY": "env_key", "API_SECRET": "env_secret"}, env_path=env_file
        )

        assert credentials == Credentials("env_key", "env_secret")

    def test_file_used_without_environment(self, env_file):
        credentials = load_credentials(environ={}, env_path=env_file)

        assert credentials == Credentials("file_key", "file_secret")

    def test_partial_environment_falls_back_to_file(self, env_file):
        credentials = load_credentials(environ={"API_KEY": "env_key"}, env_path=env_file)

        assert credentials == Credentials("file_key", "file_secret")

    def test_incomplete_file(self, tmp_path):
        path = tmp_path / ENV_FILE_NAME
        path.write_text("API_KEY=file_key\n")

        assert load_credentials(environ={}, env_path=path) is None

    def test_missing_file(self, tmp_path):
        assert load_credentials(environ={}, env_path=tmp_path / ENV_FILE_NAME) is None

    def test_default_lookup(self, tmp_path, monkeypatch, env_file):
        work = tmp_path / "work"
        work.mkdir()
        monkeypatch.chdir(work)
        monkeypatch.setenv("HOME", str(tmp_path))

        credentials = load_credentials(environ={})

        assert credentials == Credentials("file_key", "file_secret")


class TestResolveEnvPath:
    """Tests for locating the credentials file."""

    def test_prefers_current_directory(self, tmp_path):
        cwd = tmp_path / "cwd"
        home = tmp_path / "home"
        cwd.mkdir()
        home.mkdir()
        (cwd / ENV_FILE_NAME).write_text("")
        (home / ENV_FILE_NAME).write_text("")

        assert resolve_env_path(cwd, home) == cwd / ENV_FILE_NAME

    def test_falls_back_to_home(self, tmp_path):
        cwd = tmp_path / "cwd"
        home = tmp_path / "home"
        cwd.mkdir()
        home.mkdir()
        (home / ENV_FILE_NAME).write_text("")

        assert resolve_env_path(cwd, home) == home / ENV_FILE_NAME

    def test_no_file(self, tmp_path):
        assert resolve_env_path(tmp_path, tmp_path) is None

    def test_default_env_path(self, tmp_path):
        assert default_env_path(tmp_path) == tmp_path / ENV_FILE_NAME


class TestSaveCredentials:
    """Tests for writing the credentials file."""

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "nested" / ENV_FILE_NAME

        written = save_credentials(Credentials("k", "s"), path)

        assert written == path
        assert load_credentials(environ={}, env_path=path) == Credentials("k", "s")

    def test_file_is_owner_only(self, tmp_path):
        path = save_credentials(Credentials("k", "s"), tmp_path / ENV_FILE_NAME)

        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_repr_hides_secret(self):
        assert "s3cret" not in repr(Credentials("key", "s3cret"))
