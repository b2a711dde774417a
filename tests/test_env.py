"""Tests für utils/env.py - Umgebungsvariablen und .env-Dateien."""

import os

import pytest

import config
from utils.env import load_environment, parse_bool, user_env_file


class TestParseBool:
    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_true_values(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", ["0", "false", "No", "off"])
    def test_false_values(self, value):
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", [None, "", "vielleicht"])
    def test_unrecognized(self, value):
        assert parse_bool(value) is None


class TestLoadEnvironment:
    """Priorität: Prozess-Env > ~/.diktat/.env > ./.env"""

    @pytest.fixture
    def env_dirs(self, tmp_path, monkeypatch):
        project = tmp_path / "project"
        user = tmp_path / "user"
        project.mkdir()
        user.mkdir()
        monkeypatch.chdir(project)
        monkeypatch.setattr(config, "USER_CONFIG_DIR", user)
        for key in ("DIKTAT_TEST_A", "DIKTAT_TEST_B", "DIKTAT_TEST_C"):
            monkeypatch.delenv(key, raising=False)
        yield project, user
        for key in ("DIKTAT_TEST_A", "DIKTAT_TEST_B", "DIKTAT_TEST_C"):
            os.environ.pop(key, None)

    def test_user_env_wins_over_local(self, env_dirs):
        project, user = env_dirs
        (project / ".env").write_text("DIKTAT_TEST_A=local\nDIKTAT_TEST_B=local\n")
        (user / ".env").write_text("DIKTAT_TEST_A=user\n")

        load_environment()

        assert os.environ["DIKTAT_TEST_A"] == "user"
        assert os.environ["DIKTAT_TEST_B"] == "local"

    def test_process_env_wins(self, env_dirs, monkeypatch):
        project, _ = env_dirs
        (project / ".env").write_text("DIKTAT_TEST_C=datei\n")
        monkeypatch.setenv("DIKTAT_TEST_C", "prozess")

        load_environment()
        assert os.environ["DIKTAT_TEST_C"] == "prozess"

    def test_missing_files_are_ignored(self, env_dirs):
        load_environment()
        assert "DIKTAT_TEST_A" not in os.environ

    def test_user_env_file_follows_config_dir(self, env_dirs):
        _, user = env_dirs
        assert user_env_file() == user / ".env"

    def test_values_without_assignment_are_skipped(self, env_dirs):
        project, _ = env_dirs
        (project / ".env").write_text("DIKTAT_TEST_A\nDIKTAT_TEST_B=gesetzt\n")

        load_environment()

        assert "DIKTAT_TEST_A" not in os.environ
        assert os.environ["DIKTAT_TEST_B"] == "gesetzt"
