# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for acsign/dotenv_loader.py."""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from acsign import dotenv_loader
from acsign.dotenv_loader import load_dotenv_once, reset_dotenv_state


@pytest.fixture(autouse=True)
def _reset() -> Iterator[None]:
    reset_dotenv_state()
    yield
    reset_dotenv_state()


@pytest.fixture
def mock_load(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(dotenv_loader, "load_dotenv", mock)
    return mock


class TestLoadDotenvOnce:
    """Tests for load_dotenv_once."""

    def test_loads_xdg_then_cwd(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        mock_load: MagicMock,
    ) -> None:
        """Both files are loaded, XDG first."""
        xdg_dir = tmp_path / "xdg"
        xdg_dir.mkdir()
        xdg_env = xdg_dir / ".env"
        xdg_env.write_text("A=1\n")
        cwd = tmp_path / "cwd"
        cwd.mkdir()
        (cwd / ".env").write_text("B=2\n")
        monkeypatch.setattr("acsign.config.get_dotenv_path", lambda: xdg_env)
        monkeypatch.chdir(cwd)

        load_dotenv_once()

        loaded = [call.args[0] for call in mock_load.call_args_list]
        assert loaded == [xdg_env, cwd / ".env"]

    def test_skips_missing_files(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        mock_load: MagicMock,
    ) -> None:
        """Absent files are not loaded."""
        monkeypatch.setattr(
            "acsign.config.get_dotenv_path", lambda: tmp_path / "none.env"
        )
        monkeypatch.chdir(tmp_path)

        load_dotenv_once()

        mock_load.assert_not_called()

    def test_idempotent(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        mock_load: MagicMock,
    ) -> None:
        """Only the first call loads anything."""
        (tmp_path / ".env").write_text("A=1\n")
        monkeypatch.setattr(
            "acsign.config.get_dotenv_path", lambda: tmp_path / "none.env"
        )
        monkeypatch.chdir(tmp_path)

        load_dotenv_once()
        load_dotenv_once()

        assert mock_load.call_count == 1

    def test_reset(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        mock_load: MagicMock,
    ) -> None:
        """reset_dotenv_state allows loading again."""
        (tmp_path / ".env").write_text("A=1\n")
        monkeypatch.setattr(
            "acsign.config.get_dotenv_path", lambda: tmp_path / "none.env"
        )
        monkeypatch.chdir(tmp_path)

        load_dotenv_once()
        reset_dotenv_state()
        load_dotenv_once()

        assert mock_load.call_count == 2

    def test_real_load_does_not_override(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Variables already in the environment win over .env files."""
        (tmp_path / ".env").write_text(
            "ACSIGN_TEST_SET=from-file\nACSIGN_TEST_NEW=from-file\n"
        )
        monkeypatch.setattr(
            "acsign.config.get_dotenv_path", lambda: tmp_path / "none.env"
        )
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("ACSIGN_TEST_SET", "from-env")
        monkeypatch.setenv("ACSIGN_TEST_NEW", "placeholder")
        monkeypatch.delenv("ACSIGN_TEST_NEW")

        load_dotenv_once()

        assert os.environ["ACSIGN_TEST_SET"] == "from-env"
        assert os.environ["ACSIGN_TEST_NEW"] == "from-file"
