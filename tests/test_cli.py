"""Tests for the gym-sync command line driver."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from gym_session_storage.cli import main


@pytest.fixture
def settings(temp_dir: Path, monkeypatch) -> Path:
    # Keep the root logger pytest installed
    monkeypatch.setattr("gym_session_storage.cli.configure_logging", lambda *a, **kw: None)
    monkeypatch.delenv("GYM_LOCAL_PATH", raising=False)
    monkeypatch.delenv("GYM_COSMOS_ENDPOINT", raising=False)
    data_dir = temp_dir / "data"
    data_dir.mkdir()
    (data_dir / "sessions.json").write_text(json.dumps([{"id": "s1"}, {"id": "s2"}]))
    path = temp_dir / "settings.yaml"
    path.write_text(
        yaml.safe_dump(
            {"identity": {"user_id": "user-1"}, "storage": {"local_path": str(data_dir)}}
        ),
        encoding="utf-8",
    )
    return path


class TestCli:
    """Tests for gym-sync subcommands."""

    def test_status(self, settings: Path, capsys) -> None:
        """Test that status reports local counts without touching Cosmos."""
        assert main(["--settings", str(settings), "status"]) == 0

        out = capsys.readouterr().out
        assert "Sessions:    2" in out
        assert "Templates:   0" in out
        assert "user-1" in out
        assert "(not configured)" in out

    def test_pull_requires_endpoint(self, settings: Path, capsys) -> None:
        """Test that pull exits with 2 when no endpoint is configured."""
        assert main(["--settings", str(settings), "pull"]) == 2
        assert "GYM_COSMOS_ENDPOINT" in capsys.readouterr().err

    def test_command_is_required(self, settings: Path) -> None:
        """Test that a subcommand must be given."""
        with pytest.raises(SystemExit):
            main([])
