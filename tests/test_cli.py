"""Tests for ringside.cli - history sub-commands against a real SQLite file."""

import sys

import pytest

from ringside.cli import main
from ringside.match import MatchOutcome
from scoreboard.db import MatchHistoryStore


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "history.db")
    store = MatchHistoryStore(path)
    store.create(MatchOutcome("Ana", "Bia", 2, 1, "quartas", "Ana"))
    store.create(MatchOutcome("Caio", "-", 0, 0, "preliminar", "Caio"))
    store.close()
    return path


def _run_cli(monkeypatch, *argv) -> int:
    monkeypatch.setattr(sys, "argv", ["ringside", *argv])
    with pytest.raises(SystemExit) as exc:
        main()
    return exc.value.code


class TestHistory:
    def test_lists_in_order(self, monkeypatch, capsys, db_path, tmp_path):
        code = _run_cli(monkeypatch, "history", "--db", db_path, "--config", str(tmp_path / "none.toml"))
        out = capsys.readouterr().out
        assert code == 0
        assert "Ana 2 x 1 Bia" in out
        assert "Caio 0 x 0 -" in out
        assert out.index("Ana") < out.index("Caio")

    def test_empty_history(self, monkeypatch, capsys, tmp_path):
        db = str(tmp_path / "empty.db")
        code = _run_cli(monkeypatch, "history", "--db", db, "--config", str(tmp_path / "none.toml"))
        assert code == 0
        assert "No matches recorded yet." in capsys.readouterr().out


class TestDeleteMatch:
    def test_delete_existing(self, monkeypatch, capsys, db_path, tmp_path):
        code = _run_cli(monkeypatch, "delete-match", "1", "--db", db_path, "--config", str(tmp_path / "none.toml"))
        assert code == 0
        assert "Deleted match 1" in capsys.readouterr().out
        store = MatchHistoryStore(db_path)
        assert [r["nameA"] for r in store.find_all_ordered_by_created_asc()] == ["Caio"]
        store.close()

    def test_delete_missing_is_not_an_error(self, monkeypatch, capsys, db_path, tmp_path):
        code = _run_cli(monkeypatch, "delete-match", "99", "--db", db_path, "--config", str(tmp_path / "none.toml"))
        assert code == 0
        assert "not found" in capsys.readouterr().out
