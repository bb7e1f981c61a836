# tests/unit/test_main.py — v1
"""Tests for main.py: the command-line interface."""

from __future__ import annotations

import json

import pytest

from buildcheck import main as cli
from helpers import SAMPLE_IFC


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Isolated cwd and environment; logging left unconfigured."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("JOB_STORE_URL", "")
    monkeypatch.setenv("CACHE_BACKEND", "json")
    monkeypatch.setenv("CACHE_ROOT", str(tmp_path / "cache"))
    monkeypatch.setattr(cli, "_setup_logging", lambda verbose: None)
    (tmp_path / "casa.ifc").write_text(SAMPLE_IFC, encoding="utf-8")
    return tmp_path


class TestCli:
    def test_no_command(self, workdir, capsys):
        assert cli.main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_missing_file(self, workdir):
        assert cli.main(["run", "nowhere.ifc"]) == 1

    def test_run_writes_output(self, workdir, capsys):
        out_dir = workdir / "out"
        assert cli.main(["run", "casa.ifc", "--depth", "quick", "-o", str(out_dir)]) == 0
        stdout = capsys.readouterr().out
        assert "Analysis complete" in stdout
        assert "Casa Azul" in stdout

        payload = json.loads((out_dir / "result.json").read_text(encoding="utf-8"))
        assert payload["analysis_depth"] == "quick"
        assert payload["source_model"] is None
        assert (out_dir / "budget.xlsx").read_bytes()[:2] == b"PK"

    def test_cache_list_and_clear(self, workdir, capsys):
        assert cli.main(["cache", "list"]) == 0
        assert "Cache is empty" in capsys.readouterr().out

        assert cli.main(["run", "casa.ifc", "--no-schedule"]) == 0
        capsys.readouterr()
        assert cli.main(["cache", "list"]) == 0
        assert "casa.ifc" in capsys.readouterr().out

        assert cli.main(["cache", "clear"]) == 0
        assert "Removed 1 cached results" in capsys.readouterr().out

    def test_no_cache_flag(self, workdir, capsys):
        assert cli.main(["run", "casa.ifc", "--no-cache"]) == 0
        capsys.readouterr()
        cli.main(["cache", "list"])
        assert "Cache is empty" in capsys.readouterr().out

    def test_submit(self, workdir, capsys):
        assert cli.main(["submit", "casa.ifc", "--no-costs"]) == 0
        assert "completed (100%)" in capsys.readouterr().out

    def test_unknown_job(self, workdir):
        assert cli.main(["job", "missing"]) == 1
