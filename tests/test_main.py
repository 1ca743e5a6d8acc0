from __future__ import annotations

from pathlib import Path

import pytest

import main


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("MARKETSIM_HOME", str(tmp_path))
    monkeypatch.delenv("MARKETSIM_SEED", raising=False)


def test_parse_args_defaults() -> None:
    args = main.parse_args([])
    assert args.days == 5
    assert args.mode == "skip"
    assert args.seed is None


def test_skip_run_prints_report(capsys) -> None:
    main.main(["--days", "3", "--seed", "4", "--top", "2"])

    out = capsys.readouterr().out
    assert "Day 32 00:00" in out
    assert "Top movers" in out
    assert "Active events" in out


def test_rejects_non_positive_days() -> None:
    with pytest.raises(SystemExit):
        main.main(["--days", "0"])
