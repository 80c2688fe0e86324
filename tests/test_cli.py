from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable

from click.testing import CliRunner

from signal_metrics import __version__
from signal_metrics.cli import cli


def test_version() -> None:
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_convert_writes_report(sample_snapshot: Path) -> None:
    result = CliRunner().invoke(cli, ["convert", str(sample_snapshot), "--jitter-seed", "1"])

    assert result.exit_code == 0, result.output
    assert "Report written" in result.output
    assert "12345.67" in result.output
    assert sample_snapshot.with_name("Alpha_123_root.txt").exists()


def test_convert_custom_output(sample_snapshot: Path, tmp_path: Path) -> None:
    target = tmp_path / "custom.txt"

    result = CliRunner().invoke(cli, ["convert", str(sample_snapshot), "-o", str(target)])

    assert result.exit_code == 0, result.output
    assert target.read_text(encoding="utf-8").startswith("Balance=12345.67")


def test_convert_missing_balance_fails(snapshot_factory: Callable[..., Path]) -> None:
    path = snapshot_factory(balance=None)

    result = CliRunner().invoke(cli, ["convert", str(path)])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert "balance" in result.output


def test_batch_summary(snapshot_factory: Callable[..., Path], tmp_path: Path) -> None:
    snapshot_factory(directory=tmp_path / "mql4", name="Alpha_1_root.html")
    snapshot_factory(directory=tmp_path / "mql5", name="Beta_2_root.html")

    result = CliRunner().invoke(cli, ["batch", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "Batch Summary" in result.output
    assert (tmp_path / "mql4" / "Alpha_1_root.txt").exists()
    assert (tmp_path / "mql5" / "Beta_2_root.txt").exists()


def test_batch_skip_policy_from_option(snapshot_factory: Callable[..., Path], tmp_path: Path) -> None:
    snapshot_factory(directory=tmp_path / "mql5", name="Alpha_1_root.html")
    snapshot_factory(directory=tmp_path / "mql5", name="Broken_2_root.html", drawdown=None)

    result = CliRunner().invoke(cli, ["batch", str(tmp_path), "--on-missing-field", "skip"])

    assert result.exit_code == 0, result.output
    assert "Broken_2_root.html" in result.output


def test_batch_abort_exits_with_error(snapshot_factory: Callable[..., Path], tmp_path: Path) -> None:
    snapshot_factory(directory=tmp_path / "mql5", name="Broken_2_root.html", balance=None)

    result = CliRunner().invoke(cli, ["batch", str(tmp_path)])

    assert result.exit_code == 1
    assert "Broken_2_root.html" in result.output


def test_batch_version_dir_from_environment(snapshot_factory: Callable[..., Path], tmp_path: Path) -> None:
    snapshot_factory(directory=tmp_path / "custom", name="Alpha_1_root.html")

    result = CliRunner().invoke(
        cli, ["batch", str(tmp_path)], env={"SIGNAL_METRICS_VERSION_DIRS": "custom"}
    )

    assert result.exit_code == 0, result.output
    assert (tmp_path / "custom" / "Alpha_1_root.txt").exists()


def test_batch_without_documents(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["batch", str(tmp_path)])

    assert result.exit_code == 0
    assert "No root documents found" in result.output


def test_info(sample_snapshot: Path) -> None:
    result = CliRunner().invoke(cli, ["info", str(sample_snapshot)])

    assert result.exit_code == 0, result.output
    assert "utf-8" in result.output
    assert "2025/05:0.8" in result.output


def test_info_marks_missing_fields(snapshot_factory: Callable[..., Path]) -> None:
    path = snapshot_factory(balance=None)

    result = CliRunner().invoke(cli, ["info", str(path)])

    assert result.exit_code == 0, result.output
    assert "missing" in result.output


def test_read(sample_snapshot: Path) -> None:
    runner = CliRunner()
    runner.invoke(cli, ["convert", str(sample_snapshot)])

    result = runner.invoke(cli, ["read", str(sample_snapshot.with_name("Alpha_123_root.txt"))])

    assert result.exit_code == 0, result.output
    assert "EquityDrawdown" in result.output
    assert "5.10" in result.output


def test_stats(snapshot_factory: Callable[..., Path], tmp_path: Path) -> None:
    old = snapshot_factory(name="Old_1_root.html")
    snapshot_factory(name="New_2_root.html")
    past = time.time() - 40 * 24 * 60 * 60
    os.utime(old, (past, past))

    result = CliRunner().invoke(cli, ["stats", str(tmp_path), "--max-days", "30"])

    assert result.exit_code == 0, result.output
    assert "30+" in result.output
    assert "Total: 2 documents" in result.output
