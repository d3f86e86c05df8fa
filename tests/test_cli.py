"""Tests for the secure-sync command line via CliRunner."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from securesync import __version__
from securesync.cli import USAGE, main
from securesync.errors import Aborted, TransferFailed
from securesync.models import Direction


@pytest.fixture
def mock_execute():
    """Replace the orchestrator so no external command runs."""
    with patch("securesync.cli.execute") as mocked:
        yield mocked


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch) -> Path:
    """Run the CLI from a workdir with settings pointed at tmp_path."""
    work = tmp_path / "work"
    (work / "docs").mkdir(parents=True)
    (work / "notes.txt").write_text("notes")
    monkeypatch.chdir(work)
    monkeypatch.setenv("HOME", str(tmp_path))
    return work


class TestHelp:
    """Help and version output."""

    def test_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Uploads:" in result.output
        assert "SECURE_SYNC_CRT" in result.output

    def test_short_help_after_positional(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, ["notes.txt", "-h"])
        assert result.exit_code == 0
        assert "Downloads:" in result.output
        mock_execute.assert_not_called()

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_usage_mentions_passthrough(self) -> None:
        assert "Remaining args are passed to \"tar\"" in USAGE


class TestUsageErrors:
    """Usage errors print the usage text and exit 1."""

    def test_no_arguments(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, [])
        assert result.exit_code == 1
        assert "Usage:" in result.output
        assert "No arguments given" in result.output
        mock_execute.assert_not_called()

    def test_missing_bucket(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, ["notes.txt"])
        assert result.exit_code == 1
        assert "Usage:" in result.output
        assert "bucket name" in result.output

    def test_missing_download_target(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, ["s3://bkt/x"])
        assert result.exit_code == 1
        assert "No folder given" in result.output

    def test_path_not_found_has_no_usage(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, ["ghost", "s3://bkt/x"])
        assert result.exit_code == 1
        assert "ghost" in result.output
        assert "Usage:" not in result.output

    def test_extra_download_argument(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, ["s3://bkt/x", "one", "two"])
        assert result.exit_code == 1
        assert "Only one download path" in result.output

    def test_leading_separator_rejected(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, ["--", "s3://bkt/x", "out"])
        assert result.exit_code == 1
        assert "only allowed on uploads" in result.output
        mock_execute.assert_not_called()

    def test_leading_separator_after_flags_rejected(
        self, cli_env: Path, mock_execute: MagicMock,
    ) -> None:
        result = CliRunner().invoke(main, ["-d", "--", "notes.txt", "s3://bkt/x"])
        assert result.exit_code == 1
        assert "only allowed on uploads" in result.output
        mock_execute.assert_not_called()


class TestInvocation:
    """Arguments reach the orchestrator intact."""

    def test_upload_with_passthrough(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(
            main,
            ["-v", "docs", "notes.txt", "s3://bkt/x", "--", "--exclude", "*.tmp"],
        )
        assert result.exit_code == 0, result.output
        invocation = mock_execute.call_args.args[0]
        assert invocation.direction == Direction.UPLOAD
        assert invocation.local_paths == ["docs", "notes.txt"]
        assert invocation.tar_args == ["--exclude", "*.tmp"]
        assert invocation.verbose is True
        assert "Uploaded to s3://bkt/x" in result.output

    def test_dry_run_flag(self, cli_env: Path, mock_execute: MagicMock) -> None:
        result = CliRunner().invoke(main, ["--dry-run", "s3://bkt/x", "restore"])
        assert result.exit_code == 0, result.output
        invocation, _settings, runner, _prompter = mock_execute.call_args.args
        assert invocation.direction == Direction.DOWNLOAD
        assert invocation.dry_run is True
        assert runner.dry_run is True
        assert "Dry run complete" in result.output

    def test_settings_from_environment(
        self, cli_env: Path, mock_execute: MagicMock, monkeypatch,
    ) -> None:
        monkeypatch.setenv("SECURE_SYNC_CRT", str(cli_env / "custom.pem"))
        CliRunner().invoke(main, ["notes.txt", "s3://bkt/x"])
        settings = mock_execute.call_args.args[1]
        assert settings.cert_file == cli_env / "custom.pem"


class TestLogging:
    """Logging is configured before arguments are classified."""

    @patch("securesync.cli.logging.basicConfig")
    def test_verbose_after_positional(
        self, mock_config: MagicMock, cli_env: Path, mock_execute: MagicMock,
    ) -> None:
        result = CliRunner().invoke(main, ["notes.txt", "-v", "s3://bkt/x"])
        assert result.exit_code == 0, result.output
        assert mock_config.call_args.kwargs["level"] == logging.DEBUG

    @patch("securesync.cli.logging.basicConfig")
    def test_configured_when_classification_fails(
        self, mock_config: MagicMock, cli_env: Path, mock_execute: MagicMock,
    ) -> None:
        result = CliRunner().invoke(main, ["notes.txt", "-v"])
        assert result.exit_code == 1
        assert mock_config.call_args.kwargs["level"] == logging.DEBUG

    @patch("securesync.cli.logging.basicConfig")
    def test_verbose_after_separator_is_for_tar(
        self, mock_config: MagicMock, cli_env: Path, mock_execute: MagicMock,
    ) -> None:
        result = CliRunner().invoke(main, ["notes.txt", "s3://bkt/x", "--", "-v"])
        assert result.exit_code == 0, result.output
        assert mock_config.call_args.kwargs["level"] == logging.WARNING
        assert mock_execute.call_args.args[0].tar_args == ["-v"]


class TestFailures:
    """Fatal errors exit 1 with the message on stderr."""

    def test_transfer_failure(self, cli_env: Path, mock_execute: MagicMock) -> None:
        mock_execute.side_effect = TransferFailed("Failed to fetch encrypted data from 's3://bkt/x'")
        result = CliRunner().invoke(main, ["s3://bkt/x", "restore"])
        assert result.exit_code == 1
        assert "Failed to fetch" in result.output
        assert "Usage:" not in result.output

    def test_aborted(self, cli_env: Path, mock_execute: MagicMock) -> None:
        mock_execute.side_effect = Aborted("Cowardly refusing to go on")
        result = CliRunner().invoke(main, ["s3://bkt/x", "restore"])
        assert result.exit_code == 1
        assert "Cowardly refusing" in result.output
