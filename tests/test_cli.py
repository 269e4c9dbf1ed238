"""Tests for the CLI module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from glowlines.cli import EXIT_USAGE, cli, create_parser
from glowlines.config import DEFAULT_IMAGE_WIDTH
from glowlines.errors import (
    DatabaseConnectionError,
    ExtentComputationError,
    OutputWriteError,
    QueryError,
)


REQUIRED = ["--pg", "dbname=gis", "--query", "select st_astext(geom) from lines", "-f", "out.png"]


def _stats(paths_drawn: int = 3, rows_skipped: int = 0) -> MagicMock:
    stats = MagicMock()
    stats.paths_drawn = paths_drawn
    stats.rows_skipped = rows_skipped
    return stats


class TestCLI:
    """Tests for CLI functionality."""

    def test_cli_no_args_shows_examples(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that CLI with no args prints usage and returns a usage error."""
        assert cli([]) == EXIT_USAGE
        assert "Usage:" in capsys.readouterr().out

    def test_cli_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test --version flag."""
        assert cli(["--version"]) == 0
        assert capsys.readouterr().out.startswith("glowlines ")

    def test_cli_missing_options(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that missing required options are reported."""
        with patch.dict("os.environ", {}, clear=True):
            result = cli(["--query", "select 1"])
        assert result == EXIT_USAGE
        out = capsys.readouterr().out
        assert "--pg" in out
        assert "--file" in out

    def test_cli_success(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test a successful render returns zero."""
        with patch("glowlines.cli.run", return_value=_stats(rows_skipped=2)) as mock_run:
            assert cli(REQUIRED) == 0

        config = mock_run.call_args.args[0]
        assert config.dsn == "dbname=gis"
        assert config.query == "select st_astext(geom) from lines"
        assert config.output_path == Path("out.png")
        assert config.image_width == DEFAULT_IMAGE_WIDTH
        out = capsys.readouterr().out
        assert "Rendered 3 lines" in out
        assert "2 rows skipped" in out

    def test_cli_options_forwarded(self) -> None:
        """Test optional flags reach the render configuration."""
        args = [
            *REQUIRED,
            "--extents=-74.3,40.5,-73.7,40.9",
            "--width",
            "800",
            "--scale",
            "0.5",
            "--total-rows",
            "5000",
        ]
        with patch("glowlines.cli.run", return_value=_stats()) as mock_run:
            assert cli(args) == 0

        config = mock_run.call_args.args[0]
        assert config.extents == "-74.3,40.5,-73.7,40.9"
        assert config.image_width == 800
        assert config.scale == 0.5
        assert config.total_rows == 5000
        assert config.wants_progress

    def test_cli_dsn_from_environment(self) -> None:
        """Test the connection string falls back to the environment."""
        args = ["--query", "select 1", "-f", "out.png"]
        with (
            patch.dict("os.environ", {"DATABASE_URL": "postgresql://reader@db/gis"}, clear=True),
            patch("glowlines.cli.run", return_value=_stats()) as mock_run,
        ):
            assert cli(args) == 0
        assert mock_run.call_args.args[0].dsn == "postgresql://reader@db/gis"

    def test_cli_query_from_file(self, tmp_path: Path) -> None:
        """Test @FILE reads the query and drops the trailing semicolon."""
        query_file = tmp_path / "streams.sql"
        query_file.write_text("select st_astext(shape), 1.0\nfrom streams;\n", encoding="utf-8")
        args = ["--pg", "dbname=gis", "--query", f"@{query_file}", "-f", "out.png"]
        with patch("glowlines.cli.run", return_value=_stats()) as mock_run:
            assert cli(args) == 0
        assert mock_run.call_args.args[0].query == "select st_astext(shape), 1.0\nfrom streams"

    def test_cli_missing_query_file(self, tmp_path: Path) -> None:
        """Test an unreadable query file is a usage error."""
        args = ["--pg", "dbname=gis", "--query", f"@{tmp_path / 'nope.sql'}", "-f", "out.png"]
        with patch("glowlines.cli.run") as mock_run:
            assert cli(args) == EXIT_USAGE
        mock_run.assert_not_called()

    def test_cli_unknown_format(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test an unsupported output extension is a configuration error."""
        args = ["--pg", "dbname=gis", "--query", "select 1", "-f", "out.gif"]
        with patch("glowlines.cli.run") as mock_run:
            assert cli(args) == 2
        mock_run.assert_not_called()
        assert "Unknown file format" in capsys.readouterr().out

    @pytest.mark.parametrize(
        ("error", "exit_code", "label"),
        [
            (DatabaseConnectionError("refused"), 3, "Database connection failed"),
            (QueryError("syntax error"), 4, "Query failed"),
            (ExtentComputationError("zero width"), 5, "Extent computation failed"),
            (OutputWriteError("read-only"), 6, "Output failed"),
        ],
    )
    def test_cli_error_exit_codes(
        self,
        error: Exception,
        exit_code: int,
        label: str,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Test each fatal error maps to its own exit code."""
        with patch("glowlines.cli.run", side_effect=error):
            assert cli(REQUIRED) == exit_code
        assert label in capsys.readouterr().out

    def test_cli_unexpected_error(self) -> None:
        """Test unexpected errors return 1."""
        with patch("glowlines.cli.run", side_effect=RuntimeError("boom")):
            assert cli(REQUIRED) == 1


class TestCreateParser:
    """Tests for argument parser."""

    def test_defaults(self) -> None:
        """Test parser defaults."""
        args = create_parser().parse_args([])
        assert args.dsn is None
        assert args.width == DEFAULT_IMAGE_WIDTH
        assert args.scale == 1.0
        assert args.progress is False
        assert args.total_rows is None

    def test_aliases(self) -> None:
        """Test short and alternate option names."""
        args = create_parser().parse_args(
            ["--dsn", "dbname=gis", "-q", "select 1", "-f", "a.svg", "-w", "10"]
        )
        assert args.dsn == "dbname=gis"
        assert args.query == "select 1"
        assert args.output == "a.svg"
        assert args.width == 10
