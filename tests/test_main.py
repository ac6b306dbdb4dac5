"""Tests for the toggl2sheet entry point."""

import json
from unittest.mock import patch

import pytest
from docx import Document

from toggl2sheet.core.config import get_default_config
from toggl2sheet.main import build_parser, main

HEADER = "User,Email,Client,Project,Task,Description,Billable,Start date,Start time,End date,End time\n"
ROW = "Jane,jane@example.com,ACME,Alpha,,Coding,Yes,2024-03-04,09:07:00,2024-03-04,10:23:00\n"


@pytest.fixture
def config_path(tmp_path):
    csv_path = tmp_path / "export.csv"
    csv_path.write_text(HEADER + ROW, encoding="utf-8")
    path = tmp_path / "config.json"
    path.write_text(json.dumps(dict(get_default_config(), csv_file_path=str(csv_path))), encoding="utf-8")
    return path


class TestBuildParser:
    """Tests for CLI argument parsing."""

    def test_no_args_defaults_to_server(self):
        parsed = build_parser().parse_args([])
        assert parsed.print_report is False
        assert parsed.export is None

    def test_print_flag_with_range(self):
        parsed = build_parser().parse_args(["--print", "--start", "2024-03-01", "--grouping", "TITLE"])
        assert parsed.print_report is True
        assert parsed.start == "2024-03-01"
        assert parsed.grouping == "TITLE"

    def test_print_and_export_mutually_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--print", "--export", "out.docx"])


class TestMain:
    def test_print_report(self, config_path, capsys):
        code = main(["--config", str(config_path), "--print", "--start", "2024-03-04", "--end", "2024-03-04"])
        assert code == 0
        out = capsys.readouterr().out
        assert "Ist-Leistung: 1:30" in out
        assert "KW 10:" in out
        assert "2024-03-04\n  Coding:\t1:30" in out

    def test_export(self, config_path, tmp_path, capsys):
        target = tmp_path / "reports" / "march.docx"
        code = main(["--config", str(config_path), "--export", str(target),
                     "--start", "2024-03-04", "--end", "2024-03-05"])
        assert code == 0
        assert target.exists()
        assert str(target) in capsys.readouterr().out
        assert len(Document(str(target)).tables) >= 1

    def test_errors_return_nonzero(self, config_path):
        code = main(["--config", str(config_path), "--print", "--grouping", "bogus"])
        assert code == 1

    @patch("toggl2sheet.ui.web.run_server")
    def test_server_mode(self, mock_run, config_path):
        assert main(["--config", str(config_path)]) == 0
        mock_run.assert_called_once()
        assert mock_run.call_args[0][0]["csv_file_path"].endswith("export.csv")
