"""Unit tests for the local runner."""

import json
from unittest.mock import patch

import pytest

from lognorm.exceptions import DuplicateNameError
from lognorm.runner import EXIT_OK, EXIT_STARTUP, main, parse_args

pytestmark = pytest.mark.unit


class TestParseArgs:
    def test_arguments(self):
        args = parse_args(["--log-type", "Zeek.DNS", "--sink", "s3", "a.log", "b.log"])
        assert args.log_type == "Zeek.DNS"
        assert args.sink == "s3"
        assert args.sources == ["a.log", "b.log"]

    def test_sources_required(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestMain:
    def test_processes_files(self, tmp_path, test_settings, capsys):
        path = tmp_path / "access.log"
        path.write_text(
            '192.0.2.10 - - [01/Jan/2021:00:00:00 +0000] "GET / HTTP/1.1" 200 10 "-" "curl/7.68.0"\n'
        )
        with patch("lognorm.runner.get_settings", return_value=test_settings):
            code = main(["--log-type", "Apache.AccessCombined", "--report", str(path)])

        assert code == EXIT_OK
        [report] = json.loads(capsys.readouterr().out)
        assert report["events"] == 1
        assert list((tmp_path / "output").rglob("*.json.gz"))

    def test_registry_failure_exits_2(self, tmp_path, test_settings):
        with (
            patch("lognorm.runner.get_settings", return_value=test_settings),
            patch("lognorm.runner.bootstrap_registry", side_effect=DuplicateNameError("DNS")),
        ):
            assert main([str(tmp_path / "x.log")]) == EXIT_STARTUP

    def test_unknown_log_type_exits_2(self, tmp_path, test_settings):
        with patch("lognorm.runner.get_settings", return_value=test_settings):
            assert main(["--log-type", "Nope", str(tmp_path / "x.log")]) == EXIT_STARTUP
