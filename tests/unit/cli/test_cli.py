from collections.abc import Callable
from pathlib import Path
from typing import Any

import anyio
import orjson
import pytest
import yaml
from cyclopts import App
from pytest_mock import MockerFixture

from npm_switcher.archive import SnapshotArchive, SnapshotService
from npm_switcher.cli import ExitCode
from npm_switcher.cli._app import register_commands
from npm_switcher.cli._shared import exit_with_error, format_json
from tests.conftest import DatabaseFactory, ProxyHostRow

CliRunner = Callable[..., int]

SSO_ROW = ProxyHostRow(
    id=1,
    domain_names='["sso.example.com"]',
    forward_host="10.0.0.1",
    forward_port=8080,
)


def _write_config(path: Path, data: dict[str, Any]) -> Path:
    _ = path.write_text(yaml.safe_dump(data, sort_keys=False))
    return path


class TestCommandRegistration:
    def test_registers_commands(self, mocker: MockerFixture) -> None:
        mock_app = mocker.MagicMock(spec=App)

        register_commands(mock_app)

        mock_app.default.assert_called_once()
        assert mock_app.command.call_count == 3


class TestShared:
    def test_exit_with_error_exits_with_code(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(SystemExit) as exc_info:
            exit_with_error("Snapshot 4 not found", ExitCode.NOT_FOUND)

        assert exc_info.value.code == ExitCode.NOT_FOUND
        assert "Error: Snapshot 4 not found" in capsys.readouterr().err

    def test_format_json(self) -> None:
        assert orjson.loads(format_json({"a": [1]})) == {"a": [1]}
        assert format_json([1, 2], indent=False) == "[1,2]"


class TestCheckConfig:
    def test_valid_config_prints_summary(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = switcher_cli("check-config", "--config", str(config_file))

        out = capsys.readouterr().out
        assert code == 0
        assert "Configuration OK" in out
        assert "sso" in out

    def test_json_output(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = switcher_cli("check-config", "-c", str(config_file), "--format", "json")

        data = orjson.loads(capsys.readouterr().out)
        assert code == 0
        assert data["config"] == str(config_file)
        service = data["services"][0]
        assert service["name"] == "sso"
        assert service["interval"] == 30.0
        assert service["retries"] == 2
        assert service["if_success"] == "(original)"
        assert service["if_failed"] == "10.0.0.9:8081"

    def test_missing_file_is_load_error(
        self,
        switcher_cli: CliRunner,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = switcher_cli("check-config", "-c", str(tmp_path / "nope.yml"))

        assert code == ExitCode.LOAD_ERROR
        assert "Configuration file not found" in capsys.readouterr().err

    def test_invalid_config_lists_issues(
        self,
        switcher_cli: CliRunner,
        tmp_path: Path,
        config_data: dict[str, Any],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        config_data["services"]["sso"]["retries"] = 20
        del config_data["log_file"]
        path = _write_config(tmp_path / "bad.yml", config_data)

        code = switcher_cli("check-config", "-c", str(path))

        err = capsys.readouterr().err
        assert code == ExitCode.VALIDATION_ERROR
        assert "Invalid configuration" in err
        assert "services.sso.retries" in err
        assert "log_file" in err


class TestSnapshotsCommands:
    def test_list_empty(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = switcher_cli("snapshots", "list", "-c", str(config_file))

        assert code == 0
        assert "No snapshots found." in capsys.readouterr().out

    def test_create_captures_record_targets(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        make_database: DatabaseFactory,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _ = make_database([SSO_ROW])

        code = switcher_cli(
            "snapshots", "create", "-c", str(config_file), "-d", "Before upgrade"
        )

        assert code == 0
        assert "Created snapshot 1: Before upgrade" in capsys.readouterr().out
        data = orjson.loads((tmp_path / "snapshots" / "snapshot-1.json").read_bytes())
        assert data["description"] == "Before upgrade"
        assert data["services"]["sso"] == {
            "host": "10.0.0.1",
            "port": 8080,
            "scheme": "http",
            "domain": "sso.example.com",
        }

    def test_create_reports_services_without_record(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        make_database: DatabaseFactory,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _ = make_database([])

        code = switcher_cli("snapshots", "create", "-c", str(config_file))

        out = capsys.readouterr().out
        assert code == 0
        assert "Skipped sso: no proxy record found" in out
        assert "Created snapshot 1: Manual snapshot" in out

    def test_create_without_database_is_io_error(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        tmp_path: Path,
    ) -> None:
        code = switcher_cli("snapshots", "create", "-c", str(config_file))

        assert code == ExitCode.IO_ERROR
        assert not (tmp_path / "snapshots" / "snapshot-1.json").exists()

    def test_list_and_show(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        service = SnapshotService(
            host="10.0.0.1", port=8080, scheme="http", domain="sso.example.com"
        )
        archive = SnapshotArchive(tmp_path / "snapshots")
        _ = anyio.run(archive.create_snapshot, "Known good", {"sso": service})

        list_code = switcher_cli("snapshots", "list", "-c", str(config_file))
        listing = capsys.readouterr().out
        show_code = switcher_cli("snapshots", "show", "1", "-c", str(config_file))
        shown = capsys.readouterr().out

        assert (list_code, show_code) == (0, 0)
        assert "Known good" in listing
        assert "Snapshot 1" in shown
        assert "http://10.0.0.1:8080" in shown

    def test_list_and_show_json(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        archive = SnapshotArchive(tmp_path / "snapshots")
        _ = anyio.run(archive.create_snapshot, "one", {})

        _ = switcher_cli(
            "snapshots", "list", "-c", str(config_file), "--format", "json"
        )
        listing = orjson.loads(capsys.readouterr().out)
        _ = switcher_cli(
            "snapshots", "show", "1", "-c", str(config_file), "--format", "json"
        )
        shown = orjson.loads(capsys.readouterr().out)

        assert listing[0]["id"] == 1
        assert listing[0]["services_count"] == 0
        assert shown["description"] == "one"

    def test_show_missing_is_not_found(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = switcher_cli("snapshots", "show", "9", "-c", str(config_file))

        assert code == ExitCode.NOT_FOUND
        assert "Snapshot 9 not found" in capsys.readouterr().err

    def test_show_rejects_zero(
        self, switcher_cli: CliRunner, config_file: Path
    ) -> None:
        assert switcher_cli("snapshots", "show", "0", "-c", str(config_file)) != 0

    def test_delete(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        archive = SnapshotArchive(tmp_path / "snapshots")
        _ = anyio.run(archive.create_snapshot, "one", {})

        first = switcher_cli("snapshots", "delete", "1", "-c", str(config_file))
        assert "Deleted snapshot 1" in capsys.readouterr().out
        second = switcher_cli("snapshots", "delete", "1", "-c", str(config_file))

        assert first == 0
        assert second == ExitCode.NOT_FOUND
        assert "Snapshot 1 not found" in capsys.readouterr().err


class TestRun:
    def test_missing_config_is_load_error(
        self, switcher_cli: CliRunner, tmp_path: Path
    ) -> None:
        code = switcher_cli("run", "-c", str(tmp_path / "missing.yml"))
        assert code == ExitCode.LOAD_ERROR

    def test_missing_database_fails_startup(
        self,
        switcher_cli: CliRunner,
        config_file: Path,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = switcher_cli("run", "-c", str(config_file))

        assert code == ExitCode.INTERNAL_ERROR
        assert "Startup failed" in capsys.readouterr().err
        assert not (tmp_path / "database.sqlite").exists()
        assert (tmp_path / "logs" / "switcher.log").exists()

    def test_unknown_snapshot_is_not_found(
        self,
        switcher_cli: CliRunner,
        tmp_path: Path,
        config_data: dict[str, Any],
        make_database: DatabaseFactory,
        write_conf: Callable[..., Path],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        config_data["nginx_refresh_cmd"] = "true -s reload"
        path = _write_config(tmp_path / "config.yml", config_data)
        _ = make_database([SSO_ROW])
        _ = write_conf(1, "sso.example.com", "10.0.0.1", 8080)

        code = switcher_cli("run", "-c", str(path), "--snapshot", "3")

        assert code == ExitCode.NOT_FOUND
        assert "Snapshot 3 not found" in capsys.readouterr().err
