from click.testing import CliRunner

import sqldeployer.cli as cli_module
from sqldeployer.models import (
    FolderActionInputs,
    PackageAction,
    PackageActionInputs,
    ScriptActionInputs,
)

CONNECTION_STRING = "Server=srv01;Initial Catalog=salesdb;User Id=deploy;Password=pa55"


def _fake_dispatcher(monkeypatch, exit_code=0):
    captured = {}

    class FakeDispatcher:
        def __init__(self, **kwargs):
            captured.update(kwargs)

        def run(self, inputs):
            captured["inputs"] = inputs
            return exit_code

    monkeypatch.setattr(cli_module, "ActionDispatcher", FakeDispatcher)
    return captured


def test_cli_infers_package_action_from_path(monkeypatch):
    captured = _fake_dispatcher(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--connection-string", CONNECTION_STRING, "--path", "build/app.dacpac", "--arguments", "/p:X=1"],
    )

    assert result.exit_code == 0
    inputs = captured["inputs"]
    assert isinstance(inputs, PackageActionInputs)
    assert inputs.server_name == "srv01"
    assert inputs.package_path == "build/app.dacpac"
    assert inputs.package_action is PackageAction.PUBLISH
    assert inputs.additional_arguments == "/p:X=1"


def test_cli_infers_folder_and_script_actions(tmp_path, monkeypatch):
    captured = _fake_dispatcher(monkeypatch)
    runner = CliRunner()

    result = runner.invoke(
        cli_module.main,
        ["--connection-string", CONNECTION_STRING, "--path", str(tmp_path), "--server-name", "other"],
    )
    assert result.exit_code == 0
    assert isinstance(captured["inputs"], FolderActionInputs)
    assert captured["inputs"].server_name == "other"

    result = runner.invoke(
        cli_module.main,
        ["--connection-string", CONNECTION_STRING, "--path", "seed.sql"],
    )
    assert result.exit_code == 0
    assert isinstance(captured["inputs"], ScriptActionInputs)
    assert captured["inputs"].script_file == "seed.sql"


def test_cli_uses_config_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / "deploy.yml"
    config_file.write_text(
        f"connection_string: '{CONNECTION_STRING}'\n"
        "path: config.dacpac\n"
        "sqlpackage_action: deployreport\n"
        "timeout: 45\n",
        encoding="utf-8",
    )
    captured = _fake_dispatcher(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--config", str(config_file), "--path", "cli.dacpac", "--timeout", "90"],
    )

    assert result.exit_code == 0
    assert captured["inputs"].package_path == "cli.dacpac"
    assert captured["inputs"].package_action is PackageAction.DEPLOY_REPORT
    assert captured["timeout"] == 90.0


def test_cli_uses_default_config_file_when_present(tmp_path, monkeypatch):
    default_config = tmp_path / ".sqldeployer.yml"
    default_config.write_text(
        f"connection_string: '{CONNECTION_STRING}'\n" "path: seed.sql\n" "action: folder\n",
        encoding="utf-8",
    )
    captured = _fake_dispatcher(monkeypatch)
    monkeypatch.chdir(tmp_path)

    runner = CliRunner()
    result = runner.invoke(cli_module.main, [])

    assert result.exit_code == 0
    assert isinstance(captured["inputs"], FolderActionInputs)
    assert captured["inputs"].script_folder == "seed.sql"


def test_cli_propagates_dispatcher_exit_code(monkeypatch):
    _fake_dispatcher(monkeypatch, exit_code=1)

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--connection-string", CONNECTION_STRING, "--path", "seed.sql"],
    )

    assert result.exit_code == 1


def test_cli_rejects_invalid_connection_string(monkeypatch):
    _fake_dispatcher(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--connection-string", "Server=srv01;User Id=u;Password=p", "--path", "seed.sql"],
    )

    assert result.exit_code != 0
    assert "missing the database" in result.output


def test_cli_requires_server_name_when_connection_string_has_none(monkeypatch):
    _fake_dispatcher(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--connection-string", "Database=db;User Id=u;Password=p", "--path", "seed.sql"],
    )

    assert result.exit_code != 0
    assert "--server-name" in result.output


def test_cli_rejects_unknown_path_type(monkeypatch):
    _fake_dispatcher(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--connection-string", CONNECTION_STRING, "--path", "notes.txt"],
    )

    assert result.exit_code != 0
    assert "Cannot infer the action" in result.output


def test_cli_reports_non_numeric_config_timeout(tmp_path, monkeypatch):
    config_file = tmp_path / "deploy.yml"
    config_file.write_text(
        f"connection_string: '{CONNECTION_STRING}'\n" "path: seed.sql\n" "timeout: soon\n",
        encoding="utf-8",
    )
    _fake_dispatcher(monkeypatch)

    runner = CliRunner()
    result = runner.invoke(cli_module.main, ["--config", str(config_file)])

    assert result.exit_code == 1
    assert "must be a number of seconds" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
