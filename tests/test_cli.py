import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import stackseed.config as config
import stackseed.create as create_module
import stackseed.doctor as doctor_module
from stackseed import __version__
from stackseed.cli import EXIT_ERROR, EXIT_OK, app
from stackseed.packages import InstallError

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch):
    monkeypatch.delenv(config.CONFIG_ENV, raising=False)
    monkeypatch.delenv(config.TEMPLATES_DIR_ENV, raising=False)
    monkeypatch.setattr(config, "DEFAULT_CONFIG_PATH", tmp_path / "no-config.yml")


def _parse_json_output(output: str) -> dict:
    lines = [line for line in output.splitlines() if line.strip()]
    return json.loads(lines[-1])


def _create_args(tmp_path: Path, *extra: str) -> list[str]:
    return [
        "--no-git",
        "--package-manager",
        "npm",
        "--destination",
        str(tmp_path),
        "--templates-dir",
        str(tmp_path / "no-templates"),
        "--format",
        "json",
        *extra,
    ]


def test_bare_project_name_creates_project(tmp_path: Path):
    result = runner.invoke(app, ["my-site", "--portfolio", "--no-install", *_create_args(tmp_path)])

    assert result.exit_code == EXIT_OK
    payload = _parse_json_output(result.stdout)
    assert payload["ok"] is True
    assert payload["command"] == "create"
    assert payload["data"]["template"] == "portfolio"
    assert payload["data"]["source"] == "bootstrapped"
    assert payload["data"]["next_steps"] == ["cd my-site", "npm install", "npm run dev"]
    readme = (tmp_path / "my-site" / "README.md").read_text(encoding="utf-8")
    assert readme.startswith("# my-site\n")


def test_create_subcommand_with_features(tmp_path: Path):
    result = runner.invoke(
        app,
        ["create", "shop", "--ecom", "--typescript", "--tailwind", "--no-install", *_create_args(tmp_path)],
    )

    assert result.exit_code == EXIT_OK
    manifest = json.loads((tmp_path / "shop" / "package.json").read_text(encoding="utf-8"))
    assert manifest["name"] == "shop"
    assert "typescript" in manifest["devDependencies"]
    assert "tailwindcss" in manifest["devDependencies"]


def test_invalid_project_name_exits_with_error(tmp_path: Path):
    result = runner.invoke(app, ["Bad Name", "--webapp", "--no-install", *_create_args(tmp_path)])

    assert result.exit_code == EXIT_ERROR
    payload = _parse_json_output(result.stdout)
    assert payload["ok"] is False
    assert payload["error"]["code"] == "invalid_project_name"
    assert "name can no longer contain capital letters" in payload["error"]["details"]
    assert not (tmp_path / "Bad Name").exists()


def test_non_empty_target_exits_with_error(tmp_path: Path):
    target = tmp_path / "my-site"
    target.mkdir()
    (target / "existing.txt").write_text("hello", encoding="utf-8")

    result = runner.invoke(app, ["my-site", "--dashboard", "--no-install", *_create_args(tmp_path)])

    assert result.exit_code == EXIT_ERROR
    payload = _parse_json_output(result.stdout)
    assert payload["error"]["code"] == "target_not_empty"
    assert [path.name for path in target.iterdir()] == ["existing.txt"]


def test_install_failure_still_exits_ok(tmp_path: Path, monkeypatch):
    def failing_install(path, package_manager):
        raise InstallError("Package installation failed with code 1")

    monkeypatch.setattr(create_module, "install_dependencies", failing_install)

    result = runner.invoke(app, ["my-site", "--portfolio", *_create_args(tmp_path)])

    assert result.exit_code == EXIT_OK
    payload = _parse_json_output(result.stdout)
    assert payload["data"]["installed"] is False
    assert payload["data"]["warnings"]
    assert (tmp_path / "my-site" / "pages" / "index.js").exists()


def test_template_prompt_when_no_flag(tmp_path: Path):
    result = runner.invoke(
        app,
        ["picked", "--no-install", "--no-git", "--package-manager", "npm", "--destination", str(tmp_path)],
        input="3\n",
    )

    assert result.exit_code == EXIT_OK
    assert "Which template would you like to use?" in result.stdout
    manifest = json.loads((tmp_path / "picked" / "package.json").read_text(encoding="utf-8"))
    assert "recharts" in manifest["dependencies"]


def test_template_prompt_keeps_json_output_on_one_line(tmp_path: Path):
    result = runner.invoke(app, ["picked", "--no-install", *_create_args(tmp_path)], input="2\n")

    assert result.exit_code == EXIT_OK
    assert "Which template would you like to use?" not in result.stdout
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    assert len(lines) == 1
    assert json.loads(lines[0])["data"]["template"] == "ecom"


def test_destination_that_is_a_file_exits_with_error(tmp_path: Path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    args = _create_args(tmp_path)
    args[args.index("--destination") + 1] = str(blocker)

    result = runner.invoke(app, ["my-site", "--portfolio", "--no-install", *args])

    assert result.exit_code == EXIT_ERROR
    payload = _parse_json_output(result.stdout)
    assert payload["ok"] is False
    assert payload["error"]["code"] == "target_unavailable"
    assert blocker.read_text(encoding="utf-8") == "not a directory"


def test_missing_config_file_exits_with_error(tmp_path: Path):
    result = runner.invoke(
        app,
        ["my-site", "--portfolio", "--config", str(tmp_path / "missing.yml"), *_create_args(tmp_path)],
    )

    assert result.exit_code == EXIT_ERROR
    payload = _parse_json_output(result.stdout)
    assert payload["error"]["code"] == "config_error"


def test_config_file_disables_install(tmp_path: Path, monkeypatch):
    calls = []
    monkeypatch.setattr(create_module, "install_dependencies", lambda path, manager: calls.append(path))
    settings = tmp_path / "settings.yml"
    settings.write_text("install: false\n", encoding="utf-8")

    result = runner.invoke(app, ["my-site", "--webapp", "--config", str(settings), *_create_args(tmp_path)])

    assert result.exit_code == EXIT_OK
    assert calls == []
    assert _parse_json_output(result.stdout)["data"]["installed"] is False


def test_info_json_output_schema():
    result = runner.invoke(app, ["info", "--format", "json"])

    assert result.exit_code == EXIT_OK
    payload = _parse_json_output(result.stdout)
    assert payload["command"] == "info"
    assert {"stackseed", "python", "platform", "architecture", "node"} <= set(payload["data"])


def test_doctor_never_fails(monkeypatch):
    monkeypatch.setattr(doctor_module, "probe_tool", lambda command: None)

    result = runner.invoke(app, ["doctor", "--format", "json"])

    assert result.exit_code == EXIT_OK
    payload = _parse_json_output(result.stdout)
    tools = {tool["name"]: tool for tool in payload["data"]["tools"]}
    assert set(tools) == {"node", "npm", "git", "yarn", "pnpm"}
    assert tools["git"]["found"] is False
    assert tools["git"]["required"] is True
    assert tools["yarn"]["required"] is False


def test_version_json_output():
    result = runner.invoke(app, ["version", "--format", "json"])

    assert result.exit_code == EXIT_OK
    payload = _parse_json_output(result.stdout)
    assert payload["command"] == "version"
    assert payload["data"] == {"version": __version__}
