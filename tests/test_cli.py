"""
Tests for CLI commands — add, status, remove, config check, global options.
"""

import json
import textwrap
from pathlib import Path

from click.testing import CliRunner

from registrar.adapters.mock import MockTools
from registrar.core.models.pacman_conf import PacmanConf
from registrar.main import cli


def _write_settings(tmp_path: Path, conf: Path, extra: str = "") -> Path:
    content = textwrap.dedent(f"""\
        repository:
          name: example_repo
          url: https://example.test/$arch
        key_url: https://example.test/{{arch}}/example_repo.key
        pacman_conf: {conf}
    """) + extra
    path = tmp_path / "registrar.yml"
    path.write_text(content)
    return path


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Repository Registrar" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestAddCommand:
    def test_add(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        result = CliRunner().invoke(cli, ["--config", str(config), "add"], obj={"tools": MockTools()})
        assert result.exit_code == 0, result.output
        assert "example_repo" in result.output
        assert "fresh install" in result.output
        assert "registrar remove" in result.output
        assert PacmanConf.parse(pacman_conf.read_text()).count("example_repo") == 1

    def test_add_twice_exits_zero(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(config), "add"], obj={"tools": MockTools()})
        result = runner.invoke(cli, ["--config", str(config), "add"], obj={"tools": MockTools()})
        assert result.exit_code == 0
        assert "already configured" in result.output
        assert PacmanConf.parse(pacman_conf.read_text()).count("example_repo") == 1

    def test_add_again_with_abort_policy_and_no_key_exits_zero(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf, extra="key_failure: abort\n")
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(config), "add"], obj={"tools": MockTools()})
        result = runner.invoke(
            cli, ["-q", "--config", str(config), "add", "--json"], obj={"tools": MockTools(fetch_error="down")},
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "already_present"
        assert data["sig_level"] == "Required"

    def test_add_json(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        result = CliRunner().invoke(
            cli, ["--config", str(config), "add", "--json"], obj={"tools": MockTools()},
        )
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "installed"
        assert data["trust"]["state"] == "trusted"

    def test_add_degraded_key(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        tools = MockTools(fetch_error="offline")
        result = CliRunner().invoke(cli, ["--config", str(config), "add"], obj={"tools": tools})
        assert result.exit_code == 0
        assert "relaxed signature policy" in result.output

    def test_add_not_root(self, monkeypatch, as_root, tmp_path: Path, pacman_conf: Path):
        import registrar.core.services.preconditions as pre

        monkeypatch.setattr(pre, "current_euid", lambda: 1000)
        config = _write_settings(tmp_path, pacman_conf)
        result = CliRunner().invoke(cli, ["--config", str(config), "add"], obj={"tools": MockTools()})
        assert result.exit_code == 1
        assert "root" in result.output

    def test_pacman_conf_override(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, tmp_path / "does-not-exist.conf")
        result = CliRunner().invoke(
            cli,
            ["--config", str(config), "--pacman-conf", str(pacman_conf), "add", "--no-verify"],
            obj={"tools": MockTools()},
        )
        assert result.exit_code == 0, result.output
        assert PacmanConf.parse(pacman_conf.read_text()).has_section("example_repo")

    def test_missing_config(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = CliRunner().invoke(cli, ["add"], obj={"tools": MockTools()})
        assert result.exit_code == 1
        assert "No registrar.yml" in result.output


class TestStatusCommand:
    def test_not_configured(self, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        result = CliRunner().invoke(cli, ["--config", str(config), "status"])
        assert result.exit_code == 0
        assert "not configured" in result.output

    def test_configured_json(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(config), "add"], obj={"tools": MockTools()})
        result = runner.invoke(cli, ["--config", str(config), "status", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["present"] is True
        assert data["servers"] == ["https://example.test/$arch"]
        assert data["sig_level"] == "Required"
        assert len(data["backups"]) == 1

    def test_missing_pacman_conf(self, tmp_path: Path):
        config = _write_settings(tmp_path, tmp_path / "missing.conf")
        result = CliRunner().invoke(cli, ["--config", str(config), "status"])
        assert result.exit_code == 1


class TestRemoveCommand:
    def test_remove(self, as_root, tmp_path: Path, pacman_conf: Path, stock_text: str):
        config = _write_settings(tmp_path, pacman_conf)
        runner = CliRunner()
        runner.invoke(cli, ["--config", str(config), "add"], obj={"tools": MockTools()})
        result = runner.invoke(cli, ["--config", str(config), "remove"], obj={"tools": MockTools()})
        assert result.exit_code == 0
        assert "removed" in result.output
        assert pacman_conf.read_text() == stock_text

    def test_remove_absent(self, as_root, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        tools = MockTools()
        result = CliRunner().invoke(cli, ["--config", str(config), "remove", "--json"], obj={"tools": tools})
        assert result.exit_code == 0
        assert json.loads(result.output)["removed"] is False
        assert "sync_metadata" not in tools.operations


class TestConfigCheck:
    def test_valid(self, tmp_path: Path, pacman_conf: Path):
        config = _write_settings(tmp_path, pacman_conf)
        result = CliRunner().invoke(cli, ["--config", str(config), "config", "check"])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "registrar.yml"
        path.write_text("repository:\n  name: r\n  url: https://no-placeholder.test/\n")
        result = CliRunner().invoke(cli, ["--config", str(path), "config", "check", "--json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["valid"] is False
        assert data["errors"]
