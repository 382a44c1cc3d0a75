"""
Tests for CLI commands — run, status, plan and global options.
"""

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from newmachine.adapters.mock import MockAdapter
from newmachine.adapters.registry import AdapterRegistry
from newmachine.core.use_cases import provision, status
from newmachine.main import cli

ADAPTER_NAMES = [
    "precondition", "script", "homebrew", "brew", "apt", "apt_repo", "login_shell",
    "group", "mise", "go_install", "rc_block", "git_config", "dotfiles", "vscode",
]


class MockRegistry:
    """One MockAdapter per production adapter name, sharing failures."""

    def __init__(self) -> None:
        self.registry = AdapterRegistry()
        self.adapters = {name: MockAdapter(name) for name in ADAPTER_NAMES}
        for adapter in self.adapters.values():
            self.registry.register(adapter)

    def fail(self, adapter: str, step_id: str, error: str) -> None:
        self.adapters[adapter].set_failure(step_id, error)


@pytest.fixture
def mocks(monkeypatch) -> MockRegistry:
    mocks = MockRegistry()
    monkeypatch.setattr(provision, "build_registry", lambda: mocks.registry)
    monkeypatch.setattr(status, "build_registry", lambda: mocks.registry)
    return mocks


@pytest.fixture
def config_args(empty_config: Path) -> list[str]:
    return ["--config", str(empty_config)]


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "provision a fresh Mac or Ubuntu server" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_unknown_profile_rejected(self, config_args):
        result = CliRunner().invoke(cli, [*config_args, "plan", "--profile", "windows"])
        assert result.exit_code == 2


# ── run ─────────────────────────────────────────────────────────────


class TestRunCommand:
    def test_run_installs_and_summarises(self, mocks, config_args):
        result = CliRunner().invoke(cli, [*config_args, "run", "--profile", "server"])

        assert result.exit_code == 0, result.output
        assert "[INFO] ✓ GitHub CLI installed" in result.output
        assert "Setup complete!" in result.output
        assert "Base packages:" in result.output
        assert "Run 'source ~/.bashrc' or open a new terminal." in result.output
        assert "node --version" in result.output

    def test_header_shown_before_steps(self, mocks, config_args):
        result = CliRunner().invoke(cli, [*config_args, "run", "--profile", "server"])

        assert "New Server Setup" in result.output
        assert "apt packages, Docker, GitHub CLI, mise and your runtimes" in result.output
        assert result.output.index("New Server Setup") < result.output.index("[INFO]")

    def test_second_run_reports_already_installed(self, mocks, config_args):
        runner = CliRunner()
        runner.invoke(cli, [*config_args, "run", "--profile", "server"])

        result = runner.invoke(cli, [*config_args, "run", "--profile", "server"])

        assert result.exit_code == 0
        assert "⊘ GitHub CLI already installed" in result.output
        assert "0 installed" in result.output

    def test_recoverable_failure_warns(self, mocks, config_args):
        mocks.fail("apt", "apt-ripgrep", "E: Unable to locate package ripgrep")

        result = CliRunner().invoke(cli, [*config_args, "run", "--profile", "server"])

        assert result.exit_code == 0
        assert "[WARN] ✗ ripgrep failed, continuing: E: Unable to locate package ripgrep" in result.output
        assert "ripgrep (failed: E: Unable to locate package ripgrep)" in result.output

    def test_fatal_failure_exits_with_step_code(self, mocks, config_args):
        mocks.fail("precondition", "xcode-clt", "Xcode Command Line Tools are not installed.")

        result = CliRunner().invoke(cli, [*config_args, "run", "--profile", "macos"])

        assert result.exit_code == 5
        assert "[ERROR] Xcode Command Line Tools: Xcode Command Line Tools are not installed." in result.output
        assert "xcode-select --install" in result.output
        assert "Setup halted at 'xcode-clt' (exit 5)" in result.output
        assert mocks.adapters["homebrew"].install_log == []

    def test_halted_run_still_summarises(self, mocks, config_args):
        mocks.fail("script", "mise", "curl: (6) Could not resolve host")

        result = CliRunner().invoke(cli, [*config_args, "run", "--profile", "server"])

        assert result.exit_code == 6
        assert "Setup halted at 'mise' (exit 6)" in result.stderr
        assert "Base packages:" in result.stdout
        assert "GitHub CLI" in result.stdout
        assert "mise (version manager) (failed: curl: (6) Could not resolve host)" in result.stdout
        assert "source ~/.bashrc" not in result.stdout
        assert "Verify with:" not in result.stdout

    def test_group_note_surfaced(self, mocks, config_args, monkeypatch):
        from newmachine.core.models.receipt import Receipt

        def install_with_note(step, context):
            return Receipt.success("group", step.id, metadata={"notes": ["Log out/in for docker group"]})

        monkeypatch.setattr(mocks.adapters["group"], "install", install_with_note)

        result = CliRunner().invoke(cli, [*config_args, "run", "--profile", "server"])

        assert result.exit_code == 0
        assert "[WARN] Log out/in for docker group" in result.output

    def test_json(self, mocks, config_args):
        mocks.fail("script", "mise", "curl failed")

        result = CliRunner().invoke(cli, [*config_args, "run", "--profile", "server", "--json"])

        assert result.exit_code == 6
        data = json.loads(result.stdout)
        assert data["profile"] == "server"
        assert data["report"]["status"] == "halted"
        assert data["report"]["halted_at"] == "mise"

    def test_bad_config_exits_1(self, mocks, tmp_path):
        bad = tmp_path / "machine.yml"
        bad.write_text("bogus_key: 1\n")

        result = CliRunner().invoke(cli, ["--config", str(bad), "run", "--profile", "server"])

        assert result.exit_code == 1
        assert "[ERROR] Invalid machine configuration" in result.output
        assert mocks.adapters["precondition"].check_log == []

    def test_missing_config_exits_1(self, mocks, tmp_path):
        result = CliRunner().invoke(
            cli, ["--config", str(tmp_path / "nope.yml"), "run", "--profile", "server", "--json"],
        )

        assert result.exit_code == 1
        assert "not found" in json.loads(result.stdout)["error"]


# ── status / plan ───────────────────────────────────────────────────


class TestStatusCommand:
    def test_status_never_installs(self, mocks, config_args):
        mocks.adapters["apt"].set_present("apt-git")

        result = CliRunner().invoke(cli, [*config_args, "status", "--profile", "server"])

        assert result.exit_code == 0
        assert "✓ git" in result.output
        assert "✗ curl" in result.output
        assert "Installers:" in result.output
        assert all(a.install_log == [] for a in mocks.adapters.values())

    def test_status_shows_installer_availability(self, monkeypatch, config_args):
        registry = AdapterRegistry()
        for name in ADAPTER_NAMES:
            registry.register(MockAdapter(name, available=name != "apt"))
        monkeypatch.setattr(status, "build_registry", lambda: registry)

        result = CliRunner().invoke(cli, [*config_args, "status", "--profile", "server", "--json"])

        adapters = json.loads(result.stdout)["adapters"]
        assert adapters["apt"] is False
        assert adapters["mise"] is True
        assert "homebrew" not in adapters

    def test_status_json(self, mocks, config_args):
        mocks.adapters["precondition"].set_present("os")

        result = CliRunner().invoke(cli, [*config_args, "status", "--profile", "macos", "--json"])

        data = json.loads(result.stdout)
        assert data["profile"] == "macos"
        assert data["present"] == 1
        assert data["steps"][0]["id"] == "os"
        assert data["steps"][0]["present"] is True


class TestPlanCommand:
    def test_plan_lists_steps(self, config_args):
        result = CliRunner().invoke(cli, [*config_args, "plan", "--profile", "macos"])

        assert result.exit_code == 0
        assert "Xcode Command Line Tools" in result.output
        assert "[fatal, exit 5]" in result.output

    def test_plan_json(self, config_args):
        result = CliRunner().invoke(cli, [*config_args, "plan", "--profile", "server", "--json"])

        assert result.exit_code == 0
        steps = json.loads(result.stdout)["steps"]
        assert steps[0] == {
            "id": "os",
            "label": "Linux",
            "category": "prerequisites",
            "adapter": "precondition",
            "classification": "fatal",
            "kind": "precondition",
            "exit_code": 2,
        }
