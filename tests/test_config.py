"""
Tests for configuration loading — machine.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from newmachine.core.config.loader import (
    ConfigError,
    default_config_path,
    find_config_file,
    load_config,
)
from newmachine.core.models.config import DEFAULT_APT_PACKAGES, MachineConfig


@pytest.fixture
def machine_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        runtimes:
          go: "1.23.2"
          node: "20.18.0"
        apt_packages: [git, curl, jq]
        vscode_extensions:
          - golang.go
        dotfiles_repo: https://github.com/me/dotfiles
        ghq_root: ~/src
        shell_rc: ~/.zshrc.local
    """)
    path = tmp_path / "machine.yml"
    path.write_text(content)
    return path


class TestLoadConfig:
    def test_load_values(self, machine_yml: Path):
        config = load_config(machine_yml)
        assert config.runtimes == {"go": "1.23.2", "node": "20.18.0"}
        assert config.apt_packages == ["git", "curl", "jq"]
        assert config.vscode_extensions == ["golang.go"]
        assert config.dotfiles_repo == "https://github.com/me/dotfiles"
        assert config.ghq_root == "~/src"
        assert config.shell_rc == "~/.zshrc.local"

    def test_unset_keys_keep_defaults(self, machine_yml: Path):
        config = load_config(machine_yml)
        assert config.go_tools is None
        assert config.brew_formulae == ["git"]

    def test_empty_file_is_defaults(self, tmp_path: Path):
        path = tmp_path / "machine.yml"
        path.write_text("")
        assert load_config(path) == MachineConfig()

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "machine.yml"
        path.write_text("runtimes: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "machine.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_config(path)

    def test_unknown_key_rejected(self, tmp_path: Path):
        path = tmp_path / "machine.yml"
        path.write_text("runtime:\n  go: '1.24'\n")
        with pytest.raises(ConfigError, match="Invalid machine configuration"):
            load_config(path)

    def test_unquoted_runtime_pin(self, tmp_path: Path):
        path = tmp_path / "machine.yml"
        path.write_text("runtimes:\n  python: 3.12\n")
        with pytest.raises(ConfigError, match="runtime pin for 'python' must be a quoted string"):
            load_config(path)

    def test_no_file_anywhere(self, tmp_path: Path, monkeypatch):
        monkeypatch.delenv("NEWMACHINE_CONFIG", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert load_config() == MachineConfig()


class TestFindConfigFile:
    def test_env_var_wins(self, tmp_path: Path):
        found = find_config_file(env={"NEWMACHINE_CONFIG": "/etc/machine.yml"}, home=str(tmp_path))
        assert found == Path("/etc/machine.yml")

    def test_user_config_dir(self, tmp_path: Path):
        path = default_config_path(str(tmp_path))
        path.parent.mkdir(parents=True)
        path.write_text("")
        assert find_config_file(env={}, home=str(tmp_path)) == path

    def test_nothing_found(self, tmp_path: Path):
        assert find_config_file(env={}, home=str(tmp_path)) is None


def test_default_apt_packages():
    assert MachineConfig().apt_packages == DEFAULT_APT_PACKAGES
    assert "build-essential" in DEFAULT_APT_PACKAGES
