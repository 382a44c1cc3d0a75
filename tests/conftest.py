"""
Shared test fixtures and configuration.

``FakeRunner`` stands in for ``run_command``: rules map argv prefixes
(or script fragments) to canned results or to actions that change the
simulated machine. ``FakeMachine`` is a home directory plus a PATH
directory under ``tmp_path``; ``ubuntu`` and ``macos`` script a fresh
server and a fully provisioned Mac on top of it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from newmachine.adapters.packages.apt import APT_GET
from newmachine.adapters.shell.command import CommandResult
from newmachine.adapters.shell.rc_file import render_block
from newmachine.core.context import ProvisionContext

Action = Callable[[list[str], ProvisionContext], CommandResult | None]


@dataclass
class Call:
    argv: list[str]
    sudo: bool = False
    capture: bool = True
    env_overrides: dict[str, str] = field(default_factory=dict)

    @property
    def line(self) -> str:
        return " ".join(self.argv)


@dataclass
class _Rule:
    matches: Callable[[list[str]], bool]
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    action: Action | None = None


class FakeRunner:
    """Scripted stand-in for ``run_command``. Later rules win."""

    def __init__(self) -> None:
        self.calls: list[Call] = []
        self._rules: list[_Rule] = []

    def on(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "",
           action: Action | None = None) -> FakeRunner:
        def matches(argv: list[str]) -> bool:
            return argv[: len(prefix)] == list(prefix)

        self._rules.append(_Rule(matches, returncode, stdout, stderr, action))
        return self

    def on_script(self, fragment: str, *, returncode: int = 0, stdout: str = "",
                  stderr: str = "", action: Action | None = None) -> FakeRunner:
        def matches(argv: list[str]) -> bool:
            return fragment in " ".join(argv)

        self._rules.append(_Rule(matches, returncode, stdout, stderr, action))
        return self

    def __call__(self, argv, context, *, sudo=False, capture=True, timeout=None,
                 env_overrides=None) -> CommandResult:
        argv = list(argv)
        self.calls.append(Call(argv, sudo, capture, dict(env_overrides or {})))
        for rule in reversed(self._rules):
            if rule.matches(argv):
                if rule.action is not None:
                    result = rule.action(argv, context)
                    if result is not None:
                        return result
                return CommandResult(argv=argv, returncode=rule.returncode,
                                     stdout=rule.stdout, stderr=rule.stderr)
        return CommandResult(argv=argv, returncode=127, stderr=f"{argv[0]}: command not found")

    def lines(self) -> list[str]:
        return [c.line for c in self.calls]

    def reset(self) -> None:
        self.calls.clear()


def make_executable(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755)
    return path


class FakeMachine:
    """A home directory and a PATH directory under tmp_path."""

    def __init__(self, root: Path, system: str = "Linux") -> None:
        self.root = root
        self.system = system
        self.user = "dev"
        self.home = root / "home"
        self.bin = root / "bin"
        self.home.mkdir(parents=True, exist_ok=True)
        self.bin.mkdir(parents=True, exist_ok=True)
        self.runner = FakeRunner()
        self.shell = "/bin/bash"
        self.extra_env: dict[str, str] = {}

    def context(self) -> ProvisionContext:
        """A fresh context, as a new process would see the machine."""
        env = {"HOME": str(self.home), "PATH": str(self.bin), "SHELL": self.shell}
        env.update(self.extra_env)
        return ProvisionContext(home=str(self.home), user=self.user, system=self.system, env=env)

    def add_command(self, name: str) -> Path:
        return make_executable(self.bin / name)

    def path(self, relative: str) -> Path:
        return self.home / relative


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def machine(tmp_path: Path) -> FakeMachine:
    return FakeMachine(tmp_path / "machine")


@pytest.fixture
def context(machine: FakeMachine) -> ProvisionContext:
    return machine.context()


@pytest.fixture
def empty_config(tmp_path: Path) -> Path:
    """An empty machine.yml: every setting at its default."""
    path = tmp_path / "machine.yml"
    path.write_text("")
    return path


# ── Simulated machines ──────────────────────────────────────────────

APT_BINARIES = {
    "git": "git",
    "curl": "curl",
    "ripgrep": "rg",
    "docker-ce": "docker",
    "gh": "gh",
}


@pytest.fixture
def ubuntu(machine: FakeMachine) -> FakeMachine:
    """A fresh Ubuntu server: apt-get and nothing else."""
    machine.system = "Linux"
    machine.add_command("apt-get")
    dpkg: set[str] = set()
    groups = {machine.user}
    git_config: dict[str, str] = {}
    machine.dpkg = dpkg
    machine.groups = groups
    machine.git_config = git_config
    runner = machine.runner

    def dpkg_status(argv, ctx):
        if argv[2] in dpkg:
            return CommandResult(argv, 0, stdout="Status: install ok installed\n")
        return CommandResult(argv, 1, stderr=f"package '{argv[2]}' is not installed")

    def apt_install(argv, ctx):
        for package in argv[len(APT_GET) + 2:]:
            dpkg.add(package)
            if package in APT_BINARIES:
                machine.add_command(APT_BINARIES[package])

    def script_installs(target: str) -> Action:
        def install(argv, ctx):
            make_executable(Path(ctx.home) / ".local" / "bin" / target)
        return install

    def mise_use(argv, ctx):
        tool, version = argv[-1].split("@", 1)
        data = Path(ctx.home) / ".local" / "share" / "mise"
        (data / "installs" / tool / version).mkdir(parents=True, exist_ok=True)
        make_executable(data / "shims" / tool)

    def go_install(argv, ctx):
        binary = argv[-1].split("@", 1)[0].rsplit("/", 1)[-1]
        make_executable(ctx.local_bin / binary)

    def id_groups(argv, ctx):
        return CommandResult(argv, 0, stdout=" ".join(sorted(groups)) + "\n")

    def usermod(argv, ctx):
        groups.add(argv[2])

    def git_set(argv, ctx):
        git_config[argv[3]] = argv[4]

    def git_get(argv, ctx):
        value = git_config.get(argv[4])
        if value is None:
            return CommandResult(argv, 1)
        return CommandResult(argv, 0, stdout=value + "\n")

    (runner
        .on("dpkg", "-s", action=dpkg_status)
        .on("dpkg", "--print-architecture", stdout="amd64\n")
        .on("lsb_release", "-cs", stdout="noble\n")
        .on(*APT_GET, "update")
        .on(*APT_GET, "install", action=apt_install)
        .on("install", "-m")
        .on("chmod")
        .on("sh", "-c")
        .on_script("get.chezmoi.io", action=script_installs("chezmoi"))
        .on_script("https://mise.run", action=script_installs("mise"))
        .on_script("mise where", returncode=1)
        .on_script("mise use --global", action=mise_use)
        .on_script("go install", action=go_install)
        .on("id", "-nG", action=id_groups)
        .on("usermod", "-aG", action=usermod)
        .on("git", "config", "--global", action=git_set)
        .on("git", "config", "--global", "--get", action=git_get))
    return machine


@pytest.fixture
def macos(machine: FakeMachine) -> FakeMachine:
    """A Mac where every default step is already satisfied."""
    machine.system = "Darwin"
    machine.shell = "/bin/zsh"
    prefix = machine.root / "homebrew"
    machine.extra_env["HOMEBREW_PREFIX"] = str(prefix)
    make_executable(prefix / "bin" / "brew")
    make_executable(prefix / "bin" / "git")
    machine.path(".oh-my-zsh").mkdir()
    make_executable(machine.path(".local/bin/mise"))
    machine.path(".local/share/mise/installs/go/1.25").mkdir(parents=True)
    machine.path(".zshrc").write_text(
        "# my zshrc\n\n"
        + render_block("homebrew", [f'eval "$({prefix}/bin/brew shellenv)"'], "Homebrew")
        + "\n"
        + render_block("mise", ['eval "$($HOME/.local/bin/mise activate zsh)"'])
    )
    machine.runner.on("xcode-select", "-p", stdout="/Library/Developer/CommandLineTools\n")
    return machine
