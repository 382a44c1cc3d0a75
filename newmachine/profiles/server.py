"""
Ubuntu server profile.

Base packages first (curl and gnupg are needed for the apt
repositories), then Docker and the GitHub CLI from their upstream
repositories, then user-level tools under ``~/.local``.
"""

from __future__ import annotations

from newmachine.core.context import ProvisionContext
from newmachine.core.models.config import MachineConfig
from newmachine.core.models.step import Step
from newmachine.profiles.base import (
    Profile,
    chezmoi_step,
    dotfiles_step,
    go_tool_steps,
    mise_bootstrap_step,
    mise_rc_step,
    runtime_steps,
    vscode_steps,
)

EXIT_WRONG_OS = 2
EXIT_APT_MISSING = 3

DEFAULT_RUNTIMES = {"go": "1.24.4", "node": "22.11.0", "python": "3.12"}
DEFAULT_GO_TOOLS = {"ghq": "github.com/x-motemen/ghq@latest"}

DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]


def build_steps(config: MachineConfig, context: ProvisionContext) -> list[Step]:
    rc_file = config.shell_rc or "~/.bashrc"
    runtimes = DEFAULT_RUNTIMES if config.runtimes is None else config.runtimes
    go_tools = DEFAULT_GO_TOOLS if config.go_tools is None else config.go_tools

    steps = [
        Step(
            id="os",
            label="Linux",
            category="prerequisites",
            adapter="precondition",
            params={
                "os": "Linux",
                "message": "This script is for Linux servers. Use '--profile macos' on a Mac.",
            },
            classification="fatal",
            kind="precondition",
            exit_code=EXIT_WRONG_OS,
        ),
        Step(
            id="apt",
            label="apt",
            category="prerequisites",
            adapter="precondition",
            params={
                "command": "apt-get",
                "message": "apt-get not found. This profile supports Debian and Ubuntu only.",
            },
            classification="fatal",
            kind="precondition",
            exit_code=EXIT_APT_MISSING,
        ),
    ]

    steps += [
        Step(
            id=f"apt-{package}",
            label=package,
            category="base packages",
            adapter="apt",
            params={"package": package},
        )
        for package in config.apt_packages
    ]

    steps += [
        Step(
            id="docker",
            label="Docker",
            category="containers",
            adapter="apt_repo",
            params={
                "key_url": "https://download.docker.com/linux/ubuntu/gpg",
                "keyring": "/etc/apt/keyrings/docker.gpg",
                "dearmor": True,
                "repo": (
                    "deb [arch={arch} signed-by={keyring}] "
                    "https://download.docker.com/linux/ubuntu {codename} stable"
                ),
                "list_file": "/etc/apt/sources.list.d/docker.list",
                "packages": DOCKER_PACKAGES,
                "command": "docker",
                "version_cmd": ["docker", "--version"],
            },
        ),
        Step(
            id="docker-group",
            label=f"{context.user or 'user'} in docker group",
            category="containers",
            adapter="group",
            params={"group": "docker", "user": context.user},
        ),
        Step(
            id="gh",
            label="GitHub CLI",
            category="tools",
            adapter="apt_repo",
            params={
                "key_url": "https://cli.github.com/packages/githubcli-archive-keyring.gpg",
                "keyring": "/usr/share/keyrings/githubcli-archive-keyring.gpg",
                "repo": (
                    "deb [arch={arch} signed-by={keyring}] "
                    "https://cli.github.com/packages stable main"
                ),
                "list_file": "/etc/apt/sources.list.d/github-cli.list",
                "packages": ["gh"],
                "command": "gh",
                "version_cmd": ["gh", "--version"],
            },
        ),
        chezmoi_step(context),
        mise_bootstrap_step(),
    ]
    steps += runtime_steps(runtimes)
    steps += go_tool_steps(go_tools)

    steps += [
        mise_rc_step(rc_file, "bash"),
        Step(
            id="rc-local-bin",
            label=f"~/.local/bin on PATH in {rc_file}",
            category="shell config",
            adapter="rc_block",
            kind="config_write",
            params={
                "file": rc_file,
                "block": "local-bin",
                "comment": "Local binaries",
                "lines": ['export PATH="$HOME/.local/bin:$PATH"'],
            },
        ),
    ]

    if "ghq" in go_tools:
        steps.append(
            Step(
                id="ghq-root",
                label=f"ghq root {config.ghq_root}",
                category="tools",
                adapter="git_config",
                kind="config_write",
                params={"key": "ghq.root", "value": config.ghq_root},
            )
        )

    steps += vscode_steps(config.vscode_extensions)

    if config.dotfiles_repo:
        steps.append(dotfiles_step(config.dotfiles_repo))

    return steps


PROFILE = Profile(
    name="server",
    title="New Server Setup",
    subtitle="apt packages, Docker, GitHub CLI, mise and your runtimes",
    system="Linux",
    build=build_steps,
    reload_hint="Run 'source ~/.bashrc' or open a new terminal.",
    verify_commands=["git --version", "go version", "node --version", "python --version"],
)
