"""
macOS workstation profile.

Order matters: Homebrew needs the Xcode Command Line Tools, formulae
need Homebrew, runtimes need mise and Go tools need the Go runtime.
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

EXIT_WRONG_OS = 1
EXIT_HOMEBREW_BOOTSTRAP = 2
EXIT_XCODE_CLT_MISSING = 5

HOMEBREW_INSTALLER = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
OH_MY_ZSH_INSTALLER = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"

DEFAULT_RUNTIMES = {"go": "1.25"}
DEFAULT_GO_TOOLS: dict[str, str] = {}


def build_steps(config: MachineConfig, context: ProvisionContext) -> list[Step]:
    rc_file = config.shell_rc or "~/.zshrc"
    runtimes = DEFAULT_RUNTIMES if config.runtimes is None else config.runtimes
    go_tools = DEFAULT_GO_TOOLS if config.go_tools is None else config.go_tools

    steps = [
        Step(
            id="os",
            label="macOS",
            category="prerequisites",
            adapter="precondition",
            params={
                "os": "Darwin",
                "message": "This profile is for macOS. Use '--profile server' on Linux.",
            },
            classification="fatal",
            kind="precondition",
            exit_code=EXIT_WRONG_OS,
        ),
        Step(
            id="xcode-clt",
            label="Xcode Command Line Tools",
            category="prerequisites",
            adapter="precondition",
            params={
                "probe": ["xcode-select", "-p"],
                "message": "Xcode Command Line Tools are not installed.",
            },
            classification="fatal",
            kind="precondition",
            exit_code=EXIT_XCODE_CLT_MISSING,
            remedy="xcode-select --install",
        ),
        Step(
            id="homebrew",
            label="Homebrew",
            category="package manager",
            adapter="homebrew",
            params={
                "url": HOMEBREW_INSTALLER,
                "shell": "/bin/bash",
                "command": "brew",
                "verify_command": "brew",
                "verify_error": (
                    "Homebrew installed but not found in PATH. "
                    "Please restart your terminal and run this again."
                ),
            },
            classification="fatal",
            kind="bootstrap",
            exit_code=EXIT_HOMEBREW_BOOTSTRAP,
        ),
    ]

    steps += [
        Step(
            id=f"brew-{formula}",
            label=f"{formula} (via Homebrew)",
            category="homebrew",
            adapter="brew",
            params={"formula": formula},
        )
        for formula in config.brew_formulae
    ]

    steps += [
        Step(
            id="zsh",
            label="zsh (default shell)",
            category="shell",
            adapter="login_shell",
            params={"shell": "zsh", "path": "/bin/zsh"},
        ),
        Step(
            id="oh-my-zsh",
            label="oh-my-zsh",
            category="shell",
            adapter="script",
            params={
                "url": OH_MY_ZSH_INSTALLER,
                "args": ["", "--unattended"],
                "paths": ["~/.oh-my-zsh"],
                "path_kind": "dir",
            },
        ),
        mise_bootstrap_step(),
    ]
    steps += runtime_steps(runtimes)
    steps += go_tool_steps(go_tools)
    steps += vscode_steps(config.vscode_extensions)

    steps += [
        Step(
            id="rc-homebrew",
            label=f"Homebrew shellenv in {rc_file}",
            category="shell config",
            adapter="rc_block",
            kind="config_write",
            params={
                "file": rc_file,
                "block": "homebrew",
                "comment": "Homebrew",
                "lines": ['eval "$({brew_prefix}/bin/brew shellenv)"'],
            },
        ),
        mise_rc_step(rc_file, "zsh"),
    ]

    if config.dotfiles_repo:
        steps += [chezmoi_step(context), dotfiles_step(config.dotfiles_repo)]

    return steps


PROFILE = Profile(
    name="macos",
    title="New Mac Setup",
    subtitle="Homebrew, zsh, mise and your runtimes",
    system="Darwin",
    build=build_steps,
    reload_hint="Open a new terminal for all changes to take effect.",
    verify_commands=["zsh --version", "git --version", "mise --version", "go version"],
)
