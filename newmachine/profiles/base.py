"""
Profile model and the step builders profiles share.

A profile is a static, ordered step list for one kind of machine plus
the text the CLI shows around a run. The lists are built once, before
the run starts, from the MachineConfig and the context's identity.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from newmachine.core.context import ProvisionContext
from newmachine.core.models.config import MachineConfig
from newmachine.core.models.step import Step

EXIT_MISE_BOOTSTRAP = 6

RUNTIME_LABELS = {"go": "Go", "node": "Node.js", "python": "Python"}
RUNTIME_VERSION_CMDS = {
    "go": ["go", "version"],
    "node": ["node", "--version"],
    "python": ["python", "--version"],
}

MISE_INSTALLER = "https://mise.run"
CHEZMOI_INSTALLER = "https://get.chezmoi.io"

StepBuilder = Callable[[MachineConfig, ProvisionContext], list[Step]]


@dataclass(frozen=True)
class Profile:
    name: str
    title: str
    subtitle: str
    system: str  # platform.system() this profile targets
    build: StepBuilder
    reload_hint: str = "Open a new terminal for all changes to take effect."
    verify_commands: list[str] = field(default_factory=list)

    def steps(self, config: MachineConfig, context: ProvisionContext) -> list[Step]:
        steps = self.build(config, context)
        seen: set[str] = set()
        for step in steps:
            if step.id in seen:
                raise ValueError(f"Duplicate step id in profile '{self.name}': {step.id}")
            seen.add(step.id)
        return steps


# ── Shared builders ─────────────────────────────────────────────


def mise_bootstrap_step() -> Step:
    return Step(
        id="mise",
        label="mise (version manager)",
        category="version manager",
        adapter="script",
        params={
            "url": MISE_INSTALLER,
            "paths": ["~/.local/bin/mise"],
            "command": "mise",
            "version_cmd": ["mise", "--version"],
            "post_path": ["~/.local/bin"],
        },
        classification="fatal",
        kind="bootstrap",
        exit_code=EXIT_MISE_BOOTSTRAP,
    )


def chezmoi_step(context: ProvisionContext) -> Step:
    local_bin = str(context.local_bin)
    return Step(
        id="chezmoi",
        label="chezmoi (dotfile manager)",
        category="dotfiles",
        adapter="script",
        params={
            "url": CHEZMOI_INSTALLER,
            "args": ["--", "-b", local_bin],
            "paths": ["~/.local/bin/chezmoi"],
            "command": "chezmoi",
            "version_cmd": ["chezmoi", "--version"],
            "post_path": ["~/.local/bin"],
        },
    )


def runtime_steps(runtimes: dict[str, str]) -> list[Step]:
    steps = []
    for tool, version in runtimes.items():
        label = f"{RUNTIME_LABELS.get(tool, tool)} {version}"
        params: dict = {"tool": tool, "version": version}
        if tool in RUNTIME_VERSION_CMDS:
            params["version_cmd"] = RUNTIME_VERSION_CMDS[tool]
        steps.append(
            Step(
                id=f"runtime-{tool}",
                label=label,
                category="runtimes (mise)",
                adapter="mise",
                params=params,
            )
        )
    return steps


def go_tool_steps(go_tools: dict[str, str]) -> list[Step]:
    return [
        Step(
            id=f"go-{binary}",
            label=f"{binary} (via go install)",
            category="tools",
            adapter="go_install",
            params={"binary": binary, "module": module},
        )
        for binary, module in go_tools.items()
    ]


def vscode_steps(extensions: list[str]) -> list[Step]:
    return [
        Step(
            id=f"vscode-{extension}",
            label=extension,
            category="editor extensions",
            adapter="vscode",
            params={"extension": extension},
        )
        for extension in extensions
    ]


def mise_rc_step(rc_file: str, shell: str) -> Step:
    return Step(
        id="rc-mise",
        label=f"mise activation in {rc_file}",
        category="shell config",
        adapter="rc_block",
        kind="config_write",
        params={
            "file": rc_file,
            "block": "mise",
            "comment": "mise - polyglot version manager",
            "lines": [
                'export PATH="$HOME/.local/share/mise/shims:$PATH"',
                f'eval "$($HOME/.local/bin/mise activate {shell})"',
            ],
        },
    )


def dotfiles_step(repo: str) -> Step:
    return Step(
        id="dotfiles",
        label="dotfiles (chezmoi)",
        category="dotfiles",
        adapter="dotfiles",
        params={"repo": repo},
    )
