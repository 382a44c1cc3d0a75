"""
MachineConfig — the optional per-user settings for a provisioning run.

Loaded from machine.yml. Every field has a default, so an empty or
missing file yields a working configuration; the profile supplies the
runtime pins when ``runtimes`` is not set.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_APT_PACKAGES = [
    "git",
    "curl",
    "build-essential",
    "ripgrep",
    "ca-certificates",
    "gnupg",
    "lsb-release",
    "xclip",
]


class MachineConfig(BaseModel):
    """User-tunable knobs. Unknown keys are rejected.

    ``None`` means "use the profile's default".
    """

    model_config = ConfigDict(extra="forbid")

    runtimes: dict[str, str] | None = None  # tool → version pin for mise
    go_tools: dict[str, str] | None = None  # binary → module@version
    apt_packages: list[str] = Field(default_factory=lambda: list(DEFAULT_APT_PACKAGES))
    brew_formulae: list[str] = Field(default_factory=lambda: ["git"])
    vscode_extensions: list[str] = Field(default_factory=list)
    dotfiles_repo: str = ""
    ghq_root: str = "~/code"
    shell_rc: str | None = None

    @field_validator("runtimes", mode="before")
    @classmethod
    def _pins_are_strings(cls, value):
        # YAML reads 3.12 as a float and 1.20 as 1.2
        if isinstance(value, dict):
            for tool, pin in value.items():
                if not isinstance(pin, str):
                    raise ValueError(
                        f"runtime pin for '{tool}' must be a quoted string, "
                        f"e.g. {tool}: \"{pin}\""
                    )
        return value
