"""
Provision context — the environment a run reads and mutates.

Every adapter receives the same ProvisionContext. It carries the
read-only identity of the machine (OS, user, login shell) and a copy
of the process environment that steps update as they go, so a tool
installed by one step is on PATH for the next without re-spawning
the process.

Design notes:
    - ``env`` is a private copy; ``os.environ`` is never touched.
    - Command lookups go through ``which()`` so they honour ``env["PATH"]``.
    - ``markers`` hold once-per-run facts (e.g. the apt index was refreshed).
"""

from __future__ import annotations

import getpass
import os
import platform
import shutil
from pathlib import Path

from pydantic import BaseModel, Field


class ProvisionContext(BaseModel):
    """Machine identity plus the mutable environment of a run."""

    home: str
    user: str = ""
    system: str = ""  # platform.system(): "Darwin", "Linux", ...
    env: dict[str, str] = Field(default_factory=dict)
    markers: set[str] = Field(default_factory=set)

    @classmethod
    def from_environment(cls) -> ProvisionContext:
        """Snapshot the current process into a fresh context."""
        env = dict(os.environ)
        home = env.get("HOME") or str(Path.home())
        user = env.get("USER") or getpass.getuser()
        return cls(home=home, user=user, system=platform.system(), env=env)

    # ── Identity ────────────────────────────────────────────────

    @property
    def shell(self) -> str:
        """Basename of the login shell, e.g. 'zsh'."""
        return os.path.basename(self.env.get("SHELL", ""))

    @property
    def is_macos(self) -> bool:
        return self.system == "Darwin"

    @property
    def is_linux(self) -> bool:
        return self.system == "Linux"

    # ── Paths ───────────────────────────────────────────────────

    def expand(self, path: str) -> Path:
        """Resolve a leading ``~`` against this context's home."""
        if path == "~":
            return Path(self.home)
        if path.startswith("~/"):
            return Path(self.home) / path[2:]
        return Path(path)

    @property
    def local_bin(self) -> Path:
        return Path(self.home) / ".local" / "bin"

    # ── Environment ─────────────────────────────────────────────

    def which(self, command: str) -> str | None:
        """Look a command up on this context's PATH."""
        return shutil.which(command, path=self.env.get("PATH", ""))

    def prepend_path(self, directory: str | Path) -> None:
        """Put ``directory`` first on PATH for the rest of the run."""
        entry = str(directory)
        parts = [p for p in self.env.get("PATH", "").split(os.pathsep) if p]
        if parts and parts[0] == entry:
            return
        parts = [p for p in parts if p != entry]
        self.env["PATH"] = os.pathsep.join([entry, *parts])
