"""
Command runner — the single place where provisioning commands run.

Every adapter shells out through ``run_command``. It applies the
context's environment, decides whether to prefix ``sudo``, and turns
every way a child process can go wrong into a CommandResult instead
of an exception.

Installs stream to the terminal (``capture=False``) so sudo prompts
and installer progress stay visible; presence checks capture.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence

from newmachine.core.context import ProvisionContext

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124


@dataclass(frozen=True)
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def error(self) -> str:
        """Best human-readable failure reason."""
        tail = (self.stderr or self.stdout).strip()
        if tail:
            return tail.splitlines()[-1]
        return f"Command failed (exit {self.returncode}): {format_argv(self.argv)}"


class Runner(Protocol):
    def __call__(
        self,
        argv: Sequence[str],
        context: ProvisionContext,
        *,
        sudo: bool = False,
        capture: bool = True,
        timeout: int | None = None,
        env_overrides: Mapping[str, str] | None = None,
    ) -> CommandResult: ...


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    argv: Sequence[str],
    context: ProvisionContext,
    *,
    sudo: bool = False,
    capture: bool = True,
    timeout: int | None = None,
    env_overrides: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command against the context's environment.

    Args:
        argv: Command list.
        context: Supplies ``env`` (notably PATH).
        sudo: Prefix ``sudo`` unless already running as root.
        capture: Capture stdout/stderr. When False the child inherits the
            terminal, which keeps password prompts usable.
        timeout: Seconds before the child is killed (None = wait forever).
        env_overrides: Extra variables for this command only (e.g. GOBIN).

    Returns:
        CommandResult; never raises for a failing or missing command.
    """
    cmd = list(argv)
    if sudo and os.geteuid() != 0:
        cmd = ["sudo", *cmd]

    env = dict(context.env)
    if env_overrides:
        env.update(env_overrides)

    logger.debug("Executing: %s", format_argv(cmd))
    start = time.monotonic()

    try:
        proc = subprocess.run(
            cmd,
            capture_output=capture,
            text=True,
            timeout=timeout,
            env=env,
        )
    except FileNotFoundError:
        return CommandResult(
            argv=cmd,
            returncode=EXIT_NOT_FOUND,
            stderr=f"{cmd[0]}: command not found",
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            argv=cmd,
            returncode=EXIT_TIMEOUT,
            stderr=f"Command timed out after {timeout}s",
        )
    except OSError as e:
        logger.exception("Subprocess error: %s", cmd)
        return CommandResult(argv=cmd, returncode=1, stderr=str(e))

    elapsed_ms = int((time.monotonic() - start) * 1000)
    result = CommandResult(
        argv=cmd,
        returncode=proc.returncode,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        elapsed_ms=elapsed_ms,
    )
    if not result.ok:
        logger.debug("Exit %d: %s", result.returncode, format_argv(cmd))
    return result
