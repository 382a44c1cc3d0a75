"""
Presence checks — is a tool already on this machine?

Read-only probes in a fixed order of specificity:

    1. fixed install paths     (e.g. ~/.local/bin/mise, /opt/homebrew/bin/git)
    2. command lookup on PATH  (the context's PATH, not the process's)
    3. the tool's version flag (e.g. ``xcode-select -p``)

The first check that succeeds wins and nothing after it runs. Any
version satisfies a check; version pins are enforced only where the
install layout is per-version (see the mise adapter).
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Sequence

from newmachine.adapters.shell.command import Runner
from newmachine.core.context import ProvisionContext
from newmachine.core.models.step import Probe

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"(\d+\.\d+(?:\.\d+)?)")

CHECK_TIMEOUT = 30


def parse_version(text: str) -> str | None:
    """Pull the first dotted version number out of tool output."""
    match = _VERSION_RE.search(text or "")
    return match.group(1) if match else None


def _path_present(path: Path, kind: str) -> bool:
    if kind == "dir":
        return path.is_dir()
    if kind == "file":
        return path.is_file()
    return path.is_file() and os.access(path, os.X_OK)


def probe_presence(
    context: ProvisionContext,
    runner: Runner,
    *,
    paths: Sequence[str] = (),
    path_kind: str = "exec",
    command: str | None = None,
    version_cmd: Sequence[str] | None = None,
) -> Probe:
    """Run the presence checks in precedence order.

    Args:
        context: Supplies home (for ``~``) and PATH.
        runner: Command runner used for the version-flag fallback.
        paths: Fixed install locations, ``~`` allowed.
        path_kind: ``exec`` (executable file), ``file`` or ``dir``.
        command: Name to look up on PATH.
        version_cmd: argv whose zero exit status proves presence.

    Returns:
        Probe with ``via`` naming the check that succeeded.
    """
    for raw in paths:
        path = context.expand(raw)
        if _path_present(path, path_kind):
            logger.debug("present at fixed path %s", path)
            return Probe.present("path", detail=str(path))

    if command:
        found = context.which(command)
        if found:
            logger.debug("present on PATH: %s", found)
            return Probe.present("command", detail=found)

    if version_cmd:
        result = runner(list(version_cmd), context, capture=True, timeout=CHECK_TIMEOUT)
        if result.ok:
            output = (result.stdout or result.stderr).strip()
            first = output.splitlines()[0] if output else ""
            return Probe.present("version", detail=first, version=parse_version(first))

    return Probe.missing()


def read_version(
    context: ProvisionContext,
    runner: Runner,
    argv: Sequence[str],
) -> str | None:
    """Run a version command and parse its output, or None."""
    result = runner(list(argv), context, capture=True, timeout=CHECK_TIMEOUT)
    if not result.ok:
        return None
    # Some tools print their version on stderr
    return parse_version(result.stdout + "\n" + result.stderr)
