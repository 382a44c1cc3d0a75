"""
Shell startup-file adapter — idempotent, delimited block insertion.

Each block added to ~/.zshrc or ~/.bashrc is wrapped in named
delimiters:

    # >>> newmachine:mise >>>
    # mise - polyglot version manager
    export PATH="$HOME/.local/share/mise/shims:$PATH"
    eval "$($HOME/.local/bin/mise activate bash)"
    # <<< newmachine:mise <<<

A block counts as present when its opening delimiter is in the file.
Nothing else in the file matters: a stray mention of "mise" in a
comment neither hides nor duplicates the block.
"""

from __future__ import annotations

import logging
from pathlib import Path

from newmachine.adapters.base import Adapter
from newmachine.adapters.packages.homebrew import brew_prefix
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step

logger = logging.getLogger(__name__)

BLOCK_TAG = "newmachine"


def block_start(name: str) -> str:
    return f"# >>> {BLOCK_TAG}:{name} >>>"


def block_end(name: str) -> str:
    return f"# <<< {BLOCK_TAG}:{name} <<<"


def render_block(name: str, lines: list[str], comment: str = "") -> str:
    body = ([f"# {comment}"] if comment else []) + list(lines)
    return "\n".join([block_start(name), *body, block_end(name)]) + "\n"


def read_rc(path: Path) -> str:
    """Startup file text. Bytes that are not UTF-8 survive as surrogates."""
    return path.read_text(encoding="utf-8", errors="surrogateescape")


def has_block(text: str, name: str) -> bool:
    start = block_start(name)
    return any(line.strip() == start for line in text.splitlines())


def append_block(path: Path, name: str, lines: list[str], comment: str = "") -> bool:
    """Append the block unless it is already there.

    Returns True when the file was modified. Raises OSError on write
    failure.
    """
    text = read_rc(path) if path.is_file() else ""
    if has_block(text, name):
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    prefix = "" if not text or text.endswith("\n\n") else ("\n" if text.endswith("\n") else "\n\n")
    with path.open("a", encoding="utf-8") as fh:
        fh.write(prefix + render_block(name, lines, comment))
    return True


class RcBlockAdapter(Adapter):
    """Ensure a named block exists in a shell startup file.

    Step params:
        file (str): Startup file, ``~`` allowed.
        block (str): Block name used in the delimiters.
        lines (list[str]): Block body. ``{brew_prefix}`` is replaced with
            the Homebrew prefix at install time.
        comment (str): Optional first comment line.
    """

    @property
    def name(self) -> str:
        return "rc_block"

    def is_available(self, context: ProvisionContext) -> bool:
        return True

    def validate(self, step: Step) -> tuple[bool, str]:
        for key in ("file", "block", "lines"):
            if not step.params.get(key):
                return False, f"Missing required param: '{key}'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        path = context.expand(step.params["file"])
        try:
            text = read_rc(path)
        except OSError:
            return Probe.missing(f"{path} not readable")
        if has_block(text, step.params["block"]):
            return Probe.present("custom", detail=f"{path} already configured")
        return Probe.missing()

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        path = context.expand(step.params["file"])
        lines = [self._fill(line, context) for line in step.params["lines"]]
        try:
            changed = append_block(path, step.params["block"], lines, step.params.get("comment", ""))
        except OSError as e:
            return self._failure(step, f"Could not update {path}: {e}")

        if changed:
            logger.info("Added %s block to %s", step.params["block"], path)
        return self._success(step, f"Added {step.params['block']} to {path.name}", path=str(path))

    def _fill(self, line: str, context: ProvisionContext) -> str:
        if "{brew_prefix}" in line:
            line = line.replace("{brew_prefix}", brew_prefix(context))
        return line
