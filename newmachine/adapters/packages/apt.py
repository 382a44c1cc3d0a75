"""
apt adapters — Debian/Ubuntu packages and third-party apt repositories.

The package index is refreshed at most once per run, right before the
first package that actually needs installing, so a machine where
everything is present never touches the network. Registering a new
repository forces one more refresh.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from newmachine.adapters.base import Adapter
from newmachine.adapters.shell.command import CommandResult, Runner, run_command
from newmachine.core.context import ProvisionContext
from newmachine.core.models.receipt import Receipt
from newmachine.core.models.step import Probe, Step
from newmachine.core.services.presence import probe_presence

logger = logging.getLogger(__name__)

_INDEX_MARKER = "apt-index-refreshed"
# sudo env_reset drops exported variables
APT_GET = ["env", "DEBIAN_FRONTEND=noninteractive", "apt-get"]


def refresh_index(runner: Runner, context: ProvisionContext, *, force: bool = False) -> CommandResult | None:
    """Run ``apt-get update`` unless this run already did.

    Returns the failing result, or None on success / nothing to do.
    """
    if not force and _INDEX_MARKER in context.markers:
        return None
    logger.debug("Refreshing apt package index")
    result = runner([*APT_GET, "update"], context, sudo=True, capture=False)
    if not result.ok:
        return result
    context.markers.add(_INDEX_MARKER)
    return None


def install_packages(runner: Runner, context: ProvisionContext, packages: list[str]) -> CommandResult:
    return runner(
        [*APT_GET, "install", "-y", *packages],
        context,
        sudo=True,
        capture=False,
    )


class AptPackageAdapter(Adapter):
    """Install one apt package.

    Step params:
        package (str): dpkg package name.
    """

    @property
    def name(self) -> str:
        return "apt"

    def is_available(self, context: ProvisionContext) -> bool:
        return context.which("apt-get") is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        if not step.params.get("package"):
            return False, "Missing required param: 'package'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        package = step.params["package"]
        result = self._run(["dpkg", "-s", package], context, capture=True, timeout=30)
        # dpkg -s also succeeds for removed packages that left config behind
        if result.ok and "install ok installed" in result.stdout:
            return Probe.present("custom", detail=f"{package} already installed")
        return Probe.missing()

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        package = step.params["package"]
        failed = refresh_index(self._run, context)
        if failed is not None:
            return self._failure(step, f"apt-get update failed: {failed.error}")

        result = install_packages(self._run, context, [package])
        if not result.ok:
            return self._failure(step, f"Failed to install {package}: {result.error}")
        return self._success(step, f"{package} installed")

    def version(self, step: Step, context: ProvisionContext) -> str | None:
        result = self._run(
            ["dpkg-query", "-W", "-f=${Version}", step.params["package"]],
            context,
            capture=True,
            timeout=30,
        )
        if not result.ok:
            return None
        return result.stdout.strip() or None


class AptRepoAdapter(Adapter):
    """Register a signed apt repository, then install packages from it.

    Step params:
        key_url (str): URL of the repository signing key.
        keyring (str): Where the key is stored, e.g.
            '/etc/apt/keyrings/docker.gpg'.
        dearmor (bool): Key is ASCII-armored and must go through
            ``gpg --dearmor`` (default: False).
        repo (str): ``deb`` line. ``{arch}``, ``{codename}`` and
            ``{keyring}`` are filled in at install time.
        list_file (str): sources.list.d file to write.
        packages (list[str]): Packages to install from the repository.
        command (str): Command whose presence means "already installed".
        version_cmd (list[str]): Version flag invocation.
    """

    def __init__(self, runner: Runner = run_command, os_release: Path = Path("/etc/os-release")) -> None:
        super().__init__(runner)
        self._os_release = os_release

    @property
    def name(self) -> str:
        return "apt_repo"

    def is_available(self, context: ProvisionContext) -> bool:
        return context.which("apt-get") is not None

    def validate(self, step: Step) -> tuple[bool, str]:
        for key in ("key_url", "keyring", "repo", "list_file", "packages", "command"):
            if not step.params.get(key):
                return False, f"Missing required param: '{key}'"
        return True, ""

    def check(self, step: Step, context: ProvisionContext) -> Probe:
        return probe_presence(
            context,
            self._run,
            command=step.params["command"],
            version_cmd=step.params.get("version_cmd"),
        )

    def install(self, step: Step, context: ProvisionContext) -> Receipt:
        params = step.params
        keyring = params["keyring"]
        key_url = shlex.quote(params["key_url"])

        result = self._run(
            ["install", "-m", "0755", "-d", str(Path(keyring).parent)], context, sudo=True,
        )
        if not result.ok:
            return self._failure(step, f"Could not create keyring directory: {result.error}")

        if params.get("dearmor"):
            fetch = f"curl -fsSL {key_url} | gpg --dearmor --yes -o {shlex.quote(keyring)}"
        else:
            fetch = f"curl -fsSL {key_url} -o {shlex.quote(keyring)}"
        result = self._run(["sh", "-c", fetch], context, sudo=True)
        if not result.ok:
            return self._failure(step, f"Could not fetch signing key: {result.error}")
        self._run(["chmod", "a+r", keyring], context, sudo=True)

        line = params["repo"].format(
            arch=self._architecture(context),
            codename=self._codename(context),
            keyring=keyring,
        )
        write = f"echo {shlex.quote(line)} > {shlex.quote(params['list_file'])}"
        result = self._run(["sh", "-c", write], context, sudo=True)
        if not result.ok:
            return self._failure(step, f"Could not register repository: {result.error}")

        failed = refresh_index(self._run, context, force=True)
        if failed is not None:
            return self._failure(step, f"apt-get update failed: {failed.error}")

        result = install_packages(self._run, context, list(params["packages"]))
        if not result.ok:
            return self._failure(step, f"Failed to install {step.label}: {result.error}")
        return self._success(step, f"{step.label} installed", packages=list(params["packages"]))

    # ── Helpers ─────────────────────────────────────────────────

    def _architecture(self, context: ProvisionContext) -> str:
        result = self._run(["dpkg", "--print-architecture"], context, capture=True, timeout=30)
        return result.stdout.strip() if result.ok else "amd64"

    def _codename(self, context: ProvisionContext) -> str:
        try:
            for line in self._os_release.read_text(encoding="utf-8").splitlines():
                if line.startswith("VERSION_CODENAME="):
                    return line.split("=", 1)[1].strip().strip('"')
        except OSError:
            pass
        result = self._run(["lsb_release", "-cs"], context, capture=True, timeout=30)
        return result.stdout.strip()
