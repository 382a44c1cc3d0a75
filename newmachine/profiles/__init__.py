"""Profiles — the ordered step lists for each kind of machine."""

from __future__ import annotations

from newmachine.core.context import ProvisionContext
from newmachine.profiles import macos, server
from newmachine.profiles.base import Profile

PROFILES: dict[str, Profile] = {
    macos.PROFILE.name: macos.PROFILE,
    server.PROFILE.name: server.PROFILE,
}


def get_profile(name: str) -> Profile:
    """Look a profile up by name.

    Raises:
        ValueError: If no such profile exists.
    """
    try:
        return PROFILES[name]
    except KeyError:
        known = ", ".join(sorted(PROFILES))
        raise ValueError(f"Unknown profile '{name}' (known: {known})") from None


def detect_profile(context: ProvisionContext) -> Profile:
    """macOS gets the workstation profile, everything else the server one."""
    if context.is_macos:
        return macos.PROFILE
    return server.PROFILE


__all__ = ["PROFILES", "Profile", "detect_profile", "get_profile"]
