"""User profile resolution — where "home" is for the target machine or Wine prefix."""

from __future__ import annotations

import getpass
import re
from pathlib import Path
from typing import Protocol

from loguru import logger

from savevault.utils import normalize_path

_VOLATILE_SECTION = "[Volatile Environment]"
_USERPROFILE_RE = re.compile(r'^"USERPROFILE"="(?P<value>.*)"\s*$')


class UserProfileResolver(Protocol):
    """Supplies a Windows-like user profile path for a Wine prefix (or the host)."""

    def resolve_user_profile_path(self, wine_prefix: str | None) -> str: ...


def read_wine_user_profile(user_reg: Path) -> str | None:
    """Extract ``USERPROFILE`` from the ``[Volatile Environment]`` section of a Wine ``user.reg``."""
    in_section = False
    with open(user_reg, encoding="utf-8", errors="replace") as f:
        for line in f:
            stripped = line.strip()
            if stripped.startswith("["):
                in_section = stripped.startswith(_VOLATILE_SECTION)
                continue
            if not in_section:
                continue
            match = _USERPROFILE_RE.match(stripped)
            if match:
                return match.group("value").replace("\\\\", "\\")
    return None


class HostUserProfileResolver:
    """Default resolver: Wine ``user.reg`` when a prefix is given, otherwise the host home."""

    def __init__(self, home_dir: Path | None = None) -> None:
        self._home_dir = home_dir

    def resolve_user_profile_path(self, wine_prefix: str | None) -> str:
        if not wine_prefix:
            return normalize_path(str(self._home_dir or Path.home()))

        user_reg = Path(wine_prefix) / "user.reg"
        try:
            profile = read_wine_user_profile(user_reg)
        except OSError as e:
            logger.warning(f"Cannot read {user_reg}: {e}")
            profile = None

        if profile:
            return normalize_path(profile)

        fallback = f"C:/users/{getpass.getuser()}"
        logger.warning(f"No USERPROFILE in {user_reg}, assuming {fallback}")
        return fallback
