"""Portable path translation — Wine prefix paths <-> Windows-style paths.

``to_portable_path`` and ``to_real_path`` are only inverses for paths that lie
under the given Wine prefix. Paths outside the prefix, or on a drive other
than ``C:``, pass through with at most the ``drive_c``/``C:`` token rewritten,
so translating them back does not necessarily give the original string.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Iterable

from savevault.utils import add_trailing_slash

WINE_DRIVE_ROOT = "drive_c"
WINDOWS_DRIVE = "C:"

# Shared "Public" profile; exists in every Windows install and Wine prefix
PUBLIC_PROFILE_PATH = "C:/Users/Public"

_DRIVE_LETTER_RE = re.compile(r"^[A-Za-z]:$")


def to_portable_path(real_path: str, wine_prefix: str | None = None) -> str:
    """Convert an on-disk path (possibly inside a Wine prefix) to a Windows-style path."""
    path_str = real_path
    if wine_prefix:
        path_str = path_str.replace(add_trailing_slash(wine_prefix), "", 1)
    return path_str.replace(WINE_DRIVE_ROOT, WINDOWS_DRIVE, 1)


def to_real_path(abstract_path: str, wine_prefix: str | None = None) -> str:
    """Convert a Windows-style path back onto the Wine prefix it lives in."""
    if not wine_prefix:
        return abstract_path
    return os.path.normpath(
        os.path.join(wine_prefix, abstract_path.replace(WINDOWS_DRIVE, WINE_DRIVE_ROOT, 1))
    )


@dataclass(frozen=True)
class SubstitutionRule:
    """Replace every occurrence of ``pattern`` with ``replacement``."""

    pattern: str
    replacement: str

    def apply(self, value: str) -> str:
        # An empty pattern would match between every character
        if not self.pattern:
            return value
        return value.replace(self.pattern, self.replacement)


@dataclass(frozen=True)
class PrefixRule:
    """Prepend ``prefix`` once."""

    prefix: str

    def apply(self, value: str) -> str:
        return f"{self.prefix}{value}"


Rule = SubstitutionRule | PrefixRule


def apply_rules(value: str, rules: Iterable[Rule]) -> str:
    """Apply rules in order."""
    for rule in rules:
        value = rule.apply(value)
    return value


def _drive_rule(key: str, value: str) -> Rule:
    if not value:
        return PrefixRule(key)
    if _DRIVE_LETTER_RE.match(key) and not _DRIVE_LETTER_RE.match(value):
        return SubstitutionRule(pattern=key, replacement=value)
    return SubstitutionRule(pattern=value, replacement=key)


def drive_rules(drives: dict[str, str]) -> list[Rule]:
    """Rules mapping the drive letters in manifest paths to the archive folders holding them.

    Ludusavi records ``{"drive-0": "C:"}``: the drive letter is the value and
    ``C:/...`` lives under ``drive-0/...``. A table keyed by drive letter
    (``{"D:": "steamapps"}``) is read the other way round. A drive recorded
    with an empty segment (a Unix root) is stored directly under its key, so
    the key is prepended instead.
    """
    return [_drive_rule(key, value) for key, value in drives.items()]


def profile_rules(
    home_dir: str,
    user_profile_path: str,
    wine_prefix: str | None = None,
) -> list[SubstitutionRule]:
    """Rules re-basing the recorded profile directories onto the target machine."""
    return [
        SubstitutionRule(home_dir, to_real_path(user_profile_path, wine_prefix)),
        SubstitutionRule(PUBLIC_PROFILE_PATH, to_real_path(PUBLIC_PROFILE_PATH, wine_prefix)),
    ]
