"""Tests for user profile resolution."""

from __future__ import annotations

from pathlib import Path

from savevault.core.profile import HostUserProfileResolver, read_wine_user_profile

USER_REG = """WINE REGISTRY Version 2
;; All keys relative to \\\\User\\\\S-1-5-21-0-0-0-1000

[Environment] 1700000000
"USERPROFILE"="C:\\\\users\\\\wrong"

[Volatile Environment] 1700000000
#time=1da0000000000000
"APPDATA"="C:\\\\users\\\\steamuser\\\\AppData\\\\Roaming"
"USERPROFILE"="C:\\\\users\\\\steamuser"
"""


class TestReadWineUserProfile:
    def test_volatile_environment(self, tmp_path: Path) -> None:
        reg = tmp_path / "user.reg"
        reg.write_text(USER_REG, encoding="utf-8")
        assert read_wine_user_profile(reg) == "C:\\users\\steamuser"

    def test_absent(self, tmp_path: Path) -> None:
        reg = tmp_path / "user.reg"
        reg.write_text("[Software\\\\Wine] 1\n", encoding="utf-8")
        assert read_wine_user_profile(reg) is None


class TestHostUserProfileResolver:
    def test_host_home(self, tmp_path: Path) -> None:
        assert HostUserProfileResolver(tmp_path).resolve_user_profile_path(None) == str(tmp_path)

    def test_wine_prefix(self, tmp_path: Path) -> None:
        (tmp_path / "user.reg").write_text(USER_REG, encoding="utf-8")
        resolver = HostUserProfileResolver()
        assert resolver.resolve_user_profile_path(str(tmp_path)) == "C:/users/steamuser"

    def test_wine_prefix_without_registry(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setattr("getpass.getuser", lambda: "gamer")
        resolver = HostUserProfileResolver()
        assert resolver.resolve_user_profile_path(str(tmp_path)) == "C:/users/gamer"
