"""Tests for the restore engine."""

from __future__ import annotations

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import yaml

from savevault.core.restore import RestoreEngine, plan_moves
from savevault.errors import ManifestParseError, MoveFailure
from savevault.models.manifest import BackupEntry, BackupManifest, FileInfo

TITLE = "1145360"


def _resolver(profile: str) -> MagicMock:
    resolver = MagicMock()
    resolver.resolve_user_profile_path.return_value = profile
    return resolver


def _write_staging(staging: Path, manifest: dict, payload: dict[str, bytes]) -> None:
    game_dir = staging / TITLE
    game_dir.mkdir(parents=True)
    (game_dir / "mapping.yaml").write_text(yaml.safe_dump(manifest), encoding="utf-8")
    for relative, data in payload.items():
        path = game_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


class TestPlanMoves:
    def test_drive_letter_example(self, tmp_path: Path) -> None:
        manifest = BackupManifest(
            backups=[BackupEntry(files={"D:\\saves\\slot1.sav": FileInfo()})],
            drives={"D:": "steamapps"},
        )
        [[move]] = plan_moves(manifest, tmp_path / TITLE, home_dir="", user_profile_path="/home/me")
        assert move.source == tmp_path / TITLE / "steamapps\\saves\\slot1.sav"
        assert str(move.destination) == "D:\\saves\\slot1.sav"

    def test_grouped_per_entry(self, tmp_path: Path) -> None:
        manifest = BackupManifest(
            backups=[
                BackupEntry(files={"C:/a.sav": FileInfo()}),
                BackupEntry(files={"C:/b.sav": FileInfo(), "C:/c.sav": FileInfo()}),
            ],
            drives={"drive-0": "C:"},
        )
        plan = plan_moves(manifest, tmp_path, home_dir="", user_profile_path="C:/Users/me")
        assert [len(moves) for moves in plan] == [1, 2]
        assert plan[1][0].source == tmp_path / "drive-0" / "b.sav"

    def test_wine_prefix_rebase(self, tmp_path: Path) -> None:
        old_key = "/old/pfx/drive_c/users/olduser/Saved/save.dat"
        manifest = BackupManifest(
            backups=[BackupEntry(files={old_key: FileInfo()})],
            drives={"drive-0": ""},
        )
        target = tmp_path / "pfx"
        [[move]] = plan_moves(
            manifest,
            tmp_path / "staging" / TITLE,
            home_dir="C:/users/olduser",
            user_profile_path="C:/users/steamuser",
            wine_prefix=str(target),
            artifact_wine_prefix="/old/pfx",
        )
        assert move.source == tmp_path / "staging" / TITLE / "drive-0/old/pfx/drive_c/users/olduser/Saved/save.dat"
        assert move.destination == target / "drive_c" / "users" / "steamuser" / "Saved" / "save.dat"


class TestRestore:
    @pytest.mark.asyncio
    async def test_moves_every_file(self, tmp_path: Path) -> None:
        old_home = str(tmp_path / "home" / "old")
        new_home = tmp_path / "home" / "new"
        keys = [
            f"{old_home}/.local/share/Game/slot1.sav",
            f"{old_home}/.local/share/Game/empty.sav",
            f"{old_home}/.config/Game/settings.ini",
        ]
        manifest = {
            "drives": {"drive-0": ""},
            "backups": [
                {"name": ".", "files": {keys[0]: {"size": 4}, keys[1]: {"size": 0}}},
                {"name": "2", "files": {keys[2]: {"size": 3}}},
            ],
        }
        staging = tmp_path / "staging"
        _write_staging(
            staging,
            manifest,
            {
                "drive-0" + keys[0]: b"save",
                "drive-0" + keys[1]: b"",
                "drive-0" + keys[2]: b"ini",
            },
        )
        existing = new_home / ".config" / "Game" / "settings.ini"
        existing.parent.mkdir(parents=True)
        existing.write_bytes(b"old settings")

        engine = RestoreEngine(_resolver(str(new_home)))
        restored = await engine.restore(staging, TITLE, old_home)

        assert sorted(restored) == sorted(
            [
                new_home / ".local/share/Game/slot1.sav",
                new_home / ".local/share/Game/empty.sav",
                new_home / ".config/Game/settings.ini",
            ]
        )
        assert (new_home / ".local/share/Game/slot1.sav").read_bytes() == b"save"
        assert (new_home / ".local/share/Game/empty.sav").read_bytes() == b""
        assert existing.read_bytes() == b"ini"

    @pytest.mark.asyncio
    async def test_target_prefix_passed_to_resolver(self, tmp_path: Path) -> None:
        _write_staging(tmp_path / "staging", {"backups": []}, {})
        resolver = _resolver("C:/users/steamuser")
        engine = RestoreEngine(resolver)

        assert await engine.restore(tmp_path / "staging", TITLE, "", wine_prefix="/pfx") == []
        resolver.resolve_user_profile_path.assert_called_once_with("/pfx")

    @pytest.mark.asyncio
    async def test_missing_source_raises_move_failure(self, tmp_path: Path) -> None:
        key = str(tmp_path / "home" / "save.dat")
        _write_staging(
            tmp_path / "staging",
            {"drives": {"drive-0": ""}, "backups": [{"files": {key: {}}}]},
            {},
        )
        engine = RestoreEngine(_resolver(str(tmp_path / "home")))
        with pytest.raises(MoveFailure) as exc_info:
            await engine.restore(tmp_path / "staging", TITLE, str(tmp_path / "home"))
        assert exc_info.value.destination == Path(key)

    @pytest.mark.asyncio
    async def test_failure_stops_later_entries_without_rollback(self, tmp_path: Path) -> None:
        home = tmp_path / "home"
        first, broken, later = (str(home / name) for name in ("first.sav", "broken.sav", "later.sav"))
        _write_staging(
            tmp_path / "staging",
            {
                "drives": {"drive-0": ""},
                "backups": [
                    {"files": {first: {}}},
                    {"files": {broken: {}}},
                    {"files": {later: {}}},
                ],
            },
            {"drive-0" + first: b"1", "drive-0" + later: b"3"},
        )
        engine = RestoreEngine(_resolver(str(home)))
        with pytest.raises(MoveFailure):
            await engine.restore(tmp_path / "staging", TITLE, str(home))

        assert Path(first).read_bytes() == b"1"
        assert not Path(later).exists()

    @pytest.mark.asyncio
    async def test_missing_manifest(self, tmp_path: Path) -> None:
        (tmp_path / "staging" / TITLE).mkdir(parents=True)
        engine = RestoreEngine(_resolver("/home/me"))
        with pytest.raises(ManifestParseError):
            await engine.restore(tmp_path / "staging", TITLE, "/home/me")

    @pytest.mark.asyncio
    async def test_profile_resolved_off_event_loop(self, tmp_path: Path) -> None:
        _write_staging(tmp_path / "staging", {"backups": []}, {})
        loop_thread = threading.get_ident()
        seen: list[int] = []

        class RecordingResolver:
            def resolve_user_profile_path(self, wine_prefix: str | None) -> str:
                seen.append(threading.get_ident())
                return "/home/me"

        await RestoreEngine(RecordingResolver()).restore(tmp_path / "staging", TITLE, "/home/me")
        assert seen and seen[0] != loop_thread
