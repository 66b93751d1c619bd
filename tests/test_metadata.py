"""Tests for sidecar metadata."""

from __future__ import annotations

from pathlib import Path

import pytest

from savevault.core.metadata import (
    decode_metadata,
    read_metadata,
    sidecar_path_for,
    write_metadata,
)
from savevault.models.backup_record import BackupMetadata


class TestSidecarFiles:
    def test_sidecar_name(self, tmp_path: Path) -> None:
        archive = tmp_path / "steam-42-1700000000000.tar"
        assert sidecar_path_for(archive) == tmp_path / "steam-42-1700000000000.tar.meta.json"

    @pytest.mark.asyncio
    async def test_write_then_read(self, tmp_path: Path) -> None:
        path = tmp_path / "a.tar.meta.json"
        await write_metadata(path, {"shop": "steam", "objectId": "42", "label": "Ünïcode"})
        assert await read_metadata(path) == {"shop": "steam", "objectId": "42", "label": "Ünïcode"}

    @pytest.mark.asyncio
    async def test_write_overwrites(self, tmp_path: Path) -> None:
        path = tmp_path / "a.tar.meta.json"
        await write_metadata(path, {"label": "old", "hostname": "box"})
        await write_metadata(path, {"label": "new"})
        assert await read_metadata(path) == {"label": "new"}

    @pytest.mark.asyncio
    async def test_missing_reads_empty(self, tmp_path: Path) -> None:
        assert await read_metadata(tmp_path / "nope.meta.json") == {}

    @pytest.mark.asyncio
    async def test_invalid_json_reads_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "a.tar.meta.json"
        path.write_text("{not json", encoding="utf-8")
        assert await read_metadata(path) == {}


class TestDecode:
    def test_non_object_is_empty(self) -> None:
        assert decode_metadata("[1, 2]") == {}
        assert decode_metadata("") == {}
        assert decode_metadata(None) == {}

    def test_non_string_values_dropped(self) -> None:
        assert decode_metadata('{"shop": "steam", "timestamp": 5}') == {"shop": "steam"}


class TestBackupMetadata:
    def test_optional_fields_omitted(self) -> None:
        meta = BackupMetadata(shop="steam", object_id="42", hostname="box", home_dir="/home/me", platform="linux")
        assert meta.to_fields() == {
            "shop": "steam",
            "objectId": "42",
            "hostname": "box",
            "homeDir": "/home/me",
            "platform": "linux",
        }

    def test_from_empty_fields_uses_defaults(self) -> None:
        meta = BackupMetadata.from_fields({}, object_id="42", shop="epic")
        assert meta.object_id == "42"
        assert meta.shop == "epic"
        assert meta.label is None
        assert meta.wine_prefix_path is None

    def test_fields_round_trip(self) -> None:
        meta = BackupMetadata(
            shop="steam",
            object_id="42",
            hostname="box",
            home_dir="C:/users/steamuser",
            platform="linux",
            wine_prefix_path="/pfx",
            download_option_title="GOG",
            label="pre-boss",
        )
        assert BackupMetadata.from_fields(meta.to_fields(), "other", "other") == meta
