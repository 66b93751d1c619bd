"""
Remote provider — backups kept in an HTTP object store.

The store keeps each archive as one file resource; the sidecar metadata
travels in the resource's ``description`` field instead of a separate file.

Store contract (bearer-token authenticated):
    GET    {base}/files?prefix=<p>     -> {"files": [resource, ...]}
    POST   {base}/files                 multipart: "metadata" (JSON) + "file"
    GET    {base}/files/{id}            -> resource
    GET    {base}/files/{id}/content    -> archive bytes
    DELETE {base}/files/{id}

resource = {id, name, size, createdTime, modifiedTime, description}
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Callable
from uuid import uuid4

import httpx
from loguru import logger

from savevault.core.archive import ARCHIVE_EXTENSION
from savevault.core.catalog import backup_id_prefix, sort_artifacts
from savevault.core.metadata import decode_metadata, encode_metadata
from savevault.core.notifications import Notifier
from savevault.errors import ConfigurationError, RemoteStoreError
from savevault.models.backup_record import BackupArtifact
from savevault.providers.base import BackupProvider, FetchedBackup

ProgressCallback = Callable[[int, int | None], None]


def _parse_time(raw: Any) -> datetime:
    if not raw:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    value = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _artifact_from_resource(
    resource: dict[str, Any], name: str, object_id: str, shop: str
) -> BackupArtifact:
    meta = decode_metadata(resource.get("description"))
    return BackupArtifact(
        id=str(resource["id"]),
        name=name,
        size_bytes=int(resource.get("size") or 0),
        created_at=_parse_time(resource.get("createdTime")),
        modified_at=_parse_time(resource.get("modifiedTime")),
        game_object_id=meta.get("objectId", object_id),
        game_shop=meta.get("shop", shop),
        label=meta.get("label"),
    )


def _open_for_write(path: Path) -> BinaryIO:
    path.parent.mkdir(parents=True, exist_ok=True)
    return open(path, "wb")


def _write_chunk(f: BinaryIO, chunk: bytes) -> None:
    f.write(chunk)


class HttpBackupStoreClient:
    """Thin async client for the remote backup store."""

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._transport = transport

    def _http_client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def list_files(self, prefix: str) -> list[dict[str, Any]]:
        try:
            async with self._http_client() as client:
                response = await client.get("/files", params={"prefix": prefix})
                response.raise_for_status()
                return response.json().get("files", [])
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise RemoteStoreError(f"Failed to list remote backups: {e}") from e

    async def get_file(self, file_id: str) -> dict[str, Any]:
        try:
            async with self._http_client() as client:
                response = await client.get(f"/files/{file_id}")
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise RemoteStoreError(f"Failed to read remote backup {file_id}: {e}") from e

    async def upload(self, archive_path: Path, name: str, description: str) -> str:
        try:
            archive = await asyncio.to_thread(open, archive_path, "rb")
        except OSError as e:
            raise RemoteStoreError(f"Cannot read archive {archive_path}: {e}") from e
        try:
            async with self._http_client() as client:
                # httpx streams the open file in chunks
                response = await client.post(
                    "/files",
                    files={
                        "metadata": (
                            None,
                            json.dumps({"name": name, "description": description}),
                            "application/json",
                        ),
                        "file": (name, archive, "application/x-tar"),
                    },
                )
                response.raise_for_status()
                return str(response.json()["id"])
        except (httpx.HTTPError, json.JSONDecodeError, KeyError, OSError) as e:
            raise RemoteStoreError(f"Failed to upload {name}: {e}") from e
        finally:
            await asyncio.to_thread(archive.close)

    async def download(
        self,
        file_id: str,
        dest_path: Path,
        on_progress: ProgressCallback | None = None,
    ) -> None:
        """Stream a file's content to *dest_path*; a partial file never survives a failure."""
        try:
            async with self._http_client() as client:
                async with client.stream("GET", f"/files/{file_id}/content") as response:
                    response.raise_for_status()
                    raw_total = response.headers.get("Content-Length")
                    total = int(raw_total) if raw_total else None
                    loaded = 0
                    f = await asyncio.to_thread(_open_for_write, dest_path)
                    try:
                        async for chunk in response.aiter_bytes():
                            await asyncio.to_thread(_write_chunk, f, chunk)
                            loaded += len(chunk)
                            if on_progress:
                                on_progress(loaded, total)
                    finally:
                        await asyncio.to_thread(f.close)
        except (httpx.HTTPError, OSError) as e:
            await asyncio.to_thread(dest_path.unlink, missing_ok=True)
            raise RemoteStoreError(f"Failed to download remote backup {file_id}: {e}") from e
        except BaseException:
            # Cancelled or unexpected: remove synchronously, no further awaits
            dest_path.unlink(missing_ok=True)
            raise

    async def delete(self, file_id: str) -> None:
        try:
            async with self._http_client() as client:
                response = await client.delete(f"/files/{file_id}")
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise RemoteStoreError(f"Failed to delete remote backup {file_id}: {e}") from e


class RemoteBackupProvider(BackupProvider):
    def __init__(
        self,
        client: HttpBackupStoreClient | None,
        staging_root: Path,
        notifier: Notifier | None = None,
    ) -> None:
        self._client = client
        self._staging_root = staging_root
        self._notifier = notifier

    @property
    def name(self) -> str:
        return "remote"

    @property
    def keeps_archive(self) -> bool:
        return False

    @property
    def client(self) -> HttpBackupStoreClient:
        self.ensure_configured()
        assert self._client is not None
        return self._client

    def ensure_configured(self) -> None:
        if self._client is None or not self._client.base_url:
            raise ConfigurationError("Remote backup store is not configured")

    def _temporary_archive(self) -> Path:
        return self._staging_root / f"{uuid4()}{ARCHIVE_EXTENSION}"

    def archive_path(self, file_name: str) -> Path:
        return self._temporary_archive()

    async def store(self, archive_path: Path, file_name: str, metadata: dict[str, str]) -> None:
        file_id = await self.client.upload(archive_path, file_name, encode_metadata(metadata))
        logger.info(f"Uploaded {file_name} as remote file {file_id}")

    async def fetch(self, artifact_id: str, object_id: str, shop: str) -> FetchedBackup:
        resource = await self.client.get_file(artifact_id)
        archive_path = self._temporary_archive()

        def on_progress(loaded: int, total: int | None) -> None:
            if self._notifier:
                self._notifier.download_progress(object_id, shop, loaded, total)

        await self.client.download(artifact_id, archive_path, on_progress)
        return FetchedBackup(
            archive_path=archive_path,
            metadata=decode_metadata(resource.get("description")),
            temporary=True,
        )

    async def list_backups(self, object_id: str, shop: str) -> list[BackupArtifact]:
        prefix = backup_id_prefix(shop, object_id)
        artifacts = []
        for resource in await self.client.list_files(prefix):
            name = str(resource.get("name", ""))
            if not (name.startswith(prefix) and name.endswith(ARCHIVE_EXTENSION)):
                continue
            try:
                artifacts.append(_artifact_from_resource(resource, name, object_id, shop))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed remote backup {name}: {e!r}")
        return sort_artifacts(artifacts)

    async def delete_backup(self, artifact_id: str) -> None:
        await self.client.delete(artifact_id)
