"""Manifest generator — exports a game's save files with the Ludusavi CLI."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Protocol

from loguru import logger

from savevault.errors import ManifestGenerationError


class ManifestGenerator(Protocol):
    """Populates a staging directory with payload files plus ``<title>/mapping.yaml``."""

    async def generate(
        self,
        shop: str,
        object_id: str,
        staging_dir: Path,
        wine_prefix: str | None = None,
    ) -> None: ...


class LudusaviManifestGenerator:
    """Runs ``ludusavi backup`` as a subprocess."""

    def __init__(self, binary: str = "ludusavi", config_dir: Path | None = None) -> None:
        self._binary = binary
        self._config_dir = config_dir

    def build_args(self, object_id: str, staging_dir: Path, wine_prefix: str | None) -> list[str]:
        args = [self._binary]
        if self._config_dir:
            args += ["--config", str(self._config_dir)]
        args += ["backup", object_id, "--api", "--force", "--path", str(staging_dir)]
        if wine_prefix:
            args += ["--wine-prefix", wine_prefix]
        return args

    async def generate(
        self,
        shop: str,
        object_id: str,
        staging_dir: Path,
        wine_prefix: str | None = None,
    ) -> None:
        args = self.build_args(object_id, staging_dir, wine_prefix)
        logger.debug(f"Running {' '.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ManifestGenerationError(f"Cannot start {self._binary}: {e}") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            raise ManifestGenerationError(
                f"Ludusavi backup failed for {shop}-{object_id}",
                returncode=process.returncode,
                stderr=stderr.decode("utf-8", errors="replace"),
            )
        logger.info(f"Exported saves for {shop}-{object_id} to {staging_dir}")
