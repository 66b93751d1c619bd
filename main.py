"""Command-line entry point — wires services and runs one backup operation.

Usage:
    savevault set-path <dir>
    savevault backup <shop> <object_id> [--wine-prefix P] [--label L]
    savevault list <shop> <object_id>
    savevault restore <shop> <object_id> <backup_id> [--wine-prefix P]
    savevault delete <backup_id>

Examples:
    savevault set-path ~/SaveBackups
    savevault backup steam 1145360 --label "before final boss"
    savevault --provider remote list steam 1145360
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path

from loguru import logger

from savevault.config import PROVIDER_LOCAL, PROVIDER_REMOTE, Config, get_config
from savevault.context import AppContext, create_context
from savevault.core.notifications import Notification, Signal
from savevault.errors import SaveVaultError
from savevault.logger import setup_logger
from savevault.models.game import GameRef
from savevault.utils import format_size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="savevault", description="Back up and restore game saves.")
    parser.add_argument("--data-dir", type=Path, help="Configuration / staging directory")
    parser.add_argument("--provider", choices=[PROVIDER_LOCAL, PROVIDER_REMOTE])
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    set_path = sub.add_parser("set-path", help="Set the local backup folder")
    set_path.add_argument("path", type=Path)

    for name in ("backup", "list", "restore"):
        cmd = sub.add_parser(name)
        cmd.add_argument("shop")
        cmd.add_argument("object_id")
        if name == "restore":
            cmd.add_argument("backup_id")
        if name != "list":
            cmd.add_argument("--wine-prefix")
        if name == "backup":
            cmd.add_argument("--label")
            cmd.add_argument("--option-title", dest="download_option_title")
        if name == "list":
            cmd.add_argument("--json", action="store_true", dest="as_json")

    delete = sub.add_parser("delete")
    delete.add_argument("backup_id")
    return parser


def _print_progress(notification: Notification) -> None:
    if notification.signal != Signal.DOWNLOAD_PROGRESS:
        return
    loaded = notification.payload.get("loaded", 0)
    total = notification.payload.get("total")
    suffix = f" / {format_size(total)}" if total else ""
    print(f"\r{format_size(loaded)}{suffix}", end="", file=sys.stderr)


async def run(ctx: AppContext, args: argparse.Namespace) -> int:
    settings = ctx.config.backup_settings()
    if args.provider:
        settings = replace(settings, provider=args.provider)
    orchestrator = ctx.orchestrator

    if args.command == "delete":
        await orchestrator.delete_backup(settings, args.backup_id)
        return 0

    game = GameRef(
        object_id=args.object_id,
        shop=args.shop,
        wine_prefix_path=getattr(args, "wine_prefix", None),
    )

    try:
        if args.command == "backup":
            name = await orchestrator.upload_save_game(
                settings, game, args.download_option_title, args.label
            )
            print(name)
        elif args.command == "restore":
            restored = await orchestrator.download_backup(settings, game, args.backup_id)
            print(f"Restored {len(restored)} files")
        elif args.command == "list":
            artifacts = await orchestrator.list_backups(settings, game)
            if args.as_json:
                print(json.dumps([a.to_dict() for a in artifacts], indent=2))
            else:
                for artifact in artifacts:
                    label = f"  [{artifact.label}]" if artifact.label else ""
                    print(
                        f"{artifact.id}  {artifact.created_at:%Y-%m-%d %H:%M:%S}  "
                        f"{format_size(artifact.size_bytes)}{label}"
                    )
    finally:
        await orchestrator.wait_for_cleanup()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)
    config = Config(data_dir=args.data_dir) if args.data_dir else get_config()

    setup_logger(config.data_dir / "logs", verbose=args.verbose)

    if args.command == "set-path":
        config.local_backup_path = args.path.expanduser().resolve()
        logger.info(f"Local backup path set to {config.local_backup_path}")
        return 0

    ctx = create_context(config)
    ctx.notifier.subscribe(_print_progress)
    try:
        return asyncio.run(run(ctx, args))
    except SaveVaultError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
