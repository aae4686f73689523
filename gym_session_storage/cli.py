"""Command line driver for syncing the local workout data.

Usage:
    gym-sync status
    gym-sync pull [--settings PATH]
    gym-sync push --verbose
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import DEFAULT_SETTINGS_PATH, load_settings
from .cosmos.store import CosmosRemoteStore
from .exceptions import GymStorageError
from .identity.config_provider import ConfigFileIdentityProvider
from .local.store import LocalSlot, LocalStore
from .logging_utils import configure_logging
from .sync.coordinator import SyncCoordinator
from .sync.types import SyncOutcome, SyncResult

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gym-sync", description="Sync workout sessions with the cloud"
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=DEFAULT_SETTINGS_PATH,
        help=f"Settings file (default: {DEFAULT_SETTINGS_PATH})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Structured JSON logs")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("pull", help="Merge the cloud copy into local data")
    commands.add_parser("push", help="Upload local data to the cloud")
    commands.add_parser("status", help="Show local data and account")
    return parser


def _report(result: SyncResult) -> int:
    if result.outcome == SyncOutcome.FAILED:
        print(f"{result.operation.value} failed: {result.error}", file=sys.stderr)
        return 1
    if result.outcome == SyncOutcome.NOT_SIGNED_IN:
        print("Not signed in: add an identity section to the settings file", file=sys.stderr)
        return 1
    line = f"{result.operation.value}: {result.outcome.value}"
    if result.remote_updated_at:
        line += f" (remote {result.remote_updated_at})"
    if result.adopted or result.replaced:
        line += f", {result.adopted} new, {result.replaced} updated"
    print(line)
    return 0


async def run(args: argparse.Namespace) -> int:
    storage_config, sync_config = load_settings(args.settings)
    local = LocalStore(storage_config.local_dir)
    identity = await ConfigFileIdentityProvider(args.settings).get_current_identity()

    if args.command == "status":
        await local.initialize()
        sessions = await local.get(LocalSlot.SESSIONS, [])
        templates = await local.get(LocalSlot.TEMPLATES, [])
        print(f"Local data:  {storage_config.local_dir}")
        print(f"Sessions:    {len(sessions)}")
        print(f"Templates:   {len(templates)}")
        print(f"Account:     {identity.user_id if identity else '(signed out)'}")
        print(f"Cloud:       {storage_config.cosmos_endpoint or '(not configured)'}")
        return 0

    if not storage_config.remote_enabled:
        print("No Cosmos endpoint configured (GYM_COSMOS_ENDPOINT)", file=sys.stderr)
        return 2

    # Manual commands only: no background interval, no debounce flush needed
    sync_config.pull_interval_seconds = max(sync_config.pull_interval_seconds, 3600.0)
    remote = CosmosRemoteStore.from_config(storage_config)
    async with SyncCoordinator(local, remote, sync_config) as coordinator:
        if identity is None:
            print("Not signed in: add an identity section to the settings file", file=sys.stderr)
            return 1
        login = await coordinator.sign_in(identity)
        if args.command == "pull":
            result = login or await coordinator.manual_pull()
        else:
            if login is not None and login.outcome == SyncOutcome.FAILED:
                return _report(login)
            result = await coordinator.manual_push()
        return _report(result)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO, json_logs=args.json_logs)
    try:
        return asyncio.run(run(args))
    except GymStorageError as e:
        logger.error(f"{e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
