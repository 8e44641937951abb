"""Command line driver for installing and running the AgentSmithy sidecar.

Usage:
    agentsmithy-sidecar install [--yes]
    agentsmithy-sidecar start --workdir PATH [--yes]
    agentsmithy-sidecar status --workdir PATH
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

import orjson

from .config import SidecarSettings, env_bool
from .exceptions import SidecarError
from .lifecycle_orchestrator import LifecycleOrchestrator
from .lifecycle_orchestrator_helpers import DownloadPrompt, UserNotice
from .logging_config import setup_logging

logger = logging.getLogger(__name__)

SUPERVISE_POLL_SECONDS = 1.0
_NOTICE_LEVELS = {"info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agentsmithy-sidecar", description="Manage the AgentSmithy sidecar server")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    install = subparsers.add_parser("install", help="Download or update the server binary")
    install.add_argument("--yes", action="store_true", help="Download without asking")

    start = subparsers.add_parser("start", help="Start the server and supervise it until interrupted")
    start.add_argument("--workdir", required=True, type=Path, help="Workspace root passed to the server")
    start.add_argument("--yes", action="store_true", help="Download without asking")

    status = subparsers.add_parser("status", help="Print the server status for a workspace as JSON")
    status.add_argument("--workdir", required=True, type=Path, help="Workspace root to inspect")
    return parser


def _confirmer(auto_confirm: bool):
    async def confirm(prompt: DownloadPrompt) -> bool:
        if auto_confirm:
            logger.info("%s (auto-confirmed)", prompt.message)
            return True
        answer = await asyncio.to_thread(input, f"{prompt.message} [y/N] ")
        return answer.strip().lower() in ("y", "yes")

    return confirm


def _log_notice(notice: UserNotice) -> None:
    logger.log(_NOTICE_LEVELS.get(notice.level, logging.INFO), notice.message)


def _build_orchestrator(settings: SidecarSettings, workdir: Optional[Path], auto_confirm: bool) -> LifecycleOrchestrator:
    orchestrator = LifecycleOrchestrator(
        settings,
        workspace_root_provider=lambda: workdir,
        confirm_download=_confirmer(auto_confirm),
    )
    orchestrator.on_user_notice.subscribe(_log_notice)
    orchestrator.on_config_invalid.subscribe(
        lambda event: logger.warning("Server configuration is invalid: %s", ", ".join(event.errors) or "no details")
    )
    return orchestrator


async def _supervise(orchestrator: LifecycleOrchestrator) -> int:
    try:
        await orchestrator.start_server()
        logger.info("Server running at %s (Ctrl-C to stop)", orchestrator.server_url())
        while orchestrator.supervisor.is_alive():
            await asyncio.sleep(SUPERVISE_POLL_SECONDS)
        logger.warning("Server is no longer running")
        return 1
    finally:
        await orchestrator.dispose()


async def run(args: argparse.Namespace) -> int:
    settings = SidecarSettings.from_env()
    verbose = args.verbose or env_bool("AGENTSMITHY_VERBOSE", or_value=False)
    setup_logging(settings.log_dir, verbose=verbose)

    if args.command == "status":
        orchestrator = _build_orchestrator(settings, args.workdir.resolve(), auto_confirm=False)
        status = orchestrator.get_status()
        sys.stdout.write(orjson.dumps(dataclasses.asdict(status)).decode() + "\n")
        return 0

    if args.command == "install":
        orchestrator = _build_orchestrator(settings, None, args.yes)
        path = await orchestrator.ensure_server()
        logger.info("Server available at %s", path)
        return 0

    orchestrator = _build_orchestrator(settings, args.workdir.resolve(), args.yes)
    return await _supervise(orchestrator)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        return 130
    except SidecarError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
