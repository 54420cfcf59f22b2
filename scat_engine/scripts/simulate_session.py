#!/usr/bin/env python
"""
Run a scripted assessment session headlessly.

Reads one utterance per line, runs each through the command parser, the
router and the orchestrator against a NullDisplay, then prints the session
summary as JSON. Blank lines and lines starting with '#' are skipped.

Usage:
    scat-simulate utterances.txt
    scat-simulate --session-type emergency < utterances.txt
    scat-simulate --modules orientation,concentration,balance utterances.txt
"""

import argparse
import asyncio
import json
import sys
from typing import Dict, Iterable, List, Optional

import structlog
from dotenv import load_dotenv

from scat_engine.commands.parser import CommandParser
from scat_engine.commands.router import CommandRouter
from scat_engine.config import get_settings
from scat_engine.core.exceptions import SessionConfigurationError
from scat_engine.logging_config import configure_logging
from scat_engine.models.enumerations import ModuleKind, SessionType
from scat_engine.models.session import Session, validate_module_order
from scat_engine.services.display import NullDisplay
from scat_engine.services.orchestrator import SessionOrchestrator
from scat_engine.services.result_store import InMemoryResultStore

logger = structlog.get_logger(__name__)


async def run_session(
    utterances: Iterable[str],
    session_type: SessionType = SessionType.FULL,
    modules: Optional[List[ModuleKind]] = None,
) -> Dict:
    """Feed utterances to a fresh session and return its summary and final state."""
    settings = get_settings()
    session = Session.create(session_type, modules)
    parser = CommandParser()
    router = CommandRouter(announcer=lambda text: print(f">> {text}", file=sys.stderr))
    orchestrator = SessionOrchestrator(
        session,
        display=NullDisplay(),
        router=router,
        store=InMemoryResultStore(),
        settings=settings,
    )

    await orchestrator.start()
    unparsed = 0
    for line in utterances:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        command = parser.parse(line)
        if command is None:
            unparsed += 1
            logger.info("utterance_not_understood", utterance=line)
            continue
        await orchestrator.handle_command(command)

    return {
        "session_id": str(session.id),
        "state": orchestrator.state.value,
        "current_module": orchestrator.current_module.value if orchestrator.current_module else None,
        "unparsed_utterances": unparsed,
        "summary": orchestrator.summary().to_dict(),
    }


def _parse_modules(value: Optional[str]) -> Optional[List[ModuleKind]]:
    if not value:
        return None
    return [ModuleKind(name.strip().lower()) for name in value.split(",") if name.strip()]


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    configure_logging()

    parser = argparse.ArgumentParser(description="Simulate a SCAT5 session from scripted utterances")
    parser.add_argument(
        "script",
        nargs="?",
        type=argparse.FileType("r"),
        default=sys.stdin,
        help="File with one utterance per line (default: stdin)",
    )
    parser.add_argument(
        "--session-type",
        choices=[t.value for t in SessionType],
        default=SessionType.FULL.value,
        help="Fixed module order to use (default: full)",
    )
    parser.add_argument(
        "--modules",
        default=None,
        help="Comma-separated custom module order, e.g. orientation,concentration,balance",
    )
    args = parser.parse_args(argv)

    try:
        modules = _parse_modules(args.modules)
        if modules is not None:
            validate_module_order(modules)
    except SessionConfigurationError as exc:
        parser.error(str(exc))
    except ValueError as exc:
        parser.error(f"unknown module in --modules: {exc}")

    with args.script as script:
        output = asyncio.run(run_session(script, SessionType(args.session_type), modules))

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
