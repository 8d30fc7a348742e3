"""
Command line director and viewer.

Usage:
    song-director-ctl --url http://localhost:3000 get
    song-director-ctl set V3
    song-director-ctl kind C
    song-director-ctl ordinal 2
    song-director-ctl clear
    song-director-ctl watch --retries 3
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from ..core.section_state import SectionState
from ..errors import InvalidSectionError, SectionClientError
from ..utils.logging_utils import setup_logging
from .director_client import DirectorClient
from .viewer_client import RetryPolicy, SectionViewerClient, viewer_url

logger = logging.getLogger(__name__)

# Cue argument that clears the display, as on the director's "-" button
CLEAR_CUE = "-"


def parse_cue(text: str) -> SectionState:
    """Parse a cue argument in wire form (``V3``, ``C``) or ``-`` to clear."""
    if text == CLEAR_CUE:
        return SectionState()
    section = SectionState.from_wire(text)
    if section.to_wire() != text:
        raise argparse.ArgumentTypeError(f"invalid cue {text!r}, expected e.g. C, V3 or {CLEAR_CUE}")
    return section


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="song-director-ctl", description="Song Director command line client")
    parser.add_argument("--url", default="http://localhost:3000", help="Server base URL")
    parser.add_argument("--timeout", type=float, default=5.0, help="Control call timeout in seconds")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("get", help="Print the current cue")

    set_parser = commands.add_parser("set", help="Set the cue")
    set_parser.add_argument("cue", type=parse_cue, help="Cue such as C or V3, or - to clear")

    kind_parser = commands.add_parser("kind", help="Start a new section kind")
    kind_parser.add_argument("kind", help="Single character section kind")

    ordinal_parser = commands.add_parser("ordinal", help="Number the current section")
    ordinal_parser.add_argument("ordinal", type=int, help="Positive section number")

    commands.add_parser("clear", help="Blank the cue")

    watch_parser = commands.add_parser("watch", help="Print cues as they change")
    watch_parser.add_argument("--retries", type=int, default=0, help="Reconnect attempts after a failure")

    return parser


def _run_control(args: argparse.Namespace) -> None:
    with DirectorClient(args.url, timeout=args.timeout) as client:
        if args.command == "get":
            section = client.get_section()
        elif args.command == "set":
            section = client.set_section(args.cue)
        elif args.command == "kind":
            section = client.select_kind(args.kind)
        elif args.command == "ordinal":
            client.get_section()
            section = client.select_ordinal(args.ordinal)
        else:
            section = client.clear()
    print(section.to_wire() or CLEAR_CUE)


def _run_watch(args: argparse.Namespace) -> None:
    def show(section: SectionState) -> None:
        print(section.to_wire() or CLEAR_CUE, flush=True)

    client = SectionViewerClient(
        viewer_url(args.url), on_section=show, retry_policy=RetryPolicy(max_attempts=args.retries)
    )
    try:
        asyncio.run(client.run())
    except KeyboardInterrupt:
        logger.info("Watch interrupted")


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.debug)
    if not args.debug:
        # Keep stdout for cues
        logging.getLogger().setLevel(logging.WARNING)

    try:
        if args.command == "watch":
            _run_watch(args)
        else:
            _run_control(args)
    except (SectionClientError, InvalidSectionError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
