"""Entry point: `python main.py` to play over stdio, `--mode local` for sandbox self-play."""

from __future__ import annotations
import logging
import sys

from game_lifecycle import parse_args, run_from_args
from serialization import ProtocolError

log = logging.getLogger("main")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    # stdout carries the game protocol
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return run_from_args(args)
    except ProtocolError as e:
        log.error("cannot continue: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
