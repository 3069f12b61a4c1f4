"""Game lifecycle management - configuration, the agent loop, and local sandbox games."""

from __future__ import annotations
import argparse
import logging

import numpy

from client import GameClient, LocalClient, StdioClient
from engine import AgentConfig, Engine
from knowledge import WOOD_MIN_AMOUNT
from mechanics import MAX_TURNS, Action, GameState, SandboxConfig, make_game, tick_game
from serialization import GameOver

log = logging.getLogger(__name__)


def run_agent(config: AgentConfig, client: GameClient | None = None) -> int:
    """Play turns until the game engine closes the stream; return turns played.

    ProtocolError (other than the end of input) propagates to the caller.
    """
    try:
        engine = Engine(client if client is not None else StdioClient(), config)
    except GameOver:
        log.info("input closed before the game started")
        return 0
    while True:
        try:
            engine.turn()
        except GameOver:
            turns = engine.current_turn + 1
            log.info("game over after %d turns", turns)
            return turns


def run_local_game(
    sandbox: SandboxConfig,
    config: AgentConfig,
    rng: numpy.random.Generator | None = None,
) -> GameState:
    """Play the agent against itself in the sandbox and return the final state."""
    state = make_game(sandbox, rng)
    clients = {team: LocalClient(state=state, team=team) for team in (0, 1)}
    engines = {team: Engine(client, config) for team, client in clients.items()}

    for _ in range(sandbox.turns):
        actions_by_team: dict[int, list[Action]] = {}
        for team, engine in engines.items():
            engine.turn()
            actions_by_team[team] = clients[team].take_actions()
        tick_game(state, actions_by_team)

    for player in state.players:
        log.info(
            "team %d: %d city tiles, %d units, %d research points",
            player.team,
            player.city_tile_count,
            len(player.units),
            player.research_points,
        )
    return state


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for agent configuration."""
    parser = argparse.ArgumentParser(description="Greedy grid-world resource agent")
    parser.add_argument(
        "--mode",
        type=str,
        choices=["agent", "local"],
        default="agent",
        help="agent: play over stdin/stdout (default); local: self-play in the sandbox",
    )
    parser.add_argument(
        "--wood-min",
        type=int,
        default=WOOD_MIN_AMOUNT,
        help=f"Only target wood cells holding more than this (default: {WOOD_MIN_AMOUNT})",
    )
    parser.add_argument(
        "--annotate",
        action="store_true",
        help="Emit debug annotations (target lines, day/night side text)",
    )
    parser.add_argument(
        "--worker-budget",
        action="store_true",
        help="Spend the city-tile surplus once per turn instead of at every tile",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level; logs go to stderr (default: INFO)",
    )
    parser.add_argument(
        "--width", type=int, default=16, help="Sandbox map width (default: 16)"
    )
    parser.add_argument(
        "--height", type=int, default=16, help="Sandbox map height (default: 16)"
    )
    parser.add_argument(
        "--turns",
        type=int,
        default=MAX_TURNS,
        help=f"Sandbox turns to play (default: {MAX_TURNS})",
    )
    parser.add_argument(
        "--research",
        type=int,
        default=0,
        help="Research points both sandbox teams start with (default: 0)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for sandbox map generation (default: random)",
    )

    args = parser.parse_args(argv)

    if args.mode == "local":
        if args.width < 6 or args.height < 6:
            parser.error("--width and --height must be at least 6")
        if args.turns < 0:
            parser.error("--turns must not be negative")

    return args


def config_from_args(args: argparse.Namespace) -> AgentConfig:
    return AgentConfig(
        wood_min_amount=args.wood_min,
        annotate=args.annotate,
        budget_workers=args.worker_budget,
    )


def run_from_args(args: argparse.Namespace) -> int:
    """Run the mode selected on the command line; return a process exit code."""
    config = config_from_args(args)
    if args.mode == "local":
        sandbox = SandboxConfig(
            width=args.width,
            height=args.height,
            turns=args.turns,
            initial_research_points=args.research,
        )
        run_local_game(sandbox, config, numpy.random.default_rng(args.seed))
    else:
        run_agent(config)
    return 0
