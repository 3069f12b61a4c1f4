"""The per-turn decision pipeline."""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from client import GameClient
from core import Turn
from knowledge import WOOD_MIN_AMOUNT, TurnKnowledge, is_day, turns_until_night
from mechanics import Action, CityTile, DrawLine, GameState, MoveAction, SideText, Unit
from planning import (
    BudgetedCityTilePolicy,
    CityTilePolicy,
    Decision,
    GreedyWorkerPolicy,
    IdleCartPolicy,
    Policy,
)
from serialization import parse_turn

log = logging.getLogger(__name__)


@dataclass
class AgentConfig:
    """Tunables for the turn engine. Policies left as None are built from the flags."""

    wood_min_amount: int = WOOD_MIN_AMOUNT
    annotate: bool = False
    budget_workers: bool = False
    worker_policy: Policy[Unit] | None = None
    cart_policy: Policy[Unit] | None = None
    citytile_policy: Policy[CityTile] | None = None


@dataclass
class Engine:
    """Reads a turn, decides for every actor that can act, writes the actions."""

    client: GameClient
    config: AgentConfig = field(default_factory=AgentConfig)

    player_id: int = field(init=False)
    width: int = field(init=False)
    height: int = field(init=False)
    current_turn: Turn = field(init=False, default=-1)
    state: GameState | None = field(init=False, default=None)
    knowledge: TurnKnowledge | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.worker_policy = self.config.worker_policy or GreedyWorkerPolicy()
        self.cart_policy = self.config.cart_policy or IdleCartPolicy()
        self.citytile_policy = self.config.citytile_policy or (
            BudgetedCityTilePolicy() if self.config.budget_workers else CityTilePolicy()
        )
        self.player_id, self.width, self.height = self.client.read_header()
        log.info(
            "playing as %d on a %dx%d map (workers: %s, carts: %s, city tiles: %s)",
            self.player_id,
            self.width,
            self.height,
            self.worker_policy.description,
            self.cart_policy.description,
            self.citytile_policy.description,
        )

    def is_day(self) -> bool:
        return is_day(self.current_turn)

    def is_night(self) -> bool:
        return not self.is_day()

    def turns_until_night(self) -> int | None:
        return turns_until_night(self.current_turn)

    def turn(self) -> list[Action]:
        """Play one full turn and return what was submitted."""
        # 1. Fresh state; ProtocolError and GameOver propagate from here
        lines = self.client.read_update()
        self.current_turn += 1
        state = parse_turn(lines, self.player_id, self.width, self.height, self.current_turn)
        self.state = state

        # 2. Derived state for this turn only
        knowledge = TurnKnowledge.build(state, self.config.wood_min_amount)
        self.knowledge = knowledge
        for policy in (self.worker_policy, self.cart_policy, self.citytile_policy):
            policy.start_turn(knowledge)

        decisions: list[Decision] = []

        def record(actor_id: str, decision: Decision | None) -> None:
            if decision is None:
                log.debug("turn %d: %s idle", self.current_turn, actor_id)
                return
            log.debug("turn %d: %s -> %s (%s)", self.current_turn, actor_id, decision.action, decision.reason)
            decisions.append(decision)

        # 3-4. Units
        player = state.player
        for unit in player.units:
            if not unit.can_act():
                continue
            if unit.is_worker():
                record(unit.id, self.worker_policy.decide(knowledge, unit))
            elif unit.is_cart():
                record(unit.id, self.cart_policy.decide(knowledge, unit))

        # 5. City tiles
        for city in player.cities.values():
            for citytile in city.citytiles:
                if citytile.can_act():
                    record(
                        f"{city.id}@({citytile.pos.x}, {citytile.pos.y})",
                        self.citytile_policy.decide(knowledge, citytile),
                    )

        # 6. Submit, end turn, flush
        actions = [decision.action for decision in decisions]
        if self.config.annotate:
            actions.extend(self._annotations(state, decisions))
        self.client.write_actions(actions)
        self.client.end_turn()
        self.client.flush()

        log.info(
            "turn %d (%s): %d actions for %d units, %d city tiles",
            self.current_turn,
            "day" if self.is_day() else "night",
            len(decisions),
            len(player.units),
            player.city_tile_count,
        )
        return actions

    def _annotations(self, state: GameState, decisions: list[Decision]) -> list[Action]:
        annotations: list[Action] = []
        for decision in decisions:
            if isinstance(decision.action, MoveAction) and decision.target is not None:
                unit = state.find_unit(self.player_id, decision.action.unit_id)
                if unit is not None:
                    annotations.append(DrawLine(start=unit.pos, end=decision.target))
        until_night = self.turns_until_night()
        phase = "night" if until_night is None else f"day; {until_night} turns until night"
        annotations.append(SideText(message=f"turn {self.current_turn}: {phase}"))
        return annotations
