"""Per-actor policies: each turn, turn knowledge plus one actor in, at most one action out."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from core import Pos
from knowledge import TurnKnowledge
from mechanics import CITY_BUILD_COST, Action, CityTile, Unit


ActorT = TypeVar("ActorT", Unit, CityTile)


@dataclass(frozen=True)
class Decision:
    """An action plus why it was chosen, for logging and annotations."""

    action: Action
    reason: str
    target: Pos | None = None


class Policy(ABC, Generic[ActorT]):
    """Base class for the strategy slots the engine consults each turn."""

    @property
    @abstractmethod
    def description(self) -> str:
        """The name of the policy."""
        ...

    def start_turn(self, knowledge: TurnKnowledge) -> None:
        """Called once per turn, before any decide() of that turn."""
        pass

    @abstractmethod
    def decide(self, knowledge: TurnKnowledge, actor: ActorT) -> Decision | None:
        """Pick this actor's action for the turn, or None to leave it idle."""
        pass


class GreedyWorkerPolicy(Policy[Unit]):
    """Build when loaded, otherwise walk to the nearest resource, or home when full.

    1. Carrying enough to build: found a city here if allowed, otherwise step
       toward a free cell next to the nearest city tile.
    2. Room left in cargo: step toward the nearest eligible resource.
    3. Cargo full: step toward the nearest city tile.
    A rule that finds no target falls through to the next one.
    """

    description = "greedy worker"

    def decide(self, knowledge: TurnKnowledge, actor: Unit) -> Decision | None:
        worker = actor
        if not worker.is_worker() or not worker.can_act():
            return None

        if worker.cargo_space_used() >= CITY_BUILD_COST:
            if worker.can_build(knowledge.state.map):
                return Decision(worker.build_city(), "build city", worker.pos)

            city_tile = knowledge.nearest_city_tile(worker.pos)
            if city_tile is not None:
                empty_cell = knowledge.empty_cell_adjacent_to(city_tile.pos)
                if empty_cell is not None:
                    return Decision(
                        worker.move(worker.pos.direction_to(empty_cell.pos)),
                        "to build spot",
                        empty_cell.pos,
                    )

        if worker.cargo_space_left() > 0:
            cell = knowledge.nearest_eligible_resource(worker.pos)
            if cell is not None:
                return Decision(
                    worker.move(worker.pos.direction_to(cell.pos)), "to resource", cell.pos
                )

        if worker.cargo_space_left() == 0:
            city_tile = knowledge.nearest_city_tile(worker.pos)
            if city_tile is not None:
                return Decision(
                    worker.move(worker.pos.direction_to(city_tile.pos)),
                    "return to city",
                    city_tile.pos,
                )

        return None


class IdleCartPolicy(Policy[Unit]):
    """Carts do nothing yet; a logistics policy can take this slot."""

    description = "idle cart"

    def decide(self, knowledge: TurnKnowledge, actor: Unit) -> Decision | None:
        return None


class CityTilePolicy(Policy[CityTile]):
    """Build a worker whenever the player has more city tiles than units.

    Every tile checks the same global counts, so a surplus of one can still
    produce a worker at each tile that gets to act this turn.
    """

    description = "worker per city tile"

    def decide(self, knowledge: TurnKnowledge, actor: CityTile) -> Decision | None:
        if not actor.can_act():
            return None
        player = knowledge.player
        if player.city_tile_count > len(player.units):
            return Decision(actor.build_worker(), "tiles > units", actor.pos)
        return None


@dataclass
class BudgetedCityTilePolicy(Policy[CityTile]):
    """Like CityTilePolicy, but the tile/unit surplus is spent once per turn."""

    description = "worker budget per turn"
    _remaining: int = field(default=0, repr=False)

    def start_turn(self, knowledge: TurnKnowledge) -> None:
        player = knowledge.player
        self._remaining = max(0, player.city_tile_count - len(player.units))

    def decide(self, knowledge: TurnKnowledge, actor: CityTile) -> Decision | None:
        if not actor.can_act() or self._remaining <= 0:
            return None
        self._remaining -= 1
        return Decision(actor.build_worker(), f"budget left {self._remaining}", actor.pos)
