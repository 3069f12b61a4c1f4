"""Per-turn derived knowledge: which resources are worth harvesting, and what is nearest."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, TypeVar

from core import Direction, Pos, Turn
from mechanics import (
    CYCLE_LENGTH,
    DAY_LENGTH,
    Cell,
    CityTile,
    GameState,
    Player,
    Resource,
    ResourceType,
)


WOOD_MIN_AMOUNT = 400

# Adjacent build spots are tried in this order.
ADJACENT_SCAN_ORDER = (Direction.NORTH, Direction.SOUTH, Direction.EAST, Direction.WEST)

T = TypeVar("T")


def is_day(turn: Turn) -> bool:
    return turn % CYCLE_LENGTH < DAY_LENGTH


def turns_until_night(turn: Turn) -> int | None:
    """Turns of daylight left, or None if it is already night."""
    if not is_day(turn):
        return None
    return DAY_LENGTH - (turn % CYCLE_LENGTH)


def is_resource_eligible(
    resource: Resource, player: Player, wood_min_amount: int = WOOD_MIN_AMOUNT
) -> bool:
    if not player.is_researched(resource.type):
        return False
    if resource.type == ResourceType.WOOD:
        return resource.amount > wood_min_amount
    return True


def find_eligible_resources(
    state: GameState, wood_min_amount: int = WOOD_MIN_AMOUNT
) -> tuple[Cell, ...]:
    """Scan the whole board once, row-major, keeping cells we are willing to harvest."""
    return tuple(
        cell
        for cell in state.map.cells()
        if cell.resource is not None
        and is_resource_eligible(cell.resource, state.player, wood_min_amount)
    )


def closest(candidates: Iterable[T], pos: Pos, key: Callable[[T], Pos]) -> T | None:
    """Nearest candidate to pos by Euclidean distance.

    Only a strictly smaller distance replaces the current best, so ties go to
    whichever candidate came first.
    """
    best: T | None = None
    best_distance = float("inf")
    for candidate in candidates:
        distance = key(candidate).distance_to(pos)
        if distance < best_distance:
            best = candidate
            best_distance = distance
    return best


@dataclass(frozen=True)
class TurnKnowledge:
    """Everything the policies may consult during one turn.

    Built once per turn from a fresh GameState; never carried over.
    """

    state: GameState
    eligible_resources: tuple[Cell, ...]

    @classmethod
    def build(cls, state: GameState, wood_min_amount: int = WOOD_MIN_AMOUNT) -> TurnKnowledge:
        return cls(
            state=state,
            eligible_resources=find_eligible_resources(state, wood_min_amount),
        )

    @property
    def player(self) -> Player:
        return self.state.player

    @property
    def turn(self) -> Turn:
        return self.state.turn

    def is_day(self) -> bool:
        return is_day(self.turn)

    def is_night(self) -> bool:
        return not self.is_day()

    def turns_until_night(self) -> int | None:
        return turns_until_night(self.turn)

    def nearest_city_tile(self, pos: Pos) -> CityTile | None:
        return closest(self.player.citytiles(), pos, key=lambda tile: tile.pos)

    def nearest_eligible_resource(self, pos: Pos) -> Cell | None:
        return closest(self.eligible_resources, pos, key=lambda cell: cell.pos)

    def empty_cell_adjacent_to(self, pos: Pos) -> Cell | None:
        """First in-bounds neighbor with neither a city tile nor a resource."""
        for direction in ADJACENT_SCAN_ORDER:
            neighbor = pos.translate(direction)
            if not self.state.map.in_bounds(neighbor):
                continue
            cell = self.state.map.get_cell_by_pos(neighbor)
            if cell.citytile is None and not cell.has_resource():
                return cell
        return None
