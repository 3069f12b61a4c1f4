"""Game mechanics and state."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging

import numpy as np

from core import Direction, Pos, Turn
from perlin import perlin


log = logging.getLogger(__name__)

# Game Constants
CITY_BUILD_COST = 100
WORKER_CAPACITY = 100
CART_CAPACITY = 2000
WORKER_COOLDOWN = 2
CART_COOLDOWN = 3
CITY_ACTION_COOLDOWN = 10
CITY_LIGHT_UPKEEP = 23
DAY_LENGTH = 30
NIGHT_LENGTH = 10
CYCLE_LENGTH = DAY_LENGTH + NIGHT_LENGTH
MAX_TURNS = 360


class ResourceType(Enum):
    WOOD = "wood"
    COAL = "coal"
    URANIUM = "uranium"


RESEARCH_REQUIREMENTS = {
    ResourceType.WOOD: 0,
    ResourceType.COAL: 50,
    ResourceType.URANIUM: 200,
}

COLLECTION_RATES = {
    ResourceType.WOOD: 20,
    ResourceType.COAL: 5,
    ResourceType.URANIUM: 2,
}

FUEL_RATES = {
    ResourceType.WOOD: 1,
    ResourceType.COAL: 10,
    ResourceType.URANIUM: 40,
}


class UnitType(Enum):
    WORKER = 0
    CART = 1


# ===== Actions =====


@dataclass(frozen=True)
class MoveAction:
    unit_id: str
    direction: Direction


@dataclass(frozen=True)
class BuildCityAction:
    unit_id: str


@dataclass(frozen=True)
class BuildWorkerAction:
    pos: Pos


@dataclass(frozen=True)
class DrawLine:
    """Debug annotation: a line between two cells in the replay viewer."""

    start: Pos
    end: Pos


@dataclass(frozen=True)
class SideText:
    """Debug annotation: free text shown beside the replay."""

    message: str


Action = MoveAction | BuildCityAction | BuildWorkerAction | DrawLine | SideText


# ===== World model =====


@dataclass
class Resource:
    type: ResourceType
    amount: int


@dataclass
class Cargo:
    wood: int = 0
    coal: int = 0
    uranium: int = 0

    def total(self) -> int:
        return self.wood + self.coal + self.uranium

    def get(self, resource_type: ResourceType) -> int:
        return getattr(self, resource_type.value)

    def add(self, resource_type: ResourceType, amount: int) -> None:
        setattr(self, resource_type.value, self.get(resource_type) + amount)

    def fuel_value(self) -> int:
        return sum(self.get(rt) * FUEL_RATES[rt] for rt in ResourceType)


@dataclass
class CityTile:
    city_id: str
    team: int
    pos: Pos
    cooldown: float = 0.0

    def can_act(self) -> bool:
        return self.cooldown < 1

    def build_worker(self) -> BuildWorkerAction:
        return BuildWorkerAction(pos=self.pos)


@dataclass
class City:
    id: str
    team: int
    fuel: float = 0.0
    light_upkeep: float = 0.0
    citytiles: list[CityTile] = field(default_factory=list)


@dataclass
class Cell:
    pos: Pos
    resource: Resource | None = None
    citytile: CityTile | None = None
    road: float = 0.0

    def has_resource(self) -> bool:
        return self.resource is not None and self.resource.amount > 0


class GameMap:
    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._rows = [[Cell(Pos(x, y)) for x in range(width)] for y in range(height)]

    def in_bounds(self, pos: Pos) -> bool:
        return 0 <= pos.x < self.width and 0 <= pos.y < self.height

    def get_cell(self, x: int, y: int) -> Cell:
        if not self.in_bounds(Pos(x, y)):
            raise ValueError(f"({x}, {y}) is outside the {self.width}x{self.height} map")
        return self._rows[y][x]

    def get_cell_by_pos(self, pos: Pos) -> Cell:
        return self.get_cell(pos.x, pos.y)

    def cells(self) -> list[Cell]:
        """All cells, row-major (y outer, x inner)."""
        return [cell for row in self._rows for cell in row]


@dataclass
class Unit:
    id: str
    team: int
    pos: Pos
    unit_type: UnitType = UnitType.WORKER
    cooldown: float = 0.0
    cargo: Cargo = field(default_factory=Cargo)

    def is_worker(self) -> bool:
        return self.unit_type == UnitType.WORKER

    def is_cart(self) -> bool:
        return self.unit_type == UnitType.CART

    def can_act(self) -> bool:
        return self.cooldown < 1

    def capacity(self) -> int:
        return WORKER_CAPACITY if self.is_worker() else CART_CAPACITY

    def cargo_space_used(self) -> int:
        return self.cargo.total()

    def cargo_space_left(self) -> int:
        return self.capacity() - self.cargo_space_used()

    def can_build(self, game_map: GameMap) -> bool:
        """Whether this unit may found a city on the cell it stands on."""
        cell = game_map.get_cell_by_pos(self.pos)
        return (
            self.is_worker()
            and self.can_act()
            and self.cargo_space_used() >= CITY_BUILD_COST
            and not cell.has_resource()
            and cell.citytile is None
        )

    def move(self, direction: Direction) -> MoveAction:
        return MoveAction(unit_id=self.id, direction=direction)

    def build_city(self) -> BuildCityAction:
        return BuildCityAction(unit_id=self.id)


@dataclass
class Player:
    team: int
    research_points: int = 0
    units: list[Unit] = field(default_factory=list)
    cities: dict[str, City] = field(default_factory=dict)

    @property
    def city_tile_count(self) -> int:
        return sum(len(city.citytiles) for city in self.cities.values())

    def citytiles(self) -> list[CityTile]:
        return [tile for city in self.cities.values() for tile in city.citytiles]

    def is_researched(self, resource_type: ResourceType) -> bool:
        return self.research_points >= RESEARCH_REQUIREMENTS[resource_type]


@dataclass
class GameState:
    """One turn's snapshot of the world, seen from `player_id`."""

    player_id: int
    map: GameMap
    turn: Turn = 0
    players: list[Player] = field(default_factory=lambda: [Player(0), Player(1)])
    next_id: int = 1

    @property
    def player(self) -> Player:
        return self.players[self.player_id]

    @property
    def opponent(self) -> Player:
        return self.players[1 - self.player_id]

    def generate_id(self, prefix: str) -> str:
        new_id = f"{prefix}_{self.next_id}"
        self.next_id += 1
        return new_id

    def find_unit(self, team: int, unit_id: str) -> Unit | None:
        for unit in self.players[team].units:
            if unit.id == unit_id:
                return unit
        return None

    def add_citytile(self, team: int, pos: Pos, city_id: str | None = None) -> CityTile:
        """Put a city tile at pos, joining city_id, else an adjacent own city, else a new one."""
        cell = self.map.get_cell_by_pos(pos)
        if cell.citytile is not None:
            raise ValueError(f"{pos} already holds a city tile")
        player = self.players[team]
        if city_id is None:
            for neighbor in pos.neighbors():
                if not self.map.in_bounds(neighbor):
                    continue
                adjacent = self.map.get_cell_by_pos(neighbor).citytile
                if adjacent is not None and adjacent.team == team:
                    city_id = adjacent.city_id
                    break
        if city_id is None:
            city_id = self.generate_id("c")
        city = player.cities.setdefault(city_id, City(id=city_id, team=team))
        tile = CityTile(city_id=city_id, team=team, pos=pos)
        city.citytiles.append(tile)
        city.light_upkeep = CITY_LIGHT_UPKEEP * len(city.citytiles)
        cell.citytile = tile
        return tile

    def add_unit(self, team: int, pos: Pos, unit_type: UnitType = UnitType.WORKER) -> Unit:
        unit = Unit(id=self.generate_id("u"), team=team, pos=pos, unit_type=unit_type)
        self.players[team].units.append(unit)
        return unit


# ===== Sandbox =====


@dataclass
class SandboxConfig:
    """Configuration for a locally simulated game."""

    width: int = 16
    height: int = 16
    turns: int = MAX_TURNS
    resource_scale: float = 4.0
    wood_density: float = 0.18
    coal_density: float = 0.05
    uranium_density: float = 0.02
    initial_research_points: int = 0


def _place_resources(
    state: GameState, config: SandboxConfig, rng: np.random.Generator
) -> None:
    """Fill the map with mirrored resource clusters from Perlin noise."""
    width, height = state.map.width, state.map.height
    noise = perlin(width, height, scale=config.resource_scale, rng=rng)
    # Left/right mirror so neither team starts with a better side
    noise = np.maximum(noise, noise[:, ::-1])
    uranium_cut = np.quantile(noise, 1 - config.uranium_density)
    coal_cut = np.quantile(noise, 1 - config.uranium_density - config.coal_density)
    wood_cut = np.quantile(
        noise, 1 - config.uranium_density - config.coal_density - config.wood_density
    )

    amounts = {
        ResourceType.WOOD: rng.integers(500, 801, size=(height, width)),
        ResourceType.COAL: rng.integers(300, 501, size=(height, width)),
        ResourceType.URANIUM: rng.integers(300, 351, size=(height, width)),
    }
    for resource_type in ResourceType:
        amounts[resource_type] = np.maximum(
            amounts[resource_type], amounts[resource_type][:, ::-1]
        )

    for cell in state.map.cells():
        value = noise[cell.pos.y, cell.pos.x]
        if value >= uranium_cut:
            resource_type = ResourceType.URANIUM
        elif value >= coal_cut:
            resource_type = ResourceType.COAL
        elif value >= wood_cut:
            resource_type = ResourceType.WOOD
        else:
            continue
        amount = int(amounts[resource_type][cell.pos.y, cell.pos.x])
        cell.resource = Resource(resource_type, amount)


def _find_start(state: GameState) -> Pos:
    """Resource-free cell in the left half closest to its centre."""
    anchor = Pos(state.map.width // 4, state.map.height // 2)
    candidates = [
        cell.pos
        for cell in state.map.cells()
        if cell.pos.x < state.map.width // 2 and not cell.has_resource()
    ]
    if not candidates:
        raise ValueError("no resource-free cell left for a starting city")
    return min(candidates, key=lambda pos: anchor.distance_to(pos))


def make_game(
    config: SandboxConfig = SandboxConfig(),
    rng: np.random.Generator | None = None,
) -> GameState:
    if config.width < 6 or config.height < 6:
        raise ValueError(
            f"sandbox map must be at least 6x6, got {config.width}x{config.height}"
        )
    if rng is None:
        rng = np.random.default_rng()

    state = GameState(player_id=0, map=GameMap(config.width, config.height))
    _place_resources(state, config, rng)

    start = _find_start(state)
    mirrored = Pos(config.width - 1 - start.x, start.y)
    for team, pos in ((0, start), (1, mirrored)):
        state.add_citytile(team, pos)
        state.add_unit(team, pos)
        state.players[team].research_points = config.initial_research_points
    return state


def _apply_action(state: GameState, team: int, action: Action, acted: set[object]) -> None:
    player = state.players[team]
    if isinstance(action, MoveAction | BuildCityAction):
        unit = state.find_unit(team, action.unit_id)
        if unit is None or not unit.can_act() or unit.id in acted:
            return
        acted.add(unit.id)
        if isinstance(action, BuildCityAction):
            if unit.can_build(state.map):
                state.add_citytile(team, unit.pos)
                _spend_cargo(unit.cargo, CITY_BUILD_COST)
                unit.cooldown = WORKER_COOLDOWN
            return
        if action.direction == Direction.CENTER:
            return
        dest = unit.pos.translate(action.direction)
        if not state.map.in_bounds(dest):
            return
        tile = state.map.get_cell_by_pos(dest).citytile
        if tile is not None and tile.team != team:
            return
        unit.pos = dest
        unit.cooldown = WORKER_COOLDOWN if unit.is_worker() else CART_COOLDOWN
    elif isinstance(action, BuildWorkerAction):
        if not state.map.in_bounds(action.pos):
            return
        tile = state.map.get_cell_by_pos(action.pos).citytile
        if tile is None or tile.team != team or not tile.can_act() or tile.pos in acted:
            return
        acted.add(tile.pos)
        if player.city_tile_count > len(player.units):
            state.add_unit(team, tile.pos)
            tile.cooldown = CITY_ACTION_COOLDOWN


def _spend_cargo(cargo: Cargo, amount: int) -> None:
    for resource_type in ResourceType:
        spent = min(amount, cargo.get(resource_type))
        cargo.add(resource_type, -spent)
        amount -= spent


def _collect(state: GameState, unit: Unit) -> None:
    player = state.players[unit.team]
    sources = [unit.pos, *unit.pos.neighbors()]
    for pos in sources:
        if unit.cargo_space_left() <= 0:
            return
        if not state.map.in_bounds(pos):
            continue
        resource = state.map.get_cell_by_pos(pos).resource
        if resource is None or resource.amount <= 0 or not player.is_researched(resource.type):
            continue
        taken = min(COLLECTION_RATES[resource.type], resource.amount, unit.cargo_space_left())
        resource.amount -= taken
        unit.cargo.add(resource.type, taken)


def tick_game(state: GameState, actions_by_team: dict[int, list[Action]]) -> None:
    """Advance the sandbox by one turn."""
    # 1. Apply actions, at most one per actor
    acted: set[object] = set()
    for team in (0, 1):
        for action in actions_by_team.get(team, []):
            _apply_action(state, team, action, acted)

    # 2. Gather and deposit
    for player in state.players:
        for unit in player.units:
            if not unit.is_worker():
                continue
            _collect(state, unit)
            tile = state.map.get_cell_by_pos(unit.pos).citytile
            if tile is not None and tile.team == player.team:
                player.cities[tile.city_id].fuel += unit.cargo.fuel_value()
                unit.cargo = Cargo()

    # 3. Idle city tiles research
    for player in state.players:
        for tile in player.citytiles():
            if tile.can_act() and tile.pos not in acted:
                player.research_points += 1

    # 4. Cooldowns and depleted resources
    for player in state.players:
        for unit in player.units:
            unit.cooldown = max(0.0, unit.cooldown - 1)
        for tile in player.citytiles():
            tile.cooldown = max(0.0, tile.cooldown - 1)
    for cell in state.map.cells():
        if cell.resource is not None and cell.resource.amount <= 0:
            cell.resource = None

    state.turn += 1
    log.debug(
        "sandbox turn %d: tiles %s, units %s",
        state.turn,
        [p.city_tile_count for p in state.players],
        [len(p.units) for p in state.players],
    )
