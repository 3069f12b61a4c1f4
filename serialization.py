"""Serialization and deserialization of the line-based game protocol."""

from __future__ import annotations
from typing import Iterable

from core import Direction, Pos, Turn
from mechanics import (
    Action,
    BuildCityAction,
    BuildWorkerAction,
    Cargo,
    City,
    DrawLine,
    GameMap,
    GameState,
    MoveAction,
    Resource,
    ResourceType,
    SideText,
    Unit,
    UnitType,
)


DONE = "D_DONE"
FINISH = "D_FINISH"


class ProtocolError(Exception):
    """The game engine sent something we cannot turn into a game state."""


class GameOver(ProtocolError):
    """The input stream ended; there are no more turns."""


# ===== Basic Types =====


def _ints(fields: list[str], line: str) -> list[int]:
    try:
        return [int(f) for f in fields]
    except ValueError:
        raise ProtocolError(f"expected integers in {line!r}") from None


def _floats(fields: list[str], line: str) -> list[float]:
    try:
        return [float(f) for f in fields]
    except ValueError:
        raise ProtocolError(f"expected numbers in {line!r}") from None


def _team(value: str, line: str) -> int:
    (team,) = _ints([value], line)
    if team not in (0, 1):
        raise ProtocolError(f"unknown team {team} in {line!r}")
    return team


def _pos(game_map: GameMap, x: str, y: str, line: str) -> Pos:
    pos = Pos(*_ints([x, y], line))
    if not game_map.in_bounds(pos):
        raise ProtocolError(f"{pos} is off the {game_map.width}x{game_map.height} map in {line!r}")
    return pos


# ===== Header =====


def parse_header(lines: list[str]) -> tuple[int, int, int]:
    """Parse the two initialization lines into (player_id, width, height)."""
    if len(lines) != 2:
        raise ProtocolError(f"expected 2 header lines, got {len(lines)}")
    id_fields = lines[0].split()
    size_fields = lines[1].split()
    if len(id_fields) != 1 or len(size_fields) != 2:
        raise ProtocolError(f"malformed header {lines!r}")
    (player_id,) = _ints(id_fields, lines[0])
    if player_id not in (0, 1):
        raise ProtocolError(f"unknown player id {player_id}")
    width, height = _ints(size_fields, lines[1])
    if width <= 0 or height <= 0:
        raise ProtocolError(f"bad map size {width}x{height}")
    return player_id, width, height


# ===== Turn updates =====

_FIELD_COUNTS = {"rp": 3, "r": 5, "u": 10, "c": 5, "ct": 6, "ccd": 4}


def _apply_line(state: GameState, line: str) -> None:
    fields = line.split()
    kind = fields[0]
    if kind not in _FIELD_COUNTS:
        raise ProtocolError(f"unknown update kind {kind!r} in {line!r}")
    if len(fields) != _FIELD_COUNTS[kind]:
        raise ProtocolError(
            f"{kind!r} update needs {_FIELD_COUNTS[kind]} fields, got {len(fields)}: {line!r}"
        )

    if kind == "rp":
        team = _team(fields[1], line)
        (points,) = _ints(fields[2:], line)
        state.players[team].research_points = points
    elif kind == "r":
        try:
            resource_type = ResourceType(fields[1])
        except ValueError:
            raise ProtocolError(f"unknown resource type {fields[1]!r}") from None
        pos = _pos(state.map, fields[2], fields[3], line)
        (amount,) = _ints(fields[4:], line)
        state.map.get_cell_by_pos(pos).resource = Resource(resource_type, amount)
    elif kind == "u":
        (raw_type,) = _ints(fields[1:2], line)
        try:
            unit_type = UnitType(raw_type)
        except ValueError:
            raise ProtocolError(f"unknown unit type {raw_type}") from None
        team = _team(fields[2], line)
        pos = _pos(state.map, fields[4], fields[5], line)
        (cooldown,) = _floats(fields[6:7], line)
        wood, coal, uranium = _ints(fields[7:], line)
        state.players[team].units.append(
            Unit(
                id=fields[3],
                team=team,
                pos=pos,
                unit_type=unit_type,
                cooldown=cooldown,
                cargo=Cargo(wood=wood, coal=coal, uranium=uranium),
            )
        )
    elif kind == "c":
        team = _team(fields[1], line)
        fuel, light_upkeep = _floats(fields[3:], line)
        state.players[team].cities[fields[2]] = City(
            id=fields[2], team=team, fuel=fuel, light_upkeep=light_upkeep
        )
    elif kind == "ct":
        team = _team(fields[1], line)
        city_id = fields[2]
        city = state.players[team].cities.get(city_id)
        if city is None:
            raise ProtocolError(f"city tile for unknown city {city_id!r}")
        pos = _pos(state.map, fields[3], fields[4], line)
        (cooldown,) = _floats(fields[5:], line)
        light_upkeep = city.light_upkeep
        state.add_citytile(team, pos, city_id=city_id).cooldown = cooldown
        city.light_upkeep = light_upkeep
    elif kind == "ccd":
        pos = _pos(state.map, fields[1], fields[2], line)
        (road,) = _floats(fields[3:], line)
        state.map.get_cell_by_pos(pos).road = road


def parse_turn(
    lines: Iterable[str], player_id: int, width: int, height: int, turn: Turn
) -> GameState:
    """Build a fresh GameState from one turn's update lines (without D_DONE)."""
    state = GameState(player_id=player_id, map=GameMap(width, height), turn=turn)
    for line in lines:
        if not line.strip():
            continue
        try:
            _apply_line(state, line)
        except ValueError as e:
            # Raised by the world model, e.g. two city tiles on one cell
            raise ProtocolError(f"inconsistent update {line!r}: {e}") from e
    return state


def encode_state(state: GameState) -> list[str]:
    """Render a GameState as update lines, the inverse of parse_turn."""
    lines = [f"rp {p.team} {p.research_points}" for p in state.players]
    for cell in state.map.cells():
        if cell.resource is not None:
            r = cell.resource
            lines.append(f"r {r.type.value} {cell.pos.x} {cell.pos.y} {r.amount}")
    for player in state.players:
        for unit in player.units:
            lines.append(
                f"u {unit.unit_type.value} {unit.team} {unit.id} {unit.pos.x} {unit.pos.y} "
                f"{unit.cooldown:g} {unit.cargo.wood} {unit.cargo.coal} {unit.cargo.uranium}"
            )
        for city in player.cities.values():
            lines.append(f"c {city.team} {city.id} {city.fuel:g} {city.light_upkeep:g}")
            for tile in city.citytiles:
                lines.append(
                    f"ct {tile.team} {tile.city_id} {tile.pos.x} {tile.pos.y} {tile.cooldown:g}"
                )
    for cell in state.map.cells():
        if cell.road > 0:
            lines.append(f"ccd {cell.pos.x} {cell.pos.y} {cell.road:g}")
    return lines


# ===== Actions =====


def serialize_action(action: Action) -> str:
    if isinstance(action, MoveAction):
        return f"m {action.unit_id} {action.direction.value}"
    elif isinstance(action, BuildCityAction):
        return f"bcity {action.unit_id}"
    elif isinstance(action, BuildWorkerAction):
        return f"bw {action.pos.x} {action.pos.y}"
    elif isinstance(action, DrawLine):
        return f"dl {action.start.x} {action.start.y} {action.end.x} {action.end.y}"
    elif isinstance(action, SideText):
        # Quotes end the message and commas split commands
        message = action.message.replace("'", "").replace(",", ";")
        return f"dst '{message}'"
    else:
        raise ValueError(f"Unknown action type: {type(action)}")


def deserialize_action(data: str) -> Action:
    fields = data.split()
    if not fields:
        raise ValueError("empty command")
    if fields[0] == "m" and len(fields) == 3:
        return MoveAction(unit_id=fields[1], direction=Direction(fields[2]))
    elif fields[0] == "bcity" and len(fields) == 2:
        return BuildCityAction(unit_id=fields[1])
    elif fields[0] == "bw" and len(fields) == 3:
        return BuildWorkerAction(pos=Pos(int(fields[1]), int(fields[2])))
    elif fields[0] == "dl" and len(fields) == 5:
        x1, y1, x2, y2 = (int(f) for f in fields[1:])
        return DrawLine(start=Pos(x1, y1), end=Pos(x2, y2))
    elif fields[0] == "dst":
        return SideText(message=data.split(" ", 1)[1].strip("'") if len(fields) > 1 else "")
    else:
        raise ValueError(f"Unknown command: {data!r}")


def serialize_actions(actions: list[Action]) -> str:
    return ",".join(serialize_action(action) for action in actions)
