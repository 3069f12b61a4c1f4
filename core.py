"""Core data structures and utilities."""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum


Turn = int


class Direction(Enum):
    NORTH = "n"
    EAST = "e"
    SOUTH = "s"
    WEST = "w"
    CENTER = "c"


# Order matters: direction_to keeps the first direction that gets strictly closer.
CARDINAL_DIRECTIONS = (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST)

_OFFSETS = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
    Direction.CENTER: (0, 0),
}


@dataclass(frozen=True)
class Pos:
    x: int
    y: int

    def distance_to(self, other: Pos) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def translate(self, direction: Direction, units: int = 1) -> Pos:
        dx, dy = _OFFSETS[direction]
        return Pos(self.x + dx * units, self.y + dy * units)

    def direction_to(self, target: Pos) -> Direction:
        """Return the single step that gets closest to target, or CENTER if none helps."""
        closest_dir = Direction.CENTER
        closest_dist = self.distance_to(target)
        for direction in CARDINAL_DIRECTIONS:
            dist = self.translate(direction).distance_to(target)
            if dist < closest_dist:
                closest_dir = direction
                closest_dist = dist
        return closest_dir

    def neighbors(self) -> list[Pos]:
        """Orthogonal neighbors, not bounds-checked."""
        return [self.translate(d) for d in CARDINAL_DIRECTIONS]
