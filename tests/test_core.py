"""Tests for core data structures."""

import math

from core import Direction, Pos


class TestDistance:
    def test_returns_zero_for_same_position(self) -> None:
        p = Pos(5, 5)
        assert p.distance_to(p) == 0

    def test_calculates_horizontal_distance(self) -> None:
        assert Pos(0, 5).distance_to(Pos(7, 5)) == 7

    def test_calculates_vertical_distance(self) -> None:
        assert Pos(5, 0).distance_to(Pos(5, 4)) == 4

    def test_is_euclidean_on_diagonals(self) -> None:
        assert Pos(0, 0).distance_to(Pos(3, 4)) == 5
        assert math.isclose(Pos(0, 0).distance_to(Pos(1, 1)), math.sqrt(2))


class TestTranslate:
    def test_north_decreases_y(self) -> None:
        assert Pos(2, 2).translate(Direction.NORTH) == Pos(2, 1)

    def test_south_increases_y(self) -> None:
        assert Pos(2, 2).translate(Direction.SOUTH) == Pos(2, 3)

    def test_east_and_west(self) -> None:
        assert Pos(2, 2).translate(Direction.EAST, 3) == Pos(5, 2)
        assert Pos(2, 2).translate(Direction.WEST) == Pos(1, 2)

    def test_center_stays(self) -> None:
        assert Pos(2, 2).translate(Direction.CENTER) == Pos(2, 2)


class TestDirectionTo:
    def test_points_east_along_a_row(self) -> None:
        assert Pos(0, 0).direction_to(Pos(2, 0)) == Direction.EAST

    def test_points_north_up_a_column(self) -> None:
        assert Pos(3, 5).direction_to(Pos(3, 0)) == Direction.NORTH

    def test_points_west_and_south(self) -> None:
        assert Pos(3, 3).direction_to(Pos(0, 3)) == Direction.WEST
        assert Pos(3, 3).direction_to(Pos(3, 9)) == Direction.SOUTH

    def test_is_center_when_on_target(self) -> None:
        assert Pos(1, 1).direction_to(Pos(1, 1)) == Direction.CENTER

    def test_diagonal_tie_goes_to_first_checked_direction(self) -> None:
        # North and east both get equally closer; north is checked first
        assert Pos(0, 5).direction_to(Pos(5, 0)) == Direction.NORTH
        # East and south tie the same way; east comes before south
        assert Pos(0, 0).direction_to(Pos(2, 2)) == Direction.EAST

    def test_prefers_the_longer_axis(self) -> None:
        assert Pos(0, 0).direction_to(Pos(1, 4)) == Direction.SOUTH


class TestNeighbors:
    def test_lists_four_orthogonal_cells(self) -> None:
        assert set(Pos(1, 1).neighbors()) == {Pos(1, 0), Pos(2, 1), Pos(1, 2), Pos(0, 1)}
