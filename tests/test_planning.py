"""Tests for worker, cart and city tile policies."""

from core import Direction, Pos
from knowledge import TurnKnowledge
from mechanics import (
    CITY_BUILD_COST,
    BuildCityAction,
    BuildWorkerAction,
    GameState,
    MoveAction,
    ResourceType,
    UnitType,
)
from planning import (
    BudgetedCityTilePolicy,
    CityTilePolicy,
    GreedyWorkerPolicy,
    IdleCartPolicy,
)
from test_utils import add_city, add_resource, add_unit, make_state


def decide_worker(state: GameState, unit_index: int = 0) -> object:
    decision = GreedyWorkerPolicy().decide(
        TurnKnowledge.build(state), state.player.units[unit_index]
    )
    return None if decision is None else decision.action


class TestGreedyWorkerPolicy:
    def test_builds_city_when_loaded_on_a_free_cell(self) -> None:
        state = make_state(research_points=50)
        worker = add_unit(state, Pos(2, 2), wood=CITY_BUILD_COST)
        add_resource(state, Pos(2, 3), ResourceType.COAL, 100)
        assert decide_worker(state) == BuildCityAction(worker.id)

    def test_build_beats_resource_when_cargo_is_exactly_build_cost(self) -> None:
        state = make_state(research_points=50)
        worker = add_unit(state, Pos(1, 1), wood=60, coal=40)
        add_resource(state, Pos(1, 2), ResourceType.COAL, 100)
        add_city(state, Pos(4, 4))
        assert decide_worker(state) == BuildCityAction(worker.id)

    def test_loaded_worker_heads_for_free_cell_next_to_nearest_city(self) -> None:
        state = make_state()
        add_city(state, Pos(2, 2))
        add_resource(state, Pos(2, 1), ResourceType.WOOD, 100)
        add_resource(state, Pos(2, 3), ResourceType.WOOD, 100)
        # Standing on wood, so cannot build here
        add_resource(state, Pos(0, 4), ResourceType.WOOD, 100)
        worker = add_unit(state, Pos(0, 4), wood=CITY_BUILD_COST)
        # First free neighbor of (2, 2) is east, (3, 2); the city itself would be north
        assert decide_worker(state) == MoveAction(worker.id, Direction.EAST)

    def test_loaded_worker_with_no_build_spot_returns_to_city(self) -> None:
        state = make_state(width=5, height=7, research_points=50)
        add_city(state, Pos(2, 0))
        for pos in (Pos(1, 0), Pos(3, 0), Pos(2, 1)):
            add_resource(state, pos, ResourceType.WOOD, 100)
        add_resource(state, Pos(2, 5), ResourceType.WOOD, 100)
        add_resource(state, Pos(2, 6), ResourceType.COAL, 300)
        worker = add_unit(state, Pos(2, 5), wood=CITY_BUILD_COST)
        assert decide_worker(state) == MoveAction(worker.id, Direction.NORTH)

    def test_empty_worker_walks_to_nearest_eligible_resource(self) -> None:
        state = make_state()
        add_resource(state, Pos(0, 4), ResourceType.WOOD, 401)
        add_resource(state, Pos(4, 0), ResourceType.WOOD, 400)
        worker = add_unit(state, Pos(4, 4))
        assert decide_worker(state) == MoveAction(worker.id, Direction.WEST)

    def test_worker_on_its_resource_stays_put(self) -> None:
        state = make_state()
        add_resource(state, Pos(1, 1), ResourceType.WOOD, 700)
        worker = add_unit(state, Pos(1, 1), wood=20)
        assert decide_worker(state) == MoveAction(worker.id, Direction.CENTER)

    def test_partly_loaded_worker_keeps_gathering(self) -> None:
        state = make_state()
        add_city(state, Pos(0, 0))
        add_resource(state, Pos(4, 0), ResourceType.WOOD, 700)
        worker = add_unit(state, Pos(2, 0), wood=50)
        assert decide_worker(state) == MoveAction(worker.id, Direction.EAST)

    def test_idle_when_nothing_to_do(self) -> None:
        state = make_state()
        add_unit(state, Pos(1, 1), wood=10)
        assert decide_worker(state) is None

    def test_idle_when_full_and_no_city(self) -> None:
        state = make_state()
        add_resource(state, Pos(1, 1), ResourceType.WOOD, 700)
        add_resource(state, Pos(3, 3), ResourceType.WOOD, 700)
        add_unit(state, Pos(1, 1), wood=CITY_BUILD_COST)
        assert decide_worker(state) is None

    def test_no_action_on_cooldown(self) -> None:
        state = make_state()
        add_unit(state, Pos(1, 1), wood=CITY_BUILD_COST, cooldown=1)
        assert decide_worker(state) is None

    def test_ignores_carts(self) -> None:
        state = make_state()
        add_resource(state, Pos(3, 3), ResourceType.WOOD, 700)
        add_unit(state, Pos(1, 1), unit_type=UnitType.CART)
        assert decide_worker(state) is None

    def test_decision_records_target(self) -> None:
        state = make_state()
        add_resource(state, Pos(0, 4), ResourceType.WOOD, 500)
        worker = add_unit(state, Pos(4, 4))
        decision = GreedyWorkerPolicy().decide(TurnKnowledge.build(state), worker)
        assert decision is not None
        assert decision.target == Pos(0, 4)


class TestIdleCartPolicy:
    def test_never_acts(self) -> None:
        state = make_state()
        add_resource(state, Pos(3, 3), ResourceType.WOOD, 700)
        cart = add_unit(state, Pos(1, 1), unit_type=UnitType.CART)
        assert IdleCartPolicy().decide(TurnKnowledge.build(state), cart) is None


class TestCityTilePolicy:
    def test_no_worker_when_tiles_equal_units(self) -> None:
        state = make_state()
        city = add_city(state, Pos(0, 0), Pos(1, 0))
        add_unit(state, Pos(3, 3))
        add_unit(state, Pos(4, 4))
        knowledge = TurnKnowledge.build(state)
        policy = CityTilePolicy()
        assert [policy.decide(knowledge, t) for t in city.citytiles] == [None, None]

    def test_every_tile_builds_when_one_tile_spare(self) -> None:
        state = make_state()
        city = add_city(state, Pos(0, 0), Pos(1, 0))
        add_unit(state, Pos(3, 3))
        knowledge = TurnKnowledge.build(state)
        policy = CityTilePolicy()
        decisions = [policy.decide(knowledge, t) for t in city.citytiles]
        assert [d.action if d else None for d in decisions] == [
            BuildWorkerAction(Pos(0, 0)),
            BuildWorkerAction(Pos(1, 0)),
        ]

    def test_tile_on_cooldown_does_nothing(self) -> None:
        state = make_state()
        city = add_city(state, Pos(0, 0))
        city.citytiles[0].cooldown = 5
        assert CityTilePolicy().decide(TurnKnowledge.build(state), city.citytiles[0]) is None


class TestBudgetedCityTilePolicy:
    def test_spends_surplus_once_per_turn(self) -> None:
        state = make_state()
        city = add_city(state, Pos(0, 0), Pos(1, 0), Pos(2, 0))
        add_unit(state, Pos(3, 3))
        add_unit(state, Pos(4, 4))
        knowledge = TurnKnowledge.build(state)
        policy = BudgetedCityTilePolicy()
        policy.start_turn(knowledge)
        decisions = [policy.decide(knowledge, t) for t in city.citytiles]
        assert [d.action if d else None for d in decisions] == [
            BuildWorkerAction(Pos(0, 0)),
            None,
            None,
        ]

    def test_budget_resets_each_turn(self) -> None:
        state = make_state()
        city = add_city(state, Pos(0, 0), Pos(1, 0))
        knowledge = TurnKnowledge.build(state)
        policy = BudgetedCityTilePolicy()
        policy.start_turn(knowledge)
        assert policy.decide(knowledge, city.citytiles[0]) is not None
        assert policy.decide(knowledge, city.citytiles[1]) is not None
        policy.start_turn(knowledge)
        assert policy.decide(knowledge, city.citytiles[0]) is not None

    def test_no_budget_without_start_turn(self) -> None:
        state = make_state()
        city = add_city(state, Pos(0, 0))
        assert BudgetedCityTilePolicy().decide(TurnKnowledge.build(state), city.citytiles[0]) is None
