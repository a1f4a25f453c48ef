import pytest

from ttp_optimizer.data.instance_loader import Instance, Item, Node
from ttp_optimizer.utils.solution import (
    anchor_tour, evaluate, format_solution, is_feasible, leg_profile, normalize_tour,
    parse_solution, read_solution, validate_packing_plan, validate_tour, write_solution
)


@pytest.fixture
def pickup_at_far_city():
    """One item at the second city, so only the return leg is loaded."""
    nodes = [Node(0, 0.0, 0.0), Node(1, 1.0, 0.0)]
    items = [Item(id=1, profit=10.0, weight=5.0, node=1)]
    return Instance(nodes, items, capacity=10.0, min_speed=0.1, max_speed=1.0, renting_ratio=1.0)


def test_unit_square_objective(unit_square):
    solution = evaluate(unit_square, [0, 1, 2, 3], [])

    assert solution.travel_time == pytest.approx(4.0)
    assert solution.profit == 0.0
    assert solution.objective == pytest.approx(-8.0)
    assert solution.final_weight == 0.0


def test_closed_tour_scores_like_open_tour(unit_square):
    open_tour = evaluate(unit_square, [0, 1, 2, 3], [])
    closed_tour = evaluate(unit_square, [0, 1, 2, 3, 0], [])

    assert closed_tour == open_tour
    assert closed_tour.tour == (0, 1, 2, 3)


def test_evaluate_is_deterministic(sample_instance):
    tour = list(range(sample_instance.num_nodes))
    packing_plan = [1, 0] * (sample_instance.num_items // 2) + [0] * (sample_instance.num_items % 2)

    assert evaluate(sample_instance, tour, packing_plan) == evaluate(sample_instance, tour, packing_plan)


def test_pickup_at_last_city_slows_return_leg(pickup_at_far_city):
    solution = evaluate(pickup_at_far_city, [0, 1], [1])

    # Empty on the way out, 5/10 of capacity on the way back
    assert solution.travel_time == pytest.approx(1.0 + 1.0 / 0.55)
    assert solution.profit == 10.0
    assert solution.objective == pytest.approx(10.0 - (1.0 + 1.0 / 0.55))
    assert solution.final_weight == 5.0


def test_pickup_at_start_city_slows_every_leg(two_city):
    solution = evaluate(two_city, [0, 1], [1, 0])

    assert solution.travel_time == pytest.approx(2.0 / 0.55)


def test_overweight_plan_clamps_velocity(two_city):
    solution = evaluate(two_city, [0, 1], [1, 1])

    assert solution.final_weight == 15.0
    assert solution.travel_time == pytest.approx(2.0 / 0.1)
    assert solution.objective == pytest.approx(200.0 - 20.0)
    assert not is_feasible(two_city, [1, 1])


@pytest.mark.parametrize("tour, packing_plan", [
    ([0, 1, 2], []),
    ([0, 1, 2, 3], [1]),
])
def test_length_mismatch_raises(unit_square, tour, packing_plan):
    with pytest.raises(ValueError):
        evaluate(unit_square, tour, packing_plan)


def test_solution_helpers(two_city):
    solution = evaluate(two_city, [0, 1], [0, 1])

    assert solution.picked_items == [2]
    assert solution.answer() == "[1, 2]\n[2]\n"
    assert solution.to_dict()["tour"] == [1, 2]
    assert solution.with_computation_time(1.5).computation_time == 1.5
    assert solution.computation_time == 0.0
    assert "picked=1/2" in str(solution)


def test_leg_profile_matches_evaluation(sample_instance):
    tour = list(range(sample_instance.num_nodes))
    packing_plan = [0] * sample_instance.num_items
    packing_plan[0] = 1
    packing_plan[-1] = 1

    profile = leg_profile(sample_instance, tour, packing_plan)
    solution = evaluate(sample_instance, tour, packing_plan)

    assert len(profile) == sample_instance.num_nodes
    assert profile["time"].sum() == pytest.approx(solution.travel_time)
    assert profile["cumulative_time"].iloc[-1] == pytest.approx(solution.travel_time)
    assert profile["weight"].is_monotonic_increasing


def test_normalize_and_anchor_tour():
    assert normalize_tour([2, 0, 1, 2]) == [2, 0, 1]
    assert normalize_tour([0]) == [0]
    assert anchor_tour([2, 0, 1]) == [0, 1, 2]
    assert anchor_tour([2, 3, 1], depot=0) == [2, 3, 1]


def test_validate_tour(unit_square):
    validate_tour(unit_square, [3, 2, 1, 0])

    with pytest.raises(ValueError, match="permutation"):
        validate_tour(unit_square, [0, 1, 1, 3])
    with pytest.raises(ValueError, match="Tour has 3 nodes"):
        validate_tour(unit_square, [0, 1, 2])


def test_validate_packing_plan(two_city):
    validate_packing_plan(two_city, [0, 1])

    with pytest.raises(ValueError, match="0 or 1"):
        validate_packing_plan(two_city, [0, 2])
    with pytest.raises(ValueError, match="flags"):
        validate_packing_plan(two_city, [0])


def test_format_and_parse_solution(two_city):
    text = format_solution([1, 0], [1, 0])

    assert text == "[2, 1]\n[1]\n"
    assert parse_solution(text, two_city) == ([1, 0], [1, 0])
    assert format_solution([0, 1], [0, 0]) == "[1, 2]\n[]\n"
    assert parse_solution("[1, 2]\n[]\n", two_city) == ([0, 1], [0, 0])


@pytest.mark.parametrize("text, message", [
    ("[1, 2]\n", "two lines"),
    ("1, 2\n[1]\n", "bracketed"),
    ("[1, two]\n[1]\n", "non-integer"),
    ("[1, 3]\n[1]\n", "Tour node 3"),
    ("[1, 2]\n[5]\n", "Picked item 5"),
])
def test_parse_solution_rejects_malformed_text(two_city, text, message):
    with pytest.raises(ValueError, match=message):
        parse_solution(text, two_city)


def test_write_and_read_solution(tmp_path, two_city):
    solution = evaluate(two_city, [0, 1], [0, 1])
    path = tmp_path / "out" / "two_city.txt"

    write_solution(str(path), solution)

    assert path.read_text() == "[1, 2]\n[2]\n"
    assert read_solution(str(path), two_city) == ([0, 1], [0, 1])


def test_read_missing_solution_raises(tmp_path, two_city):
    with pytest.raises(FileNotFoundError):
        read_solution(str(tmp_path / "missing.txt"), two_city)


@pytest.mark.parametrize("tour", [
    [0, 1, 2, -1],
    [0, 1, 1, 2],
    [0, 1, 2, 4],
])
def test_evaluate_rejects_non_permutation(unit_square, tour):
    with pytest.raises(ValueError, match="permutation"):
        evaluate(unit_square, tour, [])


def test_leg_profile_rejects_repeated_node(unit_square):
    with pytest.raises(ValueError, match="permutation"):
        leg_profile(unit_square, [0, 2, 2, 3], [])


@pytest.mark.parametrize("text, message", [
    ("[1, 2, 2, 3]\n[]\n", "node 2 more than once"),
    ("[1, 2, 1, 3]\n[]\n", "node 1 more than once"),
])
def test_parse_solution_rejects_repeated_nodes(unit_square, text, message):
    with pytest.raises(ValueError, match=message):
        parse_solution(text, unit_square)


def test_parse_solution_accepts_closing_repeat(unit_square):
    tour, _ = parse_solution("[1, 2, 3, 4, 1]\n[]\n", unit_square)

    assert normalize_tour(tour) == [0, 1, 2, 3]


def test_parse_solution_rejects_repeated_items(two_city):
    with pytest.raises(ValueError, match="Picked item 2 listed more than once"):
        parse_solution("[1, 2]\n[2, 2]\n", two_city)
