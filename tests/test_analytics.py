import json

import pytest

from ttp_optimizer.data.instance_loader import Instance, Item, Node
from ttp_optimizer.utils.analytics import Analytics
from ttp_optimizer.utils.solution import evaluate


@pytest.fixture
def line_instance():
    """Four cities on a line, heavier items further along."""
    nodes = [Node(i, float(i), 0.0) for i in range(4)]
    items = [
        Item(1, 10.0, 1.0, 1),
        Item(2, 20.0, 2.0, 2),
        Item(3, 30.0, 3.0, 3),
        Item(4, 5.0, 4.0, 3),
    ]
    return Instance(nodes, items, capacity=10.0, min_speed=0.1, max_speed=1.0, renting_ratio=0.5)


def test_packing_summary(line_instance):
    solution = evaluate(line_instance, [0, 1, 2, 3], [1, 1, 1, 0])

    summary = Analytics(line_instance, solution).packing_summary()

    assert summary["items_picked"] == 3
    assert summary["items_total"] == 4
    assert summary["total_weight"] == 6.0
    assert summary["capacity_utilization"] == pytest.approx(0.6)
    assert summary["renting_cost"] == pytest.approx(solution.travel_time * 0.5)
    assert summary["objective"] == solution.objective
    assert summary["feasible"] is True


def test_pickup_profile_follows_tour(line_instance):
    solution = evaluate(line_instance, [0, 3, 2, 1], [1, 1, 1, 0])

    profile = Analytics(line_instance, solution).pickup_profile()

    assert profile["item_id"].tolist() == [3, 2, 1]
    assert profile["node"].tolist() == [4, 3, 2]
    assert profile["tour_position"].tolist() == [1, 2, 3]


def test_weight_position_correlation(line_instance):
    solution = evaluate(line_instance, [0, 1, 2, 3], [1, 1, 1, 0])

    result = Analytics(line_instance, solution).weight_position_correlation()

    assert result["correlation"] == pytest.approx(1.0)
    assert 0.0 <= result["p_value"] <= 1.0


def test_correlation_undefined_for_few_items(line_instance):
    solution = evaluate(line_instance, [0, 1, 2, 3], [1, 1, 0, 0])

    assert Analytics(line_instance, solution).weight_position_correlation() is None


def test_analyze_is_json_serializable(line_instance):
    solution = evaluate(line_instance, [0, 1, 2, 3], [0, 1, 1, 1])

    results = Analytics(line_instance, solution).analyze()

    assert results["picked_by_node"] == {3: 1, 4: 2}
    assert results["summary"]["total_weight"] == 9.0
    json.dumps(results)
