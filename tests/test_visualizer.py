import pytest

from ttp_optimizer.models.construction import greedy_packing, nearest_neighbor_tour
from ttp_optimizer.utils.solution import evaluate
from ttp_optimizer.visualization.visualizer import Visualizer


@pytest.fixture
def visualizer(sample_instance):
    solution = evaluate(sample_instance, nearest_neighbor_tour(sample_instance),
                        greedy_packing(sample_instance))
    return Visualizer(sample_instance, solution)


def test_pickup_nodes(visualizer):
    expected = sorted({
        visualizer.instance.items[index].node
        for index, flag in enumerate(visualizer.solution.packing_plan) if flag
    })

    assert visualizer.pickup_nodes == expected
    assert 0 not in visualizer.pickup_nodes


def test_closed_tour_returns_to_start(visualizer):
    closed = visualizer._closed_tour()

    assert len(closed) == visualizer.instance.num_nodes + 1
    assert closed[0] == closed[-1]


@pytest.mark.parametrize("method, filename", [
    ("plot_tour", "tour.png"),
    ("plot_load_profile", "load_profile.png"),
    ("plot_tour_html", "tour.html"),
])
def test_plots_are_written(tmp_path, visualizer, method, filename):
    path = tmp_path / filename

    getattr(visualizer, method)(str(path))

    assert path.exists()
    assert path.stat().st_size > 0
