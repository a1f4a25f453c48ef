import pytest

from ttp_optimizer.data.instance_loader import Instance, Item, Node, generate_sample_instance
from ttp_optimizer.utils.config import Config


@pytest.fixture
def unit_square():
    """Four corners of the unit square, no items, constant speed."""
    nodes = [Node(0, 0.0, 0.0), Node(1, 0.0, 1.0), Node(2, 1.0, 1.0), Node(3, 1.0, 0.0)]
    return Instance(nodes, [], capacity=1.0, min_speed=1.0, max_speed=1.0, renting_ratio=2.0)


@pytest.fixture
def crossed_square():
    """Unit square whose instance order crosses itself."""
    nodes = [Node(0, 0.0, 0.0), Node(1, 1.0, 1.0), Node(2, 0.0, 1.0), Node(3, 1.0, 0.0)]
    return Instance(nodes, [], capacity=1.0, min_speed=1.0, max_speed=1.0, renting_ratio=1.0)


@pytest.fixture
def two_city():
    """Two cities one unit apart with two items at the start city."""
    nodes = [Node(0, 0.0, 0.0), Node(1, 1.0, 0.0)]
    items = [
        Item(id=1, profit=100.0, weight=5.0, node=0),
        Item(id=2, profit=100.0, weight=10.0, node=0),
    ]
    return Instance(nodes, items, capacity=10.0, min_speed=0.1, max_speed=1.0, renting_ratio=1.0)


@pytest.fixture
def sample_instance():
    return generate_sample_instance(num_nodes=8, items_per_node=1, seed=7)


@pytest.fixture
def quiet_config():
    config = Config()
    config.set('hill_climbing.show_progress', False)
    return config


TTP_TEXT = """PROBLEM NAME: \ttiny-ttp
KNAPSACK DATA TYPE: bounded strongly corr
DIMENSION: 3
NUMBER OF ITEMS: 2
CAPACITY OF KNAPSACK: 25
MIN SPEED: 0.1
MAX SPEED: 1
RENTING RATIO: 0.5
EDGE_WEIGHT_TYPE: CEIL_2D
NODE_COORD_SECTION\t(INDEX, X, Y):
1\t0.00\t0.00
2\t3.00\t0.00
3\t3.00\t4.00
ITEMS SECTION\t(INDEX, PROFIT, WEIGHT, ASSIGNED NODE NUMBER):
1\t50\t10\t2
2\t80\t20\t3
"""


@pytest.fixture
def ttp_text():
    return TTP_TEXT


@pytest.fixture
def ttp_file(tmp_path):
    path = tmp_path / "tiny.ttp"
    path.write_text(TTP_TEXT)
    return str(path)
