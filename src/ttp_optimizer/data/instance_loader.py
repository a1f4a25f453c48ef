"""
Data loader module for the TTP Optimizer.
Handles loading node, item and knapsack data for a Travelling Thief instance.
"""

import json
import logging
import math
import os
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

# Header keys of the .ttp format and the attribute each one feeds
HEADER_FIELDS = {
    "PROBLEM NAME": "name",
    "KNAPSACK DATA TYPE": "data_type",
    "DIMENSION": "dimension",
    "NUMBER OF ITEMS": "num_items",
    "CAPACITY OF KNAPSACK": "capacity",
    "MIN SPEED": "min_speed",
    "MAX SPEED": "max_speed",
    "RENTING RATIO": "renting_ratio",
    "EDGE_WEIGHT_TYPE": "edge_weight_type",
}

REQUIRED_FIELDS = ("capacity", "min_speed", "max_speed", "renting_ratio")


@dataclass(frozen=True)
class Node:
    """A city of the tour. ``id`` is the 0-based position in the instance."""
    id: int
    x: float
    y: float


@dataclass(frozen=True)
class Item:
    """An item to steal. ``id`` keeps the 1-based file identifier, ``node`` is 0-based."""
    id: int
    profit: float
    weight: float
    node: int

    @property
    def ratio(self):
        """Profit per unit of weight (infinite for weightless items)."""
        if self.weight > 0:
            return self.profit / self.weight
        return math.inf


class Instance:
    """Static definition of a Travelling Thief Problem instance."""

    def __init__(self, nodes, items, capacity, min_speed, max_speed, renting_ratio,
                 name="", edge_weight_type="CEIL_2D", data_type=""):
        """
        Initialize and validate an instance.

        Args:
            nodes (list): Node objects, in the default tour order
            items (list): Item objects
            capacity (float): Knapsack capacity
            min_speed (float): Speed with a full knapsack
            max_speed (float): Speed with an empty knapsack
            renting_ratio (float): Cost charged per unit of travel time
            name (str): Problem name
            edge_weight_type (str): Edge weight type declared by the file. Kept for
                reporting only, distances are always plain Euclidean
            data_type (str): Knapsack data type declared by the file

        Raises:
            ValueError: If the instance is degenerate or an item references
                a node that does not exist.
        """
        self.nodes = tuple(nodes)
        self.items = tuple(items)
        self.capacity = float(capacity)
        self.min_speed = float(min_speed)
        self.max_speed = float(max_speed)
        self.renting_ratio = float(renting_ratio)
        self.name = name
        self.edge_weight_type = edge_weight_type
        self.data_type = data_type

        self._validate()

        # Item positions grouped by the node they lie at
        self.items_at_node = [[] for _ in range(self.num_nodes)]
        for position, item in enumerate(self.items):
            self.items_at_node[item.node].append(position)

        self.xs = [node.x for node in self.nodes]
        self.ys = [node.y for node in self.nodes]

    @property
    def num_nodes(self):
        return len(self.nodes)

    @property
    def num_items(self):
        return len(self.items)

    def _validate(self):
        if not self.nodes:
            raise ValueError("Instance has no nodes")
        if self.items and self.capacity <= 0:
            raise ValueError(f"Knapsack capacity must be positive when items exist, got {self.capacity}")
        if self.min_speed <= 0 or self.max_speed <= 0:
            raise ValueError(f"Speeds must be positive, got min={self.min_speed}, max={self.max_speed}")
        if self.min_speed > self.max_speed:
            raise ValueError(f"Min speed {self.min_speed} exceeds max speed {self.max_speed}")
        if self.renting_ratio < 0:
            raise ValueError(f"Renting ratio must be non-negative, got {self.renting_ratio}")

        for item in self.items:
            if not 0 <= item.node < len(self.nodes):
                raise ValueError(
                    f"Item {item.id} is assigned to node {item.node + 1}, "
                    f"outside 1..{len(self.nodes)}"
                )
            if item.profit < 0 or item.weight < 0:
                raise ValueError(f"Item {item.id} has negative profit or weight")

    def distance(self, a, b):
        """Euclidean distance between nodes at indices ``a`` and ``b``."""
        return math.hypot(self.xs[a] - self.xs[b], self.ys[a] - self.ys[b])

    def velocity(self, weight):
        """
        Travel speed while carrying ``weight``.

        Speed falls linearly from max_speed (empty) to min_speed (full) and is
        clamped at min_speed when the knapsack is overloaded.
        """
        if self.capacity <= 0:
            return self.max_speed
        speed = self.max_speed - (weight / self.capacity) * (self.max_speed - self.min_speed)
        return max(speed, self.min_speed)

    def coordinates(self):
        """Return node coordinates as an (n, 2) numpy array."""
        return np.column_stack((self.xs, self.ys))

    def __str__(self):
        return (f"Instance(name={self.name!r}, nodes={self.num_nodes}, items={self.num_items}, "
                f"capacity={self.capacity}, speed=[{self.min_speed}, {self.max_speed}], "
                f"renting_ratio={self.renting_ratio})")


class InstanceLoader:
    """Instance loader class for TTP Optimizer."""

    def __init__(self, data_path):
        """
        Initialize instance loader.

        Args:
            data_path (str): Path to the instance file
        """
        self.data_path = data_path

    def load(self):
        """
        Load the instance from file.

        Returns:
            Instance: The parsed instance

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file cannot be parsed
        """
        if not os.path.exists(self.data_path):
            raise FileNotFoundError(f"Instance file '{self.data_path}' not found.")

        ext = self.data_path.split('.')[-1].lower()
        if ext == 'json':
            instance = self._load_from_json()
        else:
            instance = self._load_from_ttp()

        logger.info(f"Loaded {instance} from {self.data_path}")
        return instance

    def _load_from_ttp(self):
        """Load an instance in the benchmark .ttp text format."""
        header = {}
        nodes = []
        items = []
        section = "header"

        with open(self.data_path, 'r') as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue

                # Detect section changes
                if line.startswith("NODE_COORD_SECTION"):
                    section = "nodes"
                    continue
                elif line.startswith("ITEMS SECTION"):
                    section = "items"
                    continue

                try:
                    if section == "header":
                        self._parse_header_line(line, header)
                    elif section == "nodes":
                        # Format: index, x, y
                        parts = line.split()
                        nodes.append(Node(id=len(nodes), x=float(parts[1]), y=float(parts[2])))
                    else:
                        # Format: index, profit, weight, assigned node
                        parts = line.split()
                        items.append(Item(
                            id=int(parts[0]),
                            profit=float(parts[1]),
                            weight=float(parts[2]),
                            node=int(parts[3]) - 1
                        ))
                except (IndexError, ValueError) as e:
                    raise ValueError(f"{self.data_path}:{line_number}: cannot parse {line!r}") from e

        missing = [field for field in REQUIRED_FIELDS if field not in header]
        if missing:
            raise ValueError(f"{self.data_path}: missing header fields {missing}")

        dimension = header.get("dimension")
        if dimension is not None and int(dimension) != len(nodes):
            raise ValueError(f"{self.data_path}: DIMENSION is {dimension} but {len(nodes)} nodes were listed")
        declared_items = header.get("num_items")
        if declared_items is not None and int(declared_items) != len(items):
            raise ValueError(f"{self.data_path}: NUMBER OF ITEMS is {declared_items} but {len(items)} items were listed")

        return Instance(
            nodes=nodes,
            items=items,
            capacity=float(header["capacity"]),
            min_speed=float(header["min_speed"]),
            max_speed=float(header["max_speed"]),
            renting_ratio=float(header["renting_ratio"]),
            name=header.get("name", os.path.splitext(os.path.basename(self.data_path))[0]),
            edge_weight_type=header.get("edge_weight_type", "CEIL_2D"),
            data_type=header.get("data_type", "")
        )

    @staticmethod
    def _parse_header_line(line, header):
        """Store a ``KEY: value`` header line into ``header``."""
        if ":" not in line:
            return
        key, value = line.split(":", 1)
        key = key.strip().upper()
        if key in HEADER_FIELDS:
            header[HEADER_FIELDS[key]] = value.strip()
        else:
            logger.debug(f"Ignoring header line: {line}")

    def _load_from_json(self):
        """Load an instance from a JSON document."""
        with open(self.data_path, 'r') as f:
            data = json.load(f)

        try:
            nodes = [Node(id=i, x=float(x), y=float(y)) for i, (x, y) in enumerate(data["nodes"])]
            items = [
                Item(id=i + 1, profit=float(profit), weight=float(weight), node=int(node) - 1)
                for i, (profit, weight, node) in enumerate(data.get("items", []))
            ]
            return Instance(
                nodes=nodes,
                items=items,
                capacity=float(data["capacity"]),
                min_speed=float(data["min_speed"]),
                max_speed=float(data["max_speed"]),
                renting_ratio=float(data["renting_ratio"]),
                name=data.get("name", os.path.splitext(os.path.basename(self.data_path))[0])
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"{self.data_path}: invalid instance document ({e})") from e


def generate_sample_instance(num_nodes=20, items_per_node=1, seed=42, name="sample"):
    """
    Generate a random instance for testing and demos.

    Every node except the depot (node 0) receives ``items_per_node`` items,
    and the capacity covers roughly a third of the total item weight.

    Args:
        num_nodes (int): Number of nodes
        items_per_node (int): Items placed at each non-depot node
        seed (int): Random seed for reproducibility
        name (str): Instance name

    Returns:
        Instance: The generated instance
    """
    rng = np.random.default_rng(seed)

    coords = rng.uniform(0, 100, size=(num_nodes, 2))
    nodes = [Node(id=i, x=float(x), y=float(y)) for i, (x, y) in enumerate(coords)]

    items = []
    for _ in range(items_per_node):
        for node in range(1, num_nodes):
            weight = float(rng.integers(1, 101))
            profit = float(rng.integers(1, 101))
            items.append(Item(id=len(items) + 1, profit=profit, weight=weight, node=node))

    total_weight = sum(item.weight for item in items)
    capacity = max(1.0, math.floor(total_weight / 3))

    logger.info(f"Generated sample instance with {num_nodes} nodes and {len(items)} items")

    return Instance(
        nodes=nodes,
        items=items,
        capacity=capacity,
        min_speed=0.1,
        max_speed=1.0,
        renting_ratio=0.5,
        name=name,
        edge_weight_type="EUC_2D",
        data_type="uncorrelated"
    )
