"""
Solution class for TTP Optimizer.
Evaluates a tour and packing plan against an instance and reads/writes the
two-line solution file format.
"""

import logging
import os
from dataclasses import dataclass, replace

import pandas as pd

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Solution:
    """
    Result of evaluating a (tour, packing plan) pair.

    Instances are created by :func:`evaluate` and never modified afterwards.
    """
    tour: tuple
    packing_plan: tuple
    profit: float
    travel_time: float
    objective: float
    final_weight: float
    computation_time: float = 0.0

    @property
    def picked_items(self):
        """1-based identifiers of the picked items, ascending."""
        return [index + 1 for index, flag in enumerate(self.packing_plan) if flag]

    def with_computation_time(self, seconds):
        """Return a copy of this solution carrying the given computation time."""
        return replace(self, computation_time=seconds)

    def answer(self):
        """Render the solution in the two-line file format."""
        return format_solution(self.tour, self.packing_plan)

    def to_dict(self):
        """
        Summarize the solution as a JSON-serializable dictionary.

        Returns:
            dict: Scalar fields plus the 1-based tour and picked item lists
        """
        return {
            "objective": self.objective,
            "profit": self.profit,
            "travel_time": self.travel_time,
            "final_weight": self.final_weight,
            "computation_time": self.computation_time,
            "tour": [node + 1 for node in self.tour],
            "picked_items": self.picked_items,
        }

    def __str__(self):
        return (f"Solution(objective={self.objective:.4f}, profit={self.profit:.4f}, "
                f"time={self.travel_time:.4f}, weight={self.final_weight:.2f}, "
                f"picked={len(self.picked_items)}/{len(self.packing_plan)})")


def normalize_tour(tour):
    """
    Copy a tour, dropping a trailing repeat of the start node.

    Args:
        tour (sequence): Node indices, optionally closed with the start node

    Returns:
        list: Node indices without the closing repeat
    """
    tour = [int(node) for node in tour]
    if len(tour) > 1 and tour[0] == tour[-1]:
        tour.pop()
    return tour


def validate_tour(instance, tour):
    """
    Check that a tour is a permutation of the instance nodes.

    Raises:
        ValueError: If the tour has the wrong length or repeats/misses a node
    """
    if len(tour) != instance.num_nodes:
        raise ValueError(f"Tour has {len(tour)} nodes, instance has {instance.num_nodes}")
    visited = set(tour)
    if len(visited) != len(tour) or min(visited) < 0 or max(visited) >= instance.num_nodes:
        raise ValueError("Tour is not a permutation of the instance nodes")


def validate_packing_plan(instance, packing_plan):
    """
    Check that a packing plan has one binary flag per item.

    Raises:
        ValueError: If the plan has the wrong length or non-binary flags
    """
    if len(packing_plan) != instance.num_items:
        raise ValueError(f"Packing plan has {len(packing_plan)} flags, instance has {instance.num_items} items")
    if any(flag not in (0, 1) for flag in packing_plan):
        raise ValueError("Packing plan flags must be 0 or 1")


def packed_weight(instance, packing_plan):
    """Total weight of the picked items."""
    return sum(item.weight for item, flag in zip(instance.items, packing_plan) if flag)


def is_feasible(instance, packing_plan):
    """Whether the picked items fit in the knapsack."""
    return packed_weight(instance, packing_plan) <= instance.capacity


def anchor_tour(tour, depot=0):
    """
    Rotate a tour so that it starts at the depot.

    Args:
        tour (sequence): Node indices
        depot (int): Node that should come first

    Returns:
        list: The rotated tour (unchanged if the depot is absent)
    """
    tour = list(tour)
    if depot not in tour:
        return tour
    start = tour.index(depot)
    return tour[start:] + tour[:start]


def _check_inputs(instance, tour, packing_plan):
    validate_tour(instance, tour)
    if len(packing_plan) != instance.num_items:
        raise ValueError(f"Packing plan has {len(packing_plan)} flags, instance has {instance.num_items} items")


def evaluate(instance, tour, packing_plan):
    """
    Simulate one traversal of the tour and score it.

    Items flagged in the packing plan are picked up when the thief leaves
    their node, so they slow down the edge out of that node and every edge
    after it, including the closing edge back to the start.

    Args:
        instance (Instance): Problem instance
        tour (sequence): 0-based node indices, optionally closed with the start node
        packing_plan (sequence): One 0/1 flag per item

    Returns:
        Solution: Profit, travel time, objective and final carried weight

    Raises:
        ValueError: If the tour is not a permutation of the instance nodes or
            the packing plan length does not match the items
    """
    tour = normalize_tour(tour)
    _check_inputs(instance, tour, packing_plan)

    items = instance.items
    items_at_node = instance.items_at_node
    num_nodes = len(tour)

    carried_weight = 0.0
    profit = 0.0
    travel_time = 0.0

    for i in range(num_nodes):
        current = tour[i]
        following = tour[(i + 1) % num_nodes]

        for position in items_at_node[current]:
            if packing_plan[position]:
                carried_weight += items[position].weight
                profit += items[position].profit

        distance = instance.distance(current, following)
        travel_time += distance / instance.velocity(carried_weight)

    objective = profit - travel_time * instance.renting_ratio

    return Solution(
        tour=tuple(tour),
        packing_plan=tuple(int(flag) for flag in packing_plan),
        profit=profit,
        travel_time=travel_time,
        objective=objective,
        final_weight=carried_weight
    )


def leg_profile(instance, tour, packing_plan):
    """
    Trace the traversal leg by leg.

    Args:
        instance (Instance): Problem instance
        tour (sequence): 0-based node indices
        packing_plan (sequence): One 0/1 flag per item

    Returns:
        pd.DataFrame: One row per leg with the carried weight, velocity and
            time of that leg; the ``time`` column sums to the evaluated travel time
    """
    tour = normalize_tour(tour)
    _check_inputs(instance, tour, packing_plan)

    rows = []
    carried_weight = 0.0
    elapsed = 0.0
    for i, current in enumerate(tour):
        following = tour[(i + 1) % len(tour)]
        for position in instance.items_at_node[current]:
            if packing_plan[position]:
                carried_weight += instance.items[position].weight

        distance = instance.distance(current, following)
        velocity = instance.velocity(carried_weight)
        leg_time = distance / velocity
        elapsed += leg_time
        rows.append({
            "leg": i,
            "from_node": current,
            "to_node": following,
            "distance": distance,
            "weight": carried_weight,
            "velocity": velocity,
            "time": leg_time,
            "cumulative_time": elapsed,
        })

    return pd.DataFrame(rows)


def format_solution(tour, packing_plan):
    """
    Render a tour and packing plan in the two-line solution format.

    Line 1 lists the 1-based node identifiers in visiting order, line 2 the
    1-based identifiers of the picked items in ascending order.

    Returns:
        str: The two lines, newline-terminated
    """
    tour_ids = [node + 1 for node in tour]
    picked = [index + 1 for index, flag in enumerate(packing_plan) if flag]
    return f"[{', '.join(map(str, tour_ids))}]\n[{', '.join(map(str, picked))}]\n"


def _parse_id_list(line, what):
    line = line.strip()
    if not (line.startswith("[") and line.endswith("]")):
        raise ValueError(f"{what} line must be a bracketed list, got {line!r}")
    body = line[1:-1].strip()
    if not body:
        return []
    try:
        return [int(token.strip()) for token in body.split(",")]
    except ValueError as e:
        raise ValueError(f"{what} line contains a non-integer entry: {line!r}") from e


def parse_solution(text, instance):
    """
    Parse the two-line solution format.

    Args:
        text (str): File contents
        instance (Instance): Instance the solution belongs to

    Returns:
        tuple: (tour, packing_plan) with a 0-based tour and a dense 0/1 plan

    Raises:
        ValueError: If the text is malformed, references unknown nodes/items
            or lists a node or item twice
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if len(lines) < 2:
        raise ValueError("Solution must have two lines (tour, packing plan)")

    tour_ids = _parse_id_list(lines[0], "Tour")
    picked_ids = _parse_id_list(lines[1], "Packing plan")

    for node_id in tour_ids:
        if not 1 <= node_id <= instance.num_nodes:
            raise ValueError(f"Tour node {node_id} outside 1..{instance.num_nodes}")
    tour = [node_id - 1 for node_id in tour_ids]

    # A closing repeat of the start node is allowed, any other repeat is not
    seen = set()
    for node in normalize_tour(tour):
        if node in seen:
            raise ValueError(f"Tour visits node {node + 1} more than once")
        seen.add(node)

    packing_plan = [0] * instance.num_items
    for item_id in picked_ids:
        if not 1 <= item_id <= instance.num_items:
            raise ValueError(f"Picked item {item_id} outside 1..{instance.num_items}")
        if packing_plan[item_id - 1]:
            raise ValueError(f"Picked item {item_id} listed more than once")
        packing_plan[item_id - 1] = 1

    return tour, packing_plan


def write_solution(path, solution):
    """
    Write a solution file.

    Args:
        path (str): Output path
        solution (Solution): Solution to persist
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, 'w') as f:
        f.write(solution.answer())

    logger.info(f"Solution saved to {path}")


def read_solution(path, instance):
    """
    Read a solution file.

    Args:
        path (str): Path to the two-line solution file
        instance (Instance): Instance the solution belongs to

    Returns:
        tuple: (tour, packing_plan)
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Solution file '{path}' not found.")

    with open(path, 'r') as f:
        tour, packing_plan = parse_solution(f.read(), instance)

    logger.info(f"Loaded solution from {path}: {len(tour)} nodes, {sum(packing_plan)} items picked")
    return tour, packing_plan
