"""
Constructive heuristics producing the initial tour and packing plan.
"""

import logging

import numpy as np

logger = logging.getLogger(__name__)

TOUR_HEURISTICS = ("identity", "nearest_neighbor")
PACKING_HEURISTICS = ("empty", "greedy", "random")


def identity_tour(instance):
    """Visit the nodes in instance order."""
    return list(range(instance.num_nodes))


def nearest_neighbor_tour(instance):
    """
    Build a tour with the nearest neighbor heuristic.

    Starts at node 0 and repeatedly moves to the closest unvisited node;
    ties go to the lowest node index.

    Args:
        instance (Instance): Problem instance

    Returns:
        list: 0-based tour starting at node 0
    """
    coords = instance.coordinates()
    n = len(coords)

    visited = np.zeros(n, dtype=bool)
    current = 0
    visited[current] = True
    tour = [current]

    while len(tour) < n:
        # Squared distances are enough for the comparison
        distances = np.sum((coords - coords[current]) ** 2, axis=1)
        distances[visited] = np.inf
        current = int(np.argmin(distances))
        visited[current] = True
        tour.append(current)

    return tour


def empty_packing(instance):
    """Pick nothing."""
    return [0] * instance.num_items


def _fill(instance, order):
    """Add items in the given order while they fit."""
    packing_plan = [0] * instance.num_items
    current_weight = 0.0
    for index in order:
        weight = instance.items[index].weight
        if current_weight + weight <= instance.capacity:
            packing_plan[index] = 1
            current_weight += weight
    return packing_plan


def greedy_packing(instance):
    """
    Fill the knapsack by decreasing profit/weight ratio.

    Weightless items count as infinitely efficient. Items with equal ratio
    keep their instance order.

    Args:
        instance (Instance): Problem instance

    Returns:
        list: 0/1 packing plan
    """
    ratios = np.array([item.ratio for item in instance.items], dtype=float)
    order = np.argsort(-ratios, kind="stable")
    return _fill(instance, order)


def random_packing(instance, seed=None):
    """
    Fill the knapsack with items taken in random order.

    Args:
        instance (Instance): Problem instance
        seed (int, optional): Random seed

    Returns:
        list: 0/1 packing plan
    """
    rng = np.random.default_rng(seed)
    order = rng.permutation(instance.num_items)
    return _fill(instance, order)


def build_tour(instance, name):
    """
    Build an initial tour with the named heuristic.

    Args:
        instance (Instance): Problem instance
        name (str): One of TOUR_HEURISTICS

    Returns:
        list: 0-based tour
    """
    if name == "identity":
        tour = identity_tour(instance)
    elif name == "nearest_neighbor":
        tour = nearest_neighbor_tour(instance)
    else:
        raise ValueError(f"Unknown tour heuristic {name!r}, expected one of {TOUR_HEURISTICS}")

    logger.info(f"Built initial tour with {name} heuristic")
    return tour


def build_packing(instance, name, seed=None):
    """
    Build an initial packing plan with the named heuristic.

    Args:
        instance (Instance): Problem instance
        name (str): One of PACKING_HEURISTICS
        seed (int, optional): Random seed for the random heuristic

    Returns:
        list: 0/1 packing plan
    """
    if name == "empty":
        packing_plan = empty_packing(instance)
    elif name == "greedy":
        packing_plan = greedy_packing(instance)
    elif name == "random":
        packing_plan = random_packing(instance, seed)
    else:
        raise ValueError(f"Unknown packing heuristic {name!r}, expected one of {PACKING_HEURISTICS}")

    logger.info(f"Built initial packing plan with {name} heuristic: {sum(packing_plan)} items picked")
    return packing_plan
