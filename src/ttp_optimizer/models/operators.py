"""
Neighborhood operators for the TTP hill climber.

Every operator follows the first-improvement rule: candidates are scanned in a
fixed order, the first one that beats the incumbent objective is accepted, and
the scan restarts from the new incumbent. An operator stops when a complete
scan accepts nothing (or after ``max_passes`` scans when a bound is given).

Tour operators return ``(tour, objective)``, packing operators return
``(packing_plan, objective)``. The arguments are never modified.
"""

import logging
from itertools import combinations, product

from ..utils.solution import evaluate, packed_weight

logger = logging.getLogger(__name__)


def _passes_left(passes, max_passes):
    return max_passes is None or passes < max_passes


def _reverse_segment(tour, i, j):
    return tour[:i] + tour[i:j + 1][::-1] + tour[j + 1:]


def _swap_positions(tour, i, j):
    candidate = list(tour)
    candidate[i], candidate[j] = candidate[j], candidate[i]
    return candidate


def _improve_tour(instance, tour, packing_plan, objective, make_candidate, max_passes):
    """
    First-improvement search over position pairs ``1 <= i < j < n``.

    Position 0 (the depot) never moves.
    """
    best_tour = list(tour)
    best_objective = objective
    passes = 0
    improved = True

    while improved and _passes_left(passes, max_passes):
        improved = False
        passes += 1

        for i, j in combinations(range(1, len(best_tour)), 2):
            candidate = make_candidate(best_tour, i, j)
            candidate_objective = evaluate(instance, candidate, packing_plan).objective
            if candidate_objective > best_objective:
                best_tour = candidate
                best_objective = candidate_objective
                improved = True
                logger.debug(f"{make_candidate.__name__} accepted at ({i}, {j}): {best_objective:.4f}")
                break

    return best_tour, best_objective


def two_opt(instance, tour, packing_plan, objective, max_passes=None):
    """
    Segment reversal (2-opt) neighborhood.

    Args:
        instance (Instance): Problem instance
        tour (list): Incumbent tour, 0-based, starting at the depot
        packing_plan (sequence): Fixed packing plan
        objective (float): Objective of the incumbent
        max_passes (int, optional): Maximum number of scans

    Returns:
        tuple: (tour, objective) after the search
    """
    return _improve_tour(instance, tour, packing_plan, objective, _reverse_segment, max_passes)


def position_swap(instance, tour, packing_plan, objective, max_passes=None):
    """
    Position swap neighborhood: exchange the nodes at two tour positions.

    Args:
        instance (Instance): Problem instance
        tour (list): Incumbent tour, 0-based, starting at the depot
        packing_plan (sequence): Fixed packing plan
        objective (float): Objective of the incumbent
        max_passes (int, optional): Maximum number of scans

    Returns:
        tuple: (tour, objective) after the search
    """
    return _improve_tour(instance, tour, packing_plan, objective, _swap_positions, max_passes)


def bit_flip(instance, tour, packing_plan, objective, max_passes=None):
    """
    Bit-flip neighborhood: pick or drop one item at a time.

    Items are visited in ascending order. An unpicked item is only tried when
    it fits next to the items already carried; dropping is always allowed.
    Each accepted flip is kept for the rest of the sweep, and sweeps repeat
    until one makes no change.

    Args:
        instance (Instance): Problem instance
        tour (sequence): Fixed tour
        packing_plan (sequence): Incumbent packing plan
        objective (float): Objective of the incumbent
        max_passes (int, optional): Maximum number of sweeps

    Returns:
        tuple: (packing_plan, objective) after the search
    """
    best_packing = [1 if flag else 0 for flag in packing_plan]
    best_objective = objective
    current_weight = packed_weight(instance, best_packing)
    capacity = instance.capacity
    passes = 0
    improved = True

    while improved and _passes_left(passes, max_passes):
        improved = False
        passes += 1

        for index, item in enumerate(instance.items):
            if best_packing[index]:
                weight_change = -item.weight
            elif current_weight + item.weight <= capacity:
                weight_change = item.weight
            else:
                continue

            best_packing[index] ^= 1
            candidate_objective = evaluate(instance, tour, best_packing).objective
            if candidate_objective > best_objective:
                best_objective = candidate_objective
                current_weight += weight_change
                improved = True
                logger.debug(f"Flipped item {item.id}: {best_objective:.4f}")
            else:
                best_packing[index] ^= 1

    return best_packing, best_objective


def item_swap(instance, tour, packing_plan, objective, max_passes=None):
    """
    Item swap neighborhood: replace one picked item with one unpicked item.

    Pairs are scanned with picked items in the outer loop and unpicked items
    in the inner loop. A pair is only evaluated when the knapsack still fits
    after the exchange.

    Args:
        instance (Instance): Problem instance
        tour (sequence): Fixed tour
        packing_plan (sequence): Incumbent packing plan
        objective (float): Objective of the incumbent
        max_passes (int, optional): Maximum number of scans

    Returns:
        tuple: (packing_plan, objective) after the search
    """
    best_packing = [1 if flag else 0 for flag in packing_plan]
    best_objective = objective
    current_weight = packed_weight(instance, best_packing)
    capacity = instance.capacity
    items = instance.items
    passes = 0
    improved = True

    while improved and _passes_left(passes, max_passes):
        improved = False
        passes += 1

        picked = [index for index, flag in enumerate(best_packing) if flag]
        unpicked = [index for index, flag in enumerate(best_packing) if not flag]

        for out_index, in_index in product(picked, unpicked):
            new_weight = current_weight - items[out_index].weight + items[in_index].weight
            if new_weight > capacity:
                continue

            best_packing[out_index] = 0
            best_packing[in_index] = 1
            candidate_objective = evaluate(instance, tour, best_packing).objective
            if candidate_objective > best_objective:
                best_objective = candidate_objective
                current_weight = new_weight
                improved = True
                logger.debug(f"Swapped item {items[out_index].id} for {items[in_index].id}: {best_objective:.4f}")
                break

            best_packing[out_index] = 1
            best_packing[in_index] = 0

    return best_packing, best_objective


TOUR_OPERATORS = [
    (two_opt, "2-Opt"),
    (position_swap, "Swap"),
]

PACKING_OPERATORS = [
    (bit_flip, "BitFlip"),
    (item_swap, "ItemSwap"),
]
