"""
Analytics module for TTP Optimizer.
Provides post-run analysis of a solution's packing plan.
"""

import logging
import math

import pandas as pd
from scipy.stats import pearsonr

from .solution import is_feasible, packed_weight

logger = logging.getLogger(__name__)


class Analytics:
    """Analytics class for TTP optimization results."""

    def __init__(self, instance, solution):
        """
        Initialize analytics.

        Args:
            instance (Instance): Problem instance
            solution (Solution): Evaluated solution
        """
        self.instance = instance
        self.solution = solution

    def packing_summary(self):
        """
        Summarize the packing plan.

        Returns:
            dict: Item count, weight, utilization and objective components
        """
        weight = packed_weight(self.instance, self.solution.packing_plan)
        capacity = self.instance.capacity
        return {
            "items_picked": len(self.solution.picked_items),
            "items_total": self.instance.num_items,
            "total_weight": weight,
            "capacity": capacity,
            "capacity_utilization": weight / capacity if capacity > 0 else 0.0,
            "profit": self.solution.profit,
            "travel_time": self.solution.travel_time,
            "renting_cost": self.solution.travel_time * self.instance.renting_ratio,
            "objective": self.solution.objective,
            "feasible": is_feasible(self.instance, self.solution.packing_plan),
        }

    def pickup_profile(self):
        """
        List the picked items in pickup order.

        Returns:
            pd.DataFrame: One row per picked item with the tour position of its node
        """
        position_of = {node: position for position, node in enumerate(self.solution.tour)}
        rows = []
        for index, flag in enumerate(self.solution.packing_plan):
            if not flag:
                continue
            item = self.instance.items[index]
            rows.append({
                "item_id": item.id,
                "node": item.node + 1,
                "tour_position": position_of[item.node],
                "profit": item.profit,
                "weight": item.weight,
                "ratio": item.ratio,
            })

        columns = ["item_id", "node", "tour_position", "profit", "weight", "ratio"]
        profile = pd.DataFrame(rows, columns=columns)
        return profile.sort_values(["tour_position", "item_id"]).reset_index(drop=True)

    def weight_position_correlation(self):
        """
        Pearson correlation between tour position and weight of picked items.

        A positive value means heavy items tend to be collected late in the tour.

        Returns:
            dict or None: Correlation and p-value, None when undefined
        """
        profile = self.pickup_profile()
        if len(profile) < 3:
            return None
        if profile["tour_position"].nunique() < 2 or profile["weight"].nunique() < 2:
            return None

        correlation, p_value = pearsonr(profile["tour_position"], profile["weight"])
        if math.isnan(correlation):
            return None
        return {"correlation": float(correlation), "p_value": float(p_value)}

    def analyze(self):
        """
        Run all analyses.

        Returns:
            dict: Combined, JSON-serializable results
        """
        profile = self.pickup_profile()
        summary = self.packing_summary()
        logger.info(f"Picked {summary['items_picked']}/{summary['items_total']} items, "
                    f"capacity utilization {summary['capacity_utilization']:.1%}")

        picked_by_node = {int(node): int(count) for node, count in profile.groupby("node").size().items()}
        return {
            "summary": summary,
            "weight_position_correlation": self.weight_position_correlation(),
            "picked_by_node": picked_by_node,
        }
