"""
Visualizer module for the TTP Optimizer.
"""

import logging
import os

import matplotlib.pyplot as plt
import numpy as np
import plotly.graph_objects as go

from ..utils.solution import leg_profile

logger = logging.getLogger(__name__)


class Visualizer:
    """Visualizer class for TTP solutions."""

    def __init__(self, instance, solution):
        """
        Initialize visualizer with a solution.

        Args:
            instance (Instance): Problem instance
            solution (Solution): Evaluated solution
        """
        self.instance = instance
        self.solution = solution
        self.coords = instance.coordinates()

        # Nodes where at least one picked item lies
        self.pickup_nodes = sorted({
            instance.items[index].node
            for index, flag in enumerate(solution.packing_plan) if flag
        })

    def _closed_tour(self):
        tour = list(self.solution.tour)
        return np.array(tour + tour[:1], dtype=int)

    def plot_tour(self, output_file):
        """
        Plot the tour with matplotlib.

        Args:
            output_file (str): Output PNG path
        """
        path_coords = self.coords[self._closed_tour()]

        fig = plt.figure(figsize=(12, 8))
        plt.scatter(self.coords[:, 0], self.coords[:, 1], c='#cccccc', s=10, marker='.', label='Cities')
        plt.plot(path_coords[:, 0], path_coords[:, 1], c='blue', linewidth=1, alpha=0.8, label='Tour')

        if self.pickup_nodes:
            pickup_coords = self.coords[self.pickup_nodes]
            plt.scatter(pickup_coords[:, 0], pickup_coords[:, 1], c='orange', s=25,
                        marker='o', zorder=5, label='Pickup Cities')

        start_city = self.coords[self.solution.tour[0]]
        plt.scatter(start_city[0], start_city[1], c='red', s=100, marker='*', zorder=10, label='Start/End')

        plt.title(f"TTP Solution for {self.instance.name or 'instance'}\n"
                  f"Objective: {self.solution.objective:.2f}  Profit: {self.solution.profit:.2f}  "
                  f"Time: {self.solution.travel_time:.2f}")
        plt.xlabel("X Coordinate")
        plt.ylabel("Y Coordinate")
        plt.legend(loc='upper right')
        plt.grid(True, linestyle='--', alpha=0.3)

        plt.savefig(output_file)
        plt.close(fig)
        logger.info(f"Tour plot saved to {output_file}")

    def plot_load_profile(self, output_file):
        """
        Plot carried weight and velocity along the tour.

        Args:
            output_file (str): Output PNG path
        """
        profile = leg_profile(self.instance, self.solution.tour, self.solution.packing_plan)

        fig, axes = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
        fig.suptitle('Load Profile', fontsize=16)

        axes[0].step(profile["cumulative_time"], profile["weight"], 'b-', where='pre')
        axes[0].axhline(self.instance.capacity, color='r', linestyle='--', label='Capacity')
        axes[0].set_ylabel('Carried Weight')
        axes[0].legend()
        axes[0].grid(True)

        axes[1].step(profile["cumulative_time"], profile["velocity"], 'g-', where='pre')
        axes[1].set_ylabel('Velocity')
        axes[1].set_xlabel('Elapsed Time')
        axes[1].grid(True)

        plt.tight_layout(rect=[0, 0, 1, 0.95])
        plt.savefig(output_file)
        plt.close(fig)
        logger.info(f"Load profile saved to {output_file}")

    def plot_tour_html(self, output_file):
        """
        Plot the tour as an interactive plotly chart.

        Args:
            output_file (str): Output HTML path
        """
        path_coords = self.coords[self._closed_tour()]
        items_per_node = [len(items) for items in self.instance.items_at_node]

        fig = go.Figure()
        fig.add_trace(go.Scatter(
            x=path_coords[:, 0], y=path_coords[:, 1],
            mode='lines', name='Tour', line=dict(color='blue', width=1)
        ))
        fig.add_trace(go.Scatter(
            x=self.coords[:, 0], y=self.coords[:, 1],
            mode='markers', name='Cities', marker=dict(color='#999999', size=5),
            text=[f"Node {i + 1}: {items_per_node[i]} items" for i in range(len(self.coords))],
            hoverinfo='text'
        ))
        if self.pickup_nodes:
            pickup_coords = self.coords[self.pickup_nodes]
            fig.add_trace(go.Scatter(
                x=pickup_coords[:, 0], y=pickup_coords[:, 1],
                mode='markers', name='Pickup Cities', marker=dict(color='orange', size=9),
                text=[f"Node {node + 1}" for node in self.pickup_nodes], hoverinfo='text'
            ))

        fig.update_layout(
            title=f"TTP Solution: objective {self.solution.objective:.2f}",
            xaxis_title="X Coordinate",
            yaxis_title="Y Coordinate",
            template="plotly_white"
        )

        directory = os.path.dirname(output_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.write_html(output_file)
        logger.info(f"Interactive tour plot saved to {output_file}")
