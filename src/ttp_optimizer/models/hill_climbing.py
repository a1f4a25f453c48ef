"""
Multi-neighborhood hill climbing for the Travelling Thief Problem.
"""

import logging
import time
from enum import Enum

import pandas as pd
from tqdm import tqdm

from .operators import TOUR_OPERATORS, PACKING_OPERATORS
from ..utils.config import Config
from ..utils.solution import (
    evaluate, is_feasible, normalize_tour, validate_packing_plan, validate_tour
)

logger = logging.getLogger(__name__)

MODES = ("full", "tour")


class SearchState(Enum):
    RUNNING = "running"
    CONVERGED = "converged"
    CYCLE_LIMIT = "cycle_limit"


class HillClimbing:
    """
    Hill climber cycling over tour and packing neighborhoods.

    Each macro-cycle runs 2-opt and position swap on the tour, then (in full
    mode) bit-flip and item swap on the packing plan. Every operator starts
    from the incumbent left by the previous one. The search converges once a
    whole cycle leaves the incumbent unchanged.
    """

    def __init__(self, instance, config=None, mode=None):
        """
        Initialize the hill climber.

        Args:
            instance (Instance): Problem instance
            config (Config, optional): Configuration object
            mode (str, optional): "full" or "tour"; overrides the configuration
        """
        self.instance = instance
        self.config = config if config is not None else Config()

        self.mode = mode or self.config.get('hill_climbing.mode', 'full')
        if self.mode not in MODES:
            raise ValueError(f"Unknown hill climbing mode {self.mode!r}, expected one of {MODES}")
        self.max_cycles = self.config.get('hill_climbing.max_cycles')
        self.max_passes = self.config.get('hill_climbing.max_passes')
        self.show_progress = self.config.get('hill_climbing.show_progress', True)

        self.tour_operators = list(TOUR_OPERATORS)
        self.packing_operators = list(PACKING_OPERATORS) if self.mode == "full" else []

        self.state = SearchState.RUNNING
        self.cycles = 0

        # Incumbent, updated on every accepted operator result
        self.best_tour = None
        self.best_packing = None
        self.best_objective = None
        self.initial_objective = None

        # Statistics
        self.phase_details = []

    def solve(self, tour, packing_plan):
        """
        Run the hill climber to convergence.

        Args:
            tour (sequence): Initial 0-based tour, optionally closed with the start node
            packing_plan (sequence): Initial capacity-feasible 0/1 packing plan

        Returns:
            Solution: Best solution found, with its computation time

        Raises:
            ValueError: If the tour is not a permutation of the nodes, the packing
                plan does not match the items, or the packing plan is overweight
        """
        start_time = time.time()

        tour = normalize_tour(tour)
        validate_tour(self.instance, tour)
        validate_packing_plan(self.instance, packing_plan)
        if not is_feasible(self.instance, packing_plan):
            raise ValueError("Initial packing plan exceeds the knapsack capacity")

        self.best_tour = tour
        self.best_packing = [int(flag) for flag in packing_plan]
        self.best_objective = evaluate(self.instance, self.best_tour, self.best_packing).objective
        self.initial_objective = self.best_objective
        self.phase_details = []
        self.cycles = 0
        self.state = SearchState.RUNNING

        logger.info(f"Initial TTP objective: {self.best_objective:.4f} (mode={self.mode})")

        progress_bar = tqdm(desc="HillClimbing", unit="cycle", disable=not self.show_progress,
                            dynamic_ncols=True)

        improved = True
        while improved:
            if self.max_cycles is not None and self.cycles >= self.max_cycles:
                self.state = SearchState.CYCLE_LIMIT
                logger.warning(f"Stopping after {self.cycles} cycles without convergence")
                break

            self.cycles += 1
            logger.debug(f"Starting TTP optimization cycle #{self.cycles}")
            improved = self._run_cycle()

            progress_bar.update(1)
            progress_bar.set_postfix({'best': f"{self.best_objective:.2f}"}, refresh=True)

        progress_bar.close()

        if not improved:
            self.state = SearchState.CONVERGED

        computation_time = time.time() - start_time
        solution = self.best_solution().with_computation_time(computation_time)

        logger.info(f"Hill climbing {self.state.value} after {self.cycles} cycles in "
                    f"{computation_time:.2f}s: objective {self.initial_objective:.4f} -> {solution.objective:.4f}")
        return solution

    def _run_cycle(self):
        """
        Run every operator once against the current incumbent.

        Returns:
            bool: True if any operator improved the incumbent
        """
        improved = False

        for operator, name in self.tour_operators:
            phase_start = time.time()
            before = self.best_objective
            tour, objective = operator(self.instance, self.best_tour, self.best_packing,
                                       self.best_objective, max_passes=self.max_passes)
            accepted = objective > before
            if accepted:
                self.best_tour = tour
                self.best_objective = objective
                improved = True
                logger.info(f"[{name}] Improvement found! New objective: {objective:.4f}")
            self._record(name, before, accepted, time.time() - phase_start)

        for operator, name in self.packing_operators:
            phase_start = time.time()
            before = self.best_objective
            packing, objective = operator(self.instance, self.best_tour, self.best_packing,
                                          self.best_objective, max_passes=self.max_passes)
            accepted = objective > before
            if accepted:
                self.best_packing = packing
                self.best_objective = objective
                improved = True
                logger.info(f"[{name}] Improvement found! New objective: {objective:.4f}")
            self._record(name, before, accepted, time.time() - phase_start)

        return improved

    def _record(self, name, before, accepted, elapsed):
        self.phase_details.append({
            "cycle": self.cycles,
            "operator": name,
            "objective_before": before,
            "objective_after": self.best_objective,
            "accepted": accepted,
            "elapsed": elapsed
        })

    def best_solution(self):
        """
        Evaluate the current incumbent.

        Usable after an interrupted run to recover the last accepted state.

        Returns:
            Solution: Evaluation of the incumbent tour and packing plan
        """
        if self.best_tour is None:
            raise RuntimeError("solve() has not been called")
        return evaluate(self.instance, self.best_tour, self.best_packing)

    def history_frame(self):
        """
        Return the per-phase search history.

        Returns:
            pd.DataFrame: One row per operator call
        """
        columns = ["cycle", "operator", "objective_before", "objective_after", "accepted", "elapsed"]
        return pd.DataFrame(self.phase_details, columns=columns)

    def save_history(self, output_file):
        """
        Save the search history to CSV.

        Args:
            output_file (str): Path to the CSV file
        """
        self.history_frame().to_csv(output_file, index=False)
        logger.info(f"Search history saved to {output_file}")

    def plot_progress(self, output_file):
        """
        Plot the objective after each operator phase.

        Args:
            output_file (str): Path to save the visualization
        """
        import matplotlib.pyplot as plt

        history = self.history_frame()
        if history.empty:
            logger.warning("No search history available for progress plot")
            return

        fig, ax = plt.subplots(figsize=(12, 6))
        fig.suptitle('Hill Climbing Progress', fontsize=16)

        phases = range(len(history) + 1)
        objectives = [self.initial_objective] + history["objective_after"].tolist()
        ax.step(phases, objectives, 'b-', where='post', label='Best Objective')

        accepted = history[history["accepted"]]
        for operator, group in accepted.groupby("operator"):
            ax.scatter(group.index + 1, group["objective_after"], label=f'{operator} accepted', zorder=5)

        ax.set_xlabel('Operator Phase')
        ax.set_ylabel('Objective Value')
        ax.legend()
        ax.grid(True)

        plt.tight_layout(rect=[0, 0, 1, 0.95])
        plt.savefig(output_file)
        plt.close(fig)
        logger.info(f"Progress plot saved to {output_file}")
