#!/usr/bin/env python3
"""
TTP Optimizer: Main script for improving Travelling Thief Problem solutions.
"""

import argparse
import json
import logging
import os
import sys
import time

from .data.instance_loader import InstanceLoader, generate_sample_instance
from .models.construction import (
    PACKING_HEURISTICS, TOUR_HEURISTICS, build_packing, build_tour
)
from .models.hill_climbing import MODES, HillClimbing
from .utils.analytics import Analytics
from .utils.config import Config
from .utils.solution import (
    anchor_tour, evaluate, is_feasible, normalize_tour, read_solution, write_solution
)
from .visualization.visualizer import Visualizer

logger = logging.getLogger(__name__)


def setup_logging(log_file="ttp_optimizer.log", level=logging.INFO):
    """Configure root logging to a file and the console."""
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='TTP Optimizer')
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--instance', type=str,
                        help='Path to a .ttp or .json instance file')
    source.add_argument('--sample-nodes', type=int,
                        help='Generate a random instance with this many nodes instead of loading one')
    parser.add_argument('--items-per-node', type=int, default=1,
                        help='Items per node for a generated instance')
    parser.add_argument('--solution', type=str,
                        help='Two-line solution file to start from (warm start)')
    parser.add_argument('--config', type=str, default='config.json',
                        help='Path to configuration file')
    parser.add_argument('--mode', choices=MODES,
                        help='Optimize the tour only, or tour and packing plan')
    parser.add_argument('--tour-heuristic', choices=TOUR_HEURISTICS,
                        help='Heuristic for the initial tour')
    parser.add_argument('--packing-heuristic', choices=PACKING_HEURISTICS,
                        help='Heuristic for the initial packing plan')
    parser.add_argument('--max-cycles', type=int,
                        help='Stop after this many hill climbing cycles')
    parser.add_argument('--seed', type=int,
                        help='Random seed for generated instances and random packing')
    parser.add_argument('--output', type=str,
                        help='Directory to save results')
    parser.add_argument('--no-plots', action='store_true',
                        help='Skip plot generation')
    parser.add_argument('--verify', action='store_true',
                        help='Only evaluate the starting solution and report it')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')
    return parser.parse_args(argv)


def apply_overrides(config, args):
    """Copy command line options over the configuration values."""
    overrides = {
        'hill_climbing.mode': args.mode,
        'hill_climbing.max_cycles': args.max_cycles,
        'construction.tour': args.tour_heuristic,
        'construction.packing': args.packing_heuristic,
        'construction.seed': args.seed,
        'output.directory': args.output,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)
    if args.no_plots:
        config.set('output.plots', False)


def load_instance(args, config):
    """Load or generate the instance."""
    if args.instance:
        return InstanceLoader(args.instance).load()

    seed = config.get('construction.seed')
    return generate_sample_instance(
        num_nodes=args.sample_nodes,
        items_per_node=args.items_per_node,
        seed=42 if seed is None else seed
    )


def initial_state(instance, args, config):
    """
    Build the starting tour and packing plan.

    Returns:
        tuple: (tour, packing_plan)
    """
    if args.solution:
        tour, packing_plan = read_solution(args.solution, instance)
    else:
        tour = build_tour(instance, config.get('construction.tour'))
        packing_plan = build_packing(instance, config.get('construction.packing'),
                                     seed=config.get('construction.seed'))

    tour = normalize_tour(tour)
    if config.get('hill_climbing.anchor_depot', True):
        tour = anchor_tour(tour, depot=0)
    return tour, packing_plan


def verify(instance, tour, packing_plan):
    """Evaluate a solution and print the verification report."""
    solution = evaluate(instance, tour, packing_plan)
    feasible = is_feasible(instance, packing_plan)

    print("-" * 50)
    print("VERIFICATION RESULTS:")
    print(f"Objective: {solution.objective:.4f}")
    print(f"Profit: {solution.profit:.4f}")
    print(f"Time: {solution.travel_time:.4f}")
    print(f"Weight End: {solution.final_weight:.2f} / {instance.capacity:.2f}")
    print(f"Feasible: {'yes' if feasible else 'no'}")
    print("-" * 50)

    if not feasible:
        logger.warning("Packing plan exceeds the knapsack capacity")
    return solution


def solution_basename(instance, args):
    """Name of the improved solution file: the warm start file if given, else the instance."""
    if args.solution:
        name = os.path.splitext(os.path.basename(args.solution))[0]
    else:
        name = instance.name or "instance"
    return f"{name}_improved.txt"


def save_results(instance, solution, hill_climbing, config, output_dir, start_time, filename):
    """Write the solution file, JSON results, history and plots."""
    write_solution(os.path.join(output_dir, filename), solution)

    analytics = Analytics(instance, solution)
    results = {
        "instance": {
            "name": instance.name,
            "nodes": instance.num_nodes,
            "items": instance.num_items,
            "capacity": instance.capacity,
        },
        "mode": hill_climbing.mode,
        "state": hill_climbing.state.value,
        "cycles": hill_climbing.cycles,
        "initial_objective": hill_climbing.initial_objective,
        "solution": solution.to_dict(),
        "analytics": analytics.analyze(),
        "config": config.config,
        "total_runtime": time.time() - start_time,
    }
    with open(os.path.join(output_dir, "results.json"), "w") as f:
        json.dump(results, f, indent=2)

    hill_climbing.save_history(os.path.join(output_dir, "history.csv"))

    if not config.get('output.plots', True):
        return

    logger.info("Generating visualizations")
    visualizer = Visualizer(instance, solution)
    plots = [
        (hill_climbing.plot_progress, "progress.png"),
        (visualizer.plot_tour, "tour.png"),
        (visualizer.plot_load_profile, "load_profile.png"),
        (visualizer.plot_tour_html, "tour.html"),
    ]
    for plot, filename in plots:
        try:
            plot(os.path.join(output_dir, filename))
        except (OSError, ValueError) as e:
            logger.error(f"Error generating {filename}: {str(e)}")


def main(argv=None):
    """Main function to run the TTP optimization."""
    start_time = time.time()

    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    logger.info(f"Loading configuration from {args.config}")
    config = Config(args.config)
    apply_overrides(config, args)

    try:
        instance = load_instance(args, config)
        tour, packing_plan = initial_state(instance, args, config)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Error loading input: {str(e)}")
        return 1

    if args.verify:
        try:
            verify(instance, tour, packing_plan)
        except ValueError as e:
            logger.error(f"Cannot evaluate solution: {str(e)}")
            return 1
        return 0

    output_dir = config.get('output.directory', 'results')
    os.makedirs(output_dir, exist_ok=True)

    hill_climbing = HillClimbing(instance, config)
    try:
        best_solution = hill_climbing.solve(tour, packing_plan)
    except ValueError as e:
        logger.error(f"Invalid starting solution: {str(e)}")
        return 1
    except KeyboardInterrupt:
        if hill_climbing.best_tour is None:
            return 130
        logger.warning("Interrupted, keeping the last accepted solution")
        best_solution = hill_climbing.best_solution().with_computation_time(time.time() - start_time)

    logger.info(f"Optimization completed in {time.time() - start_time:.2f} seconds")
    logger.info(f"Objective: {best_solution.objective:.4f}")
    logger.info(f"Profit: {best_solution.profit:.4f}")
    logger.info(f"Travel time: {best_solution.travel_time:.4f}")

    save_results(instance, best_solution, hill_climbing, config, output_dir, start_time,
                 solution_basename(instance, args))
    logger.info(f"Results saved to {output_dir}/")
    return 0


if __name__ == "__main__":
    sys.exit(main())
