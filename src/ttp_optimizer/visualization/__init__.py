"""Visualization module for TTP Optimizer."""

from .visualizer import Visualizer
