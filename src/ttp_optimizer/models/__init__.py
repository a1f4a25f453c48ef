"""Search models for TTP Optimizer."""

from .hill_climbing import HillClimbing, SearchState
from .operators import bit_flip, item_swap, position_swap, two_opt
