"""Utils module for TTP Optimizer."""

from .config import Config
from .solution import Solution, evaluate
from .analytics import Analytics
