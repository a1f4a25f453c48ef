"""TTP Optimizer: hill climbing for the Travelling Thief Problem."""

__version__ = "0.1.0"
