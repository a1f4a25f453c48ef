"""Data module for TTP Optimizer."""

from .instance_loader import Instance, InstanceLoader, Item, Node, generate_sample_instance
