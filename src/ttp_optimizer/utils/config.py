"""
Configuration utility for the TTP Optimizer.
"""

import copy
import json
import os
import logging

logger = logging.getLogger(__name__)

DEFAULTS = {
    "hill_climbing": {
        "mode": "full",
        "max_cycles": None,
        "max_passes": None,
        "show_progress": True,
        "anchor_depot": True
    },
    "construction": {
        "tour": "nearest_neighbor",
        "packing": "greedy",
        "seed": None
    },
    "output": {
        "directory": "results",
        "plots": True
    }
}


class Config:
    """
    Configuration class for TTP Optimizer.
    Handles loading and accessing configuration parameters.
    """

    def __init__(self, config_path=None):
        """
        Initialize the configuration from a JSON file.

        Args:
            config_path (str, optional): Path to the configuration file.
                Without a path only the defaults are used.
        """
        self.config_path = config_path
        self.config = self._load_config()

        # Set default values if not in config
        for section, values in DEFAULTS.items():
            if not isinstance(self.config.get(section), dict):
                self.config[section] = {}
            for key, value in values.items():
                if key not in self.config[section]:
                    self.config[section][key] = copy.deepcopy(value)

    def _load_config(self):
        """
        Load configuration from JSON file.

        Returns:
            dict: Configuration dictionary.
        """
        if self.config_path is None:
            return {}

        if not os.path.exists(self.config_path):
            logger.warning(f"Configuration file {self.config_path} not found. Using default values.")
            return {}

        try:
            with open(self.config_path, 'r') as f:
                config = json.load(f)
        except json.JSONDecodeError:
            logger.error(f"Error parsing configuration file {self.config_path}. Using default values.")
            return {}

        if not isinstance(config, dict):
            logger.error(f"Configuration file {self.config_path} must contain a JSON object. Using default values.")
            return {}
        return config

    def get(self, key, default=None):
        """
        Get a configuration value.

        Args:
            key (str): Configuration key, use dot notation for nested keys (e.g. 'hill_climbing.mode').
            default: Default value if key is not found.

        Returns:
            Configuration value for the key or default if not found.
        """
        keys = key.split('.')
        value = self.config
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key, value):
        """
        Set a configuration value, creating nested sections as needed.

        Args:
            key (str): Configuration key in dot notation.
            value: Value to store.
        """
        keys = key.split('.')
        section = self.config
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

    def save(self, config_path=None):
        """
        Save current configuration to a file.

        Args:
            config_path (str, optional): Path to save configuration. Defaults to self.config_path.
        """
        if config_path is None:
            config_path = self.config_path
        if config_path is None:
            raise ValueError("No path given to save the configuration to")

        with open(config_path, 'w') as f:
            json.dump(self.config, f, indent=4)

        logger.info(f"Configuration saved to {config_path}")

    def __str__(self):
        """Return string representation of the configuration."""
        return json.dumps(self.config, indent=2)
