#!/usr/bin/env python3
"""
Configuration manager for the domtbl pipeline
Handles loading and accessing configuration from various sources.
"""
import os
import copy
import json
import logging
from typing import Dict, Any, Optional, List

import yaml

from domtbl.exceptions import ConfigurationError
from domtbl.pipelines.models import AggregationOptions, OccupancyBoundary
from .schema import ConfigSchema
from .defaults import DEFAULT_CONFIG


class ConfigManager:
    """Configuration manager for the domtbl pipeline"""

    ENV_PREFIX = "DOMTBL_"

    def __init__(self, config_path: Optional[str] = None, strict: bool = False):
        """Initialize configuration manager

        Args:
            config_path: Path to configuration file (optional)
            strict: Raise ConfigurationError on validation errors

        Raises:
            ConfigurationError: If the file can't be read, or on invalid
                configuration in strict mode
        """
        self.logger = logging.getLogger("domtbl.config")
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.strict = strict

        self._load_defaults()

        if config_path:
            if not os.path.exists(config_path):
                raise ConfigurationError(f"Configuration file not found: {config_path}",
                                         {"config_path": config_path})
            self._load_from_file(config_path)

            local_config_path = self._get_local_config_path(config_path)
            if os.path.exists(local_config_path):
                self._load_from_file(local_config_path)
                self.logger.info(f"Merged local configuration from {local_config_path}")

        self._load_from_env()

        self.errors = self.validate()

    def _get_local_config_path(self, config_path: str) -> str:
        """Get path to local configuration file based on main config path

        Format: <filename>.local.<extension>
        """
        config_dir = os.path.dirname(config_path)
        name, extension = os.path.splitext(os.path.basename(config_path))
        local_path = os.path.join(config_dir, f"{name}.local{extension}")
        self.logger.debug(f"Looking for local config at: {local_path}")
        return local_path

    def _load_defaults(self) -> None:
        """Load default configuration values"""
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        self.logger.debug("Loaded default configuration")

    def _load_from_file(self, config_path: str) -> None:
        """Load configuration from YAML or JSON file

        Args:
            config_path: Path to configuration file
        """
        try:
            with open(config_path, 'r') as f:
                if config_path.endswith('.json'):
                    file_config = json.load(f)
                else:  # Assume YAML otherwise
                    file_config = yaml.safe_load(f) or {}
        except (OSError, ValueError, yaml.YAMLError) as e:
            error_msg = f"Error loading config file {config_path}: {str(e)}"
            self.logger.error(error_msg)
            raise ConfigurationError(error_msg, {"config_path": config_path}) from e

        if not isinstance(file_config, dict):
            raise ConfigurationError(f"Configuration file {config_path} must contain a mapping",
                                     {"config_path": config_path})

        self._deep_update(self.config, file_config)
        self.logger.info(f"Loaded configuration from {config_path}")

    def _load_from_env(self) -> None:
        """Override config with environment variables

        Environment variables should be prefixed with DOMTBL_
        and use double underscore __ for nesting.
        Example: DOMTBL_AGGREGATION__MIN_OCCUPANCY for aggregation.min_occupancy
        """
        for key, value in os.environ.items():
            if key.startswith(self.ENV_PREFIX):
                config_key = key[len(self.ENV_PREFIX):].lower()

                if "__" in config_key:
                    self._set_nested_value(self.config, config_key.split("__"), value)
                else:
                    self.config[config_key] = self._convert_value(value)

        self.logger.debug("Applied environment variable overrides")

    def _set_nested_value(self, config: Dict[str, Any],
                          key_parts: List[str], value: str) -> None:
        current = config
        for part in key_parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[key_parts[-1]] = self._convert_value(value)

    def _convert_value(self, value: str) -> Any:
        """Convert string environment variable to appropriate type"""
        if value.lower() in ('true', 'yes'):
            return True
        elif value.lower() in ('false', 'no'):
            return False
        try:
            return int(value)
        except ValueError:
            try:
                return float(value)
            except ValueError:
                return value

    def _deep_update(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        """Recursively update target dictionary with values from source"""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._deep_update(target[key], value)
            else:
                target[key] = value

    def validate(self) -> List[str]:
        """Validate the configuration against the schema

        Returns:
            List of validation errors

        Raises:
            ConfigurationError: On errors when strict
        """
        errors = ConfigSchema.validate(self.config)

        if errors:
            for error in errors:
                self.logger.error(f"Configuration error: {error}")
            if self.strict:
                raise ConfigurationError("Invalid configuration", {"errors": errors})
            self.logger.warning("Using configuration with validation errors")
        else:
            self.logger.debug("Configuration validated successfully")
        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value using dot notation

        Args:
            key: Configuration key (can use dot notation for nested values)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        if '.' in key:
            current = self.config
            for part in key.split('.'):
                if not isinstance(current, dict) or part not in current:
                    return default
                current = current[part]
            return current
        return self.config.get(key, default)

    def get_path(self, path_name: str, default: str = "") -> str:
        """Get a path from configuration"""
        return self.config.get('paths', {}).get(path_name, default)

    def get_cutoff_presets(self) -> Dict[str, str]:
        """Explicit preset name -> cutoff file mapping"""
        return dict(self.config.get('cutoffs', {}).get('presets') or {})

    def get_aggregation_options(self) -> AggregationOptions:
        """Build pipeline options from the aggregation and reports sections"""
        aggregation = self.config.get('aggregation', {})
        reports = self.config.get('reports', {})
        try:
            boundary = OccupancyBoundary(aggregation.get('occupancy_boundary', 'inclusive'))
        except ValueError as e:
            raise ConfigurationError(f"Invalid occupancy boundary: {e}") from e

        return AggregationOptions(
            best_hit_only=bool(aggregation.get('best_hit_only', False)),
            min_occupancy=float(aggregation.get('min_occupancy', 0.75)),
            boundary=boundary,
            extension=aggregation.get('extension', 'domtbl'),
            comment_char=aggregation.get('comment_char', '#'),
            reset_alignment_lengths=bool(aggregation.get('reset_alignment_lengths', False)),
            hit_report=reports.get('hit_report', 'hit_report.tsv'),
            recovery_report=reports.get('recovery_report', 'marker_recovery.tsv'),
            alignment_lengths=reports.get('alignment_lengths', 'aln_length.tsv'),
        )
