#!/usr/bin/env python3
"""
Configuration schema definition for validation
"""
from typing import Dict, Any, List


class ConfigSchema:
    """Configuration schema for validation"""

    SCHEMA = {
        'paths': {
            'output_dir': {'type': str, 'required': True},
            'lineages_dir': {'type': str, 'required': False},
        },
        'cutoffs': {
            'preset': {'type': str, 'required': False, 'nullable': True},
            'presets': {'type': dict, 'required': False},
            'filename': {'type': str, 'required': False},
        },
        'aggregation': {
            'extension': {'type': str, 'required': True},
            'comment_char': {'type': str, 'required': False},
            'best_hit_only': {'type': bool, 'required': False},
            'min_occupancy': {'type': (int, float), 'required': True, 'range': (0.0, 1.0)},
            'occupancy_boundary': {'type': str, 'required': False,
                                   'choices': ('inclusive', 'exclusive')},
            'reset_alignment_lengths': {'type': bool, 'required': False},
        },
        'reports': {
            'hit_report': {'type': str, 'required': True},
            'recovery_report': {'type': str, 'required': True},
            'alignment_lengths': {'type': str, 'required': True},
        },
        'logging': {
            'level': {'type': str, 'required': False},
            'format': {'type': str, 'required': False},
            'log_dir': {'type': str, 'required': False},
        },
    }

    @staticmethod
    def _type_name(expected) -> str:
        if isinstance(expected, tuple):
            return " or ".join(t.__name__ for t in expected)
        return expected.__name__

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        """Validate configuration against schema

        Args:
            config: Configuration to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        for section, fields in cls.SCHEMA.items():
            if section not in config:
                if any(props.get('required', False) for props in fields.values()):
                    errors.append(f"Missing required configuration section: {section}")
                continue

            section_config = config[section]
            if not isinstance(section_config, dict):
                errors.append(f"Configuration section {section} must be a mapping")
                continue

            for field, props in fields.items():
                if field not in section_config:
                    if props.get('required', False):
                        errors.append(f"Missing required configuration field: {section}.{field}")
                    continue

                value = section_config[field]
                if value is None and props.get('nullable', False):
                    continue

                expected_type = props['type']
                # bool is an int subclass; don't accept it for numeric fields
                if not isinstance(value, expected_type) or (
                        isinstance(value, bool) and expected_type is not bool):
                    errors.append(
                        f"Invalid type for {section}.{field}: expected {cls._type_name(expected_type)}, "
                        f"got {type(value).__name__}"
                    )
                    continue

                if 'range' in props:
                    low, high = props['range']
                    if not low <= value <= high:
                        errors.append(f"Value for {section}.{field} out of range [{low}, {high}]: {value}")

                if 'choices' in props and value not in props['choices']:
                    errors.append(
                        f"Invalid value for {section}.{field}: {value!r} "
                        f"(expected one of {', '.join(props['choices'])})"
                    )

        return errors
