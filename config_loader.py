"""
Configuration loader for the lesson-text analysis pipeline.
"""

import copy
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """Load configuration from YAML file with validation."""

    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning(f"Config file {config_path} not found. Using default configuration.")
        return get_default_config()

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError("top-level YAML value must be a mapping")

        # Validate required sections
        required_sections = ['preservation', 'phases', 'scripted']
        for section in required_sections:
            if section not in config:
                logger.warning(f"Missing required config section: {section}")
                config[section] = {}

        # Apply defaults for missing values
        config = merge_with_defaults(config)

        logger.debug("Configuration loaded successfully")
        return config

    except (OSError, yaml.YAMLError, ValueError) as e:
        logger.error(f"Failed to load configuration from {config_path}: {e}")
        logger.info("Using default configuration")
        return get_default_config()


def get_default_config() -> Dict[str, Any]:
    """Get default tuning for the detectors, parser and mapper."""
    return {
        'preservation': {
            'min_question_length': 3
        },
        'teachable_moments': {
            'proximity_threshold': 200,
            'max_percent': 0.3
        },
        'phases': {
            'min_slides_for_heuristics': 5
        },
        'scripted': {
            'implicit_say_min_length': 20,
            'activity_min_length': 80,
            'title_max_length': 60
        },
        'logging': {
            'level': 'INFO'
        }
    }


def merge_with_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge loaded config with default values for missing keys."""
    defaults = get_default_config()

    for section, section_defaults in defaults.items():
        if not isinstance(config.get(section), dict):
            config[section] = section_defaults
        else:
            for key, default_value in section_defaults.items():
                if key not in config[section]:
                    config[section][key] = default_value

    return config


def get_section(config: Optional[Dict[str, Any]], section: str) -> Dict[str, Any]:
    """Return one config section with defaults filled in, without touching the caller's dict."""
    merged = merge_with_defaults(copy.deepcopy(config) if config else {})
    return merged[section]
