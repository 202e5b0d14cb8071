"""
Configuration loader for the Rectification module.

Loads and validates configuration from config.yaml file.
"""

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from src.rectification.types import (
    DegeneratePolicy,
    EditorConfig,
    EngineConfig,
    EstimationStrategy,
    EstimatorConfig,
    RectificationConfig,
    WarpStrategy,
)

logger = logging.getLogger(__name__)

# Default configuration path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> RectificationConfig:
    """
    Load rectification configuration from YAML file.

    Args:
        config_path: Path to the configuration YAML file.

    Returns:
        Validated RectificationConfig object.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValueError: If config is invalid or missing required fields.

    Example:
        >>> config = load_config()
        >>> print(config.estimator.margin_px)
        40
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    logger.debug(f"Loading rectification config from {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw_config = yaml.safe_load(f)

    try:
        config = _parse_config(raw_config)
        _validate_config(config)
        logger.info("Successfully loaded rectification configuration")
        return config
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid configuration file: {e}") from e


def _parse_config(raw: Dict[str, Any]) -> RectificationConfig:
    """Parse raw dictionary into structured config objects."""
    return RectificationConfig(
        estimator=EstimatorConfig(
            strategy=EstimationStrategy(raw["estimator"]["strategy"]),
            margin_px=int(raw["estimator"]["margin_px"]),
            edge_margin_px=int(raw["estimator"]["edge_margin_px"]),
            edge_threshold=float(raw["estimator"]["edge_threshold"]),
        ),
        editor=EditorConfig(
            mouse_hit_radius=float(raw["editor"]["mouse_hit_radius"]),
            touch_hit_radius=float(raw["editor"]["touch_hit_radius"]),
        ),
        engine=EngineConfig(
            warp_strategy=WarpStrategy(raw["engine"]["warp_strategy"]),
            degenerate_policy=DegeneratePolicy(raw["engine"]["degenerate_policy"]),
            min_side_px=int(raw["engine"]["min_side_px"]),
        ),
    )


def _validate_config(config: RectificationConfig) -> None:
    """
    Validate configuration values for logical consistency.

    Raises:
        ValueError: If any configuration value is invalid.
    """
    if config.estimator.margin_px < 0:
        raise ValueError("margin_px cannot be negative")

    if config.estimator.edge_margin_px < 0:
        raise ValueError("edge_margin_px cannot be negative")

    if config.estimator.edge_threshold < 0:
        raise ValueError("edge_threshold cannot be negative")

    if config.editor.mouse_hit_radius <= 0 or config.editor.touch_hit_radius <= 0:
        raise ValueError("Hit radii must be positive")

    if config.editor.touch_hit_radius < config.editor.mouse_hit_radius:
        logger.warning(
            f"touch_hit_radius ({config.editor.touch_hit_radius}) is smaller than "
            f"mouse_hit_radius ({config.editor.mouse_hit_radius})"
        )

    if config.engine.min_side_px < 0:
        raise ValueError("min_side_px cannot be negative")

    logger.debug("Configuration validation passed")
