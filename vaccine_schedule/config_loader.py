"""Configuration loading utilities for the immunization schedule engine.

Provides a centralized way to load and validate the parameters.yaml
configuration file.
"""

from __future__ import annotations

import logging
import numbers
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

SCRIPT_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = SCRIPT_DIR.parent / "config" / "parameters.yaml"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load and parse the parameters.yaml configuration file.

    Automatically validates the configuration after loading.

    Parameters
    ----------
    config_path : Path, optional
        Path to the configuration file. If not provided, uses the default
        location (config/parameters.yaml in the project root).

    Returns
    -------
    Dict[str, Any]
        Parsed and validated YAML configuration as a nested dictionary.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    yaml.YAMLError
        If the configuration file is invalid YAML.
    ValueError
        If the configuration fails validation (see validate_config).
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    validate_config(config)
    return config


def validate_config(config: Dict[str, Any]) -> None:
    """Validate the configuration for consistency and required values.

    Parameters
    ----------
    config : Dict[str, Any]
        Configuration dictionary (result of load_config).

    Raises
    ------
    ValueError
        If a configured value is missing or invalid.

    Notes
    -----
    **Validation checks:**

    - **Language:** language must be a supported code (en, es)
    - **Reconciliation:** tolerance_months must be a non-negative number
    - **Registration:** name_match_threshold must be an integer in 0..100
    - **Logging:** level must be a standard logging level name
    """
    if not isinstance(config, dict):
        raise ValueError(
            f"Configuration must be a mapping, got {type(config).__name__}"
        )

    from .enums import Language

    try:
        Language.from_string(config.get("language"))
    except (ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid language: {exc}") from exc

    reconciliation_config = config.get("reconciliation", {}) or {}
    tolerance = reconciliation_config.get("tolerance_months", 1)
    if not isinstance(tolerance, numbers.Real) or isinstance(tolerance, bool):
        raise ValueError(
            f"reconciliation.tolerance_months must be a number, got {type(tolerance).__name__}"
        )
    if tolerance < 0:
        raise ValueError(
            f"reconciliation.tolerance_months must be non-negative, got {tolerance}"
        )

    registration_config = config.get("registration", {}) or {}
    threshold = registration_config.get("name_match_threshold", 80)
    if not isinstance(threshold, int) or isinstance(threshold, bool):
        raise ValueError(
            f"registration.name_match_threshold must be an integer, got {type(threshold).__name__}"
        )
    if not 0 <= threshold <= 100:
        raise ValueError(
            f"registration.name_match_threshold must be between 0 and 100, got {threshold}"
        )

    logging_config = config.get("logging", {}) or {}
    level = logging_config.get("level", "INFO")
    if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
        raise ValueError(
            f"logging.level must be one of {sorted(_LOG_LEVELS)}, got {level!r}"
        )


def log_level(config: Dict[str, Any]) -> int:
    """Resolve the configured logging level to its numeric value."""
    level = (config.get("logging", {}) or {}).get("level", "INFO")
    return getattr(logging, level.upper())
