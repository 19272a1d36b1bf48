"""Configuration loader for training settings."""
import copy
import json
from pathlib import Path
from typing import Optional, Dict, Any

DEFAULTS: Dict[str, Any] = {
    "shape": [1, 1],
    "weight_range": [-5, 5],
    "algorithm": "hill_climb",
    "learning_rate": 0.001,
    "loss_target": 0.1,
    "max_change_amount": 0.05,
    "change_chance": 1.0,
    "max_iterations": 100000,
    "max_seconds": None,
    "seed": None,
    "report_every": 1000,
    "quiet": False,
    # target = 5 * x + 5
    "examples": [[3], [4], [5], [6]],
    "targets": [[20], [25], [30], [35]],
}

ALGORITHMS = ("hill_climb", "error_distribution")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load training configuration from a JSON file.

    Args:
        config_path: Path to the config file. If None, looks for training_config.json
                    in the project root directory.

    Returns:
        Dictionary containing configuration values with defaults applied.
    """
    if config_path is None:
        # This file is in src/training/, so the project root is 2 levels up
        project_root = Path(__file__).parent.parent.parent
        config_path = project_root / "training_config.json"
    else:
        config_path = Path(config_path)

    defaults = copy.deepcopy(DEFAULTS)

    if not config_path.exists():
        return defaults

    try:
        with open(config_path, "r") as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Warning: Could not load config file {config_path}: {e}")
        print("Using default values.")
        return defaults

    if not isinstance(config_data, dict):
        print(f"Warning: Config file {config_path} must contain a JSON object.")
        print("Using default values.")
        return defaults

    # Config file values override defaults; unknown keys are ignored
    result = defaults
    for key, value in config_data.items():
        if key in result:
            result[key] = value

    return result


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> None:
    """
    Check the scalar settings have usable types before anything is built from them.

    Raises:
        ValueError: Naming the first setting with a wrong type or value.
    """
    for key in ("learning_rate", "loss_target", "max_change_amount", "change_chance"):
        if not _is_number(config[key]):
            raise ValueError(f"{key} must be a number, got {config[key]!r}")
    if not 0.0 <= config["change_chance"] <= 1.0:
        raise ValueError(f"change_chance must be between 0 and 1, got {config['change_chance']}")
    if config["max_change_amount"] < 0:
        raise ValueError(f"max_change_amount must be non-negative, got {config['max_change_amount']}")
    if config["max_seconds"] is not None and not _is_number(config["max_seconds"]):
        raise ValueError(f"max_seconds must be a number or null, got {config['max_seconds']!r}")
    for key in ("max_iterations", "seed"):
        if config[key] is not None and not _is_int(config[key]):
            raise ValueError(f"{key} must be an integer or null, got {config[key]!r}")
    if not _is_int(config["report_every"]):
        raise ValueError(f"report_every must be an integer, got {config['report_every']!r}")
