"""
Configuration for the fraud-detection training sandbox.

Settings come from dataclass defaults, optionally overridden by a YAML file.
The file path can be passed explicitly or through the
``FRAUD_SANDBOX_CONFIG`` environment variable.

Example YAML:

    seed: 42
    dataset_size: 5000
    label_noise_rate: 0.03
    selected_architectures: [shallow, medium]
"""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .classifiers import ARCHITECTURES
from .errors import ConfigurationError

CONFIG_ENV_VAR = "FRAUD_SANDBOX_CONFIG"


@dataclass
class SandboxConfig:
    seed: Optional[int] = None
    dataset_size: int = 5000
    test_fraction: float = 0.2
    fraud_prior: float = 0.02
    label_noise_rate: float = 0.03
    epochs: int = 50
    batch_size: int = 32
    learning_rate: float = 0.001
    selected_architectures: List[str] = field(default_factory=lambda: ["medium"])
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# (min, max, type, inclusive_min)
_RULES: Dict[str, Tuple[float, float, type, bool]] = {
    "dataset_size": (1, 10_000_000, int, True),
    "test_fraction": (0.0, 1.0, float, True),
    "fraud_prior": (0.0, 1.0, float, True),
    "label_noise_rate": (0.0, 1.0, float, True),
    "epochs": (1, 10_000, int, True),
    "batch_size": (1, 1_000_000, int, True),
    "learning_rate": (0.0, 1.0, float, False),
}


def validate_config(config: SandboxConfig) -> SandboxConfig:
    """
    Check value types and ranges, coercing numeric values in place.

    Returns:
        The same config object.

    Raises:
        ConfigurationError: If a value cannot be converted, is out of range,
            or names an unknown architecture.
    """
    for name, (min_val, max_val, type_func, inclusive_min) in _RULES.items():
        raw_value = getattr(config, name)
        try:
            value = type_func(raw_value)
        except (ValueError, TypeError) as e:
            raise ConfigurationError(
                f"Invalid value for '{name}': cannot convert {raw_value!r} "
                f"to {type_func.__name__}: {e}"
            )

        if inclusive_min:
            in_range = min_val <= value <= max_val
            bounds = f"[{min_val}, {max_val}]"
        else:
            in_range = min_val < value <= max_val
            bounds = f"({min_val}, {max_val}]"
        if not in_range:
            raise ConfigurationError(f"'{name}' value {value} out of valid range {bounds}")
        setattr(config, name, value)

    if config.seed is not None:
        try:
            config.seed = int(config.seed)
        except (ValueError, TypeError):
            raise ConfigurationError(f"Invalid seed {config.seed!r}")

    if isinstance(config.selected_architectures, str):
        config.selected_architectures = [config.selected_architectures]
    config.selected_architectures = list(config.selected_architectures)
    if not config.selected_architectures:
        raise ConfigurationError("'selected_architectures' must name at least one architecture")
    unknown = [a for a in config.selected_architectures if a not in ARCHITECTURES]
    if unknown:
        raise ConfigurationError(
            f"Unknown architectures: {', '.join(unknown)} "
            f"(available: {', '.join(ARCHITECTURES)})"
        )

    return config


def load_config(path: Optional[Union[str, Path]] = None) -> SandboxConfig:
    """
    Load configuration from YAML, falling back to defaults.

    Args:
        path: YAML file to read. When None, ``FRAUD_SANDBOX_CONFIG`` is
              consulted; when that is unset too, defaults are returned.

    Returns:
        A validated SandboxConfig.

    Raises:
        ConfigurationError: If the file is not a mapping, contains unknown
            keys, or holds invalid values.
        FileNotFoundError: If the given file does not exist.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return validate_config(SandboxConfig())

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")

    known = {item.name for item in fields(SandboxConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")

    return validate_config(SandboxConfig(**raw))
