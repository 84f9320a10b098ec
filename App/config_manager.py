"""Configuration persistence manager for the coloring page maker.

This module handles loading and saving of the user configuration to/from JSON files.
"""

import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional, Tuple

from models import CONFIG_FILE, ColoringConfig


class ConfigManager:
    """Handles loading and saving of user configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.coloring_page_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> ColoringConfig:
        """Load configuration from file, returning defaults if not found.

        Returns:
            ColoringConfig with loaded or default values
        """
        config = ColoringConfig()

        try:
            if self.config_path.exists():
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                if not isinstance(data, dict):
                    raise ValueError("expected a JSON object")
                # Update config with loaded values (fallback to defaults)
                for field in fields(config):
                    if field.name not in data:
                        continue
                    default = getattr(config, field.name)
                    try:
                        value = _coerce_value(default, field.name, data[field.name])
                    except ValueError as e:
                        print(f"Warning: {e}; using default {default!r}")
                        continue
                    setattr(config, field.name, value)
                print(f"✓ Loaded configuration from {self.config_path}")
        except Exception as e:
            print(f"Warning: Could not load config file: {e}")
            return ColoringConfig()

        return config

    def save(self, config: ColoringConfig) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Args:
            config: ColoringConfig to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w") as f:
                json.dump(asdict(config), f, indent=2)
            return True, None
        except Exception as e:
            return False, str(e)


def set_config_value(config: ColoringConfig, key: str, raw_value: str) -> ColoringConfig:
    """Set one config field from its command-line string form.

    Args:
        config: Configuration to update in place
        key: Field name (e.g. "dpi", "edge_threshold")
        raw_value: String value; lists are comma separated

    Returns:
        The updated config

    Raises:
        KeyError: If the key is not a config field
        ValueError: If the value cannot be converted to the field's type
    """
    known = {field.name for field in fields(config)}
    if key not in known:
        raise KeyError(f"Unknown config key: {key} (known: {', '.join(sorted(known))})")

    setattr(config, key, _coerce_value(getattr(config, key), key, raw_value))
    return config


def _coerce_value(current, key: str, value):
    """Convert a string or JSON value to the type of the field's current value.

    Raises:
        ValueError: If the value cannot be converted
    """
    if isinstance(current, bool):
        if isinstance(value, bool):
            return value
        lowered = str(value).strip().lower()
        if lowered not in ("true", "false", "1", "0", "yes", "no"):
            raise ValueError(f"Expected a boolean for {key}, got {value!r}")
        return lowered in ("true", "1", "yes")

    # bool is an int subclass
    if isinstance(value, bool):
        raise ValueError(f"Unexpected boolean for {key}: {value!r}")

    if isinstance(current, int):
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"Expected a whole number for {key}, got {value!r}")
        if isinstance(value, (int, float)):
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise ValueError(f"Expected a whole number for {key}, got {value!r}") from None
    elif isinstance(current, float):
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                raise ValueError(f"Expected a number for {key}, got {value!r}") from None
    elif isinstance(current, list):
        if isinstance(value, list):
            return [str(item) for item in value]
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
    elif isinstance(value, str):
        return value

    raise ValueError(f"Unexpected {type(value).__name__} for {key}: {value!r}")
