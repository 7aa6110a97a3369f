"""
Configuration loader for ktforge.

Handles loading configuration from YAML files.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from ktforge.repair.rules import build_rules

from .models import KtforgeConfig


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


def validate_disabled_rules(names: list[str]) -> list[str]:
    """Check that every disabled rule names an existing rewrite rule."""
    known = {rule.name for rule in build_rules()}
    unknown = [name for name in names if name not in known]
    if unknown:
        raise ConfigurationError(
            f"Unknown rewrite rule(s) {unknown}. Valid rules: {sorted(known)}"
        )
    return names


def load_config_from_yaml(config_path: Path) -> KtforgeConfig:
    """Load configuration from a YAML file."""
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")

    try:
        config = KtforgeConfig(**raw_config)
    except (TypeError, ValidationError) as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}")

    validate_disabled_rules(config.repair.disabled_rules)
    return config


def load_config(config_path: Path | None = None) -> KtforgeConfig:
    """Load ``config_path`` when given, otherwise return the defaults."""
    if config_path is None:
        return KtforgeConfig()
    return load_config_from_yaml(config_path)


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    # search_paths defaults to the installed runtime; keep that resolution dynamic
    default_config = KtforgeConfig().model_dump(
        mode="json", exclude={"runtime": {"search_paths"}}
    )

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
