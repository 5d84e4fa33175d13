"""
Configuration loader for composeport.

Handles loading configuration from YAML files and CLI arguments.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import (
    AIConfig,
    ConversionConfig,
    PorterConfig,
    ProjectConfig,
    SourceFormat,
)


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    pass


def load_config_from_yaml(config_path: Path) -> PorterConfig:
    """Load configuration from a YAML file."""
    if not config_path.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        try:
            raw_config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if raw_config is None:
        raise ConfigurationError("Configuration file is empty")
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration file must contain a mapping at the top level")

    try:
        config = PorterConfig(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed:\n{e}")

    # Relative paths in the file are relative to the file itself
    base = config_path.parent
    project = config.project
    if not project.source_root.is_absolute():
        project.source_root = base / project.source_root
    if not project.output_dir.is_absolute():
        project.output_dir = base / project.output_dir
    if not project.state_dir.is_absolute():
        project.state_dir = project.output_dir / project.state_dir

    return config


def create_config_from_args(
    source_dir: Path,
    output_dir: Path,
    source_format: str = "kotlin",
    project_name: str | None = None,
    ai_enabled: bool = False,
    max_workers: int = 1,
    write_files: bool = True,
    **kwargs: Any,
) -> PorterConfig:
    """Create configuration from CLI arguments."""
    try:
        fmt = SourceFormat(source_format.lower())
    except ValueError:
        valid = [f.value for f in SourceFormat]
        raise ConfigurationError(f"Invalid source format '{source_format}'. Valid formats: {valid}")

    if max_workers < 1:
        raise ConfigurationError("--workers must be at least 1")

    project_config = ProjectConfig(
        name=project_name or source_dir.name or "composeport_project",
        source_root=source_dir,
        output_dir=output_dir,
        state_dir=output_dir / ".composeport",
        source_format=fmt,
    )

    ai_config = kwargs.get("ai") or AIConfig()
    ai_config = ai_config.model_copy(update={"enabled": ai_enabled})

    # Build full config with optional overrides from kwargs
    config_dict: dict[str, Any] = {
        "project": project_config,
        "ai": ai_config,
        "conversion": ConversionConfig(max_workers=max_workers, write_files=write_files),
    }

    if "options" in kwargs:
        config_dict["options"] = kwargs["options"]
    if "mappings" in kwargs:
        config_dict["mappings"] = kwargs["mappings"]

    return PorterConfig(**config_dict)


def generate_default_config(output_path: Path) -> None:
    """Generate a default configuration file."""
    default_config = {
        "project": {
            "name": "my_app",
            "source_root": "./app/src/main/java",
            "output_dir": "./flutter_app",
            "state_dir": ".composeport",
            "source_format": "kotlin",
            "exclude_patterns": ["/build/", "/test/", "/androidTest/"],
        },
        "options": {
            "state_management": "riverpod",
            "navigation": "go_router",
            "networking": "dio",
            "image_loading": "cached_network_image",
        },
        "mappings": {
            "widget_mappings": {},
            "type_mappings": {},
        },
        "ai": {
            "enabled": False,
            "provider": "openrouter",
            "model": "openai/gpt-4o-mini",
            "temperature": 0.2,
            "timeout": 300,
            "complexity_threshold": 20,
        },
        "conversion": {
            "max_workers": 4,
            "write_files": True,
        },
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)
