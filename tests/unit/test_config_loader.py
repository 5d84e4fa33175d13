"""
Unit tests for configuration loading.
"""

from pathlib import Path

import pytest
import yaml

from composeport.config.loader import (
    ConfigurationError,
    create_config_from_args,
    generate_default_config,
    load_config_from_yaml,
)
from composeport.config.models import (
    AIConfig,
    ImageLoading,
    LLMProvider,
    MappingOverrides,
    SourceFormat,
    StateManagement,
)


def test_create_config_from_args():
    """Test building a config from CLI arguments."""
    config = create_config_from_args(
        source_dir=Path("/work/app"),
        output_dir=Path("/work/flutter"),
        source_format="JSON",
        ai_enabled=True,
        max_workers=4,
    )

    assert config.project.name == "app"
    assert config.project.source_format == SourceFormat.JSON
    assert config.project.state_dir == Path("/work/flutter/.composeport")
    assert config.ai.enabled
    assert config.conversion.max_workers == 4
    assert config.conversion.write_files


def test_create_config_keeps_ai_settings_and_overrides():
    """Test that kwargs overrides are applied."""
    config = create_config_from_args(
        source_dir=Path("src"),
        output_dir=Path("out"),
        ai=AIConfig(provider=LLMProvider.OLLAMA, model="codellama"),
        mappings=MappingOverrides(widget_mappings={"Card": "MyCard"}),
    )

    assert config.ai.provider == LLMProvider.OLLAMA
    assert config.ai.model == "codellama"
    assert not config.ai.enabled
    assert config.mappings.widget_mappings == {"Card": "MyCard"}


@pytest.mark.parametrize(
    "kwargs,message",
    [
        ({"source_format": "swift"}, "Invalid source format"),
        ({"max_workers": 0}, "at least 1"),
    ],
)
def test_create_config_rejects_invalid_arguments(kwargs, message):
    with pytest.raises(ConfigurationError, match=message):
        create_config_from_args(source_dir=Path("src"), output_dir=Path("out"), **kwargs)


def test_load_yaml_resolves_relative_paths(tmp_path):
    """Test that relative paths are resolved against the config file."""
    config_file = tmp_path / "composeport.yaml"
    config_file.write_text(
        yaml.dump(
            {
                "project": {"name": "shop", "source_root": "app", "output_dir": "out"},
                "options": {"state_management": "bloc", "image_loading": "network"},
            }
        )
    )

    config = load_config_from_yaml(config_file)

    assert config.project.source_root == tmp_path / "app"
    assert config.project.output_dir == tmp_path / "out"
    assert config.project.state_dir == tmp_path / "out" / ".composeport"
    assert config.options.state_management == StateManagement.BLOC
    assert config.options.image_loading == ImageLoading.NETWORK


@pytest.mark.parametrize(
    "content,message",
    [
        ("", "empty"),
        ("- just\n- a list\n", "mapping"),
        ("project: [unclosed\n", "Invalid YAML"),
        ("ai:\n  temperature: 5\n", "validation failed"),
    ],
)
def test_load_yaml_errors(tmp_path, content, message):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text(content)

    with pytest.raises(ConfigurationError, match=message):
        load_config_from_yaml(config_file)


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config_from_yaml(tmp_path / "missing.yaml")


def test_default_config_round_trips_through_loader(tmp_path):
    """Test that the generated default config is loadable."""
    config_file = tmp_path / "nested" / "composeport.yaml"

    generate_default_config(config_file)
    config = load_config_from_yaml(config_file)

    assert config.project.name == "my_app"
    assert config.ai.complexity_threshold == 20
    assert config.conversion.max_workers == 4
