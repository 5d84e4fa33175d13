"""
Unit tests for state persistence system.
"""

import tempfile
from pathlib import Path

import pytest

from composeport.config.loader import create_config_from_args
from composeport.config.models import (
    AnalysisResult,
    ComponentShape,
    ConversionIssue,
    ConversionStats,
    DependencyEdge,
    ProjectReport,
    ScheduleResult,
    Severity,
    UnitOutput,
)
from composeport.state.persistence import ConversionState


@pytest.fixture
def temp_state_dir():
    """Create a temporary directory for state files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_state_dir):
    """Create a sample configuration writing state under a temp dir."""
    config = create_config_from_args(
        source_dir=Path("./app"),
        output_dir=temp_state_dir / "out",
        project_name="shop",
    )
    config.project.state_dir = temp_state_dir / "state"
    return config


@pytest.fixture
def sample_report():
    """Create a report with one output, one cycle and one warning."""
    return ProjectReport(
        success=True,
        outputs=[
            UnitOutput(
                source_path="ui/Home.kt",
                target_file_name="home.dart",
                target_path="ui/home.dart",
                component_shape=ComponentShape.STATEFUL,
            )
        ],
        warnings=[
            ConversionIssue(
                code="UNKNOWN_WIDGET",
                message="Unknown widget 'Shimmer' rendered generically",
                unit_path="ui/Home.kt",
                severity=Severity.WARNING,
            )
        ],
        cycles=[["a.kt", "b.kt", "a.kt"]],
        stats=ConversionStats(total_units=1, converted_units=1, source_lines=40, generated_lines=55),
    )


def test_create_conversion_state(sample_config):
    """Test creating a new conversion state."""
    state = ConversionState(sample_config)

    assert state.run_id.startswith("run_")
    assert state.analysis_result is None
    assert state.report is None


def test_save_and_load_state(sample_config, sample_report):
    """Test saving and loading state."""
    state = ConversionState(sample_config, run_id="run_1")
    state.set_analysis_result(
        AnalysisResult(
            units=["a.kt", "b.kt"],
            edges=[DependencyEdge(from_unit="a.kt", to_unit="b.kt")],
            schedule=ScheduleResult(order=["b.kt", "a.kt"]),
        )
    )
    state.set_report(sample_report)

    state_file = state.save()

    assert state_file.name == "run_1.json"
    assert (sample_config.project.state_dir / "latest.json").exists()

    loaded = ConversionState.load(state_file)
    assert loaded.run_id == "run_1"
    assert loaded.config.project.name == "shop"
    assert loaded.analysis_result.schedule.order == ["b.kt", "a.kt"]
    assert loaded.analysis_result.edges[0].to_unit == "b.kt"
    assert loaded.report.outputs[0].component_shape == ComponentShape.STATEFUL


def test_load_latest(sample_config):
    """Test that load_latest returns the most recently saved run."""
    ConversionState(sample_config, run_id="run_1").save()
    ConversionState(sample_config, run_id="run_2").save()

    latest = ConversionState.load_latest(sample_config.project.state_dir)

    assert latest.run_id == "run_2"


def test_load_latest_without_state_fails(temp_state_dir):
    """Test that an empty state directory raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        ConversionState.load_latest(temp_state_dir)


def test_export_report(sample_config, sample_report, temp_state_dir):
    """Test exporting a Markdown report."""
    state = ConversionState(sample_config)
    state.set_report(sample_report)
    report_path = temp_state_dir / "reports" / "report.md"

    state.export_report(report_path)

    content = report_path.read_text()
    assert content.startswith("# Conversion Report: shop")
    assert "- Units: 1/1 converted, 0 failed" in content
    assert "- `ui/Home.kt` -> `ui/home.dart` (stateful, rule_based)" in content
    assert "- a.kt -> b.kt -> a.kt" in content
    assert "- [UNKNOWN_WIDGET] ui/Home.kt: Unknown widget 'Shimmer' rendered generically" in content
    assert "## Errors" not in content


def test_export_report_requires_report(sample_config, temp_state_dir):
    """Test that exporting before a report is set fails."""
    with pytest.raises(ValueError):
        ConversionState(sample_config).export_report(temp_state_dir / "report.md")
