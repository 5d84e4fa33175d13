"""
Integration test for basic composeport workflow.

Tests the interaction between front-ends, analysis and generation on small
projects.
"""

from pathlib import Path

import pytest

from composeport.analyzer.orchestrator import AnalysisOrchestrator
from composeport.config.loader import create_config_from_args
from composeport.config.models import ComponentShape, SourceFormat
from composeport.ir.source import (
    Block,
    Call,
    Declaration,
    DeclarationKind,
    Lambda,
    LocalProperty,
    NameRef,
    Parameter,
    Raw,
    SourceUnit,
    ValueArgument,
)
from composeport.languages.json_units.plugin import JsonUnitFrontEnd, dump_units
from composeport.languages.registry import FrontEndRegistry
from composeport.translator.orchestrator import ProjectConverter


@pytest.fixture
def example_project():
    """Get path to the example Compose project."""
    return Path(__file__).parent.parent.parent / "examples" / "compose_app"


def text_of(name: str) -> Call:
    return Call(callee="Text", arguments=(ValueArgument(value=NameRef(name=name)),))


@pytest.fixture
def serialized_units():
    """A counter screen using a data class, as front-end independent units."""
    counter = Declaration(
        kind=DeclarationKind.FUNCTION,
        name="CounterScreen",
        annotations=("Composable",),
        parameters=(Parameter(name="settings", type="Settings"),),
        body=Block(
            statements=(
                LocalProperty(
                    name="count",
                    initializer=Raw(text="remember { mutableIntStateOf(settings.start) }"),
                    mutable=True,
                    delegated=True,
                ),
                Call(
                    callee="Column",
                    trailing_lambda=Lambda(
                        body=Block(
                            statements=(
                                text_of("settings.label"),
                                Call(
                                    callee="Button",
                                    arguments=(
                                        ValueArgument(
                                            name="onClick",
                                            value=Lambda(body=Block(statements=(Raw(text="count++"),))),
                                        ),
                                    ),
                                    trailing_lambda=Lambda(body=Block(statements=(text_of("count.toString()"),))),
                                ),
                            )
                        )
                    ),
                ),
            )
        ),
    )
    settings = Declaration(
        kind=DeclarationKind.CLASS,
        name="Settings",
        modifiers=("data",),
        parameters=(
            Parameter(name="label", type="String", is_property=True),
            Parameter(name="start", type="Int", default_text="0", is_property=True),
        ),
    )
    return [
        SourceUnit(path="ui/CounterScreen.kt", package="app.ui", imports=("app.model.Settings",),
                   declarations=(counter,)),
        SourceUnit(path="model/Settings.kt", package="app.model", declarations=(settings,)),
    ]


def test_json_front_end_loads_dumped_units(tmp_path, serialized_units):
    """Test that dumped units load back unchanged."""
    document = tmp_path / "src" / "app.unit.json"
    dump_units(serialized_units, document)

    units = JsonUnitFrontEnd().load_units(tmp_path / "src")

    assert units == serialized_units


def test_json_pipeline_end_to_end(tmp_path, serialized_units):
    """Test analysis and conversion of serialized units written to disk."""
    dump_units(serialized_units, tmp_path / "src" / "app.unit.json")
    config = create_config_from_args(
        source_dir=tmp_path / "src",
        output_dir=tmp_path / "flutter",
        source_format="json",
    )

    report = ProjectConverter(config, quiet=True).run()

    assert report.success
    assert [o.source_path for o in report.outputs] == ["model/Settings.kt", "ui/CounterScreen.kt"]

    screen = (tmp_path / "flutter" / "lib" / "ui" / "counter_screen.dart").read_text()
    assert screen.startswith("import 'package:flutter/material.dart';\nimport '../model/settings.dart';\n")
    assert "class CounterScreen extends StatefulWidget {" in screen
    assert "late int count = settings.start;" in screen
    assert "setState(() {" in screen

    model = (tmp_path / "flutter" / "lib" / "model" / "settings.dart").read_text()
    assert "const Settings({required this.label, this.start = 0});" in model
    assert "Settings copyWith({String? label, int? start})" in model


def test_registry_lists_front_ends():
    assert FrontEndRegistry.list_supported_formats() == ["kotlin", "json"]


# =============================================================================
# Kotlin front-end
# =============================================================================


def test_kotlin_front_end_parses_example_project(example_project):
    """Test that the tree-sitter front-end lowers the example project."""
    pytest.importorskip("tree_sitter_kotlin")
    front_end = FrontEndRegistry.get_front_end(SourceFormat.KOTLIN)

    units = {unit.path: unit for unit in front_end.load_units(example_project)}

    assert set(units) == {
        "data/Todo.kt",
        "data/TodoRepository.kt",
        "ui/TodoRow.kt",
        "ui/TodoScreen.kt",
    }
    assert units["data/Todo.kt"].package == "com.example.todo.data"
    assert [d.name for d in units["data/Todo.kt"].declarations] == ["Todo", "Filter"]
    assert "com.example.todo.data.Todo" in units["ui/TodoRow.kt"].imports
    assert units["ui/TodoScreen.kt"].has_ui
    assert not units["data/TodoRepository.kt"].has_ui


def test_kotlin_example_project_analysis_and_conversion(example_project, tmp_path):
    """Test the full run over the example project."""
    pytest.importorskip("tree_sitter_kotlin")
    config = create_config_from_args(example_project, tmp_path / "flutter", write_files=False)

    analysis = AnalysisOrchestrator(config).run(quiet=True)
    order = analysis.schedule.order
    assert order.index("data/Todo.kt") < order.index("ui/TodoRow.kt") < order.index("ui/TodoScreen.kt")
    assert analysis.schedule.cycles == []

    report = ProjectConverter(config, quiet=True).run()

    outputs = {o.source_path: o for o in report.outputs}
    assert report.success
    assert set(outputs) == set(analysis.units)
    assert outputs["ui/TodoScreen.kt"].components == {"TodoScreen": ComponentShape.STATEFUL}
    assert outputs["ui/TodoRow.kt"].component_shape == ComponentShape.STATELESS
    assert outputs["ui/TodoScreen.kt"].target_path == "ui/todo_screen.dart"
    assert "TodoScreenPreview" not in outputs["ui/TodoScreen.kt"].content
