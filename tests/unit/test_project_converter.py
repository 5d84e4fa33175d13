"""
Unit tests for the project conversion orchestrator.
"""

from unittest.mock import MagicMock

import pytest

from composeport.config.loader import create_config_from_args
from composeport.config.models import ComponentShape, GenerationMethod, Severity
from composeport.ir.source import (
    Block,
    Call,
    Declaration,
    DeclarationKind,
    NameRef,
    Parameter,
    SourceUnit,
    ValueArgument,
)
from composeport.translator.code_generator import CodeGenerator
from composeport.translator.llm_client import AIConversionError, BaseLLMClient
from composeport.translator.orchestrator import AI_FALLBACK, CONVERSION_ERROR, ProjectConverter


def make_config(tmp_path, ai_enabled=False, write_files=False, max_workers=1):
    return create_config_from_args(
        source_dir=tmp_path / "src",
        output_dir=tmp_path / "out",
        source_format="json",
        ai_enabled=ai_enabled,
        max_workers=max_workers,
        write_files=write_files,
    )


@pytest.fixture
def units():
    """A screen that depends on a data class, plus an unrelated helper."""
    home = Declaration(
        kind=DeclarationKind.FUNCTION,
        name="Home",
        annotations=("Composable",),
        parameters=(Parameter(name="user", type="User"),),
        body=Block(statements=(Call(callee="Text", arguments=(ValueArgument(value=NameRef(name="user.name")),)),)),
    )
    user = Declaration(
        kind=DeclarationKind.CLASS,
        name="User",
        modifiers=("data",),
        parameters=(Parameter(name="name", type="String", is_property=True),),
    )
    helper = Declaration(kind=DeclarationKind.FUNCTION, name="greet", type="String", body_text='= "hi"')
    return [
        SourceUnit(path="ui/Home.kt", package="app.ui", imports=("app.data.User",), declarations=(home,),
                   text="@Composable\nfun Home(user: User) {\n    Text(user.name)\n}\n"),
        SourceUnit(path="data/User.kt", package="app.data", declarations=(user,),
                   text="data class User(val name: String)\n"),
        SourceUnit(path="util/Greet.kt", package="app.util", declarations=(helper,), text='fun greet() = "hi"\n'),
    ]


def outputs_by_path(report):
    return {output.source_path: output for output in report.outputs}


def test_run_converts_every_unit(tmp_path, units):
    """Test a clean run over a small project."""
    report = ProjectConverter(make_config(tmp_path), quiet=True).run(units)

    outputs = outputs_by_path(report)
    assert report.success
    assert set(outputs) == {"ui/Home.kt", "data/User.kt", "util/Greet.kt"}
    assert outputs["ui/Home.kt"].component_shape == ComponentShape.STATELESS
    assert "../data/user.dart" in outputs["ui/Home.kt"].imports
    assert report.stats.converted_units == 3
    assert report.stats.failed_units == 0
    assert report.stats.source_lines == 6
    assert not (tmp_path / "out").exists()


def test_failing_unit_does_not_stop_the_others(tmp_path, units, monkeypatch):
    """Test that a unit raising during generation is isolated."""
    original = CodeGenerator.generate

    def flaky(self, unit, dependencies=()):
        if unit.path == "data/User.kt":
            raise ValueError("cannot render")
        return original(self, unit, dependencies)

    monkeypatch.setattr(CodeGenerator, "generate", flaky)

    report = ProjectConverter(make_config(tmp_path, max_workers=2), quiet=True).run(units)

    assert not report.success
    assert set(outputs_by_path(report)) == {"ui/Home.kt", "util/Greet.kt"}
    assert len(report.errors) == 1
    error = report.errors[0]
    assert error.code == CONVERSION_ERROR
    assert error.unit_path == "data/User.kt"
    assert error.message == "ValueError: cannot render"
    assert error.severity == Severity.ERROR
    assert report.stats.failed_units == 1


def test_ai_assisted_output_replaces_flagged_units(tmp_path, units):
    """Test that UI units are handed to the AI client when enabled."""
    client = MagicMock(spec=BaseLLMClient)
    client.convert_unit.return_value = "class Home extends StatelessWidget {}"

    report = ProjectConverter(make_config(tmp_path, ai_enabled=True), llm_client=client, quiet=True).run(units)

    home = outputs_by_path(report)["ui/Home.kt"]
    assert home.method == GenerationMethod.AI_ASSISTED
    assert home.render() == "class Home extends StatelessWidget {}\n"
    assert report.stats.ai_assisted_lines == 1
    client.convert_unit.assert_called_once()
    assert client.convert_unit.call_args.args[0] == units[0].text
    assert outputs_by_path(report)["data/User.kt"].method == GenerationMethod.RULE_BASED


def test_ai_failure_keeps_rule_based_output(tmp_path, units):
    """Test that a failing AI call leaves a warning, not an error."""
    client = MagicMock(spec=BaseLLMClient)
    client.convert_unit.side_effect = AIConversionError("timed out")

    report = ProjectConverter(make_config(tmp_path, ai_enabled=True), llm_client=client, quiet=True).run(units)

    home = outputs_by_path(report)["ui/Home.kt"]
    assert report.success
    assert home.method == GenerationMethod.RULE_BASED
    assert "class Home extends StatelessWidget" in home.content
    fallback = [w for w in report.warnings if w.code == AI_FALLBACK]
    assert [w.message for w in fallback] == ["timed out; kept rule-based output"]


def test_ai_disabled_never_calls_client(tmp_path, units):
    client = MagicMock(spec=BaseLLMClient)

    ProjectConverter(make_config(tmp_path), llm_client=client, quiet=True).run(units)

    client.convert_unit.assert_not_called()


def test_write_files(tmp_path, units):
    """Test that generated files, state and report are written."""
    config = make_config(tmp_path, write_files=True)

    report = ProjectConverter(config, quiet=True).run(units)

    home_file = tmp_path / "out" / "lib" / "ui" / "home.dart"
    assert home_file.exists()
    assert home_file.read_text() == outputs_by_path(report)["ui/Home.kt"].render()
    assert (tmp_path / "out" / "lib" / "data" / "user.dart").exists()
    assert (config.project.state_dir / "latest.json").exists()
    assert (config.project.state_dir / "report.md").read_text().startswith("# Conversion Report: src")
