"""
Unit tests for the unit-level code generator.
"""

import pytest

from composeport.config.models import ComponentShape, Severity
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
from composeport.knowledge.mappings import ASYNC_IMPORT, MATERIAL_IMPORT
from composeport.translator.code_generator import (
    UNMAPPED_TYPE,
    CodeGenerator,
    component_signatures,
    is_component,
    is_preview,
    relative_import,
    target_path_for,
)


@pytest.fixture
def generator():
    return CodeGenerator()


def composable(name: str, *statements, parameters=(), annotations=("Composable",)) -> Declaration:
    return Declaration(
        kind=DeclarationKind.FUNCTION,
        name=name,
        annotations=annotations,
        parameters=tuple(parameters),
        body=Block(statements=statements),
    )


def text_of(name: str) -> Call:
    return Call(callee="Text", arguments=(ValueArgument(value=NameRef(name=name)),))


def greeting() -> Declaration:
    return composable(
        "Greeting",
        text_of("name"),
        parameters=(
            Parameter(name="name", type="String"),
            Parameter(name="modifier", type="Modifier", default_text="Modifier"),
        ),
    )


def counter() -> Declaration:
    increment = Lambda(body=Block(statements=(Raw(text="count++"),)))
    return composable(
        "Counter",
        LocalProperty(
            name="count",
            initializer=Raw(text="remember { mutableStateOf(0) }"),
            mutable=True,
            delegated=True,
        ),
        Call(
            callee="Button",
            arguments=(ValueArgument(name="onClick", value=increment),),
            trailing_lambda=Lambda(body=Block(statements=(text_of("label"),))),
        ),
        parameters=(Parameter(name="label", type="String"),),
    )


# =============================================================================
# Paths and signatures
# =============================================================================


def test_target_path_for():
    assert target_path_for("ui/HomeScreen.kt") == "ui/home_screen.dart"
    assert target_path_for("Main.kt") == "main.dart"
    assert target_path_for("state/UIState.kt") == "state/ui_state.dart"


def test_relative_import():
    assert relative_import("ui/home_screen.dart", "data/user.dart") == "../data/user.dart"
    assert relative_import("main.dart", "ui/home.dart") == "ui/home.dart"


def test_component_detection():
    value_composable = Declaration(
        kind=DeclarationKind.FUNCTION, name="rememberCart", annotations=("Composable",), type="Cart"
    )
    preview = composable("GreetingPreview", annotations=("Preview", "Composable"))

    assert is_component(greeting())
    assert not is_component(value_composable)
    assert is_preview(preview)
    assert not is_preview(greeting())


def test_component_signatures_skip_modifier():
    unit = SourceUnit(path="ui/Greeting.kt", declarations=(greeting(),))

    assert component_signatures([unit]) == {"Greeting": ("name",)}


# =============================================================================
# Components
# =============================================================================


def test_stateless_component(generator):
    unit = SourceUnit(path="ui/Greeting.kt", declarations=(greeting(),))

    output = generator.generate(unit)

    assert output.content == (
        "class Greeting extends StatelessWidget {\n"
        "  const Greeting({super.key, required this.name});\n"
        "\n"
        "  final String name;\n"
        "\n"
        "  @override\n"
        "  Widget build(BuildContext context) {\n"
        "    return Text(name);\n"
        "  }\n"
        "}\n"
    )
    assert output.component_shape == ComponentShape.STATELESS
    assert output.target_path == "ui/greeting.dart"
    assert output.target_file_name == "greeting.dart"


def test_state_capture_makes_component_stateful(generator):
    unit = SourceUnit(path="ui/Counter.kt", declarations=(counter(),))

    output = generator.generate(unit)
    content = output.content

    assert output.component_shape == ComponentShape.STATEFUL
    assert output.components == {"Counter": ComponentShape.STATEFUL}
    assert "class Counter extends StatefulWidget {" in content
    assert "const Counter({super.key, required this.label});" in content
    assert "State<Counter> createState() => _CounterState();" in content
    assert "class _CounterState extends State<Counter> {" in content
    assert "String get label => widget.label;" in content
    assert "int count = 0;" in content
    assert "setState(() {" in content
    assert "count++;" in content
    assert "child: Text(label)" in content


def test_stream_state_subscribes_and_imports_dart_async(generator):
    dashboard = composable(
        "Dashboard",
        LocalProperty(
            name="ui",
            initializer=Raw(text="viewModel.uiState.collectAsState(initial = UiState())"),
            delegated=True,
        ),
        text_of("ui.title"),
        parameters=(Parameter(name="viewModel", type="DashboardViewModel"),),
    )
    unit = SourceUnit(path="Dashboard.kt", declarations=(dashboard,))

    output = generator.generate(unit, dependencies=[])
    content = output.content

    assert "StreamSubscription? _uiSubscription;" in content
    assert "late dynamic ui = UiState();" in content
    assert "_uiSubscription = viewModel.uiState.listen((value) {" in content
    assert "setState(() => ui = value);" in content
    assert "_uiSubscription?.cancel();" in content
    assert output.imports[0] == ASYNC_IMPORT
    assert MATERIAL_IMPORT in output.imports


def test_saved_collection_state_becomes_collection_field(generator):
    """Test that saved list and map cells render as collection fields."""
    tags = composable(
        "Tags",
        LocalProperty(
            name="tags",
            initializer=Raw(text="rememberSaveable { mutableStateListOf<String>() }"),
            delegated=True,
        ),
        LocalProperty(
            name="counts",
            initializer=Raw(text="rememberSaveable { mutableStateMapOf<String, Int>() }"),
            delegated=True,
        ),
        text_of("tags.size.toString()"),
    )

    content = generator.generate(SourceUnit(path="ui/Tags.kt", declarations=(tags,))).content

    assert "List<String> tags = [];" in content
    assert "Map<String, int> counts = {};" in content
    assert "String tags" not in content


def test_component_fields_for_defaults_slots_and_callbacks(generator):
    banner = composable(
        "Banner",
        text_of("title"),
        parameters=(
            Parameter(name="title", type="String", default_text="defaultTitle()"),
            Parameter(name="content", type="@Composable () -> Unit"),
            Parameter(name="onClose", type="() -> Unit", default_text="{}"),
            Parameter(name="elevation", type="Dp", default_text="4.dp"),
        ),
    )

    rendered = generator.render_component(banner).text

    assert "final String title;" in rendered
    assert "final Widget content;" in rendered
    assert "final VoidCallback onClose;" in rendered
    assert "final double elevation;" in rendered
    assert (
        "Banner({super.key, String? title, required this.content, VoidCallback? onClose, this.elevation = 4})"
        " : title = title ?? defaultTitle(), onClose = onClose ?? (() {});"
    ) in rendered


def test_preview_composables_are_skipped(generator):
    preview = composable("GreetingPreview", Call(callee="Greeting"), annotations=("Preview", "Composable"))
    unit = SourceUnit(path="ui/Greeting.kt", declarations=(greeting(), preview))

    output = generator.generate(unit)

    assert "GreetingPreview" not in output.content
    assert list(output.components) == ["Greeting"]


# =============================================================================
# Units
# =============================================================================


def test_imports_for_dependencies(generator):
    unit = SourceUnit(path="ui/HomeScreen.kt", declarations=(greeting(),))

    output = generator.generate(unit, dependencies=["data/User.kt", "ui/HomeScreen.kt", "data/User.kt"])

    assert output.imports == [MATERIAL_IMPORT, "../data/user.dart"]
    assert output.render().startswith(
        "import 'package:flutter/material.dart';\nimport '../data/user.dart';\n\nclass Greeting"
    )


def test_unmapped_types_are_warned_once():
    wallet = Declaration(
        kind=DeclarationKind.CLASS,
        name="Wallet",
        parameters=(
            Parameter(name="balance", type="Money", is_property=True),
            Parameter(name="limit", type="Money?", is_property=True),
            Parameter(name="owner", type="User", is_property=True),
        ),
    )
    unit = SourceUnit(path="Wallet.kt", declarations=(wallet,))

    output = CodeGenerator(project_symbols={"User"}).generate(unit)

    assert [(w.code, w.message) for w in output.warnings] == [(UNMAPPED_TYPE, "Type 'Money' has no Dart mapping")]
    assert output.warnings[0].severity == Severity.WARNING
    assert output.warnings[0].unit_path == "Wallet.kt"
    assert output.component_shape == ComponentShape.NONE


def test_non_ui_declarations_go_through_declaration_renderer(generator):
    status = Declaration(
        kind=DeclarationKind.CLASS, name="Status", modifiers=("enum",), enum_entries=("IDLE", "DONE")
    )
    unit = SourceUnit(path="Status.kt", declarations=(status,))

    output = generator.generate(unit)

    assert output.content == "enum Status {\n  IDLE, DONE\n}\n"
    assert output.generated_lines == len(output.render().splitlines())
