"""
Unit tests for the Kotlin -> Dart type mapper.
"""

import pytest

from composeport.knowledge.type_mapper import TypeMapper, parse_type, split_top_level


@pytest.fixture
def mapper():
    return TypeMapper()


@pytest.mark.parametrize(
    "kotlin,dart",
    [
        ("Int", "int"),
        ("String?", "String?"),
        ("Boolean", "bool"),
        ("Dp", "double"),
        ("List<Int>", "List<int>"),
        ("MutableList<String>?", "List<String>?"),
        ("Map<String, List<Int>>", "Map<String, List<int>>"),
        ("IntArray", "List<int>"),
        ("StateFlow<User>", "Stream<User>"),
    ],
)
def test_maps_known_types(mapper, kotlin, dart):
    assert mapper.map(kotlin) == dart


def test_unknown_names_pass_through(mapper):
    assert mapper.map("UserProfile") == "UserProfile"
    assert mapper.map("Result<UserProfile>?") == "Result<UserProfile>?"


@pytest.mark.parametrize(
    "dart",
    ["int", "double", "String?", "List<int>", "Map<String, List<bool>>", "VoidCallback", "Widget"],
)
def test_map_is_idempotent_on_target_form(mapper, dart):
    assert mapper.map(dart) == dart
    assert mapper.map(mapper.map(dart)) == dart


def test_function_types(mapper):
    assert mapper.map("() -> Unit") == "VoidCallback"
    assert mapper.map("(String) -> Unit") == "void Function(String)"
    assert mapper.map("(Int, Boolean) -> String") == "String Function(int, bool)"
    assert mapper.map("(value: String) -> Unit") == "void Function(String)"
    assert mapper.map("(() -> Unit)?") == "VoidCallback?"


def test_composable_function_type_returns_widget(mapper):
    assert mapper.map("@Composable () -> Unit") == "Widget Function()"


def test_overrides_take_precedence():
    mapper = TypeMapper(type_overrides={"Money": "Decimal", "Int": "num"}, widget_overrides={"Button": "FilledButton"})

    assert mapper.map("Money") == "Decimal"
    assert mapper.map("List<Int>") == "List<num>"
    assert mapper.widget_name("Button") == "FilledButton"


def test_widget_and_parameter_names(mapper):
    assert mapper.widget_name("Button") == "ElevatedButton"
    assert mapper.widget_name("Box") == "Stack"
    assert mapper.widget_name("MyCustomCard") == "MyCustomCard"
    assert mapper.parameter_name("onClick") == "onPressed"
    assert mapper.parameter_name("title") == "title"


def test_default_values(mapper):
    assert mapper.default_value("int") == "0"
    assert mapper.default_value("String") == "''"
    assert mapper.default_value("String?") == "null"
    assert mapper.default_value("List<int>") == "const []"


def test_split_top_level_ignores_nested_commas():
    assert split_top_level("String, Map<String, Int>, (A, B) -> C") == ["String", "Map<String, Int>", "(A, B) -> C"]


def test_parse_type_nested_generics():
    descriptor = parse_type("Map<String, List<Int>?>?")

    assert descriptor.base == "Map"
    assert descriptor.nullable
    assert descriptor.generics[1].base == "List"
    assert descriptor.generics[1].nullable
    assert descriptor.render() == "Map<String, List<Int>?>?"
