"""
Unit tests for non-UI declaration rendering.
"""

import pytest

from composeport.ir.source import Declaration, DeclarationKind, Parameter
from composeport.translator.declaration_renderer import (
    DeclarationRenderer,
    const_default,
    is_const_value,
    super_clause,
)


@pytest.fixture
def renderer():
    return DeclarationRenderer()


def prop(name: str, type_text: str, **kwargs) -> Parameter:
    return Parameter(name=name, type=type_text, is_property=True, **kwargs)


def test_data_class_gets_value_semantics(renderer):
    user = Declaration(
        kind=DeclarationKind.CLASS,
        name="User",
        modifiers=("data",),
        parameters=(prop("id", "Int"), prop("name", "String"), prop("email", "String?", default_text="null")),
    )

    rendered = renderer.render(user)

    assert rendered.startswith("class User {\n  final int id;\n  final String name;\n  final String? email;")
    assert "const User({required this.id, required this.name, this.email = null});" in rendered
    assert "User copyWith({int? id, String? name, String? email}) {" in rendered
    assert "id: id ?? this.id," in rendered
    assert "other is User && other.id == id && other.name == name && other.email == email;" in rendered
    assert "int get hashCode => Object.hashAll([id, name, email]);" in rendered
    assert "String toString() => 'User(id: $id, name: $name, email: $email)';" in rendered


def test_non_const_default_moves_to_initializer_list(renderer):
    cart = Declaration(
        kind=DeclarationKind.CLASS,
        name="Cart",
        parameters=(prop("created", "Long", default_text="System.currentTimeMillis()"),),
    )

    rendered = renderer.render(cart)

    assert "final int created;" in rendered
    assert "Cart({int? created}) : created = created ?? System.currentTimeMillis();" in rendered
    assert "const Cart" not in rendered


def test_enums(renderer):
    plain = Declaration(
        kind=DeclarationKind.CLASS,
        name="Status",
        modifiers=("enum",),
        enum_entries=("IDLE", "LOADING", "DONE"),
    )
    weighted = Declaration(
        kind=DeclarationKind.CLASS,
        name="Level",
        modifiers=("enum",),
        parameters=(prop("weight", "Int"),),
        enum_entries=("LOW(1)", "HIGH(3)"),
    )

    assert renderer.render(plain) == "enum Status {\n  IDLE, LOADING, DONE\n}"
    assert renderer.render(weighted) == (
        "enum Level {\n  LOW(1), HIGH(3);\n\n  final int weight;\n\n  const Level(this.weight);\n}"
    )


def test_interface_becomes_abstract_class(renderer):
    repository = Declaration(
        kind=DeclarationKind.INTERFACE,
        name="Repository",
        members=(
            Declaration(
                kind=DeclarationKind.FUNCTION,
                name="load",
                modifiers=("suspend",),
                type="List<User>",
                parameters=(Parameter(name="id", type="Int"),),
            ),
            Declaration(kind=DeclarationKind.PROPERTY, name="name", type="String"),
        ),
    )

    assert renderer.render(repository) == (
        "abstract class Repository {\n  Future<List<User>> load(int id);\n  String get name;\n}"
    )


def test_object_members_become_static(renderer):
    config = Declaration(
        kind=DeclarationKind.OBJECT,
        name="Config",
        members=(
            Declaration(
                kind=DeclarationKind.PROPERTY,
                name="baseUrl",
                modifiers=("const",),
                initializer='"https://api.example.com"',
            ),
            Declaration(
                kind=DeclarationKind.FUNCTION,
                name="url",
                type="String",
                parameters=(Parameter(name="path", type="String"),),
                body_text="= baseUrl + path",
            ),
        ),
    )

    rendered = renderer.render(config)

    assert rendered == (
        "class Config {\n"
        "  Config._();\n"
        "  static final Config instance = Config._();\n"
        "\n"
        '  static const baseUrl = "https://api.example.com";\n'
        "  static String url(String path) => baseUrl + path;\n"
        "}"
    )


def test_suspend_function_returns_future(renderer):
    fetch = Declaration(
        kind=DeclarationKind.FUNCTION,
        name="fetchUser",
        modifiers=("suspend",),
        type="User",
        parameters=(Parameter(name="id", type="Int"),),
        body_text="{\n    val user = api.get(id)\n    return user\n}",
    )

    assert renderer.render(fetch) == (
        "Future<User> fetchUser(int id) async {\n  final user = api.get(id);\n  return user;\n}"
    )


def test_nested_classes_are_lifted(renderer):
    outer = Declaration(
        kind=DeclarationKind.CLASS,
        name="Screen",
        members=(Declaration(kind=DeclarationKind.CLASS, name="Header"),),
    )

    assert renderer.render_class(outer) == ["class Screen {}", "class Header {}"]


def test_unmapped_types_are_reported_to_the_observer():
    seen = []
    renderer = DeclarationRenderer(observe_type=seen.append)

    renderer.render(Declaration(kind=DeclarationKind.PROPERTY, name="money", type="Money", initializer="zero"))

    assert seen == ["Money"]


def test_super_clause():
    assert super_clause(("Base(id)", "Comparable<Item>")) == " extends Base implements Comparable<Item>"
    assert super_clause(("Listener",)) == " implements Listener"
    assert super_clause(()) == ""


@pytest.mark.parametrize(
    "text,expected",
    [
        ("0", "0"),
        ('"Guest"', '"Guest"'),
        ("listOf(1, 2)", "const [1, 2]"),
        ("Color.Blue", "Colors.blue"),
        ("Status.Idle", "Status.Idle"),
        ("loadDefault()", None),
    ],
)
def test_const_default(text, expected):
    assert const_default(text) == expected


def test_is_const_value():
    assert is_const_value("'x'")
    assert is_const_value("[1, 'a']")
    assert is_const_value("{'a': 1}")
    assert not is_const_value("count + 1")
    assert not is_const_value("")
