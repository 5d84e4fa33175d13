"""
Unit tests for the modifier chain resolver.
"""

import pytest

from composeport.ir.ui_tree import ModifierDirective
from composeport.knowledge.modifier_resolver import ModifierChainResolver, default_callback


@pytest.fixture
def resolver():
    return ModifierChainResolver()


def directive(name: str, **arguments: str) -> ModifierDirective:
    return ModifierDirective(name=name, arguments=arguments)


def test_first_directive_is_innermost(resolver):
    rendered = resolver.apply(
        "Text('Hi')",
        [directive("padding", arg0="16.dp"), directive("clickable", arg0="{ onOpen() }")],
    )

    assert rendered.startswith("GestureDetector(")
    assert rendered.index("GestureDetector(") < rendered.index("Padding(") < rendered.index("Text('Hi')")
    assert "EdgeInsets.all(16)" in rendered
    assert "onOpen();" in rendered


def test_k_directives_yield_k_nested_wrappers(resolver):
    directives = [
        directive("padding", arg0="8.dp"),
        directive("background", arg0="Color.Red"),
        directive("clickable", onClick="{ }"),
    ]

    wrappers = resolver.resolve(directives)
    rendered = resolver.apply("const FlutterLogo()", directives)

    assert [w.widget for w in wrappers] == ["Padding", "ColoredBox", "GestureDetector"]
    assert rendered.count("child:") == 3
    positions = [rendered.index(name) for name in ("GestureDetector(", "ColoredBox(", "Padding(", "FlutterLogo")]
    assert positions == sorted(positions)
    assert "color: Colors.red" in rendered


def test_unknown_directives_are_dropped(resolver):
    directives = [directive("semantics", arg0="{ heading() }"), directive("fillMaxWidth")]

    rendered = resolver.apply("Text('x')", directives)

    assert "semantics" not in rendered
    assert rendered.startswith("SizedBox(")
    assert "width: double.infinity" in rendered
    assert resolver.unsupported(directives) == ["semantics"]
    assert not resolver.is_supported("semantics")


def test_no_directives_leaves_widget_unchanged(resolver):
    assert resolver.apply("Text('x')", []) == "Text('x')"


@pytest.mark.parametrize(
    "arguments,expected",
    [
        ({"horizontal": "16.dp", "vertical": "8.dp"}, "EdgeInsets.symmetric(horizontal: 16, vertical: 8)"),
        ({"start": "4.dp", "bottom": "2.dp"}, "EdgeInsets.only(left: 4, bottom: 2)"),
        ({"arg0": "innerPadding"}, "padding: innerPadding"),
        ({"all": "12.dp"}, "EdgeInsets.all(12)"),
        (
            {"arg0": "1.dp", "arg1": "2.dp", "arg2": "3.dp", "arg3": "4.dp"},
            "EdgeInsets.only(left: 1, top: 2, right: 3, bottom: 4)",
        ),
        ({"arg0": "1.dp", "arg1": "2.dp"}, "EdgeInsets.symmetric(horizontal: 1, vertical: 2)"),
    ],
)
def test_padding_forms(resolver, arguments, expected):
    rendered = resolver.apply("child", [ModifierDirective(name="padding", arguments=arguments)])

    assert expected in rendered


def test_size_and_clip(resolver):
    rendered = resolver.apply(
        "avatar",
        [directive("size", arg0="48.dp"), directive("clip", arg0="CircleShape")],
    )

    assert rendered.startswith("ClipOval(")
    assert "width: 48" in rendered
    assert "height: 48" in rendered


def test_known_directives_without_usable_arguments_get_neutral_wrappers(resolver):
    directives = [directive("padding"), directive("offset", arg0="{ IntOffset(0, 0) }"), directive("semantics")]

    wrappers = resolver.resolve(directives)

    assert [(w.directive, w.widget) for w in wrappers] == [
        ("padding", "Padding"),
        ("offset", "Transform.translate"),
    ]
    assert all(w.approximated for w in wrappers)
    assert wrappers[0].arguments == ("padding: EdgeInsets.zero",)
    assert wrappers[1].arguments == ("offset: Offset.zero",)


def test_converted_wrappers_are_not_approximated(resolver):
    assert not resolver.resolve([directive("offset", arg0="4.dp", arg1="2.dp")])[0].approximated


def test_default_callback():
    assert default_callback("{ }") == "() {}"
    assert default_callback("::onBack") == "onBack"
    assert default_callback("{ count++ }") == "() {\n  count++;\n}"
