"""
Unit tests for widget and argument rendering.
"""

import pytest

from composeport.config.models import ConventionOptions, ImageLoading
from composeport.ir.ui_tree import (
    Branch,
    BoolLiteral,
    CallValue,
    Closure,
    Conditional,
    DoubleLiteral,
    IntLiteral,
    Iteration,
    ModifierDirective,
    MultiBranch,
    NullValue,
    Reference,
    StringLiteral,
    Widget,
)
from composeport.knowledge.mappings import CACHED_IMAGE_IMPORT
from composeport.translator.argument_renderer import ArgumentRenderer, split_closure
from composeport.translator.widget_renderer import (
    APPROXIMATED_MODIFIER,
    EMPTY_WIDGET,
    UNKNOWN_WIDGET,
    UNSUPPORTED_MODIFIER,
    WidgetRenderer,
)


@pytest.fixture
def renderer():
    return WidgetRenderer()


def text(value: str, **kwargs) -> Widget:
    return Widget(name="Text", arguments={"arg0": StringLiteral(value=value)}, **kwargs)


# =============================================================================
# Arguments
# =============================================================================


@pytest.mark.parametrize(
    "value,expected",
    [
        (StringLiteral(value="Hello"), "'Hello'"),
        (StringLiteral(value="It's"), "'It\\'s'"),
        (IntLiteral(value=3), "3"),
        (DoubleLiteral(value=0.5), "0.5"),
        (BoolLiteral(value=False), "false"),
        (NullValue(), "null"),
        (Reference(name="Color.Red"), "Colors.red"),
        (Reference(name="user?.name ?: \"Guest\""), 'user?.name ?? "Guest"'),
        (CallValue(name="RoundedCornerShape", raw_args=("8.dp",)), "RoundedCornerShape(8)"),
    ],
)
def test_render_argument_values(value, expected):
    assert ArgumentRenderer().render(value) == expected


def test_callbacks():
    arguments = ArgumentRenderer()

    assert arguments.callback("{ }") == "() {}"
    assert arguments.callback("::onBack") == "onBack"
    assert arguments.callback("{ onSelect(item) }") == "() => onSelect(item)"
    assert arguments.callback("{ value -> onChange(value) }") == "(value) => onChange(value)"


def test_state_assignments_are_wrapped_in_set_state():
    arguments = ArgumentRenderer(state_names=frozenset({"count", "query"}))

    increment = arguments.callback("{ count++ }")
    reset = arguments.callback("{ count.value = 0 }")
    changed = arguments.render(Closure(text="{ query = it }"), "onValueChange")

    assert increment == "() {\n  setState(() {\n    count++;\n  });\n}"
    assert "count = 0;" in reset
    assert ".value" not in reset
    assert changed.startswith("(it) {\n  setState(() {")
    assert "query = it;" in changed


def test_split_closure():
    assert split_closure("{ a, b -> a + b }") == (("a", "b"), "a + b")
    assert split_closure("{ index, item: Item -> show(item) }") == (("index", "item"), "show(item)")
    assert split_closure("{ doWork() }") == ((), "doWork()")


# =============================================================================
# Widgets
# =============================================================================


def test_leaf_widget_has_no_child_slot(renderer):
    rendered = renderer.render_node(text("Hello"))

    assert rendered == "const Text('Hello')"
    assert "child" not in rendered


def test_text_style_arguments(renderer):
    widget = Widget(
        name="Text",
        arguments={
            "text": Reference(name="title"),
            "fontSize": Reference(name="18.sp"),
            "fontWeight": Reference(name="FontWeight.Bold"),
        },
    )

    rendered = renderer.render_node(widget)

    assert rendered.startswith("Text(\n  title,")
    assert "style: TextStyle(" in rendered
    assert "fontSize: 18" in rendered
    assert "fontWeight: FontWeight.bold" in rendered


def test_button_maps_callback_and_child(renderer):
    widget = Widget(name="Button", arguments={"onClick": Closure(text="{ submit() }")}, children=(text("Go"),))

    rendered = renderer.render_node(widget)

    assert rendered == "ElevatedButton(\n  onPressed: () => submit(),\n  child: const Text('Go'),\n)"


def test_multiple_roots_are_wrapped_in_a_column(renderer):
    rendered = renderer.render_nodes([text("a"), text("b")])

    assert rendered.startswith("Column(")
    assert "const Text('a')," in rendered
    assert renderer.render_nodes([]) == EMPTY_WIDGET


def test_column_always_sets_cross_axis_alignment(renderer):
    widget = Widget(
        name="Column",
        arguments={"verticalArrangement": Reference(name="Arrangement.spacedBy(8.dp)")},
        children=(text("a"),),
    )

    rendered = renderer.render_node(widget)

    assert "spacing: 8" in rendered
    assert "crossAxisAlignment: CrossAxisAlignment.start" in rendered
    assert "children: [" in rendered


def test_conditional_renders_ternary_with_placeholder(renderer):
    node = Conditional(condition="isLoading", then_branch=(Widget(name="CircularProgressIndicator"),))

    rendered = renderer.render_node(node)

    assert rendered == "isLoading\n    ? const CircularProgressIndicator()\n    : const SizedBox.shrink()"


def test_multi_branch_without_else_ends_with_last_branch(renderer):
    node = MultiBranch(
        subject="tab",
        branches=(
            Branch(condition="0", nodes=(text("A"),)),
            Branch(condition="1", nodes=(text("B"),)),
            Branch(condition="2", nodes=(text("C"),)),
        ),
    )

    rendered = renderer.render_node(node)

    assert rendered == (
        "tab == 0\n"
        "    ? const Text('A')\n"
        "    : tab == 1\n"
        "        ? const Text('B')\n"
        "        : const Text('C')"
    )
    assert EMPTY_WIDGET not in rendered


def test_multi_branch_else_condition_and_type_checks(renderer):
    node = MultiBranch(
        subject="state",
        branches=(
            Branch(condition="is Loading", nodes=(Widget(name="CircularProgressIndicator"),)),
            Branch(condition="true", nodes=(text("Ready"),), is_else=True),
        ),
    )

    rendered = renderer.render_node(node)

    assert rendered.startswith("state is Loading\n")
    assert rendered.endswith(": const Text('Ready')")


def test_single_branch_ends_with_placeholder(renderer):
    node = MultiBranch(branches=(Branch(condition="showBanner", nodes=(text("Sale"),)),))

    rendered = renderer.render_node(node)

    assert rendered == "showBanner\n    ? const Text('Sale')\n    : const SizedBox.shrink()"


def test_iteration_spreads_into_children(renderer):
    loop = Iteration(
        variable="item",
        source="items",
        children=(Widget(name="Text", arguments={"arg0": Reference(name="item.name")}),),
    )
    column = Widget(name="Column", children=(loop,))

    rendered = renderer.render_node(column)

    assert "...items.map((item) => Text(item.name))" in rendered


def test_range_iteration(renderer):
    loop = Iteration(variable="i", source="0 until count", children=(text("row"),))

    assert renderer._spread(loop) == "...List.generate(count, (i) => i).map((i) => const Text('row'))"


def test_modifiers_wrap_first_innermost(renderer):
    widget = text(
        "Tap",
        modifiers=(
            ModifierDirective(name="padding", arguments={"arg0": "8.dp"}),
            ModifierDirective(name="clickable", arguments={"arg0": "{ open() }"}),
        ),
    )

    rendered = renderer.render_node(widget)

    assert rendered.index("GestureDetector(") < rendered.index("Padding(") < rendered.index("Text('Tap')")


def test_unknown_widget_warns_and_renders_generically(renderer):
    widget = Widget(name="Shimmer", arguments={"durationMs": IntLiteral(value=300)})

    rendered = renderer.render_node(widget)

    assert rendered == "Shimmer(durationMs: 300)"
    assert renderer.warnings == [(UNKNOWN_WIDGET, "Unknown widget 'Shimmer' rendered generically")]


def test_unsupported_modifier_warns(renderer):
    widget = text("x", modifiers=(ModifierDirective(name="semantics"),))

    assert renderer.render_node(widget) == "const Text('x')"
    assert renderer.warnings[0][0] == UNSUPPORTED_MODIFIER


def test_unconvertible_modifier_is_kept_and_warned(renderer):
    widget = text("x", modifiers=(ModifierDirective(name="offset", arguments={"arg0": "{ IntOffset(0, 0) }"}),))

    rendered = renderer.render_node(widget)

    assert rendered.startswith("Transform.translate(")
    assert "offset: Offset.zero" in rendered
    assert "const Text('x')" in rendered
    assert renderer.warnings == [
        (
            APPROXIMATED_MODIFIER,
            "Modifier 'offset' on Text could not be converted; emitted a neutral Transform.translate",
        )
    ]


def test_project_components_bind_positional_arguments():
    renderer = WidgetRenderer(components={"UserCard": ("user", "onClick")})
    widget = Widget(
        name="UserCard",
        arguments={"arg0": Reference(name="user"), "onClick": Closure(text="{ open(user) }")},
    )

    rendered = renderer.render_node(widget)

    assert rendered == "UserCard(\n  user: user,\n  onClick: () => open(user),\n)"
    assert renderer.warnings == []


def test_remote_images_follow_image_loading_option():
    widget = Widget(name="AsyncImage", arguments={"model": Reference(name="avatarUrl")})
    cached = WidgetRenderer()
    network = WidgetRenderer(options=ConventionOptions(image_loading=ImageLoading.NETWORK))

    cached_text = cached.render_node(widget)
    network_text = network.render_node(widget)

    assert cached_text.startswith("CachedNetworkImage(")
    assert "imageUrl: avatarUrl" in cached_text
    assert cached.imports == {CACHED_IMAGE_IMPORT}
    assert network_text == "Image.network(avatarUrl)"
    assert network.imports == set()


def test_spacers(renderer):
    sized = Widget(name="Spacer", modifiers=(ModifierDirective(name="height", arguments={"arg0": "16.dp"}),))
    weighted = Widget(name="Spacer", modifiers=(ModifierDirective(name="weight", arguments={"arg0": "1f"}),))

    assert renderer.render_node(sized) == "const SizedBox(height: 16)"
    assert renderer.render_node(weighted) == "const Spacer()"
    assert renderer.render_node(Widget(name="Spacer")) == EMPTY_WIDGET


def test_lazy_column_with_items_uses_builder(renderer):
    items = Widget(
        name="items",
        arguments={"arg0": Reference(name="users")},
        closure_parameters=("user",),
        children=(Widget(name="Text", arguments={"arg0": Reference(name="user.name")}),),
    )

    rendered = renderer.render_node(Widget(name="LazyColumn", children=(items,)))

    assert rendered.startswith("ListView.builder(")
    assert "itemCount: users.length" in rendered
    assert "final user = users[index];" in rendered
    assert "return Text(user.name);" in rendered


def test_scaffold_slots(renderer):
    top_bar = Widget(name="TopAppBar", slots={"title": (text("Home"),)})
    scaffold = Widget(
        name="Scaffold",
        slots={"topBar": (top_bar,)},
        children=(text("Body"),),
        closure_parameters=("innerPadding",),
    )

    rendered = renderer.render_node(scaffold)

    assert rendered.startswith("Scaffold(")
    assert "appBar: AppBar(title: const Text('Home'))" in rendered
    assert "const innerPadding = EdgeInsets.zero;" in rendered
