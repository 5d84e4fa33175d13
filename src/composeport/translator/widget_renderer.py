"""
Widget renderer.

Renders a UI tree into Flutter widget expressions. Widget nodes are dispatched
by name to a rule table (text, buttons, text input, images, icons, the three
layout containers, lazy lists, cards, scaffolds, spacers and dividers); any
other name goes through the generic renderer. Conditionals and ``when``
dispatch become ternaries and loops become spread ``map`` expressions. Each
widget's modifier directives are applied last through the modifier chain
resolver.

Rendering never raises for a well-formed tree: every rule falls back to a
placeholder, a default callback or a default literal.
"""

import logging
import re
from typing import Callable, Sequence, assert_never

from composeport.config.models import ConventionOptions, ImageLoading
from composeport.ir.ui_tree import (
    ArgumentValue,
    Branch,
    CallValue,
    Closure,
    Conditional,
    IntLiteral,
    Iteration,
    ModifierDirective,
    MultiBranch,
    Reference,
    StringLiteral,
    UINode,
    Widget,
)
from composeport.knowledge import mappings
from composeport.knowledge.dart_syntax import (
    dart_string,
    extract_quoted,
    format_call,
    format_list,
    indent,
    to_int_text,
)
from composeport.knowledge.modifier_resolver import ModifierChainResolver
from composeport.knowledge.type_mapper import TypeMapper, split_top_level
from composeport.translator.argument_renderer import ArgumentRenderer
from composeport.translator.body_rewriter import rewrite_iterable

logger = logging.getLogger(__name__)

EMPTY_WIDGET = "const SizedBox.shrink()"
DEFAULT_CONTAINER = "Column"
DEFAULT_CALLBACK = "() {}"

UNKNOWN_WIDGET = "UNKNOWN_WIDGET"
UNSUPPORTED_MODIFIER = "UNSUPPORTED_MODIFIER"
APPROXIMATED_MODIFIER = "APPROXIMATED_MODIFIER"

_SIZE_MODIFIERS = frozenset({"width", "height", "size", "requiredWidth", "requiredHeight", "requiredSize"})
_BUTTONS = ("Button", "TextButton", "OutlinedButton", "ElevatedButton", "FilledButton", "FilledTonalButton")
_REMOTE_PAINTERS = ("rememberAsyncImagePainter", "rememberImagePainter", "rememberCoilPainter")
_REMOTE_IMAGES = ("AsyncImage", "SubcomposeAsyncImage", "GlideImage", "CoilImage")
_TEXT_STYLE_ARGS = (
    ("fontSize", "fontSize"),
    ("fontWeight", "fontWeight"),
    ("color", "color"),
    ("fontStyle", "fontStyle"),
    ("letterSpacing", "letterSpacing"),
    ("lineHeight", "height"),
)
_TEXT_FIELDS = ("TextField", "OutlinedTextField", "BasicTextField")
_TOP_BARS = ("TopAppBar", "CenterAlignedTopAppBar", "MediumTopAppBar", "SmallTopAppBar")


class WidgetRenderer:
    """
    Renders UI nodes of one component.

    Diagnostics (unknown widget names, dropped modifier directives) and extra
    imports are collected on the instance; create one renderer per component.
    """

    def __init__(
        self,
        type_mapper: TypeMapper | None = None,
        options: ConventionOptions | None = None,
        state_names: frozenset[str] = frozenset(),
        components: dict[str, tuple[str, ...]] | None = None,
        slot_parameters: frozenset[str] = frozenset(),
    ):
        self.type_mapper = type_mapper or TypeMapper()
        self.options = options or ConventionOptions()
        self.arguments = ArgumentRenderer(self.type_mapper, state_names)
        self.resolver = ModifierChainResolver(
            convert_value=self.arguments.expression,
            convert_callback=self.arguments.callback,
        )
        self.components = dict(components or {})
        self.slot_parameters = slot_parameters
        self.imports: set[str] = set()
        self.warnings: list[tuple[str, str]] = []

        self._rules: dict[str, Callable[[Widget], tuple[str, Sequence[ModifierDirective]]]] = {
            "Text": self._text,
            "IconButton": self._icon_button,
            "FloatingActionButton": self._fab,
            "ExtendedFloatingActionButton": self._fab,
            "Image": self._image,
            "Icon": self._icon,
            "Column": self._column,
            "Row": self._row,
            "Box": self._box,
            "LazyColumn": self._lazy_list,
            "LazyRow": self._lazy_list,
            "LazyVerticalGrid": self._lazy_grid,
            "LazyHorizontalGrid": self._lazy_grid,
            "Card": self._card,
            "ElevatedCard": self._card,
            "OutlinedCard": self._card,
            "Scaffold": self._scaffold,
            "Spacer": self._spacer,
            "Divider": self._divider,
            "HorizontalDivider": self._divider,
            "VerticalDivider": self._divider,
        }
        for name in _BUTTONS:
            self._rules[name] = self._button
        for name in _TEXT_FIELDS:
            self._rules[name] = self._text_field
        for name in _REMOTE_IMAGES:
            self._rules[name] = self._image
        for name in _TOP_BARS:
            self._rules[name] = self._top_bar

    # =========================================================================
    # Nodes
    # =========================================================================

    def render_nodes(self, nodes: Sequence[UINode]) -> str:
        """A single node renders directly; several are wrapped in a Column."""
        if not nodes:
            return EMPTY_WIDGET
        if len(nodes) == 1 and not isinstance(nodes[0], Iteration):
            return self.render_node(nodes[0])
        return format_call(DEFAULT_CONTAINER, [f"children: {format_list(self.render_children(nodes))}"])

    def render_children(self, nodes: Sequence[UINode]) -> list[str]:
        """List elements for a ``children:`` slot; loops become spreads."""
        items = []
        for node in nodes:
            if isinstance(node, Iteration):
                items.append(self._spread(node))
            else:
                items.append(self.render_node(node))
        return items

    def render_node(self, node: UINode) -> str:
        if isinstance(node, Widget):
            return self.render_widget(node)
        if isinstance(node, Conditional):
            return self.render_conditional(node)
        if isinstance(node, MultiBranch):
            return self.render_multi_branch(node)
        if isinstance(node, Iteration):
            return format_call(DEFAULT_CONTAINER, [f"children: {format_list([self._spread(node)])}"])
        assert_never(node)

    def render_widget(self, widget: Widget) -> str:
        if widget.name in self.slot_parameters:
            return self._slot_parameter(widget)
        rule = self._rules.get(widget.name, self._generic)
        rendered, modifiers = rule(widget)
        for name in self.resolver.unsupported(modifiers):
            self._warn(UNSUPPORTED_MODIFIER, f"Unsupported modifier '{name}' on {widget.name} dropped")
        wrappers = self.resolver.resolve(modifiers)
        for wrapper in wrappers:
            if wrapper.approximated:
                self._warn(
                    APPROXIMATED_MODIFIER,
                    f"Modifier '{wrapper.directive}' on {widget.name} could not be converted; "
                    f"emitted a neutral {wrapper.widget}",
                )
        return self.resolver.wrap(rendered, wrappers)

    def _slot_parameter(self, widget: Widget) -> str:
        """A composable parameter invoked in the body (``content()``)."""
        if not widget.arguments:
            return widget.name
        args = [self.arguments.render(v, k) for k, v in widget.arguments.items()]
        return f"{widget.name}({', '.join(args)})"

    def render_conditional(self, node: Conditional) -> str:
        then_text = self.render_nodes(node.then_branch)
        else_text = self.render_nodes(node.else_branch)
        condition = self.arguments.expression(node.condition)
        return f"{condition}\n{indent('? ' + then_text, 2)}\n{indent(': ' + else_text, 2)}"

    def render_multi_branch(self, node: MultiBranch) -> str:
        """
        Chain of ternaries, one per branch.

        The last branch ends the chain when it is the else branch, or when
        there are at least two branches and it renders something; otherwise
        the chain ends with an empty placeholder.
        """
        branches = list(node.branches)
        if not branches:
            return EMPTY_WIDGET
        last = branches[-1]
        terminal = last.is_else or (len(branches) >= 2 and bool(last.nodes))
        chained = branches[:-1] if terminal else branches
        result = self.render_nodes(last.nodes) if terminal else EMPTY_WIDGET
        for branch in reversed(chained):
            condition = self.branch_condition(node.subject, branch)
            result = (
                f"{condition}\n{indent('? ' + self.render_nodes(branch.nodes), 2)}\n"
                f"{indent(': ' + result, 2)}"
            )
        return result

    def branch_condition(self, subject: str | None, branch: Branch) -> str:
        if branch.is_else or branch.condition.strip() in ("else", "true"):
            return "true"
        conditions = split_top_level(branch.condition)
        if subject is None:
            rendered = [self.arguments.expression(c) for c in conditions]
        else:
            subject_text = self._subject(subject)
            rendered = [self._subject_test(subject_text, c) for c in conditions]
        if len(rendered) == 1:
            return rendered[0]
        return " || ".join(f"({c})" for c in rendered)

    def _subject(self, subject: str) -> str:
        match = re.match(r"(?:val|var)\s+(\w+)\s*(?::[^=]+)?=", subject.strip())
        if match:
            return match.group(1)
        return self.arguments.expression(subject)

    def _subject_test(self, subject: str, condition: str) -> str:
        condition = condition.strip()
        if condition.startswith("!is "):
            return f"{subject} is! {self.type_mapper.map(condition[4:])}"
        if condition.startswith("is "):
            return f"{subject} is {self.type_mapper.map(condition[3:])}"
        if condition.startswith("!in "):
            return f"!{rewrite_iterable(self.arguments.expression(condition[4:]))}.contains({subject})"
        if condition.startswith("in "):
            return f"{rewrite_iterable(self.arguments.expression(condition[3:]))}.contains({subject})"
        return f"{subject} == {self.arguments.expression(condition)}"

    def _spread(self, node: Iteration) -> str:
        source = rewrite_iterable(self.arguments.expression(node.source))
        variable = node.variable.strip()
        body = self.render_nodes(node.children)
        destructured = re.fullmatch(r"\(\s*(\w+)\s*,\s*(\w+)\s*\)", variable)
        if destructured:
            first, second = destructured.groups()
            # for ((index, item) in list.withIndex())
            source = source.removesuffix(".withIndex()")
            return (
                f"...{source}.asMap().entries.map((entry) {{\n"
                f"{indent(f'final {first} = entry.key;')}\n"
                f"{indent(f'final {second} = entry.value;')}\n"
                f"{indent(f'return {body};')}\n}})"
            )
        return f"...{source}.map(({variable}) => {body})"

    def _warn(self, code: str, message: str) -> None:
        logger.debug(message)
        if (code, message) not in self.warnings:
            self.warnings.append((code, message))

    # =========================================================================
    # Argument helpers
    # =========================================================================

    @staticmethod
    def _raw(widget: Widget, *names: str, position: int | None = None) -> ArgumentValue | None:
        for name in names:
            if name in widget.arguments:
                return widget.arguments[name]
        if position is not None:
            return widget.arguments.get(f"arg{position}")
        return None

    def _value(self, widget: Widget, *names: str, position: int | None = None) -> str | None:
        value = self._raw(widget, *names, position=position)
        if value is None:
            return None
        return self.arguments.render(value, names[0] if names else None)

    def _callback(self, widget: Widget, *names: str) -> str:
        for name in names:
            value = widget.arguments.get(name)
            if value is not None:
                return self.arguments.render(value, name)
        return DEFAULT_CALLBACK

    def _content(self, widget: Widget) -> str:
        return self.render_nodes(widget.children)

    def _slot(self, widget: Widget, name: str) -> str | None:
        nodes = widget.slots.get(name)
        if nodes:
            return self.render_nodes(nodes)
        return None

    @staticmethod
    def _slot_text(widget: Widget, name: str) -> str | None:
        """Literal text of a ``label = { Text("...") }`` style slot."""
        for node in widget.slots.get(name, ()):
            if isinstance(node, Widget) and node.name == "Text":
                value = node.arguments.get("text", node.arguments.get("arg0"))
                if isinstance(value, StringLiteral):
                    return value.value
        value = widget.arguments.get(name)
        if isinstance(value, Closure):
            return extract_quoted(value.text)
        if isinstance(value, StringLiteral):
            return value.value
        return None

    @staticmethod
    def _raw_text(value: ArgumentValue | None) -> str:
        if isinstance(value, Reference):
            return value.name
        if isinstance(value, CallValue):
            return f"{value.name}({', '.join(value.raw_args)})"
        return getattr(value, "text", "")

    # =========================================================================
    # Text and input
    # =========================================================================

    def _text(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        text_value = self._raw(widget, "text", position=0)
        text = self.arguments.render(text_value) if text_value is not None else "''"

        style_fields = []
        for source, target in _TEXT_STYLE_ARGS:
            value = self._value(widget, source)
            if value is not None:
                if source == "fontStyle":
                    value = value.replace("FontStyle.Italic", "FontStyle.italic").replace(
                        "FontStyle.Normal", "FontStyle.normal"
                    )
                style_fields.append(f"{target}: {value}")
        base_style = self._value(widget, "style")
        args = [text]
        if base_style is not None and style_fields:
            args.append(f"style: {base_style}?.copyWith({', '.join(style_fields)})")
        elif base_style is not None:
            args.append(f"style: {base_style}")
        elif style_fields:
            args.append(f"style: {format_call('TextStyle', style_fields)}")
        for source, target in (("textAlign", "textAlign"), ("maxLines", "maxLines"), ("overflow", "overflow")):
            value = self._value(widget, source)
            if value is not None:
                args.append(f"{target}: {value}")

        const = len(args) == 1 and isinstance(text_value, StringLiteral) and "$" not in text_value.value
        return format_call("Text", args, const=const), widget.modifiers

    def _text_field(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = []
        value = self._value(widget, "value", position=0)
        if value is not None:
            args.append(f"controller: TextEditingController(text: {value})")
        if "onValueChange" in widget.arguments:
            args.append(f"onChanged: {self._callback(widget, 'onValueChange')}")

        decoration = []
        label = self._slot_text(widget, "label")
        if label is not None:
            decoration.append(f"labelText: {dart_string(label)}")
        hint = self._slot_text(widget, "placeholder")
        if hint is not None:
            decoration.append(f"hintText: {dart_string(hint)}")
        leading = self._slot(widget, "leadingIcon")
        if leading is not None:
            decoration.append(f"prefixIcon: {leading}")
        trailing = self._slot(widget, "trailingIcon")
        if trailing is not None:
            decoration.append(f"suffixIcon: {trailing}")
        if widget.name == "OutlinedTextField":
            decoration.append("border: const OutlineInputBorder()")
        if decoration:
            args.append(f"decoration: {format_call('InputDecoration', decoration)}")

        single_line = self._raw(widget, "singleLine")
        if single_line is not None and getattr(single_line, "value", None) is True:
            args.append("maxLines: 1")
        max_lines = self._value(widget, "maxLines")
        if max_lines is not None:
            args.append(f"maxLines: {max_lines}")
        enabled = self._value(widget, "enabled")
        if enabled is not None:
            args.append(f"enabled: {enabled}")
        transformation = self._raw_text(self._raw(widget, "visualTransformation"))
        if "PasswordVisualTransformation" in transformation:
            args.append("obscureText: true")
        return format_call("TextField", args), widget.modifiers

    # =========================================================================
    # Buttons
    # =========================================================================

    def _on_pressed(self, widget: Widget) -> str:
        callback = self._callback(widget, "onClick")
        enabled = self._value(widget, "enabled")
        if enabled is None or enabled == "true":
            return callback
        if enabled == "false":
            return "null"
        return f"{enabled} ? {callback} : null"

    def _button(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        name = self.type_mapper.widget_name(widget.name)
        if widget.name == "FilledTonalButton":
            name = "FilledButton.tonal"
        args = [f"onPressed: {self._on_pressed(widget)}", f"child: {self._content(widget)}"]
        return format_call(name, args), widget.modifiers

    def _icon_button(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = [f"onPressed: {self._on_pressed(widget)}", f"icon: {self._content(widget)}"]
        return format_call("IconButton", args), widget.modifiers

    def _fab(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = [f"onPressed: {self._on_pressed(widget)}"]
        if widget.name == "ExtendedFloatingActionButton":
            text = self._slot(widget, "text")
            icon = self._slot(widget, "icon")
            args.append(f"label: {text or self._content(widget)}")
            if icon is not None:
                args.append(f"icon: {icon}")
            return format_call("FloatingActionButton.extended", args), widget.modifiers
        args.append(f"child: {self._content(widget)}")
        return format_call("FloatingActionButton", args), widget.modifiers

    # =========================================================================
    # Images and icons
    # =========================================================================

    def _image(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        painter = self._raw(widget, "painter", position=0)
        painter_text = self._raw_text(painter)
        fit = self._value(widget, "contentScale")
        label = self._value(widget, "contentDescription")

        url = None
        if widget.name in _REMOTE_IMAGES:
            url = self._value(widget, "model", "url", "imageModel", position=0)
        elif isinstance(painter, CallValue) and painter.name in _REMOTE_PAINTERS and painter.raw_args:
            url = self.arguments.expression(painter.raw_args[0].split("=", 1)[-1])

        if url is not None:
            return self._network_image(url, fit), widget.modifiers

        if isinstance(painter, CallValue) and painter.name == "painterResource" and painter.raw_args:
            asset = self.arguments.expression(painter.raw_args[0].split("=", 1)[-1])
            args = [asset]
            if fit is not None:
                args.append(f"fit: {fit}")
            if label is not None and label != "null":
                args.append(f"semanticLabel: {label}")
            return format_call("Image.asset", args), widget.modifiers

        vector = self._raw(widget, "imageVector")
        if vector is not None:
            return format_call("Icon", [self.arguments.render(vector)]), widget.modifiers

        logger.debug(f"Image source '{painter_text}' has no Flutter counterpart, using a placeholder")
        return "const Placeholder()", widget.modifiers

    def _network_image(self, url: str, fit: str | None) -> str:
        if self.options.image_loading == ImageLoading.CACHED_NETWORK_IMAGE:
            self.imports.add(mappings.CACHED_IMAGE_IMPORT)
            args = [f"imageUrl: {url}"]
            if fit is not None:
                args.append(f"fit: {fit}")
            args.append("placeholder: (context, url) => const CircularProgressIndicator()")
            args.append("errorWidget: (context, url, error) => const Icon(Icons.error)")
            return format_call("CachedNetworkImage", args)
        args = [url]
        if fit is not None:
            args.append(f"fit: {fit}")
        return format_call("Image.network", args)

    def _icon(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        icon_value = self._raw(widget, "imageVector", "painter", position=0)
        icon = self.arguments.render(icon_value) if icon_value is not None else None
        if icon is None or not re.match(r"[A-Za-z_][\w.]*$", icon):
            icon = "Icons.help"
        args = [icon]
        tint = self._value(widget, "tint")
        if tint is not None:
            args.append(f"color: {tint}")
        label = self._value(widget, "contentDescription")
        if label is not None and label != "null":
            args.append(f"semanticLabel: {label}")
        const = len(args) == 1 and icon.startswith("Icons.")
        return format_call("Icon", args, const=const), widget.modifiers

    # =========================================================================
    # Layout containers
    # =========================================================================

    def _arrangement(self, raw: ArgumentValue | None) -> list[str]:
        """``mainAxisAlignment`` (and ``spacing`` for spacedBy) fields."""
        text = self._raw_text(raw).strip()
        if not text:
            return []
        spaced = re.match(r"Arrangement\.spacedBy\((.*)\)$", text, re.DOTALL)
        if spaced:
            parts = split_top_level(spaced.group(1))
            return [f"spacing: {self.arguments.expression(parts[0])}"] if parts else []
        return [f"mainAxisAlignment: {self.arguments.expression(text)}"]

    def _cross_alignment(self, raw: ArgumentValue | None) -> str:
        text = self._raw_text(raw).strip()
        name = text.rsplit(".", 1)[-1]
        return mappings.CROSS_AXIS_ALIGNMENTS.get(name, "CrossAxisAlignment.start")

    def _linear(
        self, widget: Widget, name: str, main: str, cross: str
    ) -> tuple[str, Sequence[ModifierDirective]]:
        args = self._arrangement(self._raw(widget, main))
        args.append(f"crossAxisAlignment: {self._cross_alignment(self._raw(widget, cross))}")
        args.append(f"children: {format_list(self.render_children(widget.children))}")
        return format_call(name, args), widget.modifiers

    def _column(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        return self._linear(widget, "Column", "verticalArrangement", "horizontalAlignment")

    def _row(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        return self._linear(widget, "Row", "horizontalArrangement", "verticalAlignment")

    def _box(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = []
        alignment = self._value(widget, "contentAlignment")
        if alignment is not None:
            args.append(f"alignment: {alignment}")
        args.append(f"children: {format_list(self.render_children(widget.children))}")
        return format_call("Stack", args), widget.modifiers

    # =========================================================================
    # Lazy lists
    # =========================================================================

    def _list_items(self, widget: Widget) -> list[str]:
        """Children of a lazy container with the ``item``/``items`` DSL unrolled."""
        items = []
        for child in widget.children:
            if isinstance(child, Widget) and child.name in ("item", "stickyHeader"):
                items.append(self.render_nodes(child.children))
            elif isinstance(child, Widget) and child.name in ("items", "itemsIndexed"):
                source, variables, _ = self._items_source(child)
                body = self.render_nodes(child.children)
                if len(variables) == 2:
                    items.append(
                        f"...{source}.asMap().entries.map((entry) {{\n"
                        f"{indent(f'final {variables[0]} = entry.key;')}\n"
                        f"{indent(f'final {variables[1]} = entry.value;')}\n"
                        f"{indent(f'return {body};')}\n}})"
                    )
                else:
                    items.append(f"...{source}.map(({variables[0]}) => {body})")
            elif isinstance(child, Iteration):
                items.append(self._spread(child))
            else:
                items.append(self.render_node(child))
        return items

    def _items_source(self, items: Widget) -> tuple[str, tuple[str, ...], bool]:
        """(Dart iterable, loop variables, counted) of an ``items`` call."""
        raw = self._raw(items, "items", "count", position=0)
        counted = isinstance(raw, IntLiteral) or "count" in items.arguments
        source = self.arguments.render(raw) if raw is not None else "const []"
        variables = items.closure_parameters
        if items.name == "itemsIndexed":
            variables = variables if len(variables) == 2 else ("index", "item")
        elif not variables:
            variables = ("index",) if counted else ("it",)
        if counted:
            source = f"List.generate({source}, (i) => i)"
        return source, variables[:2], counted

    def _lazy_list(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = []
        if widget.name == "LazyRow":
            args.append("scrollDirection: Axis.horizontal")
        padding = self._value(widget, "contentPadding")
        if padding is not None:
            args.append(f"padding: {padding}")

        only = widget.children[0] if len(widget.children) == 1 else None
        if isinstance(only, Widget) and only.name in ("items", "itemsIndexed"):
            raw = self._raw(only, "items", "count", position=0)
            source = self.arguments.render(raw) if raw is not None else "const []"
            counted = isinstance(raw, IntLiteral) or "count" in only.arguments
            variables = only.closure_parameters
            body = self.render_nodes(only.children)
            lines = []
            if counted:
                count = source
                index = variables[0] if variables else "index"
            else:
                count = f"{source}.length"
                index = variables[0] if only.name == "itemsIndexed" and len(variables) == 2 else "index"
                item = variables[-1] if variables else "it"
                lines.append(f"final {item} = {source}[{index}];")
            lines.append(f"return {body};")
            statements = "\n".join(lines)
            builder = f"(context, {index}) {{\n{indent(statements)}\n}}"
            args.append(f"itemCount: {count}")
            args.append(f"itemBuilder: {builder}")
            return format_call("ListView.builder", args), widget.modifiers

        args.append(f"children: {format_list(self._list_items(widget))}")
        return format_call("ListView", args), widget.modifiers

    def _lazy_grid(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        cells = self._raw_text(self._raw(widget, "columns", "rows", position=0))
        fixed = re.search(r"GridCells\.Fixed\((\d+)\)", cells)
        args = [f"crossAxisCount: {fixed.group(1) if fixed else 2}"]
        if widget.name == "LazyHorizontalGrid":
            args.append("scrollDirection: Axis.horizontal")
        args.append(f"children: {format_list(self._list_items(widget))}")
        return format_call("GridView.count", args), widget.modifiers

    # =========================================================================
    # Material structure
    # =========================================================================

    def _card(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = []
        elevation_text = self._raw_text(self._raw(widget, "elevation"))
        elevation = re.search(r"(\d+(?:\.\d+)?)\.dp", elevation_text)
        if elevation:
            args.append(f"elevation: {elevation.group(1)}")
        content = self._content(widget)
        if "onClick" in widget.arguments:
            content = format_call("InkWell", [f"onTap: {self._callback(widget, 'onClick')}", f"child: {content}"])
        args.append(f"child: {content}")
        name = "Card.outlined" if widget.name == "OutlinedCard" else "Card"
        return format_call(name, args), widget.modifiers

    def _top_bar(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = []
        title = self._slot(widget, "title")
        if title is not None:
            args.append(f"title: {title}")
        leading = self._slot(widget, "navigationIcon")
        if leading is not None:
            args.append(f"leading: {leading}")
        actions = widget.slots.get("actions")
        if actions:
            args.append(f"actions: {format_list(self.render_children(actions))}")
        if widget.name == "CenterAlignedTopAppBar":
            args.append("centerTitle: true")
        return format_call("AppBar", args), widget.modifiers

    def _scaffold(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        args = []
        top_bar = widget.slots.get("topBar")
        if top_bar:
            app_bar = self.render_nodes(top_bar)
            first = top_bar[0]
            if not (len(top_bar) == 1 and isinstance(first, Widget) and first.name in _TOP_BARS):
                app_bar = format_call(
                    "PreferredSize",
                    ["preferredSize: const Size.fromHeight(kToolbarHeight)", f"child: {app_bar}"],
                )
            args.append(f"appBar: {app_bar}")
        for slot, target in (
            ("bottomBar", "bottomNavigationBar"),
            ("floatingActionButton", "floatingActionButton"),
            ("drawerContent", "drawer"),
        ):
            rendered = self._slot(widget, slot)
            if rendered is not None:
                args.append(f"{target}: {rendered}")

        body = self._content(widget)
        if widget.closure_parameters:
            # The content lambda receives the scaffold insets; Flutter applies them itself
            padding = widget.closure_parameters[0]
            builder = f"const {padding} = EdgeInsets.zero;\nreturn {body};"
            body = f"Builder(builder: (context) {{\n{indent(builder)}\n}})"
        args.append(f"body: {body}")
        return format_call("Scaffold", args), widget.modifiers

    # =========================================================================
    # Spacing
    # =========================================================================

    def _spacer(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        sizes = [m for m in widget.modifiers if m.name in _SIZE_MODIFIERS]
        weights = [m for m in widget.modifiers if m.name == "weight"]
        rest = [m for m in widget.modifiers if m.name not in _SIZE_MODIFIERS and m.name != "weight"]
        if weights:
            weight = weights[0].arguments.get("weight", weights[0].arguments.get("arg0", "1"))
            flex = to_int_text(weight)
            return ("const Spacer()" if flex == "1" else f"Spacer(flex: {flex})"), rest
        if not sizes:
            return EMPTY_WIDGET, rest

        fields = []
        for directive in sizes:
            args = directive.arguments
            if directive.name in ("width", "requiredWidth"):
                fields.append(f"width: {self.arguments.expression(args.get('width', args.get('arg0', '0')))}")
            elif directive.name in ("height", "requiredHeight"):
                fields.append(f"height: {self.arguments.expression(args.get('height', args.get('arg0', '0')))}")
            else:
                width = args.get("width", args.get("size", args.get("arg0", "0")))
                height = args.get("height", args.get("arg1", width))
                fields.append(f"width: {self.arguments.expression(width)}")
                fields.append(f"height: {self.arguments.expression(height)}")
        const = all(re.fullmatch(r"\w+: [\d.]+", f) for f in fields)
        return format_call("SizedBox", fields, const=const), rest

    def _divider(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        name = "VerticalDivider" if widget.name == "VerticalDivider" else "Divider"
        args = []
        for source, target in (("thickness", "thickness"), ("color", "color")):
            value = self._value(widget, source)
            if value is not None:
                args.append(f"{target}: {value}")
        return format_call(name, args, const=not args), widget.modifiers

    # =========================================================================
    # Generic fallback
    # =========================================================================

    def _generic(self, widget: Widget) -> tuple[str, Sequence[ModifierDirective]]:
        """
        Mapped widget name with mapped argument names.

        Project components keep their own parameter names; positional
        arguments are bound to them in declaration order.
        """
        component_params = self.components.get(widget.name)
        if component_params is None and not self.type_mapper.is_known_widget(widget.name):
            self._warn(UNKNOWN_WIDGET, f"Unknown widget '{widget.name}' rendered generically")
        name = widget.name if component_params is not None else self.type_mapper.widget_name(widget.name)

        args = []
        for key, value in widget.arguments.items():
            if key in widget.slots:
                continue
            rendered = self.arguments.render(value, key)
            if key.startswith("arg") and key[3:].isdigit():
                position = int(key[3:])
                if component_params is not None and position < len(component_params):
                    args.append(f"{component_params[position]}: {rendered}")
                else:
                    args.append(rendered)
            else:
                target = key if component_params is not None else self.type_mapper.parameter_name(key)
                args.append(f"{target}: {rendered}")
        # Dart requires positional arguments before named ones
        args.sort(key=lambda a: re.match(r"^\w+: ", a) is not None)

        for slot, nodes in widget.slots.items():
            target = slot if component_params is not None else self.type_mapper.parameter_name(slot)
            args.append(f"{target}: {self.render_nodes(nodes)}")

        if len(widget.children) == 1 and not isinstance(widget.children[0], Iteration):
            slot = "content" if component_params is not None and "content" in component_params else "child"
            args.append(f"{slot}: {self.render_node(widget.children[0])}")
        elif widget.children:
            if component_params is not None and "content" in component_params:
                args.append(f"content: {self.render_nodes(widget.children)}")
            else:
                args.append(f"children: {format_list(self.render_children(widget.children))}")

        return format_call(name, args, const=not args), widget.modifiers
