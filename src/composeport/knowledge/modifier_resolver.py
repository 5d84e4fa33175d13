"""
Modifier chain resolver.

Turns the ordered directives of a Compose modifier chain into Flutter wrapper
widgets. ``Modifier.padding(8.dp).clickable { … }`` extracts as
``[padding, clickable]``; the first directive wraps the rendered node
directly and each later directive wraps the result, so the last one is
outermost: ``GestureDetector(child: Padding(child: …))``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Sequence

from composeport.ir.ui_tree import ModifierDirective
from composeport.knowledge.dart_syntax import (
    convert_constants,
    format_call,
    indent,
    to_int_text,
)
from composeport.knowledge.type_mapper import split_top_level

logger = logging.getLogger(__name__)

ValueConverter = Callable[[str], str]

_PADDING_SIDES = (("start", "left"), ("top", "top"), ("end", "right"), ("bottom", "bottom"))
_CORNERS = {
    "topStart": "topLeft",
    "topEnd": "topRight",
    "bottomStart": "bottomLeft",
    "bottomEnd": "bottomRight",
}
_GESTURES = (("onClick", "onTap"), ("onLongClick", "onLongPress"), ("onDoubleClick", "onDoubleTap"))

# Neutral wrappers for known directives whose arguments cannot be converted
_FALLBACKS: dict[str, tuple[str, tuple[str, ...]]] = {
    "padding": ("Padding", ("padding: EdgeInsets.zero",)),
    "width": ("SizedBox", ()),
    "height": ("SizedBox", ()),
    "size": ("SizedBox", ()),
    "requiredWidth": ("SizedBox", ()),
    "requiredHeight": ("SizedBox", ()),
    "requiredSize": ("SizedBox", ()),
    "widthIn": ("ConstrainedBox", ("constraints: const BoxConstraints()",)),
    "heightIn": ("ConstrainedBox", ("constraints: const BoxConstraints()",)),
    "sizeIn": ("ConstrainedBox", ("constraints: const BoxConstraints()",)),
    "defaultMinSize": ("ConstrainedBox", ("constraints: const BoxConstraints()",)),
    "aspectRatio": ("AspectRatio", ("aspectRatio: 1",)),
    "background": ("ColoredBox", ("color: Colors.transparent",)),
    "shadow": ("Material", ("elevation: 0",)),
    "alpha": ("Opacity", ("opacity: 1",)),
    "rotate": ("Transform.rotate", ("angle: 0",)),
    "scale": ("Transform.scale", ("scale: 1",)),
    "offset": ("Transform.translate", ("offset: Offset.zero",)),
    "align": ("Align", ()),
}


@dataclass(frozen=True)
class ModifierWrapper:
    """A wrapper construct synthesized from one directive."""

    directive: str
    widget: str
    arguments: tuple[str, ...] = ()
    child_slot: str = "child"
    approximated: bool = False

    def wrap(self, child: str) -> str:
        return format_call(self.widget, [*self.arguments, f"{self.child_slot}: {child}"])


def default_callback(text: str) -> str:
    """Closure text to a Dart callback without state awareness."""
    body = text.strip()
    if body.startswith("{") and body.endswith("}"):
        body = body[1:-1].strip()
        if "->" in body.split("\n", 1)[0]:
            body = body.split("->", 1)[1].strip()
        if not body:
            return "() {}"
        statements = [s.strip() for s in re.split(r"[\n;]+", body) if s.strip()]
        return "() {\n" + "".join(f"{indent(convert_constants(s))};\n" for s in statements) + "}"
    # A function reference or callback variable is passed through
    return convert_constants(body.removeprefix("::"))


class ModifierChainResolver:
    """Maps modifier directives to wrapper widgets through a fixed rule table."""

    def __init__(
        self,
        convert_value: ValueConverter = convert_constants,
        convert_callback: ValueConverter = default_callback,
    ):
        self.convert_value = convert_value
        self.convert_callback = convert_callback
        self._rules: dict[str, Callable[[dict[str, str]], ModifierWrapper | None]] = {
            "padding": self._padding,
            "fillMaxWidth": self._fill_max_width,
            "fillMaxHeight": self._fill_max_height,
            "fillMaxSize": self._fill_max_size,
            "width": self._width,
            "requiredWidth": self._width,
            "height": self._height,
            "requiredHeight": self._height,
            "size": self._size,
            "requiredSize": self._size,
            "widthIn": self._width_in,
            "heightIn": self._height_in,
            "sizeIn": self._size_in,
            "defaultMinSize": self._default_min_size,
            "aspectRatio": self._aspect_ratio,
            "background": self._background,
            "border": self._border,
            "clip": self._clip,
            "clipToBounds": lambda args: ModifierWrapper("clipToBounds", "ClipRect"),
            "clickable": self._clickable,
            "combinedClickable": self._combined_clickable,
            "selectable": self._selectable,
            "toggleable": self._selectable,
            "verticalScroll": lambda args: ModifierWrapper("verticalScroll", "SingleChildScrollView"),
            "horizontalScroll": lambda args: ModifierWrapper(
                "horizontalScroll", "SingleChildScrollView", ("scrollDirection: Axis.horizontal",)
            ),
            "alpha": self._alpha,
            "rotate": self._rotate,
            "scale": self._scale,
            "offset": self._offset,
            "weight": self._weight,
            "align": self._align,
            "shadow": self._shadow,
            "testTag": self._test_tag,
            "safeDrawingPadding": lambda args: ModifierWrapper("safeDrawingPadding", "SafeArea"),
            "systemBarsPadding": lambda args: ModifierWrapper("systemBarsPadding", "SafeArea"),
            "statusBarsPadding": lambda args: ModifierWrapper(
                "statusBarsPadding", "SafeArea", ("bottom: false",)
            ),
            "navigationBarsPadding": lambda args: ModifierWrapper(
                "navigationBarsPadding", "SafeArea", ("top: false",)
            ),
            "imePadding": lambda args: ModifierWrapper(
                "imePadding", "Padding", ("padding: MediaQuery.of(context).viewInsets",)
            ),
        }

    # =========================================================================
    # Public API
    # =========================================================================

    def is_supported(self, name: str) -> bool:
        return name in self._rules

    def resolve(self, directives: Sequence[ModifierDirective]) -> list[ModifierWrapper]:
        """
        Map directives to wrappers, preserving extraction order.

        Unknown directives are dropped. A known directive whose arguments
        cannot be converted gets a neutral wrapper marked ``approximated``,
        so every known directive yields exactly one wrapper.
        """
        wrappers = []
        for directive in directives:
            rule = self._rules.get(directive.name)
            if rule is None:
                logger.debug(f"Dropping unsupported modifier '{directive.name}'")
                continue
            wrapper = rule(directive.arguments)
            if wrapper is None:
                logger.debug(f"Approximating modifier '{directive.name}' {directive.arguments}")
                wrapper = self.fallback(directive.name)
            wrappers.append(wrapper)
        return wrappers

    @staticmethod
    def fallback(name: str) -> ModifierWrapper:
        widget, arguments = _FALLBACKS.get(name, ("KeyedSubtree", ()))
        return ModifierWrapper(name, widget, arguments, approximated=True)

    @staticmethod
    def wrap(rendered: str, wrappers: Sequence[ModifierWrapper]) -> str:
        """Apply wrappers in order; the first one ends up innermost."""
        result = rendered
        for wrapper in wrappers:
            result = wrapper.wrap(result)
        return result

    def apply(self, rendered: str, directives: Sequence[ModifierDirective]) -> str:
        """Wrap rendered widget text; first directive innermost, last outermost."""
        return self.wrap(rendered, self.resolve(directives))

    def unsupported(self, directives: Sequence[ModifierDirective]) -> list[str]:
        return [d.name for d in directives if d.name not in self._rules]

    # =========================================================================
    # Argument helpers
    # =========================================================================

    @staticmethod
    def _arg(args: dict[str, str], *names: str, position: int | None = None) -> str | None:
        for name in names:
            if name in args:
                return args[name]
        if position is not None:
            return args.get(f"arg{position}")
        return None

    def _value(self, text: str) -> str:
        return self.convert_value(text.strip())

    @staticmethod
    def _callback_arg(args: dict[str, str], *names: str) -> str | None:
        for name in names:
            if name in args:
                return args[name]
        # Trailing closures are recorded positionally
        for key, value in args.items():
            if key.startswith("arg") and value.strip().startswith("{"):
                return value
        return None

    def _dimension(self, text: str) -> str:
        return self._value(text)

    # =========================================================================
    # Spacing and sizing
    # =========================================================================

    def _padding(self, args: dict[str, str]) -> ModifierWrapper | None:
        if not args:
            return None

        all_value = self._arg(args, "all")
        positional = [args[k] for k in sorted(args) if k.startswith("arg")]
        if all_value is None and len(positional) == 1:
            value = positional[0].strip()
            # padding(innerPadding) passes a PaddingValues through
            if re.fullmatch(r"[a-z_]\w*", value):
                return ModifierWrapper("padding", "Padding", (f"padding: {value}",))
            all_value = value
        if all_value is not None:
            return ModifierWrapper(
                "padding", "Padding", (f"padding: EdgeInsets.all({self._dimension(all_value)})",)
            )

        if len(positional) > 2:
            # padding(start, top, end, bottom)
            sides = [
                f"{target}: {self._dimension(value)}"
                for (_, target), value in zip(_PADDING_SIDES, positional)
            ]
            return ModifierWrapper("padding", "Padding", (f"padding: EdgeInsets.only({', '.join(sides)})",))

        if len(positional) == 2:
            insets = (
                f"EdgeInsets.symmetric(horizontal: {self._dimension(positional[0])}, "
                f"vertical: {self._dimension(positional[1])})"
            )
            return ModifierWrapper("padding", "Padding", (f"padding: {insets}",))

        horizontal = self._arg(args, "horizontal")
        vertical = self._arg(args, "vertical")
        if horizontal is not None or vertical is not None:
            parts = []
            if horizontal is not None:
                parts.append(f"horizontal: {self._dimension(horizontal)}")
            if vertical is not None:
                parts.append(f"vertical: {self._dimension(vertical)}")
            return ModifierWrapper(
                "padding", "Padding", (f"padding: EdgeInsets.symmetric({', '.join(parts)})",)
            )

        sides = []
        for source, target in _PADDING_SIDES:
            value = self._arg(args, source)
            if value is not None:
                sides.append(f"{target}: {self._dimension(value)}")
        if not sides:
            return None
        return ModifierWrapper("padding", "Padding", (f"padding: EdgeInsets.only({', '.join(sides)})",))

    def _fraction(self, args: dict[str, str]) -> str | None:
        fraction = self._arg(args, "fraction", position=0)
        if fraction is None:
            return None
        value = self._value(fraction)
        return None if value in ("1", "1.0") else value

    def _fill_max_width(self, args: dict[str, str]) -> ModifierWrapper:
        fraction = self._fraction(args)
        if fraction is not None:
            return ModifierWrapper(
                "fillMaxWidth", "FractionallySizedBox", (f"widthFactor: {fraction}",)
            )
        return ModifierWrapper("fillMaxWidth", "SizedBox", ("width: double.infinity",))

    def _fill_max_height(self, args: dict[str, str]) -> ModifierWrapper:
        fraction = self._fraction(args)
        if fraction is not None:
            return ModifierWrapper(
                "fillMaxHeight", "FractionallySizedBox", (f"heightFactor: {fraction}",)
            )
        return ModifierWrapper("fillMaxHeight", "SizedBox", ("height: double.infinity",))

    def _fill_max_size(self, args: dict[str, str]) -> ModifierWrapper:
        fraction = self._fraction(args)
        if fraction is not None:
            return ModifierWrapper(
                "fillMaxSize",
                "FractionallySizedBox",
                (f"widthFactor: {fraction}", f"heightFactor: {fraction}"),
            )
        return ModifierWrapper("fillMaxSize", "SizedBox.expand")

    def _width(self, args: dict[str, str]) -> ModifierWrapper | None:
        value = self._arg(args, "width", position=0)
        if value is None:
            return None
        return ModifierWrapper("width", "SizedBox", (f"width: {self._dimension(value)}",))

    def _height(self, args: dict[str, str]) -> ModifierWrapper | None:
        value = self._arg(args, "height", position=0)
        if value is None:
            return None
        return ModifierWrapper("height", "SizedBox", (f"height: {self._dimension(value)}",))

    def _size(self, args: dict[str, str]) -> ModifierWrapper | None:
        width = self._arg(args, "width", "size", position=0)
        height = self._arg(args, "height", position=1)
        if width is None and height is None:
            return None
        if height is None:
            height = width
        if width is None:
            width = height
        return ModifierWrapper(
            "size",
            "SizedBox",
            (f"width: {self._dimension(width)}", f"height: {self._dimension(height)}"),
        )

    def _constraints(
        self, directive: str, pairs: list[tuple[str, str | None]]
    ) -> ModifierWrapper | None:
        parts = [f"{name}: {self._dimension(value)}" for name, value in pairs if value is not None]
        if not parts:
            return None
        return ModifierWrapper(
            directive, "ConstrainedBox", (f"constraints: BoxConstraints({', '.join(parts)})",)
        )

    def _width_in(self, args: dict[str, str]) -> ModifierWrapper | None:
        return self._constraints(
            "widthIn",
            [
                ("minWidth", self._arg(args, "min", position=0)),
                ("maxWidth", self._arg(args, "max", position=1)),
            ],
        )

    def _height_in(self, args: dict[str, str]) -> ModifierWrapper | None:
        return self._constraints(
            "heightIn",
            [
                ("minHeight", self._arg(args, "min", position=0)),
                ("maxHeight", self._arg(args, "max", position=1)),
            ],
        )

    def _size_in(self, args: dict[str, str]) -> ModifierWrapper | None:
        return self._constraints(
            "sizeIn",
            [
                ("minWidth", self._arg(args, "minWidth", position=0)),
                ("minHeight", self._arg(args, "minHeight", position=1)),
                ("maxWidth", self._arg(args, "maxWidth", position=2)),
                ("maxHeight", self._arg(args, "maxHeight", position=3)),
            ],
        )

    def _default_min_size(self, args: dict[str, str]) -> ModifierWrapper | None:
        return self._constraints(
            "defaultMinSize",
            [
                ("minWidth", self._arg(args, "minWidth", position=0)),
                ("minHeight", self._arg(args, "minHeight", position=1)),
            ],
        )

    def _aspect_ratio(self, args: dict[str, str]) -> ModifierWrapper | None:
        ratio = self._arg(args, "ratio", position=0)
        if ratio is None:
            return None
        return ModifierWrapper("aspectRatio", "AspectRatio", (f"aspectRatio: {self._value(ratio)}",))

    # =========================================================================
    # Decoration
    # =========================================================================

    def _shape_radius(self, shape: str) -> str | None:
        """BorderRadius for a Compose shape, None for non-rounded shapes."""
        shape = shape.strip()
        match = re.match(r"RoundedCornerShape\((.*)\)$", shape, re.DOTALL)
        if match:
            inner = match.group(1).strip()
            if not inner:
                return "BorderRadius.zero"
            corners = split_top_level(inner)
            if len(corners) == 1 and "=" not in corners[0]:
                value = self._value(corners[0])
                if value.endswith("%") or "percent" in value:
                    return "BorderRadius.circular(999)"
                return f"BorderRadius.circular({value})"
            named = {}
            for corner in corners:
                if "=" in corner:
                    key, value = corner.split("=", 1)
                    named[key.strip()] = self._value(value)
            parts = [
                f"{_CORNERS[key]}: Radius.circular({value})"
                for key, value in named.items()
                if key in _CORNERS
            ]
            return f"BorderRadius.only({', '.join(parts)})" if parts else "BorderRadius.zero"
        if shape.startswith("MaterialTheme.shapes."):
            return "BorderRadius.circular(12)"
        return None

    def _decoration(self, directive: str, fields: list[str], shape: str | None) -> ModifierWrapper:
        if shape is not None:
            if shape.strip() == "CircleShape":
                fields.append("shape: BoxShape.circle")
            else:
                radius = self._shape_radius(shape)
                if radius is not None:
                    fields.append(f"borderRadius: {radius}")
        decoration = format_call("BoxDecoration", fields)
        return ModifierWrapper(directive, "DecoratedBox", (f"decoration: {decoration}",))

    def _background(self, args: dict[str, str]) -> ModifierWrapper | None:
        color = self._arg(args, "color", "brush", position=0)
        if color is None:
            return None
        shape = self._arg(args, "shape", position=1)
        if color.strip().startswith("Brush."):
            colors = re.search(r"listOf\((.*)\)", color, re.DOTALL)
            gradient_colors = (
                ", ".join(self._value(c) for c in split_top_level(colors.group(1))) if colors else ""
            )
            gradient = f"LinearGradient(colors: [{gradient_colors}])"
            return self._decoration("background", [f"gradient: {gradient}"], shape)
        if shape is None:
            return ModifierWrapper("background", "ColoredBox", (f"color: {self._value(color)}",))
        return self._decoration("background", [f"color: {self._value(color)}"], shape)

    def _border(self, args: dict[str, str]) -> ModifierWrapper | None:
        width = self._arg(args, "width", position=0)
        color = self._arg(args, "color", position=1)
        shape = self._arg(args, "shape", position=2)
        border = self._arg(args, "border")
        if width is not None and width.strip().startswith("BorderStroke("):
            border, shape = width, color
        if border is not None:
            stroke = border.strip()
            inner = stroke[len("BorderStroke(") : -1] if stroke.startswith("BorderStroke(") else ""
            parts = split_top_level(inner)
            width = parts[0] if parts else None
            color = parts[1] if len(parts) > 1 else None
        border_args = []
        if width is not None:
            border_args.append(f"width: {self._dimension(width)}")
        if color is not None:
            border_args.append(f"color: {self._value(color)}")
        return self._decoration("border", [f"border: Border.all({', '.join(border_args)})"], shape)

    def _clip(self, args: dict[str, str]) -> ModifierWrapper:
        shape = (self._arg(args, "shape", position=0) or "").strip()
        if shape == "CircleShape":
            return ModifierWrapper("clip", "ClipOval")
        if shape == "RectangleShape":
            return ModifierWrapper("clip", "ClipRect")
        radius = self._shape_radius(shape)
        if radius is None:
            return ModifierWrapper("clip", "ClipRRect")
        return ModifierWrapper("clip", "ClipRRect", (f"borderRadius: {radius}",))

    def _shadow(self, args: dict[str, str]) -> ModifierWrapper | None:
        elevation = self._arg(args, "elevation", position=0)
        if elevation is None:
            return None
        fields = [f"elevation: {self._dimension(elevation)}"]
        shape = self._arg(args, "shape", position=1)
        if shape is not None:
            radius = self._shape_radius(shape)
            if shape.strip() == "CircleShape":
                fields.append("shape: const CircleBorder()")
            elif radius is not None:
                fields.append(f"borderRadius: {radius}")
        return ModifierWrapper("shadow", "Material", tuple(fields))

    # =========================================================================
    # Interaction
    # =========================================================================

    def _clickable(self, args: dict[str, str]) -> ModifierWrapper:
        callback = self._callback_arg(args, "onClick")
        on_tap = self.convert_callback(callback) if callback is not None else "() {}"
        return ModifierWrapper("clickable", "GestureDetector", (f"onTap: {on_tap}",))

    def _combined_clickable(self, args: dict[str, str]) -> ModifierWrapper:
        fields = []
        for source, target in _GESTURES:
            if source in args:
                fields.append(f"{target}: {self.convert_callback(args[source])}")
        if not fields:
            fields.append("onTap: () {}")
        return ModifierWrapper("combinedClickable", "GestureDetector", tuple(fields))

    def _selectable(self, args: dict[str, str]) -> ModifierWrapper:
        callback = self._callback_arg(args, "onClick")
        if callback is None and "onValueChange" in args:
            value = self._arg(args, "value", position=0) or "false"
            return ModifierWrapper(
                "toggleable",
                "InkWell",
                (f"onTap: () => ({self.convert_callback(args['onValueChange'])})(!{value})",),
            )
        on_tap = self.convert_callback(callback) if callback is not None else "() {}"
        return ModifierWrapper("selectable", "InkWell", (f"onTap: {on_tap}",))

    # =========================================================================
    # Transforms and layout
    # =========================================================================

    def _alpha(self, args: dict[str, str]) -> ModifierWrapper | None:
        alpha = self._arg(args, "alpha", position=0)
        if alpha is None:
            return None
        return ModifierWrapper("alpha", "Opacity", (f"opacity: {self._value(alpha)}",))

    def _rotate(self, args: dict[str, str]) -> ModifierWrapper | None:
        degrees = self._arg(args, "degrees", position=0)
        if degrees is None:
            return None
        return ModifierWrapper(
            "rotate", "Transform.rotate", (f"angle: {self._value(degrees)} * 0.017453292519943295",)
        )

    def _scale(self, args: dict[str, str]) -> ModifierWrapper | None:
        scale_x = self._arg(args, "scaleX")
        scale_y = self._arg(args, "scaleY")
        if scale_x is None and scale_y is None:
            scale_x = self._arg(args, "scale", position=0)
            scale_y = self._arg(args, position=1)
            if scale_x is not None and scale_y is None:
                return ModifierWrapper("scale", "Transform.scale", (f"scale: {self._value(scale_x)}",))
        fields = []
        if scale_x is not None:
            fields.append(f"scaleX: {self._value(scale_x)}")
        if scale_y is not None:
            fields.append(f"scaleY: {self._value(scale_y)}")
        if not fields:
            return None
        return ModifierWrapper("scale", "Transform.scale", tuple(fields))

    def _offset(self, args: dict[str, str]) -> ModifierWrapper | None:
        x = self._arg(args, "x", position=0)
        y = self._arg(args, "y", position=1)
        if x is None and y is None:
            return None
        if x is not None and x.strip().startswith("{"):
            # Lambda offsets ({ IntOffset(...) }) are evaluated at layout time
            return None
        x_value = self._dimension(x) if x is not None else "0"
        y_value = self._dimension(y) if y is not None else "0"
        return ModifierWrapper(
            "offset", "Transform.translate", (f"offset: Offset({x_value}, {y_value})",)
        )

    def _weight(self, args: dict[str, str]) -> ModifierWrapper:
        weight = self._arg(args, "weight", position=0) or "1"
        fields = [f"flex: {to_int_text(weight)}"]
        fill = self._arg(args, "fill")
        if fill is not None and fill.strip() == "false":
            return ModifierWrapper("weight", "Flexible", tuple(fields))
        return ModifierWrapper("weight", "Expanded", tuple(fields))

    def _align(self, args: dict[str, str]) -> ModifierWrapper | None:
        alignment = self._arg(args, "alignment", "align", position=0)
        if alignment is None:
            return None
        return ModifierWrapper("align", "Align", (f"alignment: {self._value(alignment)}",))

    def _test_tag(self, args: dict[str, str]) -> ModifierWrapper | None:
        tag = self._arg(args, "tag", position=0)
        if tag is None:
            return None
        tag_text = tag.strip()
        if tag_text.startswith('"') and tag_text.endswith('"'):
            return ModifierWrapper("testTag", "KeyedSubtree", (f"key: const Key('{tag_text[1:-1]}')",))
        return ModifierWrapper("testTag", "KeyedSubtree", (f"key: Key({self._value(tag_text)})",))
