"""
Type mapper.

Lexical translation of Kotlin type names (including generics, nullability and
function types) to Dart type names, plus the widget-name and parameter-name
lookups used by the generic widget renderer.
"""

import logging
from dataclasses import dataclass, field

from composeport.knowledge import mappings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeDescriptor:
    """A parsed type: base name, nullability and generic parameters."""

    base: str
    nullable: bool = False
    generics: tuple["TypeDescriptor", ...] = field(default_factory=tuple)

    def render(self) -> str:
        text = self.base
        if self.generics:
            text += "<" + ", ".join(g.render() for g in self.generics) + ">"
        if self.nullable:
            text += "?"
        return text


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on a separator that is not nested in <>, () or []."""
    parts: list[str] = []
    depth = 0
    current = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch in "<([{":
            depth += 1
        elif ch in ">)]}":
            # "->" is an arrow, not a closing bracket
            if not (ch == ">" and i > 0 and text[i - 1] == "-"):
                depth -= 1
        if depth == 0 and text.startswith(separator, i):
            parts.append("".join(current).strip())
            current = []
            i += len(separator)
            continue
        current.append(ch)
        i += 1
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return [p for p in parts if p]


def parse_type(text: str) -> TypeDescriptor:
    """Parse ``Map<String, List<Int>?>?`` style text into a descriptor."""
    text = text.strip()
    nullable = text.endswith("?")
    if nullable:
        text = text[:-1].rstrip()

    open_idx = text.find("<")
    if open_idx > 0 and text.endswith(">"):
        base = text[:open_idx].strip()
        inner = text[open_idx + 1 : -1]
        generics = tuple(parse_type(_strip_variance(p)) for p in split_top_level(inner))
        return TypeDescriptor(base=base, nullable=nullable, generics=generics)

    return TypeDescriptor(base=text, nullable=nullable)


def _strip_variance(text: str) -> str:
    for prefix in ("out ", "in "):
        if text.startswith(prefix):
            return text[len(prefix) :]
    if text == "*":
        return "dynamic"
    return text


def _find_arrow(text: str) -> int:
    depth = 0
    for i, ch in enumerate(text):
        if ch == "-" and text.startswith("->", i) and depth == 0:
            return i
        if ch in "<([":
            depth += 1
        elif ch in ")]" or (ch == ">" and (i == 0 or text[i - 1] != "-")):
            depth -= 1
    return -1


class TypeMapper:
    """Maps Kotlin types and Compose names to their Flutter counterparts."""

    def __init__(
        self,
        type_overrides: dict[str, str] | None = None,
        widget_overrides: dict[str, str] | None = None,
    ):
        self.type_overrides = dict(type_overrides or {})
        self.widget_overrides = dict(widget_overrides or {})
        self._tables = (
            self.type_overrides,
            mappings.DOMAIN_TYPES,
            mappings.PRIMITIVE_TYPES,
            mappings.COLLECTION_TYPES,
        )

    # =========================================================================
    # Types
    # =========================================================================

    def map(self, type_name: str) -> str:
        """
        Map a Kotlin type to Dart.

        Unknown names pass through unchanged; mapping an already-mapped type
        returns it unchanged.
        """
        text = type_name.strip()
        if not text:
            return text
        if _find_arrow(text) >= 0:
            return self._map_function_type(text)
        return self.map_descriptor(parse_type(text)).render()

    def map_descriptor(self, descriptor: TypeDescriptor) -> TypeDescriptor:
        base = self.lookup(descriptor.base)
        generics = tuple(self.map_descriptor(g) for g in descriptor.generics)
        if "<" in base:
            # Table entries that already carry generics (IntArray -> List<int>)
            mapped = parse_type(base)
            return TypeDescriptor(mapped.base, descriptor.nullable, mapped.generics)
        return TypeDescriptor(base, descriptor.nullable, generics)

    def lookup(self, name: str) -> str:
        """Look up a bare name in the tables, identity when unknown."""
        for table in self._tables:
            if name in table:
                return table[name]
        # Qualified names such as kotlin.String
        if "." in name:
            short = name.rsplit(".", 1)[-1]
            for table in self._tables:
                if short in table:
                    return table[short]
        return name

    def is_known(self, name: str) -> bool:
        return any(name in table for table in self._tables)

    def _map_function_type(self, text: str) -> str:
        nullable = False
        if text.endswith("?"):
            inner = text[:-1].strip()
            if inner.startswith("(") and inner.endswith(")") and _find_arrow(inner[1:-1]) >= 0:
                nullable = True
                text = inner[1:-1].strip()

        composable = "@Composable" in text.split("(", 1)[0]
        for prefix in ("@Composable", "suspend"):
            text = text.replace(prefix, "", 1).strip() if text.startswith(prefix) else text

        arrow = _find_arrow(text)
        params_text = text[:arrow].strip()
        return_text = text[arrow + 2 :].strip()

        # Receiver function types (Foo.() -> Unit) drop the receiver
        if not params_text.startswith("(") and "." in params_text:
            params_text = params_text[params_text.index(".") + 1 :]
        if params_text.startswith("(") and params_text.endswith(")"):
            params_text = params_text[1:-1]

        params = []
        for param in split_top_level(params_text):
            # Named parameters: (value: String) -> Unit
            if ":" in param and "<" not in param.split(":", 1)[0]:
                param = param.split(":", 1)[1]
            params.append(self.map(param))

        return_type = self.map(return_text) if return_text else "void"
        if composable and return_type == "void":
            return_type = "Widget"

        if not params and return_type == "void":
            result = "VoidCallback"
        else:
            result = f"{return_type} Function({', '.join(params)})"
        return f"{result}?" if nullable else result

    def default_value(self, dart_type: str) -> str:
        """A literal usable as a default for the given Dart type."""
        descriptor = parse_type(dart_type)
        if descriptor.nullable:
            return "null"
        return {
            "int": "0",
            "double": "0.0",
            "num": "0",
            "String": "''",
            "bool": "false",
            "List": "const []",
            "Set": "const {}",
            "Map": "const {}",
            "Iterable": "const []",
            "DateTime": "DateTime.now()",
            "VoidCallback": "() {}",
        }.get(descriptor.base, "null")

    # =========================================================================
    # Widgets and parameters
    # =========================================================================

    def widget_name(self, name: str) -> str:
        if name in self.widget_overrides:
            return self.widget_overrides[name]
        return mappings.WIDGET_NAMES.get(name, name)

    def is_known_widget(self, name: str) -> bool:
        return name in self.widget_overrides or name in mappings.WIDGET_NAMES

    def parameter_name(self, name: str) -> str:
        return mappings.PARAMETER_NAMES.get(name, name)
