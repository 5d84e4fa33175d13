"""
Dart source helpers shared by the modifier resolver and the renderers.

Formatting of constructor calls and list literals, string quoting and the
rewriting of Compose constants (colors, alignments, units, icons) inside value
text.
"""

import re
from typing import Sequence

from composeport.knowledge import mappings

INDENT = "  "
MAX_INLINE_WIDTH = 60


def indent(text: str, level: int = 1) -> str:
    pad = INDENT * level
    return "\n".join(pad + line if line.strip() else line for line in text.split("\n"))


def format_call(name: str, args: Sequence[str] = (), const: bool = False) -> str:
    """
    Render a constructor call with Dart's trailing-comma layout.

    Short single-argument calls stay on one line.
    """
    prefix = "const " if const else ""
    if not args:
        return f"{prefix}{name}()"
    if len(args) == 1 and "\n" not in args[0] and len(name) + len(args[0]) <= MAX_INLINE_WIDTH:
        return f"{prefix}{name}({args[0]})"
    body = "".join(f"{indent(arg)},\n" for arg in args)
    return f"{prefix}{name}(\n{body})"


def format_list(items: Sequence[str]) -> str:
    if not items:
        return "[]"
    body = "".join(f"{indent(item)},\n" for item in items)
    return f"[\n{body}]"


def dart_string(value: str) -> str:
    """Quote Kotlin string content as a single-quoted Dart string."""
    return "'" + re.sub(r"(?<!\\)'", r"\\'", value) + "'"


def to_snake_case(name: str) -> str:
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return name.lower()


def lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


# =============================================================================
# Constant rewriting
# =============================================================================

_UNIT_SUFFIX = re.compile(r"(\w+|\))\s*\.(?:dp|sp|em|px)\b")
_FLOAT_SUFFIX = re.compile(r"\b(\d+\.\d+|\d+)[fF]\b")
_LONG_SUFFIX = re.compile(r"\b(\d+)L\b")
_COLOR = re.compile(r"\bColor\.([A-Z]\w*)")
_THEME_COLOR = re.compile(r"\bMaterialTheme\.colorScheme\.(\w+)")
_THEME_TYPOGRAPHY = re.compile(r"\bMaterialTheme\.typography\.(\w+)")
_ALIGNMENT = re.compile(r"\bAlignment\.([A-Z]\w*)")
_ARRANGEMENT = re.compile(r"\bArrangement\.(?:spacedBy\([^)]*\)|([A-Z]\w*))")
_FONT_WEIGHT = re.compile(r"\bFontWeight\.([A-Z]\w*)")
_TEXT_ALIGN = re.compile(r"\bTextAlign\.([A-Z]\w*)")
_CONTENT_SCALE = re.compile(r"\bContentScale\.([A-Z]\w*)")
_TEXT_OVERFLOW = re.compile(r"\bTextOverflow\.([A-Z]\w*)")
_ICON = re.compile(
    r"\bIcons(?:\.AutoMirrored)?\.(Default|Filled|Outlined|Rounded|Sharp|TwoTone)\.([A-Z]\w*)"
)
_STRING_RESOURCE = re.compile(r"\bstringResource\(\s*(?:id\s*=\s*)?R\.string\.(\w+)[^)]*\)")
_DRAWABLE = re.compile(r"\bR\.drawable\.(\w+)")


def convert_icon(style: str, name: str) -> str:
    return f"Icons.{to_snake_case(name)}{mappings.ICON_STYLES.get(style, '')}"


def convert_numeric(text: str) -> str:
    """Strip unit and literal suffixes: ``16.dp`` -> ``16``, ``0.5f`` -> ``0.5``."""
    text = _UNIT_SUFFIX.sub(r"\1", text)
    text = _FLOAT_SUFFIX.sub(lambda m: m.group(1) if "." in m.group(1) else f"{m.group(1)}.0", text)
    return _LONG_SUFFIX.sub(r"\1", text)


def convert_constants(text: str) -> str:
    """Rewrite Compose enumerations and units embedded in value text."""
    text = convert_numeric(text)
    text = _COLOR.sub(
        lambda m: mappings.COLOR_NAMES.get(m.group(1), f"Colors.{lower_first(m.group(1))}"), text
    )
    text = _THEME_COLOR.sub(r"Theme.of(context).colorScheme.\1", text)
    text = _THEME_TYPOGRAPHY.sub(
        lambda m: f"Theme.of(context).textTheme.{m.group(1)}"
        if m.group(1) in mappings.TYPOGRAPHY_STYLES
        else "Theme.of(context).textTheme.bodyMedium",
        text,
    )
    text = _ALIGNMENT.sub(
        lambda m: mappings.ALIGNMENTS.get(m.group(1), "Alignment.center"), text
    )
    text = _ARRANGEMENT.sub(
        lambda m: mappings.ARRANGEMENTS.get(m.group(1) or "", "MainAxisAlignment.start"), text
    )
    text = _FONT_WEIGHT.sub(
        lambda m: mappings.FONT_WEIGHTS.get(m.group(1), "FontWeight.normal"), text
    )
    text = _TEXT_ALIGN.sub(
        lambda m: mappings.TEXT_ALIGNS.get(m.group(1), "TextAlign.start"), text
    )
    text = _CONTENT_SCALE.sub(
        lambda m: mappings.CONTENT_SCALES.get(m.group(1), "BoxFit.contain"), text
    )
    text = _TEXT_OVERFLOW.sub(
        lambda m: mappings.TEXT_OVERFLOWS.get(m.group(1), "TextOverflow.clip"), text
    )
    text = _ICON.sub(lambda m: convert_icon(m.group(1), m.group(2)), text)
    text = _STRING_RESOURCE.sub(lambda m: dart_string(m.group(1)), text)
    text = _DRAWABLE.sub(lambda m: dart_string(f"assets/images/{m.group(1)}.png"), text)
    return text


def is_numeric(text: str) -> bool:
    return re.fullmatch(r"-?\d+(?:\.\d+)?", text.strip()) is not None


def to_int_text(text: str) -> str:
    """Render a value where Dart requires an int (e.g. flex)."""
    value = convert_numeric(text.strip())
    if re.fullmatch(r"-?\d+", value):
        return value
    if re.fullmatch(r"-?\d+\.\d+", value):
        return str(int(float(value)))
    return f"({value}).round()"


def extract_quoted(text: str) -> str | None:
    """First double-quoted string inside a Kotlin snippet, if any."""
    match = re.search(r'"((?:[^"\\]|\\.)*)"', text)
    return match.group(1) if match else None
