"""
Kotlin -> Dart rewriting of expression and statement text.

Used for callback bodies, function bodies of non-UI declarations and any
argument text the renderers pass through. The rewrite is lexical: it handles
the common idioms (collection builders, elvis and not-null operators,
val/var declarations, standard-library property accessors) and leaves
anything it does not recognize untouched.
"""

import re
import textwrap
from typing import Callable

from composeport.knowledge.dart_syntax import convert_constants, indent
from composeport.knowledge.type_mapper import TypeMapper, split_top_level

_LOCAL_DECLARATION = re.compile(r"^(val|var)\s+(\w+)\s*(?::\s*([^=]+?))?\s*(=\s*(.*))?$", re.DOTALL)
_PROPERTY_CALLS = {
    ".isNotEmpty()": ".isNotEmpty",
    ".isEmpty()": ".isEmpty",
    ".isNotBlank()": ".trim().isNotEmpty",
    ".isBlank()": ".trim().isEmpty",
    ".first()": ".first",
    ".last()": ".last",
    ".firstOrNull()": ".firstOrNull",
    ".lastOrNull()": ".lastOrNull",
    ".reversed()": ".reversed.toList()",
    ".uppercase()": ".toUpperCase()",
    ".lowercase()": ".toLowerCase()",
    ".trim()": ".trim()",
    ".toList()": ".toList()",
}
_BLOCK_OPENERS = ("{", "(", "[", ",")
_NO_SEMICOLON_START = ("//", "/*", "*", "}", "if ", "if(", "else", "for ", "for(", "while ", "try", "catch")


_UNTIL = re.compile(r"^(.+?)\s+until\s+(.+)$")
_DOWN_TO = re.compile(r"^(.+?)\s+downTo\s+(.+)$")
_CLOSED_RANGE = re.compile(r"^([\w().]+?)\s*\.\.\s*([\w().+\- ]+)$")
_INDICES = re.compile(r"^(.+)\.indices$")
_FOR_HEADER = re.compile(r"^for\s*\(\s*(\w+)\s+in\s+(.+)\)\s*(\{?)$")


def rewrite_iterable(text: str) -> str:
    """Kotlin ranges to Dart iterables: ``0 until n`` -> ``List.generate(n, (i) => i)``."""
    source = text.strip()
    match = _UNTIL.match(source)
    if match:
        start, end = match.group(1).strip(), match.group(2).strip()
        if start == "0":
            return f"List.generate({end}, (i) => i)"
        return f"List.generate({end} - {start}, (i) => {start} + i)"
    match = _DOWN_TO.match(source)
    if match:
        start, end = match.group(1).strip(), match.group(2).strip()
        return f"List.generate({start} - {end} + 1, (i) => {start} - i)"
    match = _CLOSED_RANGE.match(source)
    if match:
        start, end = match.group(1).strip(), match.group(2).strip()
        if start == "0":
            return f"List.generate({end} + 1, (i) => i)"
        return f"List.generate({end} - {start} + 1, (i) => {start} + i)"
    match = _INDICES.match(source)
    if match:
        return f"List.generate({match.group(1)}.length, (i) => i)"
    return source


def _replace_calls(text: str, name: str, render: Callable[[list[str]], str]) -> str:
    """Replace every ``name(args)`` call by ``render(split args)``."""
    pattern = re.compile(rf"(?<![\w.]){re.escape(name)}\s*(?:<[^<>()]*(?:<[^<>()]*>)?[^<>()]*>)?\(")
    result = []
    pos = 0
    while True:
        match = pattern.search(text, pos)
        if match is None:
            result.append(text[pos:])
            return "".join(result)
        start = match.end() - 1
        depth = 0
        end = None
        for i in range(start, len(text)):
            if text[i] == "(":
                depth += 1
            elif text[i] == ")":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end is None:
            result.append(text[pos:])
            return "".join(result)
        args = split_top_level(text[start + 1 : end])
        result.append(text[pos : match.start()])
        result.append(render([rewrite_expression(a) for a in args]))
        pos = end + 1


def _map_entry(arg: str) -> str:
    parts = re.split(r"\s+to\s+", arg, maxsplit=1)
    if len(parts) == 2:
        return f"{parts[0]}: {parts[1]}"
    return arg


def rewrite_expression(text: str) -> str:
    """Rewrite a Kotlin expression into Dart."""
    if not text:
        return text
    result = convert_constants(text)
    for name in ("listOf", "mutableListOf", "arrayListOf", "arrayOf", "mutableStateListOf"):
        result = _replace_calls(result, name, lambda args: f"[{', '.join(args)}]")
    for name in ("setOf", "mutableSetOf", "hashSetOf"):
        result = _replace_calls(result, name, lambda args: f"{{{', '.join(args)}}}")
    for name in ("mapOf", "mutableMapOf", "hashMapOf", "mutableStateMapOf"):
        result = _replace_calls(
            result, name, lambda args: f"{{{', '.join(_map_entry(a) for a in args)}}}"
        )
    result = re.sub(r"\bemptyList\s*(?:<[^>]*>)?\(\)", "[]", result)
    result = re.sub(r"\bemptySet\s*(?:<[^>]*>)?\(\)", "{}", result)
    result = re.sub(r"\bemptyMap\s*(?:<[^>]*>)?\(\)", "{}", result)
    result = re.sub(r"\bprintln\(", "print(", result)
    result = result.replace("?:", "??").replace("!!", "!")
    result = re.sub(r"\.size\b", ".length", result)
    for kotlin, dart in _PROPERTY_CALLS.items():
        result = result.replace(kotlin, dart)
    result = re.sub(r"\.forEach\s*\{\s*(\w+)\s*->", r".forEach((\1) {", result)
    result = re.sub(r"\bthis@\w+", "this", result)
    return result


def rewrite_statement(text: str, type_mapper: TypeMapper | None = None) -> str:
    """Rewrite one Kotlin statement (without its trailing separator)."""
    statement = text.strip()
    header = _FOR_HEADER.match(statement)
    if header:
        variable, iterable, brace = header.groups()
        iterable = rewrite_iterable(rewrite_expression(iterable))
        return f"for (final {variable} in {iterable}) {brace}".rstrip()
    match = _LOCAL_DECLARATION.match(statement)
    if match:
        keyword, name, type_text, _, value = match.groups()
        dart_keyword = "final" if keyword == "val" else "var"
        declared = ""
        if type_text:
            mapper = type_mapper or TypeMapper()
            declared = f"{mapper.map(type_text.strip())} "
            if keyword == "var":
                dart_keyword = ""
        head = f"{dart_keyword} {declared}{name}".strip()
        if value is None:
            return head
        return f"{head} = {rewrite_expression(value.strip())}"
    return rewrite_expression(statement)


def _needs_semicolon(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.endswith((";", *_BLOCK_OPENERS)) or stripped.endswith("}"):
        return False
    return not stripped.startswith(_NO_SEMICOLON_START)


def rewrite_block(text: str, type_mapper: TypeMapper | None = None) -> list[str]:
    """
    Rewrite a Kotlin statement block into Dart lines.

    Lines are rewritten one by one; statements separated by ``;`` on one line
    are split first.
    """
    lines = []
    for raw_line in textwrap.dedent(text).strip("\n").split("\n"):
        leading = len(raw_line) - len(raw_line.lstrip())
        pieces = split_top_level(raw_line.strip(), ";") if ";" in raw_line else [raw_line.strip()]
        for piece in pieces:
            if not piece:
                continue
            rewritten = rewrite_statement(piece, type_mapper)
            if _needs_semicolon(rewritten):
                rewritten += ";"
            lines.append(" " * leading + rewritten)
    return _dedent(lines)


def _dedent(lines: list[str]) -> list[str]:
    margins = [len(line) - len(line.lstrip()) for line in lines if line.strip()]
    margin = min(margins) if margins else 0
    return [line[margin:] for line in lines]


def format_block(lines: list[str]) -> str:
    """Brace-delimited Dart block for the given lines."""
    if not lines:
        return "{}"
    return "{\n" + indent("\n".join(lines)) + "\n}"
