"""
Argument rendering.

Mirrors the extractor's argument classification: literals are quoted per kind,
references and raw text go through constant rewriting, nested calls keep
their (mapped) callee and closures become Dart callbacks. Callbacks that
assign a captured state variable are wrapped in ``setState``.
"""

import re
from typing import assert_never

from composeport.ir.ui_tree import (
    ArgumentValue,
    BoolLiteral,
    CallValue,
    Closure,
    DoubleLiteral,
    IntLiteral,
    NullValue,
    RawValue,
    Reference,
    StringLiteral,
)
from composeport.knowledge.dart_syntax import dart_string, indent
from composeport.knowledge.type_mapper import TypeMapper, split_top_level
from composeport.translator.body_rewriter import rewrite_block, rewrite_expression

# Callback parameters whose lambdas receive one value
SINGLE_VALUE_CALLBACKS = frozenset(
    {"onValueChange", "onCheckedChange", "onSelectedChange", "onValueChangeFinished", "onTextLayout"}
)
_MUTATING_CALLS = ("add", "addAll", "remove", "removeAt", "removeAll", "clear", "put", "set", "sort")
_ASSIGNMENT = r"(?:\+\+|--|[+\-*/%]?=(?!=))"
_STATEMENT_STARTS = ("final ", "var ", "return", "if ", "if(", "for ", "for(", "while", "try")
_CLOSURE_HEADER = re.compile(
    r"\(?\s*\w+(?:\s*:\s*[\w<>?.]+)?(?:\s*,\s*\w+(?:\s*:\s*[\w<>?.]+)?)*\s*\)?\s*"
)


def split_closure(text: str) -> tuple[tuple[str, ...], str]:
    """Split ``{ a, b -> body }`` into its parameter names and body text."""
    body = text.strip()
    if body.startswith("{") and body.endswith("}"):
        body = body[1:-1].strip()
    header, arrow, rest = body.partition("->")
    if arrow and _CLOSURE_HEADER.fullmatch(header.strip()):
        names = []
        for part in split_top_level(header.strip().strip("()")):
            names.append(part.split(":", 1)[0].strip())
        return tuple(n for n in names if n), rest.strip()
    return (), body


class ArgumentRenderer:
    """Renders ArgumentValues and closures for one component."""

    def __init__(self, type_mapper: TypeMapper | None = None, state_names: frozenset[str] = frozenset()):
        self.type_mapper = type_mapper or TypeMapper()
        self.state_names = state_names
        self._value_access = (
            re.compile(rf"\b({'|'.join(map(re.escape, sorted(state_names)))})\.value\b")
            if state_names
            else None
        )

    def render(self, value: ArgumentValue, parameter: str | None = None) -> str:
        """Render one argument value; ``parameter`` is the source argument name."""
        if isinstance(value, StringLiteral):
            return self.string(value.value)
        if isinstance(value, IntLiteral):
            return str(value.value)
        if isinstance(value, DoubleLiteral):
            return repr(float(value.value))
        if isinstance(value, BoolLiteral):
            return "true" if value.value else "false"
        if isinstance(value, Reference):
            return self.expression(value.name)
        if isinstance(value, CallValue):
            return self.call(value)
        if isinstance(value, Closure):
            return self.callback(value.text, arity=1 if parameter in SINGLE_VALUE_CALLBACKS else None)
        if isinstance(value, RawValue):
            return self.expression(value.text)
        if isinstance(value, NullValue):
            return "null"
        assert_never(value)

    def string(self, value: str) -> str:
        return dart_string(self._drop_value_access(value))

    def expression(self, text: str) -> str:
        return rewrite_expression(self._drop_value_access(text.strip()))

    def call(self, value: CallValue) -> str:
        callee = value.name
        if self.type_mapper.is_known_widget(callee):
            callee = self.type_mapper.widget_name(callee)
        args = []
        for raw in value.raw_args:
            name, sep, rest = raw.partition("=")
            if sep and re.fullmatch(r"\s*\w+\s*", name) and not rest.startswith("="):
                args.append(f"{name.strip()}: {self.expression(rest)}")
            elif raw.strip().startswith("{"):
                args.append(self.callback(raw))
            else:
                args.append(self.expression(raw))
        return f"{self.expression(callee)}({', '.join(args)})"

    # =========================================================================
    # Callbacks
    # =========================================================================

    def callback(self, text: str, arity: int | None = None) -> str:
        """
        Closure text to a Dart callback.

        ``{ }`` becomes ``() {}``, a single expression becomes ``() => expr``
        and anything touching state is wrapped in ``setState``. Function
        references (``::save``) and callback variables pass through.
        """
        stripped = text.strip()
        if not stripped.startswith("{"):
            return self.expression(stripped.removeprefix("::"))

        params, body = split_closure(stripped)
        if not params:
            uses_it = re.search(r"\bit\b", body) is not None
            if arity == 1 or (arity is None and uses_it):
                params = ("it",)
        head = f"({', '.join(params)})"

        lines = rewrite_block(self._drop_value_access(body), self.type_mapper) if body else []
        if not lines:
            return f"{head} {{}}"

        if self.mutates_state(body):
            inner = indent("\n".join(lines), 2)
            return f"{head} {{\n{indent('setState(() {')}\n{inner}\n{indent('});')}\n}}"
        if len(lines) == 1 and lines[0].endswith(";") and not lines[0].startswith(_STATEMENT_STARTS):
            return f"{head} => {lines[0][:-1]}"
        block = "\n".join(lines)
        return f"{head} {{\n{indent(block)}\n}}"

    def mutates_state(self, body: str) -> bool:
        """True when the body assigns or mutates a captured state variable."""
        for name in self.state_names:
            target = rf"\b{re.escape(name)}(?:\.value)?(?:\[[^\]]*\])?"
            if re.search(rf"{target}\s*{_ASSIGNMENT}", body):
                return True
            if re.search(rf"(?:\+\+|--){re.escape(name)}\b", body):
                return True
            if re.search(rf"\b{re.escape(name)}\.(?:{'|'.join(_MUTATING_CALLS)})\(", body):
                return True
        return False

    def _drop_value_access(self, text: str) -> str:
        if self._value_access is None:
            return text
        return self._value_access.sub(r"\1", text)
