"""
UI tree extractor.

Walks the body of a composable function and produces its structural UI tree:
widget calls, conditionals, ``when`` dispatch and loops, together with the
modifier chain of each widget and the reactive state declared in the body.

Every walk function returns a fresh list; nothing is accumulated in shared
state, so extraction of different units can run in parallel.
"""

import logging
import re

from composeport.ir.source import (
    Block,
    Call,
    Constant,
    Declaration,
    Expression,
    For,
    If,
    Lambda,
    LiteralKind,
    LocalProperty,
    NameRef,
    Qualified,
    Raw,
    Try,
    ValueArgument,
    When,
    While,
    to_source,
)
from composeport.ir.ui_tree import (
    ArgumentValue,
    BoolLiteral,
    Branch,
    CallValue,
    Closure,
    ComponentParameter,
    Conditional,
    DoubleLiteral,
    IntLiteral,
    Iteration,
    ModifierDirective,
    MultiBranch,
    NullValue,
    RawValue,
    Reference,
    StateFlavor,
    StateVariable,
    StringLiteral,
    UINode,
    UITree,
    Widget,
)
from composeport.knowledge.mappings import (
    KNOWN_WIDGETS,
    STATE_MARKER_TYPES,
    STATE_MARKERS,
    TRANSPARENT_SCOPES,
)
from composeport.knowledge.type_mapper import split_top_level

logger = logging.getLogger(__name__)

DEFAULT_LOOP_VARIABLE = "it"
ELSE_CONDITION = "true"
SKIPPED_ARGUMENTS = frozenset({"modifier", "content"})


def _balanced(text: str, start: int, open_ch: str, close_ch: str) -> str | None:
    """Text between the bracket at ``start`` and its matching close bracket."""
    if start >= len(text) or text[start] != open_ch:
        return None
    depth = 0
    in_string = False
    for i in range(start, len(text)):
        ch = text[i]
        if ch == '"' and (i == 0 or text[i - 1] != "\\"):
            in_string = not in_string
        if in_string:
            continue
        if ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return text[start + 1 : i]
    return None


def call_arguments(text: str, callee: str) -> str | None:
    """Argument text of the first ``callee(...)`` call in ``text``."""
    match = re.search(rf"\b{re.escape(callee)}\s*(?:<(?:[^<>()]|<[^<>()]*>)*>)?\s*\(", text)
    if match is None:
        return None
    return _balanced(text, match.end() - 1, "(", ")")


def lambda_body(text: str, callee: str) -> str | None:
    """Body text of the trailing lambda of the first ``callee { ... }`` call."""
    match = re.search(rf"\b{re.escape(callee)}\s*(?:\([^)]*\))?\s*\{{", text)
    if match is None:
        return None
    body = _balanced(text, match.end() - 1, "{", "}")
    return body.strip() if body is not None else None


def infer_literal_type(value: str) -> str | None:
    """Kotlin type of a literal by its shape, None when it cannot be told."""
    value = value.strip()
    if value in ("true", "false"):
        return "Boolean"
    if re.fullmatch(r"-?\d[\d_]*", value):
        return "Int"
    if re.fullmatch(r"-?\d[\d_]*L", value):
        return "Long"
    if re.fullmatch(r"-?\d+(\.\d+)?[fF]", value):
        return "Float"
    if re.fullmatch(r"-?\d+\.\d+", value):
        return "Double"
    if value.startswith('"') and value.endswith('"'):
        return "String"
    if re.match(r"(listOf|emptyList|mutableListOf)\b", value):
        return "List"
    if re.match(r"(mapOf|emptyMap|mutableMapOf)\b", value):
        return "Map"
    if re.match(r"(setOf|emptySet|mutableSetOf)\b", value):
        return "Set"
    return None


def _collection_flavor(text: str, flavor: StateFlavor) -> StateFlavor:
    """Collection shape of a cell; a persisted cell takes the shape of the cell it saves."""
    if flavor == StateFlavor.PERSISTED:
        if re.search(r"\bmutableStateListOf\b", text):
            return StateFlavor.LIST_CELL
        if re.search(r"\bmutableStateMapOf\b", text):
            return StateFlavor.MAP_CELL
    return flavor


def _parse_int(value: str) -> int | None:
    text = value.replace("_", "").rstrip("lL").rstrip("uU")
    try:
        if text.lower().startswith("0x"):
            return int(text, 16)
        if text.lower().startswith("0b"):
            return int(text, 2)
        return int(text)
    except ValueError:
        return None


def _parse_float(value: str) -> float | None:
    try:
        return float(value.replace("_", "").rstrip("fFdD"))
    except ValueError:
        return None


class UITreeExtractor:
    """Extracts UI trees from composable declarations."""

    def __init__(
        self,
        known_widgets: frozenset[str] = KNOWN_WIDGETS,
        transparent_scopes: frozenset[str] = TRANSPARENT_SCOPES,
    ):
        self.known_widgets = known_widgets
        self.transparent_scopes = transparent_scopes

    def extract(self, declaration: Declaration) -> UITree:
        """Extract the UI tree, parameters and state of one composable."""
        parameters = tuple(
            ComponentParameter(name=p.name, type=p.type, default_text=p.default_text)
            for p in declaration.parameters
        )
        return UITree(
            component=declaration.name,
            roots=tuple(self.extract_nodes(declaration.body)),
            parameters=parameters,
            state=tuple(self.extract_state(declaration.body)),
        )

    # =========================================================================
    # Node extraction
    # =========================================================================

    def is_widget(self, callee: str) -> bool:
        name = callee.rsplit(".", 1)[-1]
        if name in self.transparent_scopes:
            return False
        return name[:1].isupper() or name in self.known_widgets

    def extract_nodes(self, expr: Expression | None) -> list[UINode]:
        """UI nodes produced by an expression, in source order."""
        if expr is None:
            return []
        if isinstance(expr, Block):
            nodes: list[UINode] = []
            for statement in expr.statements:
                nodes.extend(self.extract_nodes(statement))
            return nodes
        if isinstance(expr, Call):
            return self._extract_call(expr)
        if isinstance(expr, Qualified):
            return self.extract_nodes(expr.selector)
        if isinstance(expr, If):
            return self._extract_if(expr)
        if isinstance(expr, When):
            return self._extract_when(expr)
        if isinstance(expr, For):
            return self._extract_for(expr)
        if isinstance(expr, (Lambda, NameRef, Constant, LocalProperty, While, Try, Raw)):
            return []
        return []

    def _extract_call(self, call: Call) -> list[UINode]:
        name = call.callee.rsplit(".", 1)[-1]
        if name in self.transparent_scopes:
            if call.trailing_lambda is None:
                return []
            return self.extract_nodes(call.trailing_lambda.body)
        if self.is_widget(call.callee):
            return [self.build_widget(call)]
        return []

    def build_widget(self, call: Call) -> Widget:
        modifier_arg = self._modifier_argument(call.arguments)
        arguments: dict[str, ArgumentValue] = {}
        slots: dict[str, tuple[UINode, ...]] = {}
        children: list[UINode] = []

        for index, argument in enumerate(call.arguments):
            if argument is modifier_arg:
                continue
            if argument.name == "content":
                if isinstance(argument.value, Lambda):
                    children.extend(self.extract_nodes(argument.value.body))
                continue
            if argument.name in SKIPPED_ARGUMENTS:
                continue
            key = argument.name or f"arg{index}"
            arguments[key] = self.classify_argument(argument.value)
            if argument.name and isinstance(argument.value, Lambda):
                slot_nodes = self.extract_nodes(argument.value.body)
                if slot_nodes:
                    slots[argument.name] = tuple(slot_nodes)

        closure_parameters: tuple[str, ...] = ()
        if call.trailing_lambda is not None:
            children.extend(self.extract_nodes(call.trailing_lambda.body))
            closure_parameters = call.trailing_lambda.parameters

        return Widget(
            name=call.callee.rsplit(".", 1)[-1],
            arguments=arguments,
            modifiers=tuple(self.extract_modifiers(modifier_arg.value)) if modifier_arg else (),
            children=tuple(children),
            closure_parameters=closure_parameters,
            slots=slots,
        )

    def _extract_if(self, expr: If) -> list[UINode]:
        then_nodes = self.extract_nodes(expr.then_branch)
        else_nodes = self.extract_nodes(expr.else_branch)
        if not then_nodes and not else_nodes:
            return []
        return [
            Conditional(
                condition=expr.condition.strip(),
                then_branch=tuple(then_nodes),
                else_branch=tuple(else_nodes),
            )
        ]

    def _extract_when(self, expr: When) -> list[UINode]:
        branches = []
        for entry in expr.entries:
            if entry.is_else or not entry.conditions:
                condition = ELSE_CONDITION
            else:
                condition = ", ".join(c.strip() for c in entry.conditions)
            branches.append(
                Branch(
                    condition=condition,
                    nodes=tuple(self.extract_nodes(entry.body)),
                    is_else=entry.is_else,
                )
            )
        if not any(branch.nodes for branch in branches):
            return []
        subject = expr.subject.strip() if expr.subject else None
        return [MultiBranch(subject=subject or None, branches=tuple(branches))]

    def _extract_for(self, expr: For) -> list[UINode]:
        children = self.extract_nodes(expr.body)
        if not children:
            return []
        return [
            Iteration(
                variable=expr.variable or DEFAULT_LOOP_VARIABLE,
                source=expr.iterable.strip(),
                children=tuple(children),
            )
        ]

    # =========================================================================
    # Arguments
    # =========================================================================

    def classify_argument(self, expr: Expression | None) -> ArgumentValue:
        """Classify an argument expression into one ArgumentValue variant."""
        if expr is None:
            return NullValue()
        if isinstance(expr, Constant):
            return self._classify_constant(expr)
        if isinstance(expr, NameRef):
            return Reference(name=expr.name)
        if isinstance(expr, Qualified):
            return Reference(name=to_source(expr))
        if isinstance(expr, Call):
            raw_args = [self._raw_argument(a) for a in expr.arguments]
            if expr.trailing_lambda is not None:
                raw_args.append(to_source(expr.trailing_lambda))
            return CallValue(name=expr.callee, raw_args=tuple(raw_args))
        if isinstance(expr, Lambda):
            return Closure(text=to_source(expr))
        return RawValue(text=to_source(expr))

    @staticmethod
    def _raw_argument(argument: ValueArgument) -> str:
        value = to_source(argument.value)
        return f"{argument.name} = {value}" if argument.name else value

    @staticmethod
    def _classify_constant(expr: Constant) -> ArgumentValue:
        kind = expr.literal_kind
        if kind in (LiteralKind.STRING, LiteralKind.CHAR):
            return StringLiteral(value=expr.value)
        if kind == LiteralKind.INT:
            parsed = _parse_int(expr.value)
            return IntLiteral(value=parsed) if parsed is not None else RawValue(text=expr.value)
        if kind == LiteralKind.DOUBLE:
            parsed_float = _parse_float(expr.value)
            if parsed_float is None:
                return RawValue(text=expr.value)
            return DoubleLiteral(value=parsed_float)
        if kind == LiteralKind.BOOL:
            return BoolLiteral(value=expr.value.strip() == "true")
        if kind == LiteralKind.NULL:
            return NullValue()
        return RawValue(text=to_source(expr))

    # =========================================================================
    # Modifiers
    # =========================================================================

    @staticmethod
    def _modifier_argument(arguments: tuple[ValueArgument, ...]) -> ValueArgument | None:
        for argument in arguments:
            if argument.name == "modifier":
                return argument
        for argument in arguments:
            if argument.name is None and to_source(argument.value).lstrip().startswith("Modifier"):
                return argument
        return None

    def extract_modifiers(self, expr: Expression | None) -> list[ModifierDirective]:
        """
        Directives of a modifier chain in chain-walk order.

        The chain root (``Modifier`` or a ``modifier`` parameter) is not a
        directive.
        """
        if not isinstance(expr, Qualified):
            return []
        directives = self.extract_modifiers(expr.receiver)
        selector = expr.selector
        if isinstance(selector, Call):
            directives.append(self._directive(selector))
        return directives

    @staticmethod
    def _directive(call: Call) -> ModifierDirective:
        arguments: dict[str, str] = {}
        for index, argument in enumerate(call.arguments):
            arguments[argument.name or f"arg{index}"] = to_source(argument.value)
        if call.trailing_lambda is not None:
            arguments[f"arg{len(call.arguments)}"] = to_source(call.trailing_lambda)
        return ModifierDirective(name=call.callee, arguments=arguments)

    # =========================================================================
    # State
    # =========================================================================

    def extract_state(self, body: Expression | None) -> list[StateVariable]:
        """Reactive state cells bound directly in the body."""
        if body is None:
            return []
        statements = body.statements if isinstance(body, Block) else (body,)
        state = []
        for statement in statements:
            if isinstance(statement, LocalProperty) and statement.initializer is not None:
                variable = self.state_variable(statement)
                if variable is not None:
                    state.append(variable)
        return state

    def state_variable(self, binding: LocalProperty) -> StateVariable | None:
        text = to_source(binding.initializer)
        marker, flavor = self._match_marker(text)
        if marker is None:
            return None

        flavor_enum = StateFlavor(flavor)
        initial, source = self._initial_value(text, marker, flavor_enum)
        return StateVariable(
            name=binding.name,
            type=self._state_type(binding, text, marker, flavor_enum, initial),
            flavor=flavor_enum,
            initializer=initial,
            source=source,
        )

    @staticmethod
    def _match_marker(text: str) -> tuple[str | None, str]:
        for marker, flavor in STATE_MARKERS:
            if re.search(rf"\b{marker}\b", text):
                return marker, flavor
        return None, ""

    def _initial_value(
        self, text: str, marker: str, flavor: StateFlavor
    ) -> tuple[str, str | None]:
        if flavor == StateFlavor.DERIVED:
            return lambda_body(text, "derivedStateOf") or "", None

        if flavor == StateFlavor.STREAM_PROJECTED:
            args = call_arguments(text, marker) or ""
            initial = "null"
            for arg in split_top_level(args):
                name, _, value = arg.partition("=")
                if value and name.strip() in ("initial", "initialValue"):
                    initial = value.strip()
                    break
                if not value:
                    initial = arg.strip()
                    break
            source = None
            if marker != "produceState":
                head = text.split(f".{marker}", 1)[0].strip()
                source = head or None
            return initial, source

        if flavor == StateFlavor.PERSISTED:
            # rememberSaveable { mutableStateOf(x) } or rememberSaveable { x }
            for inner_marker, inner_flavor in STATE_MARKERS:
                if inner_flavor != "persisted" and call_arguments(text, inner_marker) is not None:
                    args = (call_arguments(text, inner_marker) or "").strip()
                    if _collection_flavor(text, flavor) != flavor:
                        # Kept as a collection call so it renders as a literal
                        return f"{inner_marker}({args})", None
                    return args, None
            return (lambda_body(text, "rememberSaveable") or "").strip(), None

        return (call_arguments(text, marker) or "").strip(), None

    @staticmethod
    def _state_type(
        binding: LocalProperty, text: str, marker: str, flavor: StateFlavor, initial: str
    ) -> str | None:
        if binding.type:
            declared = binding.type.strip()
            wrapper = re.fullmatch(r"(?:Mutable)?State<(.+)>", declared)
            return wrapper.group(1) if wrapper else declared

        generic = re.search(
            r"\b(?:mutable\w*Of|derivedStateOf|collectAsState\w*)<(.+?)>\s*[({]", text
        )
        shape = _collection_flavor(text, flavor)
        if shape == StateFlavor.LIST_CELL:
            return f"List<{generic.group(1)}>" if generic else "List"
        if shape == StateFlavor.MAP_CELL:
            return f"Map<{generic.group(1)}>" if generic else "Map"
        if generic:
            return generic.group(1)
        if marker in STATE_MARKER_TYPES:
            return STATE_MARKER_TYPES[marker]
        return infer_literal_type(initial)
