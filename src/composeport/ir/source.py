"""
Front-end input contract.

A SourceUnit is what an external parser hands to the pipeline: a package name,
its imports and a list of declarations whose function-like bodies are kept as
a small expression tree. Everything here is immutable and JSON-serializable,
so units can be produced by any parser and loaded from disk.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Node(BaseModel):
    """Base for frozen expression nodes."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(default="", description="Original source text of the node")


class LiteralKind(str, Enum):
    """Shapes of literal constants."""

    STRING = "string"
    INT = "int"
    DOUBLE = "double"
    BOOL = "bool"
    CHAR = "char"
    NULL = "null"


class Constant(_Node):
    kind: Literal["literal"] = "literal"
    literal_kind: LiteralKind
    value: str = ""


class NameRef(_Node):
    kind: Literal["name"] = "name"
    name: str


class Raw(_Node):
    """Anything the front-end could not (or did not need to) structure."""

    kind: Literal["raw"] = "raw"


class ValueArgument(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    value: Expression


class Lambda(_Node):
    kind: Literal["lambda"] = "lambda"
    parameters: tuple[str, ...] = ()
    body: Block = Field(default_factory=lambda: Block())


class Call(_Node):
    kind: Literal["call"] = "call"
    callee: str
    arguments: tuple[ValueArgument, ...] = ()
    trailing_lambda: Lambda | None = None
    type_arguments: tuple[str, ...] = ()


class Qualified(_Node):
    """`receiver.selector` (or `receiver?.selector` when safe)."""

    kind: Literal["qualified"] = "qualified"
    receiver: Expression
    selector: Expression
    safe: bool = False


class If(_Node):
    kind: Literal["if"] = "if"
    condition: str
    then_branch: Expression | None = None
    else_branch: Expression | None = None


class WhenEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    conditions: tuple[str, ...] = ()
    body: Expression | None = None
    is_else: bool = False


class When(_Node):
    kind: Literal["when"] = "when"
    subject: str | None = None
    entries: tuple[WhenEntry, ...] = ()


class For(_Node):
    kind: Literal["for"] = "for"
    variable: str | None = None
    iterable: str
    body: Expression | None = None


class While(_Node):
    kind: Literal["while"] = "while"
    condition: str
    body: Expression | None = None
    do_while: bool = False


class Try(_Node):
    kind: Literal["try"] = "try"
    body: Expression | None = None
    catch_count: int = 0
    has_finally: bool = False


class LocalProperty(_Node):
    """A local `val`/`var` binding inside a body."""

    kind: Literal["local_property"] = "local_property"
    name: str
    type: str | None = None
    initializer: Expression | None = None
    mutable: bool = False
    delegated: bool = False


class Block(_Node):
    kind: Literal["block"] = "block"
    statements: tuple[Expression, ...] = ()


Expression = Annotated[
    Union[
        Block,
        Call,
        Lambda,
        Qualified,
        NameRef,
        Constant,
        If,
        When,
        For,
        While,
        Try,
        LocalProperty,
        Raw,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# Declarations
# =============================================================================


class DeclarationKind(str, Enum):
    """Kinds of top-level or member declarations."""

    CLASS = "class"
    INTERFACE = "interface"
    OBJECT = "object"
    FUNCTION = "function"
    PROPERTY = "property"


class Parameter(BaseModel):
    """A function or primary-constructor parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = Field(default="Any", description="Type annotation as written")
    default_text: str | None = Field(default=None, description="Default value source text")
    is_property: bool = Field(default=False, description="Declared with val/var in a constructor")
    mutable: bool = False

    @property
    def nullable(self) -> bool:
        return self.type.strip().endswith("?")


class Declaration(BaseModel):
    """A class, interface, object, function or property declaration."""

    model_config = ConfigDict(frozen=True)

    kind: DeclarationKind
    name: str
    modifiers: tuple[str, ...] = ()
    annotations: tuple[str, ...] = ()
    super_types: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    type: str | None = Field(default=None, description="Return type or property type")
    members: tuple[Declaration, ...] = ()
    enum_entries: tuple[str, ...] = ()
    body: Expression | None = None
    body_text: str | None = None
    initializer: str | None = None
    mutable: bool = False
    start_line: int = 0
    end_line: int = 0

    @property
    def is_composable(self) -> bool:
        return any(
            a.lstrip("@").split("(")[0].split(".")[-1] == "Composable" for a in self.annotations
        )

    def has_modifier(self, modifier: str) -> bool:
        return modifier in self.modifiers


class SourceUnit(BaseModel):
    """One parsed source file."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Unit key, normally the path relative to the source root")
    package: str = ""
    imports: tuple[str, ...] = ()
    declarations: tuple[Declaration, ...] = ()
    text: str = Field(default="", description="Raw source text")

    @property
    def has_ui(self) -> bool:
        return any(
            d.kind == DeclarationKind.FUNCTION and d.is_composable for d in self.declarations
        )

    @property
    def line_count(self) -> int:
        if not self.text:
            return 0
        return len(self.text.splitlines())

    def qualify(self, name: str) -> str:
        return f"{self.package}.{name}" if self.package else name


for _model in (ValueArgument, Lambda, Call, Qualified, If, WhenEntry, When, For, While, Try,
               LocalProperty, Block, Declaration):
    _model.model_rebuild()


# =============================================================================
# Source reconstruction
# =============================================================================


def to_source(expr: Expression | None) -> str:
    """
    Return Kotlin-like source text for an expression.

    Prefers the text captured by the front-end; trees built by hand (or loaded
    from documents without text) are reconstructed from their structure.
    """
    if expr is None:
        return ""
    if expr.text:
        return expr.text

    if isinstance(expr, Constant):
        if expr.literal_kind == LiteralKind.STRING:
            return f'"{expr.value}"'
        if expr.literal_kind == LiteralKind.CHAR:
            return f"'{expr.value}'"
        if expr.literal_kind == LiteralKind.NULL:
            return "null"
        return expr.value
    if isinstance(expr, NameRef):
        return expr.name
    if isinstance(expr, Raw):
        return ""
    if isinstance(expr, Block):
        return "\n".join(to_source(s) for s in expr.statements)
    if isinstance(expr, Lambda):
        params = ", ".join(expr.parameters)
        body = to_source(expr.body)
        return f"{{ {params} -> {body} }}" if params else f"{{ {body} }}"
    if isinstance(expr, Call):
        args = []
        for arg in expr.arguments:
            value = to_source(arg.value)
            args.append(f"{arg.name} = {value}" if arg.name else value)
        type_args = f"<{', '.join(expr.type_arguments)}>" if expr.type_arguments else ""
        text = f"{expr.callee}{type_args}"
        if args or expr.trailing_lambda is None:
            text += f"({', '.join(args)})"
        if expr.trailing_lambda is not None:
            text += f" {to_source(expr.trailing_lambda)}"
        return text
    if isinstance(expr, Qualified):
        op = "?." if expr.safe else "."
        return f"{to_source(expr.receiver)}{op}{to_source(expr.selector)}"
    if isinstance(expr, If):
        text = f"if ({expr.condition}) {{ {to_source(expr.then_branch)} }}"
        if expr.else_branch is not None:
            text += f" else {{ {to_source(expr.else_branch)} }}"
        return text
    if isinstance(expr, When):
        head = f"when ({expr.subject})" if expr.subject else "when"
        entries = []
        for entry in expr.entries:
            cond = "else" if entry.is_else else ", ".join(entry.conditions)
            entries.append(f"{cond} -> {{ {to_source(entry.body)} }}")
        return f"{head} {{ {'; '.join(entries)} }}"
    if isinstance(expr, For):
        return f"for ({expr.variable or 'it'} in {expr.iterable}) {{ {to_source(expr.body)} }}"
    if isinstance(expr, While):
        if expr.do_while:
            return f"do {{ {to_source(expr.body)} }} while ({expr.condition})"
        return f"while ({expr.condition}) {{ {to_source(expr.body)} }}"
    if isinstance(expr, Try):
        return f"try {{ {to_source(expr.body)} }}"
    if isinstance(expr, LocalProperty):
        keyword = "var" if expr.mutable else "val"
        type_text = f": {expr.type}" if expr.type else ""
        if expr.initializer is None:
            return f"{keyword} {expr.name}{type_text}"
        op = "by" if expr.delegated else "="
        return f"{keyword} {expr.name}{type_text} {op} {to_source(expr.initializer)}"
    return ""
