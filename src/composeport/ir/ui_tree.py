"""
Structural UI tree.

Produced by the UI extractor from a composable body and consumed by the code
generator. Node and argument kinds are closed tagged unions; consumers branch
with isinstance and end every chain with ``assert_never`` so a new kind cannot
slip through unhandled.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# =============================================================================
# Argument values
# =============================================================================


class StringLiteral(_Frozen):
    kind: Literal["string"] = "string"
    value: str


class IntLiteral(_Frozen):
    kind: Literal["int"] = "int"
    value: int


class DoubleLiteral(_Frozen):
    kind: Literal["double"] = "double"
    value: float


class BoolLiteral(_Frozen):
    kind: Literal["bool"] = "bool"
    value: bool


class Reference(_Frozen):
    kind: Literal["reference"] = "reference"
    name: str


class CallValue(_Frozen):
    kind: Literal["call"] = "call"
    name: str
    raw_args: tuple[str, ...] = ()


class Closure(_Frozen):
    kind: Literal["closure"] = "closure"
    text: str


class RawValue(_Frozen):
    kind: Literal["raw"] = "raw"
    text: str


class NullValue(_Frozen):
    kind: Literal["null"] = "null"


ArgumentValue = Annotated[
    Union[
        StringLiteral,
        IntLiteral,
        DoubleLiteral,
        BoolLiteral,
        Reference,
        CallValue,
        Closure,
        RawValue,
        NullValue,
    ],
    Field(discriminator="kind"),
]


# =============================================================================
# Modifiers and state
# =============================================================================


class ModifierDirective(_Frozen):
    """One call of a styling chain, e.g. ``padding(horizontal = 8.dp)``."""

    name: str
    arguments: dict[str, str] = Field(
        default_factory=dict, description="Argument name (or argN for positional) -> raw text"
    )


class StateFlavor(str, Enum):
    """Kinds of reactive state cells."""

    PLAIN = "plain"
    PERSISTED = "persisted"
    LIST_CELL = "listCell"
    MAP_CELL = "mapCell"
    DERIVED = "derived"
    STREAM_PROJECTED = "streamProjected"


class StateVariable(_Frozen):
    name: str
    type: str | None = Field(default=None, description="Declared or inferred type; None if untyped")
    flavor: StateFlavor = StateFlavor.PLAIN
    initializer: str = ""
    source: str | None = Field(
        default=None, description="Stream expression a streamProjected cell is collected from"
    )


class ComponentParameter(_Frozen):
    name: str
    type: str = "Any"
    default_text: str | None = None

    @property
    def nullable(self) -> bool:
        return self.type.strip().endswith("?")

    @property
    def required(self) -> bool:
        return self.default_text is None and not self.nullable


# =============================================================================
# UI nodes
# =============================================================================


class Widget(_Frozen):
    kind: Literal["widget"] = "widget"
    name: str
    arguments: dict[str, ArgumentValue] = Field(default_factory=dict)
    modifiers: tuple[ModifierDirective, ...] = ()
    children: tuple[UINode, ...] = ()
    closure_parameters: tuple[str, ...] = ()
    slots: dict[str, tuple[UINode, ...]] = Field(
        default_factory=dict, description="Named composable lambda arguments (topBar, label, ...)"
    )


class Conditional(_Frozen):
    kind: Literal["conditional"] = "conditional"
    condition: str
    then_branch: tuple[UINode, ...] = ()
    else_branch: tuple[UINode, ...] = ()


class Branch(_Frozen):
    condition: str
    nodes: tuple[UINode, ...] = ()
    is_else: bool = False


class MultiBranch(_Frozen):
    kind: Literal["multi_branch"] = "multi_branch"
    subject: str | None = None
    branches: tuple[Branch, ...] = ()


class Iteration(_Frozen):
    kind: Literal["iteration"] = "iteration"
    variable: str
    source: str
    children: tuple[UINode, ...] = ()


UINode = Annotated[
    Union[Widget, Conditional, MultiBranch, Iteration],
    Field(discriminator="kind"),
]


class UITree(_Frozen):
    """Everything extracted from one composable function."""

    component: str
    roots: tuple[UINode, ...] = ()
    parameters: tuple[ComponentParameter, ...] = ()
    state: tuple[StateVariable, ...] = ()

    @property
    def is_stateful(self) -> bool:
        return len(self.state) > 0


for _model in (Widget, Conditional, Branch, MultiBranch, Iteration, UITree):
    _model.model_rebuild()
