"""
Symbol index.

Project-wide catalogue of which unit defines which class or function, and of
the type names each unit refers to. The dependency graph builder resolves
imports and type references against it.
"""

import logging
import re
from typing import Iterable

from composeport.config.models import SymbolConflict
from composeport.ir.source import Declaration, DeclarationKind, SourceUnit, to_source
from composeport.knowledge.mappings import BUILTIN_TYPES, COMPOSE_KEYWORDS
from composeport.knowledge.type_mapper import parse_type

logger = logging.getLogger(__name__)

# Capitalized identifier immediately followed by a call or generic-open token
_BODY_TYPE_PATTERN = re.compile(r"\b([A-Z][a-zA-Z0-9_]*)\s*[(<]")

EXCLUDED_TYPES = BUILTIN_TYPES | COMPOSE_KEYWORDS


def _type_names(type_text: str | None) -> list[str]:
    """Capitalized names in a type annotation, generic parameters included."""
    if not type_text:
        return []
    text = type_text.strip()
    if "->" in text:
        # Function types: collect from every part
        names = []
        for part in re.split(r"->|[(),]", text):
            if ":" in part:
                part = part.split(":", 1)[1]
            names.extend(_type_names(part))
        return names

    descriptor = parse_type(text.removeprefix("@Composable").strip())
    names = []
    base = descriptor.base.rsplit(".", 1)[-1]
    if base[:1].isupper():
        names.append(base)
    for generic in descriptor.generics:
        names.extend(_type_names(generic.render()))
    return names


def _super_type_name(super_type: str) -> str:
    """``BaseViewModel<State>(repo)`` -> ``BaseViewModel``."""
    return super_type.split("<", 1)[0].split("(", 1)[0].strip().rsplit(".", 1)[-1]


def _body_text(declaration: Declaration) -> str:
    if declaration.body_text:
        return declaration.body_text
    return to_source(declaration.body)


def collect_referenced_types(unit: SourceUnit) -> list[str]:
    """
    Type names a unit refers to, in first-seen order.

    Built-in and UI-primitive names are excluded.
    """
    seen: dict[str, None] = {}

    def add(names: Iterable[str]) -> None:
        for name in names:
            if name and name not in EXCLUDED_TYPES:
                seen.setdefault(name, None)

    def visit(declaration: Declaration) -> None:
        add(_super_type_name(s) for s in declaration.super_types)
        add(_type_names(declaration.type))
        for parameter in declaration.parameters:
            add(_type_names(parameter.type))
        if declaration.kind == DeclarationKind.FUNCTION:
            add(_BODY_TYPE_PATTERN.findall(_body_text(declaration)))
        if declaration.kind == DeclarationKind.PROPERTY and declaration.initializer:
            add(_BODY_TYPE_PATTERN.findall(declaration.initializer))
        for member in declaration.members:
            visit(member)

    for declaration in unit.declarations:
        visit(declaration)

    return list(seen)


class SymbolIndex:
    """
    Maps defined symbol names to the unit that owns them.

    Classes and functions are registered under their short name and their
    package-qualified name. When two units define the same name the unit
    registered last owns it; every such collision is recorded in
    ``conflicts``.
    """

    def __init__(self):
        self.symbols: dict[str, str] = {}
        self.conflicts: list[SymbolConflict] = []
        self.referenced_types: dict[str, list[str]] = {}
        self.units: dict[str, SourceUnit] = {}

    def build(self, units: Iterable[SourceUnit]) -> "SymbolIndex":
        """Register every unit in the given order."""
        for unit in units:
            self.register_unit(unit)
        return self

    def register_unit(self, unit: SourceUnit) -> None:
        self.units[unit.path] = unit
        for declaration in unit.declarations:
            if declaration.kind == DeclarationKind.PROPERTY:
                continue
            self._register(declaration.name, unit.path)
            qualified = unit.qualify(declaration.name)
            if qualified != declaration.name:
                self._register(qualified, unit.path)
        self.referenced_types[unit.path] = collect_referenced_types(unit)

    def _register(self, symbol: str, unit_path: str) -> None:
        previous = self.symbols.get(symbol)
        if previous is not None and previous != unit_path:
            logger.warning(
                f"Symbol '{symbol}' defined in both {previous} and {unit_path}; using {unit_path}"
            )
            self.conflicts.append(
                SymbolConflict(symbol=symbol, previous_unit=previous, winning_unit=unit_path)
            )
        self.symbols[symbol] = unit_path

    # =========================================================================
    # Lookup
    # =========================================================================

    def find_unit_for(self, import_path: str) -> str | None:
        """
        Resolve an import path (or bare type name) to its defining unit.

        Tries an exact match, then a wildcard import against qualified names,
        then the import's trailing identifier.
        """
        path = import_path.strip()
        if " as " in path:
            path = path.split(" as ", 1)[0].strip()
        if not path:
            return None

        if path in self.symbols:
            return self.symbols[path]

        if path.endswith(".*"):
            prefix = path[:-2] + "."
            for symbol, unit_path in self.symbols.items():
                if symbol.startswith(prefix):
                    return unit_path
            return None

        trailing = path.rsplit(".", 1)[-1]
        return self.symbols.get(trailing)

    def defined_in(self, unit_path: str) -> list[str]:
        return [symbol for symbol, owner in self.symbols.items() if owner == unit_path]

    def referenced_by(self, unit_path: str) -> list[str]:
        return list(self.referenced_types.get(unit_path, []))