"""
Conversion scheduler.

Derives the conversion order, cycle diagnostics, complexity scores and
per-unit tasks from the dependency graph.
"""

import logging
import re
from collections import deque
from typing import Iterable

import networkx as nx

from composeport.config.models import ConversionTask, Priority, ScheduleResult
from composeport.ir.source import (
    Block,
    Call,
    Constant,
    Declaration,
    DeclarationKind,
    Expression,
    For,
    If,
    Lambda,
    LocalProperty,
    NameRef,
    Qualified,
    Raw,
    SourceUnit,
    Try,
    When,
    While,
)

logger = logging.getLogger(__name__)

DEFAULT_AI_THRESHOLD = 20

CLASS_WEIGHT = 5
FUNCTION_WEIGHT = 2
COMPOSABLE_WEIGHT = 3
PROPERTY_WEIGHT = 1

_BRANCH_KEYWORDS = re.compile(r"\b(if|for|while|catch)\b")
_WHEN_ENTRY = re.compile(r"->")


def cyclomatic(expr: Expression | None) -> int:
    """Branches, loops and exception handlers in an expression tree."""
    if expr is None:
        return 0
    if isinstance(expr, Block):
        return sum(cyclomatic(s) for s in expr.statements)
    if isinstance(expr, If):
        return 1 + cyclomatic(expr.then_branch) + cyclomatic(expr.else_branch)
    if isinstance(expr, When):
        return len(expr.entries) + sum(cyclomatic(e.body) for e in expr.entries)
    if isinstance(expr, (For, While)):
        return 1 + cyclomatic(expr.body)
    if isinstance(expr, Try):
        return 1 + expr.catch_count + cyclomatic(expr.body)
    if isinstance(expr, Lambda):
        return cyclomatic(expr.body)
    if isinstance(expr, Call):
        total = sum(cyclomatic(a.value) for a in expr.arguments)
        return total + cyclomatic(expr.trailing_lambda)
    if isinstance(expr, Qualified):
        return cyclomatic(expr.receiver) + cyclomatic(expr.selector)
    if isinstance(expr, LocalProperty):
        return cyclomatic(expr.initializer)
    if isinstance(expr, (NameRef, Constant, Raw)):
        return 0
    return 0


def _text_cyclomatic(text: str) -> int:
    """Keyword-count fallback for bodies only available as text."""
    count = len(_BRANCH_KEYWORDS.findall(text))
    if re.search(r"\bwhen\b", text):
        count += len(_WHEN_ENTRY.findall(text))
    return count


def declaration_complexity(declaration: Declaration) -> int:
    kind = declaration.kind
    if kind in (DeclarationKind.CLASS, DeclarationKind.INTERFACE, DeclarationKind.OBJECT):
        score = CLASS_WEIGHT + len(declaration.members)
        for member in declaration.members:
            score += _body_complexity(member)
        return score
    if kind == DeclarationKind.FUNCTION:
        score = FUNCTION_WEIGHT + (COMPOSABLE_WEIGHT if declaration.is_composable else 0)
        return score + _body_complexity(declaration)
    return PROPERTY_WEIGHT


def _body_complexity(declaration: Declaration) -> int:
    if declaration.body is not None:
        return cyclomatic(declaration.body)
    if declaration.body_text:
        return _text_cyclomatic(declaration.body_text)
    return 0


def unit_complexity(unit: SourceUnit) -> int:
    return sum(declaration_complexity(d) for d in unit.declarations)


class ConversionScheduler:
    """Orders units for conversion and flags those needing AI assistance."""

    def __init__(self, graph: nx.DiGraph, ai_threshold: int = DEFAULT_AI_THRESHOLD):
        self.graph = graph
        self.ai_threshold = ai_threshold

    def topological_order(self) -> list[str]:
        """
        Dependencies-first order: for every edge A -> B, B comes before A.

        Kahn's algorithm runs over the condensation of the graph, so each
        dependency cycle is scheduled as one block and every edge outside a
        cycle is respected. Inside a block units keep registration order.
        The dependents-first sequence is reversed at the end.
        """
        position = {node: index for index, node in enumerate(self.graph.nodes)}
        condensed = nx.condensation(self.graph)
        component_of = condensed.graph["mapping"]
        members = {
            component: sorted(condensed.nodes[component]["members"], key=position.__getitem__)
            for component in condensed.nodes
        }

        in_degree = {component: condensed.in_degree(component) for component in condensed.nodes}
        seeds = sorted(
            (component for component in condensed.nodes if in_degree[component] == 0),
            key=lambda component: position[members[component][0]],
        )
        queue = deque(seeds)
        dependents_first: list[str] = []

        while queue:
            component = queue.popleft()
            block = members[component]
            if len(block) > 1:
                logger.debug(f"Scheduling dependency cycle as one block: {', '.join(block)}")
            dependents_first.extend(block)
            released: list[int] = []
            for node in block:
                for dependency in self.graph.successors(node):
                    target = component_of[dependency]
                    if target != component and target not in released:
                        released.append(target)
            for target in released:
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    queue.append(target)

        return list(reversed(dependents_first))

    def detect_cycles(self) -> list[list[str]]:
        """
        Depth-first search with a recursion stack.

        Each back-edge yields the path from the repeated unit around to the
        closing edge, e.g. ``[A, B, C, A]``.
        """
        visited: set[str] = set()
        on_stack: set[str] = set()
        path: list[str] = []
        cycles: list[list[str]] = []

        def visit(node: str) -> None:
            visited.add(node)
            on_stack.add(node)
            path.append(node)
            for dependency in self.graph.successors(node):
                if dependency not in visited:
                    visit(dependency)
                elif dependency in on_stack:
                    start = path.index(dependency)
                    cycles.append(path[start:] + [dependency])
            path.pop()
            on_stack.discard(node)

        for node in self.graph.nodes:
            if node not in visited:
                visit(node)
        return cycles

    def priority(self, unit: SourceUnit) -> Priority:
        if self.graph.out_degree(unit.path) == 0:
            return Priority.HIGH
        if unit.has_ui:
            return Priority.MEDIUM
        return Priority.LOW

    def create_task(self, unit: SourceUnit, complexity: int) -> ConversionTask:
        dependencies = tuple(self.graph.successors(unit.path))
        return ConversionTask(
            unit_path=unit.path,
            priority=self.priority(unit),
            dependency_count=len(dependencies),
            complexity=complexity,
            requires_ai=complexity > self.ai_threshold or unit.has_ui,
            dependencies=dependencies,
        )

    def schedule(self, units: Iterable[SourceUnit]) -> ScheduleResult:
        """
        Build the full schedule.

        Tasks follow the topological order, then are stably sorted by
        (priority, dependency count, complexity).
        """
        by_path = {unit.path: unit for unit in units}
        order = [path for path in self.topological_order() if path in by_path]
        scores = {path: unit_complexity(by_path[path]) for path in order}

        tasks = [self.create_task(by_path[path], scores[path]) for path in order]
        tasks.sort(key=lambda t: (t.priority, t.dependency_count, t.complexity))

        cycles = self.detect_cycles()
        for cycle in cycles:
            logger.warning(f"Circular dependency: {' -> '.join(cycle)}")

        return ScheduleResult(order=order, tasks=tasks, cycles=cycles, complexity_scores=scores)
