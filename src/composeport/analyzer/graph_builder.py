"""
Dependency graph builder.

Resolves each unit's imports and referenced type names against the symbol
index and builds a directed graph of units. An edge A -> B means unit A
depends on unit B.
"""

import logging
from pathlib import Path
from typing import Iterable

import networkx as nx

from composeport.analyzer.symbol_index import SymbolIndex
from composeport.config.models import DependencyEdge
from composeport.ir.source import SourceUnit

logger = logging.getLogger(__name__)


class DependencyGraphBuilder:
    """Builds and queries the inter-unit dependency graph."""

    def __init__(self, index: SymbolIndex | None = None):
        self.index = index or SymbolIndex()
        self.graph = nx.DiGraph()

    def build_graph(self, units: Iterable[SourceUnit]) -> nx.DiGraph:
        """
        Build a dependency graph from source units.

        Units are indexed (if not already) in the given order, which is also
        the node order of the graph. Unresolvable imports and references add
        no edge.

        Args:
            units: Parsed source units

        Returns:
            Directed graph where an edge A -> B means A depends on B
        """
        units = list(units)
        self.graph.clear()

        for unit in units:
            if unit.path not in self.index.units:
                self.index.register_unit(unit)

        # Add all units as nodes
        for unit in units:
            self.graph.add_node(
                unit.path,
                package=unit.package,
                has_ui=unit.has_ui,
                declarations=len(unit.declarations),
            )

        # Add edges from imports, then from referenced types
        for unit in units:
            for import_path in unit.imports:
                self._add_dependency(unit.path, self.index.find_unit_for(import_path))
            for type_name in self.index.referenced_by(unit.path):
                self._add_dependency(unit.path, self.index.find_unit_for(type_name))

        logger.debug(
            f"Dependency graph: {self.graph.number_of_nodes()} units, "
            f"{self.graph.number_of_edges()} edges"
        )
        return self.graph

    def _add_dependency(self, from_unit: str, to_unit: str | None) -> None:
        if to_unit is None or to_unit == from_unit or to_unit not in self.graph:
            return
        self.graph.add_edge(from_unit, to_unit)

    # =========================================================================
    # Queries
    # =========================================================================

    def edges(self) -> list[DependencyEdge]:
        return [DependencyEdge(from_unit=a, to_unit=b) for a, b in self.graph.edges()]

    def get_dependencies_of(self, unit_path: str) -> list[str]:
        """Get all units that a given unit depends on."""
        if unit_path not in self.graph:
            return []
        return list(self.graph.successors(unit_path))

    def get_dependents_of(self, unit_path: str) -> list[str]:
        """Get all units that depend on a given unit."""
        if unit_path not in self.graph:
            return []
        return list(self.graph.predecessors(unit_path))

    def get_strongly_connected_components(self) -> list[list[str]]:
        """
        Get strongly connected components (groups of mutually dependent units).

        Returns:
            List of components with more than one unit, each sorted by graph order
        """
        position = {node: i for i, node in enumerate(self.graph.nodes)}
        components = []
        for component in nx.strongly_connected_components(self.graph):
            if len(component) > 1:
                components.append(sorted(component, key=position.__getitem__))
        return sorted(components, key=lambda c: position[c[0]])

    def save_graph(self, output_path: Path):
        """Save the graph to a file (as GraphML)."""
        output_path.parent.mkdir(parents=True, exist_ok=True)
        nx.write_graphml(self.graph, str(output_path))

    def load_graph(self, input_path: Path):
        """Load a graph from a file."""
        self.graph = nx.read_graphml(str(input_path))
