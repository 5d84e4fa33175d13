"""
Analysis orchestrator.

This orchestrator coordinates the analysis phase, which includes:
1. Loading source units through the configured front-end
2. Indexing the symbols every unit defines
3. Building the dependency graph
4. Scheduling: conversion order, cycles, complexity and AI flags
"""

import logging
from collections import Counter
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from composeport.analyzer.graph_builder import DependencyGraphBuilder
from composeport.analyzer.scheduler import ConversionScheduler
from composeport.analyzer.symbol_index import SymbolIndex
from composeport.config.models import AnalysisResult, PorterConfig
from composeport.ir.source import SourceUnit
from composeport.languages.base.plugin import FrontEnd
from composeport.languages.registry import FrontEndRegistry

logger = logging.getLogger(__name__)

console = Console()


class AnalysisOrchestrator:
    """Orchestrates the analysis phase."""

    def __init__(self, config: PorterConfig, front_end: FrontEnd | None = None):
        self.config = config
        self.front_end = front_end or FrontEndRegistry.get_front_end(
            config.project.source_format, config.project.exclude_patterns
        )
        self.index = SymbolIndex()
        self.graph_builder = DependencyGraphBuilder(self.index)
        self.units: list[SourceUnit] = []

    def load_units(self) -> list[SourceUnit]:
        """Load every unit under the source root."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Parsing source files...", total=None)
            units = self.front_end.load_units(Path(self.config.project.source_root))
            progress.update(task, completed=True)
        return units

    def run(self, units: list[SourceUnit] | None = None, quiet: bool = False) -> AnalysisResult:
        """
        Execute the analysis phase.

        Args:
            units: Pre-loaded units; loaded through the front-end when None
            quiet: Skip the console summary

        Returns:
            AnalysisResult with the graph edges, schedule and diagnostics
        """
        if not quiet:
            console.print("\n[bold cyan]Analysis[/bold cyan]\n")

        self.units = list(units) if units is not None else self.load_units()
        if not quiet:
            console.print(f"[green]✓[/green] Loaded {len(self.units)} source units")

        for unit in self.units:
            with self.front_end.read_action():
                self.index.register_unit(unit)
        graph = self.graph_builder.build_graph(self.units)
        if not quiet:
            console.print(
                f"[green]✓[/green] Built dependency graph "
                f"({graph.number_of_nodes()} units, {graph.number_of_edges()} edges)"
            )

        scheduler = ConversionScheduler(graph, ai_threshold=self.config.ai.complexity_threshold)
        schedule = scheduler.schedule(self.units)

        result = AnalysisResult(
            units=[unit.path for unit in self.units],
            edges=self.graph_builder.edges(),
            schedule=schedule,
            conflicts=list(self.index.conflicts),
            strongly_connected=self.graph_builder.get_strongly_connected_components(),
        )
        if not quiet:
            self.display_analysis_results(result)
        return result

    def save_graph(self, output_path: Path):
        self.graph_builder.save_graph(output_path)
        logger.debug(f"Saved dependency graph to {output_path}")

    def display_analysis_results(self, result: AnalysisResult):
        """
        Display analysis results in a nice format.

        Args:
            result: The analysis result to display
        """
        console.print("\n[bold]Analysis Summary[/bold]\n")

        stats_table = Table(show_header=False)
        stats_table.add_column("Metric", style="cyan")
        stats_table.add_column("Value", style="green")

        stats_table.add_row("Total Units", str(len(result.units)))
        stats_table.add_row("Dependencies", str(len(result.edges)))
        stats_table.add_row("Circular Dependencies", str(len(result.schedule.cycles)))
        stats_table.add_row("Symbol Conflicts", str(len(result.conflicts)))
        stats_table.add_row("Flagged for AI", str(sum(1 for t in result.schedule.tasks if t.requires_ai)))

        console.print(stats_table)

        priority_counts = Counter(task.priority.name for task in result.schedule.tasks)
        if priority_counts:
            console.print("\n[bold]Priorities[/bold]\n")
            priority_table = Table()
            priority_table.add_column("Priority", style="cyan")
            priority_table.add_column("Units", justify="right", style="green")
            for name, count in priority_counts.most_common():
                priority_table.add_row(name, str(count))
            console.print(priority_table)

        if result.schedule.complexity_scores:
            console.print("\n[bold]Most Complex Units[/bold]\n")

            sorted_by_complexity = sorted(
                result.schedule.complexity_scores.items(),
                key=lambda x: x[1],
                reverse=True,
            )[:10]

            complexity_table = Table()
            complexity_table.add_column("Unit", style="cyan")
            complexity_table.add_column("Complexity", justify="right", style="green")
            for unit_path, score in sorted_by_complexity:
                complexity_table.add_row(unit_path, str(score))
            console.print(complexity_table)

        if result.schedule.cycles:
            console.print(
                f"\n[yellow]⚠ Warning: Found {len(result.schedule.cycles)} "
                f"circular dependencies[/yellow]"
            )
            for i, cycle in enumerate(result.schedule.cycles[:3], 1):
                console.print(f"  {i}. {' → '.join(cycle)}")

            if len(result.schedule.cycles) > 3:
                console.print(f"  ... and {len(result.schedule.cycles) - 3} more")


def run_analysis(config: PorterConfig, units: list[SourceUnit] | None = None) -> AnalysisResult:
    """Convenience function to run the analysis phase."""
    return AnalysisOrchestrator(config).run(units)
