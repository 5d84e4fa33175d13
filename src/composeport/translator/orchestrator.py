"""
Project conversion orchestrator.

This orchestrator coordinates a full conversion run:
1. Analysis (front-end, symbol index, dependency graph, schedule)
2. Rule-based generation of every scheduled unit, optionally in parallel
3. AI-assisted conversion of flagged units when enabled
4. Report aggregation, file output and state persistence

A failure while converting one unit is recorded against that unit and never
stops the remaining units.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from composeport.analyzer.orchestrator import AnalysisOrchestrator
from composeport.config.models import (
    ConversionIssue,
    ConversionStats,
    ConversionTask,
    GenerationMethod,
    PorterConfig,
    ProjectReport,
    Severity,
    UnitOutput,
)
from composeport.ir.source import SourceUnit
from composeport.knowledge.type_mapper import TypeMapper
from composeport.languages.base.plugin import FrontEnd
from composeport.state.persistence import ConversionState
from composeport.translator.code_generator import CodeGenerator, component_signatures
from composeport.translator.llm_client import AIConversionError, BaseLLMClient, create_llm_client

logger = logging.getLogger(__name__)

console = Console()

CONVERSION_ERROR = "CONVERSION_ERROR"
AI_FALLBACK = "AI_FALLBACK"

UnitResult = tuple[UnitOutput | None, list[ConversionIssue]]


class ProjectConverter:
    """Orchestrates analysis and conversion of a whole project."""

    def __init__(
        self,
        config: PorterConfig,
        front_end: FrontEnd | None = None,
        llm_client: BaseLLMClient | None = None,
        quiet: bool = False,
    ):
        self.config = config
        self.analysis = AnalysisOrchestrator(config, front_end)
        self.front_end = self.analysis.front_end
        self.type_mapper = TypeMapper(
            type_overrides=config.mappings.type_mappings,
            widget_overrides=config.mappings.widget_mappings,
        )
        self.llm_client = llm_client
        self.quiet = quiet

    def run(self, units: list[SourceUnit] | None = None) -> ProjectReport:
        """
        Execute the full conversion.

        Returns:
            ProjectReport with one output per successfully converted unit
        """
        started = time.time()
        analysis = self.analysis.run(units, quiet=self.quiet)
        units_by_path = {unit.path: unit for unit in self.analysis.units}
        tasks = [t for t in analysis.schedule.tasks if t.unit_path in units_by_path]

        if self.config.ai.enabled and any(t.requires_ai for t in tasks):
            self._prepare_llm_client()

        generator = CodeGenerator(
            self.type_mapper,
            self.config.options,
            components=component_signatures(self.analysis.units),
            project_symbols=self.analysis.index.symbols.keys(),
        )

        if not self.quiet:
            console.print("\n[bold cyan]Conversion[/bold cyan]\n")
            console.print(f"[cyan]Converting {len(tasks)} units...[/cyan]\n")

        results: dict[str, UnitResult] = {}

        def _do_convert(task: ConversionTask) -> tuple[str, UnitResult]:
            return task.unit_path, self.convert_task(task, units_by_path[task.unit_path], generator)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            disable=self.quiet,
        ) as progress:
            progress_task = progress.add_task("Converting units...", total=len(tasks))
            with ThreadPoolExecutor(max_workers=self.config.conversion.max_workers) as executor:
                futures = {executor.submit(_do_convert, task): task for task in tasks}
                for future in as_completed(futures):
                    unit_path, result = future.result()
                    results[unit_path] = result
                    progress.advance(progress_task)

        report = self._build_report(tasks, results, analysis.schedule.cycles, analysis.schedule.complexity_scores)
        report.stats.duration_seconds = time.time() - started

        if self.config.conversion.write_files:
            self.write_outputs(report)
            state = ConversionState(self.config)
            state.set_analysis_result(analysis)
            state.set_report(report)
            state.save()
            state.export_report(Path(self.config.project.state_dir) / "report.md")

        if not self.quiet:
            self.display_results(report)
        return report

    # =========================================================================
    # Units
    # =========================================================================

    def convert_task(self, task: ConversionTask, unit: SourceUnit, generator: CodeGenerator) -> UnitResult:
        """Convert one unit; every exception becomes a CONVERSION_ERROR issue."""
        try:
            with self.front_end.read_action():
                output = generator.generate(unit, task.dependencies)
        except Exception as e:
            logger.error(f"Failed to convert {unit.path}: {e}", exc_info=logger.isEnabledFor(logging.DEBUG))
            issue = ConversionIssue(
                code=CONVERSION_ERROR,
                message=f"{type(e).__name__}: {e}",
                unit_path=unit.path,
                severity=Severity.ERROR,
            )
            return None, [issue]

        if task.requires_ai and self.config.ai.enabled:
            output = self._ai_assist(unit, output)
        return output, []

    def _prepare_llm_client(self):
        if self.llm_client is not None:
            return
        try:
            self.llm_client = create_llm_client(self.config.ai)
        except Exception as e:
            logger.warning(f"AI fallback unavailable, using rule-based output only: {e}")

    def _ai_assist(self, unit: SourceUnit, output: UnitOutput) -> UnitOutput:
        """Replace the rule-based output with the AI reply; keep it when the AI fails."""
        if self.llm_client is None:
            return self._with_warning(output, unit.path, "AI client unavailable; kept rule-based output")
        try:
            code = self.llm_client.convert_unit(unit.text, self.config.options, unit.path)
        except AIConversionError as e:
            logger.warning(f"AI conversion failed for {unit.path}: {e}")
            return self._with_warning(output, unit.path, f"{e}; kept rule-based output")

        content = code if code.endswith("\n") else code + "\n"
        return output.model_copy(
            update={
                "content": content,
                "imports": [],
                "method": GenerationMethod.AI_ASSISTED,
                "generated_lines": len(content.splitlines()),
            }
        )

    @staticmethod
    def _with_warning(output: UnitOutput, unit_path: str, message: str) -> UnitOutput:
        issue = ConversionIssue(code=AI_FALLBACK, message=message, unit_path=unit_path)
        return output.model_copy(update={"warnings": [*output.warnings, issue]})

    # =========================================================================
    # Report
    # =========================================================================

    @staticmethod
    def _build_report(
        tasks: list[ConversionTask],
        results: dict[str, UnitResult],
        cycles: list[list[str]],
        complexity_scores: dict[str, int],
    ) -> ProjectReport:
        outputs: list[UnitOutput] = []
        errors: list[ConversionIssue] = []
        warnings: list[ConversionIssue] = []
        stats = ConversionStats(total_units=len(tasks))

        for task in tasks:
            output, issues = results[task.unit_path]
            errors.extend(i for i in issues if i.severity == Severity.ERROR)
            if output is None:
                stats.failed_units += 1
                continue
            outputs.append(output)
            warnings.extend(output.warnings)
            stats.converted_units += 1
            stats.source_lines += output.source_lines
            stats.generated_lines += output.generated_lines
            if output.method == GenerationMethod.AI_ASSISTED:
                stats.ai_assisted_lines += output.generated_lines

        return ProjectReport(
            success=not errors,
            outputs=outputs,
            errors=errors,
            warnings=warnings,
            cycles=cycles,
            complexity_scores=complexity_scores,
            stats=stats,
        )

    def write_outputs(self, report: ProjectReport) -> list[Path]:
        """Write every generated file under ``<output_dir>/lib``."""
        lib_dir = Path(self.config.project.output_dir) / "lib"
        written = []
        for output in report.outputs:
            target = lib_dir / output.target_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(output.render(), encoding="utf-8")
            written.append(target)
        logger.debug(f"Wrote {len(written)} files under {lib_dir}")
        return written

    def display_results(self, report: ProjectReport):
        """Display conversion results summary."""
        console.print("\n[bold]Conversion Summary[/bold]\n")
        stats = report.stats

        stats_table = Table(show_header=False)
        stats_table.add_column("Metric", style="cyan")
        stats_table.add_column("Value", style="green")

        stats_table.add_row("Total Units", str(stats.total_units))
        stats_table.add_row("Converted", str(stats.converted_units))
        stats_table.add_row("Failed", str(stats.failed_units))
        stats_table.add_row("Source Lines", str(stats.source_lines))
        stats_table.add_row("Generated Lines", str(stats.generated_lines))
        stats_table.add_row("AI-assisted Lines", str(stats.ai_assisted_lines))
        stats_table.add_row("Warnings", str(len(report.warnings)))
        stats_table.add_row("Duration", f"{stats.duration_seconds:.2f}s")

        console.print(stats_table)

        if report.outputs:
            console.print("\n[bold]Generated Files[/bold]\n")
            files_table = Table()
            files_table.add_column("Source", style="cyan")
            files_table.add_column("Target", style="green")
            files_table.add_column("Shape", style="yellow")
            files_table.add_column("Method")
            for output in report.outputs:
                files_table.add_row(
                    output.source_path, output.target_path, output.component_shape.value, output.method.value
                )
            console.print(files_table)

        if report.cycles:
            console.print(f"\n[yellow]⚠ {len(report.cycles)} circular dependencies detected[/yellow]")

        if report.errors:
            console.print(f"\n[red]✗ {len(report.errors)} unit(s) failed conversion[/red]")
            for issue in report.errors:
                console.print(f"  [red]{issue.unit_path}[/red]: {issue.message}")


def run_conversion(config: PorterConfig, units: list[SourceUnit] | None = None) -> ProjectReport:
    """Convenience function to run a full conversion."""
    return ProjectConverter(config).run(units)
