"""
composeport CLI - Main entry point.

Provides commands for converting Jetpack Compose projects to Flutter and for
inspecting their dependency structure.
"""

import importlib.util
import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from composeport.config.loader import (
    ConfigurationError,
    create_config_from_args,
    generate_default_config,
    load_config_from_yaml,
)
from composeport.config.models import PorterConfig, SourceFormat

app = typer.Typer(
    name="composeport",
    help="Convert Jetpack Compose (Kotlin) UI code to Flutter (Dart)",
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def configure_logging(verbose: bool):
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")
    # Silence noisy HTTP libraries even in verbose mode
    for noisy in ("httpcore", "httpx", "openai._base_client", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def validate_path(path: str, must_exist: bool = True) -> Path:
    """Validate and return a Path object."""
    p = Path(path)
    if must_exist and not p.exists():
        raise typer.BadParameter(f"Path does not exist: {path}")
    return p


def display_config(cfg: PorterConfig, verbose: bool = False):
    """Display the loaded configuration in a nice format."""
    info_text = f"""
[bold cyan]Source:[/bold cyan] {cfg.project.source_root} ({cfg.project.source_format.value})
[bold cyan]Output:[/bold cyan] {cfg.project.output_dir}
[bold cyan]Workers:[/bold cyan] {cfg.conversion.max_workers}
[bold cyan]AI fallback:[/bold cyan] {'enabled' if cfg.ai.enabled else 'disabled'}
    """
    console.print(Panel(info_text.strip(), title="Compose → Flutter", border_style="bold green"))

    if verbose:
        console.print("\n[bold]Configuration Details:[/bold]")
        console.print(f"  State management: {cfg.options.state_management.value}")
        console.print(f"  Navigation: {cfg.options.navigation.value}")
        console.print(f"  Networking: {cfg.options.networking.value}")
        console.print(f"  Image loading: {cfg.options.image_loading.value}")
        if cfg.ai.enabled:
            console.print(f"  LLM: {cfg.ai.provider.value} / {cfg.ai.model}")


# =============================================================================
# Commands
# =============================================================================


@app.command()
def convert(
    source: str = typer.Argument(..., help="Source directory (or file) to convert"),
    output: str = typer.Option("./flutter_output", "--output", "-o", help="Output directory"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    source_format: str = typer.Option("kotlin", "--format", "-f", help="Source format (kotlin/json)"),
    ai: Optional[bool] = typer.Option(None, "--ai/--no-ai", help="Hand flagged units to the LLM fallback"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Units converted in parallel"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Convert without writing files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Convert a Compose project to Flutter.

    Examples:
        composeport convert ./app/src/main/java -o ./flutter_app
        composeport convert ./units --format json --workers 4
        composeport convert ./app -c composeport.yaml --ai
    """
    configure_logging(verbose)

    try:
        if config:
            console.print(f"[cyan]Loading configuration from {config}...[/cyan]")
            cfg = load_config_from_yaml(Path(config))
            cfg.project.source_root = validate_path(source)
            if ai is not None:
                cfg.ai.enabled = ai
            if workers is not None:
                if workers < 1:
                    raise ConfigurationError("--workers must be at least 1")
                cfg.conversion.max_workers = workers
            if dry_run:
                cfg.conversion.write_files = False
        else:
            cfg = create_config_from_args(
                source_dir=validate_path(source),
                output_dir=Path(output),
                source_format=source_format,
                ai_enabled=bool(ai),
                max_workers=workers or 1,
                write_files=not dry_run,
            )

        display_config(cfg, verbose)

        from composeport.translator.orchestrator import ProjectConverter

        report = ProjectConverter(cfg).run()

        if cfg.conversion.write_files:
            console.print(f"\n[green]✓[/green] Flutter sources written to {Path(cfg.project.output_dir) / 'lib'}")
        if not report.success:
            raise typer.Exit(1)

    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


@app.command()
def analyze(
    source: str = typer.Argument(..., help="Source directory to analyze"),
    source_format: str = typer.Option("kotlin", "--format", "-f", help="Source format (kotlin/json)"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write the analysis result as JSON"),
    save_graph: Optional[str] = typer.Option(None, "--save-graph", help="Write the dependency graph as GraphML"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Analyze a project: dependency graph, conversion order, cycles and complexity.

    This command converts nothing.
    """
    configure_logging(verbose)

    try:
        import orjson

        from composeport.analyzer.orchestrator import AnalysisOrchestrator

        cfg = create_config_from_args(
            source_dir=validate_path(source),
            output_dir=Path("."),
            source_format=source_format,
            write_files=False,
        )
        orchestrator = AnalysisOrchestrator(cfg)
        result = orchestrator.run()

        console.print("\n[bold]Conversion Order[/bold]\n")
        for i, unit_path in enumerate(result.schedule.order, 1):
            console.print(f"  {i}. {unit_path}")

        if save_graph:
            orchestrator.save_graph(Path(save_graph))
            console.print(f"\n[green]✓[/green] Saved dependency graph to {save_graph}")

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_bytes(orjson.dumps(result.model_dump(mode="json"), option=orjson.OPT_INDENT_2))
            console.print(f"\n[green]✓[/green] Analysis saved to {output_path}")

    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


@app.command()
def init(
    output: str = typer.Argument("./composeport.yaml", help="Output path for config file"),
):
    """
    Generate a default configuration file.

    Creates a composeport.yaml with sensible defaults that you can customize.
    """
    output_path = Path(output)

    if output_path.exists():
        if not typer.confirm(f"{output} already exists. Overwrite?"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Abort()

    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Generated configuration file: {output}")
    console.print("\nEdit this file to customize your conversion settings.")


@app.command()
def doctor():
    """
    Check optional dependencies and credentials.

    Reports whether the Kotlin parser and the AI fallback are usable.
    """
    console.print("[cyan]Checking system dependencies...[/cyan]\n")

    kotlin_parser = importlib.util.find_spec("tree_sitter_kotlin") is not None
    has_key = bool(os.environ.get("OPENROUTER_API_KEY") or os.environ.get("OPENAI_API_KEY"))
    checks = [
        ("tree-sitter-kotlin", kotlin_parser, "Kotlin front-end"),
        ("LLM API key", has_key, "OpenRouter/OpenAI fallback"),
        ("Serialized units", True, f"--format {SourceFormat.JSON.value}"),
    ]

    table = Table(title="Dependency Check")
    table.add_column("Component", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Used for")

    for component, ok, purpose in checks:
        status = "[green]✓[/green]" if ok else "[yellow]✗[/yellow]"
        table.add_row(component, status, purpose)

    console.print(table)


# =============================================================================
# Entry Point
# =============================================================================


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
