"""
ktforge CLI - Main entry point.

Provides commands for repairing generated Kotlin and assembling it into a
Gradle project.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ktforge.assembler.generated import clean_build_outputs, program_base_name
from ktforge.assembler.orchestrator import ProjectAssembler
from ktforge.assembler.results import AssemblyResult, StatusLevel
from ktforge.config.loader import (
    ConfigurationError,
    generate_default_config,
    load_config,
)
from ktforge.repair.pipeline import SyntaxRepairPipeline
from ktforge.repair.rules import build_rules

app = typer.Typer(
    name="ktforge",
    help="Repair generated Kotlin and assemble it into a Gradle project",
    no_args_is_help=True,
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def configure_logging(verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(name)s: %(message)s")


def validate_path(path: str, must_exist: bool = True) -> Path:
    """Validate and return a Path object."""
    p = Path(path)
    if must_exist and not p.exists():
        raise typer.BadParameter(f"Path does not exist: {path}")
    return p


def console_status(level: StatusLevel, message: str) -> None:
    if level == StatusLevel.ERROR:
        console.print(f"[bold red]Error:[/bold red] {message}")
    else:
        console.print(f"[cyan]{message}[/cyan]")


def print_summary(result: AssemblyResult) -> None:
    errors = result.all_errors
    if errors:
        table = Table(title="Recovered errors")
        table.add_column("Step", style="yellow")
        table.add_column("Path")
        table.add_column("Message")
        for error in errors:
            table.add_row(error.step, error.path or "-", error.message)
        console.print(table)

    if not result.success:
        border, title = "red", "[bold red]Assembly Failed[/bold red]"
    elif errors:
        border, title = "yellow", "[bold yellow]Assembly Complete (with errors)[/bold yellow]"
    else:
        border, title = "green", "[bold green]Assembly Complete[/bold green]"

    repaired = sum(1 for r in result.repairs if r.changed)
    console.print(
        Panel(
            f"{title}\n\n"
            f"Files repaired: {repaired}/{len(result.repairs)}\n"
            f"Objects lowered: {len(result.converted)}\n"
            f"Extra files: {len(result.externs)}\n"
            f"Paths written: {len(result.written)}\n"
            f"Runtime: {result.runtime_path or 'missing'}\n"
            f"Recovered errors: {len(errors)}\n"
            f"Output: {result.root}",
            title="ktforge Summary",
            border_style=border,
        )
    )


# =============================================================================
# Commands
# =============================================================================


@app.command()
def assemble(
    target_dir: str = typer.Argument(..., help="Generator output directory to assemble in place"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project base name (default: directory name)"),
    extern: Optional[List[str]] = typer.Option(None, "--extern", "-e", help="Extra .kt file to copy in (repeatable)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    report: Optional[str] = typer.Option(None, "--report", "-r", help="Write a JSON assembly report here"),
    clean: bool = typer.Option(False, "--clean", help="Delete build/ and .gradle/ before assembling"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Repair generated sources and assemble them into a Gradle project.

    Example:
        ktforge assemble ./hello-kotlin -e ./extern/Native.kt
    """
    configure_logging(verbose)

    try:
        target_path = validate_path(target_dir)
        cfg = load_config(Path(config) if config else None)

        if clean:
            clean_build_outputs(target_path)

        base_name = name or program_base_name(target_path)
        console.print(f"[cyan]Assembling {base_name} in {target_path}...[/cyan]")

        assembler = ProjectAssembler(cfg, status=console_status)
        result = assembler.assemble(
            target_path,
            base_name,
            extern_files=[Path(e) for e in extern or []],
            verbose=verbose,
        )

        if report:
            saved = result.save(Path(report))
            console.print(f"[cyan]Report saved to: {saved}[/cyan]")

        print_summary(result)

        if not result.success:
            raise typer.Exit(1)

    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def repair(
    source: str = typer.Argument(..., help="Generated source file to repair"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write here instead of stdout"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to configuration YAML file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Run the repair rules over a single file.
    """
    configure_logging(verbose)

    try:
        source_path = validate_path(source)
        cfg = load_config(Path(config) if config else None)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration Error:[/bold red] {e}")
        raise typer.Exit(1)

    pipeline = SyntaxRepairPipeline(
        build_rules(cfg.runtime.namespace, set(cfg.repair.disabled_rules))
    )
    result = pipeline.repair_file(source_path)

    for error in result.errors:
        console.print(f"[yellow]Rule {error.rule} failed:[/yellow] {error.message}", highlight=False)

    if output:
        Path(output).write_text(result.text, encoding="utf-8")
        console.print(f"[green]✓[/green] {result.summary}")
    else:
        typer.echo(result.text, nl=False)


@app.command()
def clean(
    target_dir: str = typer.Argument(..., help="Assembled project directory"),
):
    """
    Delete build-tool output (build/ and .gradle/).
    """
    target_path = validate_path(target_dir)
    removed = clean_build_outputs(target_path)
    if removed:
        for directory in removed:
            console.print(f"[green]✓[/green] Removed {directory}")
    else:
        console.print("[dim]Nothing to clean[/dim]")


@app.command("init-config")
def init_config(
    output: str = typer.Argument("ktforge.yaml", help="Where to write the configuration"),
):
    """
    Generate a default configuration file.
    """
    output_path = Path(output)
    if output_path.exists():
        if not typer.confirm(f"{output_path} already exists. Overwrite?"):
            raise typer.Abort()

    generate_default_config(output_path)
    console.print(f"[green]✓[/green] Configuration written to {output_path}")


def main():
    app()


if __name__ == "__main__":
    main()
