"""modgraph - Command Line Interface.

Dependency graph, circular import and dead export analysis for
TypeScript/JavaScript projects.
"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .errors import ModgraphError
from .parsers.base_parser import Confidence
from .parsers.typescript_parser import TypeScriptParser
from .pipeline import AnalysisOptions, AnalysisReport, analyze_project
from .utils.config import NAMESPACE_POLICIES, config
from .utils.logger import setup_logger


console = Console()

CONFIDENCE_STYLES = {
    Confidence.HIGH: "red",
    Confidence.MEDIUM: "yellow",
    Confidence.LOW: "dim",
}


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: .modgraph.yaml)"
)
@click.pass_context
def cli(ctx, verbose, config_path):
    """modgraph - Analyze module dependencies of a TypeScript/JavaScript project."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        config.load(config_path)
        setup_logger(
            level="DEBUG" if verbose else config.log_level,
            log_file=config.log_file
        )
    except ModgraphError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.option(
    "--project-root", "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root directory (default: project.root_path)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the full report as JSON to this file"
)
@click.option("--json", "as_json", is_flag=True, help="Print the JSON report instead of tables")
@click.option(
    "--namespace-policy",
    type=click.Choice(NAMESPACE_POLICIES),
    default=None,
    help="How to treat exports of namespace-imported modules"
)
@click.option(
    "--entry-point", "-e",
    multiple=True,
    help="Glob of public API modules whose exports are never reported dead"
)
@click.option("--include", "-i", multiple=True, help="Include pattern (e.g., 'src/**/*.ts')")
@click.option("--exclude", "-x", multiple=True, help="Exclude pattern (e.g., '**/generated/**')")
@click.option("--workers", "-w", type=click.IntRange(min=1), default=None, help="Parser threads")
def analyze(project_root, output, as_json, namespace_policy, entry_point, include, exclude, workers):
    """Build the dependency graph and run every analysis.

    Example:
        modgraph analyze -p ./my-app
        modgraph analyze -p ./my-app --json -o report.json
        modgraph analyze -e "src/index.ts" --namespace-policy report
    """
    if project_root is None:
        project_root = config.project_root

    try:
        options = AnalysisOptions.from_config(config)
        if namespace_policy:
            options.namespace_policy = namespace_policy
        if entry_point:
            options.entry_points = tuple(entry_point)
        if workers:
            options.workers = workers

        if as_json:
            report = analyze_project(
                project_root,
                options,
                include_patterns=list(include) or config.include_patterns,
                exclude_patterns=list(exclude) or config.exclude_patterns
            )
        else:
            console.print(Panel(
                f"[bold blue]modgraph[/bold blue]\n"
                f"Project: [cyan]{project_root}[/cyan]",
                title="Analyzing",
                border_style="blue"
            ))
            with console.status("[bold blue]Building graph...[/bold blue]"):
                report = analyze_project(
                    project_root,
                    options,
                    include_patterns=list(include) or config.include_patterns,
                    exclude_patterns=list(exclude) or config.exclude_patterns
                )
    except ModgraphError as e:
        raise click.ClickException(str(e))

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(report.to_json(), encoding="utf-8")

    if as_json:
        click.echo(report.to_json())
    else:
        _display_report(report)
        if output:
            console.print(f"\n[green]Report written to:[/green] {output}")

    if report.failures:
        sys.exit(1)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def parse(file_path):
    """Parse a single file and show its exports and imports.

    Example:
        modgraph parse src/app.ts
    """
    parser = TypeScriptParser()

    if not parser.can_parse(file_path):
        console.print(f"[red]Unsupported file type: {file_path.suffix}[/red]")
        sys.exit(1)

    result = parser.parse_file(file_path)
    console.print(f"[bold]Parsing:[/bold] {file_path}\n")

    if not result.success:
        line = f" (line {result.error_line})" if result.error_line else ""
        console.print(f"[red]Parse error{line}:[/red] {'; '.join(result.errors)}")
        sys.exit(1)

    exports_table = Table(title=f"Exports ({result.export_count})")
    exports_table.add_column("Name", style="green")
    exports_table.add_column("Kind", style="cyan")
    exports_table.add_column("Re-export", style="yellow")
    exports_table.add_column("Line", style="magenta", justify="right")

    for export in result.record.exports:
        origin = f"{export.imported_name} from {export.source_specifier}" if export.is_re_export else ""
        exports_table.add_row(export.name, export.kind.value, origin, str(export.line))
    console.print(exports_table)

    imports_table = Table(title=f"Imports ({result.import_count})")
    imports_table.add_column("Source", style="blue")
    imports_table.add_column("Kind", style="cyan")
    imports_table.add_column("Names", style="green")
    imports_table.add_column("Line", style="magenta", justify="right")

    for imp in result.record.imports:
        kind = imp.kind.value + (" (dynamic)" if imp.is_dynamic else "")
        imports_table.add_row(imp.source_specifier, kind, ", ".join(imp.imported_names), str(imp.line))
    console.print(imports_table)

    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


# ===== HELPER FUNCTIONS =====

def _display_report(report: AnalysisReport):
    """Display an analysis report as rich tables."""
    metrics = report.metrics

    metrics_table = Table(title="Graph Metrics", show_header=False)
    metrics_table.add_column("Metric", style="cyan")
    metrics_table.add_column("Value", style="green", justify="right")
    metrics_table.add_row("Modules", str(metrics.total_modules))
    metrics_table.add_row("Edges", str(metrics.total_edges))
    metrics_table.add_row("Internal edges", str(metrics.internal_edges))
    metrics_table.add_row("External edges", str(metrics.external_edges))
    metrics_table.add_row("Average fan-out", f"{metrics.avg_fan_out:.2f}")
    if metrics.most_connected_module:
        metrics_table.add_row(
            "Most connected",
            f"{metrics.most_connected_module} ({metrics.most_connected_degree})"
        )
    console.print(metrics_table)
    console.print()

    if report.cycles.total_cycles:
        cycles_table = Table(title=f"Circular Dependencies ({report.cycles.total_cycles})")
        cycles_table.add_column("Severity", style="red")
        cycles_table.add_column("Cycle", style="yellow")
        for cycle in report.cycles.cycles[:20]:
            cycles_table.add_row(cycle.severity, " → ".join(cycle.modules + cycle.modules[:1]))
        console.print(cycles_table)
        if report.cycles.total_cycles > 20:
            console.print(f"[dim]... and {report.cycles.total_cycles - 20} more[/dim]")
    else:
        console.print("[green]No circular dependencies[/green]")
    console.print()

    dead = report.dead_exports
    if dead.entries:
        dead_table = Table(title=f"Dead Exports ({dead.total_dead} of {dead.total_exports})")
        dead_table.add_column("Module", style="blue")
        dead_table.add_column("Export", style="green")
        dead_table.add_column("Kind", style="cyan")
        dead_table.add_column("Confidence")
        for entry in dead.entries[:50]:
            style = CONFIDENCE_STYLES[entry.confidence]
            dead_table.add_row(
                f"{entry.module}:{entry.line}",
                entry.export_name,
                entry.export_kind.value,
                f"[{style}]{entry.confidence.value}[/{style}]"
            )
        console.print(dead_table)
        if len(dead.entries) > 50:
            console.print(f"[dim]... and {len(dead.entries) - 50} more[/dim]")
    else:
        console.print("[green]No dead exports[/green]")
    console.print()

    unused = report.unused_imports.entries
    if unused:
        unused_table = Table(title=f"Unused Imports ({len(unused)})")
        unused_table.add_column("Module", style="blue")
        unused_table.add_column("Binding", style="green")
        unused_table.add_column("From", style="cyan")
        unused_table.add_column("Confidence")
        for entry in unused[:50]:
            style = CONFIDENCE_STYLES[entry.confidence]
            unused_table.add_row(
                f"{entry.module}:{entry.line}",
                entry.local_name,
                entry.specifier,
                f"[{style}]{entry.confidence.value}[/{style}]"
            )
        console.print(unused_table)
        if len(unused) > 50:
            console.print(f"[dim]... and {len(unused) - 50} more[/dim]")
    else:
        console.print("[green]No unused imports[/green]")

    if report.ambiguities:
        console.print(Panel(
            "\n".join(str(a) for a in report.ambiguities),
            title="Ambiguous Imports", border_style="yellow"
        ))

    if report.failures:
        failures_table = Table(title=f"Failed to Parse ({len(report.failures)})")
        failures_table.add_column("File", style="red")
        failures_table.add_column("Line", style="magenta", justify="right")
        failures_table.add_column("Error")
        for failure in report.failures:
            failures_table.add_row(failure.path, str(failure.line or ""), failure.message)
        console.print(failures_table)


if __name__ == "__main__":
    cli()
