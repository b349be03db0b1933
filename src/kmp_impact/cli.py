"""Command-line interface for the kmp-impact tool."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from . import __version__
from .analyzers import AnalysisConfiguration, AnalysisInput, AnalysisRun, ImpactAnalyzer
from .core import ImpactAnalysisError, describe_revision, normalize_path
from .platforms import ProjectDetector, default_registry

# Set up rich error handling
install()
console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)


class ReportedError(click.ClickException):
    """Analysis failure shown through the rich error console."""

    def show(self, file=None):
        err_console.print(f"[red]❌ Error:[/red] {escape(self.format_message())}")


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _project_options(func):
    """Options shared by every command that runs an analysis."""
    decorators = [
        click.argument('project_path', type=click.Path(exists=True, file_okay=False, path_type=Path),
                       default='.'),
        click.option('--shared-root', 'shared_roots', multiple=True,
                     type=click.Path(file_okay=False, path_type=Path),
                     help='Shared module source root (repeatable, disables auto-detection)'),
        click.option('--android-root', 'android_roots', multiple=True,
                     type=click.Path(file_okay=False, path_type=Path),
                     help='Android application source root (repeatable, disables auto-detection)'),
        click.option('--ios-root', 'ios_roots', multiple=True,
                     type=click.Path(file_okay=False, path_type=Path),
                     help='iOS application source root (repeatable, disables auto-detection)'),
        click.option('--interop-module', 'interop_modules', multiple=True,
                     help='Extra framework name exported by the shared module (repeatable)'),
        click.option('--workers', type=click.IntRange(min=1), default=None,
                     help='Worker threads for file scanning (default: CPU count)'),
        click.option('--verbose', '-v', is_flag=True, help='Enable debug logging'),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


@click.group(context_settings={'auto_envvar_prefix': 'KMP_IMPACT', 'help_option_names': ['-h', '--help']})
@click.version_option(__version__, prog_name='kmp-impact')
def cli():
    """KMP Impact - Measures how much of an app is influenced by its Kotlin Multiplatform module

    USAGE:
        kmp-impact analyze                        # Analyze the current project
        kmp-impact analyze path/to/project -f json
        kmp-impact analyze --shared-root shared/src/commonMain --ios-root iosApp
        kmp-impact symbols                        # List the shared symbol table
        kmp-impact graph                          # Inspect dependency graphs

    Every option may also be set through the environment, e.g.
    KMP_IMPACT_ANALYZE_OUTPUT_FORMAT=json.
    """


@cli.command()
@_project_options
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json', 'markdown']),
              default='table', help='Output format')
@click.option('--output', '-o', type=click.Path(dir_okay=False, path_type=Path),
              help='Output file for the report')
@click.option('--top', type=click.IntRange(min=0), default=10, help='Number of top symbols to report')
@click.option('--show-files', is_flag=True, help='List directly and transitively impacted files')
def analyze(project_path, shared_roots, android_roots, ios_roots, interop_modules, workers, verbose,
            output_format, output, top, show_files):
    """Analyze the impact of the shared module on the application code.

    Shared and application source roots are detected automatically from
    Gradle modules and Xcode projects below PROJECT_PATH unless explicit
    roots are given.
    """
    _configure_logging(verbose)
    run = _run_analysis(project_path, shared_roots, android_roots, ios_roots, interop_modules,
                        workers, show_progress=output_format == 'table' and output is None)

    if output_format == 'json':
        content = json.dumps(_build_report(run, project_path, top, show_files), indent=2, sort_keys=True)
        _write_or_echo(content, output)
    elif output_format == 'markdown':
        _write_or_echo(_generate_markdown_report(run, project_path, top, show_files), output)
    elif output:
        with open(output, 'w', encoding='utf-8') as handle:
            _display_table_report(run, project_path, top, show_files,
                                  Console(file=handle, width=120, no_color=True))
        err_console.print(f"📄 Report saved to {escape(str(output))}")
    else:
        _display_table_report(run, project_path, top, show_files, console)


@cli.command()
@_project_options
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']),
              default='table', help='Output format')
def symbols(project_path, shared_roots, android_roots, ios_roots, interop_modules, workers, verbose,
            output_format):
    """List the public symbols extracted from the shared module."""
    _configure_logging(verbose)
    run = _run_analysis(project_path, shared_roots, android_roots, ios_roots, interop_modules,
                        workers, show_progress=False)
    usage = {u.qualified_name: u for u in run.result.symbol_usage}

    if output_format == 'json':
        data = []
        for symbol in run.symbol_table:
            entry = symbol.to_dict()
            entry['file'] = _display_path(symbol.file_path, project_path)
            entry['references'] = usage[symbol.qualified_name].reference_count
            data.append(entry)
        click.echo(json.dumps(data, indent=2, sort_keys=True))
        return

    table = Table(title=f"📦 Shared Symbols ({len(run.symbol_table)})")
    table.add_column("Symbol", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Declared At")
    table.add_column("Declarations", justify="right")
    table.add_column("References", justify="right", style="yellow")

    for symbol in run.symbol_table:
        table.add_row(
            escape(symbol.qualified_name),
            symbol.kind.value,
            escape(f"{_display_path(symbol.file_path, project_path)}:{symbol.line}"),
            str(symbol.declaration_count),
            str(usage[symbol.qualified_name].reference_count),
        )
    console.print(table)


@cli.command()
@_project_options
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json']),
              default='table', help='Output format')
def graph(project_path, shared_roots, android_roots, ios_roots, interop_modules, workers, verbose,
          output_format):
    """Show the per-platform file dependency graphs and their cycles."""
    _configure_logging(verbose)
    run = _run_analysis(project_path, shared_roots, android_roots, ios_roots, interop_modules,
                        workers, show_progress=False)

    if output_format == 'json':
        data = {}
        for name, dependency_graph in sorted(run.graphs.items()):
            summary = dependency_graph.summary()
            data[name] = {
                'files': summary['total_files'],
                'imports': summary['total_imports'],
                'edges': [
                    {
                        'from': _display_path(edge.from_file, project_path),
                        'to': _display_path(edge.to_file, project_path),
                        'type': edge.import_type,
                        'line': edge.line_number,
                    }
                    for edge in dependency_graph.edges()
                ],
                'cycles': [
                    [_display_path(path, project_path) for path in cycle]
                    for cycle in dependency_graph.find_cycles()
                ],
            }
        click.echo(json.dumps(data, indent=2, sort_keys=True))
        return

    for name, dependency_graph in sorted(run.graphs.items()):
        summary = dependency_graph.summary()
        console.print(f"\n🔗 [bold]{escape(name)}[/bold]: {summary['total_files']} files, "
                      f"{summary['total_imports']} imports, {summary['cycles_detected']} cycles")

        if summary['most_imported']:
            table = Table()
            table.add_column("Most Imported File", style="cyan")
            table.add_column("Importers", justify="right", style="yellow")
            for path, count in summary['most_imported']:
                table.add_row(escape(_display_path(path, project_path)), str(count))
            console.print(table)

        for cycle in dependency_graph.find_cycles():
            rendered = " → ".join(_display_path(path, project_path) for path in cycle + cycle[:1])
            console.print(f"  [yellow]⟳[/yellow] {escape(rendered)}")


def _run_analysis(project_path, shared_roots, android_roots, ios_roots, interop_modules,
                  workers, show_progress: bool = True) -> AnalysisRun:
    config = AnalysisConfiguration(
        max_workers=workers,
        interop_modules=tuple(interop_modules),
    )
    registry = default_registry(config.interop_modules)
    analyzer = ImpactAnalyzer(config, registry)

    try:
        analysis_input = _resolve_input(project_path, shared_roots, android_roots, ios_roots, registry)
        if not show_progress:
            return analyzer.analyze(analysis_input)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=err_console,
            transient=True,
        ) as progress:
            progress.add_task("🔬 Running impact analysis...", total=None)
            return analyzer.analyze(analysis_input)
    except ImpactAnalysisError as e:
        raise ReportedError(str(e)) from e
    except KeyboardInterrupt:
        analyzer.cancel()
        raise click.Abort()


def _resolve_input(project_path: Path, shared_roots, android_roots, ios_roots, registry) -> AnalysisInput:
    """Explicit roots win; otherwise detect them below the project path."""
    if shared_roots or android_roots or ios_roots:
        platform_roots = {}
        if android_roots:
            platform_roots['android'] = list(android_roots)
        if ios_roots:
            platform_roots['ios'] = list(ios_roots)
        logger.debug("Using explicit roots, project detection skipped")
        return AnalysisInput(shared_roots=list(shared_roots), platform_roots=platform_roots)

    detected = ProjectDetector(registry).detect(project_path)
    return AnalysisInput.from_detected(detected)


def _display_path(path: str, project_path) -> str:
    root = normalize_path(project_path)
    if path.startswith(root.rstrip('/') + '/'):
        return path[len(root.rstrip('/')) + 1:]
    return path


def _write_or_echo(content: str, output: Optional[Path]):
    if output:
        Path(output).write_text(content.rstrip("\n") + "\n", encoding='utf-8')
        err_console.print(f"📄 Report saved to {escape(str(output))}")
    else:
        click.echo(content.rstrip("\n"))


def _build_report(run: AnalysisRun, project_path, top: int, show_files: bool) -> Dict[str, Any]:
    """JSON-serialisable report: results plus metadata and warnings."""
    report = run.result.to_dict(top=top, include_files=show_files)
    if show_files:
        for platform in report['platforms']:
            platform['files'] = {
                kind: [_display_path(path, project_path) for path in paths]
                for kind, paths in platform['files'].items()
            }
    report['symbol_kinds'] = run.symbol_table.kind_breakdown()
    report['metadata'] = _report_metadata(project_path)
    report['warnings'] = [w.to_dict() for w in run.warnings]
    return report


def _report_metadata(project_path) -> Dict[str, Any]:
    revision = describe_revision(project_path)
    return {
        'tool': 'kmp-impact',
        'version': __version__,
        'project': normalize_path(project_path),
        'revision': revision.to_dict() if revision else None,
    }


def _display_table_report(run: AnalysisRun, project_path, top: int, show_files: bool, out: Console):
    """Display the impact report as rich tables."""
    result = run.result

    out.print("\n[bold]=== KMP Impact Coverage Report ===[/bold]\n")
    out.print(f"📊 Impact Coverage: [bold green]{result.impact_ratio:.2f}%[/bold green]")
    out.print(f"   Affected Lines: {result.affected_lines} / {result.total_lines}\n")
    out.print(f"🎯 Direct Impact: {result.direct_file_count} files")
    out.print(f"🔗 Transitive Impact: {result.transitive_file_count} files")
    out.print(f"📦 KMP Symbols: {result.total_symbols}")

    if result.platforms:
        table = Table(title="Platform Impact Breakdown")
        table.add_column("Platform", style="cyan")
        table.add_column("Impact %", justify="right", style="green")
        table.add_column("Affected Files", justify="right")
        table.add_column("Affected Lines", justify="right")
        table.add_column("Total Lines", justify="right")
        for platform in result.platforms:
            table.add_row(
                escape(platform.display_name),
                f"{platform.impact_ratio:.2f}%",
                str(platform.affected_files),
                str(platform.affected_lines),
                str(platform.total_lines),
            )
        out.print()
        out.print(table)

    ranked = result.top_symbols(top)
    if ranked:
        table = Table(title=f"Top {len(ranked)} Used KMP Symbols")
        table.add_column("Symbol", style="cyan")
        table.add_column("References", justify="right", style="yellow")
        table.add_column("Used in Files", justify="right")
        for usage in ranked:
            table.add_row(escape(usage.qualified_name), str(usage.reference_count), str(usage.file_count))
        out.print()
        out.print(table)

    if show_files:
        for platform in result.platforms:
            if not platform.affected_files:
                continue
            out.print(f"\n📁 [bold]{escape(platform.display_name)} impacted files[/bold]")
            for path in platform.direct_files:
                out.print(f"  • [green]direct[/green]     {escape(_display_path(path, project_path))}")
            for path in platform.transitive_files:
                out.print(f"  • [blue]transitive[/blue] {escape(_display_path(path, project_path))}")

    _display_warnings(run, out)


def _display_warnings(run: AnalysisRun, out: Console):
    if not run.warnings:
        return
    out.print(f"\n[yellow]⚠️  {len(run.warnings)} warning(s)[/yellow]")
    for warning in run.warnings:
        out.print(f"  • {escape(warning.message)}")


def _generate_markdown_report(run: AnalysisRun, project_path, top: int, show_files: bool) -> str:
    """Generate the markdown report."""
    result = run.result
    metadata = _report_metadata(project_path)

    lines: List[str] = ["# Kotlin Multiplatform Impact Coverage Report", ""]
    lines.append(f"- **Project**: `{metadata['project']}`")
    if metadata['revision']:
        revision = metadata['revision']
        branch = revision['branch'] or 'detached'
        lines.append(f"- **Revision**: `{revision['commit'][:12]}` ({branch}{', dirty' if revision['dirty'] else ''})")
    lines.append(f"- **Tool**: kmp-impact {metadata['version']}")
    lines.append("")

    lines.extend([
        "## 📊 Impact Summary",
        "",
        f"- **Impact Coverage**: {result.impact_ratio:.2f}%",
        f"- **Affected Lines**: {result.affected_lines} / {result.total_lines}",
        f"- **Direct Impact Files**: {result.direct_file_count}",
        f"- **Transitive Impact Files**: {result.transitive_file_count}",
        f"- **Total KMP Symbols**: {result.total_symbols}",
        "",
    ])

    if result.platforms:
        lines.extend([
            "## 📱 Platform Impact Breakdown",
            "",
            "| Platform | Impact % | Affected Files | Affected Lines | Total Lines |",
            "|----------|----------|----------------|----------------|-------------|",
        ])
        for platform in result.platforms:
            lines.append(
                f"| {platform.display_name} | {platform.impact_ratio:.2f}% | {platform.affected_files} "
                f"| {platform.affected_lines} | {platform.total_lines} |"
            )
        lines.append("")

    ranked = result.top_symbols(top)
    if ranked:
        lines.extend([
            "## 🎯 Top Used KMP Symbols",
            "",
            "| Symbol | References | Used in Files |",
            "|--------|------------|---------------|",
        ])
        for usage in ranked:
            lines.append(f"| `{usage.qualified_name}` | {usage.reference_count} | {usage.file_count} |")
        lines.append("")

    lines.extend(["## 📦 KMP Symbol Breakdown", ""])
    for kind, count in run.symbol_table.kind_breakdown().items():
        lines.append(f"- **{kind}**: {count}")
    lines.append("")

    if show_files:
        for platform in result.platforms:
            if not platform.affected_files:
                continue
            lines.extend([f"## 📁 {platform.display_name} Impacted Files", ""])
            lines.extend(f"- direct: `{_display_path(p, project_path)}`" for p in platform.direct_files)
            lines.extend(f"- transitive: `{_display_path(p, project_path)}`" for p in platform.transitive_files)
            lines.append("")

    if run.warnings:
        lines.extend(["## ⚠️ Warnings", ""])
        lines.extend(f"- {warning.message}" for warning in run.warnings)
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


if __name__ == '__main__':
    cli()
