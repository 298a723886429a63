"""Core CLI commands - config, list, clean."""
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from benchmarker.cli_support import (
    handle_cli_error,
    load_snapshot,
    print_error,
    print_success,
    resolve_root,
    setup_logging,
)
from benchmarker.config.loader import ConfigResolver
from benchmarker.core.environment import DEFAULT_SIEGER_OPTIONS, build_options, default_provider
from benchmarker.core.errors import BenchmarkerError
from benchmarker.services.cleaner import WorkspaceCleaner
from benchmarker.services.manifest import ManifestGenerator

# Module-level console instance (will be set by register function)
console: Console = Console()


def config(
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Benchmark root directory"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Deployment provider (env: PROVIDER)"),
    collect: Optional[str] = typer.Option(None, "--collect", help="on/off: run the load generator (env: COLLECT)"),
    clean: Optional[str] = typer.Option(None, "--clean", help="on/off: tear down after the run (env: CLEAN)"),
    sieger_options: Optional[str] = typer.Option(None, "--sieger-options", help="Load generator options (env: SIEGER_OPTIONS)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks and debug logs"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also log to this file"),
):
    """Generate .Dockerfile and .Makefile for every framework."""
    setup_logging(verbose, log_file)
    root_path = resolve_root(root)
    snapshot = load_snapshot(root_path)

    provider = provider or snapshot.get("PROVIDER") or default_provider()
    options = build_options({
        'provider': provider,
        'collect': collect or snapshot.get("COLLECT", "on"),
        'clean': clean or snapshot.get("CLEAN", "on"),
        'sieger_options': sieger_options or snapshot.get("SIEGER_OPTIONS", DEFAULT_SIEGER_OPTIONS),
    }, snapshot)

    try:
        report = ManifestGenerator(root_path).generate_all(provider, options)
    except BenchmarkerError as e:
        handle_cli_error(e, console, verbose)

    for result in report.results:
        print_success(console, f"{result.language}/{result.framework} ({len(result.commands)} commands)")
    for name, error in report.failures.items():
        print_error(console, f"{name}: {error}")

    if not report.ok:
        raise typer.Exit(1)


def list_frameworks(
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Benchmark root directory"),
):
    """List the language/framework matrix."""
    resolver = ConfigResolver(resolve_root(root))

    table = Table(title="Frameworks")
    table.add_column("Language", style="cyan")
    table.add_column("Framework")

    count = 0
    for language, framework in resolver.iter_matrix():
        table.add_row(language, framework)
        count += 1

    console.print(table)
    console.print(f"{count} frameworks")


def clean(
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Benchmark root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks and debug logs"),
):
    """Delete generated files listed in .gitignore files (no dry run)."""
    setup_logging(verbose)
    try:
        deleted = WorkspaceCleaner(resolve_root(root)).clean()
    except BenchmarkerError as e:
        handle_cli_error(e, console, verbose)

    print_success(console, f"Deleted {len(deleted)} paths")


def register_core_commands(app: typer.Typer, shared_console: Console) -> None:
    """Attach config, list and clean to the main Typer app."""
    global console
    console = shared_console

    app.command("config")(config)
    app.command("list")(list_frameworks)
    app.command("clean")(clean)
