"""Shared utilities for Benchmarker CLI modules."""
from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional, Tuple

import typer
from rich.console import Console

from benchmarker.core.environment import load_environment
from benchmarker.core.logger import enable_file_logging, set_verbose


def resolve_root(root: Optional[str] = None) -> Path:
    """Return the benchmark root as an absolute path."""
    return Path(root or ".").resolve()


def load_snapshot(root: Path) -> Mapping[str, str]:
    """Take the environment snapshot used for the whole invocation."""
    return load_environment(root)


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Apply --verbose to every logger and add the --log-file handler if given."""
    if log_file:
        enable_file_logging(log_file, verbose=verbose)
    else:
        set_verbose(verbose)


def resolve_target(
    snapshot: Mapping[str, str],
    language: Optional[str],
    framework: Optional[str],
    console: Console,
) -> Tuple[str, str]:
    """Resolve the language/framework pair from options, then LANG/FRAMEWORK.

    Raises:
        typer.Exit: If either part cannot be determined
    """
    language = language or snapshot.get("LANG")
    framework = framework or snapshot.get("FRAMEWORK")
    if not language or not framework:
        print_error(console, "Both a language (--language or LANG) and a framework "
                             "(--framework or FRAMEWORK) are required")
        raise typer.Exit(1)
    return language, framework


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")
