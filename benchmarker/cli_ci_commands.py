"""CI pipeline commands."""
from typing import Optional

import typer
from rich.console import Console

from benchmarker.cli_support import handle_cli_error, print_success, resolve_root
from benchmarker.core.errors import BenchmarkerError
from benchmarker.services.pipeline import PipelineConfigGenerator

ci_app = typer.Typer(help="Continuous integration pipeline", add_completion=False)
_CI_APP_ATTACHED = False
console = Console()


def register_ci_commands(app: typer.Typer, shared_console: Console) -> None:
    """Attach ci subcommands to the main Typer app."""
    global console, _CI_APP_ATTACHED
    console = shared_console

    if not _CI_APP_ATTACHED:
        app.add_typer(ci_app, name="ci")
        _CI_APP_ATTACHED = True


@ci_app.command("config")
def ci_config(
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Benchmark root directory"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Pipeline file (default: .semaphore/semaphore.yml)"),
) -> None:
    """Write the CI pipeline running every framework as a parallel job."""
    try:
        target = PipelineConfigGenerator(resolve_root(root)).generate(output)
    except BenchmarkerError as e:
        handle_cli_error(e, console)

    print_success(console, f"Wrote {target}")
