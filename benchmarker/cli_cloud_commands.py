"""Cloud provisioning commands - config, upload, wait."""
from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from benchmarker.cli_support import (
    handle_cli_error,
    load_snapshot,
    print_error,
    print_success,
    resolve_root,
    resolve_target,
    setup_logging,
)
from benchmarker.core.errors import BenchmarkerError
from benchmarker.services.cloud_config import CloudConfigGenerator
from benchmarker.services.remote.deployer import POLL_INTERVAL, RemoteDeployer
from benchmarker.services.remote.ssh import SSHClient

cloud_app = typer.Typer(help="Provision cloud hosts through cloud-init", add_completion=False)
_CLOUD_APP_ATTACHED = False
console = Console()


def register_cloud_commands(app: typer.Typer, shared_console: Console) -> None:
    """Attach cloud subcommands to the main Typer app."""
    global console, _CLOUD_APP_ATTACHED
    console = shared_console

    if not _CLOUD_APP_ATTACHED:
        app.add_typer(cloud_app, name="cloud")
        _CLOUD_APP_ATTACHED = True


def _client(snapshot, host: Optional[str], key: Optional[str]) -> SSHClient:
    host = host or snapshot.get("HOST")
    if not host:
        print_error(console, "A host is required (--host or HOST)")
        raise typer.Exit(1)
    return SSHClient(host, key_file=key or snapshot.get("SSH_KEY"))


@cloud_app.command("config")
def cloud_config(
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language directory (env: LANG)"),
    framework: Optional[str] = typer.Option(None, "--framework", "-f", help="Framework directory (env: FRAMEWORK)"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Benchmark root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks and debug logs"),
) -> None:
    """Write user_data.yml for one framework."""
    setup_logging(verbose)
    root_path = resolve_root(root)
    language, framework = resolve_target(load_snapshot(root_path), language, framework, console)

    try:
        target = CloudConfigGenerator(root_path).generate(language, framework)
    except BenchmarkerError as e:
        handle_cli_error(e, console, verbose)

    print_success(console, f"Wrote {target}")


@cloud_app.command("upload")
def cloud_upload(
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language directory (env: LANG)"),
    framework: Optional[str] = typer.Option(None, "--framework", "-f", help="Framework directory (env: FRAMEWORK)"),
    host: Optional[str] = typer.Option(None, "--host", help="Remote host (env: HOST)"),
    key: Optional[str] = typer.Option(None, "--key", help="SSH private key (env: SSH_KEY)"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Benchmark root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks and debug logs"),
) -> None:
    """Upload compiled binaries to a provisioned host."""
    setup_logging(verbose)
    root_path = resolve_root(root)
    snapshot = load_snapshot(root_path)
    language, framework = resolve_target(snapshot, language, framework, console)

    try:
        uploaded = RemoteDeployer(root_path, _client(snapshot, host, key)).upload(language, framework)
    except BenchmarkerError as e:
        handle_cli_error(e, console, verbose)

    print_success(console, f"Uploaded {len(uploaded)} binaries")


@cloud_app.command("wait")
def cloud_wait(
    host: Optional[str] = typer.Option(None, "--host", help="Remote host (env: HOST)"),
    key: Optional[str] = typer.Option(None, "--key", help="SSH private key (env: SSH_KEY)"),
    interval: float = typer.Option(POLL_INTERVAL, "--interval", help="Seconds between attempts"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Give up after this many seconds (default: wait forever)"),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Benchmark root directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show tracebacks and debug logs"),
) -> None:
    """Block until cloud-init finishes on the host."""
    setup_logging(verbose)
    root_path = resolve_root(root)
    snapshot = load_snapshot(root_path)

    try:
        RemoteDeployer(root_path, _client(snapshot, host, key)).wait(interval=interval, timeout=timeout)
    except BenchmarkerError as e:
        handle_cli_error(e, console, verbose)

    print_success(console, "Host is ready")
