#!/usr/bin/env python3
"""Benchmarker CLI - build and deploy the web framework benchmark matrix."""

import typer
from rich.console import Console

from benchmarker.cli_ci_commands import register_ci_commands
from benchmarker.cli_cloud_commands import register_cloud_commands
from benchmarker.cli_core_commands import register_core_commands

app = typer.Typer(
    name="benchmarker",
    help="""Benchmarker - build and deploy the web framework benchmark matrix

Every <language>/<framework> directory with a config.yaml is one target.

Quick start:
  bm list                       # Show the matrix
  bm config                     # Generate .Dockerfile / .Makefile everywhere
  bm cloud config -l go -f gin  # cloud-init user data for one framework
  bm ci config                  # CI pipeline with one job per framework
""",
    add_completion=False,
)

console = Console()

register_core_commands(app, console)
register_cloud_commands(app, console)
register_ci_commands(app, console)

if __name__ == "__main__":
    app()
