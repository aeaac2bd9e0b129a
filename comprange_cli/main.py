#!/usr/bin/env python3
"""
CompRange CLI

Rich-based CLI for building salary range reference tables from market
percentiles and the employee directory.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console

from .commands.build import run_build
from .commands.lookup import run_lookup
from .commands.validate import validate_config

# Initialize Rich console
console = Console()

app = typer.Typer(
    name="comprange",
    help="CompRange - salary range builder for market and internal compensation data",
    rich_markup_mode="rich",
    no_args_is_help=True,
    add_completion=True,
)


def version_callback(value: bool):
    if value:
        from comprange_cli import __version__
        console.print(f"CompRange Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version information"
    ),
):
    """
    [bold blue]CompRange CLI[/bold blue]

    Build the Full List range tables and look up individual ranges.

    [dim]Examples:[/dim]
        comprange validate                                  # Check config
        comprange build --market-dir data/market --employees data/base_data.csv
        comprange lookup US EN.SODE "L5 IC" --market-dir data/market
    """
    pass


@app.command("build")
def build(
    market: str = typer.Option(..., "--market-dir", "--market", "-m", help="Market workbook (.xlsx) or directory of per-region CSVs"),
    employees: Optional[str] = typer.Option(None, "--employees", "-e", help="Employee directory CSV"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to range config YAML"),
    output_dir: str = typer.Option("output", "--output", "-o", help="Output directory"),
    export_format: str = typer.Option("csv", "--format", "-f", help="Export format (csv, excel)"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Build date for new-hire cohorts (YYYY-MM-DD)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed output"),
):
    """🏗️  Build Full List and Full List USD tables."""
    run_build(
        config=config,
        market=market,
        employees=employees,
        output_dir=output_dir,
        export_format=export_format,
        as_of=as_of,
        verbose=verbose,
    )


@app.command("lookup")
def lookup(
    region: str = typer.Argument(..., help="Region (e.g. US)"),
    family: str = typer.Argument(..., help="Job family code"),
    level: str = typer.Argument(..., help="Level label (e.g. 'L5 IC')"),
    market: str = typer.Option(..., "--market-dir", "--market", "-m", help="Market workbook (.xlsx) or directory of per-region CSVs"),
    employees: Optional[str] = typer.Option(None, "--employees", "-e", help="Employee directory CSV"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to range config YAML"),
    usd: bool = typer.Option(False, "--usd", help="Show the USD-converted range"),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Build date for new-hire cohorts (YYYY-MM-DD)"),
):
    """🔎 Look up one range by region, family and level."""
    run_lookup(
        region=region,
        family=family,
        level=level,
        config=config,
        market=market,
        employees=employees,
        usd=usd,
        as_of=as_of,
    )


@app.command("validate")
def validate(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to range config YAML"),
):
    """✅ Validate range configuration."""
    validate_config(config=config)


if __name__ == "__main__":
    app()
