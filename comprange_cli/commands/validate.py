"""
Validate command for the CompRange CLI
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from comprange_engine.exceptions import RangeEngineError

from ..utils.config_helpers import resolve_config

console = Console()


def validate_config(config: Optional[str]) -> None:
    try:
        config_path, cfg = resolve_config(config)
    except FileNotFoundError as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except RangeEngineError as e:
        console.print(f"[red]{escape(e.format_diagnostic_message())}[/red]")
        raise typer.Exit(1)

    regions = Table(title="Regions", header_style="bold blue")
    regions.add_column("Region")
    regions.add_column("Currency")
    regions.add_column("Rounding", justify="right")
    regions.add_column("FX → USD", justify="right")
    regions.add_column("Market source")
    for region in cfg.regions:
        regions.add_row(
            region.name,
            region.currency,
            f"{region.rounding_increment:,}",
            f"{region.fx_to_usd}" if region.fx_to_usd is not None else "[yellow]1.0 (default)[/yellow]",
            region.market_source or "-",
        )
    console.print(regions)

    categories = Table(title="Family Categories", header_style="bold blue")
    categories.add_column("Family")
    categories.add_column("Display name")
    categories.add_column("Category")
    for family, category in cfg.categories.items():
        categories.add_row(family, cfg.family_name(family), category)
    console.print(categories)

    if not cfg.categories:
        console.print("[yellow]⚠️  No family categories configured; builds will emit no rows[/yellow]")
    console.print(f"✅ [green]Configuration valid: {config_path}[/green] ({len(cfg.levels)} levels)")
