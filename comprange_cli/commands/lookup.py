"""
Lookup command for the CompRange CLI

Point lookup of one (region, family, level) range without exporting tables.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from comprange_engine.engine import AggregationEngine
from comprange_engine.exceptions import RangeEngineError
from comprange_engine.lookup import RangeCalculator
from comprange_engine.models import OutputRow

from ..utils.config_helpers import load_inputs, parse_as_of, resolve_config

console = Console()


def _fmt(value: Optional[float], ratio: bool = False) -> str:
    if value is None:
        return "-"
    return f"{value:.2f}" if ratio else f"{value:,.0f}"


def _row_table(row: OutputRow, currency: str) -> Table:
    table = Table(title=f"{row.family_name} · {row.level} · {row.region} ({currency})", header_style="bold blue")
    table.add_column("Field")
    table.add_column("Value", justify="right")
    table.add_row("Category", row.category)
    table.add_row("Range start", _fmt(row.range_start))
    table.add_row("Range mid", _fmt(row.range_mid))
    table.add_row("Range end", _fmt(row.range_end))
    table.add_row("Internal min / median / max", " / ".join(
        _fmt(v) for v in (row.internal_min, row.internal_median, row.internal_max)
    ))
    table.add_row("Headcount", str(row.internal_count))
    table.add_row("CR avg", _fmt(row.cr_avg, ratio=True))
    table.add_row("CR top talent", _fmt(row.cr_top_talent, ratio=True))
    table.add_row("CR new hire", _fmt(row.cr_new_hire, ratio=True))
    table.add_row("CR bottom tier", _fmt(row.cr_bottom_tier, ratio=True))
    table.add_row("Percentile source", row.percentile_source.value)
    table.add_row("Join key", row.join_key)
    return table


def run_lookup(
    *,
    region: str,
    family: str,
    level: str,
    config: Optional[str],
    market: str,
    employees: Optional[str],
    usd: bool,
    as_of: Optional[str],
) -> None:
    try:
        _, cfg = resolve_config(config)
        as_of_date = parse_as_of(as_of)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except RangeEngineError as e:
        console.print(f"[red]{escape(e.format_diagnostic_message())}[/red]")
        raise typer.Exit(1)

    try:
        market_rows, records, _ = load_inputs(cfg, market, employees)
        engine = AggregationEngine(cfg)
        context = engine.prepare(market_rows, records, as_of=as_of_date)
        row = RangeCalculator(engine, context).lookup(region, family, level, usd=usd)
    except RangeEngineError as e:
        console.print(f"[red]{escape(e.format_diagnostic_message())}[/red]")
        raise typer.Exit(1)

    if row is None:
        console.print(f"[yellow]No range data for {family} / {level} / {region}[/yellow]")
        raise typer.Exit(1)
    currency = "USD" if usd else context.rounder.currency(region)
    console.print(_row_table(row, currency))
