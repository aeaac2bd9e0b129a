"""
Build command for the CompRange CLI

Runs a full batch build and exports the FullList and FullListUSD tables.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from comprange_engine.engine import AggregationEngine, BuildResult
from comprange_engine.exceptions import RangeEngineError
from comprange_engine.exporter import TableExporter
from comprange_engine.logger import get_logger

from ..utils.config_helpers import load_inputs, parse_as_of, resolve_config

console = Console()


def _summary_table(result: BuildResult) -> Table:
    meta = result.metadata
    table = Table(title=f"Range Build {meta.run_id}", show_header=True, header_style="bold blue")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("As of", meta.as_of.isoformat())
    table.add_row("Rows emitted", f"{meta.rows_emitted:,}")
    table.add_row("Combinations skipped", f"{meta.combinations_skipped:,}")
    for source, count in meta.percentile_sources.items():
        table.add_row(f"Percentiles: {source}", f"{count:,}")
    table.add_row("Malformed job codes", str(meta.market.get("malformed_job_codes", 0)))
    table.add_row("Unmapped level tokens", str(meta.market.get("unmapped_tokens", 0)))
    table.add_row("Duplicate market keys", str(meta.market.get("duplicate_keys", 0)))
    table.add_row("Invalid salaries", str(meta.employees.get("invalid_salary", 0)))
    table.add_row("Employees in unmapped families", f"{meta.unmapped_family_employees:,}")
    if meta.duration_seconds is not None:
        table.add_row("Duration", f"{meta.duration_seconds:.2f}s")
    return table


def run_build(
    *,
    config: Optional[str],
    market: str,
    employees: Optional[str],
    output_dir: str,
    export_format: str,
    as_of: Optional[str],
    verbose: bool,
) -> None:
    try:
        config_path, cfg = resolve_config(config)
        as_of_date = parse_as_of(as_of)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]❌ {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except RangeEngineError as e:
        console.print(f"[red]{escape(e.format_diagnostic_message())}[/red]")
        raise typer.Exit(1)

    log = get_logger(log_level="DEBUG" if verbose else "INFO")
    try:
        if verbose:
            console.print(f"⚙️  [dim]Config: {config_path}[/dim]")
            console.print(f"📁 [dim]Market: {market}[/dim]")

        market_rows, records, report = load_inputs(cfg, market, employees)
        if report is not None and report.rows_skipped:
            console.print(f"[yellow]⚠️  Skipped {report.rows_skipped} employee rows[/yellow]")

        engine = AggregationEngine(cfg)
        result = engine.build(market_rows, records, as_of=as_of_date, run_id=log.get_run_id())
        paths = TableExporter(Path(output_dir)).export(result, export_format=export_format)

        log.info("Range build exported", paths=[str(p) for p in paths], **result.metadata.to_dict())
        console.print(_summary_table(result))
        if result.metadata.regions_missing_market_data:
            console.print(
                "[yellow]⚠️  No market data for: "
                + ", ".join(result.metadata.regions_missing_market_data)
                + "[/yellow]"
            )
        for path in paths:
            console.print(f"✅ [green]{path}[/green]")
    except RangeEngineError as e:
        log.error("Range build failed", error=e.to_dict())
        console.print(f"[red]{escape(e.format_diagnostic_message())}[/red]")
        raise typer.Exit(1)
    finally:
        log.close()
