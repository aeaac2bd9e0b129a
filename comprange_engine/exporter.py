#!/usr/bin/env python3
"""
Export FullList and FullListUSD tables for downstream range calculators.

- CSV: one file per table plus a metadata file
- Excel: one workbook with Full List, Full List USD and Metadata sheets,
  auto-sized columns and a bold header row
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd

from _version import get_full_version

from .engine import BuildResult

logger = logging.getLogger(__name__)

SHEET_NAMES = {
    "full_list": "Full List",
    "full_list_usd": "Full List USD",
    "metadata": "Metadata",
}


class TableExporter:
    """Write build results to CSV files or an Excel workbook."""

    def __init__(self, output_dir: Path | str):
        self.output_dir = Path(output_dir)

    def export(self, result: BuildResult, *, export_format: str = "csv", name: str = "salary_ranges") -> List[Path]:
        """Export both tables and the build metadata.

        Args:
            result: Completed build
            export_format: 'csv' or 'excel'
            name: File name prefix

        Returns:
            Paths written
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        fmt = export_format.lower()
        if fmt == "csv":
            return self._export_csv(result, name)
        if fmt in {"excel", "xlsx"}:
            return [self._export_excel(result, name)]
        raise ValueError(f"Unsupported export format: {export_format}")

    def _metadata_frame(self, result: BuildResult) -> pd.DataFrame:
        meta: Dict[str, object] = {"engine_version": get_full_version(), **result.metadata.to_dict()}
        return pd.DataFrame(
            [
                {"key": key, "value": value if isinstance(value, (str, int, float)) or value is None else json.dumps(value, default=str)}
                for key, value in meta.items()
            ]
        )

    def _export_csv(self, result: BuildResult, name: str) -> List[Path]:
        paths = [
            self.output_dir / f"{name}_full_list.csv",
            self.output_dir / f"{name}_full_list_usd.csv",
            self.output_dir / f"{name}_metadata.csv",
        ]
        result.to_frame().to_csv(paths[0], index=False)
        result.to_frame(usd=True).to_csv(paths[1], index=False)
        self._metadata_frame(result).to_csv(paths[2], index=False)
        logger.info("Exported %d rows to %s", len(result.full_list), self.output_dir)
        return paths

    def _export_excel(self, result: BuildResult, name: str) -> Path:
        excel_path = self.output_dir / f"{name}.xlsx"
        with pd.ExcelWriter(excel_path, engine="openpyxl") as writer:
            result.to_frame().to_excel(writer, sheet_name=SHEET_NAMES["full_list"], index=False)
            result.to_frame(usd=True).to_excel(writer, sheet_name=SHEET_NAMES["full_list_usd"], index=False)
            self._metadata_frame(result).to_excel(writer, sheet_name=SHEET_NAMES["metadata"], index=False)
            for sheet in writer.sheets.values():
                self._format_worksheet(sheet)
        logger.info("Exported %d rows to %s", len(result.full_list), excel_path)
        return excel_path

    def _format_worksheet(self, worksheet) -> None:
        """Bold the header row and size columns to their content.

        Args:
            worksheet: openpyxl Worksheet object to format
        """
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter

        for cell in worksheet[1]:
            cell.font = Font(bold=True)
        for idx, column in enumerate(worksheet.columns, start=1):
            length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            worksheet.column_dimensions[get_column_letter(idx)].width = min(length + 2, 50)
