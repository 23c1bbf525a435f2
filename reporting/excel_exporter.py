"""
Excel Report Exporter
=====================

Writes the Documentation sheet and the four tabulation tables to one
.xlsx workbook (pandas ExcelWriter, openpyxl engine), then applies the
cosmetic layout: frozen header row and identifier columns, columns sized
to their header or values, 4-decimal proportions, wrapped documentation
text.
"""

import logging
from pathlib import Path
from typing import Dict

import pandas as pd
from openpyxl.styles import Alignment
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

logger = logging.getLogger(__name__)

DOCUMENTATION_SHEET = "Documentation"
DOCUMENTATION_WIDTH = 85
IDENTIFIER_COLUMNS = ("PUMA", "tenure", "income")
PROPORTION_SUFFIX = "_prop"
PROPORTION_FORMAT = "0.0000"
COLUMN_PADDING = 2


def _display_width(column: str, values: pd.Series) -> int:
    """Widest rendering of a column: its header or its longest value."""
    if column.endswith(PROPORTION_SUFFIX):
        value_width = len(PROPORTION_FORMAT)
    elif column in IDENTIFIER_COLUMNS:
        value_width = int(values.astype(str).str.len().max()) if len(values) else 0
    else:
        value_width = max((len(f"{v:,.0f}") for v in values), default=0)
    return max(len(column), value_width)


def _fit_columns(ws: Worksheet, df: pd.DataFrame) -> None:
    """Size each column to the table and show proportions with 4 decimals."""
    for idx, column in enumerate(df.columns, start=1):
        letter = get_column_letter(idx)
        ws.column_dimensions[letter].width = _display_width(column, df[column]) + COLUMN_PADDING
        if column.endswith(PROPORTION_SUFFIX):
            for (cell,) in ws.iter_rows(min_row=2, max_row=ws.max_row, min_col=idx, max_col=idx):
                cell.number_format = PROPORTION_FORMAT


def freeze_cell(df: pd.DataFrame) -> str:
    """First scrollable cell: below the header, right of the identifier columns."""
    n_ids = sum(1 for col in df.columns if col in IDENTIFIER_COLUMNS)
    return f"{get_column_letter(n_ids + 1)}2"


def _format_documentation(ws: Worksheet) -> None:
    ws.column_dimensions["A"].width = DOCUMENTATION_WIDTH
    wrap = Alignment(wrap_text=True, vertical="top")
    for (cell,) in ws.iter_rows(min_row=1, max_row=ws.max_row, min_col=1, max_col=1):
        cell.alignment = wrap


class ReportExporter:
    """
    Serializes report tables to a multi-sheet workbook.
    """

    def __init__(self, output_path: str):
        """
        Args:
            output_path: Target .xlsx path (parent directories are created)
        """
        self.output_path = Path(output_path)

    def export(self, documentation: pd.DataFrame, tables: Dict[str, pd.DataFrame]) -> Path:
        """
        Write the workbook.

        Args:
            documentation: Single-column documentation table
            tables: Sheet name -> table, in sheet order

        Returns:
            Path of the written workbook
        """
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

        with pd.ExcelWriter(self.output_path, engine="openpyxl") as writer:
            documentation.to_excel(writer, sheet_name=DOCUMENTATION_SHEET, index=False)
            _format_documentation(writer.sheets[DOCUMENTATION_SHEET])

            for sheet_name, df in tables.items():
                df.to_excel(writer, sheet_name=sheet_name, index=False)
                ws = writer.sheets[sheet_name]
                ws.freeze_panes = freeze_cell(df)
                _fit_columns(ws, df)
                logger.info(f"  Sheet '{sheet_name}': {len(df)} rows")

        logger.info(f"Report written to {self.output_path}")
        return self.output_path
